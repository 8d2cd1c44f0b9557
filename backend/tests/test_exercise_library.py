"""Tests for exercise selection by risk tier."""
from riskcheck.services.exercise_library import (
    BACK_PAIN_BUNDLE,
    BALANCE,
    CORE,
    FALL_RISK_BUNDLE,
    GENERAL_BUNDLE,
    get_exercise_catalog,
    select_exercises,
)


def _names(exercises):
    return [e.name for e in exercises]


class TestSelectExercises:
    def test_high_fall_risk_uses_balance_bundle(self):
        selected = select_exercises("high", None)
        assert len(selected) == 8
        assert _names(selected) == _names(FALL_RISK_BUNDLE)
        assert BALANCE[0].name in _names(selected)

    def test_high_back_pain_uses_core_bundle(self):
        selected = select_exercises("low", "high")
        assert len(selected) == 8
        assert _names(selected) == _names(BACK_PAIN_BUNDLE)
        assert CORE[0].name in _names(selected)

    def test_both_high_prefers_fall_bundle(self):
        assert _names(select_exercises("high", "high")) == _names(FALL_RISK_BUNDLE)

    def test_medium_uses_general_bundle(self):
        selected = select_exercises("medium", "low")
        assert _names(selected) == _names(GENERAL_BUNDLE)[:5]

    def test_low(self):
        assert len(select_exercises("low", "low")) == 3

    def test_nothing_assessed(self):
        assert _names(select_exercises(None, None)) == _names(GENERAL_BUNDLE)[:3]

    def test_no_duplicates(self):
        for fall in ("low", "medium", "high", None):
            for back in ("low", "medium", "high", None):
                names = _names(select_exercises(fall, back))
                assert len(names) == len(set(names))

    def test_deterministic(self):
        assert select_exercises("medium", "high") == select_exercises("medium", "high")


class TestCatalog:
    def test_categories(self):
        catalog = get_exercise_catalog()
        assert set(catalog) == {"single_leg_standing", "squat", "balance", "core", "flexibility"}
        assert all(len(items) == 3 for items in catalog.values())

    def test_every_exercise_has_steps(self):
        for items in get_exercise_catalog().values():
            for exercise in items:
                assert exercise.instructions
                assert exercise.illustration.startswith("/images/")
