"""End-to-end tests for compute_risk."""
from riskcheck.schemas import (
    AssessmentData,
    FallRiskInput,
    FallRiskPhysical,
    FallRiskQuestionnaire,
    LowBackPainInput,
    LowBackPainPhysical,
    UserInfo,
)
from riskcheck.services.exercise_library import FALL_RISK_BUNDLE
from riskcheck.services.risk_assessment import back_pain_total, compute_risk, fall_risk_total

USER = UserInfo(gender="male", age_group="30s", height=1.70)

GOOD_FALL = FallRiskInput(
    questionnaire=FallRiskQuestionnaire(
        crowd_walking=4, physical_confidence=4, quick_reaction=3, step_recovery=3,
        sock_wearing=5, heel_to_toe=4, closed_eye_confidence=2, train_standing=4,
        open_eye_confidence=5,
    ),
    physical=FallRiskPhysical(
        two_step_test=150, seated_stepping_test=50, functional_reach=42,
        closed_eye_stand=100, open_eye_stand=150,
    ),
)

WORST_FALL = FallRiskInput(
    questionnaire=FallRiskQuestionnaire(),
    physical=FallRiskPhysical(),
)

BACK = LowBackPainInput(
    physical=LowBackPainPhysical(
        standing_forward_bend="OK", hip_flexion="OK", plank_challenge=60,
        wall_posture_head="壁につく", wall_posture_waist="手のひら1枚",
    ),
)


class TestComputeRisk:
    def test_fall_only_scenario(self):
        result = compute_risk(AssessmentData(user_info=USER, fall_risk=GOOD_FALL))
        assert fall_risk_total(GOOD_FALL, USER.height) == 380
        assert result.fall_risk_percentage == 23
        assert result.fall_risk == "low"
        assert result.fall_risk_scores is not None
        assert result.low_back_pain_risk is None
        assert result.low_back_pain_risk_percentage is None
        assert len(result.recommendations) == 1
        assert result.recommendations[0].startswith("転倒リスク: 23% - ")
        assert len(result.exercises) == 3

    def test_worst_fall_scenario(self):
        result = compute_risk(AssessmentData(user_info=USER, fall_risk=WORST_FALL))
        assert result.fall_risk_percentage == 95
        assert result.fall_risk == "high"
        assert [e.name for e in result.exercises] == [e.name for e in FALL_RISK_BUNDLE]

    def test_back_pain_only(self):
        result = compute_risk(AssessmentData(user_info=USER, low_back_pain=BACK))
        assert back_pain_total(BACK) == 350
        # (1 - 250/260) * 90 + 5 = 8.46
        assert result.low_back_pain_risk_percentage == 8
        assert result.low_back_pain_risk == "low"
        assert result.fall_risk is None
        assert result.fall_risk_scores is None
        assert result.recommendations == (result.recommendations[0],)
        assert result.recommendations[0].startswith("腰痛リスク: 8% - ")

    def test_both_domains(self):
        result = compute_risk(AssessmentData(user_info=USER, fall_risk=WORST_FALL, low_back_pain=BACK))
        assert len(result.recommendations) == 2
        assert len(result.exercises) == 8

    def test_absent_domains_are_omitted_from_json(self):
        result = compute_risk(AssessmentData(user_info=USER, fall_risk=GOOD_FALL))
        dumped = result.model_dump(by_alias=True, exclude_none=True)
        assert "fallRiskPercentage" in dumped
        assert "lowBackPainRisk" not in dumped
        assert "lowBackPainRiskPercentage" not in dumped

    def test_idempotent_and_input_unchanged(self):
        data = AssessmentData(user_info=USER, fall_risk=GOOD_FALL, low_back_pain=BACK)
        before = data.model_dump()
        assert compute_risk(data) == compute_risk(data)
        assert data.model_dump() == before

    def test_percentages_in_range(self):
        for fall in (GOOD_FALL, WORST_FALL):
            result = compute_risk(AssessmentData(user_info=USER, fall_risk=fall, low_back_pain=BACK))
            assert 5 <= result.fall_risk_percentage <= 95
            assert 5 <= result.low_back_pain_risk_percentage <= 95
