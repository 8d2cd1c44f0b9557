"""Tests for questionnaire aggregation and competency ratings."""
from riskcheck.schemas import BiopsychosocialFactors, BiologicalFactors, FallRiskQuestionnaire, SocialFactors
from riskcheck.services.self_assessment import (
    calculate_fall_risk_scores,
    rate_physical,
    rate_self_assessment,
    summarize_biopsychosocial,
)


class TestRateSelfAssessment:
    def test_full_marks(self):
        assert rate_self_assessment([5, 5]) == 5

    def test_bands(self):
        assert rate_self_assessment([4, 4]) == 5   # 80%
        assert rate_self_assessment([3, 3]) == 4   # 60%
        assert rate_self_assessment([2, 2]) == 3   # 40%
        assert rate_self_assessment([1, 1]) == 2   # 20%
        assert rate_self_assessment([0, 1]) == 1   # 10%

    def test_single_question_group(self):
        assert rate_self_assessment([2]) == 3

    def test_empty_group(self):
        assert rate_self_assessment([]) == 1


class TestRatePhysical:
    def test_bands(self):
        assert rate_physical(90, 90) == 5
        assert rate_physical(90, 60) == 4   # 75
        assert rate_physical(60, 60) == 3
        assert rate_physical(60, 20) == 2   # 40
        assert rate_physical(20, 40) == 1   # 30


class TestFallRiskScores:
    def test_pairs_each_group_with_next_test(self):
        test_scores = {
            "two_step_test": 20,
            "seated_stepping_test": 90,
            "functional_reach": 90,
            "closed_eye_stand": 90,
            "open_eye_stand": 90,
        }
        scores = calculate_fall_risk_scores(FallRiskQuestionnaire(), test_scores)
        assert scores.physical.walking_ability == 2        # (20+90)/2 = 55 → 2
        assert scores.physical.agility == 5
        assert scores.physical.dynamic_balance == 5
        assert scores.physical.static_balance_closed == 5
        assert scores.physical.static_balance_open == 2    # wraps to two-step: (90+20)/2 → 2

    def test_self_assessment_groups(self):
        questionnaire = FallRiskQuestionnaire(
            crowd_walking=5, physical_confidence=5,
            quick_reaction=3, step_recovery=3,
            sock_wearing=2, heel_to_toe=2,
            closed_eye_confidence=1,
            train_standing=4, open_eye_confidence=4,
        )
        scores = calculate_fall_risk_scores(questionnaire, {})
        assert scores.self_assessment.walking_ability == 5
        assert scores.self_assessment.agility == 4
        assert scores.self_assessment.dynamic_balance == 3
        assert scores.self_assessment.static_balance_closed == 2
        assert scores.self_assessment.static_balance_open == 5
        # missing test scores fall back to the lowest bucket
        assert scores.physical.walking_ability == 1


class TestBiopsychosocial:
    def test_defaults(self):
        summary = summarize_biopsychosocial(BiopsychosocialFactors())
        assert summary == {"biological": 9, "psychological": 5, "social": 5, "total": 19}

    def test_counts_protective_factors(self):
        factors = BiopsychosocialFactors(
            biological=BiologicalFactors(past_back_pain=True, good_sleep=False, no_smoking=False),
            social=SocialFactors(family_support=False),
        )
        summary = summarize_biopsychosocial(factors)
        assert summary["biological"] == 8
        assert summary["social"] == 4
        assert summary["total"] == 17
