"""
自己評価アンケートの集計

能力グループごとに「身体測定から見た評価」と「本人の自己評価」を 1-5 に換算し、
レーダーチャートで並べて比較するための FallRiskScores を作る。
この値はリスク率・リスク判定の計算には使わない。
"""

from typing import Dict, Iterable, Tuple

from riskcheck.schemas import (
    BiopsychosocialFactors,
    CompetencyRatings,
    FallRiskQuestionnaire,
    FallRiskScores,
)

# 能力グループ → アンケート項目
QUESTION_GROUPS: Dict[str, Tuple[str, ...]] = {
    "walking_ability": ("crowd_walking", "physical_confidence"),
    "agility": ("quick_reaction", "step_recovery"),
    "dynamic_balance": ("sock_wearing", "heel_to_toe"),
    "static_balance_closed": ("closed_eye_confidence",),
    "static_balance_open": ("train_standing", "open_eye_confidence"),
}

# 能力グループ → 平均をとる2テスト (自分のテストと、厚労省の順で次のテスト)
TEST_PAIRS: Dict[str, Tuple[str, str]] = {
    "walking_ability": ("two_step_test", "seated_stepping_test"),
    "agility": ("seated_stepping_test", "functional_reach"),
    "dynamic_balance": ("functional_reach", "closed_eye_stand"),
    "static_balance_closed": ("closed_eye_stand", "open_eye_stand"),
    "static_balance_open": ("open_eye_stand", "two_step_test"),
}

GROUP_LABELS = {
    "walking_ability": "歩行能力・筋力",
    "agility": "敏捷性",
    "dynamic_balance": "動的バランス",
    "static_balance_closed": "静的バランス(閉眼)",
    "static_balance_open": "静的バランス(開眼)",
}


def rate_self_assessment(answers: Iterable[int]) -> int:
    """回答合計 / 満点 の割合を 1-5 に換算"""
    answers = list(answers)
    if not answers:
        return 1
    ratio = sum(answers) / (len(answers) * 5)
    if ratio >= 0.8:
        return 5
    elif ratio >= 0.6:
        return 4
    elif ratio >= 0.4:
        return 3
    elif ratio >= 0.2:
        return 2
    else:
        return 1


def rate_physical(score_a: int, score_b: int) -> int:
    """2テストの平均点を 1-5 に換算"""
    average = (score_a + score_b) / 2
    if average >= 90:
        return 5
    elif average >= 70:
        return 4
    elif average >= 60:
        return 3
    elif average >= 40:
        return 2
    else:
        return 1


def calculate_fall_risk_scores(
    questionnaire: FallRiskQuestionnaire,
    test_scores: Dict[str, int],
) -> FallRiskScores:
    physical = {}
    self_assessment = {}
    for group, questions in QUESTION_GROUPS.items():
        first, second = TEST_PAIRS[group]
        physical[group] = rate_physical(test_scores.get(first, 20), test_scores.get(second, 20))
        self_assessment[group] = rate_self_assessment(getattr(questionnaire, q) for q in questions)

    return FallRiskScores(
        physical=CompetencyRatings(**physical),
        self_assessment=CompetencyRatings(**self_assessment),
    )


def summarize_biopsychosocial(factors: BiopsychosocialFactors) -> Dict[str, int]:
    """カテゴリごとの保護因子の数"""
    biological = sum(1 for _, present in factors.biological if present)
    psychological = sum(1 for _, present in factors.psychological if present)
    social = sum(1 for _, present in factors.social if present)
    return {
        "biological": biological,
        "psychological": psychological,
        "social": social,
        "total": biological + psychological + social,
    }
