"""
リスク評価のエントリポイント

AssessmentData を受け取り、評価された領域ごとに
得点換算 → リスク率 → 区分判定 を行い、運動選択と合わせて RiskResult を組み立てる。
入力を変更せず、同じ入力には常に同じ結果を返す。
"""

from typing import Dict, Optional

from riskcheck.schemas import (
    AssessmentData,
    FallRiskInput,
    LowBackPainInput,
    RiskResult,
)
from riskcheck.services.exercise_library import select_exercises
from riskcheck.services.physical_scoring import (
    score_back_pain_physical,
    score_fall_physical,
)
from riskcheck.services.risk_calculation import (
    calculate_back_pain_risk_percentage,
    calculate_fall_risk_percentage,
    classify_back_pain_risk,
    classify_fall_risk,
)
from riskcheck.services.self_assessment import calculate_fall_risk_scores

FALL_RISK_LABEL = "転倒リスク"
LOW_BACK_PAIN_RISK_LABEL = "腰痛リスク"


def fall_risk_test_scores(fall_risk: FallRiskInput, height_m: float) -> Dict[str, int]:
    return score_fall_physical(fall_risk.physical, height_m)


def fall_risk_total(fall_risk: FallRiskInput, height_m: float) -> int:
    """転倒リスク5テストの合計点 (100-450)"""
    return sum(fall_risk_test_scores(fall_risk, height_m).values())


def back_pain_total(low_back_pain: LowBackPainInput) -> int:
    """腰痛リスク4テストの合計点 (80-360)"""
    return sum(score_back_pain_physical(low_back_pain.physical).values())


def _recommendation(label: str, percentage: int, comment: str) -> str:
    return f"{label}: {percentage}% - {comment}"


def compute_risk(data: AssessmentData) -> RiskResult:
    """評価データからリスク結果を算出する

    Args:
        data: userInfo は必須。fallRisk / lowBackPain は評価した領域のみ。

    Returns:
        RiskResult (未評価の領域のフィールドは None のまま)
    """
    fields = {}
    recommendations = []
    fall_level: Optional[str] = None
    back_level: Optional[str] = None

    if data.fall_risk is not None:
        test_scores = fall_risk_test_scores(data.fall_risk, data.user_info.height)
        percentage = calculate_fall_risk_percentage(sum(test_scores.values()))
        fall_level, comment = classify_fall_risk(percentage)
        fields.update(
            fall_risk_percentage=percentage,
            fall_risk=fall_level,
            fall_risk_comment=comment,
            fall_risk_scores=calculate_fall_risk_scores(data.fall_risk.questionnaire, test_scores),
        )
        recommendations.append(_recommendation(FALL_RISK_LABEL, percentage, comment))

    if data.low_back_pain is not None:
        percentage = calculate_back_pain_risk_percentage(back_pain_total(data.low_back_pain))
        back_level, comment = classify_back_pain_risk(percentage)
        fields.update(
            low_back_pain_risk_percentage=percentage,
            low_back_pain_risk=back_level,
            low_back_pain_risk_comment=comment,
        )
        recommendations.append(_recommendation(LOW_BACK_PAIN_RISK_LABEL, percentage, comment))

    return RiskResult(
        **fields,
        recommendations=tuple(recommendations),
        exercises=tuple(select_exercises(fall_level, back_level)),
    )
