"""
リスク率の計算とリスク区分の判定

テスト合計点 (高いほど良い) を反転し、5-95% の帯に写像する。
0% / 100% は断定になるため使わない。

区分:
- 0-49%: low
- 50-79%: medium
- 80-100%: high
"""

import math
from typing import Tuple

MIN_PERCENTAGE = 5
MAX_PERCENTAGE = 95

FALL_SCORE_MIN = 100     # 5テスト × 20点
FALL_SCORE_RANGE = 350   # 450 - 100
BACK_PAIN_SCORE_MIN = 100
BACK_PAIN_SCORE_RANGE = 260   # 360 - 100

FALL_RISK_COMMENTS = {
    "low": "現在の身体機能は良好で、転倒リスクはほとんどありません。今の運動習慣を続けましょう。",
    "medium": "転倒リスクに注意が必要です。バランス能力と下肢筋力の改善に取り組みましょう。",
    "high": "転倒リスクが高い状態です。早めに専門家へ相談し、バランス訓練を始めてください。",
}

BACK_PAIN_RISK_COMMENTS = {
    "low": "現在の身体機能は良好で、腰痛リスクはほとんどありません。良い姿勢と運動習慣を維持しましょう。",
    "medium": "腰痛リスクに注意が必要です。体幹の強化と柔軟性の改善に取り組みましょう。",
    "high": "腰痛リスクが高い状態です。早めに専門家へ相談し、体幹・柔軟性の改善を始めてください。",
}

RISK_LEVEL_LABELS = {
    "low": "低リスク",
    "medium": "中リスク",
    "high": "高リスク",
}

RISK_LEVEL_COLORS = {
    "low": "#16a34a",
    "medium": "#ea580c",
    "high": "#dc2626",
}


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _to_percentage(total: float, score_min: int, score_range: int) -> int:
    percentage = _round_half_up((1 - (total - score_min) / score_range) * 90 + 5)
    return max(MIN_PERCENTAGE, min(MAX_PERCENTAGE, percentage))


def calculate_fall_risk_percentage(total_score: float) -> int:
    """転倒リスク率 (5テスト合計 100-450点 → 95-5%)"""
    return _to_percentage(total_score, FALL_SCORE_MIN, FALL_SCORE_RANGE)


def calculate_back_pain_risk_percentage(total_score: float) -> int:
    """腰痛リスク率 (4テスト合計 100-360点 → 95-5%)"""
    return _to_percentage(total_score, BACK_PAIN_SCORE_MIN, BACK_PAIN_SCORE_RANGE)


def classify_risk(percentage: float) -> str:
    if percentage >= 80:
        return "high"
    elif percentage >= 50:
        return "medium"
    else:
        return "low"


def classify_fall_risk(percentage: float) -> Tuple[str, str]:
    level = classify_risk(percentage)
    return level, FALL_RISK_COMMENTS[level]


def classify_back_pain_risk(percentage: float) -> Tuple[str, str]:
    level = classify_risk(percentage)
    return level, BACK_PAIN_RISK_COMMENTS[level]
