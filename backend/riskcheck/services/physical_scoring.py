"""
身体機能テストの得点換算モジュール

各テストの実測値を 20/40/60/70/90 点 (プランクのみ 80 点あり) に換算する。
未測定 (0) や不正な値は例外にせず、最低点 20 に落とす。
"""

import math
from typing import Dict, Tuple

LOWEST_SCORE = 20

FLEXIBILITY_SCORES = {
    "OK": 90,
    "点線まで": 60,
}

# 壁姿勢チェック (あたま, こし) → 点数
WALL_HEAD_LABELS = ("壁につく", "少し離れる", "離れる")
WALL_WAIST_LABELS = ("手のひら1枚", "すき間なし", "こぶし1個以上")

WALL_POSTURE_SCORES: Dict[Tuple[str, str], int] = {
    ("壁につく", "手のひら1枚"): 90,
    ("壁につく", "すき間なし"): 70,
    ("壁につく", "こぶし1個以上"): 60,
    ("少し離れる", "手のひら1枚"): 70,
    ("少し離れる", "すき間なし"): 60,
    ("少し離れる", "こぶし1個以上"): 40,
    ("離れる", "手のひら1枚"): 60,
    ("離れる", "すき間なし"): 40,
    ("離れる", "こぶし1個以上"): 20,
}


def _as_number(value) -> float:
    """数値に変換できない値・NaN は 0 として扱う"""
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number):
        return 0.0
    return number


def two_step_ratio(distance_cm, height_m) -> float:
    """2ステップ値 = 2歩の距離(cm) / 身長(cm)"""
    height_cm = _as_number(height_m) * 100
    if height_cm <= 0:
        return 0.0
    return _as_number(distance_cm) / height_cm


def score_two_step(ratio) -> int:
    """2ステップテスト (身長比)"""
    ratio = _as_number(ratio)
    if ratio >= 1.66:
        return 90
    elif ratio >= 1.47:
        return 70
    elif ratio >= 1.39:
        return 60
    elif ratio >= 1.25:
        return 40
    else:
        return 20


def score_seated_stepping(count) -> int:
    """座位ステッピングテスト (20秒間の回数)"""
    count = _as_number(count)
    if count >= 48:
        return 90
    elif count >= 44:
        return 70
    elif count >= 29:
        return 60
    elif count >= 25:
        return 40
    else:
        return 20


def score_functional_reach(reach_cm) -> int:
    """ファンクショナルリーチ (cm)"""
    reach_cm = _as_number(reach_cm)
    if reach_cm >= 40:
        return 90
    elif reach_cm >= 36:
        return 70
    elif reach_cm >= 30:
        return 60
    elif reach_cm >= 20:
        return 40
    else:
        return 20


def score_closed_eye_stand(seconds) -> int:
    """閉眼片足立ち (秒, 上限120)"""
    seconds = _as_number(seconds)
    if seconds >= 90.1:
        return 90
    elif seconds >= 55.1:
        return 70
    elif seconds >= 17.1:
        return 60
    elif seconds >= 7.1:
        return 40
    else:
        return 20


def score_open_eye_stand(seconds) -> int:
    """開眼片足立ち (秒, 上限180)"""
    seconds = _as_number(seconds)
    if seconds >= 120.1:
        return 90
    elif seconds >= 84.1:
        return 70
    elif seconds >= 30.1:
        return 60
    elif seconds >= 15.1:
        return 40
    else:
        return 20


def score_flexibility(label) -> int:
    """立位体前屈・腰沈み込みテスト ("OK" / "点線まで" / それ以外)"""
    if not isinstance(label, str):
        return LOWEST_SCORE
    return FLEXIBILITY_SCORES.get(label.strip(), LOWEST_SCORE)


def score_plank(seconds) -> int:
    """プランクチャレンジ (秒)"""
    seconds = _as_number(seconds)
    if seconds >= 90:
        return 90
    elif seconds >= 60:
        return 80
    elif seconds >= 45:
        return 60
    elif seconds >= 30:
        return 40
    else:
        return 20


def score_wall_posture(head, waist) -> int:
    """壁姿勢チェック (あたま × こし の組み合わせ表)"""
    if not isinstance(head, str) or not isinstance(waist, str):
        return LOWEST_SCORE
    return WALL_POSTURE_SCORES.get((head.strip(), waist.strip()), LOWEST_SCORE)


def score_fall_physical(physical, height_m) -> Dict[str, int]:
    """転倒リスク5テストの点数をまとめて返す"""
    return {
        "two_step_test": score_two_step(two_step_ratio(physical.two_step_test, height_m)),
        "seated_stepping_test": score_seated_stepping(physical.seated_stepping_test),
        "functional_reach": score_functional_reach(physical.functional_reach),
        "closed_eye_stand": score_closed_eye_stand(physical.closed_eye_stand),
        "open_eye_stand": score_open_eye_stand(physical.open_eye_stand),
    }


def score_back_pain_physical(physical) -> Dict[str, int]:
    """腰痛リスク4テストの点数をまとめて返す"""
    return {
        "standing_forward_bend": score_flexibility(physical.standing_forward_bend),
        "hip_flexion": score_flexibility(physical.hip_flexion),
        "plank_challenge": score_plank(physical.plank_challenge),
        "wall_posture": score_wall_posture(physical.wall_posture_head, physical.wall_posture_waist),
    }
