"""
運動カタログとリスク区分別の運動選択

転倒・腰痛のリスク区分から、提示する運動のリストを決定的に選ぶ。

件数:
- どちらかが high → 8
- どちらかが medium (high なし) → 5
- それ以外 → 3

選ぶ束は優先順位で1つだけ (和集合ではない):
転倒 high → バランス中心, 腰痛 high → 体幹・柔軟性中心, それ以外 → 一般。
"""

from typing import Dict, List, Optional, Sequence

from riskcheck.schemas import Exercise

# 片脚立位訓練のバリエーション
SINGLE_LEG_STANDING = [
    Exercise(
        name="基本片脚立位",
        description="バランス能力の基礎を築く最も重要な運動です。転倒予防の第一歩として最適です。",
        instructions=(
            "壁や手すりの近くで安全を確保してください",
            "両手を腰に当て、片足を床から5cm程度浮かせます",
            "目線は前方の一点を見つめ、姿勢を安定させます",
            "30秒間キープを目標に、左右交互に実施してください",
            "毎日2-3セット実施し、徐々に時間を延ばしていきます",
        ),
        illustration="/images/openeye.PNG",
    ),
    Exercise(
        name="閉眼片脚立位",
        description="視覚に頼らないバランス能力を鍛える高度な訓練です。内耳の平衡感覚を強化します。",
        instructions=(
            "基本片脚立位が安定してできるようになってから挑戦してください",
            "安全な場所で、壁の近くに立ちます",
            "片足立ちの姿勢を取った後、ゆっくりと目を閉じます",
            "10-15秒間キープを目標にします",
            "左右交互に実施し、毎日1-2セット行います",
        ),
        illustration="/images/closeeye.PNG",
    ),
    Exercise(
        name="動的片脚立位",
        description="動きながらのバランス訓練で、実用的なバランス能力を向上させます。",
        instructions=(
            "片足立ちの姿勢を取ります",
            "浮かせた足を前後左右にゆっくりと動かします",
            "体幹を安定させたまま、8の字を描くように動かします",
            "各方向10回ずつ実施します",
            "左右交互に行い、毎日2セット実施しましょう",
        ),
        illustration="/images/openeye.PNG",
    ),
]

# スクワットのバリエーション
SQUATS = [
    Exercise(
        name="基本スクワット",
        description="下肢筋力とバランスを同時に鍛える全身運動です。日常生活の基本動作を向上させます。",
        instructions=(
            "足を肩幅より少し広めに開いて立ちます",
            "つま先はやや外側を向くようにします",
            "胸を張り、背筋を伸ばしたまま腰を下ろします",
            "太ももが床と平行になるまで下げます（膝が90度）",
            "膝がつま先より前に出ないよう注意します",
            "かかとで床を押すようにして立ち上がります",
            "10-15回を2-3セット実施しましょう",
            "呼吸は下ろす時に吸い、立ち上がる時に吐きます",
        ),
        illustration="/images/sit.PNG",
    ),
    Exercise(
        name="ウォールスクワット",
        description="壁を使った安全なスクワットで、正しいフォームを身につけます。",
        instructions=(
            "壁に背中を付けて立ちます",
            "足を肩幅に開き、壁から少し離れます",
            "背中を壁に付けたまま、ゆっくりと腰を下ろします",
            "太ももが床と平行になるまで下げます",
            "5秒間キープした後、ゆっくりと立ち上がります",
            "10回を2-3セット実施しましょう",
        ),
        illustration="/images/sit.PNG",
    ),
    Exercise(
        name="シングルレッグスクワット",
        description="片脚でのスクワットで、より高度なバランスと筋力を鍛えます。",
        instructions=(
            "片足で立ち、もう一方の足を前に伸ばします",
            "手を前に伸ばしてバランスを取ります",
            "ゆっくりと腰を下ろします（無理のない範囲で）",
            "元の姿勢に戻ります",
            "左右各5-10回を2セット実施しましょう",
            "不安定な場合は椅子の背もたれに手を置いて行います",
        ),
        illustration="/images/sit.PNG",
    ),
]

# バランス訓練
BALANCE = [
    Exercise(
        name="タンデム立位",
        description="片脚立位訓練の次のステップとして、より高度なバランス能力を養います。",
        instructions=(
            "壁の近くで安全を確保してください",
            "片足のつま先を、もう一方の足のかかとに触れるように配置します",
            "両足が一直線上に並ぶようにします",
            "両手を腰に当て、姿勢を安定させます",
            "20-30秒間キープを目標にします",
            "左右交互に実施し、毎日2-3セット行います",
        ),
        illustration="/images/openeye.PNG",
    ),
    Exercise(
        name="ヒールトゥウォーク",
        description="踵からつま先の順で歩くことで、動的バランス能力を向上させます。",
        instructions=(
            "まっすぐな線を想像し、その上を歩きます",
            "踵からつま先の順で着地します",
            "次の足の踵が前の足のつま先に触れるように歩きます",
            "腕を横に広げてバランスを取ります",
            "10歩前進した後、後ろ向きに10歩戻ります",
            "毎日2-3セット実施しましょう",
        ),
        illustration="/images/walk.PNG",
    ),
    Exercise(
        name="ステップアップ",
        description="階段やステップを使った実用的なバランスと筋力訓練です。",
        instructions=(
            "安定したステップや階段の一段目に立ちます",
            "片足でステップに上がります",
            "ゆっくりと元の位置に戻ります",
            "左右交互に10回ずつ実施します",
            "慣れてきたら高さを上げて挑戦しましょう",
            "毎日2-3セット実施してください",
        ),
        illustration="/images/walk.PNG",
    ),
]

# 体幹強化
CORE = [
    Exercise(
        name="プランク",
        description="体幹の深層筋を鍛え、腰痛予防と姿勢改善に効果的な運動です。",
        instructions=(
            "うつ伏せになり、肘とつま先で体を支えます",
            "肘は肩の真下に位置させます",
            "頭からかかとまで一直線を保ちます",
            "お腹に力を入れ、腰が反らないよう注意します",
            "30秒から1分間キープしましょう",
            "毎日2-3セット実施してください",
        ),
        illustration="/images/plank.PNG",
    ),
    Exercise(
        name="サイドプランク",
        description="体幹の側面を強化し、姿勢の改善と腰痛予防に効果的です。",
        instructions=(
            "横向きに寝て、肘で体を支えます",
            "体を一直線に保ちます",
            "腰が下がらないよう注意します",
            "15-30秒間キープします",
            "左右交互に実施し、毎日2セット行います",
        ),
        illustration="/images/plank.PNG",
    ),
    Exercise(
        name="バードドッグ",
        description="体幹の安定性と協調性を向上させる効果的な運動です。",
        instructions=(
            "四つん這いの姿勢を取ります",
            "右手と左足を同時に伸ばします",
            "5秒間キープした後、元の姿勢に戻ります",
            "左手と右足で同様に行います",
            "左右各10回を2セット実施しましょう",
        ),
        illustration="/images/plank.PNG",
    ),
]

# 柔軟性向上
FLEXIBILITY = [
    Exercise(
        name="体幹回旋運動",
        description="腰の柔軟性を向上させ、日常動作での腰痛を予防します。",
        instructions=(
            "椅子に座り、背筋を伸ばします",
            "両手を胸の前で組みます",
            "息を吐きながら、ゆっくりと体を右に回旋させます",
            "5秒間キープした後、ゆっくりと正面に戻します",
            "同様に左側も実施します",
            "左右各10回を2-3セット実施しましょう",
        ),
        illustration="/images/sit.PNG",
    ),
    Exercise(
        name="ハムストリングストレッチ",
        description="太もも裏の柔軟性を向上させ、腰痛予防と歩行改善に効果的です。",
        instructions=(
            "椅子に座り、片足を前に伸ばします",
            "つま先を天井に向けます",
            "背筋を伸ばしたまま、体を前に倒します",
            "太もも裏が伸びているのを感じます",
            "30秒間キープします",
            "左右交互に実施し、毎日2セット行います",
        ),
        illustration="/images/sit.PNG",
    ),
    Exercise(
        name="股関節ストレッチ",
        description="股関節の柔軟性を向上させ、歩行とバランス能力を改善します。",
        instructions=(
            "椅子に座り、片足の足首をもう一方の膝の上に置きます",
            "背筋を伸ばしたまま、ゆっくりと体を前に倒します",
            "股関節が伸びているのを感じます",
            "30秒間キープします",
            "左右交互に実施し、毎日2セット行います",
        ),
        illustration="/images/sit.PNG",
    ),
]

# 転倒リスク high 用 (バランス中心)
FALL_RISK_BUNDLE = [
    SINGLE_LEG_STANDING[0],
    SINGLE_LEG_STANDING[1],
    BALANCE[0],
    BALANCE[1],
    SINGLE_LEG_STANDING[2],
    BALANCE[2],
    SQUATS[0],
    SQUATS[1],
]

# 腰痛リスク high 用 (体幹・柔軟性中心)
BACK_PAIN_BUNDLE = [
    *CORE,
    *FLEXIBILITY,
    SQUATS[0],
    SQUATS[1],
]

GENERAL_BUNDLE = [
    SINGLE_LEG_STANDING[0],
    CORE[0],
    SQUATS[0],
    BALANCE[0],
    FLEXIBILITY[0],
    FLEXIBILITY[1],
]

EXERCISE_COUNTS = {"high": 8, "medium": 5, "low": 3}


def _exercise_count(levels: Sequence[Optional[str]]) -> int:
    if "high" in levels:
        return EXERCISE_COUNTS["high"]
    if "medium" in levels:
        return EXERCISE_COUNTS["medium"]
    return EXERCISE_COUNTS["low"]


def _unique(exercises: Sequence[Exercise]) -> List[Exercise]:
    seen = set()
    unique = []
    for exercise in exercises:
        if exercise.name not in seen:
            seen.add(exercise.name)
            unique.append(exercise)
    return unique


def select_exercises(
    fall_risk: Optional[str],
    low_back_pain_risk: Optional[str],
) -> List[Exercise]:
    """リスク区分から推奨運動を選ぶ (未評価の領域は None)"""
    count = _exercise_count((fall_risk, low_back_pain_risk))

    # 両方 high でも転倒側の束だけを使う
    if fall_risk == "high":
        bundle = FALL_RISK_BUNDLE
    elif low_back_pain_risk == "high":
        bundle = BACK_PAIN_BUNDLE
    else:
        bundle = GENERAL_BUNDLE

    return _unique(bundle)[:count]


def get_exercise_catalog() -> Dict[str, List[Exercise]]:
    """カテゴリ別の全運動"""
    return {
        "single_leg_standing": list(SINGLE_LEG_STANDING),
        "squat": list(SQUATS),
        "balance": list(BALANCE),
        "core": list(CORE),
        "flexibility": list(FLEXIBILITY),
    }
