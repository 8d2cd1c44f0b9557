"""
言語モデルによる講評・運動指導の生成

評価データとリスク結果からプロンプトを組み立て、OpenAI に JSON で回答させる。
回答は NarrativeResult のスキーマで厳密に検証し、API 呼び出しの失敗・
タイムアウト・JSON 不正・スキーマ不一致のいずれでも固定のフォールバックを返す。
リスク結果そのものはこの処理に依存しない。
"""

import logging
from typing import Optional

from openai import AsyncOpenAI
from pydantic import ValidationError

from riskcheck.schemas import AssessmentData, NarrativeExercise, NarrativeResult, RiskResult
from riskcheck.services.cache_service import cache
from riskcheck.services.risk_assessment import back_pain_total, fall_risk_total
from riskcheck.services.self_assessment import summarize_biopsychosocial
from riskcheck.settings import settings

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "あなたは理学療法士です。以下の身体機能測定結果に基づき、①評価コメントと②運動指導を出力してください。"
    "回答は必ず指定された JSON オブジェクトのみとし、それ以外の文章は含めないでください。"
    "医学的な診断は行わず、スクリーニング結果としての助言に留めてください。"
)

RESPONSE_FORMAT_INSTRUCTIONS = """\
以下の形式の JSON で回答してください。
{
  "fallRiskComment": "転倒リスクの総合コメント (150文字以内)",
  "lowBackPainRiskComment": "腰痛リスクの総合コメント (150文字以内)",
  "fallRiskExercises": [{"name": "種目名", "purpose": "目的", "instructions": "実施ポイント"}],
  "lowBackPainExercises": [{"name": "種目名", "purpose": "目的", "instructions": "実施ポイント"}]
}
評価していない領域のコメントは空文字、運動は空配列にしてください。"""

FALLBACK_NARRATIVE = NarrativeResult(
    fall_risk_comment=(
        "転倒リスク評価：現在の身体機能測定結果を分析した結果、バランス能力と筋力に改善の余地があることが確認されました。"
        "特に片足立ちの安定性と歩行能力の向上が推奨されます。"
    ),
    low_back_pain_risk_comment=(
        "腰痛リスク評価：現在の身体機能測定結果を分析した結果、体幹の安定性と柔軟性に改善の余地があることが確認されました。"
        "特に腰回りの筋力強化とストレッチが推奨されます。"
    ),
    fall_risk_exercises=[
        NarrativeExercise(
            name="片足立ち練習",
            purpose="転倒リスクの軽減",
            instructions="壁に手を軽くついて片足で30秒間立ち、左右交互に行ってください。バランスが取れるようになったら手を離して練習してください。",
        ),
    ],
    low_back_pain_exercises=[
        NarrativeExercise(
            name="腰回りストレッチ",
            purpose="腰痛の予防と改善",
            instructions="仰向けに寝て両膝を抱え、腰を丸めて30秒間キープしてください。その後、膝を左右に倒して腰回りをほぐしてください。",
        ),
    ],
    is_fallback=True,
)

def fallback_narrative(result: RiskResult) -> NarrativeResult:
    """固定のフォールバックから、評価していない領域の文章を除く"""
    update = {}
    if result.fall_risk is None:
        update.update(fall_risk_comment="", fall_risk_exercises=[])
    if result.low_back_pain_risk is None:
        update.update(low_back_pain_risk_comment="", low_back_pain_exercises=[])
    return FALLBACK_NARRATIVE.model_copy(update=update)


_AGE_GROUP_LABELS = {
    "20s": "20代",
    "30s": "30代",
    "40s": "40代",
    "50s": "50代",
    "60s+": "60代以上",
}


def _measured(value, unit: str) -> str:
    return f"{value:g}{unit}" if value else "未測定"


def build_prompt(data: AssessmentData, result: RiskResult) -> str:
    user = data.user_info
    gender = "男性" if user.gender == "male" else "女性"
    lines = [
        "【年齢・性別】",
        f"{_AGE_GROUP_LABELS.get(user.age_group, user.age_group)} {gender}",
        "",
    ]

    if data.fall_risk is not None:
        p = data.fall_risk.physical
        total = fall_risk_total(data.fall_risk, user.height)
        lines += [
            "【転倒リスク評価項目】",
            f"- 2ステップテスト：{_measured(p.two_step_test, 'cm')}",
            f"- 座位ステッピング：{_measured(p.seated_stepping_test, '回')}",
            f"- ファンクショナルリーチ：{_measured(p.functional_reach, 'cm')}",
            f"- 開眼片足立ち：{_measured(p.open_eye_stand, '秒')}",
            f"- 閉眼片足立ち：{_measured(p.closed_eye_stand, '秒')}",
            f"→ 合計スコア：{total}点（リスク率：{result.fall_risk_percentage}%）",
            "",
        ]

    if data.low_back_pain is not None:
        p = data.low_back_pain.physical
        total = back_pain_total(data.low_back_pain)
        bps = summarize_biopsychosocial(data.low_back_pain.biopsychosocial)
        lines += [
            "【腰痛リスク評価項目】",
            f"- 立位体前屈：{p.standing_forward_bend or '未測定'}",
            f"- 腰沈み込み：{p.hip_flexion or '未測定'}",
            f"- プランクチャレンジ：{_measured(p.plank_challenge, '秒')}",
            f"- 壁姿勢テスト（頭）：{p.wall_posture_head or '未測定'}",
            f"- 壁姿勢テスト（腰）：{p.wall_posture_waist or '未測定'}",
            f"→ 合計スコア：{total}点（リスク率：{result.low_back_pain_risk_percentage}%）",
            "",
            "【BPS要因】",
            f"生物学的要因：{bps['biological']}、心理的要因：{bps['psychological']}、"
            f"社会的要因：{bps['social']}、BPS総合スコア：{bps['total']}",
            "",
        ]

    lines += [
        "---",
        "",
        "①「転倒リスク」と「腰痛リスク」それぞれについて、150文字以内で総合的なコメントを記載してください。"
        "現状の良否、注意点、改善の方向性などを明確にしてください。",
        "",
        "② 上記のリスク傾向に合わせて、それぞれに適した運動を2〜3種類ずつ提案してください。",
        "",
        RESPONSE_FORMAT_INSTRUCTIONS,
    ]
    return "\n".join(lines)


def parse_narrative(text: str) -> NarrativeResult:
    """JSON 文字列を検証して NarrativeResult にする (失敗時は ValueError/ValidationError)"""
    if not text or not text.strip():
        raise ValueError("empty narrative response")
    narrative = NarrativeResult.model_validate_json(text)
    if not (narrative.fall_risk_comment or narrative.low_back_pain_risk_comment):
        raise ValueError("narrative response has no comments")
    return narrative.model_copy(update={"is_fallback": False})


def _get_client() -> Optional[AsyncOpenAI]:
    if not settings.openai_api_key:
        return None
    return AsyncOpenAI(
        api_key=settings.openai_api_key,
        timeout=settings.narrative_timeout_seconds,
    )


async def generate_narrative(
    data: AssessmentData,
    result: RiskResult,
    client: Optional[AsyncOpenAI] = None,
) -> NarrativeResult:
    """講評を生成する。失敗しても例外は投げずフォールバックを返す"""
    prompt = build_prompt(data, result)
    model = settings.openai_model

    cached = cache.get_narrative(prompt, model)
    if cached:
        try:
            return NarrativeResult.model_validate(cached)
        except ValidationError:
            logger.debug("Ignoring malformed cached narrative")

    client = client or _get_client()
    if client is None:
        logger.warning("OPENAI_API_KEY is not set; using fallback narrative")
        return fallback_narrative(result)

    try:
        completion = await client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            max_tokens=settings.narrative_max_tokens,
            temperature=settings.narrative_temperature,
            response_format={"type": "json_object"},
        )
        text = completion.choices[0].message.content or ""
    except Exception as e:
        logger.error("Narrative generation request failed: %s", e)
        return fallback_narrative(result)

    try:
        narrative = parse_narrative(text)
    except (ValidationError, ValueError) as e:
        logger.warning("Could not parse narrative JSON, using fallback: %s", e)
        return fallback_narrative(result)

    cache.set_narrative(prompt, model, narrative.model_dump(by_alias=True))
    return narrative
