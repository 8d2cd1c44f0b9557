"""Tests for narrative generation with a mocked language-model client."""
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from openai import APITimeoutError
from pydantic import ValidationError
from riskcheck.schemas import AssessmentData
from riskcheck.services.narrative_generator import (
    FALLBACK_NARRATIVE,
    build_prompt,
    generate_narrative,
    parse_narrative,
)
from riskcheck.services.risk_assessment import compute_risk

VALID_RESPONSE = {
    "fallRiskComment": "バランス能力は概ね良好です。",
    "lowBackPainRiskComment": "体幹の安定性を高めましょう。",
    "fallRiskExercises": [{"name": "片脚立ち", "purpose": "バランス向上", "instructions": "30秒キープ"}],
    "lowBackPainExercises": [{"name": "プランク", "purpose": "体幹強化", "instructions": "20秒から"}],
}


def _client_returning(content):
    completion = SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=completion)
    return client


@pytest.fixture
def data(assessment_payload):
    return AssessmentData.model_validate(assessment_payload)


class TestBuildPrompt:
    def test_contains_measurements_and_totals(self, data):
        prompt = build_prompt(data, compute_risk(data))
        assert "30代 男性" in prompt
        assert "2ステップテスト：150cm" in prompt
        assert "合計スコア：380点（リスク率：23%）" in prompt
        assert "立位体前屈：OK" in prompt
        assert "BPS総合スコア：19" in prompt

    def test_omits_unassessed_domain(self, data):
        fall_only = data.model_copy(update={"low_back_pain": None})
        prompt = build_prompt(fall_only, compute_risk(fall_only))
        assert "【腰痛リスク評価項目】" not in prompt


class TestParseNarrative:
    def test_valid(self):
        narrative = parse_narrative(json.dumps(VALID_RESPONSE, ensure_ascii=False))
        assert narrative.fall_risk_comment == VALID_RESPONSE["fallRiskComment"]
        assert narrative.fall_risk_exercises[0].name == "片脚立ち"
        assert narrative.is_fallback is False

    def test_invalid_json(self):
        with pytest.raises(ValidationError):
            parse_narrative("【コメント】これは JSON ではありません")

    def test_empty(self):
        with pytest.raises(ValueError):
            parse_narrative("   ")

    def test_no_comments(self):
        with pytest.raises(ValueError):
            parse_narrative("{}")


@pytest.mark.asyncio
class TestGenerateNarrative:
    async def test_success(self, data):
        client = _client_returning(json.dumps(VALID_RESPONSE, ensure_ascii=False))
        narrative = await generate_narrative(data, compute_risk(data), client=client)
        assert narrative.is_fallback is False
        assert narrative.low_back_pain_risk_comment == VALID_RESPONSE["lowBackPainRiskComment"]
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["messages"][1]["content"] == build_prompt(data, compute_risk(data))

    async def test_malformed_response_falls_back(self, data):
        client = _client_returning("not json at all")
        narrative = await generate_narrative(data, compute_risk(data), client=client)
        assert narrative == FALLBACK_NARRATIVE

    async def test_timeout_falls_back(self, data):
        client = MagicMock()
        client.chat.completions.create = AsyncMock(side_effect=APITimeoutError(request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions")))
        narrative = await generate_narrative(data, compute_risk(data), client=client)
        assert narrative.is_fallback is True

    async def test_no_api_key_falls_back(self, data):
        narrative = await generate_narrative(data, compute_risk(data))
        assert narrative == FALLBACK_NARRATIVE

    async def test_fallback_only_covers_assessed_domains(self, data):
        back_only = data.model_copy(update={"fall_risk": None})
        narrative = await generate_narrative(back_only, compute_risk(back_only))
        assert narrative.is_fallback is True
        assert narrative.fall_risk_comment == ""
        assert narrative.fall_risk_exercises == []
        assert narrative.low_back_pain_risk_comment == FALLBACK_NARRATIVE.low_back_pain_risk_comment

    async def test_risk_result_unaffected_by_failure(self, data):
        result = compute_risk(data)
        await generate_narrative(data, result, client=_client_returning(""))
        assert compute_risk(data) == result


class TestNarrativeCache:
    def test_key_depends_on_prompt_and_model(self):
        from riskcheck.services.cache_service import cache
        key = cache.narrative_key("prompt", "gpt-4o")
        assert key.startswith("cache:narrative:")
        assert key == cache.narrative_key("prompt", "gpt-4o")
        assert key != cache.narrative_key("prompt", "gpt-4o-mini")

    def test_noop_without_redis(self):
        from riskcheck.services.cache_service import cache
        assert cache.get_narrative("prompt", "gpt-4o") is None
