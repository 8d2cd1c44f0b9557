"""
Test fixtures for the risk-check backend test suite.
"""
import os
import sys

import pytest
import pytest_asyncio

# Disable rate limiting and narrative API calls during tests
os.environ["TESTING"] = "true"
os.environ.pop("REDIS_URL", None)

# Ensure the backend directory is on sys.path
BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)

from httpx import AsyncClient, ASGITransport  # noqa: E402
from riskcheck.main import app  # noqa: E402
from riskcheck.settings import settings  # noqa: E402


@pytest.fixture(autouse=True)
def no_openai_key(monkeypatch):
    """Never reach the real language model from tests."""
    monkeypatch.setattr(settings, "openai_api_key", None)


@pytest.fixture
def user_info():
    return {"gender": "male", "ageGroup": "30s", "height": 1.70}


@pytest.fixture
def questionnaire():
    return {
        "crowdWalking": 4,
        "physicalConfidence": 4,
        "quickReaction": 3,
        "stepRecovery": 3,
        "sockWearing": 5,
        "heelToToe": 4,
        "closedEyeConfidence": 2,
        "trainStanding": 4,
        "openEyeConfidence": 5,
    }


@pytest.fixture
def fall_physical():
    # 2ステップ 150cm / 170cm ≈ 0.88 → 20点, 他は 90点 → 合計 380
    return {
        "twoStepTest": 150,
        "seatedSteppingTest": 50,
        "functionalReach": 42,
        "closedEyeStand": 100,
        "openEyeStand": 150,
    }


@pytest.fixture
def back_physical():
    return {
        "standingForwardBend": "OK",
        "hipFlexion": "点線まで",
        "plankChallenge": 45,
        "wallPostureHead": "壁につく",
        "wallPostureWaist": "すき間なし",
    }


@pytest.fixture
def assessment_payload(user_info, questionnaire, fall_physical, back_physical):
    return {
        "userInfo": user_info,
        "fallRisk": {"questionnaire": questionnaire, "physical": fall_physical},
        "lowBackPain": {"physical": back_physical},
    }


@pytest_asyncio.fixture
async def async_client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
