from typing import Dict, List, Optional

from fastapi import APIRouter, Query

from riskcheck.schemas import Exercise, RiskLevel
from riskcheck.services.exercise_library import get_exercise_catalog, select_exercises

router = APIRouter()


@router.get("/", response_model=Dict[str, List[Exercise]])
async def get_exercises():
    """カテゴリ別の運動カタログ"""
    return get_exercise_catalog()


@router.get("/recommended", response_model=List[Exercise])
async def get_recommended_exercises(
    fall: Optional[RiskLevel] = Query(None),
    low_back: Optional[RiskLevel] = Query(None, alias="lowBack"),
):
    """リスク区分から推奨運動を選ぶ"""
    return select_exercises(fall, low_back)
