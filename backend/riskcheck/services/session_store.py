"""
評価ウィザードのセッション管理

各ステップは新しい AssessmentSession を返し、ストアは参照を差し替えるだけ。
セッションはメモリ上にのみ保持し、一定時間 (SESSION_TTL_SECONDS) で失効する。
"""

import logging
import threading
import time
import uuid
from datetime import datetime
from typing import Dict, List, Literal, Optional, Tuple

from pydantic import Field

from riskcheck.schemas import (
    AssessmentData,
    BiopsychosocialFactors,
    CamelModel,
    FallRiskInput,
    FallRiskPhysical,
    FallRiskQuestionnaire,
    LowBackPainInput,
    LowBackPainPhysical,
    NarrativeResult,
    RiskResult,
    UserInfo,
)
from riskcheck.settings import settings

logger = logging.getLogger(__name__)

AssessmentType = Literal["fall", "lowback", "both"]


class IncompleteAssessmentError(ValueError):
    """必須ステップ・未回答・未測定の項目が残っている"""

    def __init__(self, fields: List[str]):
        self.fields = fields
        super().__init__("incomplete assessment: " + ", ".join(fields))


class AssessmentSession(CamelModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    assessment_type: AssessmentType = "both"
    user_info: Optional[UserInfo] = None
    fall_risk_questionnaire: Optional[FallRiskQuestionnaire] = None
    fall_risk_physical: Optional[FallRiskPhysical] = None
    low_back_pain_physical: Optional[LowBackPainPhysical] = None
    biopsychosocial: Optional[BiopsychosocialFactors] = None
    results: Optional[RiskResult] = None
    narrative: Optional[NarrativeResult] = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @property
    def includes_fall(self) -> bool:
        return self.assessment_type in ("fall", "both")

    @property
    def includes_low_back_pain(self) -> bool:
        return self.assessment_type in ("lowback", "both")

    def _update(self, **changes) -> "AssessmentSession":
        # 入力が変わったら以前の結果・講評は無効
        changes.setdefault("results", None)
        changes.setdefault("narrative", None)
        changes["updated_at"] = datetime.now()
        return self.model_copy(update=changes)

    def with_user_info(self, user_info: UserInfo) -> "AssessmentSession":
        return self._update(user_info=user_info)

    def with_fall_risk_questionnaire(self, questionnaire: FallRiskQuestionnaire) -> "AssessmentSession":
        return self._update(fall_risk_questionnaire=questionnaire)

    def with_fall_risk_physical(self, physical: FallRiskPhysical) -> "AssessmentSession":
        return self._update(fall_risk_physical=physical)

    def with_low_back_pain_physical(self, physical: LowBackPainPhysical) -> "AssessmentSession":
        return self._update(low_back_pain_physical=physical)

    def with_biopsychosocial(self, factors: BiopsychosocialFactors) -> "AssessmentSession":
        return self._update(biopsychosocial=factors)

    def with_results(self, results: RiskResult) -> "AssessmentSession":
        return self._update(results=results, narrative=self.narrative)

    def with_narrative(self, narrative: NarrativeResult) -> "AssessmentSession":
        return self._update(results=self.results, narrative=narrative)


def missing_fields(session: AssessmentSession) -> List[str]:
    """送信前に埋まっていない項目を列挙する (空なら送信可能)"""
    missing = []
    if session.user_info is None:
        missing.append("userInfo")

    if session.includes_fall:
        if session.fall_risk_questionnaire is None:
            missing.append("fallRisk.questionnaire")
        else:
            missing += [f"fallRisk.questionnaire.{name}" for name in session.fall_risk_questionnaire.unanswered()]
        if session.fall_risk_physical is None:
            missing.append("fallRisk.physical")
        else:
            missing += [f"fallRisk.physical.{name}" for name in session.fall_risk_physical.unmeasured()]

    if session.includes_low_back_pain:
        if session.low_back_pain_physical is None:
            missing.append("lowBackPain.physical")
        else:
            p = session.low_back_pain_physical
            for name in ("standing_forward_bend", "hip_flexion", "wall_posture_head", "wall_posture_waist"):
                if not getattr(p, name):
                    missing.append(f"lowBackPain.physical.{name}")
            if not p.plank_challenge:
                missing.append("lowBackPain.physical.plank_challenge")
    return missing


def snapshot(session: AssessmentSession) -> AssessmentData:
    """セッションから評価データを組み立てる (不足があれば IncompleteAssessmentError)"""
    missing = missing_fields(session)
    if missing:
        raise IncompleteAssessmentError(missing)

    fall_risk = None
    if session.includes_fall:
        fall_risk = FallRiskInput(
            questionnaire=session.fall_risk_questionnaire,
            physical=session.fall_risk_physical,
        )

    low_back_pain = None
    if session.includes_low_back_pain:
        low_back_pain = LowBackPainInput(
            physical=session.low_back_pain_physical,
            biopsychosocial=session.biopsychosocial or BiopsychosocialFactors(),
        )

    return AssessmentData(
        user_info=session.user_info,
        fall_risk=fall_risk,
        low_back_pain=low_back_pain,
    )


def validate_assessment(data: AssessmentData) -> None:
    """ステートレス API 用: 送信された領域が揃っているか確認する"""
    missing = []
    if data.fall_risk is not None:
        missing += [f"fallRisk.questionnaire.{n}" for n in data.fall_risk.questionnaire.unanswered()]
        missing += [f"fallRisk.physical.{n}" for n in data.fall_risk.physical.unmeasured()]
    if data.low_back_pain is not None:
        session = AssessmentSession(
            assessment_type="lowback",
            user_info=data.user_info,
            low_back_pain_physical=data.low_back_pain.physical,
        )
        missing += missing_fields(session)
    if data.fall_risk is None and data.low_back_pain is None:
        missing.append("fallRisk|lowBackPain")
    if missing:
        raise IncompleteAssessmentError(missing)


class SessionStore:
    """メモリ上のセッションストア (TTL 付き)"""

    def __init__(self, ttl_seconds: Optional[int] = None, clock=time.monotonic):
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.session_ttl_seconds
        self._clock = clock
        self._sessions: Dict[str, Tuple[AssessmentSession, float]] = {}
        self._lock = threading.Lock()

    def _expire(self):
        now = self._clock()
        expired = [sid for sid, (_, exp) in self._sessions.items() if exp <= now]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.info("Expired %d assessment session(s)", len(expired))

    def create(self, assessment_type: AssessmentType = "both") -> AssessmentSession:
        session = AssessmentSession(assessment_type=assessment_type)
        self.save(session)
        logger.info("Created assessment session %s (%s)", session.id, assessment_type)
        return session

    def get(self, session_id: str) -> Optional[AssessmentSession]:
        with self._lock:
            self._expire()
            entry = self._sessions.get(session_id)
        return entry[0] if entry else None

    def save(self, session: AssessmentSession) -> AssessmentSession:
        with self._lock:
            self._sessions[session.id] = (session, self._clock() + self.ttl_seconds)
        return session

    def reset(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            self._expire()
            return len(self._sessions)


# Module-level singleton
sessions = SessionStore()
