from typing import Optional

from fastapi import APIRouter, HTTPException

from riskcheck.routers.assessments import incomplete_error, pdf_response
from riskcheck.schemas import (
    BiopsychosocialFactors,
    CamelModel,
    FallRiskPhysical,
    FallRiskQuestionnaire,
    LowBackPainPhysical,
    NarrativeResult,
    RiskResult,
    UserInfo,
)
from riskcheck.services.narrative_generator import generate_narrative
from riskcheck.services.report_generator import generate_pdf_report
from riskcheck.services.risk_assessment import compute_risk
from riskcheck.services.session_store import (
    AssessmentSession,
    AssessmentType,
    IncompleteAssessmentError,
    sessions,
    snapshot,
)

router = APIRouter()


class SessionCreate(CamelModel):
    assessment_type: AssessmentType = "both"


def _get_session(session_id: str) -> AssessmentSession:
    session = sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="セッションが見つかりません。")
    return session


def _submit(session: AssessmentSession):
    try:
        data = snapshot(session)
    except IncompleteAssessmentError as e:
        raise incomplete_error(e)
    return data


@router.post("/", response_model=AssessmentSession, response_model_exclude_none=True)
async def create_session(body: Optional[SessionCreate] = None):
    """評価セッション開始 (既定は転倒・腰痛の両方)"""
    return sessions.create(body.assessment_type if body else "both")


@router.get("/{session_id}", response_model=AssessmentSession, response_model_exclude_none=True)
async def get_session(session_id: str):
    return _get_session(session_id)


@router.put("/{session_id}/user-info", response_model=AssessmentSession, response_model_exclude_none=True)
async def update_user_info(session_id: str, user_info: UserInfo):
    """基本情報の入力"""
    return sessions.save(_get_session(session_id).with_user_info(user_info))


@router.put("/{session_id}/fall-risk/questionnaire", response_model=AssessmentSession, response_model_exclude_none=True)
async def update_fall_risk_questionnaire(session_id: str, questionnaire: FallRiskQuestionnaire):
    return sessions.save(_get_session(session_id).with_fall_risk_questionnaire(questionnaire))


@router.put("/{session_id}/fall-risk/physical", response_model=AssessmentSession, response_model_exclude_none=True)
async def update_fall_risk_physical(session_id: str, physical: FallRiskPhysical):
    return sessions.save(_get_session(session_id).with_fall_risk_physical(physical))


@router.put("/{session_id}/low-back-pain/physical", response_model=AssessmentSession, response_model_exclude_none=True)
async def update_low_back_pain_physical(session_id: str, physical: LowBackPainPhysical):
    return sessions.save(_get_session(session_id).with_low_back_pain_physical(physical))


@router.put("/{session_id}/low-back-pain/biopsychosocial", response_model=AssessmentSession, response_model_exclude_none=True)
async def update_biopsychosocial(session_id: str, factors: BiopsychosocialFactors):
    return sessions.save(_get_session(session_id).with_biopsychosocial(factors))


@router.post("/{session_id}/results", response_model=RiskResult, response_model_exclude_none=True)
async def submit_session(session_id: str):
    """入力を確定してリスクを算出する"""
    session = _get_session(session_id)
    result = compute_risk(_submit(session))
    sessions.save(session.with_results(result))
    return result


@router.post("/{session_id}/narrative", response_model=NarrativeResult)
async def create_session_narrative(session_id: str):
    """講評・運動指導の生成 (結果が未算出なら先に算出)"""
    session = _get_session(session_id)
    data = _submit(session)
    result = session.results or compute_risk(data)
    narrative = await generate_narrative(data, result)
    sessions.save(session.with_results(result).with_narrative(narrative))
    return narrative


@router.get("/{session_id}/report/pdf")
async def download_session_pdf(session_id: str, template: str = "standard"):
    """セッションの PDF レポート"""
    session = _get_session(session_id)
    data = _submit(session)
    result = session.results or compute_risk(data)
    content = generate_pdf_report(data, result, session.narrative, template_name=template)
    return pdf_response(content, prefix=f"risk_report_{session.id[:8]}")


@router.delete("/{session_id}")
async def delete_session(session_id: str):
    """やり直し (セッション破棄)"""
    if not sessions.reset(session_id):
        raise HTTPException(status_code=404, detail="セッションが見つかりません。")
    return {"message": "セッションを破棄しました。"}
