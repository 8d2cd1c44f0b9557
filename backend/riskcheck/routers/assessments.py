import io
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse

from riskcheck.schemas import AssessmentData, CamelModel, NarrativeResult, RiskResult
from riskcheck.services.narrative_generator import generate_narrative
from riskcheck.services.report_generator import generate_csv_report, generate_pdf_report
from riskcheck.services.report_templates import list_templates
from riskcheck.services.risk_assessment import compute_risk
from riskcheck.services.session_store import IncompleteAssessmentError, validate_assessment

router = APIRouter()


class NarrativeRequest(CamelModel):
    data: AssessmentData
    result: Optional[RiskResult] = None


class ReportRequest(CamelModel):
    data: AssessmentData
    result: Optional[RiskResult] = None
    narrative: Optional[NarrativeResult] = None


def incomplete_error(e: IncompleteAssessmentError) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail={"message": "未回答・未測定の項目があります。", "fields": e.fields},
    )


def _checked_risk(data: AssessmentData, result: Optional[RiskResult] = None) -> RiskResult:
    try:
        validate_assessment(data)
    except IncompleteAssessmentError as e:
        raise incomplete_error(e)
    return result or compute_risk(data)


def pdf_response(content: bytes, prefix: str = "risk_report") -> StreamingResponse:
    timestamp = datetime.now().strftime("%Y%m%d_%H%M")
    return StreamingResponse(
        io.BytesIO(content),
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={prefix}_{timestamp}.pdf"}
    )


@router.post("/risk", response_model=RiskResult, response_model_exclude_none=True)
async def calculate_risk(data: AssessmentData):
    """リスク算出 (評価した領域のみ結果に含める)"""
    return _checked_risk(data)


@router.post("/narrative", response_model=NarrativeResult)
async def create_narrative(request: NarrativeRequest):
    """講評・運動指導の生成 (失敗時はフォールバック)"""
    result = _checked_risk(request.data, request.result)
    return await generate_narrative(request.data, result)


@router.get("/report/templates")
async def get_report_templates():
    """利用可能な PDF テンプレート一覧"""
    return list_templates()


@router.post("/report/pdf")
async def download_pdf(request: ReportRequest, template: str = "standard"):
    """PDF レポートのダウンロード

    template: standard / summary
    """
    result = _checked_risk(request.data, request.result)
    content = generate_pdf_report(request.data, result, request.narrative, template_name=template)
    return pdf_response(content)


@router.post("/report/csv")
async def download_csv(request: ReportRequest):
    """CSV レポートのダウンロード"""
    result = _checked_risk(request.data, request.result)
    csv_content = generate_csv_report(request.data, result)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M")

    return StreamingResponse(
        iter([csv_content]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename=risk_report_{timestamp}.csv"}
    )
