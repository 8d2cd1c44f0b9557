"""Tests for PDF/CSV report generation."""
import csv
import io

import pytest
from riskcheck.schemas import AssessmentData
from riskcheck.services.narrative_generator import FALLBACK_NARRATIVE
from riskcheck.services.report_generator import create_competency_chart, generate_csv_report, generate_pdf_report
from riskcheck.services.report_templates import get_template, list_templates
from riskcheck.services.risk_assessment import compute_risk


@pytest.fixture
def data(assessment_payload):
    return AssessmentData.model_validate(assessment_payload)


class TestPdfReport:
    def test_generates_pdf_bytes(self, data):
        content = generate_pdf_report(data, compute_risk(data))
        assert content.startswith(b"%PDF")
        assert len(content) > 1000

    def test_with_narrative(self, data):
        content = generate_pdf_report(data, compute_risk(data), FALLBACK_NARRATIVE)
        assert content.startswith(b"%PDF")

    def test_summary_template(self, data):
        content = generate_pdf_report(data, compute_risk(data), template_name="summary")
        assert content.startswith(b"%PDF")

    def test_single_domain(self, data):
        back_only = data.model_copy(update={"fall_risk": None})
        content = generate_pdf_report(back_only, compute_risk(back_only))
        assert content.startswith(b"%PDF")

    def test_escapes_markup_in_narrative(self, data):
        narrative = FALLBACK_NARRATIVE.model_copy(update={"fall_risk_comment": "<script> & 1 < 2"})
        content = generate_pdf_report(data, compute_risk(data), narrative)
        assert content.startswith(b"%PDF")

    def test_competency_chart(self, data):
        drawing = create_competency_chart(compute_risk(data).fall_risk_scores)
        assert drawing.width > 0
        assert len(drawing.contents) > 10


class TestCsvReport:
    def test_contains_both_domains(self, data):
        content = generate_csv_report(data, compute_risk(data))
        rows = list(csv.reader(io.StringIO(content)))
        assert ["転倒リスク"] in rows
        assert ["腰痛リスク"] in rows
        assert ["合計スコア", "380"] in rows
        assert ["リスク率 (%)", "23"] in rows
        assert ["リスク区分", "低リスク"] in rows

    def test_fall_only(self, data):
        fall_only = data.model_copy(update={"low_back_pain": None})
        content = generate_csv_report(fall_only, compute_risk(fall_only))
        assert "腰痛リスク" not in content
        assert "推奨運動" in content


class TestTemplates:
    def test_unknown_falls_back_to_standard(self):
        assert get_template("nope").name == "standard"

    def test_summary_disables_detail_sections(self):
        summary = get_template("summary")
        assert summary.is_enabled("risk_summary")
        assert not summary.is_enabled("exercises")

    def test_list(self):
        assert [t["name"] for t in list_templates()] == ["standard", "summary"]
