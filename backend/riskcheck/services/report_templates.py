"""Report templates for PDF generation.

A template controls PDF appearance: header color, which sections are
rendered and the footer text. No persistence; only built-in templates.
"""

from dataclasses import asdict, dataclass, field
from typing import Dict, List


def _all_sections() -> Dict[str, bool]:
    return {
        "user_info": True,
        "risk_summary": True,
        "competency_chart": True,
        "biopsychosocial": True,
        "recommendations": True,
        "exercises": True,
        "narrative": True,
    }


@dataclass
class ReportTemplate:
    """Report template configuration."""
    name: str
    title: str = "健康リスク評価レポート"
    header_color: str = "#1e40af"
    sections_enabled: Dict[str, bool] = field(default_factory=_all_sections)
    footer_text: str = (
        "本レポートはスクリーニングを目的として自動生成されたもので、医学的な診断ではありません。"
        "痛みや不安がある場合は医療専門職にご相談ください。"
    )

    def to_dict(self) -> dict:
        return asdict(self)

    def is_enabled(self, section: str) -> bool:
        return self.sections_enabled.get(section, False)


STANDARD_TEMPLATE = ReportTemplate(
    name="standard",
)

SUMMARY_TEMPLATE = ReportTemplate(
    name="summary",
    title="健康リスク評価サマリー",
    header_color="#059669",
    sections_enabled={
        "user_info": True,
        "risk_summary": True,
        "competency_chart": False,
        "biopsychosocial": False,
        "recommendations": True,
        "exercises": False,
        "narrative": True,
    },
    footer_text="簡易参照用のサマリーレポートです。医学的な診断ではありません。",
)

BUILTIN_TEMPLATES = {
    "standard": STANDARD_TEMPLATE,
    "summary": SUMMARY_TEMPLATE,
}


def get_template(name: str) -> ReportTemplate:
    """Get a built-in template by name, falling back to standard."""
    return BUILTIN_TEMPLATES.get(name, STANDARD_TEMPLATE)


def list_templates() -> List[dict]:
    return [tmpl.to_dict() for tmpl in BUILTIN_TEMPLATES.values()]
