import csv
import io
import logging
import math
from datetime import datetime
from typing import List, Optional
from xml.sax.saxutils import escape

from reportlab.graphics.shapes import Drawing, Line, Polygon, Rect, String
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.cidfonts import UnicodeCIDFont
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.platypus import KeepTogether, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from riskcheck.schemas import AssessmentData, FallRiskScores, NarrativeResult, RiskResult
from riskcheck.services.report_templates import get_template
from riskcheck.services.risk_assessment import back_pain_total, fall_risk_total
from riskcheck.services.risk_calculation import RISK_LEVEL_COLORS, RISK_LEVEL_LABELS
from riskcheck.services.self_assessment import GROUP_LABELS, summarize_biopsychosocial
from riskcheck.settings import settings

logger = logging.getLogger(__name__)

# 日本語フォント登録 (既定は reportlab 同梱の CID フォント、REPORT_FONT_PATH があれば TTF)
FONT_NAME = 'HeiseiKakuGo-W5'
FONT_BOLD = 'HeiseiKakuGo-W5'
_JP_FONT_REGISTERED = False


def _register_japanese_font():
    global _JP_FONT_REGISTERED, FONT_NAME, FONT_BOLD
    if _JP_FONT_REGISTERED:
        return
    if settings.report_font_path:
        try:
            pdfmetrics.registerFont(TTFont('Japanese', settings.report_font_path))
            pdfmetrics.registerFontFamily('Japanese', normal='Japanese', bold='Japanese',
                                          italic='Japanese', boldItalic='Japanese')
            FONT_NAME = FONT_BOLD = 'Japanese'
            _JP_FONT_REGISTERED = True
            return
        except Exception as e:
            logger.warning("Could not load report font %s, using CID font: %s", settings.report_font_path, e)
    pdfmetrics.registerFont(UnicodeCIDFont('HeiseiKakuGo-W5'))
    # <b> タグ用にファミリー登録 (太字は同じ書体)
    pdfmetrics.registerFontFamily('HeiseiKakuGo-W5', normal='HeiseiKakuGo-W5', bold='HeiseiKakuGo-W5',
                                  italic='HeiseiKakuGo-W5', boldItalic='HeiseiKakuGo-W5')
    FONT_NAME = FONT_BOLD = 'HeiseiKakuGo-W5'
    _JP_FONT_REGISTERED = True


GENDER_LABELS = {"male": "男性", "female": "女性"}
AGE_GROUP_LABELS = {"20s": "20代", "30s": "30代", "40s": "40代", "50s": "50代", "60s+": "60代以上"}
BPS_CATEGORY_LABELS = [
    ("biological", "生物学的要因", 10),
    ("psychological", "心理的要因", 5),
    ("social", "社会的要因", 5),
]


def generate_csv_report(data: AssessmentData, result: RiskResult) -> str:
    """CSV リポート生成"""
    output = io.StringIO()
    writer = csv.writer(output)

    writer.writerow(["健康リスク評価レポート"])
    writer.writerow([])

    user = data.user_info
    writer.writerow(["基本情報"])
    writer.writerow(["性別", GENDER_LABELS.get(user.gender, user.gender)])
    writer.writerow(["年齢層", AGE_GROUP_LABELS.get(user.age_group, user.age_group)])
    writer.writerow(["身長 (m)", user.height])
    writer.writerow([])

    if data.fall_risk is not None and result.fall_risk is not None:
        p = data.fall_risk.physical
        writer.writerow(["転倒リスク"])
        writer.writerow(["2ステップテスト (cm)", p.two_step_test])
        writer.writerow(["座位ステッピング (回)", p.seated_stepping_test])
        writer.writerow(["ファンクショナルリーチ (cm)", p.functional_reach])
        writer.writerow(["閉眼片足立ち (秒)", p.closed_eye_stand])
        writer.writerow(["開眼片足立ち (秒)", p.open_eye_stand])
        writer.writerow(["合計スコア", fall_risk_total(data.fall_risk, user.height)])
        writer.writerow(["リスク率 (%)", result.fall_risk_percentage])
        writer.writerow(["リスク区分", RISK_LEVEL_LABELS[result.fall_risk]])
        writer.writerow([])

    if data.low_back_pain is not None and result.low_back_pain_risk is not None:
        p = data.low_back_pain.physical
        writer.writerow(["腰痛リスク"])
        writer.writerow(["立位体前屈", p.standing_forward_bend])
        writer.writerow(["腰沈み込み", p.hip_flexion])
        writer.writerow(["プランク (秒)", p.plank_challenge])
        writer.writerow(["壁姿勢 (あたま)", p.wall_posture_head])
        writer.writerow(["壁姿勢 (こし)", p.wall_posture_waist])
        writer.writerow(["合計スコア", back_pain_total(data.low_back_pain)])
        writer.writerow(["リスク率 (%)", result.low_back_pain_risk_percentage])
        writer.writerow(["リスク区分", RISK_LEVEL_LABELS[result.low_back_pain_risk]])
        writer.writerow([])

    writer.writerow(["推奨運動"])
    for i, exercise in enumerate(result.exercises, 1):
        writer.writerow([i, exercise.name, exercise.description])

    return output.getvalue()


def create_competency_chart(scores: FallRiskScores, width: float = 170*mm, height: float = 90*mm) -> Drawing:
    """能力グループ別レーダーチャート (身体測定 vs 自己評価, 1-5)"""
    drawing = Drawing(width, height)

    groups = list(GROUP_LABELS.keys())
    cx = width / 2
    cy = height / 2 - 4
    radius = min(width, height) / 2 - 22

    def point(index: int, value: float):
        angle = math.pi / 2 - 2 * math.pi * index / len(groups)
        r = radius * value / 5
        return cx + r * math.cos(angle), cy + r * math.sin(angle)

    # 目盛り (1-5)
    for level in range(1, 6):
        ring = []
        for i in range(len(groups)):
            ring.extend(point(i, level))
        drawing.add(Polygon(ring, strokeColor=colors.HexColor('#d1d5db'), strokeWidth=0.5, fillColor=None))

    for i, group in enumerate(groups):
        x, y = point(i, 5)
        drawing.add(Line(cx, cy, x, y, strokeColor=colors.HexColor('#d1d5db'), strokeWidth=0.5))
        lx, ly = point(i, 5.9)
        drawing.add(String(lx, ly - 3, GROUP_LABELS[group], fontName=FONT_NAME, fontSize=8,
                           textAnchor='middle', fillColor=colors.HexColor('#374151')))

    series = [
        (scores.physical, colors.HexColor('#3b82f6')),
        (scores.self_assessment, colors.HexColor('#f97316')),
    ]
    for ratings, color in series:
        polygon = []
        for i, group in enumerate(groups):
            polygon.extend(point(i, getattr(ratings, group)))
        drawing.add(Polygon(polygon, strokeColor=color, strokeWidth=1.5,
                            fillColor=color, fillOpacity=0.15))

    # 凡例
    legend = [("身体測定", colors.HexColor('#3b82f6')), ("自己評価", colors.HexColor('#f97316'))]
    for i, (label, color) in enumerate(legend):
        y = height - 12 - i * 12
        drawing.add(Rect(8, y, 8, 8, fillColor=color, strokeColor=None))
        drawing.add(String(20, y + 1, label, fontName=FONT_NAME, fontSize=8,
                           fillColor=colors.HexColor('#374151')))

    return drawing


def _info_table(rows: List[list], label_bg: str, grid: str, col_widths=None) -> Table:
    table = Table(rows, colWidths=col_widths or [55*mm, 115*mm])
    table.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (-1, -1), FONT_NAME),
        ('BACKGROUND', (0, 0), (0, -1), colors.HexColor(label_bg)),
        ('TEXTCOLOR', (0, 0), (0, -1), colors.HexColor('#374151')),
        ('FONTSIZE', (0, 0), (-1, -1), 10),
        ('PADDING', (0, 0), (-1, -1), 6),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.HexColor(grid)),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
    ]))
    return table


def generate_pdf_report(
    data: AssessmentData,
    result: RiskResult,
    narrative: Optional[NarrativeResult] = None,
    template_name: str = "standard",
) -> bytes:
    """PDF レポート生成 (PDF のバイト列を返す)"""
    _register_japanese_font()

    template = get_template(template_name)
    header_color = template.header_color

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=20*mm,
        leftMargin=20*mm,
        topMargin=20*mm,
        bottomMargin=20*mm,
        title=template.title,
    )

    styles = getSampleStyleSheet()
    for style_name in styles.byName:
        styles[style_name].fontName = FONT_NAME

    title_style = ParagraphStyle(
        'CustomTitle',
        parent=styles['Heading1'],
        fontName=FONT_BOLD,
        fontSize=22,
        leading=28,
        spaceAfter=10,
        alignment=1,
        textColor=colors.HexColor(header_color)
    )

    subtitle_style = ParagraphStyle(
        'SubTitle',
        parent=styles['Normal'],
        fontName=FONT_NAME,
        fontSize=11,
        alignment=1,
        textColor=colors.HexColor('#6b7280'),
        spaceAfter=20
    )

    heading_style = ParagraphStyle(
        'CustomHeading',
        parent=styles['Heading2'],
        fontName=FONT_BOLD,
        fontSize=14,
        leading=18,
        spaceBefore=16,
        spaceAfter=8,
        textColor=colors.HexColor(header_color)
    )

    normal_style = ParagraphStyle(
        'CustomNormal',
        parent=styles['Normal'],
        fontName=FONT_NAME,
        fontSize=10,
        leading=15,
        spaceAfter=4
    )

    small_style = ParagraphStyle(
        'Small',
        parent=normal_style,
        fontSize=9,
        leading=13,
        textColor=colors.HexColor('#4b5563')
    )

    elements = []

    # ========== ヘッダー ==========
    elements.append(Paragraph(template.title, title_style))
    if narrative is not None and not narrative.is_fallback:
        elements.append(Paragraph("AI詳細分析付き", subtitle_style))
    else:
        elements.append(Spacer(1, 10))
    elements.append(Paragraph(
        f"作成日時: {datetime.now().strftime('%Y-%m-%d %H:%M')}",
        ParagraphStyle('Date', parent=normal_style, alignment=2, textColor=colors.grey, fontSize=9)
    ))

    # ========== 基本情報 ==========
    if template.is_enabled("user_info"):
        user = data.user_info
        elements.append(Paragraph("基本情報", heading_style))
        elements.append(_info_table([
            ["性別", GENDER_LABELS.get(user.gender, user.gender)],
            ["年齢層", AGE_GROUP_LABELS.get(user.age_group, user.age_group)],
            ["身長", f"{user.height:.2f} m"],
        ], '#f3f4f6', '#e5e7eb'))

    # ========== リスク評価サマリー ==========
    if template.is_enabled("risk_summary"):
        elements.append(Paragraph("リスク評価サマリー", heading_style))
        rows = [["項目", "合計スコア", "リスク率", "区分"]]
        level_rows = []
        if data.fall_risk is not None and result.fall_risk is not None:
            rows.append([
                "転倒リスク",
                f"{fall_risk_total(data.fall_risk, data.user_info.height)} / 450",
                f"{result.fall_risk_percentage}%",
                RISK_LEVEL_LABELS[result.fall_risk],
            ])
            level_rows.append((len(rows) - 1, result.fall_risk))
        if data.low_back_pain is not None and result.low_back_pain_risk is not None:
            rows.append([
                "腰痛リスク",
                f"{back_pain_total(data.low_back_pain)} / 360",
                f"{result.low_back_pain_risk_percentage}%",
                RISK_LEVEL_LABELS[result.low_back_pain_risk],
            ])
            level_rows.append((len(rows) - 1, result.low_back_pain_risk))

        summary_table = Table(rows, colWidths=[45*mm, 45*mm, 35*mm, 45*mm])
        style = [
            ('FONTNAME', (0, 0), (-1, -1), FONT_NAME),
            ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#1f2937')),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
            ('FONTSIZE', (0, 0), (-1, -1), 10),
            ('PADDING', (0, 0), (-1, -1), 6),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.HexColor('#d1d5db')),
            ('ALIGN', (1, 0), (-1, -1), 'CENTER'),
        ]
        for row, level in level_rows:
            style.append(('TEXTCOLOR', (3, row), (3, row), colors.HexColor(RISK_LEVEL_COLORS[level])))
        summary_table.setStyle(TableStyle(style))
        elements.append(summary_table)
        elements.append(Spacer(1, 8))

        if result.fall_risk_comment:
            elements.append(Paragraph(f"転倒リスク: {escape(result.fall_risk_comment)}", small_style))
        if result.low_back_pain_risk_comment:
            elements.append(Paragraph(f"腰痛リスク: {escape(result.low_back_pain_risk_comment)}", small_style))
        elements.append(Paragraph(
            "区分の目安: 0-49% 低リスク / 50-79% 中リスク / 80-100% 高リスク",
            ParagraphStyle('Guide', parent=small_style, fontSize=8, textColor=colors.grey)
        ))

    # ========== 能力別評価 ==========
    if template.is_enabled("competency_chart") and result.fall_risk_scores is not None:
        scores = result.fall_risk_scores
        elements.append(Paragraph("能力別評価 (身体測定 / 自己評価)", heading_style))
        elements.append(create_competency_chart(scores))
        rows = [["能力", "身体測定", "自己評価"]]
        for group, label in GROUP_LABELS.items():
            rows.append([label, f"{getattr(scores.physical, group)} / 5", f"{getattr(scores.self_assessment, group)} / 5"])
        elements.append(_info_table(rows, '#dbeafe', '#93c5fd', col_widths=[70*mm, 50*mm, 50*mm]))

    # ========== BPS 要因 ==========
    if template.is_enabled("biopsychosocial") and data.low_back_pain is not None:
        bps = summarize_biopsychosocial(data.low_back_pain.biopsychosocial)
        elements.append(Paragraph("生物心理社会的要因 (保護因子の数)", heading_style))
        rows = [[label, f"{bps[key]} / {total}"] for key, label, total in BPS_CATEGORY_LABELS]
        rows.append(["合計", f"{bps['total']} / 20"])
        elements.append(_info_table(rows, '#ecfdf5', '#a7f3d0'))

    # ========== AI 講評 ==========
    if template.is_enabled("narrative") and narrative is not None:
        elements.append(Paragraph("評価コメント", heading_style))
        if result.fall_risk is not None and narrative.fall_risk_comment:
            elements.append(Paragraph(f"<b>転倒リスク</b>: {escape(narrative.fall_risk_comment)}", normal_style))
        if result.low_back_pain_risk is not None and narrative.low_back_pain_risk_comment:
            elements.append(Paragraph(f"<b>腰痛リスク</b>: {escape(narrative.low_back_pain_risk_comment)}", normal_style))

        guidance = []
        if result.fall_risk is not None:
            guidance += narrative.fall_risk_exercises
        if result.low_back_pain_risk is not None:
            guidance += narrative.low_back_pain_exercises
        if guidance:
            elements.append(Paragraph("運動指導", heading_style))
            for item in guidance:
                elements.append(Paragraph(
                    f"<b>{escape(item.name)}</b> ({escape(item.purpose)}): {escape(item.instructions)}",
                    normal_style
                ))

    # ========== 推奨事項 ==========
    if template.is_enabled("recommendations") and result.recommendations:
        elements.append(Paragraph("推奨事項", heading_style))
        for i, recommendation in enumerate(result.recommendations, 1):
            elements.append(Paragraph(f"{i}. {escape(recommendation)}", normal_style))

    # ========== 推奨エクササイズ ==========
    if template.is_enabled("exercises") and result.exercises:
        elements.append(Paragraph("推奨エクササイズ", heading_style))
        for i, exercise in enumerate(result.exercises, 1):
            block = [
                Paragraph(f"<b>{i}. {escape(exercise.name)}</b>", normal_style),
                Paragraph(escape(exercise.description), small_style),
            ]
            for step_no, step in enumerate(exercise.instructions, 1):
                block.append(Paragraph(f"　{step_no}) {escape(step)}", small_style))
            block.append(Spacer(1, 6))
            elements.append(KeepTogether(block))

    # ========== フッター ==========
    elements.append(Spacer(1, 24))
    elements.append(Paragraph(
        template.footer_text,
        ParagraphStyle('Footer', parent=normal_style, fontSize=8, textColor=colors.grey, alignment=1)
    ))

    doc.build(elements)
    return buffer.getvalue()
