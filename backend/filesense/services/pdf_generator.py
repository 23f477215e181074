"""
PDF export of an analysis report.
"""
import html
import io
import logging
from typing import List, Optional

from reportlab.graphics.shapes import Drawing, Line, Rect, String
from reportlab.lib.colors import HexColor
from reportlab.lib.enums import TA_CENTER, TA_JUSTIFY
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import KeepTogether, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from filesense.core.i18n import report_labels
from filesense.core.performance import track_performance
from filesense.core.schemas import AIResult
from filesense.services.report import ChartPanel, KpiTile, build_report_view

logger = logging.getLogger(__name__)

# Color scheme
PRIMARY_COLOR = HexColor('#0f172a')
SECONDARY_COLOR = HexColor('#64748b')
ACCENT_COLOR = HexColor('#059669')
ACCENT_SOFT_COLOR = HexColor('#a7f3d0')
DANGER_COLOR = HexColor('#dc2626')
BORDER_COLOR = HexColor('#e2e8f0')

TONE_COLORS = {"positive": ACCENT_COLOR, "negative": DANGER_COLOR, "default": ACCENT_COLOR}
SEVERITY_COLORS = {"severity-high": DANGER_COLOR, "severity-medium": ACCENT_COLOR}
INDICATOR_TEXT = {"trending-up": "+", "trending-down": "-", "minus": "="}

CHART_WIDTH = 6.5 * inch
CHART_HEIGHT = 2.2 * inch
LABEL_HEIGHT = 14


def _p(text) -> str:
    """Escape model text for reportlab's mini-markup."""
    return html.escape(str(text), quote=False)


def chart_drawing(panel: ChartPanel, width: float = CHART_WIDTH, height: float = CHART_HEIGHT) -> Drawing:
    """Proportional bars for one chart, using the heights computed by the report view."""
    drawing = Drawing(width, height + LABEL_HEIGHT)
    plot_bottom = LABEL_HEIGHT
    drawing.add(Line(0, plot_bottom, width, plot_bottom, strokeColor=BORDER_COLOR))

    if not panel.bars:
        return drawing

    slot = width / len(panel.bars)
    bar_width = slot * 0.7
    for index, bar in enumerate(panel.bars):
        x = index * slot + (slot - bar_width) / 2
        bar_height = height * bar.height_pct / 100
        drawing.add(Rect(x, plot_bottom, bar_width, bar_height,
                         fillColor=ACCENT_SOFT_COLOR, strokeColor=None))
        drawing.add(String(x + bar_width / 2, 2, bar.label[:14],
                           fontName='Helvetica', fontSize=7,
                           fillColor=SECONDARY_COLOR, textAnchor='middle'))
    return drawing


def _kpi_table(tiles: List[KpiTile], styles) -> Optional[Table]:
    if not tiles:
        return None
    cells = []
    for tile in tiles:
        tone = TONE_COLORS[tile.tone].hexval()[2:]
        cells.append(Paragraph(
            f'<font size="8" color="#64748b">{_p(tile.title.upper())} ({INDICATOR_TEXT[tile.indicator]})</font><br/>'
            f'<font size="16"><b>{_p(tile.value)}</b></font><br/>'
            f'<font size="9" color="#{tone}">{_p(tile.sub_value)}</font>',
            styles['BodyText'],
        ))
    per_row = 2
    rows = [cells[i:i + per_row] for i in range(0, len(cells), per_row)]
    if len(rows[-1]) < per_row:
        rows[-1] += [''] * (per_row - len(rows[-1]))
    table = Table(rows, colWidths=[CHART_WIDTH / per_row] * per_row)
    table.setStyle(TableStyle([
        ('BOX', (0, 0), (-1, -1), 0.5, BORDER_COLOR),
        ('INNERGRID', (0, 0), (-1, -1), 0.5, BORDER_COLOR),
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('TOPPADDING', (0, 0), (-1, -1), 8),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 8),
    ]))
    return table


@track_performance("create_pdf")
def create_pdf(result: AIResult, file_name: str = "", language: Optional[str] = None) -> bytes:
    """
    Generate a PDF report from a validated AIResult.

    Returns:
        PDF file as bytes
    """
    view = build_report_view(result, file_name, language)
    labels = report_labels(view.language)

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=letter, topMargin=0.75 * inch, bottomMargin=0.75 * inch,
                            title=view.title)
    styles = getSampleStyleSheet()

    title_style = ParagraphStyle(
        'ReportTitle',
        parent=styles['Heading1'],
        fontSize=24,
        textColor=PRIMARY_COLOR,
        spaceAfter=12,
        fontName='Helvetica-Bold'
    )
    heading_style = ParagraphStyle(
        'ReportHeading',
        parent=styles['Heading2'],
        fontSize=14,
        textColor=SECONDARY_COLOR,
        spaceAfter=8,
        spaceBefore=16,
        fontName='Helvetica-Bold'
    )
    body_style = ParagraphStyle(
        'ReportBody',
        parent=styles['BodyText'],
        fontSize=11,
        textColor=SECONDARY_COLOR,
        spaceAfter=10,
        alignment=TA_JUSTIFY,
        leading=14
    )
    footer_style = ParagraphStyle(
        'ReportFooter',
        parent=styles['Normal'],
        fontSize=9,
        textColor=HexColor('#999999'),
        alignment=TA_CENTER
    )

    content = [
        Paragraph(f'<font color="#059669" size="8"><b>{_p(labels["analysis_complete"].upper())}</b></font>', body_style),
        Paragraph(_p(view.title), title_style),
        Paragraph(f"<i>\u201c{_p(view.summary)}\u201d</i>", body_style),
        Spacer(1, 0.2 * inch),
    ]

    kpi_table = _kpi_table(view.kpis, styles)
    if kpi_table is not None:
        content.append(Paragraph(_p(labels["kpis"]), heading_style))
        content.append(kpi_table)

    if view.charts:
        content.append(Paragraph(_p(labels["charts"]), heading_style))
        for panel in view.charts:
            content.append(KeepTogether([
                Paragraph(f"<b>{_p(panel.title)}</b>", body_style),
                Paragraph(_p(panel.description), body_style),
                chart_drawing(panel),
                Spacer(1, 0.2 * inch),
            ]))

    if view.recommendations:
        content.append(Paragraph(_p(labels["recommendations"]), heading_style))
        for card in view.recommendations:
            color = SEVERITY_COLORS[card.severity].hexval()[2:]
            content.append(Paragraph(
                f'<font size="8" color="#{color}"><b>{_p(card.impact_label.upper())}</b></font><br/>'
                f'<b>{_p(card.title)}</b><br/>{_p(card.text)}',
                body_style,
            ))

    if view.file_name:
        content.append(Spacer(1, 0.3 * inch))
        content.append(Paragraph(f'{_p(labels["generated_from"])} {_p(view.file_name)}', footer_style))

    doc.build(content)

    pdf_bytes = buffer.getvalue()
    buffer.close()
    logger.info(f"Generated PDF report ({len(pdf_bytes) / 1024:.1f}KB)")
    return pdf_bytes
