"""
Report rendering: turns the model's AIResult into a visual dashboard.

build_report_view() maps the result onto display decisions (indicator icons,
tones, bar heights, severities). render_report_html() lays those out as a
standalone HTML page; pdf_generator.create_pdf() uses the same view.
"""
import html
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Union

from filesense.core.i18n import report_labels, resolve_language
from filesense.core.sanitization import sanitize_filename
from filesense.core.schemas import AIResult, Chart

logger = logging.getLogger(__name__)

# Minimum bar height, in percent of the plot height
MIN_BAR_HEIGHT_PCT = 8.0

TREND_INDICATORS = {"up": "trending-up", "down": "trending-down"}
TREND_SYMBOLS = {"trending-up": "▲", "trending-down": "▼", "minus": "–"}
COLOR_TONES = {"green": "positive", "red": "negative"}

THEMES = ("light", "dark")

_LANG_CODES = {"Español": "es", "English": "en", "Português": "pt", "Français": "fr"}


@dataclass
class KpiTile:
    title: str
    value: str
    sub_value: str
    indicator: str  # trending-up | trending-down | minus
    tone: str  # positive | negative | default


@dataclass
class Bar:
    label: str
    value: float
    height_pct: float


@dataclass
class ChartPanel:
    title: str
    chart_type: str
    description: str
    bars: List[Bar] = field(default_factory=list)


@dataclass
class RecommendationCard:
    title: str
    text: str
    severity: str  # severity-high | severity-medium
    impact_label: str


@dataclass
class ReportView:
    title: str
    summary: str
    file_name: str
    language: str
    kpis: List[KpiTile]
    charts: List[ChartPanel]
    recommendations: List[RecommendationCard]


def _text(value: Union[str, int, float]) -> str:
    if isinstance(value, float) and value.is_integer():
        return f"{int(value):,}"
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return f"{value:,}"
    return str(value)


def kpi_indicator(trend: str) -> str:
    return TREND_INDICATORS.get(trend, "minus")


def kpi_tone(color: Optional[str]) -> str:
    return COLOR_TONES.get(color, "default")


def scale_bars(chart: Chart) -> List[Bar]:
    """
    Bar heights as a percentage of the largest value in this chart.

    Heights are 0 when the largest value is not positive, and are then
    lifted to MIN_BAR_HEIGHT_PCT.
    """
    if not chart.data:
        return []
    max_value = max(point.value for point in chart.data)
    bars = []
    for point in chart.data:
        height = (point.value / max_value) * 100 if max_value > 0 else 0.0
        bars.append(Bar(
            label=_text(point.label),
            value=point.value,
            height_pct=max(height, MIN_BAR_HEIGHT_PCT),
        ))
    return bars


def build_report_view(result: AIResult, file_name: str = "", language: Optional[str] = None) -> ReportView:
    language = resolve_language(language)
    labels = report_labels(language)

    kpis = [
        KpiTile(
            title=kpi.title,
            value=_text(kpi.value),
            sub_value=_text(kpi.sub_value),
            indicator=kpi_indicator(kpi.trend),
            tone=kpi_tone(kpi.color),
        )
        for kpi in result.kpis
    ]
    charts = [
        ChartPanel(
            title=chart.title,
            chart_type=chart.type,
            description=chart.description,
            bars=scale_bars(chart),
        )
        for chart in result.charts
    ]
    recommendations = [
        RecommendationCard(
            title=rec.title,
            text=rec.text,
            severity="severity-high" if rec.impact == "high" else "severity-medium",
            impact_label=labels["impact_high"] if rec.impact == "high" else labels["impact_medium"],
        )
        for rec in result.recommendations
    ]
    return ReportView(
        title=result.analysis_title,
        summary=result.summary,
        file_name=sanitize_filename(file_name) if file_name else "",
        language=language,
        kpis=kpis,
        charts=charts,
        recommendations=recommendations,
    )


STYLESHEET = """
:root { --bg: #f8fafc; --card: #ffffff; --border: #e2e8f0; --text: #0f172a; --muted: #64748b;
        --accent: #059669; --accent-soft: #d1fae5; --danger: #dc2626; --danger-soft: #fef2f2; }
.theme-dark { --bg: #09090b; --card: #18181b; --border: #27272a; --text: #f4f4f5; --muted: #a1a1aa;
              --accent: #34d399; --accent-soft: #064e3b; --danger: #f87171; --danger-soft: #450a0a; }
body { margin: 0; font-family: system-ui, sans-serif; background: var(--bg); color: var(--text); }
main { max-width: 72rem; margin: 0 auto; padding: 3rem 1.5rem; }
.badge { display: inline-block; padding: .25rem .75rem; border-radius: .5rem; background: var(--accent-soft);
         color: var(--accent); font-size: .7rem; font-weight: 800; letter-spacing: .1em; text-transform: uppercase; }
.file-name { color: var(--muted); font-weight: 700; margin-left: .75rem; }
h1 { font-size: 2.75rem; font-weight: 900; letter-spacing: -.03em; margin: 1rem 0; }
.summary { font-style: italic; border-left: 4px solid var(--accent); padding: .5rem 1rem; color: var(--muted); font-size: 1.2rem; }
h2 { text-transform: uppercase; letter-spacing: .3em; color: var(--muted); font-size: 1rem; margin: 3rem 0 1.5rem; }
.grid { display: grid; gap: 1.5rem; }
.kpi-grid { grid-template-columns: repeat(auto-fit, minmax(14rem, 1fr)); }
.chart-grid, .rec-grid { grid-template-columns: repeat(auto-fit, minmax(24rem, 1fr)); }
.card { background: var(--card); border: 1px solid var(--border); border-radius: 1.5rem; padding: 2rem; }
.kpi-head { display: flex; justify-content: space-between; font-size: .75rem; font-weight: 900;
            color: var(--muted); text-transform: uppercase; letter-spacing: .1em; }
.kpi-value { font-size: 2.25rem; font-weight: 900; margin: .75rem 0 .5rem; }
.trending-up { color: var(--accent); } .trending-down { color: var(--danger); } .minus { color: var(--muted); }
.tone-positive, .tone-default { color: var(--accent); font-weight: 700; }
.tone-negative { color: var(--danger); font-weight: 700; }
.chart-desc { color: var(--muted); font-size: .9rem; }
.bars { height: 18rem; display: flex; align-items: flex-end; gap: .75rem; border-bottom: 1px solid var(--border); padding-bottom: 1rem; }
.bar-col { flex: 1; height: 100%; display: flex; flex-direction: column; justify-content: flex-end; align-items: center; gap: .5rem; }
.bar { width: 100%; background: var(--accent-soft); border-radius: 1rem 1rem 0 0; }
.bar-col:hover .bar { background: var(--accent); }
.bar-label { font-size: .65rem; font-weight: 900; color: var(--muted); text-transform: uppercase;
             white-space: nowrap; overflow: hidden; text-overflow: ellipsis; max-width: 100%; }
.impact { display: inline-block; padding: .25rem .75rem; border-radius: 999px; font-size: .65rem;
          font-weight: 900; text-transform: uppercase; letter-spacing: .1em; }
.severity-high .impact { background: var(--danger-soft); color: var(--danger); }
.severity-medium .impact { background: var(--accent-soft); color: var(--accent); }
"""


def _esc(value) -> str:
    return html.escape(str(value), quote=True)


def _render_kpi(tile: KpiTile) -> str:
    return (
        '<div class="card kpi">'
        f'<div class="kpi-head"><span>{_esc(tile.title)}</span>'
        f'<span class="{tile.indicator}">{TREND_SYMBOLS[tile.indicator]}</span></div>'
        f'<div class="kpi-value">{_esc(tile.value)}</div>'
        f'<div class="tone-{tile.tone}">{_esc(tile.sub_value)}</div>'
        '</div>'
    )


def _render_chart(panel: ChartPanel) -> str:
    columns = "".join(
        '<div class="bar-col">'
        f'<div class="bar" style="height: {bar.height_pct:.2f}%" title="{_esc(_text(bar.value))}"></div>'
        f'<span class="bar-label">{_esc(bar.label)}</span>'
        '</div>'
        for bar in panel.bars
    )
    return (
        f'<div class="card chart chart-{_esc(panel.chart_type)}">'
        f'<h3>{_esc(panel.title)}</h3>'
        f'<p class="chart-desc">{_esc(panel.description)}</p>'
        f'<div class="bars">{columns}</div>'
        '</div>'
    )


def _render_recommendation(card: RecommendationCard) -> str:
    return (
        f'<div class="card recommendation {card.severity}">'
        f'<span class="impact">{_esc(card.impact_label)}</span>'
        f'<h4>{_esc(card.title)}</h4>'
        f'<p>{_esc(card.text)}</p>'
        '</div>'
    )


def render_report_html(
    result: AIResult,
    file_name: str = "",
    language: Optional[str] = None,
    theme: str = "light",
) -> str:
    """Render a standalone HTML page for result. All model text is escaped."""
    if theme not in THEMES:
        theme = "light"
    view = build_report_view(result, file_name, language)
    labels = report_labels(view.language)

    kpis = "".join(_render_kpi(tile) for tile in view.kpis)
    charts = "".join(_render_chart(panel) for panel in view.charts)
    recommendations = "".join(_render_recommendation(card) for card in view.recommendations)

    logger.debug(
        f"Rendered report with {len(view.kpis)} KPIs, {len(view.charts)} charts, "
        f"{len(view.recommendations)} recommendations"
    )

    return f"""<!DOCTYPE html>
<html lang="{_LANG_CODES[view.language]}">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{_esc(view.title)}</title>
<style>{STYLESHEET}</style>
</head>
<body class="theme-{theme}">
<main>
<header>
<span class="badge">{_esc(labels["analysis_complete"])}</span><span class="file-name">{_esc(view.file_name)}</span>
<h1>{_esc(view.title)}</h1>
<p class="summary">&ldquo;{_esc(view.summary)}&rdquo;</p>
</header>
<section aria-label="{_esc(labels["kpis"])}" class="grid kpi-grid">{kpis}</section>
<h2>{_esc(labels["charts"])}</h2>
<section class="grid chart-grid">{charts}</section>
<h2>{_esc(labels["recommendations"])}</h2>
<section class="grid rec-grid">{recommendations}</section>
</main>
</body>
</html>
"""

