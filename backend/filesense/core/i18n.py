"""
Localized copy for error messages and report labels.

The report language is passed around as its display name ("Español",
"English", ...) because that is also what the model is asked to write in.
"""
from typing import Dict, Optional

DEFAULT_LANGUAGE = "Español"

SUPPORTED_LANGUAGES = ("Español", "English", "Português", "Français")

# Lowercase aliases accepted from callers
_ALIASES = {
    "español": "Español", "espanol": "Español", "spanish": "Español", "es": "Español",
    "english": "English", "inglés": "English", "en": "English",
    "português": "Português", "portugues": "Português", "portuguese": "Português", "pt": "Português",
    "français": "Français", "francais": "Français", "french": "Français", "fr": "Français",
}


REPORT_LABELS: Dict[str, Dict[str, str]] = {
    "Español": {
        "analysis_complete": "Análisis Completado",
        "kpis": "Indicadores clave",
        "charts": "Gráficos",
        "recommendations": "Recomendaciones",
        "impact_high": "Impacto Alto",
        "impact_medium": "Impacto Medio",
        "generated_from": "Generado a partir de",
    },
    "English": {
        "analysis_complete": "Analysis Completed",
        "kpis": "Key indicators",
        "charts": "Charts",
        "recommendations": "Recommendations",
        "impact_high": "High Impact",
        "impact_medium": "Medium Impact",
        "generated_from": "Generated from",
    },
    "Português": {
        "analysis_complete": "Análise Concluída",
        "kpis": "Indicadores-chave",
        "charts": "Gráficos",
        "recommendations": "Recomendações",
        "impact_high": "Impacto Alto",
        "impact_medium": "Impacto Médio",
        "generated_from": "Gerado a partir de",
    },
    "Français": {
        "analysis_complete": "Analyse Terminée",
        "kpis": "Indicateurs clés",
        "charts": "Graphiques",
        "recommendations": "Recommandations",
        "impact_high": "Impact Élevé",
        "impact_medium": "Impact Moyen",
        "generated_from": "Généré à partir de",
    },
}


def resolve_language(language: Optional[str]) -> str:
    """Map a caller-supplied language to one of SUPPORTED_LANGUAGES."""
    if not language:
        return DEFAULT_LANGUAGE
    if language in SUPPORTED_LANGUAGES:
        return language
    return _ALIASES.get(language.strip().lower(), DEFAULT_LANGUAGE)


def translate(table: Dict[str, str], language: Optional[str]) -> str:
    """Pick the entry for language from a {language: text} table."""
    return table.get(resolve_language(language), table[DEFAULT_LANGUAGE])


def report_labels(language: Optional[str]) -> Dict[str, str]:
    return REPORT_LABELS[resolve_language(language)]
