"""
Prompt construction for the report-generating model.

Everything here is deterministic: the same profile, sample, file name and
language always produce the same prompt text.
"""
import json
from typing import Any, Dict, List

from filesense.core.sanitization import sanitize_filename
from filesense.core.schemas import DatasetProfile

SYSTEM_PROMPT = "You are an API that ONLY returns valid JSON. Do not include any additional text."

# Shape the model must return; field names and enum values are part of the
# contract the report renderer reads.
RESPONSE_SCHEMA = """{
  "analysisTitle": "Professional, specific title",
  "summary": "In-depth executive summary",
  "kpis": [
    { "title": "KPI name", "value": "Value", "subValue": "Context", "trend": "up/down/neutral", "color": "green/red/blue" }
  ],
  "charts": [
    {
      "title": "Chart title",
      "type": "bar | line | pie | area",
      "description": "Explanation of the trend",
      "data": [
        { "label": "Category", "value": 100 }
      ]
    }
  ],
  "recommendations": [
    { "title": "Critical action", "text": "Detailed recommendation", "impact": "high | medium" }
  ]
}"""


def _dump(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def build_analysis_prompt(
    profile: DatasetProfile,
    file_name: str,
    sample_rows: List[Dict[str, Any]],
    language: str,
) -> str:
    """
    Build the user prompt sent alongside SYSTEM_PROMPT.

    Args:
        profile: Statistics for the whole dataset
        file_name: Uploaded file name (sanitized before embedding)
        sample_rows: First rows of the dataset, embedded verbatim
        language: Report language as shown to the user, e.g. "Español"
    """
    return f"""
You are a Senior Data Scientist specialized in Business Intelligence.

Report language: THE REPORT MUST BE WRITTEN ENTIRELY IN {language.upper()}.

File: "{sanitize_filename(file_name)}"

STATISTICS FOR THE FULL DATASET:
{_dump(profile.to_wire())}

FORMAT SAMPLE (first {len(sample_rows)} rows):
{_dump(sample_rows)}

Produce a strategic, detailed report. Look for correlations, trends and anomalies.
Reply EXCLUSIVELY with this JSON (no markdown) in {language}:

{RESPONSE_SCHEMA}
"""


def build_chat_payload(prompt: str, model: str) -> Dict[str, Any]:
    """Chat-completions request body asking for a JSON object reply."""
    return {
        "model": model,
        "messages": [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ],
        "response_format": {"type": "json_object"},
    }
