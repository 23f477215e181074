"""
Analysis pipeline: validate rows, profile, build the prompt, ask the model.
"""
import logging
from typing import Any, Optional

from filesense.core.config import Settings
from filesense.core.errors import ConfigurationError, InvalidInputError
from filesense.core.i18n import DEFAULT_LANGUAGE
from filesense.core.sanitization import sanitize_filename, sanitize_for_logging
from filesense.services.llm_client import OpenRouterClient
from filesense.services.profiler import profile_dataset
from filesense.services.prompt import build_analysis_prompt

logger = logging.getLogger(__name__)


async def run_analysis(
    data: Any,
    file_name: str,
    language: Optional[str],
    settings: Settings,
    client: Optional[OpenRouterClient] = None,
) -> Any:
    """
    Produce the model's report for a dataset.

    Checks happen in this order: dataset shape (InvalidInputError), then the
    provider credential (ConfigurationError). `client` overrides the one
    built from settings.

    Returns:
        The model's JSON reply, parsed but not validated.
    """
    language = language or settings.default_language or DEFAULT_LANGUAGE
    safe_name = sanitize_filename(file_name)

    if not isinstance(data, list) or not data:
        raise InvalidInputError(language=language)

    logger.info(
        f"Analyzing file: {sanitize_for_logging(safe_name)} with {len(data)} rows, language: {sanitize_for_logging(language)}"
    )

    profile = profile_dataset(data)
    if profile is None:
        # a list whose first element is not a row mapping
        raise InvalidInputError(language=language)

    if client is None:
        if not settings.has_api_key:
            logger.error("OPENROUTER_API_KEY is not configured")
            raise ConfigurationError(language=language)
        client = OpenRouterClient.from_settings(settings)

    sample_rows = data[:settings.sample_row_count]
    prompt = build_analysis_prompt(profile, safe_name, sample_rows, language)

    result = await client.complete_json(prompt, language=language)
    logger.info(f"Analysis completed for {sanitize_for_logging(safe_name)}")
    return result
