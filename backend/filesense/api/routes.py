import logging
from typing import Optional
from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse
from filesense.core.errors import AnalysisError, FileEmptyError, InvalidInputError
from filesense.core.middleware import get_correlation_id
from filesense.core.rate_limit import analysis_rate_limit, limiter
from filesense.core.sanitization import sanitize_filename, sanitize_for_logging
from filesense.core.schemas import AnalyzeRequest, ProfileRequest
from filesense.services.analysis import run_analysis
from filesense.services.llm_client import OpenRouterClient
from filesense.services.parser import clean_dataframe, dataframe_to_rows, parse_file, validate_file_content
from filesense.services.profiler import profile_dataset

logger = logging.getLogger(__name__)

router = APIRouter()


def get_llm_client(request: Request) -> Optional[OpenRouterClient]:
    """Model client built from settings, or None when no credential is configured."""
    settings = request.app.state.settings
    if not settings.has_api_key:
        return None
    return OpenRouterClient.from_settings(settings)


async def _guarded(request: Request, handler, language: str):
    """
    Await handler, letting AnalysisError through to the handler installed in
    main.py. Anything else is logged and reported as an unexpected error.
    """
    try:
        return await handler()
    except AnalysisError:
        raise
    except Exception as e:
        logger.error(
            f"Unexpected error during analysis (correlation_id={get_correlation_id(request)}): {e}",
            exc_info=True
        )
        raise AnalysisError(language=language) from e


@router.get("/health")
async def health_check():
    return {"status": "ok"}


@router.post("/analyze")
@limiter.limit(analysis_rate_limit)
async def analyze(
    request: Request,
    body: AnalyzeRequest,
    client: Optional[OpenRouterClient] = Depends(get_llm_client),
):
    """
    Ask the model for a report on rows already parsed by the caller.

    Returns the model's JSON as-is. Errors are `{"error": message}` with
    400 (bad dataset), 500 (no credential, empty or non-JSON reply) or the
    provider's own status code.
    """
    settings = request.app.state.settings
    language = body.language or settings.default_language

    async def handler():
        return await run_analysis(body.data, body.file_name, language, settings, client)

    result = await _guarded(request, handler, language)
    return JSONResponse(content=result)


@router.post("/upload")
@limiter.limit(analysis_rate_limit)
async def upload_and_analyze(
    request: Request,
    file: UploadFile = File(...),
    language: Optional[str] = Form(None),
    client: Optional[OpenRouterClient] = Depends(get_llm_client),
):
    """Parse a CSV/Excel upload server-side, then analyze it like /analyze."""
    settings = request.app.state.settings
    language = language or settings.default_language
    safe_filename = sanitize_filename(file.filename)

    async def handler():
        df = await parse_file(file, language)
        validate_file_content(df, safe_filename, language)
        df = clean_dataframe(df)
        if df.empty:
            raise FileEmptyError(language=language)

        rows = dataframe_to_rows(df)
        logger.info(f"Upload {sanitize_for_logging(safe_filename)} parsed into {len(rows)} rows")
        return await run_analysis(rows, safe_filename, language, settings, client)

    result = await _guarded(request, handler, language)
    return JSONResponse(content=result)


@router.post("/profile")
async def profile(request: Request, body: ProfileRequest):
    """Statistics only, without calling the model."""
    dataset_profile = profile_dataset(body.data)
    if dataset_profile is None:
        raise InvalidInputError(language=body.language or request.app.state.settings.default_language)
    return dataset_profile.to_wire()
