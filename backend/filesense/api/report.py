"""
Report export endpoint - render an analysis result as HTML or PDF.
"""
import io
import logging
import os
import re
from typing import Literal
from fastapi import APIRouter
from fastapi.responses import HTMLResponse, StreamingResponse
from filesense.core.schemas import ReportRequest
from filesense.services.pdf_generator import create_pdf
from filesense.services.report import render_report_html

logger = logging.getLogger(__name__)
router = APIRouter()


def attachment_name(file_name: str) -> str:
    """ASCII-only download name derived from the source file, e.g. ventas.xlsx -> ventas_report.pdf."""
    stem = os.path.splitext(os.path.basename(file_name or ""))[0]
    stem = re.sub(r'[^A-Za-z0-9._-]+', '_', stem).strip('._')
    return f"{stem or 'filesense'}_report.pdf"


@router.post("/report")
async def render_report(
    body: ReportRequest,
    format: Literal["html", "pdf"] = "html",
    theme: Literal["light", "dark"] = "light",
):
    """
    Render a report the client already received from /analyze.

    Args:
        body: The model result plus the file name and language it was made for
        format: "html" (default) for a standalone page, "pdf" for a download
        theme: Color scheme of the HTML page

    A result that does not match the report contract is rejected with 422
    before anything is rendered.
    """
    if format == "pdf":
        pdf_bytes = create_pdf(body.result, body.file_name, body.language)
        return StreamingResponse(
            io.BytesIO(pdf_bytes),
            media_type="application/pdf",
            headers={
                "Content-Disposition": f'attachment; filename="{attachment_name(body.file_name)}"'
            }
        )

    page = render_report_html(body.result, body.file_name, body.language, theme)
    return HTMLResponse(content=page)
