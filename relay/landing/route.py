import html as _html_escape
import logging
from pathlib import Path

import markdown
from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, JSONResponse, Response

from relay.config import RelayConfig, get_relay_config
from relay.cors import cors_precheck
from relay.errors import LandingPageError

router = APIRouter()
logger = logging.getLogger("uvicorn.error")

MARKDOWN_EXTENSIONS = ["fenced_code", "tables"]

PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{title}</title>
</head>
<body>
{body}
</body>
</html>
"""


def render_landing_page(path: str) -> str:
    """
    Render the Markdown landing document as an HTML page titled after its
    first top-level heading.

    Raises:
        LandingPageError: if the document cannot be read
    """
    document = Path(path)
    try:
        text = document.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise LandingPageError(f"Could not load {document.name}: {e}") from e

    title = document.stem
    for line in text.splitlines():
        if line.startswith("# "):
            title = line[2:].strip()
            break
    return PAGE_TEMPLATE.format(
        title=_html_escape.escape(title),
        body=markdown.markdown(text, extensions=MARKDOWN_EXTENSIONS),
    )


@router.api_route("/", methods=["GET", "HEAD", "OPTIONS"])
@router.api_route("/favicon.ico", methods=["GET", "HEAD", "OPTIONS"])
async def landing_page(
    request: Request, config: RelayConfig = Depends(get_relay_config)
) -> Response:
    short_circuit = cors_precheck(request, config.cors)
    if short_circuit is not None:
        return short_circuit

    try:
        content = render_landing_page(config.landing_page_path)
    except LandingPageError as e:
        logger.error(f"[Landing] {e.detail}")
        return JSONResponse(status_code=e.status_code, content=e.to_payload())
    return HTMLResponse(content=content, media_type="text/html; charset=utf-8")
