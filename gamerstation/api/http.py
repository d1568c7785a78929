"""
JSON response helper shared by the data routes.

Every data route sets Cache-Control explicitly; the default is ``no-store``.
"""

from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse

from gamerstation.core import config


def json_response(
    content: Any,
    status_code: int = 200,
    cache_control: str = config.CACHE_NO_STORE,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    return JSONResponse(
        content=content,
        status_code=status_code,
        headers={"Cache-Control": cache_control, **(headers or {})},
    )
