# qrgate/routers/resolve.py
# Public resolver endpoint embedded in dynamic codes

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates

from qrgate.config import TEMPLATE_PATH
from qrgate.constants import NO_STORE_HEADERS
from qrgate.middleware.error_handler import AppError
from qrgate.services.resolver import QRResolver, ResolveKind


router = APIRouter(tags=["Resolve"])

templates = Jinja2Templates(directory=TEMPLATE_PATH)


def get_resolver(request: Request) -> QRResolver:
    return request.app.state.qr_resolver


@router.get("/qrs/{record_id}/resolve")
async def resolve_qr(
    record_id: str,
    request: Request,
    resolver: QRResolver = Depends(get_resolver),
) -> Response:
    """Redirect to URL content, show text content, or render an error page. Never cached."""
    try:
        resolution = await resolver.resolve(record_id)
    except AppError as e:
        if e.status_code >= 500:
            raise
        return templates.TemplateResponse(
            request=request,
            name="message.html",
            context={"message": e.message},
            status_code=e.status_code,
            headers=NO_STORE_HEADERS,
        )

    if resolution.kind == ResolveKind.REDIRECT:
        return RedirectResponse(resolution.value, status_code=307, headers=NO_STORE_HEADERS)
    return PlainTextResponse(
        resolution.value,
        headers={**NO_STORE_HEADERS, "X-Content-Type-Options": "nosniff"},
    )
