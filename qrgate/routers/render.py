# qrgate/routers/render.py
# Image rendering for unsaved drafts (static codes never touch the store)

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response
from starlette.concurrency import run_in_threadpool

from qrgate.config import Settings
from qrgate.constants import NO_STORE_HEADERS
from qrgate.routers.qrs import get_settings, public_base_url
from qrgate.schemas.qr import QRKind, QRRenderRequest, StyleParams
from qrgate.services.renderer import build_resolve_url, render_png


router = APIRouter(tags=["Render"])


@router.post("/render", response_class=Response)
async def render_draft(
    payload: QRRenderRequest,
    request: Request,
    settings: Settings = Depends(get_settings),
) -> Response:
    """
    Render a draft to PNG.

    Static drafts encode their content directly. A dynamic draft that
    already has an id encodes its resolver URL, so the preview matches
    what gets printed.
    """
    if payload.kind == QRKind.DYNAMIC and payload.id:
        data = build_resolve_url(public_base_url(request, settings), payload.id)
    else:
        data = payload.content
    png = await run_in_threadpool(render_png, data, StyleParams.from_source(payload))
    return Response(
        content=png,
        media_type="image/png",
        headers={**NO_STORE_HEADERS, "Content-Disposition": 'attachment; filename="qrcode.png"'},
    )
