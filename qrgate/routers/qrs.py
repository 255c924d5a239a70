# qrgate/routers/qrs.py
# REST API for dynamic QR records

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from starlette.concurrency import run_in_threadpool

from qrgate.config import Settings
from qrgate.constants import NO_STORE_HEADERS, SIZE_PRESETS
from qrgate.middleware.error_handler import ValidationFailedError
from qrgate.schemas.common import OkResponse
from qrgate.schemas.qr import QRCreate, QRRecord, QRUpdate, StyleParams
from qrgate.services.qr_service import QRService
from qrgate.services.renderer import build_resolve_url, render_png


router = APIRouter(tags=["QR codes"])


def get_service(request: Request) -> QRService:
    """Service lives on app.state so its write lock is shared by all requests."""
    return request.app.state.qr_service


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def public_base_url(request: Request, settings: Settings) -> str:
    return settings.PUBLIC_BASE_URL or str(request.base_url)


def _no_store(response: Response) -> None:
    response.headers.update(NO_STORE_HEADERS)


@router.get("/qrs", response_model=List[QRRecord])
async def list_qrs(response: Response, service: QRService = Depends(get_service)) -> List[QRRecord]:
    _no_store(response)
    return await service.list_all()


@router.post("/qrs", response_model=QRRecord, status_code=status.HTTP_201_CREATED)
async def create_qr(
    payload: QRCreate,
    response: Response,
    service: QRService = Depends(get_service),
) -> QRRecord:
    _no_store(response)
    return await service.create(payload)


@router.get("/qrs/{record_id}", response_model=QRRecord)
async def get_qr(record_id: str, response: Response, service: QRService = Depends(get_service)) -> QRRecord:
    _no_store(response)
    return await service.get(record_id)


@router.put("/qrs/{record_id}", response_model=QRRecord)
async def update_qr(
    record_id: str,
    payload: QRUpdate,
    response: Response,
    service: QRService = Depends(get_service),
) -> QRRecord:
    _no_store(response)
    return await service.update(record_id, payload)


@router.delete("/qrs/{record_id}", response_model=OkResponse)
async def delete_qr(record_id: str, response: Response, service: QRService = Depends(get_service)) -> OkResponse:
    _no_store(response)
    await service.delete(record_id)
    return OkResponse(ok=True)


@router.get("/qrs/{record_id}/image.png", response_class=Response)
async def qr_image(
    record_id: str,
    request: Request,
    size: Optional[int] = Query(None, description="Override the stored size preset"),
    service: QRService = Depends(get_service),
    settings: Settings = Depends(get_settings),
) -> Response:
    """PNG of a saved dynamic code; the payload is its resolver URL, not its content."""
    record = await service.get(record_id)
    style = StyleParams.from_source(record)
    if size is not None:
        if size not in SIZE_PRESETS:
            raise ValidationFailedError(
                f"size must be one of {list(SIZE_PRESETS)}", details={"field": "size"}
            )
        style = style.model_copy(update={"size": size})
    payload = build_resolve_url(public_base_url(request, settings), record.id)
    png = await run_in_threadpool(render_png, payload, style)
    return Response(
        content=png,
        media_type="image/png",
        headers={**NO_STORE_HEADERS, "Content-Disposition": f'inline; filename="qr-{record.id}.png"'},
    )
