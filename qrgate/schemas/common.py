from __future__ import annotations

from pydantic import BaseModel


class OkResponse(BaseModel):
    ok: bool = True


class ComponentHealth(BaseModel):
    """Individual component health."""
    status: str
    latency_ms: float = 0.0
    message: str = ""
