from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from qrgate.constants import (
    DEFAULT_COLOR_DARK,
    DEFAULT_COLOR_LIGHT,
    DEFAULT_LOGO_RADIUS,
    DEFAULT_LOGO_SIZE_PERCENT,
    DEFAULT_SIZE,
    LOGO_RADIUS_MAX,
    LOGO_RADIUS_MIN,
    LOGO_SIZE_PERCENT_MAX,
    LOGO_SIZE_PERCENT_MIN,
    SIZE_PRESETS,
)
from qrgate.utils.colors import normalize_color


class QRKind(str, Enum):
    STATIC = "static"
    DYNAMIC = "dynamic"


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # naive timestamps are taken as UTC
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _check_size(value: Optional[int]) -> Optional[int]:
    if value is not None and value not in SIZE_PRESETS:
        raise ValueError(f"size must be one of {list(SIZE_PRESETS)}")
    return value


def _check_color(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return normalize_color(value)


class CamelModel(BaseModel):
    """camelCase on the wire and on disk, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class QRStyleIn(CamelModel):
    """Optional style attributes shared by drafts and partial updates."""

    color_dark: Optional[str] = None
    color_light: Optional[str] = None
    size: Optional[int] = None
    logo_data_url: Optional[str] = None
    logo_size_percent: Optional[int] = Field(None, ge=LOGO_SIZE_PERCENT_MIN, le=LOGO_SIZE_PERCENT_MAX)
    logo_radius: Optional[int] = Field(None, ge=LOGO_RADIUS_MIN, le=LOGO_RADIUS_MAX)

    @field_validator("size")
    @classmethod
    def validate_size(cls, v: Optional[int]) -> Optional[int]:
        return _check_size(v)

    @field_validator("color_dark", "color_light")
    @classmethod
    def validate_color(cls, v: Optional[str]) -> Optional[str]:
        return _check_color(v)


class QRCreate(QRStyleIn):
    """Draft submitted to the create endpoint."""

    name: Optional[str] = None
    # free text: anything but "dynamic" is refused as not persistable
    kind: Optional[str] = None
    content: str = ""
    expires_at: Optional[datetime] = None

    @field_validator("expires_at")
    @classmethod
    def expiry_as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)


class QRUpdate(QRStyleIn):
    """Partial update; only fields present in the request body are applied."""

    name: Optional[str] = None
    content: Optional[str] = None
    expires_at: Optional[datetime] = None

    @field_validator("expires_at")
    @classmethod
    def expiry_as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)


class QRRenderRequest(QRStyleIn):
    """Unsaved draft to render; dynamic drafts with an id encode the resolver URL."""

    id: Optional[str] = None
    kind: QRKind = QRKind.STATIC
    content: str = ""


class QRRecord(CamelModel):
    id: str
    name: str
    kind: QRKind = QRKind.DYNAMIC
    content: str
    expires_at: Optional[datetime] = None
    color_dark: str = DEFAULT_COLOR_DARK
    color_light: str = DEFAULT_COLOR_LIGHT
    # stored style values are not range checked; older files may hold any size
    size: int = Field(DEFAULT_SIZE, gt=0)
    logo_data_url: str = ""
    logo_size_percent: int = DEFAULT_LOGO_SIZE_PERCENT
    logo_radius: int = DEFAULT_LOGO_RADIUS
    created_at: datetime
    updated_at: datetime

    @model_validator(mode="before")
    @classmethod
    def legacy_type_field(cls, data):
        # older files name the kind "type"
        if isinstance(data, dict) and "kind" not in data and "type" in data:
            data = {**data, "kind": data["type"]}
        return data

    @field_validator("expires_at", mode="before")
    @classmethod
    def blank_expiry_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("expires_at", "created_at", "updated_at")
    @classmethod
    def timestamps_as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at < now


class StyleParams(BaseModel):
    """Fully resolved style passed to the renderer."""

    color_dark: str = DEFAULT_COLOR_DARK
    color_light: str = DEFAULT_COLOR_LIGHT
    size: int = DEFAULT_SIZE
    logo_data_url: str = ""
    logo_size_percent: int = DEFAULT_LOGO_SIZE_PERCENT
    logo_radius: int = DEFAULT_LOGO_RADIUS

    @classmethod
    def from_source(cls, source: BaseModel) -> "StyleParams":
        """Take style fields from a record or draft, defaulting the unset ones."""
        values = {
            name: getattr(source, name)
            for name in cls.model_fields
            if getattr(source, name, None) is not None
        }
        return cls(**values)
