# qrgate/services/renderer.py
# PNG rendering of QR codes with an optional centered logo

from __future__ import annotations

import base64
import binascii
import re
from io import BytesIO

import qrcode
import qrcode.constants
from qrcode.exceptions import DataOverflowError
from PIL import Image, ImageChops, ImageDraw, UnidentifiedImageError

from qrgate.constants import LOGO_MIN_EDGE, QR_BORDER_MODULES, RESOLVE_PATH
from qrgate.middleware.error_handler import ValidationFailedError
from qrgate.schemas.qr import StyleParams

_DATA_URL_RE = re.compile(r"^data:image/[a-zA-Z0-9.+-]+;base64,(?P<data>.+)$", re.DOTALL)


def build_resolve_url(base_url: str, record_id: str) -> str:
    """Payload of a dynamic code: the stable resolver address."""
    return base_url.rstrip("/") + RESOLVE_PATH.format(id=record_id)


def logo_geometry(size: int, size_percent: int, radius: int) -> tuple[int, int, int]:
    """Return (edge, offset, corner radius) of the logo box for a size x size image."""
    edge = max(LOGO_MIN_EDGE, round(size * size_percent / 100))
    offset = (size - edge) // 2
    corner = max(0, min(radius, edge // 2))
    return edge, offset, corner


def decode_logo(data_url: str) -> Image.Image:
    m = _DATA_URL_RE.match(data_url.strip())
    if not m:
        raise ValidationFailedError(
            "logo must be a base64 image data URL", details={"field": "logoDataUrl"}
        )
    try:
        raw = base64.b64decode(m.group("data"))
        logo = Image.open(BytesIO(raw))
        logo.load()
    except (binascii.Error, UnidentifiedImageError, OSError) as e:
        raise ValidationFailedError(
            "logo image could not be decoded", details={"field": "logoDataUrl"}
        ) from e
    return logo.convert("RGBA")


def _symbol(payload: str, style: StyleParams, with_logo: bool) -> Image.Image:
    # a logo hides the center modules, so use the highest correction level
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_H if with_logo else qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=QR_BORDER_MODULES,
    )
    qr.add_data(payload)
    try:
        qr.make(fit=True)
    except (DataOverflowError, ValueError) as e:
        # qrcode 8 reports overflow past version 40 as ValueError
        raise ValidationFailedError("content is too long for a QR code", details={"field": "content"}) from e
    img = qr.make_image(fill_color=style.color_dark, back_color=style.color_light).convert("RGBA")
    return img.resize((style.size, style.size), Image.Resampling.NEAREST)


def _overlay_logo(base: Image.Image, logo: Image.Image, style: StyleParams) -> Image.Image:
    edge, offset, corner = logo_geometry(style.size, style.logo_size_percent, style.logo_radius)
    logo = logo.resize((edge, edge), Image.Resampling.LANCZOS)

    mask = Image.new("L", (edge, edge), 0)
    ImageDraw.Draw(mask).rounded_rectangle((0, 0, edge - 1, edge - 1), radius=corner, fill=255)
    mask = ImageChops.multiply(mask, logo.getchannel("A"))

    base.paste(logo, (offset, offset), mask)
    return base


def render_png(payload: str, style: StyleParams) -> bytes:
    """Encode ``payload`` and return PNG bytes of a style.size square image."""
    if not payload:
        raise ValidationFailedError("content is required", details={"field": "content"})

    logo = decode_logo(style.logo_data_url) if style.logo_data_url else None
    img = _symbol(payload, style, with_logo=logo is not None)
    if logo is not None:
        img = _overlay_logo(img, logo, style)

    output = BytesIO()
    img.save(output, format="PNG")
    return output.getvalue()
