# qrgate/utils/colors.py
# Color string normalization for QR styles

import re

_HEX_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")
_RGB_RE = re.compile(r"^rgba?\(\s*(\d+)[\s,]+(\d+)[\s,]+(\d+)", re.IGNORECASE)


def _channel(raw: str) -> int:
    return max(0, min(255, int(raw)))


def normalize_color(value: str) -> str:
    """
    Return a lowercase #rrggbb color.

    Accepts #rgb, #rrggbb, rgb(r, g, b) and rgba(r, g, b, a); alpha is dropped.
    Raises ValueError for anything else.
    """
    c = (value or "").strip()
    if _HEX_RE.match(c):
        if len(c) == 4:
            c = "#" + "".join(ch * 2 for ch in c[1:])
        return c.lower()
    m = _RGB_RE.match(c)
    if m:
        r, g, b = (_channel(x) for x in m.groups())
        return f"#{r:02x}{g:02x}{b:02x}"
    raise ValueError(f"unsupported color value: {value!r}")
