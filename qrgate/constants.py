# qrgate/constants.py
# Defaults and limits for QR record style attributes

DEFAULT_NAME: str = "Untitled"

DEFAULT_COLOR_DARK: str = "#0f172a"
DEFAULT_COLOR_LIGHT: str = "#ffffff"

SIZE_PRESETS: tuple[int, ...] = (240, 320, 420, 560)
DEFAULT_SIZE: int = 320

DEFAULT_LOGO_SIZE_PERCENT: int = 20
LOGO_SIZE_PERCENT_MIN: int = 5
LOGO_SIZE_PERCENT_MAX: int = 50

DEFAULT_LOGO_RADIUS: int = 12
LOGO_RADIUS_MIN: int = 0
LOGO_RADIUS_MAX: int = 50

# smallest logo edge in pixels, whatever the percentage
LOGO_MIN_EDGE: int = 24

# quiet zone around the symbol, in modules
QR_BORDER_MODULES: int = 2

RESOLVE_PATH: str = "/api/qrs/{id}/resolve"

NO_STORE_HEADERS: dict[str, str] = {"Cache-Control": "no-store"}
