"""CSS lengths and colors, as LaTeX wants them."""
import re

NUMBER_RE = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)\s*([a-zA-Z%]*)")
HEX_RE = re.compile(r"^#([0-9a-fA-F]+)")
RGB_RE = re.compile(
    r"^rgba?\(\s*([+-]?\d+)\s*,\s*([+-]?\d+)\s*,\s*([+-]?\d+)\s*(?:,[^)]*)?\)",
    re.IGNORECASE,
)
IMPORTANT_RE = re.compile(r"!\s*important", re.IGNORECASE)

PT_PER_UNIT: dict[str, float] = {
    "px": 72.0 / 96.0,
    "pt": 1.0,
    "em": 10.0,
    "rem": 10.0,
    "%": 0.01 * 400.0,
    "cm": 28.346,
    "mm": 2.8346,
    "in": 72.0,
}

NAMED_COLORS: dict[str, str] = {
    "black": "000000",
    "white": "FFFFFF",
    "red": "FF0000",
    "green": "008000",
    "blue": "0000FF",
    "yellow": "FFFF00",
    "cyan": "00FFFF",
    "magenta": "FF00FF",
    "gray": "808080",
    "grey": "808080",
    "silver": "C0C0C0",
    "maroon": "800000",
    "olive": "808000",
    "lime": "00FF00",
    "aqua": "00FFFF",
    "teal": "008080",
    "navy": "000080",
    "fuchsia": "FF00FF",
    "purple": "800080",
    "orange": "FFA500",
    "transparent": "FFFFFF",
}

BLACK = "000000"
WHITE = "FFFFFF"


def strip_important(value: str) -> str:
    """Remove any `!important` marker."""
    return IMPORTANT_RE.sub("", value).strip()


def length_to_pt(value: str | None) -> int:
    """Convert a CSS length to whole points, rounding toward zero."""
    if not value:
        return 0
    mobj = NUMBER_RE.match(strip_important(value))
    if not mobj:
        return 0
    number = float(mobj.group(1))
    factor = PT_PER_UNIT.get(mobj.group(2).lower(), 1.0)
    return int(number * factor)


def color_to_hex(value: str | None) -> str:
    """Convert a CSS color to `RRGGBB`; unknown colors are black."""
    if not value:
        return BLACK
    color = strip_important(value)

    if mobj := HEX_RE.match(color):
        digits = mobj.group(1)
        if len(digits) == 3:
            return "".join(c * 2 for c in digits).upper()
        if len(digits) == 6:
            return digits.upper()
        return BLACK

    if mobj := RGB_RE.match(color):
        channels = (max(0, min(255, int(g))) for g in mobj.groups())
        return "".join(f"{c:02X}" for c in channels)

    return NAMED_COLORS.get(color.lower(), BLACK)
