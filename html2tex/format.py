"""Style property bits."""
import enum


class CssProperty(enum.Flag):
    """Tracked CSS properties, and LaTeX wrappers already applied."""

    NONE = 0

    BOLD = enum.auto()
    ITALIC = enum.auto()
    UNDERLINE = enum.auto()
    COLOR = enum.auto()
    BACKGROUND = enum.auto()
    FONT_FAMILY = enum.auto()
    FONT_SIZE = enum.auto()
    TEXT_ALIGN = enum.auto()
    BORDER = enum.auto()
    MARGIN_LEFT = enum.auto()
    MARGIN_RIGHT = enum.auto()
    MARGIN_TOP = enum.auto()
    MARGIN_BOTTOM = enum.auto()


class Alignment(enum.Flag):
    """Alignment environments opened by an element."""

    NONE = 0

    CENTER = 1
    FLUSHRIGHT = 2
    FLUSHLEFT = 4
    JUSTIFY = 8


TRACKED_PROPERTIES: dict[str, CssProperty] = {
    "font-weight": CssProperty.BOLD,
    "font-style": CssProperty.ITALIC,
    "text-decoration": CssProperty.UNDERLINE,
    "color": CssProperty.COLOR,
    "background-color": CssProperty.BACKGROUND,
    "font-family": CssProperty.FONT_FAMILY,
    "font-size": CssProperty.FONT_SIZE,
    "text-align": CssProperty.TEXT_ALIGN,
    "border": CssProperty.BORDER,
    "margin-left": CssProperty.MARGIN_LEFT,
    "margin-right": CssProperty.MARGIN_RIGHT,
    "margin-top": CssProperty.MARGIN_TOP,
    "margin-bottom": CssProperty.MARGIN_BOTTOM,
}

INHERITABLE_PROPERTIES = frozenset(
    [
        "font-weight",
        "font-style",
        "font-family",
        "font-size",
        "color",
        "text-align",
        "text-decoration",
    ]
)
