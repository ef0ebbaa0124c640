"""Inline CSS declarations: parsing, lookup and inheritance."""
import dataclasses as dcl
import logging
import re
import typing as t

from html2tex.format import CssProperty
from html2tex.format import INHERITABLE_PROPERTIES
from html2tex.format import TRACKED_PROPERTIES

MAX_NAME_LENGTH = 128
MAX_VALUE_LENGTH = 65535
FORBIDDEN_NAME_CHARS = frozenset('<>;"\'')
MARGIN_SIDES = ("margin-top", "margin-right", "margin-bottom", "margin-left")
IMPORTANT_RE = re.compile(r"\s*!\s*important\s*$", re.IGNORECASE)

OptionalDeclarationSet = t.Union["DeclarationSet", None]


@dcl.dataclass
class Declaration:
    """A single `name: value [!important]`."""

    name: str
    value: str
    important: bool = False

    def __str__(self) -> str:
        if self.important:
            return f"{self.name}: {self.value} !important"
        return f"{self.name}: {self.value}"


class DeclarationSet:
    """Insertion-ordered declarations, plus a mask of the tracked ones."""

    def __init__(self, declarations: t.Iterable[Declaration] = ()) -> None:
        self._declarations: dict[str, Declaration] = {}
        self.mask = CssProperty.NONE
        for declaration in declarations:
            self.set(declaration.name, declaration.value, declaration.important)

    def set(self, name: str, value: str, important: bool = False) -> bool:
        """Add or overwrite a declaration; False if it was rejected."""
        key = name.strip().lower()
        if not key or len(key) > MAX_NAME_LENGTH or len(value) > MAX_VALUE_LENGTH:
            return False
        if FORBIDDEN_NAME_CHARS.intersection(key):
            logging.debug("Rejecting CSS property %r", name)
            return False
        if key == "margin":
            return self._set_margin_shorthand(value, important)

        if key in self._declarations:
            declaration = self._declarations[key]
            declaration.value = value
            declaration.important = important
        else:
            self._declarations[key] = Declaration(key, value, important)
        self.mask |= TRACKED_PROPERTIES.get(key, CssProperty.NONE)
        return True

    def _set_margin_shorthand(self, value: str, important: bool) -> bool:
        tokens = value.split()
        if not 1 <= len(tokens) <= 4:
            return False
        for token in tokens:
            if not any(c.isdigit() for c in token) and token not in ("auto", "inherit"):
                return False

        if len(tokens) == 1:
            sides = tokens * 4
        elif len(tokens) == 2:
            sides = [tokens[0], tokens[1], tokens[0], tokens[1]]
        elif len(tokens) == 3:
            sides = [tokens[0], tokens[1], tokens[2], tokens[1]]
        else:
            sides = tokens
        for side, token in zip(MARGIN_SIDES, sides):
            self.set(side, token, important)
        return True

    def get(self, name: str) -> str | None:
        """Value of a property, if present."""
        declaration = self._declarations.get(name.lower())
        if declaration is None:
            return None
        return declaration.value

    def declaration(self, name: str) -> Declaration | None:
        """The whole declaration, if present."""
        return self._declarations.get(name.lower())

    def remove(self, name: str) -> bool:
        """Drop a property; False if it was not there."""
        key = name.lower()
        if self._declarations.pop(key, None) is None:
            return False
        self.mask &= ~TRACKED_PROPERTIES.get(key, CssProperty.NONE)
        return True

    def has(self, flag: CssProperty) -> bool:
        """Is a tracked property present?"""
        return bool(self.mask & flag)

    def copy(self) -> "DeclarationSet":
        """Deep copy."""
        return DeclarationSet(dcl.replace(d) for d in self._declarations.values())

    def inherited(self) -> "DeclarationSet":
        """Only the declarations a child element inherits."""
        return DeclarationSet(
            dcl.replace(d)
            for d in self._declarations.values()
            if d.name in INHERITABLE_PROPERTIES
        )

    def __contains__(self, name: str) -> bool:
        return name.lower() in self._declarations

    def __iter__(self) -> t.Iterator[Declaration]:
        return iter(self._declarations.values())

    def __len__(self) -> int:
        return len(self._declarations)

    def __bool__(self) -> bool:
        return bool(self._declarations)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DeclarationSet):
            return NotImplemented
        return list(self) == list(other) and self.mask == other.mask

    def __repr__(self) -> str:
        return f"DeclarationSet({'; '.join(str(d) for d in self)})"


def parse_style(text: str | None) -> DeclarationSet:
    """Parse the contents of a `style` attribute."""
    result = DeclarationSet()
    if not text:
        return result

    for chunk in text.split(";"):
        name, colon, value = chunk.partition(":")
        if not colon:
            continue
        name = name.strip()
        value = value.strip()
        important = False
        if mobj := IMPORTANT_RE.search(value):
            important = True
            value = value[: mobj.start()].strip()
        if not name or not value:
            continue
        result.set(name, value, important)
    return result


def merge(parent: OptionalDeclarationSet, child: OptionalDeclarationSet) -> DeclarationSet:
    """What a child element sees: inheritable parent properties, then its own."""
    if parent is None:
        result = DeclarationSet()
    else:
        result = parent.inherited()
    if child is not None:
        for declaration in child:
            result.set(declaration.name, declaration.value, declaration.important)
    return result
