"""Browsing a parsed document."""
import typing as t

from html2tex import visitor
from html2tex.dom import Node
from html2tex.dom import is_block_element
from html2tex.dom import is_excluded_element
from html2tex.dom import is_inline_element
from html2tex.dom import is_void_element
from html2tex.parser import minify_tree
from html2tex.parser import parse_compressed
from html2tex.styles import DeclarationSet


def computed_style(node: Node) -> DeclarationSet:
    """The style in effect on a node, resolved from the root down."""
    style = None
    for ancestor in reversed([node, *node.ancestors()]):
        style = visitor.effective_style(ancestor, style)
    return style


class HtmlDocument:
    """A node of a parsed document, plus the style in effect on it."""

    def __init__(self, node: Node, style: DeclarationSet | None = None) -> None:
        self.node = node
        self._style = style

    @classmethod
    def from_html(cls, html: str | bytes) -> "HtmlDocument":
        """Parse, and wrap the root."""
        return cls(parse_compressed(html))

    @classmethod
    def _wrap(cls, node: Node | None) -> t.Optional["HtmlDocument"]:
        return None if node is None else cls(node)

    @property
    def tag_name(self) -> str | None:
        return self.node.tag

    @property
    def text_content(self) -> str:
        return visitor.gather_text(self.node)

    def get_attribute(self, name: str) -> str | None:
        return self.node.get_attribute(name)

    def has_attribute(self, name: str) -> bool:
        return self.node.has_attribute(name)

    @property
    def style(self) -> DeclarationSet:
        """Inherited properties merged with the inline style."""
        if self._style is None:
            self._style = computed_style(self.node)
        return self._style.copy()

    @property
    def parent(self) -> t.Optional["HtmlDocument"]:
        return self._wrap(self.node.parent)

    @property
    def next_sibling(self) -> t.Optional["HtmlDocument"]:
        return self._wrap(self.node.next_sibling)

    @property
    def previous_sibling(self) -> t.Optional["HtmlDocument"]:
        return self._wrap(self.node.previous_sibling)

    @property
    def first_child(self) -> t.Optional["HtmlDocument"]:
        return self._wrap(self.node.children[0] if self.node.children else None)

    @property
    def last_child(self) -> t.Optional["HtmlDocument"]:
        return self._wrap(self.node.children[-1] if self.node.children else None)

    @property
    def children(self) -> list["HtmlDocument"]:
        return [HtmlDocument(child) for child in self.node.children]

    @property
    def child_count(self) -> int:
        return len(self.node.children)

    def __iter__(self) -> t.Iterator["HtmlDocument"]:
        return iter(self.children)

    def __len__(self) -> int:
        return self.child_count

    def is_block(self) -> bool:
        return is_block_element(self.node.tag)

    def is_inline(self) -> bool:
        return is_inline_element(self.node.tag)

    def is_void(self) -> bool:
        return is_void_element(self.node.tag)

    def is_excluded(self) -> bool:
        return is_excluded_element(self.node.tag)

    def _inherited(self) -> DeclarationSet | None:
        parent = self.node.parent
        return None if parent is None else computed_style(parent)

    def _find(self, predicate: visitor.Predicate) -> t.Optional["HtmlDocument"]:
        found = visitor.search_tree(self.node, predicate, self._inherited())
        return None if found is None else HtmlDocument(found.node, found.style)

    def _find_all(self, predicate: visitor.Predicate) -> list["HtmlDocument"]:
        return [
            HtmlDocument(found.node, found.style)
            for found in visitor.search_all(self.node, predicate, self._inherited())
        ]

    def get_element_by_id(self, element_id: str) -> t.Optional["HtmlDocument"]:
        """First element (depth first) with this id."""
        return self._find(visitor.has_id(element_id))

    def get_element_by_class_name(self, class_name: str) -> t.Optional["HtmlDocument"]:
        """First element (depth first) with this class among its classes."""
        return self._find(visitor.has_class(class_name))

    def find_all_by_id(self, element_id: str) -> list["HtmlDocument"]:
        return self._find_all(visitor.has_id(element_id))

    def find_all_by_class_name(self, class_name: str) -> list["HtmlDocument"]:
        return self._find_all(visitor.has_class(class_name))

    def has_element_with_id(self, element_id: str) -> bool:
        return self.get_element_by_id(element_id) is not None

    def has_element_with_class(self, class_name: str) -> bool:
        return self.get_element_by_class_name(class_name) is not None

    def prettify(self) -> str:
        """Indented HTML, for looking at."""
        return visitor.prettify(self.node)

    def minify(self) -> "HtmlDocument":
        """A copy without ignorable whitespace and empty elements."""
        return HtmlDocument(minify_tree(self.node))

    def __repr__(self) -> str:
        return f"HtmlDocument({self.node})"
