"""Walking the tree: searches, titles, table geometry, pretty printing."""
import collections
import logging
import typing as t

import attr
from lxml import etree

from html2tex.dom import Node
from html2tex.dom import collapse_whitespace
from html2tex.dom import is_whitespace_only
from html2tex.errors import ErrorCode
from html2tex.errors import set_error
from html2tex.styles import DeclarationSet
from html2tex.styles import OptionalDeclarationSet
from html2tex.styles import merge
from html2tex.styles import parse_style

Predicate = t.Callable[[Node], bool]

MAX_COLSPAN = 1000
TABLE_SECTIONS = frozenset(["thead", "tbody", "tfoot"])
TABLE_STRUCTURE = frozenset(["caption", "thead", "tbody", "tfoot", "tr", "td", "th"])
TABLE_CELLS = frozenset(["td", "th"])


@attr.s(slots=True, frozen=True)
class FoundElement:
    """A node, plus the style in effect on it."""

    node: Node = attr.ib()
    style: DeclarationSet = attr.ib(factory=DeclarationSet)


def effective_style(node: Node, inherited: OptionalDeclarationSet) -> DeclarationSet:
    """What `node` sees: inherited properties merged with its inline style."""
    if node.is_element and (style := node.get_attribute("style")):
        return merge(inherited, parse_style(style))
    if inherited is None:
        return DeclarationSet()
    return inherited.copy()


def iter_dfs(root: Node) -> t.Iterator[Node]:
    """Root, then its descendants, in document order."""
    yield root
    yield from root.descendants()


def iter_bfs(root: Node) -> t.Iterator[Node]:
    """Root, then its descendants, level by level."""
    queue = collections.deque([root])
    while queue:
        node = queue.popleft()
        yield node
        queue.extend(node.children)


def iter_styled(
    root: Node, inherited: OptionalDeclarationSet = None
) -> t.Iterator[FoundElement]:
    """Depth-first, carrying the computed style down."""
    stack = [(root, inherited)]
    while stack:
        node, parent_style = stack.pop()
        style = effective_style(node, parent_style)
        yield FoundElement(node, style)
        stack.extend((child, style) for child in reversed(node.children))


def search_tree(
    root: Node, predicate: Predicate, inherited: OptionalDeclarationSet = None
) -> FoundElement | None:
    """First node (depth-first) matching `predicate`, with its style."""
    for found in iter_styled(root, inherited):
        if predicate(found.node):
            return FoundElement(found.node, found.style.copy())
    return None


def search_all(
    root: Node, predicate: Predicate, inherited: OptionalDeclarationSet = None
) -> list[FoundElement]:
    """Every node (depth-first) matching `predicate`, with its style."""
    return [found for found in iter_styled(root, inherited) if predicate(found.node)]


def has_id(element_id: str) -> Predicate:
    return lambda node: node.is_element and node.get_attribute("id") == element_id


def has_class(class_name: str) -> Predicate:
    return lambda node: node.is_element and class_name in node.classes


def has_tag(tag: str) -> Predicate:
    tag = tag.lower()
    return lambda node: node.tag == tag


def gather_text(node: Node) -> str:
    """All text below, with the spaces trimmed off text nodes put back."""
    pieces = []
    for text in iter_dfs(node):
        if text.is_text and text.content:
            pieces.append(" " if text.space_before else "")
            pieces.append(text.content)
            pieces.append(" " if text.space_after else "")
    return collapse_whitespace("".join(pieces))


def extract_title(root: Node) -> str | None:
    """Text of the first <title>, breadth first; None if there is none."""
    for node in iter_bfs(root):
        if node.tag != "title":
            continue
        title = gather_text(node)
        if not title:
            set_error(ErrorCode.PARSE, "Title element contains no text content")
            return None
        return title
    return None


def first_child_tagged(node: Node, tag: str) -> Node | None:
    """First direct child with a given tag."""
    return next((child for child in node.children if child.tag == tag), None)


def table_rows(table: Node) -> t.Iterator[Node]:
    """The <tr> elements of a table, looking into thead/tbody/tfoot."""
    queue = collections.deque(table.children)
    while queue:
        node = queue.popleft()
        if node.tag == "tr":
            yield node
        elif node.tag in TABLE_SECTIONS:
            queue.extend(node.children)


def colspan(cell: Node) -> int:
    """A cell's colspan, sanitized."""
    try:
        span = int((cell.get_attribute("colspan") or "1").strip())
    except ValueError:
        return 1
    if 1 <= span <= MAX_COLSPAN:
        return span
    return 1


def count_table_columns(table: Node) -> int:
    """Widest row, counting colspans; at least one."""
    widths = (
        sum(colspan(cell) for cell in row.children if cell.tag in TABLE_CELLS)
        for row in table_rows(table)
    )
    return max(widths, default=1) or 1


def table_contains_only_images(table: Node) -> bool:
    """Is every non-structural descendant an <img> (or whitespace)?"""
    has_images = False
    queue = collections.deque(table.children)
    while queue:
        node = queue.popleft()
        if node.is_text:
            if not is_whitespace_only(node.content):
                return False
        elif node.tag == "img":
            has_images = True
        elif node.tag in TABLE_STRUCTURE:
            queue.extend(node.children)
        else:
            return False
    return has_images


def first_image(cell: Node) -> Node | None:
    """First <img> below a cell, breadth first."""
    return next((node for node in iter_bfs(cell) if node.tag == "img"), None)


def is_nested_table(node: Node) -> bool:
    """A table inside another table."""
    return node.tag == "table" and node.has_ancestor("table")


def prettify(root: Node) -> str:
    """Re-serialize a tree as indented HTML, for debugging."""
    pieces: list[str] = []
    for child in root.children if root.is_root else [root]:
        if child.is_text:
            pieces.append(f"{child.content}\n")
            continue
        element = _to_lxml(child)
        pieces.append(
            etree.tostring(element, pretty_print=True, method="html", encoding="unicode")
        )
    return "".join(pieces)


def _to_lxml(node: Node) -> etree._Element:
    try:
        element = etree.Element(node.tag)
    except ValueError:
        logging.debug("Cannot pretty-print <%s>, using <span>", node.tag)
        element = etree.Element("span")

    for attribute in node.attributes:
        try:
            element.set(attribute.name, attribute.value or "")
        except ValueError:
            logging.debug("Cannot pretty-print attribute %r", attribute.name)

    previous: etree._Element | None = None
    for child in node.children:
        if child.is_text:
            if previous is None:
                element.text = (element.text or "") + child.content
            else:
                previous.tail = (previous.tail or "") + child.content
            continue
        previous = _to_lxml(child)
        element.append(previous)
    return element
