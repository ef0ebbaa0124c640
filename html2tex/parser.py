"""A forgiving HTML tokenizer and tree builder."""
import logging
import re

from html2tex.dom import Attribute
from html2tex.dom import Node
from html2tex.dom import is_void_element
from html2tex.dom import is_whitespace_only
from html2tex.errors import ErrorCode
from html2tex.errors import clear_error
from html2tex.errors import raise_error

RAW_TEXT_TAGS = ("script", "style")
PREFORMATTED_TAGS = frozenset(["pre", "code", "textarea", "script", "style"])
ESSENTIAL_VOID_TAGS = frozenset(["br", "hr", "img", "input", "meta", "link"])

WHITESPACE = " \t\n\r\f\v"
TAG_NAME_RE = re.compile(r"[A-Za-z0-9][A-Za-z0-9-]*")
ATTR_NAME_RE = re.compile(r"[^\s\"'>/=]+")
RAW_OPEN_RE = re.compile(r"<\s*(script|style)(?=[\s/>]|$)", re.IGNORECASE)
RAW_CLOSE_RE = {
    tag: re.compile(rf"<\s*/\s*{tag}(?=[\s/>]|$)", re.IGNORECASE)
    for tag in RAW_TEXT_TAGS
}


def compress_html(html: str) -> str:
    """Collapse whitespace between tags, leaving raw and quoted text alone."""
    out: list[str] = []
    length = len(html)
    pos = 0
    in_tag = False
    quote = ""
    raw_tag = ""
    after_gt = False
    in_space = False

    while pos < length:
        char = html[pos]

        if not in_tag and html.startswith("<!--", pos):
            end = html.find("-->", pos + 4)
            end = length if end < 0 else end + 3
            out.append(html[pos:end])
            pos = end
            after_gt = True
            in_space = False
            continue

        if raw_tag and not in_tag:
            mobj = RAW_CLOSE_RE[raw_tag].search(html, pos)
            end = length if mobj is None else mobj.start()
            out.append(html[pos:end])
            pos = end
            raw_tag = ""
            continue

        if in_tag:
            out.append(char)
            if quote:
                if char == quote:
                    quote = ""
            elif char in "\"'":
                quote = char
            elif char == ">":
                in_tag = False
                after_gt = True
                in_space = False
            pos += 1
            continue

        if char == "<":
            if mobj := RAW_OPEN_RE.match(html, pos):
                raw_tag = mobj.group(1).lower()
            in_tag = True
            in_space = False
            out.append(char)
        elif char in WHITESPACE:
            if not after_gt and not in_space:
                out.append(" ")
            in_space = True
        else:
            out.append(char)
            after_gt = False
            in_space = False
        pos += 1

    return "".join(out)


class HtmlParser:
    """Single pass over the text, building a tree as tags come and go."""

    def __init__(self, html: str) -> None:
        self.html = html
        self.length = len(html)
        self.pos = 0
        self.root = Node()
        self.stack: list[Node] = [self.root]

    @property
    def current(self) -> Node:
        return self.stack[-1]

    def parse(self) -> Node:
        """Return the synthetic root."""
        while self.pos < self.length:
            if self.html[self.pos] == "<" and self.parse_markup():
                continue
            self.parse_text()
        return self.root

    def parse_markup(self) -> bool:
        """Handle whatever starts at `<`; False means it was just text."""
        html = self.html
        start = self.pos
        if html.startswith("<!--", start):
            end = html.find("-->", start + 4)
            self.pos = self.length if end < 0 else end + 3
            return True
        if html.startswith("<!", start) or html.startswith("<?", start):
            self.skip_past(">")
            return True
        if html.startswith("</", start):
            return self.parse_end_tag()
        return self.parse_start_tag()

    def skip_past(self, marker: str) -> None:
        end = self.html.find(marker, self.pos)
        self.pos = self.length if end < 0 else end + len(marker)

    def skip_whitespace(self) -> None:
        while self.pos < self.length and self.html[self.pos] in WHITESPACE:
            self.pos += 1

    def parse_end_tag(self) -> bool:
        self.pos += 2
        self.skip_whitespace()
        mobj = TAG_NAME_RE.match(self.html, self.pos)
        if not mobj:
            self.skip_past(">")
            return True
        tag = mobj.group().lower()
        self.pos = mobj.end()
        self.skip_past(">")

        for depth in range(len(self.stack) - 1, 0, -1):
            if self.stack[depth].tag == tag:
                del self.stack[depth:]
                break
        else:
            logging.debug("Stray </%s> ignored", tag)
        return True

    def parse_start_tag(self) -> bool:
        mobj = TAG_NAME_RE.match(self.html, self.pos + 1)
        if not mobj:
            return False
        tag = mobj.group().lower()
        self.pos = mobj.end()
        element = Node.element(tag, self.parse_attributes())

        self_closing = False
        if self.html.startswith("/", self.pos):
            self_closing = True
            self.pos += 1
            self.skip_whitespace()
        if self.html.startswith(">", self.pos):
            self.pos += 1

        self.current.append(element)
        if is_void_element(tag) or self_closing:
            return True
        if tag in RAW_TEXT_TAGS:
            self.parse_raw_text(element)
            return True
        self.stack.append(element)
        return True

    def parse_attributes(self) -> list[Attribute]:
        html = self.html
        attributes = []
        while True:
            self.skip_whitespace()
            if self.pos >= self.length or html[self.pos] in ">/":
                return attributes
            mobj = ATTR_NAME_RE.match(html, self.pos)
            if not mobj:
                self.pos += 1
                continue
            self.pos = mobj.end()
            attribute = Attribute(mobj.group().lower())
            self.skip_whitespace()
            if html.startswith("=", self.pos):
                self.pos += 1
                self.skip_whitespace()
                attribute.value = self.parse_attribute_value()
            attributes.append(attribute)

    def parse_attribute_value(self) -> str:
        html = self.html
        if self.pos >= self.length:
            return ""
        quote = html[self.pos]
        if quote in "\"'":
            end = html.find(quote, self.pos + 1)
            if end < 0:
                end = self.length
            value = html[self.pos + 1:end]
            self.pos = min(end + 1, self.length)
            return value

        start = self.pos
        while self.pos < self.length:
            char = html[self.pos]
            if char in WHITESPACE or char == ">" or html.startswith("/>", self.pos):
                break
            self.pos += 1
        return html[start:self.pos]

    def parse_raw_text(self, element: Node) -> None:
        mobj = RAW_CLOSE_RE[element.tag].search(self.html, self.pos)
        end = self.length if mobj is None else mobj.start()
        if text := self.html[self.pos:end]:
            element.append(Node.text(text))
        self.pos = end
        if mobj is not None:
            self.skip_past(">")

    def parse_text(self) -> None:
        end = self.html.find("<", self.pos + 1)
        if end < 0:
            end = self.length
        raw = self.html[self.pos:end]
        self.pos = end

        text = raw.strip(WHITESPACE)
        if not text:
            return
        node = self.current.append(Node.text(text))
        node.space_before = raw[0] in WHITESPACE
        node.space_after = raw[-1] in WHITESPACE
        if raw.startswith("<"):
            logging.debug("Stray '<' kept as text at offset %d", self.pos - len(raw))


def parse_html(html: str | bytes) -> Node:
    """Build a tree from (already compressed) HTML."""
    clear_error()
    if html is None:
        raise_error(ErrorCode.NULL, "No HTML to parse")
    if isinstance(html, bytes):
        html = html.decode("UTF-8", errors="replace")
    return HtmlParser(html).parse()


def parse_compressed(html: str | bytes) -> Node:
    """Compress, then parse."""
    if isinstance(html, bytes):
        html = html.decode("UTF-8", errors="replace")
    return parse_html(compress_html(html))


def minify_tree(root: Node) -> Node:
    """A copy of the tree without ignorable whitespace and empty elements."""
    return _minify_node(root, preformatted=False) or Node()


def _minify_node(node: Node, preformatted: bool) -> Node | None:
    if node.is_text:
        if preformatted:
            return _copy_text(node, node.content)
        if is_whitespace_only(node.content):
            return None
        return _copy_text(node, " ".join(node.content.split()))

    inner = preformatted or node.tag in PREFORMATTED_TAGS
    clone = Node(tag=node.tag, attributes=[Attribute(a.name, a.value) for a in node.attributes])
    for child in node.children:
        if (minified := _minify_node(child, inner)) is not None:
            clone.append(minified)

    if node.tag is None or clone.children or preformatted:
        return clone
    if node.tag in ESSENTIAL_VOID_TAGS:
        return clone
    logging.debug("Minify: dropping empty <%s>", node.tag)
    return None


def _copy_text(node: Node, content: str) -> Node:
    clone = Node.text(content)
    clone.space_before = node.space_before
    clone.space_after = node.space_after
    return clone
