"""The tree we parse HTML into."""
import dataclasses as dcl
import re
import typing as t

VOID_TAGS = frozenset(
    "area base br col embed hr img input link meta param source track wbr".split()
)

EXCLUDED_TAGS = frozenset(
    """
    script style link meta head noscript template iframe form input label
    canvas svg video source audio object button map area frame frameset
    noframes nav picture progress select option param search samp track
    var wbr mark meter optgroup q blockquote bdo
    """.split()
)

BLOCK_TAGS = frozenset(
    """
    div p h1 h2 h3 h4 h5 h6 ul ol li table tr td th blockquote section
    article header footer nav aside main figure figcaption caption
    """.split()
)

INLINE_TAGS = frozenset(
    """
    a abbr b bdi bdo cite code data dfn em font i kbd mark q rp rt ruby
    samp small span strong sub sup time u var wbr br img map object
    button input label meter output progress select textarea
    """.split()
)

WHITESPACE_RE = re.compile(r"\s+")

OptionalNode = t.Union["Node", None]


def is_void_element(tag: str | None) -> bool:
    """Elements that never have children."""
    return tag in VOID_TAGS


def is_excluded_element(tag: str | None) -> bool:
    """Elements dropped, subtree and all, from the output."""
    return tag in EXCLUDED_TAGS


def is_block_element(tag: str | None) -> bool:
    """Elements that may open alignment environments."""
    return tag in BLOCK_TAGS


def is_inline_element(tag: str | None) -> bool:
    return tag in INLINE_TAGS


def is_whitespace_only(text: str | None) -> bool:
    return not text or text.isspace()


@dcl.dataclass
class Attribute:
    """A `name=value` pair; value is None when absent."""

    name: str
    value: str | None = None


@dcl.dataclass(eq=False)
class Node:
    """Either an element (with a tag) or a text node (with content)."""

    tag: str | None = None
    content: str | None = None
    attributes: list[Attribute] = dcl.field(default_factory=list)
    children: list["Node"] = dcl.field(default_factory=list, repr=False)
    parent: OptionalNode = dcl.field(default=None, repr=False)

    # Text nodes are stored trimmed; these remember what was trimmed.
    space_before: bool = dcl.field(default=False, repr=False)
    space_after: bool = dcl.field(default=False, repr=False)

    @classmethod
    def element(cls, tag: str, attributes: t.Iterable[Attribute] = ()) -> "Node":
        return cls(tag=tag, attributes=list(attributes))

    @classmethod
    def text(cls, content: str) -> "Node":
        return cls(content=content)

    @property
    def is_element(self) -> bool:
        return self.tag is not None

    @property
    def is_text(self) -> bool:
        return self.tag is None

    @property
    def is_root(self) -> bool:
        """The synthetic root has no tag, no content and no parent."""
        return self.tag is None and self.content is None and self.parent is None

    def append(self, child: "Node") -> "Node":
        """Adopt a child, returning it."""
        child.parent = self
        self.children.append(child)
        return child

    def get_attribute(self, name: str) -> str | None:
        """First value for `name`, compared case-insensitively."""
        name = name.lower()
        for attribute in self.attributes:
            if attribute.name.lower() == name:
                return attribute.value
        return None

    def has_attribute(self, name: str) -> bool:
        name = name.lower()
        return any(a.name.lower() == name for a in self.attributes)

    @property
    def classes(self) -> list[str]:
        return (self.get_attribute("class") or "").split()

    def ancestors(self) -> t.Iterator["Node"]:
        """Parent, grandparent, and so on up to the root."""
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    def has_ancestor(self, tag: str) -> bool:
        return any(node.tag == tag for node in self.ancestors())

    def descendants(self) -> t.Iterator["Node"]:
        """Everything below, in document order."""
        stack = list(reversed(self.children))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    @property
    def index(self) -> int:
        """Position among the parent's children."""
        if self.parent is None:
            return 0
        return next(i for i, c in enumerate(self.parent.children) if c is self)

    @property
    def next_sibling(self) -> OptionalNode:
        if self.parent is None:
            return None
        siblings = self.parent.children
        index = self.index + 1
        return siblings[index] if index < len(siblings) else None

    @property
    def previous_sibling(self) -> OptionalNode:
        if self.parent is None:
            return None
        index = self.index - 1
        return self.parent.children[index] if index >= 0 else None

    def __str__(self) -> str:
        if self.is_text:
            return f"<text {self.content!r}>"
        return f"<{self.tag or '(root)'} ({len(self.children)} children)>"


def collapse_whitespace(text: str) -> str:
    """Squeeze whitespace runs into one space, and trim."""
    return WHITESPACE_RE.sub(" ", text).strip()
