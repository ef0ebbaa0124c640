"""Walking the tree and writing LaTeX."""
import enum
import logging
import re

import attr

from html2tex import images
from html2tex import visitor
from html2tex.config import ConverterConfig
from html2tex.dom import Node
from html2tex.dom import is_block_element
from html2tex.dom import is_excluded_element
from html2tex.dom import is_inline_element
from html2tex.errors import ErrorCode
from html2tex.errors import Html2TexError
from html2tex.errors import ImageError
from html2tex.errors import raise_error
from html2tex.errors import set_error
from html2tex.format import INHERITABLE_PROPERTIES
from html2tex.format import Alignment
from html2tex.format import CssProperty
from html2tex.latex import LatexOutput
from html2tex.latex import escape_latex
from html2tex.latex import escape_latex_lite
from html2tex.storage import ImageStorage
from html2tex.styles import DeclarationSet
from html2tex.styles import OptionalDeclarationSet
from html2tex.styles import parse_style
from html2tex.units import BLACK
from html2tex.units import WHITE
from html2tex.units import color_to_hex
from html2tex.units import length_to_pt

HEADINGS = {
    "h1": "chapter",
    "h2": "section",
    "h3": "subsection",
    "h4": "subsubsection",
    "h5": "paragraph",
}
LISTS = {"ul": "itemize", "ol": "enumerate"}
TAG_WRAPPERS = {
    "b": ("\\textbf{", CssProperty.BOLD),
    "strong": ("\\textbf{", CssProperty.BOLD),
    "i": ("\\textit{", CssProperty.ITALIC),
    "em": ("\\textit{", CssProperty.ITALIC),
    "u": ("\\underline{", CssProperty.UNDERLINE),
}
ALIGNMENTS = {
    "center": (Alignment.CENTER, "\\begin{center}\n"),
    "right": (Alignment.FLUSHRIGHT, "\\begin{flushright}\n"),
    "left": (Alignment.FLUSHLEFT, "\\begin{flushleft}\n"),
    "justify": (Alignment.JUSTIFY, "\\justifying\n"),
}
ENVIRONMENTS = (
    (Alignment.CENTER, "center"),
    (Alignment.FLUSHRIGHT, "flushright"),
    (Alignment.FLUSHLEFT, "flushleft"),
)
FONT_FAMILIES = (
    (("monospace", "Courier"), "\\texttt{"),
    (("sans", "Arial", "Helvetica"), "\\textsf{"),
    (("serif", "Times"), "\\textrm{"),
)
FONT_SIZES = (
    (8, "\\tiny"),
    (10, "\\small"),
    (12, "\\normalsize"),
    (14, "\\large"),
    (18, "\\Large"),
    (24, "\\LARGE"),
)
LARGEST_FONT = "\\huge"
BOLD_WEIGHTS = ("bold", "bolder")

CELL_TAGS = frozenset(["td", "th"])
SKIPPED_TAGS = frozenset(["title"])
STRUCTURAL_TAGS = frozenset(["html", "body", "thead", "tbody", "tfoot", "pre", "h6"])

LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


class Phase(enum.Enum):
    """Which side of an element the walk is on."""

    OPEN = enum.auto()
    CLOSE = enum.auto()


@attr.s(slots=True)
class Frame:
    """One element between its open and its close."""

    node: Node = attr.ib()
    style: DeclarationSet = attr.ib(factory=DeclarationSet)
    applied: CssProperty = attr.ib(default=CssProperty.NONE)
    braces: int = attr.ib(default=0)
    environments: Alignment = attr.ib(default=Alignment.NONE)
    closing: str = attr.ib(default="")
    in_cell: bool = attr.ib(default=False)
    fresh: bool = attr.ib(default=False)
    span: int = attr.ib(default=0)


@attr.s(slots=True)
class TableState:
    """The data table being written."""

    caption: str = attr.ib()
    label: str | None = attr.ib(default=None)
    column: int = attr.ib(default=0)


@attr.s(slots=True)
class State:
    """Counters and context for one conversion."""

    tables: int = attr.ib(default=0)
    figures: int = attr.ib(default=0)
    images: int = attr.ib(default=0)
    list_depth: int = attr.ib(default=0)
    table: TableState | None = attr.ib(default=None)
    promised: set[str] = attr.ib(factory=set)


def leading_int(value: str) -> int:
    """Like C's atoi(): the leading integer, or 0."""
    mobj = LEADING_INT_RE.match(value)
    return int(mobj.group(1)) if mobj else 0


class LatexEmitter:
    """Writes the body of a document, one element at a time."""

    def __init__(
        self,
        writer: LatexOutput,
        config: ConverterConfig | None = None,
        storage: ImageStorage | None = None,
    ) -> None:
        self.writer = writer
        self.config = config or ConverterConfig()
        if storage is None:
            storage = ImageStorage(self.config.lazy_downloading)
        self.storage = storage
        self.state = State()

    def emit(self, root: Node) -> None:
        """Walk the tree depth first, with an explicit stack."""
        if root is None:
            raise_error(ErrorCode.NULL, "No tree to convert")
        top = Frame(root)
        nodes = root.children if root.is_root else [root]
        stack = [(Phase.OPEN, nodes, index, top) for index in reversed(range(len(nodes)))]
        while stack:
            phase, siblings, index, frame = stack.pop()
            if phase is Phase.CLOSE:
                self.close_element(frame)
                continue
            node = siblings[index]
            if node.is_text:
                self.emit_text(siblings, index)
            elif (child := self.open_element(node, frame)) is not None:
                stack.append((Phase.CLOSE, siblings, index, child))
                children = node.children
                stack.extend(
                    (Phase.OPEN, children, i, child) for i in reversed(range(len(children)))
                )

    def _write(self, latex: str) -> None:
        self.writer.write_latex(latex)

    def _wrap(self, frame: Frame, latex: str, flag: CssProperty = CssProperty.NONE) -> None:
        self._write(latex)
        frame.braces += 1
        frame.applied |= flag

    def emit_text(self, siblings: list[Node], index: int) -> None:
        """Escaped text, with the spaces the parser trimmed put back."""
        node = siblings[index]
        parent = node.parent
        if parent is not None and parent.tag == "caption":
            return
        if node.space_before and index > 0 and siblings[index - 1].is_element:
            self._write(" ")
        self.writer.write_text(node.content)
        if node.space_after and index + 1 < len(siblings):
            self._write(" ")

    def open_element(self, node: Node, parent: Frame) -> Frame | None:
        """Start an element; None means skip it, children and all."""
        tag = node.tag
        if is_excluded_element(tag) or tag in SKIPPED_TAGS:
            logging.debug("Skipping <%s>", tag)
            return None
        if visitor.is_nested_table(node):
            logging.debug("Skipping nested table")
            return None
        if tag == "caption" and node.parent is not None and node.parent.tag == "table":
            return None

        frame = Frame(
            node,
            visitor.effective_style(node, parent.style),
            applied=parent.applied,
            in_cell=parent.in_cell,
        )
        if tag == "table":
            frame.applied = CssProperty.NONE
            frame.in_cell = False
            frame.fresh = True
            if visitor.table_contains_only_images(node):
                self.emit_image_table(node, frame.style)
                return None
        elif tag in CELL_TAGS and self.state.table is not None:
            frame.applied = CssProperty.NONE
            frame.in_cell = True
            frame.fresh = True
            frame.span = visitor.colspan(node)
            self.writer.enter_table_cell(self.state.table.column)

        self.apply_css(frame, None if frame.fresh else parent.style)
        self.open_tag(frame)
        return frame

    def close_element(self, frame: Frame) -> None:
        """Finish an element: its own closing, then its CSS wrappers."""
        tag = frame.node.tag
        self._write(frame.closing)
        if tag == "table":
            self.close_table()
        elif tag == "tr" and self.state.table is not None:
            self.writer.leave_table_row()
        elif tag in LISTS:
            self.state.list_depth -= 1

        self.end_css(frame)

        if frame.span and self.state.table is not None:
            self.writer.leave_table_cell(frame.span)
            self.state.table.column += frame.span

    def open_tag(self, frame: Frame) -> None:
        """Element-specific LaTeX; sets what to write at close."""
        node = frame.node
        tag = node.tag
        if tag == "p":
            self._write("\n")
            frame.closing = "\n\n"
        elif tag in HEADINGS:
            self._write(f"\\{HEADINGS[tag]}{{")
            frame.closing = "}\n\n"
        elif tag in TAG_WRAPPERS:
            latex, flag = TAG_WRAPPERS[tag]
            if not frame.applied & flag:
                self._write(latex)
                frame.applied |= flag
                frame.closing = "}"
        elif tag == "code":
            self._write("\\texttt{")
            frame.applied |= CssProperty.FONT_FAMILY
            frame.closing = "}"
        elif tag == "a":
            href = node.get_attribute("href")
            if href is not None:
                self._write(f"\\href{{{escape_latex(href)}}}{{")
                frame.closing = "}"
        elif tag == "br":
            self._write("\\\\\n")
        elif tag == "hr":
            self._write("\\hrulefill\n\n")
        elif tag in LISTS:
            self._write(f"\\begin{{{LISTS[tag]}}}\n")
            self.state.list_depth += 1
            frame.closing = f"\\end{{{LISTS[tag]}}}\n"
        elif tag == "li":
            self._write("\\item ")
            frame.closing = "\n"
        elif tag == "font":
            self.open_font(frame)
        elif tag == "img":
            self.emit_image(node, frame.style)
        elif tag == "table":
            self.open_table(frame)
        elif tag == "tr" and self.state.table is not None:
            self.state.table.column = 0
            self.writer.enter_table_row()
        elif tag == "th" and frame.span:
            if not frame.applied & CssProperty.BOLD:
                self._write("\\textbf{")
                frame.applied |= CssProperty.BOLD
                frame.closing = "}"
        elif not (
            is_block_element(tag) or is_inline_element(tag) or tag in STRUCTURAL_TAGS
        ):
            logging.debug("Unknown <%s>, keeping its content", tag)

    def open_font(self, frame: Frame) -> None:
        """<font color=...>, unless CSS already says what color."""
        color = frame.node.get_attribute("color")
        if not color or frame.applied & CssProperty.COLOR:
            return
        if "color" in parse_style(frame.node.get_attribute("style")):
            return
        hex_color = color_to_hex(color)
        if hex_color == BLACK:
            return
        self._write(f"\\textcolor[HTML]{{{hex_color}}}{{")
        frame.applied |= CssProperty.COLOR
        frame.closing = "}"

    # CSS

    def apply_css(self, frame: Frame, inherited: OptionalDeclarationSet) -> None:
        """Open LaTeX wrappers for the element's style, in a fixed order.

        Inheritable properties whose value `inherited` already carries are
        skipped: the ancestor that set them still has its wrapper open.
        """
        style = frame.style
        if not style:
            return

        def declared(name: str) -> str | None:
            value = style.get(name)
            if value is None:
                return None
            if (
                inherited is not None
                and name in INHERITABLE_PROPERTIES
                and inherited.get(name) == value
            ):
                return None
            return value.strip()

        tag = frame.node.tag
        block = is_block_element(tag) and not frame.in_cell

        if block and (align := declared("text-align")):
            if (entry := ALIGNMENTS.get(align.lower())) is not None:
                flag, latex = entry
                self._write(latex)
                frame.environments |= flag

        if not frame.applied & CssProperty.COLOR and (color := declared("color")):
            hex_color = color_to_hex(color)
            if hex_color != BLACK:
                self._wrap(frame, f"\\textcolor[HTML]{{{hex_color}}}{{", CssProperty.COLOR)

        background = declared("background-color")
        if tag != "img" and not frame.applied & CssProperty.BACKGROUND and background:
            hex_color = color_to_hex(background)
            if hex_color != WHITE:
                command = "cellcolor" if frame.in_cell else "colorbox"
                self._wrap(frame, f"\\{command}[HTML]{{{hex_color}}}{{", CssProperty.BACKGROUND)

        if block:
            if pt := length_to_pt(style.get("margin-top")):
                self._write(f"\\vspace*{{{pt}pt}}\n")
                frame.applied |= CssProperty.MARGIN_TOP
            if pt := length_to_pt(style.get("margin-left")):
                self._write(f"\\hspace*{{{pt}pt}}")
                frame.applied |= CssProperty.MARGIN_LEFT

        if weight := declared("font-weight"):
            self.apply_font_weight(frame, weight.lower())
        if font_style := declared("font-style"):
            self.apply_font_style(frame, font_style.lower())
        if family := declared("font-family"):
            self.apply_font_family(frame, family)
        if size := declared("font-size"):
            self.apply_font_size(frame, size)
        if decoration := declared("text-decoration"):
            self.apply_text_decoration(frame, decoration.lower())

        border = declared("border")
        if border and "solid" in border and not frame.applied & CssProperty.BORDER:
            self._wrap(frame, "\\framebox{", CssProperty.BORDER)

    def apply_font_weight(self, frame: Frame, weight: str) -> None:
        if weight in BOLD_WEIGHTS or leading_int(weight) >= 600:
            if not frame.applied & CssProperty.BOLD:
                self._wrap(frame, "\\textbf{", CssProperty.BOLD)
        elif weight == "lighter" or leading_int(weight) <= 300:
            self._wrap(frame, "\\textmd{")

    def apply_font_style(self, frame: Frame, font_style: str) -> None:
        if font_style == "italic":
            if not frame.applied & CssProperty.ITALIC:
                self._wrap(frame, "\\textit{", CssProperty.ITALIC)
        elif font_style == "oblique":
            self._wrap(frame, "\\textsl{")
        elif font_style == "normal":
            self._wrap(frame, "\\textup{")

    def apply_font_family(self, frame: Frame, family: str) -> None:
        if frame.applied & CssProperty.FONT_FAMILY:
            return
        for names, latex in FONT_FAMILIES:
            if any(name in family for name in names):
                self._wrap(frame, latex, CssProperty.FONT_FAMILY)
                return

    def apply_font_size(self, frame: Frame, size: str) -> None:
        pt = length_to_pt(size)
        if pt <= 0:
            return
        command = next((cmd for limit, cmd in FONT_SIZES if pt <= limit), LARGEST_FONT)
        self._wrap(frame, f"{{{command} ", CssProperty.FONT_SIZE)

    def apply_text_decoration(self, frame: Frame, decoration: str) -> None:
        if "underline" in decoration and not frame.applied & CssProperty.UNDERLINE:
            self._wrap(frame, "\\underline{", CssProperty.UNDERLINE)
        if "line-through" in decoration:
            self._wrap(frame, "\\sout{")
        if "overline" in decoration:
            self._wrap(frame, "\\overline{")

    def end_css(self, frame: Frame) -> None:
        """Close what `apply_css` (and the element) opened."""
        if is_block_element(frame.node.tag) and not frame.in_cell:
            if pt := length_to_pt(frame.style.get("margin-right")):
                self._write(f"\\hspace*{{{pt}pt}}")
            if pt := length_to_pt(frame.style.get("margin-bottom")):
                command = "vspace*" if pt < 0 else "vspace"
                self._write(f"\\{command}{{{pt}pt}}")
        self._write("}" * frame.braces)
        frame.braces = 0
        for flag, name in ENVIRONMENTS:
            if frame.environments & flag:
                self.writer.end_environment(name)
        frame.environments = Alignment.NONE

    # Tables

    def open_table(self, frame: Frame) -> None:
        """Start a data table."""
        node = frame.node
        self.state.tables += 1
        columns = visitor.count_table_columns(node)
        caption = self.table_caption(node) or f"Table {self.state.tables}"
        self.writer.enter_table(columns)
        self.state.table = TableState(caption, node.get_attribute("id") or None)

    def close_table(self) -> None:
        table = self.state.table
        if table is None:
            return
        self.writer.leave_table(table.caption, table.label)
        self.state.table = None

    @staticmethod
    def table_caption(table: Node) -> str | None:
        """The first <caption>, as LaTeX, keeping its color and weight."""
        caption = visitor.first_child_tagged(table, "caption")
        if caption is None:
            return None
        text = visitor.gather_text(caption)
        if not text:
            return None

        latex = escape_latex_lite(text)
        style = parse_style(caption.get_attribute("style"))
        if color := style.get("color"):
            hex_color = color_to_hex(color)
            if hex_color != BLACK:
                latex = f"\\textcolor[HTML]{{{hex_color}}}{{{latex}}}"
        if (style.get("font-weight") or "").strip().lower() in BOLD_WEIGHTS:
            latex = f"\\textbf{{{latex}}}"
        return latex

    def emit_image_table(self, table: Node, style: DeclarationSet) -> None:
        """A table of nothing but images becomes a figure."""
        self.state.figures += 1
        number = self.state.figures
        self.writer.enter_figure_table(visitor.count_table_columns(table))

        for row_index, row in enumerate(visitor.table_rows(table)):
            if row_index:
                self.writer.next_figure_row()
            cells = [cell for cell in row.children if cell.tag in CELL_TAGS]
            for cell_index, cell in enumerate(cells):
                if cell_index:
                    self.writer.next_figure_cell()
                image = visitor.first_image(cell)
                if image is None:
                    self._write(" ")
                else:
                    self.emit_image(image, visitor.effective_style(image, style))

        caption = visitor.first_child_tagged(table, "caption")
        text = visitor.gather_text(caption) if caption is not None else ""
        self.writer.leave_figure_table(
            escape_latex(text) if text else f"Figure {number}",
            table.get_attribute("id") or f"figure_{number}",
        )

    # Images

    def emit_image(self, image: Node, style: DeclarationSet) -> None:
        """\\includegraphics, optionally inside its own figure."""
        src = image.get_attribute("src")
        if not src:
            set_error(ErrorCode.IMAGE, "Image has no src")
            logging.warning("Skipping <img> without src")
            return

        self.state.images += 1
        number = self.state.images
        path = self.resolve_image(src, number)

        width = length_to_pt(style.get("width")) or length_to_pt(image.get_attribute("width"))
        height = length_to_pt(style.get("height")) or length_to_pt(
            image.get_attribute("height")
        )
        background = None
        if bg_color := style.get("background-color"):
            if (hex_color := color_to_hex(bg_color)) != WHITE:
                background = hex_color

        if not self.config.image_figures or image.has_ancestor("table"):
            self.writer.write_image(path, width, height, background)
            return

        self.writer.enter_figure()
        self.writer.write_image(path, width, height, background)
        self._write("\n")
        alt = image.get_attribute("alt")
        if alt:
            self._write("\n")
            caption = escape_latex(alt)
        else:
            caption = f"Image {number}"
        self.writer.write_figure_ending(caption, image.get_attribute("id") or f"image_{number}")

    def resolve_image(self, src: str, number: int) -> str:
        """The escaped path to put in \\includegraphics."""
        config = self.config
        try:
            if config.lazy_downloading:
                return escape_latex_lite(self.defer_image(src, number))
            if config.download_images:
                path = images.download_image_src(
                    src,
                    config.output_dir,
                    number,
                    timeout=config.download_timeout,
                    user_agent=config.user_agent,
                    convert_svg=config.svg_to_png,
                )
                return escape_latex_lite(path.relative_to(config.output_dir).as_posix())
        except Html2TexError as exc:
            set_error(exc.code, exc.message, errno=exc.errno)
            logging.warning("Image %d: %s; using its source as is", number, exc.message)
        return escape_latex(src)

    def defer_image(self, src: str, number: int) -> str:
        """Pick the file name now, download later."""
        config = self.config
        filename = images.unique_filename(
            config.output_dir, src, number, taken=self.state.promised
        )
        if not self.storage.add(src, filename, number):
            raise ImageError("Deferred image store is not lazy", ErrorCode.IMAGE)
        self.state.promised.add(filename)
        if config.svg_to_png and filename.endswith(".svg"):
            return f"{filename[:-4]}.png"
        return filename


def render(
    root: Node,
    config: ConverterConfig | None = None,
    storage: ImageStorage | None = None,
) -> str:
    """A complete LaTeX document for a parsed tree."""
    with LatexOutput() as writer:
        writer.write_preamble(visitor.extract_title(root))
        LatexEmitter(writer, config, storage).emit(root)
        writer.finalize()
        return writer.contents
