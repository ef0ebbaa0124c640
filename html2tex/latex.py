"""LaTeX creation."""
import contextlib
import io
import re

from html2tex.output import IOutput

PREAMBLE = (
    "\\documentclass{article}\n"
    "\\usepackage{hyperref}\n"
    "\\usepackage{ulem}\n"
    "\\usepackage[table]{xcolor}\n"
    "\\usepackage{tabularx}\n"
    "\\usepackage{graphicx}\n"
    "\\usepackage{placeins}\n"
    "\\setcounter{secnumdepth}{4}\n"
)

ESCAPES = {
    "\\": r"\textbackslash{}",
    "{": r"\{",
    "}": r"\}",
    "&": r"\&",
    "%": r"\%",
    "$": r"\$",
    "#": r"\#",
    "_": r"\_",
    "^": r"\^{}",
    "~": r"\~{}",
    "<": r"\textless{}",
    ">": r"\textgreater{}",
    "\n": r"\\",
    "[": r"\lbrack{}",
    "]": r"\rbrack{}",
    "(": r"\lparen{}",
    ")": r"\rparen{}",
    "|": r"\textbar{}",
}
LITE_ESCAPES = {c: ESCAPES[c] for c in "{}&%$#^~<>\n"}

ESCAPE_RE = re.compile("|".join(re.escape(c) for c in ESCAPES))
LITE_ESCAPE_RE = re.compile("|".join(re.escape(c) for c in LITE_ESCAPES))


def escape_latex(text: str) -> str:
    """Escape every LaTeX special character."""
    return ESCAPE_RE.sub(lambda mobj: ESCAPES[mobj.group()], text)


def escape_latex_lite(text: str) -> str:
    """Escape only what would break a filename, label or caption."""
    return LITE_ESCAPE_RE.sub(lambda mobj: LITE_ESCAPES[mobj.group()], text)


class LatexOutput(IOutput, contextlib.ExitStack):
    """Writes a LaTeX document to memory."""

    def __init__(self) -> None:
        super().__init__()
        self._buffer = io.StringIO()

    def write_preamble(self, title: str | None = None) -> None:
        """Document class, packages, and the start of the document."""
        self._write(PREAMBLE)
        if title:
            self._write(r"\title{")
            self._write(escape_latex_lite(title))
            self._writeln("}")
        self._writeln(r"\begin{document}")
        if title:
            self._writeln(r"\maketitle")
            self._writeln()

    def finalize(self) -> None:
        """End the document."""
        self._writeln(r"\end{document}")

    def write_text(self, text: str) -> None:
        """Add some plain text."""
        if text:
            self._write(escape_latex(text))

    def write_lite(self, text: str) -> None:
        """Add text that only needs the lighter escaping."""
        if text:
            self._write(escape_latex_lite(text))

    def write_latex(self, latex: str) -> None:
        """Add something that is already LaTeX."""
        self._write(latex)

    def begin_environment(self, name: str, options: str = "") -> None:
        self._writeln(f"\\begin{{{name}}}{options}")

    def end_environment(self, name: str) -> None:
        self._writeln(f"\\end{{{name}}}")

    def enter_table(self, columns: int) -> None:
        """Start a table."""
        self.begin_environment("table", "[h]")
        self._writeln(r"\centering")
        self._writeln(f"\\begin{{tabular}}{{|{'c|' * columns}}}")
        self._writeln(r"\hline")

    def leave_table(self, caption: str, label: str | None = None) -> None:
        """Finalize table; caption is already LaTeX."""
        self.end_environment("tabular")
        self._writeln(f"\\caption{{{caption}}}")
        if label:
            self._writeln(f"\\label{{tab:{escape_latex_lite(label)}}}")
        self.end_environment("table")
        self._writeln()

    def enter_table_row(self) -> None:
        """Start a table row."""

    def leave_table_row(self) -> None:
        """Finalize table row."""
        self._writeln(r" \\ \hline")

    def enter_table_cell(self, column: int) -> None:
        """Start a table cell."""
        if column > 0:
            self._write(" & ")

    def leave_table_cell(self, cols: int = 1) -> None:
        """Finalize table cell, padding for any colspan."""
        for _ in range(cols - 1):
            self._write(" &  ")

    def enter_figure_table(self, columns: int) -> None:
        """Start a figure laid out as a borderless tabular."""
        self.begin_environment("figure", "[htbp]")
        self._writeln(r"\centering")
        self._writeln(r"\setlength{\fboxsep}{0pt}")
        self._writeln(r"\setlength{\tabcolsep}{1pt}")
        self._writeln(f"\\begin{{tabular}}{{{'c' * columns}}}")

    def next_figure_row(self) -> None:
        self._writeln(r" \\")

    def next_figure_cell(self) -> None:
        self._write(" & ")

    def leave_figure_table(self, caption: str, label: str) -> None:
        """Finalize the figure; caption is already LaTeX."""
        self._writeln()
        self.end_environment("tabular")
        self.write_figure_ending(caption, label)

    def enter_figure(self) -> None:
        """Start a figure around a lone image."""
        self._writeln()
        self._writeln()
        self.begin_environment("figure", "[h]")
        self._writeln(r"\centering")

    def write_figure_ending(self, caption: str, label: str) -> None:
        """Caption, label, and a barrier so figures stay in their section."""
        self._writeln(f"\\caption{{{caption}}}")
        self._writeln(f"\\label{{fig:{escape_latex_lite(label)}}}")
        self.end_environment("figure")
        self._writeln(r"\FloatBarrier")
        self._writeln()

    def write_image(
        self, path: str, width: int = 0, height: int = 0, background: str | None = None
    ) -> None:
        """An \\includegraphics, path already escaped."""
        if background:
            self._write(f"\\colorbox[HTML]{{{background}}}{{")
        self._write(r"\includegraphics")
        dims = []
        if width > 0:
            dims.append(f"width={width}pt")
        if height > 0:
            dims.append(f"height={height}pt")
        if dims:
            self._write(f"[{','.join(dims)}]")
        self._write(f"{{{path}}}")
        if background:
            self._write("}")

    def _writeln(self, line: str = "") -> None:
        self._write(line)
        self._write("\n")

    def _write(self, string: str) -> None:
        if string:
            self._buffer.write(string)

    @property
    def contents(self) -> str:
        """The actual LaTeX."""
        return self._buffer.getvalue()
