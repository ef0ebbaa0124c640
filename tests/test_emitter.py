import pytest

from html2tex import errors
from html2tex import images
from html2tex.config import ConverterConfig
from html2tex.converter import Html2TexConverter
from html2tex.dom import Node
from html2tex.emitter import render
from html2tex.errors import DownloadError
from html2tex.errors import ErrorCode
from html2tex.latex import PREAMBLE
from html2tex.parser import parse_html
from html2tex.storage import ImageStorage


def _convert(html, **options):
    latex = Html2TexConverter(ConverterConfig(**options)).convert(html)
    assert latex is not None, errors.error_message()
    return latex


def _body(latex):
    after = latex.split("\\begin{document}\n", 1)[1]
    assert after.endswith("\\end{document}\n")
    return after[: -len("\\end{document}\n")]


def _balanced(text):
    text = text.replace("\\{", "").replace("\\}", "")
    return text.count("{") == text.count("}")


def test_title_and_paragraph():
    latex = _convert("<html><head><title>Hello</title></head><body><p>Hi</p></body></html>")
    assert latex == (
        PREAMBLE
        + "\\title{Hello}\n\\begin{document}\n\\maketitle\n\n\nHi\n\n\\end{document}\n"
    )


def test_no_title_no_maketitle():
    latex = _convert("<p>Hi</p>")
    assert "\\title" not in latex
    assert "\\maketitle" not in latex
    assert _body(latex) == "\nHi\n\n"


def test_empty_title_is_a_soft_error():
    latex = _convert("<title></title><p>x</p>")
    assert "\\title" not in latex
    assert errors.error_code() is ErrorCode.PARSE


def test_nested_bold_is_not_wrapped_twice():
    body = _body(_convert("<p><b>A <i>B <b>C</b></i></b></p>"))
    assert "\\textbf{A \\textit{B C}}" in body
    assert body.count("\\textbf{") == 1


def test_link_with_special_characters():
    body = _body(_convert('<a href="https://ex.com/a&b">T_1</a>'))
    assert "\\href{https://ex.com/a\\&b}{T\\_1}" in body


def test_anchor_without_href_is_plain_text():
    assert _body(_convert("<a name='x'>here</a>")) == "here"


def test_data_table_with_header():
    body = _body(
        _convert("<table><tr><th>a</th><th>b</th></tr>\n<tr><td>1</td><td>2</td></tr></table>")
    )
    assert (
        "\\begin{table}[h]\n"
        "\\centering\n"
        "\\begin{tabular}{|c|c|}\n"
        "\\hline\n"
        "\\textbf{a} & \\textbf{b} \\\\ \\hline\n"
        "1 & 2 \\\\ \\hline\n"
        "\\end{tabular}\n"
        "\\caption{Table 1}\n"
        "\\end{table}\n"
    ) in body


def test_image_only_table_becomes_figure():
    body = _body(
        _convert(
            '<table><tr><td><img src="x.png"></td><td><img src="y.png"></td></tr></table>'
        )
    )
    assert (
        "\\begin{figure}[htbp]\n\\centering\n"
        "\\setlength{\\fboxsep}{0pt}\n\\setlength{\\tabcolsep}{1pt}\n"
        "\\begin{tabular}{cc}\n"
        "\\includegraphics{x.png} & \\includegraphics{y.png}\n"
        "\\end{tabular}\n"
        "\\caption{Figure 1}\n\\label{fig:figure_1}\n"
        "\\end{figure}\n\\FloatBarrier\n\n"
    ) in body
    assert "\\begin{table}" not in body


def test_base64_image_is_saved(tmp_path):
    out = tmp_path / "o"
    body = _body(
        _convert(
            '<img src="data:image/png;base64,iVBORw0KGgo=">',
            download_images=True,
            image_output_dir=str(out),
        )
    )
    assert "\\includegraphics{image_1.png}" in body
    assert [p.name for p in out.iterdir()] == ["image_1.png"]
    assert (out / "image_1.png").read_bytes() == b"\x89PNG\r\n\x1a\n"


def test_braces_balance():
    html = (
        "<div style='color:blue; font-size:20pt; border:1px solid black'>"
        "<p style='text-align:center; font-weight:bold'>a <i>b</i> <u>c</u></p>"
        "<span style='text-decoration: underline line-through; font-family: monospace'>d</span>"
        "<table><tr><td style='background-color:#eee; font-style:italic'>e</td></tr></table>"
        "<font color='red'>f</font></div>"
    )
    body = _body(_convert(html))
    assert _balanced(body)
    assert "\\end{tabular}" in body


def test_void_elements():
    assert _body(_convert("<p>a<br>b</p>")) == "\na\\\\\nb\n\n"
    assert _body(_convert("<hr>")) == "\\hrulefill\n\n"


def test_excluded_subtree_contributes_nothing():
    body = _body(
        _convert("<p>a<script>var s = 1;</script><nav><b>menu</b></nav><form>f</form>b</p>")
    )
    assert body == "\nab\n\n"


def test_unknown_element_keeps_content():
    assert _body(_convert("<blink>bar</blink>")) == "bar"


def test_headings():
    body = _body(_convert("<h1>A</h1><h2>B</h2><h3>C</h3><h4>D</h4><h5>E</h5>"))
    assert body == (
        "\\chapter{A}\n\n\\section{B}\n\n\\subsection{C}\n\n"
        "\\subsubsection{D}\n\n\\paragraph{E}\n\n"
    )


def test_lists():
    body = _body(_convert("<ul><li>a</li><li>b</li></ul><ol><li>c</li></ol>"))
    assert body == (
        "\\begin{itemize}\n\\item a\n\\item b\n\\end{itemize}\n"
        "\\begin{enumerate}\n\\item c\n\\end{enumerate}\n"
    )


def test_code():
    assert _body(_convert("<code>x_y</code>")) == "\\texttt{x\\_y}"


def test_spaces_around_inline_elements():
    body = _body(_convert("<p>a <b>b</b> c</p>", compress_html=False))
    assert body == "\na \\textbf{b} c\n\n"


def test_many_siblings_without_sibling_lookups(monkeypatch):
    def index(node):
        raise AssertionError(f"{node} looked up its index")

    monkeypatch.setattr(Node, "index", property(index))
    count = 5000
    body = _body(_convert("<div>" + "<b>x</b> y " * count + "</div>", compress_html=False))
    assert ("\\textbf{x} y " * count)[:-1] in body
    assert body.count("\\textbf{x}") == count


def test_alignment_environment():
    body = _body(_convert("<p style='text-align:center'>Hi</p>"))
    assert body == "\\begin{center}\n\nHi\n\n\\end{center}\n"


def test_inherited_alignment_is_not_repeated():
    body = _body(_convert("<div style='text-align:right'><p>a</p><p>b</p></div>"))
    assert body.count("\\begin{flushright}") == 1
    assert body.count("\\end{flushright}") == 1


def test_color():
    assert _body(_convert("<span style='color:red'>x</span>")) == "\\textcolor[HTML]{FF0000}{x}"
    assert _body(_convert("<span style='color:black'>x</span>")) == "x"


def test_inherited_color_is_not_repeated():
    body = _body(_convert("<div style='color:#00f'><span>x</span><span>y</span></div>"))
    assert body == "\\textcolor[HTML]{0000FF}{xy}"


def test_font_color_attribute():
    assert _body(_convert("<font color='#008000'>x</font>")) == "\\textcolor[HTML]{008000}{x}"
    assert _body(_convert("<font color='green' style='color:blue'>x</font>")) == (
        "\\textcolor[HTML]{0000FF}{x}"
    )


def test_background():
    assert _body(_convert("<span style='background-color:yellow'>x</span>")) == (
        "\\colorbox[HTML]{FFFF00}{x}"
    )
    assert _body(_convert("<span style='background-color:white'>x</span>")) == "x"


def test_font_weight_and_style():
    assert _body(_convert("<span style='font-weight:700'>x</span>")) == "\\textbf{x}"
    assert _body(_convert("<span style='font-weight:300'>x</span>")) == "\\textmd{x}"
    assert _body(_convert("<span style='font-weight:400'>x</span>")) == "x"
    assert _body(_convert("<span style='font-style:oblique'>x</span>")) == "\\textsl{x}"
    assert _body(_convert("<b style='font-weight:bold'>x</b>")) == "\\textbf{x}"


@pytest.mark.parametrize(
    "size, command",
    [
        ("6pt", "\\tiny"),
        ("10pt", "\\small"),
        ("12pt", "\\normalsize"),
        ("16px", "\\normalsize"),
        ("14pt", "\\large"),
        ("18pt", "\\Large"),
        ("24pt", "\\LARGE"),
        ("30pt", "\\huge"),
    ],
)
def test_font_size(size, command):
    assert _body(_convert(f"<span style='font-size:{size}'>x</span>")) == f"{{{command} x}}"


def test_font_family():
    assert _body(_convert("<span style='font-family:Courier New'>x</span>")) == "\\texttt{x}"
    assert _body(_convert("<span style='font-family:Arial'>x</span>")) == "\\textsf{x}"
    assert _body(_convert("<span style='font-family:Times'>x</span>")) == "\\textrm{x}"


def test_text_decoration():
    body = _body(_convert("<span style='text-decoration:underline line-through'>x</span>"))
    assert body == "\\underline{\\sout{x}}"
    assert _body(_convert("<u style='text-decoration:underline'>x</u>")) == "\\underline{x}"


def test_border():
    assert _body(_convert("<span style='border:1px solid red'>x</span>")) == "\\framebox{x}"
    assert _body(_convert("<span style='border:1px dashed red'>x</span>")) == "x"


def test_margins():
    body = _body(_convert("<div style='margin: 10pt 0'>x</div>"))
    assert body == "\\vspace*{10pt}\nx\\vspace{10pt}"
    body = _body(_convert("<div style='margin-left:5pt; margin-bottom:-3pt'>x</div>"))
    assert body == "\\hspace*{5pt}x\\vspace*{-3pt}"


def test_margins_ignored_inline():
    assert _body(_convert("<span style='margin:10pt'>x</span>")) == "x"


def test_table_caption_label_and_style():
    body = _body(
        _convert(
            "<table id='t1'><caption style='color:red;font-weight:bold'>Cap</caption>"
            "<tr><td>1</td></tr></table>"
        )
    )
    assert "\\caption{\\textbf{\\textcolor[HTML]{FF0000}{Cap}}}\n\\label{tab:t1}\n" in body
    assert "Cap" not in body.split("\\caption")[0]


def test_tables_are_numbered():
    body = _body(_convert("<table><tr><td>1</td></tr></table>" * 2))
    assert "\\caption{Table 1}" in body
    assert "\\caption{Table 2}" in body


def test_table_without_rows_gets_one_column():
    body = _body(_convert("<table></table>"))
    assert (
        "\\begin{tabular}{|c|}\n"
        "\\hline\n"
        "\\end{tabular}\n"
        "\\caption{Table 1}\n"
    ) in body
    assert not errors.has_error()


def test_colspan_pads_the_row():
    body = _body(
        _convert("<table><tr><td colspan='2'>a</td></tr><tr><td>b</td><td>c</td></tr></table>")
    )
    assert "\\begin{tabular}{|c|c|}" in body
    assert "a &   \\\\ \\hline\n" in body
    assert "b & c \\\\ \\hline\n" in body


def test_table_sections():
    body = _body(
        _convert(
            "<table><thead><tr><th>h</th></tr></thead>"
            "<tbody><tr><td>d</td></tr></tbody></table>"
        )
    )
    assert "\\textbf{h} \\\\ \\hline\nd \\\\ \\hline\n" in body


def test_nested_table_is_skipped():
    body = _body(
        _convert("<table><tr><td>a<table><tr><td>inner</td></tr></table></td></tr></table>")
    )
    assert "inner" not in body
    assert body.count("\\begin{table}") == 1
    assert "\\begin{tabular}{|c|}" in body


def test_cell_background_uses_cellcolor():
    body = _body(
        _convert("<table><tr><td style='background-color:yellow'>x</td></tr></table>")
    )
    assert "\\cellcolor[HTML]{FFFF00}{x}" in body
    assert "\\colorbox" not in body


def test_bold_cell_header_not_doubled():
    body = _body(_convert("<table><tr><th style='font-weight:bold'>x</th></tr></table>"))
    assert body.count("\\textbf{") == 1


def test_image_dimensions():
    assert _body(_convert("<img src='a.png' width='100'>")) == (
        "\\includegraphics[width=100pt]{a.png}"
    )
    assert _body(_convert("<img src='a.png' style='width:96px;height:1in'>")) == (
        "\\includegraphics[width=72pt,height=72pt]{a.png}"
    )


def test_image_background():
    assert _body(_convert("<img src='a.png' style='background-color:red'>")) == (
        "\\colorbox[HTML]{FF0000}{\\includegraphics{a.png}}"
    )


def test_image_source_is_escaped():
    assert _body(_convert("<img src='my_pic.png'>")) == "\\includegraphics{my\\_pic.png}"


def test_image_without_src():
    assert _body(_convert("<p><img alt='x'></p>")) == "\n\n\n"
    assert errors.error_code() is ErrorCode.IMAGE


def test_image_figure():
    body = _body(_convert("<img src='a.png' alt='A pic'><img src='b.png'>", image_figures=True))
    assert body == (
        "\n\n\\begin{figure}[h]\n\\centering\n\\includegraphics{a.png}\n\n"
        "\\caption{A pic}\n\\label{fig:image_1}\n\\end{figure}\n\\FloatBarrier\n\n"
        "\n\n\\begin{figure}[h]\n\\centering\n\\includegraphics{b.png}\n"
        "\\caption{Image 2}\n\\label{fig:image_2}\n\\end{figure}\n\\FloatBarrier\n\n"
    )


def test_image_figure_not_inside_tables():
    body = _body(
        _convert("<table><tr><td>x <img src='a.png'></td></tr></table>", image_figures=True)
    )
    assert "\\begin{figure}" not in body
    assert "\\includegraphics{a.png}" in body


def test_failed_download_falls_back_to_source(tmp_path, monkeypatch):
    def fail(url, **kwargs):
        raise DownloadError(f"cannot get {url}")

    monkeypatch.setattr(images, "fetch", fail)
    body = _body(
        _convert(
            "<img src='http://example.com/a_b.png'>",
            download_images=True,
            image_output_dir=str(tmp_path),
        )
    )
    assert body == "\\includegraphics{http://example.com/a\\_b.png}"
    assert errors.error_code() is ErrorCode.DOWNLOAD


def test_failed_svg_conversion_falls_back_to_source(tmp_path, monkeypatch):
    def svg2png(path):
        raise OSError("no cairo")

    monkeypatch.setattr(images, "svg2png", svg2png)
    src = "data:image/svg+xml;base64,PHN2Zz4="
    body = _body(
        _convert(
            f"<img src='{src}'>",
            download_images=True,
            svg_to_png=True,
            image_output_dir=str(tmp_path),
        )
    )
    assert body == f"\\includegraphics{{{src}}}"
    assert errors.error_code() is ErrorCode.IMAGE


def test_remote_download(tmp_path, monkeypatch):
    monkeypatch.setattr(images, "fetch", lambda url, **kwargs: b"GIF89a")
    body = _body(
        _convert(
            "<img src='http://example.com/pics/cat.gif?size=2'>",
            download_images=True,
            image_output_dir=str(tmp_path),
        )
    )
    assert body == "\\includegraphics{cat.gif}"
    assert (tmp_path / "cat.gif").read_bytes() == b"GIF89a"


def test_lazy_mode_predicts_names(tmp_path):
    converter = Html2TexConverter(
        ConverterConfig(lazy_downloading=True, image_output_dir=str(tmp_path))
    )
    latex = converter.convert("<img src='http://a.com/x.png'><img src='http://b.com/x.png'>")
    second = f"x_{images.djb2('http://b.com/x.png')}.png"
    assert _body(latex) == f"\\includegraphics{{x.png}}\\includegraphics{{{second}}}"
    assert [image.filename for image in converter.deferred_images] == ["x.png", second]
    assert [image.sequence_number for image in converter.deferred_images] == [1, 2]
    assert not list(tmp_path.iterdir())


def test_lazy_svg_is_promised_as_png(tmp_path):
    converter = Html2TexConverter(
        ConverterConfig(lazy_downloading=True, svg_to_png=True, image_output_dir=str(tmp_path))
    )
    latex = converter.convert("<img src='http://a.com/logo.svg'>")
    assert _body(latex) == "\\includegraphics{logo.png}"
    assert [image.filename for image in converter.deferred_images] == ["logo.svg"]


def test_lazy_mode_with_inert_store_falls_back_to_source(tmp_path):
    storage = ImageStorage()
    config = ConverterConfig(lazy_downloading=True, image_output_dir=str(tmp_path))
    latex = render(parse_html("<img src='http://a.com/x_y.png'>"), config, storage)
    assert _body(latex) == "\\includegraphics{http://a.com/x\\_y.png}"
    assert errors.error_code() is ErrorCode.IMAGE
    assert not storage
