import pytest

from html2tex.errors import Html2TexError
from html2tex.parser import compress_html
from html2tex.parser import minify_tree
from html2tex.parser import parse_compressed
from html2tex.parser import parse_html


def _tags(node):
    return [child.tag for child in node.children]


def test_compress_drops_whitespace_after_tags():
    assert compress_html("<p>  a   b  </p>\n<p>c</p>") == "<p>a b </p><p>c</p>"


def test_compress_keeps_quoted_and_raw_text():
    html = '<a title="x   y">t</a><script>  if (a  <  b) {}  </script>'
    assert compress_html(html) == html


def test_compress_keeps_comments():
    assert compress_html("<!--  a  -->  b") == "<!--  a  -->b"


def test_compress_only_raw_for_exact_tag_names():
    assert compress_html("<style-guide>  a  </style-guide>") == "<style-guide>a </style-guide>"
    html = "<script>  x  </script-x>  y </script>"
    assert compress_html(html) == html


def test_elements_and_text():
    root = parse_html("<div><p>hello</p>world</div>")
    assert root.is_root
    (div,) = root.children
    assert div.tag == "div"
    assert _tags(div) == ["p", None]
    assert div.children[0].children[0].content == "hello"
    assert div.children[1].content == "world"
    assert div.children[1].parent is div


def test_tag_names_are_lowercased():
    root = parse_html("<DIV><P>x</P></DIV>")
    assert root.children[0].tag == "div"
    assert root.children[0].children[0].tag == "p"


def test_void_elements_have_no_children():
    root = parse_html("<p>a<br>b<img src=x.png>c</p>")
    (p,) = root.children
    assert _tags(p) == [None, "br", None, "img", None]
    assert not p.children[1].children
    assert p.children[3].get_attribute("src") == "x.png"


def test_self_closing():
    root = parse_html("<p>a<span/>b</p>")
    assert _tags(root.children[0]) == [None, "span", None]


def test_attributes():
    root = parse_html("<a HREF='x' data-y=z disabled title=\"q r\">t</a>")
    a = root.children[0]
    assert a.get_attribute("href") == "x"
    assert a.get_attribute("data-y") == "z"
    assert a.get_attribute("title") == "q r"
    assert a.has_attribute("disabled")
    assert a.get_attribute("disabled") is None
    assert a.get_attribute("missing") is None
    assert [attribute.name for attribute in a.attributes] == ["href", "data-y", "disabled", "title"]


def test_stray_end_tag_is_ignored():
    root = parse_html("<p>a</b>c</p>")
    assert [child.content for child in root.children[0].children] == ["a", "c"]


def test_end_tag_closes_intervening_elements():
    root = parse_html("<div><span>a</div>b")
    assert _tags(root) == ["div", None]
    assert root.children[1].content == "b"


def test_unclosed_elements():
    root = parse_html("<div><p>a")
    assert root.children[0].children[0].children[0].content == "a"


def test_comments_and_doctype_are_dropped():
    root = parse_html("<!DOCTYPE html><!-- note --><p>x</p>")
    assert _tags(root) == ["p"]


def test_raw_text():
    root = parse_html("<style>p > a { color: red }</style><p>x</p>")
    style, p = root.children
    assert style.children[0].content == "p > a { color: red }"
    assert p.tag == "p"


def test_raw_text_needs_exact_tag_names():
    root = parse_html("<script-x><b>t</b></script-x>")
    assert [child.tag for child in root.children[0].children] == ["b"]
    root = parse_html("<script>a</script-x>b</script><p>x</p>")
    script, p = root.children
    assert script.children[0].content == "a</script-x>b"
    assert p.tag == "p"


def test_lone_less_than_is_text():
    root = parse_html("<p>1 < 2</p>")
    assert "".join(child.content for child in root.children[0].children) == "1< 2"


def test_text_remembers_trimmed_spaces():
    root = parse_html("<p>a <b>b</b> c</p>")
    first, _, last = root.children[0].children
    assert (first.content, first.space_before, first.space_after) == ("a", False, True)
    assert (last.content, last.space_before, last.space_after) == ("c", True, False)


def test_bytes_are_decoded():
    root = parse_compressed("<p>café</p>".encode("UTF-8"))
    assert root.children[0].children[0].content == "café"


def test_none_is_rejected():
    with pytest.raises(Html2TexError):
        parse_html(None)


def test_minify():
    root = parse_html("<div><span></span><p>  a   b </p><img src='x'><pre>a   b</pre></div>")
    minified = minify_tree(root)
    (div,) = minified.children
    assert _tags(div) == ["p", "img", "pre"]
    assert div.children[0].children[0].content == "a b"
    assert div.children[2].children[0].content == "a   b"
    assert _tags(root.children[0]) == ["span", "p", "img", "pre"]
