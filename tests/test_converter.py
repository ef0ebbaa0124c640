import pytest

from html2tex import errors
from html2tex import images
from html2tex.config import ConverterConfig
from html2tex.converter import Html2TexConverter
from html2tex.errors import DownloadError
from html2tex.errors import ErrorCode
from html2tex.errors import Html2TexError


def test_convert():
    latex = Html2TexConverter().convert("<p>Hi</p>")
    assert latex.startswith("\\documentclass{article}\n")
    assert latex.endswith("\\begin{document}\n\nHi\n\n\\end{document}\n")
    assert not errors.has_error()


def test_convert_bytes():
    latex = Html2TexConverter().convert("<p>é</p>".encode("UTF-8"))
    assert "\né\n\n" in latex


def test_convert_none():
    converter = Html2TexConverter()
    assert converter.convert(None) is None
    assert errors.error_code() is ErrorCode.NULL
    with pytest.raises(Html2TexError):
        converter.convert_or_raise(None)


def test_errors_are_cleared_per_call():
    converter = Html2TexConverter()
    converter.convert(None)
    assert errors.has_error()
    converter.convert("<p>ok</p>")
    assert not errors.has_error()


def test_parse_minify():
    converter = Html2TexConverter(ConverterConfig(minify=True))
    root = converter.parse("<div><span></span>x</div>")
    assert [child.tag for child in root.children[0].children] == [None]


def test_parse_without_compression():
    root = Html2TexConverter(ConverterConfig(compress_html=False)).parse("<p> a</p>")
    assert root.children[0].children[0].space_before


def test_convert_file(tmp_path):
    source = tmp_path / "in.html"
    source.write_text("<h2>T</h2>", encoding="UTF-8")
    latex = Html2TexConverter().convert_file(source)
    assert "\\section{T}\n\n" in latex


def test_convert_missing_file(tmp_path):
    assert Html2TexConverter().convert_file(tmp_path / "missing.html") is None
    assert errors.error_code() is ErrorCode.FILE_READ
    assert errors.last_error().errno != 0


def test_convert_to_file(tmp_path):
    target = tmp_path / "out.tex"
    assert Html2TexConverter().convert_to_file("<p>x</p>", target)
    assert target.read_text(encoding="UTF-8").endswith("\nx\n\n\\end{document}\n")


def test_convert_to_unwritable_file(tmp_path):
    assert not Html2TexConverter().convert_to_file("<p>x</p>", tmp_path / "no" / "out.tex")
    assert errors.error_code() is ErrorCode.FILE_WRITE


def test_setters(tmp_path):
    converter = Html2TexConverter()
    converter.set_image_directory(tmp_path)
    converter.set_download_images(True)
    converter.set_lazy_downloading(True)
    assert converter.config.image_output_dir == str(tmp_path)
    assert converter.config.download_images
    assert converter.deferred_images.lazy_downloading
    converter.set_image_directory(None)
    assert converter.config.image_output_dir is None


def test_download_images_without_lazy(tmp_path, monkeypatch):
    monkeypatch.setattr(images, "fetch", lambda url, **kwargs: b"x")
    converter = Html2TexConverter(
        ConverterConfig(download_images=True, image_output_dir=str(tmp_path))
    )
    converter.convert("<img src='http://h/a.png'>")
    assert (tmp_path / "a.png").exists()
    assert not converter.deferred_images
    assert converter.download_deferred() == []


def test_download_deferred(tmp_path, monkeypatch):
    monkeypatch.setattr(images, "fetch", lambda url, **kwargs: url.encode())
    converter = Html2TexConverter(
        ConverterConfig(lazy_downloading=True, max_workers=2, image_output_dir=str(tmp_path))
    )
    latex = converter.convert(
        "<img src='http://a/x.png'><img src='http://b/x.png'><img src='http://c/y.png'>"
    )
    assert not list(tmp_path.iterdir())
    assert len(converter.deferred_images) == 3

    results = converter.download_deferred()
    assert [result.sequence_number for result in results] == [1, 2, 3]
    assert all(result.success for result in results)
    for result in results:
        assert f"\\includegraphics{{{result.local_path.name}}}" in latex
        assert result.local_path.read_bytes() == result.url.encode()
    assert not converter.deferred_images
    assert not errors.has_error()


def test_download_deferred_failure(tmp_path, monkeypatch):
    def fetch(url, **kwargs):
        raise DownloadError("offline")

    monkeypatch.setattr(images, "fetch", fetch)
    converter = Html2TexConverter(
        ConverterConfig(lazy_downloading=True, image_output_dir=str(tmp_path))
    )
    converter.convert("<img src='http://a/x.png'>")
    (result,) = converter.download_deferred()
    assert not result.success
    assert errors.error_code() is ErrorCode.DOWNLOAD


def test_lazy_flag_set_on_config(tmp_path):
    converter = Html2TexConverter(ConverterConfig(image_output_dir=str(tmp_path)))
    converter.config.lazy_downloading = True
    latex = converter.convert("<img src='data:image/png;base64,iVBORw0KGgo='>")
    assert "\\includegraphics{image_1.png}" in latex
    (image,) = converter.deferred_images
    assert image.filename == "image_1.png"
    converter.config.lazy_downloading = False
    converter.convert("<img src='http://a/x.png'>")
    assert len(converter.deferred_images) == 1


def test_copy_is_independent(tmp_path):
    converter = Html2TexConverter(
        ConverterConfig(lazy_downloading=True, image_output_dir=str(tmp_path))
    )
    converter.convert("<img src='http://a/x.png'>")
    other = converter.copy()
    other.set_image_directory(tmp_path / "other")
    other.deferred_images.clear()
    assert converter.config.image_output_dir == str(tmp_path)
    assert len(converter.deferred_images) == 1
    assert other.config.lazy_downloading
