"""Saving images next to the LaTeX: data URIs, downloads, and names."""
import base64
import binascii
import logging
import re
import typing as t
from pathlib import Path

import requests

from html2tex.errors import DownloadError
from html2tex.errors import ErrorCode
from html2tex.errors import ImageError
from html2tex.errors import errno_name
from html2tex.errors import raise_error

log = logging.getLogger(__name__)

DATA_URI_PREFIX = "data:image/"
DEFAULT_TIMEOUT = 30
DEFAULT_USER_AGENT = "html2tex/1.0"
MAX_FILENAME = 255
MAX_STEM = 100

BASE64_RE = re.compile(r"^[A-Za-z0-9+/]*={0,2}$")
UNSAFE_FILENAME_RE = re.compile(r"[^A-Za-z0-9._-]")
URL_NAME_END_RE = re.compile(r"[?#;]")

EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/bmp": ".bmp",
    "image/tiff": ".tiff",
    "image/webp": ".webp",
    "image/svg+xml": ".svg",
    "image/svg": ".svg",
}


def is_data_uri(src: str | None) -> bool:
    """Is this an inline `data:image/...` source?"""
    return bool(src) and src.startswith(DATA_URI_PREFIX)


def data_uri_mime(src: str) -> str:
    """The MIME type of a data URI, e.g. `image/png`."""
    header = src[len("data:"):]
    mime, semicolon, _ = header.partition(";")
    if not semicolon or not mime:
        raise_error(ErrorCode.MALFORMED, f"Data URI has no MIME type: {src[:40]}...")
    return mime.lower()


def data_uri_payload(src: str) -> str:
    """The base-64 text after the comma."""
    _, comma, payload = src.partition(",")
    if not comma:
        raise_error(ErrorCode.MALFORMED, "Data URI has no payload")
    return payload


def decode_base64(payload: str) -> bytes:
    """Strict base-64: whitespace ignored, padding required, alphabet checked."""
    text = "".join(payload.split())
    if len(text) % 4 or not BASE64_RE.match(text):
        raise_error(ErrorCode.IMAGE_DECODE, "Invalid base-64 image data")
    try:
        return base64.b64decode(text, validate=True)
    except binascii.Error as exc:
        raise ImageError(f"Invalid base-64 image data: {exc}", ErrorCode.IMAGE_DECODE) from exc


def extension_for_mime(mime: str) -> str:
    """File extension for an image MIME type; `.bin` if unknown."""
    return EXTENSIONS.get(mime.lower(), ".bin")


def djb2(text: str) -> str:
    """Deterministic 32-bit hash, as 8 hex digits."""
    value = 5381
    for char in text.encode("UTF-8"):
        value = (value * 33 + char) & 0xFFFFFFFF
    return f"{value:08x}"


def sanitize_filename(name: str) -> str:
    """Keep `[A-Za-z0-9._-]`, replace anything else with `_`."""
    return UNSAFE_FILENAME_RE.sub("_", name)[:MAX_FILENAME]


def safe_filename(src: str, counter: int) -> str:
    """What we would like to call the image, before checking the disk."""
    if counter < 0:
        raise_error(ErrorCode.INVAL, f"Invalid image counter: {counter}")
    if is_data_uri(src):
        return f"image_{counter}{extension_for_mime(data_uri_mime(src))}"

    name = src.rsplit("/", 1)[-1]
    name = URL_NAME_END_RE.split(name, 1)[0]
    if not name:
        return f"image_{counter}.jpg"
    name = sanitize_filename(name)
    if name.rfind(".") < 2:
        name = f"{name}.jpg"[:MAX_FILENAME]
    return name


def unique_filename(
    output_dir: Path, src: str, counter: int, taken: t.Container[str] = ()
) -> str:
    """A name not taken in `output_dir` (or in `taken`), hashed on collision."""
    filename = safe_filename(src, counter)
    if filename not in taken and not (output_dir / filename).exists():
        return filename

    digest = djb2(src)
    if is_data_uri(src):
        return f"image_{counter}_{digest}{extension_for_mime(data_uri_mime(src))}"

    stem, dot, ext = filename.rpartition(".")
    return f"{stem[:MAX_STEM]}_{digest}{dot}{ext}"


def ensure_directory(output_dir: Path) -> None:
    """Create the output directory, parents and all."""
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ImageError(
            f"Cannot create {output_dir}: {errno_name(exc.errno or 0)}",
            ErrorCode.FILE_OPEN,
            errno=exc.errno or 0,
        ) from exc


def fetch(url: str, timeout: float = DEFAULT_TIMEOUT, user_agent: str = DEFAULT_USER_AGENT) -> bytes:
    """GET a remote image."""
    headers = {"User-Agent": user_agent}
    try:
        response = requests.get(url, timeout=timeout, headers=headers, allow_redirects=True)
    except requests.exceptions.RequestException as exc:
        raise DownloadError(f"Failed to fetch image '{url}': {exc}", ErrorCode.NETWORK) from exc
    if response.status_code != 200:
        raise DownloadError(f"Failed to fetch image '{url}': HTTP {response.status_code}")
    return response.content


def write_bytes(path: Path, data: bytes) -> None:
    """Write an image file."""
    try:
        with open(path, "wb") as fobj:
            fobj.write(data)
    except OSError as exc:
        raise ImageError(
            f"Cannot write {path}: {errno_name(exc.errno or 0)}",
            ErrorCode.FILE_WRITE,
            errno=exc.errno or 0,
        ) from exc


def svg2png(path: Path) -> Path:
    """Helper to convert SVG to png; returns the png's path."""
    import cairosvg

    png = path.with_suffix(".png")
    log.debug("Converting %s -> %s", path.name, png.name)
    with open(path, "rb") as fobj:
        svg = fobj.read()
    with open(png, "wb") as fobj:
        fobj.write(cairosvg.svg2png(svg))
    return png


def download_image_src(
    src: str,
    output_dir: str | Path,
    counter: int,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    user_agent: str = DEFAULT_USER_AGENT,
    convert_svg: bool = False,
    filename: str | None = None,
) -> Path:
    """Materialize an image in `output_dir`; returns the file's full path.

    `filename`, when given, was promised earlier (lazy mode) and is used as is.
    """
    if not src:
        raise_error(ErrorCode.NULL, "Image source is empty")
    output_dir = Path(output_dir)
    ensure_directory(output_dir)
    path = output_dir / (filename or unique_filename(output_dir, src, counter))

    if is_data_uri(src):
        data = decode_base64(data_uri_payload(src))
    else:
        data = fetch(src, timeout=timeout, user_agent=user_agent)
    write_bytes(path, data)
    log.debug("Saved %s (%d bytes)", path, len(data))

    if convert_svg and path.suffix == ".svg":
        try:
            path = svg2png(path)
        except Exception as exc:  # pylint: disable=broad-except
            raise ImageError(
                f"Cannot convert {path.name} to PNG: {exc}", ErrorCode.IMAGE
            ) from exc
    return path
