"""HTML in, LaTeX out."""
import logging
from os import PathLike
from pathlib import Path

import attr

from html2tex import errors
from html2tex.config import ConverterConfig
from html2tex.dom import Node
from html2tex.downloader import DownloadRequest
from html2tex.downloader import DownloadResult
from html2tex.downloader import ImageDownloader
from html2tex.emitter import render
from html2tex.errors import ErrorCode
from html2tex.errors import Html2TexError
from html2tex.errors import raise_error
from html2tex.errors import set_error
from html2tex.parser import minify_tree
from html2tex.parser import parse_compressed
from html2tex.parser import parse_html
from html2tex.storage import ImageStorage

Html = str | bytes


class Html2TexConverter:
    """Converts HTML documents to LaTeX, one at a time.

    Not thread safe; use one converter per thread.
    """

    def __init__(self, config: ConverterConfig | None = None) -> None:
        self.config = config or ConverterConfig()
        self.deferred_images = ImageStorage(self.config.lazy_downloading)

    def set_image_directory(self, path: str | PathLike | None) -> None:
        """Where downloaded images go."""
        self.config.image_output_dir = None if path is None else str(path)

    def set_download_images(self, enable: bool) -> None:
        self.config.download_images = enable

    def set_lazy_downloading(self, enable: bool) -> None:
        """Only note images during conversion; see `download_deferred`."""
        self.config.lazy_downloading = enable
        self.deferred_images.enable(enable)

    def parse(self, html: Html) -> Node:
        """Just the tree."""
        errors.clear_error()
        if html is None:
            raise_error(ErrorCode.NULL, "No HTML to convert")
        if self.config.compress_html:
            root = parse_compressed(html)
        else:
            root = parse_html(html)
        if self.config.minify:
            root = minify_tree(root)
        return root

    def convert_or_raise(self, html: Html) -> str:
        """Convert, raising `Html2TexError` on hard failures."""
        root = self.parse(html)
        self.deferred_images.enable(self.config.lazy_downloading)
        return render(root, self.config, self.deferred_images)

    def convert(self, html: Html) -> str | None:
        """Convert; on failure, returns None and leaves the error in the context."""
        try:
            return self.convert_or_raise(html)
        except Html2TexError as exc:
            errors.record(exc)
            logging.error("Conversion failed: %s", exc)
            return None

    def convert_file(self, path: str | PathLike) -> str | None:
        """Convert an HTML file."""
        logging.info("Reading %s", path)
        try:
            with open(path, "rb") as fobj:
                html = fobj.read()
        except OSError as exc:
            errors.clear_error()
            set_error(ErrorCode.FILE_READ, f"Cannot read {path}: {exc}", errno=exc.errno or 0)
            logging.error("Cannot read %s: %s", path, exc.strerror)
            return None
        return self.convert(html)

    def convert_to_file(self, html: Html, path: str | PathLike) -> bool:
        """Convert, writing the LaTeX to `path`."""
        latex = self.convert(html)
        if latex is None:
            return False
        logging.info("Writing %s", path)
        try:
            with open(path, "w", encoding="UTF-8") as fobj:
                fobj.write(latex)
        except OSError as exc:
            set_error(ErrorCode.FILE_WRITE, f"Cannot write {path}: {exc}", errno=exc.errno or 0)
            logging.error("Cannot write %s: %s", path, exc.strerror)
            return False
        return True

    def download_deferred(self, timeout_ms: int = 0) -> list[DownloadResult]:
        """Fetch every image put off during conversion."""
        pending = self.deferred_images.drain()
        if not pending:
            return []

        config = self.config
        output_dir = Path(config.output_dir)
        logging.info("Downloading %d image(s) to %s", len(pending), output_dir)
        downloader = ImageDownloader(
            config.max_workers,
            timeout=config.download_timeout,
            user_agent=config.user_agent,
            convert_svg=config.svg_to_png,
        )
        with downloader:
            for image in pending:
                downloader.enqueue(
                    DownloadRequest(image.src, output_dir, image.sequence_number, image.filename)
                )
            if not downloader.wait(timeout_ms):
                logging.warning(
                    "Timed out after %d of %d downloads", downloader.completed, len(pending)
                )
        results = downloader.get_results()

        failed = [result for result in results if not result.success]
        if failed:
            set_error(ErrorCode.DOWNLOAD, f"{len(failed)} of {len(pending)} downloads failed")
        return sorted(results, key=lambda result: result.sequence_number)

    def copy(self) -> "Html2TexConverter":
        """Another converter with the same settings and deferred images."""
        other = Html2TexConverter(attr.evolve(self.config))
        other.deferred_images = self.deferred_images.copy()
        return other
