"""A utility (and library) to convert HTML to LaTeX."""
import argparse
import logging
from pathlib import Path

import attr

from html2tex.config import ConverterConfig
from html2tex.converter import Html2TexConverter
from html2tex.document import HtmlDocument
from html2tex.downloader import DownloadRequest
from html2tex.downloader import DownloadResult
from html2tex.downloader import ImageDownloader
from html2tex.errors import ConversionError
from html2tex.errors import DownloadError
from html2tex.errors import ErrorCode
from html2tex.errors import Html2TexError
from html2tex.errors import ImageError
from html2tex.errors import InternalError
from html2tex.errors import ParseError
from html2tex.errors import error_code
from html2tex.errors import error_message
from html2tex.errors import has_error
from html2tex.ini import SettingsFile
from html2tex.usage import Html2TexParser
from html2tex.version import HTML2TEX_VERSION

__all__ = [
    "ConversionError",
    "ConverterConfig",
    "DownloadError",
    "DownloadRequest",
    "DownloadResult",
    "ErrorCode",
    "HTML2TEX_VERSION",
    "Html2TexConverter",
    "Html2TexError",
    "HtmlDocument",
    "ImageDownloader",
    "ImageError",
    "InternalError",
    "ParseError",
    "main",
]


def main(argv: list[str] | None = None) -> int:
    """Entry point"""
    return HtmlToLatex().run(argv)


class HtmlToLatex:
    """Read an HTML file. Write a LaTeX file."""

    args: argparse.Namespace
    config: ConverterConfig
    converter: Html2TexConverter
    output_fn: Path
    settings: SettingsFile
    settings_fn: Path

    def run(self, argv: list[str] | None = None) -> int:
        """Main entry point."""
        self.parse_command_line(argv)
        self.configure_logging()
        self.read_settings()
        if self.args.prettify:
            return self.write_prettified()
        if not self.write_latex():
            return 1
        self.download_deferred()
        return 0

    def parse_command_line(self, argv: list[str] | None = None):
        """Find out what we're supposed to do."""
        self.args = Html2TexParser().parse_args(argv)

        if self.args.output:
            self.output_fn = self.args.output
        elif self.args.prettify:
            self.output_fn = self.args.input.with_suffix(".pretty.html")
        else:
            self.output_fn = self.args.input.with_suffix(".tex")
        self.settings_fn = self.args.settings or self.output_fn.with_suffix(".ini")

    def configure_logging(self):
        """Set logging level and format."""
        logging.basicConfig(
            format="%(asctime)s %(message)s",
            level=logging.DEBUG if self.args.debug else logging.INFO,
        )

    def read_settings(self):
        """Defaults, then the ini file, then the command line."""
        config = ConverterConfig(image_output_dir=str(self.output_fn.parent))
        self.settings = SettingsFile(self.settings_fn)
        config = self.settings.apply_to(config)
        self.config = attr.evolve(config, **Html2TexParser.overrides(self.args))
        self.converter = Html2TexConverter(self.config)

    def write_latex(self) -> bool:
        """Convert and write."""
        latex = self.converter.convert_file(self.args.input)
        if latex is None:
            logging.error("%s: %s", error_code().name, error_message())
            return False

        logging.info("Writing %s", self.output_fn)
        with open(self.output_fn, "w", encoding="UTF-8") as fobj:
            fobj.write(latex)
        if has_error():
            logging.info("Last warning: %s", error_message())
        return True

    def download_deferred(self):
        """Fetch images put off during conversion, and say how it went."""
        if not self.converter.deferred_images:
            return
        results = self.converter.download_deferred()
        good = sum(1 for result in results if result.success)
        logging.info("Downloaded %u of %u image(s)", good, len(results))
        for result in results:
            if not result.success:
                logging.info("  #%d %s: %s", result.sequence_number, result.url, result.error)

    def write_prettified(self) -> int:
        """Debug aid: the parsed tree, as indented HTML."""
        with open(self.args.input, "rb") as fobj:
            root = self.converter.parse(fobj.read())
        logging.info("Writing %s", self.output_fn)
        with open(self.output_fn, "w", encoding="UTF-8") as fobj:
            fobj.write(HtmlDocument(root).prettify())
        return 0
