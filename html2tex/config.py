"""Conversion options."""
from pathlib import Path

import attr

from html2tex.images import DEFAULT_TIMEOUT
from html2tex.images import DEFAULT_USER_AGENT


@attr.s(slots=True)
class ConverterConfig:
    """Everything that changes how HTML becomes LaTeX."""

    image_output_dir: str | None = attr.ib(default=None)
    download_images: bool = attr.ib(default=False)
    lazy_downloading: bool = attr.ib(default=False)
    max_workers: int = attr.ib(default=0)
    image_figures: bool = attr.ib(default=False)
    svg_to_png: bool = attr.ib(default=False)
    compress_html: bool = attr.ib(default=True)
    minify: bool = attr.ib(default=False)
    download_timeout: float = attr.ib(default=float(DEFAULT_TIMEOUT))
    user_agent: str = attr.ib(default=DEFAULT_USER_AGENT)

    @property
    def output_dir(self) -> Path:
        """Where images go; the current directory if unset."""
        return Path(self.image_output_dir or ".")
