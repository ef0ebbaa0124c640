"""Command line."""
import argparse
from pathlib import Path

from html2tex.version import HTML2TEX_VERSION


class Html2TexParser(argparse.ArgumentParser):
    """Command line for `html2tex`.

    Flags that also live in the settings file default to None, so that
    only the ones actually given override the file.
    """

    def __init__(self):
        super().__init__(description="Convert an HTML file to a LaTeX document.")
        self.add_argument("input", type=Path, help="HTML file to convert")
        self.add_argument(
            "-o", "--output", type=Path, help="Output file [INPUT with .tex suffix]"
        )
        self.add_argument(
            "--images",
            type=Path,
            metavar="DIR",
            help="Where to put images [the output file's directory]",
        )
        self.add_argument(
            "--download",
            action="store_true",
            default=None,
            help="Save images (data URIs and remote) next to the LaTeX",
        )
        self.add_argument(
            "--lazy",
            action="store_true",
            default=None,
            help="Download images after conversion, in parallel",
        )
        self.add_argument(
            "--workers",
            type=int,
            metavar="N",
            help="Number of download threads [one per CPU]",
        )
        self.add_argument(
            "--figures",
            action="store_true",
            default=None,
            help="Put each standalone image in its own figure",
        )
        self.add_argument(
            "--svg-to-png",
            action="store_true",
            default=None,
            help="Convert SVG images to PNG",
        )
        self.add_argument(
            "--minify",
            action="store_true",
            default=None,
            help="Drop ignorable whitespace and empty elements first",
        )
        self.add_argument(
            "--settings", type=Path, metavar="INI", help="Settings file [OUTPUT with .ini suffix]"
        )
        self.add_argument(
            "--prettify",
            action="store_true",
            help="Write indented HTML instead of LaTeX (for debugging)",
        )
        self.add_argument("--debug", action="store_true", help="Print debug messages")
        self.add_argument("--version", action="version", version=f"%(prog)s {HTML2TEX_VERSION}")

    OVERRIDES = {
        "download": "download_images",
        "lazy": "lazy_downloading",
        "workers": "max_workers",
        "figures": "image_figures",
        "svg_to_png": "svg_to_png",
        "minify": "minify",
    }

    @classmethod
    def overrides(cls, args: argparse.Namespace) -> dict:
        """Config fields given on the command line."""
        changes = {}
        for arg_name, field_name in cls.OVERRIDES.items():
            value = getattr(args, arg_name)
            if value is not None:
                changes[field_name] = value
        if args.images is not None:
            changes["image_output_dir"] = str(args.images)
        return changes
