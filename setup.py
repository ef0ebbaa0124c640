#!/usr/bin/env python3
"""setup.py"""
from pathlib import Path
from setuptools import setup


def load_version():
    """Figure out the version"""
    here = Path(__file__).parent
    with open(here / "html2tex" / "version.py", encoding="utf-8") as fobj:
        exec(fobj.read())
    return locals()


setup(
    name="html2tex",
    version=load_version()["HTML2TEX_VERSION"],
    description="Convert HTML documents to LaTeX",
    packages=["html2tex"],
    python_requires=">=3.10",
    entry_points={"console_scripts": ["html2tex=html2tex:main"]},
    install_requires=[
        "attrs",
        "cairosvg",
        "lxml",
        "requests",
    ],
    extras_require={
        "test": ["pytest"],
    },
)
