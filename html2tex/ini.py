"""Ini file helper"""
import configparser
import logging
from pathlib import Path
from typing import Iterable

import attr

from html2tex.config import ConverterConfig
from html2tex.errors import ErrorCode
from html2tex.errors import raise_error


class SettingsFile(configparser.ConfigParser):
    """Settings .ini file"""

    ENCODING = "UTF-8"
    SECTION = "General"

    path: Path

    def __init__(self, path: Path):
        """Read ini file"""
        super().__init__()
        self.path = Path(path)
        if not self.exists():
            return
        logging.info("Reading %s", self.path)
        self.read(self.path, encoding=self.ENCODING)

    def exists(self) -> bool:
        """Does the .ini file currently exist"""
        return self.path.is_file()

    @staticmethod
    def fields(klass=ConverterConfig) -> Iterable[attr.Attribute]:
        """Attributes that may be set from the file."""
        yield from attr.fields(klass)

    def apply_to(self, config: ConverterConfig) -> ConverterConfig:
        """A copy of `config`, with whatever the file says."""
        if not self.has_section(self.SECTION):
            return config
        section = self[self.SECTION]
        changes = {}
        for field in self.fields(type(config)):
            if field.name in section:
                changes[field.name] = self.get_value(section, field)
        for key in section:
            if key not in changes:
                logging.warning("%s: unknown setting %r", self.path, key)
        if changes:
            logging.debug("From %s: %s", self.path, changes)
        return attr.evolve(config, **changes)

    def get_value(self, section: configparser.SectionProxy, field: attr.Attribute):
        """Read one value, as the type the field wants."""
        try:
            if field.type is bool:
                return section.getboolean(field.name)
            if field.type is int:
                return section.getint(field.name)
            if field.type is float:
                return section.getfloat(field.name)
        except ValueError:
            raise_error(
                ErrorCode.INVAL,
                f"{self.path}: bad value for {field.name}: {section[field.name]!r}",
            )
        return section[field.name] or None
