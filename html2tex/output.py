"""Output interface."""
from abc import ABC
from abc import abstractmethod


class IOutput(ABC):
    """Interface for things that write LaTeX."""

    @abstractmethod
    def write_preamble(self, title: str | None = None) -> None:
        """Document class, packages, and the start of the document."""
        raise NotImplementedError

    @abstractmethod
    def finalize(self) -> None:
        """End the document."""
        raise NotImplementedError

    @abstractmethod
    def write_text(self, text: str) -> None:
        """Add some plain text."""
        raise NotImplementedError

    @abstractmethod
    def write_latex(self, latex: str) -> None:
        """Add something that is already LaTeX."""
        raise NotImplementedError

    @abstractmethod
    def enter_table(self, columns: int) -> None:
        """Start a table."""
        raise NotImplementedError

    @abstractmethod
    def leave_table(self, caption: str, label: str | None = None) -> None:
        """Finalize table."""
        raise NotImplementedError

    @abstractmethod
    def enter_table_row(self) -> None:
        """Start a table row."""
        raise NotImplementedError

    @abstractmethod
    def leave_table_row(self) -> None:
        """Finalize table row."""
        raise NotImplementedError

    @abstractmethod
    def enter_table_cell(self, column: int) -> None:
        """Start a table cell."""
        raise NotImplementedError

    @abstractmethod
    def leave_table_cell(self, cols: int = 1) -> None:
        """Finalize table cell."""
        raise NotImplementedError

    @abstractmethod
    def write_image(
        self, path: str, width: int = 0, height: int = 0, background: str | None = None
    ) -> None:
        """An \\includegraphics, path already escaped."""
        raise NotImplementedError

    @property
    @abstractmethod
    def contents(self) -> str:
        """Everything written so far."""
        raise NotImplementedError
