"""Error codes, exceptions and the per-thread error context."""
import contextlib
import enum
import errno as errno_module
import inspect
import logging
import threading
import typing as t

import attr


class ErrorCode(enum.Enum):
    """What went wrong."""

    OK = 0
    NOMEM = enum.auto()
    BUF_OVERFLOW = enum.auto()
    INVAL = enum.auto()
    NULL = enum.auto()
    IO = enum.auto()
    FILE_OPEN = enum.auto()
    FILE_READ = enum.auto()
    FILE_WRITE = enum.auto()
    PARSE = enum.auto()
    HTML_SYNTAX = enum.auto()
    CSS_SYNTAX = enum.auto()
    MALFORMED = enum.auto()
    CONVERT = enum.auto()
    UNSUPPORTED = enum.auto()
    CSS = enum.auto()
    CSS_VALUE = enum.auto()
    TABLE = enum.auto()
    TABLE_STRUCTURE = enum.auto()
    IMAGE = enum.auto()
    IMAGE_DOWNLOAD = enum.auto()
    IMAGE_DECODE = enum.auto()
    INTERNAL = enum.auto()
    ASSERT = enum.auto()
    NETWORK = enum.auto()
    DOWNLOAD = enum.auto()


class Html2TexError(Exception):
    """Base of everything we raise."""

    default_code = ErrorCode.INTERNAL

    def __init__(
        self,
        message: str,
        code: ErrorCode | None = None,
        *,
        errno: int = 0,
        filename: str | None = None,
        lineno: int = 0,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.errno = errno
        self.filename = filename
        self.lineno = lineno

    def __str__(self) -> str:
        return f"[{self.code.name}] {self.message}"


class ParseError(Html2TexError):
    """Could not make sense of the HTML or CSS."""

    default_code = ErrorCode.PARSE


class ConversionError(Html2TexError):
    """Could not turn something into LaTeX."""

    default_code = ErrorCode.CONVERT


class ImageError(Html2TexError):
    """Image decoding or writing failed."""

    default_code = ErrorCode.IMAGE


class DownloadError(ImageError):
    """Fetching a remote image failed."""

    default_code = ErrorCode.DOWNLOAD


class InternalError(Html2TexError):
    """A broken invariant."""

    default_code = ErrorCode.INTERNAL


_EXCEPTION_BY_CODE: t.Mapping[ErrorCode, type[Html2TexError]] = {
    ErrorCode.PARSE: ParseError,
    ErrorCode.HTML_SYNTAX: ParseError,
    ErrorCode.CSS_SYNTAX: ParseError,
    ErrorCode.MALFORMED: ParseError,
    ErrorCode.CONVERT: ConversionError,
    ErrorCode.UNSUPPORTED: ConversionError,
    ErrorCode.CSS: ConversionError,
    ErrorCode.CSS_VALUE: ConversionError,
    ErrorCode.TABLE: ConversionError,
    ErrorCode.TABLE_STRUCTURE: ConversionError,
    ErrorCode.IMAGE: ImageError,
    ErrorCode.IMAGE_DECODE: ImageError,
    ErrorCode.IMAGE_DOWNLOAD: DownloadError,
    ErrorCode.NETWORK: DownloadError,
    ErrorCode.DOWNLOAD: DownloadError,
    ErrorCode.INTERNAL: InternalError,
    ErrorCode.ASSERT: InternalError,
    ErrorCode.BUF_OVERFLOW: InternalError,
    ErrorCode.NOMEM: InternalError,
}


def exception_for(code: ErrorCode) -> type[Html2TexError]:
    """The exception class matching an error code."""
    return _EXCEPTION_BY_CODE.get(code, Html2TexError)


@attr.s(slots=True)
class ErrorContext:
    """The last failure seen by this thread."""

    code: ErrorCode = attr.ib(default=ErrorCode.OK)
    message: str = attr.ib(default="")
    errno: int = attr.ib(default=0)
    filename: str | None = attr.ib(default=None)
    lineno: int = attr.ib(default=0)

    def to_exception(self) -> Html2TexError:
        """Materialize as something raisable."""
        return exception_for(self.code)(
            self.message,
            self.code,
            errno=self.errno,
            filename=self.filename,
            lineno=self.lineno,
        )


_local = threading.local()


def _context() -> ErrorContext:
    try:
        return _local.context
    except AttributeError:
        _local.context = ErrorContext()
        return _local.context


def set_error(code: ErrorCode, message: str, *, errno: int = 0) -> ErrorContext:
    """Record a failure, noting where it happened."""
    caller = inspect.currentframe().f_back
    context = _context()
    context.code = code
    context.message = message
    context.errno = errno
    context.filename = caller.f_code.co_filename if caller else None
    context.lineno = caller.f_lineno if caller else 0
    logging.debug("%s: %s", code.name, message)
    return context


def record(exc: Html2TexError) -> None:
    """Store a raised exception in the context."""
    context = _context()
    context.code = exc.code
    context.message = exc.message
    context.errno = exc.errno
    context.filename = exc.filename
    context.lineno = exc.lineno


def raise_error(code: ErrorCode, message: str, *, errno: int = 0) -> t.NoReturn:
    """Record a failure and raise it."""
    caller = inspect.currentframe().f_back
    exc = exception_for(code)(
        message,
        code,
        errno=errno,
        filename=caller.f_code.co_filename if caller else None,
        lineno=caller.f_lineno if caller else 0,
    )
    record(exc)
    raise exc


def clear_error() -> None:
    """Forget the last failure."""
    _local.context = ErrorContext()


def has_error() -> bool:
    """Was a failure recorded since the last clear?"""
    return _context().code is not ErrorCode.OK


def last_error() -> ErrorContext:
    """A copy of the current context."""
    return attr.evolve(_context())


def error_code() -> ErrorCode:
    """Code of the last failure."""
    return _context().code


def error_message() -> str:
    """Message of the last failure."""
    return _context().message


def errno_name(number: int) -> str:
    """Symbolic name for an errno value, for log messages."""
    return errno_module.errorcode.get(number, str(number))


@contextlib.contextmanager
def saved_error() -> t.Iterator[ErrorContext]:
    """Run a block whose failures should not leak to the caller."""
    saved = last_error()
    try:
        yield saved
    finally:
        _local.context = saved
