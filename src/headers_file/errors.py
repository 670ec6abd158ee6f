"""Errors raised while parsing a headers file.

Every error is fatal to the parse: no partial rule set is returned.
Matching never raises.
"""


class HeadersFileError(Exception):
    """Base class for headers file parse errors."""

    def __init__(self, message: str, line_num: int | None = None, line: str | None = None):
        super().__init__(message)
        self.message = message
        self.line_num = line_num
        self.line = line

    def __str__(self) -> str:
        if self.line_num is None:
            return self.message
        return f"line {self.line_num}: {self.message}"


class MalformedHeaderLine(HeadersFileError):
    """Header line without an open pattern, or not in ``Name: value`` form."""


class MalformedPatternLine(HeadersFileError):
    """Pattern line that cannot be read as a URL reference."""


class InvalidPort(HeadersFileError):
    """Absolute URL pattern with a port."""


class InvalidScheme(HeadersFileError):
    """Pattern with a scheme other than https."""


class InputReadFailure(HeadersFileError):
    """The input stream failed before end of input."""


class LimitExceeded(HeadersFileError):
    """A configured parse limit was exceeded."""


class TooManyRules(LimitExceeded):
    pass


class LineTooLong(LimitExceeded):
    pass
