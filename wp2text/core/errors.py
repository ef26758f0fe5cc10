"""Exception types raised by wp2text."""

from typing import Optional


class Wp2TextError(Exception):
    """Base class for all wp2text errors."""


class IoFailure(Wp2TextError):
    """Reading the input stream failed before end of stream was reached."""

    def __init__(self, message: str, bytes_read: int = 0):
        super().__init__(message)
        self.bytes_read = bytes_read


class OutputFailure(Wp2TextError):
    """Writing an output file failed (disk full, permissions, ...)."""


class ConfigError(Wp2TextError, ValueError):
    """Invalid rendering or run configuration."""


class PageProcessingError(Wp2TextError):
    """Parsing or rendering a single page failed."""

    def __init__(self, title: str, reason: str, index: Optional[int] = None):
        super().__init__(f"{title}: {reason}")
        self.title = title
        self.reason = reason
        self.index = index

    def __reduce__(self):
        return self.__class__, (self.title, self.reason, self.index)
