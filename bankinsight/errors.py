from dataclasses import dataclass
from typing import Optional

MALFORMED_ROW = "MalformedRow"
INVALID_DATE = "InvalidDate"
INVALID_AMOUNT = "InvalidAmount"
MISSING_REQUIRED_FIELD = "MissingRequiredField"


@dataclass(frozen=True)
class ParseError:
    """A row-scoped, non-fatal import failure."""
    kind: str
    message: str
    line: Optional[int] = None

    def at(self, line: int) -> "ParseError":
        return ParseError(self.kind, self.message, line)

    def __str__(self) -> str:
        if self.line is None:
            return self.message
        return f"Line {self.line}: {self.message}"


class IoFailure(Exception):
    """The statement source could not be read; nothing was imported."""


class ConfigError(Exception):
    """An import configuration file is unreadable or invalid."""
