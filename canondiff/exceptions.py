"""Custom exceptions for canondiff engine."""


class CanonDiffError(Exception):
    """Base exception for canondiff errors."""
    pass


class ValidationError(CanonDiffError):
    """Raised when input validation fails."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ParseError(CanonDiffError):
    """Raised when a document cannot be parsed."""
    def __init__(self, message: str, line: int = None, column: int = None, side: str = None):
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column
        self.side = side


class JsonParseError(ParseError):
    """Raised when JSON text is not valid JSON."""
    pass


class XmlParseError(ParseError):
    """Raised when XML text is not well-formed."""
    pass


class InputSizeError(CanonDiffError):
    """Raised when an input exceeds the configured size ceiling."""
    def __init__(self, size_mb: float, limit_mb: float, side: str = None):
        super().__init__(f"Content size is {size_mb:.2f} MB. Maximum allowed size is {limit_mb} MB.")
        self.size_mb = size_mb
        self.limit_mb = limit_mb
        self.side = side
