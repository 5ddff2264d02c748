# uaroute/errors.py

from typing import Optional


class UaParserError(Exception):
    """Base class for user-agent parser failures"""


class InitError(UaParserError):
    """
    Rule registry could not be built.

    Raised when the rule document is malformed or a rule pattern fails to
    compile. Fatal for the initialization attempt that raised it.
    """

    def __init__(
        self,
        message: str,
        kind: Optional[str] = None,
        index: Optional[int] = None,
        pattern: Optional[str] = None,
    ):
        self.kind = kind
        self.index = index
        self.pattern = pattern
        if kind is not None and index is not None:
            message = f"{kind}[{index}]: {message}"
        super().__init__(f"initialisation failed: {message}")


class ParseError(UaParserError):
    """Classification of a single user-agent string failed"""


class MatchError(ParseError):
    """The regex engine faulted while evaluating a rule against an input"""

    def __init__(self, kind: str, index: int, cause: BaseException):
        self.kind = kind
        self.index = index
        self.cause = cause
        super().__init__(f"parse failed: {kind}[{index}]: {cause}")


class ZonesUnavailableError(Exception):
    """Zone routing document has never been loaded successfully"""
