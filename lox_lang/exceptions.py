from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .tokens import Token


class LoxError(Exception):
    """Base exception for the runtime."""

    pass


class LoxRuntimeError(LoxError):
    """Raised while evaluating a program; carries the offending token."""

    def __init__(self, token: "Token", message: str):
        super().__init__(message)
        self.token = token
        self.message = message

    def __str__(self) -> str:
        return f"{self.message}\n[line {self.token.line}]"


class ParseError(LoxError):
    """Unwinds the parser to the nearest statement boundary."""

    pass
