from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional

from .tokens import EOF_TYPE, Token

NESTING_TOO_DEEP = "Expression nesting too deep."

if TYPE_CHECKING:
    from .exceptions import LoxRuntimeError
    from .nodes import Expr, Stmt


@dataclass(frozen=True)
class Diagnostic:
    """A static error: lexical, syntactic or resolution."""

    line: int
    where: str
    message: str

    @classmethod
    def at_token(cls, token: Token, message: str) -> "Diagnostic":
        if token.type == EOF_TYPE:
            return cls(token.line, " at end", message)
        return cls(token.line, f" at '{token.lexeme}'", message)

    def __str__(self) -> str:
        return f"[line {self.line}] Error{self.where}: {self.message}"


@dataclass
class ScanOutcome:
    tokens: List[Token]
    errors: List[Diagnostic] = field(default_factory=list)


@dataclass
class ParseOutcome:
    statements: List["Stmt"]
    errors: List[Diagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass
class ResolveOutcome:
    locals: Dict["Expr", int]
    errors: List[Diagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass
class RunOutcome:
    errors: List[Diagnostic] = field(default_factory=list)
    runtime_error: Optional["LoxRuntimeError"] = None

    @property
    def had_error(self) -> bool:
        return bool(self.errors)

    @property
    def had_runtime_error(self) -> bool:
        return self.runtime_error is not None
