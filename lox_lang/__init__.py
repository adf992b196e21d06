from .grammar import LOX_GRAMMAR, KEYWORDS
from .exceptions import LoxError, LoxRuntimeError, ParseError
from .tokens import Token
from .diagnostics import (
    Diagnostic,
    ScanOutcome,
    ParseOutcome,
    ResolveOutcome,
    RunOutcome,
)
from .interfaces import IOHandler, ConsoleIO
from .config import RuntimeConfig
from .scanner import scan
from .parser import Parser, parse
from .resolver import Resolver, resolve
from .environment import Environment
from .models import (
    ReturnValue,
    LoxCallable,
    NativeFunction,
    LoxFunction,
    LoxClass,
    LoxInstance,
)
from .stdlib import StdLib
from .types import ValueCanon
from .interpreter import Interpreter
from .printer import AstPrinter
from .session import (
    Lox,
    EXIT_STATIC_ERROR,
    EXIT_NO_INPUT,
    EXIT_RUNTIME_ERROR,
)

__all__ = [
    "LOX_GRAMMAR",
    "KEYWORDS",
    "LoxError",
    "LoxRuntimeError",
    "ParseError",
    "Token",
    "Diagnostic",
    "ScanOutcome",
    "ParseOutcome",
    "ResolveOutcome",
    "RunOutcome",
    "IOHandler",
    "ConsoleIO",
    "RuntimeConfig",
    "scan",
    "Parser",
    "parse",
    "Resolver",
    "resolve",
    "Environment",
    "ReturnValue",
    "LoxCallable",
    "NativeFunction",
    "LoxFunction",
    "LoxClass",
    "LoxInstance",
    "StdLib",
    "ValueCanon",
    "Interpreter",
    "AstPrinter",
    "Lox",
    "EXIT_STATIC_ERROR",
    "EXIT_NO_INPUT",
    "EXIT_RUNTIME_ERROR",
]
