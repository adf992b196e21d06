import logging
from enum import Enum
from typing import Dict, List, Sequence

from .diagnostics import NESTING_TOO_DEEP, Diagnostic, ResolveOutcome
from .nodes import (
    Assign,
    Binary,
    Block,
    Call,
    Class,
    Empty,
    Expr,
    Expression,
    Function,
    Get,
    Grouping,
    If,
    Literal,
    Logical,
    Print,
    Return,
    Set,
    Stmt,
    This,
    Unary,
    Var,
    Variable,
    Visitor,
    While,
    anchor_token,
)
from .tokens import Token

logger = logging.getLogger(__name__)


class FunctionType(Enum):
    NONE = "none"
    FUNCTION = "function"
    INITIALIZER = "initializer"
    METHOD = "method"


class ClassType(Enum):
    NONE = "none"
    CLASS = "class"


class Resolver(Visitor):
    """Static pass computing how many scopes separate each local reference
    from its declaration.

    References with no enclosing declaration are left out of the table and
    looked up in the globals at runtime. Scope rules that can be checked
    without running the program are reported here.
    """

    def __init__(self):
        self.scopes: List[Dict[str, bool]] = []
        self.locals: Dict[Expr, int] = {}
        self.errors: List[Diagnostic] = []
        self.current_function = FunctionType.NONE
        self.current_class = ClassType.NONE

    def resolve(self, statements: Sequence[Stmt]) -> ResolveOutcome:
        for stmt in statements:
            try:
                self.visit(stmt)
            except RecursionError:
                self._too_deep(stmt)
        logger.debug(
            "Resolved %d local references (%d errors)",
            len(self.locals),
            len(self.errors),
        )
        return ResolveOutcome(self.locals, self.errors)

    def _resolve_all(self, statements: Sequence[Stmt]) -> None:
        for stmt in statements:
            self.visit(stmt)

    # --- Scope bookkeeping ---

    def _begin_scope(self) -> None:
        self.scopes.append({})

    def _end_scope(self) -> None:
        self.scopes.pop()

    def _declare(self, name: Token) -> None:
        if not self.scopes:
            return
        scope = self.scopes[-1]
        if name.lexeme in scope:
            self._error(name, "Already a variable with this name in this scope.")
        scope[name.lexeme] = False

    def _define(self, name: Token) -> None:
        if not self.scopes:
            return
        self.scopes[-1][name.lexeme] = True

    def _resolve_local(self, expr: Expr, name: Token) -> None:
        for i in range(len(self.scopes) - 1, -1, -1):
            if name.lexeme in self.scopes[i]:
                self.locals[expr] = len(self.scopes) - 1 - i
                return

    def _resolve_function(self, function: Function, kind: FunctionType) -> None:
        enclosing_function = self.current_function
        self.current_function = kind
        self._begin_scope()
        for param in function.params:
            self._declare(param)
            self._define(param)
        self._resolve_all(function.body)
        self._end_scope()
        self.current_function = enclosing_function

    def _error(self, token: Token, message: str) -> None:
        self.errors.append(Diagnostic.at_token(token, message))

    def _too_deep(self, stmt: Stmt) -> None:
        token = anchor_token(stmt)
        self.errors.append(
            Diagnostic(token.line if token is not None else 1, "", NESTING_TOO_DEEP)
        )
        self.scopes = []
        self.current_function = FunctionType.NONE
        self.current_class = ClassType.NONE

    # --- Statements ---

    def empty(self, stmt: Empty) -> None:
        pass

    def expression_stmt(self, stmt: Expression) -> None:
        self.visit(stmt.expression)

    def print_stmt(self, stmt: Print) -> None:
        self.visit(stmt.expression)

    def var_decl(self, stmt: Var) -> None:
        self._declare(stmt.name)
        if stmt.initializer is not None:
            self.visit(stmt.initializer)
        self._define(stmt.name)

    def block(self, stmt: Block) -> None:
        self._begin_scope()
        self._resolve_all(stmt.statements)
        self._end_scope()

    def if_stmt(self, stmt: If) -> None:
        self.visit(stmt.condition)
        self.visit(stmt.then_branch)
        if stmt.else_branch is not None:
            self.visit(stmt.else_branch)

    def while_stmt(self, stmt: While) -> None:
        self.visit(stmt.condition)
        self.visit(stmt.body)

    def function(self, stmt: Function) -> None:
        # Defined before the body so the function can call itself.
        self._declare(stmt.name)
        self._define(stmt.name)
        self._resolve_function(stmt, FunctionType.FUNCTION)

    def return_stmt(self, stmt: Return) -> None:
        if self.current_function is FunctionType.NONE:
            self._error(stmt.keyword, "Can't return from top-level code.")
        if stmt.value is not None:
            if self.current_function is FunctionType.INITIALIZER:
                self._error(stmt.keyword, "Can't return a value from an initializer.")
            self.visit(stmt.value)

    def class_decl(self, stmt: Class) -> None:
        enclosing_class = self.current_class
        self.current_class = ClassType.CLASS
        self._declare(stmt.name)
        self._define(stmt.name)

        self._begin_scope()
        self.scopes[-1]["this"] = True
        for method in stmt.methods:
            kind = (
                FunctionType.INITIALIZER
                if method.name.lexeme == "init"
                else FunctionType.METHOD
            )
            self._resolve_function(method, kind)
        self._end_scope()

        self.current_class = enclosing_class

    # --- Expressions ---

    def literal(self, expr: Literal) -> None:
        pass

    def grouping(self, expr: Grouping) -> None:
        self.visit(expr.expression)

    def unary(self, expr: Unary) -> None:
        self.visit(expr.right)

    def binary(self, expr: Binary) -> None:
        self.visit(expr.left)
        self.visit(expr.right)

    def logical(self, expr: Logical) -> None:
        self.visit(expr.left)
        self.visit(expr.right)

    def variable(self, expr: Variable) -> None:
        if self.scopes and self.scopes[-1].get(expr.name.lexeme) is False:
            self._error(expr.name, "Can't read local variable in its own initializer.")
        self._resolve_local(expr, expr.name)

    def assign(self, expr: Assign) -> None:
        self.visit(expr.value)
        self._resolve_local(expr, expr.name)

    def call(self, expr: Call) -> None:
        self.visit(expr.callee)
        for argument in expr.arguments:
            self.visit(argument)

    def get(self, expr: Get) -> None:
        self.visit(expr.object)

    def set(self, expr: Set) -> None:
        self.visit(expr.value)
        self.visit(expr.object)

    def this(self, expr: This) -> None:
        if self.current_class is ClassType.NONE:
            self._error(expr.keyword, "Can't use 'this' outside of a class.")
            return
        self._resolve_local(expr, expr.keyword)


def resolve(statements: Sequence[Stmt]) -> ResolveOutcome:
    return Resolver().resolve(statements)
