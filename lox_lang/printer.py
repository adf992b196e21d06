from typing import Sequence

from .nodes import (
    Assign,
    Binary,
    Block,
    Call,
    Class,
    Empty,
    Expression,
    Function,
    Get,
    Grouping,
    If,
    Literal,
    Logical,
    Node,
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
)
from .types import ValueCanon


class AstPrinter(Visitor):
    """Renders a syntax tree as parenthesized prefix forms.

    ``-123 * (45.67)`` prints as ``(* (- 123) (group 45.67))``.
    """

    def render(self, node: Node) -> str:
        return self.visit(node)

    def render_program(self, statements: Sequence[Stmt]) -> str:
        return "\n".join(self.visit(stmt) for stmt in statements)

    def _parenthesize(self, name: str, *parts: Node) -> str:
        inner = " ".join(self.visit(part) for part in parts)
        return f"({name} {inner})" if inner else f"({name})"

    # --- Expressions ---

    def literal(self, expr: Literal) -> str:
        if isinstance(expr.value, str):
            return f'"{expr.value}"'
        return ValueCanon.stringify(expr.value)

    def grouping(self, expr: Grouping) -> str:
        return self._parenthesize("group", expr.expression)

    def unary(self, expr: Unary) -> str:
        return self._parenthesize(expr.operator.lexeme, expr.right)

    def binary(self, expr: Binary) -> str:
        return self._parenthesize(expr.operator.lexeme, expr.left, expr.right)

    def logical(self, expr: Logical) -> str:
        return self._parenthesize(expr.operator.lexeme, expr.left, expr.right)

    def variable(self, expr: Variable) -> str:
        return expr.name.lexeme

    def assign(self, expr: Assign) -> str:
        return f"(= {expr.name.lexeme} {self.visit(expr.value)})"

    def call(self, expr: Call) -> str:
        return self._parenthesize("call", expr.callee, *expr.arguments)

    def get(self, expr: Get) -> str:
        return f"(. {self.visit(expr.object)} {expr.name.lexeme})"

    def set(self, expr: Set) -> str:
        return f"(= (. {self.visit(expr.object)} {expr.name.lexeme}) {self.visit(expr.value)})"

    def this(self, expr: This) -> str:
        return "this"

    # --- Statements ---

    def empty(self, stmt: Empty) -> str:
        return "(empty)"

    def expression_stmt(self, stmt: Expression) -> str:
        return self._parenthesize(";", stmt.expression)

    def print_stmt(self, stmt: Print) -> str:
        return self._parenthesize("print", stmt.expression)

    def var_decl(self, stmt: Var) -> str:
        if stmt.initializer is None:
            return f"(var {stmt.name.lexeme})"
        return f"(var {stmt.name.lexeme} {self.visit(stmt.initializer)})"

    def block(self, stmt: Block) -> str:
        return self._parenthesize("block", *stmt.statements)

    def if_stmt(self, stmt: If) -> str:
        if stmt.else_branch is None:
            return self._parenthesize("if", stmt.condition, stmt.then_branch)
        return self._parenthesize(
            "if-else", stmt.condition, stmt.then_branch, stmt.else_branch
        )

    def while_stmt(self, stmt: While) -> str:
        return self._parenthesize("while", stmt.condition, stmt.body)

    def function(self, stmt: Function) -> str:
        params = " ".join(param.lexeme for param in stmt.params)
        parts = [f"fun {stmt.name.lexeme} ({params})"]
        parts.extend(self.visit(s) for s in stmt.body)
        return f"({' '.join(parts)})"

    def return_stmt(self, stmt: Return) -> str:
        if stmt.value is None:
            return "(return)"
        return self._parenthesize("return", stmt.value)

    def class_decl(self, stmt: Class) -> str:
        methods = " ".join(self.visit(method) for method in stmt.methods)
        if not methods:
            return f"(class {stmt.name.lexeme})"
        return f"(class {stmt.name.lexeme} {methods})"
