"""Syntax tree for Lox programs.

Every node is a frozen dataclass compared by identity (``eq=False``), so the
resolver can key its side table on the node itself. Each class names the
visitor method that handles it through ``rule``, and ``Visitor.visit``
dispatches on that name.
"""

from collections import deque
from dataclasses import dataclass, fields
from typing import Any, ClassVar, List, Optional

from .tokens import Token


class Node:
    rule: ClassVar[str]


class Expr(Node):
    pass


class Stmt(Node):
    pass


# --- Expressions ---


@dataclass(frozen=True, eq=False)
class Literal(Expr):
    value: Any
    rule: ClassVar[str] = "literal"


@dataclass(frozen=True, eq=False)
class Grouping(Expr):
    expression: Expr
    rule: ClassVar[str] = "grouping"


@dataclass(frozen=True, eq=False)
class Unary(Expr):
    operator: Token
    right: Expr
    rule: ClassVar[str] = "unary"


@dataclass(frozen=True, eq=False)
class Binary(Expr):
    left: Expr
    operator: Token
    right: Expr
    rule: ClassVar[str] = "binary"


@dataclass(frozen=True, eq=False)
class Logical(Expr):
    left: Expr
    operator: Token
    right: Expr
    rule: ClassVar[str] = "logical"


@dataclass(frozen=True, eq=False)
class Variable(Expr):
    name: Token
    rule: ClassVar[str] = "variable"


@dataclass(frozen=True, eq=False)
class Assign(Expr):
    name: Token
    value: Expr
    rule: ClassVar[str] = "assign"


@dataclass(frozen=True, eq=False)
class Call(Expr):
    callee: Expr
    paren: Token
    arguments: List[Expr]
    rule: ClassVar[str] = "call"


@dataclass(frozen=True, eq=False)
class Get(Expr):
    object: Expr
    name: Token
    rule: ClassVar[str] = "get"


@dataclass(frozen=True, eq=False)
class Set(Expr):
    object: Expr
    name: Token
    value: Expr
    rule: ClassVar[str] = "set"


@dataclass(frozen=True, eq=False)
class This(Expr):
    keyword: Token
    rule: ClassVar[str] = "this"


# --- Statements ---


@dataclass(frozen=True, eq=False)
class Empty(Stmt):
    rule: ClassVar[str] = "empty"


@dataclass(frozen=True, eq=False)
class Expression(Stmt):
    expression: Expr
    rule: ClassVar[str] = "expression_stmt"


@dataclass(frozen=True, eq=False)
class Print(Stmt):
    expression: Expr
    rule: ClassVar[str] = "print_stmt"


@dataclass(frozen=True, eq=False)
class Var(Stmt):
    name: Token
    initializer: Optional[Expr]
    rule: ClassVar[str] = "var_decl"


@dataclass(frozen=True, eq=False)
class Block(Stmt):
    statements: List[Stmt]
    rule: ClassVar[str] = "block"


@dataclass(frozen=True, eq=False)
class If(Stmt):
    condition: Expr
    then_branch: Stmt
    else_branch: Optional[Stmt]
    rule: ClassVar[str] = "if_stmt"


@dataclass(frozen=True, eq=False)
class While(Stmt):
    condition: Expr
    body: Stmt
    rule: ClassVar[str] = "while_stmt"


@dataclass(frozen=True, eq=False)
class Function(Stmt):
    name: Token
    params: List[Token]
    body: List[Stmt]
    rule: ClassVar[str] = "function"


@dataclass(frozen=True, eq=False)
class Return(Stmt):
    keyword: Token
    value: Optional[Expr]
    rule: ClassVar[str] = "return_stmt"


@dataclass(frozen=True, eq=False)
class Class(Stmt):
    name: Token
    methods: List[Function]
    rule: ClassVar[str] = "class_decl"


EXPR_RULES = tuple(
    cls.rule
    for cls in (
        Literal,
        Grouping,
        Unary,
        Binary,
        Logical,
        Variable,
        Assign,
        Call,
        Get,
        Set,
        This,
    )
)

STMT_RULES = tuple(
    cls.rule
    for cls in (
        Empty,
        Expression,
        Print,
        Var,
        Block,
        If,
        While,
        Function,
        Return,
        Class,
    )
)


class Visitor:
    """Dispatches a node to the method named by its ``rule``."""

    def visit(self, node: Node):
        return getattr(self, node.rule, self.__default__)(node)

    def __default__(self, node: Node):
        raise TypeError(f"{type(self).__name__} cannot visit {type(node).__name__}")


def anchor_token(node: Node) -> Optional[Token]:
    """Shallowest token under ``node``, found breadth-first without recursion.

    Used to place an error on a tree too deep to walk recursively.
    """
    queue = deque([node])
    while queue:
        current = queue.popleft()
        for f in fields(current):
            value = getattr(current, f.name)
            for item in value if isinstance(value, list) else (value,):
                if isinstance(item, Token):
                    return item
                if isinstance(item, Node):
                    queue.append(item)
    return None
