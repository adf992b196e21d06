import logging
import sys
from typing import Any, Dict, List, Optional, Sequence

from .config import RuntimeConfig
from .environment import Environment
from .exceptions import LoxRuntimeError
from .interfaces import ConsoleIO, IOHandler
from .models import LoxCallable, LoxClass, LoxFunction, LoxInstance, ReturnValue
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
from .stdlib import StdLib
from .tokens import EOF_TYPE, Token
from .types import ValueCanon

logger = logging.getLogger(__name__)

# Host frames consumed by one Lox call on the way through the visitor.
_FRAMES_PER_CALL = 24


class Interpreter(Visitor):
    def __init__(
        self,
        io_handler: Optional[IOHandler] = None,
        config: Optional[RuntimeConfig] = None,
    ):
        self.io = io_handler if io_handler is not None else ConsoleIO()
        self.config = config if config is not None else RuntimeConfig.from_env()
        self.globals = Environment()
        self.environment = self.globals
        self.locals: Dict[Expr, int] = {}
        self._call_depth = 0

        StdLib().register_into(self.globals)

        wanted = self.config.max_call_depth * _FRAMES_PER_CALL + 500
        if sys.getrecursionlimit() < wanted:
            logger.debug(
                "Raising recursion limit from %d to %d",
                sys.getrecursionlimit(),
                wanted,
            )
            sys.setrecursionlimit(wanted)

    def interpret(self, statements: Sequence[Stmt]) -> Optional[LoxRuntimeError]:
        """Run top-level statements; the first runtime error stops the run."""
        try:
            for stmt in statements:
                try:
                    self.visit(stmt)
                except RecursionError as e:
                    token = anchor_token(stmt) or Token(EOF_TYPE, "", None, 1)
                    raise LoxRuntimeError(token, "Stack overflow.") from e
        except LoxRuntimeError as error:
            logger.debug("Runtime error at line %d: %s", error.token.line, error.message)
            return error
        finally:
            self._call_depth = 0
            self.environment = self.globals
        return None

    def resolve(self, expr: Expr, depth: int) -> None:
        self.locals[expr] = depth

    def execute_block(
        self, statements: Sequence[Stmt], environment: Environment
    ) -> Optional[ReturnValue]:
        previous = self.environment
        self.environment = environment
        try:
            for stmt in statements:
                result = self.visit(stmt)
                if isinstance(result, ReturnValue):
                    return result
            return None
        finally:
            self.environment = previous

    # --- Statements ---

    def empty(self, stmt: Empty) -> None:
        return None

    def expression_stmt(self, stmt: Expression) -> None:
        self.visit(stmt.expression)

    def print_stmt(self, stmt: Print) -> None:
        value = self.visit(stmt.expression)
        self.io.emit(ValueCanon.stringify(value))

    def var_decl(self, stmt: Var) -> None:
        value = None
        if stmt.initializer is not None:
            value = self.visit(stmt.initializer)
        self.environment.define(stmt.name.lexeme, value)

    def block(self, stmt: Block) -> Optional[ReturnValue]:
        return self.execute_block(stmt.statements, Environment(self.environment))

    def if_stmt(self, stmt: If) -> Optional[ReturnValue]:
        if ValueCanon.is_truthy(self.visit(stmt.condition)):
            return self.visit(stmt.then_branch)
        if stmt.else_branch is not None:
            return self.visit(stmt.else_branch)
        return None

    def while_stmt(self, stmt: While) -> Optional[ReturnValue]:
        while ValueCanon.is_truthy(self.visit(stmt.condition)):
            result = self.visit(stmt.body)
            if isinstance(result, ReturnValue):
                return result
        return None

    def function(self, stmt: Function) -> None:
        self.environment.define(stmt.name.lexeme, LoxFunction(stmt, self.environment))

    def return_stmt(self, stmt: Return) -> ReturnValue:
        value = None
        if stmt.value is not None:
            value = self.visit(stmt.value)
        return ReturnValue(value)

    def class_decl(self, stmt: Class) -> None:
        self.environment.define(stmt.name.lexeme, None)
        methods: Dict[str, LoxFunction] = {}
        for method in stmt.methods:
            methods[method.name.lexeme] = LoxFunction(
                method, self.environment, is_initializer=method.name.lexeme == "init"
            )
        klass = LoxClass(stmt.name.lexeme, methods)
        self.environment.assign(stmt.name, klass)

    # --- Expressions ---

    def literal(self, expr: Literal) -> Any:
        return expr.value

    def grouping(self, expr: Grouping) -> Any:
        return self.visit(expr.expression)

    def unary(self, expr: Unary) -> Any:
        right = self.visit(expr.right)
        if expr.operator.type == "MINUS":
            ValueCanon.check_number_operand(expr.operator, right)
            return -right
        return not ValueCanon.is_truthy(right)

    def binary(self, expr: Binary) -> Any:
        left = self.visit(expr.left)
        right = self.visit(expr.right)
        op = expr.operator
        kind = op.type

        if kind == "PLUS":
            if ValueCanon.is_number(left) and ValueCanon.is_number(right):
                return left + right
            if isinstance(left, str) and isinstance(right, str):
                return left + right
            raise LoxRuntimeError(op, "Operands must be numbers or two strings.")
        if kind == "EQUAL_EQUAL":
            return ValueCanon.is_equal(left, right)
        if kind == "BANG_EQUAL":
            return not ValueCanon.is_equal(left, right)

        ValueCanon.check_number_operands(op, left, right)
        if kind == "MINUS":
            return left - right
        if kind == "STAR":
            return left * right
        if kind == "SLASH":
            return ValueCanon.divide(left, right)
        if kind == "GREATER":
            return left > right
        if kind == "GREATER_EQUAL":
            return left >= right
        if kind == "LESS":
            return left < right
        if kind == "LESS_EQUAL":
            return left <= right
        raise LoxRuntimeError(op, f"Unknown operator '{op.lexeme}'.")

    def logical(self, expr: Logical) -> bool:
        left = ValueCanon.is_truthy(self.visit(expr.left))
        if expr.operator.type == "OR":
            if left:
                return True
        elif not left:
            return False
        return ValueCanon.is_truthy(self.visit(expr.right))

    def variable(self, expr: Variable) -> Any:
        return self._look_up_variable(expr.name, expr)

    def assign(self, expr: Assign) -> Any:
        value = self.visit(expr.value)
        distance = self.locals.get(expr)
        if distance is not None:
            self.environment.assign_at(distance, expr.name, value)
        else:
            self.globals.assign(expr.name, value)
        return value

    def call(self, expr: Call) -> Any:
        callee = self.visit(expr.callee)
        arguments: List[Any] = [self.visit(argument) for argument in expr.arguments]

        if not isinstance(callee, LoxCallable):
            raise LoxRuntimeError(expr.paren, "Can only call functions and classes.")
        if len(arguments) != callee.arity():
            raise LoxRuntimeError(
                expr.paren,
                f"Expected {callee.arity()} arguments but got {len(arguments)}.",
            )
        if self._call_depth >= self.config.max_call_depth:
            raise LoxRuntimeError(expr.paren, "Stack overflow.")

        self._call_depth += 1
        try:
            return callee.call(self, arguments)
        except RecursionError as e:
            raise LoxRuntimeError(expr.paren, "Stack overflow.") from e
        finally:
            self._call_depth -= 1

    def get(self, expr: Get) -> Any:
        obj = self.visit(expr.object)
        if isinstance(obj, LoxInstance):
            return obj.get(expr.name)
        raise LoxRuntimeError(expr.name, "Only instances have properties.")

    def set(self, expr: Set) -> Any:
        obj = self.visit(expr.object)
        if not isinstance(obj, LoxInstance):
            raise LoxRuntimeError(expr.name, "Only instances have fields.")
        value = self.visit(expr.value)
        obj.set(expr.name, value)
        return value

    def this(self, expr: This) -> Any:
        return self._look_up_variable(expr.keyword, expr)

    def _look_up_variable(self, name: Token, expr: Expr) -> Any:
        distance = self.locals.get(expr)
        if distance is not None:
            return self.environment.get_at(distance, name.lexeme)
        return self.globals.get(name)
