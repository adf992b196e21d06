import logging
from typing import List, Optional

from .diagnostics import NESTING_TOO_DEEP, Diagnostic, ParseOutcome
from .exceptions import ParseError
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
    While,
)
from .tokens import EOF_TYPE, Token

logger = logging.getLogger(__name__)

MAX_ARGUMENTS = 255

_STATEMENT_STARTS = frozenset(
    {"CLASS", "FUN", "VAR", "FOR", "IF", "WHILE", "PRINT", "RETURN"}
)


class Parser:
    """Recursive-descent parser, one method per precedence level.

    assignment -> or -> and -> equality -> comparison -> term -> factor
    -> unary -> call -> primary
    """

    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.current = 0
        self.errors: List[Diagnostic] = []

    def parse(self) -> ParseOutcome:
        statements: List[Stmt] = []
        while not self._is_at_end():
            try:
                stmt = self._declaration()
            except RecursionError:
                self.errors.append(Diagnostic.at_token(self._peek(), NESTING_TOO_DEEP))
                self._synchronize()
                continue
            if stmt is not None:
                statements.append(stmt)
        logger.debug(
            "Parsed %d statements (%d errors)", len(statements), len(self.errors)
        )
        return ParseOutcome(statements, self.errors)

    # --- Declarations ---

    def _declaration(self) -> Optional[Stmt]:
        try:
            if self._match("CLASS"):
                return self._class_declaration()
            if self._match("FUN"):
                return self._function("function")
            if self._match("VAR"):
                return self._var_declaration()
            return self._statement()
        except ParseError:
            self._synchronize()
            return None

    def _class_declaration(self) -> Stmt:
        name = self._consume("IDENTIFIER", "Expect class name.")
        self._consume("LEFT_BRACE", "Expect '{' before class body.")
        methods: List[Function] = []
        while not self._check("RIGHT_BRACE") and not self._is_at_end():
            methods.append(self._function("method"))
        self._consume("RIGHT_BRACE", "Expect '}' after class body.")
        return Class(name, methods)

    def _function(self, kind: str) -> Function:
        name = self._consume("IDENTIFIER", f"Expect {kind} name.")
        self._consume("LEFT_PAREN", f"Expect '(' after {kind} name.")
        params: List[Token] = []
        if not self._check("RIGHT_PAREN"):
            while True:
                if len(params) >= MAX_ARGUMENTS:
                    self._error(
                        self._peek(),
                        f"Can't have more than {MAX_ARGUMENTS} parameters.",
                    )
                params.append(self._consume("IDENTIFIER", "Expect parameter name."))
                if not self._match("COMMA"):
                    break
        self._consume("RIGHT_PAREN", "Expect ')' after parameters.")
        self._consume("LEFT_BRACE", f"Expect '{{' before {kind} body.")
        return Function(name, params, self._block())

    def _var_declaration(self) -> Stmt:
        name = self._consume("IDENTIFIER", "Expect variable name.")
        initializer = self._expression() if self._match("EQUAL") else None
        self._consume("SEMICOLON", "Expect ';' after variable declaration.")
        return Var(name, initializer)

    # --- Statements ---

    def _statement(self) -> Stmt:
        if self._match("PRINT"):
            return self._print_statement()
        if self._match("RETURN"):
            return self._return_statement()
        if self._match("FOR"):
            return self._for_statement()
        if self._match("IF"):
            return self._if_statement()
        if self._match("WHILE"):
            return self._while_statement()
        if self._match("LEFT_BRACE"):
            return Block(self._block())
        return self._expression_statement()

    def _print_statement(self) -> Stmt:
        value = self._expression()
        self._consume("SEMICOLON", "Expect ';' after value.")
        return Print(value)

    def _return_statement(self) -> Stmt:
        keyword = self._previous()
        value = None if self._check("SEMICOLON") else self._expression()
        self._consume("SEMICOLON", "Expect ';' after return value.")
        return Return(keyword, value)

    def _for_statement(self) -> Stmt:
        self._consume("LEFT_PAREN", "Expect '(' after 'for'.")

        if self._match("SEMICOLON"):
            initializer: Stmt = Empty()
        elif self._match("VAR"):
            initializer = self._var_declaration()
        else:
            initializer = self._expression_statement()

        condition = Literal(True) if self._check("SEMICOLON") else self._expression()
        self._consume("SEMICOLON", "Expect ';' after loop condition.")

        if self._check("RIGHT_PAREN"):
            increment: Stmt = Empty()
        else:
            increment = Expression(self._expression())
        self._consume("RIGHT_PAREN", "Expect ')' after for clauses.")

        body = self._statement()
        return Block([initializer, While(condition, Block([body, increment]))])

    def _if_statement(self) -> Stmt:
        self._consume("LEFT_PAREN", "Expect '(' after 'if'.")
        condition = self._expression()
        self._consume("RIGHT_PAREN", "Expect ')' after if condition.")
        then_branch = self._statement()
        else_branch = self._statement() if self._match("ELSE") else None
        return If(condition, then_branch, else_branch)

    def _while_statement(self) -> Stmt:
        self._consume("LEFT_PAREN", "Expect '(' after 'while'.")
        condition = self._expression()
        self._consume("RIGHT_PAREN", "Expect ')' after condition.")
        return While(condition, self._statement())

    def _expression_statement(self) -> Stmt:
        expr = self._expression()
        self._consume("SEMICOLON", "Expect ';' after expression.")
        return Expression(expr)

    def _block(self) -> List[Stmt]:
        statements: List[Stmt] = []
        while not self._check("RIGHT_BRACE") and not self._is_at_end():
            stmt = self._declaration()
            if stmt is not None:
                statements.append(stmt)
        self._consume("RIGHT_BRACE", "Expect '}' after block.")
        return statements

    # --- Expressions ---

    def _expression(self) -> Expr:
        return self._assignment()

    def _assignment(self) -> Expr:
        expr = self._or()

        if self._match("EQUAL"):
            equals = self._previous()
            value = self._assignment()
            if isinstance(expr, Variable):
                return Assign(expr.name, value)
            if isinstance(expr, Get):
                return Set(expr.object, expr.name, value)
            self._error(equals, "Invalid assignment target.")

        return expr

    def _or(self) -> Expr:
        expr = self._and()
        while self._match("OR"):
            operator = self._previous()
            expr = Logical(expr, operator, self._and())
        return expr

    def _and(self) -> Expr:
        expr = self._equality()
        while self._match("AND"):
            operator = self._previous()
            expr = Logical(expr, operator, self._equality())
        return expr

    def _equality(self) -> Expr:
        expr = self._comparison()
        while self._match("BANG_EQUAL", "EQUAL_EQUAL"):
            operator = self._previous()
            expr = Binary(expr, operator, self._comparison())
        return expr

    def _comparison(self) -> Expr:
        expr = self._term()
        while self._match("GREATER", "GREATER_EQUAL", "LESS", "LESS_EQUAL"):
            operator = self._previous()
            expr = Binary(expr, operator, self._term())
        return expr

    def _term(self) -> Expr:
        expr = self._factor()
        while self._match("MINUS", "PLUS"):
            operator = self._previous()
            expr = Binary(expr, operator, self._factor())
        return expr

    def _factor(self) -> Expr:
        expr = self._unary()
        while self._match("SLASH", "STAR"):
            operator = self._previous()
            expr = Binary(expr, operator, self._unary())
        return expr

    def _unary(self) -> Expr:
        if self._match("BANG", "MINUS"):
            operator = self._previous()
            return Unary(operator, self._unary())
        return self._call()

    def _call(self) -> Expr:
        expr = self._primary()
        while True:
            if self._match("LEFT_PAREN"):
                expr = self._finish_call(expr)
            elif self._match("DOT"):
                name = self._consume("IDENTIFIER", "Expect property name after '.'.")
                expr = Get(expr, name)
            else:
                break
        return expr

    def _finish_call(self, callee: Expr) -> Expr:
        arguments: List[Expr] = []
        if not self._check("RIGHT_PAREN"):
            while True:
                if len(arguments) >= MAX_ARGUMENTS:
                    self._error(
                        self._peek(),
                        f"Can't have more than {MAX_ARGUMENTS} arguments.",
                    )
                arguments.append(self._expression())
                if not self._match("COMMA"):
                    break
        paren = self._consume("RIGHT_PAREN", "Expect ')' after arguments.")
        return Call(callee, paren, arguments)

    def _primary(self) -> Expr:
        if self._match("FALSE"):
            return Literal(False)
        if self._match("TRUE"):
            return Literal(True)
        if self._match("NIL"):
            return Literal(None)
        if self._match("NUMBER", "STRING"):
            return Literal(self._previous().literal)
        if self._match("THIS"):
            return This(self._previous())
        if self._match("IDENTIFIER"):
            return Variable(self._previous())
        if self._match("LEFT_PAREN"):
            expr = self._expression()
            self._consume("RIGHT_PAREN", "Expect ')' after expression.")
            return Grouping(expr)
        raise self._error(self._peek(), "Expect expression.")

    # --- Token stream helpers ---

    def _consume(self, type_: str, message: str) -> Token:
        if self._check(type_):
            return self._advance()
        raise self._error(self._peek(), message)

    def _error(self, token: Token, message: str) -> ParseError:
        """Record a diagnostic; callers raise the result only to unwind."""
        self.errors.append(Diagnostic.at_token(token, message))
        return ParseError(message)

    def _synchronize(self) -> None:
        self._advance()
        while not self._is_at_end():
            if self._previous().type == "SEMICOLON":
                return
            if self._peek().type in _STATEMENT_STARTS:
                return
            self._advance()

    def _match(self, *types: str) -> bool:
        for type_ in types:
            if self._check(type_):
                self._advance()
                return True
        return False

    def _check(self, type_: str) -> bool:
        if self._is_at_end():
            return False
        return self._peek().type == type_

    def _advance(self) -> Token:
        if not self._is_at_end():
            self.current += 1
        return self._previous()

    def _is_at_end(self) -> bool:
        return self._peek().type == EOF_TYPE

    def _peek(self) -> Token:
        return self.tokens[self.current]

    def _previous(self) -> Token:
        return self.tokens[self.current - 1]


def parse(tokens: List[Token]) -> ParseOutcome:
    return Parser(tokens).parse()
