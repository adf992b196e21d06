import logging
from typing import List

from lark import Lark
from lark.exceptions import UnexpectedCharacters

from .diagnostics import Diagnostic, ScanOutcome
from .grammar import KEYWORDS, LOX_GRAMMAR
from .tokens import EOF_TYPE, Token

logger = logging.getLogger(__name__)

_LEXER = None


def get_lexer() -> Lark:
    """Lazily construct and cache the lark lexer for the Lox token grammar."""
    global _LEXER
    if _LEXER is None:
        _LEXER = Lark(LOX_GRAMMAR, parser="lalr", lexer="basic")
    return _LEXER


def _convert(raw, line_offset: int) -> Token:
    line = raw.line + line_offset
    text = str(raw)
    if raw.type == "IDENTIFIER" and text in KEYWORDS:
        return Token(text.upper(), text, None, line)
    if raw.type == "NUMBER":
        return Token("NUMBER", text, float(text), line)
    if raw.type == "STRING":
        return Token("STRING", text, text[1:-1], line)
    return Token(raw.type, text, None, line)


def scan(source: str) -> ScanOutcome:
    """Turn source text into tokens, recording lexical errors as it goes.

    lark stops at the first character no terminal matches, so lexing is
    restarted just past each bad character with the line count carried over.
    """
    tokens: List[Token] = []
    errors: List[Diagnostic] = []
    lexer = get_lexer()
    pos = 0
    line_offset = 0

    while True:
        try:
            for raw in lexer.lex(source[pos:]):
                tokens.append(_convert(raw, line_offset))
            break
        except UnexpectedCharacters as e:
            bad = pos + e.pos_in_stream
            if source[bad] == '"':
                # The string runs to the end of input.
                errors.append(
                    Diagnostic(source.count("\n") + 1, "", "Unterminated string.")
                )
                break
            errors.append(
                Diagnostic(e.line + line_offset, "", "Unexpected character.")
            )
            line_offset += source.count("\n", pos, bad + 1)
            pos = bad + 1

    tokens.append(Token(EOF_TYPE, "", None, source.count("\n") + 1))
    logger.debug("Scanned %d tokens (%d errors)", len(tokens), len(errors))
    return ScanOutcome(tokens, errors)
