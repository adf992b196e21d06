import logging
from typing import Optional

from .config import RuntimeConfig
from .diagnostics import RunOutcome
from .interfaces import ConsoleIO, IOHandler
from .interpreter import Interpreter
from .parser import parse
from .resolver import resolve
from .scanner import scan

logger = logging.getLogger(__name__)

EXIT_STATIC_ERROR = 65
EXIT_NO_INPUT = 66
EXIT_RUNTIME_ERROR = 70


class Lox:
    """Runs source text through scan, parse, resolve and interpret.

    One session owns one interpreter, so globals survive from one ``run``
    to the next the way a REPL expects. Error status is reported per run.
    """

    def __init__(
        self,
        io_handler: Optional[IOHandler] = None,
        config: Optional[RuntimeConfig] = None,
    ):
        self.io = io_handler if io_handler is not None else ConsoleIO()
        self.interpreter = Interpreter(io_handler=self.io, config=config)

    def run(self, source: str) -> RunOutcome:
        outcome = RunOutcome()

        scanned = scan(source)
        parsed = parse(scanned.tokens)
        outcome.errors.extend(scanned.errors)
        outcome.errors.extend(parsed.errors)
        if outcome.had_error:
            return self._report(outcome)

        resolved = resolve(parsed.statements)
        outcome.errors.extend(resolved.errors)
        if outcome.had_error:
            return self._report(outcome)

        for expr, depth in resolved.locals.items():
            self.interpreter.resolve(expr, depth)
        outcome.runtime_error = self.interpreter.interpret(parsed.statements)
        return self._report(outcome)

    def _report(self, outcome: RunOutcome) -> RunOutcome:
        for diagnostic in sorted(outcome.errors, key=lambda d: d.line):
            self.io.error(str(diagnostic))
        if outcome.runtime_error is not None:
            self.io.error(str(outcome.runtime_error))
        if outcome.had_error:
            logger.debug("Run stopped with %d static errors", len(outcome.errors))
        return outcome
