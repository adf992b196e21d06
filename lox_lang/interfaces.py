import sys
from abc import ABC, abstractmethod
from typing import Optional


class IOHandler(ABC):
    """Abstracts I/O so interpreters can be hosted in different frontends."""

    @abstractmethod
    def emit(self, text: str) -> None: ...

    @abstractmethod
    def error(self, text: str) -> None: ...

    @abstractmethod
    def read_input(self, prompt: str) -> Optional[str]: ...


class ConsoleIO(IOHandler):
    """Console-backed I/O used by the CLI and REPL."""

    def emit(self, text: str) -> None:
        try:
            print(text)
        except UnicodeEncodeError:
            encoding = getattr(sys.stdout, "encoding", None) or "ascii"
            print(text.encode(encoding, "backslashreplace").decode(encoding))

    def error(self, text: str) -> None:
        print(text, file=sys.stderr)

    def read_input(self, prompt: str) -> Optional[str]:
        try:
            return input(prompt)
        except EOFError:
            return None
