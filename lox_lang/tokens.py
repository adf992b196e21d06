from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Token:
    type: str
    lexeme: str
    literal: Any
    line: int

    def __str__(self) -> str:
        return f"{self.type} {self.lexeme} {self.literal}"


EOF_TYPE = "EOF"
