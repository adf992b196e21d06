import math
from typing import Any

from .exceptions import LoxRuntimeError
from .tokens import Token


class ValueCanon:
    """Rules shared by every operator: truthiness, equality, printing."""

    @staticmethod
    def is_truthy(value: Any) -> bool:
        if value is None:
            return False
        if isinstance(value, bool):
            return value
        return True

    @staticmethod
    def is_equal(left: Any, right: Any) -> bool:
        if left is None or right is None:
            return left is right
        # bool is an int subclass in Python; Lox never equates true with 1.
        if isinstance(left, bool) != isinstance(right, bool):
            return False
        return left == right

    @staticmethod
    def is_number(value: Any) -> bool:
        return isinstance(value, float) and not isinstance(value, bool)

    @classmethod
    def check_number_operand(cls, operator: Token, operand: Any) -> None:
        if not cls.is_number(operand):
            raise LoxRuntimeError(operator, "Operand must be a number.")

    @classmethod
    def check_number_operands(cls, operator: Token, left: Any, right: Any) -> None:
        if not (cls.is_number(left) and cls.is_number(right)):
            raise LoxRuntimeError(operator, "Operands must be numbers.")

    @staticmethod
    def divide(left: float, right: float) -> float:
        if right == 0.0:
            if left == 0.0 or math.isnan(left):
                return math.nan
            return math.copysign(math.inf, left) * math.copysign(1.0, right)
        return left / right

    @staticmethod
    def stringify(value: Any) -> str:
        if value is None:
            return "nil"
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, float):
            if math.isnan(value):
                return "NaN"
            if math.isinf(value):
                return "Infinity" if value > 0 else "-Infinity"
            text = repr(value)
            return text[:-2] if text.endswith(".0") else text
        return str(value)
