import time

from .environment import Environment
from .models import NativeFunction


class StdLib:
    """Host functions installed into the global environment."""

    def register_into(self, environment: Environment) -> None:
        environment.define("clock", NativeFunction("clock", 0, self._clock))

    @staticmethod
    def _clock() -> float:
        return time.time()
