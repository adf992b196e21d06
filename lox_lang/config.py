import os
from dataclasses import dataclass

DEFAULT_MAX_CALL_DEPTH = 512


@dataclass
class RuntimeConfig:
    max_call_depth: int = DEFAULT_MAX_CALL_DEPTH

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        return cls(
            max_call_depth=int(
                os.environ.get("LOX_MAX_CALL_DEPTH", str(DEFAULT_MAX_CALL_DEPTH))
            )
        )
