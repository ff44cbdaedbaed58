from __future__ import annotations

import os
from dataclasses import dataclass

from tapzero.constants import ENV_EXIT_ON_FAILURE, ENV_RETHROW, ENV_STRICT


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(slots=True)
class RunnerSettings:
    strict: bool = False
    rethrow_exceptions: bool = True
    exit_on_failure: bool = True

    @staticmethod
    def from_env() -> RunnerSettings:
        return RunnerSettings(
            strict=_env_flag(ENV_STRICT, False),
            rethrow_exceptions=_env_flag(ENV_RETHROW, True),
            exit_on_failure=_env_flag(ENV_EXIT_ON_FAILURE, True),
        )


__all__ = ["RunnerSettings"]
