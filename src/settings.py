import os
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict

from exceptions import InvalidConfigurationError


class FinalStatePolicy(Enum):
    """What ``build`` does with final names no transition mentions."""

    CREATE = "create"
    REJECT = "reject"


def _default_workers() -> int:
    return min(32, (os.cpu_count() or 1) + 4)


def _env_flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class EngineConfig:
    """Configuration for automaton construction, conversion and simulation"""

    unknown_final_policy: FinalStatePolicy = FinalStatePolicy.CREATE
    # Route missing DFA transitions to an explicit non-final dead state.
    complete_dfa: bool = False
    # Run the nondeterministic search on a thread pool instead of inline.
    parallel_search: bool = True
    max_workers: int = field(default_factory=_default_workers)

    def validate(self) -> "EngineConfig":
        if not isinstance(self.unknown_final_policy, FinalStatePolicy):
            raise InvalidConfigurationError(
                f"unknown_final_policy must be a FinalStatePolicy, got {self.unknown_final_policy!r}"
            )
        if self.max_workers < 1:
            raise InvalidConfigurationError(
                f"max_workers must be at least 1, got {self.max_workers}"
            )
        return self

    def with_options(self, **changes) -> "EngineConfig":
        return replace(self, **changes).validate()

    @classmethod
    def from_env(cls, prefix: str = "AUTOMATA_ENGINE_") -> "EngineConfig":
        """Build a config from ``AUTOMATA_ENGINE_*`` environment variables.

        Recognised variables: ``FINAL_POLICY`` (create/reject), ``COMPLETE_DFA``,
        ``PARALLEL_SEARCH`` and ``MAX_WORKERS``. Unset variables keep defaults.
        """
        options: Dict[str, Any] = {}

        policy = os.getenv(prefix + "FINAL_POLICY")
        if policy:
            try:
                options["unknown_final_policy"] = FinalStatePolicy(policy.strip().lower())
            except ValueError:
                raise InvalidConfigurationError(
                    f"Unsupported final state policy: {policy!r}"
                ) from None

        complete = os.getenv(prefix + "COMPLETE_DFA")
        if complete:
            options["complete_dfa"] = _env_flag(complete)

        parallel = os.getenv(prefix + "PARALLEL_SEARCH")
        if parallel:
            options["parallel_search"] = _env_flag(parallel)

        workers = os.getenv(prefix + "MAX_WORKERS")
        if workers:
            try:
                options["max_workers"] = int(workers)
            except ValueError:
                raise InvalidConfigurationError(
                    f"MAX_WORKERS must be an integer, got {workers!r}"
                ) from None

        return cls(**options).validate()


DEFAULT_CONFIG = EngineConfig()
