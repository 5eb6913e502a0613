"""Custom exceptions for the automaton engine."""

from typing import Hashable, Iterable


class AutomatonError(Exception):
    """Base exception for all automaton engine errors."""

    pass


class InvalidConfigurationError(AutomatonError):
    """Raised when an automaton or engine configuration is inconsistent."""

    pass


class UnresolvedFinalStatesError(InvalidConfigurationError):
    """Raised when final state names do not match any constructed state."""

    def __init__(self, names: Iterable[Hashable]) -> None:
        self.names = list(names)
        super().__init__(
            "Final states not defined by any transition: "
            + ", ".join(str(n) for n in self.names)
        )


class InvalidTransitionError(AutomatonError):
    """Raised when a transition triple is malformed."""

    pass


class FrozenAutomatonError(AutomatonError):
    """Raised when a built automaton is modified."""

    pass


class UnknownStateError(AutomatonError, KeyError):
    """Raised when a state is not part of the automaton."""

    def __init__(self, state: object, automaton: str = "") -> None:
        self.state = state
        self.automaton = automaton
        super().__init__(state)

    def __str__(self) -> str:
        if self.automaton:
            return f"Unknown state {self.state!r} in automaton {self.automaton!r}"
        return f"Unknown state {self.state!r}"


class SimulationError(AutomatonError):
    """Raised when a search task fails unexpectedly."""

    pass
