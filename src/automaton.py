from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Hashable, Iterable, List, Optional, Sequence, Set, Tuple, Union

import networkx as nx

from exceptions import (
    FrozenAutomatonError,
    InvalidTransitionError,
    UnknownStateError,
    UnresolvedFinalStatesError,
)
from logging_config import get_logger
from settings import DEFAULT_CONFIG, EngineConfig, FinalStatePolicy

logger = get_logger(__name__)


EPSILON = "ε"
EPSILON_SYMBOLS = frozenset({"", EPSILON})

Symbol = Hashable
StateName = Hashable
Triple = Tuple[StateName, Symbol, StateName]


def is_epsilon(symbol: Symbol) -> bool:
    return isinstance(symbol, str) and symbol in EPSILON_SYMBOLS


def name_sort_key(name: Hashable) -> Tuple[str, Hashable]:
    """Order state names of any type; names of one type keep their natural order."""
    return (type(name).__name__, name)


def format_names(names: Iterable[Hashable]) -> str:
    return ", ".join(str(n) for n in sorted(names, key=name_sort_key))


@dataclass(eq=False)
class State:
    """A vertex of an automaton.

    Transitions point at destination state *names*; the owning automaton
    resolves them, so a state never holds a stale copy of another state.
    """

    name: StateName
    transitions: Dict[Symbol, Set[StateName]] = field(default_factory=dict)
    final: bool = False

    def add(self, symbol: Symbol, target: StateName) -> None:
        self.transitions.setdefault(symbol, set()).add(target)

    def destinations(self, symbol: Symbol) -> FrozenSet[StateName]:
        return frozenset(self.transitions.get(symbol, ()))

    def __repr__(self) -> str:
        marker = "*" if self.final else ""
        return f"State({self.name!r}{marker})"


StateRef = Union[State, StateName]


class Automaton:
    """An arena of named states with a designated start state.

    Automata are assembled with ``create_state``/``add_transition`` and then
    frozen by :func:`build`; conversion always returns a new automaton.
    """

    def __init__(
        self,
        name: str = "automaton",
        is_dfa: bool = False,
        state_composition: Dict[str, FrozenSet[StateName]] = None,
    ):
        self.name = name
        self.is_dfa = is_dfa
        self.state_composition = dict(state_composition or {})
        self.alphabet: Set[Symbol] = set()
        self.start_state: Optional[StateName] = None
        self._states: Dict[StateName, State] = {}
        self._frozen = False
        self._epsilon_graph: Optional[nx.DiGraph] = None
        self._deterministic: Optional[bool] = None

    # -- construction -----------------------------------------------------

    def _check_mutable(self) -> None:
        if self._frozen:
            raise FrozenAutomatonError(f"Automaton {self.name!r} is frozen")

    def create_state(self, name: StateName) -> State:
        """Return the state called ``name``, creating it on first reference."""
        state = self._states.get(name)
        if state is None:
            self._check_mutable()
            state = State(name)
            self._states[name] = state
        return state

    def add_transition(self, src: StateName, symbol: Symbol, dst: StateName) -> State:
        self._check_mutable()
        start = self.create_state(src)
        end = self.create_state(dst)

        if is_epsilon(symbol):
            symbol = EPSILON
        else:
            self.alphabet.add(symbol)

        start.add(symbol, end.name)
        return end

    def set_start(self, name: StateName) -> State:
        self._check_mutable()
        state = self.create_state(name)
        self.start_state = state.name
        return state

    def mark_final(self, name: StateName, final: bool = True) -> State:
        self._check_mutable()
        state = self.state(name)
        state.final = final
        return state

    def freeze(self) -> "Automaton":
        if self.start_state is None:
            raise InvalidTransitionError(f"Automaton {self.name!r} has no start state")
        if self.is_dfa and not self.is_deterministic:
            # a copied DFA may have gained epsilon or branching edges
            self.is_dfa = False
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    # -- lookup -----------------------------------------------------------

    @property
    def states(self) -> List[State]:
        return list(self._states.values())

    @property
    def accept_states(self) -> Set[StateName]:
        return {s.name for s in self._states.values() if s.final}

    def state(self, name: StateName) -> State:
        try:
            return self._states[name]
        except KeyError:
            raise UnknownStateError(name, self.name) from None

    def _resolve(self, state: StateRef) -> State:
        if isinstance(state, State):
            if self._states.get(state.name) is not state:
                raise UnknownStateError(state.name, self.name)
            return state
        return self.state(state)

    def __contains__(self, name: StateName) -> bool:
        return name in self._states

    def __len__(self) -> int:
        return len(self._states)

    def __repr__(self) -> str:
        kind = "DFA" if self.is_dfa else "NFA"
        return f"<Automaton {self.name!r} {kind} states={len(self)} start={self.start_state!r}>"

    # -- query surface ----------------------------------------------------

    @property
    def start(self) -> State:
        if self.start_state is None:
            raise UnknownStateError(None, self.name)
        return self._states[self.start_state]

    def is_final(self, state: StateRef) -> bool:
        return self._resolve(state).final

    def state_name(self, state: StateRef) -> StateName:
        return self._resolve(state).name

    def edges(self, state: StateRef) -> Dict[Symbol, Set[State]]:
        """Map each symbol of ``state`` (epsilon included) to its destination states."""
        resolved = self._resolve(state)
        return {
            symbol: {self._states[d] for d in dests}
            for symbol, dests in resolved.transitions.items()
        }

    @property
    def is_deterministic(self) -> bool:
        """True when no epsilon edge exists and every (state, symbol) has one destination."""
        if self._deterministic is not None:
            return self._deterministic

        deterministic = all(
            symbol != EPSILON and len(dests) <= 1
            for state in self._states.values()
            for symbol, dests in state.transitions.items()
        )
        if self._frozen:
            self._deterministic = deterministic
        return deterministic

    def epsilon_graph(self) -> nx.DiGraph:
        """Directed graph over state names holding only the epsilon edges."""
        if self._epsilon_graph is not None:
            return self._epsilon_graph

        graph = nx.DiGraph()
        graph.add_nodes_from(self._states)
        for state in self._states.values():
            for dest in state.transitions.get(EPSILON, ()):
                graph.add_edge(state.name, dest)

        if self._frozen:
            self._epsilon_graph = graph
        return graph

    def closure(self, state: StateRef) -> Set[State]:
        from closure import epsilon_closure

        names = epsilon_closure(self, [self._resolve(state).name])
        return {self._states[n] for n in names}

    def next_states(self, state: StateRef, symbol: Symbol) -> Set[State]:
        """States reachable from ``state`` by one ``symbol`` plus any epsilon moves."""
        from closure import epsilon_closure, move

        origin = epsilon_closure(self, [self._resolve(state).name])
        names = epsilon_closure(self, move(self, origin, symbol))
        return {self._states[n] for n in names}

    def composite_key(self, state: StateRef) -> Tuple[StateName, ...]:
        name = self._resolve(state).name
        if name in self.state_composition:
            return tuple(sorted(self.state_composition[name], key=name_sort_key))
        return (name,)

    def get_readable_state_name(self, state: StateRef) -> str:
        name = self._resolve(state).name
        if name in self.state_composition:
            composition = sorted(self.state_composition[name], key=name_sort_key)
            return f"{name}<{','.join(map(str, composition))}>"
        return str(name)

    def get_stats(self) -> Dict:
        total_transitions = sum(
            len(dests)
            for state in self._states.values()
            for dests in state.transitions.values()
        )
        epsilon_transitions = sum(
            len(state.transitions.get(EPSILON, ())) for state in self._states.values()
        )

        return {
            "states": len(self._states),
            "alphabet_size": len(self.alphabet),
            "accept_states": len(self.accept_states),
            "total_transitions": total_transitions,
            "epsilon_transitions": epsilon_transitions,
            "is_dfa": self.is_dfa and self.is_deterministic,
            "is_deterministic": self.is_deterministic,
        }

    # -- derived automata -------------------------------------------------

    def copy(self) -> "Automaton":
        """Unfrozen deep copy, for extending an automaton after it was built."""
        clone = Automaton(
            name=self.name,
            is_dfa=self.is_dfa,
            state_composition=self.state_composition,
        )
        for state in self._states.values():
            copied = clone.create_state(state.name)
            copied.final = state.final
            copied.transitions = {s: set(d) for s, d in state.transitions.items()}
        clone.alphabet = set(self.alphabet)
        clone.start_state = self.start_state
        return clone

    def to_deterministic(self, config: EngineConfig = None) -> "Automaton":
        from conversion import nfa_to_dfa

        return nfa_to_dfa(self, config=config)

    def accepts(self, symbols: Sequence[Symbol], config: EngineConfig = None) -> bool:
        from simulation import accepts

        return accepts(self, symbols, config=config)


def build(
    transitions: Iterable[Triple],
    start: StateName,
    finals: Iterable[StateName],
    name: str = "automaton",
    config: EngineConfig = None,
) -> Automaton:
    """Assemble and freeze an automaton from ``(from, symbol, to)`` triples.

    States are created the first time a triple names them. Final names are
    applied after all transitions; names no triple mentions are handled
    according to ``config.unknown_final_policy``. The start state is looked
    up last and created if it is isolated.
    """
    config = config or DEFAULT_CONFIG
    automaton = Automaton(name=name)

    for triple in transitions:
        try:
            src, symbol, dst = triple
        except (TypeError, ValueError):
            raise InvalidTransitionError(
                f"Transition must be a (from, symbol, to) triple, got {triple!r}"
            ) from None
        automaton.add_transition(src, symbol, dst)

    finals = set(finals)
    unresolved = {f for f in finals if f not in automaton and f != start}
    if unresolved:
        if config.unknown_final_policy is FinalStatePolicy.REJECT:
            raise UnresolvedFinalStatesError(sorted(unresolved, key=name_sort_key))
        logger.warning(
            f"Creating isolated final states in {name!r}: {format_names(unresolved)}"
        )

    for final in finals:
        automaton.create_state(final)
        automaton.mark_final(final)

    automaton.set_start(start)
    automaton.freeze()

    logger.debug(
        f"Built {name!r}: {len(automaton)} states, alphabet {{{format_names(automaton.alphabet)}}}"
    )
    return automaton
