"""Acceptance engine: decide whether an automaton accepts a symbol sequence.

Deterministic automata are walked one state at a time. Everything else is
an existential search over ``(state name, input position)`` pairs: a pair
succeeds when the whole input is consumed in a final state, and its
successors are the epsilon moves (same position) and the moves on the next
input symbol (position + 1). The position fully determines the remaining
suffix, so it doubles as the memoization key.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Iterator, List, Optional, Sequence, Set, Tuple

from automaton import EPSILON, Automaton, StateName, Symbol, is_epsilon
from exceptions import SimulationError
from logging_config import get_logger
from settings import DEFAULT_CONFIG, EngineConfig

logger = get_logger(__name__)

SearchKey = Tuple[StateName, int]


def _in_alphabet(automaton: Automaton, symbol: Symbol) -> bool:
    try:
        return symbol in automaton.alphabet and not is_epsilon(symbol)
    except TypeError:
        # unhashable symbols can never label a transition
        return False


def _successors(
    automaton: Automaton, key: SearchKey, symbols: Sequence[Symbol]
) -> Iterator[SearchKey]:
    name, pos = key
    state = automaton.state(name)

    for dest in state.transitions.get(EPSILON, ()):
        yield (dest, pos)

    if pos < len(symbols) and not is_epsilon(symbols[pos]):
        for dest in state.transitions.get(symbols[pos], ()):
            yield (dest, pos + 1)


def _is_success(automaton: Automaton, key: SearchKey, length: int) -> bool:
    name, pos = key
    return pos == length and automaton.state(name).final


def accepts(
    automaton: Automaton, symbols: Sequence[Symbol], config: EngineConfig = None
) -> bool:
    """Return True if ``automaton`` accepts ``symbols``.

    Never raises for bad input. An automaton without a start state, such as
    an unbuilt ``Automaton()``, accepts nothing. The lower level
    ``accepts_*`` functions require a start state.
    """
    config = config or DEFAULT_CONFIG
    symbols = tuple(symbols)

    if automaton.start_state is None:
        logger.debug(f"{automaton.name}: no start state, rejecting")
        return False

    if not all(_in_alphabet(automaton, s) for s in symbols):
        logger.debug(f"{automaton.name}: input uses symbols outside the alphabet")
        return False

    if automaton.is_deterministic:
        return accepts_deterministic(automaton, symbols)
    if config.parallel_search:
        return accepts_concurrent(automaton, symbols, max_workers=config.max_workers)
    return accepts_sequential(automaton, symbols)


def accepts_deterministic(automaton: Automaton, symbols: Sequence[Symbol]) -> bool:
    """Walk a single current state; a missing transition rejects."""
    if not automaton.is_deterministic:
        raise ValueError(f"accepts_deterministic requires a DFA, got {automaton!r}")

    current = automaton.start
    for symbol in symbols:
        dests = current.transitions.get(symbol)
        if not dests:
            return False
        current = automaton.state(next(iter(dests)))

    return current.final


def accepts_sequential(automaton: Automaton, symbols: Sequence[Symbol]) -> bool:
    """Depth-first existential search in the calling thread."""
    symbols = tuple(symbols)
    start = (automaton.start_state, 0)
    visited: Set[SearchKey] = {start}
    stack = [start]

    while stack:
        key = stack.pop()
        if _is_success(automaton, key, len(symbols)):
            return True

        for succ in _successors(automaton, key, symbols):
            if succ not in visited:
                visited.add(succ)
                stack.append(succ)

    return False


class ExistentialSearch:
    """Fan-out/fan-in search running one pool task per discovered pair.

    ``_cond`` guards the visited set, the pending counter and the closed
    flag; a pair is marked visited and its task submitted in one critical
    section. ``_found`` is the cancellation token: once set, tasks stop
    spawning and return. The coordinator leaves the executor context only
    after closing the search, so every submitted task is joined.
    """

    def __init__(self, automaton: Automaton, symbols: Sequence[Symbol], max_workers: int = None):
        self.automaton = automaton
        self.symbols = tuple(symbols)
        self.max_workers = max_workers
        self.tasks_spawned = 0

        self._found = threading.Event()
        self._cond = threading.Condition()
        self._visited: Set[SearchKey] = set()
        self._pending = 0
        self._closed = False
        self._errors: List[BaseException] = []
        self._executor: Optional[ThreadPoolExecutor] = None

    @property
    def visited(self) -> Set[SearchKey]:
        with self._cond:
            return set(self._visited)

    def run(self) -> bool:
        with ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="nfa-search"
        ) as executor:
            self._executor = executor
            self._spawn((self.automaton.start_state, 0))

            with self._cond:
                while not self._found.is_set() and self._pending > 0:
                    self._cond.wait()
                self._closed = True

        found = self._found.is_set()
        if self._errors and not found:
            raise SimulationError(
                f"{len(self._errors)} search task(s) failed on {self.automaton.name!r}"
            ) from self._errors[0]

        logger.debug(
            f"{self.automaton.name}: {'accepted' if found else 'rejected'} "
            f"after {self.tasks_spawned} tasks"
        )
        return found

    def _spawn(self, key: SearchKey) -> None:
        with self._cond:
            if self._closed or self._found.is_set() or key in self._visited:
                return
            self._visited.add(key)
            self._pending += 1
            self.tasks_spawned += 1
            self._executor.submit(self._explore, key)

    def _explore(self, key: SearchKey) -> None:
        try:
            if self._found.is_set():
                return

            if _is_success(self.automaton, key, len(self.symbols)):
                with self._cond:
                    self._found.set()
                    self._cond.notify_all()
                return

            for succ in _successors(self.automaton, key, self.symbols):
                if self._found.is_set():
                    break
                self._spawn(succ)
        except Exception as exc:
            logger.debug(f"{self.automaton.name}: search task {key} failed: {exc}")
            with self._cond:
                self._errors.append(exc)
        finally:
            with self._cond:
                self._pending -= 1
                if self._pending == 0:
                    self._cond.notify_all()


def accepts_concurrent(
    automaton: Automaton, symbols: Sequence[Symbol], max_workers: int = None
) -> bool:
    return ExistentialSearch(automaton, symbols, max_workers=max_workers).run()
