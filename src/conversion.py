from collections import deque
from typing import Dict, FrozenSet, Tuple

from automaton import Automaton, StateName, format_names, name_sort_key
from closure import epsilon_closure, move
from logging_config import PerformanceTimer, get_logger
from settings import DEFAULT_CONFIG, EngineConfig

logger = get_logger(__name__)

CompositeKey = Tuple[StateName, ...]


def composite_key(names: FrozenSet[StateName]) -> CompositeKey:
    """Canonical, order independent identity of a set of NFA state names."""
    return tuple(sorted(names, key=name_sort_key))


def nfa_to_dfa(
    nfa: Automaton, name_suffix: str = "__DFA", config: EngineConfig = None
) -> Automaton:
    """Subset construction: build a new DFA equivalent to ``nfa``.

    Each DFA state ``D<n>`` stands for the epsilon-closed set of NFA states
    recorded in ``state_composition``. Composites are memoized by their
    canonical key, so reaching the same set twice always yields the same
    state and the worklist drains even on cyclic automata.
    """
    config = config or DEFAULT_CONFIG
    alphabet = sorted(nfa.alphabet, key=str)

    dfa = Automaton(name=f"{nfa.name}{name_suffix}", is_dfa=True)
    dfa.alphabet = set(alphabet)
    state_name: Dict[CompositeKey, str] = {}
    queue = deque()

    def materialize(members: FrozenSet[StateName]) -> str:
        key = composite_key(members)
        if key in state_name:
            return state_name[key]

        name = f"D{len(state_name)}"
        state_name[key] = name
        dfa.create_state(name)
        dfa.state_composition[name] = frozenset(members)
        if any(nfa.state(s).final for s in members):
            dfa.mark_final(name)

        queue.append(frozenset(members))
        logger.debug(f"{dfa.name}: composite {name} = {{{format_names(key)}}}")
        return name

    with PerformanceTimer(f"determinize {nfa.name!r}"):
        start_closure = epsilon_closure(nfa, [nfa.start.name])
        dfa.set_start(materialize(start_closure))

        while queue:
            T = queue.popleft()
            T_name = state_name[composite_key(T)]

            for a in alphabet:
                U = epsilon_closure(nfa, move(nfa, T, a))

                if not U and not config.complete_dfa:
                    continue

                dfa.add_transition(T_name, a, materialize(U))

        dfa.freeze()

    logger.debug(
        f"Determinized {nfa.name!r}: {len(nfa)} NFA states -> {len(dfa)} DFA states"
    )
    return dfa
