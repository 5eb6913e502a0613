from typing import FrozenSet, Iterable

import networkx as nx

from automaton import Automaton, StateName, Symbol, is_epsilon
from exceptions import UnknownStateError


def epsilon_closure(automaton: Automaton, names: Iterable[StateName]) -> FrozenSet[StateName]:
    """States reachable from ``names`` through zero or more epsilon edges.

    The traversal is a depth-first search over the automaton's epsilon
    subgraph; its visited set keeps epsilon cycles from looping.
    """
    graph = automaton.epsilon_graph()
    closure = set()

    for name in names:
        if name in closure:
            continue
        if name not in graph:
            raise UnknownStateError(name, automaton.name)
        closure.update(nx.dfs_preorder_nodes(graph, source=name))

    return frozenset(closure)


def move(automaton: Automaton, names: Iterable[StateName], symbol: Symbol) -> FrozenSet[StateName]:
    """Direct ``symbol`` destinations of every state in ``names``."""
    if is_epsilon(symbol):
        raise ValueError("move() follows alphabet symbols only; use epsilon_closure()")

    result = set()
    for name in names:
        result |= automaton.state(name).transitions.get(symbol, set())

    return frozenset(result)
