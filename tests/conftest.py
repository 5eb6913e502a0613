"""
Pytest fixtures for the automaton engine tests.
"""

import itertools
import random

import pytest

from automaton import EPSILON, build
from settings import EngineConfig


@pytest.fixture
def scenario_a():
    """a b* over states S0 -> S1."""
    return build([("S0", "a", "S1"), ("S1", "b", "S1")], start="S0", finals={"S1"}, name="a_bstar")


@pytest.fixture
def scenario_b():
    """Epsilon branching: S0 -ε-> S1 -b-> S3, S0 -a-> S2."""
    return build(
        [("S0", EPSILON, "S1"), ("S0", "a", "S2"), ("S1", "b", "S3")],
        start="S0",
        finals={"S2", "S3"},
        name="eps_branch",
    )


@pytest.fixture
def epsilon_cycle():
    """(ab)* with an epsilon loop p <-> q <-> r wrapped around it."""
    return build(
        [
            ("p", EPSILON, "q"),
            ("q", EPSILON, "r"),
            ("r", EPSILON, "p"),
            ("q", "a", "s"),
            ("s", "b", "p"),
        ],
        start="p",
        finals={"r"},
        name="eps_cycle",
    )


@pytest.fixture
def ends_with_ab():
    """Classic NFA for (a|b)*ab."""
    return build(
        [("0", "a", "0"), ("0", "b", "0"), ("0", "a", "1"), ("1", "b", "2")],
        start="0",
        finals={"2"},
        name="ends_with_ab",
    )


@pytest.fixture
def sequential_config():
    return EngineConfig(parallel_search=False)


@pytest.fixture
def parallel_config():
    return EngineConfig(parallel_search=True, max_workers=4)


def random_nfa(seed, n_states=5, alphabet=("a", "b"), n_transitions=10, eps_ratio=0.3):
    """Deterministically generated epsilon-NFA for oracle comparisons."""
    rng = random.Random(seed)
    names = [f"q{i}" for i in range(n_states)]
    transitions = []
    for _ in range(n_transitions):
        symbol = EPSILON if rng.random() < eps_ratio else rng.choice(alphabet)
        transitions.append((rng.choice(names), symbol, rng.choice(names)))
    finals = set(rng.sample(names, rng.randint(1, 2)))
    return build(transitions, start=names[0], finals=finals, name=f"random_{seed}")


def all_words(alphabet=("a", "b"), max_length=4):
    for length in range(max_length + 1):
        for word in itertools.product(alphabet, repeat=length):
            yield list(word)
