"""Tests for the acceptance engine."""

import threading

import pytest

from automaton import EPSILON, Automaton, build
from exceptions import SimulationError
from settings import EngineConfig
from simulation import (
    ExistentialSearch,
    accepts,
    accepts_concurrent,
    accepts_deterministic,
    accepts_sequential,
)
from tests.conftest import all_words, random_nfa


class TestScenarioA:
    """a b*"""

    @pytest.mark.parametrize(
        "word,expected",
        [(["a"], True), (["a", "b", "b"], True), ([], False), (["b"], False)],
    )
    def test_accepts(self, scenario_a, word, expected):
        assert scenario_a.accepts(word) is expected
        assert accepts_deterministic(scenario_a, word) is expected
        assert accepts_sequential(scenario_a, word) is expected
        assert accepts_concurrent(scenario_a, word) is expected


class TestScenarioB:
    """Epsilon branching."""

    @pytest.mark.parametrize(
        "word,expected",
        [(["a"], True), (["b"], True), (["a", "b"], False)],
    )
    def test_accepts(self, scenario_b, word, expected, sequential_config, parallel_config):
        assert scenario_b.accepts(word, config=sequential_config) is expected
        assert scenario_b.accepts(word, config=parallel_config) is expected
        assert accepts_sequential(scenario_b, word) is expected

    def test_empty_input_rejected(self, scenario_b):
        assert scenario_b.accepts([]) is False


class TestRejection:
    def test_symbol_outside_alphabet(self, scenario_a):
        assert scenario_a.accepts(["a", "z"]) is False

    @pytest.mark.parametrize("symbol", [EPSILON, ""])
    def test_epsilon_symbol_in_input(self, scenario_b, symbol):
        assert scenario_b.accepts([symbol, "b"]) is False
        assert scenario_b.accepts([symbol]) is False

    def test_unhashable_symbol(self, scenario_a):
        assert scenario_a.accepts([["a"]]) is False

    def test_accepts_any_iterable(self, scenario_a):
        assert scenario_a.accepts(iter(["a", "b"])) is True
        assert scenario_a.accepts("abbb") is True

    def test_non_string_symbols(self):
        a = build([(0, 1, 1), (1, 2, 0)], start=0, finals={0})
        assert a.accepts([1, 2, 1, 2])
        assert not a.accepts([1])

    def test_automaton_without_start_rejects(self):
        unbuilt = Automaton(name="unbuilt")
        assert accepts(unbuilt, []) is False
        unbuilt.add_transition("x", "a", "y")
        assert unbuilt.accepts(["a"]) is False

    def test_deterministic_walk_requires_dfa(self, scenario_b):
        with pytest.raises(ValueError):
            accepts_deterministic(scenario_b, ["a"])


class TestTermination:
    """Epsilon cycles must not hang either path."""

    @pytest.mark.parametrize(
        "word,expected",
        [
            ([], True),
            (["a", "b"], True),
            (["a", "b", "a", "b"], True),
            (["a"], False),
            (["b", "a"], False),
            (["a", "b", "a"], False),
        ],
    )
    def test_epsilon_cycle(self, epsilon_cycle, word, expected, sequential_config, parallel_config):
        assert epsilon_cycle.accepts(word, config=sequential_config) is expected
        assert epsilon_cycle.accepts(word, config=parallel_config) is expected
        assert epsilon_cycle.to_deterministic().accepts(word) is expected

    def test_pure_epsilon_loop_without_final(self):
        a = build([("x", EPSILON, "y"), ("y", EPSILON, "x"), ("x", "a", "x")], start="x", finals=set())
        assert accepts_concurrent(a, ["a", "a"]) is False
        assert accepts_sequential(a, ["a", "a"]) is False

    def test_long_input(self, ends_with_ab):
        word = ["a", "b"] * 200
        assert accepts_concurrent(ends_with_ab, word, max_workers=8) is True
        assert accepts_concurrent(ends_with_ab, word + ["a"], max_workers=8) is False


class TestConcurrencyAgnosticism:
    """The sequential search is the oracle for the pool-based one."""

    @pytest.mark.parametrize("seed", range(30))
    def test_random_nfas(self, seed):
        nfa = random_nfa(seed, n_states=6, n_transitions=14)
        for word in all_words(max_length=4):
            assert accepts_concurrent(nfa, word, max_workers=4) == accepts_sequential(nfa, word), word

    @pytest.mark.parametrize("workers", [1, 2, 16])
    def test_worker_counts(self, ends_with_ab, workers):
        for word in all_words(max_length=5):
            expected = accepts_sequential(ends_with_ab, word)
            assert accepts_concurrent(ends_with_ab, word, max_workers=workers) == expected

    def test_parallel_calls_share_automaton(self, ends_with_ab):
        words = list(all_words(max_length=5))
        expected = [accepts_sequential(ends_with_ab, w) for w in words]
        results = {}

        def worker(index):
            results[index] = [accepts_concurrent(ends_with_ab, w, max_workers=2) for w in words]

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert all(r == expected for r in results.values())


class TestExistentialSearch:
    def test_each_pair_explored_once(self, epsilon_cycle):
        search = ExistentialSearch(epsilon_cycle, ["a"], max_workers=4)
        assert search.run() is False
        # (p,0) (q,0) (r,0) (s,1): nothing else is reachable
        assert search.visited == {("p", 0), ("q", 0), ("r", 0), ("s", 1)}
        assert search.tasks_spawned == 4

    def test_failed_task_raises_simulation_error(self, scenario_b, monkeypatch):
        search = ExistentialSearch(scenario_b, ["b"], max_workers=2)

        def broken(*args):
            raise RuntimeError("boom")

        monkeypatch.setattr("simulation._is_success", broken)
        with pytest.raises(SimulationError):
            search.run()

    def test_sequential_config_routes_inline(self, scenario_b, monkeypatch):
        def fail(*args, **kwargs):
            raise AssertionError("pool search should not run")

        monkeypatch.setattr("simulation.accepts_concurrent", fail)
        assert accepts(scenario_b, ["b"], config=EngineConfig(parallel_search=False))
