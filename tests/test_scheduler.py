"""
Scheduler tests, grouped by capability:
  1. Diamond / independent / boundary scenarios
  2. Cycle detection
  3. Timeline properties on generated acyclic graphs
  4. Tie-break policies
  5. Registration errors and dangling dependencies

运行方式:
    pytest tests/test_scheduler.py -v
"""

from __future__ import annotations

import random

import pytest
from pydantic import ValidationError

from schema import ScheduleEntry, TaskState, TieBreak, total_span
from scheduler import CycleDetectedError, DuplicateTaskError, TaskScheduler


DIAMOND = [
    ("A", [], 3),
    ("B", ["A"], 2),
    ("C", ["A"], 1),
    ("D", ["B", "C"], 4),
]


def _build(rows, order=None, **kwargs) -> TaskScheduler:
    """Register `rows` (name, deps, duration) in the given index order."""
    scheduler = TaskScheduler(**kwargs)
    for i in order if order is not None else range(len(rows)):
        name, deps, duration = rows[i]
        scheduler.add_task(name, deps, duration)
    return scheduler


def _as_tuples(entries: list[ScheduleEntry]) -> list[tuple[str, int, int]]:
    return [(e.name, e.start, e.duration) for e in entries]


# ======================================================================
# Test 1: Concrete scenarios
# ======================================================================


class TestScenarios:

    def test_diamond(self):
        scheduler = _build(DIAMOND, tie_break="name")
        assert _as_tuples(scheduler.schedule_tasks()) == [
            ("A", 0, 3),
            ("B", 3, 2),
            ("C", 5, 1),
            ("D", 6, 4),
        ]

    @pytest.mark.parametrize("order", [[0, 1, 2, 3], [3, 2, 1, 0], [2, 3, 0, 1], [1, 0, 3, 2]])
    def test_diamond_independent_of_registration_order(self, order):
        scheduler = _build(DIAMOND, order=order, tie_break="name")
        entries = scheduler.schedule_tasks()
        assert [e.name for e in entries] == ["A", "B", "C", "D"]
        assert [e.start for e in entries] == [0, 3, 5, 6]

    def test_independent_tasks(self):
        scheduler = _build([("A", [], 5), ("B", [], 2)], tie_break="name")
        entries = scheduler.schedule_tasks()
        assert {e.start for e in entries} == {0, 5}
        assert _as_tuples(entries) == [("A", 0, 5), ("B", 5, 2)]
        assert total_span(entries) == 7

    def test_single_zero_duration_task(self):
        scheduler = TaskScheduler()
        scheduler.add_task("only", [], 0)
        assert _as_tuples(scheduler.schedule_tasks()) == [("only", 0, 0)]

    def test_empty_scheduler(self):
        entries = TaskScheduler().schedule_tasks()
        assert entries == []
        assert total_span(entries) == 0

    def test_entry_end(self):
        entries = _build(DIAMOND).schedule_tasks()
        assert entries[-1].end == 10

    def test_idempotent(self):
        scheduler = _build(DIAMOND, order=[3, 1, 2, 0])
        first = scheduler.schedule_tasks()
        second = scheduler.schedule_tasks()
        assert first == second

    def test_stored_in_degree_untouched(self):
        scheduler = _build(DIAMOND)
        before = dict(scheduler.graph.in_degree)
        scheduler.schedule_tasks()
        assert scheduler.graph.in_degree == before

    def test_topological_order(self):
        assert _build(DIAMOND).topological_order() == ["A", "B", "C", "D"]


# ======================================================================
# Test 2: Cycle detection
# ======================================================================


class TestCycleDetection:

    def test_three_cycle(self):
        scheduler = _build([("A", ["B"], 1), ("B", ["C"], 1), ("C", ["A"], 1)])
        with pytest.raises(CycleDetectedError) as info:
            scheduler.schedule_tasks()
        assert info.value.unscheduled == ["A", "B", "C"]

    def test_self_dependency(self):
        scheduler = TaskScheduler()
        scheduler.add_task("A", ["A"], 1)
        with pytest.raises(CycleDetectedError) as info:
            scheduler.schedule_tasks()
        assert info.value.unscheduled == ["A"]

    def test_cycle_blocks_downstream_only(self):
        """环上的任务及其下游都被阻塞，无关任务不受影响."""
        scheduler = _build([
            ("setup", [], 1),
            ("X", ["Y", "setup"], 1),
            ("Y", ["X"], 1),
            ("report", ["Y"], 2),
            ("docs", ["setup"], 1),
        ])
        with pytest.raises(CycleDetectedError) as info:
            scheduler.schedule_tasks()
        assert info.value.unscheduled == ["X", "Y", "report"]
        assert "Circular dependency detected" in str(info.value)

    def test_cycle_is_stable_across_calls(self):
        scheduler = _build([("A", ["B"], 1), ("B", ["A"], 1)])
        for _ in range(2):
            with pytest.raises(CycleDetectedError):
                scheduler.schedule_tasks()

    def test_topological_order_raises_on_cycle(self):
        scheduler = _build([("A", ["B"], 1), ("B", ["A"], 1)])
        with pytest.raises(CycleDetectedError):
            scheduler.topological_order()


# ======================================================================
# Test 3: Timeline properties on generated DAGs
# ======================================================================


def _random_dag(seed: int, size: int = 25) -> list[tuple[str, list[str], int]]:
    """Edges only point to earlier indices, so the graph is always acyclic."""
    rng = random.Random(seed)
    rows = []
    for i in range(size):
        deps = sorted({f"t{j}" for j in range(i) if rng.random() < 0.15})
        rows.append((f"t{i}", deps, rng.randint(0, 9)))
    return rows


class TestTimelineProperties:

    @pytest.mark.parametrize("seed", range(10))
    @pytest.mark.parametrize("tie_break", list(TieBreak))
    def test_acyclic_graph_properties(self, seed, tie_break):
        rows = _random_dag(seed)
        order = list(range(len(rows)))
        random.Random(seed + 100).shuffle(order)
        scheduler = _build(rows, order=order, tie_break=tie_break)

        entries = scheduler.schedule_tasks()
        by_name = {e.name: e for e in entries}

        # exactly one entry per task
        assert len(entries) == len(rows)
        assert set(by_name) == {name for name, _, _ in rows}

        # every task starts after each direct dependency ends
        for name, deps, _ in rows:
            for dep in deps:
                assert by_name[name].start >= by_name[dep].end

        # single worker: each entry starts where the previous one ended
        time = 0
        for e in entries:
            assert e.start == time
            time = e.end
        assert total_span(entries) == sum(d for _, _, d in rows)


# ======================================================================
# Test 4: Tie-break policies
# ======================================================================


class TestTieBreak:

    def test_registration_policy_follows_registration(self):
        scheduler = _build([("B", [], 2), ("A", [], 5)], tie_break=TieBreak.REGISTRATION)
        assert _as_tuples(scheduler.schedule_tasks()) == [("B", 0, 2), ("A", 2, 5)]

    def test_name_policy_ignores_registration(self):
        scheduler = _build([("B", [], 2), ("A", [], 5)], tie_break=TieBreak.NAME)
        assert _as_tuples(scheduler.schedule_tasks()) == [("A", 0, 5), ("B", 5, 2)]

    def test_registration_policy_on_released_tasks(self):
        scheduler = _build(DIAMOND, order=[3, 2, 1, 0], tie_break="registration")
        entries = scheduler.schedule_tasks()
        assert [e.name for e in entries] == ["A", "C", "B", "D"]
        assert [e.start for e in entries] == [0, 3, 4, 6]

    def test_fifo_frontier(self):
        """Released tasks queue behind tasks that were already ready."""
        scheduler = _build([("A", [], 1), ("Z", [], 1), ("B", ["A"], 1)], tie_break="name")
        assert scheduler.topological_order() == ["A", "Z", "B"]

    def test_default_comes_from_config(self, monkeypatch):
        import config

        monkeypatch.setattr(config, "TIE_BREAK", "registration")
        assert TaskScheduler().tie_break is TieBreak.REGISTRATION

    def test_unknown_policy(self):
        with pytest.raises(ValueError):
            TaskScheduler(tie_break="priority")


# ======================================================================
# Test 5: Registration and dangling dependencies
# ======================================================================


class TestRegistration:

    def test_duplicate_task(self):
        scheduler = TaskScheduler()
        scheduler.add_task("A", [], 1)
        with pytest.raises(DuplicateTaskError) as info:
            scheduler.add_task("A", ["B"], 2)
        assert info.value.name == "A"
        # the failed call leaves the registry untouched
        assert scheduler.graph.tasks["A"].duration == 1
        assert "A" not in scheduler.graph.dependents.get("B", [])

    def test_negative_duration(self):
        scheduler = TaskScheduler()
        with pytest.raises(ValidationError):
            scheduler.add_task("A", [], -1)
        assert len(scheduler.graph) == 0

    def test_add_task_returns_task(self):
        task = TaskScheduler().add_task("A", ["x", "y"], 3)
        assert task.name == "A"
        assert task.dependencies == ("x", "y")

    def test_from_tasks(self):
        scheduler = _build(DIAMOND)
        clone = TaskScheduler.from_tasks(scheduler.graph, tie_break="name")
        assert clone.schedule_tasks() == scheduler.schedule_tasks()

    def test_dependency_registered_later(self):
        scheduler = TaskScheduler()
        scheduler.add_task("B", ["A"], 2)
        scheduler.add_task("A", [], 1)
        assert _as_tuples(scheduler.schedule_tasks()) == [("A", 0, 1), ("B", 1, 2)]

    def test_dangling_dependency_is_soft(self, caplog):
        scheduler = TaskScheduler(tie_break="name", warn_dangling=True)
        scheduler.add_task("A", [], 1)
        scheduler.add_task("B", ["A", "ghost"], 2)
        with caplog.at_level("WARNING"):
            entries = scheduler.schedule_tasks()
        assert _as_tuples(entries) == [("A", 0, 1), ("B", 1, 2)]
        assert scheduler.dangling_dependencies() == {"ghost": ["B"]}
        assert "ghost" in caplog.text

    def test_dangling_warning_disabled(self, caplog):
        scheduler = TaskScheduler(warn_dangling=False)
        scheduler.add_task("B", ["ghost"], 2)
        with caplog.at_level("WARNING"):
            scheduler.schedule_tasks()
        assert "ghost" not in caplog.text

    def test_transition_callback(self):
        events: list[tuple[str, TaskState, TaskState]] = []
        scheduler = _build(
            [("A", [], 1), ("B", ["A"], 1)],
            on_transition=lambda name, old, new: events.append((name, old, new)),
        )
        scheduler.schedule_tasks()
        assert events == [
            ("A", TaskState.BLOCKED, TaskState.READY),
            ("A", TaskState.READY, TaskState.SCHEDULED),
            ("B", TaskState.BLOCKED, TaskState.READY),
            ("B", TaskState.READY, TaskState.SCHEDULED),
        ]

    def test_summary_and_to_dict(self):
        scheduler = _build(DIAMOND, tie_break="name")
        assert scheduler.summary() == "TaskGraph[4 tasks, 4 edges, 0 dangling] tie_break=name"
        data = scheduler.to_dict()
        assert data["tie_break"] == "name"
        assert data["tasks"][3] == {"name": "D", "dependencies": ["B", "C"], "duration": 4}
