"""
Scheduler exceptions.
调度器异常类型。
"""

from __future__ import annotations


class SchedulerError(Exception):
    """Base class for every error raised by the scheduler package."""


class DuplicateTaskError(SchedulerError):
    """
    A task name was registered twice. This is caller misuse, not bad data.
    同名任务被重复注册——属于调用方误用，而非数据问题。
    """

    def __init__(self, name: str):
        super().__init__(f"Task '{name}' is already registered")
        self.name = name


class CycleDetectedError(SchedulerError):
    """
    The dependency graph has a cycle, so no complete order exists.
    依赖图中存在环，无法得到完整的执行顺序。

    `unscheduled` lists every task that never became ready: the cycle
    members plus everything that transitively depends on them.
    `unscheduled` 列出所有未能就绪的任务：环上的任务以及所有（传递地）依赖它们的任务。
    """

    def __init__(self, unscheduled: list[str]):
        self.unscheduled = sorted(unscheduled)
        super().__init__(
            f"Circular dependency detected; {len(self.unscheduled)} task(s) never became ready: "
            f"{', '.join(self.unscheduled)}"
        )


class SchedulerInvariantError(SchedulerError):
    """Internal bookkeeping went wrong. Indicates a bug, never bad input."""
