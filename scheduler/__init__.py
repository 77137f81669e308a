"""
Scheduler module - Dependency-ordered sequential task scheduling.
调度模块 —— 按依赖关系排序的顺序任务调度。

Components:
  - graph.py:         TaskGraph registry and dependency index
  - state_machine.py: Task lifecycle state machine (BLOCKED -> READY -> SCHEDULED)
  - timeline.py:      TaskScheduler (Kahn's algorithm + cumulative timeline)
  - errors.py:        DuplicateTaskError, CycleDetectedError

模块组成：
  - graph.py:         TaskGraph 任务注册表与依赖索引
  - state_machine.py: 任务生命周期状态机（强制合法状态转移）
  - timeline.py:      TaskScheduler（Kahn 算法 + 累积时间线）
  - errors.py:        重复注册、循环依赖等异常
"""

from scheduler.errors import (
    CycleDetectedError,
    DuplicateTaskError,
    SchedulerError,
    SchedulerInvariantError,
)
from scheduler.graph import TaskGraph                                  # 任务注册表
from scheduler.state_machine import InvalidTransitionError, TaskStateMachine  # 任务状态机
from scheduler.timeline import TaskScheduler                           # 调度器

__all__ = [
    "CycleDetectedError",
    "DuplicateTaskError",
    "InvalidTransitionError",
    "SchedulerError",
    "SchedulerInvariantError",
    "TaskGraph",
    "TaskScheduler",
    "TaskStateMachine",
]
