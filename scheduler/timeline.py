"""
TaskScheduler - Kahn's algorithm with a sequential timeline.
TaskScheduler —— 基于 Kahn 算法的顺序时间线调度器。

Scheduling loop:
  1. Copy the registered in-degree table
  2. Seed a FIFO frontier with every zero in-degree task (ordered by tie-break)
  3. Pop the front task, append (name, time, duration), advance time
  4. Decrement each dependent; those reaching zero join the back of the frontier
  5. Repeat until the frontier is empty, then compare counts

调度循环：
  1. 复制注册时记录的入度表
  2. 将所有入度为 0 的任务按 tie-break 策略放入 FIFO 就绪队列
  3. 弹出队首任务，写入 (名称, 开始时间, 持续时间)，推进时间
  4. 将其所有下游任务入度减 1，减到 0 的加入队尾
  5. 队列耗尽后比较已调度数量与任务总数

Execution is modelled on a single worker: every task waits for the one
before it, even when they are independent. A multi-worker variant would
track per-task earliest start instead of one running clock.
执行模型为单工作者：即使任务之间相互独立，也必须等待前一个任务结束。
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Any, Callable, Iterable

import config
from schema import ScheduleEntry, Task, TaskState, TieBreak
from scheduler.errors import CycleDetectedError, SchedulerInvariantError
from scheduler.graph import TaskGraph
from scheduler.state_machine import TaskStateMachine

logger = logging.getLogger(__name__)


class TaskScheduler:
    """
    Registers tasks and computes their sequential schedule.
    注册任务并计算顺序执行时间线。

    Not thread-safe: callers that share an instance across threads must
    keep add_task() and schedule_tasks() from overlapping.
    非线程安全：跨线程共享实例时，调用方需自行保证 add_task() 与 schedule_tasks() 互斥。
    """

    def __init__(
        self,
        tie_break: TieBreak | str | None = None,
        on_transition: Callable[[str, TaskState, TaskState], None] | None = None,
        warn_dangling: bool | None = None,
    ):
        """
        Args:
            tie_break: Ordering among simultaneously-ready tasks.
                       Defaults to config.TIE_BREAK.
            on_transition: Optional callback(name, old_state, new_state)
                           fired while scheduling.
            warn_dangling: Log a warning for never-registered dependencies.
                           Defaults to config.WARN_DANGLING.
            tie_break: 同时就绪任务之间的排序策略，默认取 config.TIE_BREAK。
            on_transition: 调度过程中的状态转移回调。
            warn_dangling: 是否对悬空依赖输出警告，默认取 config.WARN_DANGLING。
        """
        self.graph = TaskGraph()
        self.tie_break = TieBreak(tie_break or config.TIE_BREAK)
        self.warn_dangling = config.WARN_DANGLING if warn_dangling is None else warn_dangling
        self._on_transition = on_transition

    @classmethod
    def from_tasks(cls, tasks: Iterable[Task], **kwargs: Any) -> TaskScheduler:
        """
        Build a scheduler from already-validated Task models.
        由已校验的 Task 模型列表构建调度器。
        """
        scheduler = cls(**kwargs)
        for task in tasks:
            scheduler.graph.add(task)
        return scheduler

    # ------------------------------------------------------------------
    # Registration
    # 注册
    # ------------------------------------------------------------------

    def add_task(self, name: str, dependencies: Iterable[str] = (), duration: int = 0) -> Task:
        """
        Register a task. Raises DuplicateTaskError if `name` already exists
        and pydantic's ValidationError (a ValueError) for a negative duration.
        注册任务。同名任务抛出 DuplicateTaskError；持续时间为负时抛出 ValidationError。
        """
        task = Task(name=name, dependencies=tuple(dependencies), duration=duration)
        self.graph.add(task)
        return task

    # ------------------------------------------------------------------
    # Scheduling
    # 调度
    # ------------------------------------------------------------------

    def schedule_tasks(self) -> list[ScheduleEntry]:
        """
        Compute the ordered timeline. Raises CycleDetectedError if some task
        can never become ready; no partial order is returned in that case.
        计算有序时间线。若存在永远无法就绪的任务则抛出 CycleDetectedError，且不返回部分结果。

        Stored state is only read, so repeated calls on an unchanged
        scheduler return identical results.
        只读取已存储的状态，因此对未修改的调度器重复调用结果完全一致。
        """
        order, machine = self._run()

        if len(order) < len(self.graph):
            blocked = machine.names_in(TaskState.BLOCKED)
            logger.warning("[Scheduler] Cycle detected! %d/%d tasks scheduled", len(order), len(self.graph))
            raise CycleDetectedError(blocked)
        if len(order) > len(self.graph):
            raise SchedulerInvariantError(
                f"Scheduled {len(order)} entries for {len(self.graph)} registered tasks"
            )

        logger.info(
            "[Scheduler] Scheduled %d tasks, total span %d",
            len(order), order[-1].end if order else 0,
        )
        return order

    def topological_order(self) -> list[str]:
        """Task names in scheduling order (same rules and errors as schedule_tasks)."""
        return [entry.name for entry in self.schedule_tasks()]

    def _run(self) -> tuple[list[ScheduleEntry], TaskStateMachine]:
        in_degree = self.graph.initial_in_degree()
        sort_key = self._sort_key()

        # Never-registered dependencies count as already satisfied.
        # 从未注册的依赖视为已满足（软依赖），不阻塞下游任务。
        for dep, names in self.graph.dangling_dependencies().items():
            if self.warn_dangling:
                logger.warning("[Scheduler] Dependency '%s' of %s is not registered; ignoring it", dep, names)
            for name in names:
                in_degree[name] -= 1

        machine = TaskStateMachine(
            {name: TaskState.BLOCKED for name in in_degree},
            on_transition=self._on_transition,
        )

        seeds = sorted((name for name, degree in in_degree.items() if degree == 0), key=sort_key)
        frontier: deque[str] = deque()
        for name in seeds:
            machine.transition(name, TaskState.READY)
            frontier.append(name)

        order: list[ScheduleEntry] = []
        time = 0

        while frontier:
            name = frontier.popleft()
            task = self.graph.tasks[name]
            machine.transition(name, TaskState.SCHEDULED)
            order.append(ScheduleEntry(name=name, start=time, duration=task.duration))
            time += task.duration

            released: list[str] = []
            for dependent in self.graph.dependents.get(name, ()):
                if dependent not in in_degree:
                    continue
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    released.append(dependent)

            # Ties among tasks released by the same pop follow the same policy as the seed.
            for dependent in sorted(released, key=sort_key):
                machine.transition(dependent, TaskState.READY)
                frontier.append(dependent)

        return order, machine

    def _sort_key(self) -> Callable[[str], Any]:
        if self.tie_break is TieBreak.NAME:
            return lambda name: name
        index = self.graph.registration_index()
        return index.__getitem__

    # ------------------------------------------------------------------
    # Display helpers
    # 展示辅助方法
    # ------------------------------------------------------------------

    def dangling_dependencies(self) -> dict[str, list[str]]:
        return self.graph.dangling_dependencies()

    def summary(self) -> str:
        return f"{self.graph.summary()} tie_break={self.tie_break.value}"

    def to_dict(self) -> dict[str, Any]:
        data = self.graph.to_dict()
        data["tie_break"] = self.tie_break.value
        return data
