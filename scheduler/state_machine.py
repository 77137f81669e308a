"""
Task State Machine - Validates and enforces task lifecycle transitions.
任务状态机 —— 校验并强制执行任务生命周期的合法状态转移。

The transition table is the single source of truth for what state changes
are legal during a scheduling run. Any invalid transition raises
InvalidTransitionError, so a task can never be scheduled twice or skip
the READY state.
转移表是调度过程中合法状态变化的唯一权威来源。
任何非法转移都会抛出 InvalidTransitionError，任务不可能被调度两次或绕过 READY 状态。

Transition graph:
转移图：
    BLOCKED ──> READY ──> SCHEDULED
"""

from __future__ import annotations

import logging
from typing import Callable

from schema import TaskState

logger = logging.getLogger(__name__)


class InvalidTransitionError(Exception):
    """
    Raised when an illegal state transition is attempted.
    当尝试非法状态转移时抛出此异常。
    """
    pass


VALID_TRANSITIONS: dict[TaskState, set[TaskState]] = {
    TaskState.BLOCKED:   {TaskState.READY},
    TaskState.READY:     {TaskState.SCHEDULED},
    # Terminal state — no further transitions allowed
    # 终态——不允许任何进一步转移
    TaskState.SCHEDULED: set(),
}


class TaskStateMachine:
    """
    Tracks and applies task state transitions for one scheduling run.
    跟踪并应用单次调度中的任务状态转移。

    Unlike a stored status field, the states live here and are discarded
    with the machine, so every run starts from a clean slate.
    状态保存在状态机内部，随状态机一起丢弃，因此每次调度都从干净的初始状态开始。
    """

    def __init__(
        self,
        initial: dict[str, TaskState],
        on_transition: Callable[[str, TaskState, TaskState], None] | None = None,
    ):
        """
        Args:
            initial: name -> starting state for every registered task.
            on_transition: Optional callback(name, old_state, new_state)
                           for UI or logging.
            initial: 每个已注册任务的初始状态。
            on_transition: 可选回调 callback(任务名, 旧状态, 新状态)。
        """
        self._states = dict(initial)
        self._on_transition = on_transition

    def state_of(self, name: str) -> TaskState:
        return self._states[name]

    def can_transition(self, name: str, new_state: TaskState) -> bool:
        """
        Check whether moving `name` to `new_state` is legal.
        检查将 `name` 转移到 `new_state` 是否合法。
        """
        current = self._states.get(name)
        if current is None:
            return False
        return new_state in VALID_TRANSITIONS[current]

    def transition(self, name: str, new_state: TaskState) -> None:
        """
        Apply a state transition. Raises InvalidTransitionError if illegal.
        应用状态转移。若转移非法则抛出 InvalidTransitionError。
        """
        if not self.can_transition(name, new_state):
            current = self._states.get(name)
            if current is None:
                raise InvalidTransitionError(f"Task '{name}' is not tracked by this run")
            raise InvalidTransitionError(
                f"Task '{name}': cannot transition from {current.value} to {new_state.value}. "
                f"Valid targets: {sorted(s.value for s in VALID_TRANSITIONS[current])}"
            )

        old_state = self._states[name]
        self._states[name] = new_state

        logger.debug("[SM] %s: %s -> %s", name, old_state.value, new_state.value)

        if self._on_transition:
            try:
                self._on_transition(name, old_state, new_state)
            except Exception:
                logger.exception("[SM] on_transition callback failed for %s", name)

    def names_in(self, state: TaskState) -> list[str]:
        """
        Names currently in `state`, in tracking order.
        返回当前处于 `state` 的任务名（按跟踪顺序）。
        """
        return [name for name, s in self._states.items() if s == state]
