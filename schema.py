"""
Pydantic data models for the task scheduler.
Defines the task definitions, timeline entries and the per-task lifecycle.
任务调度器的 Pydantic 数据模型。
定义了任务定义、时间线条目以及任务生命周期状态。
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


# ======================================================================
# Enums
# 枚举
# ======================================================================

class TaskState(str, Enum):
    """
    Task lifecycle during one scheduling run, managed by TaskStateMachine.
    单次调度过程中任务的生命周期状态，由 TaskStateMachine 强制管理合法转移。

    Transition graph:
    转移图：
        BLOCKED -> READY -> SCHEDULED
    A task that is still BLOCKED when the frontier drains sits on (or behind) a cycle.
    队列耗尽时仍处于 BLOCKED 的任务，必然位于环上或依赖于环。
    """
    BLOCKED = "blocked"     # 仍有未完成的直接依赖
    READY = "ready"         # 入度为 0，在就绪队列中等待
    SCHEDULED = "scheduled" # 已写入时间线（终态）


class TieBreak(str, Enum):
    """
    Ordering policy for tasks that become ready at the same time.
    同时就绪的任务之间的排序策略。
    """
    REGISTRATION = "registration"  # 先注册先调度
    NAME = "name"                  # 按任务名字典序


# ======================================================================
# Core models
# 核心模型
# ======================================================================

class Task(BaseModel):
    """
    A named unit of work with its declared dependencies and duration.
    带有依赖声明和持续时间的具名任务。
    """
    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Unique task name")                                            # 任务唯一名称
    dependencies: tuple[str, ...] = Field(default=(), description="Names this task waits for")  # 直接依赖的任务名
    duration: int = Field(default=0, ge=0, description="Opaque additive time units")             # 持续时间（抽象时间单位）


class ScheduleEntry(BaseModel):
    """
    One row of the computed timeline.
    计算出的时间线中的一行。
    """
    model_config = ConfigDict(frozen=True)

    name: str
    start: int = Field(ge=0)     # 之前所有任务持续时间之和
    duration: int = Field(ge=0)

    @property
    def end(self) -> int:
        return self.start + self.duration


class TaskFile(BaseModel):
    """
    On-disk task list accepted by the CLI.
    命令行读取的任务文件格式。
    """
    tasks: list[Task] = Field(default_factory=list)


def total_span(entries: list[ScheduleEntry]) -> int:
    """Finish time of the last entry, 0 for an empty timeline."""
    return entries[-1].end if entries else 0
