"""
TaskGraph - Task registry plus its derived dependency index.
TaskGraph —— 任务注册表及其派生的依赖索引。

The TaskGraph holds:
  - tasks:      name -> Task, in registration order
  - in_degree:  name -> number of declared dependencies (never mutated after registration)
  - dependents: dependency name -> names that declared it, in registration order

TaskGraph 包含：
  - tasks:      任务名 -> Task（保持注册顺序）
  - in_degree:  任务名 -> 声明的依赖数量（注册后不再修改）
  - dependents: 依赖名 -> 声明依赖它的任务名列表（反向邻接表，保持注册顺序）

The reverse index is built incrementally and may mention names that are
not (yet, or ever) registered. Such "dangling" dependencies are soft: the
scheduler skips them instead of failing.
反向索引在注册时增量构建，可能引用尚未注册（或永远不会注册）的任务名。
这些「悬空」依赖是软依赖：调度时直接跳过，不会报错。
"""

from __future__ import annotations

import logging
from typing import Any, Iterator

from schema import Task
from scheduler.errors import DuplicateTaskError

logger = logging.getLogger(__name__)


class TaskGraph:
    """
    Registry of tasks with a bidirectional dependency view.
    带有双向依赖视图的任务注册表。
    """

    def __init__(self) -> None:
        self.tasks: dict[str, Task] = {}              # 所有任务，key 为任务名
        self.in_degree: dict[str, int] = {}           # 初始入度表
        self.dependents: dict[str, list[str]] = {}    # 反向依赖索引

    def __len__(self) -> int:
        return len(self.tasks)

    def __contains__(self, name: object) -> bool:
        return name in self.tasks

    def __iter__(self) -> Iterator[Task]:
        return iter(self.tasks.values())

    # ------------------------------------------------------------------
    # Registration
    # 注册
    # ------------------------------------------------------------------

    def add(self, task: Task) -> None:
        """
        Register `task` and update the dependency index.
        注册 `task` 并更新依赖索引。

        Raises DuplicateTaskError if the name is taken; the graph is left
        untouched in that case.
        若任务名已存在则抛出 DuplicateTaskError，图保持不变。
        """
        if task.name in self.tasks:
            raise DuplicateTaskError(task.name)

        self.tasks[task.name] = task
        self.in_degree[task.name] = len(task.dependencies)
        for dep in task.dependencies:
            self.dependents.setdefault(dep, []).append(task.name)

        logger.debug(
            "[Graph] Registered %s (deps=%s, duration=%d)",
            task.name, list(task.dependencies), task.duration,
        )

    # ------------------------------------------------------------------
    # Queries
    # 查询
    # ------------------------------------------------------------------

    def get_dependents(self, name: str) -> list[str]:
        """
        Names that declared `name` as a dependency (registered or not).
        返回声明依赖 `name` 的任务名列表。
        """
        return list(self.dependents.get(name, []))

    def initial_in_degree(self) -> dict[str, int]:
        """Fresh copy of the in-degree table for one scheduling run."""
        return dict(self.in_degree)

    def registration_index(self) -> dict[str, int]:
        return {name: i for i, name in enumerate(self.tasks)}

    def dangling_dependencies(self) -> dict[str, list[str]]:
        """
        Dependency names that were never registered, mapped to the tasks
        that reference them.
        返回从未注册的依赖名，以及引用它们的任务列表。
        """
        return {
            dep: list(names)
            for dep, names in self.dependents.items()
            if dep not in self.tasks
        }

    # ------------------------------------------------------------------
    # Display / serialization helpers
    # 展示与序列化辅助方法
    # ------------------------------------------------------------------

    def summary(self) -> str:
        """
        One-line summary for logging, e.g. TaskGraph[4 tasks, 4 edges, 0 dangling].
        生成单行摘要，用于日志输出。
        """
        edges = sum(self.in_degree.values())
        dangling = len(self.dangling_dependencies())
        return f"TaskGraph[{len(self.tasks)} tasks, {edges} edges, {dangling} dangling]"

    def to_dict(self) -> dict[str, Any]:
        return {"tasks": [t.model_dump(mode="json") for t in self.tasks.values()]}
