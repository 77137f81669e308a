"""
Task Scheduler - Command-line entry point.
任务调度器 —— 命令行入口。

Loads a JSON task file, computes the sequential schedule and renders it
with a rich console UI: a timeline table on success, or a panel listing
the blocked tasks when the dependency graph has a cycle.
读取 JSON 任务文件，计算顺序执行时间线，并通过 Rich 控制台展示：
成功时输出时间线表格，存在循环依赖时输出被阻塞任务列表。

Usage / 用法:
    python main.py tasks.json [-v] [--tie-break=name|registration]
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from schema import ScheduleEntry, TaskFile, TaskState, total_span
from scheduler import CycleDetectedError, DuplicateTaskError, TaskScheduler

console = Console()

# State -> Rich style mapping
# 任务状态 -> Rich 样式映射（用于 verbose 模式下的状态转移输出）
_STATE_STYLES = {
    "blocked": "dim",
    "ready": "yellow",
    "scheduled": "green",
}

EXIT_OK = 0
EXIT_CYCLE = 1
EXIT_BAD_INPUT = 2


# ======================================================================
# Rendering
# 渲染
# ======================================================================

def build_timeline_table(scheduler: TaskScheduler, entries: list[ScheduleEntry]) -> Table:
    """
    Build a Rich Table with one row per scheduled task.
    构建时间线表格，每个已调度任务一行。
    """
    table = Table(title="Schedule", border_style="cyan", show_lines=False)
    table.add_column("#", style="cyan", justify="right", width=4)
    table.add_column("Task", style="white")
    table.add_column("Start", justify="right")
    table.add_column("End", justify="right")
    table.add_column("Duration", justify="right", style="dim")
    table.add_column("Deps", style="dim")
    for i, entry in enumerate(entries, start=1):
        deps = scheduler.graph.tasks[entry.name].dependencies
        table.add_row(
            str(i),
            entry.name,
            str(entry.start),
            str(entry.end),
            str(entry.duration),
            ", ".join(deps) if deps else "-",
        )
    return table


def on_transition(name: str, old: TaskState, new: TaskState) -> None:
    style = _STATE_STYLES.get(new.value, "white")
    console.print(f"    [dim]{name}: {old.value} ->[/dim] [{style}]{new.value}[/{style}]")


# ======================================================================
# Main
# 主函数
# ======================================================================

def setup_logging(verbose: bool = False) -> None:
    """
    Configure logging with rich handler.
    使用 Rich 处理器配置日志系统。verbose=True 时启用 DEBUG 级别。
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, rich_tracebacks=True)],
    )


def load_scheduler(path: Path, tie_break: str | None = None, verbose: bool = False) -> TaskScheduler:
    """
    Read `path` and register every task it lists.
    读取任务文件并注册其中的全部任务。
    """
    task_file = TaskFile.model_validate_json(path.read_text(encoding="utf-8"))
    return TaskScheduler.from_tasks(
        task_file.tasks,
        tie_break=tie_break,
        on_transition=on_transition if verbose else None,
    )


def run(path: Path, tie_break: str | None = None, verbose: bool = False) -> int:
    """
    Schedule the tasks in `path` and print the result. Returns the exit status.
    调度任务文件中的任务并输出结果，返回进程退出码。
    """
    try:
        scheduler = load_scheduler(path, tie_break=tie_break, verbose=verbose)
    except (OSError, ValidationError, DuplicateTaskError, ValueError) as exc:
        console.print(Panel(str(exc), title="[bold red]Invalid task file[/bold red]", border_style="red"))
        return EXIT_BAD_INPUT

    console.print(f"[dim]{scheduler.summary()}[/dim]")

    try:
        entries = scheduler.schedule_tasks()
    except CycleDetectedError as exc:
        console.print(Panel(
            "These tasks never became ready:\n" + "\n".join(f"  - {n}" for n in exc.unscheduled),
            title="[bold red]Circular dependency detected[/bold red]",
            border_style="red",
        ))
        return EXIT_CYCLE

    console.print(build_timeline_table(scheduler, entries))
    console.print(f"  [bold green]Total span: {total_span(entries)}[/bold green]")
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    """
    程序入口：解析命令行参数。
    - 位置参数：任务文件路径
    - -v / --verbose：启用调试日志并打印状态转移
    - --tie-break=name|registration：同时就绪任务的排序策略
    """
    argv = sys.argv[1:] if argv is None else argv
    verbose = "--verbose" in argv or "-v" in argv
    setup_logging(verbose)

    tie_break = None
    for a in argv:
        if a.startswith("--tie-break="):
            tie_break = a.split("=", 1)[1]

    args = [a for a in argv if not a.startswith("-")]
    if len(args) != 1:
        console.print(
            "Usage: python main.py TASKS.json [-v] [--tie-break=name|registration]",
            style="red",
            markup=False,
        )
        return EXIT_BAD_INPUT

    return run(Path(args[0]), tie_break=tie_break, verbose=verbose)


if __name__ == "__main__":
    sys.exit(main())
