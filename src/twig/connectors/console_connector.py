# src/twig/connectors/console_connector.py

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from rich.console import Console
from rich.text import Text

from ..cli.commands import registry as command_registry
from ..core.interactive import InteractiveView, ViewTab
from ..errors import TwigError
from ..tasks.task_models import Task, TaskStatus
from ..utils.dates import format_duration_human, utcnow
from ..views.status_style import status_style
from ..views.visibility import VisibleItem

logger = logging.getLogger(__name__)

QUIT_COMMANDS = ("q", "quit", "exit")


def _time_info(task: Task, now: datetime) -> tuple[str, str | None]:
    """Timer badge; elapsed time is recomputed from the open entry at every redraw."""
    if task.has_active_time_entry():
        running = format_duration_human(task.total_time_seconds + task.active_elapsed_seconds(now))
        return f" ⏱ TRACKING {running}", "bold yellow"
    if task.status == TaskStatus.IN_PROGRESS and task.total_time_seconds > 0:
        return f" ⏸ PAUSED [{task.formatted_total_time()}]", "bold grey50"
    if task.total_time_seconds > 0:
        return f" [{task.formatted_total_time()}]", None
    return "", None


def render_row(
    view: InteractiveView,
    item: VisibleItem,
    task: Task | None,
    *,
    selected: bool,
    now: datetime,
) -> Text:
    if item.kind == "owner":
        arrow = "▼" if view.is_expanded(item) else "▶"
        style = "bold black on cyan" if selected else "bold cyan"
        return Text(f"{arrow} 👤 {item.owner}", style=style)

    if task is None:
        return Text("  <missing task>", style="dim")

    indent = "  " * (item.depth + (1 if view.tab == ViewTab.REPORTEES else 0))
    if view.has_children(item):
        arrow = "▼ " if view.is_expanded(item) else "▶ "
    else:
        arrow = "  "
    style = status_style(task.status)
    line = Text(
        f"{indent}{arrow}{style.icon} {task.title} [{task.short_id}]",
        style="bold black on white" if selected else style.color,
    )
    info, info_style = _time_info(task, now)
    if info:
        line.append(info, style=info_style)
    if task.tags:
        line.append(" " + " ".join(f"#{t}" for t in task.tags), style="dim")
    return line


def render_view(view: InteractiveView, console: Console) -> None:
    now = utcnow()
    opts = view.options
    tabs = ["[1] My Tasks" + (" *" if view.tab == ViewTab.MY_TASKS else "")]
    if view.reportee_stores:
        tabs.append("[2] Reportees" + (" *" if view.tab == ViewTab.REPORTEES else ""))
    filters = [
        f"{'✓' if opts.show_completed else '✗'} Completed",
        f"{'✓' if opts.show_cancelled else '✗'} Cancelled",
    ]
    if opts.tag:
        filters.append(f"#{opts.tag}")
    if opts.assignee and view.tab == ViewTab.MY_TASKS:
        filters.append(f"@{opts.assignee}")

    console.print(Text("twig", style="bold green"), Text("  ".join(tabs)))
    console.print(" | ".join(filters), style="dim", markup=False)
    rows = view.rows()
    console.rule(f"Task Tree ({view.selected_index + 1 if rows else 0}/{len(rows)})")
    if not rows:
        console.print("No tasks. Use 'a <title>' to add one.", style="dim")
    for i, (item, task) in enumerate(rows):
        console.print(render_row(view, item, task, selected=i == view.selected_index, now=now))
    console.rule()


def run_interactive_loop(
    view: InteractiveView,
    *,
    console: Console | None = None,
    read_line: Callable[[str], str] = input,
) -> None:
    """
    Request/response loop: draw, block on one line, dispatch, repeat.

    There is no clock tick; the view only changes in response to input.
    """
    console = console or Console()
    logger.info("Interactive view started (tasks=%d).", len(view.store))

    def confirm(prompt: str) -> bool:
        try:
            answer = read_line(f"{prompt} [y/N]: ")
        except (EOFError, KeyboardInterrupt):
            return False
        return answer.strip().lower() in ("y", "yes")

    message: str | None = None
    while True:
        console.clear()
        render_view(view, console)
        if message:
            console.print(message, markup=False, highlight=False)
            message = None

        try:
            line = read_line(": ").strip()
        except EOFError:
            logger.info("Interactive EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Interactive KeyboardInterrupt, exiting.")
            console.print()
            break

        if line in QUIT_COMMANDS:
            break

        if not line:
            if not view.toggle_expand():
                message = "Nothing to expand."
            continue

        try:
            message = command_registry.handle(view, line, confirm=confirm)
        except TwigError as e:
            message = f"Error: {e}"
        except Exception:
            logger.exception("Command handler crashed.")
            message = "Internal error while handling a command."

    logger.info("Interactive view finished.")
