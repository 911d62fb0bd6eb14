# src/twig/cli/render.py

"""rich renderers for the one-shot CLI commands."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table
from rich.text import Text

from ..tasks.task_models import Task, TaskStatus
from ..tasks.task_store import TaskStore
from ..utils.dates import format_date, format_datetime, format_duration_human
from ..views.reports import PeriodReport, TaskStats
from ..views.status_style import status_badge, status_style

RULE = "=" * 60


def _out(console: Console, text: str = "", style: str | None = None) -> None:
    # Titles and ids like "[ab12cd34]" must not be read as rich markup.
    console.print(text, style=style, markup=False, highlight=False)


def _tags(task: Task) -> str:
    return " ".join(f"#{t}" for t in task.tags)


def task_table(tasks: list[Task]) -> Table:
    table = Table(show_lines=False)
    for header in ("ID", "Status", "Title", "Tags", "Assignee", "Time", "Created"):
        table.add_column(header)
    for task in tasks:
        table.add_row(
            task.short_id,
            Text(status_badge(task.status), style=status_style(task.status).color),
            task.title,
            _tags(task),
            f"@{task.assigned_to}" if task.assigned_to else "",
            task.formatted_total_time() if task.total_time_seconds > 0 else "",
            format_datetime(task.created_at),
        )
    return table


def print_task_details(console: Console, store: TaskStore, task: Task) -> None:
    _out(console, RULE)
    _out(console, f"Task: {task.title}", "bold")
    _out(console, RULE)
    rows: list[tuple[str, str]] = [
        ("ID", str(task.id)),
        ("Short ID", task.short_id),
        ("Status", status_badge(task.status)),
    ]
    if task.description:
        rows.append(("Description", task.description))
    if task.assigned_to:
        rows.append(("Assignee", f"@{task.assigned_to}"))
    if task.tags:
        rows.append(("Tags", _tags(task)))
    estimate = task.formatted_estimate()
    if estimate:
        rows.append(("Estimate", estimate))
    if task.eta:
        rows.append(("ETA", format_datetime(task.eta)))
    rows.append(("Created", format_datetime(task.created_at)))
    for label, at in (("Started", task.started_at), ("Completed", task.completed_at), ("Cancelled", task.cancelled_at)):
        if at:
            rows.append((label, format_datetime(at)))
    if task.total_time_seconds > 0:
        rows.append(("Total Time", task.formatted_total_time()))
    if task.has_active_time_entry():
        rows.append(("Tracking", f"running for {format_duration_human(task.active_elapsed_seconds())}"))
    for label, value in rows:
        _out(console, f"{label + ':':<13}{value}")

    if task.notes:
        _out(console, "\nNotes:")
        for line in task.notes.splitlines():
            _out(console, f"  {line}")

    hierarchy = store.get_task_hierarchy(task)
    if len(hierarchy) > 1:
        _out(console, "\nHierarchy:")
        for depth, task_id in enumerate(hierarchy):
            node = store.get_task(task_id)
            title = node.title if node else f"<missing {str(task_id)[:8]}>"
            _out(console, f"  {'  ' * depth}{title}")

    children = store.get_children(task.id)
    if children:
        _out(console, "\nSubtasks:")
        for child in children:
            _out(console, f"  {status_style(child.status).icon} {child.title} [{child.short_id}]")
    _out(console, RULE)


def print_report(console: Console, title: str, report: PeriodReport, assignee: str | None) -> None:
    _out(console, f"\n{title} Report", "bold")
    _out(console, f"Period: {format_date(report.period.start)} to {format_date(report.period.end)}")
    if assignee:
        _out(console, f"Assignee: @{assignee}")
    _out(console, RULE)
    _out(console, "\nSummary:")
    for label, items in (
        ("Created", report.created),
        ("Started", report.started),
        ("Completed", report.completed),
        ("Cancelled", report.cancelled),
        ("In Progress", report.in_progress),
    ):
        _out(console, f"  {label + ':':<13}{len(items)} task(s)")

    if report.completed:
        _out(console, "\nCompleted Tasks:")
        table = Table()
        for header in ("Title", "ID", "Time Spent", "Completed At"):
            table.add_column(header)
        for task in report.completed:
            table.add_row(
                task.title,
                task.short_id,
                task.formatted_total_time() if task.total_time_seconds > 0 else "-",
                format_datetime(task.completed_at) if task.completed_at else "",
            )
        console.print(table)

    if report.in_progress:
        _out(console, "\nIn Progress:")
        for task in report.in_progress:
            _out(console, f"  {status_style(task.status).icon} {task.title} [{task.short_id}]")
    _out(console, RULE)


def print_stats(console: Console, stats: TaskStats, period_info: str | None, assignee: str | None) -> None:
    _out(console, "\nStatistics", "bold")
    if assignee:
        _out(console, f"Assignee: @{assignee}")
    if period_info:
        _out(console, f"Period: {period_info}")
    _out(console, RULE)

    _out(console, "\nTask Status:")
    _out(console, f"  {'Total:':<14}{stats.total}")
    for status in TaskStatus:
        label = status_style(status).label + ":"
        _out(console, f"  {label:<14}{stats.by_status[status]} ({stats.share(status):.1f}%)")

    _out(console, "\nTime Tracking:")
    _out(console, f"  {'Total Time:':<14}{format_duration_human(stats.total_time_seconds)}")
    _out(console, f"  {'Average Time:':<14}{format_duration_human(stats.average_time_seconds)}")

    variance = stats.estimate_variance_pct
    if stats.estimated_hours is not None and stats.actual_hours is not None:
        _out(console, "\nEstimate Accuracy (Completed Tasks with Estimates):")
        _out(console, f"  Estimated: {stats.estimated_hours:.1f}h")
        _out(console, f"  Actual:    {stats.actual_hours:.1f}h")
        if variance is not None:
            _out(console, f"  Variance:  {variance:.1f}%")

    if stats.top_tags:
        _out(console, "\nTop Tags:")
        for tag, count in stats.top_tags:
            _out(console, f"  #{tag}: {count}")
    _out(console, RULE)
