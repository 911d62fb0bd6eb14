# src/twig/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState lazily per command, then runs one
subcommand. With no subcommand a terminal gets the interactive view and a
pipe gets the owner's default view (tree or list).
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass

import click
from rich.console import Console

from .. import __version__
from ..config import Settings
from ..connectors.console_connector import run_interactive_loop
from ..core.interactive import InteractiveView
from ..core.state import AppState
from ..errors import TwigError
from ..logging_setup import setup_logging
from ..storage.json_file import JsonTaskFile
from ..storage.owner_config import ViewMode, save_config
from ..storage.paths import validate_reportee_name
from ..tasks import task_api
from ..tasks.resolver import resolve_task
from ..tasks.task_models import Task, TaskStatus
from ..utils.dates import DateRange, PeriodKind, format_date
from ..views.reports import build_report, compute_stats
from ..views.tree import build_forest, format_tree
from ..views.visibility import VisibilityOptions, is_visible
from .bootstrap import create_initial_state, open_reportee_stores
from .render import print_report, print_stats, print_task_details, task_table

logger = logging.getLogger(__name__)

REPORT_PERIODS: dict[str, PeriodKind] = {"daily": "day", "weekly": "week", "monthly": "month"}
STATS_PERIODS: dict[str, PeriodKind] = {"day": "day", "week": "week", "month": "month"}


@dataclass(slots=True)
class CliContext:
    settings: Settings
    reportee: str | None = None
    _state: AppState | None = None

    def state(self) -> AppState:
        if self._state is None:
            self._state = create_initial_state(settings=self.settings, reportee=self.reportee)
        return self._state


pass_cli = click.make_pass_decorator(CliContext)


@contextmanager
def _user_errors() -> Iterator[None]:
    """Turn domain errors into a clean `Error: ...` line and exit status 1."""
    try:
        yield
    except TwigError as e:
        logger.debug("Command failed: %s", e)
        raise click.ClickException(str(e)) from e
    except ValueError as e:
        raise click.ClickException(str(e)) from e


def _console() -> Console:
    return Console(highlight=False, markup=False)


def _ui_visibility(settings: Settings) -> VisibilityOptions:
    return VisibilityOptions(show_completed=settings.show_completed, show_cancelled=settings.show_cancelled)


def _print_tree(state: AppState, options: VisibilityOptions | None = None) -> None:
    """The full forest unless filter options are given."""
    predicate = None if options is None else lambda t: is_visible(t, options)
    forest = build_forest(state.store, predicate)
    if not forest.roots:
        click.echo("No tasks found.")
        return
    for line in format_tree(forest):
        click.echo(line)


def _print_list(tasks: list[Task]) -> None:
    if not tasks:
        click.echo("No tasks found.")
        return
    _console().print(task_table(tasks))


def _select_task(state: AppState, verb: str, candidates: Callable[[Task], bool]) -> str | None:
    """Numbered picker used when a lifecycle command gets no ID. 0 aborts."""
    tasks = [t for t in state.store if candidates(t)]
    if not tasks:
        click.echo(f"No tasks to {verb}.")
        return None
    for i, task in enumerate(tasks, start=1):
        click.echo(f"{i:>3}. {task.title} [{task.short_id}]")
    choice = click.prompt(f"Select a task to {verb} (0 to abort)", type=click.IntRange(0, len(tasks)), default=0)
    if choice == 0:
        click.echo("Aborted.")
        return None
    return str(tasks[choice - 1].id)


@click.group(
    invoke_without_command=True,
    context_settings=dict(help_option_names=["-h", "--help"]),
)
@click.version_option(__version__, "-v", "--version", help="Show the version and exit.")
@click.option("--reportee", "-r", default=None, help="Operate on a reportee's task list instead of your own.")
@click.pass_context
def cli(ctx: click.Context, reportee: str | None) -> None:
    """twig: hierarchical task tracking with time logging."""
    settings = Settings.from_env()

    level_name = settings.log_level.upper()
    console_level = getattr(logging, level_name, logging.WARNING)
    setup_logging(log_dir=settings.data_dir if settings.log_to_file else None, console_level=console_level)
    logger.info("Starting %s %s", settings.app_name, __version__)

    if reportee is not None:
        try:
            reportee = validate_reportee_name(reportee)
        except TwigError as e:
            raise click.BadParameter(str(e), param_hint="--reportee") from e

    ctx.obj = CliContext(settings=settings, reportee=reportee)

    if ctx.invoked_subcommand is None:
        if sys.stdin.isatty() and sys.stdout.isatty():
            ctx.invoke(ui)
            return
        with _user_errors():
            state = ctx.obj.state()
            if state.config.default_view == ViewMode.LIST:
                _print_list(state.store.all_tasks())
            else:
                _print_tree(state)


# ---- task commands ----


@click.command(name="add")
@click.argument("title")
@click.option("--description", "-D", default=None, help="Longer description.")
@click.option("--parent", "-p", default=None, help="Parent task ID (full or 8-char short).")
@click.option("--tag", "-t", "tags", multiple=True, help="Tag, repeatable or comma separated.")
@click.option("--estimate", "-e", default=None, help="Effort estimate such as 2h, 3d, 1w, 1m.")
@click.option("--eta", default=None, help="Due date: today, tomorrow or YYYY-MM-DD.")
@click.option("--assign", "-a", "assignee", default=None, help="Assignee name.")
@pass_cli
def add(obj: CliContext, title, description, parent, tags, estimate, eta, assignee):
    """Create a task."""
    with _user_errors():
        task = task_api.create_task(
            obj.state().store,
            title,
            parent=parent,
            tags=list(tags),
            estimate=estimate,
            eta=eta,
            assignee=assignee,
            description=description,
        )
    click.echo(f"Created task: {task.title} [{task.short_id}]")


def _lifecycle_command(
    name: str,
    help_text: str,
    action: Callable,
    candidates: Callable[[Task], bool],
    done: str,
    unchanged: str,
) -> click.Command:
    @click.command(name=name, help=help_text)
    @click.argument("task_id", required=False)
    @pass_cli
    def command(obj: CliContext, task_id: str | None) -> None:
        with _user_errors():
            state = obj.state()
            if task_id is None:
                task_id = _select_task(state, name, candidates)
                if task_id is None:
                    return
            task, changed = action(state.store, task_id)
        click.echo(f"{done if changed else unchanged}: {task.title} [{task.short_id}]")

    return command


start = _lifecycle_command(
    "start",
    "Start (or resume) time tracking on a task.",
    task_api.start_task,
    lambda t: not t.is_closed() and not t.has_active_time_entry(),
    "Started task",
    "Already tracking",
)
complete = _lifecycle_command(
    "complete",
    "Mark a task completed.",
    task_api.complete_task,
    lambda t: not t.is_closed(),
    "Completed task",
    "Already completed",
)
cancel = _lifecycle_command(
    "cancel",
    "Cancel a task.",
    task_api.cancel_task,
    lambda t: not t.is_closed(),
    "Cancelled task",
    "Already cancelled",
)
pause = _lifecycle_command(
    "pause",
    "Pause time tracking on a task.",
    task_api.pause_task,
    lambda t: t.has_active_time_entry(),
    "Paused task",
    "Not tracking",
)


@click.command(name="list")
@click.option("--status", "-s", default=None, help="not_started, in_progress, completed or cancelled.")
@click.option("--tag", "-t", default=None, help="Only tasks carrying this tag.")
@click.option("--assignee", "-a", default=None, help="Only tasks assigned to this name.")
@pass_cli
def list_cmd(obj: CliContext, status, tag, assignee):
    """List tasks as a table."""
    with _user_errors():
        state = obj.state()
        parsed = TaskStatus.parse(status) if status else None
        tasks = task_api.filter_tasks(state.store, status=parsed, tag=tag, assignee=assignee)
    _print_list(tasks)


@click.command(name="show")
@click.argument("task_id")
@pass_cli
def show(obj: CliContext, task_id):
    """Show every field of one task, its ancestry and its subtasks."""
    with _user_errors():
        state = obj.state()
        task = resolve_task(state.store, task_id)
    print_task_details(_console(), state.store, task)


@click.command(name="tree")
@click.option("--tag", "-t", default=None, help="Only tasks carrying this tag.")
@click.option("--assignee", "-a", default=None, help="Only tasks assigned to this name.")
@click.option("--hide-completed", is_flag=True, help="Leave out tasks completed before today.")
@click.option("--hide-cancelled", is_flag=True, help="Leave out tasks cancelled before today.")
@pass_cli
def tree(obj: CliContext, tag, assignee, hide_completed, hide_cancelled):
    """Show the task hierarchy. Filters hide a rejected task together with its subtree."""
    with _user_errors():
        state = obj.state()
    options = None
    if tag or assignee or hide_completed or hide_cancelled:
        options = VisibilityOptions(
            show_completed=not hide_completed,
            show_cancelled=not hide_cancelled,
            tag=tag,
            assignee=assignee,
        )
    _print_tree(state, options)


@click.command(name="update")
@click.argument("task_id")
@click.option("--title", default=None)
@click.option("--description", "-D", default=None)
@click.option("--estimate", "-e", default=None, help="New estimate; empty string clears it.")
@click.option("--eta", default=None, help="New due date; empty string clears it.")
@click.option("--assign", "-a", "assignee", default=None, help="New assignee; empty string clears it.")
@click.option("--parent", "-p", default=None, help="Move under this task.")
@click.option("--no-parent", is_flag=True, help="Make the task a root.")
@pass_cli
def update(obj: CliContext, task_id, title, description, estimate, eta, assignee, parent, no_parent):
    """Edit fields of a task."""
    if parent and no_parent:
        raise click.UsageError("--parent and --no-parent are mutually exclusive")
    with _user_errors():
        store = obj.state().store
        task, changed = task_api.update_task_fields(
            store,
            task_id,
            title=title,
            description=description,
            estimate=estimate,
            eta=eta,
            assignee=assignee,
        )
        if parent or no_parent:
            task = task_api.set_parent(store, str(task.id), None if no_parent else parent)
            changed = True
    if changed:
        click.echo(f"Updated task: {task.title} [{task.short_id}]")
    else:
        click.echo("Nothing to update.")


@click.command(name="delete")
@click.argument("task_id")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
@pass_cli
def delete(obj: CliContext, task_id, yes):
    """Delete a task. Its subtasks are kept but become orphans."""
    with _user_errors():
        store = obj.state().store
        task = resolve_task(store, task_id)
        if not yes:
            children = store.get_children(task.id)
            if children:
                click.echo(f"Warning: {len(children)} subtask(s) will be orphaned.", err=True)
            if not click.confirm(f"Delete '{task.title}' [{task.short_id}]?", default=False):
                click.echo("Aborted.")
                return
        removed, orphans = task_api.delete_task(store, str(task.id))
    click.echo(f"Deleted task: {removed.title} [{removed.short_id}]")
    if orphans:
        click.echo(f"{len(orphans)} subtask(s) are now orphaned.")


@click.command(name="tag")
@click.argument("task_id")
@click.argument("tags", nargs=-1, required=True)
@pass_cli
def tag(obj: CliContext, task_id, tags):
    """Add tags to a task."""
    with _user_errors():
        task, added = task_api.tag_task(obj.state().store, task_id, list(tags))
    if added:
        click.echo(f"Tagged {task.short_id}: " + " ".join(f"#{t}" for t in added))
    else:
        click.echo(f"No new tags for {task.short_id}.")


@click.command(name="note")
@click.argument("task_id")
@click.argument("text")
@pass_cli
def note(obj: CliContext, task_id, text):
    """Append a timestamped note to a task."""
    with _user_errors():
        task = task_api.add_note(obj.state().store, task_id, text)
    click.echo(f"Added note to {task.short_id}.")


# ---- reportees ----


@click.group(name="reportee")
def reportee() -> None:
    """Manage the people whose task lists you follow."""


@reportee.command(name="add")
@click.argument("name")
@pass_cli
def reportee_add(obj: CliContext, name):
    with _user_errors():
        state = obj.state()
        name = validate_reportee_name(name)
        if not state.config.add_reportee(name):
            click.echo(f"Reportee {name} already exists.")
            return
        save_config(state.paths.config_file, state.config)
        path = state.paths.reportee_tasks_file(name)
        if not path.exists():
            JsonTaskFile(path).save([])
    logger.info("Reportee %s added", name)
    click.echo(f"Added reportee: {name}")


@reportee.command(name="list")
@pass_cli
def reportee_list(obj: CliContext):
    with _user_errors():
        state = obj.state()
    if not state.config.reportees:
        click.echo("No reportees.")
        return
    for name in state.config.reportees:
        click.echo(name)


@reportee.command(name="remove")
@click.argument("name")
@pass_cli
def reportee_remove(obj: CliContext, name):
    """Stop following a reportee. Their task file is kept."""
    with _user_errors():
        state = obj.state()
        if not state.config.remove_reportee(name):
            raise click.ClickException(f"Reportee not found: {name}")
        save_config(state.paths.config_file, state.config)
    click.echo(f"Removed reportee: {name}")


# ---- reports ----


@click.command(name="report")
@click.argument("period", type=click.Choice(list(REPORT_PERIODS)))
@click.option("--date", "-d", "raw_date", default=None, help="Anchor date, e.g. yesterday, last week, 2024-03-01.")
@click.option("--assignee", "-a", default=None, help="Only tasks assigned to this name.")
@pass_cli
def report(obj: CliContext, period, raw_date, assignee):
    """Daily, weekly or monthly activity report."""
    with _user_errors():
        state = obj.state()
        date_range = DateRange.for_period(REPORT_PERIODS[period], raw_date)
        result = build_report(state.store, date_range, assignee=assignee)
    print_report(_console(), period.capitalize(), result, assignee)


@click.command(name="stats")
@click.option("--period", "-p", type=click.Choice(list(STATS_PERIODS)), default=None)
@click.option("--date", "-d", "raw_date", default=None, help="Anchor date for --period.")
@click.option("--assignee", "-a", default=None, help="Only tasks assigned to this name.")
@pass_cli
def stats(obj: CliContext, period, raw_date, assignee):
    """Status counts, time totals and estimate accuracy."""
    with _user_errors():
        state = obj.state()
        date_range = DateRange.for_period(STATS_PERIODS[period], raw_date) if period else None
        result = compute_stats(state.store, period=date_range, assignee=assignee)
    period_info = None
    if date_range is not None:
        period_info = f"{format_date(date_range.start)} to {format_date(date_range.end)}"
    print_stats(_console(), result, period_info, assignee)


# ---- interactive ----


@click.command(name="ui")
@pass_cli
def ui(obj: CliContext):
    """Browse and edit tasks interactively."""
    with _user_errors():
        state = obj.state()
        if obj.reportee is None:
            state.reportee_stores = open_reportee_stores(state.paths, state.config.reportees)
    view = InteractiveView(
        state.store,
        state.reportee_stores,
        options=_ui_visibility(obj.settings),
    )
    run_interactive_loop(view, console=Console())
    logger.info("Bye.")


for _command in (
    add, start, complete, cancel, pause, list_cmd, show, tree,
    update, delete, tag, note, reportee, report, stats, ui,
):
    cli.add_command(_command)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
