# src/twig/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from typing import cast

from ..core.interactive import EDITABLE_FIELDS, InteractiveView, ViewTab
from ..errors import TwigError
from ..tasks.task_models import Task

Confirm = Callable[[str], bool]
CommandHandler2 = Callable[[InteractiveView, list[str]], str | None]
CommandHandler3 = Callable[[InteractiveView, list[str], Confirm], str | None]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Key-command registry used by the interactive console (j/k/s/c/...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}
        self._aliases: dict[str, list[str]] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        # Single-letter keys are case-sensitive (h vs H); words are not.
        key = name if len(name) == 1 else name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        self._aliases[key] = aliases
        for alias in aliases:
            self._handlers[alias if len(alias) == 1 else alias.lower()] = handler

    def handle(
        self,
        view: InteractiveView,
        line: str,
        confirm: Confirm | None = None,
    ) -> str | None:
        """
        Handle one input line like "s" or "a Write tests".
        Returns a status message (None when there is nothing to say).
        """
        parts = line.split()
        if not parts:
            return "Empty command. Use ? to list available commands."

        name = parts[0] if len(parts[0]) == 1 else parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: {parts[0]}. Use ? to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        try:
            if nparams >= 3:
                h3 = cast(CommandHandler3, handler)
                return h3(view, args, confirm or _deny)
            h2 = cast(CommandHandler2, handler)
            return h2(view, args)
        except (TwigError, ValueError) as e:
            return f"Error: {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            keys = ", ".join([name, *self._aliases[name]])
            lines.append(f"  {keys:<14} {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _deny(_prompt: str) -> bool:
    return False


def _label(task: Task) -> str:
    return f"{task.title} [{task.short_id}]"


def _nothing_selected() -> str:
    return "No task selected."


def cmd_help(view: InteractiveView, args: list[str]) -> str:
    return registry.build_help()


def cmd_down(view: InteractiveView, args: list[str]) -> None:
    view.move_down()


def cmd_up(view: InteractiveView, args: list[str]) -> None:
    view.move_up()


def cmd_expand(view: InteractiveView, args: list[str]) -> str | None:
    if not view.toggle_expand():
        return "Nothing to expand."
    return None


def cmd_start(view: InteractiveView, args: list[str]) -> str:
    result = view.start_selected()
    if result is None:
        return _nothing_selected()
    task, changed = result
    return f"Started: {_label(task)}" if changed else f"Already tracking: {_label(task)}"


def cmd_complete(view: InteractiveView, args: list[str]) -> str:
    result = view.complete_selected()
    if result is None:
        return _nothing_selected()
    task, _ = result
    return f"Completed: {_label(task)} ({task.formatted_total_time()})"


def cmd_cancel(view: InteractiveView, args: list[str]) -> str:
    result = view.cancel_selected()
    if result is None:
        return _nothing_selected()
    return f"Cancelled: {_label(result[0])}"


def cmd_pause(view: InteractiveView, args: list[str]) -> str:
    result = view.pause_selected()
    if result is None:
        return _nothing_selected()
    task, changed = result
    if not changed:
        return "Task has no active time tracking."
    return f"Paused: {_label(task)} (total {task.formatted_total_time()})"


def cmd_toggle_completed(view: InteractiveView, args: list[str]) -> str:
    view.toggle_completed()
    return f"Show completed: {'on' if view.options.show_completed else 'off'}"


def cmd_toggle_cancelled(view: InteractiveView, args: list[str]) -> str:
    view.toggle_cancelled()
    return f"Show cancelled: {'on' if view.options.show_cancelled else 'off'}"


def cmd_tag_filter(view: InteractiveView, args: list[str]) -> str:
    view.set_tag_filter(args[0].lstrip("#") if args else None)
    return f"Tag filter: #{view.options.tag}" if view.options.tag else "Tag filter cleared."


def cmd_assignee_filter(view: InteractiveView, args: list[str]) -> str:
    view.set_assignee_filter(args[0].lstrip("@") if args else None)
    if view.options.assignee:
        return f"Assignee filter: @{view.options.assignee}"
    return "Assignee filter cleared."


def cmd_my_tasks(view: InteractiveView, args: list[str]) -> None:
    view.switch_tab(ViewTab.MY_TASKS)


def cmd_reportees(view: InteractiveView, args: list[str]) -> str | None:
    if not view.switch_tab(ViewTab.REPORTEES):
        return "No reportees configured."
    return None


def cmd_reload(view: InteractiveView, args: list[str]) -> str:
    view.reload()
    return "Reloaded."


def cmd_add(view: InteractiveView, args: list[str]) -> str:
    title = " ".join(args).strip()
    if not title:
        return "Usage: a <title>"
    task = view.add_task(title)
    return f"Created: {_label(task)}"


def cmd_edit(view: InteractiveView, args: list[str]) -> str:
    if not args or args[0].lower() not in EDITABLE_FIELDS:
        return f"Usage: e <{'|'.join(EDITABLE_FIELDS)}> <value>"
    result = view.edit_selected(args[0].lower(), " ".join(args[1:]))
    if result is None:
        return _nothing_selected()
    return f"Updated: {_label(result[0])}"


def cmd_tag(view: InteractiveView, args: list[str]) -> str:
    if not args:
        return "Usage: tag <tag>[,<tag>...]"
    result = view.tag_selected(",".join(args))
    if result is None:
        return _nothing_selected()
    _, added = result
    return "Added tags: " + " ".join(f"#{t}" for t in added) if added else "No new tags."


def cmd_note(view: InteractiveView, args: list[str]) -> str:
    if not args:
        return "Usage: n <text>"
    task = view.note_selected(" ".join(args))
    return f"Note added: {_label(task)}" if task else _nothing_selected()


def cmd_delete(view: InteractiveView, args: list[str], confirm: Confirm) -> str:
    selected = view.selected_task()
    if selected is None:
        return _nothing_selected()
    task, store = selected
    kids = store.get_children(task.id)
    warning = f" It has {len(kids)} subtask(s) that will be orphaned." if kids else ""
    if not confirm(f"Delete task '{task.title}' [{task.short_id}]?{warning}"):
        return "Delete aborted."
    view.delete_selected()
    return f"Deleted: {_label(task)}"


registry.register("?", cmd_help, "Show this help", aliases=["help"])
registry.register("j", cmd_down, "Move selection down", aliases=["down"])
registry.register("k", cmd_up, "Move selection up", aliases=["up"])
registry.register("o", cmd_expand, "Expand/collapse selected (also: empty line)", aliases=["toggle"])
registry.register("s", cmd_start, "Start/resume selected task")
registry.register("c", cmd_complete, "Complete selected task")
registry.register("x", cmd_cancel, "Cancel selected task")
registry.register("p", cmd_pause, "Pause time tracking")
registry.register("h", cmd_toggle_completed, "Toggle completed tasks")
registry.register("H", cmd_toggle_cancelled, "Toggle cancelled tasks")
registry.register("t", cmd_tag_filter, "Filter by tag (no arg clears)")
registry.register("u", cmd_assignee_filter, "Filter by assignee (no arg clears)")
registry.register("1", cmd_my_tasks, "Show my tasks")
registry.register("2", cmd_reportees, "Show reportees")
registry.register("r", cmd_reload, "Reload from disk")
registry.register("a", cmd_add, "Add task (child of selected): a <title>", aliases=["add"])
registry.register("e", cmd_edit, "Edit field: e <field> <value>", aliases=["edit"])
registry.register("tag", cmd_tag, "Add tags to selected: tag <tags>")
registry.register("n", cmd_note, "Add note to selected: n <text>", aliases=["note"])
registry.register("d", cmd_delete, "Delete selected task (asks first)", aliases=["del"])
