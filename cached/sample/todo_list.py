"""TODO list view rebuilt from scratch on every refresh.

Controls are created once inside cache cells and only their changing
properties are updated on each run, so text boxes keep their contents and
handlers are never re-attached.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial

from ..constants import TODO_SEED
from ..runtime.builder import cached_here, cached_here_under, computation
from ..runtime.core import create_empty_storage
from ..runtime.driver import run_with_storage
from .widgets import Button, CheckBox, Label, Panel, TextBox, refresh_children


@dataclass
class TodoItem:
    name: str
    done: bool = False


def _seed_items(seed):
    return [TodoItem(name, done) for name, done in seed]


def _new_item_box(refresh):
    box = TextBox()
    box.connect(lambda _box: refresh())
    return box


def _add_button(todo_list, name_box, refresh):
    button = Button("Add Item")

    def on_click(_button):
        todo_list.append(TodoItem(name_box.text))
        name_box.text = ""
        refresh()

    button.connect(on_click)
    return button


def _main_panel(name_box, add_button, items_stack):
    return Panel(
        Label("TODO List"),
        Panel(add_button, name_box),
        items_stack,
    )


def _done_box(todo_list, index, refresh):
    box = CheckBox()

    def on_toggle(cb):
        todo_list[index].done = cb.checked
        refresh()

    box.connect(on_toggle)
    return box


def _remove_button(todo_list, index, refresh):
    button = Button("Remove")

    def on_click(_button):
        del todo_list[index]
        refresh()

    button.connect(on_click)
    return button


def todo_view(refresh, seed=TODO_SEED):
    """Build the computation that renders the TODO list.

    ``refresh`` is called by event handlers after they change the model.
    """

    @computation("todo-list")
    def view():
        todo_list = yield cached_here(partial(_seed_items, seed))
        items_stack = yield cached_here(Panel)
        new_item_name = yield cached_here(partial(_new_item_box, refresh))
        new_item_button = yield cached_here(
            partial(_add_button, todo_list, new_item_name, refresh)
        )
        main_panel = yield cached_here(
            partial(_main_panel, new_item_name, new_item_button, items_stack)
        )

        new_item_button.enabled = bool(new_item_name.text.strip())

        with refresh_children(items_stack) as children:
            for i, item in enumerate(list(todo_list)):
                # Every cell in the loop body shares its step with the other
                # iterations, so each one is keyed by the row index.
                is_done = yield cached_here_under(i, partial(_done_box, todo_list, i, refresh))
                name = yield cached_here_under(i, Label)
                remove_button = yield cached_here_under(
                    i, partial(_remove_button, todo_list, i, refresh)
                )
                row = yield cached_here_under(i, partial(Panel, remove_button, is_done, name))
                children.add(row)

                is_done.checked = item.done
                name.text = item.name
                remove_button.enabled = item.done

        return main_panel

    return view


class TodoApp:
    """Owns the storage and refreshes the view when the model changes."""

    def __init__(self, seed=TODO_SEED, log=None):
        self.storage = create_empty_storage()
        self.log = log
        self.content = None
        self.runs = 0
        self._refreshing = False
        self._view = todo_view(self.refresh, seed)

    def refresh(self):
        # Setting a property during a run can fire a handler that calls
        # refresh again; that nested call is ignored.
        if self._refreshing:
            return self.content
        self._refreshing = True
        try:
            panel = run_with_storage(self.storage, self._view, self.log)
            if self.content is None:
                self.content = panel
            self.runs += 1
        finally:
            self._refreshing = False
        return self.content

    @property
    def name_box(self) -> TextBox:
        return self.content.children[1].children[1]

    @property
    def add_button(self) -> Button:
        return self.content.children[1].children[0]

    @property
    def rows(self) -> list:
        return self.content.children[2].children

    def add_item(self, name):
        self.name_box.text = name
        return self.add_button.click()

    def toggle(self, index):
        box = self.rows[index].children[1]
        box.checked = not box.checked

    def remove(self, index):
        return self.rows[index].children[0].click()

    def render(self) -> list[str]:
        lines = []
        for row in self.rows:
            remove_button, box, label = row.children
            mark = "x" if box.checked else " "
            lines.append(f"[{mark}] {label.text}")
        return lines


__all__ = [
    "TodoApp",
    "TodoItem",
    "todo_view",
]
