"""Sample views built on the Cached runtime."""

from .counters import Tally, counter, keyed_counters, two_counters
from .todo_list import TodoApp, TodoItem, todo_view
from .widgets import (
    Button,
    CheckBox,
    ChildrenRefresher,
    Label,
    Panel,
    TextBox,
    Widget,
    refresh_children,
)

__all__ = [
    "Button",
    "CheckBox",
    "ChildrenRefresher",
    "Label",
    "Panel",
    "Tally",
    "TextBox",
    "TodoApp",
    "TodoItem",
    "Widget",
    "counter",
    "keyed_counters",
    "refresh_children",
    "todo_view",
    "two_counters",
]
