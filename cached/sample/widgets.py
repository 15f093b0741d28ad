"""Headless stand-ins for the toolkit controls used by the sample views."""

from __future__ import annotations


class Widget:
    def __init__(self):
        self.enabled = True
        self.parent = None

    def __repr__(self):  # pragma: no cover - representation helper
        return f"<{type(self).__name__} at {id(self):#x}>"


class Label(Widget):
    def __init__(self, text=""):
        super().__init__()
        self.text = text

    def __repr__(self):  # pragma: no cover - representation helper
        return f"<Label {self.text!r}>"


class _Notifying(Widget):
    """A control that calls its handlers whenever its state changes."""

    def __init__(self):
        super().__init__()
        self.handlers = []

    def connect(self, handler):
        self.handlers.append(handler)
        return handler

    def _notify(self):
        for handler in list(self.handlers):
            handler(self)


class TextBox(_Notifying):
    def __init__(self, text=""):
        super().__init__()
        self._text = text

    @property
    def text(self):
        return self._text

    @text.setter
    def text(self, value):
        if value != self._text:
            self._text = value
            self._notify()


class CheckBox(_Notifying):
    def __init__(self, checked=False):
        super().__init__()
        self._checked = checked

    @property
    def checked(self):
        return self._checked

    @checked.setter
    def checked(self, value):
        if value != self._checked:
            self._checked = value
            self._notify()


class Button(_Notifying):
    def __init__(self, text=""):
        super().__init__()
        self.text = text

    def click(self):
        """Call the click handlers; a disabled button ignores clicks."""
        if self.enabled:
            self._notify()
            return True
        return False


class Panel(Widget):
    def __init__(self, *children):
        super().__init__()
        self.children = []
        for child in children:
            self.append(child)

    def append(self, child):
        child.parent = self
        self.children.append(child)


class ChildrenRefresher:
    """Refreshes the children of ``panel`` without clearing and re-adding them.

    Children are added in order; a child already at its slot is left alone.
    Leaving the ``with`` block removes the children that were not added again.
    A refresher is single use.
    """

    def __init__(self, panel: Panel):
        self.panel = panel
        self.count = 0
        self.closed = False

    def add(self, item: Widget):
        if self.closed:
            raise RuntimeError("ChildrenRefresher has been closed")
        children = self.panel.children
        if self.count < len(children):
            if children[self.count] is not item:
                children[self.count] = item
                item.parent = self.panel
        else:
            self.panel.append(item)
        self.count += 1

    def close(self):
        if self.closed:
            return
        del self.panel.children[self.count:]
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


def refresh_children(panel: Panel) -> ChildrenRefresher:
    return ChildrenRefresher(panel)


__all__ = [
    "Button",
    "CheckBox",
    "ChildrenRefresher",
    "Label",
    "Panel",
    "TextBox",
    "Widget",
    "refresh_children",
]
