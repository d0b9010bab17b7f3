"""Nested text menus with actions, sub-menus and adjustable values."""

from __future__ import annotations

from enum import Enum


class OptionType(Enum):
    ACTION = "action"
    ENTER = "enter"
    RETURN = "return"
    VALUE = "value"


class Option:
    """A menu entry, optionally holding a value or a sub-menu."""

    def __init__(self, tag: int, type: OptionType, name: str = "") -> None:
        self.tag = tag
        self.type = type
        self.name = name
        self.val = 0.0
        self.minimum = 0.0
        self.maximum = 0.0
        self.change = 0.0
        self.sub_layer: Layer | None = None

    def init_value(self, minimum: float, maximum: float, change: float) -> None:
        """Set the value range and step; the value starts in the middle."""
        self.minimum = minimum
        self.maximum = maximum
        self.change = change
        self.val = (minimum + maximum) / 2

    def increment(self) -> None:
        if self.type is not OptionType.VALUE:
            return
        self.val = min(self.val + self.change, self.maximum)

    def decrement(self) -> None:
        if self.type is not OptionType.VALUE:
            return
        self.val = max(self.val - self.change, self.minimum)


class Layer:
    """A list of options with one of them selected."""

    def __init__(self) -> None:
        self.options: list[Option] = []
        self.index = 0

    def __len__(self) -> int:
        return len(self.options)

    def clear(self) -> None:
        self.options.clear()

    def add_option(self, option: Option) -> None:
        self.options.append(option)

    def remove_option(self, index: int) -> None:
        del self.options[index]
        if index < self.index:
            self.index -= 1

    def select(self, index: int) -> None:
        """Select an option, wrapping the index into range."""
        self.index = index
        if self.options:
            self.index %= len(self.options)

    def prev(self) -> None:
        self.index -= 1
        if self.index < 0:
            self.index = len(self.options) - 1

    def next(self) -> None:
        self.index += 1
        if self.index > len(self.options) - 1:
            self.index = 0

    def first(self) -> None:
        self.index = 0

    def last(self) -> None:
        self.index = len(self.options) - 1

    @property
    def current(self) -> Option:
        return self.options[self.index]

    def option_at(self, index: int) -> Option:
        """Return the option at ``index``, wrapping around the list."""
        if not self.options:
            raise IndexError("layer has no options")
        return self.options[index % len(self.options)]


class Menu:
    """A stack of layers navigated with up/down/prev/next commands."""

    def __init__(self) -> None:
        self.blocked = False
        self.exited = False
        self.redraw = True
        self.root = Layer()
        self.stack: list[Layer] = [self.root]

    @property
    def layer(self) -> Layer:
        return self.stack[-1]

    @property
    def option(self) -> Option:
        return self.layer.current

    def clear(self) -> None:
        self.blocked = False
        self.exited = False
        self.root.clear()
        self.stack = [self.root]
        self.redraw = True

    def render_text(self) -> str:
        """Text of the current layer, with the selected option in brackets."""
        current = self.option if self.layer.options else None
        lines = []
        for opt in self.layer.options:
            line = opt.name
            if opt.type is OptionType.VALUE:
                line += f": {opt.val:g}"
            if opt is current:
                line = f"[{line}]"
            lines.append(line)
        self.redraw = False
        return "\n".join(lines)

    def get_option_by_tag(self, tag: int) -> Option | None:
        """Search the whole menu tree for an option with ``tag``."""
        todo = [self.root]
        while todo:
            layer = todo.pop()
            for opt in layer.options:
                if opt.tag == tag:
                    return opt
                if opt.sub_layer is not None:
                    todo.append(opt.sub_layer)
        return None

    def unlock(self) -> None:
        self.blocked = False

    def up(self) -> None:
        """Leave the current layer; leaving the root marks the menu exited."""
        if self.blocked:
            return
        if len(self.stack) > 1:
            self.stack.pop()
        else:
            self.blocked = True
            self.exited = True
        self.redraw = True

    def down(self) -> None:
        """Activate the selected option."""
        if self.blocked:
            return
        opt = self.option
        if opt.type is OptionType.ACTION:
            self.blocked = True
        elif opt.type is OptionType.ENTER:
            if opt.sub_layer is not None:
                self.stack.append(opt.sub_layer)
                opt.sub_layer.select(0)
                self.redraw = True
        elif opt.type is OptionType.RETURN:
            self.up()

    def prev(self) -> None:
        if self.blocked:
            return
        self.layer.prev()
        self.redraw = True

    def next(self) -> None:
        if self.blocked:
            return
        self.layer.next()
        self.redraw = True

    def first(self) -> None:
        if self.blocked:
            return
        self.layer.first()
        self.redraw = True

    def last(self) -> None:
        if self.blocked:
            return
        self.layer.last()
        self.redraw = True

    def increment(self) -> None:
        if self.blocked:
            return
        self.option.increment()
        self.redraw = True

    def decrement(self) -> None:
        if self.blocked:
            return
        self.option.decrement()
        self.redraw = True