"""Scripted dialogues: pages of text, choices and world commands."""

from __future__ import annotations

import configparser
import logging
import math
import os
import re
from collections.abc import Mapping
from dataclasses import replace
from enum import Enum
from typing import Any, Callable, Optional, Union

from .npc import Orientation

log = logging.getLogger(__name__)

MAX_COMMANDS = 100
SCRIPT_SECTION = "dialog"

_INT = re.compile(r"[+-]?\d+")
_FLOAT = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


class DialogError(Exception):
    """Raised when a dialogue script cannot be loaded."""


class DialogMode(Enum):
    NONE = "none"
    DIALOG = "dialog"
    SELECTION = "selection"
    BACKLOG = "backlog"


class _Flow(Enum):
    NEXT = "next"
    STOP = "stop"
    WAIT = "wait"


class _Command:
    """A tokenised script line with lenient numeric access."""

    def __init__(self, text: str) -> None:
        self.tokens = text.split()

    def __len__(self) -> int:
        return len(self.tokens)

    def __getitem__(self, index: int) -> str:
        return self.tokens[index]

    def rest(self, start: int) -> str:
        return " ".join(self.tokens[start:])

    def _token(self, index: int) -> str:
        if 0 <= index < len(self.tokens):
            return self.tokens[index]
        return ""

    def int(self, index: int) -> int:
        match = _INT.match(self._token(index))
        return int(match.group()) if match else 0

    def float(self, index: int) -> float:
        match = _FLOAT.match(self._token(index))
        return float(match.group()) if match else 0.0

    def vector(self, start: int) -> tuple[float, float, float]:
        return (self.float(start), self.float(start + 1), self.float(start + 2))


class _MissingArguments(Exception):
    pass


def _load_script(path: Union[str, os.PathLike]) -> dict[str, str]:
    parser = configparser.ConfigParser(
        delimiters=("=",), interpolation=None, strict=False
    )
    parser.optionxform = str  # type: ignore[assignment]
    try:
        with open(path, encoding="utf-8", errors="replace") as handle:
            parser.read_file(handle)
    except OSError as exc:
        raise DialogError(f"cannot read dialogue script {str(path)!r}: {exc}") from exc
    except configparser.Error as exc:
        raise DialogError(f"malformed dialogue script {str(path)!r}: {exc}") from exc
    if not parser.has_section(SCRIPT_SECTION):
        raise DialogError(f"no [{SCRIPT_SECTION}] section in {str(path)!r}")
    return dict(parser.items(SCRIPT_SECTION))


class Dialog:
    """Runs a dialogue script page by page.

    Script keys are ``"<block>"`` or ``"<block> <index>"``; each value is a
    command line. ``level`` and ``player`` must be set before commands that
    touch NPCs or the player run. ``on_sound(path, volume)`` and
    ``on_light(direction, color)`` receive sound and light requests.
    """

    def __init__(self) -> None:
        self.script: dict[str, str] = {}
        self._mode = DialogMode.NONE
        self.ready = True
        self.block = 0
        self.index = 0
        self.wait_timer = 0.0
        self.selection_targets: list[int] = []
        self.selection_options: list[str] = []
        self.selection_index = 0
        self.message = ""
        self.log: list[str] = []
        self.log_index = 0
        self.level: Any = None
        self.player: Any = None
        self.on_sound: Optional[Callable[[str, int], None]] = None
        self.on_light: Optional[Callable[[tuple, tuple], None]] = None

    @property
    def mode(self) -> DialogMode:
        return DialogMode.BACKLOG if self.log_index > 0 else self._mode

    def init(self, script: Union[Mapping[str, str], str, os.PathLike]) -> None:
        """Use ``script``: a mapping of keys to commands or a path to an INI file."""
        if isinstance(script, Mapping):
            self.script = {str(k): str(v) for k, v in script.items()}
        else:
            self.script = _load_script(script)

    def start(self) -> None:
        if self._mode is not DialogMode.NONE:
            return
        self._mode = DialogMode.DIALOG
        self.ready = False
        self.block = 1
        self.index = 0
        self.log.clear()

    def next(self) -> None:
        """Advance: through the backlog, into a chosen branch, or to the next page."""
        if not self.ready:
            return
        if self.log_index > 0:
            self.log_index -= 1
            if self.log_index > 0 or self._mode is not DialogMode.SELECTION:
                self.message = self.log[len(self.log) - 1 - self.log_index]
            else:
                self.selection_index += 1
                self.select_previous()
        elif self._mode is DialogMode.SELECTION:
            self.ready = False
            self._mode = DialogMode.DIALOG
            self.block = self.selection_targets[self.selection_index]
            self.index = 0
            self.log[-1] = self.message
            self.selection_targets.clear()
            self.selection_options.clear()
            self.message = ""
        else:
            self.ready = False
            self.block -= 1
            self.index = 0
            self.message = ""

    def previous(self) -> None:
        """Step back into the log of earlier pages."""
        if not self.ready:
            return
        self.log_index += 1
        if self.log_index >= len(self.log):
            self.log_index = len(self.log) - 1
            return
        self.message = self.log[len(self.log) - 1 - self.log_index]

    def _render_selection(self) -> None:
        self.message = "".join(
            f"[{option}]\n" if i == self.selection_index else f"{option}\n"
            for i, option in enumerate(self.selection_options)
        )

    def select_previous(self) -> None:
        if not self.ready or self._mode is not DialogMode.SELECTION:
            return
        self.selection_index -= 1
        if self.selection_index < 0:
            self.selection_index = len(self.selection_options) - 1
        self._render_selection()

    def select_next(self) -> None:
        if not self.ready or self._mode is not DialogMode.SELECTION:
            return
        self.selection_index += 1
        if self.selection_index >= len(self.selection_options):
            self.selection_index = 0
        self._render_selection()

    def _lookup(self) -> str:
        if self.index == 0:
            return self.script.get(str(self.block), "") or self.script.get(
                f"{self.block} 0", ""
            )
        return self.script.get(f"{self.block} {self.index}", "")

    def update(self, dt: float) -> None:
        """Run script commands until the page is complete or a wait starts."""
        if self._mode is DialogMode.NONE:
            return
        if self.block <= 0:
            self._mode = DialogMode.NONE
            self.log.clear()
            return
        if self.ready:
            return
        if self.wait_timer > 0.0:
            self.wait_timer -= dt
            return

        while self.index < MAX_COMMANDS:
            text = self._lookup()
            command = _Command(text)
            flow = _Flow.NEXT
            if len(command) > 0:
                try:
                    flow = self._execute(command)
                except _MissingArguments as exc:
                    log.error(
                        "[%d:%d] too few arguments for %r: %s",
                        self.block, self.index, command[0], exc,
                    )
                except ValueError as exc:
                    log.error(
                        "[%d:%d] bad arguments for %r: %s",
                        self.block, self.index, command[0], exc,
                    )
            if flow is _Flow.WAIT:
                return
            if flow is _Flow.STOP:
                break
            self.index += 1

        self.ready = True
        if self._mode is DialogMode.SELECTION:
            self.selection_index = 1
            self.select_previous()
            self.log.append("<<temp>>")
        else:
            self.log.append(self.message)

    @staticmethod
    def _require(command: _Command, count: int) -> None:
        if len(command) < count + 1:
            raise _MissingArguments(f"expected {count}, got {len(command) - 1}")

    def _npc(self, command: _Command) -> Any:
        npc = self.level.find_npc_by_name(command[1])
        if npc is None:
            log.error("NPC %r not found", command[1])
        return npc

    def _execute(self, cmd: _Command) -> _Flow:
        name = cmd[0]
        handler = self._HANDLERS.get(name)
        if handler is None:
            log.error("unknown command %r", name)
            return _Flow.NEXT
        return handler(self, cmd) or _Flow.NEXT

    # Flow control

    def _cmd_setb(self, cmd: _Command) -> Optional[_Flow]:
        self._require(cmd, 1)
        self.block = cmd.int(1)
        self.index = -1
        self.message = ""
        return _Flow.STOP if self.block < 0 else None

    def _cmd_seti(self, cmd: _Command) -> None:
        self._require(cmd, 1)
        self.index = max(cmd.int(1) - 1, 0)

    def _cmd_stop(self, cmd: _Command) -> _Flow:
        self.ready = True
        return _Flow.STOP

    def _cmd_w8(self, cmd: _Command) -> _Flow:
        self._require(cmd, 1)
        self.ready = False
        self.wait_timer = cmd.float(1)
        self.index += 1
        return _Flow.WAIT

    # Text

    def _cmd_str(self, cmd: _Command) -> None:
        self._require(cmd, 1)
        self.message += cmd.rest(1)

    def _cmd_strnl(self, cmd: _Command) -> None:
        self._require(cmd, 1)
        self.message += cmd.rest(1) + "\n"

    def _cmd_nlstr(self, cmd: _Command) -> None:
        self._require(cmd, 1)
        self.message += "\n" + cmd.rest(1)

    def _cmd_nl(self, cmd: _Command) -> None:
        self.message += "\n"

    def _cmd_wyb(self, cmd: _Command) -> None:
        self._require(cmd, 2)
        self._mode = DialogMode.SELECTION
        self.selection_targets.append(cmd.int(1))
        self.selection_options.append(cmd.rest(2))

    # NPC movement

    def _cmd_pos(self, cmd: _Command) -> None:
        self._require(cmd, 4)
        npc = self._npc(cmd)
        if npc is not None:
            npc.set_position(cmd.vector(2))

    def _rotate_npc(self, cmd: _Command, axis: tuple[float, float, float]) -> None:
        self._require(cmd, 3)
        npc = self._npc(cmd)
        if npc is not None:
            npc.set_movement(npc.orientation.rotated(axis, cmd.float(2)), cmd.float(3))

    def _cmd_rotz(self, cmd: _Command) -> None:
        self._rotate_npc(cmd, (0.0, 0.0, 1.0))

    def _cmd_roty(self, cmd: _Command) -> None:
        self._rotate_npc(cmd, (0.0, 1.0, 0.0))

    def _cmd_rotx(self, cmd: _Command) -> None:
        self._rotate_npc(cmd, (1.0, 0.0, 0.0))

    def _cmd_rotate(self, cmd: _Command) -> None:
        self._require(cmd, 3)
        npc = self._npc(cmd)
        if npc is None:
            return
        angle = math.radians(cmd.float(2))
        target = Orientation(
            npc.orientation.position,
            (math.cos(angle), math.sin(angle), 0.0),
            (0.0, 0.0, 1.0),
        )
        npc.set_movement(target, cmd.float(3))

    @staticmethod
    def _axis_angle_target(current: Orientation, cmd: _Command) -> Orientation:
        target = current.rotated(cmd.vector(5), cmd.float(8))
        return replace(target, position=cmd.vector(2), scale=cmd.float(10))

    def _cmd_move(self, cmd: _Command) -> None:
        self._require(cmd, 5)
        npc = self._npc(cmd)
        if npc is None:
            return
        if len(cmd) == 6:
            npc.set_movement(
                replace(npc.orientation, position=cmd.vector(2)), cmd.float(5)
            )
        elif len(cmd) == 11:
            npc.set_movement(self._axis_angle_target(npc.orientation, cmd), cmd.float(9))
        else:
            target = Orientation(
                cmd.vector(2),
                cmd.vector(5),
                cmd.vector(8),
                cmd.float(12) if len(cmd) > 12 else 1.0,
            )
            npc.set_movement(target, cmd.float(11))

    def _cmd_orientation(self, cmd: _Command) -> None:
        self._require(cmd, 10)
        npc = self._npc(cmd)
        if npc is not None:
            npc.orientation = Orientation(cmd.vector(2), cmd.vector(5), cmd.vector(8))

    # Player movement

    def _cmd_pmove(self, cmd: _Command) -> None:
        self._require(cmd, 7)
        if len(cmd) == 8:
            target = Orientation.look_at(cmd.vector(1), cmd.vector(4))
            self.player.set_movement(target, cmd.float(7))
        elif len(cmd) == 11:
            target = self._axis_angle_target(self.player.orientation, cmd)
            self.player.set_movement(target, cmd.float(9))
        else:
            log.error("wrong number of arguments for 'pmove': %d", len(cmd))

    def _cmd_lookat(self, cmd: _Command) -> None:
        self._require(cmd, 3)
        time = cmd.float(4) if len(cmd) > 4 else 0.0
        self.player.set_look_at(cmd.vector(1), time)

    # NPC state

    def _set_npc_flag(self, cmd: _Command, attribute: str, value: bool) -> Any:
        self._require(cmd, 1)
        npc = self._npc(cmd)
        if npc is not None:
            setattr(npc, attribute, value)
        return npc

    def _cmd_show(self, cmd: _Command) -> None:
        self._set_npc_flag(cmd, "visible", True)

    def _cmd_hide(self, cmd: _Command) -> None:
        self._set_npc_flag(cmd, "visible", False)

    def _cmd_collide(self, cmd: _Command) -> None:
        self._set_npc_flag(cmd, "collidable", True)

    def _cmd_uncollide(self, cmd: _Command) -> None:
        self._set_npc_flag(cmd, "collidable", False)

    def _cmd_enable(self, cmd: _Command) -> None:
        npc = self._set_npc_flag(cmd, "script_enabled", True)
        if npc is not None and len(cmd) > 2:
            log.info("setting script of NPC %r to %r", cmd[1], cmd[2])
            npc.set_script(cmd[2])

    def _cmd_disable(self, cmd: _Command) -> None:
        self._set_npc_flag(cmd, "script_enabled", False)

    # Fades

    def _cmd_fade(self, cmd: _Command) -> None:
        fade = self.player.fade
        count = len(cmd)
        if count == 2:
            fade.set(1, cmd.float(1))
        elif count == 3:
            fade.set(1, cmd.float(1), cmd.float(2))
        elif count == 4:
            fade.set_image(1, cmd[1], cmd.float(2), cmd.float(3))
        elif count == 5:
            fade.set_image(cmd.int(1), cmd[2], cmd.float(3), cmd.float(4))
        else:
            self._require(cmd, 2)

    def _cmd_unfade(self, cmd: _Command) -> None:
        self.player.fade.set_image(1, None, 0.0, 0.0)

    # Variables

    def _cmd_save(self, cmd: _Command) -> None:
        self._require(cmd, 2)
        self.player.database.set_val(cmd[1], cmd.int(2))

    def _cmd_add(self, cmd: _Command) -> None:
        self._require(cmd, 2)
        db = self.player.database
        db.set_val(cmd[1], db.get_val(cmd[1]) + cmd.int(2))

    def _compare_target(self, cmd: _Command) -> int:
        value = self.player.database.get_val(cmd[1])
        expected = cmd.int(2)
        if len(cmd) == 5:
            return cmd.int(3) if value == expected else cmd.int(4)
        if value < expected:
            return cmd.int(3)
        if value == expected:
            return cmd.int(4)
        return cmd.int(5)

    def _cmd_if(self, cmd: _Command) -> None:
        self._require(cmd, 4)
        self.block = self._compare_target(cmd)
        self.index = -1

    def _cmd_ifi(self, cmd: _Command) -> None:
        if len(cmd) < 5:
            log.error("too few arguments for 'ifi': %d", len(cmd))
            return
        self.index = self._compare_target(cmd) - 1

    def _switch_value(self, cmd: _Command) -> Optional[int]:
        value = self.player.database.get_val(cmd[1])
        if value < 0 or value > len(cmd) - 2:
            log.debug("no action for value %d", value)
            return None
        return value

    def _cmd_switch(self, cmd: _Command) -> None:
        if len(cmd) < 3:
            log.error("too few arguments for 'switch': %d", len(cmd))
            return
        value = self._switch_value(cmd)
        if value is None:
            return
        self.block = cmd.int(value + 2)
        self.index -= 1

    def _cmd_switchi(self, cmd: _Command) -> None:
        if len(cmd) < 5:
            log.error("too few arguments for 'switchi': %d", len(cmd))
            return
        value = self._switch_value(cmd)
        if value is None:
            return
        self.index = cmd.int(value - 2) - 1

    # Sound and light

    def _cmd_sound(self, cmd: _Command) -> None:
        self._require(cmd, 2)
        volume = min(max(cmd.float(2), 0.0), 1.0)
        if self.on_sound is not None:
            self.on_sound(cmd[1], int(volume * 128))
        else:
            log.info("sound %r requested with no sound output", cmd[1])

    def _cmd_light(self, cmd: _Command) -> None:
        self._require(cmd, 6)
        if self.on_light is not None:
            self.on_light(cmd.vector(1), cmd.vector(4))
        else:
            log.info("light change requested with no renderer")

    _HANDLERS: dict[str, Callable[["Dialog", _Command], Optional[_Flow]]] = {
        "setb": _cmd_setb,
        "seti": _cmd_seti,
        "stop": _cmd_stop,
        "w8": _cmd_w8,
        "str": _cmd_str,
        "strnl": _cmd_strnl,
        "nlstr": _cmd_nlstr,
        "nl": _cmd_nl,
        "wyb": _cmd_wyb,
        "pos": _cmd_pos,
        "rotz": _cmd_rotz,
        "roty": _cmd_roty,
        "rotx": _cmd_rotx,
        "rotate": _cmd_rotate,
        "move": _cmd_move,
        "orientation": _cmd_orientation,
        "pmove": _cmd_pmove,
        "lookat": _cmd_lookat,
        "show": _cmd_show,
        "hide": _cmd_hide,
        "collide": _cmd_collide,
        "uncollide": _cmd_uncollide,
        "enable": _cmd_enable,
        "disable": _cmd_disable,
        "fade": _cmd_fade,
        "unfade": _cmd_unfade,
        "save": _cmd_save,
        "add": _cmd_add,
        "if": _cmd_if,
        "ifi": _cmd_ifi,
        "switch": _cmd_switch,
        "switchi": _cmd_switchi,
        "sound": _cmd_sound,
        "light": _cmd_light,
    }