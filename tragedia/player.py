"""The player: first-person movement, targeting and dialogue input."""

from __future__ import annotations

import logging
import math
import random
from collections.abc import Iterable
from dataclasses import replace
from typing import Callable, Optional

from .database import Database
from .dialog import Dialog, DialogError, DialogMode
from .fade import Fade
from .level import Level
from .npc import AABB, NPC, Orientation, Vector

log = logging.getLogger(__name__)

DIALOG_COOLDOWN = 0.5
BASE_SPEED = 1.8
MOUSE_SENSITIVITY = 0.2
MIN_UP_DOT = 0.3
STEP_INTERVAL = 0.6
STEP_JITTER = 0.1
STEP_SOUNDS = 8
STEP_VOLUME = 32
FADE_IMAGE = "image/fade.png"

_WORLD_UP: Vector = (0.0, 0.0, 1.0)


def _length(v: Vector) -> float:
    return math.sqrt(v[0] * v[0] + v[1] * v[1] + v[2] * v[2])


def _flat_direction(v: Vector) -> Vector:
    """The horizontal part of ``v`` as a unit vector, or zero if it has none."""
    size = math.hypot(v[0], v[1])
    if size < 1e-9:
        return (0.0, 0.0, 0.0)
    return (v[0] / size, v[1] / size, 0.0)


class Player:
    """The player character, driven by keyboard and mouse input.

    Input handlers act at once; ``update`` advances time and takes the set of
    held movement keys (``"w"``, ``"s"``, ``"a"``, ``"d"``).
    ``on_sound(path, volume)`` receives footstep sounds.
    """

    def __init__(self, level: Level, collider: AABB, eye_height: float) -> None:
        self.level = level
        self.collider = collider
        self.eye_height = float(eye_height)

        self.orientation = Orientation.look_at(
            (10.0, 20.0, -self.eye_height), (0.0, 0.0, 0.0), _WORLD_UP
        )
        self.orientation_start = Orientation()
        self.orientation_target = Orientation()
        self.target_percent = 1.0
        self.target_time = 0.0

        self.speed: Vector = (0.0, 0.0, 0.0)
        self.npc_target: Optional[NPC] = None

        self.database = Database()
        self.fade = Fade()
        self.fade.add_cache(FADE_IMAGE)

        self.dialog = Dialog()
        self.dialog.level = level
        self.dialog.player = self
        self.dialog_cooldown = 0.0

        self.step_timer = 0.0
        self.step_counter = 0
        self.on_sound: Optional[Callable[[str, int], None]] = None

    @property
    def eye_orientation(self) -> Orientation:
        return self.orientation.translated((0.0, 0.0, self.eye_height))

    def _retarget(self) -> None:
        self.npc_target = self.level.find_npc_by_ray(
            self.eye_orientation.position, self.orientation.forward
        )

    def _walk_speed(self, keys: Iterable[str]) -> Vector:
        held = {key.lower() for key in keys}
        forward = _flat_direction(self.orientation.forward)
        right = _flat_direction(self.orientation.right)
        sx = sy = 0.0
        for key, direction, sign in (
            ("w", forward, 1.0),
            ("s", forward, -1.0),
            ("d", right, 1.0),
            ("a", right, -1.0),
        ):
            if key in held:
                sx += sign * BASE_SPEED * direction[0]
                sy += sign * BASE_SPEED * direction[1]
        return (sx, sy, 0.0)

    def _move(self, dx: float, dy: float) -> None:
        position = self.orientation.position
        center = self.collider.center
        moved = AABB(
            (center[0] + position[0] + dx, center[1] + position[1] + dy, center[2] + position[2]),
            self.collider.size,
        )
        if self.level.test(moved):
            return
        self.orientation = self.orientation.translated((dx, dy, 0.0))

    def _play_step(self) -> None:
        self.step_timer = STEP_INTERVAL + random.random() * STEP_JITTER
        path = f"sound/krok_{self.step_counter:02d}.ogg"
        self.step_counter += 1
        if self.step_counter >= STEP_SOUNDS:
            self.step_counter = 0
        if self.on_sound is not None:
            self.on_sound(path, STEP_VOLUME)

    def update(self, dt: float, keys: Iterable[str] = ()) -> None:
        """Advance the player by ``dt`` seconds with ``keys`` held down."""
        self.speed = (0.0, 0.0, 0.0)
        if self.dialog.mode is DialogMode.NONE:
            self.speed = self._walk_speed(keys)
            if _length(self.speed) > 0.0:
                self._retarget()

        self.fade.update(dt)

        if self.dialog_cooldown > 0.0:
            self.dialog_cooldown -= dt

        if self.step_timer > 0.0:
            self.step_timer -= dt
        else:
            scripted_walk = (
                not self.is_movement_finished()
                and self.orientation_start.position != self.orientation_target.position
            )
            if _length(self.speed) > 0.0 or scripted_walk:
                self._play_step()

        if self.dialog.mode is DialogMode.NONE:
            if self.npc_target is not None:
                self.npc_target.targeted = True
            self._move(self.speed[0] * dt, 0.0)
            self._move(0.0, self.speed[1] * dt)
        else:
            self.dialog.update(dt)
            if self.dialog.mode is DialogMode.NONE:
                self._retarget()

        if not self.is_movement_finished():
            if self.target_time < 0.0001:
                self.target_percent = 1.0
            else:
                self.target_percent = min(self.target_percent + dt / self.target_time, 1.0)
                self.orientation = self.orientation_start.interpolate(
                    self.orientation_target, self.target_percent
                )

    def handle_key_up(self, key: str) -> None:
        """Keys released during a dialogue page through it and its choices."""
        if self.dialog.mode is DialogMode.NONE:
            return
        key = key.lower()
        if key == "d":
            self.dialog.next()
        elif key == "a":
            self.dialog.previous()
        elif key == "w":
            self.dialog.select_previous()
        elif key == "s":
            self.dialog.select_next()

    def handle_mouse_move(self, dx: float, dy: float) -> None:
        """Turn the view, refusing to pitch too far, and pick a new target."""
        if self.dialog.mode is not DialogMode.NONE:
            return
        self.orientation = self.orientation.rotated(_WORLD_UP, dx * MOUSE_SENSITIVITY)
        before_pitch = self.orientation
        self.orientation = self.orientation.rotated(
            self.orientation.right, dy * MOUSE_SENSITIVITY
        )
        up = self.orientation.up
        if up[2] / _length(up) < MIN_UP_DOT:
            self.orientation = before_pitch
        self._retarget()

    def handle_mouse_up(self, button: int) -> None:
        """Button 1 starts or advances a dialogue; button 3 steps back."""
        if self.dialog.mode is DialogMode.NONE:
            if button != 1 or self.npc_target is None:
                return
            npc = self.npc_target
            try:
                self.dialog.init(npc.script_path)
            except DialogError as exc:
                log.error("cannot load script %r of NPC %r: %s", npc.script_path, npc.name, exc)
                return
            if self.dialog_cooldown > 0.0:
                log.info("dialogue cooldown, %fs left", self.dialog_cooldown)
                return
            log.info("starting dialogue %r", npc.script_path)
            self.dialog.start()
            return

        if button == 1:
            if self.dialog.mode is DialogMode.SELECTION and self.dialog_cooldown > 0.0:
                return
            self.dialog.next()
            self.dialog_cooldown = DIALOG_COOLDOWN
        elif button == 3:
            self.dialog.previous()

    def handle_mouse_wheel(self, dy: float) -> None:
        """The wheel moves through the choices of a selection."""
        if self.dialog.mode is not DialogMode.SELECTION:
            return
        if dy > 0:
            self.dialog.select_previous()
        else:
            self.dialog.select_next()

    def is_movement_finished(self) -> bool:
        return self.target_percent >= 1.0

    def set_position(self, position: Vector) -> None:
        self.orientation = replace(self.orientation, position=tuple(position))

    def _finish_pending(self) -> None:
        if not self.is_movement_finished():
            log.warning("player movement has not finished yet")
            self.orientation = self.orientation_target
            self.target_percent = 1.0

    def _start_movement(self, target: Orientation, time: float) -> None:
        if time <= 0.0:
            self.orientation = target
            return
        self.orientation_start = self.orientation
        self.orientation_target = target
        self.target_time = time
        self.target_percent = 0.0

    def set_movement(self, target: Orientation, time: float) -> None:
        """Move to ``target`` over ``time`` seconds; at once if ``time`` <= 0."""
        self._finish_pending()
        self._start_movement(target, time)

    def set_look_at(self, target: Vector, time: float) -> None:
        """Turn so that the eyes face ``target`` over ``time`` seconds."""
        self._finish_pending()
        aim = (target[0], target[1], target[2] - self.eye_height)
        goal = Orientation.look_at(aim, self.orientation.position, _WORLD_UP)
        self._start_movement(goal, time)