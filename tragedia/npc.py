"""Non-player characters and the small amount of 3D geometry they need."""

from __future__ import annotations

import logging
import math
import re
import xml.etree.ElementTree as ET
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Iterable, Optional

log = logging.getLogger(__name__)

Vector = tuple[float, float, float]

_EPS = 1e-9
_NUMBER = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


class NPCError(Exception):
    """Raised when an NPC definition cannot be loaded."""


def _vec(values: Iterable[float]) -> Vector:
    items = tuple(float(v) for v in values)
    if len(items) != 3:
        raise ValueError(f"expected three components, got {len(items)}")
    return items  # type: ignore[return-value]


def _add(a: Vector, b: Vector) -> Vector:
    return (a[0] + b[0], a[1] + b[1], a[2] + b[2])


def _sub(a: Vector, b: Vector) -> Vector:
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def _scale(a: Vector, k: float) -> Vector:
    return (a[0] * k, a[1] * k, a[2] * k)


def _dot(a: Vector, b: Vector) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def _cross(a: Vector, b: Vector) -> Vector:
    return (
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    )


def _length(a: Vector) -> float:
    return math.sqrt(_dot(a, a))


def _normalize(a: Vector) -> Vector:
    size = _length(a)
    if size < _EPS:
        raise ValueError("cannot normalise a zero-length vector")
    return _scale(a, 1.0 / size)


def _lerp(a: Vector, b: Vector, t: float) -> Vector:
    return _add(a, _scale(_sub(b, a), t))


def _blend(a: Vector, b: Vector, t: float) -> Vector:
    mixed = _lerp(a, b, t)
    if _length(mixed) > _EPS:
        return _normalize(mixed)
    return _normalize(b) if _length(b) > _EPS else a


def float_attribute(element: ET.Element, name: str) -> Optional[float]:
    """Read a numeric attribute the lenient way: a leading number or 0."""
    value = element.get(name)
    if value is None:
        return None
    match = _NUMBER.match(value.lstrip())
    return float(match.group()) if match else 0.0


@dataclass(frozen=True)
class Orientation:
    """Position, facing direction, up direction and scale of an object."""

    position: Vector = (0.0, 0.0, 0.0)
    forward: Vector = (1.0, 0.0, 0.0)
    up: Vector = (0.0, 0.0, 1.0)
    scale: float = 1.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "position", _vec(self.position))
        object.__setattr__(self, "forward", _vec(self.forward))
        object.__setattr__(self, "up", _vec(self.up))
        object.__setattr__(self, "scale", float(self.scale))

    @property
    def right(self) -> Vector:
        return _cross(self.forward, self.up)

    @property
    def axes(self) -> tuple[Vector, Vector, Vector]:
        """Unit local axes: forward, left and up."""
        return (
            _normalize(self.forward),
            _normalize(_cross(self.up, self.forward)),
            _normalize(self.up),
        )

    def interpolate(self, other: Orientation, t: float) -> Orientation:
        """Blend towards ``other``; ``t`` runs from 0 (self) to 1 (other)."""
        forward = _blend(self.forward, other.forward, t)
        up = _blend(self.up, other.up, t)
        ortho = _sub(up, _scale(forward, _dot(up, forward)))
        if _length(ortho) > _EPS:
            up = _normalize(ortho)
        return Orientation(
            _lerp(self.position, other.position, t),
            forward,
            up,
            self.scale + (other.scale - self.scale) * t,
        )

    def rotated(self, axis: Vector, angle: float) -> Orientation:
        """Rotate the directions about ``axis`` by ``angle`` degrees."""
        k = _normalize(_vec(axis))
        radians = math.radians(angle)
        cos, sin = math.cos(radians), math.sin(radians)

        def turn(v: Vector) -> Vector:
            return _add(
                _add(_scale(v, cos), _scale(_cross(k, v), sin)),
                _scale(k, _dot(k, v) * (1.0 - cos)),
            )

        return replace(self, forward=turn(self.forward), up=turn(self.up))

    def translated(self, offset: Vector) -> Orientation:
        return replace(self, position=_add(self.position, _vec(offset)))

    @classmethod
    def look_at(
        cls,
        target: Vector,
        position: Vector,
        up: Vector = (0.0, 0.0, 1.0),
    ) -> Orientation:
        """An orientation placed at ``position`` facing ``target``."""
        position = _vec(position)
        forward = _normalize(_sub(_vec(target), position))
        up = _vec(up)
        ortho = _sub(up, _scale(forward, _dot(up, forward)))
        if _length(ortho) < _EPS:
            raise ValueError("up vector is parallel to the viewing direction")
        return cls(position, forward, _normalize(ortho))


@dataclass(frozen=True)
class AABB:
    """Axis-aligned box given by its centre and full size."""

    center: Vector
    size: Vector

    def __post_init__(self) -> None:
        object.__setattr__(self, "center", _vec(self.center))
        object.__setattr__(self, "size", _vec(self.size))

    @property
    def half_size(self) -> Vector:
        return _scale(self.size, 0.5)

    def contains_point(self, point: Vector) -> bool:
        delta = _sub(_vec(point), self.center)
        return all(abs(d) <= h for d, h in zip(delta, self.half_size))

    def intersects(self, other: AABB) -> bool:
        """True when the boxes overlap; boxes that only touch do not."""
        delta = _sub(other.center, self.center)
        return all(
            abs(d) < a + b for d, a, b in zip(delta, self.half_size, other.half_size)
        )


@dataclass(frozen=True)
class Box:
    """Oriented box centred on an orientation's position."""

    orientation: Orientation
    size: Vector

    def __post_init__(self) -> None:
        object.__setattr__(self, "size", _vec(self.size))

    @property
    def center(self) -> Vector:
        return self.orientation.position

    @property
    def half_size(self) -> Vector:
        return _scale(self.size, 0.5)

    def contains_point(self, point: Vector) -> bool:
        delta = _sub(_vec(point), self.center)
        return all(
            abs(_dot(delta, axis)) <= h + _EPS
            for axis, h in zip(self.orientation.axes, self.half_size)
        )

    def intersects_aabb(self, box: AABB) -> bool:
        """Separating-axis test against an axis-aligned box."""
        axes = self.orientation.axes
        world = ((1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0))
        delta = _sub(box.center, self.center)
        candidates = [*axes, *world, *(_cross(a, w) for a in axes for w in world)]
        for axis in candidates:
            if _length(axis) < 1e-6:
                continue
            reach_self = sum(h * abs(_dot(a, axis)) for a, h in zip(axes, self.half_size))
            reach_box = sum(h * abs(c) for h, c in zip(box.half_size, axis))
            if abs(_dot(delta, axis)) >= reach_self + reach_box:
                return False
        return True


class NPC(ABC):
    """A scripted character placed in a level."""

    MARK_COLOR = (1.5, 0.5, 0.5, 1.0)

    def __init__(self) -> None:
        self.orientation = Orientation()
        self.orientation_start = Orientation()
        self.orientation_target = Orientation()
        self.target_percent = 1.0
        self.target_time = 0.0
        self.name = "<unnamed>"
        self.script_enabled = False
        self.script_path = "<not set>"
        self.visible = True
        self.collidable = False
        self.collider = AABB((0.0, 0.0, 0.0), (0.0, 0.0, 0.0))
        self.targeted = False

    @abstractmethod
    def _load(self, definition: str) -> bool:
        """Load the visual described by ``definition``; False on failure."""

    @abstractmethod
    def clear(self) -> None:
        """Release the visual."""

    def init(self, path: str) -> None:
        """Read the NPC definition from the XML file ``path``."""
        path = str(path)
        self.clear()
        log.info("loading NPC from %r", path)
        try:
            root = ET.parse(path).getroot()
        except OSError as exc:
            raise NPCError(f"cannot read {path!r}: {exc}") from exc
        except ET.ParseError as exc:
            raise NPCError(f"malformed XML in {path!r}: {exc}") from exc

        if root.tag != "npc":
            raise NPCError(f"no 'npc' element in {path!r}")

        name = root.get("name")
        if name is None:
            self.name = path
            log.warning("NPC %r has no name", path)
        else:
            self.name = name

        type_name = root.get("type")
        if type_name is None:
            raise NPCError(f"NPC {path!r} has no type")

        etype = next((child for child in root if child.tag == type_name), None)
        if etype is None:
            raise NPCError(f"no {type_name!r} element in {path!r}")

        if not self._load((etype.text or "").strip()):
            raise NPCError(f"cannot load the visual of NPC {path!r}")

        ecol = root.find("collider")
        if ecol is None:
            log.warning("NPC %r has no collider", path)
        else:
            x, y, z, w, d, h = (
                float_attribute(ecol, key) or 0.0 for key in ("x", "y", "z", "w", "d", "h")
            )
            self.set_collider(AABB((x, y, z), (w, d, h)))

    def update(self, dt: float) -> None:
        """Advance the current movement, if any."""
        if self.is_movement_finished():
            return
        if self.target_time < 0.0001:
            self.target_percent = 1.0
            return
        self.target_percent = min(self.target_percent + dt / self.target_time, 1.0)
        self.orientation = self.orientation_start.interpolate(
            self.orientation_target, self.target_percent
        )

    def get_collider(self) -> Box:
        """The collider placed at the NPC's current orientation."""
        return Box(self.orientation.translated(self.collider.center), self.collider.size)

    def is_movement_finished(self) -> bool:
        return self.target_percent >= 1.0

    @property
    def position(self) -> Vector:
        return self.orientation.position

    def set_position(self, position: Vector) -> None:
        self.orientation = replace(self.orientation, position=_vec(position))

    def set_movement(self, target: Orientation, time: float) -> None:
        """Start moving to ``target`` over ``time`` seconds."""
        if not self.is_movement_finished():
            log.warning("movement of %r has not finished yet", self.name)
            self.orientation = self.orientation_target
        self.orientation_start = self.orientation
        self.orientation_target = target
        self.target_time = time
        self.target_percent = 0.0

    def set_script(self, path: str) -> None:
        self.script_enabled = True
        self.script_path = path

    def set_collider(self, collider: AABB) -> None:
        self.collidable = True
        self.collider = collider