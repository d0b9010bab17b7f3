"""Levels: static colliders plus the NPCs placed in them."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Optional

from .npc import (
    AABB,
    NPC,
    NPCError,
    Orientation,
    Vector,
    float_attribute,
)

log = logging.getLogger(__name__)

RAY_RANGE = 2.0
RAY_STEPS = 20


class LevelError(Exception):
    """Raised when a level file cannot be loaded."""


class NPCModel(NPC):
    """An NPC drawn as a 3D model."""

    def __init__(self) -> None:
        super().__init__()
        self.model: Optional[str] = None

    def _load(self, definition: str) -> bool:
        if not definition:
            return False
        self.model = definition
        return True

    def clear(self) -> None:
        self.model = None


class NPCSprite(NPC):
    """An NPC drawn as an animated billboard sprite."""

    def __init__(self) -> None:
        super().__init__()
        self.sprite: Optional[str] = None
        self.animation_time = 0.0

    def _load(self, definition: str) -> bool:
        if not definition:
            return False
        self.sprite = definition
        return True

    def update(self, dt: float) -> None:
        self.animation_time += dt
        super().update(dt)

    def clear(self) -> None:
        self.sprite = None
        self.animation_time = 0.0


def create_npc(path: str) -> NPC:
    """Load an NPC, choosing a sprite when its file mentions one."""
    try:
        data = Path(path).read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise NPCError(f"cannot read {path!r}: {exc}") from exc
    npc: NPC = NPCSprite() if "sprite" in data else NPCModel()
    npc.init(path)
    return npc


def _attributes(element: ET.Element, names: tuple[str, ...]) -> Optional[list[float]]:
    values = [float_attribute(element, name) for name in names]
    if any(v is None for v in values):
        return None
    return values  # type: ignore[return-value]


class Level:
    """A loaded level: world colliders and NPCs."""

    def __init__(self) -> None:
        self.npcs: list[NPC] = []
        self.colliders: list[AABB] = []

    def init(self, path: str) -> None:
        """Replace the contents with the level described by the XML file ``path``."""
        self.clear()
        log.info("loading level %r", path)
        try:
            root = ET.parse(path).getroot()
        except OSError as exc:
            raise LevelError(f"cannot read {path!r}: {exc}") from exc
        except ET.ParseError as exc:
            raise LevelError(f"malformed XML in {path!r}: {exc}") from exc

        if root.tag != "level":
            raise LevelError(f"no 'level' element in {path!r}")

        for ecol in root.findall("collider"):
            values = _attributes(ecol, ("x1", "y1", "z1", "x2", "y2", "z2"))
            if values is None:
                raise LevelError(f"collider without full dimensions in {path!r}")
            a, b = values[:3], values[3:]
            center = tuple((p + q) * 0.5 for p, q in zip(a, b))
            size = tuple(abs(q - p) for p, q in zip(a, b))
            self.colliders.append(AABB(center, size))

        for enpc in root.findall("npc"):
            self.npcs.append(self._load_npc(enpc, path))

        log.info("loaded level %r with %d NPCs", path, len(self.npcs))

    def _load_npc(self, enpc: ET.Element, path: str) -> NPC:
        template = enpc.get("template")
        if template is None:
            raise LevelError(f"NPC without a template in {path!r}")
        try:
            npc = create_npc(template)
        except NPCError as exc:
            raise LevelError(f"cannot create NPC {template!r} in {path!r}") from exc

        npc.visible = enpc.get("visible") == "1"
        collidable = enpc.get("collidable")
        if collidable is not None and collidable != "1":
            npc.collidable = False

        eorient = enpc.find("orientation")
        if eorient is None:
            raise LevelError(f"NPC {npc.name!r} has no orientation in {path!r}")
        values = _attributes(
            eorient, ("x", "y", "z", "rx", "ry", "rz", "ux", "uy", "uz")
        )
        if values is None:
            raise LevelError(f"NPC {npc.name!r} has an incomplete orientation in {path!r}")
        scale = float_attribute(eorient, "scale")
        npc.orientation = Orientation(
            values[0:3], values[3:6], values[6:9], 1.0 if scale is None else scale
        )

        escript = enpc.find("script")
        if escript is None or escript.get("path") is None:
            log.warning("NPC %r has no script in %r", npc.name, path)
        else:
            npc.set_script(escript.get("path"))
            if escript.get("enabled") != "1":
                npc.script_enabled = False
        return npc

    def update(self, dt: float) -> None:
        for npc in self.npcs:
            npc.update(dt)

    def clear(self) -> None:
        for npc in self.npcs:
            npc.clear()
        self.npcs.clear()
        self.colliders.clear()

    def find_npc_by_name(self, name: str) -> Optional[NPC]:
        return next((npc for npc in self.npcs if npc.name == name), None)

    def find_npc_by_ray(self, origin: Vector, direction: Vector) -> Optional[NPC]:
        """The first scripted, visible NPC hit by a short ray from ``origin``."""
        step = RAY_RANGE / RAY_STEPS
        for i in range(RAY_STEPS):
            point = tuple(o + d * i * step for o, d in zip(origin, direction))
            for npc in self.npcs:
                if not npc.script_enabled or not npc.visible:
                    continue
                if npc.get_collider().contains_point(point):
                    return npc
        return None

    def test(self, box: AABB) -> bool:
        """True when ``box`` hits a world collider or a solid, visible NPC."""
        if any(col.intersects(box) for col in self.colliders):
            return True
        return any(
            npc.get_collider().intersects_aabb(box)
            for npc in self.npcs
            if npc.collidable and npc.visible
        )