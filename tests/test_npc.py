import math

import pytest

from tragedia.npc import AABB, NPC, Box, NPCError, Orientation


class _Puppet(NPC):
    def __init__(self, accept=True):
        super().__init__()
        self.accept = accept
        self.definition = None
        self.cleared = 0

    def _load(self, definition):
        self.definition = definition
        return self.accept

    def clear(self):
        self.cleared += 1


def _write(path, text):
    path.write_text(text, encoding="utf-8")
    return str(path)


def test_defaults():
    npc = _Puppet()
    assert npc.name == "<unnamed>"
    assert npc.script_path == "<not set>"
    assert npc.visible is True
    assert npc.collidable is False
    assert npc.script_enabled is False
    assert NPC.is_movement_finished(npc) is True


def test_init_reads_definition(tmp_path):
    path = _write(
        tmp_path / "hermes.xml",
        '<npc name="Hermes" type="model"><model> statue.obj </model>'
        '<collider x="0" y="0" z="1" w="0.5" d="0.5" h="2"/></npc>',
    )
    npc = _Puppet()
    npc.init(path)
    assert npc.name == "Hermes"
    assert npc.definition == "statue.obj"
    assert npc.collidable is True
    assert npc.collider == AABB((0.0, 0.0, 1.0), (0.5, 0.5, 2.0))
    assert npc.cleared == 1


def test_init_without_name_uses_path(tmp_path):
    path = _write(tmp_path / "anon.xml", '<npc type="sprite"><sprite>a</sprite></npc>')
    npc = _Puppet()
    NPC.init(npc, path)
    assert npc.name == path
    assert npc.collidable is False


def test_collider_attributes_parse_leniently(tmp_path):
    path = _write(
        tmp_path / "x.xml",
        '<npc type="model"><model>m</model><collider x="1.5m" y="abc" w="2"/></npc>',
    )
    npc = _Puppet()
    NPC.init(npc, path)
    assert npc.collider.center == (1.5, 0.0, 0.0)
    assert npc.collider.size == (2.0, 0.0, 0.0)


@pytest.mark.parametrize(
    "content",
    [
        '<npc name="a"><model>m</model></npc>',
        '<npc name="a" type="model"><sprite>m</sprite></npc>',
        '<actor name="a" type="model"><model>m</model></actor>',
        '<npc name="a" type="model"><model>m</model>',
    ],
)
def test_init_rejects_bad_definitions(tmp_path, content):
    path = _write(tmp_path / "bad.xml", content)
    with pytest.raises(NPCError):
        NPC.init(_Puppet(), path)


def test_init_rejects_missing_file(tmp_path):
    with pytest.raises(NPCError):
        NPC.init(_Puppet(), str(tmp_path / "missing.xml"))


def test_init_rejects_failed_load(tmp_path):
    path = _write(tmp_path / "a.xml", '<npc type="model"><model>m</model></npc>')
    with pytest.raises(NPCError):
        NPC.init(_Puppet(accept=False), path)


def test_movement_interpolates_and_finishes():
    npc = _Puppet()
    start = npc.orientation
    target = Orientation(position=(2.0, 0.0, 0.0))
    npc.set_movement(target, 2.0)
    assert npc.is_movement_finished() is False
    npc.update(1.0)
    assert npc.position == pytest.approx(start.interpolate(target, 0.5).position)
    npc.update(5.0)
    assert npc.is_movement_finished() is True
    assert npc.position == pytest.approx(target.position)


def test_instant_movement_finishes_without_moving():
    npc = _Puppet()
    before = npc.orientation
    npc.set_movement(Orientation(position=(5.0, 5.0, 5.0)), 0.0)
    npc.update(0.1)
    assert npc.is_movement_finished() is True
    assert npc.orientation == before


def test_new_movement_snaps_to_previous_target():
    npc = _Puppet()
    first = Orientation(position=(4.0, 0.0, 0.0))
    npc.set_movement(first, 10.0)
    npc.update(1.0)
    npc.set_movement(Orientation(position=(0.0, 4.0, 0.0)), 1.0)
    assert npc.orientation_start == first
    assert npc.orientation == first


def test_set_position_and_script():
    npc = _Puppet()
    NPC.set_position(npc, (1.0, 2.0, 3.0))
    NPC.set_script(npc, "npc/a.ini")
    assert npc.position == (1.0, 2.0, 3.0)
    assert npc.script_enabled is True
    assert npc.script_path == "npc/a.ini"


def test_get_collider_follows_orientation():
    npc = _Puppet()
    npc.set_collider(AABB((0.0, 0.0, 1.0), (1.0, 1.0, 2.0)))
    npc.set_position((3.0, 0.0, 0.0))
    box = npc.get_collider()
    assert box.center == npc.orientation.translated((0.0, 0.0, 1.0)).position
    assert box.size == (1.0, 1.0, 2.0)
    assert box.contains_point(box.center) is True
    assert box.contains_point((0.0, 0.0, 0.0)) is False


def test_look_at_faces_target():
    target = (10.0, 20.0, -1.7)
    position = (1.0, 1.0, 1.0)
    o = Orientation.look_at(target, position)
    direction = tuple(t - p for t, p in zip(target, position))
    norm = math.sqrt(sum(c * c for c in direction))
    assert o.position == position
    assert sum(f * d for f, d in zip(o.forward, direction)) / norm == pytest.approx(1.0)
    assert sum(f * u for f, u in zip(o.forward, o.up)) == pytest.approx(0.0, abs=1e-9)


def test_look_at_rejects_degenerate_input():
    with pytest.raises(ValueError):
        Orientation.look_at((1.0, 1.0, 1.0), (1.0, 1.0, 1.0))
    with pytest.raises(ValueError):
        Orientation.look_at((0.0, 0.0, 5.0), (0.0, 0.0, 0.0))


def test_rotated_quarter_turn_about_z():
    o = Orientation().rotated((0.0, 0.0, 1.0), 90.0)
    assert o.forward == pytest.approx((0.0, 1.0, 0.0), abs=1e-9)
    assert o.up == pytest.approx(Orientation().up)


def test_rotated_full_turn_is_identity():
    o = Orientation(forward=(0.6, 0.8, 0.0)).rotated((1.0, 1.0, 1.0), 360.0)
    assert o.forward == pytest.approx((0.6, 0.8, 0.0), abs=1e-9)
    assert o.up == pytest.approx((0.0, 0.0, 1.0), abs=1e-9)


def test_interpolate_endpoints():
    a = Orientation((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 0.0, 1.0), 1.0)
    b = Orientation((4.0, 2.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0), 3.0)
    assert a.interpolate(b, 0.0).position == pytest.approx(a.position)
    assert a.interpolate(b, 0.0).forward == pytest.approx(a.forward)
    end = a.interpolate(b, 1.0)
    assert end.position == pytest.approx(b.position)
    assert end.forward == pytest.approx(b.forward)
    assert end.scale == pytest.approx(b.scale)


def test_translated_moves_only_position():
    o = Orientation(forward=(0.0, 1.0, 0.0))
    moved = o.translated((1.0, 2.0, 3.0))
    assert moved.position == (1.0, 2.0, 3.0)
    assert moved.forward == o.forward


def test_aabb_contains_and_intersects():
    box = AABB((0.0, 0.0, 0.0), (2.0, 2.0, 2.0))
    assert box.contains_point((1.0, 1.0, 1.0)) is True
    assert box.contains_point((1.1, 0.0, 0.0)) is False
    assert box.intersects(AABB((1.5, 0.0, 0.0), (2.0, 2.0, 2.0))) is True
    assert box.intersects(AABB((2.0, 0.0, 0.0), (2.0, 2.0, 2.0))) is False


def test_aligned_box_matches_aabb():
    size = (2.0, 4.0, 6.0)
    box = Box(Orientation(position=(1.0, 1.0, 1.0)), size)
    aabb = AABB((1.0, 1.0, 1.0), size)
    for point in [(1.0, 1.0, 1.0), (2.0, 3.0, 4.0), (2.5, 1.0, 1.0), (1.0, 3.5, 1.0)]:
        assert box.contains_point(point) == aabb.contains_point(point)


def test_rotated_box_reaches_further_along_diagonal():
    size = (2.0, 2.0, 2.0)
    box = Box(Orientation().rotated((0.0, 0.0, 1.0), 45.0), size)
    aabb = AABB((0.0, 0.0, 0.0), size)
    assert box.contains_point((1.2, 0.0, 0.0)) is True
    assert aabb.contains_point((1.2, 0.0, 0.0)) is False
    assert box.contains_point((0.0, 0.0, 1.2)) is False


def test_box_intersects_aabb():
    box = Box(Orientation(), (2.0, 2.0, 2.0))
    assert box.intersects_aabb(AABB((1.5, 0.0, 0.0), (2.0, 2.0, 2.0))) is True
    assert box.intersects_aabb(AABB((5.0, 0.0, 0.0), (2.0, 2.0, 2.0))) is False
    turned = Box(Orientation().rotated((0.0, 0.0, 1.0), 45.0), (2.0, 2.0, 2.0))
    assert turned.intersects_aabb(AABB((2.1, 0.0, 0.0), (2.0, 2.0, 2.0))) is True