# tragedia

Game state for a small first-person adventure told through scripted
dialogues. Everything here is plain Python with no dependencies outside
the standard library.

## Modules

- `tragedia.database` – `Database`, a store of named strings and named
  integers. `save(name)` writes a little-endian binary file (string
  entries, then integer entries, each key sorted); `load(name)` replaces
  the contents from such a file. `get_val` creates a missing integer as 0,
  `get_str` returns `""` for a missing string, and empty keys are ignored
  by the setters. File names shorter than two characters raise
  `ValueError`; malformed files raise `DatabaseError`.
- `tragedia.fade` – `Fade` and `FadeLayer`. Layers 0 to 10 each have an
  alpha that `update(dt)` moves towards its target. `set_image` sets a
  layer's image and target, `set` sets a target and gives an image-less
  layer the first image passed to `add_cache`. `visible_layers()` lists
  what to draw, highest layer first. Layers outside 0–10 raise
  `ValueError`.
- `tragedia.menu` – `Menu`, `Layer`, `Option` and `OptionType`. Options
  are actions (which block the menu until `unlock()`), entries into a
  sub-layer, return entries, or values with a range and step.
  `render_text()` gives the current layer as text with the selected entry
  in brackets; `get_option_by_tag` searches the whole tree. Going `up()`
  from the root sets `exited`.
- `tragedia.npc` – `NPC`, the abstract base for characters, with timed
  movement between orientations, a script path and visibility and
  collision flags; `NPC.init(path)` reads an XML `<npc>` definition and
  raises `NPCError` on failure. Also the geometry it uses: `Orientation`
  (position, forward, up, scale; `interpolate`, `rotated` in degrees,
  `translated`, `look_at`), `AABB` and the oriented `Box`.
- `tragedia.level` – `Level`, which loads `<collider>` and `<npc>`
  elements from an XML `<level>` file (raising `LevelError`), finds NPCs by
  name or by a short ray, and tests an `AABB` against the world.
  `create_npc(path)` builds an `NPCSprite` when the file mentions
  `sprite`, otherwise an `NPCModel`.
- `tragedia.dialog` – `Dialog` and `DialogMode`, the interpreter for
  dialogue scripts. A script is a mapping, or an INI file with a
  `[dialog]` section, whose keys are `"<block>"` or `"<block> <index>"`
  and whose values are commands: text (`str`, `strnl`, `nlstr`, `nl`),
  choices (`wyb`), flow (`setb`, `seti`, `stop`, `w8`, `if`, `ifi`,
  `switch`, `switchi`), variables (`save`, `add`), NPC control (`pos`,
  `move`, `rotate`, `rotx`/`roty`/`rotz`, `orientation`, `show`, `hide`,
  `collide`, `uncollide`, `enable`, `disable`), player control (`pmove`,
  `lookat`), fades (`fade`, `unfade`), and `sound` and `light`, which are
  passed to the `on_sound` and `on_light` callbacks. Unreadable scripts
  raise `DialogError`.
- `tragedia.player` – `Player`, which walks through a level with the held
  keys `w`/`s`/`a`/`d` passed to `update(dt, keys)`, turns with
  `handle_mouse_move`, targets NPCs, starts and drives dialogues through
  `handle_mouse_up`, `handle_key_up` and `handle_mouse_wheel`, and owns
  the `database`, `fade` and `dialog` that scripts act on. Footstep
  sounds go to its `on_sound` callback.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Examples

Saving and restoring variables:

```python
from tragedia.database import Database

db = Database()
db.set_str("hero", "Antigone")
db.set_val("act", 3)
db.save("save.dat")

restored = Database("save.dat")
assert restored.get_val("act") == 3
assert restored.get_str("hero") == "Antigone"
```

A menu with an action:

```python
from tragedia.menu import Menu, Option, OptionType

menu = Menu()
menu.root.add_option(Option(1, OptionType.RETURN, "Back"))
menu.root.add_option(Option(2, OptionType.ACTION, "Quit"))
menu.next()
menu.down()          # "Quit" is an action: the menu is now blocked
print(menu.render_text())   # Back\n[Quit]
```

Running a short dialogue:

```python
from tragedia.dialog import Dialog, DialogMode

dialog = Dialog()
dialog.init({"1": "str Hello there", "1 1": "stop"})
dialog.start()
dialog.update(0.0)
assert dialog.message == "Hello there"
dialog.next()
dialog.update(0.0)
assert dialog.mode is DialogMode.NONE
```

## What this package does not do

It draws nothing, plays no sound and opens no window: NPC models and
sprites are kept only as the definition strings read from their files,
and sound, light and footstep requests are handed to callbacks for the
caller to act on. There is no game loop, input handling from a device,
or command-line program; a host application feeds time and input to
`Level` and `Player` and renders their state itself.