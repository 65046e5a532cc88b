# mugenkit

Pure-Python readers for the data files of M.U.G.E.N-style fighting-game
characters and stages. It has no third-party dependencies.

## Modules

| Module                | What it reads or holds                            |
|-----------------------|---------------------------------------------------|
| `mugenkit.textfile`   | The shared INI-like text format: `;` comments (kept inside double quotes), `[Section]` headers, `key = value` pairs |
| `mugenkit.definition` | `.def` files as sections of key/value pairs, names lower-cased |
| `mugenkit.animation`  | `.air` animation files (`Begin Action N` blocks)  |
| `mugenkit.commands`   | `.cmd` command files and the input-sequence notation |
| `mugenkit.state`      | Data types for character states: `StateType`, `MoveType`, `Physics`, `Control`, `StateSection`, `State` |
| `mugenkit.sprites`    | `SpriteRef`, `Surface` (RGBA pixel grid), `Sprite`, `SpriteHandler`, little-endian field readers |
| `mugenkit.sffv1`      | Version 1 sprite archives (PCX data, `.act` palettes) |
| `mugenkit.sffv2`      | Version 2 sprite archives (raw, RLE8, RLE5 and LZ5 pixmaps) |
| `mugenkit.loader`     | `SpriteLoader`, which picks the reader matching an archive's version |
| `mugenkit.stage`      | Stage `.def` files and their background elements  |

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

Read a text file directly:

```python
from mugenkit.textfile import TextFile

with TextFile("chars/kfm/kfm.def") as text:
    for pair in text.values():
        print(text.section, pair.name, pair.value)
```

Read a definition file. Section and key names are lower-cased when read;
indexing a missing section returns a new empty one:

```python
from mugenkit.definition import DefinitionFile

definition = DefinitionFile("chars/kfm/kfm.def")
print(definition["info"]["name"])
print(definition.sections().keys())
```

Read an animation file. `AnimationData` is a dict from action number to
`Animation`:

```python
from mugenkit.animation import AnimationData

animations = AnimationData("chars/kfm/kfm.air")
idle = animations[0]
for step in idle.steps:
    print(step.group, step.image, step.x, step.y, step.ticks, step.hinvert, step.vinvert)
print("loops from step", idle.loop_start)
```

Parse command notation, or read every `[Command]` section of a file:

```python
from mugenkit.commands import CharacterCommands, parse_input_definition

for symbol in parse_input_definition("~D, DF, F, x"):
    print(symbol)

commands = CharacterCommands().read_file("chars/kfm/kfm.cmd")
for command in commands.commands:
    print(command.name, command.time, command.buffer_time, len(command.inputs))
```

Load sprites. The archive version is read from its header and the matching
reader (`Sffv1` or `Sffv2`) is used. `load` returns one table per palette,
mapping `SpriteRef` to `Sprite`; references the archive does not hold are
skipped:

```python
from mugenkit.loader import SpriteLoader
from mugenkit.sprites import SpriteRef

loader = SpriteLoader()
loader.initialize("chars/kfm/kfm.sff", "chars/kfm/kfm.act")
per_palette = loader.load([SpriteRef(9000, 0), SpriteRef(9000, 1)])
portrait = per_palette[0][SpriteRef(9000, 0)]
surface = portrait.surface
print(surface.width, surface.height, surface.get_pixel(0, 0))
```

A `Surface` is a plain list of `(r, g, b, a)` tuples stored row by row.
Colour index 0 gives a fully transparent pixel. For a version 1 archive the
given `.act` palette file supplies the shared palettes; sprites that carry
their own PCX palette are drawn with it.

Read a stage from `<folder>/<name>.def`:

```python
from mugenkit.stage import Stage, StaticBgElement

stage = Stage("kfm", "stages")
stage.initialize()
print(stage.name, stage.author, stage.camera)
for element in stage.bg_elements:
    if isinstance(element, StaticBgElement):
        print(element.name, element.sprite_ref, element.start, stage.atlas[element.atlas_id])
```

## Errors

- Sprite archives with a bad signature, a truncated header or (for version 1)
  an unsupported version raise `mugenkit.sprites.SpriteFormatError`.
- `SpriteLoader.initialize` does not raise; a bad file only fails when a
  reader is created.
- `Stage.initialize` raises `KeyError` if a static background element names a
  sprite the stage's archive does not hold.
- Missing text files raise the usual `OSError`.

## What it does not do

The package only reads data. It does not draw anything on screen, build GPU
textures, run a game loop, match player input against commands, or parse
state (`.cns`) files: `mugenkit.state` only provides the data types. Animated
and parallax background elements are recognised by type and name, but carry
no further settings.