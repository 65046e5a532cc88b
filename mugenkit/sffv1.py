"""Reader for version 1 sprite archives (PCX images with 256-colour palettes)."""
from __future__ import annotations

import os
import struct
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple, Union

from .sprites import (
    TRANSPARENT,
    Sprite,
    SpriteFormatError,
    SpriteHandler,
    SpriteRef,
    SpriteTable,
    Surface,
    extract_version,
    read_signature,
    read_uint16,
    read_uint32,
)

PALETTE_NCOLORS = 256
PALETTE_BYTES = 3 * PALETTE_NCOLORS
PCX_HEADER_SIZE = 128
PCX_PALETTE_MARKER = 0x0C
MAX_SHARED_PALETTES = 12
_SUBHEADER_PADDING = 13

RGB = Tuple[int, int, int]
Palette = List[RGB]

Path = Union[str, "os.PathLike[str]"]


@dataclass
class _SpriteInfo:
    axis_x: int
    axis_y: int
    group: int
    image: int
    linked_index: int
    uses_shared_palette: bool
    data: bytes

    def _u16(self, offset: int) -> int:
        return struct.unpack_from("<H", self.data, offset)[0]

    @property
    def width(self) -> int:
        if len(self.data) < 12:
            return 0
        return (self._u16(8) - self._u16(4) + 1) & 0xFFFF

    @property
    def height(self) -> int:
        if len(self.data) < 12:
            return 0
        return (self._u16(10) - self._u16(6) + 1) & 0xFFFF


def read_act_palette(path: Path) -> Optional[Palette]:
    """Read an 8-bit ``.act`` palette; colours are stored in reverse order.

    Returns ``None`` if the file cannot be opened.
    """
    try:
        with open(path, "rb") as act:
            data = act.read(PALETTE_BYTES)
    except OSError:
        return None
    colors: Palette = [(0, 0, 0)] * PALETTE_NCOLORS
    for i in range(PALETTE_NCOLORS):
        chunk = data[3 * i:3 * i + 3]
        if not chunk:
            break
        chunk = chunk.ljust(3, b"\0")
        colors[PALETTE_NCOLORS - 1 - i] = (chunk[0], chunk[1], chunk[2])
    return colors


def decode_pcx(data: bytes, width: int, height: int, palette: Palette) -> Surface:
    """Decode the run-length pixel data that follows a PCX header.

    Colour index 0 is transparent.
    """
    surface = Surface(width, height)
    pixels = surface.pixels
    total = width * height
    body = data[PCX_HEADER_SIZE:]
    position = 0
    index = 0
    while position < total and index < len(body):
        byte = body[index]
        if byte & 0xC0 == 0xC0:
            run = byte & 0x3F
            index += 1
            if index >= len(body):
                break
            color_index = body[index]
        else:
            run = 1
            color_index = byte
        color = (*palette[color_index], 0xFF) if color_index else TRANSPARENT
        end = min(position + run, total)
        pixels[position:end] = [color] * (end - position)
        position = end
        index += 1
    return surface


class Sffv1(SpriteHandler):
    """A version 1 sprite archive, with optional shared ``.act`` palette."""

    def __init__(self, filename: Path, palette_file: Path = "") -> None:
        self.filename = os.fspath(filename)
        self.palette_file = os.fspath(palette_file)
        self.group_count = 0
        self.image_count = 0
        self.shared_palette = False
        self.palettes: List[Palette] = []
        self._entries: List[_SpriteInfo] = []
        self._groups: Dict[SpriteRef, int] = {}
        self._sprites: List[SpriteTable] = []
        self._load_file()
        self._load_shared_palettes()

    def __len__(self) -> int:
        return len(self._entries)

    def _load_file(self) -> None:
        with open(self.filename, "rb") as stream:
            try:
                read_signature(stream)
            except SpriteFormatError:
                raise SpriteFormatError(f"Invalid sprite file: {self.filename}") from None
            version = extract_version(stream)
            if version[3] > 1:
                raise SpriteFormatError(f"unsupported sprite file version {version}")
            self.group_count = read_uint32(stream)
            self.image_count = read_uint32(stream)
            next_offset = read_uint32(stream)
            read_uint32(stream)  # subheader size
            flag = stream.read(1)
            self.shared_palette = bool(flag and flag[0])
            while 0 < next_offset < 0x80000000 and len(self._entries) < self.image_count:
                stream.seek(next_offset)
                try:
                    next_offset = read_uint32(stream)
                    size = read_uint32(stream)
                    axis_x = read_uint16(stream)
                    axis_y = read_uint16(stream)
                    group = read_uint16(stream)
                    image = read_uint16(stream)
                    linked = read_uint16(stream)
                    shared_byte = stream.read(1)
                except SpriteFormatError:
                    break
                if not shared_byte:
                    break
                stream.seek(_SUBHEADER_PADDING, os.SEEK_CUR)
                data = stream.read(size)
                info = _SpriteInfo(axis_x, axis_y, group, image, linked, bool(shared_byte[0]), data)
                self._groups[SpriteRef(group, image)] = len(self._entries)
                self._entries.append(info)
                if len(data) < size:
                    break

    def _load_shared_palettes(self) -> None:
        if not self.palette_file:
            return
        palette = read_act_palette(self.palette_file)
        if palette is None:
            return
        self.palettes = [list(palette) for _ in range(MAX_SHARED_PALETTES)]

    def palette_for_sprite(self, sprite_number: int, palette_id: int) -> Palette:
        """Return the palette a sprite is drawn with.

        A sprite that uses the shared palette takes the palette of the
        nearest earlier sprite that carries its own, unless the archive
        itself is in shared-palette mode.
        """
        entries = self._entries
        if self.shared_palette and entries[sprite_number].uses_shared_palette:
            return self.palettes[palette_id]
        for _ in range(len(entries)):
            if not entries[sprite_number].uses_shared_palette:
                break
            sprite_number = sprite_number - 1 if sprite_number > 0 else len(entries) - 1
        data = entries[sprite_number].data
        size = len(data)
        if size > PALETTE_BYTES and data[size - PALETTE_BYTES - 1] == PCX_PALETTE_MARKER:
            raw = data[size - PALETTE_BYTES:]
            return [tuple(raw[3 * i:3 * i + 3]) for i in range(PALETTE_NCOLORS)]  # type: ignore[misc]
        return self.palettes[palette_id]

    def render(self, sprite_number: int, palette_id: int) -> Surface:
        """Draw a sprite, following its link if it has no data of its own."""
        displayed = sprite_number
        info = self._entries[sprite_number]
        if info.linked_index and not info.data:
            displayed = info.linked_index
        target = self._entries[displayed]
        palette = self.palette_for_sprite(displayed, palette_id)
        return decode_pcx(target.data, target.width, target.height, palette)

    def load(self, refs: Optional[Iterable[SpriteRef]] = None) -> List[SpriteTable]:
        """Render sprites for every palette; unknown refs are skipped."""
        if refs is None:
            numbers = [
                (SpriteRef(info.group, info.image), number)
                for number, info in enumerate(self._entries)
            ]
        else:
            numbers = [(ref, self._groups[ref]) for ref in refs if ref in self._groups]
        self._sprites = []
        for palette_id in range(len(self.palettes)):
            table: SpriteTable = {}
            for ref, number in numbers:
                if ref not in table:
                    table[ref] = Sprite(ref, self.render(number, palette_id), palette_id)
            self._sprites.append(table)
        return self._sprites

    def sprites(self) -> List[SpriteTable]:
        return self._sprites