"""Reader for version 2 sprite archives (raw, RLE8, RLE5 and LZ5 pixmaps)."""
from __future__ import annotations

import os
import struct
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple, Union

from .sprites import (
    Sprite,
    SpriteFormatError,
    SpriteHandler,
    SpriteRef,
    SpriteTable,
    Surface,
    extract_version,
    read_signature,
    read_uint32,
)

Path = Union[str, "os.PathLike[str]"]
Color = Tuple[int, int, int, int]

PALETTE_NCOLORS = 256
_RESERVED = 8
_SPRITE_RECORD = struct.Struct("<7HBBIIHH")
_PALETTE_RECORD = struct.Struct("<4HII")
_PIXMAP_HEADER = 4

FORMAT_RAW = 0
FORMAT_INVALID = 1
FORMAT_RLE8 = 2
FORMAT_RLE5 = 3
FORMAT_LZ5 = 4


@dataclass
class _SpriteInfo:
    group: int
    item: int
    width: int
    height: int
    axis_x: int
    axis_y: int
    linked_index: int
    fmt: int
    color_depth: int
    data_offset: int
    data_length: int
    palette_index: int
    flags: int

    @property
    def uses_tdata(self) -> bool:
        return bool(self.flags & 0x01)


@dataclass
class _PaletteInfo:
    group: int
    item: int
    color_count: int
    linked_index: int
    ldata_offset: int
    data_length: int


def decode_raw(data: bytes, length: int) -> List[int]:
    """Colour indices of an uncompressed pixmap."""
    return list(data[_PIXMAP_HEADER:length])


def decode_rle8(data: bytes, length: int) -> List[int]:
    """Colour indices of an 8-bit run-length encoded pixmap."""
    data = data[:length]
    out: List[int] = []
    index = _PIXMAP_HEADER
    try:
        while index < length:
            first = data[index]
            if first & 0xC0 == 0x40:
                index += 1
                out.extend([data[index]] * (first & 0x3F))
            else:
                out.append(first)
            index += 1
    except IndexError:
        pass
    return out


def decode_rle5(data: bytes, length: int) -> List[int]:
    """Colour indices of a 5-bit run-length encoded pixmap."""
    data = data[:length]
    out: List[int] = []
    index = _PIXMAP_HEADER
    try:
        while index < length:
            run = data[index]
            index += 1
            data_length = data[index]
            if data_length & 0x80:
                index += 1
                color = data[index]
            else:
                color = 0
            out.extend([color] * run)
            for _ in range((data_length & 0x7F) - 1):
                index += 1
                byte = data[index]
                out.extend([byte & 0x1F] * (byte >> 5))
            index += 1
    except IndexError:
        pass
    return out


def decode_lz5(data: bytes, length: int, size: int) -> List[int]:
    """Colour indices of an LZ5 compressed pixmap of ``size`` pixels.

    Back-references stop once ``size`` pixels have been produced; a
    reference that reaches before the first pixel yields index 0.
    """
    data = data[:length]
    out: List[int] = []
    short_lz_packets = 1
    recycled = 0
    index = _PIXMAP_HEADER
    try:
        while index < length:
            control = data[index]
            packet = 0
            while packet < 8 and index < length:
                index += 1
                byte = data[index]
                if not control & (1 << packet):
                    color = byte & 0x1F
                    run = byte & 0xE0
                    if run:
                        run >>= 5
                    else:
                        index += 1
                        run = data[index] + 8
                    out.extend([color] * run)
                else:
                    copy_length = byte & 0x3F
                    if copy_length:
                        copy_length += 1
                        if short_lz_packets % 4 == 0:
                            recycled |= (byte & 0xC0) >> 6
                            offset = recycled + 1
                            recycled = 0
                        else:
                            recycled |= (byte & 0xC0) >> (2 * ((short_lz_packets - 1) % 4))
                            index += 1
                            offset = data[index] + 1
                        short_lz_packets += 1
                    else:
                        offset = byte << 2
                        index += 1
                        offset |= data[index]
                        offset += 1
                        index += 1
                        copy_length = data[index] + 3
                    start = len(out)
                    for step in range(copy_length):
                        if len(out) >= size:
                            break
                        source = start - offset + step % offset
                        out.append(out[source] if source >= 0 else 0)
                packet += 1
            index += 1
    except IndexError:
        pass
    return out


def _palette_colors(ldata: bytes, offset: int) -> List[Color]:
    colors: List[Color] = []
    for number in range(PALETTE_NCOLORS):
        base = offset + 4 * number
        rgb = ldata[base:base + 3] if base + 3 <= len(ldata) else b"\0\0\0"
        colors.append((rgb[0], rgb[1], rgb[2], 0xFF if number else 0x00))
    return colors


class Sffv2(SpriteHandler):
    """A version 2 sprite archive with its palettes and data blocks."""

    def __init__(self, filename: Path) -> None:
        self.filename = os.fspath(filename)
        self.version: Tuple[int, int, int, int] = (0, 0, 0, 0)
        self.compatible_version: Tuple[int, int, int, int] = (0, 0, 0, 0)
        self.ldata = b""
        self.tdata = b""
        self.palettes: List[_PaletteInfo] = []
        self._entries: List[_SpriteInfo] = []
        self._groups: Dict[SpriteRef, int] = {}
        self._sprites: List[SpriteTable] = []
        self._load_file()

    def __len__(self) -> int:
        return len(self._entries)

    def _load_file(self) -> None:
        with open(self.filename, "rb") as stream:
            try:
                read_signature(stream)
            except SpriteFormatError:
                raise SpriteFormatError(f"Invalid sprite file: {self.filename}") from None
            self.version = extract_version(stream)
            stream.seek(_RESERVED, os.SEEK_CUR)
            self.compatible_version = extract_version(stream)
            stream.seek(_RESERVED, os.SEEK_CUR)
            sprite_offset = read_uint32(stream)
            sprite_count = read_uint32(stream)
            palette_offset = read_uint32(stream)
            palette_count = read_uint32(stream)
            ldata_offset = read_uint32(stream)
            ldata_length = read_uint32(stream)
            tdata_offset = read_uint32(stream)
            tdata_length = read_uint32(stream)

            self.ldata = self._read_block(stream, ldata_offset, ldata_length)
            self.tdata = self._read_block(stream, tdata_offset, tdata_length)

            stream.seek(sprite_offset)
            for _ in range(sprite_count):
                record = self._read_record(stream, _SPRITE_RECORD)
                info = _SpriteInfo(*record)
                self._groups[SpriteRef(info.group, info.item)] = len(self._entries)
                self._entries.append(info)

            stream.seek(palette_offset)
            for _ in range(palette_count):
                self.palettes.append(_PaletteInfo(*self._read_record(stream, _PALETTE_RECORD)))

    @staticmethod
    def _read_block(stream, offset: int, length: int) -> bytes:
        if not length:
            return b""
        position = stream.tell()
        stream.seek(offset)
        block = stream.read(length)
        stream.seek(position)
        return block

    @staticmethod
    def _read_record(stream, record: struct.Struct) -> tuple:
        raw = stream.read(record.size)
        if len(raw) != record.size:
            raise SpriteFormatError("unexpected end of file")
        return record.unpack(raw)

    def _indices(self, sprite: _SpriteInfo) -> List[int]:
        block = self.tdata if sprite.uses_tdata else self.ldata
        data = block[sprite.data_offset:sprite.data_offset + sprite.data_length]
        length = sprite.data_length
        if sprite.fmt == FORMAT_RAW:
            return decode_raw(data, length)
        if sprite.fmt == FORMAT_RLE8:
            return decode_rle8(data, length)
        if sprite.fmt == FORMAT_RLE5:
            return decode_rle5(data, length)
        if sprite.fmt == FORMAT_LZ5:
            return decode_lz5(data, length, sprite.width * sprite.height)
        return []

    def render(self, sprite_number: int, palette_id: int) -> Surface:
        """Draw a sprite, following sprite and palette links.

        A sprite naming a palette other than 0 is always drawn with it.
        """
        displayed = sprite_number
        if self._entries[sprite_number].linked_index:
            displayed = self._entries[sprite_number].linked_index
        sprite = self._entries[displayed]
        palette_used = sprite.palette_index or palette_id
        if self.palettes[palette_used].linked_index:
            palette_used = self.palettes[palette_used].linked_index
        colors = _palette_colors(self.ldata, self.palettes[palette_used].ldata_offset)
        surface = Surface(sprite.width, sprite.height)
        size = sprite.width * sprite.height
        indices = self._indices(sprite)[:size]
        surface.pixels[:len(indices)] = [colors[color] for color in indices]
        return surface

    def load(self, refs: Optional[Iterable[SpriteRef]] = None) -> List[SpriteTable]:
        """Render sprites for every palette; unknown refs are skipped."""
        if refs is None:
            numbers = [
                (SpriteRef(info.group, info.item), number)
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