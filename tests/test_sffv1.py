import struct

import pytest

from mugenkit.sffv1 import (
    MAX_SHARED_PALETTES,
    Sffv1,
    decode_pcx,
    read_act_palette,
)
from mugenkit.sprites import SIGNATURE, TRANSPARENT, SpriteFormatError, SpriteRef

PALETTE = [(i, (2 * i) % 256, (3 * i) % 256) for i in range(256)]


def build_pcx(width, height, body, palette=None):
    header = bytearray(128)
    struct.pack_into("<HHHH", header, 4, 0, 0, width - 1, height - 1)
    data = bytes(header) + bytes(body)
    if palette is not None:
        data += b"\x0c" + bytes(c for rgb in palette for c in rgb)
    return data


def build_sff(entries, shared=False, version=(0, 1, 0, 1), image_count=None):
    header = bytearray(512)
    header[0:12] = SIGNATURE
    header[12:16] = bytes(version)
    first = 512 if entries else 0
    count = len(entries) if image_count is None else image_count
    struct.pack_into("<IIII", header, 16, 1, count, first, 32)
    header[32] = 1 if shared else 0
    out = bytearray(header)
    offset = 512
    for n, entry in enumerate(entries):
        data = entry["data"]
        size = 32 + len(data)
        next_offset = offset + size if n + 1 < len(entries) else 0
        sub = struct.pack(
            "<IIHHHHHB",
            next_offset,
            len(data),
            0,
            0,
            entry["group"],
            entry["image"],
            entry.get("linked", 0),
            1 if entry.get("shared") else 0,
        )
        out += sub + bytes(13) + data
        offset += size
    return bytes(out)


def write(tmp_path, name, content):
    path = tmp_path / name
    path.write_bytes(content)
    return path


def test_decode_pcx_raw_pixels_and_transparency():
    data = build_pcx(2, 2, [1, 0, 2, 1])
    surface = decode_pcx(data, 2, 2, PALETTE)
    assert surface.get_pixel(0, 0) == PALETTE[1] + (255,)
    assert surface.get_pixel(1, 0) == TRANSPARENT
    assert surface.get_pixel(0, 1) == PALETTE[2] + (255,)
    assert surface.get_pixel(1, 1) == PALETTE[1] + (255,)


def test_decode_pcx_run_length():
    data = build_pcx(3, 1, [0xC3, 5])
    surface = decode_pcx(data, 3, 1, PALETTE)
    assert surface.pixels == [PALETTE[5] + (255,)] * 3


def test_decode_pcx_run_is_clipped_to_surface():
    data = build_pcx(2, 1, [0xC3, 7, 9])
    surface = decode_pcx(data, 2, 1, PALETTE)
    assert surface.pixels == [PALETTE[7] + (255,)] * 2


def test_read_act_palette_reverses_order(tmp_path):
    act = bytes(k % 256 for k in range(768))
    path = write(tmp_path, "pal.act", act)
    palette = read_act_palette(path)
    assert len(palette) == 256
    assert palette[255] == tuple(act[0:3])
    assert palette[0] == tuple(act[765:768])


def test_read_act_palette_missing_file(tmp_path):
    assert read_act_palette(tmp_path / "absent.act") is None


def test_invalid_signature(tmp_path):
    path = write(tmp_path, "bad.sff", b"\0" * 600)
    with pytest.raises(SpriteFormatError):
        Sffv1(path)


def test_unsupported_version(tmp_path):
    path = write(tmp_path, "v.sff", build_sff([], version=(2, 0, 0, 0)))
    with pytest.raises(SpriteFormatError):
        Sffv1(path)


def test_reads_sprites_with_own_palette(tmp_path):
    data = build_pcx(2, 2, [1, 0, 2, 1], PALETTE)
    path = write(tmp_path, "a.sff", build_sff([{"group": 9000, "image": 0, "data": data}]))
    sff = Sffv1(path)
    assert len(sff) == 1
    assert sff.palettes == []
    surface = sff.render(0, 0)
    assert (surface.width, surface.height) == (2, 2)
    assert surface.get_pixel(0, 1) == PALETTE[2] + (255,)
    assert sff.palette_for_sprite(0, 0) == PALETTE


def test_image_count_limits_sprites(tmp_path):
    data = build_pcx(1, 1, [1], PALETTE)
    entries = [{"group": 1, "image": i, "data": data} for i in range(3)]
    path = write(tmp_path, "b.sff", build_sff(entries, image_count=2))
    assert len(Sffv1(path)) == 2


def test_load_without_palette_file_is_empty(tmp_path):
    data = build_pcx(1, 1, [1], PALETTE)
    path = write(tmp_path, "c.sff", build_sff([{"group": 0, "image": 0, "data": data}]))
    sff = Sffv1(path)
    assert sff.load() == []
    assert sff.sprites() == []


def test_load_with_act_palette(tmp_path):
    act = bytes(k % 256 for k in range(768))
    act_path = write(tmp_path, "p.act", act)
    own = build_pcx(1, 1, [3], PALETTE)
    shared = build_pcx(1, 1, [1])
    entries = [
        {"group": 0, "image": 0, "data": own},
        {"group": 0, "image": 1, "data": shared, "shared": True},
    ]
    path = write(tmp_path, "d.sff", build_sff(entries, shared=True))
    sff = Sffv1(path, act_path)
    tables = sff.load()
    assert len(tables) == MAX_SHARED_PALETTES
    assert tables is sff.sprites()
    first = tables[0]
    assert set(first) == {SpriteRef(0, 0), SpriteRef(0, 1)}
    assert first[SpriteRef(0, 0)].surface.get_pixel(0, 0) == PALETTE[3] + (255,)
    shared_pixel = first[SpriteRef(0, 1)].surface.get_pixel(0, 0)
    assert shared_pixel == tuple(act[762:765]) + (255,)
    assert first[SpriteRef(0, 1)].palette == 0


def test_shared_sprite_borrows_previous_palette_when_not_shared_mode(tmp_path):
    own = build_pcx(1, 1, [4], PALETTE)
    borrowing = build_pcx(1, 1, [6])
    entries = [
        {"group": 0, "image": 0, "data": own},
        {"group": 0, "image": 1, "data": borrowing, "shared": True},
    ]
    path = write(tmp_path, "e.sff", build_sff(entries, shared=False))
    sff = Sffv1(path)
    assert sff.render(1, 0).get_pixel(0, 0) == PALETTE[6] + (255,)


def test_linked_sprite_renders_target(tmp_path):
    own = build_pcx(2, 1, [4, 5], PALETTE)
    entries = [
        {"group": 0, "image": 0, "data": build_pcx(1, 1, [1], PALETTE)},
        {"group": 0, "image": 1, "data": own},
        {"group": 5, "image": 0, "data": b"", "linked": 1},
    ]
    path = write(tmp_path, "f.sff", build_sff(entries))
    sff = Sffv1(path)
    assert sff.render(2, 0) == sff.render(1, 0)


def test_load_selected_refs(tmp_path):
    act_path = write(tmp_path, "p.act", bytes(768))
    data = build_pcx(1, 1, [2], PALETTE)
    entries = [
        {"group": 9000, "image": 0, "data": data},
        {"group": 9000, "image": 1, "data": data},
    ]
    path = write(tmp_path, "g.sff", build_sff(entries))
    sff = Sffv1(path, act_path)
    tables = sff.load([SpriteRef(9000, 1), SpriteRef(1, 1)])
    assert len(tables) == MAX_SHARED_PALETTES
    assert list(tables[3]) == [SpriteRef(9000, 1)]
    assert tables[3][SpriteRef(9000, 1)].palette == 3