import struct

import pytest

from mugenkit.loader import SpriteLoader
from mugenkit.sprites import SIGNATURE, SpriteRef
from mugenkit.stage import AnimatedBgElement, Stage, StaticBgElement

COLOR_1 = (10, 20, 30)
COLOR_2 = (40, 50, 60)


def build_sffv2(path):
    pixmap = bytes([0, 0, 0, 0, 1, 2])
    palette = bytes([0, 0, 0, 0, *COLOR_1, 0, *COLOR_2, 0])
    ldata = palette + pixmap
    sprite_offset = 12 + 4 + 8 + 4 + 8 + 32
    palette_offset = sprite_offset + 28
    ldata_offset = palette_offset + 16
    header = (
        SIGNATURE
        + b"\x00\x00\x00\x02"
        + b"\0" * 8
        + b"\x00\x00\x00\x02"
        + b"\0" * 8
        + struct.pack("<8I", sprite_offset, 1, palette_offset, 1, ldata_offset, len(ldata), 0, 0)
    )
    sprite = struct.pack("<7HBBIIHH", 1, 0, 2, 1, 0, 0, 0, 0, 8, len(palette), len(pixmap), 0, 0)
    palette_record = struct.pack("<4HII", 1, 1, 256, 0, 0, len(palette))
    path.write_bytes(header + sprite + palette_record + ldata)


STAGE_DEF = """\
; a test stage
[Info]
name = "Test Stage"
displayname = "Shown Name"
author = Nobody ; trailing comment
[Camera]
startx = 5
starty = -3
boundleft = -100
verticalfollow = .2
[PlayerInfo]
p1startx = -70
p1facing = 1
p2facing = -1
[Bound]
screenleft = 15
[StageInfo]
zoffset = 190
resetBG = 1
localcoord = 320, 240
xscale = 1.5
[BGDef]
spr = test.sff
debugbg = 1
[BG Sky]
type = normal
spriteno = 1, 0
layerno = 1
start = 10, 20
delta = .5, .25
mask = 1
[BG Anim]
type = animated
[Info]
name = Ignored
"""


@pytest.fixture
def stage(tmp_path):
    folder = tmp_path / "stages"
    folder.mkdir()
    build_sffv2(folder / "test.sff")
    (folder / "test.def").write_text(STAGE_DEF)
    loaded = Stage("test", folder)
    loaded.initialize()
    return loaded


def test_info_values(stage):
    assert stage.name == "Test Stage"
    assert stage.display_name == "Shown Name"
    assert stage.author == "Nobody"


def test_camera_values(stage):
    assert stage.start == [5, -3]
    assert stage.bound_left == -100
    assert stage.vertical_follow == pytest.approx(0.2)
    assert stage.camera == stage.start


def test_player_values(stage):
    assert stage.p1_start[0] == -70
    assert stage.p1_facing is True
    assert stage.p2_facing is False


def test_bound_and_stage_info(stage):
    assert stage.screen_left == 15
    assert stage.z_offset == 190
    assert stage.z_offset_link == -1
    assert stage.reset_bg is True
    assert stage.local_coord == [320, 240]
    assert stage.scale[0] == pytest.approx(1.5)


def test_sections_after_bgdef_are_not_reopened(stage):
    assert stage.name != "Ignored"
    assert stage.debug_bg is True


def test_background_elements(stage):
    assert [element.name for element in stage.bg_elements] == ["Sky", "Anim"]
    sky, anim = stage.bg_elements
    assert isinstance(sky, StaticBgElement)
    assert isinstance(anim, AnimatedBgElement)
    assert sky.sprite_ref == SpriteRef(1, 0)
    assert sky.layer == 1
    assert sky.start == [10.0, 20.0]
    assert sky.delta == pytest.approx([0.5, 0.25])
    assert sky.mask is True


def test_atlas_holds_background_sprites(stage):
    sky = stage.bg_elements[0]
    assert sky.atlas_id == 0
    assert len(stage.atlas) == 1
    assert stage.atlas[0].pixels == [(*COLOR_1, 255), (*COLOR_2, 255)]


def test_sprite_loader_points_at_stage_archive(stage):
    loader = stage.sprite_loader()
    assert isinstance(loader, SpriteLoader)
    assert loader.is_initialized() is True
    assert loader.sff_file.endswith("test.sff")


def test_missing_background_sprite_raises(tmp_path):
    build_sffv2(tmp_path / "test.sff")
    (tmp_path / "broken.def").write_text(
        "[BGDef]\nspr = test.sff\n[BG Wall]\ntype = normal\nspriteno = 9, 9\n"
    )
    stage = Stage("broken", tmp_path)
    with pytest.raises(KeyError):
        stage.initialize()


def test_stage_without_background_has_empty_atlas(tmp_path):
    (tmp_path / "plain.def").write_text("[Info]\nname = Plain\n")
    stage = Stage("plain", tmp_path)
    stage.initialize()
    assert stage.name == "Plain"
    assert stage.bg_elements == []
    assert stage.atlas == []
    assert stage.sprite_loader().is_initialized() is False


def test_missing_definition_file_raises(tmp_path):
    stage = Stage("nowhere", tmp_path)
    with pytest.raises(FileNotFoundError):
        stage.initialize()


def test_invalid_integer_raises(tmp_path):
    (tmp_path / "bad.def").write_text("[Camera]\nstartx = left\n")
    stage = Stage("bad", tmp_path)
    with pytest.raises(ValueError):
        stage.initialize()