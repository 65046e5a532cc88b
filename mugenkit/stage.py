"""Stages: the definition file of a fighting stage and its background."""
from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, Dict, List, Optional, Pattern, Tuple, Union

from .loader import SpriteLoader
from .sprites import SpriteRef, Surface
from .textfile import TextFile

Path = Union[str, "os.PathLike[str]"]

_INT = re.compile(r"\s*([+-]?\d+)")
_FLOAT = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_BG_SECTION = re.compile(r"BG (.*)")


def _number(pattern: Pattern[str], value: str, convert):
    match = pattern.match(value)
    if match is None:
        raise ValueError(f"invalid number: {value!r}")
    return convert(match[1])


def _to_int(value: str) -> int:
    return _number(_INT, value, int)


def _to_float(value: str) -> float:
    return _number(_FLOAT, value, float)


def _pair(value: str, pattern: Pattern[str], convert) -> Tuple:
    """Read two numbers separated by one character, as in ``320,240``."""
    first = pattern.match(value)
    if first is None:
        return convert(0), convert(0)
    second = pattern.match(value, first.end() + 1)
    return convert(first[1]), convert(second[1]) if second else convert(0)


class _Section(Enum):
    NONE = auto()
    INFO = auto()
    CAMERA = auto()
    PLAYER_INFO = auto()
    BOUND = auto()
    STAGE_INFO = auto()
    SHADOW = auto()
    REFLECTION = auto()
    MUSIC = auto()
    BG_DEF = auto()


_SECTIONS = {
    "info": _Section.INFO,
    "camera": _Section.CAMERA,
    "playerinfo": _Section.PLAYER_INFO,
    "bound": _Section.BOUND,
    "stageinfo": _Section.STAGE_INFO,
    "shadow": _Section.SHADOW,
    "reflection": _Section.REFLECTION,
    "music": _Section.MUSIC,
    "bgdef": _Section.BG_DEF,
}


@dataclass
class BgElement:
    name: str = ""


@dataclass
class StaticBgElement(BgElement):
    """A background element drawn from a single sprite."""

    sprite_ref: SpriteRef = SpriteRef()
    layer: int = 0
    start: List[float] = field(default_factory=lambda: [0.0, 0.0])
    delta: List[float] = field(default_factory=lambda: [1.0, 1.0])
    mask: bool = False
    tile: List[int] = field(default_factory=lambda: [0, 0])
    tile_spacing: List[int] = field(default_factory=lambda: [0, 0])
    atlas_id: Optional[int] = None


@dataclass
class AnimatedBgElement(BgElement):
    pass


@dataclass
class ParallaxBgElement(BgElement):
    pass


_BG_TYPES = {
    "normal": StaticBgElement,
    "animated": AnimatedBgElement,
    "parallax": ParallaxBgElement,
}


class Stage:
    """A stage read from ``<folder>/<name>.def``."""

    def __init__(self, name: str, folder: Path = "stages") -> None:
        self.loading_name = name
        self.folder = os.fspath(folder)
        # Info
        self.name = ""
        self.display_name = ""
        self.version_date = ""
        self.mugen_version = ""
        self.author = ""
        # Camera
        self.start = [0, 0]
        self.bound_left = 0
        self.bound_right = 0
        self.bound_high = 0
        self.bound_low = 0
        self.tension = 0
        self.tension_high = 0
        self.tension_low = 0
        self.vertical_follow = 0.0
        self.floor_tension = 0
        self.overdraw_high = 0
        self.overdraw_low = 0
        self.cut_high = 0
        self.cut_low = 0
        self.start_zoom = 1.0
        self.zoom_out = 1.0
        self.zoom_in = 1.0
        # Players
        self.p1_start = [0, 0]
        self.p2_start = [0, 0]
        self.p1_facing = False
        self.p2_facing = False
        self.player_left_bound = 0
        self.player_right_bound = 0
        # Bound
        self.screen_left = 0
        self.screen_right = 0
        # Stage info
        self.z_offset = 0
        self.z_offset_link = -1
        self.reset_bg = False
        self.local_coord = [0, 0]
        self.scale = [1.0, 1.0]
        # Shadow and music
        self.darkness = 0
        self.bg_music = ""
        self.bg_volume = 0
        # Background
        self.debug_bg = False
        self.bg_elements: List[BgElement] = []
        self.atlas: List[Surface] = []
        self.camera = [0, 0]
        self._loader = SpriteLoader()
        self._current_bg: Optional[BgElement] = None
        self._pending_bg_name = ""

    @property
    def definition_path(self) -> str:
        return os.path.join(self.folder, f"{self.loading_name}.def")

    def sprite_loader(self) -> SpriteLoader:
        return self._loader

    def _handlers(self) -> Dict[_Section, Dict[str, Callable[[str], None]]]:
        def attr(name: str, convert) -> Callable[[str], None]:
            def handler(value: str) -> None:
                setattr(self, name, convert(value))
            return handler

        def item(values: list, index: int, convert) -> Callable[[str], None]:
            def handler(value: str) -> None:
                values[index] = convert(value)
            return handler

        def positive(value: str) -> bool:
            return _to_int(value) > 0

        def flag(value: str) -> bool:
            return bool(_to_int(value))

        def static(apply: Callable[[StaticBgElement, str], None]) -> Callable[[str], None]:
            def handler(value: str) -> None:
                if isinstance(self._current_bg, StaticBgElement):
                    apply(self._current_bg, value)
            return handler

        def set_sprite(element: StaticBgElement, value: str) -> None:
            element.sprite_ref = SpriteRef(*_pair(value, _INT, int))

        def set_layer(element: StaticBgElement, value: str) -> None:
            element.layer = _to_int(value)

        def set_start(element: StaticBgElement, value: str) -> None:
            element.start = list(_pair(value, _FLOAT, float))

        def set_delta(element: StaticBgElement, value: str) -> None:
            element.delta = list(_pair(value, _FLOAT, float))

        def set_mask(element: StaticBgElement, value: str) -> None:
            element.mask = flag(value)

        def set_type(value: str) -> None:
            kind = _BG_TYPES.get(value)
            if kind is not None:
                self._current_bg = kind()
            if self._current_bg is not None:
                self._current_bg.name = self._pending_bg_name

        def set_sprite_file(value: str) -> None:
            self._loader.initialize(os.path.join(self.folder, value))

        def set_local_coord(value: str) -> None:
            self.local_coord = list(_pair(value, _INT, int))

        return {
            _Section.INFO: {
                "name": attr("name", str),
                "displayname": attr("display_name", str),
                "versiondate": attr("version_date", str),
                "mugenversion": attr("mugen_version", str),
                "author": attr("author", str),
            },
            _Section.CAMERA: {
                "startx": item(self.start, 0, _to_int),
                "starty": item(self.start, 1, _to_int),
                "boundleft": attr("bound_left", _to_int),
                "boundright": attr("bound_right", _to_int),
                "boundhigh": attr("bound_high", _to_int),
                "boundlow": attr("bound_low", _to_int),
                "tension": attr("tension", _to_int),
                "tensionhigh": attr("tension_high", _to_int),
                "tensionlow": attr("tension_low", _to_int),
                "verticalfollow": attr("vertical_follow", _to_float),
                "floortension": attr("floor_tension", _to_int),
                "overdrawhigh": attr("overdraw_high", _to_int),
                "overdrawlow": attr("overdraw_low", _to_int),
                "cuthigh": attr("cut_high", _to_int),
                "cutlow": attr("cut_low", _to_int),
                "startzoom": attr("start_zoom", _to_float),
                "zoomout": attr("zoom_out", _to_float),
                "zoomin": attr("zoom_in", _to_float),
            },
            _Section.PLAYER_INFO: {
                "p1startx": item(self.p1_start, 0, _to_int),
                "p1starty": item(self.p1_start, 1, _to_int),
                "p2startx": item(self.p2_start, 0, _to_int),
                "p2starty": item(self.p2_start, 1, _to_int),
                "p1facing": attr("p1_facing", positive),
                "p2facing": attr("p2_facing", positive),
                "leftbound": attr("player_left_bound", _to_int),
                "rightbound": attr("player_right_bound", _to_int),
            },
            _Section.BOUND: {
                "screenleft": attr("screen_left", _to_int),
                "screenright": attr("screen_right", _to_int),
            },
            _Section.STAGE_INFO: {
                "zoffset": attr("z_offset", _to_int),
                "zoffsetlink": attr("z_offset_link", _to_int),
                "resetBG": attr("reset_bg", flag),
                "localcoord": set_local_coord,
                "xscale": item(self.scale, 0, _to_float),
                "yscale": item(self.scale, 1, _to_float),
            },
            _Section.BG_DEF: {
                "spr": set_sprite_file,
                "debugbg": attr("debug_bg", flag),
                "type": set_type,
                "spriteno": static(set_sprite),
                "layerno": static(set_layer),
                "start": static(set_start),
                "delta": static(set_delta),
                "mask": static(set_mask),
            },
        }

    def _push_current_bg(self) -> None:
        if self._current_bg is not None:
            self.bg_elements.append(self._current_bg)
            self._current_bg = None

    def initialize(self) -> None:
        """Read the definition file and gather the background sprites.

        Raises ``KeyError`` if a static background element names a sprite
        that the stage's sprite archive does not hold.
        """
        handlers = self._handlers()
        section = _Section.NONE
        self.bg_elements = []
        self._current_bg = None
        self._pending_bg_name = ""
        with TextFile(self.definition_path) as definition:
            for pair in definition.values():
                if definition.new_section:
                    if section is not _Section.BG_DEF:
                        section = _SECTIONS.get(definition.section.lower(), _Section.NONE)
                    else:
                        match = _BG_SECTION.fullmatch(definition.section)
                        if match is not None:
                            self._push_current_bg()
                            self._pending_bg_name = match[1]
                handler = handlers.get(section, {}).get(pair.name)
                if handler is not None:
                    handler(pair.value)
        self._push_current_bg()
        self._build_atlas()
        self.camera = [self.start[0], self.start[1]]

    def _build_atlas(self) -> None:
        self.atlas = []
        statics = [element for element in self.bg_elements if isinstance(element, StaticBgElement)]
        if not statics:
            return
        tables = self._loader.load() if self._loader.is_initialized() else []
        table = tables[0] if tables else {}
        for element in statics:
            sprite = table.get(element.sprite_ref)
            if sprite is None:
                raise KeyError(f"background sprite {element.sprite_ref} not found")
            element.atlas_id = len(self.atlas)
            self.atlas.append(sprite.surface)