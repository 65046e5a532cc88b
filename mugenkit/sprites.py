"""Shared pieces of the sprite archive readers: references, surfaces and
little-endian field readers."""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import BinaryIO, Dict, Iterable, List, Optional, Tuple

SIGNATURE = b"ElecbyteSpr\0"

Color = Tuple[int, int, int, int]
TRANSPARENT: Color = (0, 0, 0, 0)


class SpriteFormatError(ValueError):
    """Raised when a sprite archive is malformed or unsupported."""


@dataclass(frozen=True, order=True)
class SpriteRef:
    """A sprite's group number and image number within the group."""

    group: int = 0
    image: int = 0


class Surface:
    """A width by height grid of RGBA pixels, stored row by row."""

    def __init__(self, width: int, height: int) -> None:
        if width < 0 or height < 0:
            raise ValueError(f"invalid surface size {width}x{height}")
        self.width = width
        self.height = height
        self.pixels: List[Color] = [TRANSPARENT] * (width * height)

    def _index(self, x: int, y: int) -> int:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"pixel ({x}, {y}) outside {self.width}x{self.height} surface")
        return y * self.width + x

    def get_pixel(self, x: int, y: int) -> Color:
        return self.pixels[self._index(x, y)]

    def set_pixel(self, x: int, y: int, color: Color) -> None:
        self.pixels[self._index(x, y)] = tuple(color)  # type: ignore[assignment]

    def copy(self) -> "Surface":
        duplicate = Surface(self.width, self.height)
        duplicate.pixels = list(self.pixels)
        return duplicate

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Surface):
            return NotImplemented
        return (self.width, self.height, self.pixels) == (other.width, other.height, other.pixels)

    def __repr__(self) -> str:
        return f"Surface({self.width}, {self.height})"


@dataclass
class Sprite:
    """A rendered sprite; ``palette`` is the palette it was drawn with."""

    ref: SpriteRef
    surface: Surface
    palette: int = -1


SpriteTable = Dict[SpriteRef, Sprite]


class SpriteHandler(ABC):
    """Common interface of the sprite archive readers."""

    @abstractmethod
    def load(self, refs: Optional[Iterable[SpriteRef]] = None) -> List[SpriteTable]:
        """Render the sprites in ``refs`` (all of them if ``None``) for every palette."""

    @abstractmethod
    def sprites(self) -> List[SpriteTable]:
        """Return the sprites rendered by the last ``load``, one table per palette."""


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    data = stream.read(size)
    if len(data) != size:
        raise SpriteFormatError("unexpected end of file")
    return data


def read_signature(stream: BinaryIO) -> None:
    """Read the 12-byte archive signature, raising if it is wrong."""
    if stream.read(len(SIGNATURE)) != SIGNATURE:
        raise SpriteFormatError("invalid sprite file signature")


def extract_version(stream: BinaryIO) -> Tuple[int, int, int, int]:
    """Read the four version bytes, most significant first."""
    return tuple(reversed(_read_exact(stream, 4)))  # type: ignore[return-value]


def read_uint32(stream: BinaryIO) -> int:
    return int.from_bytes(_read_exact(stream, 4), "little")


def read_uint16(stream: BinaryIO) -> int:
    return int.from_bytes(_read_exact(stream, 2), "little")