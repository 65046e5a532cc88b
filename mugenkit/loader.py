"""Chooses the right sprite archive reader for a file and loads its sprites."""
from __future__ import annotations

import os
from typing import Iterable, List, Optional, Tuple, Union

from .sffv1 import Sffv1
from .sffv2 import Sffv2
from .sprites import (
    SpriteFormatError,
    SpriteHandler,
    SpriteRef,
    SpriteTable,
    extract_version,
    read_signature,
)

Path = Union[str, "os.PathLike[str]"]


class SpriteLoader:
    """Remembers a sprite archive and loads it with the reader its version needs."""

    def __init__(self) -> None:
        self.sff_file = ""
        self.palettes_file = ""
        self.version: Optional[Tuple[int, int, int, int]] = None

    def initialize(self, sff_path: Path, palettes_file: Path = "") -> None:
        """Set the archive to load and read its version.

        An unreadable file or a bad signature leaves the version unknown;
        the error then comes when a reader is created.
        """
        self.sff_file = os.fspath(sff_path)
        self.palettes_file = os.fspath(palettes_file)
        self.version = None
        try:
            with open(self.sff_file, "rb") as stream:
                read_signature(stream)
                self.version = extract_version(stream)
        except (OSError, SpriteFormatError):
            return

    def create_handler(self) -> SpriteHandler:
        """Open the archive with the reader that matches its major version."""
        if self.version is not None and self.version[0] >= 2:
            return Sffv2(self.sff_file)
        return Sffv1(self.sff_file, self.palettes_file)

    def load(self, refs: Optional[Iterable[SpriteRef]] = None) -> List[SpriteTable]:
        """Render the sprites in ``refs`` (all if ``None``), one table per palette."""
        handler = self.create_handler()
        handler.load(None if refs is None else list(refs))
        return handler.sprites()

    def load_for_palette(self, palette: int) -> SpriteTable:
        """Render every sprite with one palette."""
        return self.load()[palette]

    def is_initialized(self) -> bool:
        return bool(self.sff_file)