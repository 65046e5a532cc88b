"""Definition (``.def``) files: sections of case-insensitive keys."""
from __future__ import annotations

import os
from typing import Dict, Optional, Union

from .textfile import TextFile


class DefinitionFile:
    """Values of a definition file, by lower-cased section and key."""

    def __init__(self, path: Optional[Union[str, "os.PathLike[str]"]] = None) -> None:
        self._sections: Dict[str, Dict[str, str]] = {}
        if path is not None:
            self.read_file(path)

    def read_file(self, path: Union[str, "os.PathLike[str]"]) -> "DefinitionFile":
        """Read ``path``, adding its values to those already read."""
        with TextFile(path) as text:
            for pair in text.values():
                section = self._sections.setdefault(text.section.lower(), {})
                section[pair.name.lower()] = pair.value
        return self

    def __getitem__(self, section: str) -> Dict[str, str]:
        """Return the values of ``section``, creating it if needed."""
        return self._sections.setdefault(section, {})

    def sections(self) -> Dict[str, Dict[str, str]]:
        return self._sections