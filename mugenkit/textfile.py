"""Reader for the INI-like text files used by character and stage data.

Lines may carry ``;`` comments (ignored inside double quotes), section
headers such as ``[Info]`` and ``key = value`` pairs, where the value may
be wrapped in double quotes.
"""
from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import BinaryIO, Iterator, Optional, Union

SECTION_HEADER = re.compile(r"[ \t]*\[[ \t]*([^\]]+?)[ \t]*\][ \t\r]*")
KEY_VALUE = re.compile(r"[ \t]*([^=]+?)[ \t]*=[ \t]*([^\r]+?)[ \t\r]*")
KEY_QUOTED_VALUE = re.compile(r'[ \t]*([^=]+?)[ \t]*=[ \t]*"([^\r"]+?)"[ \t\r]*')

ENCODING = "latin-1"


def strip_comment(line: str) -> str:
    """Cut ``line`` at the first ``;`` that is not inside double quotes."""
    quoted = False
    for index, char in enumerate(line):
        if char == '"':
            quoted = not quoted
        elif char == ";" and not quoted:
            return line[:index]
    return line


@dataclass(frozen=True)
class KeyValue:
    """A ``key = value`` pair read from a text file."""

    name: str
    value: str


def parse_key_value(text: str) -> Optional[KeyValue]:
    """Parse a ``key = value`` line; return ``None`` if it is not one."""
    match = KEY_QUOTED_VALUE.fullmatch(text) or KEY_VALUE.fullmatch(text)
    if match is None:
        return None
    return KeyValue(match[1], match[2])


class TextFile:
    """Sequential reader that tracks the current section of the file."""

    def __init__(self, path: Union[str, "os.PathLike[str]"]) -> None:
        self.path = os.fspath(path)
        self._stream: BinaryIO = open(self.path, "rb")
        self.section = ""
        self.new_section = False

    def close(self) -> None:
        self._stream.close()

    def __enter__(self) -> "TextFile":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def _read_line(self) -> Optional[str]:
        raw = self._stream.readline()
        if not raw:
            return None
        text = raw.decode(ENCODING)
        if text.endswith("\n"):
            text = text[:-1]
        return strip_comment(text)

    def _enter_section(self, line: str) -> bool:
        match = SECTION_HEADER.fullmatch(line)
        if match is None:
            return False
        self.section = match[1]
        self.new_section = True
        return True

    def next_line(self) -> Optional[str]:
        """Return the next line without its comment, or ``None`` at the end."""
        self.new_section = False
        line = self._read_line()
        if line is not None:
            self._enter_section(line)
        return line

    def next_value(self) -> Optional[KeyValue]:
        """Return the next key/value pair, or ``None`` at the end.

        ``new_section`` is true afterwards if a section header was passed
        on the way to the returned pair.
        """
        self.new_section = False
        while (line := self._read_line()) is not None:
            if self._enter_section(line):
                continue
            pair = parse_key_value(line)
            if pair is not None:
                return pair
        return None

    def values(self) -> Iterator[KeyValue]:
        """Yield every remaining key/value pair."""
        while (pair := self.next_value()) is not None:
            yield pair

    def lines(self) -> Iterator[str]:
        """Yield every remaining line, comments removed."""
        while (line := self.next_line()) is not None:
            yield line