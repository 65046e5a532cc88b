"""Animation (``.air``) files: numbered actions made of sprite steps."""
from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Optional, Tuple, Union

from .textfile import TextFile

_SECTION = re.compile(r"Begin Action ([0-9]+)")
_STEP = re.compile(
    r"[ \t\r\n]*(-?[0-9]+),[ \t]*(-?[0-9]+),[ \t]*(-?[0-9]+),[ \t]*(-?[0-9]+),[ \t]*(-?[0-9]+)"
    r"((?:[ \t]*,[ \t]*[A-Za-z0-9]*)*)[ \t\r\n]*"
)


@dataclass
class AnimationStep:
    """One frame of an animation; ``ticks`` are sixtieths of a second."""

    group: int
    image: int
    x: int
    y: int
    ticks: int
    hinvert: bool = False
    vinvert: bool = False


@dataclass
class AnimationBox:
    """A collision or attack box of a frame."""

    class Kind(Enum):
        COLLISION = auto()
        ATTACK = auto()

    kind: "AnimationBox.Kind"
    coordinates: Tuple[int, int, int, int]
    frame_number: int


@dataclass
class Animation:
    boxes: List[AnimationBox] = field(default_factory=list)
    steps: List[AnimationStep] = field(default_factory=list)
    loop_start: int = 0


def _parse_step(line: str) -> Optional[AnimationStep]:
    match = _STEP.fullmatch(line)
    if match is None:
        return None
    group, image, x, y, ticks = (int(match[i]) for i in range(1, 6))
    flags = match[6]
    return AnimationStep(group, image, x, y, ticks, "H" in flags, "V" in flags)


class AnimationData(dict):
    """Animations by action number."""

    def __init__(self, path: Optional[Union[str, "os.PathLike[str]"]] = None) -> None:
        super().__init__()
        if path is not None:
            self.read_file(path)

    def read_file(self, path: Union[str, "os.PathLike[str]"]) -> "AnimationData":
        """Read the actions of ``path``, replacing actions of the same number."""
        action: Optional[int] = None
        current = Animation()
        with TextFile(path) as air:
            for line in air.lines():
                if air.new_section:
                    if action is not None:
                        self[action] = current
                    match = _SECTION.fullmatch(air.section)
                    if match is None:
                        action = None
                        continue
                    action = int(match[1])
                    current = Animation()
                    continue
                if action is None:
                    continue
                step = _parse_step(line)
                if step is not None:
                    current.steps.append(step)
                elif "LoopStart" in line:
                    current.loop_start = len(current.steps)
        if action is not None:
            self[action] = current
        return self