"""Character states and their controllers, as defined in state files."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import List


class StateType(Enum):
    """Stance of the player in a state."""

    STANDING = "S"
    CROUCHING = "C"
    AIR = "A"
    LYING = "L"
    UNCHANGED = "U"


class MoveType(Enum):
    ATTACK = "A"
    IDLE = "I"
    HIT = "H"
    UNCHANGED = "U"


class Physics(Enum):
    """Physics applied to the player during a state."""

    STANDING = "S"
    CROUCHING = "C"
    AIR = "A"
    NONE = "N"
    UNCHANGED = "U"


class Control(IntEnum):
    """Whether the player has control during a state."""

    OFF = 0
    ON = 1
    UNCHANGED = 2


@dataclass
class StateSection:
    """A state controller; its number is only used to report errors."""

    controller_number: int = 0


@dataclass
class State:
    """A single state with its basic and additional parameters.

    ``juggle`` and ``spr_priority`` leave things unchanged when negative.
    """

    state_number: int = 0
    sections: List[StateSection] = field(default_factory=list)
    type: StateType = StateType.STANDING
    move_type: MoveType = MoveType.IDLE
    physics: Physics = Physics.NONE
    anim: int = 0
    velset: List[int] = field(default_factory=lambda: [0, 0])
    power_add: int = 0
    juggle: int = -1
    face_p2: bool = False
    hit_def_persist: bool = False
    move_hit_persist: bool = False
    hit_count_persist: bool = False
    spr_priority: int = -1