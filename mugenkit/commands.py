"""Command (``.cmd``) files: named input sequences of a character."""
from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

from .textfile import TextFile

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


class CommandButton(Enum):
    A = "a"
    B = "b"
    C = "c"
    X = "x"
    Y = "y"
    Z = "z"


class CommandDirection(Enum):
    B = "B"
    DB = "DB"
    D = "D"
    DF = "DF"
    F = "F"
    UF = "UF"
    U = "U"
    UB = "UB"


@dataclass
class ButtonModifier:
    """A button press with its modifiers."""

    held_down: bool = False
    released: bool = False
    charge_ticks: int = 0
    button: Optional[CommandButton] = None


@dataclass(kw_only=True)
class CommandInput:
    exclusive: bool = False


@dataclass(kw_only=True)
class DirectionInput(CommandInput):
    direction: CommandDirection
    held_down: bool = False
    released: bool = False
    charge_ticks: int = 0
    wide_direction: bool = False


@dataclass(kw_only=True)
class ButtonsInput(CommandInput):
    """Buttons pressed together."""

    symbols: List[ButtonModifier] = field(default_factory=list)


@dataclass
class CommandDefinition:
    name: str = ""
    inputs: List[CommandInput] = field(default_factory=list)
    time: Optional[int] = None
    buffer_time: Optional[int] = None


_BUTTON_LETTERS = {button.value for button in CommandButton}
_DIRECTIONS = {direction.value: direction for direction in CommandDirection}


def _parse_block(block: str) -> Optional[CommandInput]:
    is_direction = False
    symbols: List[ButtonModifier] = []
    current = ButtonModifier()
    wide = False
    exclusive = False
    direction_name = ""
    for char in block:
        if "a" <= char <= "z":
            is_direction = False
            if char in _BUTTON_LETTERS:
                current.button = CommandButton(char)
        elif "A" <= char <= "Z":
            direction_name += char
            is_direction = True
        elif "0" <= char <= "9":
            current.charge_ticks = current.charge_ticks * 10 + int(char)
        elif char == "$":
            wide = True
        elif char == "~":
            current.released = True
        elif char == "/":
            current.held_down = True
        elif char == "+":
            symbols.append(current)
            current = ButtonModifier(button=current.button)
            is_direction = False
        elif char == "<":
            exclusive = True
    if is_direction:
        direction = _DIRECTIONS.get(direction_name)
        if direction is None:
            return None
        return DirectionInput(
            direction=direction,
            exclusive=exclusive,
            wide_direction=wide,
            charge_ticks=current.charge_ticks,
            held_down=current.held_down,
            released=current.released,
        )
    symbols.append(current)
    return ButtonsInput(symbols=symbols, exclusive=exclusive)


def parse_input_definition(text: str) -> List[CommandInput]:
    """Parse a comma-separated command such as ``~D, DF, F, x``."""
    blocks = text.split(",")
    if not text or text.endswith(","):
        blocks = blocks[:-1]
    inputs = []
    for block in blocks:
        parsed = _parse_block(block)
        if parsed is not None:
            inputs.append(parsed)
    return inputs


def _to_int(value: str) -> int:
    match = _LEADING_INT.match(value)
    if match is None:
        raise ValueError(f"invalid integer: {value!r}")
    return int(match[1])


class CharacterCommands:
    """The command definitions of a character."""

    def __init__(self) -> None:
        self.commands: List[CommandDefinition] = []
        self.state_entries: list = []

    def read_file(self, path: Union[str, "os.PathLike[str]"]) -> "CharacterCommands":
        """Read the ``[Command]`` sections of ``path``."""
        current: Optional[CommandDefinition] = None
        with TextFile(path) as cmd:
            for pair in cmd.values():
                if cmd.new_section:
                    if current is not None:
                        self.commands.append(current)
                    current = CommandDefinition() if cmd.section == "Command" else None
                if current is None:
                    continue
                if pair.name == "name":
                    current.name = pair.value
                elif pair.name == "command":
                    current.inputs = parse_input_definition(pair.value)
                elif pair.name == "time":
                    current.time = _to_int(pair.value)
                elif pair.name == "buffer.time":
                    current.buffer_time = _to_int(pair.value)
        if current is not None:
            self.commands.append(current)
        return self