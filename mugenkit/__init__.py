"""Readers for fighting-game character and stage data: text, definition,
animation, command and stage files, and version 1 and 2 sprite archives."""

__version__ = "0.1.0"