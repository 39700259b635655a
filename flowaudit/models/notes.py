"""Advising-note template models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class NoteBullet:
    """
    One bullet of a program's advising-note template.

    level is the list nesting depth, 0 for top-level bullets.
    """
    text: str
    level: int = 0
