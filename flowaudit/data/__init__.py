"""
Data loading and parsing module.

This package handles all document I/O and transcript row parsing.
"""

from .document import MarkupNode, SoupNode, parse_markup
from .loader import DataLoader, NotesTemplateCache
from .parser import TranscriptRowParser

__all__ = [
    "MarkupNode",
    "SoupNode",
    "parse_markup",
    "DataLoader",
    "NotesTemplateCache",
    "TranscriptRowParser",
]
