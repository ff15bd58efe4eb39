"""
Pipeline commands, one per operation family
"""

from .base import TokenizingCommand, TokenizeResult
from .tokenize import Tokenize
from .parse import Parse, ParseResult
from .extract_frames import ExtractFrames, FramesResult, SentenceFrame
from .label import Label, LabelingsResult, LabelledToken, SentenceLabeling
from .locations import FindLocations, LocationsResult

__all__ = [
    "TokenizingCommand",
    "TokenizeResult",
    "Tokenize",
    "Parse",
    "ParseResult",
    "ExtractFrames",
    "FramesResult",
    "SentenceFrame",
    "Label",
    "LabelingsResult",
    "LabelledToken",
    "SentenceLabeling",
    "FindLocations",
    "LocationsResult",
]
