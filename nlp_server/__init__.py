"""
NLP Server

Per-language NLP operations served on request:
- tokenization
- dependency parsing
- frame (intent and slots) extraction over every registered domain
- IOB labelling of the tokens over every registered domain
- resolution of the locations mentioned in a text

Each language is backed by its own resources, held by an immutable registry
built at startup. Commands resolve the language of a text (forced or detected),
run their stages in sequence and return results that the response assembler
turns into JSON or CoNLL.
"""

from .exceptions import (
    NLPServerError,
    EmptyInput,
    LanguageNotSupported,
    LanguageDetectionUnavailable,
    MissingResource,
    InvalidDomain,
    ResourceConfigurationError,
)
from .registry import Operation, ResourceBundle, ResourceRegistry
from .resolver import LanguageResolver, check_text
from .language_detector import StopwordLanguageDetector
from .commands import Tokenize, Parse, ExtractFrames, Label, FindLocations
from .formatting import ResponseAssembler, ResponseFormat, to_json_string

__version__ = "1.0.0"
__all__ = [
    # Errors
    "NLPServerError",
    "EmptyInput",
    "LanguageNotSupported",
    "LanguageDetectionUnavailable",
    "MissingResource",
    "InvalidDomain",
    "ResourceConfigurationError",
    # Registry and language resolution
    "Operation",
    "ResourceBundle",
    "ResourceRegistry",
    "LanguageResolver",
    "check_text",
    "StopwordLanguageDetector",
    # Commands
    "Tokenize",
    "Parse",
    "ExtractFrames",
    "Label",
    "FindLocations",
    # Responses
    "ResponseAssembler",
    "ResponseFormat",
    "to_json_string",
]
