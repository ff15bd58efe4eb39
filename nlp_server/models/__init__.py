"""
NLP Server models

Data structures exchanged between the pipeline stages, the interfaces of the
collaborators that run them and their concrete implementations:
- spaCy tokenizer and parser
- base and morphological preprocessors
- word embeddings and tokens encoder
- linear frame extractor
- gazetteer locations finder
"""

from .base import (
    Position,
    Token,
    Sentence,
    BaseToken,
    BaseSentence,
    Morphology,
    ParsingToken,
    ParsingSentence,
    MorphoSynToken,
    AnnotatedSentence,
    CandidateEntity,
    Slot,
    TokenLabel,
    FrameExtractorOutput,
    LocationEntry,
    BestLocation,
    Tokenizer,
    SentencePreprocessor,
    Parser,
    LanguageDetector,
    EmbeddingsMap,
    EncoderModel,
    FrameExtractor,
    LocationsFinder,
)
from .preprocessors import BasePreprocessor, MorphoPreprocessor
from .encoder import EmbeddingsMapByDictionary, ContextEncoderModel, TokensEncoder
from .frame_extractor import LinearFrameExtractor
from .geolocation import LocationsDictionary, GazetteerLocationsFinder

__all__ = [
    # Data model
    "Position",
    "Token",
    "Sentence",
    "BaseToken",
    "BaseSentence",
    "Morphology",
    "ParsingToken",
    "ParsingSentence",
    "MorphoSynToken",
    "AnnotatedSentence",
    "CandidateEntity",
    "Slot",
    "TokenLabel",
    "FrameExtractorOutput",
    "LocationEntry",
    "BestLocation",
    # Interfaces
    "Tokenizer",
    "SentencePreprocessor",
    "Parser",
    "LanguageDetector",
    "EmbeddingsMap",
    "EncoderModel",
    "FrameExtractor",
    "LocationsFinder",
    # Implementations
    "BasePreprocessor",
    "MorphoPreprocessor",
    "EmbeddingsMapByDictionary",
    "ContextEncoderModel",
    "TokensEncoder",
    "LinearFrameExtractor",
    "LocationsDictionary",
    "GazetteerLocationsFinder",
]
