"""
Resource Registry

Immutable, process-lifetime mapping from language codes to the resources each
operation needs. It is built once at startup and only read afterwards, which
is what lets concurrent requests share it without locking.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .exceptions import InvalidDomain, LanguageNotSupported, MissingResource
from .models.base import (
    EmbeddingsMap,
    EncoderModel,
    FrameExtractor,
    LanguageDetector,
    LocationsFinder,
    Parser,
    SentencePreprocessor,
    Tokenizer,
)
from .models.geolocation import GazetteerLocationsFinder, LocationsDictionary
from .models.encoder import TokensEncoder
from .models.preprocessors import BasePreprocessor

logger = logging.getLogger(__name__)


class Operation(str, Enum):
    """Operation families served by the pipeline commands"""
    TOKENIZE = "tokenize"
    PARSE = "parse"
    EXTRACT_FRAMES = "extract-frames"
    LOCATIONS = "locations"


@dataclass(frozen=True)
class ResourceBundle:
    """
    The resources registered for one language.

    Only the tokenizer is mandatory: each optional resource enables (or is
    used by) some operations.
    """
    language: str
    tokenizer: Tokenizer
    preprocessor: Optional[SentencePreprocessor] = None
    encoder: Optional[EncoderModel] = None
    parser: Optional[Parser] = None
    embeddings: Optional[EmbeddingsMap] = None

    def supports(self, operation: Operation) -> bool:
        if operation == Operation.PARSE:
            return self.parser is not None
        if operation == Operation.EXTRACT_FRAMES:
            return self.encoder is not None
        return True


class ResourceRegistry:
    """
    Registry of the per-language resources and of the shared ones
    (frame extractors, locations finder, language detector).
    """

    base_preprocessor: SentencePreprocessor = BasePreprocessor()

    def __init__(self,
                 bundles: Sequence[ResourceBundle],
                 frame_extractors: Sequence[FrameExtractor] = (),
                 language_detector: Optional[LanguageDetector] = None,
                 locations_dictionary: Optional[LocationsDictionary] = None,
                 locations_finder: Optional[LocationsFinder] = None,
                 strict: bool = False):
        """
        Build the registry.

        Args:
            bundles: One bundle per language
            frame_extractors: Frame extractors, in the order their sections are reported
            language_detector: Detector used when no language is forced
            locations_dictionary: Gazetteer backing the locations finder
            locations_finder: Finder of location mentions
            strict: Raise MissingResource at construction for an encoder without
                embeddings, instead of at lookup

        Raises:
            ValueError: If a language or a domain is registered twice, or if
                a frame extractor does not read the encodings of an encoder
            MissingResource: In strict mode, if an encoder has no embeddings
        """
        by_language: Dict[str, ResourceBundle] = {}
        for bundle in bundles:
            if bundle.language in by_language:
                raise ValueError(f"Duplicate resources for language: {bundle.language}")
            by_language[bundle.language] = bundle

        extractors: Dict[str, FrameExtractor] = {}
        for extractor in frame_extractors:
            if extractor.domain in extractors:
                raise ValueError(f"Duplicate frame extractor domain: {extractor.domain}")
            extractors[extractor.domain] = extractor

        # Encoder chains are built once per language, never per request
        encoders: Dict[str, TokensEncoder] = {}
        for code, bundle in by_language.items():
            if bundle.encoder is None:
                continue
            for extractor in extractors.values():
                if extractor.input_size != bundle.encoder.output_size:
                    raise ValueError(
                        f"Frame extractor '{extractor.domain}' reads encodings of size "
                        f"{extractor.input_size}, the encoder of '{code}' outputs "
                        f"{bundle.encoder.output_size}"
                    )
            if bundle.embeddings is None:
                if strict:
                    raise MissingResource("embeddings", code)
                logger.warning(f"Encoder for '{code}' has no embeddings: frame extraction disabled")
                continue
            encoders[code] = TokensEncoder(
                preprocessor=bundle.preprocessor or self.base_preprocessor,
                embeddings=bundle.embeddings,
                model=bundle.encoder
            )

        self._bundles: Mapping[str, ResourceBundle] = MappingProxyType(by_language)
        self._frame_extractors: Mapping[str, FrameExtractor] = MappingProxyType(extractors)
        self._tokens_encoders: Mapping[str, TokensEncoder] = MappingProxyType(encoders)
        self._language_detector = language_detector
        self._locations_dictionary = locations_dictionary
        if locations_finder is None and locations_dictionary is not None:
            locations_finder = GazetteerLocationsFinder(locations_dictionary)
        self._locations_finder = locations_finder

        logger.info(
            f"Resource registry built: languages={list(by_language)}, "
            f"domains={list(extractors)}, "
            f"language_detector={'yes' if language_detector else 'no'}"
        )
        self._frozen = True

    def __setattr__(self, name, value):
        if getattr(self, "_frozen", False):
            raise AttributeError("ResourceRegistry is read-only after construction")
        super().__setattr__(name, value)

    @property
    def languages(self) -> Tuple[str, ...]:
        return tuple(self._bundles)

    @property
    def domains(self) -> Tuple[str, ...]:
        """Frame extractor domains, in registration order"""
        return tuple(self._frame_extractors)

    @property
    def language_detector(self) -> Optional[LanguageDetector]:
        return self._language_detector

    def languages_for(self, operation: Operation) -> Tuple[str, ...]:
        return tuple(code for code, bundle in self._bundles.items() if bundle.supports(operation))

    def supports(self, language: str, operation: Operation) -> bool:
        bundle = self._bundles.get(language)
        return bundle is not None and bundle.supports(operation)

    def resources_for(self, language: str, operation: Operation) -> ResourceBundle:
        """
        Get the resources of a language for an operation.

        Raises:
            LanguageNotSupported: If no bundle supports the operation for the language
        """
        bundle = self._bundles.get(language)
        if bundle is None or not bundle.supports(operation):
            raise LanguageNotSupported(language, operation.value)
        return bundle

    def tokenizer(self, language: str) -> Tokenizer:
        return self.resources_for(language, Operation.TOKENIZE).tokenizer

    def preprocessor(self, language: str) -> SentencePreprocessor:
        """Get the preprocessor of a language, the base preprocessor if it has none"""
        bundle = self.resources_for(language, Operation.TOKENIZE)
        return bundle.preprocessor or self.base_preprocessor

    def parser(self, language: str) -> Parser:
        return self.resources_for(language, Operation.PARSE).parser

    def tokens_encoder(self, language: str) -> TokensEncoder:
        """
        Get the cached encoder chain of a language.

        Raises:
            LanguageNotSupported: If the language has no encoder
            MissingResource: If the encoder is enabled but has no embeddings
        """
        bundle = self.resources_for(language, Operation.EXTRACT_FRAMES)
        encoder = self._tokens_encoders.get(language)
        if encoder is None:
            raise MissingResource("embeddings", bundle.language)
        return encoder

    def frame_extractors(self, domain: Optional[str] = None) -> List[FrameExtractor]:
        """
        Get the frame extractors to run.

        Args:
            domain: The single domain to run, None to run every domain

        Raises:
            InvalidDomain: If the domain is not registered
        """
        if domain is None:
            return list(self._frame_extractors.values())

        extractor = self._frame_extractors.get(domain)
        if extractor is None:
            raise InvalidDomain(domain)
        return [extractor]

    def locations_finder(self, language: str) -> LocationsFinder:
        """
        Raises:
            MissingResource: If no locations dictionary is configured
        """
        if self._locations_finder is None:
            raise MissingResource("locations_dictionary", language)
        return self._locations_finder

    def locations_dictionary(self, language: str) -> LocationsDictionary:
        if self._locations_dictionary is None:
            raise MissingResource("locations_dictionary", language)
        return self._locations_dictionary

    def describe(self) -> Dict[str, object]:
        """Summary of the registered resources"""
        return {
            "languages": {op.value: list(self.languages_for(op)) for op in Operation},
            "domains": list(self.domains),
            "language_detection": self._language_detector is not None,
            "locations": self._locations_finder is not None,
        }
