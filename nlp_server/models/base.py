"""
Base classes for the NLP Server models

Defines the data structures exchanged between pipeline stages and the
abstract interfaces of the collaborators that run them: tokenizers,
preprocessors, parsers, language detectors, tokens encoders, frame
extractors and locations finders.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Any, Optional, Sequence, Tuple

import numpy as np


@dataclass(frozen=True)
class Position:
    """Half-open character span [start, end) into the source text."""
    start: int
    end: int

    def shift(self, offset: int) -> "Position":
        return Position(start=self.start + offset, end=self.end + offset)


@dataclass(frozen=True)
class Token:
    """A surface form and its span."""
    form: str
    position: Position


@dataclass
class Sentence:
    """A tokenized sentence."""
    tokens: List[Token]
    position: Position

    @property
    def forms(self) -> List[str]:
        return [token.form for token in self.tokens]


@dataclass(frozen=True)
class BaseToken:
    """A tokenizer token given an id, the input shape of the preprocessors."""
    id: int
    form: str
    position: Optional[Position] = None


@dataclass
class BaseSentence:
    """A sentence of base tokens."""
    id: int
    tokens: List[BaseToken]
    position: Optional[Position] = None


@dataclass(frozen=True)
class Morphology:
    """One morphological reading of a token."""
    lemma: str
    pos: str


@dataclass
class ParsingToken:
    """
    A base token with its morphological readings.

    The base token is kept as is: the readings are layered onto it.
    """
    base: BaseToken
    morphologies: List[Morphology] = field(default_factory=list)

    @property
    def id(self) -> int:
        return self.base.id

    @property
    def form(self) -> str:
        return self.base.form


@dataclass
class ParsingSentence:
    """A sentence ready to be parsed."""
    id: int
    tokens: List[ParsingToken]
    position: Optional[Position] = None


@dataclass
class MorphoSynToken:
    """
    A token annotated by a parser.

    ``form`` is None for tokens that do not appear in the surface text
    (e.g. the parts of a contraction split by the parser).
    """
    id: int
    form: Optional[str]
    pos: List[str] = field(default_factory=list)
    lemma: Optional[str] = None
    governor: Optional[int] = None
    dependencies: List[str] = field(default_factory=list)
    position: Optional[Position] = None

    @property
    def is_real(self) -> bool:
        return self.form is not None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "form": self.form,
            "lemma": self.lemma,
            "pos": list(self.pos),
            "syntax": {
                "governor": self.governor,
                "dependencies": list(self.dependencies)
            }
        }
        if self.position is not None:
            data["startOffset"] = self.position.start
            data["endOffset"] = self.position.end
        return data


@dataclass
class AnnotatedSentence:
    """A fully annotated (morpho-syntactic) sentence."""
    id: int
    tokens: List[MorphoSynToken]
    position: Optional[Position] = None

    def head_position(self, token: MorphoSynToken) -> int:
        """
        Get the 1-based position of the governor of a token within this sentence.

        Token ids are not guaranteed to be contiguous, so the governor is looked
        up by id instead of being used as a position.

        Returns:
            0 if the token is a root or its governor is not in the sentence
        """
        if token.governor is None:
            return 0
        for i, other in enumerate(self.tokens):
            if other.id == token.governor:
                return i + 1
        return 0

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "tokens": [token.to_dict() for token in self.tokens]
        }
        if self.position is not None:
            data["startOffset"] = self.position.start
            data["endOffset"] = self.position.end
        return data


@dataclass(frozen=True)
class CandidateEntity:
    """An externally supplied entity name with a prior score."""
    name: str
    score: float


@dataclass
class Slot:
    """A slot filled by a frame extractor."""
    name: str
    score: float
    token_indices: List[int] = field(default_factory=list)


@dataclass(frozen=True)
class TokenLabel:
    """
    The IOB label given to one token.

    ``label`` is the slot name, None for tokens outside of any slot ("O").
    """
    iob: str
    label: Optional[str]
    score: float


@dataclass
class FrameExtractorOutput:
    """
    The result of a frame extractor run on one sentence.

    Attributes:
        intent: Name of the best intent
        score: Score of the best intent
        distribution: Scores of all intents, in intent insertion order
        slots: Slots labelled in the sentence
        token_labels: Label of each token, before the slots are filtered by intent
    """
    intent: str
    score: float
    distribution: Dict[str, float]
    slots: List[Slot] = field(default_factory=list)
    token_labels: List[TokenLabel] = field(default_factory=list)

    def sorted_distribution(self) -> List[Tuple[str, float]]:
        """
        Get the distribution sorted by descending score.

        The sort is stable: ties keep the intent insertion order.
        """
        return sorted(self.distribution.items(), key=lambda item: item[1], reverse=True)


@dataclass
class LocationEntry:
    """An entry of a locations dictionary."""
    id: str
    name: str
    type: str
    labels: List[str] = field(default_factory=list)
    parent_id: Optional[str] = None
    coordinates: Optional[Tuple[float, float]] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def all_labels(self) -> List[str]:
        return [self.name] + [label for label in self.labels if label != self.name]


@dataclass
class BestLocation:
    """A location resolved from the mentions of a text."""
    entry: LocationEntry
    score: float
    mentions: List[str] = field(default_factory=list)


class Tokenizer(ABC):
    """Splits a text into sentences of tokens."""

    @abstractmethod
    def tokenize(self, text: str) -> List[Sentence]:
        """
        Tokenize a text.

        Returns:
            Sentences with non-overlapping, non-decreasing spans
        """
        pass


class SentencePreprocessor(ABC):
    """Converts a base sentence into a sentence ready to be parsed."""

    @abstractmethod
    def convert(self, sentence: BaseSentence) -> ParsingSentence:
        pass


class Parser(ABC):
    """Annotates a sentence with morphology and syntax."""

    @abstractmethod
    def parse(self, sentence: ParsingSentence) -> AnnotatedSentence:
        pass


class LanguageDetector(ABC):
    """Detects the language of a text."""

    @abstractmethod
    def detect_language(self, text: str) -> Optional[str]:
        """
        Returns:
            The ISO 639-1 code of the language, None if it cannot be determined
        """
        pass


class EmbeddingsMap(ABC):
    """A table of pre-trained word embeddings."""

    @property
    @abstractmethod
    def size(self) -> int:
        """Get the embeddings dimension."""
        pass

    @abstractmethod
    def get(self, key: str) -> np.ndarray:
        """Get the vector of a key, the unknown vector if the key is missing."""
        pass


class EncoderModel(ABC):
    """Turns a sentence of token vectors into contextual encodings."""

    @property
    @abstractmethod
    def input_size(self) -> int:
        pass

    @property
    @abstractmethod
    def output_size(self) -> int:
        pass

    @abstractmethod
    def forward(self, vectors: np.ndarray) -> np.ndarray:
        pass


class FrameExtractor(ABC):
    """Extracts an intent and its slots from encoded tokens."""

    @property
    @abstractmethod
    def domain(self) -> str:
        pass

    @property
    @abstractmethod
    def intents(self) -> List[str]:
        pass

    @property
    @abstractmethod
    def input_size(self) -> int:
        """Get the size of the token encodings read."""
        pass

    @abstractmethod
    def forward(self, encodings: np.ndarray) -> FrameExtractorOutput:
        pass


class LocationsFinder(ABC):
    """Resolves the locations mentioned in a sequence of tokens."""

    @abstractmethod
    def find(self,
             tokens: Sequence[str],
             candidates: Sequence[CandidateEntity],
             coordinate_groups: Sequence[Sequence[str]] = (),
             ambiguity_groups: Sequence[Sequence[str]] = ()) -> List[BestLocation]:
        """
        Find the best locations mentioned in the given tokens.

        Args:
            tokens: Token forms of the whole text
            candidates: Entities that bias the resolution with their prior score
            coordinate_groups: Groups of names mentioned together (e.g. in a list)
            ambiguity_groups: Groups of names that are alternative readings

        Returns:
            Best locations ranked by descending score
        """
        pass
