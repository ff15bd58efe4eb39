"""
Shared fixtures: lightweight collaborators standing in for the trained models
"""
import re
from typing import Dict, List, Optional

import numpy as np
import pytest

from nlp_server.models import (
    AnnotatedSentence,
    ContextEncoderModel,
    EmbeddingsMapByDictionary,
    FrameExtractor,
    FrameExtractorOutput,
    LanguageDetector,
    LocationsDictionary,
    MorphoSynToken,
    Parser,
    ParsingSentence,
    Position,
    Sentence,
    Slot,
    Token,
    TokenLabel,
    Tokenizer,
)
from nlp_server.registry import ResourceBundle, ResourceRegistry

TOKEN_PATTERN = re.compile(r"\w+|[^\w\s]")
SENTENCE_END = {".", "!", "?"}


class RegexTokenizer(Tokenizer):
    """Words and punctuation, a sentence ends after '.', '!' or '?'"""

    def __init__(self):
        self.calls = 0

    def tokenize(self, text: str) -> List[Sentence]:
        self.calls += 1
        sentences, current = [], []
        for match in TOKEN_PATTERN.finditer(text):
            current.append(Token(form=match.group(), position=Position(match.start(), match.end())))
            if match.group() in SENTENCE_END:
                sentences.append(self._sentence(current))
                current = []
        if current:
            sentences.append(self._sentence(current))
        return sentences

    @staticmethod
    def _sentence(tokens: List[Token]) -> Sentence:
        return Sentence(tokens=tokens, position=Position(tokens[0].position.start, tokens[-1].position.end))


class FirstTokenHeadParser(Parser):
    """Every token depends on the first token of its sentence"""

    def parse(self, sentence: ParsingSentence) -> AnnotatedSentence:
        root_id = sentence.tokens[0].id if sentence.tokens else None
        tokens = []
        for token in sentence.tokens:
            is_root = token.id == root_id
            tokens.append(MorphoSynToken(
                id=token.id,
                form=token.form,
                pos=[m.pos for m in token.morphologies] or ["X"],
                lemma=token.morphologies[0].lemma if token.morphologies else token.form.lower(),
                governor=None if is_root else root_id,
                dependencies=["root"] if is_root else ["dep"],
                position=token.base.position
            ))
        return AnnotatedSentence(id=sentence.id, tokens=tokens, position=sentence.position)


class FixedLanguageDetector(LanguageDetector):
    def __init__(self, language: Optional[str]):
        self.language = language
        self.calls = 0

    def detect_language(self, text: str) -> Optional[str]:
        self.calls += 1
        return self.language


class FixedFrameExtractor(FrameExtractor):
    """Returns the same distribution for every sentence, the slot (if any) on the last token"""

    def __init__(self, domain: str, distribution: Dict[str, float], slot: Optional[str] = None,
                 input_size: int = 2):
        self._domain = domain
        self._distribution = distribution
        self._slot = slot
        self._input_size = input_size
        self.encodings_seen = []

    @property
    def domain(self) -> str:
        return self._domain

    @property
    def intents(self) -> List[str]:
        return list(self._distribution)

    @property
    def input_size(self) -> int:
        return self._input_size

    def forward(self, encodings: np.ndarray) -> FrameExtractorOutput:
        self.encodings_seen.append(encodings)
        intent = max(self._distribution, key=self._distribution.get)
        token_labels = [TokenLabel(iob="O", label=None, score=0.8) for _ in range(len(encodings))]
        slots = []
        if self._slot and len(encodings):
            token_labels[-1] = TokenLabel(iob="B", label=self._slot, score=0.9)
            slots = [Slot(name=self._slot, score=0.9, token_indices=[len(encodings) - 1])]
        return FrameExtractorOutput(
            intent=intent,
            score=self._distribution[intent],
            distribution=dict(self._distribution),
            slots=slots,
            token_labels=token_labels
        )


EMBEDDING_SIZE = 2


def make_embeddings() -> EmbeddingsMapByDictionary:
    return EmbeddingsMapByDictionary({
        "paris": np.array([1.0, 0.0], dtype=np.float32),
        "go": np.array([0.0, 1.0], dtype=np.float32),
    }, size=EMBEDDING_SIZE)


def make_encoder() -> ContextEncoderModel:
    return ContextEncoderModel(
        weights=np.eye(EMBEDDING_SIZE, 2 * EMBEDDING_SIZE, dtype=np.float32),
        bias=np.zeros(EMBEDDING_SIZE, dtype=np.float32)
    )


LOCATIONS = [
    {"id": "FR", "name": "France", "type": "country", "coordinates": [46.0, 2.0]},
    {"id": "FR-PAR", "name": "Paris", "type": "city", "parent_id": "FR",
     "coordinates": [48.8566, 2.3522], "metadata": {"population": 2100000}},
    {"id": "US", "name": "United States", "type": "country", "labels": ["USA"]},
    {"id": "US-TX", "name": "Texas", "type": "region", "parent_id": "US"},
    {"id": "US-TX-PAR", "name": "Paris", "type": "city", "parent_id": "US-TX"},
    {"id": "IT-RM", "name": "Rome", "type": "city", "labels": ["Roma"]},
    {"id": "GB-LDN", "name": "London", "type": "city"},
    {"id": "NZ", "name": "New Zealand", "type": "country"},
]


@pytest.fixture
def locations_dictionary():
    return LocationsDictionary.from_dicts(LOCATIONS)


@pytest.fixture
def detector():
    return FixedLanguageDetector("en")


@pytest.fixture
def travel_extractor():
    return FixedFrameExtractor("travel", {"greet": 0.1, "book_trip": 0.7, "cancel": 0.2}, slot="destination")


@pytest.fixture
def weather_extractor():
    return FixedFrameExtractor("weather", {"forecast": 0.6, "temperature": 0.3, "other": 0.1})


@pytest.fixture
def registry(detector, travel_extractor, weather_extractor, locations_dictionary):
    """
    en: every operation
    it: tokenization and locations only
    """
    return ResourceRegistry(
        bundles=[
            ResourceBundle(
                language="en",
                tokenizer=RegexTokenizer(),
                parser=FirstTokenHeadParser(),
                encoder=make_encoder(),
                embeddings=make_embeddings()
            ),
            ResourceBundle(language="it", tokenizer=RegexTokenizer()),
        ],
        frame_extractors=[travel_extractor, weather_extractor],
        language_detector=detector,
        locations_dictionary=locations_dictionary
    )


@pytest.fixture
def registry_without_detector():
    return ResourceRegistry(bundles=[ResourceBundle(language="en", tokenizer=RegexTokenizer())])
