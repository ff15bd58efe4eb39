"""
Tokens encoder chain: preprocessor -> word embeddings -> encoder model.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np

from .base import (
    BaseSentence,
    BaseToken,
    EmbeddingsMap,
    EncoderModel,
    ParsingToken,
    SentencePreprocessor,
)

logger = logging.getLogger(__name__)


class EmbeddingsMapByDictionary(EmbeddingsMap):
    """
    Word embeddings held in memory and looked up by key.

    Missing keys are looked up again lower-cased, then fall back to the
    unknown vector (zeros unless given).
    """

    def __init__(self, vectors: Dict[str, np.ndarray], size: int,
                 unknown: Optional[np.ndarray] = None):
        self._vectors = vectors
        self._size = size
        self._unknown = unknown if unknown is not None else np.zeros(size, dtype=np.float32)

    @classmethod
    def load(cls, path: str) -> "EmbeddingsMapByDictionary":
        """
        Load embeddings from a file in word2vec text format.

        The first line holds the vectors count and size, the following lines a
        key and its components separated by spaces.
        """
        vectors: Dict[str, np.ndarray] = {}

        with open(Path(path), "r", encoding="utf-8") as f:
            header = f.readline().split()
            if len(header) != 2:
                raise ValueError(f"Invalid embeddings header in {path}: expected '<count> <size>'")
            count, size = int(header[0]), int(header[1])

            for line_number, line in enumerate(f, start=2):
                parts = line.rstrip().split(" ")
                if len(parts) != size + 1:
                    raise ValueError(f"Invalid vector size at {path}:{line_number}")
                vectors[parts[0]] = np.asarray(parts[1:], dtype=np.float32)

        if len(vectors) != count:
            logger.warning(f"Embeddings file {path} declares {count} vectors, found {len(vectors)}")

        logger.info(f"Loaded {len(vectors)} embeddings of size {size} from {path}")
        return cls(vectors, size=size)

    @property
    def size(self) -> int:
        return self._size

    def __len__(self) -> int:
        return len(self._vectors)

    def __contains__(self, key: str) -> bool:
        return key in self._vectors

    def get(self, key: str) -> np.ndarray:
        vector = self._vectors.get(key)
        if vector is None:
            vector = self._vectors.get(key.lower())
        return vector if vector is not None else self._unknown


class ContextEncoderModel(EncoderModel):
    """
    Encodes each token together with the context of its sentence.

    encoding(i) = tanh(W . [v(i) ; mean(v)] + b)
    """

    def __init__(self, weights: np.ndarray, bias: np.ndarray):
        if weights.ndim != 2 or weights.shape[1] % 2 != 0:
            raise ValueError("Encoder weights must be a matrix of shape (output, 2 * input)")
        if bias.shape != (weights.shape[0],):
            raise ValueError("Encoder bias must match the encoder output size")
        self._weights = weights
        self._bias = bias

    @classmethod
    def load(cls, path: str) -> "ContextEncoderModel":
        """Load the model from a .npz archive holding 'weights' and 'bias'"""
        with np.load(Path(path)) as archive:
            model = cls(weights=archive["weights"], bias=archive["bias"])
        logger.info(f"Loaded encoder model from {path} ({model.input_size} -> {model.output_size})")
        return model

    @property
    def input_size(self) -> int:
        return self._weights.shape[1] // 2

    @property
    def output_size(self) -> int:
        return self._weights.shape[0]

    def forward(self, vectors: np.ndarray) -> np.ndarray:
        if len(vectors) == 0:
            return np.zeros((0, self.output_size), dtype=np.float32)
        context = np.repeat(vectors.mean(axis=0, keepdims=True), len(vectors), axis=0)
        return np.tanh(np.concatenate([vectors, context], axis=1) @ self._weights.T + self._bias)


class TokensEncoder:
    """
    Chain that encodes the forms of a sentence.

    The preprocessor gives the lemmas used as embedding keys (the form when a
    token has no reading); the encoder model contextualizes the vectors.
    """

    def __init__(self, preprocessor: SentencePreprocessor, embeddings: EmbeddingsMap,
                 model: EncoderModel):
        if embeddings.size != model.input_size:
            raise ValueError(
                f"Embeddings size ({embeddings.size}) does not match "
                f"the encoder input size ({model.input_size})"
            )
        self.preprocessor = preprocessor
        self.embeddings = embeddings
        self.model = model

    @staticmethod
    def _embedding_key(token: ParsingToken) -> str:
        return token.morphologies[0].lemma if token.morphologies else token.form

    def forward(self, forms: List[str]) -> np.ndarray:
        """
        Encode a sentence given as a list of forms.

        Returns:
            A matrix with one encoding row per form
        """
        sentence = self.preprocessor.convert(BaseSentence(
            id=0,
            tokens=[BaseToken(id=i, form=form) for i, form in enumerate(forms)]
        ))

        if not sentence.tokens:
            return np.zeros((0, self.model.output_size), dtype=np.float32)

        vectors = np.stack([self.embeddings.get(self._embedding_key(t)) for t in sentence.tokens])
        return self.model.forward(vectors)
