"""
Frame extractor: intent classification and IOB slot labelling over token encodings.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Any, Optional

import numpy as np

from .base import FrameExtractor, FrameExtractorOutput, Slot, TokenLabel

logger = logging.getLogger(__name__)


def softmax(scores: np.ndarray, axis: int = -1) -> np.ndarray:
    shifted = scores - scores.max(axis=axis, keepdims=True)
    exp = np.exp(shifted)
    return exp / exp.sum(axis=axis, keepdims=True)


class LinearFrameExtractor(FrameExtractor):
    """
    Frame extractor made of two linear softmax layers.

    The intent layer reads the mean of the token encodings; the slot layer reads
    each encoding and scores the IOB labels ``O, B-<slot1>, I-<slot1>, ...``.
    """

    def __init__(self,
                 domain: str,
                 intents: List[str],
                 intent_weights: np.ndarray,
                 intent_bias: np.ndarray,
                 slots: Optional[List[str]] = None,
                 slot_weights: Optional[np.ndarray] = None,
                 slot_bias: Optional[np.ndarray] = None,
                 intent_slots: Optional[Dict[str, List[str]]] = None):
        if not intents:
            raise ValueError(f"Frame extractor '{domain}' has no intents")
        if intent_weights.shape[0] != len(intents) or intent_bias.shape != (len(intents),):
            raise ValueError(f"Frame extractor '{domain}': intent layer does not match the intents")

        self._domain = domain
        self._intents = list(intents)
        self._intent_weights = intent_weights
        self._intent_bias = intent_bias
        self._slots = list(slots or [])
        self._slot_labels = ["O"] + [f"{p}-{s}" for s in self._slots for p in ("B", "I")]
        self._intent_slots = intent_slots or {}

        if self._slots:
            if slot_weights is None or slot_bias is None:
                raise ValueError(f"Frame extractor '{domain}' declares slots without a slot layer")
            if slot_weights.shape[0] != len(self._slot_labels):
                raise ValueError(f"Frame extractor '{domain}': slot layer does not match the slots")
        self._slot_weights = slot_weights
        self._slot_bias = slot_bias

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LinearFrameExtractor":
        intents = [i["name"] if isinstance(i, dict) else i for i in data["intents"]]
        intent_slots = {
            i["name"]: list(i.get("slots", []))
            for i in data["intents"] if isinstance(i, dict) and i.get("slots")
        }
        slots = data.get("slots", [])

        return cls(
            domain=data["domain"],
            intents=intents,
            intent_weights=np.asarray(data["intent_weights"], dtype=np.float32),
            intent_bias=np.asarray(data["intent_bias"], dtype=np.float32),
            slots=slots,
            slot_weights=np.asarray(data["slot_weights"], dtype=np.float32) if slots else None,
            slot_bias=np.asarray(data["slot_bias"], dtype=np.float32) if slots else None,
            intent_slots=intent_slots
        )

    @classmethod
    def load(cls, path: str) -> "LinearFrameExtractor":
        """Load a frame extractor model from a JSON file"""
        with open(Path(path), "r", encoding="utf-8") as f:
            extractor = cls.from_dict(json.load(f))
        logger.info(
            f"Loaded frame extractor '{extractor.domain}' "
            f"({len(extractor.intents)} intents) from {path}"
        )
        return extractor

    @property
    def domain(self) -> str:
        return self._domain

    @property
    def intents(self) -> List[str]:
        return list(self._intents)

    @property
    def slots(self) -> List[str]:
        return list(self._slots)

    @property
    def input_size(self) -> int:
        return self._intent_weights.shape[1]

    def forward(self, encodings: np.ndarray) -> FrameExtractorOutput:
        if len(encodings) == 0:
            sentence_vector = np.zeros(self.input_size, dtype=np.float32)
        else:
            sentence_vector = encodings.mean(axis=0)

        probabilities = softmax(self._intent_weights @ sentence_vector + self._intent_bias)
        best = int(np.argmax(probabilities))
        intent = self._intents[best]

        token_labels = self._label_tokens(encodings)
        slots = self._decode_slots(token_labels)
        allowed = self._intent_slots.get(intent)
        if allowed is not None:
            slots = [slot for slot in slots if slot.name in allowed]

        return FrameExtractorOutput(
            intent=intent,
            score=float(probabilities[best]),
            distribution={name: float(p) for name, p in zip(self._intents, probabilities)},
            slots=slots,
            token_labels=token_labels
        )

    def _label_tokens(self, encodings: np.ndarray) -> List[TokenLabel]:
        # Without a slot layer every token is outside of any slot
        if not self._slots:
            return [TokenLabel(iob="O", label=None, score=1.0) for _ in range(len(encodings))]
        if len(encodings) == 0:
            return []

        probabilities = softmax(encodings @ self._slot_weights.T + self._slot_bias, axis=1)
        token_labels = []
        for index, label_index in enumerate(probabilities.argmax(axis=1)):
            label = self._slot_labels[int(label_index)]
            score = float(probabilities[index, label_index])
            if label == "O":
                token_labels.append(TokenLabel(iob="O", label=None, score=score))
            else:
                iob, name = label.split("-", 1)
                token_labels.append(TokenLabel(iob=iob, label=name, score=score))
        return token_labels

    @staticmethod
    def _decode_slots(token_labels: List[TokenLabel]) -> List[Slot]:
        """Group the labelled tokens into slots: B starts a slot, I continues one of the same name"""
        slots: List[Slot] = []
        current: Optional[Slot] = None
        scores: List[float] = []

        def close():
            if current is not None:
                current.score = float(np.mean(scores))
                slots.append(current)

        for index, token_label in enumerate(token_labels):
            if token_label.iob == "O":
                close()
                current, scores = None, []
            elif token_label.iob == "I" and current is not None and current.name == token_label.label:
                current.token_indices.append(index)
                scores.append(token_label.score)
            else:
                close()
                current = Slot(name=token_label.label, score=0.0, token_indices=[index])
                scores = [token_label.score]

        close()
        return slots
