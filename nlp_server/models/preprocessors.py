"""
Sentence preprocessors

The base preprocessor only reshapes the tokens; the morpho-preprocessor
layers the readings of a morphological lexicon onto them.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Iterable

from .base import (
    SentencePreprocessor,
    BaseSentence,
    ParsingSentence,
    ParsingToken,
    Morphology,
)

logger = logging.getLogger(__name__)


class BasePreprocessor(SentencePreprocessor):
    """Identity preprocessor: tokens get no morphological readings."""

    def convert(self, sentence: BaseSentence) -> ParsingSentence:
        return ParsingSentence(
            id=sentence.id,
            tokens=[ParsingToken(base=token) for token in sentence.tokens],
            position=sentence.position
        )


class MorphoPreprocessor(SentencePreprocessor):
    """
    Preprocessor backed by a morphological lexicon.

    The lexicon maps lower-cased forms to their readings. Forms missing from
    the lexicon get no readings.
    """

    def __init__(self, lexicon: Dict[str, List[Morphology]], language: str = ""):
        self._lexicon = {form.lower(): list(readings) for form, readings in lexicon.items()}
        self.language = language

    @classmethod
    def from_file(cls, path: str, language: str = "") -> "MorphoPreprocessor":
        """
        Load a lexicon from a JSON file.

        The file maps each form to a list of ``{"lemma": ..., "pos": ...}`` objects.
        """
        with open(Path(path), "r", encoding="utf-8") as f:
            data = json.load(f)

        lexicon = {
            form: [Morphology(lemma=r["lemma"], pos=r["pos"]) for r in readings]
            for form, readings in data.items()
        }
        logger.info(f"Loaded morphological lexicon for '{language}' with {len(lexicon)} forms")
        return cls(lexicon, language=language)

    def __len__(self) -> int:
        return len(self._lexicon)

    def readings(self, form: str) -> List[Morphology]:
        return list(self._lexicon.get(form.lower(), []))

    def convert(self, sentence: BaseSentence) -> ParsingSentence:
        return ParsingSentence(
            id=sentence.id,
            tokens=[
                ParsingToken(base=token, morphologies=self.readings(token.form))
                for token in sentence.tokens
            ],
            position=sentence.position
        )


def lexicon_from_entries(entries: Iterable[tuple]) -> Dict[str, List[Morphology]]:
    """Build a lexicon from (form, lemma, pos) triples"""
    lexicon: Dict[str, List[Morphology]] = {}
    for form, lemma, pos in entries:
        lexicon.setdefault(form.lower(), []).append(Morphology(lemma=lemma, pos=pos))
    return lexicon
