"""
Response assembly: conversion of the command results into their external
representations (JSON records or CoNLL lines).
"""

import json
from enum import Enum
from typing import Any, Dict, List, Optional

from .commands import (
    FramesResult,
    LabelingsResult,
    LocationsResult,
    ParseResult,
    SentenceFrame,
    SentenceLabeling,
    TokenizeResult,
)
from .models.base import AnnotatedSentence, BestLocation, MorphoSynToken, Sentence
from .models.geolocation import LocationsDictionary

EMPTY_FILLER = "_"


class ResponseFormat(str, Enum):
    """
    The format of a parsing response.

    CONLL: one line per token, sentences separated by a blank line
    JSON: nested structure carrying the language code
    """
    CONLL = "conll"
    JSON = "json"


def to_json_string(data: Any, pretty: bool = False) -> str:
    """Serialize a response body, pretty printed bodies end with a new line"""
    if pretty:
        return json.dumps(data, ensure_ascii=False, indent=2) + "\n"
    return json.dumps(data, ensure_ascii=False, separators=(",", ":"))


class ResponseAssembler:
    """Builds the response bodies of the pipeline commands"""

    # Tokenize

    @staticmethod
    def sentence_to_dict(sentence: Sentence) -> Dict[str, Any]:
        return {
            "startOffset": sentence.position.start,
            "endOffset": sentence.position.end,
            "tokens": [
                {
                    "form": token.form,
                    "startOffset": token.position.start,
                    "endOffset": token.position.end
                }
                for token in sentence.tokens
            ]
        }

    def tokenized(self, result: TokenizeResult) -> List[Dict[str, Any]]:
        return [self.sentence_to_dict(sentence) for sentence in result.sentences]

    # Parse

    def parsed(self, result: ParseResult) -> Dict[str, Any]:
        return {
            "languageCode": result.language,
            "sentences": [sentence.to_dict() for sentence in result.sentences]
        }

    def parsed_conll(self, result: ParseResult) -> str:
        return "\n\n".join(self.sentence_to_conll(s) for s in result.sentences) + "\n"

    @staticmethod
    def token_to_conll(token: MorphoSynToken, index: int, head: int) -> str:
        columns = [
            str(index),
            token.form if token.is_real else EMPTY_FILLER,
            token.lemma or EMPTY_FILLER,
            "|".join(token.pos) if token.pos else EMPTY_FILLER,
            EMPTY_FILLER,
            EMPTY_FILLER,
            str(head),
            "|".join(token.dependencies) if token.dependencies else EMPTY_FILLER,
            EMPTY_FILLER,
            EMPTY_FILLER,
        ]
        return "\t".join(columns)

    def sentence_to_conll(self, sentence: AnnotatedSentence) -> str:
        return "\n".join(
            self.token_to_conll(token, index=i + 1, head=sentence.head_position(token))
            for i, token in enumerate(sentence.tokens)
        )

    # Extract frames

    @staticmethod
    def frame_to_dict(frame: SentenceFrame) -> Dict[str, Any]:
        data = {
            "intent": frame.intent,
            "score": frame.score,
            "slots": [
                {
                    "name": slot.name,
                    "score": slot.score,
                    "tokens": [{"index": i, "form": frame.forms[i]} for i in slot.token_indices]
                }
                for slot in frame.output.slots
            ]
        }
        if frame.distribution is not None:
            data["distribution"] = [
                {"intent": intent, "score": score} for intent, score in frame.distribution
            ]
        return data

    def frames(self, result: FramesResult) -> Dict[str, List[Dict[str, Any]]]:
        return {
            domain: [self.frame_to_dict(frame) for frame in sentence_frames]
            for domain, sentence_frames in result.frames.items()
        }

    # Label

    @staticmethod
    def labeling_to_dict(labeling: SentenceLabeling) -> Dict[str, Any]:
        return {
            "tokens": [
                {
                    "form": token.form,
                    "iob": token.label.iob,
                    "label": token.label.label,
                    "score": token.label.score
                }
                for token in labeling.tokens
            ]
        }

    def labelings(self, result: LabelingsResult) -> Dict[str, List[Dict[str, Any]]]:
        return {
            domain: [self.labeling_to_dict(labeling) for labeling in sentence_labelings]
            for domain, sentence_labelings in result.labelings.items()
        }

    # Locations

    @staticmethod
    def location_to_dict(location: BestLocation,
                         dictionary: Optional[LocationsDictionary] = None) -> Dict[str, Any]:
        entry = location.entry
        data = {
            "id": entry.id,
            "name": entry.name,
            "type": entry.type,
            "score": location.score,
            "mentions": list(location.mentions),
            "coordinates": (
                {"lat": entry.coordinates[0], "lon": entry.coordinates[1]}
                if entry.coordinates else None
            ),
        }
        if entry.metadata:
            data["metadata"] = dict(entry.metadata)
        if dictionary is not None:
            data["parents"] = [
                {"id": parent.id, "name": parent.name, "type": parent.type}
                for parent in dictionary.ancestors(entry)
            ]
        return data

    def locations(self, result: LocationsResult,
                  dictionary: Optional[LocationsDictionary] = None) -> List[Dict[str, Any]]:
        return [self.location_to_dict(location, dictionary) for location in result.locations]
