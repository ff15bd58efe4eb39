"""
Locations dictionary (gazetteer) and the finder that resolves location mentions.
"""

import json
import logging
from collections import OrderedDict
from pathlib import Path
from typing import Dict, List, Any, Optional, Sequence, Set

from .base import BestLocation, CandidateEntity, LocationEntry, LocationsFinder

logger = logging.getLogger(__name__)

# Prior importance of a location by type: bigger places are mentioned more often
TYPE_WEIGHTS = {
    "continent": 0.9,
    "country": 0.8,
    "region": 0.6,
    "province": 0.5,
    "city": 0.5,
    "town": 0.3,
}
DEFAULT_TYPE_WEIGHT = 0.2

CONFIRMATION_BONUS = 0.5
COORDINATION_BONUS = 0.25


def normalize_label(label: str) -> str:
    return " ".join(label.lower().split())


class LocationsDictionary:
    """
    Gazetteer of locations indexed by id and by every label.

    Several entries can share a label (homonyms).
    """

    def __init__(self, entries: Sequence[LocationEntry]):
        self._entries: Dict[str, LocationEntry] = OrderedDict()
        self._by_label: Dict[str, List[LocationEntry]] = {}

        for entry in entries:
            if entry.id in self._entries:
                raise ValueError(f"Duplicate location id: {entry.id}")
            self._entries[entry.id] = entry
            for label in entry.all_labels:
                self._by_label.setdefault(normalize_label(label), []).append(entry)

        self.max_label_tokens = max((len(label.split()) for label in self._by_label), default=0)

    @classmethod
    def from_dicts(cls, data: Sequence[Dict[str, Any]]) -> "LocationsDictionary":
        entries = []
        for item in data:
            coordinates = item.get("coordinates")
            entries.append(LocationEntry(
                id=str(item["id"]),
                name=item["name"],
                type=item.get("type", "unknown"),
                labels=list(item.get("labels", [])),
                parent_id=item.get("parent_id"),
                coordinates=(float(coordinates[0]), float(coordinates[1])) if coordinates else None,
                metadata=dict(item.get("metadata", {}))
            ))
        return cls(entries)

    @classmethod
    def load(cls, path: str) -> "LocationsDictionary":
        """Load the dictionary from a JSON file holding a list of entries"""
        with open(Path(path), "r", encoding="utf-8") as f:
            dictionary = cls.from_dicts(json.load(f))
        logger.info(f"Loaded locations dictionary with {len(dictionary)} entries from {path}")
        return dictionary

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, location_id: str) -> bool:
        return location_id in self._entries

    def get(self, location_id: str) -> Optional[LocationEntry]:
        return self._entries.get(location_id)

    def find(self, label: str) -> List[LocationEntry]:
        return list(self._by_label.get(normalize_label(label), []))

    def ancestors(self, entry: LocationEntry) -> List[LocationEntry]:
        """Get the parents of an entry, from the nearest to the farthest"""
        result = []
        seen = {entry.id}
        parent_id = entry.parent_id
        while parent_id and parent_id not in seen:
            parent = self._entries.get(parent_id)
            if parent is None:
                break
            result.append(parent)
            seen.add(parent_id)
            parent_id = parent.parent_id
        return result


class GazetteerLocationsFinder(LocationsFinder):
    """
    Finds the locations mentioned in a text by greedy longest match of the
    dictionary labels, then picks the best reading of each mention.

    A reading is scored with the weight of its type, the prior score of the
    matching candidate entities and a bonus for each ancestor that is also
    mentioned in the text.
    """

    def __init__(self, dictionary: LocationsDictionary):
        self.dictionary = dictionary

    def find(self,
             tokens: Sequence[str],
             candidates: Sequence[CandidateEntity],
             coordinate_groups: Sequence[Sequence[str]] = (),
             ambiguity_groups: Sequence[Sequence[str]] = ()) -> List[BestLocation]:
        mentions = self._find_mentions(tokens)
        if not mentions:
            return []

        priors: Dict[str, float] = {}
        for candidate in candidates:
            key = normalize_label(candidate.name)
            priors[key] = max(priors.get(key, 0.0), candidate.score)

        mentioned_ids: Set[str] = {
            entry.id for mention in mentions for entry in self.dictionary.find(mention)
        }

        best_by_mention: Dict[str, BestLocation] = OrderedDict()
        for mention in mentions:
            if mention in best_by_mention:
                continue
            readings = [
                BestLocation(entry=entry, score=self._score(entry, priors, mentioned_ids), mentions=[mention])
                for entry in self.dictionary.find(mention)
            ]
            # max() keeps the first of equal readings: dictionary order breaks ties
            best_by_mention[mention] = max(readings, key=lambda r: r.score)

        self._apply_coordination(best_by_mention, coordinate_groups)
        self._apply_ambiguity(best_by_mention, ambiguity_groups)

        merged: Dict[str, BestLocation] = OrderedDict()
        for mention, location in best_by_mention.items():
            existing = merged.get(location.entry.id)
            if existing is None:
                merged[location.entry.id] = location
            else:
                existing.mentions.append(mention)
                existing.score = max(existing.score, location.score)

        return sorted(merged.values(), key=lambda r: r.score, reverse=True)

    def _find_mentions(self, tokens: Sequence[str]) -> List[str]:
        mentions = []
        i = 0
        max_length = self.dictionary.max_label_tokens
        while i < len(tokens):
            for length in range(min(max_length, len(tokens) - i), 0, -1):
                label = normalize_label(" ".join(tokens[i:i + length]))
                if self.dictionary.find(label):
                    mentions.append(label)
                    i += length
                    break
            else:
                i += 1
        return mentions

    def _score(self, entry: LocationEntry, priors: Dict[str, float], mentioned_ids: Set[str]) -> float:
        score = TYPE_WEIGHTS.get(entry.type, DEFAULT_TYPE_WEIGHT)
        score += max((priors.get(normalize_label(label), 0.0) for label in entry.all_labels), default=0.0)
        score += CONFIRMATION_BONUS * sum(
            1 for ancestor in self.dictionary.ancestors(entry) if ancestor.id in mentioned_ids
        )
        return score

    def _apply_coordination(self, best: Dict[str, BestLocation],
                            groups: Sequence[Sequence[str]]) -> None:
        for group in groups:
            members = [best[m] for m in map(normalize_label, group) if m in best]
            parents = [m.entry.parent_id for m in members if m.entry.parent_id]
            for member in members:
                if member.entry.parent_id and parents.count(member.entry.parent_id) > 1:
                    member.score += COORDINATION_BONUS

    @staticmethod
    def _apply_ambiguity(best: Dict[str, BestLocation],
                         groups: Sequence[Sequence[str]]) -> None:
        for group in groups:
            members = [m for m in map(normalize_label, group) if m in best]
            if len(members) < 2:
                continue
            winner = max(members, key=lambda m: best[m].score)
            for member in members:
                if member != winner:
                    del best[member]
