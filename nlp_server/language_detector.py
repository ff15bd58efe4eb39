"""
Language Detection

Detects the language of a text among a set of candidate languages based on:
1. Script analysis (Greek and Cyrillic Unicode ranges)
2. Stop word identification
"""

import re
from typing import Dict, Iterable, List, Optional, Set, Any
from dataclasses import dataclass, field

from .models.base import LanguageDetector


@dataclass
class DetectionResult:
    """Result of language detection."""
    language: Optional[str]
    confidence: float
    scores: Dict[str, float] = field(default_factory=dict)
    details: Dict[str, Any] = field(default_factory=dict)


# Non-Latin scripts that identify a language on their own
SCRIPT_RANGES = {
    "el": [(0x0370, 0x03FF), (0x1F00, 0x1FFF)],  # Greek and Coptic, Greek Extended
    "ru": [(0x0400, 0x04FF)],  # Cyrillic
}

# High frequency words of each language
DEFAULT_STOPWORDS: Dict[str, Set[str]] = {
    "en": {
        'the', 'and', 'of', 'to', 'a', 'in', 'is', 'it', 'you', 'that', 'he',
        'was', 'for', 'on', 'are', 'with', 'as', 'i', 'his', 'they', 'be',
        'at', 'this', 'have', 'from', 'or', 'by', 'what', 'we', 'my', 'me',
    },
    "it": {
        'il', 'lo', 'la', 'di', 'che', 'e', 'è', 'un', 'una', 'per', 'non',
        'in', 'sono', 'mi', 'ho', 'del', 'della', 'dei', 'gli', 'le', 'con',
        'si', 'da', 'al', 'ma', 'come', 'questo', 'io', 'domani', 'voglio',
    },
    "fr": {
        'le', 'la', 'les', 'de', 'des', 'et', 'un', 'une', 'est', 'en', 'du',
        'que', 'qui', 'pour', 'dans', 'ne', 'pas', 'je', 'vous', 'il', 'au',
        'avec', 'sur', 'ce', 'nous', 'mais', 'sont',
    },
    "es": {
        'el', 'la', 'los', 'las', 'de', 'y', 'que', 'en', 'un', 'una', 'es',
        'por', 'con', 'para', 'no', 'se', 'del', 'al', 'lo', 'como', 'pero',
        'yo', 'mi', 'muy', 'quiero', 'está',
    },
    "de": {
        'der', 'die', 'das', 'und', 'ist', 'nicht', 'ein', 'eine', 'zu', 'den',
        'von', 'mit', 'sich', 'des', 'auf', 'für', 'im', 'dem', 'ich', 'sie',
        'es', 'wir', 'auch', 'nach', 'morgen',
    },
    "pt": {
        'o', 'a', 'os', 'as', 'de', 'e', 'que', 'do', 'da', 'em', 'um', 'uma',
        'para', 'com', 'não', 'no', 'na', 'por', 'mais', 'eu', 'você', 'amanhã',
    },
}

WORD_PATTERN = re.compile(r"[^\W\d_]+", re.UNICODE)


class StopwordLanguageDetector(LanguageDetector):
    """
    Detector that picks the candidate language whose stop words cover the
    largest share of the words of a text.

    Texts written in a script owned by one candidate language are assigned to
    it directly.
    """

    def __init__(self,
                 languages: Optional[Iterable[str]] = None,
                 stopwords: Optional[Dict[str, Set[str]]] = None,
                 script_threshold: float = 0.3):
        """
        Initialize the detector.

        Args:
            languages: Candidate languages (all the languages with stop words or a script if None)
            stopwords: Stop words by language, merged over the defaults
            script_threshold: Minimum ratio of script characters to classify by script
        """
        merged = {lang: set(words) for lang, words in DEFAULT_STOPWORDS.items()}
        for lang, words in (stopwords or {}).items():
            merged.setdefault(lang, set()).update(w.lower() for w in words)

        if languages is not None:
            candidates = list(languages)
        else:
            candidates = list(merged) + [lang for lang in SCRIPT_RANGES if lang not in merged]
        self.languages: List[str] = candidates
        self.stopwords = {lang: merged.get(lang, set()) for lang in candidates}
        self.script_threshold = script_threshold

    def detect(self, text: str) -> DetectionResult:
        """
        Detect the language of the given text.

        Returns:
            DetectionResult with the language (None if undetermined) and confidence
        """
        if not text or not text.strip():
            return DetectionResult(language=None, confidence=0.0, details={"error": "Empty text"})

        # Step 1: Script analysis
        script_ratios = self._analyze_script(text)
        for lang, ratio in script_ratios.items():
            if lang in self.languages and ratio >= self.script_threshold:
                return DetectionResult(
                    language=lang,
                    confidence=min(0.95, 0.5 + ratio),
                    details={"method": "script_analysis", "script_ratio": ratio}
                )

        # Step 2: Stop words
        words = [w.lower() for w in WORD_PATTERN.findall(text)]
        if not words:
            return DetectionResult(language=None, confidence=0.0, details={"error": "No words"})

        scores = {
            lang: sum(1 for w in words if w in self.stopwords[lang]) / len(words)
            for lang in self.languages
        }

        ranked = sorted(scores.items(), key=lambda item: item[1], reverse=True)
        if not ranked or ranked[0][1] == 0.0:
            return DetectionResult(
                language=None,
                confidence=0.0,
                scores=scores,
                details={"method": "inconclusive"}
            )

        best_lang, best_score = ranked[0]
        runner_up = ranked[1][1] if len(ranked) > 1 else 0.0
        if best_score == runner_up:
            return DetectionResult(
                language=None,
                confidence=0.3,
                scores=scores,
                details={"method": "inconclusive", "tie": [l for l, s in ranked if s == best_score]}
            )

        return DetectionResult(
            language=best_lang,
            confidence=min(0.95, 0.5 + (best_score - runner_up)),
            scores=scores,
            details={"method": "stopwords", "words": len(words)}
        )

    def detect_language(self, text: str) -> Optional[str]:
        return self.detect(text).language

    @staticmethod
    def _analyze_script(text: str) -> Dict[str, float]:
        """Get the ratio of letters of each identifying script."""
        counts = {lang: 0 for lang in SCRIPT_RANGES}
        total_alpha = 0

        for char in text:
            if not char.isalpha():
                continue
            total_alpha += 1
            code = ord(char)
            for lang, ranges in SCRIPT_RANGES.items():
                if any(low <= code <= high for low, high in ranges):
                    counts[lang] += 1

        if total_alpha == 0:
            return {lang: 0.0 for lang in SCRIPT_RANGES}

        return {lang: count / total_alpha for lang, count in counts.items()}
