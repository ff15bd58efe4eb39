"""
Language resolution for the pipeline commands
"""

import logging
import re
from typing import Optional

from .exceptions import EmptyInput, LanguageDetectionUnavailable, LanguageNotSupported
from .registry import Operation, ResourceRegistry

logger = logging.getLogger(__name__)

UNKNOWN_LANGUAGE = "unknown"

LANGUAGE_CODE_PATTERN = re.compile(r"^[a-z]{2,3}$")


def check_text(text: Optional[str]) -> str:
    """
    Check that a text can be processed.

    Raises:
        EmptyInput: If the text is None, empty or blank
    """
    if text is None or not text.strip():
        raise EmptyInput()
    return text


def normalize_language_code(code: str) -> str:
    """Normalize an ISO 639-1 like language code (e.g. ' EN ' -> 'en')"""
    return code.strip().lower()


class LanguageResolver:
    """
    Decides which language governs a request for one operation.

    Policy:
    1. a forced language must be supported by the operation;
    2. without a forced language the detector decides, with the same check;
    3. without a forced language and without a detector the language cannot
       be determined, which is a configuration error.
    """

    def __init__(self, registry: ResourceRegistry, operation: Operation):
        self.registry = registry
        self.operation = operation

    def resolve(self, text: str, forced_language: Optional[str] = None) -> str:
        """
        Get the language of a text.

        Args:
            text: The text to analyze (of which to detect the language if not forced)
            forced_language: Force this language, if supported

        Raises:
            LanguageNotSupported: If the resulting language is not supported
            LanguageDetectionUnavailable: If no language is forced and no detector is configured

        Returns:
            The language code
        """
        if forced_language is not None:
            return self._check_supported(normalize_language_code(forced_language))

        detector = self.registry.language_detector
        if detector is None:
            raise LanguageDetectionUnavailable()

        detected = detector.detect_language(text)
        logger.debug(f"Detected language: {detected}")

        if detected is None:
            raise LanguageNotSupported(UNKNOWN_LANGUAGE, self.operation.value)

        return self._check_supported(normalize_language_code(detected))

    def _check_supported(self, code: str) -> str:
        if not LANGUAGE_CODE_PATTERN.match(code) or not self.registry.supports(code, self.operation):
            raise LanguageNotSupported(code, self.operation.value)
        return code
