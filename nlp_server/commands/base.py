"""
Common behaviour of the pipeline commands
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from ..models.base import Sentence
from ..registry import Operation, ResourceRegistry
from ..resolver import LanguageResolver, check_text


def cut_text(text: str, max_length: int = 50) -> str:
    return text if len(text) <= max_length else text[:max_length] + "..."


@dataclass
class TokenizeResult:
    """The sentences of a text tokenized in its language."""
    language: str
    sentences: List[Sentence]


class TokenizingCommand:
    """
    Base of the commands that start by tokenizing a text in its language.

    Subclasses set ``operation``: the language is resolved against the
    languages that support it.
    """

    name: str = "command"
    operation: Operation = Operation.TOKENIZE

    def __init__(self, registry: ResourceRegistry):
        self.registry = registry
        self.resolver = LanguageResolver(registry, self.operation)
        self.logger = logging.getLogger(f"nlp_server.commands.{self.name}")

    def tokenize(self, text: str, language: Optional[str] = None) -> TokenizeResult:
        """
        Check the text, resolve its language and tokenize it.

        Raises:
            EmptyInput: If the text is blank (before any resource lookup)
            LanguageNotSupported: If the language is not supported by the operation
            LanguageDetectionUnavailable: If no language is given and no detector is configured
        """
        check_text(text)

        text_language = self.resolver.resolve(text, forced_language=language)
        self.logger.debug(f"Tokenizing '{cut_text(text)}' as '{text_language}'")

        sentences = self.registry.tokenizer(text_language).tokenize(text)
        return TokenizeResult(language=text_language, sentences=sentences)
