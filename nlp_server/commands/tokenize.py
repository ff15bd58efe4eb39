"""
The tokenize command: the minimal pipeline, language resolution and tokenization.
"""

from typing import Optional

from metrics import track_command

from ..registry import Operation
from .base import TokenizingCommand, TokenizeResult


class Tokenize(TokenizingCommand):
    """
    The command executed on the route '/tokenize'.

    If a language is given its tokenizer is forced, otherwise the language
    detector chooses it.
    """

    name = "tokenize"
    operation = Operation.TOKENIZE

    @track_command("tokenize")
    def run(self, text: str, language: Optional[str] = None) -> TokenizeResult:
        return self.tokenize(text, language=language)
