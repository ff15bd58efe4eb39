"""
The parse command: tokenization, preprocessing and dependency parsing.
"""

from dataclasses import dataclass
from typing import List, Optional

from metrics import track_command

from ..models.base import AnnotatedSentence, BaseSentence, BaseToken, Sentence
from ..registry import Operation
from .base import TokenizingCommand


@dataclass
class ParseResult:
    """The annotated sentences of a text, in input order."""
    language: str
    sentences: List[AnnotatedSentence]


def to_base_sentence(sentence: Sentence, sentence_id: int, first_token_id: int) -> BaseSentence:
    """
    Convert a tokenizer sentence into the preprocessor input shape.

    Token ids run across the whole text, so they are unique among all the
    sentences of a request.
    """
    return BaseSentence(
        id=sentence_id,
        tokens=[
            BaseToken(id=first_token_id + i, form=token.form, position=token.position)
            for i, token in enumerate(sentence.tokens)
        ],
        position=sentence.position
    )


class Parse(TokenizingCommand):
    """
    The command executed on the route '/parse'.

    Each sentence is converted, preprocessed (with the base preprocessor when
    the language has none) and parsed on its own.
    """

    name = "parse"
    operation = Operation.PARSE

    @track_command("parse")
    def run(self, text: str, language: Optional[str] = None) -> ParseResult:
        tokenized = self.tokenize(text, language=language)

        parser = self.registry.parser(tokenized.language)
        preprocessor = self.registry.preprocessor(tokenized.language)

        annotated = []
        next_token_id = 0
        for index, sentence in enumerate(tokenized.sentences):
            base_sentence = to_base_sentence(sentence, sentence_id=index, first_token_id=next_token_id)
            next_token_id += len(sentence.tokens)
            annotated.append(parser.parse(preprocessor.convert(base_sentence)))

        self.logger.debug(f"Parsed {len(annotated)} sentences in '{tokenized.language}'")
        return ParseResult(language=tokenized.language, sentences=annotated)
