"""
spaCy-backed tokenizer and parser
"""

import logging
from typing import List, Optional

import spacy
from spacy.tokens import Doc

from .base import (
    Tokenizer,
    Parser,
    Sentence,
    Token,
    Position,
    ParsingSentence,
    AnnotatedSentence,
    MorphoSynToken,
)

logger = logging.getLogger(__name__)


def load_pipeline(model_name: Optional[str], language: str):
    """
    Load a spaCy pipeline.

    Falls back to a blank pipeline of the language when the model is not
    installed, so that tokenization still works.
    """
    if model_name:
        try:
            nlp = spacy.load(model_name)
            logger.info(f"Loaded spaCy model '{model_name}' for '{language}'")
            return nlp
        except OSError:
            logger.warning(f"spaCy model '{model_name}' not found, creating blank '{language}' pipeline")

    return spacy.blank(language)


class SpacyTokenizer(Tokenizer):
    """Tokenizer and sentence splitter backed by a spaCy pipeline"""

    def __init__(self, language: str, model_name: Optional[str] = None, nlp=None):
        self.language = language
        self.model_name = model_name
        self.nlp = nlp if nlp is not None else load_pipeline(model_name, language)

        # Sentence boundaries are needed even by blank pipelines
        if "sentencizer" not in self.nlp.pipe_names and "senter" not in self.nlp.pipe_names \
                and "parser" not in self.nlp.pipe_names:
            self.nlp.add_pipe("sentencizer", first=True)

    def tokenize(self, text: str) -> List[Sentence]:
        doc = self.nlp(text)
        sentences = []

        for sent in doc.sents:
            tokens = [
                Token(form=token.text, position=Position(token.idx, token.idx + len(token.text)))
                for token in sent
                if not token.is_space
            ]
            if not tokens:
                continue

            sentences.append(Sentence(
                tokens=tokens,
                position=Position(tokens[0].position.start, tokens[-1].position.end)
            ))

        return sentences


class SpacyParser(Parser):
    """
    Dependency parser backed by a trained spaCy pipeline.

    The sentence is parsed as tokenized upstream: the pipeline components run
    on a Doc built from the given forms. Readings given by the preprocessor
    fill the POS and lemma the pipeline leaves empty.
    """

    def __init__(self, model_name: str, language: str = "", nlp=None):
        self.model_name = model_name
        self.language = language
        self.nlp = nlp if nlp is not None else spacy.load(model_name)

        if "parser" not in self.nlp.pipe_names:
            logger.warning(f"spaCy model '{model_name}' has no dependency parser")

    def parse(self, sentence: ParsingSentence) -> AnnotatedSentence:
        doc = Doc(self.nlp.vocab, words=[token.form for token in sentence.tokens])
        for _, component in self.nlp.pipeline:
            doc = component(doc)

        tokens = []
        for parsing_token, annotated in zip(sentence.tokens, doc):
            readings = parsing_token.morphologies

            pos = [annotated.pos_] if annotated.pos_ else [r.pos for r in readings]
            lemma = annotated.lemma_ or (readings[0].lemma if readings else None)

            if annotated.head.i == annotated.i:
                governor = None
            else:
                governor = sentence.tokens[annotated.head.i].id

            tokens.append(MorphoSynToken(
                id=parsing_token.id,
                form=parsing_token.form,
                pos=pos,
                lemma=lemma,
                governor=governor,
                dependencies=[annotated.dep_] if annotated.dep_ else [],
                position=parsing_token.base.position
            ))

        return AnnotatedSentence(id=sentence.id, tokens=tokens, position=sentence.position)
