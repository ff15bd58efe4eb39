"""
Tests for the spaCy tokenizer and parser, on blank pipelines (no model download)
"""
import pytest
import spacy

from nlp_server.models import BaseSentence, BaseToken, MorphoPreprocessor, Position
from nlp_server.models.preprocessors import lexicon_from_entries
from nlp_server.models.spacy_provider import SpacyParser, SpacyTokenizer, load_pipeline


@pytest.fixture(scope="module")
def tokenizer():
    return SpacyTokenizer("en", nlp=spacy.blank("en"))


class TestSpacyTokenizer:

    def test_sentences_and_spans(self, tokenizer):
        text = "Hello world. How are you?"
        sentences = tokenizer.tokenize(text)

        assert len(sentences) == 2
        assert sentences[0].forms == ["Hello", "world", "."]
        assert sentences[0].tokens[1].position == Position(6, 11)
        assert sentences[1].position == Position(13, 25)
        for sentence in sentences:
            for token in sentence.tokens:
                assert text[token.position.start:token.position.end] == token.form

    def test_whitespace_is_not_a_token(self, tokenizer):
        sentences = tokenizer.tokenize("Hello    world\n\n")
        assert sentences[0].forms == ["Hello", "world"]

    def test_idempotent(self, tokenizer):
        text = "Go to Paris. Then Rome!"
        assert tokenizer.tokenize(text) == tokenizer.tokenize(text)

    def test_sentencizer_added_once(self):
        nlp = spacy.blank("it")
        SpacyTokenizer("it", nlp=nlp)
        SpacyTokenizer("it", nlp=nlp)
        assert nlp.pipe_names.count("sentencizer") == 1


def test_missing_model_falls_back_to_blank():
    nlp = load_pipeline("xx_not_an_installed_model", "en")
    assert nlp.lang == "en"
    assert nlp.pipe_names == []


class TestSpacyParser:

    def test_untrained_pipeline_uses_readings(self):
        parser = SpacyParser("blank", language="en", nlp=spacy.blank("en"))
        preprocessor = MorphoPreprocessor(lexicon_from_entries([("went", "go", "VERB")]))
        sentence = preprocessor.convert(BaseSentence(
            id=1,
            tokens=[BaseToken(id=10, form="She", position=Position(0, 3)),
                    BaseToken(id=11, form="went", position=Position(4, 8))]
        ))

        annotated = parser.parse(sentence)

        assert annotated.id == 1
        assert [t.id for t in annotated.tokens] == [10, 11]
        went = annotated.tokens[1]
        assert went.form == "went"
        assert went.pos == ["VERB"]
        assert went.lemma == "go"
        assert went.governor is None
        assert went.position == Position(4, 8)
        assert annotated.tokens[0].pos == []
