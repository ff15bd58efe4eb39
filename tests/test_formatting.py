"""
Tests for response assembly
"""
import json

import pytest

from nlp_server.commands import FindLocations, Parse, Tokenize, ExtractFrames, Label
from nlp_server.commands.parse import ParseResult
from nlp_server.formatting import EMPTY_FILLER, ResponseAssembler, ResponseFormat, to_json_string
from nlp_server.models import AnnotatedSentence, MorphoSynToken


@pytest.fixture
def assembler():
    return ResponseAssembler()


class TestJsonString:

    def test_compact(self):
        assert to_json_string({"a": [1, 2]}) == '{"a":[1,2]}'

    def test_pretty(self):
        text = to_json_string({"a": 1}, pretty=True)
        assert text == '{\n  "a": 1\n}\n'

    def test_non_ascii_is_kept(self):
        assert to_json_string({"form": "città"}) == '{"form":"città"}'


def test_response_format_values():
    assert ResponseFormat("conll") == ResponseFormat.CONLL
    assert ResponseFormat("json") == ResponseFormat.JSON


class TestTokenized:

    def test_offsets(self, registry, assembler):
        body = assembler.tokenized(Tokenize(registry).run("Hi there. Bye", language="en"))

        assert len(body) == 2
        assert body[0]["startOffset"] == 0
        assert body[0]["endOffset"] == 9
        assert body[0]["tokens"][1] == {"form": "there", "startOffset": 3, "endOffset": 8}
        assert body[1]["tokens"] == [{"form": "Bye", "startOffset": 10, "endOffset": 13}]


class TestParsed:

    def test_json(self, registry, assembler):
        body = assembler.parsed(Parse(registry).run("Go home", language="en"))

        assert body["languageCode"] == "en"
        token = body["sentences"][0]["tokens"][1]
        assert token["form"] == "home"
        assert token["lemma"] == "home"
        assert token["syntax"] == {"governor": 0, "dependencies": ["dep"]}
        assert token["startOffset"] == 3
        assert token["endOffset"] == 7
        json.dumps(body)

    def test_conll_single_token(self, registry, assembler):
        text = assembler.parsed_conll(Parse(registry).run("Hello", language="en"))
        assert text == "1\tHello\thello\tX\t_\t_\t0\troot\t_\t_\n"

    def test_conll_sentences(self, registry, assembler):
        text = assembler.parsed_conll(Parse(registry).run("I go. You stay.", language="en"))

        blocks = text.rstrip("\n").split("\n\n")
        assert len(blocks) == 2
        lines = blocks[1].split("\n")
        assert [line.split("\t")[0] for line in lines] == ["1", "2", "3"]
        # Heads are positions inside the sentence, not global token ids
        assert [line.split("\t")[6] for line in lines] == ["0", "1", "1"]
        assert all(len(line.split("\t")) == 10 for line in lines)

    def test_conll_empty_fields(self, assembler):
        sentence = AnnotatedSentence(id=0, tokens=[
            MorphoSynToken(id=7, form="del"),
            MorphoSynToken(id=8, form=None, pos=["ADP", "DET"], lemma="di", governor=7,
                           dependencies=["case", "det"]),
        ])
        lines = assembler.parsed_conll(ParseResult(language="it", sentences=[sentence])).splitlines()

        assert lines[0].split("\t") == ["1", "del", EMPTY_FILLER, EMPTY_FILLER, "_", "_", "0", EMPTY_FILLER, "_", "_"]
        assert lines[1].split("\t") == ["2", EMPTY_FILLER, "di", "ADP|DET", "_", "_", "1", "case|det", "_", "_"]

    def test_conll_governor_outside_sentence(self, assembler):
        sentence = AnnotatedSentence(id=0, tokens=[MorphoSynToken(id=1, form="a", governor=42)])
        line = assembler.parsed_conll(ParseResult(language="en", sentences=[sentence])).strip()
        assert line.split("\t")[6] == "0"


class TestFrames:

    def test_sections_by_domain(self, registry, assembler):
        body = assembler.frames(ExtractFrames(registry).run("Go to Paris", language="en"))

        assert list(body) == ["travel", "weather"]
        travel = body["travel"][0]
        assert travel["intent"] == "book_trip"
        assert travel["slots"] == [
            {"name": "destination", "score": 0.9, "tokens": [{"index": 2, "form": "Paris"}]}
        ]
        assert "distribution" not in travel

    def test_distribution(self, registry, assembler):
        result = ExtractFrames(registry).run("Go to Paris", language="en", distribution=True)
        weather = assembler.frames(result)["weather"][0]

        assert [d["intent"] for d in weather["distribution"]] == ["forecast", "temperature", "other"]


class TestLabelings:

    def test_tokens_by_domain(self, registry, assembler):
        body = assembler.labelings(Label(registry).run("Go to Paris. Hi", language="en"))

        assert list(body) == ["travel", "weather"]
        assert len(body["travel"]) == 2
        assert body["travel"][0]["tokens"][-2:] == [
            {"form": "Paris", "iob": "O", "label": None, "score": 0.8},
            {"form": ".", "iob": "B", "label": "destination", "score": 0.9},
        ]
        assert body["weather"][1] == {"tokens": [{"form": "Hi", "iob": "O", "label": None, "score": 0.8}]}

    def test_serializable(self, registry, assembler):
        body = assembler.labelings(Label(registry).run("Go", language="en"))
        assert json.loads(to_json_string(body)) == body


class TestLocations:

    def test_records(self, registry, assembler):
        result = FindLocations(registry).run("Paris, France", language="en")
        body = assembler.locations(result, registry.locations_dictionary("en"))

        paris = body[0]
        assert paris["id"] == "FR-PAR"
        assert paris["name"] == "Paris"
        assert paris["type"] == "city"
        assert paris["mentions"] == ["paris"]
        assert paris["coordinates"] == {"lat": 48.8566, "lon": 2.3522}
        assert paris["metadata"] == {"population": 2100000}
        assert paris["parents"] == [{"id": "FR", "name": "France", "type": "country"}]

    def test_without_dictionary(self, registry, assembler):
        result = FindLocations(registry).run("Texas", language="en")
        body = assembler.locations(result)

        assert body[0]["coordinates"] is None
        assert "parents" not in body[0]
        assert "metadata" not in body[0]
