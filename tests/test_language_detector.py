"""
Tests for the stop word language detector
"""
import pytest

from nlp_server.language_detector import StopwordLanguageDetector


@pytest.fixture
def detector():
    return StopwordLanguageDetector()


class TestStopwordLanguageDetector:

    @pytest.mark.parametrize("text, expected", [
        ("The cat is on the table and it is sleeping", "en"),
        ("Voglio andare a Roma domani con la mia famiglia", "it"),
        ("Je ne sais pas où est la gare", "fr"),
        ("Ich möchte morgen nach Berlin fahren und es ist kalt", "de"),
    ])
    def test_stopwords(self, detector, text, expected):
        assert detector.detect_language(text) == expected

    def test_script(self, detector):
        result = detector.detect("Καλημέρα κόσμε")
        assert result.language == "el"
        assert result.details["method"] == "script_analysis"

    @pytest.mark.parametrize("text", ["", "   ", "12345 !!!", "Xyzzy plugh"])
    def test_undetermined(self, detector, text):
        assert detector.detect_language(text) is None

    def test_candidate_languages(self):
        detector = StopwordLanguageDetector(languages=["it"])
        assert detector.detect_language("The cat is on the table") is None
        assert detector.detect_language("il gatto è sul tavolo") == "it"

    def test_script_language_must_be_candidate(self):
        detector = StopwordLanguageDetector(languages=["en"])
        assert detector.detect_language("Привет мир") is None

    def test_extra_stopwords(self):
        detector = StopwordLanguageDetector(languages=["en", "it"], stopwords={"it": {"Prenotare"}})
        assert detector.detect_language("prenotare") == "it"

    def test_tie_is_undetermined(self):
        detector = StopwordLanguageDetector(languages=["en", "it"])
        result = detector.detect("in")
        assert result.language is None
        assert result.details["tie"] == ["en", "it"]

    def test_confidence(self, detector):
        result = detector.detect("the the the")
        assert result.language == "en"
        assert 0.5 < result.confidence <= 0.95
