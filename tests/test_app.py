"""
Test suite for the HTTP application
"""
import pytest
from fastapi.testclient import TestClient

from app import NLPServer, create_app
from nlp_server.registry import ResourceBundle, ResourceRegistry

from conftest import RegexTokenizer, make_encoder


@pytest.fixture
def client(registry):
    server = NLPServer(registry)
    with TestClient(create_app(server)) as test_client:
        yield test_client


@pytest.fixture
def client_without_detector(registry_without_detector):
    with TestClient(create_app(NLPServer(registry_without_detector))) as test_client:
        yield test_client


def assert_error(response, status_code, kind):
    assert response.status_code == status_code
    data = response.json()
    assert data["error"] == kind
    assert data["detail"]
    assert data["request_id"]
    return data


class TestSystem:

    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["services"]["language_detector"] == "available"
        assert "version" in data

    def test_languages(self, client):
        response = client.get("/languages")
        assert response.status_code == 200
        data = response.json()
        assert data["languages"]["parse"] == ["en"]
        assert data["domains"] == ["travel", "weather"]

    def test_request_id_is_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-42"})
        assert response.headers["X-Request-ID"] == "req-42"
        assert "X-Process-Time" in response.headers

    def test_malformed_request_id_is_replaced(self, client):
        response = client.get("/health", headers={"X-Request-ID": "bad id with spaces"})
        assert response.headers["X-Request-ID"] != "bad id with spaces"

    def test_oversized_body_rejected_before_reading(self, client):
        response = client.post("/parse/en", content=b"a" * (4 * 100000 + 64 * 1024 + 1))
        assert response.status_code == 413
        assert response.json()["request_id"] == response.headers["X-Request-ID"]

    def test_metrics(self, client):
        client.post("/tokenize/en", content="Hello")
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "nlp_server_requests_total" in response.text
        assert "nlp_server_command_duration_seconds" in response.text


class TestTokenizeRoutes:

    def test_post_forced_language(self, client):
        response = client.post("/tokenize/en", content="Hello world. Bye")
        assert response.status_code == 200
        data = response.json()
        assert len(data) == 2
        assert data[0]["tokens"][0] == {"form": "Hello", "startOffset": 0, "endOffset": 5}

    def test_post_detected_language(self, client):
        response = client.post("/tokenize", content="Hello world")
        assert response.status_code == 200
        assert [t["form"] for t in response.json()[0]["tokens"]] == ["Hello", "world"]

    def test_get(self, client):
        response = client.get("/tokenize/it", params={"text": "Ciao mondo"})
        assert response.status_code == 200
        assert len(response.json()[0]["tokens"]) == 2

    def test_utf8_body(self, client):
        response = client.post("/tokenize/it", content="Città più bella".encode("utf-8"))
        assert response.json()[0]["tokens"][0]["form"] == "Città"

    def test_pretty(self, client):
        compact = client.post("/tokenize/en", content="Hi")
        pretty = client.post("/tokenize/en", params={"pretty": "true"}, content="Hi")
        assert "\n" not in compact.text
        assert pretty.text.endswith("\n")
        assert pretty.json() == compact.json()

    def test_empty_input(self, client):
        assert_error(client.post("/tokenize/en", content="   "), 400, "EmptyInput")

    def test_unsupported_language(self, client):
        data = assert_error(client.post("/tokenize/xx", content="Hello"), 400, "LanguageNotSupported")
        assert data["language"] == "xx"

    def test_no_detector(self, client_without_detector):
        assert_error(
            client_without_detector.post("/tokenize", content="Hello"),
            503, "LanguageDetectionUnavailable"
        )

    def test_text_too_long(self, client):
        response = client.post("/tokenize/en", content="a" * 100001)
        assert response.status_code == 413


class TestParseRoutes:

    def test_json(self, client):
        response = client.post("/parse/en", content="Go home")
        assert response.status_code == 200
        data = response.json()
        assert data["languageCode"] == "en"
        assert [t["form"] for t in data["sentences"][0]["tokens"]] == ["Go", "home"]

    def test_conll(self, client):
        response = client.post("/parse/en", params={"format": "conll"}, content="Hello")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert response.text == "1\tHello\thello\tX\t_\t_\t0\troot\t_\t_\n"

    def test_unknown_format(self, client):
        response = client.post("/parse/en", params={"format": "xml"}, content="Hello")
        assert response.status_code == 422

    def test_language_without_parser(self, client):
        data = assert_error(client.post("/parse/it", content="Ciao"), 400, "LanguageNotSupported")
        assert data["language"] == "it"


class TestExtractFramesRoutes:

    def test_every_domain(self, client):
        response = client.post("/extract-frames/en", content="I want to go to Paris")
        assert response.status_code == 200
        data = response.json()
        assert list(data) == ["travel", "weather"]
        assert data["travel"][0]["intent"] == "book_trip"
        assert "distribution" not in data["travel"][0]

    def test_domain_and_distribution(self, client):
        response = client.post(
            "/extract-frames/en",
            params={"domain": "weather", "distribution": "true"},
            content="Is it cold?"
        )
        assert response.status_code == 200
        data = response.json()
        assert list(data) == ["weather"]
        scores = [d["score"] for d in data["weather"][0]["distribution"]]
        assert scores == sorted(scores, reverse=True)

    def test_invalid_domain(self, client):
        response = client.post("/extract-frames/en", params={"domain": "cooking"}, content="Hi")
        data = assert_error(response, 400, "InvalidDomain")
        assert data["domain"] == "cooking"

    def test_missing_embeddings(self):
        registry = ResourceRegistry(
            bundles=[ResourceBundle(language="en", tokenizer=RegexTokenizer(), encoder=make_encoder())]
        )
        with TestClient(create_app(NLPServer(registry))) as client:
            data = assert_error(client.post("/extract-frames/en", content="Hi"), 500, "MissingResource")
        assert data["resource"] == "embeddings"
        assert data["language"] == "en"


class TestLabelRoutes:

    def test_every_domain(self, client):
        response = client.post("/label/en", content="Go to Paris")
        assert response.status_code == 200
        data = response.json()
        assert list(data) == ["travel", "weather"]
        tokens = data["travel"][0]["tokens"]
        assert tokens[0] == {"form": "Go", "iob": "O", "label": None, "score": 0.8}
        assert tokens[2] == {"form": "Paris", "iob": "B", "label": "destination", "score": 0.9}

    def test_domain(self, client):
        response = client.post("/label", params={"domain": "weather"}, content="Go home. Is it cold?")
        assert response.status_code == 200
        data = response.json()
        assert list(data) == ["weather"]
        assert len(data["weather"]) == 2

    def test_invalid_domain(self, client):
        response = client.post("/label/en", params={"domain": "cooking"}, content="Hi")
        data = assert_error(response, 400, "InvalidDomain")
        assert data["domain"] == "cooking"

    def test_language_without_encoder(self, client):
        assert_error(client.post("/label/it", content="Ciao"), 400, "LanguageNotSupported")

    def test_empty_input(self, client):
        assert_error(client.post("/label/en", content=""), 400, "EmptyInput")


class TestLocationsRoutes:

    def test_locations(self, client):
        response = client.post("/locations/en", json={
            "text": "I love Paris",
            "candidates": [{"name": "Paris", "score": 0.5}, {"name": "Paris", "score": 0.5}]
        })
        assert response.status_code == 200
        data = response.json()
        assert data[0]["id"] == "FR-PAR"
        assert data[0]["parents"][0]["id"] == "FR"

    def test_language_query(self, client):
        response = client.post("/locations", params={"lang": "it"}, json={"text": "Roma"})
        assert response.status_code == 200
        assert response.json()[0]["id"] == "IT-RM"

    def test_missing_text(self, client):
        response = client.post("/locations/en", json={"candidates": []})
        assert response.status_code == 422

    def test_empty_text(self, client):
        assert_error(client.post("/locations/en", json={"text": ""}), 400, "EmptyInput")

    def test_missing_dictionary(self, client_without_detector):
        data = assert_error(
            client_without_detector.post("/locations/en", json={"text": "Paris"}),
            500, "MissingResource"
        )
        assert data["resource"] == "locations_dictionary"
