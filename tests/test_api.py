"""Tests for the /api routes."""

import threading

import pytest
from fastapi.testclient import TestClient

import db.database as db_mod
from articles.errors import GenerationFailure
from articles.files import LocalImageStorage
from main import app
from tests.conftest import FakeGenerator


@pytest.fixture
def fake():
    return FakeGenerator()


@pytest.fixture
def app_env(tmp_path, monkeypatch, fake):
    """Point the app at a temporary database and a fake generator."""
    db_path = tmp_path / "test.db"
    # Patch in both config and db.database (which imports by value)
    monkeypatch.setattr("config.DB_PATH", db_path)
    monkeypatch.setattr("config.DATA_DIR", tmp_path)
    monkeypatch.setattr("config.UPLOAD_DIR", tmp_path / "uploads")
    monkeypatch.setattr("config.STORAGE_BACKEND", "sqlite")
    monkeypatch.setattr("config.GENERATION_TIMEOUT", 5.0)
    monkeypatch.setattr("db.database.DB_PATH", db_path)
    monkeypatch.setattr("db.database.DATA_DIR", tmp_path)
    monkeypatch.setattr("main.build_generator", lambda backend: fake)
    db_mod.reset_engine()
    yield
    db_mod.reset_engine()


@pytest.fixture
def client(app_env):
    with TestClient(app) as test_client:
        yield test_client


def _wait(client, article_id):
    client.app.state.manager.wait(article_id, timeout=5)
    return client.get(f"/api/articles/{article_id}").json()


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["generator"] == "fake"


def test_create_article_returns_processing(client, fake):
    gate = threading.Event()
    fake.gate = gate
    try:
        resp = client.post("/api/articles", json={"topic": "AI Ethics"})
        assert resp.status_code == 202
        data = resp.json()
        assert data["status"] == "PROCESSING"
        assert data["title"] == data["description"] == data["content"] == ""
        assert data["slug"].startswith("temp-")
        assert data["is_published"] is False
        assert data["tags"] == []
    finally:
        gate.set()


def test_create_then_generation_completes(client):
    article_id = client.post("/api/articles", json={"topic": "AI Ethics"}).json()["id"]
    data = _wait(client, article_id)
    assert data["status"] == "DONE"
    assert data["slug"] == "ai-ethics"
    assert data["tags"] == ["AI"]
    assert (data["title"], data["description"], data["content"]) == ("T", "D", "C")


@pytest.mark.parametrize("topic", ["", "   "])
def test_empty_topic_rejected(client, topic):
    resp = client.post("/api/articles", json={"topic": topic})
    assert resp.status_code == 422
    assert client.get("/api/articles").json() == []


def test_duplicate_topics_distinct_slugs(client):
    first = client.post("/api/articles", json={"topic": "X"}).json()["id"]
    _wait(client, first)
    second = client.post("/api/articles", json={"topic": "X "}).json()["id"]
    assert _wait(client, first)["slug"] == "x"
    assert _wait(client, second)["slug"] == f"x-{second}"


def test_list_most_recent_first(client):
    ids = [client.post("/api/articles", json={"topic": f"topic {i}"}).json()["id"] for i in range(3)]
    for article_id in ids:
        _wait(client, article_id)
    listed = [a["id"] for a in client.get("/api/articles").json()]
    assert listed == list(reversed(ids))


def test_list_filters(client):
    a = client.post("/api/articles", json={"topic": "a"}).json()["id"]
    _wait(client, a)
    client.post(f"/api/articles/{a}/publish")
    b = client.post("/api/articles", json={"topic": "b"}).json()["id"]
    _wait(client, b)

    published = client.get("/api/articles?published=true").json()
    assert [x["id"] for x in published] == [a]
    done = client.get("/api/articles?status=DONE").json()
    assert {x["id"] for x in done} == {a, b}


def test_update_article(client):
    article_id = client.post("/api/articles", json={"topic": "a"}).json()["id"]
    _wait(client, article_id)
    resp = client.put(f"/api/articles/{article_id}", json={"title": "Edited", "tags": ["x"]})
    assert resp.status_code == 200
    data = resp.json()
    assert data["title"] == "Edited"
    assert data["tags"] == ["x"]
    assert data["content"] == "C"
    assert data["status"] == "DONE"


def test_toggle_publish_twice(client):
    article_id = client.post("/api/articles", json={"topic": "a"}).json()["id"]
    assert client.post(f"/api/articles/{article_id}/publish").json()["is_published"] is True
    assert client.post(f"/api/articles/{article_id}/publish").json()["is_published"] is False


def test_publish_error_article(client, fake):
    fake.error = GenerationFailure("generator unavailable")
    article_id = client.post("/api/articles", json={"topic": "a"}).json()["id"]
    data = _wait(client, article_id)
    assert data["status"] == "ERROR"
    assert data["error_message"] == "generator unavailable"

    resp = client.post(f"/api/articles/{article_id}/publish")
    assert resp.status_code == 200
    assert resp.json()["is_published"] is True


def test_regenerate(client, fake):
    fake.error = GenerationFailure("down")
    article_id = client.post("/api/articles", json={"topic": "a"}).json()["id"]
    _wait(client, article_id)

    fake.error = None
    resp = client.post(f"/api/articles/{article_id}/regenerate")
    assert resp.status_code == 202
    assert resp.json()["status"] == "PROCESSING"
    assert _wait(client, article_id)["status"] == "DONE"


def test_regenerate_while_processing_conflicts(client, fake):
    gate = threading.Event()
    fake.gate = gate
    try:
        article_id = client.post("/api/articles", json={"topic": "a"}).json()["id"]
        resp = client.post(f"/api/articles/{article_id}/regenerate")
        assert resp.status_code == 409
    finally:
        gate.set()


def test_missing_article_404(client):
    assert client.get("/api/articles/999").status_code == 404
    assert client.put("/api/articles/999", json={"title": "x"}).status_code == 404
    assert client.post("/api/articles/999/publish").status_code == 404
    assert client.post("/api/articles/999/regenerate").status_code == 404
    assert client.delete("/api/articles/999").status_code == 404


def test_delete_article(client):
    article_id = client.post("/api/articles", json={"topic": "a"}).json()["id"]
    _wait(client, article_id)
    assert client.delete(f"/api/articles/{article_id}").status_code == 204
    assert client.get(f"/api/articles/{article_id}").status_code == 404


def test_upload_images_and_attach(client, fake, tmp_path):
    files = [
        ("files", ("cover.png", b"\x89PNG", "image/png")),
        ("files", ("chart.jpg", b"\xff\xd8", "image/jpeg")),
    ]
    resp = client.post("/api/images", files=files)
    assert resp.status_code == 200
    refs = resp.json()
    assert [r["original_name"] for r in refs] == ["cover.png", "chart.jpg"]
    assert (tmp_path / "uploads" / refs[0]["filename"]).read_bytes() == b"\x89PNG"
    assert client.get("/api/images").json() == refs

    article = client.post("/api/articles", json={
        "topic": "Charts",
        "additional_context_url": "https://example.com/ref",
        "images": [refs[1]["filename"]],
    }).json()
    assert article["images"] == [refs[1]]
    _wait(client, article["id"])
    topic, url, images = fake.calls[-1]
    assert (topic, url) == ("Charts", "https://example.com/ref")
    assert [i.filename for i in images] == [refs[1]["filename"]]


def test_upload_non_image_rejected(client):
    resp = client.post("/api/images", files=[("files", ("notes.txt", b"hi", "text/plain"))])
    assert resp.status_code == 415
    assert client.get("/api/images").json() == []


def test_unknown_image_reference_404(client):
    resp = client.post("/api/articles", json={"topic": "a", "images": ["nope.png"]})
    assert resp.status_code == 404
    assert client.get("/api/articles").json() == []


def test_articles_survive_restart(app_env):
    with TestClient(app) as first:
        article_id = first.post("/api/articles", json={"topic": "Persisted"}).json()["id"]
        _wait(first, article_id)
        first.post(f"/api/articles/{article_id}/publish")

    with TestClient(app) as second:
        data = second.get(f"/api/articles/{article_id}").json()
    assert data["slug"] == "persisted"
    assert data["is_published"] is True


def test_regenerate_with_new_context_url_keeps_topic(client, fake):
    article_id = client.post("/api/articles", json={"topic": "AI Ethics"}).json()["id"]
    _wait(client, article_id)

    resp = client.post(
        f"/api/articles/{article_id}/regenerate",
        json={"additional_context_url": "https://example.com/new"},
    )
    assert resp.status_code == 202
    assert resp.json()["additional_context_url"] == "https://example.com/new"
    assert resp.json()["topic"] == "AI Ethics"

    _wait(client, article_id)
    assert fake.calls[-1] == ("AI Ethics", "https://example.com/new", ())


def test_regenerate_with_images_only(client, fake):
    ref = client.post("/api/images", files=[("files", ("a.png", b"\x89PNG", "image/png"))]).json()[0]
    article_id = client.post("/api/articles", json={
        "topic": "Charts",
        "additional_context_url": "https://example.com/ref",
    }).json()["id"]
    _wait(client, article_id)

    resp = client.post(f"/api/articles/{article_id}/regenerate", json={"images": [ref["filename"]]})
    assert resp.status_code == 202
    assert resp.json()["images"] == [ref]
    _wait(client, article_id)
    topic, url, images = fake.calls[-1]
    assert (topic, url) == ("Charts", "https://example.com/ref")
    assert [i.filename for i in images] == [ref["filename"]]


def test_upload_storage_failure_registers_nothing(client, monkeypatch, tmp_path):
    original_save = LocalImageStorage.save
    calls = []

    def flaky_save(self, filename, data):
        calls.append(filename)
        if len(calls) == 2:
            raise OSError("disk full")
        return original_save(self, filename, data)

    monkeypatch.setattr(LocalImageStorage, "save", flaky_save)
    files = [
        ("files", ("a.png", b"\x89PNG", "image/png")),
        ("files", ("b.png", b"\x89PNG", "image/png")),
    ]
    resp = client.post("/api/images", files=files)
    assert resp.status_code == 500
    assert client.get("/api/images").json() == []
    assert list((tmp_path / "uploads").iterdir()) == []

    resp = client.post("/api/articles", json={"topic": "a", "images": [calls[0]]})
    assert resp.status_code == 404
