# tests/test_card_server.py
# -*- coding: utf-8 -*-
import pytest
from fastapi.testclient import TestClient

from card_server import app, decode_share_data, encode_share_data


@pytest.fixture
def client():
    return TestClient(app)


def test_twitter_card_renders_meta_tags(client):
    response = client.get("/twitter-card", params={"imageUrl": "https://img.example/p.jpg", "title": "Pepe <3"})
    assert response.status_code == 200
    assert response.headers["cache-control"] == "public, max-age=3600"
    assert '<meta name="twitter:card" content="summary_large_image">' in response.text
    assert 'content="https://img.example/p.jpg"' in response.text
    assert "Pepe &lt;3" in response.text


def test_twitter_card_without_image_uses_placeholder(client):
    response = client.get("/twitter-card")
    assert response.status_code == 200
    assert "twitter:image" in response.text


def test_create_share_requires_image_and_text(client):
    response = client.post("/api/create-share", json={"imageUrl": "https://img.example/p.jpg"})
    assert response.status_code == 400
    assert response.json() == {"error": "Missing required fields"}


def test_created_share_url_serves_card(client):
    response = client.post("/api/create-share", json={
        "imageUrl": "https://img.example/p.jpg",
        "twitterText": "Пепе обрёл голос",
        "title": "PEPE.MP3",
    })
    assert response.status_code == 200
    body = response.json()
    assert body["twitterUrl"].startswith("https://twitter.com/intent/tweet?url=")

    card = client.get(f"/twitter/{body['shareId']}")
    assert card.status_code == 200
    assert "https://img.example/p.jpg" in card.text


def test_unknown_share_is_404(client):
    assert client.get("/twitter/not-base64-json").status_code == 404


def test_share_data_encoding():
    data = {"imageUrl": "https://img.example/p.jpg", "twitterText": "gm 🐸"}
    assert decode_share_data(encode_share_data(data)) == data
    assert decode_share_data(encode_share_data({"imageUrl": "x"})) is None


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
