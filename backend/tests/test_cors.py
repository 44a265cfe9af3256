import unittest

import pytest

from backoffice import resolve_cors_origin


CONFIG = {
    "CORS_ALLOWED_ORIGINS": ["http://localhost:5173", "https://saisiddhafurniture.com"],
    "CORS_ALLOWED_ORIGIN_SUFFIX": ".lovable.app",
    "CORS_DEFAULT_ORIGIN": "https://saisiddhafurniture.com",
}


class ResolveCorsOriginTests(unittest.TestCase):
    def test_allow_listed_origin_reflected(self):
        self.assertEqual(resolve_cors_origin("http://localhost:5173", CONFIG), "http://localhost:5173")

    def test_https_suffix_origin_reflected(self):
        origin = "https://preview-42.lovable.app"
        self.assertEqual(resolve_cors_origin(origin, CONFIG), origin)

    def test_other_origins_get_default(self):
        for origin in (
            None,
            "",
            "http://preview-42.lovable.app",
            "https://evil.example.com",
            "https://lovable.app.evil.example.com",
            "http://localhost:3000",
        ):
            with self.subTest(origin=origin):
                self.assertEqual(resolve_cors_origin(origin, CONFIG), "https://saisiddhafurniture.com")

    def test_suffix_disabled(self):
        config = dict(CONFIG, CORS_ALLOWED_ORIGIN_SUFFIX="")
        self.assertEqual(
            resolve_cors_origin("https://preview-42.lovable.app", config),
            "https://saisiddhafurniture.com",
        )


@pytest.mark.parametrize(
    "origin,expected",
    [
        ("http://localhost:5173", "http://localhost:5173"),
        ("https://abc.lovable.app", "https://abc.lovable.app"),
        ("https://evil.example.com", "https://saisiddhafurniture.com"),
    ],
)
def test_headers_on_responses(client, origin, expected):
    response = client.get("/health", headers={"Origin": origin})
    assert response.headers["Access-Control-Allow-Origin"] == expected
    assert "Origin" in response.headers.getlist("Vary")
    assert "X-Session-Token" in response.headers["Access-Control-Allow-Headers"]
    assert "PATCH" in response.headers["Access-Control-Allow-Methods"]


def test_headers_on_error_responses(client):
    response = client.get("/api/products", headers={"Origin": "http://localhost:5173"})
    assert response.status_code == 401
    assert response.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"


def test_preflight_needs_no_session(client):
    response = client.options(
        "/api/admin-auth/login",
        headers={
            "Origin": "https://abc.lovable.app",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "content-type",
        },
    )
    assert response.status_code == 200
    assert response.headers["Access-Control-Allow-Origin"] == "https://abc.lovable.app"

    response = client.options("/api/products", headers={"Origin": "http://localhost:5173"})
    assert response.status_code == 200
