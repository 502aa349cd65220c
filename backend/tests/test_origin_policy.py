import re

import pytest

from src.core.config import Settings
from src.security.origin_policy import OriginPolicy


ALLOWED = ("https://app.example.com", "http://localhost:5173")


@pytest.fixture
def policy():
    return OriginPolicy(["https://app.example.com/", "http://localhost:5173"])


class TestOriginPolicy:

    @pytest.mark.parametrize("origin", ALLOWED)
    def test_allow_list_members_are_allowed(self, policy, origin):
        assert policy.evaluate(origin).allowed is True

    def test_trailing_slash_is_normalized_on_both_sides(self, policy):
        assert policy.allowed_origins == ALLOWED
        assert policy.is_allowed("https://app.example.com/")

    @pytest.mark.parametrize("origin", [
        "https://evil.example",
        "https://app.example.com.evil.example",
        "http://app.example.com",
        "https://app.example",
        "null",
    ])
    def test_other_origins_are_denied(self, policy, origin):
        decision = policy.evaluate(origin)
        assert decision.allowed is False
        assert decision.origin == origin

    @pytest.mark.parametrize("origin", [None, ""])
    def test_absent_origin_is_allowed(self, origin):
        assert OriginPolicy([]).evaluate(origin).allowed is True

    def test_evaluation_does_not_change_the_allow_list(self, policy):
        before = policy.allowed_origins
        for origin in ("https://evil.example", None, "https://app.example.com"):
            policy.evaluate(origin)
        assert policy.allowed_origins == before


class TestPreviewPattern:

    def _settings(self, **kwargs):
        return Settings(jwt_secret="x", allowed_origins=("https://app.example.com",), **kwargs)

    def test_preview_disabled_by_default(self):
        policy = OriginPolicy.from_settings(self._settings())
        assert policy.preview_active is False
        assert policy.is_allowed("https://interview-prep-abc123.vercel.app") is False

    def test_preview_enabled_outside_production(self):
        policy = OriginPolicy.from_settings(self._settings(allow_vercel_preview=True))
        assert policy.is_allowed("https://interview-prep-abc123.vercel.app") is True
        assert policy.is_allowed("https://Interview-Prep-git-main.vercel.app") is True

    def test_preview_is_full_match_only(self):
        policy = OriginPolicy.from_settings(self._settings(allow_vercel_preview=True))
        assert policy.is_allowed("https://other-app.vercel.app") is False
        assert policy.is_allowed("https://interview-prep.vercel.app.evil.example") is False
        assert policy.is_allowed("http://interview-prep-abc.vercel.app") is False

    def test_preview_ignored_in_production(self):
        policy = OriginPolicy.from_settings(
            self._settings(allow_vercel_preview=True, environment="production")
        )
        assert policy.preview_active is False
        assert policy.is_allowed("https://interview-prep-abc123.vercel.app") is False
        assert policy.is_allowed("https://app.example.com") is True

    def test_custom_pattern(self):
        policy = OriginPolicy(["https://app.example.com"], re.compile(r"^https://pr-\d+\.preview\.example$"))
        assert policy.is_allowed("https://pr-42.preview.example")
        assert not policy.is_allowed("https://pr-x.preview.example")


class TestCorsLayers:
    """Header emission and the explicit 403 use the same decision."""

    def test_allowed_origin_gets_cors_headers(self, client):
        resp = client.get("/health", headers={"Origin": "http://localhost:5173"})
        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == "http://localhost:5173"
        assert resp.headers["access-control-allow-credentials"] == "true"

    def test_denied_origin_gets_403_without_cors_headers(self, client):
        resp = client.get("/health", headers={"Origin": "https://evil.example"})
        assert resp.status_code == 403
        assert resp.json() == {"success": False, "message": "CORS not allowed: https://evil.example"}
        assert "access-control-allow-origin" not in resp.headers

    def test_no_origin_header_passes(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"ok": True}
        assert "access-control-allow-origin" not in resp.headers

    def test_preflight_allowed(self, client):
        resp = client.options(
            "/api/ai/generate-questions",
            headers={
                "Origin": "http://localhost:5173",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Authorization, Content-Type",
            },
        )
        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == "http://localhost:5173"
        assert "POST" in resp.headers["access-control-allow-methods"]

    def test_preflight_denied_omits_allow_origin(self, client):
        resp = client.options(
            "/api/ai/generate-questions",
            headers={"Origin": "https://evil.example", "Access-Control-Request-Method": "POST"},
        )
        assert "access-control-allow-origin" not in resp.headers
        assert resp.status_code == 403
        assert resp.json() == {"success": False, "message": "CORS not allowed: https://evil.example"}
