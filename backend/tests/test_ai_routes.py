"""
End-to-end scenarios for the protected AI endpoints.
"""
import json

import pytest

from conftest import qa_reply


QUESTIONS_URL = "/api/ai/generate-questions"
EXPLANATION_URL = "/api/ai/generate-explanation"


class TestAuthRequired:

    @pytest.mark.parametrize("url", [QUESTIONS_URL, EXPLANATION_URL])
    def test_no_token_is_401_before_upstream(self, client, llm, url):
        resp = client.post(url, json={"topic": "backend", "count": 5, "question": "What is REST?"})
        assert resp.status_code == 401
        assert resp.json() == {"success": False, "message": "Not authorized, no token"}
        assert llm.calls == []

    def test_bad_token_is_401_before_upstream(self, client, llm):
        resp = client.post(
            QUESTIONS_URL,
            json={"topic": "backend", "count": 5},
            headers={"Authorization": "Bearer garbage"},
        )
        assert resp.status_code == 401
        assert resp.json() == {"success": False, "message": "Not authorized, token failed"}
        assert llm.calls == []

    def test_auth_checked_before_body_validation(self, client, llm):
        resp = client.post(QUESTIONS_URL, json={"count": 0})
        assert resp.status_code == 401


class TestGenerateQuestions:

    def test_five_questions_in_order(self, client, llm, auth_headers):
        resp = client.post(QUESTIONS_URL, json={"topic": "backend", "count": 5}, headers=auth_headers)
        assert resp.status_code == 200
        body = resp.json()
        assert len(body) == 5
        assert body == [{"question": f"Question {i}?", "answer": f"Answer {i}."} for i in range(1, 6)]
        assert len(llm.calls) == 1

    def test_full_field_names(self, client, llm, auth_headers):
        resp = client.post(
            QUESTIONS_URL,
            json={"role": "Frontend Developer", "experience": "2", "topicsToFocus": "React, CSS", "numberOfQuestions": 5},
            headers=auth_headers,
        )
        assert resp.status_code == 200
        assert "React, CSS" in llm.calls[0]["user"]

    @pytest.mark.parametrize("count", [0, -1])
    def test_non_positive_count_is_400_without_upstream(self, client, llm, auth_headers, count):
        resp = client.post(QUESTIONS_URL, json={"topic": "backend", "count": count}, headers=auth_headers)
        assert resp.status_code == 400
        assert resp.json()["success"] is False
        assert llm.calls == []

    def test_missing_body_is_400(self, client, llm, auth_headers):
        resp = client.post(QUESTIONS_URL, headers=auth_headers)
        assert resp.status_code == 400
        assert resp.json() == {"success": False, "message": "Missing required fields"}
        assert llm.calls == []

    def test_timeout_is_504_and_not_retried(self, client, llm, auth_headers, app):
        app.state.orchestrator.timeout = 0.05
        llm.delay = 1.0
        resp = client.post(QUESTIONS_URL, json={"topic": "backend", "count": 5}, headers=auth_headers)
        assert resp.status_code == 504
        assert resp.json() == {"success": False, "message": "Upstream generation timed out"}
        assert len(llm.calls) == 1

    def test_malformed_upstream_is_502_without_raw_text(self, client, llm, auth_headers):
        llm.text = "I'm sorry, I can't help with SECRET_INTERNAL_DETAIL"
        resp = client.post(QUESTIONS_URL, json={"topic": "backend", "count": 5}, headers=auth_headers)
        assert resp.status_code == 502
        assert resp.json() == {"success": False, "message": "Malformed upstream response"}
        assert "SECRET_INTERNAL_DETAIL" not in resp.text

    def test_repeated_request_is_identical(self, client, auth_headers):
        first = client.post(QUESTIONS_URL, json={"topic": "backend", "count": 5}, headers=auth_headers)
        second = client.post(QUESTIONS_URL, json={"topic": "backend", "count": 5}, headers=auth_headers)
        assert first.status_code == second.status_code == 200
        assert first.json() == second.json()

    def test_disallowed_origin_is_403_before_auth(self, client, llm, auth_headers):
        resp = client.post(
            QUESTIONS_URL,
            json={"topic": "backend", "count": 5},
            headers={**auth_headers, "Origin": "https://evil.example"},
        )
        assert resp.status_code == 403
        body = resp.json()
        assert body["success"] is False
        assert "https://evil.example" in body["message"]
        assert llm.calls == []


class TestGenerateExplanation:

    def test_explanation(self, client, llm, auth_headers):
        llm.text = json.dumps({"title": "REST", "explanation": "Representational state transfer."})
        resp = client.post(EXPLANATION_URL, json={"question": "What is REST?"}, headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json() == {"title": "REST", "explanation": "Representational state transfer."}

    def test_empty_concept_is_400(self, client, llm, auth_headers):
        resp = client.post(EXPLANATION_URL, json={"concept": ""}, headers=auth_headers)
        assert resp.status_code == 400
        assert llm.calls == []

    def test_questions_shape_is_malformed_for_explanation(self, client, llm, auth_headers):
        llm.text = qa_reply(3)
        resp = client.post(EXPLANATION_URL, json={"question": "What is REST?"}, headers=auth_headers)
        assert resp.status_code == 502
