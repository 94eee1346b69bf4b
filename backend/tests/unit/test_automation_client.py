"""Automation endpoint client"""
import json

import httpx
import pytest

from caseflow.domain.errors import AutomationError
from caseflow.services.automation_client import AutomationClient
from caseflow.utils.logger import set_correlation_id


def make_client(handler, api_key="secret-key"):
    return AutomationClient(
        base_url="http://automation.internal/",
        api_key=api_key,
        timeout=2.0,
        transport=httpx.MockTransport(handler)
    )


def test_posts_payload_and_returns_json():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        seen["auth"] = request.headers.get("Authorization")
        seen["correlation"] = request.headers.get("X-Correlation-Id")
        return httpx.Response(200, json={"pd_score": 0.12})

    set_correlation_id("corr-123")
    result = make_client(handler).call("tenant_acme", "CASE-1", "ai/score", {"model": "credit_risk_v1"})

    assert result == {"pd_score": 0.12}
    assert seen["url"] == "http://automation.internal/ai/score"
    assert seen["body"] == {
        "tenant_id": "tenant_acme",
        "case_id": "CASE-1",
        "params": {"model": "credit_risk_v1"}
    }
    assert seen["auth"] == "Bearer secret-key"
    assert seen["correlation"] == "corr-123"


def test_no_auth_header_without_api_key():
    def handler(request: httpx.Request) -> httpx.Response:
        assert "Authorization" not in request.headers
        return httpx.Response(204)

    assert make_client(handler, api_key="").call("t", "c", "ai/parse") is None


def test_error_status_raises_automation_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="model warming up")

    with pytest.raises(AutomationError) as exc_info:
        make_client(handler).call("tenant_acme", "CASE-1", "ai/score")

    assert exc_info.value.details["status_code"] == 503
    assert exc_info.value.error_code == "AUTOMATION_FAILURE"
    assert exc_info.value.http_status == 502


def test_transport_failure_raises_automation_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(AutomationError):
        make_client(handler).call("tenant_acme", "CASE-1", "ai/score")


def test_non_json_body_is_returned_as_text():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="queued")

    assert make_client(handler).call("tenant_acme", "CASE-1", "ai/parse") == "queued"
