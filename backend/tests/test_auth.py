import httpx
import pytest
import respx
from httpx import Response

from fakes import EchoVerifier
from mealgen.api import deps
from mealgen.errors import AuthenticationError, ServiceUnavailableError
from mealgen.services.auth import CallerVerifier

BASE_URL = "https://auth.example.com"


def _verifier():
    return CallerVerifier(base_url=BASE_URL, api_key="anon-key", timeout_s=1)


@respx.mock
def test_verify_returns_user_id():
    route = respx.get(f"{BASE_URL}/auth/v1/user").mock(return_value=Response(200, json={"id": "user-123"}))
    assert _verifier().verify("token-abc") == "user-123"
    request = route.calls.last.request
    assert request.headers["Authorization"] == "Bearer token-abc"
    assert request.headers["apikey"] == "anon-key"


@respx.mock
def test_verify_rejects_invalid_token():
    respx.get(f"{BASE_URL}/auth/v1/user").mock(return_value=Response(401, json={"msg": "invalid JWT"}))
    with pytest.raises(AuthenticationError):
        _verifier().verify("expired")


@respx.mock
def test_verify_provider_outage():
    respx.get(f"{BASE_URL}/auth/v1/user").mock(return_value=Response(502))
    with pytest.raises(ServiceUnavailableError):
        _verifier().verify("token-abc")


@respx.mock
def test_verify_unreachable_provider():
    respx.get(f"{BASE_URL}/auth/v1/user").mock(side_effect=httpx.ConnectError("refused"))
    with pytest.raises(ServiceUnavailableError):
        _verifier().verify("token-abc")


def test_verify_requires_token():
    with pytest.raises(AuthenticationError):
        _verifier().verify("")


@pytest.mark.parametrize("header", ["Bearer token-abc", "bearer token-abc", "BEARER   token-abc "])
def test_bearer_scheme_is_case_insensitive(monkeypatch, header):
    verifier = EchoVerifier()
    monkeypatch.setattr(deps, "caller_verifier", verifier)
    assert deps.get_caller_id(header) == "token-abc"
    assert verifier.tokens == ["token-abc"]


@pytest.mark.parametrize("header", [None, "", "Bearer", "Bearer   ", "Token token-abc", "token-abc"])
def test_missing_or_foreign_scheme_is_rejected(monkeypatch, header):
    verifier = EchoVerifier()
    monkeypatch.setattr(deps, "caller_verifier", verifier)
    with pytest.raises(AuthenticationError):
        deps.get_caller_id(header)
    assert verifier.tokens == []
