import base64
import hashlib
import hmac
import time

import pytest

from garmin_mcp.core import config
from garmin_mcp.core.security import sign_body, verify_garmin_signature
from garmin_mcp.rate_limiters import webhook_rate_limiter
from garmin_mcp.rate_limiters.webhook_rate_limiter import WebhookRateLimiter, get_webhook_rate_limiter

BODY = b'{"userId":"u1","steps":10}'


def test_sign_body_is_base64_hmac_sha256():
    expected = base64.b64encode(hmac.new(b"secret", BODY, hashlib.sha256).digest()).decode()
    assert sign_body(BODY, "secret") == expected


@pytest.mark.parametrize(
    "signature, secret, expected",
    [
        (None, None, True),
        ("anything", "", True),
        (None, "secret", False),
        ("", "secret", False),
        ("bm9wZQ==", "secret", False),
    ],
)
def test_verify_garmin_signature(signature, secret, expected):
    assert verify_garmin_signature(BODY, signature, secret) is expected


def test_verify_garmin_signature_accepts_valid_signature():
    assert verify_garmin_signature(BODY, sign_body(BODY, "secret"), "secret")
    assert not verify_garmin_signature(BODY + b" ", sign_body(BODY, "secret"), "secret")


def test_bearer_token_unset_rejects_everything(anon_client, monkeypatch):
    monkeypatch.setattr(config.settings, "MCP_API_TOKEN", None)
    response = anon_client.get("/mcp/tools", headers={"Authorization": "Bearer "})
    assert response.status_code == 401
    assert response.json()["detail"] == "unauthorized"


def test_rate_limiter_denies_after_max_requests():
    limiter = WebhookRateLimiter(max_requests=2, window_seconds=60)

    assert limiter.check("1.2.3.4").allowed
    assert limiter.check("1.2.3.4").allowed

    denied = limiter.check("1.2.3.4")
    assert not denied.allowed
    assert 0 <= denied.wait_seconds <= 60

    # other IPs have their own window
    assert limiter.check("5.6.7.8").allowed


def test_rate_limiter_window_slides():
    limiter = WebhookRateLimiter(max_requests=1, window_seconds=1)

    assert limiter.check("ip").allowed
    assert not limiter.check("ip").allowed

    time.sleep(1.2)
    assert limiter.check("ip").allowed


def test_rate_limiter_singleton_uses_settings(monkeypatch):
    monkeypatch.setattr(webhook_rate_limiter, "_singleton", None)
    monkeypatch.setattr(config.settings, "WEBHOOK_RATE_LIMIT_MAX", 3)

    limiter = get_webhook_rate_limiter()
    assert limiter.max_requests == 3
    assert get_webhook_rate_limiter() is limiter
