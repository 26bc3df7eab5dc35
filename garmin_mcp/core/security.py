import base64
import hashlib
import hmac
import logging
from typing import Optional

from fastapi import HTTPException, Request

from garmin_mcp.core.config import settings

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Garmin-Signature"


# Verifies the agent client's bearer token on every /mcp route
def require_mcp_token(request: Request) -> None:
    token = settings.MCP_API_TOKEN
    if not token:
        logger.warning("mcp.auth: MCP_API_TOKEN is not set; rejecting request")
        raise HTTPException(status_code=401, detail="unauthorized")

    auth_header = request.headers.get("Authorization") or ""
    if not hmac.compare_digest(auth_header.encode(), f"Bearer {token}".encode()):
        raise HTTPException(status_code=401, detail="unauthorized")


def sign_body(body: bytes, secret: str) -> str:
    digest = hmac.new(secret.encode(), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


# Base64 HMAC-SHA256 of the raw request body; no secret configured means no check
def verify_garmin_signature(body: bytes, signature: Optional[str], secret: Optional[str]) -> bool:
    if not secret:
        return True
    if not signature:
        return False
    return hmac.compare_digest(signature.encode(), sign_body(body, secret).encode())
