from __future__ import annotations

import hashlib
import hmac
from typing import Optional

from fastapi import Header, HTTPException, Request, status

from .settings import Settings

OUTBOUND_TOKEN_HEADER = "X-OUTBOUND-TOKEN"


# PUBLIC_INTERFACE
def sign(secret: str, body: bytes) -> str:
    """Hex HMAC-SHA256 of body keyed by the webhook secret, as used in X-OUTBOUND-TOKEN."""
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


# PUBLIC_INTERFACE
def get_webhook_signature_dependency(settings: Settings):
    """
    Return a FastAPI dependency callable that verifies the platform's
    X-OUTBOUND-TOKEN signature only when TODO_WEBHOOK_SECRET is configured.
    When no secret is configured, the dependency is a no-op.

    Behavior:
    - The expected token is the hex HMAC-SHA256 of the raw request body.
    - Missing or mismatching tokens raise 401.

    Usage:
        verify = get_webhook_signature_dependency(settings)
        @router.post("/webhook", dependencies=[Depends(verify)]) ...
    """
    secret: Optional[str] = settings.webhook_secret

    if not secret:
        async def _noop() -> None:  # noqa: D401 - trivial
            """No-op dependency (verification disabled)."""
            return None

        return _noop

    async def _enforce(
        request: Request,
        token: Optional[str] = Header(default=None, alias=OUTBOUND_TOKEN_HEADER),
    ) -> None:
        """
        Enforce the webhook signature.

        Raises:
            HTTPException(401) if the token is missing or does not match the body.
        """
        if not token:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Missing webhook signature",
            )

        body = await request.body()
        if not hmac.compare_digest(token, sign(secret, body)):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid webhook signature",
            )

    return _enforce
