"""Session token exchange against the FarmBot web API.

``create_token`` trades an account's email and password for an encoded
JWT. ``decode_token`` reads the broker details the device session needs
out of that JWT without verifying its signature.
"""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Optional

import httpx
import orjson
from pydantic import BaseModel, ValidationError

from farmbot_bounce.errors import TokenDecodeError, TokenExchangeError
from farmbot_bounce.logging import redact_token

logger = logging.getLogger("farmbot-bounce.tokens")

TOKEN_PATH = "/api/tokens"


class EncodedToken(BaseModel):
    encoded: str


class TokenResponse(BaseModel):
    """Body returned by ``POST /api/tokens``; only the encoded JWT is used."""

    token: EncodedToken


class TokenClaims(BaseModel):
    """Claims carried by a FarmBot session token."""

    bot: str
    mqtt: str
    mqtt_ws: Optional[str] = None
    jti: Optional[str] = None
    iss: Optional[str] = None
    exp: Optional[int] = None


def token_url(server: str) -> str:
    return server.rstrip("/") + TOKEN_PATH


async def create_token(
    email: str,
    password: str,
    server: str,
    *,
    timeout: float = 30.0,
    client: httpx.AsyncClient | None = None,
) -> str:
    """Perform one ``POST {server}/api/tokens`` and return the encoded token.

    Any transport failure, error status or unexpected body is raised as
    TokenExchangeError. There is no retry.
    """
    url = token_url(server)
    payload = {"user": {"email": email, "password": password}}
    logger.info("token.request", extra={"url": url, "email": email})

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=timeout) as owned:
                resp = await owned.post(url, json=payload)
        else:
            resp = await client.post(url, json=payload)
        resp.raise_for_status()
        parsed = TokenResponse.model_validate(resp.json())
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        logger.error("token.rejected", extra={"url": url, "status": status, "body": exc.response.text})
        raise TokenExchangeError(f"Token request failed with status {status}") from exc
    except httpx.HTTPError as exc:
        raise TokenExchangeError(f"Token request to {url} failed: {exc}") from exc
    except (ValueError, ValidationError) as exc:
        raise TokenExchangeError(f"Unexpected token response from {url}") from exc

    encoded = parsed.token.encoded
    logger.info("GOT TOKEN: %s", redact_token(encoded))
    return encoded


def _b64url_decode(segment: str) -> bytes:
    padding = "=" * (-len(segment) % 4)
    return base64.urlsafe_b64decode(segment + padding)


def decode_token(encoded: str) -> TokenClaims:
    """Read the claims from the payload segment of a JWT."""
    parts = encoded.split(".")
    if len(parts) != 3:
        raise TokenDecodeError("Session token is not a JWT (expected three segments)")
    try:
        claims = orjson.loads(_b64url_decode(parts[1]))
    except (binascii.Error, ValueError) as exc:
        raise TokenDecodeError("Session token payload is not valid base64 JSON") from exc
    try:
        return TokenClaims.model_validate(claims)
    except ValidationError as exc:
        raise TokenDecodeError("Session token is missing broker claims") from exc


__all__ = [
    "TOKEN_PATH",
    "TokenClaims",
    "TokenResponse",
    "create_token",
    "decode_token",
    "token_url",
]
