# auth.py
import base64
import binascii
import logging
import os
import secrets
from typing import Optional, Tuple

from fastapi import Request
from fastapi.responses import PlainTextResponse

logger = logging.getLogger(__name__)

REALM = "Secure Area"


def parse_basic_auth(header: Optional[str]) -> Optional[Tuple[str, str]]:
    """Decode an `Authorization: Basic ...` header into (user, password)"""
    if not header:
        return None
    scheme, _, encoded = header.partition(" ")
    if scheme.lower() != "basic" or not encoded:
        return None
    try:
        decoded = base64.b64decode(encoded.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    user, sep, password = decoded.partition(":")
    if not sep:
        return None
    return user, password


def credentials_match(user: str, password: str) -> bool:
    expected_user = os.getenv("AUTH_USER")
    expected_pass = os.getenv("AUTH_PASS")
    if not expected_user or not expected_pass:
        # No credentials configured means nobody gets in
        return False
    user_ok = secrets.compare_digest(user.encode("utf-8"), expected_user.encode("utf-8"))
    pass_ok = secrets.compare_digest(password.encode("utf-8"), expected_pass.encode("utf-8"))
    return user_ok and pass_ok


def unauthorized() -> PlainTextResponse:
    return PlainTextResponse(
        "Unauthorized",
        status_code=401,
        headers={"WWW-Authenticate": f'Basic realm="{REALM}"'},
    )


async def basic_auth_gate(request: Request, call_next):
    credentials = parse_basic_auth(request.headers.get("authorization"))
    if credentials and credentials_match(*credentials):
        return await call_next(request)
    logger.info("Rejected unauthenticated request to %s", request.url.path)
    return unauthorized()
