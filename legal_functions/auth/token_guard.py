"""
Caller identity from Supabase bearer tokens.

Claims are read without verifying the signature. The resulting user id only
attributes saved tool results to a lawyer; it never grants access.
"""
import base64
import binascii
import json
import time
import logging
from typing import Optional

logger = logging.getLogger(__name__)

BEARER_PREFIX = 'bearer '


def _decode_jwt_payload(token: str) -> dict:
    """
    Decode the claims segment of a JWT.

    Args:
        token: header.payload.signature

    Returns:
        Claims dictionary.

    Raises:
        ValueError: If the token is not a three-part JWT or its claims are not a JSON object.
    """
    segments = token.split('.')
    if len(segments) != 3:
        raise ValueError("Invalid JWT format: expected 3 parts separated by dots")

    claims_b64 = segments[1]
    claims_b64 += '=' * (-len(claims_b64) % 4)

    try:
        claims = json.loads(base64.urlsafe_b64decode(claims_b64))
    except (binascii.Error, ValueError, UnicodeDecodeError) as e:
        logger.debug(f"Undecodable JWT claims: {e}")
        raise ValueError(f"Invalid JWT token: {e}")

    if not isinstance(claims, dict):
        raise ValueError("Invalid JWT token: claims are not an object")

    return claims


def get_token_info(token: str) -> dict:
    """
    Summarize the identity and lifetime claims of a token.

    Returns:
        sub, role, exp, iat, remaining_seconds and is_expired; an `error`
        key is added when the token cannot be decoded.
    """
    try:
        claims = _decode_jwt_payload(token)
        exp = claims.get('exp')
        if exp is not None and (isinstance(exp, bool) or not isinstance(exp, (int, float))):
            raise ValueError(f"Invalid JWT token: exp claim is not a number ({exp!r})")
    except ValueError as e:
        return {
            'sub': None,
            'role': None,
            'exp': None,
            'iat': None,
            'remaining_seconds': None,
            'is_expired': True,
            'error': str(e),
        }

    remaining = exp - time.time() if exp else None

    return {
        'sub': claims.get('sub'),
        'role': claims.get('role'),
        'exp': exp,
        'iat': claims.get('iat'),
        'remaining_seconds': remaining,
        'is_expired': remaining is None or remaining < 0,
    }


def get_request_user_id(authorization_header: Optional[str]) -> Optional[str]:
    """
    Resolve the lawyer id (`sub` claim) from an Authorization header.

    Args:
        authorization_header: "Bearer <jwt>" or a bare token.

    Returns:
        The user id, or None for missing, malformed, expired or subject-less tokens.
    """
    token = (authorization_header or '').strip()
    if token.lower().startswith(BEARER_PREFIX):
        token = token[len(BEARER_PREFIX):].strip()

    if not token:
        return None

    info = get_token_info(token)
    if 'error' in info:
        logger.debug("Ignoring undecodable bearer token")
        return None

    if info['is_expired']:
        logger.warning("Ignoring expired bearer token")
        return None

    return info['sub']
