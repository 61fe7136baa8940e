"""
Identity assertion validation utility.

The identity provider hands the storefront a signed assertion for the signed-in
user, sent on every API call in the X-Identity-Token header:

    user_id=user_2abc&auth_date=1718000000&hash=<hex hmac>

Security features:
- HMAC-SHA256 signature verification
- Replay attack protection (timestamp validation)
- User ID extraction and verification
"""

import hmac
import hashlib
import time
from urllib.parse import parse_qsl, urlencode
from typing import Dict, Optional
import logging

logger = logging.getLogger(__name__)


class IdentityValidationError(Exception):
    """Raised when identity assertion validation fails."""
    pass


def _secret_key(signing_secret: str) -> bytes:
    # Secret = HMAC_SHA256(signing_secret, "IdentityData")
    return hmac.new(
        key=b"IdentityData",
        msg=signing_secret.encode('utf-8'),
        digestmod=hashlib.sha256
    ).digest()


def _data_check_string(fields: Dict[str, str]) -> str:
    # Alphabetically sorted key=value pairs
    return '\n'.join(f"{k}={v}" for k, v in sorted(fields.items()))


def sign_identity_token(user_id: str, signing_secret: str, auth_date: Optional[int] = None) -> str:
    """
    Build a signed assertion for user_id.

    This is the provider side of the handshake, used by local tooling and tests.
    """
    fields = {"user_id": user_id, "auth_date": str(auth_date if auth_date is not None else int(time.time()))}
    fields["hash"] = hmac.new(
        key=_secret_key(signing_secret),
        msg=_data_check_string(fields).encode('utf-8'),
        digestmod=hashlib.sha256
    ).hexdigest()
    return urlencode(fields)


def validate_identity_token(
    token: str,
    signing_secret: str,
    max_age_seconds: int = 3600
) -> Dict[str, str]:
    """
    Validates the identity assertion HMAC signature.

    Args:
        token: Raw assertion from the X-Identity-Token header
        signing_secret: Secret shared with the identity provider
        max_age_seconds: Maximum age of the assertion (default: 1 hour)

    Returns:
        Dict containing validated fields (user_id, auth_date, ...)

    Raises:
        IdentityValidationError: If validation fails

    Example:
        >>> data = validate_identity_token(
        ...     token=request.headers['X-Identity-Token'],
        ...     signing_secret=config.IDENTITY_SIGNING_SECRET
        ... )
        >>> user_id = extract_user_id(data)
    """
    if not token:
        raise IdentityValidationError("No identity token provided")

    if not signing_secret:
        raise IdentityValidationError("Identity signing secret not configured")

    try:
        parsed = dict(parse_qsl(token, keep_blank_values=True, strict_parsing=True))
    except ValueError as e:
        raise IdentityValidationError(f"Failed to parse identity token: {e}")

    received_hash = parsed.pop('hash', None)
    if not received_hash:
        raise IdentityValidationError("No hash in identity token")

    # Check timestamp to prevent replay attacks
    try:
        auth_date = int(parsed.get('auth_date', 0))
    except (ValueError, TypeError):
        raise IdentityValidationError("Invalid auth_date")

    age_seconds = time.time() - auth_date
    if age_seconds > max_age_seconds:
        raise IdentityValidationError(
            f"Identity token too old ({int(age_seconds)}s > {max_age_seconds}s max)"
        )

    if age_seconds < -60:  # Allow 60s clock skew
        raise IdentityValidationError("Identity token timestamp is in the future")

    expected_hash = hmac.new(
        key=_secret_key(signing_secret),
        msg=_data_check_string(parsed).encode('utf-8'),
        digestmod=hashlib.sha256
    ).hexdigest()

    # Constant-time comparison to prevent timing attacks
    if not hmac.compare_digest(expected_hash, received_hash):
        logger.warning(
            f"Identity signature mismatch | "
            f"Expected: {expected_hash[:16]}... | "
            f"Received: {received_hash[:16]}..."
        )
        raise IdentityValidationError("Invalid signature")

    return parsed


def extract_user_id(validated_data: Dict[str, str]) -> str:
    """
    Extracts the identity provider user id from a validated assertion.

    Raises:
        IdentityValidationError: If user id is missing
    """
    user_id = (validated_data.get('user_id') or '').strip()
    if not user_id:
        raise IdentityValidationError("No user_id in identity token")
    return user_id
