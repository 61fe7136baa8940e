import hmac
import hashlib
import logging

logger = logging.getLogger(__name__)


def verify_webhook_signature(payload: bytes, signature: str | None, secret: str) -> bool:
    """
    Verify a hex HMAC-SHA256 signature of a raw webhook body.

    Accepts "sha256=<hex>" or a bare hex digest. Any other algorithm prefix fails.
    """
    if not signature or not secret:
        return False

    try:
        expected_signature = hmac.new(secret.encode('utf-8'), payload, hashlib.sha256).hexdigest()
        if signature.startswith('sha256='):
            return hmac.compare_digest(f"sha256={expected_signature}", signature)
        return hmac.compare_digest(expected_signature, signature)

    except (TypeError, ValueError) as e:
        logger.error(f"Error verifying webhook signature: {str(e)}")
        return False
