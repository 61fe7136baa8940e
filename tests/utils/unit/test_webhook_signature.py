import hashlib
import hmac

import pytest

from utils.webhook_signature import verify_webhook_signature

SECRET = "identity_webhook_secret_for_tests_0123456789"
PAYLOAD = b'{"type": "user.created", "data": {"id": "user_2new"}}'


def hex_digest(algorithm, payload=PAYLOAD, secret=SECRET):
    return hmac.new(secret.encode("utf-8"), payload, algorithm).hexdigest()


class TestVerifyWebhookSignature:

    def test_sha256_prefixed(self):
        assert verify_webhook_signature(PAYLOAD, f"sha256={hex_digest(hashlib.sha256)}", SECRET)

    def test_bare_sha256(self):
        assert verify_webhook_signature(PAYLOAD, hex_digest(hashlib.sha256), SECRET)

    def test_sha1_prefixed_rejected(self):
        assert not verify_webhook_signature(PAYLOAD, f"sha1={hex_digest(hashlib.sha1)}", SECRET)

    def test_bare_sha1_rejected(self):
        assert not verify_webhook_signature(PAYLOAD, hex_digest(hashlib.sha1), SECRET)

    def test_modified_payload(self):
        signature = f"sha256={hex_digest(hashlib.sha256)}"

        assert not verify_webhook_signature(PAYLOAD + b" ", signature, SECRET)

    @pytest.mark.parametrize("signature,secret", [(None, SECRET), ("", SECRET), ("sha256=abc", "")])
    def test_missing_values(self, signature, secret):
        assert not verify_webhook_signature(PAYLOAD, signature, secret)

    def test_non_ascii_signature(self):
        assert not verify_webhook_signature(PAYLOAD, "sha256=ü", SECRET)
