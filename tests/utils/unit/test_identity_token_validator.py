"""
Unit Tests: identity assertion validation (X-Identity-Token)
"""

import time

import pytest

from conftest import TEST_IDENTITY_SIGNING_SECRET
from utils.identity_token_validator import (
    IdentityValidationError,
    extract_user_id,
    sign_identity_token,
    validate_identity_token,
)


class TestValidateIdentityToken:

    def test_valid_token(self):
        token = sign_identity_token("user_2shopper", TEST_IDENTITY_SIGNING_SECRET)

        data = validate_identity_token(token, TEST_IDENTITY_SIGNING_SECRET)

        assert extract_user_id(data) == "user_2shopper"

    def test_wrong_secret(self):
        token = sign_identity_token("user_2shopper", "some_other_secret_some_other_secret")

        with pytest.raises(IdentityValidationError, match="Invalid signature"):
            validate_identity_token(token, TEST_IDENTITY_SIGNING_SECRET)

    def test_swapped_user_id(self):
        token = sign_identity_token("user_2shopper", TEST_IDENTITY_SIGNING_SECRET)
        forged = token.replace("user_2shopper", "user_2victim")

        with pytest.raises(IdentityValidationError):
            validate_identity_token(forged, TEST_IDENTITY_SIGNING_SECRET)

    def test_expired_token(self):
        token = sign_identity_token("user_2shopper", TEST_IDENTITY_SIGNING_SECRET,
                                    auth_date=int(time.time()) - 7200)

        with pytest.raises(IdentityValidationError, match="too old"):
            validate_identity_token(token, TEST_IDENTITY_SIGNING_SECRET, max_age_seconds=3600)

    def test_future_token(self):
        token = sign_identity_token("user_2shopper", TEST_IDENTITY_SIGNING_SECRET,
                                    auth_date=int(time.time()) + 600)

        with pytest.raises(IdentityValidationError, match="future"):
            validate_identity_token(token, TEST_IDENTITY_SIGNING_SECRET)

    @pytest.mark.parametrize("token", ["", "garbage", "user_id=user_2shopper&auth_date=1"])
    def test_malformed_tokens(self, token):
        with pytest.raises(IdentityValidationError):
            validate_identity_token(token, TEST_IDENTITY_SIGNING_SECRET)

    def test_secret_not_configured(self):
        token = sign_identity_token("user_2shopper", TEST_IDENTITY_SIGNING_SECRET)

        with pytest.raises(IdentityValidationError):
            validate_identity_token(token, "")

    def test_blank_user_id(self):
        with pytest.raises(IdentityValidationError):
            extract_user_id({"user_id": "  ", "auth_date": "1"})
