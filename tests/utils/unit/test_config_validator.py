from types import SimpleNamespace

import pytest

from enums.runtime_environment import RuntimeEnvironment
from utils.config_validator import ConfigValidationError, validate_or_exit, validate_startup_config


@pytest.fixture
def valid_config():
    return SimpleNamespace(
        RUNTIME_ENVIRONMENT=RuntimeEnvironment.DEV,
        STRIPE_SECRET_KEY="sk_test_storefront0123456789",
        STRIPE_WEBHOOK_SECRET="whsec_storefront_test_secret_0123456789",
        IDENTITY_SIGNING_SECRET="a" * 32,
        IDENTITY_WEBHOOK_SECRET="b" * 32,
        DB_URL="sqlite+aiosqlite:///data/storefront.db",
        CHECKOUT_SUCCESS_URL="http://localhost:3000/checkout/success",
        CHECKOUT_CANCEL_URL="http://localhost:3000/checkout/cancel",
    )


class TestStartupConfig:

    def test_valid_dev_config(self, valid_config):
        validate_startup_config(valid_config)

    def test_publishable_key_rejected(self, valid_config):
        valid_config.STRIPE_SECRET_KEY = "pk_test_storefront0123456789"

        with pytest.raises(ConfigValidationError, match="STRIPE_SECRET_KEY"):
            validate_startup_config(valid_config)

    def test_webhook_secret_prefix_required(self, valid_config):
        valid_config.STRIPE_WEBHOOK_SECRET = "storefront_test_secret"

        with pytest.raises(ConfigValidationError, match="whsec_"):
            validate_startup_config(valid_config)

    def test_short_identity_secret_rejected(self, valid_config):
        valid_config.IDENTITY_SIGNING_SECRET = "short"

        with pytest.raises(ConfigValidationError, match="too weak"):
            validate_startup_config(valid_config)

    def test_prod_requires_https_redirects(self, valid_config):
        valid_config.RUNTIME_ENVIRONMENT = RuntimeEnvironment.PROD

        with pytest.raises(ConfigValidationError, match="https"):
            validate_startup_config(valid_config)

    def test_exit_on_invalid_config(self, valid_config):
        valid_config.STRIPE_SECRET_KEY = ""

        with pytest.raises(SystemExit) as exc_info:
            validate_or_exit(valid_config)

        assert exc_info.value.code == 1
