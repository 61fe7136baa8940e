"""
Configuration Validation Module

Validates critical configuration values at startup to fail-fast
with clear error messages instead of runtime failures.
"""

import sys
from typing import Optional

from enums.runtime_environment import RuntimeEnvironment


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""
    pass


def validate_stripe_secret_key(secret_key: Optional[str]) -> None:
    """
    Validate the payment gateway API key.

    Args:
        secret_key: STRIPE_SECRET_KEY value

    Raises:
        ConfigValidationError: If key is missing or not a secret/restricted key
    """
    if not secret_key or len(secret_key.strip()) == 0:
        raise ConfigValidationError(
            "STRIPE_SECRET_KEY is required and must not be empty!\n"
            "Get your secret key from the Stripe dashboard (Developers > API keys).\n"
            "Add to .env: STRIPE_SECRET_KEY=sk_test_..."
        )

    if not secret_key.startswith(("sk_", "rk_")):
        raise ConfigValidationError(
            "STRIPE_SECRET_KEY must be a secret (sk_...) or restricted (rk_...) key.\n"
            "Publishable keys (pk_...) cannot create checkout sessions."
        )


def validate_stripe_webhook_secret(webhook_secret: Optional[str]) -> None:
    """
    Validate the payment webhook signing secret.

    Args:
        webhook_secret: STRIPE_WEBHOOK_SECRET value

    Raises:
        ConfigValidationError: If secret is missing or malformed
    """
    if not webhook_secret or len(webhook_secret.strip()) == 0:
        raise ConfigValidationError(
            "STRIPE_WEBHOOK_SECRET is required and must not be empty!\n"
            "This secret is used to verify payment webhook signatures.\n"
            "Add to .env: STRIPE_WEBHOOK_SECRET=whsec_..."
        )

    if not webhook_secret.startswith("whsec_"):
        raise ConfigValidationError(
            "STRIPE_WEBHOOK_SECRET must start with 'whsec_'.\n"
            "Copy the signing secret of your webhook endpoint from the Stripe dashboard."
        )


def validate_shared_secret(secret: Optional[str], name: str) -> None:
    """
    Validate an HMAC secret shared with the identity provider.

    Args:
        secret: The secret value
        name: Name of the config variable

    Raises:
        ConfigValidationError: If secret is missing or too weak
    """
    if not secret or len(secret.strip()) == 0:
        raise ConfigValidationError(
            f"{name} is required and must not be empty!\n"
            "Generate a secure secret with: openssl rand -hex 32\n"
            f"Add to .env: {name}=<your-generated-secret>"
        )

    if len(secret) < 32:
        raise ConfigValidationError(
            f"{name} is too weak (length: {len(secret)}, minimum: 32)!\n"
            "Generate a secure secret with: openssl rand -hex 32"
        )


def validate_required_config(value: Optional[str], name: str, example: str = "") -> None:
    """
    Validate that a required config value is set.

    Args:
        value: The config value to check
        name: Name of the config variable
        example: Optional example value to show in error message

    Raises:
        ConfigValidationError: If value is missing
    """
    if not value:
        error_msg = f"{name} is required but not set!"
        if example:
            error_msg += f"\nAdd to .env: {name}={example}"
        raise ConfigValidationError(error_msg)


def validate_startup_config(config_module) -> None:
    """
    Validate all critical configuration at startup.

    Args:
        config_module: The config module to validate

    Raises:
        ConfigValidationError: If any validation fails
    """
    validate_stripe_secret_key(getattr(config_module, 'STRIPE_SECRET_KEY', None))
    validate_stripe_webhook_secret(getattr(config_module, 'STRIPE_WEBHOOK_SECRET', None))

    validate_shared_secret(getattr(config_module, 'IDENTITY_SIGNING_SECRET', None), 'IDENTITY_SIGNING_SECRET')
    validate_shared_secret(getattr(config_module, 'IDENTITY_WEBHOOK_SECRET', None), 'IDENTITY_WEBHOOK_SECRET')

    validate_required_config(getattr(config_module, 'DB_URL', None), 'DB_URL',
                             'sqlite+aiosqlite:///data/storefront.db')

    if getattr(config_module, 'RUNTIME_ENVIRONMENT', None) == RuntimeEnvironment.PROD:
        for name in ('CHECKOUT_SUCCESS_URL', 'CHECKOUT_CANCEL_URL'):
            url = getattr(config_module, name, None)
            validate_required_config(url, name, 'https://shop.example.com/checkout')
            if not url.startswith("https://"):
                raise ConfigValidationError(f"{name} must use https:// in PROD (got: {url})")


def validate_or_exit(config_module) -> None:
    """
    Validate configuration and exit with error code 1 if validation fails.

    This is the main entry point for startup validation.

    Args:
        config_module: The config module to validate
    """
    try:
        validate_startup_config(config_module)
    except ConfigValidationError as e:
        print(f"\n ERROR: Configuration Validation Failed\n", file=sys.stderr)
        print(str(e), file=sys.stderr)
        print("\nStartup aborted. Please fix configuration and try again.\n", file=sys.stderr)
        sys.exit(1)
