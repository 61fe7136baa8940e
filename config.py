import os

from dotenv import load_dotenv

from enums.currency import Currency
from enums.runtime_environment import RuntimeEnvironment

# Load .env but don't override existing environment variables
# This allows test scripts to set RUNTIME_ENVIRONMENT=TEST before import
load_dotenv(".env", override=False)

# Parse RUNTIME_ENVIRONMENT with clear error message on misconfiguration
try:
    _runtime_env_str = os.environ.get("RUNTIME_ENVIRONMENT")
    if not _runtime_env_str:
        raise ValueError("RUNTIME_ENVIRONMENT environment variable is not set")
    RUNTIME_ENVIRONMENT = RuntimeEnvironment(_runtime_env_str)
except ValueError as e:
    valid_values = [env.value for env in RuntimeEnvironment]
    import sys
    print(f"\n ERROR: Invalid RUNTIME_ENVIRONMENT configuration\n", file=sys.stderr)
    print(f"Reason: {e}", file=sys.stderr)
    print(f"Valid values: {', '.join(valid_values)}", file=sys.stderr)
    print(f"Current value: {os.environ.get('RUNTIME_ENVIRONMENT', '(not set)')}", file=sys.stderr)
    print(f"\nAdd to .env: RUNTIME_ENVIRONMENT={valid_values[0]}\n", file=sys.stderr)
    sys.exit(1)

WEBAPP_HOST = os.environ.get("WEBAPP_HOST", "0.0.0.0")
WEBAPP_PORT = int(os.environ.get("WEBAPP_PORT")) if os.environ.get("WEBAPP_PORT") else 8000

# Order store
# Any SQLAlchemy async URL works, sqlite+aiosqlite is the default
DB_URL = os.environ.get("DB_URL", "sqlite+aiosqlite:///data/storefront.db")
STORE_TIMEOUT_SECONDS = float(os.environ.get("STORE_TIMEOUT_SECONDS", "10"))

# Parse CURRENCY with error handling
try:
    _currency_str = os.environ.get("CURRENCY", "USD")
    CURRENCY = Currency(_currency_str)
except ValueError as e:
    valid_currencies = [c.value for c in Currency]
    import sys
    print(f"\n ERROR: Invalid CURRENCY configuration\n", file=sys.stderr)
    print(f"Reason: {e}", file=sys.stderr)
    print(f"Valid values: {', '.join(valid_currencies)}", file=sys.stderr)
    print(f"Current value: {os.environ.get('CURRENCY', '(not set)')}", file=sys.stderr)
    print(f"\nAdd to .env: CURRENCY={valid_currencies[0]}\n", file=sys.stderr)
    sys.exit(1)

# Payment Gateway (Stripe)
STRIPE_SECRET_KEY = os.environ.get("STRIPE_SECRET_KEY", "")
STRIPE_WEBHOOK_SECRET = os.environ.get("STRIPE_WEBHOOK_SECRET", "")
STRIPE_WEBHOOK_TOLERANCE_SECONDS = int(os.environ.get("STRIPE_WEBHOOK_TOLERANCE_SECONDS", "300"))
GATEWAY_TIMEOUT_SECONDS = float(os.environ.get("GATEWAY_TIMEOUT_SECONDS", "15"))

# Checkout Configuration
CHECKOUT_SUCCESS_URL = os.environ.get("CHECKOUT_SUCCESS_URL", "http://localhost:3000/checkout/success")
CHECKOUT_CANCEL_URL = os.environ.get("CHECKOUT_CANCEL_URL", "http://localhost:3000/checkout/cancel")
# Re-resolve unit prices from the catalog instead of trusting the client
CHECKOUT_VERIFY_PRICES = os.environ.get("CHECKOUT_VERIFY_PRICES", "false") == "true"
# Upper bound for a single checkout line quantity
MAX_LINE_QUANTITY = int(os.environ.get("MAX_LINE_QUANTITY", "999"))

# Retry Configuration (transient gateway/store failures)
MAX_RETRIES = int(os.environ.get("MAX_RETRIES", "3"))
RETRY_DELAY_BASE = float(os.environ.get("RETRY_DELAY_BASE", "0.1"))  # Base delay in seconds

# Identity Provider
IDENTITY_SIGNING_SECRET = os.environ.get("IDENTITY_SIGNING_SECRET", "")
IDENTITY_TOKEN_MAX_AGE_SECONDS = int(os.environ.get("IDENTITY_TOKEN_MAX_AGE_SECONDS", "3600"))
IDENTITY_WEBHOOK_SECRET = os.environ.get("IDENTITY_WEBHOOK_SECRET", "")

# Rate Limiting Configuration (disabled when REDIS_URL is empty)
REDIS_URL = os.environ.get("REDIS_URL", "")
MAX_CHECKOUTS_PER_USER_PER_HOUR = int(os.environ.get("MAX_CHECKOUTS_PER_USER_PER_HOUR", "10"))  # Prevent checkout spam

# Logging Configuration
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")  # DEBUG, INFO, WARNING, ERROR, CRITICAL
LOG_MASK_SECRETS = os.environ.get("LOG_MASK_SECRETS", "true") == "true"  # Mask sensitive data in logs

# Log Retention: Environment-specific defaults
# Dev: 30 days for debugging
# Prod: 5 days to save disk space
if RUNTIME_ENVIRONMENT == RuntimeEnvironment.DEV:
    LOG_RETENTION_DAYS = int(os.environ.get("LOG_RETENTION_DAYS", "30"))
else:
    LOG_RETENTION_DAYS = int(os.environ.get("LOG_RETENTION_DAYS", "5"))

# HTTP Security Configuration
SECURITY_HEADERS_ENABLED = os.environ.get("SECURITY_HEADERS_ENABLED", "false") == "true"  # Enable security headers
HSTS_ENABLED = os.environ.get("HSTS_ENABLED", "false") == "true"  # Enable HSTS (only for HTTPS)
CORS_ALLOWED_ORIGINS = os.environ.get("CORS_ALLOWED_ORIGINS", "").split(",") if os.environ.get("CORS_ALLOWED_ORIGINS") else []  # CORS allowed origins
