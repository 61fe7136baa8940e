"""Security Headers Middleware

Adds security headers to HTTP responses to protect against common web vulnerabilities.

The storefront page calls this API from the browser, so the headers are worth
enabling in production (SECURITY_HEADERS_ENABLED=true).
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
import config


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware that adds security headers to all HTTP responses."""

    async def dispatch(self, request: Request, call_next) -> Response:
        """Process request and add security headers to response.

        Args:
            request: Incoming HTTP request
            call_next: Next middleware/handler in chain

        Returns:
            Response with security headers added
        """
        response = await call_next(request)

        if not config.SECURITY_HEADERS_ENABLED:
            return response

        # X-Content-Type-Options: Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"

        # X-Frame-Options: Prevent clickjacking attacks
        response.headers["X-Frame-Options"] = "DENY"

        # Strict-Transport-Security: Force HTTPS connections
        # Only add if serving over HTTPS
        if config.HSTS_ENABLED:
            # max-age: 31536000 seconds = 1 year
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )

        # Referrer-Policy: Control referrer information
        response.headers["Referrer-Policy"] = "no-referrer-when-downgrade"

        # Content-Security-Policy: JSON API, nothing to render or embed
        response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"

        return response
