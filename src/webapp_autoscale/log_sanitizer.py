"""Log sanitization for error messages.

Azure SDK exceptions can echo request details back into their message. Every
error logged by the sample passes through LogSanitizer so that the service
principal secret and bearer tokens never reach the console.

Redacts:
- client_secret / CLIENT_SECRET assignments
- Authorization: Bearer headers and access_token assignments
- Literal secret values known to the caller (e.g. the CLIENT_SECRET value)
"""

import re
from collections.abc import Iterable
from re import Pattern


class LogSanitizer:
    """Sanitize sensitive data from log and error messages.

    All methods are class methods and can be called without instantiation.
    """

    REDACTED = "[REDACTED]"

    # Order matters: more specific patterns should come first
    SECRET_PATTERNS: dict[str, Pattern] = {
        "client_secret_env": re.compile(
            r"((?:AZURE_)?CLIENT_SECRET[\"']?\s*[:=]\s*[\"']?)([^\s\"'&,\)]+)",
        ),
        "client_secret_assignment": re.compile(
            r'(client[_-]?secret["\']?\s*[:=]\s*["\']?)([^\s"\'&,\)]+)',
            re.IGNORECASE,
        ),
        "authorization_bearer": re.compile(r"(Authorization:\s*Bearer\s+)([^\s]+)", re.IGNORECASE),
        "access_token": re.compile(
            r'(access[_-]?token["\']?\s*[:=]\s*["\']?)([^\s"\'&,\)]+)',
            re.IGNORECASE,
        ),
        "password": re.compile(r'(password["\']?\s*[:=]\s*["\']?)([^\s"\'&,\)]+)', re.IGNORECASE),
    }

    @classmethod
    def sanitize(cls, message: str, secrets: Iterable[str] = ()) -> str:
        """Sanitize message by redacting sensitive patterns.

        Args:
            message: The message to sanitize
            secrets: Literal secret values to redact wherever they appear

        Returns:
            Sanitized message

        Examples:
            >>> LogSanitizer.sanitize("client_secret=abc123")
            'client_secret=[REDACTED]'
            >>> LogSanitizer.sanitize("token rejected: abc123", secrets=["abc123"])
            'token rejected: [REDACTED]'
        """
        if not isinstance(message, str):
            message = str(message)

        result = message
        # Longest first so a secret containing another is fully masked
        for secret in sorted((s for s in secrets if s), key=len, reverse=True):
            result = result.replace(secret, cls.REDACTED)

        for pattern in cls.SECRET_PATTERNS.values():
            result = pattern.sub(r"\1" + cls.REDACTED, result)

        return result

    @classmethod
    def sanitize_exception(cls, exc: BaseException, secrets: Iterable[str] = ()) -> str:
        """Sanitize exception message, prefixed with the exception type."""
        return f"{type(exc).__name__}: {cls.sanitize(str(exc), secrets)}"

    @classmethod
    def create_safe_error_message(
        cls, error: BaseException, context: str = "", secrets: Iterable[str] = ()
    ) -> str:
        """Create error message with secrets sanitized.

        Examples:
            >>> err = ValueError("Auth failed with client_secret=abc123")
            >>> LogSanitizer.create_safe_error_message(err, "Authentication")
            'Authentication: ValueError: Auth failed with client_secret=[REDACTED]'
        """
        sanitized_msg = cls.sanitize_exception(error, secrets)
        if context:
            return f"{context}: {sanitized_msg}"
        return sanitized_msg
