# okta_setup/exceptions.py
"""
Custom exceptions for the Okta project setup tooling.
"""

from typing import Any


class SetupError(Exception):
    """Base exception for all setup errors."""

    error_code = "setup_error"

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


# Configuration exceptions
class ClientConfigurationError(SetupError):
    """Raised when configuration is missing, malformed or unsupported."""

    error_code = "config_error"


class UserCancelledError(ClientConfigurationError):
    """Raised when the user declines to overwrite an existing configuration."""

    error_code = "user_cancelled"


class UnsupportedConfigFormatError(ClientConfigurationError):
    """Raised for configuration files with an unknown extension."""

    error_code = "unsupported_config_format"

    def __init__(self, path: Any):
        super().__init__(f"Unsupported config file type: {path}", {"path": str(path)})
        self.path = path


# Remote exceptions
class RestError(SetupError):
    """Raised when the remote API rejects a request."""

    error_code = "rest_error"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        remote_error_code: str | None = None,
        body: str | None = None,
    ):
        details = {
            "status_code": status_code,
            "remote_error_code": remote_error_code,
        }
        super().__init__(message, details)
        self.status_code = status_code
        self.remote_error_code = remote_error_code
        self.body = body


class FactorVerificationError(RestError):
    """Raised when an organization verification code is rejected."""

    error_code = "factor_verification_failed"
