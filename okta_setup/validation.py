"""Sanity checks for Okta configuration values.

These catch unset and copy-pasted placeholder values; they do not contact
the remote org.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlparse


@dataclass(frozen=True)
class ValidationResult:
    field: str
    message: str | None = None

    @property
    def is_valid(self) -> bool:
        return self.message is None


def _has_text(value: str | None) -> bool:
    return bool(value and value.strip())


def validate_client_id(client_id: str | None) -> ValidationResult:
    if not _has_text(client_id):
        return ValidationResult("client_id", "Your client ID is missing")
    if "{clientId}" in client_id or "{yourClientId}" in client_id:
        return ValidationResult(
            "client_id", "Replace {clientId} with the client ID of your application"
        )
    return ValidationResult("client_id")


def validate_api_token(api_token: str | None) -> ValidationResult:
    if not _has_text(api_token):
        return ValidationResult("token", "Your Okta API token is missing")
    if "{apiToken}" in api_token:
        return ValidationResult(
            "token", "Replace {apiToken} with your Okta API token"
        )
    return ValidationResult("token")


def validate_org_url(org_url: str | None) -> ValidationResult:
    if not _has_text(org_url):
        return ValidationResult("orgUrl", "Your Okta URL is missing")
    if "{yourOktaDomain}" in org_url:
        return ValidationResult(
            "orgUrl", "Replace {yourOktaDomain} with your Okta domain"
        )
    parsed = urlparse(org_url)
    if parsed.scheme != "https" or not parsed.hostname:
        return ValidationResult(
            "orgUrl", f"Your Okta URL must be an https URL, got: {org_url}"
        )
    hostname = parsed.hostname
    if "-admin." in hostname:
        return ValidationResult(
            "orgUrl", "Your Okta domain should not contain -admin"
        )
    if hostname.endswith(".com.com"):
        return ValidationResult(
            "orgUrl", "It looks like there's a typo in your Okta domain"
        )
    return ValidationResult("orgUrl")
