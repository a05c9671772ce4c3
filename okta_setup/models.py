"""Data model shared by the setup services.

Remote payloads use camelCase; the pydantic models accept both the remote
alias and the python field name.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class OrganizationRequest(BaseModel):
    """Details needed to create a new Okta organization."""

    model_config = ConfigDict(
        frozen=True, populate_by_name=True, alias_generator=to_camel
    )

    first_name: str = Field(..., min_length=1)
    last_name: str = Field(default="")
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+$")
    country: str | None = Field(default=None)

    def to_payload(self) -> dict[str, str]:
        return self.model_dump(by_alias=True, exclude_none=True)


class OrganizationResponse(BaseModel):
    """Result of organization creation or verification.

    A freshly created organization only carries its ``id``; ``org_url`` and
    ``api_token`` are populated once the verification code is accepted.
    """

    model_config = ConfigDict(
        frozen=True, populate_by_name=True, alias_generator=to_camel, extra="ignore"
    )

    id: str
    org_url: str | None = None
    email: str | None = None
    api_token: str | None = None
    update_password_url: str | None = None

    @property
    def identifier(self) -> str:
        return self.id

    @property
    def is_verified(self) -> bool:
        return bool(self.org_url and self.api_token)


class ClientConfiguration(BaseModel):
    """Okta SDK client settings as resolved from yaml files and environment."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    base_url: str | None = None
    api_token: str | None = None
    authorization_mode: str = "SSWS"


class ApplicationType(str, Enum):
    """OIDC application variants."""

    WEB = "web"
    NATIVE = "native"
    BROWSER = "browser"
    SERVICE = "service"


@dataclass(frozen=True)
class OidcClientCredentials:
    client_id: str
    client_secret: str | None = None
    app_id: str | None = None


@dataclass(frozen=True)
class OidcApplicationResult:
    """Outcome of ``SetupService.create_oidc_application``."""

    client_id: str | None
    created: bool
    issuer_uri: str | None = None
    group_claim_name: str | None = None
    group_claim_error: str | None = None

    @property
    def group_claim_created(self) -> bool:
        return bool(self.group_claim_name) and self.group_claim_error is None


@runtime_checkable
class RegistrationQuestions(Protocol):
    """Answers needed while registering an organization.

    Implementations may block waiting for user input.
    """

    def get_organization_request(self) -> OrganizationRequest: ...

    def get_verification_code(self) -> str: ...

    def is_overwrite_config(self) -> bool: ...
