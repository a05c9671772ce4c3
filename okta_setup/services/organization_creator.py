"""Remote creation and verification of new Okta organizations."""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

from okta_setup.exceptions import FactorVerificationError, RestError
from okta_setup.models import OrganizationRequest, OrganizationResponse
from okta_setup.utils.logger import get_logger

from .rest_client import OktaRestClient

logger = get_logger(__name__)

# statuses the registration API uses for a wrong or expired passcode
INVALID_CODE_STATUSES = frozenset({400, 401, 403})

ClientFactory = Callable[[str], OktaRestClient]


class OrganizationCreator(Protocol):
    def create_new_org(
        self, api_base_url: str, request: OrganizationRequest
    ) -> OrganizationResponse: ...

    def verify_new_org(
        self, api_base_url: str, identifier: str, code: str
    ) -> OrganizationResponse: ...


class OktaOrganizationCreator:
    def __init__(
        self, timeout: float = 30.0, client_factory: ClientFactory | None = None
    ):
        self.timeout = timeout
        self._client_factory = client_factory or (
            lambda base_url: OktaRestClient(base_url, timeout=self.timeout)
        )

    def create_new_org(
        self, api_base_url: str, request: OrganizationRequest
    ) -> OrganizationResponse:
        with self._client_factory(api_base_url) as client:
            data = client.post("/create", request.to_payload())
        response = OrganizationResponse.model_validate(data)
        logger.info(
            "Organization registration started",
            event="okta_setup.org.created",
            identifier=response.identifier,
        )
        return response

    def verify_new_org(
        self, api_base_url: str, identifier: str, code: str
    ) -> OrganizationResponse:
        with self._client_factory(api_base_url) as client:
            try:
                data = client.post(f"/verify/{identifier}", {"verificationCode": code})
            except RestError as exc:
                if exc.status_code in INVALID_CODE_STATUSES:
                    raise FactorVerificationError(
                        "Invalid verification code",
                        status_code=exc.status_code,
                        remote_error_code=exc.remote_error_code,
                        body=exc.body,
                    ) from exc
                raise
        response = OrganizationResponse.model_validate(data)
        logger.info(
            "Organization verified",
            event="okta_setup.org.verified",
            identifier=identifier,
            org_url=response.org_url,
        )
        return response
