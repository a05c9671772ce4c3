"""
Project setup orchestration.

``SetupService`` drives the end-to-end flow: register a new Okta
organization, verify it with the emailed passcode, store the issued
credentials, and provision an OIDC application whose settings are merged
into the project's configuration file.

No step rolls back remote state. An organization created before a later
failure stays registered; the caller is told what succeeded.
"""

from __future__ import annotations

import shutil
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

import requests

from okta_setup.config.property_sources import MutablePropertySource
from okta_setup.config.sdk_configuration import SdkConfigurationService
from okta_setup.config.settings import MANUAL_SIGNUP_URL, SetupSettings
from okta_setup.exceptions import (
    ClientConfigurationError,
    FactorVerificationError,
    RestError,
    UserCancelledError,
)
from okta_setup.models import (
    ApplicationType,
    ClientConfiguration,
    OidcApplicationResult,
    OidcClientCredentials,
    OrganizationResponse,
    RegistrationQuestions,
)
from okta_setup.progress import ProgressBar, create_progress_bar
from okta_setup.utils.logger import get_logger, logging_context
from okta_setup.validation import validate_client_id

from .authorization_server import AuthorizationServerService
from .oidc_app_creator import OidcAppCreator
from .organization_creator import OktaOrganizationCreator, OrganizationCreator
from .rest_client import OktaRestClient

logger = get_logger(__name__)

BACKUP_TIMESTAMP_FORMAT = "%Y%m%dT%H%M"

# every ApplicationType must have an entry here
APP_CREATORS: dict[ApplicationType, str] = {
    ApplicationType.WEB: "create_oidc_app",
    ApplicationType.NATIVE: "create_oidc_native_app",
    ApplicationType.BROWSER: "create_oidc_spa_app",
    ApplicationType.SERVICE: "create_oidc_service_app",
}
if set(APP_CREATORS) != set(ApplicationType):
    raise RuntimeError("APP_CREATORS does not cover every ApplicationType")


@dataclass(frozen=True)
class PropertyKeys:
    """Physical property names for the OIDC settings written to a project."""

    issuer_uri: str
    client_id: str
    client_secret: str

    @classmethod
    def for_registration(cls, spring_property_key: str | None = None) -> PropertyKeys:
        if spring_property_key:
            provider = f"spring.security.oauth2.client.provider.{spring_property_key}"
            registration = (
                f"spring.security.oauth2.client.registration.{spring_property_key}"
            )
            return cls(
                issuer_uri=f"{provider}.issuer-uri",
                client_id=f"{registration}.client-id",
                client_secret=f"{registration}.client-secret",
            )
        return cls(
            issuer_uri="okta.oauth2.issuer",
            client_id="okta.oauth2.client-id",
            client_secret="okta.oauth2.client-secret",
        )


def backup_file_name(path: Path, instant: datetime) -> Path:
    """``<name>.<yyyyMMdd'T'HHmm in UTC>`` next to ``path``."""
    stamp = instant.astimezone(UTC).strftime(BACKUP_TIMESTAMP_FORMAT)
    return path.with_name(f"{path.name}.{stamp}")


def backup_config_file(path: Path, instant: datetime) -> Path:
    """Copy ``path`` to its timestamped backup, replacing an older copy."""
    backup = backup_file_name(path, instant)
    shutil.copy2(path, backup)
    return backup


def _utc_now() -> datetime:
    return datetime.now(UTC)


ProgressFactory = Callable[[bool], ProgressBar]
ManagementClientFactory = Callable[[ClientConfiguration], OktaRestClient]


class SetupService:
    def __init__(
        self,
        settings: SetupSettings | None = None,
        *,
        sdk_configuration_service: SdkConfigurationService | None = None,
        organization_creator: OrganizationCreator | None = None,
        oidc_app_creator: OidcAppCreator | None = None,
        authorization_server_service: AuthorizationServerService | None = None,
        management_client_factory: ManagementClientFactory | None = None,
        progress_factory: ProgressFactory = create_progress_bar,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.settings = settings or SetupSettings.from_env()
        self.sdk_configuration_service = (
            sdk_configuration_service
            or SdkConfigurationService(self.settings.okta_config_file)
        )
        self.organization_creator = organization_creator or OktaOrganizationCreator(
            timeout=self.settings.request_timeout
        )
        self.oidc_app_creator = oidc_app_creator or OidcAppCreator()
        self.authorization_server_service = (
            authorization_server_service or AuthorizationServerService()
        )
        self._management_client_factory = (
            management_client_factory or self._default_management_client
        )
        self._progress_factory = progress_factory
        self._clock = clock
        self.property_keys = PropertyKeys.for_registration(
            self.settings.spring_property_key
        )

    @property
    def api_base_url(self) -> str:
        return self.settings.api_base_url

    def _default_management_client(self, config: ClientConfiguration) -> OktaRestClient:
        return OktaRestClient(
            config.base_url or "",
            config.api_token,
            timeout=self.settings.request_timeout,
        )

    # ---- organization ----

    def create_okta_org(
        self,
        questions: RegistrationQuestions,
        okta_props_file: Path | None = None,
        interactive: bool = True,
    ) -> OrganizationResponse:
        """Register a new organization; the result still needs verification.

        An already configured org is only replaced when the user agrees, and
        the existing credential file is backed up first.
        """
        okta_props_file = Path(okta_props_file or self.settings.okta_config_file)
        # the existing-org check must look at the file that is about to be replaced
        client_configuration = self.sdk_configuration_service.for_file(
            okta_props_file
        ).load_unvalidated_configuration()

        with self._progress_factory(interactive) as progress:
            if client_configuration.base_url:
                progress.info(
                    f"An existing Okta Organization ({client_configuration.base_url}) "
                    f"was found in {okta_props_file.absolute()}"
                )
                if not questions.is_overwrite_config():
                    logger.info(
                        "Overwrite of existing configuration declined",
                        event="okta_setup.org.cancelled",
                        org_url=client_configuration.base_url,
                    )
                    raise UserCancelledError("User canceled")

                if okta_props_file.exists():
                    backup = backup_config_file(okta_props_file, self._clock())
                    progress.info(f"Configuration file backed: {backup.absolute()}")
                else:
                    progress.info(
                        f"No configuration file at {okta_props_file.absolute()}, "
                        "nothing to back up"
                    )

            # prompts must finish before the progress display starts
            organization_request = questions.get_organization_request()
            progress.start("Creating new Okta Organization, this may take a minute:")

            try:
                new_org = self.organization_creator.create_new_org(
                    self.api_base_url, organization_request
                )
            except RestError as exc:
                logger.warning(
                    "Organization creation rejected",
                    event="okta_setup.org.create_failed",
                    status_code=exc.status_code,
                    remote_error_code=exc.remote_error_code,
                )
                raise ClientConfigurationError(
                    "Failed to create Okta Organization. You can register "
                    f"manually by going to {MANUAL_SIGNUP_URL}",
                    {"status_code": exc.status_code},
                ) from exc

            progress.info(f"Organization identifier: {new_org.identifier}")
            progress.info("An email has been sent to you with a verification code.")
            return new_org

    def verify_okta_org(
        self,
        identifier: str,
        questions: RegistrationQuestions,
        okta_props_file: Path | None = None,
        interactive: bool = True,
    ) -> OrganizationResponse:
        """Loop on passcodes until one is accepted, then store the credentials.

        There is no attempt limit; the loop ends on success or when
        ``questions`` raises.
        """
        okta_props_file = Path(okta_props_file or self.settings.okta_config_file)

        with self._progress_factory(interactive) as progress, logging_context(
            org_identifier=identifier
        ):
            progress.info("Check your email")

            response: OrganizationResponse | None = None
            attempts = 0
            while response is None:
                code = questions.get_verification_code()
                attempts += 1
                try:
                    response = self.organization_creator.verify_new_org(
                        self.api_base_url, identifier, code
                    )
                except FactorVerificationError:
                    logger.info(
                        "Verification code rejected",
                        event="okta_setup.org.verify_retry",
                        attempt=attempts,
                    )
                    progress.info("Invalid Passcode, try again.")

            if not response.is_verified:
                raise ClientConfigurationError(
                    "Verification succeeded but no credentials were returned",
                    {"identifier": identifier},
                )

            try:
                self.sdk_configuration_service.write_okta_yaml(
                    response.org_url, response.api_token, okta_props_file
                )
            except OSError:
                logger.error(
                    "Organization created but credentials could not be saved",
                    event="okta_setup.org.credentials_unsaved",
                    org_url=response.org_url,
                    path=str(okta_props_file),
                    exc_info=True,
                )
                progress.info(
                    f"Your Okta Organization {response.org_url} was created, but "
                    f"its credentials could not be written to {okta_props_file}"
                )
                raise

            progress.info("New Okta Account created!")
            progress.info(f"Your Okta Domain: {response.org_url}")
            if response.update_password_url:
                progress.info(
                    f"To set your password open this link:\n{response.update_password_url}"
                )
            return response

    # ---- OIDC application ----

    def create_oidc_application(
        self,
        property_source: MutablePropertySource,
        oidc_app_name: str,
        org_url: str,
        group_claim_name: str | None = None,
        issuer_uri: str | None = None,
        authorization_server_id: str | None = None,
        interactive: bool = True,
        app_type: ApplicationType | str = ApplicationType.WEB,
        redirect_uris: Sequence[str] = (),
        client_configuration: ClientConfiguration | None = None,
    ) -> OidcApplicationResult:
        """Create an OIDC app unless the project already has a client id.

        The issuer, client id and client secret are merged into
        ``property_source`` in a single write. A failing group claim is
        reported on the result; the app is kept.
        """
        keys = self.property_keys
        authorization_server_id = (
            authorization_server_id or self.settings.authorization_server_id
        )
        client_id = property_source.get_property(keys.client_id)

        with self._progress_factory(interactive) as progress:
            if validate_client_id(client_id).is_valid:
                progress.info(
                    f"Existing OIDC application detected for clientId: {client_id}, "
                    "skipping new application creation\n"
                )
                return OidcApplicationResult(client_id=client_id, created=False)

            method_name = APP_CREATORS[_coerce_app_type(app_type)]
            progress.start("Configuring a new OIDC Application, almost done:")

            config = (
                client_configuration or self.sdk_configuration_service.load_configuration()
            )
            with self._management_client_factory(config) as client:
                create = getattr(self.oidc_app_creator, method_name)
                credentials: OidcClientCredentials = create(
                    client, oidc_app_name, *redirect_uris
                )

                if not issuer_uri:
                    issuer_uri = f"{org_url.rstrip('/')}/oauth2/{authorization_server_id}"

                new_props = {
                    keys.issuer_uri: issuer_uri,
                    keys.client_id: credentials.client_id,
                }
                if credentials.client_secret:
                    new_props[keys.client_secret] = credentials.client_secret
                property_source.add_properties(new_props)
                progress.info(
                    f"Created OIDC application, client-id: {credentials.client_id}"
                )

                claim_error = None
                if group_claim_name:
                    progress.info(
                        f"Creating Authorization Server claim '{group_claim_name}':"
                    )
                    claim_error = self._create_group_claim(
                        client, group_claim_name, authorization_server_id
                    )
                    if claim_error:
                        progress.info(
                            f"Application created, but the '{group_claim_name}' claim "
                            f"could not be added: {claim_error}"
                        )

        return OidcApplicationResult(
            client_id=credentials.client_id,
            created=True,
            issuer_uri=issuer_uri,
            group_claim_name=group_claim_name or None,
            group_claim_error=claim_error,
        )

    def _create_group_claim(
        self, client: OktaRestClient, group_claim_name: str, authorization_server_id: str
    ) -> str | None:
        try:
            self.authorization_server_service.create_group_claim(
                client, group_claim_name, authorization_server_id
            )
        except (RestError, requests.RequestException) as exc:
            logger.warning(
                "Group claim creation failed, application kept",
                event="okta_setup.claim.failed",
                claim=group_claim_name,
                authorization_server_id=authorization_server_id,
                error=str(exc),
            )
            return str(exc)
        return None

    # ---- full flow ----

    def configure_environment(
        self,
        questions: RegistrationQuestions,
        property_source: MutablePropertySource,
        oidc_app_name: str,
        *,
        app_type: ApplicationType | str = ApplicationType.WEB,
        redirect_uris: Sequence[str] = (),
        group_claim_name: str | None = None,
        issuer_uri: str | None = None,
        okta_props_file: Path | None = None,
        interactive: bool = True,
    ) -> OidcApplicationResult:
        """Register and verify an org, then provision the project's OIDC app."""
        new_org = self.create_okta_org(questions, okta_props_file, interactive)
        verified = self.verify_okta_org(
            new_org.identifier, questions, okta_props_file, interactive
        )
        return self.create_oidc_application(
            property_source,
            oidc_app_name,
            verified.org_url,
            group_claim_name=group_claim_name,
            issuer_uri=issuer_uri,
            interactive=interactive,
            app_type=app_type,
            redirect_uris=redirect_uris,
            client_configuration=ClientConfiguration(
                base_url=verified.org_url, api_token=verified.api_token
            ),
        )


def _coerce_app_type(app_type: ApplicationType | str) -> ApplicationType:
    if isinstance(app_type, ApplicationType):
        return app_type
    try:
        return ApplicationType(str(app_type).lower())
    except ValueError:
        raise ClientConfigurationError(
            f"Unsupported Application Type: {app_type}", {"app_type": str(app_type)}
        ) from None
