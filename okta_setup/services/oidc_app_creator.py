"""Creation of OIDC applications through the Okta apps API."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from okta_setup.exceptions import RestError
from okta_setup.models import OidcClientCredentials
from okta_setup.utils.logger import get_logger

from .rest_client import OktaRestClient

logger = get_logger(__name__)

EVERYONE_GROUP = "Everyone"


@dataclass(frozen=True)
class _AppProfile:
    application_type: str
    token_endpoint_auth_method: str
    grant_types: tuple[str, ...]
    response_types: tuple[str, ...]
    uses_redirects: bool = True
    assign_everyone: bool = True


WEB_PROFILE = _AppProfile(
    "web", "client_secret_basic", ("authorization_code", "refresh_token"), ("code",)
)
NATIVE_PROFILE = _AppProfile(
    "native", "none", ("authorization_code", "refresh_token"), ("code",)
)
BROWSER_PROFILE = _AppProfile("browser", "none", ("authorization_code",), ("code",))
SERVICE_PROFILE = _AppProfile(
    "service",
    "client_secret_basic",
    ("client_credentials",),
    ("token",),
    uses_redirects=False,
    assign_everyone=False,
)


def build_app_payload(
    name: str, redirect_uris: Sequence[str], profile: _AppProfile
) -> dict[str, Any]:
    oauth_settings: dict[str, Any] = {
        "application_type": profile.application_type,
        "grant_types": list(profile.grant_types),
        "response_types": list(profile.response_types),
    }
    if profile.uses_redirects:
        oauth_settings["redirect_uris"] = list(redirect_uris)
    return {
        "name": "oidc_client",
        "label": name,
        "signOnMode": "OPENID_CONNECT",
        "credentials": {
            "oauthClient": {
                "autoKeyRotation": True,
                "token_endpoint_auth_method": profile.token_endpoint_auth_method,
            }
        },
        "settings": {"oauthClient": oauth_settings},
    }


class OidcAppCreator:
    def create_oidc_app(
        self, client: OktaRestClient, name: str, *redirect_uris: str
    ) -> OidcClientCredentials:
        return self._create(client, name, redirect_uris, WEB_PROFILE)

    def create_oidc_native_app(
        self, client: OktaRestClient, name: str, *redirect_uris: str
    ) -> OidcClientCredentials:
        return self._create(client, name, redirect_uris, NATIVE_PROFILE)

    def create_oidc_spa_app(
        self, client: OktaRestClient, name: str, *redirect_uris: str
    ) -> OidcClientCredentials:
        return self._create(client, name, redirect_uris, BROWSER_PROFILE)

    def create_oidc_service_app(
        self, client: OktaRestClient, name: str, *redirect_uris: str
    ) -> OidcClientCredentials:
        return self._create(client, name, redirect_uris, SERVICE_PROFILE)

    def _create(
        self,
        client: OktaRestClient,
        name: str,
        redirect_uris: Sequence[str],
        profile: _AppProfile,
    ) -> OidcClientCredentials:
        data = client.post("/api/v1/apps", build_app_payload(name, redirect_uris, profile))
        oauth_client = (data.get("credentials") or {}).get("oauthClient") or {}
        creds = OidcClientCredentials(
            client_id=oauth_client.get("client_id") or data.get("id"),
            client_secret=oauth_client.get("client_secret"),
            app_id=data.get("id"),
        )
        logger.info(
            "OIDC application created",
            event="okta_setup.app.created",
            app_type=profile.application_type,
            app_id=creds.app_id,
            client_id=creds.client_id,
        )
        if profile.assign_everyone and creds.app_id:
            self.assign_group(client, creds.app_id, EVERYONE_GROUP)
        return creds

    def assign_group(self, client: OktaRestClient, app_id: str, group_name: str) -> bool:
        """Assign ``group_name`` to the app so its members can sign in.

        Returns False when the group does not exist or the assignment is
        rejected; the app itself stays usable either way.
        """
        try:
            groups = client.get(f"/api/v1/groups?q={group_name}") or []
            group_id = next(
                (
                    g.get("id")
                    for g in groups
                    if (g.get("profile") or {}).get("name") == group_name
                ),
                None,
            )
            if group_id is None:
                logger.warning(
                    "Group not found, application left unassigned",
                    event="okta_setup.app.group_missing",
                    app_id=app_id,
                    group=group_name,
                )
                return False
            client.put(f"/api/v1/apps/{app_id}/groups/{group_id}", {})
        except RestError as exc:
            logger.warning(
                "Assigning group to application failed",
                event="okta_setup.app.group_assign_failed",
                app_id=app_id,
                group=group_name,
                status_code=exc.status_code,
            )
            return False
        logger.info(
            "Assigned group to application",
            event="okta_setup.app.group_assigned",
            app_id=app_id,
            group=group_name,
        )
        return True
