"""Custom claims on an Okta authorization server."""

from __future__ import annotations

from typing import Any

from okta_setup.utils.logger import get_logger

from .rest_client import OktaRestClient

logger = get_logger(__name__)


def build_group_claim(group_claim_name: str) -> dict[str, Any]:
    return {
        "name": group_claim_name,
        "status": "ACTIVE",
        "claimType": "RESOURCE",
        "valueType": "GROUPS",
        "value": ".*",
        "group_filter_type": "REGEX",
        "alwaysIncludeInToken": True,
        "conditions": {"scopes": []},
    }


class AuthorizationServerService:
    def create_group_claim(
        self,
        client: OktaRestClient,
        group_claim_name: str,
        authorization_server_id: str,
    ) -> dict[str, Any] | None:
        """Add a groups claim to the access token unless one with that name exists.

        Returns the created claim, or ``None`` when it was already present.
        """
        path = f"/api/v1/authorizationServers/{authorization_server_id}/claims"
        existing = client.get(path) or []
        if any(
            isinstance(c, dict) and c.get("name") == group_claim_name for c in existing
        ):
            logger.info(
                "Group claim already present",
                event="okta_setup.claim.exists",
                claim=group_claim_name,
                authorization_server_id=authorization_server_id,
            )
            return None
        created = client.post(path, build_group_claim(group_claim_name))
        logger.info(
            "Group claim created",
            event="okta_setup.claim.created",
            claim=group_claim_name,
            authorization_server_id=authorization_server_id,
        )
        return created
