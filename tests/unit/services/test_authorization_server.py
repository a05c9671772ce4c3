from __future__ import annotations

from tests.fakes import ScriptedRestClient
from okta_setup.services.authorization_server import (
    AuthorizationServerService,
    build_group_claim,
)

CLAIMS = "/api/v1/authorizationServers/default/claims"


def test_group_claim_shape():
    claim = build_group_claim("groups")
    assert claim["name"] == "groups"
    assert claim["valueType"] == "GROUPS"
    assert claim["claimType"] == "RESOURCE"
    assert claim["value"] == ".*"


def test_creates_claim_when_absent():
    client = ScriptedRestClient(
        {("GET", CLAIMS): [{"name": "sub"}], ("POST", CLAIMS): {"id": "ocl1", "name": "groups"}}
    )

    created = AuthorizationServerService().create_group_claim(client, "groups", "default")

    assert created == {"id": "ocl1", "name": "groups"}
    assert client.calls[-1] == ("POST", CLAIMS, build_group_claim("groups"))


def test_existing_claim_is_left_alone():
    client = ScriptedRestClient({("GET", CLAIMS): [{"name": "groups"}]})

    assert AuthorizationServerService().create_group_claim(client, "groups", "default") is None
    assert [c[0] for c in client.calls] == ["GET"]


def test_custom_authorization_server_path():
    path = "/api/v1/authorizationServers/aus9/claims"
    client = ScriptedRestClient({("GET", path): None, ("POST", path): {"name": "roles"}})

    AuthorizationServerService().create_group_claim(client, "roles", "aus9")

    assert [c[1] for c in client.calls] == [path, path]
