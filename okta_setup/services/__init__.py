from .authorization_server import AuthorizationServerService
from .oidc_app_creator import OidcAppCreator
from .organization_creator import OktaOrganizationCreator
from .rest_client import OktaRestClient
from .setup_service import PropertyKeys, SetupService

__all__ = [
    "AuthorizationServerService",
    "OidcAppCreator",
    "OktaOrganizationCreator",
    "OktaRestClient",
    "PropertyKeys",
    "SetupService",
]
