"""Runtime settings for the setup tooling.

Values are resolved once from the environment and passed explicitly to the
services that need them.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from okta_setup.exceptions import ClientConfigurationError

DEFAULT_API_BASE_URL = "https://start.okta.dev/"
DEFAULT_AUTHORIZATION_SERVER_ID = "default"
DEFAULT_REQUEST_TIMEOUT = 30.0
MANUAL_SIGNUP_URL = "https://developer.okta.com/signup"

API_BASE_URL_ENV = "OKTA_CLI_BASE_URL"
OKTA_CONFIG_FILE_ENV = "OKTA_CLIENT_CONFIG_FILE"
REQUEST_TIMEOUT_ENV = "OKTA_SETUP_TIMEOUT"


def default_okta_config_file() -> Path:
    return Path.home() / ".okta" / "okta.yaml"


@dataclass(frozen=True)
class SetupSettings:
    api_base_url: str = DEFAULT_API_BASE_URL
    okta_config_file: Path = field(default_factory=default_okta_config_file)
    spring_property_key: str | None = None
    authorization_server_id: str = DEFAULT_AUTHORIZATION_SERVER_ID
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        spring_property_key: str | None = None,
        authorization_server_id: str | None = None,
        okta_config_file: str | os.PathLike[str] | None = None,
    ) -> SetupSettings:
        """Resolve settings; explicit keyword arguments win over the environment."""
        env = os.environ if environ is None else environ

        timeout_raw = env.get(REQUEST_TIMEOUT_ENV)
        try:
            timeout = float(timeout_raw) if timeout_raw else DEFAULT_REQUEST_TIMEOUT
        except ValueError as exc:
            raise ClientConfigurationError(
                f"{REQUEST_TIMEOUT_ENV} must be a number, got {timeout_raw!r}",
                {"field": REQUEST_TIMEOUT_ENV, "value": timeout_raw},
            ) from exc
        if timeout <= 0:
            raise ClientConfigurationError(
                f"{REQUEST_TIMEOUT_ENV} must be positive",
                {"field": REQUEST_TIMEOUT_ENV, "value": timeout_raw},
            )

        config_file = okta_config_file or env.get(OKTA_CONFIG_FILE_ENV)
        return cls(
            api_base_url=env.get(API_BASE_URL_ENV) or DEFAULT_API_BASE_URL,
            okta_config_file=(
                Path(config_file).expanduser() if config_file else default_okta_config_file()
            ),
            spring_property_key=spring_property_key or None,
            authorization_server_id=authorization_server_id
            or DEFAULT_AUTHORIZATION_SERVER_ID,
            request_timeout=timeout,
        )
