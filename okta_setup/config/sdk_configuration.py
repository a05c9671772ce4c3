"""Access to the Okta SDK client configuration.

Reading delegates to the SDK's own resolution chain (defaults, global and
local ``okta.yaml``, ``OKTA_CLIENT_*`` environment variables) so this package
does not duplicate it. Writing always produces the nested credential YAML the
SDK reads back.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from okta_setup.exceptions import ClientConfigurationError
from okta_setup.models import ClientConfiguration
from okta_setup.utils.logger import get_logger
from okta_setup.validation import validate_api_token, validate_org_url

from .settings import default_okta_config_file

logger = get_logger(__name__)

ConfigLoader = Callable[[], Mapping[str, Any]]


def okta_sdk_config() -> Mapping[str, Any]:
    """Return the configuration resolved by the okta SDK."""
    from okta.config.config_setter import ConfigSetter

    return ConfigSetter().get_config()


class SdkConfigurationService:
    def __init__(
        self,
        okta_config_file: Path | None = None,
        config_loader: ConfigLoader | None = None,
        environ: Mapping[str, str] | None = None,
    ):
        self.okta_config_file = okta_config_file or default_okta_config_file()
        self._config_loader = config_loader or okta_sdk_config
        self._environ = os.environ if environ is None else environ

    def for_file(self, okta_config_file: Path) -> SdkConfigurationService:
        """Return a service bound to ``okta_config_file`` (``self`` if unchanged)."""
        if Path(okta_config_file) == self.okta_config_file:
            return self
        return SdkConfigurationService(
            Path(okta_config_file), self._config_loader, self._environ
        )

    def _client_section(self) -> Mapping[str, Any]:
        if self.okta_config_file != default_okta_config_file():
            # a custom credential file is outside the SDK's search path
            return self._read_custom_file()
        try:
            config = self._config_loader()
        except Exception as exc:
            raise ClientConfigurationError(
                f"Could not load Okta SDK configuration: {exc}"
            ) from exc
        client = (config or {}).get("client") or {}
        if not isinstance(client, Mapping):
            raise ClientConfigurationError("Okta SDK configuration 'client' is malformed")
        return client

    def _read_custom_file(self) -> Mapping[str, Any]:
        client: dict[str, Any] = {}
        if self.okta_config_file.is_file():
            try:
                data = yaml.safe_load(self.okta_config_file.read_text(encoding="utf-8"))
            except yaml.YAMLError as exc:
                raise ClientConfigurationError(
                    f"Failed to parse {self.okta_config_file}: {exc}"
                ) from exc
            section = ((data or {}).get("okta") or {}).get("client") or {}
            if isinstance(section, Mapping):
                client.update(section)
        if self._environ.get("OKTA_CLIENT_ORGURL"):
            client["orgUrl"] = self._environ["OKTA_CLIENT_ORGURL"]
        if self._environ.get("OKTA_CLIENT_TOKEN"):
            client["token"] = self._environ["OKTA_CLIENT_TOKEN"]
        return client

    def load_unvalidated_configuration(self) -> ClientConfiguration:
        """Return the resolved client configuration, which may be empty."""
        client = self._client_section()
        try:
            return ClientConfiguration(
                base_url=client.get("orgUrl") or None,
                api_token=client.get("token") or None,
                authorization_mode=client.get("authorizationMode") or "SSWS",
            )
        except ValidationError as exc:
            raise ClientConfigurationError(
                f"Okta SDK configuration is malformed: {exc}"
            ) from exc

    def load_configuration(self) -> ClientConfiguration:
        """Like ``load_unvalidated_configuration`` but orgUrl and token must be valid."""
        config = self.load_unvalidated_configuration()
        for result in (
            validate_org_url(config.base_url),
            validate_api_token(config.api_token),
        ):
            if not result.is_valid:
                raise ClientConfigurationError(
                    f"{result.message}. Set it in {self.okta_config_file} or via "
                    "the OKTA_CLIENT_ORGURL / OKTA_CLIENT_TOKEN environment variables",
                    {"field": result.field},
                )
        return config

    def write_okta_yaml(
        self, org_url: str, api_token: str, okta_props_file: Path | None = None
    ) -> Path:
        target = Path(okta_props_file or self.okta_config_file)
        root_props = {"okta": {"client": {"orgUrl": org_url, "token": api_token}}}

        parent_dir = target.parent
        try:
            parent_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise OSError(f"Unable to create directory: {parent_dir.absolute()}") from exc

        with target.open("w", encoding="utf-8") as fh:
            yaml.safe_dump(root_props, fh, default_flow_style=False)
        logger.info(
            "Okta credentials written",
            event="okta_setup.sdk_config.written",
            path=str(target),
            org_url=org_url,
        )
        return target
