"""Select the property source for a project's application configuration."""

from __future__ import annotations

import os
from pathlib import Path

from okta_setup.exceptions import UnsupportedConfigFormatError

from .property_sources import (
    EnvFilePropertySource,
    MutablePropertySource,
    PropertiesFilePropertySource,
    YamlPropertySource,
)

DEFAULT_YAML_CONFIG = Path("src/main/resources/application.yml")
DEFAULT_PROPERTIES_CONFIG = Path("src/main/resources/application.properties")

SOURCE_TYPES: dict[str, type[MutablePropertySource]] = {
    ".yml": YamlPropertySource,
    ".yaml": YamlPropertySource,
    ".properties": PropertiesFilePropertySource,
    ".env": EnvFilePropertySource,
}


def source_type_for(config_file: str | os.PathLike[str]) -> type[MutablePropertySource]:
    """Return the source class for ``config_file`` based on its extension only."""
    name = Path(config_file).name
    # ".env" has no suffix as far as pathlib is concerned
    suffix = name if name == ".env" else Path(name).suffix
    try:
        return SOURCE_TYPES[suffix.lower()]
    except KeyError:
        raise UnsupportedConfigFormatError(config_file) from None


class ConfigFileLocator:
    def find_application_config(
        self,
        project_root: str | os.PathLike[str],
        config_file: str | os.PathLike[str] | None = None,
    ) -> MutablePropertySource:
        """Return the property source for a project.

        Without ``config_file`` an existing ``application.properties`` wins,
        otherwise ``application.yml`` is used (it will be created on write).
        """
        if config_file is None:
            root = Path(project_root)
            props_file = root / DEFAULT_PROPERTIES_CONFIG
            if props_file.exists():
                return PropertiesFilePropertySource(props_file)
            return YamlPropertySource(root / DEFAULT_YAML_CONFIG)

        return source_type_for(config_file)(config_file)
