"""
Configuration package: project property sources, file-type resolution,
Okta SDK credentials and runtime settings.
"""

from .locator import ConfigFileLocator
from .property_sources import (
    EnvFilePropertySource,
    MutablePropertySource,
    PropertiesFilePropertySource,
    YamlPropertySource,
)
from .sdk_configuration import SdkConfigurationService
from .settings import SetupSettings

__all__ = [
    "ConfigFileLocator",
    "EnvFilePropertySource",
    "MutablePropertySource",
    "PropertiesFilePropertySource",
    "SdkConfigurationService",
    "SetupSettings",
    "YamlPropertySource",
]
