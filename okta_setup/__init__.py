"""Bootstrap a project against an Okta organization."""

__version__ = "1.0.0"
