#!/usr/bin/env python3
"""
Console entrypoint: ``okta-setup``.

Wires the setup services together; all behaviour lives in
``okta_setup.services.setup_service``.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Protocol, cast

import requests
from pydantic import ValidationError

from okta_setup.config.locator import ConfigFileLocator
from okta_setup.config.settings import SetupSettings
from okta_setup.exceptions import ClientConfigurationError, SetupError, UserCancelledError
from okta_setup.models import ApplicationType, OrganizationRequest, RegistrationQuestions
from okta_setup.questions import PromptRegistrationQuestions, StaticRegistrationQuestions
from okta_setup.services.setup_service import SetupService
from okta_setup.utils.logger import configure, get_logger

logger = get_logger(__name__)


def _questions(args: argparse.Namespace) -> RegistrationQuestions:
    if args.batch:
        request = None
        if args.email:
            try:
                request = OrganizationRequest(
                    first_name=args.first_name or "",
                    last_name=args.last_name or "",
                    email=args.email,
                    country=args.country,
                )
            except ValidationError as exc:
                raise ClientConfigurationError(
                    f"Invalid organization details: {exc.errors()[0]['msg']}"
                ) from exc
        return StaticRegistrationQuestions(
            organization_request=request,
            verification_code=args.verification_code,
            overwrite_config=args.overwrite,
        )
    return PromptRegistrationQuestions(
        first_name=args.first_name,
        last_name=args.last_name,
        email=args.email,
        country=args.country,
        overwrite_config=True if args.overwrite else None,
    )


def _service(args: argparse.Namespace) -> SetupService:
    settings = SetupSettings.from_env(
        spring_property_key=getattr(args, "spring_property_key", None),
        authorization_server_id=getattr(args, "authorization_server_id", None),
        okta_config_file=getattr(args, "okta_config", None),
    )
    return SetupService(settings)


def _property_source(args: argparse.Namespace):
    return ConfigFileLocator().find_application_config(
        args.project_root, args.config_file
    )


def cmd_register(args: argparse.Namespace) -> int:
    service = _service(args)
    questions = _questions(args)
    interactive = not args.batch
    new_org = service.create_okta_org(questions, args.okta_config, interactive)
    service.verify_okta_org(new_org.identifier, questions, args.okta_config, interactive)
    return 0


def cmd_create_app(args: argparse.Namespace) -> int:
    service = _service(args)
    config = service.sdk_configuration_service.load_configuration()
    result = service.create_oidc_application(
        _property_source(args),
        args.app_name,
        config.base_url or "",
        group_claim_name=args.group_claim,
        issuer_uri=args.issuer_uri,
        interactive=not args.batch,
        app_type=args.app_type,
        redirect_uris=args.redirect_uri,
        client_configuration=config,
    )
    return 0 if result.group_claim_error is None else 2


def cmd_setup(args: argparse.Namespace) -> int:
    service = _service(args)
    result = service.configure_environment(
        _questions(args),
        _property_source(args),
        args.app_name,
        app_type=args.app_type,
        redirect_uris=args.redirect_uri,
        group_claim_name=args.group_claim,
        issuer_uri=args.issuer_uri,
        okta_props_file=args.okta_config,
        interactive=not args.batch,
    )
    return 0 if result.group_claim_error is None else 2


def _add_registration_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--first-name")
    p.add_argument("--last-name")
    p.add_argument("--email")
    p.add_argument("--country")
    p.add_argument(
        "--verification-code", help="Passcode from the verification email (batch mode)"
    )
    p.add_argument(
        "--overwrite",
        action="store_true",
        help="Replace an existing Okta configuration without asking",
    )
    p.add_argument(
        "--okta-config",
        type=Path,
        default=None,
        help="Credential file to write (default: ~/.okta/okta.yaml)",
    )


def _add_app_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--project-root", type=Path, default=Path.cwd())
    p.add_argument(
        "--config-file",
        type=Path,
        default=None,
        help="Application config (.yml, .properties or .env)",
    )
    p.add_argument("--app-name", default=Path.cwd().name)
    p.add_argument(
        "--app-type",
        choices=[t.value for t in ApplicationType],
        default=ApplicationType.WEB.value,
    )
    p.add_argument(
        "--redirect-uri",
        action="append",
        default=[],
        help="Redirect URI (repeatable)",
    )
    p.add_argument("--group-claim", default=None)
    p.add_argument("--issuer-uri", default=None)
    p.add_argument("--authorization-server-id", default=None)
    p.add_argument(
        "--spring-property-key",
        default=None,
        help="Write spring.security.oauth2.client.* keys for this registration id",
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="okta-setup", description="Register an Okta org and configure a project"
    )
    p.add_argument(
        "--batch", action="store_true", help="Never prompt; log progress instead"
    )
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub_register = sub.add_parser(
        "register", help="Create and verify a new Okta organization"
    )
    _add_registration_args(sub_register)
    sub_register.set_defaults(func=cmd_register)

    sub_app = sub.add_parser(
        "create-app", help="Create an OIDC application for this project"
    )
    _add_app_args(sub_app)
    sub_app.set_defaults(func=cmd_create_app)

    sub_setup = sub.add_parser(
        "setup", help="Register an organization, then create an OIDC application"
    )
    _add_registration_args(sub_setup)
    _add_app_args(sub_setup)
    sub_setup.set_defaults(func=cmd_setup)

    return p


class _Cmd(Protocol):
    def __call__(self, args: argparse.Namespace) -> int: ...


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure(
        level=logging.DEBUG if args.debug else (logging.INFO if args.batch else logging.WARNING),
        json_output=args.batch,
    )
    func = cast(_Cmd, getattr(args, "func"))
    try:
        return func(args)
    except UserCancelledError as exc:
        print(exc.message, file=sys.stderr)
        return 1
    except SetupError as exc:
        logger.error("Setup failed", error_code=exc.error_code, error=exc.message)
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1
    # RequestException subclasses OSError
    except requests.RequestException as exc:
        logger.error("Setup failed", error_code="network_error", error=str(exc))
        print(f"Error: could not reach Okta: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        logger.error("Setup failed", error_code="io_error", error=str(exc))
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Aborted", file=sys.stderr)
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
