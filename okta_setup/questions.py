"""Registration answers, either prompted for or supplied up front."""

from __future__ import annotations

import sys
from collections.abc import Callable

from pydantic import ValidationError

from okta_setup.exceptions import ClientConfigurationError
from okta_setup.models import OrganizationRequest

InputFunc = Callable[[str], str]


class PromptRegistrationQuestions:
    """Ask the user on the terminal.

    Values given to the constructor are used as-is and not prompted for.
    """

    def __init__(
        self,
        first_name: str | None = None,
        last_name: str | None = None,
        email: str | None = None,
        country: str | None = None,
        overwrite_config: bool | None = None,
        input_func: InputFunc = input,
    ):
        self.first_name = first_name
        self.last_name = last_name
        self.email = email
        self.country = country
        self.overwrite_config = overwrite_config
        self._input = input_func

    def _ask(self, prompt: str, current: str | None) -> str:
        if current:
            return current
        while True:
            answer = self._input(f"{prompt}: ").strip()
            if answer:
                return answer

    def get_organization_request(self) -> OrganizationRequest:
        while True:
            self.first_name = self._ask("First name", self.first_name)
            self.last_name = self._ask("Last name", self.last_name)
            self.email = self._ask("Email address", self.email)
            self.country = self._ask("Country", self.country)
            try:
                return OrganizationRequest(
                    first_name=self.first_name,
                    last_name=self.last_name,
                    email=self.email,
                    country=self.country,
                )
            except ValidationError:
                print("That does not look like a valid email address.", file=sys.stderr)
                self.email = None

    def get_verification_code(self) -> str:
        return self._ask("Verification code", None)

    def is_overwrite_config(self) -> bool:
        if self.overwrite_config is not None:
            return self.overwrite_config
        answer = self._input("Overwrite configuration file? [Y/n] ").strip().lower()
        return answer in ("", "y", "yes")


class StaticRegistrationQuestions:
    """Non-interactive answers for batch runs."""

    def __init__(
        self,
        organization_request: OrganizationRequest | None = None,
        verification_code: str | None = None,
        overwrite_config: bool = False,
    ):
        self.organization_request = organization_request
        self.verification_code = verification_code
        self.overwrite_config = overwrite_config
        self._code_used = False

    def get_organization_request(self) -> OrganizationRequest:
        if self.organization_request is None:
            raise ClientConfigurationError(
                "Organization details are required in non-interactive mode"
            )
        return self.organization_request

    def get_verification_code(self) -> str:
        if not self.verification_code:
            raise ClientConfigurationError(
                "A verification code is required in non-interactive mode"
            )
        if self._code_used:
            # a rejected code cannot be corrected without a prompt
            raise ClientConfigurationError("The supplied verification code was rejected")
        self._code_used = True
        return self.verification_code

    def is_overwrite_config(self) -> bool:
        return self.overwrite_config
