"""Thin ``requests`` wrapper for the Okta APIs.

Non-2xx responses are raised as ``RestError`` carrying the Okta error code;
connection problems surface as ``requests`` exceptions.
"""

from __future__ import annotations

from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from okta_setup.exceptions import RestError
from okta_setup.utils.logger import get_logger

logger = get_logger(__name__)

USER_AGENT = "okta-setup/1.0"


def _error_from_response(resp: requests.Response) -> RestError:
    remote_code = None
    summary = None
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        remote_code = body.get("errorCode") or body.get("error")
        summary = body.get("errorSummary") or body.get("error_description")
    message = f"HTTP {resp.status_code} {resp.request.method} {resp.url}"
    if summary:
        message = f"{message}: {summary}"
    return RestError(
        message,
        status_code=resp.status_code,
        remote_error_code=remote_code,
        body=resp.text,
    )


class OktaRestClient:
    """JSON client bound to one base URL, optionally authenticated with SSWS."""

    def __init__(
        self,
        base_url: str,
        api_token: str | None = None,
        *,
        timeout: float = 30.0,
        max_retries: int = 2,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Accept": "application/json",
                "Content-Type": "application/json",
                "User-Agent": USER_AGENT,
            }
        )
        if api_token:
            self._session.headers["Authorization"] = f"SSWS {api_token}"

        if session is None:
            # creation calls are not idempotent, so only GETs retry on status
            retry = Retry(
                total=max_retries,
                connect=max_retries,
                read=0,
                backoff_factor=0.3,
                status_forcelist=(429, 502, 503, 504),
                allowed_methods=frozenset({"GET"}),
                raise_on_status=False,
            )
            adapter = HTTPAdapter(max_retries=retry)
            self._session.mount("http://", adapter)
            self._session.mount("https://", adapter)

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def request(self, method: str, path: str, json: Any = None) -> Any:
        url = self.url(path)
        logger.debug(
            "Okta API request",
            event="okta_setup.http.request",
            method=method,
            url=url,
        )
        resp = self._session.request(method, url, json=json, timeout=self.timeout)
        if resp.status_code >= 400:
            error = _error_from_response(resp)
            logger.debug(
                "Okta API request failed",
                event="okta_setup.http.error",
                method=method,
                url=url,
                status_code=resp.status_code,
                remote_error_code=error.remote_error_code,
            )
            raise error
        if resp.status_code == 204 or not resp.content:
            return None
        return resp.json()

    def get(self, path: str) -> Any:
        return self.request("GET", path)

    def post(self, path: str, json: Any = None) -> Any:
        return self.request("POST", path, json=json)

    def put(self, path: str, json: Any = None) -> Any:
        return self.request("PUT", path, json=json)

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> OktaRestClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
