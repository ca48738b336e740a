"""HTTP fetch configuration shared by every source."""

from __future__ import annotations

import logging
from typing import Any

import urllib3
from requests import Session
from requests.adapters import HTTPAdapter
from requests.exceptions import RequestException
from urllib3.util.retry import Retry

from .errors import FetchError
from .validation import is_supported_url


def make_session(user_agent: str, *, verify_tls: bool = False, max_redirects: int = 5) -> Session:
    """Create a requests session with browser headers and no retries.

    A timeout or error status is a URL-local failure, so only redirects are
    followed and nothing is re-sent.
    """
    session = Session()
    session.headers.update(
        {
            "User-Agent": user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "pt-BR,pt;q=0.9,en;q=0.8",
        }
    )
    session.verify = verify_tls
    session.max_redirects = max_redirects
    if not verify_tls:
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
    retry = Retry(total=None, connect=0, read=0, status=0, other=0, redirect=max_redirects)
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class RequestsFetcher:
    """Requests-based fetcher; every failure degrades to an empty body."""

    def __init__(
        self,
        *,
        session: Session,
        timeout: float,
        logger: logging.Logger,
    ) -> None:
        self._session = session
        self._timeout = timeout
        self._logger = logger

    def fetch(
        self, url: str, *, params: dict[str, Any] | None = None, timeout: float | None = None
    ) -> str:
        """Return the body of a 200 response, or "" for any failure."""
        try:
            return self.fetch_or_raise(url, params=params, timeout=timeout)
        except FetchError as exc:
            self._logger.debug("%s", exc)
            return ""

    def fetch_or_raise(
        self, url: str, *, params: dict[str, Any] | None = None, timeout: float | None = None
    ) -> str:
        if not is_supported_url(url):
            raise FetchError(f"Skipping unsupported URL: {url}")
        try:
            response = self._session.get(
                url, params=params, timeout=timeout if timeout is not None else self._timeout
            )
        except RequestException as exc:
            raise FetchError(f"Fetch failed for {url}: {exc}") from exc
        if response.status_code != 200:
            raise FetchError(f"Fetch of {url} returned HTTP {response.status_code}")
        return str(response.text)
