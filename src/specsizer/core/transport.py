from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

import requests

from .errors import FetchError
from .query import RequestDescriptor

logger = logging.getLogger(__name__)


class Transport(Protocol):
    def fetch(self, request: RequestDescriptor) -> str: ...


class HttpTransport:
    """Single blocking GET against the results site.

    The body is read in one go; no progress is reported while it downloads.
    """

    def __init__(self, session: requests.Session | None = None, timeout: float | None = None):
        self._session = session or requests.Session()
        self._timeout = timeout

    def fetch(self, request: RequestDescriptor) -> str:
        timeout = self._timeout if self._timeout is not None else request.timeout
        logger.info("Fetching %s", request.full_url)
        try:
            resp = self._session.get(request.url, params=list(request.params), timeout=timeout)
        except requests.Timeout as exc:
            raise FetchError(f"Timed out after {timeout}s fetching {request.url}", url=request.url) from exc
        except requests.RequestException as exc:
            raise FetchError(f"Request to {request.url} failed: {exc}", url=request.url) from exc

        try:
            resp.raise_for_status()
        except requests.HTTPError as exc:
            raise FetchError(
                f"{request.url} answered HTTP {resp.status_code}",
                url=request.url,
                status=resp.status_code,
            ) from exc

        logger.debug("Received %d bytes", len(resp.content))
        return resp.text

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "HttpTransport":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class FileTransport:
    """Serve a previously saved dump from disk instead of the network.

    The server-side name filters never reach a file, so the pipeline applies
    them to the rows itself.
    """

    filters_locally = True

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def fetch(self, request: RequestDescriptor) -> str:
        logger.info("Reading saved results from %s", self.path)
        try:
            return self.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise FetchError(f"Cannot read {self.path}: {exc}") from exc


class FakeTransport:
    """Replay canned responses; requests are recorded for inspection.

    A response that is an exception instance is raised instead of returned.
    """

    def __init__(self, responses: list | None = None):
        self.responses = list(responses or [])
        self.requests: list[RequestDescriptor] = []

    def fetch(self, request: RequestDescriptor) -> str:
        self.requests.append(request)
        if not self.responses:
            raise FetchError("No responses left in FakeTransport", url=request.url)
        out = self.responses.pop(0)
        if isinstance(out, BaseException):
            raise out
        return out
