# Pythia
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""HTTP helpers for the Corrently connector.

One GET per scan, no retries.  Network failures and non-2xx answers are
raised as :class:`~corrently_fdw.errors.TransportError` with the failure
classified in ``kind``.
"""

from __future__ import annotations

import errno
import socket
import ssl
import time
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import requests
from requests import Response
from requests.exceptions import (
    ChunkedEncodingError,
    ConnectTimeout,
    ConnectionError as RequestsConnectionError,
    ProxyError,
    ReadTimeout,
    RequestException,
    SSLError as RequestsSSLError,
    Timeout,
)
from urllib3.exceptions import (
    MaxRetryError,
    NewConnectionError,
    ProtocolError,
    SSLError as Urllib3SSLError,
)

from .errors import TransportError

__all__ = ["HttpResult", "build_prediction_url", "ensure_success", "http_get", "redact_url"]

_REDACTED = "***"
_SECRET_PARAMS = {"token"}


@dataclass
class HttpResult:
    status: int
    body: bytes
    headers: Dict[str, str] = field(default_factory=dict)
    diagnostics: Dict[str, object] = field(default_factory=dict)

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


def build_prediction_url(base_url: str, zip_code: str, token: str, hours: Optional[int] = None) -> str:
    """Return ``<base_url>?zip=..&token=..[&hours=..]``."""

    params: Dict[str, object] = {"zip": zip_code, "token": token}
    if hours is not None:
        params["hours"] = int(hours)
    return f"{base_url}?{urlencode(params)}"


def redact_url(url: str) -> str:
    """Mask credential query parameters so the URL can be logged."""

    try:
        parts = urlsplit(str(url))
    except ValueError:
        return str(url).split("?")[0]
    query = [
        (key, _REDACTED if key in _SECRET_PARAMS else value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
    ]
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query, safe="*"), parts.fragment))


def _classify_errno(err: OSError) -> str:
    if err.errno in {errno.ETIMEDOUT, errno.EHOSTUNREACH}:
        return "connect_timeout"
    if err.errno == errno.ECONNREFUSED:
        return "conn_refused"
    if err.errno == errno.ECONNRESET:
        return "conn_reset"
    if err.errno == errno.ENETUNREACH:
        return "network_unreachable"
    return "os_error"


def classify_exception(exc: BaseException) -> str:
    if isinstance(exc, ConnectTimeout):
        return "connect_timeout"
    if isinstance(exc, (ReadTimeout, Timeout)):
        return "read_timeout"
    if isinstance(exc, (RequestsSSLError, Urllib3SSLError, ssl.SSLError)):
        return "ssl_error"
    if isinstance(exc, ProxyError):
        return "proxy_error"
    if isinstance(exc, ChunkedEncodingError):
        return "unexpected_eof"
    if isinstance(exc, RequestsConnectionError):
        reason = exc.args[0] if exc.args else None
        if isinstance(reason, MaxRetryError):
            reason = reason.reason
        if isinstance(reason, NewConnectionError):
            reason = reason.__cause__ or reason
        if isinstance(reason, socket.gaierror):
            return "dns_error"
        if isinstance(reason, ProtocolError):
            return "protocol_error"
        if isinstance(reason, OSError) and reason.errno is not None:
            return _classify_errno(reason)
        text = str(reason or exc).lower()
        if "name or service not known" in text or "getaddrinfo" in text:
            return "dns_error"
        if "refused" in text:
            return "conn_refused"
        return "connection_error"
    if isinstance(exc, OSError):
        return _classify_errno(exc)
    return exc.__class__.__name__.lower()


def http_get(
    session: requests.Session,
    url: str,
    *,
    headers: Optional[Mapping[str, str]] = None,
    timeout: Optional[float] = None,
) -> HttpResult:
    """Issue a single GET and return the status and raw body.

    Network failures raise :class:`TransportError`; HTTP error statuses are
    returned so the caller can attach the body to its own error.
    """

    started = time.monotonic()
    try:
        response: Response = session.get(url, headers=dict(headers or {}), timeout=timeout)
    except RequestException as exc:
        kind = classify_exception(exc)
        raise TransportError(
            f"GET {redact_url(url)} failed: {kind}",
            kind=kind,
            diagnostics={
                "exception_type": exc.__class__.__name__,
                "duration_s": round(time.monotonic() - started, 6),
            },
        ) from exc

    try:
        body = response.content or b""
    finally:
        response.close()
    return HttpResult(
        status=int(response.status_code),
        body=body,
        headers=dict(response.headers.items()),
        diagnostics={
            "duration_s": round(time.monotonic() - started, 6),
            "body_bytes": len(body),
        },
    )


def ensure_success(result: HttpResult, url: str) -> HttpResult:
    """Raise :class:`TransportError` unless ``result`` carries a 2xx status."""

    if 200 <= result.status < 300:
        return result
    raise TransportError(
        f"GET {redact_url(url)} returned HTTP {result.status}",
        status=result.status,
        body=result.text,
        kind="http_status",
        diagnostics=dict(result.diagnostics),
    )
