# === NAVMAP v1 ===
# {
#   "module": "FPZ.BundleAssembly.net",
#   "purpose": "Provide a shared HTTPX client and blocking fetch helpers for manifests and archives",
#   "sections": [
#     {"id": "constants", "name": "Constants & globals", "anchor": "CONST", "kind": "constants"},
#     {"id": "helpers", "name": "Client construction helpers", "anchor": "HELP", "kind": "helpers"},
#     {"id": "api", "name": "Public API", "anchor": "API", "kind": "api"}
#   ]
# }
# === /NAVMAP ===

"""Shared HTTPX client used for manifest and component archive downloads."""

from __future__ import annotations

import contextlib
import logging
import ssl
import threading
import time
from typing import MutableMapping, Optional

import certifi
import httpx

from .errors import ArchiveFetchError, ManifestFetchError
from .settings import HttpSettings

LOGGER = logging.getLogger("FPZ.BundleAssembly.net")

# --- Constants & globals -------------------------------------------------------

_CLIENT_LOCK = threading.RLock()
_HTTP_CLIENT: Optional[httpx.Client] = None
_DEFAULT_SETTINGS = HttpSettings()

# --- Client construction helpers ----------------------------------------------


def _build_ssl_context() -> ssl.SSLContext:
    context = ssl.create_default_context()
    context.load_verify_locations(certifi.where())
    return context


def _request_hook(request: httpx.Request) -> None:
    meta: MutableMapping[str, object] = request.extensions.setdefault("fpz_meta", {})  # type: ignore[assignment]
    meta["start_time"] = time.perf_counter()


def _response_hook(response: httpx.Response) -> None:
    meta: MutableMapping[str, object] = response.request.extensions.setdefault(  # type: ignore[assignment]
        "fpz_meta", {}
    )
    start = meta.get("start_time")
    elapsed = time.perf_counter() - start if isinstance(start, (int, float)) else None
    LOGGER.debug(
        "http-response",
        extra={
            "url": str(response.request.url),
            "status": response.status_code,
            "elapsed_sec": elapsed,
        },
    )


def _timeout_for(settings: HttpSettings) -> httpx.Timeout:
    return httpx.Timeout(
        connect=settings.timeout_connect,
        read=settings.timeout_read,
        write=settings.timeout_read,
        pool=settings.timeout_connect,
    )


def _build_http_client(settings: HttpSettings) -> httpx.Client:
    return httpx.Client(
        http2=settings.http2,
        timeout=_timeout_for(settings),
        verify=_build_ssl_context(),
        trust_env=settings.trust_env,
        follow_redirects=settings.follow_redirects,
        headers={"User-Agent": settings.user_agent},
        event_hooks={"request": [_request_hook], "response": [_response_hook]},
    )


def _close_client_unlocked() -> None:
    global _HTTP_CLIENT
    if _HTTP_CLIENT is not None:
        with contextlib.suppress(Exception):
            _HTTP_CLIENT.close()
    _HTTP_CLIENT = None


# --- Public API ----------------------------------------------------------------


def configure_http_client(client: Optional[httpx.Client] = None) -> None:
    """Install ``client`` as the shared client, or drop the current one when ``None``."""

    with _CLIENT_LOCK:
        global _HTTP_CLIENT
        if client is None or _HTTP_CLIENT is not client:
            _close_client_unlocked()
        _HTTP_CLIENT = client


def reset_http_client() -> None:
    """Close and forget the shared HTTPX client (test helper)."""

    with _CLIENT_LOCK:
        _close_client_unlocked()


def get_http_client(settings: Optional[HttpSettings] = None) -> httpx.Client:
    """Return the shared HTTPX client, creating it from ``settings`` if necessary."""

    global _HTTP_CLIENT
    with _CLIENT_LOCK:
        if _HTTP_CLIENT is None:
            _HTTP_CLIENT = _build_http_client(settings or _DEFAULT_SETTINGS)
        return _HTTP_CLIENT


def _get(url: str, client: Optional[httpx.Client]) -> httpx.Response:
    session = client or get_http_client()
    response = session.get(url)
    response.raise_for_status()
    return response


def fetch_bytes(url: str, *, client: Optional[httpx.Client] = None) -> bytes:
    """Download ``url`` and return the response body.

    Raises:
        ArchiveFetchError: On transport failure or a non-success status.
    """

    try:
        response = _get(url, client)
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        raise ArchiveFetchError(
            f"Download of {url} failed with HTTP {status}", url=url, status_code=status
        ) from exc
    except httpx.HTTPError as exc:
        raise ArchiveFetchError(f"Download of {url} failed: {exc}", url=url) from exc
    return response.content


def fetch_manifest_bytes(url: str, *, client: Optional[httpx.Client] = None) -> bytes:
    """Download the manifest at ``url`` as raw bytes.

    The body is left undecoded so the parser honours the document's own
    ``<?xml encoding=...?>`` declaration.

    Raises:
        ManifestFetchError: On transport failure or a non-success status.
    """

    try:
        response = _get(url, client)
    except httpx.HTTPStatusError as exc:
        raise ManifestFetchError(
            f"Manifest {url} returned HTTP {exc.response.status_code}"
        ) from exc
    except httpx.HTTPError as exc:
        raise ManifestFetchError(f"Manifest {url} could not be fetched: {exc}") from exc
    return response.content


__all__ = [
    "configure_http_client",
    "reset_http_client",
    "get_http_client",
    "fetch_bytes",
    "fetch_manifest_bytes",
]
