"""Testing helpers for bundle assembly: mock HTTP clients and archive builders."""

from __future__ import annotations

import io
import zipfile
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator, Mapping, Optional, Tuple, Union

if TYPE_CHECKING:  # pragma: no cover
    import httpx

__all__ = ["build_zip", "use_mock_http_client"]

# 2021-03-04 05:06:00, representable in a zip header.
DEFAULT_ENTRY_TIME: Tuple[int, int, int, int, int, int] = (2021, 3, 4, 5, 6, 0)


@contextmanager
def use_mock_http_client(transport: "httpx.BaseTransport", **client_kwargs) -> Iterator["httpx.Client"]:
    """Temporarily install an HTTPX client backed by ``transport``."""

    import httpx

    from ..net import configure_http_client, reset_http_client

    client = httpx.Client(transport=transport, **client_kwargs)
    configure_http_client(client)
    try:
        yield client
    finally:
        reset_http_client()
        client.close()


def build_zip(
    entries: Mapping[str, Optional[Union[bytes, str]]],
    *,
    date_time: Tuple[int, int, int, int, int, int] = DEFAULT_ENTRY_TIME,
    symlinks: Optional[Mapping[str, str]] = None,
) -> bytes:
    """Return zip bytes holding ``entries``; a ``None`` value adds a directory entry.

    ``symlinks`` maps entry names to link targets, stored with Unix symlink mode bits.
    """

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, link_target in (symlinks or {}).items():
            info = zipfile.ZipInfo(name, date_time=date_time)
            info.create_system = 3
            info.external_attr = 0o120777 << 16
            archive.writestr(info, link_target)
        for name, content in entries.items():
            if content is None:
                dirname = name if name.endswith("/") else name + "/"
                info = zipfile.ZipInfo(dirname, date_time=date_time)
                info.external_attr = 0o40755 << 16 | 0x10
                archive.writestr(info, b"")
                continue
            info = zipfile.ZipInfo(name, date_time=date_time)
            info.compress_type = zipfile.ZIP_DEFLATED
            info.external_attr = 0o100644 << 16
            archive.writestr(info, content)
    return buffer.getvalue()
