"""Transport selection by URI scheme.

``resolve_transport_kind`` is a pure function from a transport URI to a
``TransportKind``.  ``create_transport`` builds the matching variant:

- no URI            -> LOCAL   (link stays in the local link directory)
- ``http``/``https``  -> HTTP    (generic POST of the link document)
- ``grafeas+<wire>``  -> GRAFEAS (occurrence transform, POST over <wire>)

Anything else raises ``UnsupportedTransport``.  Callers are expected to
fall back to the local dump rather than abort the step.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from urllib.parse import urlsplit

import httpx

from intoto_recorder.errors import UnsupportedTransport
from intoto_recorder.transport import Transport
from intoto_recorder.transport.grafeas import STORE_KIND as GRAFEAS_STORE_KIND
from intoto_recorder.transport.grafeas import WIRE_SCHEMES, GrafeasTransport
from intoto_recorder.transport.http import DEFAULT_TIMEOUT_SECONDS, HttpTransport
from intoto_recorder.transport.local_dump import LocalDumpTransport


class TransportKind(str, Enum):
    """The supported transport variants."""

    LOCAL = "local"
    HTTP = "http"
    GRAFEAS = "grafeas"


_STORE_KINDS: dict[str, TransportKind] = {
    GRAFEAS_STORE_KIND: TransportKind.GRAFEAS,
}


def _check_endpoint(uri: str) -> None:
    try:
        httpx.URL(uri)
    except httpx.InvalidURL as exc:
        raise UnsupportedTransport(f"Malformed transport URI {uri!r}: {exc}") from exc


def resolve_transport_kind(uri: str | None) -> TransportKind:
    """Map a transport URI to the variant that handles it.

    Raises
    ------
    UnsupportedTransport
        If the URI is malformed, has no host, or its scheme is unknown.
    """
    if uri is None or not uri.strip():
        return TransportKind.LOCAL

    try:
        parts = urlsplit(uri.strip())
    except ValueError as exc:
        raise UnsupportedTransport(f"Malformed transport URI {uri!r}: {exc}") from exc

    scheme = parts.scheme.lower()
    if not scheme or not parts.netloc:
        raise UnsupportedTransport(
            f"Transport URI must include a scheme and host: {uri!r}"
        )

    if scheme in WIRE_SCHEMES:
        _check_endpoint(uri.strip())
        return TransportKind.HTTP

    store_kind, plus, wire_scheme = scheme.partition("+")
    if plus and store_kind in _STORE_KINDS and wire_scheme in WIRE_SCHEMES:
        return _STORE_KINDS[store_kind]

    raise UnsupportedTransport(f"Unsupported transport scheme {scheme!r} in {uri!r}")


def create_transport(
    uri: str | None,
    *,
    link_dir: Path | str,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    client: httpx.Client | None = None,
) -> Transport:
    """Build the transport selected by *uri*.

    Raises
    ------
    UnsupportedTransport
        If the scheme is not recognised.
    ConfigurationError
        If a Grafeas URI lacks ``noteName`` or ``resourceUri``.
    """
    kind = resolve_transport_kind(uri)
    if kind is TransportKind.LOCAL:
        return LocalDumpTransport(link_dir)

    if uri is None:
        raise UnsupportedTransport(f"No transport URI given for {kind.value} transport")
    if kind is TransportKind.HTTP:
        return HttpTransport(uri.strip(), timeout_seconds=timeout_seconds, client=client)
    return GrafeasTransport(uri.strip(), timeout_seconds=timeout_seconds, client=client)
