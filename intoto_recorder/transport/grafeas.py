"""Grafeas transport — submits links as INTOTO occurrences.

Transport URIs look like::

    grafeas+https://store.example/v1beta1/projects/p/occurrences?noteName=projects/p/notes/n&resourceUri=git://repo

The ``grafeas+`` prefix selects this transport and is stripped to obtain
the wire scheme.  ``noteName`` and ``resourceUri`` are both required; they
are consumed here and not forwarded to the endpoint.

Each material and product becomes an artifact addressed as
``file://<algorithm>:<digest>:<identity>``.  Byproducts and environment
values are flattened to strings under ``customValues``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, NamedTuple
from urllib.parse import parse_qs, urlsplit, urlunsplit

import httpx

from intoto_recorder.core.hasher import canonical_json_bytes
from intoto_recorder.errors import ArtifactHashMissing, ConfigurationError, UnsupportedTransport
from intoto_recorder.models.grafeas import (
    GrafeasArtifact,
    GrafeasCustomValues,
    GrafeasInToto,
    GrafeasLink,
    GrafeasOccurrence,
    GrafeasResource,
    GrafeasSignature,
)
from intoto_recorder.models.link import LinkDocument
from intoto_recorder.models.outcome import SubmitOutcome
from intoto_recorder.transport.http import DEFAULT_TIMEOUT_SECONDS, post_payload

logger = logging.getLogger(__name__)

STORE_KIND = "grafeas"
WIRE_SCHEMES = ("http", "https")
PRIMARY_ALGORITHM = "sha256"


class GrafeasTarget(NamedTuple):
    """A parsed Grafeas transport URI."""

    endpoint: str
    note_name: str
    resource_uri: str


def _required_param(params: Mapping[str, list[str]], name: str, uri: str) -> str:
    values = params.get(name)
    if not values or not values[0]:
        raise ConfigurationError(
            f"Grafeas transport URI is missing the {name!r} parameter: {uri}"
        )
    return values[0]


def parse_grafeas_uri(uri: str) -> GrafeasTarget:
    """Split a ``grafeas+<scheme>://`` URI into endpoint and occurrence fields.

    Raises
    ------
    UnsupportedTransport
        If the scheme is not ``grafeas+http`` or ``grafeas+https``.
    ConfigurationError
        If the host, ``noteName`` or ``resourceUri`` is missing, or the
        endpoint is not a valid URL.
    """
    try:
        parts = urlsplit(uri)
    except ValueError as exc:
        raise ConfigurationError(f"Malformed Grafeas transport URI {uri!r}: {exc}") from exc

    store_kind, plus, wire_scheme = parts.scheme.partition("+")
    if store_kind != STORE_KIND or not plus or wire_scheme not in WIRE_SCHEMES:
        raise UnsupportedTransport(
            f"Not a Grafeas transport URI (expected grafeas+http(s)): {uri}"
        )
    if not parts.netloc:
        raise ConfigurationError(f"Grafeas transport URI has no host: {uri}")

    params = parse_qs(parts.query)
    note_name = _required_param(params, "noteName", uri)
    resource_uri = _required_param(params, "resourceUri", uri)
    endpoint = urlunsplit((wire_scheme, parts.netloc, parts.path, "", ""))
    try:
        httpx.URL(endpoint)
    except httpx.InvalidURL as exc:
        raise ConfigurationError(f"Malformed Grafeas endpoint {endpoint!r}: {exc}") from exc
    return GrafeasTarget(endpoint, note_name, resource_uri)


def _to_artifacts(
    artifacts: Mapping[str, Mapping[str, str]], algorithm: str, role: str
) -> list[GrafeasArtifact]:
    converted: list[GrafeasArtifact] = []
    for identity in sorted(artifacts):
        hashes = artifacts[identity]
        digest = hashes.get(algorithm)
        if not digest:
            raise ArtifactHashMissing(
                f"{role} {identity!r} has no {algorithm} digest; "
                f"cannot build its resource URI"
            )
        converted.append(
            GrafeasArtifact(
                resource_uri=f"file://{algorithm}:{digest}:{identity}",
                hashes=dict(hashes),
            )
        )
    return converted


def _stringify(values: Mapping[str, Any]) -> GrafeasCustomValues:
    return GrafeasCustomValues(
        custom_values={
            key: value if isinstance(value, str) else str(value)
            for key, value in values.items()
        }
    )


def build_occurrence(
    document: LinkDocument,
    note_name: str,
    resource_uri: str,
    *,
    algorithm: str = PRIMARY_ALGORITHM,
) -> GrafeasOccurrence:
    """Transform a link document into an INTOTO occurrence.

    The link is read, never modified.  Artifacts are emitted sorted by
    identity so the same link always yields the same occurrence; empty
    material or product sets yield empty lists.

    Raises
    ------
    ArtifactHashMissing
        If any artifact has no digest under *algorithm*.
    """
    link = document.signed
    signed = GrafeasLink(
        command=list(link.command),
        materials=_to_artifacts(link.materials, algorithm, "material"),
        products=_to_artifacts(link.products, algorithm, "product"),
        byproducts=_stringify(link.byproducts),
        environment=_stringify(link.environment),
    )
    return GrafeasOccurrence(
        note_name=note_name,
        resource=GrafeasResource(uri=resource_uri),
        intoto=GrafeasInToto(
            signatures=[
                GrafeasSignature(key_id=s.keyid, signature=s.sig)
                for s in document.signatures
            ],
            signed=signed,
        ),
    )


def occurrence_json(occurrence: GrafeasOccurrence) -> str:
    """Canonical JSON text of an occurrence, with API field names."""
    return canonical_json_bytes(
        occurrence.model_dump(mode="json", by_alias=True)
    ).decode("utf-8")


class GrafeasTransport:
    """Submits link documents to a Grafeas occurrence endpoint.

    The URI is parsed at construction so configuration problems surface
    before the step runs.

    Parameters
    ----------
    uri:
        ``grafeas+http(s)://host/path?noteName=...&resourceUri=...``
    timeout_seconds:
        Upper bound on the POST.
    client:
        Optional ``httpx.Client`` to send with.
    """

    def __init__(
        self,
        uri: str,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        client: httpx.Client | None = None,
    ) -> None:
        self._target = parse_grafeas_uri(uri)
        self._timeout = timeout_seconds
        self._client = client

    @property
    def transport_name(self) -> str:
        return STORE_KIND

    @property
    def target(self) -> GrafeasTarget:
        return self._target

    def submit(self, document: LinkDocument) -> SubmitOutcome:
        occurrence = build_occurrence(
            document, self._target.note_name, self._target.resource_uri
        )
        response = post_payload(
            self._target.endpoint,
            occurrence_json(occurrence),
            timeout_seconds=self._timeout,
            client=self._client,
        )
        logger.info(
            "Submitted occurrence for link %s to %s (note %s, HTTP %d)",
            document.signed.name,
            self._target.endpoint,
            self._target.note_name,
            response.status_code,
        )
        return SubmitOutcome(
            transport=self.transport_name,
            target=self._target.endpoint,
            status_code=response.status_code,
        )
