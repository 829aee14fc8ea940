"""Link assembly — pure data movement from collections into Link values.

``begin_link`` is called with the materials collected before the step
runs; ``finish_link`` adds the products collected afterwards.  Both return
new frozen ``Link`` values; the link passed to ``finish_link`` is left as
it was.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from intoto_recorder.models.artifacts import ArtifactSet
from intoto_recorder.models.link import Link, LinkDocument


def _copy_artifacts(artifacts: Mapping[str, Mapping[str, str]] | None) -> ArtifactSet:
    # Detach from the caller's dicts so later edits cannot leak into the link.
    return {identity: dict(hashes) for identity, hashes in (artifacts or {}).items()}


def begin_link(
    step_name: str | None,
    materials: Mapping[str, Mapping[str, str]] | None = None,
    *,
    command: Sequence[str] | None = None,
    environment: Mapping[str, Any] | None = None,
) -> Link:
    """Start a link for *step_name* with the pre-step artifact state.

    An empty or missing step name becomes ``"step"``.
    """
    return Link(
        name=step_name,
        materials=_copy_artifacts(materials),
        command=list(command or []),
        environment=dict(environment or {}),
    )


def finish_link(
    link: Link,
    products: Mapping[str, Mapping[str, str]],
    *,
    byproducts: Mapping[str, Any] | None = None,
    command: Sequence[str] | None = None,
) -> Link:
    """Return *link* completed with the post-step artifact state.

    ``command`` overrides the command recorded at ``begin_link`` time when
    the wrapped command is only known after the step ran.
    """
    update: dict[str, Any] = {"products": _copy_artifacts(products)}
    if byproducts is not None:
        update["byproducts"] = dict(byproducts)
    if command is not None:
        update["command"] = list(command)
    return link.model_copy(update=update, deep=True)


def unsigned_document(link: Link) -> LinkDocument:
    """Wrap a finished link in a document with no signatures."""
    return LinkDocument(signed=link)


def link_from_document(text: str | bytes) -> Link:
    """Parse a serialized link document and return its signed body."""
    return LinkDocument.from_json(text).signed
