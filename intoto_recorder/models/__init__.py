"""Recorder data models — all Pydantic v2, all frozen (immutable)."""

from intoto_recorder.models.artifacts import ArtifactHash, ArtifactSet
from intoto_recorder.models.config import StepConfig
from intoto_recorder.models.grafeas import (
    GrafeasArtifact,
    GrafeasCustomValues,
    GrafeasInToto,
    GrafeasLink,
    GrafeasOccurrence,
    GrafeasResource,
    GrafeasSignature,
)
from intoto_recorder.models.link import DEFAULT_STEP_NAME, Link, LinkDocument, Signature
from intoto_recorder.models.outcome import SubmitOutcome

__all__ = [
    # artifacts
    "ArtifactHash",
    "ArtifactSet",
    # link
    "DEFAULT_STEP_NAME",
    "Link",
    "LinkDocument",
    "Signature",
    # transport
    "SubmitOutcome",
    # grafeas
    "GrafeasArtifact",
    "GrafeasCustomValues",
    "GrafeasInToto",
    "GrafeasLink",
    "GrafeasOccurrence",
    "GrafeasResource",
    "GrafeasSignature",
    # config
    "StepConfig",
]
