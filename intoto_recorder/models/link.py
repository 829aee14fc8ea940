"""Link metadata models — the attestation record for one build step.

Serialized field names follow the in-toto link layout (``_type``, ``name``,
``materials``, ``products``, ``command``, ``byproducts``, ``environment``)
wrapped in a ``{"signatures": [...], "signed": {...}}`` document.

All models are frozen.  A Link is never edited in place: the assembler
returns a new value for each lifecycle step, and transports that need a
different shape build derived structures.
"""

from __future__ import annotations

import json
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from intoto_recorder.core.hasher import canonical_json_bytes
from intoto_recorder.models.artifacts import ArtifactSet

DEFAULT_STEP_NAME = "step"


class Signature(BaseModel):
    """A signature over a link body, tagged with the signing key's id."""

    model_config = ConfigDict(frozen=True)

    keyid: str
    sig: str  # hex


class Link(BaseModel):
    """The signed body of a link document."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type_: Literal["link"] = Field(default="link", alias="_type")
    name: str = DEFAULT_STEP_NAME
    materials: ArtifactSet = {}
    products: ArtifactSet = {}
    command: list[str] = []
    byproducts: dict[str, Any] = {}
    environment: dict[str, Any] = {}

    @field_validator("name", mode="before")
    @classmethod
    def _default_step_name(cls, value: Any) -> Any:
        if value is None or value == "":
            return DEFAULT_STEP_NAME
        return value

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    def signable_bytes(self) -> bytes:
        """Canonical bytes of the link body, the payload every key signs."""
        return canonical_json_bytes(self.to_dict())


class LinkDocument(BaseModel):
    """A link body plus zero or more signatures.

    Zero signatures is a valid document but carries weak provenance;
    the recorder warns the operator whenever it produces one.
    """

    model_config = ConfigDict(frozen=True)

    signatures: list[Signature] = []
    signed: Link

    @property
    def is_signed(self) -> bool:
        return bool(self.signatures)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self) -> str:
        """Canonical JSON text of the whole document."""
        return canonical_json_bytes(self.to_dict()).decode("utf-8")

    def to_pretty_json(self) -> str:
        """Indented, key-sorted JSON text for files read by people."""
        return json.dumps(self.to_dict(), indent=2, sort_keys=True)

    @classmethod
    def from_json(cls, text: str | bytes) -> LinkDocument:
        return cls.model_validate_json(text)
