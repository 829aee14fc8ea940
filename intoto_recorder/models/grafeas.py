"""Grafeas occurrence models for the in-toto note kind.

Field names serialize in camelCase (``noteName``, ``resourceUri``,
``customValues``, ``keyId``) to match the occurrence API.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _GrafeasModel(BaseModel):
    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )


class GrafeasArtifact(_GrafeasModel):
    resource_uri: str  # "file://<alg>:<digest>:<identity>"
    hashes: dict[str, str]


class GrafeasCustomValues(_GrafeasModel):
    custom_values: dict[str, str] = {}


class GrafeasSignature(_GrafeasModel):
    key_id: str
    signature: str


class GrafeasLink(_GrafeasModel):
    command: list[str] = []
    materials: list[GrafeasArtifact] = []
    products: list[GrafeasArtifact] = []
    byproducts: GrafeasCustomValues = GrafeasCustomValues()
    environment: GrafeasCustomValues = GrafeasCustomValues()


class GrafeasInToto(_GrafeasModel):
    signatures: list[GrafeasSignature] = []
    signed: GrafeasLink


class GrafeasResource(_GrafeasModel):
    uri: str


class GrafeasOccurrence(_GrafeasModel):
    """An INTOTO occurrence wrapping one transformed link."""

    note_name: str
    resource: GrafeasResource
    kind: Literal["INTOTO"] = "INTOTO"
    intoto: GrafeasInToto
