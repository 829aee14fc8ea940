"""Submission outcome reported by every transport."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class SubmitOutcome(BaseModel):
    """Result of handing a link document to one transport.

    ``target`` is a filesystem path for local dumps and the endpoint URI
    for network transports.
    """

    model_config = ConfigDict(frozen=True)

    transport: str
    target: str
    delivered: bool = True
    status_code: int | None = None
    detail: str = ""
