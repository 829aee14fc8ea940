"""Link recorder — the lifecycle of recording one build step.

The host build system drives two calls:

1. ``prebuild(workspace)`` — collect materials and start the link.
2. ``perform(...)`` — collect products, finish and sign the link, write the
   local dump, then submit to the configured transport.

The local dump is always written before any network submission so a
failed or cancelled submission never loses the step's metadata.  Transport
configuration problems downgrade to the local dump with a warning;
submission failures are reported in the result, never raised.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict

from intoto_recorder.core.assembler import begin_link, finish_link, unsigned_document
from intoto_recorder.core.collector import ArtifactCollector
from intoto_recorder.core.signer import Key, attach_signature, load_key, sign_link
from intoto_recorder.errors import (
    ArtifactHashMissing,
    ConfigurationError,
    RecorderStateError,
    SigningFailure,
    TransportFailure,
    UnsupportedTransport,
)
from intoto_recorder.models.config import StepConfig
from intoto_recorder.models.link import Link, LinkDocument
from intoto_recorder.models.outcome import SubmitOutcome
from intoto_recorder.transport import Transport
from intoto_recorder.transport.dispatcher import create_transport
from intoto_recorder.transport.local_dump import LocalDumpTransport

logger = logging.getLogger(__name__)


class RecordResult(BaseModel):
    """What ``perform`` produced for one step."""

    model_config = ConfigDict(frozen=True)

    document: LinkDocument
    local_path: Path
    outcomes: list[SubmitOutcome] = []

    @property
    def delivered(self) -> bool:
        """``True`` if every attempted submission was delivered."""
        return all(outcome.delivered for outcome in self.outcomes)


def run_command(argv: Sequence[str], *, cwd: Path | str | None = None) -> dict[str, Any]:
    """Run a wrapped step command and capture its byproducts.

    Returns ``{"stdout", "stderr", "return-value"}``.  A command that
    cannot be started is reported with return value 127 and the OS error
    as stderr rather than raised.
    """
    try:
        completed = subprocess.run(
            list(argv), cwd=cwd, capture_output=True, text=True, check=False
        )
    except OSError as exc:
        logger.error("Could not run %s: %s", argv[0] if argv else "<empty>", exc)
        return {"stdout": "", "stderr": str(exc), "return-value": 127}
    return {
        "stdout": completed.stdout,
        "stderr": completed.stderr,
        "return-value": completed.returncode,
    }


class LinkRecorder:
    """Records link metadata for one build step.

    Parameters
    ----------
    config:
        The step configuration.  A configured ``key_path`` is loaded
        immediately; a key that cannot be loaded raises ``SigningFailure``.
    key:
        A pre-loaded key, taking precedence over ``config.key_path``.
    collector:
        Collector used for both snapshots.  Built from ``config`` if omitted.
    client:
        ``httpx.Client`` handed to network transports.
    """

    def __init__(
        self,
        config: StepConfig | None = None,
        *,
        key: Key | None = None,
        collector: ArtifactCollector | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.config = config or StepConfig()
        self._client = client
        self._collector = collector or ArtifactCollector(
            exclude_patterns=self.config.exclude_patterns,
            follow_symlinks=self.config.follow_symlinks,
            max_workers=self.config.max_workers,
        )

        if key is None and self.config.key_path is not None:
            key = load_key(self.config.key_path)
        self._key = key

        self._workspace: Path | None = None
        self._link: Link | None = None

    @property
    def step_name(self) -> str:
        return self.config.step_name

    @property
    def key(self) -> Key | None:
        return self._key

    @property
    def link(self) -> Link | None:
        """The link in progress (after ``prebuild``) or finished."""
        return self._link

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def prebuild(
        self,
        workspace: Path | str,
        *,
        command: Sequence[str] | None = None,
        environment: Mapping[str, Any] | None = None,
    ) -> Link:
        """Collect materials under *workspace* and start the link.

        Raises
        ------
        IOFailure
            If the workspace cannot be walked.
        """
        self._workspace = Path(workspace)
        logger.info("Recording state before build in %s", self._workspace)
        logger.info("Using step name: %s", self.step_name)

        materials = self._collector.collect(self._workspace)
        self._link = begin_link(
            self.step_name, materials, command=command, environment=environment
        )
        return self._link

    def perform(
        self,
        *,
        command: Sequence[str] | None = None,
        byproducts: Mapping[str, Any] | None = None,
    ) -> RecordResult:
        """Collect products, sign, dump locally and submit.

        Raises
        ------
        RecorderStateError
            If ``prebuild`` has not been called.
        IOFailure
            If products cannot be collected or the local dump cannot be
            written.  Nothing is submitted in that case.
        """
        if self._link is None or self._workspace is None:
            raise RecorderStateError("perform() called before prebuild()")

        products = self._collector.collect(self._workspace)
        self._link = finish_link(
            self._link, products, byproducts=byproducts, command=command
        )

        document = self._sign(self._link)
        local = LocalDumpTransport(self.config.link_dir or self._workspace)
        local_outcome = local.submit(document)

        outcomes = [local_outcome]
        remote = self._remote_transport()
        if remote is not None:
            outcomes.append(self._submit(remote, document))

        return RecordResult(
            document=document,
            local_path=Path(local_outcome.target),
            outcomes=outcomes,
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _sign(self, link: Link) -> LinkDocument:
        document = unsigned_document(link)
        if self._key is None:
            logger.warning(
                "No key configured, link %s will not be signed", link.name
            )
            return document

        logger.info("Signing with keyid: %s", self._key.key_id())
        try:
            signature = sign_link(link, self._key)
        except SigningFailure as exc:
            logger.warning("Signing failed, link %s left unsigned: %s", link.name, exc)
            return document
        return attach_signature(document, signature)

    def _remote_transport(self) -> Transport | None:
        uri = self.config.transport
        if not uri:
            logger.info(
                "No transport specified, link metadata kept in local directory"
            )
            return None
        try:
            transport = create_transport(
                uri,
                link_dir=self.config.link_dir or self._workspace or Path.cwd(),
                timeout_seconds=self.config.timeout_seconds,
                client=self._client,
            )
        except (UnsupportedTransport, ConfigurationError) as exc:
            logger.warning("%s; link metadata kept in local directory only", exc)
            return None
        logger.info("Dumping metadata to: %s", uri)
        return transport

    def _submit(self, transport: Transport, document: LinkDocument) -> SubmitOutcome:
        try:
            return transport.submit(document)
        except ArtifactHashMissing as exc:
            logger.warning("%s; link not submitted via %s", exc, transport.transport_name)
            detail = str(exc)
        except TransportFailure as exc:
            logger.error("Link submission via %s failed: %s", transport.transport_name, exc)
            detail = str(exc)
        return SubmitOutcome(
            transport=transport.transport_name,
            target=self.config.transport or "",
            delivered=False,
            detail=detail,
        )
