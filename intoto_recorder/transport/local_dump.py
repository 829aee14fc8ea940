"""Local dump transport — writes link documents next to the build.

Layout: {link_dir}/{step_name}.{suffix}.link

Path separators in the step name are replaced with ``_`` so every dump
lands directly in ``link_dir``.  The suffix is the first 8 characters of
the first signature's key id, or 8 random hex characters for unsigned
documents.  Files hold indented, key-sorted JSON.
"""

from __future__ import annotations

import logging
import re
import uuid
from pathlib import Path

from intoto_recorder.errors import IOFailure
from intoto_recorder.models.link import LinkDocument
from intoto_recorder.models.outcome import SubmitOutcome

logger = logging.getLogger(__name__)

LINK_SUFFIX = ".link"
_UNSAFE_NAME_CHARS = re.compile(r"[\\/\x00]")


class LocalDumpTransport:
    """Writes link documents to local files.

    Parameters
    ----------
    link_dir:
        Directory receiving ``.link`` files.  Created on first write.
    """

    def __init__(self, link_dir: Path | str) -> None:
        self._link_dir = Path(link_dir)

    @property
    def transport_name(self) -> str:
        return "local"

    @property
    def link_dir(self) -> Path:
        return self._link_dir

    @staticmethod
    def link_filename(document: LinkDocument) -> str:
        if document.signatures:
            suffix = document.signatures[0].keyid[:8]
        else:
            suffix = uuid.uuid4().hex[:8]
        stem = _UNSAFE_NAME_CHARS.sub("_", document.signed.name)
        return f"{stem}.{suffix}{LINK_SUFFIX}"

    def submit(self, document: LinkDocument) -> SubmitOutcome:
        target = self._link_dir / self.link_filename(document)
        try:
            self._link_dir.mkdir(parents=True, exist_ok=True)
            target.write_text(document.to_pretty_json(), encoding="utf-8")
        except OSError as exc:
            raise IOFailure(f"Cannot write link metadata to {target}: {exc}") from exc

        logger.info("Wrote link metadata to %s", target)
        return SubmitOutcome(transport=self.transport_name, target=str(target))
