"""Transport protocol for submitting link documents to provenance stores.

Every transport implements the ``Transport`` protocol: a
``transport_name`` property and a ``submit(document)`` method.  New stores
are added by writing another implementation and teaching the dispatcher
its URI scheme; collection, assembly and signing never change.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from intoto_recorder.models.link import LinkDocument
from intoto_recorder.models.outcome import SubmitOutcome


@runtime_checkable
class Transport(Protocol):
    """Protocol that every link transport must implement.

    Attributes
    ----------
    transport_name : str
        Short identifier of the variant (``"local"``, ``"http"``,
        ``"grafeas"``).
    """

    @property
    def transport_name(self) -> str:
        """Return the name of this transport variant."""
        ...

    def submit(self, document: LinkDocument) -> SubmitOutcome:
        """Deliver *document* and report where it went.

        Implementations must not modify the document.  Failures raise a
        ``RecorderError`` subclass; the recorder decides whether they are
        fatal.
        """
        ...
