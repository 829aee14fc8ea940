"""intoto-recorder: signed link metadata for build steps.

Snapshots a workspace before and after a build step, hashes every artifact,
assembles an in-toto link (materials, products, command, byproducts,
environment), signs it with an Ed25519 key, writes it locally and submits
it to a provenance store:

  - generic HTTP collectors (``http://`` / ``https://``)
  - Grafeas occurrence APIs (``grafeas+https://...?noteName=...&resourceUri=...``)
"""

__version__ = "0.1.0"

from intoto_recorder.core.collector import ArtifactCollector
from intoto_recorder.core.recorder import LinkRecorder, RecordResult
from intoto_recorder.errors import RecorderError
from intoto_recorder.models.config import StepConfig
from intoto_recorder.models.link import Link, LinkDocument, Signature

__all__ = [
    "ArtifactCollector",
    "Link",
    "LinkDocument",
    "LinkRecorder",
    "RecordResult",
    "RecorderError",
    "Signature",
    "StepConfig",
    "__version__",
]
