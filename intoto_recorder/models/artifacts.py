"""Artifact hash aliases shared by the collector, links and transports.

Artifact sets are plain dictionaries so a collection result can cross a
process boundary (or be pickled to a worker) without carrying live handles.
"""

from __future__ import annotations

from typing import TypeAlias

# hash algorithm name -> lowercase hex digest, for one artifact
ArtifactHash: TypeAlias = dict[str, str]

# artifact identity (relative POSIX path) -> ArtifactHash
ArtifactSet: TypeAlias = dict[str, ArtifactHash]
