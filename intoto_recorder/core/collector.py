"""Artifact collection — recursive, deterministic discovery and hashing.

A collection walks a directory tree depth-first and maps every regular
file's path (relative to the collection root, POSIX separators) to its
content hashes.  Symlinks, devices, sockets and FIFOs are skipped unless
``follow_symlinks`` is set, in which case symlinks to regular files and
directories are resolved like any other entry.

The collector is stateless: calling ``collect`` twice on the same root
(before and after a step) shares nothing between the two results.  The
result is a plain ``dict`` so it can be produced in a worker process and
returned to whichever process assembles the link.
"""

from __future__ import annotations

import fnmatch
import logging
import os
import stat
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from intoto_recorder.core.hasher import DEFAULT_ALGORITHMS, hash_file
from intoto_recorder.errors import IOFailure
from intoto_recorder.models.artifacts import ArtifactSet

logger = logging.getLogger(__name__)


class ArtifactCollector:
    """Walks a directory tree and hashes every regular file found.

    Parameters
    ----------
    algorithms:
        Hash algorithms applied to every file.  ``sha256`` by default.
    exclude_patterns:
        fnmatch patterns checked against each entry's relative identity
        and its base name.  A matching directory is not descended into.
    follow_symlinks:
        Resolve symlinks instead of skipping them.  Default ``False``.
    max_workers:
        When greater than 1, top-level subtrees are hashed in a thread
        pool and the per-branch results are merged.
    """

    def __init__(
        self,
        algorithms: Sequence[str] = DEFAULT_ALGORITHMS,
        *,
        exclude_patterns: Iterable[str] = (),
        follow_symlinks: bool = False,
        max_workers: int = 1,
    ) -> None:
        if not algorithms:
            raise ValueError("At least one hash algorithm is required")
        self._algorithms = tuple(algorithms)
        self._exclude = tuple(exclude_patterns)
        self._follow_symlinks = follow_symlinks
        self._max_workers = max(1, max_workers)

    @property
    def algorithms(self) -> tuple[str, ...]:
        return self._algorithms

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def collect(self, root: Path | str) -> ArtifactSet:
        """Collect the artifact set rooted at *root*.

        Raises
        ------
        IOFailure
            If *root* does not exist or any entry cannot be read mid-walk.
        """
        root_path = Path(root)
        try:
            root_stat = os.stat(root_path)
        except OSError as exc:
            raise IOFailure(f"Cannot read collection root {root_path}: {exc}") from exc

        result: ArtifactSet = {}
        try:
            if stat.S_ISREG(root_stat.st_mode):
                result[root_path.name] = hash_file(root_path, self._algorithms)
            elif stat.S_ISDIR(root_stat.st_mode):
                if self._max_workers > 1:
                    self._collect_parallel(root_path, result)
                else:
                    self._walk(root_path, "", result)
        except OSError as exc:
            raise IOFailure(f"Artifact collection failed under {root_path}: {exc}") from exc

        logger.info("Collected %d artifacts under %s", len(result), root_path)
        return result

    # ------------------------------------------------------------------
    # Internal: walking
    # ------------------------------------------------------------------

    def _is_excluded(self, identity: str, name: str) -> bool:
        return any(
            fnmatch.fnmatch(identity, pattern) or fnmatch.fnmatch(name, pattern)
            for pattern in self._exclude
        )

    def _children(self, directory: Path, prefix: str) -> list[tuple[Path, str]]:
        children: list[tuple[Path, str]] = []
        with os.scandir(directory) as entries:
            for entry in entries:
                identity = f"{prefix}{entry.name}"
                if self._is_excluded(identity, entry.name):
                    logger.debug("Excluded %s", identity)
                    continue
                children.append((Path(entry.path), identity))
        return children

    def _visit(self, path: Path, identity: str, result: ArtifactSet) -> None:
        try:
            mode = (os.stat(path) if self._follow_symlinks else os.lstat(path)).st_mode
        except FileNotFoundError:
            if path.is_symlink():
                logger.debug("Skipping dangling symlink %s", identity)
                return
            raise
        if stat.S_ISREG(mode):
            result[identity] = hash_file(path, self._algorithms)
        elif stat.S_ISDIR(mode):
            self._walk(path, f"{identity}/", result)
        else:
            logger.debug("Skipping non-regular entry %s", identity)

    def _walk(self, directory: Path, prefix: str, result: ArtifactSet) -> None:
        for path, identity in self._children(directory, prefix):
            self._visit(path, identity, result)

    def _collect_branch(self, path: Path, identity: str) -> ArtifactSet:
        partial: ArtifactSet = {}
        self._visit(path, identity, partial)
        return partial

    def _collect_parallel(self, root: Path, result: ArtifactSet) -> None:
        children = self._children(root, "")
        with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
            futures = [
                pool.submit(self._collect_branch, path, identity)
                for path, identity in children
            ]
            for future in futures:
                result.update(future.result())


def collect(
    root: Path | str,
    *,
    algorithms: Sequence[str] = DEFAULT_ALGORITHMS,
    exclude_patterns: Iterable[str] = (),
    follow_symlinks: bool = False,
) -> ArtifactSet:
    """Convenience wrapper: one-shot sequential collection of *root*."""
    collector = ArtifactCollector(
        algorithms,
        exclude_patterns=exclude_patterns,
        follow_symlinks=follow_symlinks,
    )
    return collector.collect(root)
