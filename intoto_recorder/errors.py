"""Failure taxonomy for link recording.

Every failure the recorder surfaces derives from ``RecorderError`` so host
integrations can catch one type and report a descriptive message.
"""

from __future__ import annotations


class RecorderError(RuntimeError):
    """Base class for all recorder failures."""


class IOFailure(RecorderError):
    """Raised when the artifact walk or a link write hits a filesystem error.

    Fatal: no partial link is produced.
    """


class SigningFailure(RecorderError):
    """Raised when key material is absent, malformed, or cannot sign."""


class UnsupportedTransport(RecorderError):
    """Raised when a transport URI has an unknown or malformed scheme."""


class ConfigurationError(RecorderError):
    """Raised when a transport URI is missing required parameters."""


class TransportFailure(RecorderError):
    """Raised on network errors, timeouts and non-2xx submission responses."""


class ArtifactHashMissing(RecorderError):
    """Raised when an artifact lacks the digest needed to address it."""


class RecorderStateError(RecorderError):
    """Raised when recorder lifecycle calls happen out of order."""
