"""Link signing with Ed25519 keys via PyNaCl (libsodium).

Key files hold a hex-encoded 32-byte Ed25519 seed.  A key's id is the
SHA-256 of the canonical JSON description of its public half, the same
derivation in-toto uses, so ids are stable across processes and hosts.

Signatures cover ``Link.signable_bytes()``, the canonical body only and
never the document's signature list, and are hex encoded.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

import nacl.signing
from nacl.exceptions import BadSignatureError, CryptoError

from intoto_recorder.core.hasher import canonical_json_bytes, sha256_hex
from intoto_recorder.errors import SigningFailure
from intoto_recorder.models.link import Link, LinkDocument, Signature

logger = logging.getLogger(__name__)

KEY_TYPE = "ed25519"


@runtime_checkable
class Key(Protocol):
    """An opaque signing capability.

    Loaded once per step configuration and held for one step execution.
    The recorder never persists it.
    """

    def key_id(self) -> str:
        """Return the stable identifier of this key."""
        ...

    def sign(self, data: bytes) -> Signature:
        """Sign *data* and return a signature tagged with ``key_id()``."""
        ...


class Ed25519Key:
    """Ed25519 signing key backed by ``nacl.signing.SigningKey``."""

    def __init__(self, signing_key: nacl.signing.SigningKey) -> None:
        self._signing_key = signing_key
        self._key_id = sha256_hex(
            canonical_json_bytes(
                {
                    "keytype": KEY_TYPE,
                    "scheme": KEY_TYPE,
                    "keyval": {"public": self.public_hex()},
                }
            )
        )

    @classmethod
    def from_seed_hex(cls, seed_hex: str) -> Ed25519Key:
        try:
            seed = bytes.fromhex(seed_hex.strip())
            return cls(nacl.signing.SigningKey(seed))
        except (ValueError, TypeError, CryptoError) as exc:
            raise SigningFailure(f"Malformed Ed25519 seed: {exc}") from exc

    def key_id(self) -> str:
        return self._key_id

    def public_hex(self) -> str:
        return self._signing_key.verify_key.encode().hex()

    def private_hex(self) -> str:
        return self._signing_key.encode().hex()

    def sign(self, data: bytes) -> Signature:
        signed = self._signing_key.sign(data)
        return Signature(keyid=self._key_id, sig=signed.signature.hex())

    def __repr__(self) -> str:
        return f"Ed25519Key(keyid={self._key_id[:8]}...)"


def generate_key() -> Ed25519Key:
    """Generate a fresh random Ed25519 key."""
    return Ed25519Key(nacl.signing.SigningKey.generate())


def load_key(path: Path | str) -> Ed25519Key:
    """Load an Ed25519 key from a hex seed file.

    Raises
    ------
    SigningFailure
        If the file does not exist, cannot be read, or is malformed.
    """
    key_path = Path(path)
    if not key_path.is_file():
        raise SigningFailure(f"Signing key path ({key_path}) does not exist")
    try:
        text = key_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise SigningFailure(f"Cannot read signing key {key_path}: {exc}") from exc
    key = Ed25519Key.from_seed_hex(text)
    logger.info("Loaded signing key %s from %s", key.key_id(), key_path)
    return key


def write_key(key: Ed25519Key, path: Path | str) -> Path:
    """Write *key*'s seed to *path* as hex, owner-readable only."""
    key_path = Path(path)
    key_path.parent.mkdir(parents=True, exist_ok=True)
    key_path.write_text(key.private_hex() + "\n", encoding="utf-8")
    key_path.chmod(0o600)
    return key_path


def sign_link(link: Link, key: Key | None) -> Signature:
    """Sign the canonical body of *link* with *key*.

    The link is not modified; append the returned signature with
    ``attach_signature``.

    Raises
    ------
    SigningFailure
        If *key* is missing or not a signing key, the link body cannot be
        serialized, or the key fails to sign.
    """
    if key is None:
        raise SigningFailure("No signing key provided")
    if not isinstance(key, Key):
        raise SigningFailure(f"Object of type {type(key).__name__} is not a signing key")
    try:
        payload = link.signable_bytes()
    except (TypeError, ValueError) as exc:
        raise SigningFailure(f"Link {link.name!r} cannot be serialized for signing: {exc}") from exc
    try:
        signature = key.sign(payload)
    except Exception as exc:  # noqa: BLE001
        raise SigningFailure(f"Key {key.key_id()} failed to sign: {exc}") from exc
    logger.debug("Signed link %s with key %s", link.name, signature.keyid)
    return signature


def attach_signature(document: LinkDocument, signature: Signature) -> LinkDocument:
    """Return a copy of *document* with *signature* appended."""
    return LinkDocument(
        signatures=[*document.signatures, signature],
        signed=document.signed,
    )


def verify_signature(link: Link, signature: Signature, public_hex: str) -> bool:
    """Check *signature* against *link*'s body under an Ed25519 public key.

    Returns ``False`` for malformed keys or signatures instead of raising.
    """
    try:
        verify_key = nacl.signing.VerifyKey(bytes.fromhex(public_hex))
        verify_key.verify(link.signable_bytes(), bytes.fromhex(signature.sig))
    except (BadSignatureError, ValueError, TypeError, CryptoError):
        return False
    return True
