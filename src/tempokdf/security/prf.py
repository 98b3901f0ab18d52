"""Pseudorandom functions for PBKDF2.

A PRF here is any object with reset(), update(data), digest() and a
digest_size attribute, created from the password by a factory callable.
HmacPRF adapts the HMAC implementation of the `cryptography` package to that
shape; hmac_prf() builds the factory for a given hash.
"""
from __future__ import annotations

from typing import Callable, Dict, Union

from cryptography.hazmat.primitives import hashes, hmac

from tempokdf.core.exceptions import InvalidArgumentError


HASHES: Dict[str, Callable[[], hashes.HashAlgorithm]] = {
    "sha1": hashes.SHA1,
    "sha224": hashes.SHA224,
    "sha256": hashes.SHA256,
    "sha384": hashes.SHA384,
    "sha512": hashes.SHA512,
    "sha512-224": hashes.SHA512_224,
    "sha512-256": hashes.SHA512_256,
    "sha3-224": hashes.SHA3_224,
    "sha3-256": hashes.SHA3_256,
    "sha3-384": hashes.SHA3_384,
    "sha3-512": hashes.SHA3_512,
    "blake2b": lambda: hashes.BLAKE2b(64),
    "blake2s": lambda: hashes.BLAKE2s(32),
}


def resolve_hash(algorithm: Union[str, hashes.HashAlgorithm]) -> hashes.HashAlgorithm:
    if isinstance(algorithm, hashes.HashAlgorithm):
        return algorithm
    try:
        return HASHES[algorithm.lower()]()
    except (KeyError, AttributeError):
        raise InvalidArgumentError(f"unsupported hash algorithm: {algorithm!r}") from None


class HmacPRF:
    """HMAC keyed with the password.

    The keyed context is built once; every block starts from a copy of it,
    so the password is never re-processed. The copy is taken lazily, on the
    first update after reset() or digest().
    """

    def __init__(self, password: bytes, algorithm: Union[str, hashes.HashAlgorithm] = "sha256"):
        self.algorithm = resolve_hash(algorithm)
        self._keyed = hmac.HMAC(bytes(password), self.algorithm)
        self._ctx = None

    @property
    def name(self) -> str:
        return self.algorithm.name

    @property
    def digest_size(self) -> int:
        return self.algorithm.digest_size

    def reset(self) -> None:
        self._ctx = None

    def _context(self) -> hmac.HMAC:
        if self._ctx is None:
            self._ctx = self._keyed.copy()
        return self._ctx

    def update(self, data: bytes) -> None:
        self._context().update(data)

    def digest(self) -> bytes:
        # finalize() invalidates the context
        out = self._context().finalize()
        self._ctx = None
        return out


def hmac_prf(algorithm: Union[str, hashes.HashAlgorithm] = "sha256") -> Callable[[bytes], HmacPRF]:
    """Return a factory that keys an HmacPRF with a password."""
    resolved = resolve_hash(algorithm)

    def factory(password: bytes) -> HmacPRF:
        return HmacPRF(password, resolved)

    factory.algorithm = resolved
    return factory
