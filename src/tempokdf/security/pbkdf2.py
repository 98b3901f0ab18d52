"""Incremental PBKDF2 (RFC 2898).

A PBKDF2 object holds the running state of one derivation, so a key derived
after 1000 iterations can be extended to 2000 iterations without computing
the first 1000 again. derive() and search() build on this to run the
derivation for a given amount of time instead of a given iteration count.
"""
from __future__ import annotations

import math
from typing import Any, Callable, Optional, Tuple, Union

from tempokdf.core.exceptions import KeyFound, TIMEOUT, InvalidArgumentError
from tempokdf.core.timer import Duration
from tempokdf.security.control import DEFAULT_PRECISION, derive_controlled
from tempokdf.security.prf import hmac_prf

BytesLike = Union[bytes, bytearray, memoryview, str]


def _to_bytes(value: BytesLike) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise InvalidArgumentError(f"expected bytes or str, got {type(value).__name__}")
    return bytes(value)


def _never(key: bytes) -> None:
    return None


class PBKDF2:
    def __init__(
        self,
        password: BytesLike,
        salt: BytesLike,
        key_len: int,
        prf: Optional[Callable[[bytes], Any]] = None,
    ):
        if prf is None:
            prf = hmac_prf()
        self._prf = prf(_to_bytes(password))
        self._salt = _to_bytes(salt)
        self._key_len = self._check_key_len(key_len)
        self._t = bytearray()
        self._u = bytearray()
        self._iters = 0

    def _check_key_len(self, key_len: int) -> int:
        if isinstance(key_len, bool) or not isinstance(key_len, int) or key_len <= 0:
            raise InvalidArgumentError(f"invalid key length: {key_len!r}")
        if key_len > (2**32 - 1) * self._prf.digest_size:
            raise InvalidArgumentError("derived key too long")
        return key_len

    @property
    def salt(self) -> bytes:
        return bytes(self._salt)

    @property
    def size(self) -> int:
        return self._key_len

    @property
    def iters(self) -> int:
        return self._iters

    @property
    def digest_size(self) -> int:
        return self._prf.digest_size

    @property
    def prf_name(self) -> str:
        return getattr(self._prf, "name", "unknown")

    def current_key(self) -> Optional[bytes]:
        """Return a copy of the key at the current iteration count, or None."""
        if self._iters == 0:
            return None
        return bytes(self._t[: self._key_len])

    def next(self, count: int) -> bytes:
        """Run `count` more iterations and return a copy of the new key."""
        if isinstance(count, bool) or not isinstance(count, int) or count <= 0:
            raise InvalidArgumentError(f"invalid iteration count: {count!r}")
        prf = self._prf
        h_len = prf.digest_size

        if self._iters == 0:
            blocks = math.ceil(self._key_len / h_len)
            t = bytearray()
            for i in range(1, blocks + 1):
                prf.reset()
                prf.update(self._salt)
                prf.update(i.to_bytes(4, "big"))
                t += prf.digest()
            self._t = t
            self._u = bytearray(t)
            self._iters = 1
            count -= 1

        t, u = self._t, self._u
        n = len(u)
        acc = int.from_bytes(t, "big")
        for _ in range(count):
            for j in range(0, n, h_len):
                prf.reset()
                prf.update(u[j : j + h_len])
                u[j : j + h_len] = prf.digest()
            acc ^= int.from_bytes(u, "big")
        t[:] = acc.to_bytes(n, "big")
        self._iters += count
        return bytes(t[: self._key_len])

    def reset(self, salt: Optional[BytesLike] = None, key_len: Optional[int] = None) -> None:
        """Return to zero iterations, optionally with a new salt and key length.

        The password cannot be changed; create a new object for that.
        """
        if salt is not None:
            salt = _to_bytes(salt)
        if key_len is not None and key_len > 0:
            self._key_len = self._check_key_len(key_len)
        if salt is not None:
            self._salt = salt
        self._t = bytearray()
        self._u = bytearray()
        self._iters = 0

    def derive(self, duration: Duration, precision: int = DEFAULT_PRECISION) -> bytes:
        """Derive a new key in about `duration` seconds of CPU time."""
        key, _ = derive_controlled(self, duration, precision, _never)
        return key

    def search(
        self,
        duration: Duration,
        predicate: Callable[[bytes], Any],
        precision: int = DEFAULT_PRECISION,
    ) -> Tuple[Optional[bytes], Any]:
        """Look for a previously derived key within `duration`.

        The predicate is called with the key after every step of the
        derivation and must be fast to keep the timing accurate. Returning
        KEY_FOUND ends the search successfully and yields (key, None). Any
        other truthy return value aborts the search and yields (None, value);
        running out of time yields (None, TIMEOUT).

        Searching should get more time than deriving did, especially on a
        different machine: 3 to 5 times the derive duration is reasonable.
        """
        key, status = derive_controlled(self, duration, precision, predicate)
        if status is KeyFound or isinstance(status, KeyFound):
            return key, None
        return None, status or TIMEOUT


def key(
    password: BytesLike,
    salt: BytesLike,
    iterations: int,
    key_len: int,
    prf: Optional[Callable[[bytes], Any]] = None,
) -> bytes:
    """Derive a key with a fixed iteration count (plain RFC 2898 PBKDF2)."""
    return PBKDF2(password, salt, key_len, prf).next(iterations)
