"""Salt generation and storable parameter records for derived keys.

A timed derivation picks its own iteration count, so the count has to be
stored next to the salt to derive the same key again later. kdf_params_to_dict
produces that record and kdf_from_dict / key_from_dict read it back.
"""
import os
from typing import Dict

from tempokdf.core.exceptions import InvalidArgumentError
from tempokdf.security.pbkdf2 import PBKDF2, BytesLike
from tempokdf.security.prf import hmac_prf, resolve_hash

DEFAULT_SALT_LEN = 16
DEFAULT_KEY_LEN = 32
DEFAULT_ALGORITHM = "sha256"

_ALGO_PREFIX = "pbkdf2-hmac-"


def generate_salt(length: int = DEFAULT_SALT_LEN) -> bytes:
    """Return a cryptographically secure random salt."""
    return os.urandom(length)


def kdf_params_to_dict(kdf: PBKDF2) -> Dict:
    """Describe `kdf` as a record that kdf_from_dict() can read back.

    Raises InvalidArgumentError when hmac_prf() cannot rebuild the PRF by name.
    """
    name = kdf.prf_name
    if resolve_hash(name).digest_size != kdf.digest_size:
        raise InvalidArgumentError(f"hash {name!r} cannot be rebuilt from its name")
    return {
        "algo": _ALGO_PREFIX + name,
        "salt": kdf.salt.hex(),
        "iterations": kdf.iters,
        "key_len": kdf.size,
    }


def kdf_from_dict(password: BytesLike, params: Dict) -> PBKDF2:
    """Build a fresh PBKDF2 state (zero iterations) from a stored record."""
    try:
        algo = params["algo"]
        salt = bytes.fromhex(params["salt"])
        key_len = int(params["key_len"])
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidArgumentError(f"malformed kdf parameters: {e}") from e
    if not isinstance(algo, str) or not algo.startswith(_ALGO_PREFIX):
        raise InvalidArgumentError(f"unsupported kdf algorithm: {algo!r}")
    return PBKDF2(password, salt, key_len, hmac_prf(algo[len(_ALGO_PREFIX):]))


def key_from_dict(password: BytesLike, params: Dict) -> bytes:
    """Re-derive the key described by a stored record."""
    kdf = kdf_from_dict(password, params)
    try:
        iterations = int(params["iterations"])
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidArgumentError(f"malformed kdf parameters: {e}") from e
    return kdf.next(iterations)
