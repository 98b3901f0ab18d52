"""Incremental and time-bounded PBKDF2 key derivation.

This package provides:
- PBKDF2, a resumable RFC 2898 derivation state
- time-based derive() and search() built on exponential iteration growth
- an HMAC pseudorandom function adapter over the `cryptography` package
- salt generation and storable parameter records
"""

from tempokdf.core.exceptions import KEY_FOUND, TIMEOUT, KeyFound, SearchTimeout
from .control import DEFAULT_PRECISION, derive_controlled
from .pbkdf2 import PBKDF2, key
from .prf import HmacPRF, hmac_prf
from .params import generate_salt, kdf_params_to_dict, kdf_from_dict, key_from_dict

__all__ = [
    "PBKDF2",
    "key",
    "derive_controlled",
    "DEFAULT_PRECISION",
    "HmacPRF",
    "hmac_prf",
    "generate_salt",
    "kdf_params_to_dict",
    "kdf_from_dict",
    "key_from_dict",
    "KeyFound",
    "KEY_FOUND",
    "SearchTimeout",
    "TIMEOUT",
]
