"""Elliptic-curve Diffie-Hellman over Curve25519 (X25519) and its field arithmetic."""

from __future__ import annotations

import base64
import binascii
import hmac
import secrets
import string
from collections.abc import Sequence

from .errors import WrongKey

KEY_SIZE = 32

P = (1 << 255) - 19
_A24 = 121665
_MASK_64 = (1 << 64) - 1
_BASE_POINT = (9).to_bytes(KEY_SIZE, "little")
_HEX_DIGITS = frozenset(string.hexdigits)


def from_limbs(limbs: Sequence[int]) -> int:
    """Combine four little-endian 64-bit limbs into an integer."""
    if len(limbs) != 4:
        raise ValueError(f"expected 4 limbs, got {len(limbs)}")
    value = 0
    for shift, limb in enumerate(limbs):
        if not 0 <= limb <= _MASK_64:
            raise ValueError("limb does not fit in 64 bits")
        value |= limb << (64 * shift)
    return value


def to_limbs(value: int) -> tuple[int, int, int, int]:
    """Split a non-negative integer below 2**256 into four little-endian 64-bit limbs."""
    if not 0 <= value < 1 << 256:
        raise ValueError("value does not fit in 256 bits")
    return tuple((value >> (64 * i)) & _MASK_64 for i in range(4))  # type: ignore[return-value]


def fe_reduce(x: int) -> int:
    """Return the canonical representative of ``x`` modulo 2**255 - 19."""
    return x % P


def fe_add(x: int, y: int) -> int:
    """Add two field elements modulo 2**255 - 19."""
    return (x + y) % P


def fe_mul(x: int, y: int) -> int:
    """Multiply two field elements modulo 2**255 - 19."""
    return (x * y) % P


def fe_square(x: int) -> int:
    """Square a field element modulo 2**255 - 19."""
    return (x * x) % P


def fe_invert(x: int) -> int:
    """Return the modular inverse of ``x``; zero maps to zero."""
    return pow(x % P, P - 2, P)


def _check_key(key: bytes, what: str) -> bytes:
    key = bytes(key)
    if len(key) != KEY_SIZE:
        raise ValueError(f"{what} must be {KEY_SIZE} bytes, got {len(key)}")
    return key


def x25519_shared_key(peer_key: bytes, secret_key: bytes) -> bytes:
    """Run the X25519 Montgomery ladder and return the 32-byte shared value."""
    peer_bytes = _check_key(peer_key, "peer key")
    scalar = bytearray(_check_key(secret_key, "scalar"))

    scalar[0] &= 248
    scalar[31] &= 127
    scalar[31] |= 64
    k = int.from_bytes(scalar, "little")

    # The high bit of the peer's u-coordinate is kept and reduced away.
    x1 = int.from_bytes(peer_bytes, "little") % P
    x2, z2 = 1, 0
    x3, z3 = x1, 1
    swap = 0

    for pos in range(254, -1, -1):
        bit = (k >> pos) & 1
        swap ^= bit
        if swap:
            x2, x3 = x3, x2
            z2, z3 = z3, z2
        swap = bit

        a = x2 + z2
        aa = a * a % P
        b = x2 - z2
        bb = b * b % P
        e = aa - bb
        c = x3 + z3
        d = x3 - z3
        da = d * a % P
        cb = c * b % P
        x3 = (da + cb) ** 2 % P
        z3 = x1 * ((da - cb) ** 2) % P
        x2 = aa * bb % P
        z2 = e * (aa + _A24 * e) % P

    if swap:
        x2, z2 = x3, z3

    return fe_mul(x2, fe_invert(z2)).to_bytes(KEY_SIZE, "little")


def x25519_public_key(secret_key: bytes) -> bytes:
    """Return the public key belonging to a 32-byte secret key."""
    return x25519_shared_key(_BASE_POINT, secret_key)


def _parse_key(text: str) -> bytes:
    """Decode a 32-byte key from 64 hex digits or 43/44 base64 characters."""
    if len(text) == 64:
        if not all(ch in _HEX_DIGITS for ch in text):
            raise ValueError("Illegal character in key")
        return bytes.fromhex(text)
    if len(text) in (43, 44):
        padded = text + "=" * (-len(text) % 4)
        try:
            decoded = base64.b64decode(padded, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError("Illegal character in key") from exc
        if len(decoded) != KEY_SIZE:
            raise ValueError("Illegal character in key")
        return decoded
    raise ValueError("Illegal key size")


class X25519PublicKey:
    """A public X25519 key, derived from a secret key."""

    __slots__ = ("_key",)

    def __init__(self, key: bytes) -> None:
        self._key = _check_key(key, "public key")

    @classmethod
    def from_str(cls, text: str) -> "X25519PublicKey":
        """Parse a public key from a hex or base64 string."""
        return cls(_parse_key(text))

    def constant_time_is_equal(self, other: "X25519PublicKey") -> None:
        """Raise WrongKey unless ``other`` is the same key, comparing in constant time."""
        if not hmac.compare_digest(self._key, bytes(other)):
            raise WrongKey("public keys differ")

    def __bytes__(self) -> bytes:
        return self._key

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, X25519PublicKey):
            return NotImplemented
        return hmac.compare_digest(self._key, other._key)

    def __hash__(self) -> int:
        return hash(self._key)

    def __repr__(self) -> str:
        return f"X25519PublicKey({self._key.hex()})"


class X25519SecretKey:
    """A secret X25519 key."""

    __slots__ = ("_key",)

    def __init__(self, key: bytes) -> None:
        self._key = _check_key(key, "private scalar")

    @classmethod
    def generate(cls) -> "X25519SecretKey":
        """Create a new secret key from the operating system's random source."""
        return cls(secrets.token_bytes(KEY_SIZE))

    @classmethod
    def from_str(cls, text: str) -> "X25519SecretKey":
        """Parse a secret key from a hex or base64 string."""
        return cls(_parse_key(text))

    def public_key(self) -> X25519PublicKey:
        """Compute the public key for this secret key."""
        return X25519PublicKey(x25519_public_key(self._key))

    def shared_key(self, peer_public: X25519PublicKey) -> bytes:
        """Derive the shared key with a remote peer's public key.

        Raises WrongKey if the peer key equals this secret key or if the
        result is all zeros.
        """
        peer = bytes(peer_public)
        shared = x25519_shared_key(peer, self._key)
        if hmac.compare_digest(self._key, peer):
            raise WrongKey("peer public key equals own secret key")
        if not any(shared):
            raise WrongKey("shared key is all zeros")
        return shared

    def __bytes__(self) -> bytes:
        return self._key

    def __repr__(self) -> str:
        return "X25519SecretKey(<hidden>)"