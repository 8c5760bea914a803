"""Poly1305 one-time authenticator working on whole 16-byte blocks."""

from __future__ import annotations

KEY_SIZE = 32
BLOCK_SIZE = 16
TAG_SIZE = 16

_P1305 = (1 << 130) - 5
_R_CLAMP = 0x0FFFFFFC_0FFFFFFC_0FFFFFFC_0FFFFFFF
_MASK_128 = (1 << 128) - 1


class Poly1305:
    """Incremental Poly1305 MAC.

    Every block fed to :meth:`update` is exactly 16 bytes and always gets the
    high bit appended; callers pad partial blocks with zeros themselves, as
    the ChaCha20-Poly1305 construction does.
    """

    __slots__ = ("_r", "_s", "_acc")

    def __init__(self, key: bytes) -> None:
        key = bytes(key)
        if len(key) != KEY_SIZE:
            raise ValueError(f"Poly1305 key must be {KEY_SIZE} bytes, got {len(key)}")
        self._r = int.from_bytes(key[:16], "little") & _R_CLAMP
        self._s = int.from_bytes(key[16:], "little")
        self._acc = 0

    def update(self, block: bytes) -> "Poly1305":
        """Absorb one 16-byte block and return self for chaining."""
        block = bytes(block)
        if len(block) != BLOCK_SIZE:
            raise ValueError(f"Poly1305 block must be {BLOCK_SIZE} bytes, got {len(block)}")
        x = int.from_bytes(block, "little") | (1 << 128)
        self._acc = ((self._acc + x) * self._r) % _P1305
        return self

    def finalize(self) -> bytes:
        """Return the 16-byte authentication tag."""
        tag = (self._acc + self._s) & _MASK_128
        return tag.to_bytes(TAG_SIZE, "little")