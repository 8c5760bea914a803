"""BLAKE2s hashing, keyed MAC and the HMAC-BLAKE2s construction."""

from __future__ import annotations

import hmac

from .errors import InvalidMac

BLOCK_SIZE = 64
MAX_DIGEST_SIZE = 32
MAC_SIZE = 16

_MASK_32 = 0xFFFFFFFF
_MASK_64 = (1 << 64) - 1

_IV = (
    0x6A09E667,
    0xBB67AE85,
    0x3C6EF372,
    0xA54FF53A,
    0x510E527F,
    0x9B05688C,
    0x1F83D9AB,
    0x5BE0CD19,
)

_SIGMA = (
    (0, 1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11, 12, 13, 14, 15),
    (14, 10, 4, 8, 9, 15, 13, 6, 1, 12, 0, 2, 11, 7, 5, 3),
    (11, 8, 12, 0, 5, 2, 15, 13, 10, 14, 3, 6, 7, 1, 9, 4),
    (7, 9, 3, 1, 13, 12, 11, 14, 2, 6, 5, 10, 4, 0, 15, 8),
    (9, 0, 5, 7, 2, 4, 10, 15, 14, 1, 11, 12, 6, 8, 3, 13),
    (2, 12, 6, 10, 0, 11, 8, 3, 4, 13, 7, 5, 15, 14, 1, 9),
    (12, 5, 1, 15, 14, 13, 4, 10, 0, 7, 6, 3, 9, 2, 8, 11),
    (13, 11, 7, 14, 12, 1, 3, 9, 5, 0, 15, 4, 8, 6, 2, 10),
    (6, 15, 14, 9, 11, 3, 0, 8, 12, 2, 13, 7, 1, 4, 10, 5),
    (10, 2, 8, 4, 7, 6, 1, 5, 15, 11, 9, 14, 3, 12, 13, 0),
)

# Column and diagonal index quadruples for the G function.
_G_LANES = (
    (0, 4, 8, 12),
    (1, 5, 9, 13),
    (2, 6, 10, 14),
    (3, 7, 11, 15),
    (0, 5, 10, 15),
    (1, 6, 11, 12),
    (2, 7, 8, 13),
    (3, 4, 9, 14),
)


def _rotr(x: int, n: int) -> int:
    return ((x >> n) | (x << (32 - n))) & _MASK_32


def _compress(state: list[int], block: bytes, counter: int, last: bool) -> None:
    """Mix one 64-byte block into ``state`` in place."""
    m = [int.from_bytes(block[i:i + 4], "little") for i in range(0, BLOCK_SIZE, 4)]
    v = list(state) + list(_IV)
    v[12] ^= counter & _MASK_32
    v[13] ^= (counter >> 32) & _MASK_32
    if last:
        v[14] ^= _MASK_32

    for sigma in _SIGMA:
        for lane, (a, b, c, d) in enumerate(_G_LANES):
            x = m[sigma[2 * lane]]
            y = m[sigma[2 * lane + 1]]
            v[a] = (v[a] + v[b] + x) & _MASK_32
            v[d] = _rotr(v[d] ^ v[a], 16)
            v[c] = (v[c] + v[d]) & _MASK_32
            v[b] = _rotr(v[b] ^ v[c], 12)
            v[a] = (v[a] + v[b] + y) & _MASK_32
            v[d] = _rotr(v[d] ^ v[a], 8)
            v[c] = (v[c] + v[d]) & _MASK_32
            v[b] = _rotr(v[b] ^ v[c], 7)

    for i in range(8):
        state[i] ^= v[i] ^ v[i + 8]


class Blake2s:
    """A context for multi-step BLAKE2s digest calculations.

    Keys longer than the mode allows (32 bytes for keyed hashing, 64 bytes
    for HMAC) are silently truncated, and the output length is capped at 32.
    """

    __slots__ = ("_state", "_buf", "_outer_key", "_hashed", "_outlen", "_is_mac", "_done")

    def __init__(self, key: bytes = b"", outlen: int = MAX_DIGEST_SIZE, mac: bool = False) -> None:
        key = bytes(key)
        max_keylen = BLOCK_SIZE if mac else MAX_DIGEST_SIZE
        key = key[:max_keylen]

        self._outlen = min(outlen, MAX_DIGEST_SIZE)
        if self._outlen < 1:
            raise ValueError("output length must be at least one byte")
        self._is_mac = mac
        self._state = list(_IV)
        self._state[0] ^= 0x01010000 ^ self._outlen
        self._buf = bytearray()
        self._outer_key = bytes(BLOCK_SIZE)
        self._hashed = 0
        self._done = False

        if key:
            padded = key.ljust(BLOCK_SIZE, b"\x00")
            if mac:
                self._buf = bytearray(b ^ 0x36 for b in padded)
                self._outer_key = bytes(b ^ 0x5C for b in padded)
            else:
                self._buf = bytearray(padded)
                self._state[0] ^= len(key) << 8

    @classmethod
    def new_mac(cls, key: bytes) -> "Blake2s":
        """Return a context computing a 16-byte keyed BLAKE2s MAC under ``key``."""
        return cls(key, MAC_SIZE, False)

    @classmethod
    def new_hash(cls) -> "Blake2s":
        """Return a context computing an unkeyed 32-byte BLAKE2s hash."""
        return cls(b"", MAX_DIGEST_SIZE, False)

    @classmethod
    def new_hmac(cls, key: bytes) -> "Blake2s":
        """Return a context using the HMAC-BLAKE2s construction under ``key``."""
        return cls(key, MAX_DIGEST_SIZE, True)

    def update(self, data: bytes) -> "Blake2s":
        """Add more data to the running hash and return self for chaining."""
        if self._done:
            raise ValueError("cannot update a finalized BLAKE2s context")
        self._buf += data
        # The last block is held back so finalize can flag it as final.
        while len(self._buf) > BLOCK_SIZE:
            self._hashed = (self._hashed + BLOCK_SIZE) & _MASK_64
            _compress(self._state, bytes(self._buf[:BLOCK_SIZE]), self._hashed, False)
            del self._buf[:BLOCK_SIZE]
        return self

    def finalize(self) -> bytes:
        """Compute and return the digest; the context cannot be used afterwards."""
        if self._done:
            raise ValueError("BLAKE2s context already finalized")
        self._done = True

        self._hashed = (self._hashed + len(self._buf)) & _MASK_64
        block = bytes(self._buf).ljust(BLOCK_SIZE, b"\x00")
        _compress(self._state, block, self._hashed, True)
        self._buf.clear()

        digest = b"".join(word.to_bytes(4, "little") for word in self._state)[: self._outlen]
        if self._is_mac:
            return Blake2s.new_hash().update(self._outer_key).update(digest).finalize()
        return digest


def constant_time_mac_check(mac1: bytes, mac2: bytes) -> None:
    """Raise InvalidMac unless both 16-byte MACs are equal, comparing in constant time."""
    if len(mac1) != MAC_SIZE or len(mac2) != MAC_SIZE:
        raise InvalidMac("MACs must be 16 bytes long")
    if not hmac.compare_digest(bytes(mac1), bytes(mac2)):
        raise InvalidMac("MAC mismatch")