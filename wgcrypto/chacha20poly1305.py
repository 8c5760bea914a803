"""ChaCha20-Poly1305 authenticated encryption, with the XChaCha20 and WireGuard nonce variants."""

from __future__ import annotations

import hmac
from collections.abc import Sequence

from .errors import InvalidAeadTag
from .poly1305 import BLOCK_SIZE as _POLY_BLOCK, TAG_SIZE, Poly1305

KEY_SIZE = 32
NONCE_SIZE = 12
XNONCE_SIZE = 24

_BLOCK_BYTES = 64
_MASK_32 = 0xFFFFFFFF
_MASK_64 = (1 << 64) - 1
_SIGMA = (0x61707865, 0x3320646E, 0x79622D32, 0x6B206574)

_ROUNDS = (
    (0, 4, 8, 12),
    (1, 5, 9, 13),
    (2, 6, 10, 14),
    (3, 7, 11, 15),
    (0, 5, 10, 15),
    (1, 6, 11, 12),
    (2, 7, 8, 13),
    (3, 4, 9, 14),
)


def _rotl(x: int, n: int) -> int:
    return ((x << n) | (x >> (32 - n))) & _MASK_32


def chacha20_block(state: Sequence[int], hchacha: bool = False) -> list[int]:
    """Run the 20-round ChaCha permutation over a 16-word state.

    With ``hchacha`` set the input is not added back, which yields the raw
    permutation used to derive HChaCha20 subkeys.
    """
    if len(state) != 16:
        raise ValueError(f"ChaCha20 state must have 16 words, got {len(state)}")
    v = [word & _MASK_32 for word in state]
    for _ in range(10):
        for a, b, c, d in _ROUNDS:
            v[a] = (v[a] + v[b]) & _MASK_32
            v[d] = _rotl(v[d] ^ v[a], 16)
            v[c] = (v[c] + v[d]) & _MASK_32
            v[b] = _rotl(v[b] ^ v[c], 12)
            v[a] = (v[a] + v[b]) & _MASK_32
            v[d] = _rotl(v[d] ^ v[a], 8)
            v[c] = (v[c] + v[d]) & _MASK_32
            v[b] = _rotl(v[b] ^ v[c], 7)
    if not hchacha:
        v = [(x + (s & _MASK_32)) & _MASK_32 for x, s in zip(v, state)]
    return v


def _words_to_bytes(words: Sequence[int]) -> bytes:
    return b"".join(word.to_bytes(4, "little") for word in words)


def _bytes_to_words(data: bytes) -> list[int]:
    return [int.from_bytes(data[i:i + 4], "little") for i in range(0, len(data), 4)]


def _keystream_xor(state: list[int], data: bytes) -> bytes:
    """XOR ``data`` with the keystream starting at block counter state[12] + 1."""
    out = bytearray()
    block_state = list(state)
    for index, offset in enumerate(range(0, len(data), _BLOCK_BYTES), start=1):
        block_state[12] = (state[12] + index) & _MASK_32
        keystream = _words_to_bytes(chacha20_block(block_state))
        chunk = data[offset:offset + _BLOCK_BYTES]
        mixed = int.from_bytes(chunk, "little") ^ int.from_bytes(keystream[: len(chunk)], "little")
        out += mixed.to_bytes(len(chunk), "little")
    return bytes(out)


def _padded_blocks(data: bytes):
    for offset in range(0, len(data), _POLY_BLOCK):
        yield data[offset:offset + _POLY_BLOCK].ljust(_POLY_BLOCK, b"\x00")


def _compute_tag(state: list[int], aad: bytes, ciphertext: bytes) -> bytes:
    one_time_key = _words_to_bytes(chacha20_block(state))[:32]
    mac = Poly1305(one_time_key)
    for block in _padded_blocks(aad):
        mac.update(block)
    for block in _padded_blocks(ciphertext):
        mac.update(block)
    mac.update(len(aad).to_bytes(8, "little") + len(ciphertext).to_bytes(8, "little"))
    return mac.finalize()


def _check_nonce(nonce: bytes, size: int) -> bytes:
    nonce = bytes(nonce)
    if len(nonce) != size:
        raise ValueError(f"nonce must be {size} bytes, got {len(nonce)}")
    return nonce


class ChaCha20Poly1305:
    """The ChaCha20-Poly1305 AEAD under a fixed 256-bit key.

    Sealing returns the ciphertext followed by the 16-byte tag; opening takes
    that form and returns the plaintext or raises InvalidAeadTag.
    """

    __slots__ = ("_key",)

    def __init__(self, key: bytes) -> None:
        key = bytes(key)
        if len(key) != KEY_SIZE:
            raise ValueError(f"ChaCha20-Poly1305 key must be {KEY_SIZE} bytes, got {len(key)}")
        self._key = _bytes_to_words(key)

    def _state(self, tail: Sequence[int]) -> list[int]:
        return [*_SIGMA, *self._key, *tail]

    def _init_wg(self, nonce_ctr: int) -> list[int]:
        if not 0 <= nonce_ctr <= _MASK_64:
            raise ValueError("nonce counter must fit in 64 bits")
        return self._state((0, 0, nonce_ctr & _MASK_32, nonce_ctr >> 32))

    def _init(self, nonce: bytes) -> list[int]:
        nonce = _check_nonce(nonce, NONCE_SIZE)
        return self._state((0, *_bytes_to_words(nonce)))

    def _init_x(self, nonce: bytes) -> list[int]:
        nonce = _check_nonce(nonce, XNONCE_SIZE)
        derived = chacha20_block(self._state(_bytes_to_words(nonce[:16])), hchacha=True)
        subkey = derived[0:4] + derived[12:16]
        return [*_SIGMA, *subkey, 0, 0, *_bytes_to_words(nonce[16:])]

    @staticmethod
    def _seal(state: list[int], aad: bytes, plaintext: bytes) -> bytes:
        ciphertext = _keystream_xor(state, bytes(plaintext))
        return ciphertext + _compute_tag(state, bytes(aad), ciphertext)

    @staticmethod
    def _open(state: list[int], aad: bytes, sealed: bytes) -> bytes:
        sealed = bytes(sealed)
        if len(sealed) < TAG_SIZE:
            raise InvalidAeadTag("ciphertext is shorter than the authentication tag")
        ciphertext, tag = sealed[:-TAG_SIZE], sealed[-TAG_SIZE:]
        expected = _compute_tag(state, bytes(aad), ciphertext)
        if not hmac.compare_digest(expected, tag):
            raise InvalidAeadTag("authentication tag mismatch")
        return _keystream_xor(state, ciphertext)

    def seal_wg(self, nonce_ctr: int, aad: bytes, plaintext: bytes) -> bytes:
        """Encrypt and authenticate using a 64-bit little-endian counter as the nonce."""
        return self._seal(self._init_wg(nonce_ctr), aad, plaintext)

    def open_wg(self, nonce_ctr: int, aad: bytes, ciphertext: bytes) -> bytes:
        """Verify and decrypt data sealed with :meth:`seal_wg`."""
        return self._open(self._init_wg(nonce_ctr), aad, ciphertext)

    def seal(self, nonce: bytes, aad: bytes, plaintext: bytes) -> bytes:
        """Encrypt and authenticate with a 12-byte nonce that must never be reused."""
        return self._seal(self._init(nonce), aad, plaintext)

    def open(self, nonce: bytes, aad: bytes, ciphertext: bytes) -> bytes:
        """Verify and decrypt data sealed with :meth:`seal`."""
        return self._open(self._init(nonce), aad, ciphertext)

    def xseal(self, nonce: bytes, aad: bytes, plaintext: bytes) -> bytes:
        """Encrypt and authenticate with a 24-byte XChaCha20 nonce, safe to pick at random."""
        return self._seal(self._init_x(nonce), aad, plaintext)

    def xopen(self, nonce: bytes, aad: bytes, ciphertext: bytes) -> bytes:
        """Verify and decrypt data sealed with :meth:`xseal`."""
        return self._open(self._init_x(nonce), aad, ciphertext)