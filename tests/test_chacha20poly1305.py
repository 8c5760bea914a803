import pytest

from wgcrypto.chacha20poly1305 import ChaCha20Poly1305, chacha20_block
from wgcrypto.errors import InvalidAeadTag, WireGuardError

KEY = bytes(range(0x80, 0xA0))
LENGTHS = [0, 1, 15, 16, 17, 63, 64, 65, 127, 128, 129, 200, 1000]


def _payload(n):
    return bytes((i * 7 + 3) & 0xFF for i in range(n))


def test_rfc8439_aead_vector():
    aead = ChaCha20Poly1305(KEY)
    nonce = bytes.fromhex("070000004041424344454647")
    aad = bytes.fromhex("50515253c0c1c2c3c4c5c6c7")
    plaintext = (
        b"Ladies and Gentlemen of the class of '99: If I could offer you only one "
        b"tip for the future, sunscreen would be it."
    )
    expected = bytes.fromhex(
        "d31a8d34648e60db7b86afbc53ef7ec2"
        "a4aded51296e08fea9e2b5a736ee62d6"
        "3dbea45e8ca9671282fafb69da92728b"
        "1a71de0a9e060b2905d6a5b67ecd3b36"
        "92ddbd7f2d778b8c9803aee328091b58"
        "fab324e4fad675945585808b4831d7bc"
        "3ff4def08e4b7a9de576d26586cec64b"
        "6116"
        "1ae10b594f09e26a7e902ecbd0600691"
    )
    sealed = aead.seal(nonce, aad, plaintext)
    assert sealed == expected
    assert aead.open(nonce, aad, sealed) == plaintext


def test_rfc8439_block_function():
    key_words = [int.from_bytes(bytes(range(i, i + 4)), "little") for i in range(0, 32, 4)]
    state = [0x61707865, 0x3320646E, 0x79622D32, 0x6B206574, *key_words,
             1, 0x09000000, 0x4A000000, 0]
    expected = [
        0xE4E7F110, 0x15593BD1, 0x1FDD0F50, 0xC47120A3,
        0xC7F4D1C7, 0x0368C033, 0x9AAA2204, 0x4E6CD4C3,
        0x466482D2, 0x09AA9F07, 0x05D7C214, 0xA2028BD9,
        0xD19C12B5, 0xB94E16DE, 0xE883D0CB, 0x4E3C50A2,
    ]
    assert chacha20_block(state, False) == expected


def test_hchacha_omits_final_addition():
    state = [(i * 0x01020304 + 17) & 0xFFFFFFFF for i in range(16)]
    full = chacha20_block(state, False)
    raw = chacha20_block(state, True)
    assert full == [(r + s) & 0xFFFFFFFF for r, s in zip(raw, state)]


def test_block_rejects_bad_state_length():
    with pytest.raises(ValueError):
        chacha20_block([0] * 15, False)


@pytest.mark.parametrize("length", LENGTHS)
def test_seal_open_round_trip(length):
    aead = ChaCha20Poly1305(KEY)
    nonce = bytes(range(12))
    plaintext = _payload(length)
    sealed = aead.seal(nonce, b"header", plaintext)
    assert len(sealed) == length + 16
    assert aead.open(nonce, b"header", sealed) == plaintext


@pytest.mark.parametrize("length", LENGTHS)
def test_wg_round_trip(length):
    aead = ChaCha20Poly1305(KEY)
    plaintext = _payload(length)
    sealed = aead.seal_wg(42, b"", plaintext)
    assert len(sealed) == length + 16
    assert aead.open_wg(42, b"", sealed) == plaintext


@pytest.mark.parametrize("length", LENGTHS)
def test_xseal_round_trip(length):
    aead = ChaCha20Poly1305(KEY)
    nonce = bytes(range(100, 124))
    plaintext = _payload(length)
    sealed = aead.xseal(nonce, b"aad", plaintext)
    assert len(sealed) == length + 16
    assert aead.xopen(nonce, b"aad", sealed) == plaintext


@pytest.mark.parametrize("counter", [0, 1, 0x1234_5678_9ABC_DEF0, (1 << 64) - 1])
def test_wg_nonce_is_little_endian_counter(counter):
    aead = ChaCha20Poly1305(KEY)
    nonce = bytes(4) + counter.to_bytes(8, "little")
    plaintext = _payload(77)
    assert aead.seal_wg(counter, b"ad", plaintext) == aead.seal(nonce, b"ad", plaintext)


def test_wg_counter_out_of_range():
    aead = ChaCha20Poly1305(KEY)
    with pytest.raises(ValueError):
        aead.seal_wg(1 << 64, b"", b"data")
    with pytest.raises(ValueError):
        aead.seal_wg(-1, b"", b"data")


def test_tampered_ciphertext_rejected():
    aead = ChaCha20Poly1305(KEY)
    sealed = bytearray(aead.seal_wg(7, b"", _payload(50)))
    sealed[3] ^= 0x01
    with pytest.raises(InvalidAeadTag):
        aead.open_wg(7, b"", bytes(sealed))


def test_tampered_tag_rejected():
    aead = ChaCha20Poly1305(KEY)
    sealed = bytearray(aead.seal(bytes(12), b"", _payload(10)))
    sealed[-1] ^= 0x80
    with pytest.raises(InvalidAeadTag):
        aead.open(bytes(12), b"", bytes(sealed))


def test_wrong_aad_rejected():
    aead = ChaCha20Poly1305(KEY)
    sealed = aead.xseal(bytes(24), b"one", _payload(30))
    with pytest.raises(InvalidAeadTag):
        aead.xopen(bytes(24), b"two", sealed)


def test_wrong_counter_rejected():
    aead = ChaCha20Poly1305(KEY)
    sealed = aead.seal_wg(1, b"", _payload(30))
    with pytest.raises(InvalidAeadTag):
        aead.open_wg(2, b"", sealed)


def test_wrong_key_rejected():
    sealed = ChaCha20Poly1305(KEY).seal_wg(0, b"", _payload(30))
    other = ChaCha20Poly1305(bytes(32))
    with pytest.raises(WireGuardError):
        other.open_wg(0, b"", sealed)


def test_short_ciphertext_rejected():
    aead = ChaCha20Poly1305(KEY)
    with pytest.raises(InvalidAeadTag):
        aead.open_wg(0, b"", bytes(15))


def test_empty_plaintext_tag_only():
    aead = ChaCha20Poly1305(KEY)
    sealed = aead.seal_wg(0, b"", b"")
    assert len(sealed) == 16
    assert aead.open_wg(0, b"", sealed) == b""


def test_xseal_differs_from_seal():
    aead = ChaCha20Poly1305(KEY)
    plaintext = _payload(40)
    assert aead.xseal(bytes(24), b"", plaintext) != aead.seal(bytes(12), b"", plaintext)


def test_xnonce_tail_matters():
    aead = ChaCha20Poly1305(KEY)
    plaintext = _payload(40)
    first = aead.xseal(bytes(24), b"", plaintext)
    second = aead.xseal(bytes(23) + b"\x01", b"", plaintext)
    assert first[:40] != second[:40]


def test_bad_key_length():
    with pytest.raises(ValueError):
        ChaCha20Poly1305(bytes(31))


@pytest.mark.parametrize("size", [0, 11, 13, 24])
def test_bad_nonce_length(size):
    aead = ChaCha20Poly1305(KEY)
    with pytest.raises(ValueError):
        aead.seal(bytes(size), b"", b"x")


@pytest.mark.parametrize("size", [0, 12, 23, 25])
def test_bad_xnonce_length(size):
    aead = ChaCha20Poly1305(KEY)
    with pytest.raises(ValueError):
        aead.xseal(bytes(size), b"", b"x")