# wgcrypto

The cryptographic primitives used by the WireGuard protocol, written in plain
Python with no third-party dependencies:

- **BLAKE2s** hashing, keyed MAC and HMAC-BLAKE2s (`wgcrypto.blake2s`)
- **ChaCha20-Poly1305** and **XChaCha20-Poly1305** authenticated encryption
  (`wgcrypto.chacha20poly1305`), including WireGuard's 64-bit counter nonces
- the **Poly1305** one-time authenticator on 16-byte blocks (`wgcrypto.poly1305`)
- **X25519** Diffie-Hellman key exchange and the arithmetic modulo
  2**255 - 19 behind it (`wgcrypto.x25519`)

These are reference implementations. They aim at correctness and
readability, not speed, and pure Python gives no guarantee of constant-time
execution.

## Installation

From a checkout of the project:

```
pip install .
```

## Hashing and MACs

```python
from wgcrypto.blake2s import Blake2s, constant_time_mac_check

digest = Blake2s.new_hash().update(b"abc").finalize()  # 32 bytes

mac_key = bytes(32)
mac = Blake2s.new_mac(mac_key).update(b"Hello, World!").finalize()  # 16 bytes
constant_time_mac_check(mac, mac)  # raises InvalidMac when the MACs differ

tag = Blake2s.new_hmac(mac_key).update(b"message").finalize()  # 32 bytes
```

`update` returns the context, so calls chain. A context can be finalized only
once; updating or finalizing it again raises `ValueError`. Keys longer than the
mode allows (32 bytes for `new_mac`, 64 bytes for `new_hmac`) are truncated.
`constant_time_mac_check` also raises `InvalidMac` when either argument is not
16 bytes long.

## Authenticated encryption

```python
from wgcrypto.chacha20poly1305 import ChaCha20Poly1305
from wgcrypto.errors import InvalidAeadTag

aead = ChaCha20Poly1305(bytes(range(32)))

sealed = aead.seal_wg(7, b"header", b"payload")   # ciphertext followed by a 16-byte tag
assert aead.open_wg(7, b"header", sealed) == b"payload"

nonce = bytes(12)
sealed = aead.seal(nonce, b"", b"payload")
assert aead.open(nonce, b"", sealed) == b"payload"

xnonce = bytes(24)
sealed = aead.xseal(xnonce, b"", b"payload")

tampered = sealed[:-1] + bytes([sealed[-1] ^ 1])
try:
    aead.xopen(xnonce, b"", tampered)
except InvalidAeadTag:
    ...
```

The key must be 32 bytes, nonces 12 bytes (`seal`/`open`) or 24 bytes
(`xseal`/`xopen`), and the WireGuard counter must fit in 64 bits; anything
else raises `ValueError`. The raw ChaCha20 permutation is available as
`chacha20_block(state, hchacha=False)` on a 16-word state.

## Poly1305

```python
from wgcrypto.poly1305 import Poly1305

mac = Poly1305(bytes(32))
mac.update(bytes(16)).update(b"exactly16bytes!!")
tag = mac.finalize()  # 16 bytes
```

Each block must be exactly 16 bytes; callers pad partial blocks with zeros.

## Key exchange

```python
from wgcrypto.x25519 import X25519SecretKey

alice = X25519SecretKey.generate()
bob = X25519SecretKey.generate()

shared = alice.shared_key(bob.public_key())
assert shared == bob.shared_key(alice.public_key())
```

`shared_key` raises `WrongKey` when the peer's public key equals the secret
key's bytes or when the result is all zeros. Keys can be parsed from
64-character hex or from 43/44-character base64 with
`X25519SecretKey.from_str` and `X25519PublicKey.from_str` (bad input raises
`ValueError`), and turned back into raw bytes with `bytes(key)`.
`X25519PublicKey.constant_time_is_equal` raises `WrongKey` when two public keys
differ.

The lower-level functions `x25519_shared_key`, `x25519_public_key`,
`from_limbs`, `to_limbs`, `fe_add`, `fe_mul`, `fe_square`, `fe_invert` and
`fe_reduce` are exposed as well.

## Errors

Cryptographic failures raise a subclass of `wgcrypto.errors.WireGuardError`:
`InvalidMac`, `InvalidAeadTag` or `WrongKey`. Malformed arguments such as
wrong key or nonce lengths raise `ValueError`.

## What this package does not do

It provides the primitives only. It does not implement the WireGuard
handshake or transport protocol, create tunnel interfaces, manage peers, or
offer a command-line tool.

## Running the tests

```
pip install .[test]
pytest
```