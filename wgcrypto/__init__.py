"""BLAKE2s, ChaCha20-Poly1305, Poly1305 and X25519 primitives for the WireGuard protocol."""

__version__ = "0.1.0"
__all__ = ["errors", "poly1305", "blake2s", "chacha20poly1305", "x25519"]