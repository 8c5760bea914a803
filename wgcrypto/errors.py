"""Exceptions raised by the cryptographic primitives."""


class WireGuardError(Exception):
    """Base class for all errors raised by this package."""


class InvalidMac(WireGuardError):
    """A message authentication code did not match."""


class InvalidAeadTag(WireGuardError):
    """An AEAD authentication tag failed to verify."""


class WrongKey(WireGuardError):
    """A key was malformed, weak, or did not match what was expected."""