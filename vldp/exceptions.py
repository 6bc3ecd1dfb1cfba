"""
⚠️ DRAFT — requires crypto review before production use

Custom exceptions for the VLDP toolkit.

Every fatal error class derives from VLDPError. Failed signature checks
are not errors: they are reported as plain False results.
"""


class VLDPError(Exception):
    """Base exception for VLDP errors."""

    pass


class ConfigurationError(VLDPError):
    """Inconsistent widths, invalid gamma or unreadable configuration."""

    pass


class CryptographicError(VLDPError):
    """Cryptographic operation error."""

    pass


class SynthesisError(VLDPError):
    """Constraint generation failed (missing witness, shape mismatch)."""

    pass


class ConversionError(VLDPError):
    """A value cannot be expressed as constraint field elements."""

    pass


class ProtocolStateError(VLDPError):
    """A protocol step was invoked before the state it needs exists."""

    pass


class SerializationError(VLDPError):
    """A wire message is malformed or truncated."""

    pass
