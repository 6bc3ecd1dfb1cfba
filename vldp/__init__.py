"""Verifiable local differential privacy (VLDP).

A client randomizes a private value with a discretized randomized-response
mechanism whose randomness is fixed jointly with a server, and proves
that the report was computed honestly.

⚠️ DRAFT — requires crypto review before production use
"""

from .client import ClientExpand, ClientShuffle, SessionState, sign_true_value
from .config import VLDPConfig, load_config
from .exceptions import (
    ConfigurationError,
    ConversionError,
    CryptographicError,
    ProtocolStateError,
    SerializationError,
    SynthesisError,
    VLDPError,
)
from .mechanism import apply
from .parameters import SystemParameters
from .server import ServerExpand, ServerShuffle

__version__ = "0.1.0"

__all__ = [
    "ClientExpand",
    "ClientShuffle",
    "ConfigurationError",
    "ConversionError",
    "CryptographicError",
    "ProtocolStateError",
    "SerializationError",
    "ServerExpand",
    "ServerShuffle",
    "SessionState",
    "SynthesisError",
    "SystemParameters",
    "VLDPConfig",
    "VLDPError",
    "apply",
    "load_config",
    "sign_true_value",
]
