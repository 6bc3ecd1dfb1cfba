"""State shared by the Shuffle and Expand client sessions."""

from enum import Enum
from typing import Any

from ..config import VLDPConfig
from ..primitives.interfaces import SignatureScheme


class SessionState(Enum):
    INIT = "init"
    AWAITING_SERVER_RESPONSE = "awaiting_server_response"
    READY = "ready"


def true_value_message(config: VLDPConfig, true_value: int, time: int) -> bytes:
    """Bytes covered by the true value signature: true_value || time."""
    return config.encode_input(true_value) + config.encode_time(time)


def sign_true_value(
    signature_scheme: SignatureScheme,
    signature_params: Any,
    signing_key: Any,
    config: VLDPConfig,
    true_value: int,
    time: int,
) -> bytes:
    """
    Sign a (true_value, time) reading.

    Whoever attests the input (typically the device that measured it)
    holds the client signing key.
    """
    return signature_scheme.sign(
        signature_params, signing_key, true_value_message(config, true_value, time)
    )
