"""Client sessions for the Shuffle and Expand variants."""

from .expand import ClientExpand, ClientExpandStorage
from .session import SessionState, sign_true_value, true_value_message
from .shuffle import ClientShuffle, ClientShuffleStorage

__all__ = [
    "ClientExpand",
    "ClientExpandStorage",
    "ClientShuffle",
    "ClientShuffleStorage",
    "SessionState",
    "sign_true_value",
    "true_value_message",
]
