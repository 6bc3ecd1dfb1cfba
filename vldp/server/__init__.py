"""Server sessions for the Shuffle and Expand variants."""

from .expand import ClientBatch, ServerExpand
from .shuffle import IssuedSeed, ServerShuffle

__all__ = ["ClientBatch", "IssuedSeed", "ServerExpand", "ServerShuffle"]
