"""Pieces shared by the Shuffle and Expand servers."""

import logging
from typing import Optional

from ..exceptions import ConversionError
from ..snark.backend import Proof

logger = logging.getLogger(__name__)


def decode_proof(blob: bytes) -> Optional[Proof]:
    """
    Decode report proof bytes, returning None for the skipped-proof placeholder.

    Raises:
        SerializationError: If the proof bytes are malformed
    """
    proof = Proof.from_bytes(blob)
    if proof.is_empty:
        logger.warning("report carries no proof")
        return None
    return proof


def safe_verify(verify_fn, *args) -> bool:
    """Run a circuit verifier; a public bundle that cannot be encoded is a rejection."""
    try:
        return verify_fn(*args)
    except ConversionError as exc:
        logger.warning("report public inputs rejected: %s", exc)
        return False
