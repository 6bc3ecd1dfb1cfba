"""Concrete PRF, commitment and signature schemes plus their interfaces."""

from .commitments import (
    CommitmentParameters,
    CurveParameters,
    PedersenVectorCommitment,
    get_cached_curve_params,
    setup_commitment_parameters,
    setup_curve,
)
from .interfaces import CommitmentScheme, PRFScheme, ProofSystem, SignatureScheme
from .prf import Blake2sPRF
from .schnorr import SchnorrSignature, SignatureParameters, SigningKey

__all__ = [
    "Blake2sPRF",
    "CommitmentParameters",
    "CommitmentScheme",
    "CurveParameters",
    "PRFScheme",
    "PedersenVectorCommitment",
    "ProofSystem",
    "SchnorrSignature",
    "SignatureParameters",
    "SignatureScheme",
    "SigningKey",
    "get_cached_curve_params",
    "setup_commitment_parameters",
    "setup_curve",
]
