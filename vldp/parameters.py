"""
⚠️ DRAFT — requires crypto review before production use

System parameters: the privacy parameter gamma and the setup of every
primitive.

gamma is the probability of reporting a uniformly random bucket instead
of the true value. It is held as an exact rational and only ever
converted to the fixed-width integer the mechanism and the circuit use:

    gamma_as_int = floor(gamma * (2^(8 * gamma_bytes) - 1))

Rounding is always down, so the encoded threshold never exceeds gamma and
the conversion is deterministic.
"""

from dataclasses import dataclass
from decimal import Decimal
from fractions import Fraction
from typing import Union

from .config import VLDPConfig
from .exceptions import ConfigurationError
from .primitives.commitments import CommitmentParameters, setup_commitment_parameters
from .primitives.schnorr import SchnorrSignature, SignatureParameters

GammaLike = Union[Fraction, Decimal, str, int, float]


def parse_gamma(gamma: GammaLike) -> Fraction:
    """
    Parse gamma into an exact Fraction in (0, 1].

    Strings such as "0.25" or "1/3" are parsed exactly; floats are taken at
    their exact binary value.

    Raises:
        ConfigurationError: If gamma is not a number in (0, 1]
    """
    if isinstance(gamma, bool):
        raise ConfigurationError("gamma must be a number")
    try:
        value = Fraction(gamma)
    except (TypeError, ValueError, ZeroDivisionError) as exc:
        raise ConfigurationError(f"invalid gamma {gamma!r}: {exc}") from exc
    if not 0 < value <= 1:
        raise ConfigurationError(f"gamma must be in (0, 1], got {gamma}")
    return value


def gamma_scale(gamma_bytes: int) -> int:
    return (1 << (8 * gamma_bytes)) - 1


def encode_gamma(gamma: GammaLike, gamma_bytes: int) -> bytes:
    """floor(gamma * (2^(8 * gamma_bytes) - 1)) as little-endian bytes."""
    value = parse_gamma(gamma)
    scaled = (value.numerator * gamma_scale(gamma_bytes)) // value.denominator
    return scaled.to_bytes(gamma_bytes, "little")


def decode_gamma(data: bytes) -> Fraction:
    """
    Exact real value of an encoded gamma threshold.

    encode_gamma(decode_gamma(b), len(b)) == b for every non-zero b.
    """
    if not data:
        raise ConfigurationError("encoded gamma is empty")
    return Fraction(int.from_bytes(data, "little"), gamma_scale(len(data)))


@dataclass(frozen=True)
class SystemParameters:
    """
    Immutable protocol parameters.

    Attributes:
        gamma: Exact privacy parameter in (0, 1]
        gamma_bytes: Width of the encoded threshold
        commitment: Parameters of the client seed commitment
        server_signature: Parameters of the server signature scheme
        client_signature: Parameters of the client signature scheme

    Example:
        >>> params = SystemParameters.setup("1/4", VLDPConfig(gamma_bytes=1))
        >>> params.gamma_as_bytes()
        b'?'
    """

    gamma: Fraction
    gamma_bytes: int
    commitment: CommitmentParameters
    server_signature: SignatureParameters
    client_signature: SignatureParameters

    def __post_init__(self):
        object.__setattr__(self, "gamma", parse_gamma(self.gamma))
        if self.gamma_bytes < 1:
            raise ConfigurationError("gamma_bytes must be positive")

    @classmethod
    def setup(cls, gamma: GammaLike, config: VLDPConfig) -> "SystemParameters":
        """
        Set up all primitives for a deployment.

        The commitment generators cover the longest committed message:
        the Shuffle client seed or the Expand per-round randomness.
        """
        signature = SchnorrSignature()
        max_message = max(config.randomness_bytes, 32)
        return cls(
            gamma=parse_gamma(gamma),
            gamma_bytes=config.gamma_bytes,
            commitment=setup_commitment_parameters(max_message),
            server_signature=signature.setup(),
            client_signature=signature.setup(),
        )

    def gamma_as_int(self) -> int:
        return int.from_bytes(self.gamma_as_bytes(), "little")

    def gamma_as_bytes(self) -> bytes:
        return encode_gamma(self.gamma, self.gamma_bytes)

    def effective_gamma(self) -> Fraction:
        """
        Exact probability that the mechanism picks a random bucket.

        The gamma window is uniform over 2^(8 * gamma_bytes) values and the
        bit is set when window <= gamma_as_int.
        """
        return Fraction(self.gamma_as_int() + 1, 1 << (8 * self.gamma_bytes))
