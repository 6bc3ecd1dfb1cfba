"""
⚠️ DRAFT — requires crypto review before production use

Building blocks shared by the Shuffle and Expand circuits.

Both circuits prove the conjunction of:
    1. the randomness was derived from the committed client contribution
       and the signed server seed
    2. ldp_value == apply(true_value, randomness)
    3. the client signed true_value || time
    4. the client contribution is bound by a well-formed commitment
    5. the server signed (commitment or root) || client_sig_pk || server_seed
    6. lower < time <= upper

Every sub-check yields a boolean; the circuit ANDs them and enforces the
result equal to one in a single constraint.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from ..config import (
    FIELD_CAPACITY_BYTES,
    POINT_SIZE_BYTES,
    PRF_INPUT_BYTES,
    SIGNATURE_SIZE_BYTES,
    VLDPConfig,
)
from ..exceptions import ConversionError, SynthesisError
from ..parameters import SystemParameters
from ..primitives.commitments import PedersenVectorCommitment
from ..primitives.interfaces import CommitmentScheme, PRFScheme, SignatureScheme
from ..primitives.prf import Blake2sPRF
from ..primitives.schnorr import SchnorrSignature
from ..snark.constraint_system import ConstraintSystem
from ..snark.gadgets import (
    Boolean,
    UInt8,
    alloc_input_bytes,
    and_,
    is_eq,
    is_less_or_equal,
    is_less_than,
    kary_and,
    or_,
    pack_bytes_le,
    select,
    to_bits_le,
)
from .. import mechanism

LDP_VALUE_BYTES = 8
INDEX_BYTES = 8


@dataclass(frozen=True)
class Schemes:
    """Scheme implementations a circuit or session is instantiated with."""

    prf: PRFScheme = field(default_factory=Blake2sPRF)
    commitment: CommitmentScheme = field(default_factory=PedersenVectorCommitment)
    signature: SignatureScheme = field(default_factory=SchnorrSignature)


# ============================================================================
# PUBLIC INPUTS
# ============================================================================


def pack_field_elements(data: bytes) -> List[int]:
    """Little-endian packing of data into 31-byte field elements."""
    return [
        int.from_bytes(data[i:i + FIELD_CAPACITY_BYTES], "little")
        for i in range(0, len(data), FIELD_CAPACITY_BYTES)
    ]


@dataclass(frozen=True)
class PublicInputs:
    """
    Public bundle of one report.

    Attributes:
        ldp_value: Published report
        time_bounds: (lower, upper), accepted times satisfy lower < t <= upper
        server_sig_pk: Server signature public key
        prf_eval_points: One 32-byte point per PRF evaluation
        index: Merkle leaf of the round (Expand only)
    """

    ldp_value: int
    time_bounds: Tuple[int, int]
    server_sig_pk: bytes
    prf_eval_points: Tuple[bytes, ...]
    index: Optional[int] = None

    def validate(self, config: VLDPConfig, with_index: bool) -> None:
        """
        Raises:
            ConversionError: If a value cannot be encoded for this circuit
        """
        if not 0 <= self.ldp_value < 1 << (8 * LDP_VALUE_BYTES):
            raise ConversionError(f"ldp_value {self.ldp_value} is not a uint64")
        if len(self.time_bounds) != 2:
            raise ConversionError("time_bounds must be a (lower, upper) pair")
        for bound in self.time_bounds:
            if not 0 <= bound < 1 << (8 * config.time_bytes):
                raise ConversionError(
                    f"time bound {bound} does not fit in {config.time_bytes} bytes"
                )
        if len(self.server_sig_pk) != POINT_SIZE_BYTES:
            raise ConversionError(f"server_sig_pk must be {POINT_SIZE_BYTES} bytes")
        if len(self.prf_eval_points) != config.num_prf_evals:
            raise ConversionError(
                f"expected {config.num_prf_evals} evaluation points, "
                f"got {len(self.prf_eval_points)}"
            )
        for point in self.prf_eval_points:
            if len(point) != PRF_INPUT_BYTES:
                raise ConversionError(f"evaluation points must be {PRF_INPUT_BYTES} bytes")
        if with_index:
            if self.index is None or not 0 <= self.index < 1 << (8 * INDEX_BYTES):
                raise ConversionError("Expand public inputs need a uint64 index")
        elif self.index is not None:
            raise ConversionError("Shuffle public inputs carry no index")

    def to_bytes_fields(self, config: VLDPConfig) -> List[bytes]:
        """Little-endian encodings in public-input order."""
        lower, upper = self.time_bounds
        fields = [
            self.ldp_value.to_bytes(LDP_VALUE_BYTES, "little"),
            lower.to_bytes(config.time_bytes, "little"),
            upper.to_bytes(config.time_bytes, "little"),
            bytes(self.server_sig_pk),
        ]
        fields.extend(bytes(point) for point in self.prf_eval_points)
        if self.index is not None:
            fields.append(self.index.to_bytes(INDEX_BYTES, "little"))
        return fields

    def to_field_elements(self, config: VLDPConfig, with_index: bool) -> List[int]:
        """
        Serialize for the proof system: ldp_value, lower, upper,
        server_sig_pk, each eval point (then index for Expand).

        Raises:
            ConversionError: If the bundle does not match the circuit shape
        """
        self.validate(config, with_index)
        elements: List[int] = []
        for data in self.to_bytes_fields(config):
            elements.extend(pack_field_elements(data))
        return elements


@dataclass
class PublicVars:
    ldp_value: List[UInt8]
    lower: List[UInt8]
    upper: List[UInt8]
    server_sig_pk: List[UInt8]
    prf_eval_points: List[List[UInt8]]
    index: Optional[List[UInt8]] = None


def alloc_public_inputs(
    cs: ConstraintSystem,
    config: VLDPConfig,
    public: Optional[PublicInputs],
    with_index: bool,
) -> PublicVars:
    """Allocate the public bundle in its fixed serialization order."""
    fields = None if public is None else public.to_bytes_fields(config)

    def field_fn(position: int):
        return lambda: fields[position]

    lengths = [LDP_VALUE_BYTES, config.time_bytes, config.time_bytes, POINT_SIZE_BYTES]
    lengths += [PRF_INPUT_BYTES] * config.num_prf_evals
    if with_index:
        lengths.append(INDEX_BYTES)

    allocated = [
        alloc_input_bytes(cs, field_fn(position), length)
        for position, length in enumerate(lengths)
    ]
    ldp_value, lower, upper, server_sig_pk = allocated[:4]
    points = allocated[4:4 + config.num_prf_evals]
    index = allocated[-1] if with_index else None
    return PublicVars(ldp_value, lower, upper, server_sig_pk, points, index)


def require_assignment(cs: ConstraintSystem, public, witness) -> None:
    """
    Raises:
        SynthesisError: If proving without a full assignment
    """
    if not cs.is_setup_mode and (public is None or witness is None):
        raise SynthesisError("prove mode requires public inputs and witnesses")


def check_witness_lengths(checks: Sequence[Tuple[str, bytes, int]]) -> None:
    """
    Raises:
        SynthesisError: If a witness byte string has the wrong length
    """
    for name, value, expected in checks:
        if len(value) != expected:
            raise SynthesisError(f"{name} must be {expected} bytes, got {len(value)}")


def check_encodable(config: VLDPConfig, true_value: int, time: int) -> None:
    """
    Raises:
        SynthesisError: If true_value or time does not fit its byte width
    """
    try:
        config.encode_input(true_value)
        config.encode_time(time)
    except ValueError as exc:
        raise SynthesisError(str(exc)) from exc


# ============================================================================
# SUB-CHECKS
# ============================================================================


def prf_randomness(
    cs: ConstraintSystem,
    prf: PRFScheme,
    seed: Sequence[UInt8],
    points: Sequence[Sequence[UInt8]],
    randomness_bytes: int,
) -> List[UInt8]:
    out: List[UInt8] = []
    for point in points:
        out.extend(prf.gadget(cs, seed, point))
    return out[:randomness_bytes]


def time_window_ok(
    cs: ConstraintSystem,
    time: Sequence[UInt8],
    lower: Sequence[UInt8],
    upper: Sequence[UInt8],
) -> Boolean:
    """lower < time <= upper."""
    width = 8 * len(time)
    t = pack_bytes_le(time)
    after_lower = is_less_than(cs, pack_bytes_le(lower), t, width)
    before_upper = is_less_or_equal(cs, t, pack_bytes_le(upper), width)
    return and_(cs, after_lower, before_upper)


def _bits_for(value: int) -> int:
    return max(value.bit_length(), 1)


def mechanism_ok(
    cs: ConstraintSystem,
    config: VLDPConfig,
    params: SystemParameters,
    true_value: Sequence[UInt8],
    randomness: Sequence[UInt8],
    ldp_value: Sequence[UInt8],
) -> List[Boolean]:
    """
    In-circuit apply(): booleans that hold iff ldp_value is the report
    mechanism.apply computes from true_value and randomness.
    """
    width = 8 * config.input_bytes
    max_value = config.max_input_value
    gap = config.boundary_gap
    k = config.k

    gamma_window = pack_bytes_le(randomness[config.gamma_window])
    bucket = pack_bytes_le(randomness[config.bucket_window])
    tv = pack_bytes_le(true_value)

    ldp_bit = is_less_or_equal(
        cs, gamma_window, params.gamma_as_int(), 8 * config.gamma_bytes
    )
    checks: List[Boolean] = []

    # pass-through branch
    if config.is_real_input:
        tie_break = pack_bytes_le(randomness[config.tie_break_window])
        multiplicand = cs.new_witness(lambda: (cs.value(tv) * k) // max_value)
        to_bits_le(cs, multiplicand, _bits_for(k), "multiplicand range")
        remainder = cs.new_witness(
            lambda: cs.value(tv) * k - cs.value(multiplicand) * max_value
        )
        to_bits_le(cs, remainder, width, "remainder range")
        cs.enforce_equal(tv * k, multiplicand * max_value + remainder, "scaled division")
        checks.append(is_less_than(cs, remainder, max_value, width))
        rounded = multiplicand + is_less_than(cs, tie_break, remainder, width)
    else:
        checks.append(is_less_or_equal(cs, 1, tv, width))
        checks.append(is_less_or_equal(cs, tv, k, width))
        rounded = tv

    # random-bucket branch
    offset = 0 if config.is_real_input else 1
    bucket_index = cs.new_witness(
        lambda: mechanism.bucket_value(cs.value(bucket), config) - offset
    )
    to_bits_le(cs, bucket_index, width, "bucket range")
    computed = bucket_index + offset
    checks.append(is_less_or_equal(cs, computed, k, width))
    checks.append(is_less_or_equal(cs, bucket_index * gap, bucket, width))
    below_next = is_less_than(cs, bucket, (bucket_index + 1) * gap, width)
    # the top bucket extends to max_value, which bounds every bucket window
    checks.append(or_(cs, below_next, is_eq(cs, computed, k)))

    expected = select(cs, ldp_bit, computed, rounded)
    checks.append(is_eq(cs, pack_bytes_le(ldp_value), expected))
    return checks


def signed_message_ok(
    cs: ConstraintSystem,
    signature_scheme: SignatureScheme,
    signature_params,
    public_key: Sequence[UInt8],
    message: Sequence[UInt8],
    signature: Sequence[UInt8],
) -> Boolean:
    if len(signature) != SIGNATURE_SIZE_BYTES:
        raise SynthesisError("signature witness has the wrong length")
    return signature_scheme.gadget(cs, signature_params, public_key, message, signature)


def enforce_statement(cs: ConstraintSystem, checks: Sequence[Boolean]) -> None:
    """AND all sub-checks and enforce the result in one final constraint."""
    cs.enforce_equal(kary_and(cs, list(checks)), 1, "statement")
