"""
Capability interfaces for the schemes the VLDP protocol is generic over.

Any object with matching methods satisfies an interface; nothing has to
inherit from these classes. The bundled implementations are
Blake2sPRF, PedersenVectorCommitment, SchnorrSignature and
ReferenceProofSystem.
"""

from __future__ import annotations

from typing import Any, List, Optional, Protocol, Sequence, Tuple, runtime_checkable

from ..security import RandomnessSource
from ..snark.constraint_system import ConstraintSystem
from ..snark.gadgets import Boolean, UInt8


@runtime_checkable
class PRFScheme(Protocol):
    seed_size: int
    input_size: int
    output_size: int

    def evaluate(self, seed: bytes, point: bytes) -> bytes:
        ...

    def gadget(
        self, cs: ConstraintSystem, seed: Sequence[UInt8], point: Sequence[UInt8]
    ) -> List[UInt8]:
        ...


@runtime_checkable
class CommitmentScheme(Protocol):
    output_size: int
    randomness_size: int

    def setup(self, max_message_bytes: int = ...) -> Any:
        ...

    def commit(self, params: Any, message: bytes, randomness: bytes) -> bytes:
        ...

    def open(self, params: Any, commitment: bytes, message: bytes, randomness: bytes) -> bool:
        ...

    def random_randomness(self, rng: Optional[RandomnessSource] = None) -> bytes:
        ...

    def randomness_from_bytes(self, draw: bytes) -> bytes:
        ...

    def gadget(
        self,
        cs: ConstraintSystem,
        params: Any,
        message: Sequence[UInt8],
        randomness: Sequence[UInt8],
    ) -> List[UInt8]:
        ...


@runtime_checkable
class SignatureScheme(Protocol):
    public_key_size: int
    signature_size: int

    def setup(self) -> Any:
        ...

    def keygen(self, params: Any, rng: Optional[RandomnessSource] = None) -> Tuple[Any, bytes]:
        ...

    def sign(
        self,
        params: Any,
        signing_key: Any,
        message: bytes,
        rng: Optional[RandomnessSource] = None,
    ) -> bytes:
        ...

    def verify(self, params: Any, public_key: bytes, message: bytes, signature: bytes) -> bool:
        ...

    def gadget(
        self,
        cs: ConstraintSystem,
        params: Any,
        public_key: Sequence[UInt8],
        message: Sequence[UInt8],
        signature: Sequence[UInt8],
    ) -> Boolean:
        ...


@runtime_checkable
class ProofSystem(Protocol):
    def keygen(self, circuit: Any) -> Tuple[Any, Any]:
        ...

    def prove(self, proving_key: Any, circuit: Any) -> Any:
        ...

    def verify(self, verifying_key: Any, public_inputs: Sequence[int], proof: Any) -> bool:
        ...
