"""CBOR message schemas for the VLDP client/server exchange.

Every message is a flat CBOR array with a fixed field order and no
version field:

    ClientCommitMessage    [commitment_or_root, client_sig_pk]
    ServerResponseMessage  [server_seed, server_signature]
    ClientReportMessage    [client_sig_pk, commitment_or_root, server_seed,
                            server_signature, proof, ldp_value]
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List

import cbor2

from .config import (
    MERKLE_HASH_BYTES,
    POINT_SIZE_BYTES,
    PRF_SEED_BYTES,
    SIGNATURE_SIZE_BYTES,
)
from .exceptions import SerializationError

MAX_MESSAGE_BYTES = 16 * 1024 * 1024
MAX_UINT64 = (1 << 64) - 1

# A Shuffle client commits with a curve point, an Expand client with a root
COMMITMENT_OR_ROOT_SIZES = (POINT_SIZE_BYTES, MERKLE_HASH_BYTES)


def _require_bytes(value: Any, field: str, sizes=None) -> bytes:
    if not isinstance(value, (bytes, bytearray)):
        raise SerializationError(f"{field} must be bytes")
    value = bytes(value)
    if sizes is not None and len(value) not in sizes:
        raise SerializationError(f"{field} has invalid length {len(value)}")
    return value


def _require_uint64(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise SerializationError(f"{field} must be an unsigned integer")
    if not 0 <= value <= MAX_UINT64:
        raise SerializationError(f"{field} out of uint64 range")
    return value


def _load_array(blob: Any, length: int, name: str) -> List[Any]:
    if not isinstance(blob, (bytes, bytearray)):
        raise SerializationError(f"{name} blob must be bytes")
    if len(blob) > MAX_MESSAGE_BYTES:
        raise SerializationError(f"{name} too large")
    try:
        payload = cbor2.loads(bytes(blob))
    except (cbor2.CBORDecodeError, ValueError, EOFError) as exc:
        raise SerializationError(f"malformed {name}: {exc}") from exc
    if not isinstance(payload, list) or len(payload) != length:
        raise SerializationError(f"{name} must be an array of {length} fields")
    return payload


@dataclass(frozen=True)
class ClientCommitMessage:
    commitment_or_root: bytes
    client_sig_pk: bytes

    def validate(self) -> None:
        _require_bytes(self.commitment_or_root, "commitment_or_root", COMMITMENT_OR_ROOT_SIZES)
        _require_bytes(self.client_sig_pk, "client_sig_pk", (POINT_SIZE_BYTES,))

    def to_bytes(self) -> bytes:
        self.validate()
        return cbor2.dumps([bytes(self.commitment_or_root), bytes(self.client_sig_pk)])

    @classmethod
    def from_bytes(cls, blob: bytes) -> "ClientCommitMessage":
        fields = _load_array(blob, 2, "client commit message")
        msg = cls(
            commitment_or_root=_require_bytes(fields[0], "commitment_or_root"),
            client_sig_pk=_require_bytes(fields[1], "client_sig_pk"),
        )
        msg.validate()
        return msg


@dataclass(frozen=True)
class ServerResponseMessage:
    server_seed: bytes
    server_signature: bytes

    def validate(self) -> None:
        _require_bytes(self.server_seed, "server_seed", (PRF_SEED_BYTES,))
        _require_bytes(self.server_signature, "server_signature", (SIGNATURE_SIZE_BYTES,))

    def to_bytes(self) -> bytes:
        self.validate()
        return cbor2.dumps([bytes(self.server_seed), bytes(self.server_signature)])

    @classmethod
    def from_bytes(cls, blob: bytes) -> "ServerResponseMessage":
        fields = _load_array(blob, 2, "server response message")
        msg = cls(
            server_seed=_require_bytes(fields[0], "server_seed"),
            server_signature=_require_bytes(fields[1], "server_signature"),
        )
        msg.validate()
        return msg


@dataclass(frozen=True)
class ClientReportMessage:
    client_sig_pk: bytes
    commitment_or_root: bytes
    server_seed: bytes
    server_signature: bytes
    proof: bytes
    ldp_value: int

    def validate(self) -> None:
        _require_bytes(self.client_sig_pk, "client_sig_pk", (POINT_SIZE_BYTES,))
        _require_bytes(self.commitment_or_root, "commitment_or_root", COMMITMENT_OR_ROOT_SIZES)
        _require_bytes(self.server_seed, "server_seed", (PRF_SEED_BYTES,))
        _require_bytes(self.server_signature, "server_signature", (SIGNATURE_SIZE_BYTES,))
        _require_bytes(self.proof, "proof")
        _require_uint64(self.ldp_value, "ldp_value")

    def to_bytes(self) -> bytes:
        self.validate()
        return cbor2.dumps(
            [
                bytes(self.client_sig_pk),
                bytes(self.commitment_or_root),
                bytes(self.server_seed),
                bytes(self.server_signature),
                bytes(self.proof),
                self.ldp_value,
            ]
        )

    @classmethod
    def from_bytes(cls, blob: bytes) -> "ClientReportMessage":
        fields = _load_array(blob, 6, "client report message")
        msg = cls(
            client_sig_pk=_require_bytes(fields[0], "client_sig_pk"),
            commitment_or_root=_require_bytes(fields[1], "commitment_or_root"),
            server_seed=_require_bytes(fields[2], "server_seed"),
            server_signature=_require_bytes(fields[3], "server_signature"),
            proof=_require_bytes(fields[4], "proof"),
            ldp_value=_require_uint64(fields[5], "ldp_value"),
        )
        msg.validate()
        return msg
