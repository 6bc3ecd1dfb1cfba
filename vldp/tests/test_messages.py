"""Tests for the CBOR protocol messages"""

import cbor2
import pytest

from vldp.exceptions import SerializationError
from vldp.messages import (
    MAX_MESSAGE_BYTES,
    ClientCommitMessage,
    ClientReportMessage,
    ServerResponseMessage,
)

PK = b"\x02" + b"\x11" * 32
COMMITMENT = b"\x03" + b"\x22" * 32
ROOT = b"\x44" * 32
SEED = b"\x55" * 32
SIGNATURE = b"\x02" + b"\x66" * 64


def make_report(**overrides):
    fields = dict(
        client_sig_pk=PK,
        commitment_or_root=COMMITMENT,
        server_seed=SEED,
        server_signature=SIGNATURE,
        proof=b"\x80",
        ldp_value=3,
    )
    fields.update(overrides)
    return ClientReportMessage(**fields)


class TestRoundTrip:
    """Encoded messages decode to equal values"""

    def test_client_commit(self):
        for commitment_or_root in (COMMITMENT, ROOT):
            msg = ClientCommitMessage(commitment_or_root, PK)
            assert ClientCommitMessage.from_bytes(msg.to_bytes()) == msg

    def test_server_response(self):
        msg = ServerResponseMessage(SEED, SIGNATURE)
        assert ServerResponseMessage.from_bytes(msg.to_bytes()) == msg

    def test_client_report(self):
        msg = make_report(ldp_value=2**64 - 1)
        assert ClientReportMessage.from_bytes(msg.to_bytes()) == msg

    def test_flat_array_layout(self):
        """Fields are a flat array in declaration order"""
        decoded = cbor2.loads(ServerResponseMessage(SEED, SIGNATURE).to_bytes())
        assert decoded == [SEED, SIGNATURE]


class TestDecodeErrors:
    """Malformed input raises SerializationError"""

    def test_truncated(self):
        blob = make_report().to_bytes()
        for cut in (1, len(blob) // 2, len(blob) - 1):
            with pytest.raises(SerializationError):
                ClientReportMessage.from_bytes(blob[:cut])

    def test_wrong_arity(self):
        blob = cbor2.dumps([SEED])
        with pytest.raises(SerializationError):
            ServerResponseMessage.from_bytes(blob)

    def test_not_an_array(self):
        with pytest.raises(SerializationError):
            ClientCommitMessage.from_bytes(cbor2.dumps({"pk": PK}))

    def test_wrong_field_length(self):
        blob = cbor2.dumps([SEED[:31], SIGNATURE])
        with pytest.raises(SerializationError):
            ServerResponseMessage.from_bytes(blob)

    def test_wrong_field_type(self):
        blob = cbor2.dumps([COMMITMENT, "not bytes"])
        with pytest.raises(SerializationError):
            ClientCommitMessage.from_bytes(blob)

    def test_ldp_value_must_be_uint64(self):
        for bad in (-1, 2**64, True, "3"):
            blob = cbor2.dumps([PK, COMMITMENT, SEED, SIGNATURE, b"", bad])
            with pytest.raises(SerializationError):
                ClientReportMessage.from_bytes(blob)

    def test_oversized(self):
        with pytest.raises(SerializationError):
            ClientCommitMessage.from_bytes(b"\x00" * (MAX_MESSAGE_BYTES + 1))

    def test_non_bytes_blob(self):
        with pytest.raises(SerializationError):
            ServerResponseMessage.from_bytes("text")


class TestEncodeValidation:
    """Invalid messages are refused before encoding"""

    def test_bad_commitment_size(self):
        with pytest.raises(SerializationError):
            ClientCommitMessage(b"\x00" * 10, PK).to_bytes()

    def test_bad_signature_size(self):
        with pytest.raises(SerializationError):
            make_report(server_signature=SIGNATURE[:-1]).to_bytes()
