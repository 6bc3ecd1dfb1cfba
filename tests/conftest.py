"""Fixtures for the end-to-end protocol tests."""

from dataclasses import dataclass
from typing import Any, Tuple

import pytest

from vldp.circuits import expand as expand_circuit
from vldp.circuits import shuffle as shuffle_circuit
from vldp.client import ClientExpand, ClientShuffle, sign_true_value
from vldp.config import VLDPConfig
from vldp.parameters import SystemParameters
from vldp.primitives.schnorr import SchnorrSignature
from vldp.server import ServerExpand, ServerShuffle


@dataclass
class Deployment:
    config: VLDPConfig
    params: SystemParameters
    signature: SchnorrSignature
    server_sk: Any
    server_pk: bytes
    client_sk: Any
    client_pk: bytes
    shuffle_keys: Tuple[Any, Any]
    expand_keys: Tuple[Any, Any]

    def sign_input(self, true_value: int, time: int) -> bytes:
        return sign_true_value(
            self.signature, self.params.client_signature, self.client_sk,
            self.config, true_value, time,
        )

    def shuffle_pair(self):
        pk, vk = self.shuffle_keys
        client = ClientShuffle(self.config, self.params, self.server_pk, self.client_pk, pk)
        server = ServerShuffle(self.config, self.params, self.server_sk, self.server_pk, vk)
        return client, server

    def expand_pair(self):
        pk, vk = self.expand_keys
        client = ClientExpand(self.config, self.params, self.server_pk, self.client_pk, pk)
        server = ServerExpand(self.config, self.params, self.server_sk, self.server_pk, vk)
        return client, server


@pytest.fixture(scope="session")
def deployment():
    config = VLDPConfig(input_bytes=2, time_bytes=4, gamma_bytes=2, k=5, merkle_depth=3)
    params = SystemParameters.setup("0.3", config)
    signature = SchnorrSignature()
    server_sk, server_pk = signature.keygen(params.server_signature)
    client_sk, client_pk = signature.keygen(params.client_signature)
    return Deployment(
        config=config,
        params=params,
        signature=signature,
        server_sk=server_sk,
        server_pk=server_pk,
        client_sk=client_sk,
        client_pk=client_pk,
        shuffle_keys=shuffle_circuit.keygen(config, params),
        expand_keys=expand_circuit.keygen(config, params),
    )

