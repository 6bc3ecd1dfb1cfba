"""Shared fixtures for the unit tests."""

import pytest

from vldp.config import VLDPConfig
from vldp.parameters import SystemParameters


@pytest.fixture
def real_config():
    """One-byte inputs keep every comparison small enough to check exhaustively."""
    return VLDPConfig(input_bytes=1, time_bytes=2, gamma_bytes=1, k=4, merkle_depth=3)


@pytest.fixture
def categorical_config():
    return VLDPConfig(
        input_bytes=1, time_bytes=2, gamma_bytes=1, k=5, is_real_input=False, merkle_depth=2
    )


@pytest.fixture
def real_params(real_config):
    return SystemParameters.setup("1/4", real_config)


@pytest.fixture
def categorical_params(categorical_config):
    return SystemParameters.setup("1/2", categorical_config)
