"""VLDP proof circuits (Shuffle and Expand variants)."""

from .common import PublicInputs, Schemes
from .expand import ExpandCircuit, ExpandWitness
from .shuffle import ShuffleCircuit, ShuffleWitness

__all__ = [
    "ExpandCircuit",
    "ExpandWitness",
    "PublicInputs",
    "Schemes",
    "ShuffleCircuit",
    "ShuffleWitness",
]
