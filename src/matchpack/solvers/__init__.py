"""Incremental solvers: the shared contract and the four layout phases."""

from .base import DEFAULT_MAX_ITERATIONS, BaseSolver
from .decoupling import DecouplingCapGroup, IdentifyDecouplingCapsSolver
from .inner_packing import PackedPartition, PackInnerPartitionsSolver, layout_bounds
from .partition_packing import PartitionPackingSolver, PlacedPartition, order_packed_partitions
from .partitions import ChipPartition, ChipPartitionsSolver

__all__ = [
    "DEFAULT_MAX_ITERATIONS",
    "BaseSolver",
    "DecouplingCapGroup",
    "IdentifyDecouplingCapsSolver",
    "ChipPartition",
    "ChipPartitionsSolver",
    "PackedPartition",
    "PackInnerPartitionsSolver",
    "layout_bounds",
    "PlacedPartition",
    "PartitionPackingSolver",
    "order_packed_partitions",
]
