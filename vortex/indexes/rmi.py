"""
===============================================================================
RECURSIVE MODEL INDEX (RMI)
===============================================================================
A fixed-shape tree of linear models that learns the CDF of a sorted key array
(Kraska et al., "The Case for Learned Index Structures", SIGMOD 2018):
  -Layer 0 (root): one linear model over all keys.
  -Layer i: width**i models, each fit over one contiguous slice of its parent's
   keys.
  -Layer depth-1 (leaves): models whose output is the predicted array position.

Build:
  1) Fit the root model mapping key -> rank over the whole array.
  2) Split each node's slice into `width` contiguous sub-slices of
     len // width keys (the last one takes the remainder) and fit one child
     per sub-slice, down to the leaf layer.
  3) A node with fewer than 2 keys (or only identical keys) has no regression;
     it predicts its offset, the first rank of the nearest non-empty slice.

GetIndex(key):
  -Internal layers route: prediction / max_index * (number of slots in the
   next layer) picks the child to evaluate.
  -The leaf layer estimates: its prediction is the position itself, clamped
   to [0, max_index].
  Exactly `depth` models are evaluated per query.

Nodes are stored in flat per-layer tuples addressed by (layer, position); the
children of node p at layer i are positions p*width .. p*width+width-1 at
layer i+1. Coefficients are exact Fractions (see regression.py).

Usage:
    from vortex.indexes.rmi import build

    rmi = build(list(range(0, 1000, 10)), width=2, depth=2)
    print(rmi.get_index(500))   # 50
===============================================================================
"""

import logging
import math
from dataclasses import dataclass
from fractions import Fraction
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from vortex.indexes.exceptions import DegenerateModelError, InputError
from vortex.indexes.regression import fit, to_exact

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Node:
    """One linear model f(x) = slope * x + intercept.

    zero_crossing is the x where f(x) == 0 (0 for degenerate nodes); it is
    kept for inspection only.
    """

    slope: Fraction = Fraction(0)
    intercept: Fraction = Fraction(0)
    zero_crossing: Fraction = Fraction(0)

    @classmethod
    def degenerate(cls, offset: int) -> "Node":
        return cls(intercept=Fraction(offset))

    @property
    def is_degenerate(self) -> bool:
        return self.slope == 0

    def predict(self, key) -> Fraction:
        return self.slope * key + self.intercept


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def _check_shape(width, depth) -> Tuple[int, int]:
    for name, value in (("width", width), ("depth", depth)):
        if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
            raise InputError(f"{name} must be an integer, got {value!r}")
        if value < 1:
            raise InputError(f"{name} must be >= 1, got {value}")
    return int(width), int(depth)


def _exact_keys(keys) -> List:
    """Validate keys and convert them to exact ints/Fractions."""
    if isinstance(keys, np.ndarray):
        if keys.ndim != 1:
            raise InputError(f"keys must be 1-D, got shape {keys.shape}")
        keys = keys.tolist()

    exact = []
    for i, key in enumerate(keys):
        try:
            exact.append(to_exact(key))
        except (TypeError, ValueError, OverflowError) as exc:
            raise InputError(f"key at position {i} is not a finite number: {key!r}") from exc

    if not exact:
        raise InputError("cannot build an index over an empty key array")

    for i in range(len(exact) - 1):
        if exact[i] > exact[i + 1]:
            raise InputError(
                f"values must be in sorted order (keys[{i}]={exact[i]} > keys[{i + 1}]={exact[i + 1]})"
            )
    return exact


class _TreeBuilder:
    """Fills the per-layer node slots top-down over one validated key array."""

    def __init__(self, keys: Sequence, width: int, depth: int):
        self.keys = keys
        self.width = width
        self.depth = depth
        self.layers: List[List[Optional[Node]]] = [[None] * (width ** i) for i in range(depth)]
        self.degenerate = 0

    def build(self, lo: int, hi: int, offset: int, layer: int, position: int) -> Node:
        """Build the node for keys[lo:hi] and, below the leaf layer, its children.

        Ranks are absolute array positions, so the node's samples are
        (keys[r], r) for r in [lo, hi).
        """
        try:
            line = fit(self.keys[lo:hi], range(lo, hi))
            node = Node(line.slope, line.intercept, line.zero_crossing)
        except DegenerateModelError as exc:
            logger.debug("layer %d slot %d: %s; predicting offset %d", layer, position, exc, offset)
            node = Node.degenerate(offset)
            self.degenerate += 1

        self.layers[layer][position] = node

        if layer < self.depth - 1:
            n = hi - lo
            size = n // self.width
            left = 0
            for child in range(self.width):
                right = n if child == self.width - 1 else min(left + size, n)
                # empty slices keep the offset of the last non-empty one
                if right > left:
                    offset = lo + left
                self.build(lo + left, lo + right, offset, layer + 1, position * self.width + child)
                left = right

        return node


class RecursiveModelIndex:
    """Immutable recursive model index over a sorted key array.

    Build with ``RecursiveModelIndex.build_from_sorted_array`` (or ``build``);
    the constructor only wraps already-built layers.
    """

    def __init__(self, width: int, depth: int, max_index: int, nodes: Tuple[Tuple[Node, ...], ...]):
        self.width = width
        self.depth = depth
        self.max_index = max_index
        self.nodes = nodes

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------
    @classmethod
    def build_from_sorted_array(cls, keys: Iterable, width: int = 10, depth: int = 2) -> "RecursiveModelIndex":
        """Fit the RMI over sorted keys.

        Args:
            keys: non-decreasing keys (ints of any size, floats, Fractions,
                  Decimals or a 1-D NumPy array). Duplicates are allowed.
            width: children per internal node.
            depth: number of layers (1 = a single linear model).
        Raises:
            InputError: bad width/depth, empty or non-numeric keys, or keys
                        out of order. Nothing is built in that case.
        """
        width, depth = _check_shape(width, depth)
        exact = _exact_keys(keys)

        builder = _TreeBuilder(exact, width, depth)
        builder.build(0, len(exact), 0, 0, 0)

        nodes = tuple(tuple(layer) for layer in builder.layers)
        logger.info(
            "built RMI over %d keys (width=%d, depth=%d): %d nodes, %d degenerate",
            len(exact), width, depth, sum(len(layer) for layer in nodes), builder.degenerate,
        )
        return cls(width, depth, len(exact) - 1, nodes)

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------
    def get_index(self, key) -> int:
        """Approximate position of ``key`` in the training array.

        Never fails for numeric keys: the result is always in [0, max_index].
        NaN and -inf map to 0, +inf to max_index.
        """
        try:
            x = to_exact(key)
        except (ValueError, OverflowError):
            return self._non_finite_index(key)

        if self.max_index == 0:
            return 0

        node = self.nodes[0][0]
        scale = self.width
        for layer in range(1, self.depth):
            # route: fraction of the key range * slots in the next layer
            fraction = node.predict(x) / self.max_index
            position = _clamp(math.floor(fraction * scale), 0, len(self.nodes[layer]) - 1)
            node = self.nodes[layer][position]
            scale *= self.width

        # leaf models predict the absolute rank
        return _clamp(math.floor(node.predict(x)), 0, self.max_index)

    def _non_finite_index(self, key) -> int:
        try:
            return self.max_index if float(key) > 0 else 0
        except ValueError:
            # signaling NaN, e.g. Decimal("sNaN"), has no float value
            return 0

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------
    @property
    def layer_sizes(self) -> Tuple[int, ...]:
        return tuple(len(layer) for layer in self.nodes)

    @property
    def num_nodes(self) -> int:
        return sum(self.layer_sizes)

    def node(self, layer: int, position: int) -> Node:
        return self.nodes[layer][position]

    def get_memory_usage(self) -> int:
        """Approximate size in bytes of the model stored as float64 coefficients."""
        # slope, intercept, zero crossing per node
        total = self.num_nodes * 3 * 8
        # width, depth, max_index
        total += 3 * 8
        return int(total)

    def __repr__(self) -> str:
        return (
            f"RecursiveModelIndex(width={self.width}, depth={self.depth}, "
            f"keys={self.max_index + 1}, nodes={self.num_nodes})"
        )


def build(keys: Iterable, width: int = 10, depth: int = 2) -> RecursiveModelIndex:
    return RecursiveModelIndex.build_from_sorted_array(keys, width, depth)


def query(rmi: RecursiveModelIndex, key) -> int:
    return rmi.get_index(key)
