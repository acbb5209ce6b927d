# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Tensor Store

Id-indexed table of computed tensor buffers. Buffers are flat float32
arrays in channel-last row-major order and may be shared between ids.
"""

from __future__ import annotations

from typing import Iterator, Optional

import numpy as np

from ..core.types import TensorId
from ..errors import StructuralPreconditionError


class TensorStore:
    """
    Holds the computed value of every tensor in a model.

    Each entry is either None (not computed yet) or a flat float32
    ndarray. Two ids may hold the very same ndarray object, which is
    how Reshape outputs alias their inputs. Buffers the engine allocated
    are made read-only once stored; buffers handed in by the caller are
    stored as they are and never modified.

    The store outlives a single run. The caller decides when its
    contents become stale and calls clear(); the engine never does.

    Example:
        store = TensorStore(model.num_tensors())
        compute(model, normalization, image, shape, tensor_store=store)
        logits = store.get(model.get_outputs()[0])
    """

    def __init__(self, num_tensors: int):
        self._buffers: list[Optional[np.ndarray]] = [None] * num_tensors
        self._written: set[TensorId] = set()

    def __len__(self) -> int:
        return len(self._buffers)

    def begin_run(self) -> None:
        """Start a new run: entries may be replaced once each."""
        self._written.clear()

    def set(self, tensor_id: TensorId, buffer: np.ndarray, owned: bool = True) -> None:
        """
        Store a tensor value.

        Args:
            tensor_id: Tensor to bind.
            buffer: Flat float32 array.
            owned: True when the engine allocated the buffer. Owned
                   buffers become read-only.

        Raises:
            StructuralPreconditionError: If the entry was already written
                during the current run.
        """
        self._check_id(tensor_id)
        if tensor_id in self._written:
            raise StructuralPreconditionError(
                "tensor was already written during this run", tensor_id=tensor_id
            )
        if owned:
            buffer.flags.writeable = False
        self._buffers[tensor_id] = buffer
        self._written.add(tensor_id)

    def alias(self, dst_id: TensorId, src_id: TensorId) -> None:
        """Bind dst_id to the same buffer as src_id, without copying."""
        buffer = self.get(src_id)
        self.set(dst_id, buffer, owned=False)

    def get(self, tensor_id: TensorId) -> np.ndarray:
        """
        Retrieve a tensor value.

        Raises:
            StructuralPreconditionError: If the tensor hasn't been computed.
        """
        self._check_id(tensor_id)
        buffer = self._buffers[tensor_id]
        if buffer is None:
            raise StructuralPreconditionError(
                "tensor is read before it was computed", tensor_id=tensor_id
            )
        return buffer

    def has(self, tensor_id: TensorId) -> bool:
        """Check if a tensor has a value."""
        self._check_id(tensor_id)
        return self._buffers[tensor_id] is not None

    def shares_buffer(self, a: TensorId, b: TensorId) -> bool:
        """Check if two tensors are bound to the same buffer."""
        return self.has(a) and self.has(b) and self._buffers[a] is self._buffers[b]

    def computed_ids(self) -> list[TensorId]:
        """Get the ids of all tensors that hold a value."""
        return [tid for tid, buf in enumerate(self._buffers) if buf is not None]

    def clear(self) -> None:
        """Drop every stored value."""
        self._buffers = [None] * len(self._buffers)
        self._written.clear()

    def __iter__(self) -> Iterator[Optional[np.ndarray]]:
        return iter(self._buffers)

    def _check_id(self, tensor_id: TensorId) -> None:
        if not 0 <= tensor_id < len(self._buffers):
            raise StructuralPreconditionError(
                f"tensor id is outside 0..{len(self._buffers) - 1}",
                tensor_id=tensor_id,
            )

    def __repr__(self) -> str:
        return (
            f"TensorStore(tensors={len(self._buffers)}, "
            f"computed={len(self.computed_ids())})"
        )
