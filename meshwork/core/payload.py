"""Caller-side payloads attached to mesh elements.

The mesh core stores payloads opaquely. Only operations that need
coordinates (projection, triangulation, extrusion) look at
``VertexPayload.position``; any object exposing a ``position`` attribute
works for them.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional

import numpy as np


def _as_vector(value, name: str) -> np.ndarray:
    arr = np.asarray(value, dtype=float).reshape(-1)
    if arr.shape[0] not in (2, 3):
        raise ValueError(f"{name} must have 2 or 3 components, got {arr.shape[0]}")
    return arr


@dataclass
class VertexPayload:
    """Position, optional normal and free-form attributes of a vertex."""
    position: np.ndarray
    normal: Optional[np.ndarray] = None
    data: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.position = _as_vector(self.position, 'position')
        if self.normal is not None:
            self.normal = _as_vector(self.normal, 'normal')

    @property
    def dim(self) -> int:
        return int(self.position.shape[0])

    def translated(self, offset) -> 'VertexPayload':
        off = np.asarray(offset, dtype=float).reshape(-1)
        if off.shape[0] != self.dim:
            raise ValueError(f"offset has {off.shape[0]} components, position has {self.dim}")
        return replace(self, position=self.position + off, data=dict(self.data))

    def transformed(self, matrix) -> 'VertexPayload':
        """Apply a homogeneous affine matrix ((d+1) x (d+1)) or a linear (d x d) one."""
        m = np.asarray(matrix, dtype=float)
        d = self.dim
        if m.shape == (d + 1, d + 1):
            pos = m[:d, :d] @ self.position + m[:d, d]
            lin = m[:d, :d]
        elif m.shape == (d, d):
            pos = m @ self.position
            lin = m
        else:
            raise ValueError(f"matrix shape {m.shape} does not fit a {d}D position")
        normal = None
        if self.normal is not None:
            # normals transform with the inverse transpose
            normal = np.linalg.inv(lin).T @ self.normal
            length = np.linalg.norm(normal)
            if length > 0:
                normal = normal / length
        return VertexPayload(pos, normal, dict(self.data))


def as_payload(value) -> Any:
    """Wrap raw coordinates into a VertexPayload; pass other objects through."""
    if isinstance(value, (list, tuple, np.ndarray)):
        return VertexPayload(value)
    return value


def position_of(payload) -> np.ndarray:
    if payload is None or not hasattr(payload, 'position'):
        raise ValueError("vertex payload carries no position")
    return np.asarray(payload.position, dtype=float)


__all__ = ['VertexPayload', 'as_payload', 'position_of']
