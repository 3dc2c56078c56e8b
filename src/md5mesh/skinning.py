"""Bind-pose reconstruction and per-vertex skinning arrays."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from md5mesh.models import Mesh, Scene
from md5mesh.quaternion import quat_normalize, quat_to_matrix
from md5mesh.warning_policy import WarningPolicy, emit_warning

MAX_INFLUENCES = 4


@dataclass
class SkinData:
    """Skinning data ready for glTF export."""

    joints: np.ndarray  # (N, 4) uint16
    weights: np.ndarray  # (N, 4) float32
    inverse_bind_matrices: np.ndarray  # (J, 4, 4) float32
    joint_names: list[str]


def _rotate_many(quats: np.ndarray, vectors: np.ndarray) -> np.ndarray:
    """Rotate each row of ``vectors`` (K, 3) by the matching unit quaternion (K, 4)."""
    qv = quats[:, :3]
    qw = quats[:, 3:4]
    t = 2.0 * np.cross(qv, vectors)
    return vectors + qw * t + np.cross(qv, t)


def bind_pose_positions(scene: Scene, mesh: Mesh) -> np.ndarray:
    """Model-space vertex positions of ``mesh`` in the skeleton's bind pose.

    Each vertex is the bias-weighted sum, over its weight range, of the weight
    position transformed by the influencing joint. Returns (N, 3) float64.
    """
    positions = np.zeros((len(mesh.verts), 3), dtype=np.float64)
    if not mesh.weights or not scene.joints:
        return positions

    joint_pos = np.array([j.position for j in scene.joints], dtype=np.float64)
    joint_rot = np.array([j.orientation for j in scene.joints], dtype=np.float64)
    joint_ids = np.array([w.joint_index for w in mesh.weights], dtype=np.intp)
    biases = np.array([w.bias for w in mesh.weights], dtype=np.float64)
    offsets = np.array([w.position for w in mesh.weights], dtype=np.float64)

    contrib = joint_pos[joint_ids] + _rotate_many(joint_rot[joint_ids], offsets)
    contrib *= biases[:, None]

    owners: list[int] = []
    weight_ids: list[int] = []
    for v, vert in enumerate(mesh.verts):
        owners.extend([v] * vert.weight_count)
        weight_ids.extend(range(vert.weight_start, vert.weight_start + vert.weight_count))
    if owners:
        np.add.at(positions, np.array(owners, dtype=np.intp), contrib[weight_ids])
    return positions


def triangle_indices(mesh: Mesh, *, flip_winding: bool = False) -> np.ndarray:
    """Triangle vertex indices as (T, 3) uint32.

    MD5 faces are wound clockwise; ``flip_winding`` yields counter-clockwise.
    """
    if not mesh.tris:
        return np.zeros((0, 3), dtype=np.uint32)
    indices = np.array([t.vertex_indices for t in mesh.tris], dtype=np.uint32)
    if flip_winding:
        indices = indices[:, [0, 2, 1]]
    return np.ascontiguousarray(indices)


def vertex_uvs(mesh: Mesh) -> np.ndarray:
    return np.array([v.uv for v in mesh.verts], dtype=np.float64).reshape(-1, 2)


def compute_normals(positions: np.ndarray, indices: np.ndarray) -> np.ndarray:
    """Area-weighted smooth vertex normals for counter-clockwise triangles."""
    normals = np.zeros_like(positions, dtype=np.float64)
    if len(indices) == 0:
        return normals
    tris = indices.astype(np.intp)
    p0 = positions[tris[:, 0]]
    p1 = positions[tris[:, 1]]
    p2 = positions[tris[:, 2]]
    face_normals = np.cross(p1 - p0, p2 - p0)
    for corner in range(3):
        np.add.at(normals, tris[:, corner], face_normals)
    lengths = np.linalg.norm(normals, axis=1)
    nonzero = lengths > 1e-12
    normals[nonzero] /= lengths[nonzero, None]
    return normals


def _find_root_joint_index(scene: Scene) -> int:
    for i, joint in enumerate(scene.joints):
        if joint.parent_index == -1:
            return i
    return 0


def compute_skinning(
    scene: Scene,
    mesh: Mesh,
    *,
    mesh_index: int | None = None,
    warning_policy: WarningPolicy | None = None,
) -> SkinData:
    """Collapse each vertex's weight range into at most four joint influences."""
    joint_names = [j.name for j in scene.joints]
    root_joint_idx = _find_root_joint_index(scene)

    total_vertices = len(mesh.verts)
    joints = np.zeros((total_vertices, MAX_INFLUENCES), dtype=np.uint16)
    weights = np.zeros((total_vertices, MAX_INFLUENCES), dtype=np.float32)

    for v, vert in enumerate(mesh.verts):
        merged: dict[int, float] = {}
        for weight in mesh.weights[vert.weight_start : vert.weight_start + vert.weight_count]:
            merged[weight.joint_index] = merged.get(weight.joint_index, 0.0) + weight.bias
        influences = [(j, w) for j, w in merged.items() if w > 0.0]

        if len(influences) > MAX_INFLUENCES:
            emit_warning(
                "W04",
                f"Vertex {v} has {len(influences)} joint influences; capping to {MAX_INFLUENCES}",
                policy=warning_policy,
                entity="vert",
                index=v,
                mesh_index=mesh_index,
            )

        # Sort: weight desc, joint index asc
        influences.sort(key=lambda x: (-x[1], x[0]))
        influences = influences[:MAX_INFLUENCES]

        total_w = sum(w for _, w in influences)
        if total_w > 0:
            influences = [(j, w / total_w) for j, w in influences]
        else:
            influences = [(root_joint_idx, 1.0)]

        for i, (j, w) in enumerate(influences):
            joints[v, i] = j
            weights[v, i] = w

    return SkinData(
        joints=joints,
        weights=weights,
        inverse_bind_matrices=compute_inverse_bind_matrices(scene),
        joint_names=joint_names,
    )


def compute_inverse_bind_matrices(scene: Scene) -> np.ndarray:
    """Inverse of each joint's model-space bind transform, (J, 4, 4) row-major.

    The bind transform is ``T(position) @ R(orientation)``, so its inverse is
    ``[R^T | -R^T p]``.
    """
    ibms = np.zeros((len(scene.joints), 4, 4), dtype=np.float32)
    for i, joint in enumerate(scene.joints):
        rot = quat_to_matrix(quat_normalize(joint.orientation))
        pos = np.array(joint.position, dtype=np.float64)
        mat = np.eye(4, dtype=np.float64)
        mat[:3, :3] = rot.T
        mat[:3, 3] = -rot.T @ pos
        ibms[i] = mat
    return ibms
