"""Skinned glTF/GLB export via pygltflib."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pygltflib

from md5mesh.errors import ExportError, Md5MeshError
from md5mesh.models import Scene
from md5mesh.quaternion import quat_conj, quat_mul, quat_normalize, quat_rotate
from md5mesh.skinning import (
    bind_pose_positions,
    compute_inverse_bind_matrices,
    compute_normals,
    compute_skinning,
    triangle_indices,
    vertex_uvs,
)
from md5mesh.warning_policy import WarningPolicy

# -90 degrees about X: id Tech Z-up -> glTF Y-up
Z_UP_TO_Y_UP = [-0.7071067811865476, 0.0, 0.0, 0.7071067811865476]
ROOT_NODE_NAME = "md5_root"


def export_gltf(
    scene: Scene,
    output_path: Path,
    *,
    y_up: bool = True,
    warning_policy: WarningPolicy | None = None,
) -> None:
    """Export a validated scene to a GLB file.

    Pipeline: bind pose -> skin -> build glTF scene -> write GLB.
    """
    try:
        gltf = build_gltf(scene, y_up=y_up, warning_policy=warning_policy)
        Path(output_path).write_bytes(b"".join(gltf.save_to_bytes()))
    except Exception as e:
        if isinstance(e, Md5MeshError):
            raise
        raise ExportError(f"Failed to export glTF: {e}") from e


def build_gltf(
    scene: Scene,
    *,
    y_up: bool = True,
    warning_policy: WarningPolicy | None = None,
) -> pygltflib.GLTF2:
    """Build the complete glTF2 structure for a scene."""
    gltf = pygltflib.GLTF2(
        scene=0,
        scenes=[pygltflib.Scene(nodes=[])],
        nodes=[],
        meshes=[],
        accessors=[],
        bufferViews=[],
        buffers=[],
        materials=[],
        skins=[],
    )

    blob_data = bytearray()
    material_map: dict[str, int] = {}
    scene_nodes: list[int] = []

    root_node_idx: int | None = None
    if y_up:
        root_node_idx = len(gltf.nodes)
        gltf.nodes.append(
            pygltflib.Node(name=ROOT_NODE_NAME, rotation=list(Z_UP_TO_Y_UP), children=[])
        )
        scene_nodes.append(root_node_idx)

    skin_idx: int | None = None
    if scene.joints:
        joint_node_indices = _build_joint_nodes(gltf, scene)
        for i, joint in enumerate(scene.joints):
            if joint.parent_index == -1:
                _attach(gltf, scene_nodes, root_node_idx, joint_node_indices[i])

        ibms = compute_inverse_bind_matrices(scene)
        # glTF matrices are column-major; numpy is row-major
        ibm_col_major = np.ascontiguousarray(ibms.transpose(0, 2, 1)).astype(np.float32)
        ibm_acc_idx = _write_buffer_view_and_accessor(
            gltf, blob_data, ibm_col_major, pygltflib.FLOAT, pygltflib.MAT4
        )

        if root_node_idx is not None:
            skeleton_root = root_node_idx
        else:
            skeleton_root = next(
                (
                    joint_node_indices[i]
                    for i, joint in enumerate(scene.joints)
                    if joint.parent_index == -1
                ),
                None,
            )

        skin_idx = len(gltf.skins)
        gltf.skins.append(
            pygltflib.Skin(
                name="skeleton",
                joints=joint_node_indices,
                skeleton=skeleton_root,
                inverseBindMatrices=ibm_acc_idx,
            )
        )

    for m, mesh in enumerate(scene.meshes):
        if not mesh.verts or not mesh.tris:
            continue

        positions = bind_pose_positions(scene, mesh).astype(np.float32)
        indices = triangle_indices(mesh, flip_winding=True)
        normals = compute_normals(positions.astype(np.float64), indices).astype(np.float32)
        uvs = vertex_uvs(mesh).astype(np.float32)

        attributes = pygltflib.Attributes(
            POSITION=_write_buffer_view_and_accessor(
                gltf,
                blob_data,
                positions,
                pygltflib.FLOAT,
                pygltflib.VEC3,
                pygltflib.ARRAY_BUFFER,
                include_min_max=True,
            ),
            NORMAL=_write_buffer_view_and_accessor(
                gltf, blob_data, normals, pygltflib.FLOAT, pygltflib.VEC3, pygltflib.ARRAY_BUFFER
            ),
            TEXCOORD_0=_write_buffer_view_and_accessor(
                gltf, blob_data, uvs, pygltflib.FLOAT, pygltflib.VEC2, pygltflib.ARRAY_BUFFER
            ),
        )

        if skin_idx is not None:
            skin_data = compute_skinning(
                scene, mesh, mesh_index=m, warning_policy=warning_policy
            )
            attributes.JOINTS_0 = _write_buffer_view_and_accessor(
                gltf,
                blob_data,
                skin_data.joints.astype(np.uint16),
                pygltflib.UNSIGNED_SHORT,
                pygltflib.VEC4,
                pygltflib.ARRAY_BUFFER,
            )
            attributes.WEIGHTS_0 = _write_buffer_view_and_accessor(
                gltf,
                blob_data,
                skin_data.weights.astype(np.float32),
                pygltflib.FLOAT,
                pygltflib.VEC4,
                pygltflib.ARRAY_BUFFER,
            )

        idx_acc_idx = _write_buffer_view_and_accessor(
            gltf,
            blob_data,
            indices.reshape(-1),
            pygltflib.UNSIGNED_INT,
            pygltflib.SCALAR,
            pygltflib.ELEMENT_ARRAY_BUFFER,
        )

        mesh_name = f"mesh_{m}"
        mesh_idx = len(gltf.meshes)
        gltf.meshes.append(
            pygltflib.Mesh(
                name=mesh_name,
                primitives=[
                    pygltflib.Primitive(
                        attributes=attributes,
                        indices=idx_acc_idx,
                        material=_register_material(gltf, mesh.shader, material_map),
                    )
                ],
            )
        )

        mesh_node_idx = len(gltf.nodes)
        gltf.nodes.append(pygltflib.Node(name=mesh_name, mesh=mesh_idx, skin=skin_idx))
        if skin_idx is not None:
            # skinned mesh nodes ignore their own transform; keep them at scene root
            scene_nodes.append(mesh_node_idx)
        else:
            _attach(gltf, scene_nodes, root_node_idx, mesh_node_idx)

    gltf.scenes[0].nodes = scene_nodes

    gltf.buffers = [pygltflib.Buffer(byteLength=len(blob_data))]
    gltf.set_binary_blob(bytes(blob_data))

    return gltf


def joint_local_transforms(scene: Scene) -> list[tuple[list[float], list[float]]]:
    """Parent-relative (translation, rotation) for each joint.

    MD5 joints are stored in model space; glTF nodes need local TRS.
    """
    result: list[tuple[list[float], list[float]]] = []
    for joint in scene.joints:
        rotation = quat_normalize(joint.orientation)
        translation = np.array(joint.position, dtype=np.float64)
        if joint.parent_index != -1:
            parent = scene.joints[joint.parent_index]
            inv_parent = quat_conj(quat_normalize(parent.orientation))
            translation = quat_rotate(inv_parent, translation - np.array(parent.position))
            rotation = quat_normalize(quat_mul(inv_parent, rotation))
        result.append(([float(v) for v in translation], [float(v) for v in rotation]))
    return result


def _build_joint_nodes(gltf: pygltflib.GLTF2, scene: Scene) -> list[int]:
    """Append one node per joint, wire up children, return node indices in joint order."""
    node_indices: list[int] = []
    for joint, (translation, rotation) in zip(scene.joints, joint_local_transforms(scene)):
        node_indices.append(len(gltf.nodes))
        gltf.nodes.append(
            pygltflib.Node(name=joint.name, translation=translation, rotation=rotation)
        )

    for i, joint in enumerate(scene.joints):
        if joint.parent_index == -1:
            continue
        parent_node = gltf.nodes[node_indices[joint.parent_index]]
        if parent_node.children is None:
            parent_node.children = []
        parent_node.children.append(node_indices[i])
    return node_indices


def _attach(
    gltf: pygltflib.GLTF2, scene_nodes: list[int], root_node_idx: int | None, node_idx: int
) -> None:
    if root_node_idx is None:
        scene_nodes.append(node_idx)
    else:
        gltf.nodes[root_node_idx].children.append(node_idx)


def _register_material(
    gltf: pygltflib.GLTF2, shader: str, material_map: dict[str, int]
) -> int:
    """Return the material index for a shader name, creating it on first use."""
    if shader not in material_map:
        material_map[shader] = len(gltf.materials)
        gltf.materials.append(
            pygltflib.Material(
                name=shader,
                pbrMetallicRoughness=pygltflib.PbrMetallicRoughness(),
            )
        )
    return material_map[shader]


def _write_buffer_view_and_accessor(
    gltf: pygltflib.GLTF2,
    blob_data: bytearray,
    data_array: np.ndarray,
    component_type: int,
    accessor_type: str,
    target: int | None = None,
    *,
    include_min_max: bool = False,
) -> int:
    """Write a buffer view and accessor, returning the accessor index."""
    offset = len(blob_data)
    data_bytes = data_array.tobytes()
    blob_data.extend(data_bytes)

    bv_idx = len(gltf.bufferViews)
    bv = pygltflib.BufferView(
        buffer=0,
        byteOffset=offset,
        byteLength=len(data_bytes),
    )
    if target is not None:
        bv.target = target
    gltf.bufferViews.append(bv)

    acc_kwargs: dict = {
        "bufferView": bv_idx,
        "byteOffset": 0,
        "componentType": component_type,
        "count": len(data_array),
        "type": accessor_type,
    }
    if include_min_max:
        acc_kwargs["min"] = data_array.min(axis=0).tolist()
        acc_kwargs["max"] = data_array.max(axis=0).tolist()

    acc_idx = len(gltf.accessors)
    gltf.accessors.append(pygltflib.Accessor(**acc_kwargs))
    return acc_idx
