"""Inspection diagnostics for parsed scenes."""

from __future__ import annotations

from io import StringIO

import numpy as np
from ruamel.yaml import YAML

from md5mesh.models import Mesh, Scene
from md5mesh.skinning import bind_pose_positions

INSPECT_SCHEMA_VERSION = 1


def inspect_scene(scene: Scene) -> dict[str, object]:
    """Return deterministic diagnostics for a validated scene."""
    depths = joint_depths(scene)
    all_positions: list[np.ndarray] = []
    meshes: list[dict[str, object]] = []
    for m, mesh in enumerate(scene.meshes):
        positions = bind_pose_positions(scene, mesh)
        all_positions.append(positions)
        meshes.append(_mesh_payload(m, mesh, positions))

    stacked = np.concatenate(all_positions) if all_positions else np.zeros((0, 3))
    summary = {
        "md5_version": scene.header.md5_version,
        "command_line": scene.header.command_line,
        "joint_count": len(scene.joints),
        "mesh_count": len(scene.meshes),
        "vert_count": sum(len(mesh.verts) for mesh in scene.meshes),
        "tri_count": sum(len(mesh.tris) for mesh in scene.meshes),
        "weight_count": sum(len(mesh.weights) for mesh in scene.meshes),
        "bounds": _bounds(stacked),
    }

    joints = [
        {
            "index": i,
            "name": joint.name,
            "parent": joint.parent_index,
            "depth": depths[i],
            "position": _to_list(joint.position),
            "orientation": _to_list(joint.orientation),
        }
        for i, joint in enumerate(scene.joints)
    ]

    return {
        "inspect_schema_version": INSPECT_SCHEMA_VERSION,
        "summary": summary,
        "joints": joints,
        "meshes": meshes,
    }


def joint_depths(scene: Scene) -> list[int]:
    """Depth of each joint below its root.

    A parent index that does not point at an earlier joint counts as a root, so
    unvalidated scenes from ``parse_md5mesh`` can be inspected too.
    """
    depths: list[int] = []
    for joint in scene.joints:
        if joint.parent_index == -1:
            depths.append(0)
        elif 0 <= joint.parent_index < len(depths):
            depths.append(depths[joint.parent_index] + 1)
        else:
            depths.append(0)
    return depths


def render_text(payload: dict[str, object]) -> str:
    summary = payload["summary"]
    lines = [
        f"MD5Version {summary['md5_version']}",
        f"commandline {summary['command_line']!r}",
        (
            f"joints: {summary['joint_count']}  meshes: {summary['mesh_count']}  "
            f"verts: {summary['vert_count']}  tris: {summary['tri_count']}  "
            f"weights: {summary['weight_count']}"
        ),
        (
            f"bounds: min={_fmt_vec(summary['bounds']['min'])} "
            f"max={_fmt_vec(summary['bounds']['max'])}"
        ),
        "",
        "Joints:",
    ]
    for joint in payload["joints"]:
        indent = "  " * (joint["depth"] + 1)
        lines.append(
            f"{indent}[{joint['index']}] {joint['name']} pos={_fmt_vec(joint['position'])}"
        )

    lines.append("")
    lines.append("Meshes:")
    for mesh in payload["meshes"]:
        lines.append(
            f"  [{mesh['index']}] shader={mesh['shader']!r} verts={mesh['vert_count']} "
            f"tris={mesh['tri_count']} weights={mesh['weight_count']} "
            f"max_influences={mesh['max_influences']}"
        )
        lines.append(
            f"      bounds: min={_fmt_vec(mesh['bounds']['min'])} "
            f"max={_fmt_vec(mesh['bounds']['max'])}"
        )
    return "\n".join(lines) + "\n"


def render_yaml(payload: dict[str, object]) -> str:
    yml = YAML(typ="safe", pure=True)
    yml.default_flow_style = False
    stream = StringIO()
    yml.dump(payload, stream)
    return stream.getvalue()


def _mesh_payload(index: int, mesh: Mesh, positions: np.ndarray) -> dict[str, object]:
    return {
        "index": index,
        "shader": mesh.shader,
        "vert_count": len(mesh.verts),
        "tri_count": len(mesh.tris),
        "weight_count": len(mesh.weights),
        "max_influences": max((v.weight_count for v in mesh.verts), default=0),
        "bounds": _bounds(positions),
    }


def _bounds(positions: np.ndarray) -> dict[str, list[float]]:
    if len(positions) == 0:
        zero = [0.0, 0.0, 0.0]
        return {"min": zero, "max": list(zero)}
    return {
        "min": _to_list(positions.min(axis=0)),
        "max": _to_list(positions.max(axis=0)),
    }


def _to_list(vec: object) -> list[float]:
    return [round(float(v), 6) for v in vec]


def _fmt_vec(vec: object) -> str:
    return "(" + ", ".join(f"{float(v):.4f}" for v in vec) + ")"
