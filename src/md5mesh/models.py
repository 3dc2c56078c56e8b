"""Pydantic v2 models for a parsed ``.md5mesh`` scene."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from md5mesh.quaternion import quat_w


class Header(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    md5_version: int
    command_line: str
    num_joints: int
    num_meshes: int


class Joint(BaseModel):
    """A skeleton bone in bind pose (model space)."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    parent_index: int  # -1 for a root joint
    position: tuple[float, float, float]
    orientation: tuple[float, float, float, float]  # (x, y, z, w), w derived

    @classmethod
    def from_components(
        cls,
        name: str,
        parent_index: int,
        position: tuple[float, float, float],
        orientation_xyz: tuple[float, float, float],
    ) -> Joint:
        """Build a joint from the three stored orientation components."""
        x, y, z = orientation_xyz
        return cls(
            name=name,
            parent_index=parent_index,
            position=position,
            orientation=(x, y, z, quat_w(x, y, z)),
        )


class Vert(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    index: int
    uv: tuple[float, float]
    weight_start: int
    weight_count: int


class Tri(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    index: int
    vertex_indices: tuple[int, int, int]


class Weight(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    index: int
    joint_index: int
    bias: float
    position: tuple[float, float, float]  # in the influencing joint's space


class Mesh(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    shader: str
    verts: list[Vert] = []
    tris: list[Tri] = []
    weights: list[Weight] = []


class Scene(BaseModel):
    """Top-level aggregate: header, ordered joints, ordered meshes."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    header: Header
    joints: list[Joint] = []
    meshes: list[Mesh] = []
