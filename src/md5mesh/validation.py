"""Cross-reference validation for parsed scenes."""

from __future__ import annotations

from md5mesh.errors import ValidationError
from md5mesh.models import Scene
from md5mesh.warning_policy import WarningPolicy, emit_warning

SUPPORTED_MD5_VERSION = 10


def validate(scene: Scene, *, warning_policy: WarningPolicy | None = None) -> None:
    """Run all consistency checks on a parsed scene.

    Raises:
        ValidationError: On any count mismatch or out-of-range reference.
    """
    _check_declared_counts(scene)
    _check_joint_parents(scene)
    _check_tri_vertex_refs(scene)
    _check_vert_weight_ranges(scene)
    _check_weight_joint_refs(scene)
    _warn_md5_version(scene, warning_policy=warning_policy)
    _warn_duplicate_joint_names(scene, warning_policy=warning_policy)
    _warn_declared_indices(scene, warning_policy=warning_policy)


def _check_declared_counts(scene: Scene) -> None:
    header = scene.header
    if header.num_joints != len(scene.joints):
        raise ValidationError(
            f"Header declares numJoints {header.num_joints}, "
            f"but {len(scene.joints)} joint(s) were parsed",
            entity="header",
            invariant="num_joints",
        )
    if header.num_meshes != len(scene.meshes):
        raise ValidationError(
            f"Header declares numMeshes {header.num_meshes}, "
            f"but {len(scene.meshes)} mesh(es) were parsed",
            entity="header",
            invariant="num_meshes",
        )


def _check_joint_parents(scene: Scene) -> None:
    for i, joint in enumerate(scene.joints):
        parent = joint.parent_index
        if parent == -1:
            continue
        if parent < 0 or parent >= len(scene.joints):
            raise ValidationError(
                f"Joint {i} ({joint.name!r}): parent index {parent} out of range "
                f"(skeleton has {len(scene.joints)} joints)",
                entity="joint",
                index=i,
                invariant="parent_index",
            )
        if parent >= i:
            raise ValidationError(
                f"Joint {i} ({joint.name!r}): parent index {parent} must refer to "
                f"an earlier joint",
                entity="joint",
                index=i,
                invariant="parent_order",
            )


def _check_tri_vertex_refs(scene: Scene) -> None:
    for m, mesh in enumerate(scene.meshes):
        num_verts = len(mesh.verts)
        for t, tri in enumerate(mesh.tris):
            for v in tri.vertex_indices:
                if v >= num_verts:
                    raise ValidationError(
                        f"Mesh {m} tri {t}: vertex index {v} out of range "
                        f"(mesh has {num_verts} verts)",
                        entity="tri",
                        index=t,
                        invariant="vert_index",
                        mesh_index=m,
                    )


def _check_vert_weight_ranges(scene: Scene) -> None:
    for m, mesh in enumerate(scene.meshes):
        num_weights = len(mesh.weights)
        for v, vert in enumerate(mesh.verts):
            end = vert.weight_start + vert.weight_count
            if end > num_weights:
                raise ValidationError(
                    f"Mesh {m} vert {v}: weight range [{vert.weight_start}, {end}) "
                    f"exceeds {num_weights} weights",
                    entity="vert",
                    index=v,
                    invariant="weight_range",
                    mesh_index=m,
                )


def _check_weight_joint_refs(scene: Scene) -> None:
    num_joints = len(scene.joints)
    for m, mesh in enumerate(scene.meshes):
        for w, weight in enumerate(mesh.weights):
            if weight.joint_index >= num_joints:
                raise ValidationError(
                    f"Mesh {m} weight {w}: joint index {weight.joint_index} out of range "
                    f"(skeleton has {num_joints} joints)",
                    entity="weight",
                    index=w,
                    invariant="joint_index",
                    mesh_index=m,
                )


def _warn_md5_version(scene: Scene, *, warning_policy: WarningPolicy | None = None) -> None:
    version = scene.header.md5_version
    if version != SUPPORTED_MD5_VERSION:
        emit_warning(
            "W02",
            f"MD5Version {version} (expected {SUPPORTED_MD5_VERSION})",
            policy=warning_policy,
            entity="header",
        )


def _warn_duplicate_joint_names(
    scene: Scene, *, warning_policy: WarningPolicy | None = None
) -> None:
    seen: set[str] = set()
    for i, joint in enumerate(scene.joints):
        if joint.name in seen:
            emit_warning(
                "W03",
                f"Joint {i}: duplicate joint name {joint.name!r}",
                policy=warning_policy,
                entity="joint",
                index=i,
            )
        seen.add(joint.name)


def _warn_declared_indices(scene: Scene, *, warning_policy: WarningPolicy | None = None) -> None:
    """Warn once per element list whose declared indices drift from file order."""
    for m, mesh in enumerate(scene.meshes):
        for entity, records in (("vert", mesh.verts), ("tri", mesh.tris), ("weight", mesh.weights)):
            for ordinal, record in enumerate(records):
                if record.index != ordinal:
                    emit_warning(
                        "W01",
                        f"Mesh {m} {entity} {ordinal}: declared index {record.index} "
                        f"does not match its position",
                        policy=warning_policy,
                        entity=entity,
                        index=ordinal,
                        mesh_index=m,
                    )
                    break
