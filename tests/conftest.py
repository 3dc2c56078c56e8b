"""Shared fixtures for md5mesh tests."""

import pytest

MINIMAL_MD5MESH = """\
MD5Version 10
commandline ""
numJoints 1
numMeshes 0

joints {
  "origin" -1 ( 0 0 0 ) ( 0 0 0 )
}
"""

TWO_JOINT_MD5MESH = """\
MD5Version 10
commandline "mesh models/test/body.lwo -game base"

numJoints 2
numMeshes 1

joints {
\t"origin"\t-1 ( 0 0 0 ) ( 0 0 0 )\t\t//
\t"arm"\t0 ( 0 0 10 ) ( 0 0 0.7071068 )\t\t// origin
}

mesh {
\t// meshes: body
\tshader "models/test/body"

\tnumverts 4
\tvert 0 ( 0 0 ) 0 1
\tvert 1 ( 1 0 ) 1 1
\tvert 2 ( 1 1 ) 2 2
\tvert 3 ( 0 1 ) 4 1

\tnumtris 2
\ttri 0 0 2 1
\ttri 1 0 3 2

\tnumweights 5
\tweight 0 0 1 ( 0 0 0 )
\tweight 1 0 1 ( 1 0 0 )
\tweight 2 0 0.5 ( 1 1 0 )
\tweight 3 1 0.5 ( 1 0 -10 )
\tweight 4 1 1 ( 1 0 -10 )
}
"""


def make_md5mesh(num_joints: int, num_meshes: int) -> str:
    """Generate a consistent document with a joint chain and identical meshes."""
    lines = [
        "MD5Version 10",
        'commandline "generated"',
        "",
        f"numJoints {num_joints}",
        f"numMeshes {num_meshes}",
        "",
        "joints {",
    ]
    for i in range(num_joints):
        lines.append(f'\t"joint{i}"\t{i - 1} ( 0 0 {i} ) ( 0 0 0 )')
    lines.append("}")
    for m in range(num_meshes):
        lines.extend(
            [
                "",
                "mesh {",
                f'\tshader "shader{m}"',
                "\tnumverts 3",
                "\tvert 0 ( 0 0 ) 0 1",
                "\tvert 1 ( 1 0 ) 1 1",
                "\tvert 2 ( 0 1 ) 2 1",
                "\tnumtris 1",
                "\ttri 0 0 2 1",
                "\tnumweights 3",
                "\tweight 0 0 1 ( 0 0 0 )",
                "\tweight 1 0 1 ( 1 0 0 )",
                "\tweight 2 0 1 ( 0 1 0 )",
                "}",
            ]
        )
    return "\n".join(lines) + "\n"


@pytest.fixture
def minimal_md5mesh():
    return MINIMAL_MD5MESH


@pytest.fixture
def two_joint_md5mesh():
    return TWO_JOINT_MD5MESH


@pytest.fixture
def md5mesh_factory():
    return make_md5mesh
