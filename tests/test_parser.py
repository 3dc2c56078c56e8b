"""Tests for the .md5mesh grammar parser."""

import pytest

from md5mesh.errors import ParseError, ValidationError
from md5mesh.lexer import Scanner
from md5mesh.parser import (
    load_md5mesh,
    parse,
    parse_header,
    parse_joints,
    parse_md5mesh,
    parse_mesh,
)


class TestParseHeader:
    def test_fields(self):
        header = parse_header(
            Scanner('MD5Version 10\ncommandline "a b"\n\nnumJoints 3\nnumMeshes 2\n')
        )
        assert header.md5_version == 10
        assert header.command_line == "a b"
        assert header.num_joints == 3
        assert header.num_meshes == 2

    def test_no_blank_line_after_commandline(self):
        header = parse_header(Scanner('MD5Version 10\ncommandline ""\nnumJoints 0\nnumMeshes 0\n'))
        assert header.num_joints == 0

    def test_only_one_blank_line_after_commandline(self):
        with pytest.raises(ParseError, match="'numJoints'"):
            parse_header(Scanner('MD5Version 10\ncommandline ""\n\n\nnumJoints 0\nnumMeshes 0\n'))

    def test_wrong_label_named(self):
        with pytest.raises(ParseError) as exc_info:
            parse_header(Scanner('MD5Version 10\ncommandline ""\nnumJointz 1\nnumMeshes 0\n'))
        err = exc_info.value
        assert err.expected == "'numJoints'"
        assert (err.line, err.column) == (3, 1)

    def test_fields_out_of_order(self):
        with pytest.raises(ParseError, match="'commandline'"):
            parse_header(Scanner('MD5Version 10\nnumJoints 1\ncommandline ""\nnumMeshes 0\n'))

    def test_version_overflow(self):
        with pytest.raises(ParseError, match="range"):
            parse_header(Scanner('MD5Version 99999999999\ncommandline ""\n'))

    def test_header_comments(self):
        header = parse_header(
            Scanner('MD5Version 10 // v\ncommandline "" // c\n// blank\nnumJoints 1\nnumMeshes 0\n')
        )
        assert header.num_joints == 1


class TestParseJoints:
    def test_empty_block(self):
        assert parse_joints(Scanner("joints {\n}\n")) == []

    def test_joint_fields(self):
        joints = parse_joints(
            Scanner('joints {\n\t"hips" -1 ( 1 2 3 ) ( 0 0 0 )\n\t"spine" 0 ( 0 0 4 ) ( 0.5 0.5 0.5 )\n}\n')
        )
        assert [j.name for j in joints] == ["hips", "spine"]
        assert joints[0].parent_index == -1
        assert joints[0].position == (1.0, 2.0, 3.0)
        assert joints[1].parent_index == 0
        assert joints[1].orientation[:3] == (0.5, 0.5, 0.5)
        assert joints[1].orientation[3] == pytest.approx(-0.5)

    def test_blank_lines_between_joints(self):
        joints = parse_joints(
            Scanner('joints {\n\n"a" -1 ( 0 0 0 ) ( 0 0 0 )\n  // c\n\n"b" 0 ( 0 0 0 ) ( 0 0 0 )\n}\n')
        )
        assert len(joints) == 2

    def test_missing_close_brace(self):
        with pytest.raises(ParseError, match="joint record or '}'"):
            parse_joints(Scanner('joints {\n"a" -1 ( 0 0 0 ) ( 0 0 0 )\nmesh {\n'))

    def test_bad_orientation(self):
        with pytest.raises(ParseError, match="number"):
            parse_joints(Scanner('joints {\n"a" -1 ( 0 0 0 ) ( 0 x 0 )\n}\n'))

    def test_four_component_orientation_rejected(self):
        with pytest.raises(ParseError, match="'\\)'"):
            parse_joints(Scanner('joints {\n"a" -1 ( 0 0 0 ) ( 0 0 0 1 )\n}\n'))


MESH_BLOCK = """\
mesh {
\tshader "skin"
\tnumverts 2
\tvert 0 ( 0.5 0.25 ) 0 1
\tvert 1 ( 1 1 ) 1 1
\tnumtris 1
\ttri 0 0 1 1
\tnumweights 2
\tweight 0 0 1 ( 1 2 3 )
\tweight 1 0 -0.5 ( -1 -2 -3 )
}"""


class TestParseMesh:
    def test_fields(self):
        mesh = parse_mesh(Scanner(MESH_BLOCK))
        assert mesh.shader == "skin"
        assert mesh.verts[0].uv == (0.5, 0.25)
        assert (mesh.verts[1].weight_start, mesh.verts[1].weight_count) == (1, 1)
        assert mesh.tris[0].vertex_indices == (0, 1, 1)
        assert mesh.weights[1].bias == -0.5
        assert mesh.weights[1].position == (-1.0, -2.0, -3.0)

    def test_overflowing_bias_rejected(self):
        text = MESH_BLOCK.replace("weight 1 0 -0.5", "weight 1 0 1e999")
        with pytest.raises(ParseError, match="finite number"):
            parse_mesh(Scanner(text))

    def test_empty_sub_blocks(self):
        mesh = parse_mesh(
            Scanner('mesh {\nshader ""\nnumverts 0\nnumtris 0\nnumweights 0\n}')
        )
        assert mesh.verts == [] and mesh.tris == [] and mesh.weights == []

    def test_fewer_records_than_declared(self):
        text = MESH_BLOCK.replace("numverts 2", "numverts 3")
        with pytest.raises(ParseError, match="'vert' record 3 of 3") as exc_info:
            parse_mesh(Scanner(text))
        assert "numtris" in str(exc_info.value)

    def test_more_records_than_declared(self):
        text = MESH_BLOCK.replace("numtris 1", "numtris 0")
        with pytest.raises(ParseError, match="'numweights'"):
            parse_mesh(Scanner(text))

    def test_declared_index_kept_not_reordered(self):
        text = MESH_BLOCK.replace("vert 0 (", "vert 1 (", 1).replace("vert 1 ( 1 1", "vert 0 ( 1 1")
        mesh = parse_mesh(Scanner(text))
        assert [v.index for v in mesh.verts] == [1, 0]
        assert mesh.verts[0].uv == (0.5, 0.25)

    def test_weight_index_overflow(self):
        text = MESH_BLOCK.replace("weight 0 0 1", "weight 0 4294967296 1")
        with pytest.raises(ParseError, match="range"):
            parse_mesh(Scanner(text))

    def test_missing_shader(self):
        with pytest.raises(ParseError, match="'shader'"):
            parse_mesh(Scanner("mesh {\nnumverts 0\n"))


class TestParseScene:
    def test_minimal_scenario(self, minimal_md5mesh):
        scene = parse(minimal_md5mesh)
        assert len(scene.joints) == 1
        joint = scene.joints[0]
        assert joint.name == "origin"
        assert joint.parent_index == -1
        assert joint.position == (0.0, 0.0, 0.0)
        assert joint.orientation == (0.0, 0.0, 0.0, -1.0)
        assert scene.meshes == []

    def test_minimal_count_mismatch_is_validation_error(self, minimal_md5mesh):
        text = minimal_md5mesh.replace("numJoints 1", "numJoints 2")
        scene = parse_md5mesh(text)  # syntax alone is fine
        assert len(scene.joints) == 1
        with pytest.raises(ValidationError, match="numJoints 2"):
            parse(text)

    def test_two_joint_document(self, two_joint_md5mesh):
        scene = parse(two_joint_md5mesh)
        assert scene.header.command_line == "mesh models/test/body.lwo -game base"
        assert len(scene.meshes) == 1
        mesh = scene.meshes[0]
        assert mesh.shader == "models/test/body"
        assert (len(mesh.verts), len(mesh.tris), len(mesh.weights)) == (4, 2, 5)

    def test_deterministic(self, two_joint_md5mesh):
        assert parse(two_joint_md5mesh) == parse(two_joint_md5mesh)

    @pytest.mark.parametrize("num_joints,num_meshes", [(1, 0), (1, 1), (5, 3), (12, 7)])
    def test_generated_counts(self, md5mesh_factory, num_joints, num_meshes):
        scene = parse(md5mesh_factory(num_joints, num_meshes))
        assert len(scene.joints) == num_joints
        assert len(scene.meshes) == num_meshes

    def test_comment_after_every_record(self, two_joint_md5mesh):
        commented = "\n".join(
            line + " // arbitrary text" if line.strip() else line
            for line in two_joint_md5mesh.split("\n")
        )
        assert parse(commented) == parse(two_joint_md5mesh)

    @pytest.mark.parametrize("newline", ["\r\n", "\r"])
    def test_line_terminators(self, two_joint_md5mesh, newline):
        assert parse(two_joint_md5mesh.replace("\n", newline)) == parse(two_joint_md5mesh)

    def test_no_trailing_newline(self, two_joint_md5mesh):
        assert parse(two_joint_md5mesh.rstrip("\n")) == parse(two_joint_md5mesh)

    def test_trailing_garbage(self, minimal_md5mesh):
        with pytest.raises(ParseError, match="'mesh \\{' or end of input"):
            parse(minimal_md5mesh + "\nanim {\n")

    def test_text_after_mesh_close_brace(self, two_joint_md5mesh):
        with pytest.raises(ParseError, match="end of line"):
            parse(two_joint_md5mesh.rstrip("\n") + " extra\n")

    def test_empty_input(self):
        with pytest.raises(ParseError, match="'MD5Version'") as exc_info:
            parse("")
        assert exc_info.value.line == 1

    def test_error_reports_line(self, two_joint_md5mesh):
        text = two_joint_md5mesh.replace("\ttri 1 0 3 2", "\ttri 1 0 3")
        with pytest.raises(ParseError) as exc_info:
            parse(text)
        assert exc_info.value.line == 24
        assert exc_info.value.expected == "whitespace"


class TestLoadMd5mesh:
    def test_load_from_file(self, two_joint_md5mesh, tmp_path):
        path = tmp_path / "body.md5mesh"
        path.write_text(two_joint_md5mesh, encoding="utf-8")
        scene = load_md5mesh(path)
        assert len(scene.joints) == 2

    def test_byte_order_mark_stripped(self, minimal_md5mesh, tmp_path):
        path = tmp_path / "bom.md5mesh"
        path.write_bytes(b"\xef\xbb\xbf" + minimal_md5mesh.encode("utf-8"))
        assert load_md5mesh(path).joints[0].name == "origin"

    def test_file_not_found(self, tmp_path):
        with pytest.raises(ParseError, match="Cannot read"):
            load_md5mesh(tmp_path / "missing.md5mesh")
