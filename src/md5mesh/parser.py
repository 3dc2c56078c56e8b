"""Grammar-driven parser for ``.md5mesh`` text.

The document is consumed strictly top to bottom: header, ``joints { }`` block,
then zero or more ``mesh { }`` blocks until the input is exhausted. The first
mismatch raises :class:`~md5mesh.errors.ParseError`; nothing is backtracked.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, TypeVar

from md5mesh.errors import ParseError
from md5mesh.lexer import Scanner
from md5mesh.models import Header, Joint, Mesh, Scene, Tri, Vert, Weight
from md5mesh.validation import validate
from md5mesh.warning_policy import WarningPolicy

T = TypeVar("T")


def _labeled(scanner: Scanner, label: str, value: Callable[[], T]) -> T:
    """Parse a ``<label> <value>`` record through its line terminator."""
    scanner.tag(label)
    scanner.space()
    result = value()
    scanner.end_of_line()
    return result


# ---------------------------------------------------------------------------
# Header
# ---------------------------------------------------------------------------


def parse_header(scanner: Scanner) -> Header:
    md5_version = _labeled(scanner, "MD5Version", scanner.unsigned_integer)
    command_line = _labeled(scanner, "commandline", scanner.quoted_string)
    # a single blank line after the command line is part of the usual layout
    scanner.blank_line()
    num_joints = _labeled(scanner, "numJoints", scanner.unsigned_integer)
    num_meshes = _labeled(scanner, "numMeshes", scanner.unsigned_integer)
    return Header(
        md5_version=md5_version,
        command_line=command_line,
        num_joints=num_joints,
        num_meshes=num_meshes,
    )


# ---------------------------------------------------------------------------
# Joints
# ---------------------------------------------------------------------------


def _parse_joint(scanner: Scanner) -> Joint:
    name = scanner.quoted_string()
    scanner.space()
    parent_index = scanner.signed_integer()
    scanner.space()
    position = scanner.vector3()
    scanner.space()
    orientation = scanner.vector3()
    scanner.end_of_line()
    return Joint.from_components(name, parent_index, position, orientation)


def parse_joints(scanner: Scanner) -> list[Joint]:
    """Parse the ``joints { ... }`` block."""
    scanner.tag("joints {")
    scanner.end_of_line()
    scanner.skip_blank_lines()

    joints: list[Joint] = []
    while True:
        scanner.skip_space()
        if not scanner.peek('"'):
            break
        joints.append(_parse_joint(scanner))
        scanner.skip_blank_lines()

    if not scanner.peek("}"):
        raise scanner.error("joint record or '}'")
    scanner.tag("}")
    scanner.end_of_line()
    return joints


# ---------------------------------------------------------------------------
# Meshes
# ---------------------------------------------------------------------------


def _vert_fields(scanner: Scanner, index: int) -> Vert:
    uv = scanner.vector2()
    scanner.space()
    weight_start = scanner.unsigned_integer()
    scanner.space()
    weight_count = scanner.unsigned_integer()
    return Vert(index=index, uv=uv, weight_start=weight_start, weight_count=weight_count)


def _tri_fields(scanner: Scanner, index: int) -> Tri:
    v1 = scanner.unsigned_integer()
    scanner.space()
    v2 = scanner.unsigned_integer()
    scanner.space()
    v3 = scanner.unsigned_integer()
    return Tri(index=index, vertex_indices=(v1, v2, v3))


def _weight_fields(scanner: Scanner, index: int) -> Weight:
    joint_index = scanner.unsigned_integer()
    scanner.space()
    bias = scanner.signed_float()
    scanner.space()
    position = scanner.vector3()
    return Weight(index=index, joint_index=joint_index, bias=bias, position=position)


def _parse_counted_records(
    scanner: Scanner,
    count_label: str,
    keyword: str,
    fields: Callable[[Scanner, int], T],
) -> list[T]:
    """Parse ``<count_label> N`` followed by exactly N ``<keyword> <idx> ...`` records.

    Records are stored in file order; the declared index is kept as data.
    """
    scanner.skip_space()
    count = _labeled(scanner, count_label, scanner.unsigned_integer)
    scanner.skip_blank_lines()

    records: list[T] = []
    for ordinal in range(count):
        scanner.skip_space()
        if not scanner.peek(keyword):
            raise scanner.error(f"{keyword!r} record {ordinal + 1} of {count}")
        scanner.tag(keyword)
        scanner.space()
        index = scanner.unsigned_integer()
        scanner.space()
        records.append(fields(scanner, index))
        scanner.end_of_line()
        scanner.skip_blank_lines()
    return records


def parse_mesh(scanner: Scanner) -> Mesh:
    """Parse one ``mesh { ... }`` block, up to and including its ``}``."""
    scanner.tag("mesh {")
    scanner.end_of_line()
    scanner.skip_blank_lines()

    scanner.skip_space()
    shader = _labeled(scanner, "shader", scanner.quoted_string)
    scanner.skip_blank_lines()

    verts = _parse_counted_records(scanner, "numverts", "vert", _vert_fields)
    scanner.skip_blank_lines()
    tris = _parse_counted_records(scanner, "numtris", "tri", _tri_fields)
    scanner.skip_blank_lines()
    weights = _parse_counted_records(scanner, "numweights", "weight", _weight_fields)
    scanner.skip_blank_lines()

    scanner.skip_space()
    scanner.tag("}")
    return Mesh(shader=shader, verts=verts, tris=tris, weights=weights)


# ---------------------------------------------------------------------------
# Scene
# ---------------------------------------------------------------------------


def parse_md5mesh(text: str) -> Scene:
    """Parse ``.md5mesh`` text into a Scene without cross-reference validation.

    Raises:
        ParseError: On the first token that does not match the grammar.
    """
    scanner = Scanner(text)
    header = parse_header(scanner)
    scanner.skip_blank_lines()
    joints = parse_joints(scanner)

    meshes: list[Mesh] = []
    scanner.skip_trailing_space()
    while not scanner.at_end():
        if not scanner.peek("mesh {"):
            raise scanner.error("'mesh {' or end of input")
        meshes.append(parse_mesh(scanner))
        scanner.end_of_line()
        scanner.skip_trailing_space()

    return Scene(header=header, joints=joints, meshes=meshes)


def parse(text: str, *, warning_policy: WarningPolicy | None = None) -> Scene:
    """Parse and validate ``.md5mesh`` text.

    Args:
        text: Full content of one ``.md5mesh`` file.
        warning_policy: Controls suppression/escalation of coded warnings.

    Returns:
        The validated Scene.

    Raises:
        ParseError: On grammar mismatches or numeric overflow.
        ValidationError: On count mismatches and out-of-range references.
    """
    scene = parse_md5mesh(text)
    validate(scene, warning_policy=warning_policy)
    return scene


def _read_source_text(source: Path) -> str:
    try:
        return source.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise ParseError(f"Cannot read file: {e}") from e


def load_md5mesh(source: str | Path, *, warning_policy: WarningPolicy | None = None) -> Scene:
    """Read a ``.md5mesh`` file from disk, then parse and validate it."""
    return parse(_read_source_text(Path(source)), warning_policy=warning_policy)
