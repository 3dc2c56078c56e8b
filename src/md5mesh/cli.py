"""Click CLI entry point for the md5mesh toolkit."""

from __future__ import annotations

import json
from pathlib import Path

import click

from md5mesh import __version__
from md5mesh.errors import Md5MeshError
from md5mesh.exporter import export_gltf
from md5mesh.inspection import inspect_scene, render_text, render_yaml
from md5mesh.parser import load_md5mesh
from md5mesh.warning_policy import WarningPolicy, parse_code_list


def _build_warning_policy(
    warn_as_error: str | None, suppress_warning: str | None
) -> WarningPolicy | None:
    """Parse CLI warning options into a WarningPolicy, or None if unset."""
    if warn_as_error is None and suppress_warning is None:
        return None
    try:
        wae = parse_code_list(warn_as_error) if warn_as_error else frozenset()
        sup = parse_code_list(suppress_warning) if suppress_warning else frozenset()
    except ValueError as e:
        raise click.ClickException(str(e)) from e
    return WarningPolicy(warn_as_error=wae, suppress=sup)


def warning_options(func):
    func = click.option(
        "--suppress-warning",
        "suppress_warning",
        type=str,
        default=None,
        help="Comma-separated W-codes to suppress (e.g. W03).",
    )(func)
    func = click.option(
        "--warn-as-error",
        "warn_as_error",
        type=str,
        default=None,
        help="Comma-separated W-codes to treat as errors (e.g. W01,W02).",
    )(func)
    return func


@click.group()
@click.version_option(version=__version__, prog_name="md5mesh")
def main() -> None:
    """md5mesh: parse, inspect and convert id Tech 4 skeletal meshes."""


@main.command()
@click.argument("input_file", type=click.Path(exists=True, path_type=Path))
@warning_options
def check(
    input_file: Path,
    warn_as_error: str | None = None,
    suppress_warning: str | None = None,
) -> None:
    """Parse and validate a .md5mesh file."""
    warning_policy = _build_warning_policy(warn_as_error, suppress_warning)
    try:
        scene = load_md5mesh(input_file, warning_policy=warning_policy)
    except Md5MeshError as e:
        raise click.ClickException(f"{input_file}: {e}")
    click.echo(f"OK: {input_file} ({len(scene.joints)} joints, {len(scene.meshes)} meshes)")


@main.command()
@click.argument("input_file", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json", "yaml"]),
    default="text",
    show_default=True,
    help="Inspection output format.",
)
@warning_options
def inspect(
    input_file: Path,
    output_format: str = "text",
    warn_as_error: str | None = None,
    suppress_warning: str | None = None,
) -> None:
    """Print skeleton and mesh diagnostics without exporting."""
    warning_policy = _build_warning_policy(warn_as_error, suppress_warning)
    try:
        scene = load_md5mesh(input_file, warning_policy=warning_policy)
    except Md5MeshError as e:
        raise click.ClickException(f"{input_file}: {e}")

    payload = inspect_scene(scene)
    if output_format == "json":
        click.echo(json.dumps(payload, indent=2))
    elif output_format == "yaml":
        click.echo(render_yaml(payload), nl=False)
    else:
        click.echo(render_text(payload), nl=False)


@main.command()
@click.argument("input_file", type=click.Path(exists=True, path_type=Path))
@click.option(
    "-o",
    "--output",
    type=click.Path(path_type=Path),
    default=None,
    help="Output GLB file path. Defaults to input name with .glb extension.",
)
@click.option(
    "--keep-z-up",
    is_flag=True,
    default=False,
    help="Do not rotate the id Tech Z-up frame to glTF Y-up.",
)
@warning_options
def export(
    input_file: Path,
    output: Path | None = None,
    keep_z_up: bool = False,
    warn_as_error: str | None = None,
    suppress_warning: str | None = None,
) -> None:
    """Convert a .md5mesh file to a skinned GLB."""
    warning_policy = _build_warning_policy(warn_as_error, suppress_warning)
    if output is None:
        output = input_file.with_suffix(".glb")

    try:
        scene = load_md5mesh(input_file, warning_policy=warning_policy)
        export_gltf(scene, output, y_up=not keep_z_up, warning_policy=warning_policy)
    except Md5MeshError as e:
        raise click.ClickException(f"{input_file}: {e}")
    click.echo(f"Exported: {output}")
