from __future__ import annotations

import json
import pathlib
from typing import Any

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from boxcsg._config import get_user_config
from boxcsg.io.stl import write_voxels_stl
from boxcsg.logging_config import setup_logging
from boxcsg.mesh import mesh_to_pyvista, voxels_to_mesh
from boxcsg.pipeline import CombineResult, combine_request, result_to_dict
from boxcsg.settings import load_voxel_settings

console = Console()
app = typer.Typer(help="Combine two boxes with a boolean operator and rebuild the result as voxel boxes.")


def _next_available_path(path: pathlib.Path) -> pathlib.Path:
    """Return a non-conflicting path by appending ' (n)' before the suffix."""

    if not path.exists():
        return path

    parent = path.parent
    stem = path.stem
    suffix = path.suffix
    n = 1
    while True:
        candidate = parent / f"{stem} ({n}){suffix}"
        if not candidate.exists():
            return candidate
        n += 1


def _resolve_output(output: pathlib.Path, overwrite: bool) -> pathlib.Path:
    if output.exists() and not overwrite:
        final_output = _next_available_path(output)
        console.print(f"[yellow]Output {output} exists; writing to {final_output} instead.[/yellow]")
        return final_output
    return output


def _load_request(path: pathlib.Path, resolution: float | None) -> dict[str, Any]:
    if not path.exists():
        raise typer.BadParameter(f"Request path {path} does not exist.")
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as exc:
        raise typer.BadParameter(f"Unable to read request {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise typer.BadParameter("Request must be a JSON object with 'a', 'b' and 'operator' keys.")
    if resolution is not None:
        data = {**data, "resolution": resolution}
    return data


def _run(
    request: pathlib.Path,
    resolution: float | None,
    log_level: str | None,
    log_file: pathlib.Path | None,
) -> CombineResult:
    config = get_user_config()
    setup_logging(log_level or config.log_level, str(log_file) if log_file else None)
    data = _load_request(request, resolution)
    settings = load_voxel_settings()
    try:
        return combine_request(data, settings, default_resolution=config.default_resolution)
    except (ValueError, TypeError) as exc:
        raise typer.BadParameter(str(exc)) from exc


def _summary(result: CombineResult) -> Table:
    table = Table(show_header=False, box=None)
    table.add_row("Operator", result.operator)
    table.add_row("Resolution", f"{result.resolution:g}")
    table.add_row("Voxels", str(result.count))
    return table


@app.command()
def combine(
    request: pathlib.Path = typer.Argument(..., help="JSON request with boxes 'a', 'b', an 'operator' and 'resolution'."),
    output: pathlib.Path | None = typer.Option(
        None, "--output", "-o", help="Write the JSON response here instead of printing it."
    ),
    overwrite: bool = typer.Option(False, "--overwrite", help="Allow replacing an existing response file."),
    resolution: float | None = typer.Option(
        None, "--resolution", "-r", help="Voxel step; overrides the value in the request."
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="Override the configured log level."),
    log_file: pathlib.Path | None = typer.Option(None, "--log-file", help="Also write logs to this file."),
) -> None:
    """
    Run a boolean box combination and emit the voxel boxes as JSON.
    """

    result = _run(request, resolution, log_level, log_file)
    payload = result_to_dict(result)

    if output is None:
        console.print_json(data=payload)
        return

    final_output = _resolve_output(output, overwrite)
    final_output.parent.mkdir(parents=True, exist_ok=True)
    final_output.write_text(json.dumps(payload, indent=2) + "\n")
    console.print(
        Panel(
            _summary(result),
            title=f"Wrote [green]{final_output}[/green]",
            border_style="green",
        )
    )


@app.command()
def export(
    request: pathlib.Path = typer.Argument(..., help="JSON request to run."),
    output: pathlib.Path = typer.Option(
        pathlib.Path("voxels.stl"),
        "--output",
        "-o",
        help="Mesh file to produce; .stl is written directly, other formats go through PyVista.",
    ),
    overwrite: bool = typer.Option(False, "--overwrite", help="Allow replacing an existing file."),
    ascii: bool = typer.Option(False, "--ascii", help="Write ASCII instead of binary where supported."),
    resolution: float | None = typer.Option(
        None, "--resolution", "-r", help="Voxel step; overrides the value in the request."
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="Override the configured log level."),
    log_file: pathlib.Path | None = typer.Option(None, "--log-file", help="Also write logs to this file."),
) -> None:
    """
    Run a boolean box combination and save the voxel result as a triangle mesh.
    """

    result = _run(request, resolution, log_level, log_file)

    final_output = _resolve_output(output, overwrite)
    final_output.parent.mkdir(parents=True, exist_ok=True)
    try:
        if final_output.suffix.lower() == ".stl":
            write_voxels_stl(result.voxels, final_output, ascii=ascii)
        else:
            mesh_to_pyvista(voxels_to_mesh(result.voxels)).save(str(final_output), binary=not ascii)
    except Exception as exc:  # pragma: no cover - writer failure
        raise typer.BadParameter(f"Failed to export mesh: {exc}") from exc

    mode = "ASCII" if ascii else "binary"
    console.print(
        Panel(
            _summary(result),
            title=f"Wrote {mode} mesh to [green]{final_output}[/green]",
            border_style="green",
        )
    )
