"""Plotting CLI command."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import click

from circannot.cli.exit_codes import EXIT_ERROR
from circannot.exceptions import CircAnnotError, FileFormatError
from circannot.utils.column_standards import ColumnStandard as C
from circannot.utils.logging import get_logger


@click.command(name="plot")
@click.option(
    "-i",
    "--input",
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="Annotated candidate table (output of 'annotate')",
)
@click.option(
    "--kind",
    type=click.Choice(["hist", "pie"]),
    default="hist",
    show_default=True,
    help="Read-count histogram or gene-feature pie chart",
)
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    required=True,
    help="Figure file (format from extension: png, pdf, svg)",
)
@click.option("--binwidth", type=float, default=0.7, show_default=True, help="Histogram bin width (sqrt scale)")
@click.option(
    "--other-threshold",
    type=float,
    default=None,
    help="Collapse features seen fewer times into 'other' (< 1: fraction of candidates)",
)
def plot(
    input_file: Path, kind: str, output: Path, binwidth: float, other_threshold: Optional[float]
) -> None:
    """Plot read counts or gene features of annotated candidates."""
    from circannot.modules.circ_loader import read_circs
    from circannot.modules.visualize import annot_pie, circ_hist, save_figure

    logger = get_logger("cli")
    try:
        circs = read_circs(input_file)
        if kind == "hist":
            fig = circ_hist(circs, binwidth=binwidth)
        else:
            if C.FEATURE not in circs.columns:
                raise FileFormatError(f"{input_file} has no '{C.FEATURE}' column; run 'annotate' first")
            fig = annot_pie(circs, other_threshold=other_threshold)
        output.parent.mkdir(parents=True, exist_ok=True)
        save_figure(fig, output)
    except CircAnnotError as exc:
        logger.error(f"Plot failed: {exc}")
        click.echo(f"Error: {exc}", err=True)
        sys.exit(EXIT_ERROR)
    click.echo(f"Figure saved to: {output}")
