"""Click application entrypoint for circannot."""

from __future__ import annotations

import logging
import signal
import sys
from pathlib import Path
from types import FrameType
from typing import Optional

import click

from circannot import __version__
from circannot.cli.exit_codes import EXIT_ERROR, EXIT_SIGINT, EXIT_SUCCESS
from circannot.exceptions import CircAnnotError
from circannot.utils.logging import get_logger, setup_logging

from .commands.config import init_config
from .commands.plot import plot
from .commands.studies import studies
from .common_options import config_option, input_option, log_file_option, verbose_option


def _handle_signal(signum: int, frame: Optional[FrameType]) -> None:
    """Turn SIGTERM into a KeyboardInterrupt so the run stops cleanly."""
    click.echo("\nInterrupt received, stopping...", err=True)
    raise KeyboardInterrupt(signal.Signals(signum).name)


def _print_version(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
    if value and not ctx.resilient_parsing:
        click.echo(f"circannot {__version__}")
        ctx.exit()


def _log_level(verbose: int, configured: str) -> int:
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    return configured


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
# Version option (use -V to avoid conflict with -v/--verbose)
@click.option(
    "-V",
    "--version",
    is_flag=True,
    is_eager=True,
    expose_value=False,
    callback=_print_version,
    help="Show the version and exit.",
)
def cli() -> None:
    """circannot: genomic annotation of circRNA splice junctions."""


@cli.command(name="annotate")
@input_option
@click.option(
    "-g",
    "--gtf",
    "annotation_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Gene annotation (GTF, optionally gzipped)",
)
@click.option("-a", "--assembly", default=None, help="Genome assembly (hg19, hg38, mm10, rn5, dm6)")
@click.option(
    "-o",
    "--output",
    "output_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Annotated output table",
)
@config_option
@click.option("--min-reads", type=int, default=None, help="Drop candidates with fewer junction reads")
@click.option("--no-symbols", is_flag=True, help="Skip gene-symbol lookup")
@verbose_option
@log_file_option
def annotate(
    input_file: Optional[Path],
    annotation_file: Optional[Path],
    assembly: Optional[str],
    output_file: Optional[Path],
    config: Optional[Path],
    min_reads: Optional[int],
    no_symbols: bool,
    verbose: int,
    log_file: Optional[Path],
) -> None:
    """Annotate find_circ candidates with host gene, feature and known junctions."""
    from circannot.config import Config, load_config

    logger = get_logger("cli")
    try:
        cfg = load_config(config) if config else Config()
        setup_logging(
            level=_log_level(verbose, cfg.runtime.log_level),
            log_file=log_file or cfg.runtime.log_file,
        )

        if input_file:
            cfg.input_file = input_file
        if annotation_file:
            cfg.annotation_file = annotation_file
        if assembly:
            cfg.assembly = assembly
        if output_file:
            cfg.output_file = output_file
        if min_reads is not None:
            cfg.annotation.min_reads = min_reads
        if no_symbols:
            cfg.lookup.resolve_symbols = False
        if not cfg.output_file:
            raise click.UsageError("Output file is required (-o/--output)")
        cfg.validate()

        _run_annotation(cfg, logger)

    except KeyboardInterrupt:
        logger.info("Annotation interrupted by user")
        sys.exit(EXIT_SIGINT)
    except CircAnnotError as exc:
        stage = f" [{exc.stage}]" if exc.stage else ""
        logger.error(f"Annotation error{stage}: {exc}")
        click.echo(f"Error: {exc}", err=True)
        sys.exit(EXIT_ERROR)
    except OSError as exc:
        logger.error(f"I/O error: {exc}")
        click.echo(f"Error: {exc}", err=True)
        sys.exit(EXIT_ERROR)


def _run_annotation(cfg, logger: logging.Logger) -> None:
    from circannot.core.pipeline import AnnotationPipeline
    from circannot.modules.annotation_db import load_annotation
    from circannot.modules.circ_loader import write_circs

    logger.info(f"Loading annotation from {cfg.annotation_file}")
    annotation = load_annotation(cfg.annotation_file, feature_order=cfg.annotation.feature_order)
    annotated = AnnotationPipeline(cfg, annotation).run(cfg.input_file)
    write_circs(annotated, cfg.output_file, one_based=True)
    click.echo(f"Annotated {len(annotated):,} candidates -> {cfg.output_file}")


cli.add_command(plot)
cli.add_command(studies)
cli.add_command(init_config)


def main(argv: list[str] | None = None) -> int:
    """Main entry point with signal handling."""
    signal.signal(signal.SIGTERM, _handle_signal)

    try:
        cli(argv)
        return EXIT_SUCCESS
    except KeyboardInterrupt:
        return EXIT_SIGINT
    except SystemExit as exc:
        # Preserve explicit exit codes from cli()
        return exc.code if isinstance(exc.code, int) else EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
