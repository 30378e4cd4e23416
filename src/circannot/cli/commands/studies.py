"""circBase study listing command."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import click

from circannot.cli.common_options import config_option
from circannot.cli.exit_codes import EXIT_ERROR
from circannot.exceptions import CircAnnotError
from circannot.utils.logging import get_logger


@click.command(name="studies")
@config_option
@click.option("--organism", default=None, help="Organism code (hsa, mmu, ...)")
@click.option("--assembly", default=None, help="Genome assembly (hg19, mm10, ...)")
@click.option("--study", default=None, help="circBase study id")
@click.option("--sample", default=None, help="Sample name")
def studies(
    config: Optional[Path],
    organism: Optional[str],
    assembly: Optional[str],
    study: Optional[str],
    sample: Optional[str],
) -> None:
    """List studies and samples available in circBase."""
    from circannot.config import Config, load_config
    from circannot.modules.circbase import create_circbase_engine, get_studies_list

    logger = get_logger("cli")
    try:
        cfg = load_config(config) if config else Config()
        engine = create_circbase_engine(cfg.circbase)
        table = get_studies_list(
            engine, organism=organism, assembly=assembly, study=study, sample=sample
        )
    except CircAnnotError as exc:
        logger.error(f"circBase lookup failed: {exc}")
        click.echo(f"Error: {exc}", err=True)
        sys.exit(EXIT_ERROR)
    click.echo(table.to_string(index=False))
