"""``init-config``: write the YAML template for ``circannot annotate -c``."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

ASSEMBLY_LINE = "assembly: ~"


def render_template(assembly: Optional[str] = None) -> str:
    """Default configuration text, with ``assembly`` filled in when given."""
    from circannot.config import Config
    from circannot.exceptions import ConfigurationError
    from circannot.resources import get_default_config

    text = get_default_config()
    if assembly is None:
        return text
    try:
        Config(assembly=assembly).organism
    except ConfigurationError as exc:
        raise click.BadParameter(str(exc), param_hint="--assembly") from exc
    return text.replace(ASSEMBLY_LINE, f"assembly: {assembly}", 1)


@click.command(name="init-config")
@click.option(
    "-o",
    "--output-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=Path("circannot.yaml"),
    show_default=True,
    help="Where to write the template",
)
@click.option("-a", "--assembly", default=None, help="Pre-fill the genome assembly")
@click.option("--stdout", is_flag=True, help="Print the template instead of writing it")
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def init_config(output_file: Path, assembly: Optional[str], stdout: bool, force: bool) -> None:
    """Generate a template configuration file."""
    text = render_template(assembly)
    if stdout:
        click.echo(text)
        return
    if output_file.exists() and not force:
        raise click.ClickException(f"{output_file} exists; use --force to overwrite it")
    output_file.write_text(text, encoding="utf-8")
    click.echo(f"Wrote configuration template to {output_file}")
