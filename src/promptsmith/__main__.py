"""CLI entry point for promptsmith."""

from __future__ import annotations

import click

from promptsmith import __version__
from promptsmith.cli.harness import harness
from promptsmith.cli.tools import analyze, learn, optimize


@click.group(invoke_without_command=True)
@click.option("--version", is_flag=True, help="Show version and exit")
@click.pass_context
def cli(ctx: click.Context, version: bool) -> None:
    """Turn rough task descriptions into structured LLM prompts."""
    if version:
        click.echo(f"promptsmith {__version__}")
        ctx.exit(0)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


cli.add_command(optimize)
cli.add_command(analyze)
cli.add_command(learn)
cli.add_command(harness)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
