"""Regression harness: run a batch of prompts and check the anti-regression gate."""

from __future__ import annotations

from pathlib import Path

import click
from pydantic import BaseModel, TypeAdapter, ValidationError
from rich.console import Console
from rich.table import Table

from promptsmith.cli.tools import (
    build_context,
    build_optimizer,
    config_option,
    history_option,
    load_config,
    load_history,
    scenario_option,
    target_option,
)


class HarnessCase(BaseModel):
    id: str
    input: str


_CASES_ADAPTER = TypeAdapter(list[HarnessCase])


def load_cases(path: Path) -> list[HarnessCase]:
    try:
        return _CASES_ADAPTER.validate_json(path.read_bytes())
    except ValidationError as e:
        raise click.ClickException(
            f"Inputs file must be a JSON list of {{id, input}} objects: {path}"
        ) from e


@click.command()
@click.option(
    "--inputs",
    "inputs_path",
    type=click.Path(exists=True, readable=True, path_type=Path),
    required=True,
    help="JSON list of {id, input} records",
)
@history_option
@target_option
@scenario_option
@config_option
def harness(
    inputs_path: Path,
    history_path: Path | None,
    target: str | None,
    scenario: str | None,
    config_path: Path | None,
) -> None:
    """Optimize every input and fail if any result scores below its baseline.

    \b
    Examples:
        promptsmith harness --inputs batch.json
        promptsmith harness --inputs batch.json --history history.json -s cli-assistant
    """
    console = Console()
    cases = load_cases(inputs_path)
    config = load_config(config_path)
    context = build_context(config, target, scenario, load_history(history_path))
    optimizer = build_optimizer(config)

    table = Table(title=f"{len(cases)} cases", show_header=True, header_style="bold")
    table.add_column("ID")
    table.add_column("Selected")
    table.add_column("Score", justify="right")
    table.add_column("Baseline", justify="right")
    table.add_column("Warnings", justify="right")

    regressions: list[str] = []
    for case in cases:
        result = optimizer.optimize(case.input, context)
        baseline = optimizer.baseline_score(case.input, context)
        if result.score < baseline:
            regressions.append(case.id)
        style = "red" if result.score < baseline else ""
        table.add_row(
            case.id,
            result.selected_candidate_title,
            f"[{style}]{result.score}[/]" if style else str(result.score),
            str(baseline),
            str(len(result.warnings)),
        )

    console.print(table)
    click.echo(f"Summary: {len(cases) - len(regressions)} passed, {len(regressions)} failed.")
    if regressions:
        raise click.ClickException(f"Score regressions: {', '.join(regressions)}")
