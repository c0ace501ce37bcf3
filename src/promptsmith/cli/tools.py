"""One-shot CLI commands: optimize, analyze and learn."""

from __future__ import annotations

import asyncio
import dataclasses
from pathlib import Path
from typing import TYPE_CHECKING

import click
from pydantic import TypeAdapter, ValidationError
from rich.console import Console
from rich.table import Table

from promptsmith.config import PromptsmithConfig
from promptsmith.core.intent import infer_intent
from promptsmith.core.models.entities import OptimizationContext
from promptsmith.core.models.enums import PromptTarget, ScenarioProfile
from promptsmith.core.optimizer import PromptOptimizer
from promptsmith.core.variables import parse_assignments, resolve
from promptsmith.debug_log import export_logs_to_file, log, setup_debug_logging
from promptsmith.paths import get_config_path, get_debug_log_path

if TYPE_CHECKING:
    from collections.abc import Mapping

TARGET_CHOICES = tuple(target.short_name for target in PromptTarget)
SCENARIO_CHOICES = tuple(scenario.short_name for scenario in ScenarioProfile)

_HISTORY_ADAPTER = TypeAdapter(list[str])


def read_prompt(prompt: str | None, file_path: Path | None) -> str:
    if file_path is not None:
        return file_path.read_text(encoding="utf-8").strip()
    if prompt is None:
        raise click.UsageError("Either provide a PROMPT argument or use --file option")
    return prompt


def load_history(path: Path | None) -> tuple[str, ...]:
    """Read a JSON list of prompt strings, newest first."""
    if path is None:
        return ()
    try:
        return tuple(_HISTORY_ADAPTER.validate_json(path.read_bytes()))
    except ValidationError as e:
        raise click.ClickException(f"History file must be a JSON list of strings: {path}") from e


def load_config(config_path: Path | None) -> PromptsmithConfig:
    try:
        return PromptsmithConfig.load(config_path)
    except ValidationError as e:
        raise click.ClickException(f"Invalid config: {e}") from e
    except ValueError as e:
        # tomllib.TOMLDecodeError subclasses ValueError
        raise click.ClickException(f"Invalid config TOML: {e}") from e


def build_context(
    config: PromptsmithConfig,
    target: str | None,
    scenario: str | None,
    history: tuple[str, ...] = (),
) -> OptimizationContext:
    return OptimizationContext(
        target=PromptTarget.from_name(target) if target else config.general.target,
        scenario=ScenarioProfile.from_name(scenario) if scenario else config.general.scenario,
        history_prompts=history,
        local_weights=config.weights,
    )


def build_optimizer(config: PromptsmithConfig) -> PromptOptimizer:
    return PromptOptimizer(
        cache_capacity=config.optimizer.cache_capacity,
        thresholds=config.optimizer.thresholds(),
    )


def _print_breakdown(console: Console, breakdown: Mapping[str, int]) -> None:
    table = Table(title="Score breakdown", show_header=True, header_style="bold")
    table.add_column("Factor")
    table.add_column("Points", justify="right")
    for factor, value in sorted(breakdown.items(), key=lambda item: -abs(item[1])):
        style = "green" if value > 0 else "red"
        table.add_row(factor, f"[{style}]{value:+d}[/]")
    console.print(table)


def _report_save(console: Console, path: Path, changed: bool) -> None:
    if changed:
        console.print(f"[green]Saved weights to {path}[/]", highlight=False)
    else:
        console.print(f"[dim]Weights already up to date in {path}[/]", highlight=False)


target_option = click.option(
    "-t",
    "--target",
    type=click.Choice(TARGET_CHOICES, case_sensitive=False),
    default=None,
    help="Model family the prompt is written for (config default if omitted)",
)
scenario_option = click.option(
    "-s",
    "--scenario",
    type=click.Choice(SCENARIO_CHOICES, case_sensitive=False),
    default=None,
    help="Usage scenario (config default if omitted)",
)
file_option = click.option(
    "-f",
    "--file",
    "file_path",
    type=click.Path(exists=True, readable=True, path_type=Path),
    default=None,
    help="Read prompt from a file (supports multiline content)",
)
history_option = click.option(
    "--history",
    "history_path",
    type=click.Path(exists=True, readable=True, path_type=Path),
    default=None,
    help="JSON list of previous prompts used to learn weights",
)
config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (defaults to the platform config directory)",
)


@click.command()
@click.argument("prompt", required=False, default=None)
@file_option
@target_option
@scenario_option
@history_option
@click.option("--var", "variables", multiple=True, help="Placeholder value as NAME=VALUE")
@click.option("--save-weights", is_flag=True, help="Persist tuned weights to the config file")
@click.option("--explain", is_flag=True, help="Show candidate, score breakdown and warnings")
@click.option("--debug-log", is_flag=True, help="Export the debug log to the data directory")
@click.option(
    "--debug-log-file",
    "debug_log_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Export the debug log to this file instead (implies --debug-log)",
)
@config_option
def optimize(
    prompt: str | None,
    file_path: Path | None,
    target: str | None,
    scenario: str | None,
    history_path: Path | None,
    variables: tuple[str, ...],
    save_weights: bool,
    explain: bool,
    debug_log: bool,
    debug_log_path: Path | None,
    config_path: Path | None,
) -> None:
    """Rewrite a rough prompt into a structured one.

    \b
    Examples:
        promptsmith optimize "fix the login bug" -s ide-coding-assistant
        promptsmith optimize --file draft.md --explain
        promptsmith optimize "Summarize {topic}" --var topic=RAFT
        promptsmith optimize -f task.txt --history history.json --save-weights
        promptsmith optimize "fix the login bug" --debug-log
    """
    text = read_prompt(prompt, file_path)
    console = Console(stderr=True)
    debug_log = debug_log or debug_log_path is not None
    if debug_log:
        setup_debug_logging()

    if variables:
        try:
            values = parse_assignments(variables)
        except ValueError as e:
            raise click.UsageError(str(e)) from e
        resolution = resolve(text, values)
        text = resolution.resolved_text
        if resolution.unfilled:
            console.print(
                f"[yellow]Unfilled placeholders: {', '.join(resolution.unfilled)}[/]",
                highlight=False,
            )

    config = load_config(config_path)
    context = build_context(config, target, scenario, load_history(history_path))
    result = build_optimizer(config).optimize(text, context)

    click.echo(result.optimized_text)

    if explain:
        console.print(
            f"[bold]{result.selected_candidate_title}[/] score={result.score}", highlight=False
        )
        _print_breakdown(console, result.breakdown)
        for warning in result.warnings:
            console.print(f"[yellow]! {warning}[/]", highlight=False)

    if save_weights:
        path = config_path or get_config_path()
        if result.tuned_weights is None or result.tuned_weights.is_default:
            console.print("[dim]No tuned weights to save[/]", highlight=False)
        else:
            changed = asyncio.run(config.update_weights(path, result.tuned_weights))
            _report_save(console, path, changed)

    if debug_log:
        destination = debug_log_path or get_debug_log_path()
        count = export_logs_to_file(destination)
        log.debug("Exported debug log", path=str(destination), entries=count)
        console.print(f"[dim]Wrote {count} log entries to {destination}[/]", highlight=False)


@click.command()
@click.argument("prompt", required=False, default=None)
@file_option
def analyze(prompt: str | None, file_path: Path | None) -> None:
    """Show the structural features detected in a prompt."""
    text = read_prompt(prompt, file_path)
    optimizer = PromptOptimizer()
    analysis = optimizer.analyzer.analyze(text)

    table = Table(show_header=True, header_style="bold")
    table.add_column("Feature")
    table.add_column("Value")
    table.add_row("intent", infer_intent(text).value)
    for field in dataclasses.fields(analysis):
        value = getattr(analysis, field.name)
        if field.name == "headings":
            value = ", ".join(key.heading_title for key in sorted(value)) or "-"
        elif field.name == "contradictions":
            value = "; ".join(value) or "-"
        table.add_row(field.name, str(value))
    Console().print(table)


@click.command()
@click.option(
    "--history",
    "history_path",
    type=click.Path(exists=True, readable=True, path_type=Path),
    required=True,
    help="JSON list of previous prompts, newest first",
)
@click.option("--save", is_flag=True, help="Persist learned weights to the config file")
@config_option
def learn(history_path: Path, save: bool, config_path: Path | None) -> None:
    """Learn scoring weights from prompt history."""
    console = Console(stderr=True)
    history = load_history(history_path)
    weights = PromptOptimizer().learn_weights(history)
    if weights is None:
        raise click.ClickException(
            f"Not enough history to learn from ({len(history)} prompts, need at least 5)"
        )

    for name, value in weights.model_dump().items():
        click.echo(f"{name} = {value}")

    if save:
        path = config_path or get_config_path()
        config = load_config(config_path)
        _report_save(console, path, asyncio.run(config.update_weights(path, weights)))
