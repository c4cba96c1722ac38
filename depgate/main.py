"""CLI entry point for depgate."""

import asyncio
import json
import sys
from pathlib import Path
from typing import Any

import click
import structlog

from depgate.config.settings import DepgateSettings
from depgate.engine.aggregator import summarize_outcomes
from depgate.engine.graph import build_graph
from depgate.engine.runner import run_tasks
from depgate.exceptions import DepgateError
from depgate.models.domain import Failed, Outcome, OutcomeStatus, Resolved
from depgate.taskfile import load_task_file
from depgate.utils.logging_config import configure_logging

log = structlog.get_logger(__name__)

EXIT_SUCCESS = 0
EXIT_TASKS_INCOMPLETE = 1
EXIT_USAGE_ERROR = 2

_STATUS_COLORS = {
    OutcomeStatus.RESOLVED: "green",
    OutcomeStatus.FAILED: "red",
    OutcomeStatus.SKIPPED: "yellow",
}


@click.group()
@click.option("--config", default=None, help="Path to configuration file")
@click.option("--log-level", default=None, help="Logging level (overrides configuration)")
@click.pass_context
def cli(ctx: click.Context, config: str | None, log_level: str | None) -> None:
    """depgate: run dependent tasks concurrently."""
    try:
        settings = DepgateSettings.from_yaml(config) if config else DepgateSettings()
    except DepgateError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(EXIT_USAGE_ERROR)

    configure_logging(log_level or settings.logging.level, settings.logging.format)
    ctx.obj = {"settings": settings}


def _describe(outcome: Outcome) -> str:
    if isinstance(outcome, Resolved):
        return str(outcome.value)
    if isinstance(outcome, Failed):
        return str(outcome.reason)
    return "unresolved: " + (", ".join(outcome.unresolved_dependencies) or "-")


def _json_default(value: Any) -> str:
    return str(value)


@cli.command()
@click.argument("taskfile", type=click.Path(exists=True, dir_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
@click.pass_context
def run(ctx: click.Context, taskfile: str, as_json: bool) -> None:
    """Run every task in TASKFILE and report its outcome."""
    settings: DepgateSettings = ctx.obj["settings"]

    try:
        tasks = load_task_file(taskfile, settings.commands)
        results = asyncio.run(run_tasks(tasks, settings.executor))
    except DepgateError as e:
        click.echo(f"Error: {e.message}", err=True)
        log.debug("run_error", exc_info=True)
        sys.exit(EXIT_USAGE_ERROR)
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)

    if as_json:
        document = {key: outcome.to_dict() for key, outcome in results.items()}
        click.echo(json.dumps(document, indent=2, default=_json_default))
    else:
        for key, outcome in results.items():
            status = click.style(f"[{outcome.status.value.upper()}]", fg=_STATUS_COLORS[outcome.status])
            click.echo(f"{status} {key}: {_describe(outcome)}")

        summary = summarize_outcomes(results)
        click.echo(", ".join(f"{count} {status}" for status, count in summary.items()))

    incomplete = any(outcome.status != OutcomeStatus.RESOLVED for outcome in results.values())
    sys.exit(EXIT_TASKS_INCOMPLETE if incomplete else EXIT_SUCCESS)


@cli.command()
@click.argument("taskfile", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def validate(ctx: click.Context, taskfile: str) -> None:
    """Check TASKFILE for dependency cycles without running anything."""
    settings: DepgateSettings = ctx.obj["settings"]

    try:
        tasks = load_task_file(Path(taskfile), settings.commands)
        graph = build_graph(tasks)
    except DepgateError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(EXIT_USAGE_ERROR)

    undefined = [vertex.key for vertex in graph if not vertex.defined]
    for key in undefined:
        click.echo(f"{click.style('[WARN]', fg='yellow')} undefined dependency: {key}")

    for path in graph.cycles:
        click.echo(f"{click.style('[FAIL]', fg='red')} cycle detected: {' <- '.join(path)}")

    order = [key for key in graph.topological_order() if key in tasks]
    click.echo("Execution order: " + " -> ".join(order))

    sys.exit(EXIT_TASKS_INCOMPLETE if graph.cycles else EXIT_SUCCESS)


if __name__ == "__main__":
    cli()
