# src/infraprop/cli.py
"""infraprop Command Line Interface.

Entry point for the infraprop CLI tool.

Exit codes:
    0  every property held
    1  an invariant was violated
    2  usage error (unknown suite, bad pin, bad settings)
    3  infrastructure error (render, terraform or plan parsing failed)
"""

from __future__ import annotations

import json
import random
from pathlib import Path
from typing import Any, Literal

import typer
from dynaconf.vendor.ruamel.yaml.parser import ParserError as YamlParserError
from dynaconf.vendor.ruamel.yaml.scanner import ScannerError as YamlScannerError
from pydantic import ValidationError

from infraprop import __version__
from infraprop.contracts import (
    ModuleKind,
    PropertyReport,
    RenderError,
    ReportStatus,
    UnknownPropertyError,
    config_as_dict,
)
from infraprop.core.config import HarnessSettings, load_default_settings, load_settings, resolve_settings

__all__ = ["app"]

EXIT_VIOLATION = 1
EXIT_USAGE = 2
EXIT_INFRASTRUCTURE = 3

app = typer.Typer(
    name="infraprop",
    help="infraprop: property-based verification of Terraform modules.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"infraprop version {__version__}")
        raise typer.Exit()


def _load_dotenv(env_file: Path | None = None) -> Path | None:
    """Load INFRAPROP_* (and any other) variables from a .env file.

    Without an explicit file, the search starts in the working directory, the
    directory infraprop is run against, and walks up. Variables already set
    in the environment win.

    Returns:
        The file that was loaded, or None when no .env was found.

    Raises:
        typer.Exit: If an explicit env_file doesn't exist.
    """
    from dotenv import find_dotenv, load_dotenv

    if env_file is None:
        found = find_dotenv(usecwd=True)
        if not found:
            return None
        env_file = Path(found)
    elif not env_file.exists():
        typer.secho(f"Error: .env file not found: {env_file}", fg=typer.colors.RED, err=True)
        raise typer.Exit(EXIT_USAGE)

    load_dotenv(env_file, override=False)
    return env_file


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    no_dotenv: bool = typer.Option(
        False,
        "--no-dotenv",
        help="Skip loading .env file.",
    ),
    env_file: Path | None = typer.Option(
        None,
        "--env-file",
        help="Path to .env file (skips automatic search).",
        exists=False,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """infraprop: property-based verification of Terraform modules."""
    from infraprop.core.logging import configure_logging, get_logger

    configure_logging(json_output=json_logs, level="DEBUG" if verbose else "INFO")

    if not no_dotenv:
        loaded = _load_dotenv(env_file=env_file)
        if loaded is not None:
            get_logger(__name__).debug("dotenv_loaded", path=str(loaded))
    elif env_file is not None:
        typer.secho(
            "Warning: --env-file ignored because --no-dotenv is set.",
            fg=typer.colors.YELLOW,
            err=True,
        )


def _settings_or_exit(settings: str | None) -> HarnessSettings:
    """Load settings from a file (or the environment alone) or exit with a readable error."""
    try:
        if settings is None:
            return load_default_settings()
        return load_settings(Path(settings).expanduser())
    except (YamlParserError, YamlScannerError) as e:
        typer.echo(f"YAML syntax error in {settings}: {e.problem}", err=True)
        raise typer.Exit(EXIT_USAGE) from None
    except FileNotFoundError:
        typer.echo(f"Error: Settings file not found: {settings}", err=True)
        raise typer.Exit(EXIT_USAGE) from None
    except ValidationError as e:
        typer.echo("Configuration errors:", err=True)
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            typer.echo(f"  - {loc}: {error['msg']}", err=True)
        raise typer.Exit(EXIT_USAGE) from None


def _parse_pins(module: ModuleKind, raw: list[str] | None) -> dict[str, Any]:
    from infraprop.generation import coerce_pins

    pairs: dict[str, str] = {}
    for item in raw or []:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"expected key=value, got {item!r}", param_hint="--pin")
        pairs[key.strip()] = value
    try:
        return coerce_pins(module, pairs)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--pin") from None


SETTINGS_OPTION = typer.Option(
    None,
    "--settings",
    "-s",
    help="Path to settings YAML file (INFRAPROP_* environment variables still apply).",
)


@app.command("list")
def list_suites() -> None:
    """List builtin property suites."""
    from infraprop.engine import BUILTIN_SUITES

    for suite in BUILTIN_SUITES.values():
        flags = []
        if suite.pins:
            flags.append(", ".join(f"{k}={v}" for k, v in suite.pins.items()))
        if suite.replay:
            flags.append("replay")
        suffix = f" [{'; '.join(flags)}]" if flags else ""
        typer.echo(f"{suite.name:30} {suite.module.value:12} {suite.description}{suffix}")
        typer.echo(f"{'':30} {'':12} invariants: {', '.join(suite.invariants) or '(none)'}")


@app.command()
def draw(
    module: ModuleKind = typer.Argument(..., help="Module to generate inputs for."),
    seed: int = typer.Option(0, "--seed", help="Random seed for the draw."),
    pin: list[str] | None = typer.Option(None, "--pin", "-p", help="Fix a field: key=value (repeatable)."),
) -> None:
    """Print one generated configuration as JSON."""
    from infraprop.generation import draw as draw_config

    pins = _parse_pins(module, pin)
    try:
        config = draw_config(module, random.Random(seed), **pins)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--pin") from None
    typer.echo(json.dumps(config_as_dict(config), indent=2))


@app.command()
def render(
    module: ModuleKind = typer.Argument(..., help="Module to render an invocation of."),
    seed: int = typer.Option(0, "--seed", help="Random seed for the draw."),
    pin: list[str] | None = typer.Option(None, "--pin", "-p", help="Fix a field: key=value (repeatable)."),
    settings: str | None = SETTINGS_OPTION,
) -> None:
    """Print the Terraform configuration a trial would plan."""
    from infraprop.generation import draw as draw_config
    from infraprop.rendering import ModuleRenderer

    harness_settings = _settings_or_exit(settings)
    pins = _parse_pins(module, pin)
    try:
        config = draw_config(module, random.Random(seed), **pins)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--pin") from None
    try:
        typer.echo(ModuleRenderer(harness_settings).render(config), nl=False)
    except RenderError as e:
        typer.echo(f"Render error: {e}", err=True)
        raise typer.Exit(EXIT_INFRASTRUCTURE) from None


@app.command()
def run(
    suites: list[str] | None = typer.Argument(None, help="Suites to run (default: all builtin suites)."),
    settings: str | None = SETTINGS_OPTION,
    trials: int | None = typer.Option(None, "--trials", "-n", min=1, help="Trials per suite (default from settings)."),
    seed: int | None = typer.Option(None, "--seed", min=0, help="Master seed (default from settings, else random)."),
    workers: int | None = typer.Option(None, "--workers", "-w", min=1, help="Parallel trials (default from settings)."),
    output_format: Literal["console", "json"] = typer.Option(
        "console",
        "--format",
        "-f",
        help="Output format: 'console' (human-readable) or 'json' (structured JSON).",
    ),
) -> None:
    """Run property suites against the configured modules."""
    from infraprop.engine import BUILTIN_SUITES, get_suite, run_property
    from infraprop.execution import TerraformPipeline

    harness_settings = _settings_or_exit(settings)
    try:
        selected = [get_suite(name) for name in suites] if suites else list(BUILTIN_SUITES.values())
    except UnknownPropertyError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(EXIT_USAGE) from None

    pipeline = TerraformPipeline(harness_settings)
    reports: list[PropertyReport] = []
    for suite in selected:
        report = run_property(
            suite,
            pipeline,
            trials=trials or harness_settings.trials.count,
            seed=seed if seed is not None else harness_settings.trials.seed,
            workers=workers or harness_settings.trials.workers,
        )
        reports.append(report)
        if output_format == "console":
            _echo_report(report)

    exit_code = _exit_code(reports)
    if output_format == "json":
        typer.echo(json.dumps({"reports": [r.to_dict() for r in reports], "exit_code": exit_code}, indent=2))
    else:
        passed = sum(1 for r in reports if r.passed)
        typer.echo(f"\n{passed}/{len(reports)} properties passed")
    if exit_code:
        raise typer.Exit(exit_code)


def _exit_code(reports: list[PropertyReport]) -> int:
    statuses = {r.status for r in reports}
    if ReportStatus.VIOLATED in statuses:
        return EXIT_VIOLATION
    if ReportStatus.ERRORED in statuses:
        return EXIT_INFRASTRUCTURE
    return 0


def _echo_report(report: PropertyReport) -> None:
    header = f"{report.suite} ({report.trials_run}/{report.trials_requested} trials, seed={report.seed})"
    if report.status is ReportStatus.PASSED:
        typer.secho(f"PASS   {header}", fg=typer.colors.GREEN)
        return

    if report.failure is not None:
        failure = report.failure
        typer.secho(f"FAIL   {header}", fg=typer.colors.RED)
        typer.echo(f"  trial {failure.trial_index} (trial seed {failure.trial_seed})")
        for line in failure.violation.describe().splitlines():
            typer.echo(f"  {line}")
        typer.echo("  input:")
        for line in json.dumps(config_as_dict(failure.config), indent=2).splitlines():
            typer.echo(f"    {line}")
    elif report.error is not None:
        error = report.error
        typer.secho(f"ERROR  {header}", fg=typer.colors.YELLOW)
        typer.echo(f"  trial {error.trial_index} (trial seed {error.trial_seed}): {error.message}")
        if error.diagnostics:
            for line in error.diagnostics.splitlines()[:20]:
                typer.echo(f"    {line}")


@app.command()
def doctor(
    settings: str | None = SETTINGS_OPTION,
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON."),
) -> None:
    """Check that terraform and the modules under test are reachable."""
    from infraprop.execution import terraform_version

    harness_settings = _settings_or_exit(settings)
    checks: dict[str, dict[str, str]] = {"version": {"status": "ok", "value": __version__}}

    version = terraform_version(harness_settings)
    checks["terraform"] = (
        {"status": "ok", "value": version}
        if version is not None
        else {"status": "error", "value": f"cannot run {harness_settings.terraform.binary}"}
    )
    for module in ModuleKind:
        path = harness_settings.modules.path_for(module)
        checks[f"module:{module.value}"] = {
            "status": "ok" if path.is_dir() else "error",
            "value": str(path),
        }

    healthy = all(check["status"] == "ok" for check in checks.values())
    if json_output:
        typer.echo(json.dumps({"status": "healthy" if healthy else "unhealthy", "checks": checks}, indent=2))
    else:
        for name, check in checks.items():
            color = typer.colors.GREEN if check["status"] == "ok" else typer.colors.RED
            typer.secho(f"  {check['status']:5} {name:22} {check['value']}", fg=color)
    if not healthy:
        raise typer.Exit(EXIT_INFRASTRUCTURE)


@app.command("show-settings")
def show_settings(settings: str | None = SETTINGS_OPTION) -> None:
    """Print the resolved settings as YAML (secret key masked)."""
    import yaml

    harness_settings = _settings_or_exit(settings)
    typer.echo(yaml.safe_dump(resolve_settings(harness_settings), sort_keys=False), nl=False)


if __name__ == "__main__":
    app()
