from __future__ import annotations

import json
from pathlib import Path

import typer

app = typer.Typer(name="gradebox", help="Grade coding submissions in isolated processes")


def _parse_file_option(value: str) -> tuple[str, bytes]:
    name, sep, path = value.partition("=")
    if not sep or not name or not path:
        raise typer.BadParameter(f"expected NAME=PATH, got {value!r}", param_hint="--file")
    source = Path(path)
    if not source.is_file():
        raise typer.BadParameter(f"file not found: {path}", param_hint="--file")
    return name, source.read_bytes()


@app.command()
def grade(
    challenges: list[str] = typer.Argument(help="Challenge YAML file(s)"),
    file: list[str] = typer.Option(
        [], "--file", "-f", help="Candidate file as NAME=PATH (repeatable)"
    ),
    timeout_ms: int = typer.Option(
        10_000, "--timeout-ms", min=1, help="Wall-clock budget per run"
    ),
    keep_artifacts: bool = typer.Option(
        False, "--keep-artifacts", help="Leave each run directory on disk"
    ),
    work_dir: str | None = typer.Option(
        None, help="Create run directories here instead of the system temp dir"
    ),
    parallel: int = typer.Option(
        1, "--parallel", "-p", min=1, max=100, help="Number of challenges graded at once"
    ),
    junit: str | None = typer.Option(None, help="Write a JUnit XML report here"),
    as_json: bool = typer.Option(False, "--json", help="Print verdicts as JSON"),
    debug_log: str | None = typer.Option(None, help="Write debug output to this file"),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output to terminal"
    ),
):
    """Grade candidate files against one or more challenges."""
    from pydantic import ValidationError

    from gradebox.config import RunConfig, load_challenge
    from gradebox.runner import Runner
    from gradebox.verbose import setup_logger
    from gradebox.verdict import Success, ValidationFailures, verdict_to_dict

    overrides = dict(_parse_file_option(value) for value in file)

    loaded = []
    for path in challenges:
        challenge_path = Path(path)
        if not challenge_path.exists():
            typer.echo(f"Error: challenge file not found: {path}", err=True)
            raise typer.Exit(2)
        try:
            loaded.append((load_challenge(challenge_path), dict(overrides)))
        except (ValidationError, ValueError) as e:
            typer.echo(f"Error: invalid challenge {path}: {e}", err=True)
            raise typer.Exit(2)

    logger = setup_logger(
        Path(debug_log) if debug_log else None,
        verbose=verbose,
        logger_name="gradebox_cli",
    )
    config = RunConfig(
        timeout_ms=timeout_ms, keep_artifacts=keep_artifacts, work_dir=work_dir
    )
    outcomes = Runner(config=config, logger=logger).run_many(loaded, parallel=parallel)

    if junit:
        from gradebox.reporting.junit import write_junit

        write_junit(Path(junit), outcomes)

    if as_json:
        payload = [
            {
                "challenge": o.challenge_id,
                **(
                    verdict_to_dict(o.verdict)
                    if o.verdict is not None
                    else {"kind": "error", "error": type(o.error).__name__, "message": str(o.error)}
                ),
            }
            for o in outcomes
        ]
        typer.echo(json.dumps(payload, indent=2))
    else:
        for o in outcomes:
            if o.error is not None:
                typer.echo(f"{o.challenge_id}: ERROR ({type(o.error).__name__}) {o.error}")
            elif isinstance(o.verdict, Success):
                typer.echo(f"{o.challenge_id}: SUCCESS")
                if o.verdict.output:
                    typer.echo(o.verdict.output.rstrip("\n"))
            elif isinstance(o.verdict, ValidationFailures):
                typer.echo(f"{o.challenge_id}: VALIDATION FAILED")
                for message in o.verdict.messages:
                    typer.echo(f"  - {message}")
            else:
                label = o.verdict.kind.replace("_", " ").upper()
                typer.echo(f"{o.challenge_id}: {label}")
                typer.echo(f"  {o.verdict.message}")

    if any(o.error is not None for o in outcomes):
        raise typer.Exit(2)
    if not all(isinstance(o.verdict, Success) for o in outcomes):
        raise typer.Exit(1)


@app.command()
def workers():
    """List the registered execution modes."""
    from gradebox.workers import default_registry

    registry = default_registry()
    for name in registry.names():
        typer.echo(f"{name}\t{registry.resolve(name).execution_mode}")
