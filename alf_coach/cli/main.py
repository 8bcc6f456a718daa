"""CLI interface for ALF Coach."""
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import typer
import yaml

from ..config.models import CapturedProject, Step
from ..config.settings import CoachSettings, load_settings
from ..engine.assessor import InputAssessor
from ..engine.capturer import parse_phases
from ..engine.coaching import stage_guide, summarize_captured
from ..engine.controller import StageController
from ..engine.serialization import hydrate_captured, serialize_captured
from ..engine.validator import StageValidator
from ..errors import CoachError, UnknownStageError

app = typer.Typer(help="ALF Coach - guided project-based learning blueprint builder")

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
QUIT_WORDS = {"quit", "exit", ":q"}

EXIT_REJECTED = 1
EXIT_UNKNOWN_STEP = 2


def _load_record(record_path: str) -> Dict[str, Any]:
    """Load a captured-project record from YAML or JSON; exit on bad files."""
    path = Path(record_path)
    try:
        with open(path, encoding="utf-8") as f:
            if path.suffix in ('.yaml', '.yml'):
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
        typer.echo(f"Could not load record {record_path}: {e}", err=True)
        raise typer.Exit(EXIT_REJECTED)
    if not isinstance(data, dict):
        typer.echo(f"Could not load record {record_path}: expected a mapping", err=True)
        raise typer.Exit(EXIT_REJECTED)
    return data


def _settings(ctx: typer.Context) -> CoachSettings:
    return (ctx.obj or {}).get("settings") or CoachSettings()


def _coerce_step(step: str) -> Step:
    try:
        return Step.coerce(step)
    except UnknownStageError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(EXIT_UNKNOWN_STEP)


def _duration_note(duration: str, step: Step, captured: CapturedProject) -> Optional[str]:
    if step in (Step.JOURNEY, Step.DELIVERABLES):
        return f"(Plan for a {duration} timeframe.)"
    return None


@app.callback()
def cli_root(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    config: Optional[str] = typer.Option(None, help="Path to settings YAML/JSON"),
):
    """Configure logging and load settings for every command."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format=LOG_FORMAT)
    try:
        settings = load_settings(config)
    except (OSError, ValueError) as e:
        typer.echo(f"Could not load settings: {e}", err=True)
        raise typer.Exit(EXIT_REJECTED)
    ctx.obj = {"settings": settings}


@app.command("chat")
def cli_chat(
    ctx: typer.Context,
    duration: Optional[str] = typer.Option(None, help="Project duration hint, e.g. '6 weeks'"),
    ai_extractor: bool = typer.Option(
        False, "--ai-extractor", help="Use the LLM to structure prose journey answers"
    ),
    resume: Optional[str] = typer.Option(None, help="Resume from a saved record (YAML/JSON)"),
    export: Optional[str] = typer.Option(None, help="Write the flat record here on exit"),
):
    """Interactive blueprint session; type 'go back', 'continue' or 'quit'."""
    settings = _settings(ctx)
    extractor = None
    if ai_extractor:
        from ..agents import LLMClient, LLMPhaseExtractor
        extractor = LLMPhaseExtractor(LLMClient())

    kwargs: Dict[str, Any] = dict(
        settings=settings,
        extractor=extractor,
        duration=duration,
        pacing_hook=_duration_note if duration else None,
    )
    if resume:
        controller = StageController.resume(_load_record(resume), **kwargs)
    else:
        controller = StageController(**kwargs)

    guide = stage_guide(controller.step)
    typer.echo(f"[{controller.step.label}] {guide.what}\n  Tip: {guide.tip}")
    while not controller.is_complete:
        try:
            text = typer.prompt(f"{controller.step.label}>", prompt_suffix=" ")
        except (EOFError, typer.Abort):
            break
        if text.strip().lower() in QUIT_WORDS:
            break
        turn = controller.submit(text)
        typer.echo(turn.message)
        if turn.did_advance and turn.next_step is Step.COMPLETION:
            typer.echo("\n" + summarize_captured(controller.captured) + "\n")

    typer.echo(f"\nStatus: {controller.status.value}")
    if export:
        with open(export, "w", encoding="utf-8") as f:
            json.dump(serialize_captured(controller.captured), f, ensure_ascii=False, indent=2)
        typer.echo(f"Record written to {export}")


@app.command("assess")
def cli_assess(
    ctx: typer.Context,
    step: str = typer.Argument(..., help="Step tag, e.g. BIG_IDEA or JOURNEY"),
    text: str = typer.Argument(..., help="Text to assess"),
):
    """Check whether TEXT is acceptable input for STEP."""
    result = InputAssessor(_settings(ctx)).assess(_coerce_step(step), text)
    if result.ok:
        typer.echo("accepted")
        return
    typer.echo(f"rejected: {result.reason}")
    raise typer.Exit(EXIT_REJECTED)


@app.command("parse-phases")
def cli_parse_phases(
    text: str = typer.Argument(..., help="Journey text"),
):
    """Print the phases the delimiter heuristic finds in TEXT as JSON."""
    phases = parse_phases(text)
    typer.echo(json.dumps([p.model_dump() for p in phases], ensure_ascii=False, indent=2))


@app.command("validate")
def cli_validate(
    ctx: typer.Context,
    step: str = typer.Argument(..., help="Step tag to validate"),
    record_file: str = typer.Argument(..., help="Captured record (YAML/JSON, flat or nested)"),
):
    """Run STEP's completeness gate against a stored record."""
    target = _coerce_step(step)
    captured = hydrate_captured(_load_record(record_file))
    try:
        result = StageValidator(_settings(ctx)).validate(target, captured)
    except CoachError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(EXIT_REJECTED)
    if result.ok:
        typer.echo(f"{target.value}: complete")
        return
    typer.echo(f"{target.value}: incomplete - {result.reason}")
    raise typer.Exit(EXIT_REJECTED)


@app.command("summary")
def cli_summary(
    ctx: typer.Context,
    record_file: str = typer.Argument(..., help="Captured record (YAML/JSON, flat or nested)"),
    topic: str = typer.Option("", help="Project topic shown in the header"),
):
    """Print a plain-text blueprint summary and its status."""
    captured = hydrate_captured(_load_record(record_file))
    validator = StageValidator(_settings(ctx))
    typer.echo(summarize_captured(captured, project_topic=topic))
    typer.echo(f"Status: {validator.status(captured).value}")
    typer.echo(f"Resume at: {validator.first_incomplete_step(captured).value}")


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
