"""
CLI Interface for AI Report Writer
"""
import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.prompt import Confirm
from rich.table import Table

from report_writer.config.settings import get_config, get_env_settings
from report_writer.config.types import Audience, OutlineResult, Tone
from report_writer.config.logger import (
    print_header,
    print_info,
    print_error,
    print_success,
    print_outline_tree,
)
from report_writer.infra.errors import ReportWriterError
from report_writer.service import get_service

app = typer.Typer(
    name="report-writer",
    help="AI Report Writer - outline and report generation from your notes",
    add_completion=False
)
prompts_app = typer.Typer(help="Inspect and edit the prompt templates")
app.add_typer(prompts_app, name="prompts")

console = Console()


def _read_content(content: Optional[str], content_file: Optional[Path]) -> str:
    if content_file is not None:
        return content_file.read_text(encoding="utf-8")
    return content or ""


def _require_api_key() -> None:
    if not get_env_settings().openai_api_key:
        print_error("OPENAI_API_KEY is not set (environment or .env)")
        raise typer.Exit(1)


def _write_or_print(data: dict, output: Optional[Path]) -> None:
    text = json.dumps(data, ensure_ascii=False, indent=2)
    if output:
        output.write_text(text, encoding="utf-8")
        print_success(f"Saved: {output}")
    else:
        console.print_json(text)


def _stream_to_console(relay) -> Optional[dict]:
    final = None
    with console.status("[cyan]Generating...[/cyan]") as status:
        for event in relay.events():
            if "chunk" in event:
                status.update(f"[cyan]Generating... {len(event['accumulated']):,} chars[/cyan]")
            elif "error" in event:
                print_error(event["error"])
                raise typer.Exit(1)
            elif event.get("done"):
                final = json.loads(event["final"])
    return final


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (default from config)"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port (default from config)"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on code changes"),
):
    """
    Run the HTTP API with uvicorn.
    """
    import uvicorn

    config = get_config()
    host = host or config.server.host
    port = port or config.server.port
    print_header("AI Report Writer", f"Serving on http://{host}:{port}")
    uvicorn.run(
        "report_writer.adapters.web.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
    )


@app.command()
def outline(
    purpose: str = typer.Option(..., "--purpose", help="Why the report is being written"),
    topic: str = typer.Option(..., "--topic", help="Core subject of the report"),
    audience: Audience = typer.Option(Audience.INTERNAL_TEAM, "--audience", "-a"),
    tone: Tone = typer.Option(Tone.PROFESSIONAL, "--tone", "-t"),
    content: Optional[str] = typer.Option(None, "--content", help="Key points, inline"),
    content_file: Optional[Path] = typer.Option(None, "--content-file", exists=True, dir_okay=False),
    stream: bool = typer.Option(False, "--stream", help="Stream the generation"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the outline JSON here"),
):
    """
    Generate a report outline (title + heading structure).
    """
    _require_api_key()
    payload = {
        "purpose": purpose,
        "topic": topic,
        "audience": audience.value,
        "tone": tone.value,
        "content": _read_content(content, content_file),
    }
    service = get_service()
    try:
        if stream:
            data = _stream_to_console(service.stream_outline(payload))
            result = OutlineResult.model_validate(data)
        else:
            with console.status("[cyan]Generating outline...[/cyan]"):
                result = service.generate_outline(payload)
    except ReportWriterError as e:
        print_error(e.user_message)
        raise typer.Exit(1)

    print_outline_tree(result)
    if output:
        _write_or_print(result.to_api(), output)


@app.command()
def report(
    outline_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Outline JSON file"),
    audience: Audience = typer.Option(Audience.INTERNAL_TEAM, "--audience", "-a"),
    tone: Tone = typer.Option(Tone.PROFESSIONAL, "--tone", "-t"),
    content: Optional[str] = typer.Option(None, "--content"),
    content_file: Optional[Path] = typer.Option(None, "--content-file", exists=True, dir_okay=False),
    stream: bool = typer.Option(False, "--stream"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the report JSON here"),
):
    """
    Expand an approved outline into a full report.
    """
    _require_api_key()
    payload = {
        "titleStructure": json.loads(outline_file.read_text(encoding="utf-8")),
        "audience": audience.value,
        "tone": tone.value,
        "content": _read_content(content, content_file),
    }
    service = get_service()
    try:
        if stream:
            data = _stream_to_console(service.stream_report(payload))
        else:
            with console.status("[cyan]Generating report (this can take a minute)...[/cyan]"):
                data = service.generate_report(payload).to_api()
    except ReportWriterError as e:
        print_error(e.user_message)
        raise typer.Exit(1)

    print_success(f"Report generated: {data['title']} ({len(data['report'])} items)")
    _write_or_print(data, output)


@app.command()
def export(
    report_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Report JSON file"),
    fmt: str = typer.Option("markdown", "--format", "-f", help="markdown, html or txt"),
    output: Optional[Path] = typer.Option(None, "--output", "-o"),
):
    """
    Export a generated report as Markdown, HTML or plain text.
    """
    data = json.loads(report_file.read_text(encoding="utf-8"))
    try:
        body, _, filename = get_service().export_report(data, fmt)
    except ReportWriterError as e:
        print_error(e.user_message)
        raise typer.Exit(1)

    if output is None:
        output = Path(get_config().export.directory) / filename
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(body, encoding="utf-8")
    print_success(f"Exported: {output}")


# =========================================================================
# Prompt administration
# =========================================================================

@prompts_app.command("list")
def prompts_list():
    """List the prompt templates."""
    table = Table(title="Prompt Templates", border_style="cyan")
    table.add_column("ID", style="cyan")
    table.add_column("Type")
    table.add_column("Name")
    table.add_column("Updated", style="dim")

    for t in get_service().list_prompts():
        table.add_row(t.id, str(t.type), t.name, t.updated_at.strftime("%Y-%m-%d %H:%M"))
    console.print(table)


@prompts_app.command("show")
def prompts_show(prompt_id: str = typer.Argument(...)):
    """Print one template's content."""
    try:
        template = get_service().get_prompt(prompt_id)
    except ReportWriterError as e:
        print_error(e.user_message)
        raise typer.Exit(1)
    print_header(template.name, template.description)
    console.print(template.content, markup=False, highlight=False)


@prompts_app.command("edit")
def prompts_edit(
    prompt_id: str = typer.Argument(...),
    content_file: Optional[Path] = typer.Option(None, "--content-file", exists=True, dir_okay=False),
    name: Optional[str] = typer.Option(None, "--name"),
    description: Optional[str] = typer.Option(None, "--description"),
):
    """Update a template's content, name or description."""
    fields = {"name": name, "description": description}
    if content_file is not None:
        fields["content"] = content_file.read_text(encoding="utf-8")
    try:
        get_service().update_prompt(prompt_id, fields)
    except ReportWriterError as e:
        print_error(e.user_message)
        raise typer.Exit(1)
    print_success(f"Updated {prompt_id}")


@prompts_app.command("reset")
def prompts_reset(
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation prompt"),
):
    """Restore the built-in templates."""
    if not force:
        if not Confirm.ask("[red]Discard all prompt edits?[/red]", default=False):
            raise typer.Abort()
    get_service().reset_prompts()
    print_info("Prompt templates restored to defaults.")
