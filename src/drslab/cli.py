"""
Dr's Lab CLI - command-line interface for the Dr's Lab backend.

Runs the API server and gives shell access to the Studio terminal and the
agent command parser. For everything else, use the web UI.
"""

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from drslab.logging_config import setup_logging

app = typer.Typer(
    name="drslab",
    help="Dr's Lab - AI therapy and development chat with a Studio workspace",
    no_args_is_help=True,
)

console = Console()


@app.command()
def serve(
    host: str = typer.Option(None, help="Host to bind to (default from settings)"),
    port: int = typer.Option(None, help="Port to bind to (default from settings)"),
    reload: bool = typer.Option(False, help="Enable auto-reload"),
) -> None:
    """
    Start the FastAPI server.

    Runs the Dr's Lab API server for the chat and Studio frontends.
    """
    import uvicorn

    from drslab.config import settings

    host = host or settings.api_host
    port = port or settings.api_port
    reload = reload or settings.api_reload

    console.print("[bold green]Starting Dr's Lab API server...[/bold green]")
    console.print(f"  Host: {host}")
    console.print(f"  Port: {port}")
    console.print(f"  Reload: {reload}")
    console.print(f"\n  API docs: http://{host}:{port}/docs")

    uvicorn.run(
        "drslab.api.app:app",
        host=host,
        port=port,
        reload=reload,
    )


@app.command()
def terminal(
    command: str = typer.Argument(..., help="Command line to run, e.g. \"git status\""),
    user: str = typer.Option(None, "--user", "-u", help="Workspace owner"),
    ai: bool = typer.Option(
        True, "--ai/--no-ai", help="Simulate unknown commands with the AI assistant"
    ),
) -> None:
    """
    Run one command in the simulated Studio terminal.

    The command is recorded in the user's terminal history and the process
    exits with the command's exit code.
    """
    from drslab.config import settings
    from drslab.db.connection import db_session
    from drslab.studio.terminal import Terminal
    from drslab.studio.workspace import Workspace

    setup_logging(context="cli")

    ai_service = None
    if ai and settings.terminal_ai_simulation:
        from drslab.ai.service import AIService

        ai_service = AIService.from_settings(settings)

    with db_session() as session:
        workspace = Workspace(session, user or settings.default_user_id)
        record = Terminal(workspace, ai_service, ai_simulation=ai_service is not None).execute(
            command
        )
        output, exit_code = record.output, record.exit_code

    if output:
        console.print(output, markup=False, highlight=False)
    if exit_code:
        raise typer.Exit(exit_code)


@app.command("parse-commands")
def parse_commands(
    path: Path = typer.Argument(..., help="Text file holding an assistant reply"),
    as_json: bool = typer.Option(False, "--json", help="Print commands as JSON"),
) -> None:
    """
    Print the agent command tokens found in an assistant reply.

    Shows each [COMMAND:ACTION:JSON] token with its validation result and the
    reply text that remains once the tokens are removed.
    """
    from drslab.studio.agent import parse_agent_commands, validate_command

    setup_logging(context="cli")

    if not path.exists():
        console.print(f"[bold red]Error:[/bold red] File not found: {path}")
        raise typer.Exit(1)

    commands, display = parse_agent_commands(path.read_text(encoding="utf-8"))

    if as_json:
        console.print_json(
            json.dumps(
                {
                    "commands": [{"action": c.action, "payload": c.payload} for c in commands],
                    "text": display,
                }
            )
        )
        return

    if not commands:
        console.print("[yellow]No agent commands found[/yellow]")
    else:
        table = Table(title=f"Agent commands ({len(commands)})")
        table.add_column("#", justify="right")
        table.add_column("Action", style="cyan")
        table.add_column("Payload")
        table.add_column("Valid")
        for index, command in enumerate(commands, start=1):
            problem = validate_command(command)
            table.add_row(
                str(index),
                command.action,
                escape(json.dumps(command.payload)[:80]),
                "[green]✓[/green]" if problem is None else f"[red]✗ {escape(problem)}[/red]",
            )
        console.print(table)

    if display:
        console.print()
        console.print("[bold]Reply text:[/bold]")
        console.print(display, markup=False, highlight=False)


if __name__ == "__main__":
    app()
