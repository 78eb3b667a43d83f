"""Main CLI application using Typer."""
import asyncio
from datetime import datetime

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from ..auth import credential_from_callback, parse_callback_url
from ..config import Settings
from ..exceptions import ConfigurationError, CredentialError
from ..logs import setup_logging
from .providers import build_controller, get_authorization_url, get_backend, get_credential_store, get_llm

# Load environment variables
load_dotenv()

# Create Typer app
app = typer.Typer(
    name="mcpmail",
    help="Chat with an assistant that can read your mailbox",
    no_args_is_help=True,
    add_completion=True,
)

# Console for rich output
console = Console()


def _load_settings() -> Settings:
    try:
        return Settings.from_env()
    except ConfigurationError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        raise typer.Exit(code=1) from None


@app.command()
def chat(
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Log level written to the log file (debug, info, warning, error)"
    ),
):
    """Launch the interactive chat interface."""
    settings = _load_settings()
    setup_logging(log_level or settings.log_level, log_file=settings.log_file)

    async def _chat():
        from ..ui import run_chat_tui

        llm = get_llm(settings, console)
        backend = get_backend(settings)
        try:
            controller = build_controller(settings, backend, llm)
            await run_chat_tui(controller, authorization_url=get_authorization_url(settings))
        finally:
            await backend.close()
            await llm.close()

    asyncio.run(_chat())


@app.command()
def login(
    callback_url: str | None = typer.Argument(
        None,
        help="Redirect URL received at the end of the authorization flow"
    ),
    access_token: str | None = typer.Option(None, "--access-token", help="Access token"),
    refresh_token: str | None = typer.Option(None, "--refresh-token", help="Refresh token"),
    email: str | None = typer.Option(None, "--email", help="Account email"),
    expires_in: str | None = typer.Option(None, "--expires-in", help="Token lifetime in seconds"),
):
    """Store the credential delivered by the authorization callback."""
    settings = _load_settings()
    setup_logging(settings.log_level)
    store = get_credential_store(settings)

    if callback_url:
        params = parse_callback_url(callback_url)
    else:
        params = {
            "access_token": access_token or "",
            "refresh_token": refresh_token or "",
            "email": email or "",
            "expires_in": expires_in or "",
        }

    try:
        credential = credential_from_callback(params, store.now())
    except CredentialError as e:
        console.print(f"[red]Authentication failed: {e.message}[/red]")
        raise typer.Exit(code=1) from None

    store.save(credential)
    console.print(f"[green]Signed in as {credential.email}[/green]")
    console.print("[dim]Start chatting with: mcpmail chat[/dim]")


@app.command(name="auth-url")
def auth_url():
    """Print the URL that starts the authorization flow."""
    settings = _load_settings()
    url = get_authorization_url(settings)
    if url is None:
        console.print("[red]Error: GOOGLE_CLIENT_ID and GOOGLE_REDIRECT_URI must be set[/red]")
        raise typer.Exit(code=1)
    console.print(url, soft_wrap=True)


@app.command()
def status():
    """Show the stored credential's status."""
    settings = _load_settings()
    store = get_credential_store(settings)
    credential = store.load()

    if credential is None:
        console.print("[yellow]Not signed in.[/yellow]")
        raise typer.Exit(code=1)

    now = store.now()
    table = Table(title="Credential", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Email", credential.email)
    if credential.name:
        table.add_row("Name", credential.name)
    table.add_row("Expires", datetime.fromtimestamp(credential.expires_at / 1000).strftime("%Y-%m-%d %H:%M:%S"))
    table.add_row("Remaining", f"{credential.expires_in_seconds(now) // 60} min")
    table.add_row("Store", str(settings.credential_path.expanduser()))
    console.print(table)


@app.command()
def logout():
    """Erase the stored credential."""
    settings = _load_settings()
    get_credential_store(settings).clear()
    console.print("[green]Logged out.[/green]")


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
