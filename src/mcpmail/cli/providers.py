"""Component factory functions for CLI.

Centralizes creation of the credential store, backend client, LLM provider
and session controller from settings.
Hides configuration details from command implementations.
"""

from rich.console import Console

from ..auth import CredentialStore, build_authorization_url, create_credential_store
from ..backend import ContextSynchronizer, MailBackendClient
from ..chat import SessionController, TurnExecutor
from ..config import Settings
from ..llm import LLMProvider, create_llm_provider

# Default console for output
_console = Console()


def get_credential_store(settings: Settings) -> CredentialStore:
    """Create the file credential store at the configured path."""
    return create_credential_store("file", path=settings.credential_path)


def get_backend(settings: Settings) -> MailBackendClient:
    """Create the mail backend client."""
    return MailBackendClient(base_url=settings.backend_url, timeout=settings.http_timeout)


def get_llm(settings: Settings, console: Console | None = None) -> LLMProvider:
    """Create LLM provider from settings.

    Args:
        settings: Runtime settings
        console: Optional Rich console for output

    Returns:
        LLM provider instance

    Raises:
        SystemExit: If the provider's API key is not set
    """
    import typer

    con = console or _console
    if not settings.llm_api_key:
        key_variable = "OPENAI_API_KEY" if settings.llm_provider == "openai" else "GROQ_API_KEY"
        con.print(f"[red]Error: {key_variable} not set in environment[/red]")
        raise typer.Exit(code=1)

    try:
        return create_llm_provider(
            settings.llm_provider,
            api_key=settings.llm_api_key,
            model=settings.model,
            base_url=settings.llm_base_url,
        )
    except ValueError as e:
        con.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1) from None


def get_authorization_url(settings: Settings) -> str | None:
    """Authorization entry point, or None when the OAuth client is not configured."""
    if not settings.google_client_id or not settings.google_redirect_uri:
        return None
    return build_authorization_url(settings.google_client_id, settings.google_redirect_uri)


def build_controller(
    settings: Settings,
    backend: MailBackendClient,
    llm: LLMProvider,
) -> SessionController:
    """Wire a session controller from its collaborators."""
    executor = TurnExecutor(
        backend=backend,
        llm=llm,
        model=settings.model,
        mcp_server_url=settings.resolved_mcp_url,
    )
    return SessionController(
        store=get_credential_store(settings),
        synchronizer=ContextSynchronizer(backend),
        executor=executor,
        turn_timeout=settings.turn_timeout,
    )
