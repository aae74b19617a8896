"""
MCP Tool Aggregator — Main CLI Entrypoint.

Wires all layers and runs the interactive CLI loop, or the HTTP API with --serve.
"""

import argparse
import json
import logging
import sys
from dataclasses import dataclass

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from cards.engine import CardSynthesisEngine
from cards.store import CardStore
from conversation.manager import ConversationManager
from entry.cli import CLIAdapter
from intent.domain_resolver import DomainResolver
from models.completion_client import CompletionClient, CompletionClientProtocol
from orchestrator.chat_orchestrator import ChatOrchestrator
from providers.data_providers import OrderDataProvider, UserDataProvider
from providers.tool_client import ToolClient
from registry.catalog import ToolCatalog
from registry.naming_client import NacosNamingClient
from registry.poller import RegistryPoller
from shared.models import ModelPolicy
from shared.settings import Settings

logger = logging.getLogger(__name__)

# ─── Rich Console ───────────────────────────────────────────────

console = Console()


def setup_logging(level: str = "INFO") -> None:
    """Configure logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    # httpx logs every request at INFO; the poller alone would flood the console
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ─── Pipeline ───────────────────────────────────────────────────

@dataclass
class Pipeline:
    settings: Settings
    catalog: ToolCatalog
    poller: RegistryPoller
    card_store: CardStore
    card_engine: CardSynthesisEngine
    conversation: ConversationManager
    orchestrator: ChatOrchestrator
    naming_client: NacosNamingClient
    tool_client: ToolClient
    completion_client: CompletionClientProtocol

    def close(self) -> None:
        self.poller.stop()
        self.naming_client.close()
        self.tool_client.close()
        close = getattr(self.completion_client, "close", None)
        if callable(close):
            close()
        self.conversation.close()


def build_pipeline(
    settings: Settings | None = None,
    completion_client: CompletionClientProtocol | None = None,
) -> Pipeline:
    """Wire all layers together. The poller is built but not started."""
    settings = settings or Settings.from_env()

    # Registry
    catalog = ToolCatalog()
    naming_client = NacosNamingClient(
        settings.nacos_server_addr,
        namespace=settings.nacos_namespace,
        timeout=settings.registry_timeout_seconds,
    )
    poller = RegistryPoller(
        naming_client,
        catalog,
        group=settings.nacos_mcp_group,
        target_domains=settings.target_domains,
        interval_seconds=settings.refresh_interval_seconds,
        service_suffix=settings.service_suffix,
    )

    # Cards
    tool_client = ToolClient(timeout=settings.tool_call_timeout_seconds)
    card_store = CardStore()
    card_engine = CardSynthesisEngine(
        card_store,
        order_provider=OrderDataProvider(catalog, tool_client),
        user_provider=UserDataProvider(catalog, tool_client),
    )

    # Core
    if completion_client is None:
        completion_client = CompletionClient(
            base_url=settings.deepseek_base_url,
            api_key=settings.deepseek_api_key,
        )
    policy = ModelPolicy(
        model_name=settings.deepseek_model,
        temperature=settings.deepseek_temperature,
        max_tokens=settings.deepseek_max_tokens,
        timeout_seconds=settings.completion_timeout_seconds,
    )
    conversation = ConversationManager(max_history_length=settings.conversation_max_history)
    orchestrator = ChatOrchestrator(
        catalog=catalog,
        resolver=DomainResolver(catalog),
        card_engine=card_engine,
        conversation=conversation,
        completion_client=completion_client,
        policy=policy,
    )

    return Pipeline(
        settings=settings,
        catalog=catalog,
        poller=poller,
        card_store=card_store,
        card_engine=card_engine,
        conversation=conversation,
        orchestrator=orchestrator,
        naming_client=naming_client,
        tool_client=tool_client,
        completion_client=completion_client,
    )


# ─── Rendering ──────────────────────────────────────────────────

def render_services(pipeline: Pipeline) -> None:
    services = pipeline.catalog.all_services()
    if not services:
        console.print("[yellow]No MCP services discovered yet.[/yellow]")
        return
    table = Table(title="🛰️ Services", box=box.SIMPLE_HEAVY, header_style="bold cyan")
    table.add_column("Service", style="bold white")
    table.add_column("Domain")
    table.add_column("Instances")
    table.add_column("Tools", justify="right")
    for service in services:
        table.add_row(
            service.service_name,
            service.domain,
            ", ".join(instance.address for instance in service.instances),
            str(len(service.tools)),
        )
    console.print(table)


def render_tools(pipeline: Pipeline, domain: str | None = None) -> None:
    tools = pipeline.catalog.tools_by_domain(domain)
    if not tools:
        console.print("[yellow]No tools available.[/yellow]")
        return
    table = Table(title="🧰 Tools", box=box.SIMPLE_HEAVY, header_style="bold cyan")
    table.add_column("Domain", style="bold white")
    table.add_column("Tool")
    table.add_column("Description")
    for tool in tools:
        table.add_row(tool.domain, tool.name, tool.description)
    console.print(table)


def render_cards(pipeline: Pipeline) -> None:
    cards = pipeline.card_store.all()
    if not cards:
        console.print("[yellow]No cards stored.[/yellow]")
        return
    table = Table(title="🗂️ Cards", box=box.SIMPLE_HEAVY, header_style="bold cyan")
    table.add_column("Id", style="dim")
    table.add_column("Type")
    table.add_column("Title")
    for card in cards:
        table.add_row(card.id or "", card.type, card.title)
    console.print(table)


def render_reply(pipeline: Pipeline, text: str, success: bool) -> None:
    """Render an assistant reply, expanding inline card references."""
    console.print()
    console.print(Panel(
        Text(text, style="white" if success else "bold red"),
        title="🤖 Assistant",
        border_style="cyan" if success else "red",
        box=box.ROUNDED,
    ))
    for card_id, _card_type in CLIAdapter.card_references(text):
        card = pipeline.card_store.get(card_id)
        if card is None:
            continue
        console.print(Panel(
            json.dumps(card.model_dump(mode="json"), ensure_ascii=False, indent=2),
            title=f"🗂️ {card.title}",
            border_style="green",
            box=box.ROUNDED,
        ))


# ─── Loops ──────────────────────────────────────────────────────

def run_chat_loop(settings: Settings) -> None:
    """Interactive chat loop."""
    console.print(Panel(
        Text.from_markup(
            "[bold cyan]MCP Tool Aggregator[/bold cyan]\n"
            f"[dim]Registry: {settings.nacos_server_addr} • Model: {settings.deepseek_model}[/dim]\n"
            "[dim]Commands: /tools /services /refresh /cards /quit[/dim]"
        ),
        title="🤖",
        border_style="cyan",
        box=box.DOUBLE,
    ))

    try:
        pipeline = build_pipeline(settings)
    except Exception as e:
        console.print(f"[bold red]Failed to initialize pipeline:[/] {e}")
        sys.exit(1)

    if settings.poller_enabled:
        with console.status("[yellow]Discovering MCP services...[/yellow]", spinner="dots"):
            pipeline.poller.start()

    cli = CLIAdapter()
    console.print(f"[dim]Session: {cli.session_id}[/dim]")
    console.print(f"[dim]Domains: {pipeline.catalog.domains()}[/dim]")
    console.print()

    try:
        while True:
            raw_input = console.input("[bold cyan]You → [/]")
            if not raw_input.strip():
                continue

            command = cli.parse_command(raw_input)
            if command == "quit":
                console.print("[dim]Goodbye! 👋[/dim]")
                break
            if command == "tools":
                render_tools(pipeline, cli.command_argument(raw_input))
                continue
            if command == "services":
                render_services(pipeline)
                continue
            if command == "refresh":
                count = pipeline.poller.force_refresh()
                console.print(f"[green]Catalog refreshed: {count} services[/green]")
                continue
            if command == "cards":
                render_cards(pipeline)
                continue

            request = cli.read_input(raw_input)
            with console.status("[green]Thinking...[/green]", spinner="dots"):
                response = pipeline.orchestrator.process_chat(
                    request.message,
                    domain=request.domain,
                    session_id=request.session_id,
                )
            render_reply(pipeline, response.message, response.success)
            console.print()
    except (KeyboardInterrupt, EOFError):
        console.print("\n[dim]Goodbye! 👋[/dim]")
    finally:
        pipeline.close()


def run_server(settings: Settings) -> None:
    import uvicorn

    uvicorn.run(
        "api.server:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


def main() -> None:
    """Entrypoint with CLI args."""
    parser = argparse.ArgumentParser(description="MCP Tool Aggregator")
    parser.add_argument("--serve", action="store_true", help="Run the HTTP API instead of the interactive chat")
    parser.add_argument("--host", default=None, help="API host (default: API_HOST)")
    parser.add_argument("--port", type=int, default=None, help="API port (default: API_PORT)")
    args = parser.parse_args()

    settings = Settings.from_env()
    overrides = {}
    if args.host:
        overrides["api_host"] = args.host
    if args.port:
        overrides["api_port"] = args.port
    if overrides:
        settings = settings.model_copy(update=overrides)

    setup_logging(settings.log_level)

    if args.serve:
        run_server(settings)
    else:
        run_chat_loop(settings)


if __name__ == "__main__":
    main()
