"""taskrouter CLI — Typer + Rich terminal interface.

Commands: analyze, run, chat, thresholds, models.
All output is Rich-powered with color-coded panels and tables.
"""

from __future__ import annotations

import asyncio
import logging
import os

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from taskrouter import __version__
from taskrouter.analysis.analyzer import TaskAnalyzer
from taskrouter.keys import load_keys_env
from taskrouter.providers.registry import load_models, load_router_config
from taskrouter.routing.engine import select_tier
from taskrouter.routing.thresholds import ThresholdStore
from taskrouter.schemas.config import RouterConfig
from taskrouter.schemas.messages import ProviderResult
from taskrouter.schemas.routing import Tier
from taskrouter.schemas.task import Priority, TaskContext

# Load API keys from ~/.taskrouter/keys.env and .env on startup
load_keys_env()

console = Console()

app = typer.Typer(
    name="taskrouter",
    help="Route tasks to the right LLM tier by complexity and reasoning needs.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ───────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"taskrouter {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Log routing decisions to stderr.",
    ),
) -> None:
    """taskrouter — complexity-based routing of tasks across LLM tiers."""
    if verbose:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


# ── Helpers ──────────────────────────────────────────────────────


def _load_registry():
    """Load the model registry, exit on error."""
    try:
        return load_models()
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error loading models:[/red] {e}")
        raise typer.Exit(1) from None


def _load_config() -> RouterConfig:
    """Load router config, exit on error."""
    try:
        return load_router_config()
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error loading config:[/red] {e}")
        raise typer.Exit(1) from None


def _parse_priority(value: str | None) -> Priority | None:
    if value is None:
        return None
    try:
        return Priority(value.lower())
    except ValueError:
        console.print(f"[red]Invalid priority:[/red] '{value}' (expected: high, low)")
        raise typer.Exit(1) from None


def _display_result(result: ProviderResult) -> None:
    if isinstance(result.reasoning, list):
        steps = "\n".join(f"{i}. {step}" for i, step in enumerate(result.reasoning, 1))
        console.print(Panel(steps, title="Reasoning", border_style="magenta"))
    elif result.reasoning:
        console.print(Panel(result.reasoning, title="Reasoning", border_style="magenta"))

    console.print(Panel(result.content or "(empty)", title="Response", border_style="green"))

    if result.document:
        console.print(f"[bold]Document:[/bold] {result.document.title} -> {result.document.url}")

    footer = f"Model: {result.model}"
    if result.tier:
        footer += f"  Tier: {result.tier}"
    if result.token_usage:
        footer += (
            f"  Tokens: {result.token_usage.prompt_tokens}+"
            f"{result.token_usage.completion_tokens}"
            f"  Cost: ${result.token_usage.cost:.4f}"
        )
    console.print(f"[dim]{footer}[/dim]")


# ── taskrouter analyze ───────────────────────────────────────────


@app.command()
def analyze(
    task: str = typer.Argument(..., help="Task text to analyze"),
    priority: str | None = typer.Option(
        None, "--priority", "-p", help="Priority hint for the tier preview: high, low",
    ),
    reasoning: bool = typer.Option(
        False, "--reasoning", help="Preview with the reasoning tier forced",
    ),
) -> None:
    """Score a task and preview the tier it would be routed to."""
    config = _load_config()
    level = _parse_priority(priority)

    analysis = asyncio.run(TaskAnalyzer().analyze_task(task))
    thresholds = ThresholdStore(config.thresholds).derive(level)
    tier = select_tier(analysis, thresholds, TaskContext(requires_reasoning=reasoning))

    table = Table(title="Complexity", show_header=False, show_lines=True)
    table.add_column("Component", style="bold")
    table.add_column("Score", justify="right")
    table.add_column("Weight", justify="right")

    components = analysis.complexity_breakdown.components
    weights = analysis.complexity_breakdown.weights
    for name in ("length", "code", "terms", "structure", "context"):
        table.add_row(name, str(getattr(components, name)), f"{getattr(weights, name):.2f}")
    table.add_row("[bold]total[/bold]", f"[bold]{analysis.complexity}[/bold]", "")
    console.print(table)

    detail = analysis.reasoning
    info = Table(title="Reasoning", show_header=False, show_lines=True)
    info.add_column("Field", style="bold")
    info.add_column("Value")
    info.add_row("Type", f"{detail.type.value} ({detail.type_confidence:.2f})")
    info.add_row(
        "Secondary", ", ".join(t.value for t in detail.secondary_types) or "none",
    )
    info.add_row("Stepwise", str(detail.stepwise))
    info.add_row("Context Dependency", f"{detail.context_dependency:.2f}")
    info.add_row("Temporal", str(detail.temporal_aspect))
    info.add_row(
        "Requirements",
        ", ".join(r.value for r in analysis.model_requirements) or "none",
    )
    console.print(info)

    console.print(
        f"\nThresholds: {thresholds.simple}/{thresholds.medium}/{thresholds.complex}"
        f"  ->  [bold cyan]{tier.value}[/bold cyan]"
    )


# ── taskrouter run ───────────────────────────────────────────────


@app.command()
def run(
    task: str = typer.Argument(..., help="Task to route and execute"),
    priority: str | None = typer.Option(
        None, "--priority", "-p", help="Priority hint: high, low",
    ),
    reasoning: bool = typer.Option(
        False, "--reasoning", help="Force the reasoning tier",
    ),
    role: str = typer.Option("", "--role", help="Persona for the system prompt"),
    guidelines: str = typer.Option(
        "", "--guidelines", help="Extra instructions for the model",
    ),
    timeout: int | None = typer.Option(
        None, "--timeout", help="Per-invocation deadline in seconds",
    ),
) -> None:
    """Route a task to the selected tier and print the response."""
    from taskrouter.orchestrator import OrchestrationError, create_orchestrator

    config = _load_config()
    registry = _load_registry()
    if timeout is not None:
        config = config.model_copy(update={"invoke_timeout": timeout})

    context = TaskContext(
        priority=_parse_priority(priority),
        requires_reasoning=reasoning,
        role=role,
        guidelines=guidelines,
    )

    try:
        orchestrator = create_orchestrator(config, registry)
    except ValueError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1) from None

    try:
        with console.status("[bold blue]Routing task...", spinner="dots"):
            result = asyncio.run(orchestrator.process_task(task, context))
    except OrchestrationError as e:
        console.print(f"[red]Failed:[/red] {e}")
        if e.analysis is not None:
            console.print(
                f"[dim]complexity={e.analysis.complexity} "
                f"reasoning={e.analysis.reasoning_type.value}[/dim]"
            )
        raise typer.Exit(1) from None

    _display_result(result)


# ── taskrouter chat ──────────────────────────────────────────────


@app.command()
def chat(
    message: str = typer.Argument(..., help="Chat message (slash commands and task markup allowed)"),
    session: str | None = typer.Option(
        None, "--session", "-s", help="Session ID to continue",
    ),
    user: str = typer.Option("local", "--user", "-u", help="User ID owning the session"),
) -> None:
    """Send one chat message; tasks inside it are detected and executed."""
    from taskrouter.chat.service import ChatService
    from taskrouter.orchestrator import create_orchestrator
    from taskrouter.persistence.database import close_db, init_db
    from taskrouter.persistence.session import ChatSessionStore

    config = _load_config()
    registry = _load_registry()

    try:
        orchestrator = create_orchestrator(config, registry)
    except ValueError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1) from None

    db_path = config.session_db_path if config.persist_sessions else ":memory:"

    async def _chat():
        db = await init_db(db_path)
        try:
            service = ChatService(
                orchestrator,
                ChatSessionStore(db),
                history_window=config.history_window,
                history_truncate=config.history_truncate,
            )
            return await service.process_chat_message(user, session, message)
        finally:
            await close_db(db)

    try:
        with console.status("[bold blue]Thinking...", spinner="dots"):
            reply = asyncio.run(_chat())
    except RuntimeError as e:
        console.print(f"[red]Failed:[/red] {e}")
        raise typer.Exit(1) from None

    style = "red" if reply.metadata.get("status") == "error" else "green"
    title = "Task" if reply.was_task else "Assistant"
    console.print(Panel(reply.response, title=title, border_style=style))

    model = reply.metadata.get("model")
    footer = f"Session: {reply.session_id}"
    if model:
        footer += f"  Model: {model}"
    console.print(f"[dim]{footer}[/dim]")


# ── taskrouter thresholds ────────────────────────────────────────


@app.command()
def thresholds(
    simple: int | None = typer.Option(None, "--simple", help="Preview a new simple boundary"),
    medium: int | None = typer.Option(None, "--medium", help="Preview a new medium boundary"),
    complex_: int | None = typer.Option(
        None, "--complex", help="Preview a new complex boundary",
    ),
) -> None:
    """Show the threshold table and its per-priority variants."""
    config = _load_config()
    store = ThresholdStore(config.thresholds)

    overrides = {
        name: value
        for name, value in (("simple", simple), ("medium", medium), ("complex", complex_))
        if value is not None
    }
    if overrides:
        try:
            store.update(overrides)
        except ValueError as e:
            console.print(f"[red]Invalid thresholds:[/red] {e}")
            raise typer.Exit(1) from None

    table = Table(title="Complexity Thresholds")
    table.add_column("Priority", style="bold")
    table.add_column(f"{Tier.GEMINI_FLASH.value} <=", justify="right")
    table.add_column(f"{Tier.GEMINI_PRO.value} <=", justify="right")
    table.add_column(f"{Tier.CLAUDE_SONNET.value} <=", justify="right")
    table.add_column(f"{Tier.CLAUDE_OPUS.value}", justify="right")

    for label, level in (("default", None), ("high", Priority.HIGH), ("low", Priority.LOW)):
        t = store.derive(level)
        table.add_row(label, str(t.simple), str(t.medium), str(t.complex), f"> {t.complex}")

    console.print(table)
    console.print(
        f"[dim]Stepwise tasks and --reasoning always route to {Tier.DEEPSEEK_R1.value}.[/dim]"
    )


# ── taskrouter models ────────────────────────────────────────────


@app.command()
def models() -> None:
    """Show the model serving each tier."""
    registry = _load_registry()

    table = Table(title="Tier Models", show_lines=True)
    table.add_column("Tier", style="bold cyan")
    table.add_column("Display Name")
    table.add_column("Model ID", style="dim")
    table.add_column("Context", justify="right")
    table.add_column("Input $/M", justify="right")
    table.add_column("Output $/M", justify="right")
    table.add_column("API Key")

    for tier in Tier:
        cfg = registry.get(tier.value)
        if cfg is None:
            table.add_row(tier.value, "[red]not configured[/red]", "", "", "", "", "")
            continue
        is_set = bool(os.environ.get(cfg.api_key_env))
        table.add_row(
            tier.value,
            cfg.display_name,
            cfg.model,
            f"{cfg.context_window:,}",
            f"${cfg.cost_input:.2f}",
            f"${cfg.cost_output:.2f}",
            "[green]set[/green]" if is_set else f"[red]{cfg.api_key_env} not set[/red]",
        )

    console.print(table)
