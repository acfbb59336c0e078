"""promptfit CLI — Typer + Rich terminal interface.

Commands: pack, generate, models.
All output is Rich-powered with color-coded panels and tables.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from promptfit import __version__
from promptfit.context.blocks import commit_message_blocks
from promptfit.context.manager import ContextManager
from promptfit.notify import RichNotifier
from promptfit.prompts import PromptRequest, build_reminder, get_system_prompt
from promptfit.providers.errors import RequestTooLargeError
from promptfit.providers.litellm_provider import LiteLLMProvider
from promptfit.providers.registry import load_models, load_packing_config
from promptfit.schemas.config import PackingConfig
from promptfit.schemas.context import BuildResult
from promptfit.schemas.model import MaxTokens, ModelConfig, ModelDescriptor

console = Console()

app = typer.Typer(
    name="promptfit",
    help="Pack diffs and context into a token-bounded commit-message prompt.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"promptfit {__version__}")
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
        help="Log packing decisions.",
    ),
) -> None:
    """promptfit — token-budget prompt packing with adaptive truncation."""
    if verbose:
        logging.basicConfig(
            level=logging.INFO,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        )


# ── Helpers ──────────────────────────────────────────────────────

def _load_registry() -> dict[str, ModelConfig]:
    """Load the model registry, exit on error."""
    try:
        return load_models()
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error loading models:[/red] {e}")
        raise typer.Exit(1) from None


def _load_config(config_path: Path | None) -> PackingConfig:
    """Load packing config, exit on error."""
    try:
        return load_packing_config(config_path)
    except FileNotFoundError as e:
        console.print(f"[red]Error loading config:[/red] {e}")
        raise typer.Exit(1) from None


def _resolve_model(model_key: str | None, max_input: int | None) -> ModelConfig | None:
    if model_key is None:
        return None
    registry = _load_registry()
    if model_key not in registry:
        console.print(
            f"[red]Unknown model:[/red] {model_key} "
            f"(available: {', '.join(sorted(registry))})"
        )
        raise typer.Exit(1)
    config = registry[model_key]
    if max_input is not None:
        config = config.model_copy(update={"max_input_tokens": max_input})
    return config


def _read(path: Path | None) -> str:
    if path is None:
        return ""
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        console.print(f"[red]Cannot read {path}:[/red] {e}")
        raise typer.Exit(1) from None


def _build_manager(
    *,
    diff: Path,
    descriptor: ModelDescriptor,
    config: PackingConfig,
    system: Path | None,
    language: str,
    commits: Path | None,
    recent: Path | None,
    similar: Path | None,
    original: Path | None,
    instructions: str,
) -> ContextManager:
    user_commits = _read(commits)
    recent_commits = _read(recent)
    request = PromptRequest(system_prompt=_read(system), language=language)

    manager = ContextManager(
        descriptor,
        get_system_prompt(request),
        config=config,
        notifier=RichNotifier(),
    )
    blocks = commit_message_blocks(
        _read(diff),
        original_code=_read(original),
        user_commits=user_commits,
        recent_commits=recent_commits,
        similar_code=_read(similar),
        custom_instructions=instructions,
        reminder=build_reminder(
            language, has_commit_history=bool(user_commits or recent_commits)
        ),
    )
    for block in blocks:
        manager.add_block(block)
    return manager


def _display_build(manager: ContextManager, result: BuildResult) -> None:
    table = Table(title="Context blocks", show_lines=False)
    table.add_column("Block", style="cyan")
    table.add_column("Priority", justify="right")
    table.add_column("Tokens", justify="right")
    table.add_column("Status")

    for block in sorted(manager.blocks, key=lambda b: b.priority):
        tokens = manager.calculator.count(block.content)
        if block.name in result.truncated:
            status = "[yellow]truncated[/yellow]"
        elif block.name in result.included:
            status = "[green]included[/green]"
        else:
            status = "[red]excluded[/red]"
        table.add_row(block.name, str(block.priority), f"{tokens:,}", status)

    console.print(table)
    console.print(
        f"Budget: [bold]{result.budget:,}[/bold] tokens · "
        f"remaining: [bold]{result.remaining_tokens:,}[/bold] · "
        f"raw prompt: [bold]{manager.estimated_raw_token_count():,}[/bold] tokens"
    )
    console.print(Panel(result.user_message, title="User message", border_style="blue"))


# ── Commands ─────────────────────────────────────────────────────


@app.command()
def pack(
    diff: Path = typer.Argument(..., help="File holding the diff to describe."),
    model: str = typer.Option(
        None, "--model", "-m", help="Registry key of the target model."
    ),
    max_input: int = typer.Option(
        None, "--max-input", help="Override the model's input token limit."
    ),
    system: Path = typer.Option(None, "--system", help="File with a custom system prompt."),
    language: str = typer.Option("English", "--language", help="Commit message language."),
    commits: Path = typer.Option(None, "--commits", help="File with the user's recent commits."),
    recent: Path = typer.Option(None, "--recent", help="File with the repository's recent commits."),
    similar: Path = typer.Option(None, "--similar", help="File with related code snippets."),
    original: Path = typer.Option(None, "--original", help="File with the original code."),
    instructions: str = typer.Option("", "--instructions", help="Extra instructions for the model."),
    config_path: Path = typer.Option(None, "--config", help="Packing defaults TOML file."),
    as_json: bool = typer.Option(False, "--json", help="Print the build result as JSON."),
) -> None:
    """Pack the diff and context into messages and show what fit."""
    model_config = _resolve_model(model, max_input)
    if model_config is not None:
        descriptor = model_config.descriptor()
    elif max_input is not None:
        descriptor = ModelDescriptor(max_tokens=MaxTokens(input=max_input))
    else:
        descriptor = ModelDescriptor()

    manager = _build_manager(
        diff=diff,
        descriptor=descriptor,
        config=_load_config(config_path),
        system=system,
        language=language,
        commits=commits,
        recent=recent,
        similar=similar,
        original=original,
        instructions=instructions,
    )
    result = manager.build()

    if as_json:
        typer.echo(result.model_dump_json(indent=2))
        return
    _display_build(manager, result)


@app.command()
def generate(
    diff: Path = typer.Argument(..., help="File holding the diff to describe."),
    model: str = typer.Option(..., "--model", "-m", help="Registry key of the target model."),
    max_input: int = typer.Option(
        None, "--max-input", help="Override the model's input token limit."
    ),
    system: Path = typer.Option(None, "--system", help="File with a custom system prompt."),
    language: str = typer.Option("English", "--language", help="Commit message language."),
    commits: Path = typer.Option(None, "--commits", help="File with the user's recent commits."),
    recent: Path = typer.Option(None, "--recent", help="File with the repository's recent commits."),
    similar: Path = typer.Option(None, "--similar", help="File with related code snippets."),
    original: Path = typer.Option(None, "--original", help="File with the original code."),
    instructions: str = typer.Option("", "--instructions", help="Extra instructions for the model."),
    config_path: Path = typer.Option(None, "--config", help="Packing defaults TOML file."),
    max_retries: int = typer.Option(
        None, "--max-retries", help="Overflow retries before giving up."
    ),
    timeout: int = typer.Option(120, "--timeout", help="Per-call timeout in seconds."),
) -> None:
    """Generate a commit message, shrinking the prompt on context overflow."""
    model_config = _resolve_model(model, max_input)
    manager = _build_manager(
        diff=diff,
        descriptor=model_config.descriptor(),
        config=_load_config(config_path),
        system=system,
        language=language,
        commits=commits,
        recent=recent,
        similar=similar,
        original=original,
        instructions=instructions,
    )
    provider = LiteLLMProvider(model_config)

    async def _run() -> None:
        async for chunk in manager.build_with_retry(
            provider, max_retries=max_retries, timeout=timeout
        ):
            console.print(chunk, end="", markup=False, highlight=False)
        console.print()

    try:
        asyncio.run(_run())
    except RequestTooLargeError as e:
        console.print(f"\n[red]Request too large:[/red] {e}")
        raise typer.Exit(1) from None
    except (RuntimeError, TimeoutError) as e:
        console.print(f"\n[red]Generation failed:[/red] {e}")
        raise typer.Exit(1) from None


@app.command()
def models() -> None:
    """List the models in the registry."""
    registry = _load_registry()

    table = Table(title="Model registry")
    table.add_column("Key", style="cyan")
    table.add_column("Name")
    table.add_column("Provider")
    table.add_column("Input", justify="right")
    table.add_column("Output", justify="right")

    for key, cfg in sorted(registry.items()):
        table.add_row(
            key,
            cfg.display_name,
            cfg.provider,
            f"{cfg.max_input_tokens:,}",
            f"{cfg.max_output_tokens:,}",
        )
    console.print(table)
