"""configure command: write or show the .revlens.yml settings.

API keys are never written to the config file; they are read from
ANTHROPIC_API_KEY / OPENAI_API_KEY at run time.
"""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from revlens_core.providers.factory import PROVIDERS

console = Console()

_SECRET_KEYS = ("anthropic_api_key", "openai_api_key", "github_token")


@click.command("configure")
@click.option("--model", type=click.Choice(PROVIDERS), default=None, help="Default AI provider.")
@click.option("--model-name", default=None, help="Default provider model name, e.g. gpt-4o.")
@click.option("--show", is_flag=True, help="Show the effective configuration and exit.")
@click.pass_context
def configure_cmd(ctx, model: str | None, model_name: str | None, show: bool):
    """Set the default provider and model, or show the current configuration."""
    from revlens_core.config import ConfigError, load_config, save_config

    config_path = ctx.obj.get("config_path", ".revlens.yml") if ctx.obj else ".revlens.yml"
    try:
        config = load_config(config_path)
    except ConfigError as e:
        raise click.UsageError(str(e))

    if show:
        _show(config, config_path)
        return

    if model is None and model_name is None:
        model = click.prompt("AI provider", type=click.Choice(PROVIDERS), default=config["model"])
        model_name = click.prompt("Model name (blank for provider default)", default="", show_default=False) or None

    if model is not None:
        config["model"] = model
    if model_name is not None:
        config["model_name"] = model_name

    path = save_config(config, config_path)
    console.print(f"[green]Configuration written to {path}[/green]")

    key_env = {"anthropic": "ANTHROPIC_API_KEY", "openai": "OPENAI_API_KEY"}.get(config["model"])
    if key_env and not config.get(key_env.lower()):
        console.print(f"[yellow]Remember to set {key_env} before running a review.[/yellow]")


def _show(config: dict, config_path: str) -> None:
    table = Table(title=f"Configuration ({config_path})", show_header=True, header_style="bold cyan")
    table.add_column("Key", style="bold")
    table.add_column("Value")
    for key, value in config.items():
        if key in _SECRET_KEYS:
            shown = "[green]set[/green]" if value else "[dim]not set[/dim]"
        elif isinstance(value, list):
            shown = ", ".join(str(v) for v in value) or "[dim](none)[/dim]"
        else:
            shown = "[dim](default)[/dim]" if value is None else str(value)
        table.add_row(key, shown)
    console.print(table)
