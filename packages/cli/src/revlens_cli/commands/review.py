"""review-* commands: run the review pipeline on a commit, PR, file list or directory."""

from __future__ import annotations

import click
from rich.console import Console

from revlens_cli.auth import resolve_github_token
from revlens_cli.output import FORMATS, print_summary, write_output
from revlens_core.pipeline import ReviewPipeline
from revlens_core.providers.factory import PROVIDERS, get_analyzer
from revlens_core.sources.base import ChangeSourceError
from revlens_core.sources.github import GitHubSource
from revlens_core.sources.local import LocalGitSource

console = Console(stderr=True)


def _split(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


_COMMON_OPTIONS = (
    click.option(
        "--model",
        type=click.Choice(PROVIDERS),
        default=None,
        help="AI model provider. Overrides config file.",
    ),
    click.option("--model-name", default=None, help="Provider model name, e.g. gpt-4o. Overrides config file."),
    click.option("--output", "-o", "output_path", default=None, help="Write the report to this file."),
    click.option(
        "--format",
        "-f",
        "fmt",
        type=click.Choice(FORMATS, case_sensitive=False),
        default=None,
        help="Report format. Defaults to the config file's format (json).",
    ),
)


def common_options(f):
    """Options shared by every review command."""
    for option in reversed(_COMMON_OPTIONS):
        f = option(f)
    return f


def _load(ctx: click.Context, model: str | None, model_name: str | None, fmt: str | None) -> dict:
    from revlens_core.config import ConfigError, load_config

    config_path = ctx.obj.get("config_path", ".revlens.yml") if ctx.obj else ".revlens.yml"
    try:
        config = load_config(config_path, cli_overrides={"model": model, "model_name": model_name, "format": fmt})
    except ConfigError as e:
        raise click.UsageError(str(e))

    if config["model"] == "anthropic" and not config.get("anthropic_api_key"):
        raise click.UsageError("ANTHROPIC_API_KEY environment variable is not set. Use --model demo to try offline.")
    if config["model"] == "openai" and not config.get("openai_api_key"):
        raise click.UsageError("OPENAI_API_KEY environment variable is not set. Use --model demo to try offline.")
    return config


def _github_source() -> GitHubSource:
    token = resolve_github_token()
    if not token:
        raise click.UsageError(
            "No GitHub token found. Set GITHUB_TOKEN or run `gh auth login` first.\n"
            "Create a token at https://github.com/settings/tokens"
        )
    return GitHubSource(token=token)


def _pipeline(config: dict, source) -> ReviewPipeline:
    try:
        analyzer = get_analyzer(config)
    except (ValueError, ImportError) as e:
        raise click.UsageError(str(e))
    return ReviewPipeline.from_config(config, analyzer, source)


def _emit(result, config: dict, output_path: str | None) -> None:
    write_output(result, output_path, config.get("format") or "json")
    print_summary(result)


@click.command("review-commit")
@click.option("--repo", required=True, help="Path to the git repository (owner/name with --github).")
@click.option("--commit", "commit_hash", required=True, help="Commit hash to review.")
@click.option("--github", "use_github", is_flag=True, help="Read the repository from GitHub instead of disk.")
@common_options
@click.pass_context
def review_commit_cmd(ctx, repo, commit_hash, use_github, model, model_name, output_path, fmt):
    """Review the files changed by one commit."""
    config = _load(ctx, model, model_name, fmt)
    source = _github_source() if use_github else LocalGitSource()
    result = _pipeline(config, source).review_commit(repo, commit_hash)
    _emit(result, config, output_path)


@click.command("review-pr")
@click.option("--repo", required=True, help="Path to the git repository (owner/name with --github).")
@click.option("--base", "base_ref", default=None, help="Base branch or ref.")
@click.option("--head", "head_ref", default=None, help="Head branch or ref.")
@click.option("--pr", "pr_number", type=int, default=None, help="GitHub pull request number (requires --github).")
@click.option("--github", "use_github", is_flag=True, help="Read the repository from GitHub instead of disk.")
@common_options
@click.pass_context
def review_pr_cmd(ctx, repo, base_ref, head_ref, pr_number, use_github, model, model_name, output_path, fmt):
    """Review the difference between two branches, or a GitHub pull request.

    \b
    Local:   revlens review-pr --repo . --base main --head feature
    GitHub:  revlens review-pr --repo owner/name --github --pr 42
    """
    if pr_number is not None and not use_github:
        raise click.UsageError("--pr requires --github.")
    if not use_github and not (base_ref and head_ref):
        raise click.UsageError("--base and --head are required for a local repository.")

    config = _load(ctx, model, model_name, fmt)
    source = _github_source() if use_github else LocalGitSource()

    if use_github and not (base_ref and head_ref):
        try:
            if pr_number is None:
                pr_number = _choose_pull_request(source, repo)
                if pr_number is None:
                    return
            base_ref, head_ref = source.pull_request_refs(repo, pr_number)
        except ChangeSourceError as e:
            raise click.ClickException(str(e))

    result = _pipeline(config, source).review_pull_request(repo, base_ref, head_ref)
    _emit(result, config, output_path)


def _choose_pull_request(source: GitHubSource, repo: str) -> int | None:
    prs = source.list_pull_requests(repo)
    if not prs:
        console.print("[yellow]No open pull requests found.[/yellow]")
        return None
    console.print("\nOpen pull requests:")
    for pr in prs:
        console.print(f"  [bold]#{pr.number}[/bold]  {pr.title}")
    return click.prompt("\nEnter the pull request number", type=int)


@click.command("review-files")
@click.option("--repo", required=True, help="Path to the git repository (owner/name with --github).")
@click.option("--files", default=None, help="Comma-separated file paths. Defaults to uncommitted changes.")
@click.option("--github", "use_github", is_flag=True, help="Read files from GitHub's default branch.")
@common_options
@click.pass_context
def review_files_cmd(ctx, repo, files, use_github, model, model_name, output_path, fmt):
    """Review specific files of a repository."""
    config = _load(ctx, model, model_name, fmt)
    source = _github_source() if use_github else LocalGitSource()

    file_paths = _split(files)
    if not file_paths:
        if use_github:
            raise click.UsageError("--files is required with --github.")
        file_paths = source.get_modified_files(repo) if source.is_repository(repo) else []
        if not file_paths:
            console.print("[yellow]No modified files found.[/yellow]")
            return

    result = _pipeline(config, source).review_files(repo, file_paths)
    _emit(result, config, output_path)


@click.command("review-directory")
@click.option("--directory", "-d", required=True, help="Directory to review recursively.")
@click.option("--exclude", default=None, help="Comma-separated patterns to exclude, e.g. 'migrations/,*.min.js'.")
@common_options
@click.pass_context
def review_directory_cmd(ctx, directory, exclude, model, model_name, output_path, fmt):
    """Review every file under a directory."""
    config = _load(ctx, model, model_name, fmt)
    config["exclude"] = list(config.get("exclude") or []) + _split(exclude)
    result = _pipeline(config, LocalGitSource()).review_directory(directory)
    _emit(result, config, output_path)
