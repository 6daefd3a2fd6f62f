"""Rendering of a ReviewResult as JSON, HTML or Markdown, plus a console summary."""

from __future__ import annotations

import html
import json
from dataclasses import asdict
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from revlens_core.config import OUTPUT_FORMATS
from revlens_core.models import ReviewResult

console = Console(stderr=True)

FORMATS = OUTPUT_FORMATS

_SEVERITY_STYLE = {"critical": "red", "high": "bright_red", "medium": "yellow", "low": "blue", "info": "dim"}


def format_duration(seconds: float) -> str:
    minutes = seconds / 60
    if minutes < 1:
        return f"{seconds:.2f}s"
    return f"{minutes:.1f} min"


def result_to_dict(result: ReviewResult) -> dict:
    return asdict(result)


def format_json(result: ReviewResult) -> str:
    return json.dumps(result_to_dict(result), indent=2)


def _severity_counts(result: ReviewResult) -> list[tuple[str, int]]:
    s = result.summary
    return [
        ("critical", s.critical_issues),
        ("high", s.high_issues),
        ("medium", s.medium_issues),
        ("low", s.low_issues),
        ("info", s.info_issues),
    ]


def format_markdown(result: ReviewResult) -> str:
    s = result.summary
    lines = [
        "# Code Review Report",
        "",
        f"**Generated:** {result.created_at[:19].replace('T', ' ')} UTC",
        f"**Duration:** {format_duration(result.duration_seconds)}",
    ]
    if result.commit_hash:
        lines.append(f"**Commit:** `{result.commit_hash}`")
    lines += [
        "",
        "## Summary",
        "",
        f"- **Overall Score:** {s.overall_score}",
        f"- **Total Files:** {s.total_files}",
        f"- **Files with Issues:** {s.files_with_issues}",
        f"- **Total Issues:** {s.total_issues}",
        "- " + " | ".join(f"**{name.title()}:** {count}" for name, count in _severity_counts(result)),
        "",
    ]

    if s.top_recommendations:
        lines += ["### Top Recommendations", ""]
        lines += [f"- {title}" for title in s.top_recommendations]
        lines.append("")

    lines += ["## File Reviews", ""]
    for review in result.reviews:
        lines += [f"### {review.file_path}", ""]
        if review.issues:
            lines += ["#### Issues", ""]
            for issue in review.issues:
                lines.append(f"- **{issue.title}** ({issue.severity.value}, {issue.category.value})")
                if issue.description:
                    lines.append(f"  {issue.description}")
                if issue.line_number is not None:
                    lines.append(f"  Line: {issue.line_number}")
            lines.append("")
        if review.suggestions:
            lines += ["#### Suggestions", ""]
            for suggestion in review.suggestions:
                lines.append(f"- **{suggestion.title}**")
                if suggestion.description:
                    lines.append(f"  {suggestion.description}")
                if suggestion.recommended_change:
                    lines.append(f"  _Recommended:_ {suggestion.recommended_change}")
            lines.append("")
        if not review.issues and not review.suggestions:
            lines += ["_No findings._", ""]

    return "\n".join(lines)


_HTML_STYLE = """
  body { font-family: Arial, sans-serif; margin: 40px; }
  .summary { background: #f5f5f5; padding: 20px; border-radius: 5px; margin-bottom: 20px; }
  .file-review { border: 1px solid #ddd; margin-bottom: 20px; border-radius: 5px; }
  .file-header { background: #e9e9e9; padding: 10px; font-weight: bold; }
  .issue { margin: 10px; padding: 10px; border-left: 4px solid #ff6b6b; background: #fff5f5; }
  .suggestion { margin: 10px; padding: 10px; border-left: 4px solid #51cf66; background: #f3fff3; }
  .severity-critical { border-left-color: #e03131; }
  .severity-high { border-left-color: #fd7e14; }
  .severity-medium { border-left-color: #fab005; }
  .severity-low { border-left-color: #51cf66; }
"""


def format_html(result: ReviewResult) -> str:
    e = html.escape
    s = result.summary
    counts = ", ".join(f"<strong>{name.title()}:</strong> {count}" for name, count in _severity_counts(result))
    parts = [
        "<!DOCTYPE html>",
        "<html>",
        "<head>",
        '<meta charset="utf-8">',
        "<title>Code Review Report</title>",
        f"<style>{_HTML_STYLE}</style>",
        "</head>",
        "<body>",
        "<h1>Code Review Report</h1>",
        f"<p><strong>Generated:</strong> {e(result.created_at[:19].replace('T', ' '))} UTC</p>",
        f"<p><strong>Duration:</strong> {e(format_duration(result.duration_seconds))}</p>",
        "<div class='summary'>",
        "<h2>Summary</h2>",
        f"<p><strong>Overall Score:</strong> {e(s.overall_score)}</p>",
        f"<p><strong>Total Files:</strong> {s.total_files}</p>",
        f"<p><strong>Files with Issues:</strong> {s.files_with_issues}</p>",
        f"<p><strong>Total Issues:</strong> {s.total_issues}</p>",
        f"<p>{counts}</p>",
    ]
    if s.top_recommendations:
        parts.append("<h3>Top Recommendations</h3><ul>")
        parts += [f"<li>{e(title)}</li>" for title in s.top_recommendations]
        parts.append("</ul>")
    parts.append("</div>")

    for review in result.reviews:
        parts += ["<div class='file-review'>", f"<div class='file-header'>{e(review.file_path)}</div>", "<div>"]
        for issue in review.issues:
            parts += [
                f"<div class='issue severity-{issue.severity.value}'>",
                f"<h4>{e(issue.title)} ({issue.severity.value})</h4>",
                f"<p>{e(issue.description)}</p>",
            ]
            if issue.line_number is not None:
                parts.append(f"<p><strong>Line:</strong> {issue.line_number}</p>")
            parts.append("</div>")
        for suggestion in review.suggestions:
            parts += [
                "<div class='suggestion'>",
                f"<h4>{e(suggestion.title)}</h4>",
                f"<p>{e(suggestion.description)}</p>",
            ]
            if suggestion.recommended_change:
                parts.append(f"<p><strong>Recommended:</strong> {e(suggestion.recommended_change)}</p>")
            parts.append("</div>")
        parts += ["</div>", "</div>"]

    parts += ["</body>", "</html>"]
    return "\n".join(parts)


_FORMATTERS = {"json": format_json, "html": format_html, "markdown": format_markdown}


def write_output(result: ReviewResult, output_path: str | None, fmt: str = "json") -> None:
    """Render ``result`` and write it to ``output_path``, or to stdout when no path is given."""
    try:
        formatter = _FORMATTERS[fmt.lower()]
    except KeyError:
        raise ValueError(f"Unknown output format: {fmt!r}") from None
    content = formatter(result)
    if not output_path:
        click.echo(content)
        return
    Path(output_path).write_text(content, encoding="utf-8")
    console.print(f"Review output written to: {output_path}")


def print_summary(result: ReviewResult) -> None:
    """Print a short severity breakdown and score to the terminal."""
    s = result.summary
    if not result.reviews:
        console.print("[yellow]No files were reviewed.[/yellow]")
        return

    console.print(
        f"\n[bold]{s.total_files}[/bold] file(s) reviewed · [bold]{s.total_issues}[/bold] issue(s) · "
        f"reviewed in {format_duration(result.duration_seconds)}"
    )
    table = Table(title="Severity Breakdown", show_header=True)
    table.add_column("Severity", style="bold")
    table.add_column("Count", justify="right")
    for name, count in _severity_counts(result):
        style = _SEVERITY_STYLE.get(name, "white")
        table.add_row(f"[{style}]{name}[/{style}]", str(count))
    console.print(table)
    console.print(f"Overall score: [bold]{s.overall_score}[/bold]")
    if s.top_recommendations:
        console.print("Top recommendations:")
        for title in s.top_recommendations:
            console.print(f"  - {title}")
