# ccc_retrieval/interface/cli.py

from typing import List
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich import box
from rich.text import Text

from ccc_retrieval.domain.models import Paragraph, SearchOutcome


console = Console()


def display_welcome_banner() -> None:
    console.print(Panel.fit(
        "[bold cyan]✝ Catechism Search[/bold cyan]\n"
        "[dim]Ask a question, or type a paragraph number like 283 or CCC 283-284[/dim]",
        box=box.DOUBLE,
        border_style="cyan",
    ))


def display_indexing_status(num_paragraphs: int) -> None:
    console.print(f"\n[green]✓[/green] Index ready — [bold]{num_paragraphs}[/bold] paragraphs searchable.\n")


def prompt_for_query() -> str:
    return Prompt.ask("\n[bold yellow]❓ Your question or reference[/bold yellow]")


def display_results(outcome: SearchOutcome) -> None:
    console.print(
        f"\n[bold]Results for:[/bold] [italic]\"{outcome.query}\"[/italic] "
        f"[dim]({outcome.provenance} search)[/dim]\n"
    )

    if outcome.degraded:
        console.print("[dim yellow]Semantic search unavailable — showing keyword matches only.[/dim yellow]\n")

    if not outcome.results:
        console.print("[dim]No results found.[/dim]")
        return

    for rank, result in enumerate(outcome.results, start=1):
        score_color = _score_to_color(result.score)
        score_display = f"[{score_color}]{result.score:.4f}[/{score_color}]"

        panel_content = Text()
        panel_content.append("📖 Paragraph: ", style="dim")
        panel_content.append(str(result.paragraph_id), style="bold white")
        panel_content.append("\n🎯 Score: ")
        panel_content.append_text(Text.from_markup(score_display))
        panel_content.append(f"\n\n{result.text}")

        console.print(Panel(
            panel_content,
            title=f"[bold]#{rank}[/bold]",
            border_style=score_color,
            box=box.ROUNDED,
            padding=(1, 2),
        ))


def display_paragraphs(paragraphs: List[Paragraph]) -> None:
    for paragraph in paragraphs:
        console.print(Panel(
            paragraph.text,
            title=f"[bold]CCC {paragraph.id}[/bold]",
            border_style="cyan",
            box=box.ROUNDED,
            padding=(1, 2),
        ))


def display_error(message: str) -> None:
    console.print(f"\n[bold red]✗[/bold red] [red]{message}[/red]\n")


def ask_continue() -> bool:
    return Confirm.ask("\n[dim]Another question?[/dim]", default=True)


def _score_to_color(score: float) -> str:
    # Boosted keyword hits score above 1.0
    if score > 1.0:
        return "bright_green"
    if score >= 0.6:
        return "green"
    if score >= 0.4:
        return "yellow"
    return "red"
