"""Village builder CLI."""

import argparse
import json
import logging
import math
import sys
import time
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from village_builder.models import (
    BuildingType,
    ResourceType,
    VillageError,
    VillageView,
    parse_building_type,
)
from village_builder.systems.controller import VillageController
from village_builder.utils.data_loader import load_buildings_from_json, load_config

console = Console()

RESOURCE_LABELS = {
    ResourceType.WOOD: ("🪵", "خشب", "Wood"),
    ResourceType.CLAY: ("🧱", "طين", "Clay"),
    ResourceType.IRON: ("⛏️", "حديد", "Iron"),
    ResourceType.CROP: ("🌾", "محاصيل", "Crop"),
}

POPULATION_LABEL = ("👥", "السكان", "Population")


def label(entry: tuple[str, str, str], language: str) -> str:
    icon, name_ar, name_en = entry
    return f"{icon} {name_en if language == 'en' else name_ar}"


def format_time(seconds: float) -> str:
    """Format seconds to MM:SS."""
    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes:02d}:{secs:02d}"


def format_costs(costs: dict[ResourceType, float]) -> str:
    return " ".join(f"{RESOURCE_LABELS[rt][0]}{costs[rt]:g}" for rt in ResourceType)


def create_resources_table(view: VillageView, language: str) -> Table:
    """Create the resources bar: four resources and population."""
    table = Table(show_header=True, header_style="bold magenta", box=None)

    for resource_type in ResourceType:
        table.add_column(label(RESOURCE_LABELS[resource_type], language), justify="right")
    table.add_column(label(POPULATION_LABEL, language), justify="right")

    row = [f"[yellow]{view.resources[rt]}[/yellow]" for rt in ResourceType]
    row.append(f"[cyan]{view.population}[/cyan]")
    table.add_row(*row)

    return table


def create_building_table(view: VillageView, language: str) -> Table:
    """Create a rich table with one row per building card."""
    table = Table(title="Buildings", show_header=True, header_style="bold magenta")

    table.add_column("", width=3)
    table.add_column("Id", style="dim", width=12)
    table.add_column("Building", style="cyan", width=16)
    table.add_column("Level", style="green", width=6, justify="center")
    table.add_column("Next cost", style="white", width=30)
    table.add_column("Production", style="blue", width=14, justify="right")

    for card in view.cards:
        definition = card.definition
        cost_style = "white" if card.affordable else "red"
        production = ""
        if card.next_level_production:
            production = " ".join(
                f"+{rate:g}{RESOURCE_LABELS[rt][0]}"
                for rt, rate in card.next_level_production.items()
            )

        table.add_row(
            definition.icon,
            definition.building_type.value,
            definition.display_name(language),
            str(card.level),
            f"[{cost_style}]{format_costs(card.next_cost)}[/{cost_style}]",
            production,
        )

    return table


def create_village_panel(view: VillageView, language: str) -> Panel:
    """Create the village view: a label per building, with level once built."""
    labels = []
    for card in view.cards:
        name = card.definition.display_name(language)
        suffix = f" ({card.level})" if card.level else ""
        labels.append(f"{card.definition.icon} {name}{suffix}")
    return Panel("  ".join(labels), title="Village", border_style="green")


def render(view: VillageView, language: str) -> None:
    console.print(create_resources_table(view, language))
    if view.message:
        console.print(f"[bold]{view.message}[/bold]")
    console.print(create_village_panel(view, language))
    console.print(create_building_table(view, language))
    console.print(f"[dim]t = {format_time(view.time_elapsed)}[/dim]")


def parse_seconds(text: str) -> float:
    """Parse a wait duration; must be a finite number >= 0."""
    seconds = float(text)
    if not math.isfinite(seconds) or seconds < 0:
        raise ValueError(f"Invalid wait '{text}', expected a finite number >= 0")
    return seconds


def parse_action(text: str) -> tuple[str, BuildingType | float]:
    """
    Parse a scripted session step.

    Examples:
        "build:woodcutter" -> ("build", BuildingType.WOODCUTTER)
        "wait:6"           -> ("wait", 6.0)
    """
    kind, sep, arg = text.partition(":")
    if not sep or not arg:
        raise ValueError(f"Invalid action '{text}', expected build:<id> or wait:<seconds>")

    if kind == "build":
        return ("build", parse_building_type(arg))
    if kind == "wait":
        return ("wait", parse_seconds(arg))

    raise ValueError(f"Unknown action '{kind}' in '{text}'")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Village Builder - resource and construction simulation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s build:woodcutter build:woodcutter wait:3   # Scripted session
  %(prog)s --interactive                              # Play in the terminal
  %(prog)s --config village.json build:cropland       # Custom configuration
  %(prog)s --language en --export report.json build:wall
        """,
    )

    parser.add_argument(
        "actions",
        nargs="*",
        help="Session steps: build:<building id> or wait:<seconds>",
    )

    parser.add_argument(
        "--interactive",
        "-i",
        action="store_true",
        help="Interactive session; production follows wall-clock time",
    )

    parser.add_argument(
        "--config",
        type=Path,
        help="Path to simulation configuration JSON file",
    )

    parser.add_argument(
        "--buildings",
        type=Path,
        help="Path to a building catalog JSON file",
    )

    parser.add_argument(
        "--language",
        type=str,
        choices=["ar", "en"],
        help="Display language (default: ar)",
    )

    parser.add_argument(
        "--tick-interval",
        type=float,
        help="Seconds between production ticks (default: 3)",
    )

    parser.add_argument(
        "--message-duration",
        type=float,
        help="Seconds a status message stays visible (default: 3)",
    )

    parser.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Minimal output (only final resources)",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log every tick and construction attempt",
    )

    parser.add_argument("--export", type=Path, help="Export session report to JSON file")

    return parser.parse_args(argv)


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def run_script(
    controller: VillageController, actions: list[tuple[str, BuildingType | float]], quiet: bool
) -> None:
    """Execute scripted steps against the simulated clock."""
    language = controller.config.language

    for kind, arg in actions:
        if kind == "wait":
            controller.advance(arg)
            if not quiet:
                console.print(f"[dim]… waited {arg:g}s[/dim]")
            continue

        result = controller.construct(arg)
        if quiet:
            continue
        name = controller.buildings[arg].display_name(language)
        if result.success:
            console.print(
                f"[green]✓[/green] {name} {result.from_level} → {result.to_level}  "
                f"[dim]{format_costs(result.cost)}[/dim]"
            )
        else:
            missing = " ".join(
                f"{RESOURCE_LABELS[rt][0]}{v:g}" for rt, v in result.shortfall.items()
            )
            console.print(f"[red]✗[/red] {name}  [dim]short: {missing}[/dim]")


def run_interactive(controller: VillageController) -> None:
    """Prompt loop; wall-clock time since the last command is simulated first."""
    language = controller.config.language
    console.print(
        "[dim]Commands: build <id> | wait <seconds> | status | quit[/dim]"
    )
    render(controller.view(), language)

    last = time.monotonic()
    while True:
        try:
            command = Prompt.ask("[bold cyan]>[/bold cyan]", console=console).strip()
        except (EOFError, KeyboardInterrupt):
            console.print()
            break

        now = time.monotonic()
        controller.advance(now - last)
        last = now

        if command in ("quit", "exit", "q"):
            break
        if not command or command == "status":
            render(controller.view(), language)
            continue

        verb, _, arg = command.partition(" ")
        try:
            if verb == "build":
                controller.construct(arg.strip())
            elif verb == "wait":
                controller.advance(parse_seconds(arg))
                last = time.monotonic()
            else:
                console.print(f"[red]Unknown command: {verb}[/red]")
                continue
        except (VillageError, ValueError) as e:
            console.print(f"[red]{e}[/red]")
            continue

        render(controller.view(), language)


def build_report(controller: VillageController) -> dict:
    """Session report for --export."""
    state = controller.state
    return {
        "time_elapsed": controller.now,
        "population": state.population,
        "resources": {k.value: v for k, v in state.ledger.snapshot().items()},
        "buildings": {k.value: v for k, v in state.building_levels.items()},
        "ticks": controller.ticker.ticks,
        "log": [
            {
                "time": entry.time,
                "building": entry.result.building_type.value,
                "from_level": entry.result.from_level,
                "to_level": entry.result.to_level,
                "success": entry.result.success,
                "costs": {k.value: v for k, v in entry.result.cost.items()},
            }
            for entry in controller.history
        ],
    }


def main(argv: list[str] | None = None) -> int:
    """Run a village session with CLI."""
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        config = load_config(
            args.config,
            language=args.language,
            tick_interval=args.tick_interval,
            message_duration=args.message_duration,
        )
        buildings = load_buildings_from_json(args.buildings)
        actions = [parse_action(a) for a in args.actions]
    except (VillageError, ValueError, OSError) as e:
        console.print(f"[red]✗ {e}[/red]")
        return 1

    controller = VillageController(buildings=buildings, config=config)
    language = config.language

    if not args.quiet:
        console.print(
            Panel.fit(
                "[bold cyan]🏰 Travian 🏰[/bold cyan]\n"
                "[yellow]Build your empire![/yellow]",
                border_style="blue",
            )
        )

    with controller:
        if args.interactive:
            run_interactive(controller)
        else:
            run_script(controller, actions, args.quiet)

    view = controller.view()
    if args.quiet:
        print(" ".join(f"{rt.value}={view.resources[rt]}" for rt in ResourceType))
    elif not args.interactive:
        console.print()
        render(view, language)

    if args.export:
        args.export.write_text(
            json.dumps(build_report(controller), indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
        console.print(f"\n[green]✓ Exported to {args.export}[/green]")

    return 0


if __name__ == "__main__":
    sys.exit(main())
