"""
Main CLI entry point for Hybrid Router.
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .clients.base import CanonicalRequest, Message, Role
from .config import Config, create_sample_config, get_config_path, load_config
from .errors import AllProvidersFailed, CollaborationFailed, RouterError
from .hybrid import HybridRouter
from .orchestration import ResultAggregator
from .registry import ProviderRegistry
from .routing import OperationClass, OperationRouter
from .stats import CostRates

console = Console()


def configure_logging(level: str = "INFO"):
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
        force=True,
    )
    # keep transport chatter out of the router's own log lines
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)


def print_providers(registry: ProviderRegistry, router: OperationRouter):
    table = Table(title="Providers", show_header=True, header_style="bold cyan")
    table.add_column("Provider", style="yellow")
    table.add_column("Kind")
    table.add_column("Multiplier", justify="right")
    table.add_column("Credential")
    table.add_column("Models", style="green")

    for descriptor in registry:
        name = descriptor.name + (" [dim](aggregator)[/dim]" if descriptor.aggregator else "")
        credential = "[green]set[/green]" if descriptor.api_key else "[red]missing[/red]"
        models = "\n".join(f"{k} → {v}" for k, v in descriptor.models.items()) or "-"
        table.add_row(name, descriptor.kind.value, f"{descriptor.cost_multiplier:g}", credential, models)
    console.print(table)

    routes = Table(title="Routing", show_header=True, header_style="bold cyan")
    routes.add_column("Operation", style="yellow")
    routes.add_column("Candidates", style="green")
    for operation, providers in router.describe().items():
        routes.add_row(operation, ", ".join(providers) or "-")
    console.print(routes)


def print_stats(router: HybridRouter):
    table = Table(title="Provider Stats", show_header=True, header_style="bold cyan")
    table.add_column("Provider", style="yellow")
    table.add_column("OK", justify="right")
    table.add_column("Failed", justify="right")
    table.add_column("Success", justify="right")
    table.add_column("Tokens", justify="right")
    table.add_column("Cost", justify="right")
    table.add_column("Latency", justify="right")
    table.add_column("Health")

    for pid, s in router.get_provider_stats().items():
        rate = "n/a" if s["success_rate"] is None else f"{s['success_rate']:.0%}"
        latency = "n/a" if s["average_latency"] is None else f"{s['average_latency']:.2f}s"
        health = "[green]healthy[/green]" if s["health"]["effective"] else "[red]unhealthy[/red]"
        table.add_row(
            pid, str(s["success_count"]), str(s["error_count"]), rate,
            str(s["total_tokens"]), f"${s['total_cost']:.6f}", latency, health,
        )
    console.print(table)


def print_pricing(config: Config, registry: ProviderRegistry):
    rates = CostRates(config.input_rate, config.output_rate)
    table = Table(title="Effective Pricing (per million tokens)", show_header=True, header_style="bold cyan")
    table.add_column("Provider", style="yellow")
    table.add_column("Input", justify="right")
    table.add_column("Output", justify="right")
    for descriptor in registry:
        table.add_row(
            descriptor.name,
            f"${rates.input_rate * descriptor.cost_multiplier:.2f}",
            f"${rates.output_rate * descriptor.cost_multiplier:.2f}",
        )
    console.print(table)


async def run_ask(router: HybridRouter, args) -> int:
    messages = []
    if args.system:
        messages.append(Message(role=Role.SYSTEM, content=args.system))
    messages.append(Message(role=Role.USER, content=args.prompt))
    request = CanonicalRequest(
        model=args.model,
        messages=messages,
        temperature=args.temperature,
        max_tokens=args.max_tokens,
        operation=args.operation,
    )

    try:
        response = await router.execute(request, timeout=args.timeout)
    except AllProvidersFailed as e:
        console.print(f"[red]{e}[/red]")
        return 1

    console.print(Panel(
        response.text,
        title=f"[bold blue]{response.provider}[/bold blue] [dim]{response.model}[/dim]",
        subtitle=f"{response.usage.total_tokens} tokens, ${response.cost:.6f}",
        border_style="blue",
    ))
    if args.stats:
        print_stats(router)
    return 0


async def run_collaborate(router: HybridRouter, args) -> int:
    try:
        result = await router.collaborate(args.prompt, args.operation)
    except CollaborationFailed as e:
        console.print(f"[red]{e}[/red]")
        return 1

    console.print(Panel(
        ResultAggregator().format_for_display(result),
        title="[bold magenta]Collaboration[/bold magenta]",
        subtitle=f"${result.total_cost:.6f} via {', '.join(result.providers_used)}",
        border_style="magenta",
    ))
    if args.stats:
        print_stats(router)
    return 0


async def run_probe(router: HybridRouter) -> int:
    results = await router.probe()
    table = Table(title="Health Probe", show_header=True, header_style="bold cyan")
    table.add_column("Provider", style="yellow")
    table.add_column("Result")
    for pid, ok in results.items():
        table.add_row(pid, "[green]ok[/green]" if ok else "[red]failed[/red]")
    console.print(table)
    return 0 if any(results.values()) else 1


async def run_command(config: Config, args) -> int:
    async with HybridRouter(config) as router:
        if args.command == "ask":
            return await run_ask(router, args)
        if args.command == "collaborate":
            return await run_collaborate(router, args)
        if args.command == "probe":
            return await run_probe(router)
    return 0


def build_parser() -> argparse.ArgumentParser:
    operations = [op.value for op in OperationClass]

    parser = argparse.ArgumentParser(description="Hybrid Router - multi-provider LLM routing")
    parser.add_argument("--log-level", type=str, help="Override the configured log level")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("init", help="Create a sample configuration file")
    subparsers.add_parser("providers", help="List providers and routing")
    subparsers.add_parser("stats", help="Show effective per-provider pricing")
    subparsers.add_parser("probe", help="Run one health probe round")

    ask = subparsers.add_parser("ask", help="Send one prompt through the router")
    ask.add_argument("prompt")
    ask.add_argument("--model", "-m", default="gpt-5", help="Canonical model name")
    ask.add_argument("--operation", "-o", choices=operations, default=OperationClass.STANDARD.value)
    ask.add_argument("--system", "-s", help="System prompt")
    ask.add_argument("--timeout", "-t", type=float, help="Overall deadline in seconds")
    ask.add_argument("--temperature", type=float, default=0.7)
    ask.add_argument("--max-tokens", type=int, default=2000)
    ask.add_argument("--stats", action="store_true", help="Print provider stats afterwards")

    collaborate = subparsers.add_parser("collaborate", help="Run a three-role collaboration")
    collaborate.add_argument("prompt")
    collaborate.add_argument("--operation", "-o", choices=operations, default=OperationClass.STANDARD.value)
    collaborate.add_argument("--stats", action="store_true", help="Print provider stats afterwards")

    return parser


def main(argv: Optional[list[str]] = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "init":
        created = create_sample_config()
        if created is None:
            console.print(f"[yellow]Config already exists at {get_config_path()}[/yellow]")
        else:
            console.print(f"[green]Created sample config at {created}[/green]")
            console.print("[dim]Edit it to add your API keys or set the *_API_KEY environment variables.[/dim]")
        return

    try:
        config = load_config()
        configure_logging(args.log_level or config.log_level)

        if args.command in (None, "providers"):
            registry = ProviderRegistry.from_config(config)
            print_providers(registry, OperationRouter(registry, config.routing))
            return
        if args.command == "stats":
            print_pricing(config, ProviderRegistry.from_config(config))
            return

        exit_code = asyncio.run(run_command(config, args))
    except (RouterError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(130)

    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
