"""
WebScan command line interface.

Usage:
    webscan crawl https://example.com --max-depth 2
    webscan sitemap https://example.com --limit 500 --output sitemap.xml
    webscan check-links https://example.com/blog
    webscan extract-links https://example.com --base-url https://example.com/docs/
    webscan find-patterns https://shop.example.com "product/\\d+"
    webscan fetch-page https://example.com --selector "#main-content"
"""

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

import click
from rich.console import Console
from rich.table import Table

from . import __version__
from .core import ValidationError, WebScanConfig, WebScanError, configure_logging
from .core.config import MAX_CRAWL_DEPTH, MAX_LINK_LIMIT, MAX_SITEMAP_LIMIT
from .core.toolkit import WebScanToolkit


# Tool output goes to stdout; everything else goes here
console = Console(stderr=True)

EXIT_FAILURE = 1
EXIT_INVALID_INPUT = 2


def load_config(config_path: Optional[str], log_level: Optional[str]) -> WebScanConfig:
    """Build the config from an optional YAML file and CLI overrides"""
    config = WebScanConfig.from_yaml(config_path) if config_path else WebScanConfig.from_env()
    if log_level:
        config = config.merge({"log_level": log_level})
    return config


def run_tool(
    ctx: click.Context,
    call: Callable[[WebScanToolkit], Awaitable[Any]],
    overrides: Optional[dict] = None,
) -> Any:
    """
    Run one toolkit call and map WebScan errors to exit codes.

    Args:
        ctx: click context holding the loaded config
        call: Coroutine function receiving an initialized toolkit
        overrides: Extra config values for this invocation

    Returns:
        Whatever the toolkit call returned
    """
    config: WebScanConfig = ctx.obj["config"]

    async def _run():
        async with WebScanToolkit(config.merge(overrides or {})) as toolkit:
            return await call(toolkit)

    try:
        with console.status("[cyan]Working...", spinner="dots"):
            return asyncio.run(_run())

    except ValidationError as e:
        console.print(f"[bold red]Invalid input:[/bold red] {e.message}")
        sys.exit(EXIT_INVALID_INPUT)

    except WebScanError as e:
        console.print(f"[bold red]Error:[/bold red] {e.message}")
        sys.exit(EXIT_FAILURE)

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(EXIT_FAILURE)


def emit(text: str, output: Optional[str]):
    """Write tool output to stdout or to a file"""
    if output:
        output_path = Path(output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(text if text.endswith("\n") else text + "\n", encoding="utf-8")
        console.print(f"[green]Results saved to:[/green] {output_path}")
    else:
        click.echo(text)


def emit_json(data: Any, output: Optional[str]):
    emit(json.dumps(data, indent=2, ensure_ascii=False), output)


output_option = click.option(
    "--output", "-o", type=click.Path(dir_okay=False), help="Write results to a file instead of stdout"
)


@click.group()
@click.version_option(version=__version__, prog_name="WebScan")
@click.option(
    "--config", "config_path", type=click.Path(exists=True, dir_okay=False),
    help="YAML file with timeouts, user agent and concurrency settings",
)
@click.option(
    "--log-level", type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    help="Log level (default: WEBSCAN_LOG_LEVEL / LOG_LEVEL or info)",
)
@click.option("--json-logs", is_flag=True, help="Emit logs as JSON lines on stderr")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[str], log_level: Optional[str], json_logs: bool):
    """
    WebScan - Website crawling and link analysis tools.

    Crawls sites, builds sitemaps, checks links and converts pages to Markdown.
    """
    try:
        config = load_config(config_path, log_level.lower() if log_level else None)
    except ValidationError as e:
        console.print(f"[bold red]Invalid configuration:[/bold red] {e.message}")
        sys.exit(EXIT_INVALID_INPUT)

    configure_logging(config.log_level, json_output=json_logs)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


@cli.command()
@click.argument("url")
@click.option("--max-depth", type=int, help=f"Link hops to follow, 0-{MAX_CRAWL_DEPTH} (default: 2)")
@click.option("--crawl-timeout", type=float, help="Overall crawl deadline in seconds")
@output_option
@click.pass_context
def crawl(ctx, url: str, max_depth: Optional[int], crawl_timeout: Optional[float], output: Optional[str]):
    """
    Crawl a website and list every same-origin URL found.

    Example:
        webscan crawl https://example.com --max-depth 3
    """
    result = run_tool(
        ctx,
        lambda toolkit: toolkit.crawl(url, max_depth=max_depth),
        overrides={"crawl_timeout": crawl_timeout},
    )
    emit_json(result, output)

    if result["errors"]:
        console.print(f"[yellow]{len(result['errors'])} page(s) could not be fetched[/yellow]")


@cli.command()
@click.argument("url")
@click.option("--max-depth", type=int, help=f"Link hops to follow, 0-{MAX_CRAWL_DEPTH} (default: 2)")
@click.option("--limit", type=int, help=f"Maximum URLs in the sitemap, 1-{MAX_SITEMAP_LIMIT} (default: 1000)")
@click.option("--crawl-timeout", type=float, help="Overall crawl deadline in seconds")
@output_option
@click.pass_context
def sitemap(
    ctx,
    url: str,
    max_depth: Optional[int],
    limit: Optional[int],
    crawl_timeout: Optional[float],
    output: Optional[str],
):
    """
    Crawl a website and print an XML sitemap.

    Example:
        webscan sitemap https://example.com --output sitemap.xml
    """
    sitemap_xml = run_tool(
        ctx,
        lambda toolkit: toolkit.sitemap(url, max_depth=max_depth, limit=limit),
        overrides={"crawl_timeout": crawl_timeout},
    )
    emit(sitemap_xml.rstrip("\n"), output)


@cli.command("check-links")
@click.argument("url")
@output_option
@click.pass_context
def check_links(ctx, url: str, output: Optional[str]):
    """
    Check every link on a page for reachability.

    Example:
        webscan check-links https://example.com/blog
    """
    results = run_tool(ctx, lambda toolkit: toolkit.check_links(url))
    emit_json(results, output)

    broken = sum(1 for r in results if r["status"] != "valid")
    if broken:
        console.print(f"[yellow]{broken} of {len(results)} link(s) broken or invalid[/yellow]")


@cli.command("extract-links")
@click.argument("url")
@click.option("--base-url", help="Only keep links starting with this URL prefix")
@click.option("--limit", type=int, help=f"Maximum links to return, 1-{MAX_LINK_LIMIT} (default: 100)")
@output_option
@click.pass_context
def extract_links(ctx, url: str, base_url: Optional[str], limit: Optional[int], output: Optional[str]):
    """
    List the distinct links on a page with their text.

    Example:
        webscan extract-links https://example.com --base-url https://example.com/docs/
    """
    links = run_tool(ctx, lambda toolkit: toolkit.extract_links(url, base_url=base_url, limit=limit))
    emit_json(links, output)


@cli.command("find-patterns")
@click.argument("url")
@click.argument("pattern")
@output_option
@click.pass_context
def find_patterns(ctx, url: str, pattern: str, output: Optional[str]):
    """
    List links on a page whose URL matches a regular expression.

    Example:
        webscan find-patterns https://shop.example.com "product/\\d+"
    """
    links = run_tool(ctx, lambda toolkit: toolkit.find_patterns(url, pattern))
    emit_json(links, output)


@cli.command("fetch-page")
@click.argument("url")
@click.option("--selector", help="CSS selector of the element to convert (default: <body>)")
@output_option
@click.pass_context
def fetch_page(ctx, url: str, selector: Optional[str], output: Optional[str]):
    """
    Fetch a page and print it as Markdown.

    Example:
        webscan fetch-page https://example.com --selector "#main-content"
    """
    result = run_tool(ctx, lambda toolkit: toolkit.fetch_page(url, selector=selector))

    if selector and result["selector_used"] is None:
        console.print(f"[yellow]Selector {selector!r} matched nothing; converted <body>[/yellow]")

    emit(result["markdown_content"], output)


@cli.command()
def version():
    """Show version information and available tools"""
    console.print(f"\n[bold cyan]WebScan v{__version__}[/bold cyan]")
    console.print("[cyan]Website crawling and link analysis tools[/cyan]\n")

    table = Table(title="Tools")
    table.add_column("Command", style="cyan", no_wrap=True)
    table.add_column("Output", style="green")
    table.add_column("Notes", style="yellow")

    table.add_row("crawl", "JSON", f"Same-origin URLs up to depth {MAX_CRAWL_DEPTH}")
    table.add_row("sitemap", "XML", "sitemaps.org 0.9, lastmod = discovery date")
    table.add_row("check-links", "JSON", "HEAD probe per distinct link")
    table.add_row("extract-links", "JSON", "Optional prefix filter")
    table.add_row("find-patterns", "JSON", "Python regex on absolute URLs")
    table.add_row("fetch-page", "Markdown", "Optional CSS selector")

    console.print(table)
    console.print()
