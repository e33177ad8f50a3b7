#!/usr/bin/env python3
"""CLI entry point for the Kirby content sync."""

import argparse
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

from .core.client import KirbyClient
from .core.discovery import discover_languages, fetch_global
from .core.inspector import inspect_resource
from .core.lifecycle import BuildLifecycle
from .core.logger import SyncLogger
from .core.orchestrator import SyncOrchestrator, SyncStats
from .core.state import HashStore
from .errors import KirbySyncError
from .models.config import SyncConfig

console = Console()

DEFAULT_CONFIG = Path("kirby-sync.yaml")


def load_config(args: argparse.Namespace) -> SyncConfig:
    """Resolve config from the --config file (if any) and the environment."""
    config_path = Path(args.config) if getattr(args, "config", None) else DEFAULT_CONFIG
    return SyncConfig.resolve(config_path)


def make_logger(config: SyncConfig) -> SyncLogger:
    return SyncLogger(console=console, verbose=config.verbose, debug_tracebacks=config.verbose)


def _render_stats(stats: SyncStats) -> None:
    """Render per-language counters as a table."""
    table = Table(title=f"\n{stats.mode.value.title() if stats.mode else 'Sync'} sync")
    table.add_column("Language")
    table.add_column("Written", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Skipped", justify="right")

    for p in stats.passes:
        table.add_row(p.label, str(p.changed_files), str(p.total_files), str(len(p.skipped)))

    console.print(table)
    if stats.fell_back:
        console.print("[yellow]Incremental sync failed and was replaced by a full sync")


def cmd_sync(args: argparse.Namespace) -> int:
    """Run a content sync."""
    try:
        config = load_config(args).validate()
    except ValueError as e:
        console.print(f"[red]Configuration error: {e}")
        return 1

    orchestrator = SyncOrchestrator(config, logger=make_logger(config))
    force = True if args.full else None

    try:
        orchestrator.run(force_full_sync=force)
    except KirbySyncError as e:
        console.print(f"[red]Sync failed: {e}")
        return 1

    _render_stats(orchestrator.stats)
    return 0


def cmd_pre_build(args: argparse.Namespace) -> int:
    """Build hook: restore state and sync before rendering."""
    try:
        config = load_config(args)
    except ValueError as e:
        console.print(f"[red]Configuration error: {e}")
        return 1

    lifecycle = BuildLifecycle(config, logger=make_logger(config))
    try:
        lifecycle.on_pre_build()
    except (KirbySyncError, ValueError) as e:
        console.print(f"[red]Build aborted: {e}")
        return 1
    return 0


def cmd_post_build(args: argparse.Namespace) -> int:
    """Build hook: persist sync state to the build cache."""
    config = load_config(args)
    BuildLifecycle(config, logger=make_logger(config)).on_post_build()
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    """Show sync state."""
    config = load_config(args)
    store = HashStore(config.state_file, logger=make_logger(config))
    status = store.status(store.load())

    console.print(f"\n[bold]State File:[/bold] {status['state_file']}")
    console.print(f"[bold]Content Dir:[/bold] {config.content_dir}")
    console.print(f"[bold]Version:[/bold] {status['version']}")
    console.print(f"[bold]Last Sync:[/bold] {status['last_sync'] or 'Never'}")
    console.print(f"[bold]Tracked Resources:[/bold] {status['tracked_resources']}")

    if status["resources"]:
        table = Table()
        table.add_column("Resource")
        table.add_column("Hash")
        for r in status["resources"]:
            table.add_row(r["url"], r["hash"])
        console.print(table)
    else:
        console.print("[dim]Nothing tracked yet. Run 'sync' to start.[/dim]")

    return 0


def cmd_verify(args: argparse.Namespace) -> int:
    """Verify the CMS is reachable and report its languages."""
    try:
        config = load_config(args).validate()
    except ValueError as e:
        console.print(f"[red]Configuration error: {e}")
        return 1

    console.print(f"Checking {config.api_base_url} ...", style="blue")
    client = KirbyClient(config.api_base_url, retries=1, timeout=config.timeout)
    try:
        _, global_config = fetch_global(client)
    except KirbySyncError as e:
        console.print(f"[red]CMS check failed: {e}")
        return 1

    languages = discover_languages(global_config)
    console.print("[green]CMS reachable")
    console.print(f"  Default language: {global_config.default_language}")
    console.print(f"  Languages: {', '.join(languages)}")
    if global_config.frontend_url:
        console.print(f"  Frontend URL: {global_config.frontend_url}")
    return 0


def cmd_inspect(args: argparse.Namespace) -> int:
    """Fetch and display a single CMS document."""
    try:
        config = load_config(args).validate()
    except ValueError as e:
        console.print(f"[red]Configuration error: {e}")
        return 1

    client = KirbyClient(config.api_base_url, retries=1, timeout=config.timeout)
    try:
        inspect_resource(
            client,
            args.uri,
            language=args.lang,
            save_to=Path(args.save) if args.save else None,
            console=console,
        )
    except KirbySyncError as e:
        console.print(f"[red]Fetch failed: {e}")
        return 1
    return 0


def main() -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="kirby-sync",
        description="Mirror Kirby CMS content into a local directory for static site builds",
    )
    parser.add_argument("--config", help=f"YAML config file (default: {DEFAULT_CONFIG})")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    sync_parser = subparsers.add_parser("sync", help="Sync content from the CMS")
    sync_parser.add_argument("--full", action="store_true", help="Force a full resync")

    subparsers.add_parser("pre-build", help="Build hook: restore cached state and sync")
    subparsers.add_parser("post-build", help="Build hook: save state to the build cache")
    subparsers.add_parser("status", help="Show sync state")
    subparsers.add_parser("verify", help="Check CMS connectivity")

    inspect_parser = subparsers.add_parser("inspect", help="Inspect a CMS document (debug tool)")
    inspect_parser.add_argument("uri", help="Page uri, e.g. 'about' or 'index.json'")
    inspect_parser.add_argument("--lang", help="Language code prefix")
    inspect_parser.add_argument("--save", help="Save response to file")

    args = parser.parse_args()

    if args.command == "sync":
        return cmd_sync(args)
    elif args.command == "pre-build":
        return cmd_pre_build(args)
    elif args.command == "post-build":
        return cmd_post_build(args)
    elif args.command == "status":
        return cmd_status(args)
    elif args.command == "verify":
        return cmd_verify(args)
    elif args.command == "inspect":
        return cmd_inspect(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
