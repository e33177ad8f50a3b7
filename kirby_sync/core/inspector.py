"""CMS response inspection for debugging content issues."""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from .client import KirbyClient

# Fields shown in the metadata table when present
KEY_FIELDS = [
    "uri",
    "title",
    "intendedTemplate",
    "modified",
    "status",
    "num",
]


def extract_metadata(data: Any) -> dict[str, Any]:
    """Extract key metadata fields from a CMS document."""
    if not isinstance(data, dict):
        return {}
    return {key: data[key] for key in KEY_FIELDS if key in data}


def inspect_resource(
    client: KirbyClient,
    uri: str,
    language: str | None = None,
    save_to: Path | None = None,
    console: Console | None = None,
) -> Any:
    """Fetch one CMS document and display it.

    Args:
        client: KirbyClient to fetch with
        uri: Page uri or file name (".json" is appended if missing)
        language: Optional language prefix
        save_to: Optional path to save the response with fetch metadata
        console: Console to print to

    Returns:
        The fetched document

    Raises:
        ResourceUnavailableError: If the document cannot be fetched
    """
    console = console or Console()
    path = uri if uri.endswith(".json") else f"{uri}.json"
    url = client.resource_url(path, language)

    console.print(f"\n[bold blue]Fetching:[/bold blue] {url}")
    data = client.fetch_json(url)

    metadata = extract_metadata(data)
    if metadata:
        table = Table(show_header=False, box=None)
        table.add_column("Field", style="cyan")
        table.add_column("Value", style="green")
        for key, value in metadata.items():
            table.add_row(key, str(value))
        console.print(table)

    if isinstance(data, list):
        console.print(f"[bold]{len(data)} entries[/bold]")
    elif isinstance(data, dict) and isinstance(data.get("items"), list):
        console.print(f"[bold]Section with {len(data['items'])} items[/bold]")

    syntax = Syntax(json.dumps(data, indent=2, ensure_ascii=False), "json", theme="monokai")
    console.print(Panel(syntax, title=path, expand=False))

    if save_to is not None:
        save_response(data, Path(save_to), url)
        console.print(f"\n[green]Response saved to:[/green] {save_to}")

    return data


def save_response(response: Any, filepath: Path, url: str) -> None:
    """Save a fetched document together with where and when it was fetched."""
    filepath.parent.mkdir(parents=True, exist_ok=True)
    output = {
        "metadata": {
            "url": url,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
        "response": response,
    }
    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(output, f, indent=2, ensure_ascii=False)
        f.write("\n")
