from __future__ import annotations

import argparse
import sys
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.table import Table

from .auth import client_from_headers, headers_from_env
from .config import Settings
from .dispatcher import SUCCESS, handle_function, resolve_playlist_link
from .errors import PlaylistifyError
from .log_utils import setup_logging
from .types import Criterion, FunctionType
from .utils import brief_id

console = Console()


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="playlistify",
        description="Merge, clean, sort or split Spotify playlists into new playlists",
    )
    p.add_argument("function", choices=[f.value for f in FunctionType])
    p.add_argument(
        "playlists",
        nargs="+",
        help="Playlist ids, open.spotify.com links or spotify:playlist: URIs",
    )
    p.add_argument("--criteria", choices=[c.value for c in Criterion], default=None, help="Required for sort/split")
    p.add_argument("--name", default=None, help="Name (or name prefix) of the new playlist(s)")
    visibility = p.add_mutually_exclusive_group()
    visibility.add_argument("--public", dest="public", action="store_true", default=None)
    visibility.add_argument("--private", dest="public", action="store_false")
    p.add_argument("--shuffle", action="store_true")
    p.add_argument("--env-file", default=None, help="Load settings from this .env file")
    p.add_argument("-v", "--verbose", action="store_true")
    return p.parse_args(argv)


def build_request(args: argparse.Namespace, playlists: List[Dict[str, str]]) -> Dict[str, Any]:
    options: Dict[str, Any] = {"shuffle": args.shuffle}
    if args.name:
        options["name"] = args.name
    if args.public is not None:
        options["public"] = args.public
    return {
        "functionType": args.function,
        "playlists": playlists,
        "criteria": args.criteria,
        "options": options,
    }


def print_result(function: str, result: Dict[str, Any]) -> None:
    created = result.get("newPlaylists") or [result]
    table = Table(title=f"{function}: {len(created)} playlist(s) created")
    table.add_column("Name")
    table.add_column("Tracks", justify="right")
    table.add_column("ID")
    for pl in created:
        table.add_row(pl["name"], str(pl["trackCount"]), brief_id(pl["id"]))
    console.print(table)
    if result.get("explicitRemoved") is not None:
        console.print(f"Explicit tracks in source: {result['explicitRemoved']}")


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    _, log_path = setup_logging(args.function, verbose=args.verbose)

    try:
        settings = Settings.from_env(args.env_file)
        sp = client_from_headers(headers_from_env(), settings)
        refs = [resolve_playlist_link(sp, value, settings) for value in args.playlists]
    except (PlaylistifyError, ValueError) as e:
        console.print(f"[red]✘ {e}[/red]")
        return 1

    for ref in refs:
        console.print(f"• {ref.name} ({brief_id(ref.id)})")

    request = build_request(args, [{"id": r.id, "name": r.name} for r in refs])
    response = handle_function(request, sp=sp, settings=settings, progress=True)
    if response["message"] != SUCCESS:
        console.print(f"[red]✘ {response['message']}[/red]")
        console.print(f"Log: {log_path}")
        return 1

    print_result(args.function, response["result"])
    console.print(f"Log: {log_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
