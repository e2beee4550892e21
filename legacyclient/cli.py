"""Command that fetches an http URL and prints the response head."""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Sequence

from .builder import Builder
from .errors import Error
from .messages import Request, Response
from .uri import Uri


async def _fetch(uri: Uri) -> Response:
    async with Builder().build_http() as client:
        return await client.request(Request(uri))


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command; returns the process exit status."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        print("Usage: client <url>", file=sys.stderr)
        return 0

    try:
        uri = Uri.parse(args[0])
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if uri.scheme != "http":
        print("This example only works with 'http' URLs.", file=sys.stderr)
        return 0

    try:
        response = asyncio.run(_fetch(uri))
    except (Error, ValueError) as exc:
        cause = f": {exc.__cause__}" if exc.__cause__ is not None else ""
        print(f"Error: {exc}{cause}", file=sys.stderr)
        return 1

    status = f"{response.status} {response.reason}".rstrip()
    print(f"{response.version} {status}", file=sys.stderr)
    for name, value in response.headers:
        print(f"{name}: {value}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())