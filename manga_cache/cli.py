from __future__ import annotations

import argparse
import asyncio
import json
import sys
import uuid
from typing import Any, Sequence

import aiohttp

from manga_cache.transport.http.stats_app import PERFORMANCE_STATS_PATH, REQUEST_ID_HEADER


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="manga-cache")
    parser.add_argument(
        "--target",
        default="http://127.0.0.1:8080",
        help="base URL of the cache stats server",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=5.0,
        help="request timeout in seconds",
    )
    parser.add_argument(
        "--request-id",
        default=None,
        help="override request id sent as x-request-id",
    )
    parser.add_argument(
        "--show-request-id",
        action="store_true",
        help="print the server x-request-id response header to stderr",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("stats", help="print cache statistics as json")
    subparsers.add_parser("clear", help="drop every cache entry and reset counters")

    return parser


async def _call(
    session: aiohttp.ClientSession,
    method: str,
    url: str,
    *,
    request_id: str,
    show_request_id: bool,
) -> tuple[int, dict[str, Any]]:
    async with session.request(method, url, headers={REQUEST_ID_HEADER: request_id}) as resp:
        response_request_id = resp.headers.get(REQUEST_ID_HEADER)
        if show_request_id and response_request_id:
            print(f"{REQUEST_ID_HEADER}={response_request_id}", file=sys.stderr)
        payload = await resp.json()
        return resp.status, payload


async def run(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    request_id = args.request_id or uuid.uuid4().hex
    url = args.target.rstrip("/") + PERFORMANCE_STATS_PATH
    timeout = aiohttp.ClientTimeout(total=args.timeout)

    try:
        async with aiohttp.ClientSession(timeout=timeout) as session:
            if args.command == "stats":
                status, payload = await _call(
                    session,
                    "GET",
                    url,
                    request_id=request_id,
                    show_request_id=args.show_request_id,
                )
                if status != 200 or not payload.get("success"):
                    print(f"error: {payload.get('error', status)}", file=sys.stderr)
                    return 2
                print(json.dumps(payload["stats"]["cache"]))
                return 0

            if args.command == "clear":
                status, payload = await _call(
                    session,
                    "DELETE",
                    url,
                    request_id=request_id,
                    show_request_id=args.show_request_id,
                )
                if status != 200 or not payload.get("success"):
                    print(f"error: {payload.get('error', status)}", file=sys.stderr)
                    return 2
                print("OK")
                return 0

            parser.error(f"unknown command: {args.command}")
            return 2
    except aiohttp.ClientError as exc:
        print(f"error: request failed: {exc}", file=sys.stderr)
        return 2
    except Exception as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2


def main() -> None:
    raise SystemExit(asyncio.run(run()))


if __name__ == "__main__":
    main()
