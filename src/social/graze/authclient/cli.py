import argparse
import asyncio
import json
import logging
import os
import sys
from logging.config import dictConfig
from typing import Dict, List, Optional, Sequence

import sentry_sdk
from aiohttp import ClientError

from social.graze.authclient.config import Settings
from social.graze.authclient.context import RequestContext
from social.graze.authclient.errors import AuthError
from social.graze.authclient.http.manager import HttpManager
from social.graze.authclient.metrics import create_metrics_client


def configure_logging(logging_config_file: Optional[str] = None):
    logging_config_file = logging_config_file or os.getenv("LOGGING_CONFIG_FILE", "")

    if len(logging_config_file) > 0:
        with open(logging_config_file) as fl:
            dictConfig(json.load(fl))
        return

    logging.basicConfig()
    logging.getLogger().setLevel(logging.DEBUG)


def parse_pairs(values: Sequence[str], separator: str) -> Dict[str, str]:
    """Parse ``name<separator>value`` arguments into a dict."""
    pairs: Dict[str, str] = {}
    for value in values:
        name, found, rest = value.partition(separator)
        if not found or not name.strip():
            raise ValueError(f"expected name{separator}value, got {value!r}")
        pairs[name.strip()] = rest.strip()
    return pairs


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="authclient", description="Send one request through the auth client transport"
    )
    parser.add_argument("method", choices=["GET", "POST"], type=str.upper)
    parser.add_argument("url", help="Absolute URL of the endpoint.")
    parser.add_argument(
        "-H",
        "--header",
        action="append",
        default=[],
        help='Request header, "Name: value". Repeatable.',
    )
    parser.add_argument(
        "-d",
        "--data",
        action="append",
        default=[],
        help="Form field for POST requests, key=value. Repeatable.",
    )
    parser.add_argument(
        "--no-throw",
        action="store_true",
        help="Return the last response instead of failing on repeated 5xx.",
    )
    return parser


async def realMain(
    argv: Optional[List[str]] = None, settings: Optional[Settings] = None
) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = settings or Settings()

    if settings.sentry_dsn:
        sentry_sdk.init(dsn=settings.sentry_dsn, send_default_pii=False)

    try:
        headers = parse_pairs(args.header, ":")
        form = parse_pairs(args.data, "=")
    except ValueError as e:
        parser.error(str(e))

    metrics_client = create_metrics_client(settings)
    await metrics_client.connect()

    request_context = RequestContext(client_name="authclient-cli")
    try:
        async with HttpManager(settings=settings, metrics_client=metrics_client) as manager:
            if args.method == "GET":
                response = await manager.send_get(args.url, headers, request_context)
            elif args.no_throw:
                response = await manager.send_post_no_throw(
                    args.url, headers, form, request_context
                )
            else:
                response = await manager.send_post(args.url, headers, form, request_context)
    except (AuthError, ClientError, ValueError):
        logging.exception(
            "Request failed correlation_id=%s", request_context.correlation_id
        )
        return 1
    finally:
        await metrics_client.close()

    print(f"{response.status} {response.reason}")
    if response.body:
        print(response.body)
    return 0 if response.is_success else 2


def invoke():
    settings = Settings()
    configure_logging(settings.logging_config_file)
    sys.exit(asyncio.run(realMain(settings=settings)))


if __name__ == "__main__":
    invoke()
