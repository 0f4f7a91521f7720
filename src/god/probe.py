"""
A tiny health probe client.

Container images built around god often ship no curl, so `god-probe` can be
used in a HEALTHCHECK instead: it prints the health report and exits 0 only
when the endpoint answered 200.
"""
import sys
import argparse
from typing import Optional, Sequence

import requests

from god import settings
from god.web.server import normalize_listen_addr


def default_health_url() -> str:
    addr = normalize_listen_addr(settings.HEALTH_LISTEN_ADDR or settings.DEFAULT_LISTEN_ADDR)
    host, _, port = addr.rpartition(":")
    if host in ("", "0.0.0.0"):
        host = "127.0.0.1"
    return f"http://{host}:{port}{settings.HEALTH_PATH}"


def check_health(url: str, timeout: float) -> int:
    """
    Queries the health endpoint once.

    :param url: Full URL of the health endpoint.
    :param timeout: Request timeout in seconds.
    :return: 0 if the endpoint reported healthy, 1 otherwise.
    """
    try:
        response = requests.get(url, timeout=timeout)
    except requests.exceptions.RequestException as e:
        print(f"Health check request to '{url}' failed: {e}", file=sys.stderr)
        return 1

    print(response.text, end="")
    return 0 if response.status_code == 200 else 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="god-probe", description="Query a god health endpoint.")
    parser.add_argument("url", nargs="?", default=None, help="Health endpoint URL (default derived from GOD_LISTEN_ADDR)")
    parser.add_argument("-t", "--timeout", type=float, default=settings.HEALTH_PROBE_TIMEOUT, help="Request timeout in seconds")
    args = parser.parse_args(argv)
    return check_health(args.url or default_health_url(), args.timeout)


def run() -> None:
    sys.exit(main())
