"""CLI entrypoint."""
from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from atm_locator import config
from atm_locator.discovery import build_discovery
from atm_locator.reporting import dumps_payload, write_json_object


def _repo_root() -> Path:
    return Path(__file__).resolve().parent


def load_env(path: str = ".env", root_dir: Optional[Path] = None) -> None:
    """Optionally load a repo-root .env file without overriding real env vars."""
    root = Path(root_dir) if root_dir else _repo_root()
    env_path = (root / path).resolve()
    if not env_path.exists():
        return
    load_dotenv(dotenv_path=env_path, override=False)


def _env_len(name: str) -> int:
    return len((os.environ.get(name) or "").strip())


def parse_args(argv: Optional[list] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Locate nearby brand ATMs")
    parser.add_argument("--query", type=str, default=None, help="Free-text location, e.g. 'times square new york'")
    parser.add_argument("--lat", type=float, default=None)
    parser.add_argument("--lon", type=float, default=None)
    parser.add_argument("--radius-m", type=float, default=None, help="Search radius in meters (coordinate mode)")
    parser.add_argument("--limit", type=int, default=None, help="Max results (1-25, default 5)")
    parser.add_argument("--config", type=str, default=None, help="Path to locator_config.json")
    parser.add_argument("--out", type=str, default=None, help="Also write the payload JSON to this path")
    parser.add_argument("--preflight", action="store_true", help="Report configuration without network calls")
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args(argv)


def build_request(args: argparse.Namespace) -> Dict[str, Any]:
    request: Dict[str, Any] = {}
    if args.query is not None:
        request["query"] = args.query
    if args.lat is not None:
        request["lat"] = args.lat
    if args.lon is not None:
        request["lon"] = args.lon
    if args.radius_m is not None:
        request["radius_m"] = args.radius_m
    if args.limit is not None:
        request["limit"] = args.limit
    return request


def run_preflight() -> int:
    ok = True
    source = config.brand_search_source()
    print(f"Brand search source: {source}")
    print(f"SERPAPI_KEY length: {_env_len('SERPAPI_KEY')}")
    if source == "serpapi" and not config.serpapi_key():
        print("SerpApi key: MISSING")
        ok = False

    endpoints = config.overpass_endpoints()
    if endpoints:
        print(f"Overpass endpoints: {', '.join(endpoints)}")
    else:
        print("Overpass endpoints: MISSING")
        ok = False

    print(f"Geocoder User-Agent: {config.user_agent()}")
    print(f"Brand profile: {config.BRAND_NAME} {config.CATEGORY_NAME}")
    print("Preflight: PASS" if ok else "Preflight: FAIL")
    return 0 if ok else 1


def main(argv: Optional[list] = None) -> int:
    load_env()
    args = parse_args(argv)
    config.load_locator_config(args.config)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.preflight:
        return run_preflight()

    discovery = build_discovery()
    payload = discovery.discover_payload(build_request(args))

    print(dumps_payload(payload))
    if args.out:
        out_path = Path(args.out).expanduser().resolve()
        try:
            write_json_object(str(out_path), payload)
        except OSError as exc:
            print(f"Could not write {out_path}: {exc}", file=sys.stderr)
            return 1
    return 1 if "error" in payload else 0


if __name__ == "__main__":
    raise SystemExit(main())
