"""CLI for evaluating a function request envelope or serving the guard over HTTP."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

import yaml
from pydantic import ValidationError

from .catalog import InstanceTypeCatalog
from .config import load_profile
from .logging_utils import configure_logging
from .runner import GenerationGuard, evaluate_payload


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    base = argparse.ArgumentParser(add_help=False)
    base.add_argument("--profile", default=None, help="Optional function profile YAML")
    base.add_argument("--log-level", default="INFO")

    parser = argparse.ArgumentParser(description="Current generation instance type guard")
    subparsers = parser.add_subparsers(dest="command", required=True)

    evaluate_parser = subparsers.add_parser("evaluate", parents=[base], help="Evaluate one request envelope")
    evaluate_parser.add_argument("--request", required=True, help="Path to a JSON or YAML request envelope")
    evaluate_parser.add_argument("--log-path", default=None)

    serve_parser = subparsers.add_parser("serve", parents=[base], help="Serve the guard over HTTP")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=9443)

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    configure_logging(args.log_level, log_path=getattr(args, "log_path", None))
    profile = load_profile(Path(args.profile) if args.profile else None)
    guard = GenerationGuard(InstanceTypeCatalog(), profile)

    if args.command == "serve":
        from .service import create_app

        app = create_app(guard=guard)
        app.run(host=args.host, port=args.port)
        return

    payload = yaml.safe_load(Path(args.request).read_text(encoding="utf-8")) or {}
    if not isinstance(payload, dict):
        raise SystemExit(f"request envelope must be an object: {args.request}")
    try:
        response = evaluate_payload(guard, payload)
    except ValidationError as exc:
        raise SystemExit(f"request envelope invalid: {exc}") from exc
    print(json.dumps(response, sort_keys=True))
    if any(item["severity"] == "SEVERITY_FATAL" for item in response["results"]):
        raise SystemExit(1)


if __name__ == "__main__":
    main()
