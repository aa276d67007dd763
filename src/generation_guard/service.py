"""Flask service wrapper for the generation guard."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

from flask import Flask, jsonify, request
from pydantic import ValidationError

from .catalog import InstanceTypeCatalog
from .config import load_profile
from .errors import RequestEnvelopeError, reason_code
from .logging_utils import configure_logging
from .runner import GenerationGuard, evaluate_payload


def create_app(profile_path: str | None = None, guard: GenerationGuard | None = None) -> Flask:
    configure_logging()
    if guard is None:
        profile = load_profile(Path(profile_path) if profile_path else None)
        guard = GenerationGuard(InstanceTypeCatalog(), profile)

    app = Flask(__name__)

    @app.post("/v1/evaluate")
    def evaluate() -> Any:
        payload = request.get_json(force=True, silent=True)
        if not isinstance(payload, dict):
            return jsonify({"error": RequestEnvelopeError.code, "detail": "request body must be a JSON object"}), 400
        try:
            return jsonify(evaluate_payload(guard, payload))
        except ValidationError as exc:
            return jsonify({"error": RequestEnvelopeError.code, "detail": str(exc)}), 400
        except Exception as exc:  # pragma: no cover - defensive
            return jsonify({"error": reason_code(exc)}), 500

    @app.get("/v1/ops/health")
    def ops_health() -> Any:
        return jsonify(guard.health())

    return app


def main() -> None:
    parser = argparse.ArgumentParser(description="Generation guard service")
    parser.add_argument("--profile", default=None, help="Optional function profile YAML")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=9443)
    parser.add_argument("--debug", action="store_true")
    args = parser.parse_args()

    app = create_app(args.profile)
    app.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == "__main__":
    main()
