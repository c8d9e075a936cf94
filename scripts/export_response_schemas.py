"""Export the JSON Schemas of the certchain response payloads."""

from __future__ import annotations

import json
from pathlib import Path

from certchain.schemas import (
    ErrorResponse,
    HealthResponse,
    RegisterResponse,
    VerifyResponse,
)


def main() -> None:
    """Write one JSON Schema per response model to ``schemas/`` at the repo root."""

    output_dir = Path(__file__).resolve().parent.parent / "schemas"
    output_dir.mkdir(exist_ok=True)
    for model in (VerifyResponse, RegisterResponse, ErrorResponse, HealthResponse):
        schema = model.model_json_schema(by_alias=True)
        output_path = output_dir / f"{model.__name__}.json"
        output_path.write_text(json.dumps(schema, indent=2), encoding="utf-8")


if __name__ == "__main__":
    main()
