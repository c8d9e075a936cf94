#!/usr/bin/env python3
"""
Register and Verify Example

This example demonstrates:
- Building the service once from environment settings
- Checking configuration with the health report
- Registering a certificate file (or getting manual instructions)
- Verifying the same file afterwards

Without RPC_URL and CONTRACT_ADDRESS the simulated ledger answers.
"""

import asyncio
import json
import sys
from pathlib import Path

from certchain.service import build_service


async def run(path: Path, metadata: str | None) -> None:
    service = build_service()
    print("Health:", json.dumps(service.health().to_dict(), indent=2))

    data = path.read_bytes()

    registered = await service.register(data, metadata)
    print(f"Register ({registered.status_code}):")
    print(json.dumps(registered.to_dict(), indent=2))

    verified = await service.verify(data)
    print(f"Verify ({verified.status_code}):")
    print(json.dumps(verified.to_dict(), indent=2))


def main() -> None:
    if len(sys.argv) < 2:
        print("usage: register_and_verify.py FILE [METADATA]")
        raise SystemExit(1)
    metadata = sys.argv[2] if len(sys.argv) > 2 else None
    asyncio.run(run(Path(sys.argv[1]), metadata))


if __name__ == "__main__":
    main()
