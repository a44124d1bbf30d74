"""Run the gateway with uvicorn: ``python -m restate``."""

from __future__ import annotations

import uvicorn

from restate.config import GatewayConfig


def main() -> None:
    config = GatewayConfig.from_env()
    uvicorn.run(
        "restate.main:app",
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
