import socket

import uvicorn

from spaced_review import app
from spaced_review.config import Settings, settings


def find_free_port(host: str) -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind((host, 0))
        return s.getsockname()[1]


def resolve_port(cfg: Settings) -> int:
    """The configured port, or a free one when SPACED_REVIEW_PORT is unset (0)."""
    if cfg.port:
        return cfg.port
    return find_free_port(cfg.host)


def serve(cfg: Settings = settings) -> None:
    port = resolve_port(cfg)
    # launchers read the chosen port from the first line of stdout
    print(f"PORT={port}", flush=True)
    uvicorn.run(app, host=cfg.host, port=port, log_level=cfg.log_level)


if __name__ == "__main__":
    serve()
