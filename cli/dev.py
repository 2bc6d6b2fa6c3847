"""CLI wrapper: Start the API with auto-reload against the local SQLite database."""

from __future__ import annotations

import os
import sys
from pathlib import Path

from cli._runner import run


def main() -> None:
    # The default DATABASE_URL_APP points into .local/
    Path(".local").mkdir(exist_ok=True)
    env = {**os.environ}
    env.setdefault("APP_ENV", "local")
    run(
        [
            sys.executable,
            "-m",
            "uvicorn",
            "hoopers.main:app",
            "--reload",
            "--host",
            "127.0.0.1",
            "--port",
            "8000",
            *sys.argv[1:],
        ],
        env=env,
    )
