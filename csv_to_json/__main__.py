from __future__ import annotations

import uvicorn

from .config import get_settings


def run() -> None:
    settings = get_settings()
    uvicorn.run("csv_to_json.main:app", host=settings.host, port=settings.port, reload=False)


if __name__ == "__main__":
    run()
