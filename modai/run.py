"""Backend launcher that sets Windows event loop policy before uvicorn starts."""
import asyncio
import os
import sys

if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsProactorEventLoopPolicy())

import uvicorn


def main() -> None:
    host = os.environ.get("MODAI_HOST", "127.0.0.1")
    port = int(os.environ.get("MODAI_PORT", "8765"))
    uvicorn.run("modai.main:app", host=host, port=port)


if __name__ == "__main__":
    main()
