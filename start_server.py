#!/usr/bin/env python3
"""
Chat relay development server.

Starts uvicorn with auto-reload on the configured host and port, watching
only the package sources.
"""

import os
import sys
from pathlib import Path

import uvicorn

from chat_server.config import get_config


def main():
    """Start the chat relay server with uvicorn and hot reload."""

    # Set working directory to project root
    project_root = Path(__file__).parent
    os.chdir(project_root)

    config = get_config()
    host = config.server.host
    port = config.server.port
    app_module = "chat_server.main:app"

    print(f"Starting chat relay server on {host}:{port}")
    print(f"App module: {app_module}")

    try:
        uvicorn.run(
            app_module,
            host=host,
            port=port,
            reload=True,
            reload_dirs=[str(project_root / "chat_server")],
            reload_excludes=["chat_server/tests/*"],
            log_config=None,
            access_log=True,
        )
    except KeyboardInterrupt:
        print("\nServer shutdown requested by user")
        sys.exit(0)


if __name__ == "__main__":
    main()
