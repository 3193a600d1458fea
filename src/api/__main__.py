"""Run the caption server: python -m src.api [--host HOST] [--port PORT]"""
import argparse
import os

import uvicorn

from src.api.app import create_app
from src.api.logging_config import setup_server_logging
from src.api.settings import get_settings

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="LiveCaption API server")
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.environ.get("PORT", "8000")),
        help="Port to bind (default: 8000 or PORT env var)",
    )
    parser.add_argument("--host", type=str, default="0.0.0.0", help="Host to bind")
    args = parser.parse_args()

    setup_server_logging(get_settings())
    uvicorn.run(create_app(), host=args.host, port=args.port, log_config=None)
