"""
Container entrypoint for the Penguin Property Engine.

Binds to 0.0.0.0:$PORT for hosted deployment.
"""

import os
import uvicorn

from utils.config import Config
from utils.logging import configure_logging

if __name__ == "__main__":
    config = Config.load()
    configure_logging(config.log_level, config.log_format)

    port = int(os.getenv("PORT", "8000"))
    print(f"Starting Penguin Property Engine on port {port}")

    # Import app here to ensure clean module loading
    from web.app import app

    uvicorn.run(app, host="0.0.0.0", port=port)
