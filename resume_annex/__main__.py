#!/usr/bin/env python3
"""
Main entry point for the Resume Annex API server.
Allows running the package with: python -m resume_annex
"""
import sys

import uvicorn

from .config import get_config, ConfigurationError
from .utils import setup_logging


def main():
    """Command-line interface for the API server."""

    # Load configuration from environment
    try:
        config = get_config()
    except ConfigurationError as e:
        print(f"❌ Configuration Error: {e}")
        sys.exit(1)

    host = config.host
    port = config.port
    for arg in sys.argv[1:]:
        if arg.startswith("--host="):
            host = arg.split("=", 1)[1]
        elif arg.startswith("--port="):
            try:
                port = int(arg.split("=", 1)[1])
            except ValueError:
                print("❌ Invalid port value. Use --port=8000")
                sys.exit(1)
        elif arg in ["--debug", "--verbose"]:
            config.log_level = "DEBUG"

    log_path = setup_logging(config.log_file, config.log_level)
    print(f"📝 Logging to {log_path}")

    if config.ai_enabled:
        print(f"🤖 Model: {config.model_name} ({config.vertex_location}, project {config.google_cloud_project})")
    else:
        print("⚠️  GOOGLE_CLOUD_PROJECT is not set: /upload, /chat and /optimize will answer 503")

    print(f"🎯 Question budget: {config.question_budget} | Termination match: {config.termination_match}")
    print(f"🚀 Serving on http://{host}:{port}")

    # Imported late so logging is configured before the app is built
    from .api import create_app
    uvicorn.run(create_app(config=config), host=host, port=port, log_level=config.log_level.lower())


if __name__ == "__main__":
    main()
