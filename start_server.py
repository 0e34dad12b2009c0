#!/usr/bin/env python3
"""
Startup script for the Smart Checker HTTP server.

This script starts the FastAPI server with proper configuration.
"""

import os
import sys
import uvicorn
from pathlib import Path


def main():
    """Start the FastAPI server."""

    project_dir = Path(__file__).parent.resolve()
    host = os.getenv("SMARTCHECKER_HOST", "0.0.0.0")
    port = int(os.getenv("SMARTCHECKER_PORT", "8000"))

    print("🚀 Starting Smart Checker server...")
    print(f"📁 Project directory: {project_dir}")

    os.chdir(project_dir)

    # Verify package exists
    main_py = project_dir / "smartchecker" / "main.py"
    if not main_py.exists():
        print(f"❌ Error: main.py not found at {main_py}")
        sys.exit(1)

    print(f"🌐 Server will be available at: http://localhost:{port}")
    print(f"📖 API documentation will be available at: http://localhost:{port}/docs")
    print("\n" + "="*60)

    reload = os.getenv("SMARTCHECKER_RELOAD", "").lower() in ("1", "true", "yes")

    try:
        uvicorn.run(
            "smartchecker.main:app",
            host=host,
            port=port,
            reload=reload,
            reload_dirs=["smartchecker"] if reload else None,
            log_level="info"
        )
    except KeyboardInterrupt:
        print("\n🛑 Server stopped by user")
    except Exception as e:
        print(f"\n❌ Server failed to start: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
