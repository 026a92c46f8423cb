"""
Review Hub - Web Server Entry Point
===================================

Run this to start the site and admin dashboard:
    python main.py

Then open http://127.0.0.1:8000 (admin at /admin).
Set MONGODB_URI and ADMIN_PASSWORD first (a .env file works).
"""

import sys
from pathlib import Path

import uvicorn

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from src.infrastructure.config import get_settings


def main():
    """Start the web server."""
    settings = get_settings()

    print("\n" + "=" * 50)
    print("   Review Hub")
    print("=" * 50)
    print(f"\n   Starting server at http://{settings.server.host}:{settings.server.port}")
    print("   Press Ctrl+C to stop\n")

    uvicorn.run(
        "src.web.app:app",
        host=settings.server.host,
        port=settings.server.port,
        reload=True,
        log_level="info"
    )


if __name__ == "__main__":
    main()
