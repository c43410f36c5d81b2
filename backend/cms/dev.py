"""Development server entry point."""
import sys
import uvicorn

from cms.config import settings


def main():
    """Run the development server with auto-reload."""
    uvicorn.run(
        "cms.main:build_default_app",
        factory=True,
        host="127.0.0.1",
        port=8000,
        reload=True,
        log_level=settings.log_level,
    )


if __name__ == "__main__":
    sys.exit(main())
