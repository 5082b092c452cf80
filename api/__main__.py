"""Command line interface for running the console API server."""
import argparse
import logging
import uvicorn

from config import get_settings

def main():
    """Run the console API server."""
    parser = argparse.ArgumentParser(description="Marketplace moderation console API")
    parser.add_argument('--host', default='127.0.0.1')
    parser.add_argument('--port', type=int, default=8000)
    parser.add_argument('--reload', action='store_true')
    args = parser.parse_args()

    settings = get_settings()

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, settings['log_level']),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    logger = logging.getLogger(__name__)
    logger.info(f"Starting console API on {args.host}:{args.port}")

    uvicorn.run(
        "api:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=settings['log_level'].lower()
    )

if __name__ == "__main__":
    main()
