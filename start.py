#!/usr/bin/env python3
"""
Startup script for the Quiz Review Tracker API
Checks configuration and dependencies before handing over to uvicorn
"""

import os
import sys
import logging

from dotenv import load_dotenv

load_dotenv()

# Configure logging
logging.basicConfig(
    level=getattr(logging, os.getenv("LOGLEVEL", "INFO").upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

REQUIRED_VARS = ["OPENAI_API_KEY", "AUTH_USER", "AUTH_PASS"]


def check_environment(required_vars=REQUIRED_VARS):
    """Check if required environment variables are set"""
    logger.info("Checking environment variables...")

    missing_vars = [var for var in required_vars if not os.getenv(var)]
    for var in missing_vars:
        logger.warning(f"Missing environment variable: {var}")

    if missing_vars:
        logger.error(f"Missing required environment variables: {missing_vars}")
        return False

    logger.info("All required environment variables are set")
    return True


def check_dependencies():
    """Check if all required packages are available"""
    logger.info("Checking dependencies...")

    try:
        import fastapi
        import uvicorn
        import openai
        import pydantic
        import dotenv
        logger.info("Core dependencies loaded successfully")
        return True
    except ImportError as e:
        logger.error(f"Missing dependency: {e}")
        return False


def main():
    """Main startup function"""
    logger.info("Starting Quiz Review Tracker API...")

    if not check_environment():
        logger.error("Environment check failed")
        sys.exit(1)

    if not check_dependencies():
        logger.error("Dependency check failed")
        sys.exit(1)

    logger.info("All checks passed, starting uvicorn server...")

    try:
        from main import app
        import uvicorn

        uvicorn.run(
            app,
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8080")),
            log_level="info"
        )
    except Exception as e:
        logger.error(f"Failed to start server: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
