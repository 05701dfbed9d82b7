"""
Ciclus RD - Main Application Entry Point
"""

import sys

import flet as ft
from loguru import logger

from ciclus_rd.backend.database import create_backend
from ciclus_rd.frontend.app import CiclusApp
from ciclus_rd.frontend.geolocation import create_position_provider
from ciclus_rd.shared.config import ensure_directories, settings


def setup_logging():
    """Configure logging"""
    ensure_directories()

    logger.remove()  # Remove default handler
    logger.add(
        sys.stdout,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        level=settings.log_level,
        colorize=True,
    )
    logger.add(
        settings.log_file,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function} - {message}",
        level=settings.log_level,
        rotation="10 MB",
        retention="30 days",
        compression="zip",
    )
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")


def run(backend):
    def main(page: ft.Page):
        """Main entry point for Flet app"""
        app = CiclusApp(page, backend, position_provider=create_position_provider(page))
        app.initialize()

    return main


if __name__ == "__main__":
    setup_logging()

    try:
        backend = create_backend(settings)
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        sys.exit(1)

    logger.info("Starting Flet UI...")
    try:
        ft.run(
            run(backend),
            name=settings.app_name,
            assets_dir="assets",
        )
    finally:
        backend.dispose()
