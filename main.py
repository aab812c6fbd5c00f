from loguru import logger

from sticky_notes.app import build_app
from sticky_notes.logging_config import configure_logging


def main() -> None:
    configure_logging()
    notes_app = build_app()
    notes_app.manager.initialize()
    logger.info("{} notes loaded", len(notes_app.manager.get_all()))
    notes_app.coordinator.close()


if __name__ == "__main__":
    main()
