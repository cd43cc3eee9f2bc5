from app.config.settings import Settings
from app.database.connection import close_pool, init_pool
from app.database.repositories.documents_repository import DocumentsRepository
from app.logging.logger import Log
from app.processor.orchestrator import build_orchestrator
from app.worker.worker import Worker


def main() -> None:
    """Entry point: initialize pool -> build dependencies -> start worker loop."""
    settings = Settings()
    Log.configure(settings.log_level)
    init_pool(settings)

    try:
        orchestrator = build_orchestrator(settings)
        worker = Worker(DocumentsRepository(), orchestrator, settings)
        worker.run()
    finally:
        close_pool()


if __name__ == "__main__":
    main()
