# deadlineZ application context
# Rev 0.2.0

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from .repositories.db import Database
from .repositories.sqlite_deadline_repository import SQLiteDeadlineRepository
from .services.deadline_service import DeadlineService
from .services.store import DeadlineStore
from .utils.config import database_path, load_settings
from .utils.logging_setup import get_logger
from .viewmodels.deadline_viewmodel import DeadlineViewModel


@dataclass
class AppContext:
    """Central container for shared app resources."""
    db_path: Path
    db: Database
    repo: SQLiteDeadlineRepository
    service: DeadlineService
    viewmodel: DeadlineViewModel
    settings: Dict[str, Any]

    @classmethod
    def create(cls, db_path: Optional[Path] = None, settings: Optional[Dict[str, Any]] = None) -> "AppContext":
        """Open the DB, apply migrations, wire repository/service/view model and load data."""
        log = get_logger("AppContext")
        settings = settings if settings is not None else load_settings()
        db_path = Path(db_path) if db_path is not None else database_path(settings)
        db = Database(db_path)
        db.run_migrations()
        repo = SQLiteDeadlineRepository(db)
        service = DeadlineService(DeadlineStore())
        vm = DeadlineViewModel(service, repo)
        vm.load()
        log.info("AppContext initialized with DB=%s", db_path)
        return cls(db_path=db_path, db=db, repo=repo, service=service, viewmodel=vm, settings=settings)

    def upcoming_limit(self) -> int:
        return int(self.settings["notifications"]["upcoming_limit"])

    def close(self) -> None:
        self.db.close()
