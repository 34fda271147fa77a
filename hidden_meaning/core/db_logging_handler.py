# hidden_meaning/core/db_logging_handler.py
import logging
import traceback
from hidden_meaning.db.session import SessionLocal
from hidden_meaning.crud import crud_system

class DatabaseHandler(logging.Handler):
    """
    A logging handler that stores ERROR and CRITICAL records as system alerts.
    """
    def __init__(self, level=logging.ERROR, session_factory=SessionLocal):
        super().__init__(level)
        self.session_factory = session_factory

    def emit(self, record: logging.LogRecord):
        if record.levelno < logging.ERROR:
            return
        # crud_system logs its own failures; don't recurse into ourselves.
        if record.name.startswith("hidden_meaning.crud.system"):
            return

        details = None
        if record.exc_info:
            details = "".join(traceback.format_exception(*record.exc_info))

        # One session per record: emit() runs on the queue listener thread.
        db = self.session_factory()
        try:
            crud_system.create_alert(
                db=db,
                level=record.levelname,
                message=record.getMessage(),
                details=details
            )
        except Exception:
            self.handleError(record)
        finally:
            db.close()
