import json
import logging
from datetime import datetime
from pathlib import Path

from toolstream.session import Session

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"


class HistoryWriter:
    """Writes the transcript of a session to one JSON file.

    The file name is fixed when the writer is created, so every write
    during a process run overwrites the same file.

    Args:
        directory: Folder the history file lives in. Created on first
            write.
        prefix: File name prefix, followed by ``_`` and the timestamp.
        now: Time of creation, defaults to the current local time.
    """

    def __init__(self, directory: str | Path, prefix: str = "chat_history",
                 now: datetime | None = None):
        self.directory = Path(directory)
        stamp = (now or datetime.now()).strftime(TIMESTAMP_FORMAT)
        self.file_name = f"{prefix}_{stamp}.json"

    @property
    def path(self) -> Path:
        return self.directory / self.file_name

    def save(self, session: Session) -> Path:
        self.directory.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(
            session.wire_messages(), indent=2, ensure_ascii=False
        )
        self.path.write_text(payload, encoding="utf-8")
        logger.debug(f"Saved {len(session.transcript)} messages to {self.path}")
        return self.path
