"""Per-user conversion history stored as JSON documents."""

import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, List

from app.config import settings
from app.errors import AccessDeniedError, RecordNotFoundError, StorageError, TTSError
from app.models import HistoryCreate, HistoryPage, HistoryRecord, UploadResult
from app.services.storage_service import OWNER_PATTERN, StorageService, check_owner

logger = logging.getLogger(__name__)


class HistoryService:
    """Service for saved conversions and the audio objects they reference."""

    def __init__(self, storage: StorageService, root: Optional[Path] = None):
        self.storage = storage
        self.root = Path(root or settings.HISTORY_DIR)
        self.root.mkdir(parents=True, exist_ok=True)

    def _owner_dir(self, owner_id: str) -> Path:
        if not OWNER_PATTERN.match(owner_id):
            raise AccessDeniedError(detail=f"invalid owner id {owner_id!r}")
        return self.root / owner_id

    def _record_file(self, owner_id: str, record_id: str) -> Path:
        try:
            uuid.UUID(record_id)
        except ValueError:
            raise RecordNotFoundError(detail=record_id)
        return self._owner_dir(owner_id) / f"{record_id}.json"

    # Audio objects

    def upload(self, owner_id: str, audio: bytes, name_hint: str) -> UploadResult:
        return self.storage.upload(owner_id, audio, name_hint)

    def refresh_url(self, owner_id: str, path: str) -> str:
        """Issue a new signed URL for one of the owner's stored objects."""
        check_owner(owner_id, path)
        return self.storage.create_signed_url(path)

    def delete_audio(self, owner_id: str, path: str) -> None:
        check_owner(owner_id, path)
        logger.info(f"Deleting file: {path}")
        self.storage.remove([path])

    # Records

    def add_record(self, owner_id: str, item: HistoryCreate) -> HistoryRecord:
        """Persist a conversion. A referenced audio URL must point at the owner's own object."""
        if item.audio_url:
            path = self.storage.extract_file_path(item.audio_url)
            if path is not None:
                check_owner(owner_id, path)

        record = HistoryRecord(
            id=str(uuid.uuid4()),
            user_id=owner_id,
            text_content=item.text_content,
            voice_id=item.voice_id,
            created_at=datetime.now(timezone.utc),
            audio_url=item.audio_url,
        )
        record_file = self._record_file(owner_id, record.id)
        try:
            record_file.parent.mkdir(parents=True, exist_ok=True)
            record_file.write_text(record.model_dump_json())
        except OSError as e:
            logger.error(f"Failed to save history item: {e}")
            raise StorageError(message="Failed to save history item", detail=str(e)) from e

        logger.info(f"Saved history item {record.id} for {owner_id}")
        return record

    def get_record(self, owner_id: str, record_id: str) -> HistoryRecord:
        record_file = self._record_file(owner_id, record_id)
        if not record_file.exists():
            raise RecordNotFoundError(detail=record_id)
        return HistoryRecord.model_validate_json(record_file.read_text())

    def list_records(
        self,
        owner_id: str,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> HistoryPage:
        """Return the owner's records, newest first."""
        limit = limit or settings.HISTORY_PAGE_SIZE
        records: List[HistoryRecord] = []
        owner_dir = self._owner_dir(owner_id)
        if owner_dir.exists():
            for record_file in owner_dir.glob("*.json"):
                try:
                    records.append(HistoryRecord.model_validate_json(record_file.read_text()))
                except (OSError, ValueError) as e:
                    logger.error(f"Skipping unreadable history file {record_file}: {e}")

        records.sort(key=lambda r: r.created_at, reverse=True)
        return HistoryPage(
            items=records[offset:offset + limit],
            total=len(records),
            limit=limit,
            offset=offset,
        )

    def delete_record(
        self,
        owner_id: str,
        record_id: str,
        audio_url: Optional[str] = None,
    ) -> bool:
        """Delete a record, first attempting to delete its stored audio.

        Audio deletion is best-effort: any failure is logged and the record
        is removed regardless.
        """
        record_file = self._record_file(owner_id, record_id)
        if not record_file.exists():
            raise RecordNotFoundError(detail=record_id)

        if audio_url is None:
            audio_url = self.get_record(owner_id, record_id).audio_url

        logger.info(f"Deleting history item: {record_id}")
        if audio_url:
            path = self.storage.extract_file_path(audio_url)
            if path:
                try:
                    self.delete_audio(owner_id, path)
                except TTSError as e:
                    logger.error(f"Error deleting file from storage: {e}")
            else:
                logger.warning(f"Could not extract file path from URL: {audio_url}")

        try:
            record_file.unlink()
        except OSError as e:
            raise StorageError(message="Failed to delete history item", detail=str(e)) from e
        return True
