"""Export and import of the whole dataset as one JSON document."""
from __future__ import annotations

import json
import logging

from pydantic import ValidationError

from . import crud
from .errors import InvalidBackupFormat
from .schemas import BACKUP_VERSION, BackupDocument, ImportSummary
from .store import RecordStore
from .timestamps import now_ms

logger = logging.getLogger(__name__)


async def build_document(store: RecordStore, *, now: int | None = None) -> BackupDocument:
    return BackupDocument(
        items=await store.list_items(),
        movements=await store.list_movements(),
        config=await store.get_config(),
        version=BACKUP_VERSION,
        exported_at=now if now is not None else now_ms(),
    )


async def export_all(store: RecordStore, *, now: int | None = None) -> str:
    document = await build_document(store, now=now)
    logger.info(
        "Exported %d items and %d movements", len(document.items), len(document.movements)
    )
    return document.model_dump_json(by_alias=True)


def parse_backup(text: str | bytes) -> BackupDocument:
    """Parse and validate a backup document without touching storage."""

    try:
        data = json.loads(text)
    except (TypeError, ValueError) as exc:
        raise InvalidBackupFormat(f"Backup is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise InvalidBackupFormat("Backup must be a JSON object.")
    for key in ("items", "movements"):
        if not isinstance(data.get(key), list):
            raise InvalidBackupFormat(f"Backup is missing the '{key}' list.")
    try:
        return BackupDocument.model_validate(data)
    except ValidationError as exc:
        raise InvalidBackupFormat(f"Backup contains invalid records: {exc}") from exc


async def import_all(store: RecordStore, text: str | bytes) -> ImportSummary:
    """Merge a backup into the store.

    Records are upserted by id; anything not mentioned in the document stays
    as it is. All writes share one transaction, so a failure leaves the store
    unchanged.
    """

    try:
        document = parse_backup(text)
    except InvalidBackupFormat:
        logger.warning("Rejected backup import", exc_info=True)
        raise

    async with store.transaction() as session:
        for item in document.items:
            await crud.upsert_item(session, item)
        for movement in document.movements:
            await crud.upsert_movement(session, movement)
        if document.config is not None:
            await crud.put_config(session, document.config)

    summary = ImportSummary(
        items=len(document.items),
        movements=len(document.movements),
        config_replaced=document.config is not None,
    )
    logger.info(
        "Imported %d items and %d movements (config replaced: %s)",
        summary.items,
        summary.movements,
        summary.config_replaced,
    )
    return summary


__all__ = ["build_document", "export_all", "parse_backup", "import_all"]
