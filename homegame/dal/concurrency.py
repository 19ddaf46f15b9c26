"""Atomic read-modify-write against a single MongoDB document.

Every state change to a game goes through ``atomic_update``:

1. read the latest document,
2. decode it and hand it to ``mutate``, which validates preconditions
   against *this* snapshot and changes it in place,
3. write it back with ``replace_one`` guarded on the ``version`` that was
   read, bumping ``version`` by one.

If another writer committed in between, the guarded write matches nothing
and the whole block (read included) runs again. ``mutate`` must therefore
be a plain function with no side effects outside the model it receives.
Raising from ``mutate`` aborts the update with nothing written.
"""

import logging
from typing import Any, Callable, Protocol, TypeVar

from motor.motor_asyncio import AsyncIOMotorCollection

from homegame.errors import NotFound, WriteConflict

logger = logging.getLogger("homegame.dal.concurrency")


class VersionedDocument(Protocol):
    version: int

    def to_mongo_dict(self) -> dict: ...


M = TypeVar("M", bound=VersionedDocument)
R = TypeVar("R")


def _version_guard(doc: dict[str, Any]) -> dict[str, Any]:
    # Documents written before versioning carry no version field at all.
    if "version" not in doc:
        return {"version": {"$exists": False}}
    return {"version": doc["version"]}


async def atomic_update(
    collection: AsyncIOMotorCollection,
    doc_id: str,
    decode: Callable[[dict[str, Any]], M],
    mutate: Callable[[M], R],
    max_attempts: int,
    label: str = "Document",
) -> tuple[M, R]:
    """Apply ``mutate`` to the document atomically, retrying on conflict.

    Args:
        collection: Collection holding the document.
        doc_id: The document ``_id``.
        decode: Builds a model from the raw document.
        mutate: Validates and changes the model in place; its return value
            is passed back to the caller.
        max_attempts: Retry budget for conflicting writes.
        label: Name used in the NotFound message.

    Returns:
        ``(committed_model, mutate_result)``.

    Raises:
        NotFound: The document does not exist.
        WriteConflict: Every attempt lost to a concurrent writer.
        LedgerError: Whatever ``mutate`` raised; nothing is written.
    """
    for attempt in range(1, max_attempts + 1):
        doc = await collection.find_one({"_id": doc_id})
        if doc is None:
            raise NotFound(f"{label} not found")

        model = decode(doc)
        result = mutate(model)
        model.version = int(doc.get("version", 0)) + 1

        write = await collection.replace_one(
            {"_id": doc_id, **_version_guard(doc)},
            model.to_mongo_dict(),
        )
        if write.matched_count == 1:
            if attempt > 1:
                logger.info(
                    "%s %s committed on attempt %d", label, doc_id, attempt
                )
            return model, result

        logger.debug(
            "Write conflict on %s %s (attempt %d/%d), retrying",
            label,
            doc_id,
            attempt,
            max_attempts,
        )

    logger.warning(
        "Giving up on %s %s after %d conflicting attempts",
        label,
        doc_id,
        max_attempts,
    )
    raise WriteConflict()
