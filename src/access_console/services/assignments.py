from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from access_console.api import ApiClient, AssignmentKind, endpoints_for
from access_console.data import ItemId
from access_console.services.base import (
    EventHook,
    MutationStatus,
    ServiceErrorEvent,
    run_optimistic_mutation,
)
from access_console.utils.logging import get_logger


logger = get_logger(__name__)


@dataclass(slots=True)
class SelectionReplacedEvent:
    kind: AssignmentKind
    target_id: ItemId
    ids: list[ItemId]
    status: MutationStatus
    error: Exception | None = None


class AssignmentService:
    """Persist assignment membership as a full replacement of the id set.

    The back end treats each call as "set membership to exactly these ids", so
    repeating a call with the same ids leaves the server state unchanged.
    """

    def __init__(self, client: ApiClient) -> None:
        self._client = client
        self.replaced: EventHook[SelectionReplacedEvent] = EventHook()
        self.errors: EventHook[ServiceErrorEvent] = EventHook()

    async def replace_selection(
        self,
        kind: AssignmentKind | str,
        target_id: ItemId,
        ids: Iterable[ItemId],
    ) -> None:
        kind = AssignmentKind(kind)
        endpoints = endpoints_for(kind)
        id_list = list(dict.fromkeys(ids))

        def event_builder(
            status: MutationStatus, error: Exception | None = None
        ) -> SelectionReplacedEvent:
            return SelectionReplacedEvent(
                kind=kind,
                target_id=target_id,
                ids=id_list,
                status=status,
                error=error,
            )

        async def operation() -> None:
            await self._client.post_json(
                endpoints.selection(target_id),
                {endpoints.payload_key: id_list},
            )

        try:
            await run_optimistic_mutation(
                emitter=self.replaced,
                event_builder=event_builder,
                operation=operation,
            )
        except Exception as exc:  # noqa: BLE001
            logger.exception(
                "Failed to replace assignment",
                kind=kind.value,
                target_id=target_id,
            )
            self.errors.emit(
                ServiceErrorEvent(
                    operation="replace_selection",
                    error=exc,
                    target_id=target_id,
                )
            )
            raise
        logger.debug(
            "Assignment replaced",
            kind=kind.value,
            target_id=target_id,
            selected=len(id_list),
        )

    def persister(self, kind: AssignmentKind | str):
        """Bind ``kind`` so the result matches the workflow's persistence hook."""

        async def persist(target_id: ItemId, ids: list[ItemId]) -> None:
            await self.replace_selection(kind, target_id, ids)

        return persist


__all__ = ["AssignmentService", "SelectionReplacedEvent"]
