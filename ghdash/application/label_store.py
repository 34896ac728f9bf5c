from __future__ import annotations

import logging
from typing import Any

from ghdash.application.search import contains_text
from ghdash.application.store import EntityStore, dig
from ghdash.domain.entities import Label, LabelDraft
from ghdash.domain.errors import TransportError
from ghdash.infrastructure import operations
from ghdash.infrastructure.mappers import map_label, map_labels

log = logging.getLogger(__name__)

_UPDATABLE = ("name", "color", "description")


def normalize_color(color: str) -> str:
    """GitHub wants bare hex: "#A2EEEF" → "a2eeef"."""
    return color.lstrip("#").lower()


class LabelStore(EntityStore[Label]):
    """Labels in use on the viewer's project boards."""

    name = "labels"

    async def _fetch_remote(self) -> list[Label]:
        data = await self._remote(operations.GET_PROJECTS, None, "Failed to fetch labels")
        items: list[dict] = []
        for project in dig(data, "viewer", "projectsV2", "nodes") or []:
            items.extend(dig(project, "items", "nodes") or [])
        return map_labels(items)

    async def create(self, draft: LabelDraft) -> Label:
        async def run() -> Label:
            data = await self._remote(
                operations.CREATE_LABEL,
                {"input": {
                    "repositoryId": draft.repository_id,
                    "name":         draft.name,
                    "color":        normalize_color(draft.color),
                    "description":  draft.description or "",
                }},
                "Failed to create label",
            )
            label = map_label(dig(data, "createLabel", "label"))
            if label is None:
                raise TransportError("Failed to create label: no label returned")
            self.items.add(label)
            log.info("Label created | %s (%s)", label.name, label.id)
            return label

        return await self._mutate(run)

    async def save(self, label_id: str, **changes: Any) -> Label | None:
        unknown = set(changes) - set(_UPDATABLE)
        if unknown:
            raise ValueError(f"Label fields cannot be updated remotely: {sorted(unknown)}")
        if "color" in changes:
            changes["color"] = normalize_color(changes["color"])

        async def run() -> Label | None:
            await self._remote(
                operations.UPDATE_LABEL,
                {"input": {"id": label_id, **changes}},
                "Failed to update label",
            )
            return self.update(label_id, changes)

        return await self._mutate(run)

    async def remove(self, label_id: str) -> bool:
        async def run() -> bool:
            await self._remote(operations.DELETE_LABEL, {"input": {"id": label_id}}, "Failed to delete label")
            return self.delete(label_id)

        return await self._mutate(run)

    def matches(self, label: Label, query: str) -> bool:
        return contains_text(query, label.name, label.description)
