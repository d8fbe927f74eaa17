from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from photodesk.application.state.collection_store import CollectionStore

logger = logging.getLogger(__name__)


class SelectionSet:
    """Ids of the currently selected images, in selection order.

    Ids may dangle after a delete or filter change; ``prune`` drops them and
    is called after every successful fetch and every successful delete.
    """

    def __init__(self) -> None:
        self._ids: dict[str, None] = {}

    def __contains__(self, image_id: object) -> bool:
        return image_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._ids))

    @property
    def ids(self) -> frozenset[str]:
        return frozenset(self._ids)

    def snapshot(self) -> tuple[str, ...]:
        return tuple(self._ids)

    def toggle(self, image_id: str) -> bool:
        """Flip membership of ``image_id``; returns True when it is now selected."""
        if image_id in self._ids:
            del self._ids[image_id]
            return False
        self._ids[image_id] = None
        return True

    def select_all(self, collection: CollectionStore) -> None:
        self._ids = dict.fromkeys(img.id for img in collection.images)

    def clear(self) -> None:
        self._ids = {}

    def prune(self, valid_ids: Iterable[str]) -> tuple[str, ...]:
        """Drop ids not in ``valid_ids``; returns the ids removed."""
        valid = set(valid_ids)
        removed = tuple(i for i in self._ids if i not in valid)
        for image_id in removed:
            del self._ids[image_id]
        if removed:
            logger.debug("Pruned %d dangling selected ids", len(removed))
        return removed

    def discard(self, image_ids: Iterable[str]) -> None:
        for image_id in image_ids:
            self._ids.pop(image_id, None)
