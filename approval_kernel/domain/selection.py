"""
Selection model for bulk approval actions.

Responsibility:
    Tracks which queue items (by composite ``ItemKey``) are chosen for a
    bulk action.  Selection is scoped to the currently loaded page.

Architecture position:
    Kernel > Domain -- in-memory state, zero I/O.

Invariants enforced:
    - Every selected key references an item on the bound page.  Binding a
      new page drops keys that are not on it before any count is reported.
    - Keys are always ``(type, id)`` pairs; a bare id is never accepted.

Failure modes:
    - SelectionError when a key that is not on the bound page is selected.

Non-goals:
    - No "select everything matching the filter" across unfetched pages.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from approval_kernel.domain.approval_item import ApprovalItem, ItemKey
from approval_kernel.exceptions import SelectionError


class SelectionModel:
    """Set of selected item keys confined to the loaded page."""

    def __init__(self) -> None:
        self._selected: set[ItemKey] = set()
        self._page_keys: frozenset[ItemKey] = frozenset()

    # ------------------------------------------------------------------
    # Page binding
    # ------------------------------------------------------------------

    def bind_page(self, items: Sequence[ApprovalItem]) -> None:
        """Record the loaded page and drop keys that are no longer on it."""
        self._page_keys = frozenset(item.key for item in items)
        self._selected &= self._page_keys

    @property
    def page_keys(self) -> frozenset[ItemKey]:
        return self._page_keys

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def selected_keys(self) -> frozenset[ItemKey]:
        return frozenset(self._selected)

    @property
    def selected_count(self) -> int:
        return len(self._selected)

    def is_selected(self, key: ItemKey) -> bool:
        return key in self._selected

    def is_all_selected(self, items: Sequence[ApprovalItem]) -> bool:
        if not items:
            return False
        return all(item.key in self._selected for item in items)

    def is_partially_selected(self, items: Sequence[ApprovalItem]) -> bool:
        if not items:
            return False
        on_page = sum(1 for item in items if item.key in self._selected)
        return 0 < on_page < len(items)

    def selected_items(self, items: Iterable[ApprovalItem]) -> list[ApprovalItem]:
        return [item for item in items if item.key in self._selected]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def toggle(self, key: ItemKey) -> bool:
        """Flip one key. Returns True if the key is now selected."""
        self._require_on_page(key)
        if key in self._selected:
            self._selected.discard(key)
            return False
        self._selected.add(key)
        return True

    def select(self, key: ItemKey) -> None:
        self._require_on_page(key)
        self._selected.add(key)

    def deselect(self, key: ItemKey) -> None:
        self._selected.discard(key)

    def select_many(self, keys: Iterable[ItemKey]) -> None:
        keys = list(keys)
        for key in keys:
            self._require_on_page(key)
        self._selected.update(keys)

    def toggle_all(self, items: Sequence[ApprovalItem]) -> None:
        """Select-all checkbox behaviour for the given page items.

        If every item is already selected, deselect exactly those items;
        otherwise select the ones that are missing.  Keys outside ``items``
        are left alone.
        """
        keys = [item.key for item in items]
        for key in keys:
            self._require_on_page(key)
        if keys and all(key in self._selected for key in keys):
            self._selected.difference_update(keys)
        else:
            self._selected.update(keys)

    def clear(self) -> None:
        self._selected.clear()

    def _require_on_page(self, key: ItemKey) -> None:
        if not isinstance(key, ItemKey):
            raise SelectionError(
                f"Selection keys must be (type, id) pairs, got {key!r}", key
            )
        if key not in self._page_keys:
            raise SelectionError(f"{key} is not on the loaded page", key)
