"""Tests for the page-scoped SelectionModel."""

import pytest

from approval_kernel.domain.approval_item import ItemKey, RequestType
from approval_kernel.domain.selection import SelectionModel
from approval_kernel.exceptions import SelectionError
from tests.conftest import make_item


@pytest.fixture
def page_items():
    return [
        make_item(RequestType.PURCHASE_ORDER, 1),
        make_item(RequestType.EXPENSE, 1),
        make_item(RequestType.EXPENSE, 2),
    ]


@pytest.fixture
def selection(page_items):
    model = SelectionModel()
    model.bind_page(page_items)
    return model


class TestToggle:
    def test_toggle_selects_then_deselects(self, selection, page_items):
        key = page_items[0].key
        assert selection.toggle(key) is True
        assert selection.is_selected(key)
        assert selection.toggle(key) is False
        assert not selection.is_selected(key)

    def test_same_id_across_types_selected_independently(self, selection):
        selection.toggle(ItemKey(RequestType.PURCHASE_ORDER, 1))
        assert selection.is_selected(ItemKey(RequestType.PURCHASE_ORDER, 1))
        assert not selection.is_selected(ItemKey(RequestType.EXPENSE, 1))

    def test_key_not_on_page_rejected(self, selection):
        with pytest.raises(SelectionError) as exc_info:
            selection.toggle(ItemKey(RequestType.CASH_LODGEMENT, 9))
        assert exc_info.value.code == "SELECTION_ERROR"

    def test_bare_id_rejected(self, selection):
        with pytest.raises(SelectionError):
            selection.toggle(1)


class TestToggleAll:
    def test_selects_all_when_none_selected(self, selection, page_items):
        selection.toggle_all(page_items)
        assert selection.selected_count == 3
        assert selection.is_all_selected(page_items)

    def test_selects_remaining_when_partial(self, selection, page_items):
        selection.toggle(page_items[0].key)
        assert selection.is_partially_selected(page_items)
        selection.toggle_all(page_items)
        assert selection.selected_keys == {i.key for i in page_items}

    def test_deselects_exactly_given_items_when_all_selected(self, selection, page_items):
        selection.toggle_all(page_items)
        selection.toggle_all(page_items[:2])
        assert selection.selected_keys == {page_items[2].key}

    def test_leaves_other_selections_alone(self, selection, page_items):
        selection.toggle(page_items[2].key)
        selection.toggle_all(page_items[:2])
        selection.toggle_all(page_items[:2])
        assert selection.selected_keys == {page_items[2].key}

    def test_empty_items_is_noop(self, selection, page_items):
        selection.toggle(page_items[0].key)
        selection.toggle_all([])
        assert selection.selected_count == 1
        assert not selection.is_all_selected([])


class TestPageBinding:
    def test_bind_drops_keys_not_on_new_page(self, selection, page_items):
        selection.toggle_all(page_items)
        selection.bind_page(page_items[1:])
        assert selection.selected_keys == {page_items[1].key, page_items[2].key}
        assert selection.page_keys == {page_items[1].key, page_items[2].key}

    def test_clear(self, selection, page_items):
        selection.select_many(i.key for i in page_items)
        selection.clear()
        assert selection.selected_count == 0

    def test_select_many_is_all_or_nothing(self, selection, page_items):
        with pytest.raises(SelectionError):
            selection.select_many([page_items[0].key, ItemKey(RequestType.EXPENSE, 99)])
        assert selection.selected_count == 0

    def test_selected_items_in_page_order(self, selection, page_items):
        selection.select(page_items[2].key)
        selection.select(page_items[0].key)
        assert selection.selected_items(page_items) == [page_items[0], page_items[2]]

    def test_deselect_unknown_key_is_harmless(self, selection):
        selection.deselect(ItemKey(RequestType.EXPENSE, 404))
        assert selection.selected_count == 0
