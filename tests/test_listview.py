"""Unit tests for ListView selection and scrolling."""

from conch import blastlist
from conch.listview import ListView

from conftest import make_blasts


class TestListViewNew:
    """A fresh view."""

    def test_new(self):
        """Starts empty, unscrolled and not sticky."""
        lv = ListView(False)
        assert lv.head is None
        assert lv.current is None
        assert lv.offset == 0
        assert lv.stick_to_top is False

    def test_new_with_stick_to_top(self):
        lv = ListView(True)
        assert lv.stick_to_top is True

    def test_accessors_when_empty(self):
        """Nothing selected, nothing visible."""
        lv = ListView()
        assert lv.selected is None
        assert lv.at_top is False
        assert lv.at_tail is False
        assert lv.visible_slice(10) == []


class TestUpdate:
    """Pointing the view at a new window."""

    def test_update_null_window(self):
        lv = ListView(True)
        lv.update(None)
        assert lv.head is None
        assert lv.current is None

    def test_update_sets_current_if_null(self):
        """On first update both head and current are the window head."""
        window = blastlist.from_batch(make_blasts(1))
        lv = ListView(True)
        lv.update(window)
        assert lv.head is window
        assert lv.current is window

    def test_update_does_not_set_current_otherwise(self):
        """A later update keeps the same selected node."""
        bl1 = blastlist.from_batch(make_blasts(1))
        bl2 = blastlist.prepend_newer(bl1, make_blasts(2))
        lv = ListView(True)
        lv.update(bl1)
        lv.update(bl2)
        assert lv.head is bl2
        assert lv.current is bl1

    def test_update_to_null_unsets_current(self):
        """An emptied feed returns the selection to unset."""
        lv = ListView()
        lv.update(blastlist.from_batch(make_blasts(2, 1)))
        lv.offset = 1
        lv.update(None)
        assert lv.current is None
        assert lv.offset == 0

    def test_selection_survives_prepend(self):
        """Window [5,4,3] gains [7,6]; the selection on 4 is the same node."""
        window = blastlist.from_batch(make_blasts(5, 4, 3))
        lv = ListView()
        lv.update(window)
        lv.select_next()
        four = lv.current
        assert four.blast.id == 4

        lv.update(blastlist.prepend_newer(window, make_blasts(7, 6)))
        assert lv.current is four
        assert lv.selected.id == 4
        assert [n.blast.id for n in lv.visible_slice(10)] == [7, 6, 5, 4, 3]


class TestNavigation:
    """select_next, select_prev and jump_to_top."""

    def _view(self, *ids):
        lv = ListView()
        lv.update(blastlist.from_batch(make_blasts(*ids)))
        return lv

    def test_walks_every_blast_once(self):
        """Top, next, next visits 3, 2, 1; a third next is a no-op."""
        lv = self._view(3, 2, 1)
        lv.jump_to_top()
        seen = [lv.selected.id]
        assert lv.select_next() is False
        seen.append(lv.selected.id)
        assert lv.select_next() is True
        seen.append(lv.selected.id)
        assert seen == [3, 2, 1]

        tail = lv.current
        assert lv.select_next() is True
        assert lv.current is tail

    def test_select_prev_at_head_is_noop(self):
        lv = self._view(3, 2, 1)
        head = lv.current
        lv.select_prev()
        assert lv.current is head

    def test_select_prev_moves_newer(self):
        lv = self._view(3, 2, 1)
        lv.select_next()
        lv.select_next()
        lv.select_prev()
        assert lv.selected.id == 2

    def test_navigation_on_empty_view(self):
        """Navigating nothing does nothing."""
        lv = ListView()
        assert lv.select_next() is False
        lv.select_prev()
        lv.jump_to_top()
        assert lv.current is None
        assert lv.offset == 0

    def test_jump_to_top_resets_offset(self):
        lv = self._view(5, 4, 3, 2, 1)
        lv.select_next()
        lv.select_next()
        lv.offset = 2
        lv.jump_to_top()
        assert lv.current is lv.head
        assert lv.offset == 0

    def test_toggle_stick_to_top(self):
        lv = ListView(False)
        lv.toggle_stick_to_top()
        assert lv.stick_to_top is True
        lv.toggle_stick_to_top()
        assert lv.stick_to_top is False

    def test_boundary_accessors(self):
        lv = self._view(3, 2, 1)
        assert lv.at_top is True
        assert lv.at_tail is False
        assert lv.distance_to_tail(10) == 2
        assert lv.distance_to_tail(1) == 1
        lv.select_next()
        lv.select_next()
        assert lv.at_tail is True
        assert lv.distance_to_tail(10) == 0


class TestVisibleSlice:
    """What the renderer gets to draw."""

    def _view(self, count):
        lv = ListView()
        lv.update(blastlist.from_batch(make_blasts(*range(count, 0, -1))))
        return lv

    def test_slice_from_head(self):
        lv = self._view(5)
        assert [n.blast.id for n in lv.visible_slice(3)] == [5, 4, 3]

    def test_slice_with_offset(self):
        lv = self._view(5)
        lv.offset = 2
        assert [n.blast.id for n in lv.visible_slice(2)] == [3, 2]

    def test_slice_shorter_than_viewport(self):
        lv = self._view(2)
        assert [n.blast.id for n in lv.visible_slice(10)] == [2, 1]

    def test_offset_past_end_is_clamped(self):
        """Never walks off the end of the window."""
        lv = self._view(3)
        lv.offset = 10
        assert [n.blast.id for n in lv.visible_slice(5)] == [1]

    def test_slice_does_not_mutate(self):
        lv = self._view(5)
        lv.select_next()
        current = lv.current
        lv.visible_slice(2)
        assert lv.current is current
        assert lv.offset == 0

    def test_zero_height(self):
        assert self._view(3).visible_slice(0) == []


class TestScrollToCurrent:
    """Keeping the selection on screen."""

    def _view(self, count):
        lv = ListView()
        lv.update(blastlist.from_batch(make_blasts(*range(count, 0, -1))))
        return lv

    def test_scrolls_down_with_selection(self):
        lv = self._view(10)
        for _ in range(4):
            lv.select_next()
        lv.scroll_to_current(3)
        assert lv.offset == 2
        assert lv.current in lv.visible_slice(3)

    def test_scrolls_up_with_selection(self):
        lv = self._view(10)
        for _ in range(5):
            lv.select_next()
        lv.offset = 5
        lv.select_prev()
        lv.scroll_to_current(3)
        assert lv.offset == 4

    def test_leaves_offset_when_visible(self):
        lv = self._view(10)
        lv.select_next()
        lv.offset = 1
        lv.scroll_to_current(3)
        assert lv.offset == 1

    def test_empty_view_resets(self):
        lv = ListView()
        lv.offset = 3
        lv.scroll_to_current(5)
        assert lv.offset == 0
