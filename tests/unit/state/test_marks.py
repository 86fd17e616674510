"""Unit tests for the mark store."""

from __future__ import annotations

import itertools

import pytest

from kubelens.integrations.kubernetes.kinds import ResourceKind
from kubelens.state.marks import MarkStore

PODS = ResourceKind.PODS
SECRETS = ResourceKind.SECRETS


class TestMarkTransitions:
    """Tests for Unmarked / Marked / PendingDeletion transitions."""

    @pytest.mark.unit
    def test_mark_and_unmark(self) -> None:
        """Marking and unmarking toggle membership."""
        store = MarkStore()
        assert store.mark(PODS, "web-1")
        assert store.is_marked(PODS, "web-1")
        assert store.unmark(PODS, "web-1")
        assert not store.is_marked(PODS, "web-1")

    @pytest.mark.unit
    def test_unmark_unknown_returns_false(self) -> None:
        """Unmarking a name that is not marked reports False."""
        assert not MarkStore().unmark(PODS, "web-1")

    @pytest.mark.unit
    def test_marks_are_per_kind(self) -> None:
        """The same name under another kind is independent."""
        store = MarkStore()
        store.mark(PODS, "shared")
        assert not store.is_marked(SECRETS, "shared")

    @pytest.mark.unit
    def test_begin_deletion_moves_all_marked_names(self) -> None:
        """All marked names of a kind become pending together."""
        store = MarkStore()
        store.mark(PODS, "web-2")
        store.mark(PODS, "web-1")
        store.mark(SECRETS, "db")

        assert store.begin_deletion(PODS) == ["web-1", "web-2"]
        assert store.is_pending(PODS, "web-1")
        assert store.is_pending(PODS, "web-2")
        assert not store.is_marked(PODS, "web-1")
        assert store.is_marked(SECRETS, "db")

    @pytest.mark.unit
    def test_begin_deletion_without_marks(self) -> None:
        """Nothing marked means nothing moves."""
        assert MarkStore().begin_deletion(PODS) == []

    @pytest.mark.unit
    def test_pending_name_cannot_be_remarked(self) -> None:
        """A name pending deletion rejects new marks."""
        store = MarkStore()
        store.mark(PODS, "web-1")
        store.begin_deletion(PODS)

        assert not store.mark(PODS, "web-1")
        assert not store.is_marked(PODS, "web-1")

    @pytest.mark.unit
    def test_rollback_lands_in_unmarked(self) -> None:
        """A failed deletion leaves the name unmarked, not marked."""
        store = MarkStore()
        store.mark(PODS, "web-1")
        store.begin_deletion(PODS)
        store.rollback(PODS, "web-1")

        assert not store.is_pending(PODS, "web-1")
        assert not store.is_marked(PODS, "web-1")
        assert store.mark(PODS, "web-1")

    @pytest.mark.unit
    def test_unmark_all_keeps_pending(self) -> None:
        """Unmark-all only touches marks."""
        store = MarkStore()
        store.mark(PODS, "web-1")
        store.begin_deletion(PODS)
        store.mark(PODS, "web-2")
        store.mark(SECRETS, "db")

        store.unmark_all()

        assert store.marked_kinds() == []
        assert store.is_pending(PODS, "web-1")

    @pytest.mark.unit
    def test_marked_kinds_in_declaration_order(self) -> None:
        """Kinds with marks are listed in enum order."""
        store = MarkStore()
        store.mark(SECRETS, "db")
        store.mark(PODS, "web-1")
        assert store.marked_kinds() == [PODS, SECRETS]

    @pytest.mark.unit
    def test_clear(self) -> None:
        """clear drops marks and pending names."""
        store = MarkStore()
        store.mark(PODS, "a")
        store.mark(PODS, "b")
        store.begin_deletion(PODS)
        store.mark(PODS, "c")
        store.clear()
        view = store.view()
        assert not view.marked
        assert not view.pending


class TestReconcile:
    """Tests for pruning marks against fetched names."""

    @pytest.mark.unit
    def test_vanished_names_are_pruned(self) -> None:
        """A mark on a name missing from the fetch is dropped."""
        store = MarkStore()
        store.mark(PODS, "web-1")
        store.mark(PODS, "web-2")

        store.reconcile(PODS, ["web-2", "web-3"])

        assert not store.is_marked(PODS, "web-1")
        assert store.is_marked(PODS, "web-2")

    @pytest.mark.unit
    def test_pending_names_are_pruned_once_gone(self) -> None:
        """A pending deletion ends when the fetch no longer lists the name."""
        store = MarkStore()
        store.mark(PODS, "web-1")
        store.begin_deletion(PODS)

        store.reconcile(PODS, ["web-1"])
        assert store.is_pending(PODS, "web-1")

        store.reconcile(PODS, [])
        assert not store.is_pending(PODS, "web-1")

    @pytest.mark.unit
    def test_other_kinds_untouched(self) -> None:
        """Reconciling one kind leaves the others alone."""
        store = MarkStore()
        store.mark(SECRETS, "db")
        store.reconcile(PODS, [])
        assert store.is_marked(SECRETS, "db")

    @pytest.mark.unit
    def test_every_remaining_name_is_fetched(self) -> None:
        """After reconciling, marked and pending names are a subset of the fetch."""
        universe = ["a", "b", "c", "d"]
        for marked, pending, fetched in itertools.product(
            _subsets(universe), _subsets(universe[:2]), _subsets(universe)
        ):
            store = MarkStore()
            for name in pending:
                store.mark(PODS, name)
            store.begin_deletion(PODS)
            for name in marked:
                store.mark(PODS, name)

            store.reconcile(PODS, fetched)

            view = store.view()
            assert view.marked_names(PODS) <= set(fetched)
            assert view.pending_names(PODS) <= set(fetched)


def _subsets(names: list[str]) -> list[tuple[str, ...]]:
    return [
        combo for size in range(len(names) + 1) for combo in itertools.combinations(names, size)
    ]


class TestMarkView:
    """Tests for the immutable view."""

    @pytest.mark.unit
    def test_view_is_a_copy(self) -> None:
        """Later changes do not leak into an earlier view."""
        store = MarkStore()
        store.mark(PODS, "web-1")
        view = store.view()
        store.unmark(PODS, "web-1")

        assert view.is_marked(PODS, "web-1")
        assert view.marked_names(PODS) == frozenset({"web-1"})
        assert view.pending_names(PODS) == frozenset()

    @pytest.mark.unit
    def test_view_is_read_only(self) -> None:
        """The view's mappings cannot be mutated."""
        view = MarkStore().view()
        with pytest.raises(TypeError):
            view.marked[PODS] = frozenset({"x"})  # type: ignore[index]
