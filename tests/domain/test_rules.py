"""Tests for permission rules and drop-target discovery.

Sample layout (see conftest)::

    root
    ├── s1 [n1, n2]
    ├── s2 (immutable) [n3]
    └── n4 (unremovable)
"""

import pytest

from userlayout.domain import rules
from userlayout.domain.descriptions import ChannelDescription, FolderDescription
from userlayout.domain.errors import ErrorCode, LayoutError
from userlayout.domain.layout import Marking, UserLayout
from userlayout.domain.types import MarkingType


class TestCanAdd:
    def test_append_to_folder(self, sample_layout: UserLayout) -> None:
        assert rules.can_add(sample_layout, ChannelDescription(), "s1")

    def test_before_sibling(self, sample_layout: UserLayout) -> None:
        assert rules.can_add(sample_layout, FolderDescription(), "root", "s2")

    def test_immutable_folder_denied(self, sample_layout: UserLayout) -> None:
        assert not rules.can_add(sample_layout, ChannelDescription(), "s2")

    def test_channel_parent_denied(self, sample_layout: UserLayout) -> None:
        assert not rules.can_add(sample_layout, ChannelDescription(), "n1")

    def test_sibling_under_other_parent_denied(self, sample_layout: UserLayout) -> None:
        assert not rules.can_add(sample_layout, ChannelDescription(), "s1", "n3")

    def test_existing_id_denied(self, sample_layout: UserLayout) -> None:
        assert not rules.can_add(sample_layout, ChannelDescription(id="n1"), "s1")

    def test_reissued_id_denied(self, sample_layout: UserLayout) -> None:
        sample_layout.remove("n2")
        assert not rules.can_add(sample_layout, ChannelDescription(id="n2"), "s1")
        assert rules.can_add(sample_layout, ChannelDescription(id="n5"), "s1")

    def test_id_of_wrong_type_denied(self, sample_layout: UserLayout) -> None:
        assert not rules.can_add(sample_layout, FolderDescription(id="n7"), "root")

    def test_max_depth(self, sample_layout: UserLayout) -> None:
        assert rules.can_add(sample_layout, ChannelDescription(), "root", max_depth=1)
        assert not rules.can_add(sample_layout, ChannelDescription(), "s1", max_depth=1)

    @pytest.mark.parametrize(("parent", "sibling"), [("zz", None), ("s1", "zz")])
    def test_unknown_ids_raise(self, sample_layout: UserLayout, parent: str, sibling: str) -> None:
        with pytest.raises(LayoutError) as exc_info:
            rules.can_add(sample_layout, ChannelDescription(), parent, sibling)
        assert exc_info.value.code == ErrorCode.NOT_FOUND

    def test_non_description_raises(self, sample_layout: UserLayout) -> None:
        with pytest.raises(LayoutError) as exc_info:
            rules.can_add(sample_layout, "channel", "s1")  # type: ignore[arg-type]
        assert exc_info.value.code == ErrorCode.UNSUPPORTED_TYPE


class TestCanMove:
    def test_between_folders(self, sample_layout: UserLayout) -> None:
        assert rules.can_move(sample_layout, "n1", "root")

    def test_root_never_moves(self, sample_layout: UserLayout) -> None:
        assert not rules.can_move(sample_layout, "root", "s1")

    def test_out_of_immutable_folder_denied(self, sample_layout: UserLayout) -> None:
        assert not rules.can_move(sample_layout, "n3", "root")

    def test_into_immutable_folder_denied(self, sample_layout: UserLayout) -> None:
        assert not rules.can_move(sample_layout, "n1", "s2")

    def test_into_own_subtree_denied(self, sample_layout: UserLayout) -> None:
        sample_layout.insert(FolderDescription(id="s3"), "s1")
        assert not rules.can_move(sample_layout, "s1", "s1")
        assert not rules.can_move(sample_layout, "s1", "s3")

    def test_unremovable_only_reorders(self, sample_layout: UserLayout) -> None:
        assert rules.can_move(sample_layout, "n4", "root", "s1")
        assert not rules.can_move(sample_layout, "n4", "s1")

    def test_sibling_under_other_parent_denied(self, sample_layout: UserLayout) -> None:
        assert not rules.can_move(sample_layout, "n1", "root", "n2")

    def test_max_depth_counts_subtree(self, sample_layout: UserLayout) -> None:
        sample_layout.insert(FolderDescription(id="s3"), "root")
        assert rules.can_move(sample_layout, "s1", "root", max_depth=2)
        assert not rules.can_move(sample_layout, "s1", "s3", max_depth=2)

    def test_unknown_node_raises(self, sample_layout: UserLayout) -> None:
        with pytest.raises(LayoutError):
            rules.can_move(sample_layout, "zz", "root")


class TestCanDelete:
    def test_plain_channel(self, sample_layout: UserLayout) -> None:
        assert rules.can_delete(sample_layout, "n1")

    def test_root_denied(self, sample_layout: UserLayout) -> None:
        assert not rules.can_delete(sample_layout, "root")

    def test_unremovable_denied(self, sample_layout: UserLayout) -> None:
        assert not rules.can_delete(sample_layout, "n4")

    def test_unremovable_descendant_denied(self, sample_layout: UserLayout) -> None:
        sample_layout.insert(ChannelDescription(id="n9", unremovable=True), "s1")
        assert not rules.can_delete(sample_layout, "s1")

    def test_child_of_immutable_denied(self, sample_layout: UserLayout) -> None:
        assert not rules.can_delete(sample_layout, "n3")

    def test_immutable_folder_itself(self, sample_layout: UserLayout) -> None:
        assert rules.can_delete(sample_layout, "s2")

    def test_unknown_node_raises(self, sample_layout: UserLayout) -> None:
        with pytest.raises(LayoutError):
            rules.can_delete(sample_layout, "zz")


class TestCanUpdate:
    def test_rename(self, sample_layout: UserLayout) -> None:
        assert rules.can_update(sample_layout, "s1", FolderDescription(name="Renamed"))

    def test_type_change_denied(self, sample_layout: UserLayout) -> None:
        assert not rules.can_update(sample_layout, "s1", ChannelDescription(name="Main"))

    def test_id_mismatch_denied(self, sample_layout: UserLayout) -> None:
        assert not rules.can_update(sample_layout, "s1", FolderDescription(id="s2"))

    def test_immutable_node(self, sample_layout: UserLayout) -> None:
        current = sample_layout.get("s2")
        assert rules.can_update(sample_layout, "s2", current)
        assert not rules.can_update(
            sample_layout, "s2", current.model_copy(update={"name": "Unlocked"})
        )

    def test_unremovable_flag_cannot_be_cleared(self, sample_layout: UserLayout) -> None:
        current = sample_layout.get("n4")
        cleared = current.model_copy(update={"unremovable": False})
        renamed = current.model_copy(update={"name": "Big clock"})
        assert not rules.can_update(sample_layout, "n4", cleared)
        assert rules.can_update(sample_layout, "n4", renamed)

    def test_flags_can_be_raised(self, sample_layout: UserLayout) -> None:
        current = sample_layout.get("s1")
        locked = current.model_copy(update={"immutable": True})
        assert rules.can_update(sample_layout, "s1", locked)


class TestTargets:
    def test_add_targets(self, sample_layout: UserLayout) -> None:
        targets = rules.add_targets(sample_layout, ChannelDescription())
        assert {m.kind for m in targets} == {MarkingType.ADD}
        assert {m.parent_id for m in targets} == {"root", "s1"}
        assert Marking(MarkingType.ADD, "s1", None) in targets
        assert len(targets) == 7

    def test_move_targets_skip_current_slot(self, sample_layout: UserLayout) -> None:
        targets = rules.move_targets(sample_layout, "n1")
        in_s1 = [m for m in targets if m.parent_id == "s1"]
        assert in_s1 == [Marking(MarkingType.MOVE, "s1", None)]
        assert len(targets) == 5

    def test_move_targets_unremovable(self, sample_layout: UserLayout) -> None:
        targets = rules.move_targets(sample_layout, "n4")
        assert [(m.parent_id, m.next_sibling_id) for m in targets] == [
            ("root", "s1"),
            ("root", "s2"),
        ]

    def test_targets_respect_max_depth(self, sample_layout: UserLayout) -> None:
        targets = rules.add_targets(sample_layout, ChannelDescription(), max_depth=1)
        assert {m.parent_id for m in targets} == {"root"}
