"""Tests for friend-of-friend recommendations."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from eonchat.core.friend_graph import FriendGraph, Recommendation, build_friend_graph, recommend_friends


def snapshot(adjacency: dict, usernames: dict | None = None) -> list[dict]:
    usernames = usernames or {}
    return [
        {"id": user_id, "username": usernames.get(user_id, f"user{user_id}"), "friends": friends}
        for user_id, friends in adjacency.items()
    ]


DIAMOND = {"1": ["2", "3"], "2": ["1", "4"], "3": ["1", "4"], "4": ["2", "3"]}


class TestRecommendations:
    def test_diamond_counts_both_paths(self):
        result = recommend_friends(snapshot(DIAMOND), "1")

        assert [r.to_dict() for r in result] == [{"id": "4", "username": "user4", "mutual_count": 2}]

    def test_user_without_friends_gets_nothing(self):
        users = snapshot({"1": [], "2": ["3"], "3": ["2"]})

        assert recommend_friends(users, "1") == []

    def test_unknown_target_gets_nothing(self):
        assert recommend_friends(snapshot(DIAMOND), "99") == []

    def test_excludes_self_and_direct_friends(self):
        # 1-2, 1-3, 2-3 triangle plus 3-4: only 4 is two hops away
        users = snapshot({"1": ["2", "3"], "2": ["1", "3"], "3": ["1", "2", "4"], "4": ["3"]})

        result = recommend_friends(users, "1")

        ids = [r.id for r in result]
        assert ids == ["4"]
        assert "1" not in ids
        assert "2" not in ids and "3" not in ids

    def test_sorted_by_mutual_count_descending(self):
        users = snapshot({
            "1": ["2", "3", "4"],
            "2": ["1", "5"],
            "3": ["1", "5", "6"],
            "4": ["1", "5", "6", "7"],
            "5": ["2", "3", "4"],
            "6": ["3", "4"],
            "7": ["4"],
        })

        result = recommend_friends(users, "1")

        assert [(r.id, r.mutual_count) for r in result] == [("5", 3), ("6", 2), ("7", 1)]

    def test_ties_keep_first_encounter_order(self):
        # 1's friends are listed 2 then 3; 2 reaches 9 first, then 3 reaches 8
        users = snapshot({
            "1": ["2", "3"],
            "2": ["1", "9"],
            "3": ["1", "8"],
            "8": ["3"],
            "9": ["2"],
        })

        result = recommend_friends(users, "1")

        assert [r.id for r in result] == ["9", "8"]

    def test_ties_follow_edge_insertion_order(self):
        # 2 is listed before 1, so edge 1-2 is added before 1-3 even though
        # 1 lists 3 first; 9 (via 2) is therefore reached before 8 (via 3)
        users = snapshot({
            "2": ["1", "9"],
            "3": ["1", "8"],
            "1": ["3", "2"],
            "8": ["3"],
            "9": ["2"],
        })

        assert [r.id for r in recommend_friends(users, "1")] == ["9", "8"]

    def test_one_sided_friend_entry_still_forms_edge(self):
        # Only 2 lists 4; the graph is undirected so 1 still reaches 4
        users = snapshot({"1": ["2"], "2": ["1", "4"], "4": []})

        assert [r.id for r in recommend_friends(users, "1")] == ["4"]

    def test_edges_to_unknown_users_are_skipped(self):
        users = snapshot({"1": ["2"], "2": ["1", "ghost"]})

        assert recommend_friends(users, "1") == []

    def test_self_listed_as_friend_is_ignored(self):
        users = snapshot({"1": ["1", "2"], "2": ["1", "3"], "3": ["2"]})

        assert [r.id for r in recommend_friends(users, "1")] == ["3"]

    def test_same_snapshot_gives_same_answer(self):
        users = snapshot(DIAMOND)

        first = recommend_friends(users, "1")
        second = recommend_friends(users, "1")
        graph = build_friend_graph(users)

        assert first == second
        assert graph.get_recommendations("1") == graph.get_recommendations("1")

    def test_accepts_orm_like_rows(self):
        rows = [
            SimpleNamespace(id=user_id, username=f"row{user_id}", friends=friends)
            for user_id, friends in DIAMOND.items()
        ]

        result = recommend_friends(rows, "1")

        assert result == [Recommendation(id="4", username="row4", mutual_count=2)]


class TestFriendGraph:
    def test_counts_nodes_and_undirected_edges(self):
        graph = build_friend_graph(snapshot(DIAMOND))

        assert graph.node_count == 4
        assert graph.edge_count == 4

    def test_add_edge_rejects_missing_endpoint(self):
        graph = FriendGraph()
        graph.add_user("a")

        assert graph.add_edge("a", "b") is False
        assert graph.friends_of("a") == []

    @pytest.mark.parametrize("missing", ["nobody", 42])
    def test_friends_of_unknown_user(self, missing):
        assert FriendGraph().friends_of(missing) == []

    def test_ids_are_normalized_to_strings(self):
        graph = FriendGraph()
        graph.add_user(1)
        graph.add_user("2")

        assert graph.add_edge(1, 2) is True
        assert graph.has_user("1")
        assert graph.friends_of(2) == ["1"]
