"""
Friend recommendation graph.

The friendship graph is rebuilt from a fresh snapshot of every user's friend
list on each request and queried for "people you may know": users exactly two
hops away from the target, ranked by how many mutual friends they share.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Iterable, Mapping

import networkx as nx

logger = logging.getLogger(__name__)


@dataclass
class Recommendation:
    """A friend-of-friend candidate"""

    id: str
    username: str | None
    mutual_count: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class FriendGraph:
    """Undirected friendship graph backed by NetworkX.

    Node and neighbour iteration follow insertion order, so candidates with
    equal mutual counts are returned in the order they were first reached.
    A node's neighbours are ordered by when each edge was first added while
    walking the snapshot, so an edge listed early by another user comes first.
    """

    def __init__(self) -> None:
        self.graph = nx.Graph()

    def add_user(self, user_id: Any, username: str | None = None) -> None:
        user_id = str(user_id)
        if user_id not in self.graph:
            self.graph.add_node(user_id, username=username)

    def add_edge(self, user_a: Any, user_b: Any) -> bool:
        """Register a friendship. Ignores self-loops and unknown endpoints."""
        user_a, user_b = str(user_a), str(user_b)
        if user_a == user_b:
            return False
        if user_a not in self.graph or user_b not in self.graph:
            logger.debug(f"Skipping edge {user_a}-{user_b}: endpoint not in snapshot")
            return False
        self.graph.add_edge(user_a, user_b)
        return True

    def has_user(self, user_id: Any) -> bool:
        return str(user_id) in self.graph

    def friends_of(self, user_id: Any) -> list[str]:
        user_id = str(user_id)
        if user_id not in self.graph:
            return []
        return list(self.graph.adj[user_id])

    def get_recommendations(self, target_id: Any) -> list[Recommendation]:
        """Rank users at distance two from ``target_id`` by mutual friend count.

        Unknown targets and users without friends get an empty list.
        """
        target_id = str(target_id)
        if target_id not in self.graph:
            return []

        direct = self.graph.adj[target_id]
        mutual_counts: dict[str, int] = {}

        for friend_id in direct:
            for candidate_id in self.graph.adj[friend_id]:
                if candidate_id == target_id or candidate_id in direct:
                    continue
                mutual_counts[candidate_id] = mutual_counts.get(candidate_id, 0) + 1

        recommendations = [
            Recommendation(
                id=candidate_id,
                username=self.graph.nodes[candidate_id].get("username"),
                mutual_count=count,
            )
            for candidate_id, count in mutual_counts.items()
        ]
        # sorted() is stable: ties keep first-encounter order
        return sorted(recommendations, key=lambda r: r.mutual_count, reverse=True)

    @property
    def node_count(self) -> int:
        return self.graph.number_of_nodes()

    @property
    def edge_count(self) -> int:
        return self.graph.number_of_edges()


def _field(record: Any, name: str, default: Any = None) -> Any:
    if isinstance(record, Mapping):
        return record.get(name, default)
    return getattr(record, name, default)


def build_friend_graph(users: Iterable[Any]) -> FriendGraph:
    """Build a graph from user rows or dicts carrying id, username and friends.

    Every user is added as a node before any edge, so an edge is kept as long
    as both endpoints exist in the snapshot, even when only one side lists it.
    """
    users = list(users)
    graph = FriendGraph()

    for user in users:
        graph.add_user(_field(user, "id"), _field(user, "username"))

    skipped = 0
    for user in users:
        user_id = _field(user, "id")
        for friend_id in _field(user, "friends") or []:
            if not graph.add_edge(user_id, friend_id):
                skipped += 1

    if skipped:
        logger.info(f"Friend graph built with {skipped} skipped friend entries")
    logger.debug(f"Friend graph: {graph.node_count} users, {graph.edge_count} friendships")
    return graph


def recommend_friends(users: Iterable[Any], target_id: Any) -> list[Recommendation]:
    """Build a fresh graph from ``users`` and query it for ``target_id``."""
    return build_friend_graph(users).get_recommendations(target_id)
