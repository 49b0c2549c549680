from __future__ import annotations

from datetime import datetime, timedelta

from conftest import auth_headers
from eonchat.core.relay import relay
from eonchat.models.message import Message
from eonchat.models.notification import Notification
from eonchat.models.user import User


class TestSearch:
    def test_prefix_match_excludes_caller(self, client, make_user):
        ada = make_user("ada1")
        make_user("adam2")
        make_user("bob3")

        response = client.get("/api/users/search", params={"query": "AD"}, headers=auth_headers(ada))

        assert response.status_code == 200
        assert [u["username"] for u in response.json()] == ["adam2"]

    def test_blank_query(self, client, make_user):
        ada = make_user("ada1")

        assert client.get("/api/users/search", params={"query": "  "}, headers=auth_headers(ada)).json() == []

    def test_wildcards_are_literal(self, client, make_user):
        ada = make_user("ada1")
        make_user("bob3")

        assert client.get("/api/users/search", params={"query": "%"}, headers=auth_headers(ada)).json() == []


class TestFriends:
    def test_lists_friends_in_adjacency_order(self, client, make_user, befriend):
        ada = make_user("ada1")
        bob = make_user("bob2")
        cy = make_user("cy3")
        befriend(ada, cy)
        befriend(ada, bob)

        response = client.get("/api/users/friends", headers=auth_headers(ada))

        assert [u["username"] for u in response.json()] == ["cy3", "bob2"]

    def test_remove_friend_cleans_both_sides_and_chats(self, client, db, make_user, befriend):
        ada = make_user("ada1")
        bob = make_user("bob2")
        befriend(ada, bob)
        db.add_all([
            Message(sender_id=ada.id, receiver_id=bob.id, content="hi"),
            Message(sender_id=bob.id, receiver_id=ada.id, content="hey"),
        ])
        db.commit()

        response = client.post(
            "/api/users/remove-friend", json={"friend_id": str(bob.id)}, headers=auth_headers(ada)
        )

        assert response.status_code == 200
        assert response.json()["deleted_messages"] == 2
        db.expire_all()
        assert db.get(User, ada.id).friends == []
        assert db.get(User, bob.id).friends == []
        assert db.query(Message).count() == 0


    def test_remove_non_friend_is_rejected(self, client, db, make_user):
        ada = make_user("ada1")
        bob = make_user("bob2")

        response = client.post(
            "/api/users/remove-friend", json={"friend_id": str(bob.id)}, headers=auth_headers(ada)
        )

        assert response.status_code == 400
        assert relay.pending == 0
        assert db.query(Notification).count() == 0

    def test_remove_unknown_user(self, client, db, make_user):
        ada = make_user("ada1")

        response = client.post(
            "/api/users/remove-friend",
            json={"friend_id": "00000000-0000-0000-0000-000000000000"},
            headers=auth_headers(ada),
        )

        assert response.status_code == 404
        assert relay.pending == 0
        assert db.query(Notification).count() == 0

    def test_one_sided_friendship_can_be_removed(self, client, db, make_user):
        bob = make_user("bob2")
        ada = make_user("ada1", friends=[bob])

        response = client.post(
            "/api/users/remove-friend", json={"friend_id": str(bob.id)}, headers=auth_headers(ada)
        )

        assert response.status_code == 200
        db.expire_all()
        assert db.get(User, ada.id).friends == []


class TestRecommendations:
    def test_diamond(self, client, db, make_user):
        start = datetime(2024, 1, 1)
        one, two, three, four = (
            make_user(f"user{i}", created_at=start + timedelta(minutes=i)) for i in range(1, 5)
        )
        for user, friends in ((one, [two, three]), (two, [one, four]), (three, [one, four]), (four, [two, three])):
            user.friends = [str(f.id) for f in friends]
        db.commit()

        response = client.get("/api/users/recommendations", headers=auth_headers(one))

        assert response.status_code == 200
        assert response.json() == [{"id": str(four.id), "username": "user4", "mutual_count": 2}]

    def test_no_friends_no_recommendations(self, client, make_user):
        loner = make_user("loner1")
        make_user("other2")

        assert client.get("/api/users/recommendations", headers=auth_headers(loner)).json() == []

    def test_network_snapshot(self, client, make_user, befriend):
        ada = make_user("ada1")
        bob = make_user("bob2")
        befriend(ada, bob)

        nodes = client.get("/api/users/network", headers=auth_headers(ada)).json()

        assert {n["username"]: n["friends"] for n in nodes} == {"ada1": [str(bob.id)], "bob2": [str(ada.id)]}
