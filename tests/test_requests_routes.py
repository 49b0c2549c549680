from __future__ import annotations

from conftest import auth_headers
from eonchat.models.friend_request import FriendRequest
from eonchat.models.user import User


def send_request(client, sender, receiver):
    return client.post("/api/requests/send", json={"receiver_id": str(receiver.id)}, headers=auth_headers(sender))


class TestSendRequest:
    def test_send_and_list_pending(self, client, make_user):
        ada = make_user("ada1")
        bob = make_user("bob2")

        sent = send_request(client, ada, bob)
        pending = client.get("/api/requests/pending", headers=auth_headers(bob))

        assert sent.status_code == 200
        assert sent.json()["status"] == "pending"
        assert [r["sender"]["username"] for r in pending.json()] == ["ada1"]

    def test_duplicate_request(self, client, make_user):
        ada = make_user("ada1")
        bob = make_user("bob2")
        send_request(client, ada, bob)

        response = send_request(client, ada, bob)

        assert response.status_code == 400
        assert response.json()["detail"] == "Request already sent"

    def test_request_to_self(self, client, make_user):
        ada = make_user("ada1")

        assert send_request(client, ada, ada).status_code == 400

    def test_request_to_friend(self, client, make_user, befriend):
        ada = make_user("ada1")
        bob = make_user("bob2")
        befriend(ada, bob)

        assert send_request(client, ada, bob).json()["detail"] == "Already friends"

    def test_unknown_receiver(self, client, make_user):
        ada = make_user("ada1")

        response = client.post(
            "/api/requests/send",
            json={"receiver_id": "00000000-0000-0000-0000-000000000000"},
            headers=auth_headers(ada),
        )

        assert response.status_code == 404


class TestAcceptRequest:
    def test_accept_creates_mutual_friendship(self, client, db, make_user):
        ada = make_user("ada1")
        bob = make_user("bob2")
        request_id = send_request(client, ada, bob).json()["id"]

        response = client.post("/api/requests/accept", json={"request_id": request_id}, headers=auth_headers(bob))

        assert response.status_code == 200
        assert response.json()["new_friend"]["username"] == "ada1"
        db.expire_all()
        assert db.get(User, ada.id).is_friend(bob.id)
        assert db.get(User, bob.id).is_friend(ada.id)
        assert db.query(FriendRequest).one().status == "accepted"
        assert client.get("/api/requests/pending", headers=auth_headers(bob)).json() == []

    def test_only_receiver_can_accept(self, client, make_user):
        ada = make_user("ada1")
        bob = make_user("bob2")
        request_id = send_request(client, ada, bob).json()["id"]

        response = client.post("/api/requests/accept", json={"request_id": request_id}, headers=auth_headers(ada))

        assert response.status_code == 403

    def test_accept_twice(self, client, make_user):
        ada = make_user("ada1")
        bob = make_user("bob2")
        request_id = send_request(client, ada, bob).json()["id"]
        client.post("/api/requests/accept", json={"request_id": request_id}, headers=auth_headers(bob))

        response = client.post("/api/requests/accept", json={"request_id": request_id}, headers=auth_headers(bob))

        assert response.status_code == 400
