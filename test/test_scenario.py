"""
End-to-end walk through the public API, the way a client would use it.
"""
from conftest import ADMIN_PASSWORD


def login(client, username, password):
    response = client.post("/api/auth/token", json={"username": username, "password": password})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['data']['access_token']}"}


def test_alice_votes_once_for_best_song(client, admin_id):
    registered = client.post("/api/auth/register", json={
        "username": "alice", "email": "alice@example.com", "password": "wonderland"
    })
    assert registered.status_code == 201

    alice = login(client, "alice", "wonderland")
    admin = login(client, "admin", ADMIN_PASSWORD)

    category = client.post("/api/categories", json={"name": "Best Song"}, headers=admin)
    assert category.status_code == 201
    category_id = category.json()["data"]["id"]

    nominee = client.post("/api/nominees", json={"name": "Song A", "category": category_id}, headers=admin)
    assert nominee.status_code == 201
    nominee_id = nominee.json()["data"]["id"]

    vote = client.post("/api/votes", json={"category_id": category_id, "nominee_id": nominee_id}, headers=alice)
    assert vote.status_code == 201
    assert vote.json()["success"] is True

    results = client.get("/api/votes/results", params={"category_id": category_id}).json()["data"]
    assert results == [{
        "nomineeId": nominee_id,
        "nomineeName": "Song A",
        "categoryId": category_id,
        "voteCount": 1,
    }]

    again = client.post("/api/votes", json={"category_id": category_id, "nominee_id": nominee_id}, headers=alice)
    assert again.status_code == 400
    assert again.json()["success"] is False
    assert again.json()["error"] == "duplicate_vote"

    results = client.get("/api/votes/results", params={"category_id": category_id}).json()["data"]
    assert results[0]["voteCount"] == 1
