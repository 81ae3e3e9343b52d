import pytest

from core.exceptions import (
    HasDependents, InvalidCategory, InvalidMedia, MediaNotApproved, MissingField, NotFound
)
from database.models import Vote
from services.category_service import CategoryService
from services.media_service import MediaService
from services.nominee_service import NomineeService
from services.vote_service import VoteService

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


@pytest.fixture
def category(session, admin_id):
    return CategoryService.create_category(session, "Best Album", created_by=admin_id, year=2024)


def pending_media(session, storage, user_id):
    return MediaService.upload_media(session, storage, user_id, PNG, "cover.png", "image/png")


def test_category_defaults(category):
    assert category.voting_enabled is True
    assert category.allow_multiple_votes is False
    assert category.is_active is True
    assert category.order == 0


def test_category_requires_name(session, admin_id):
    with pytest.raises(MissingField):
        CategoryService.create_category(session, "   ", created_by=admin_id)


def test_category_listing_filters_and_order(session, admin_id):
    CategoryService.create_category(session, "Zeta", created_by=admin_id, order=1, year=2024)
    CategoryService.create_category(session, "Alpha", created_by=admin_id, order=2, year=2023)
    CategoryService.create_category(session, "Beta", created_by=admin_id, order=1, year=2024)
    hidden = CategoryService.create_category(session, "Hidden", created_by=admin_id, order=0)
    CategoryService.update_category(session, hidden.id, {"isActive": False})

    assert [c.name for c in CategoryService.list_categories(session)] == ["Hidden", "Beta", "Zeta", "Alpha"]
    assert [c.name for c in CategoryService.list_categories(session, active_only=True)] == ["Beta", "Zeta", "Alpha"]
    assert [c.name for c in CategoryService.list_categories(session, year=2024)] == ["Beta", "Zeta"]


def test_category_partial_update_ignores_nulls_for_required_columns(session, category):
    updated = CategoryService.update_category(
        session, category.id, {"description": "Albums", "votingEnabled": None, "allowMultipleVotes": True}
    )

    assert updated.description == "Albums"
    assert updated.voting_enabled is True
    assert updated.allow_multiple_votes is True


def test_category_with_nominees_cannot_be_deleted(session, category, admin_id):
    NomineeService.create_nominee(session, "Record", category.id, admin_id)

    with pytest.raises(HasDependents):
        CategoryService.delete_category(session, category.id)
    assert CategoryService.get_category(session, category.id) is not None


def test_empty_category_delete_then_unretrievable(session, category):
    CategoryService.delete_category(session, category.id)

    assert CategoryService.get_category(session, category.id) is None
    with pytest.raises(NotFound):
        CategoryService.delete_category(session, category.id)


def test_nominee_requires_existing_category(session, admin_id):
    with pytest.raises(InvalidCategory):
        NomineeService.create_nominee(session, "Orphan", "missing", admin_id)
    with pytest.raises(MissingField):
        NomineeService.create_nominee(session, "", "missing", admin_id)
    with pytest.raises(MissingField):
        NomineeService.create_nominee(session, "No category", None, admin_id)


def test_nominee_media_must_exist(session, category, admin_id):
    with pytest.raises(InvalidMedia):
        NomineeService.create_nominee(session, "Record", category.id, admin_id, linked_media_id="missing")


def test_nominee_media_must_be_approved(session, storage, category, user_id, admin_id):
    pending = pending_media(session, storage, user_id)
    rejected = pending_media(session, storage, user_id)
    approved = pending_media(session, storage, user_id)
    MediaService.review_media(session, storage, admin_id, rejected.id, "rejected")
    MediaService.review_media(session, storage, admin_id, approved.id, "approved")

    with pytest.raises(MediaNotApproved):
        NomineeService.create_nominee(session, "A", category.id, admin_id, linked_media_id=pending.id)
    with pytest.raises(MediaNotApproved):
        NomineeService.create_nominee(session, "B", category.id, admin_id, linked_media_id=rejected.id)

    nominee = NomineeService.create_nominee(session, "C", category.id, admin_id, linked_media_id=approved.id)
    assert nominee.linked_media_id == approved.id


def test_nominee_update_checks_references_exist(session, storage, category, user_id, admin_id):
    nominee = NomineeService.create_nominee(session, "Record", category.id, admin_id)

    with pytest.raises(InvalidCategory):
        NomineeService.update_nominee(session, nominee.id, {"category": "missing"})
    with pytest.raises(InvalidMedia):
        NomineeService.update_nominee(session, nominee.id, {"linked_media": "missing"})

    # Approval is only enforced at creation
    pending = pending_media(session, storage, user_id)
    updated = NomineeService.update_nominee(session, nominee.id, {"linked_media": pending.id, "name": "Renamed"})
    assert updated.linked_media_id == pending.id
    assert updated.name == "Renamed"

    with pytest.raises(NotFound):
        NomineeService.update_nominee(session, "missing", {"name": "x"})


def test_nominee_listing(session, category, admin_id):
    other = CategoryService.create_category(session, "Other", created_by=admin_id)
    NomineeService.create_nominee(session, "B", category.id, admin_id)
    NomineeService.create_nominee(session, "A", category.id, admin_id)
    NomineeService.create_nominee(session, "Inactive", category.id, admin_id, is_active=False)
    NomineeService.create_nominee(session, "Elsewhere", other.id, admin_id)

    assert [n.name for n in NomineeService.list_nominees(session, category.id)] == ["A", "B"]
    assert len(NomineeService.list_nominees(session, category.id, only_active=False)) == 3
    assert len(NomineeService.list_nominees(session)) == 3


def test_nominee_with_votes_cannot_change_category(session, category, admin_id, user_id):
    other = CategoryService.create_category(session, "Best Single", created_by=admin_id)
    voted = NomineeService.create_nominee(session, "Record", category.id, admin_id)
    unvoted = NomineeService.create_nominee(session, "Demo", category.id, admin_id)
    VoteService.cast_vote(session, user_id, category.id, voted.id)

    with pytest.raises(HasDependents):
        NomineeService.update_nominee(session, voted.id, {"category": other.id})

    session.expire_all()
    assert NomineeService.get_nominee(session, voted.id).category_id == category.id
    assert VoteService.tally(session, other.id) == []
    assert VoteService.tally(session, category.id)[0]["voteCount"] == 1

    # Same category and unvoted nominees are unaffected
    NomineeService.update_nominee(session, voted.id, {"category": category.id, "name": "Record II"})
    moved = NomineeService.update_nominee(session, unvoted.id, {"category": other.id})
    assert moved.category_id == other.id


def test_nominee_delete_removes_its_votes(session, category, admin_id, user_id):
    nominee = NomineeService.create_nominee(session, "Record", category.id, admin_id)
    VoteService.cast_vote(session, user_id, category.id, nominee.id)

    assert NomineeService.delete_nominee(session, nominee.id) == 1

    assert session.query(Vote).count() == 0
    assert VoteService.tally(session, category.id) == []
    CategoryService.delete_category(session, category.id)


# HTTP

def test_category_endpoints(client, admin_headers, user_headers):
    payload = {"name": "Best Video", "description": "Music videos", "year": 2024, "allowMultipleVotes": True}
    assert client.post("/api/categories", json=payload, headers=user_headers).status_code == 403
    assert client.post("/api/categories", json=payload).status_code == 401

    created = client.post("/api/categories", json=payload, headers=admin_headers)
    assert created.status_code == 201
    category = created.json()["data"]
    assert category["allowMultipleVotes"] is True
    assert category["votingEnabled"] is True

    listed = client.get("/api/categories").json()["data"]
    assert [c["id"] for c in listed] == [category["id"]]

    updated = client.put(f"/api/categories/{category['id']}", json={"votingEnabled": False}, headers=admin_headers)
    assert updated.json()["data"]["votingEnabled"] is False
    assert updated.json()["data"]["name"] == "Best Video"

    nominee = client.post(
        "/api/nominees", json={"name": "Clip", "category": category["id"]}, headers=admin_headers
    ).json()["data"]
    detail = client.get(f"/api/categories/{category['id']}").json()["data"]
    assert [n["id"] for n in detail["nominees"]] == [nominee["id"]]

    blocked = client.delete(f"/api/categories/{category['id']}", headers=admin_headers)
    assert blocked.status_code == 400
    assert blocked.json()["error"] == "has_dependents"

    assert client.delete(f"/api/nominees/{nominee['id']}", headers=admin_headers).status_code == 200
    assert client.delete(f"/api/categories/{category['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/categories/{category['id']}").status_code == 404


def test_category_create_without_name_is_400(client, admin_headers):
    response = client.post("/api/categories", json={"description": "nameless"}, headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["message"] == "Category name is required"


def test_nominee_endpoints(client, admin_headers, user_headers):
    category = client.post("/api/categories", json={"name": "Best Song"}, headers=admin_headers).json()["data"]

    invalid = client.post("/api/nominees", json={"name": "X", "category": "missing"}, headers=admin_headers)
    assert invalid.status_code == 400
    assert invalid.json()["error"] == "invalid_category"

    assert client.post("/api/nominees", json={"name": "X", "category": category["id"]}, headers=user_headers).status_code == 403

    nominee = client.post(
        "/api/nominees", json={"name": "Song A", "description": "first", "category": category["id"]}, headers=admin_headers
    ).json()["data"]
    assert nominee["linkedMedia"] is None

    fetched = client.get(f"/api/nominees/{nominee['id']}").json()["data"]
    assert fetched["name"] == "Song A"

    renamed = client.put(f"/api/nominees/{nominee['id']}", json={"name": "Song A (remix)"}, headers=admin_headers)
    assert renamed.json()["data"]["name"] == "Song A (remix)"
    assert renamed.json()["data"]["description"] == "first"

    listed = client.get("/api/nominees", params={"category_id": category["id"]}).json()["data"]
    assert [n["id"] for n in listed] == [nominee["id"]]

    assert client.get("/api/nominees/missing").status_code == 404


def test_nominee_links_approved_media_over_http(client, admin_headers, user_headers):
    media = client.post(
        "/api/media/upload", files={"file": ("a.png", PNG, "image/png")}, headers=user_headers
    ).json()["data"]
    category = client.post("/api/categories", json={"name": "Best Cover"}, headers=admin_headers).json()["data"]

    refused = client.post(
        "/api/nominees", json={"name": "Cover", "category": category["id"], "linked_media": media["id"]}, headers=admin_headers
    )
    assert refused.status_code == 400
    assert refused.json()["error"] == "media_not_approved"

    client.post("/api/media/review", json={"media_id": media["id"], "status": "approved"}, headers=admin_headers)
    accepted = client.post(
        "/api/nominees", json={"name": "Cover", "category": category["id"], "linked_media": media["id"]}, headers=admin_headers
    )
    assert accepted.status_code == 201
    assert accepted.json()["data"]["linkedMedia"]["id"] == media["id"]
