import pytest

from contest_portal.api import deps
from contest_portal.domain.errors import RateLimited
from tests.helpers import auth


@pytest.fixture()
def author(make_user):
    return make_user(name="Author")


@pytest.fixture()
def post(make_post, author):
    return make_post(author)


def _flag(client, user, post, reason="SPAM", **extra):
    return client.post("/flags", json={"postId": post.id, "reason": reason, **extra}, headers=auth(user))


def test_create_flag(client, member, post):
    res = _flag(client, member, post, details="Buy followers here", severity="HIGH")

    body = res.json()
    assert res.status_code == 201
    assert body["message"] == "Post flagged successfully"
    assert body["data"]["status"] == "PENDING"
    assert body["data"]["severity"] == "HIGH"
    assert body["data"]["postId"] == post.id


def test_flag_errors_map_to_status_codes(client, member, author, post):
    assert _flag(client, author, post).status_code == 400
    assert _flag(client, member, post).status_code == 201
    duplicate = _flag(client, member, post)
    assert duplicate.status_code == 409
    assert duplicate.json()["success"] is False
    assert _flag(client, member, post, reason="OFF_TOPIC").status_code == 201
    assert _flag(client, member, post, reason="NOT_A_REASON").status_code == 400
    assert client.post("/flags", json={"postId": 999, "reason": "SPAM"}, headers=auth(member)).status_code == 404


def test_member_cannot_list_flags(client, member):
    res = client.get("/flags", headers=auth(member))

    assert res.status_code == 403
    assert res.json() == {"success": False, "error": "Insufficient permissions"}


def test_moderator_lists_and_resolves(client, member, moderator, post):
    flag_id = _flag(client, member, post).json()["data"]["id"]

    listing = client.get("/flags", params={"status": "PENDING"}, headers=auth(moderator)).json()["data"]
    assert [f["id"] for f in listing["flags"]] == [flag_id]
    assert listing["pagination"] == {
        "currentPage": 1,
        "totalPages": 1,
        "totalFlags": 1,
        "hasNext": False,
        "hasPrev": False,
    }

    res = client.patch(
        f"/flags/{flag_id}",
        json={"status": "RESOLVED", "reviewNotes": "ok", "moderationAction": "LOCK_POST"},
        headers=auth(moderator),
    )
    assert res.status_code == 200
    assert res.json()["message"] == "Report resolved successfully"
    assert res.json()["data"]["reviewedBy"] == moderator.id

    again = client.patch(f"/flags/{flag_id}", json={"status": "DISMISSED"}, headers=auth(moderator))
    assert again.status_code == 400

    history = client.get(f"/posts/{post.id}/moderation-history", headers=auth(moderator)).json()["data"]
    assert sorted(a["action"] for a in history) == ["APPROVE_FLAG", "LOCK_POST"]
    approve = next(a for a in history if a["action"] == "APPROVE_FLAG")
    assert approve["metadata"]["reviewStatus"] == "RESOLVED"

    stats = client.get("/moderation/stats", headers=auth(moderator)).json()["data"]
    assert stats["resolvedReports"] == 1
    assert stats["flaggedPosts"] == 0


def test_get_flag(client, member, moderator, post):
    flag_id = _flag(client, member, post).json()["data"]["id"]

    assert client.get(f"/flags/{flag_id}", headers=auth(moderator)).json()["data"]["reason"] == "SPAM"
    assert client.get("/flags/9999", headers=auth(moderator)).status_code == 404


def test_review_with_unknown_status_is_400(client, member, moderator, post):
    flag_id = _flag(client, member, post).json()["data"]["id"]

    res = client.patch(f"/flags/{flag_id}", json={"status": "PENDING"}, headers=auth(moderator))

    assert res.status_code == 400


def test_flagging_is_rate_limited(app, client, member, make_post, author):
    # lokalny limiter w pamieci: 2 zgloszenia na okno
    hits = []

    def two_per_window():
        if len(hits) >= 2:
            raise RateLimited("Too many requests. Please try again in 60 seconds.")
        hits.append(1)

    app.dependency_overrides[deps.flag_rate_limit] = two_per_window
    posts = [make_post(author) for _ in range(3)]

    codes = [_flag(client, member, p).status_code for p in posts]

    assert codes == [201, 201, 429]
