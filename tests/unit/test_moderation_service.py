from unittest.mock import MagicMock

import pytest
import requests
from sqlalchemy import select

from contest_portal.data.models import ModerationActionModel, NotificationModel, PostModel
from contest_portal.domain.errors import Conflict, Forbidden, NotFound, ValidationError
from contest_portal.services.moderation_service import ModerationService
from contest_portal.services.realtime_client import RealtimeClient


@pytest.fixture()
def service(db, realtime):
    return ModerationService(db, realtime=realtime)


@pytest.fixture()
def author(make_user):
    return make_user(name="Author")


@pytest.fixture()
def post(make_post, author):
    return make_post(author)


def _post(db, post_id):
    db.expire_all()
    return db.get(PostModel, post_id)


# =====================================================
# create
# =====================================================
def test_flagging_own_post_fails(service, author, post):
    with pytest.raises(ValidationError, match="own post"):
        service.create_flag(author.id, post.id, "SPAM")


def test_flagging_missing_post(service, member):
    with pytest.raises(NotFound):
        service.create_flag(member.id, 999, "SPAM")


def test_same_reason_twice_conflicts_but_different_reasons_succeed(db, service, member, post):
    service.create_flag(member.id, post.id, "SPAM")

    with pytest.raises(Conflict):
        service.create_flag(member.id, post.id, "SPAM")

    service.create_flag(member.id, post.id, "HARASSMENT")
    stored = _post(db, post.id)
    assert stored.flag_count == 2
    assert stored.is_flagged is True
    assert stored.moderation_status == "FLAGGED"


def test_flag_notifies_moderators(db, service, member, moderator, admin, post):
    flag = service.create_flag(member.id, post.id, "SCAM_FRAUD", details="Asks for card numbers", severity="HIGH")

    notes = list(db.execute(select(NotificationModel)).scalars())
    assert {n.user_id for n in notes} == {moderator.id, admin.id}
    assert all(n.data["flagId"] == flag.id for n in notes)
    assert flag.description == "Asks for card numbers"


def test_broadcast_failure_does_not_fail_flag(db, service, realtime, member, post):
    realtime.enabled = True
    realtime.emit.side_effect = requests.ConnectionError("relay down")

    flag = service.create_flag(member.id, post.id, "SPAM")

    assert flag.id is not None
    realtime.emit.assert_called_once()
    assert [name for name, _ in realtime.emit.call_args.args[0]] == ["newFlagCreated", "moderationStatsUpdate"]


def test_relay_timeout_costs_one_bounded_call(monkeypatch, db, member, post):
    post_mock = MagicMock(side_effect=requests.Timeout("relay slow"))
    monkeypatch.setattr(requests, "post", post_mock)
    service = ModerationService(db, realtime=RealtimeClient(relay_url="http://relay.local/emit"))

    flag = service.create_flag(member.id, post.id, "SPAM")

    assert flag.id is not None
    # jeden POST na operacje, bez ponawiania
    post_mock.assert_called_once()
    assert post_mock.call_args.kwargs["timeout"] == 8
    events = [e["event"] for e in post_mock.call_args.kwargs["json"]["events"]]
    assert events == ["newFlagCreated", "moderationStatsUpdate"]


def test_disabled_relay_is_never_called(service, realtime, member, post):
    service.create_flag(member.id, post.id, "SPAM")

    realtime.emit.assert_not_called()


# =====================================================
# review
# =====================================================
def test_resolving_only_flag_clears_post(db, service, member, moderator, post):
    flag = service.create_flag(member.id, post.id, "SPAM")

    service.review_flag(moderator, flag.id, "RESOLVED", review_notes="Removed the link")

    stored = _post(db, post.id)
    assert stored.is_flagged is False
    assert stored.flag_count == 0
    assert stored.moderation_status == "APPROVED"


def test_resolving_one_of_two_flags_keeps_post_flagged(db, service, member, make_user, moderator, post):
    first = service.create_flag(member.id, post.id, "SPAM")
    service.create_flag(make_user().id, post.id, "SPAM")

    service.review_flag(moderator, first.id, "DISMISSED")

    stored = _post(db, post.id)
    assert stored.is_flagged is True
    assert stored.flag_count == 1


def test_reviewed_flag_still_counts_as_open(db, service, member, moderator, post):
    flag = service.create_flag(member.id, post.id, "SPAM")

    service.review_flag(moderator, flag.id, "REVIEWED")
    service.review_flag(moderator, flag.id, "RESOLVED")

    assert _post(db, post.id).flag_count == 0


def test_closed_flag_cannot_be_reviewed_again(service, member, moderator, post):
    flag = service.create_flag(member.id, post.id, "SPAM")
    service.review_flag(moderator, flag.id, "RESOLVED")

    with pytest.raises(ValidationError, match="already been processed"):
        service.review_flag(moderator, flag.id, "DISMISSED")


def test_review_missing_flag(service, moderator):
    with pytest.raises(NotFound):
        service.review_flag(moderator, 404, "RESOLVED")


def test_member_cannot_review(service, member, make_user, post):
    flag = service.create_flag(member.id, post.id, "SPAM")

    with pytest.raises(Forbidden):
        service.review_flag(make_user(), flag.id, "RESOLVED")


def test_hide_action_updates_post_and_logs_actions(db, service, member, moderator, post):
    flag = service.create_flag(member.id, post.id, "HATE_SPEECH")

    service.review_flag(moderator, flag.id, "RESOLVED", moderation_action="HIDE_POST", moderation_reason="Hate speech")

    stored = _post(db, post.id)
    assert stored.is_hidden is True
    assert stored.moderated_by == moderator.id
    assert stored.moderation_reason == "Hate speech"

    history = service.moderation_history(post.id)
    assert sorted(a.action for a in history) == ["APPROVE_FLAG", "HIDE_POST"]
    approve = next(a for a in history if a.action == "APPROVE_FLAG")
    assert approve.meta == {"flagId": flag.id, "flagReason": "HATE_SPEECH", "reviewStatus": "RESOLVED"}


def test_delete_action_is_soft(db, service, member, moderator, post):
    flag = service.create_flag(member.id, post.id, "ILLEGAL_CONTENT")

    service.review_flag(moderator, flag.id, "RESOLVED", moderation_action="DELETE_POST")

    stored = _post(db, post.id)
    assert stored is not None
    assert stored.moderation_status == "REMOVED"


def test_resolution_is_broadcast(service, realtime, member, moderator, post):
    flag = service.create_flag(member.id, post.id, "SPAM")
    realtime.enabled = True
    realtime.emit.reset_mock()

    service.review_flag(moderator, flag.id, "RESOLVED")

    realtime.emit.assert_called_once()
    events = [name for name, _ in realtime.emit.call_args.args[0]]
    assert events == ["flagsResolved", "postModerationUpdate", "moderationStatsUpdate"]


# =====================================================
# queries
# =====================================================
def test_list_flags_orders_by_severity_and_paginates(service, make_user, make_post, author):
    posts = [make_post(author, f"post {i}") for i in range(3)]
    reporter = make_user()
    service.create_flag(reporter.id, posts[0].id, "SPAM", severity="LOW")
    service.create_flag(reporter.id, posts[1].id, "SPAM", severity="CRITICAL")
    service.create_flag(reporter.id, posts[2].id, "SPAM", severity="MEDIUM")

    page = service.list_flags(limit=2)

    assert [f.severity for f in page["flags"]] == ["CRITICAL", "MEDIUM"]
    assert page["pagination"] == {
        "current_page": 1,
        "total_pages": 2,
        "total_flags": 3,
        "has_next": True,
        "has_prev": False,
    }
    assert [f.severity for f in service.list_flags(page=2, limit=2)["flags"]] == ["LOW"]
    assert service.list_flags(severity="LOW")["pagination"]["total_flags"] == 1


def test_moderation_stats(service, member, make_user, moderator, post):
    flag = service.create_flag(member.id, post.id, "SPAM")
    service.create_flag(make_user().id, post.id, "OFF_TOPIC")
    service.review_flag(moderator, flag.id, "ESCALATED")

    stats = service.moderation_stats()

    assert stats["pending_reports"] == 1
    assert stats["escalated_reports"] == 1
    assert stats["flagged_posts"] == 1
    assert stats["total_reports"] == 2


def test_get_flag_and_history_not_found(service):
    with pytest.raises(NotFound):
        service.get_flag(1)
    with pytest.raises(NotFound):
        service.moderation_history(1)
