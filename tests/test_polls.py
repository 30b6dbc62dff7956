from datetime import timedelta

import pytest

from app.core.config import settings
from app.core.errors import Conflict, NotFound, ValidationError
from app.schemas.comment import CommentCreate
from app.schemas.poll import PollCreate
from app.schemas.update import UpdateCreate
from app.services import comments, polls, updates
from app.utils.timeutils import utcnow

API = settings.API_V1_STR


@pytest.fixture
def poll_update(db, make_user):
    author = make_user()
    return updates.create_update(
        db,
        author,
        UpdateCreate(
            content="Where should the meetup be?",
            poll=PollCreate(question="Venue?", options=["Library", "Cafe", "Park"], duration_days=2),
        ),
    )


def test_vote_counts_once(db, make_user, poll_update):
    voter = make_user()
    library, cafe, _ = poll_update.poll_options

    result = polls.cast_vote(db, voter, "update", poll_update.id, library.id)
    assert result.voted_option_id == library.id
    assert result.total_votes == 1

    # A second vote is answered with the original choice and unchanged tallies
    again = polls.cast_vote(db, voter, "update", poll_update.id, cafe.id)
    assert again.voted_option_id == library.id
    assert again.total_votes == 1
    assert [opt.votes for opt in again.options] == [1, 0, 0]


def test_vote_after_expiry_is_rejected(db, make_user, poll_update):
    option = poll_update.poll_options[0]
    later = utcnow() + timedelta(days=3)
    with pytest.raises(ValidationError, match="ended"):
        polls.cast_vote(db, make_user(), "update", poll_update.id, option.id, now=later)


def test_vote_with_foreign_option(db, make_user, poll_update):
    other = updates.create_update(
        db,
        make_user(),
        UpdateCreate(content="Other", poll=PollCreate(question="?", options=["A", "B"])),
    )
    with pytest.raises(ValidationError, match="Invalid option"):
        polls.cast_vote(db, make_user(), "update", poll_update.id, other.poll_options[0].id)


def test_vote_on_update_without_poll(db, make_user):
    plain = updates.create_update(db, make_user(), UpdateCreate(content="No poll here"))
    with pytest.raises(ValidationError):
        polls.cast_vote(db, make_user(), "update", plain.id, plain.id)


def test_vote_on_missing_update(db, make_user, poll_update):
    with pytest.raises(NotFound):
        polls.cast_vote(db, make_user(), "update", poll_update.poll_options[0].id, poll_update.poll_options[0].id)


def test_poll_cannot_change_after_votes(db, make_user):
    author = make_user()
    update = updates.create_update(db, author, UpdateCreate(content="Thread"))
    comment = comments.create_comment(
        db,
        comments.UPDATE_THREAD,
        update.id,
        author,
        CommentCreate(poll=PollCreate(question="Tabs or spaces?", options=["Tabs", "Spaces"])),
    )
    polls.cast_vote(db, make_user(), "update-comment", comment.id, comment.poll_options[1].id)

    with pytest.raises(Conflict):
        polls.replace_poll(
            db, "update-comment", comment, PollCreate(question="Vim or Emacs?", options=["Vim", "Emacs"])
        )


def test_vote_endpoints(client, make_user, poll_update, auth):
    voter = make_user()
    option_id = str(poll_update.poll_options[1].id)

    status = client.get(f"{API}/updates/{poll_update.id}/vote", headers=auth(voter)).json()
    assert status == {"has_voted": False, "voted_option_id": None}

    response = client.post(
        f"{API}/updates/{poll_update.id}/vote", json={"option_id": option_id}, headers=auth(voter)
    )
    assert response.status_code == 200
    assert response.json()["voted_option_id"] == option_id

    status = client.get(f"{API}/updates/{poll_update.id}/vote", headers=auth(voter)).json()
    assert status == {"has_voted": True, "voted_option_id": option_id}

    update = client.get(f"{API}/updates/{poll_update.id}", headers=auth(voter)).json()
    assert update["poll"]["total_votes"] == 1
    assert update["poll"]["voted_option_id"] == option_id


def test_listing_comment_poll_vote(client, db, make_user, make_listing, auth):
    owner = make_user()
    listing = make_listing(owner)
    comment = comments.create_comment(
        db,
        comments.LISTING_THREAD,
        listing.id,
        owner,
        CommentCreate(content="Which day works?", poll=PollCreate(question="Day?", options=["Sat", "Sun"])),
    )
    option_id = str(comment.poll_options[0].id)

    response = client.post(
        f"{API}/comment-polls/{comment.id}/vote",
        json={"option_id": option_id, "type": "listing-comment"},
        headers=auth(make_user()),
    )
    assert response.status_code == 200
    assert response.json()["total_votes"] == 1

    wrong_kind = client.post(
        f"{API}/comment-polls/{comment.id}/vote",
        json={"option_id": option_id, "type": "update-comment"},
        headers=auth(make_user()),
    )
    assert wrong_kind.status_code == 404
