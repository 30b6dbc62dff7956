import copy
import logging
from datetime import datetime
from typing import List, Optional

from app.client.optimistic import optimistic_update
from app.core.errors import AppError
from app.utils.timeutils import as_utc, utcnow

logger = logging.getLogger(__name__)


def _parse_time(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return as_utc(value)
    return as_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))


class PollWidget:
    """
    Poll attached to an update or a comment.

    ``kind`` is one of ``update``, ``update-comment`` or ``listing-comment``;
    ``poll`` is the serialized poll as the API returns it.
    """

    def __init__(self, client, kind: str, target_id, poll: dict):
        self.client = client
        self.kind = kind
        self.target_id = target_id
        self.question = poll["question"]
        self.expires_at = _parse_time(poll.get("expires_at"))
        self.options: List[dict] = [dict(opt) for opt in poll["options"]]
        self.voted_option_id = poll.get("voted_option_id")
        self.is_voting = False

    @property
    def total_votes(self) -> int:
        return sum(opt["votes"] for opt in self.options)

    @property
    def has_voted(self) -> bool:
        return self.voted_option_id is not None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        return (now or utcnow()) > self.expires_at

    def show_results(self, now: Optional[datetime] = None) -> bool:
        return self.has_voted or self.is_expired(now)

    def can_vote(self, now: Optional[datetime] = None) -> bool:
        return not (self.is_voting or self.has_voted or self.is_expired(now))

    def percentage(self, option: dict) -> int:
        total = self.total_votes
        if not total:
            return 0
        return round(option["votes"] * 100 / total)

    def is_winning(self, option: dict) -> bool:
        # Ties: every option at the max count wins
        top = max((opt["votes"] for opt in self.options), default=0)
        return top > 0 and option["votes"] == top

    def time_remaining(self, now: Optional[datetime] = None) -> str:
        if self.expires_at is None:
            return ""
        seconds = int((self.expires_at - (now or utcnow())).total_seconds())
        if seconds <= 0:
            return "Poll ended"
        days, rest = divmod(seconds, 86400)
        hours, rest = divmod(rest, 3600)
        if days:
            return f"{days}d {hours}h left"
        if hours:
            return f"{hours}h left"
        return f"{rest // 60}m left"

    def _apply_vote(self, option_id):
        self.voted_option_id = str(option_id)
        for opt in self.options:
            if str(opt["id"]) == str(option_id):
                opt["votes"] += 1

    def _confirm(self, result: dict):
        self.options = [dict(opt) for opt in result["options"]]
        self.voted_option_id = result["voted_option_id"]

    def _restore(self, saved):
        self.options, self.voted_option_id = saved

    def vote(self, option_id, now: Optional[datetime] = None) -> bool:
        if not self.can_vote(now):
            return False
        self.is_voting = True
        try:
            optimistic_update(
                snapshot=lambda: (copy.deepcopy(self.options), self.voted_option_id),
                apply=lambda: self._apply_vote(option_id),
                request=lambda: self.client.vote(self.kind, self.target_id, option_id),
                confirm=self._confirm,
                revert=self._restore,
            )
        except AppError as exc:
            logger.warning("Vote on %s %s rolled back: %s", self.kind, self.target_id, exc.message)
            return False
        finally:
            self.is_voting = False
        return True
