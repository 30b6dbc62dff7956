import logging
from typing import Optional

from app.client.optimistic import optimistic_update
from app.core.errors import AppError

logger = logging.getLogger(__name__)


class LikeButton:
    """Like toggle for one update. Failures roll back without surfacing an error."""

    def __init__(self, client, update_id, liked: bool = False, likes_count: int = 0):
        self.client = client
        self.update_id = update_id
        self.liked = liked
        self.likes_count = likes_count
        self.is_liking = False

    def _flip(self):
        self.likes_count += -1 if self.liked else 1
        self.liked = not self.liked

    def _confirm(self, result: dict):
        self.liked = result["liked"]
        self.likes_count = result["likes_count"]

    def _restore(self, saved):
        self.liked, self.likes_count = saved

    def toggle(self) -> bool:
        if self.is_liking:
            return False
        self.is_liking = True
        try:
            optimistic_update(
                snapshot=lambda: (self.liked, self.likes_count),
                apply=self._flip,
                request=lambda: self.client.toggle_like(self.update_id),
                confirm=self._confirm,
                revert=self._restore,
            )
        except AppError as exc:
            logger.warning("Like on update %s rolled back: %s", self.update_id, exc.message)
            return False
        finally:
            self.is_liking = False
        return True


class PinButton:
    """Pin/unpin for one update. State only changes once the server agrees."""

    def __init__(self, client, update_id, is_pinned: bool = False):
        self.client = client
        self.update_id = update_id
        self.is_pinned = is_pinned
        self.is_loading = False
        self.error: Optional[str] = None

    def toggle(self) -> bool:
        if self.is_loading:
            return False
        self.is_loading = True
        self.error = None
        try:
            if self.is_pinned:
                self.client.unpin(self.update_id)
            else:
                self.client.pin(self.update_id)
        except AppError as exc:
            self.error = exc.message
            return False
        finally:
            self.is_loading = False
        self.is_pinned = not self.is_pinned
        return True
