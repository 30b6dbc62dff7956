from typing import List, Optional

from app.core.errors import AppError


class CommentThread:
    """
    Comments under one update (``kind="update"``) or one listing (``kind="listing"``).

    Mutations report failures through ``error`` and leave the thread as it was.
    """

    def __init__(self, client, kind: str, parent_id, viewer_id=None, comment_count: int = 0):
        self.client = client
        self.kind = kind
        self.parent_id = parent_id
        self.viewer_id = str(viewer_id) if viewer_id else None
        self.comments: List[dict] = []
        self.comment_count = comment_count
        self.error: Optional[str] = None

    def load(self) -> bool:
        self.error = None
        try:
            page = self.client.list_comments(self.kind, self.parent_id)
        except AppError as exc:
            self.error = exc.message
            return False
        self.comments = page["data"]
        self.comment_count = page["total"]
        return True

    def can_modify(self, comment: dict) -> bool:
        return self.viewer_id is not None and str(comment["user"]["id"]) == self.viewer_id

    def add(self, content: str = "", **attachments) -> bool:
        self.error = None
        try:
            comment = self.client.add_comment(
                self.kind, self.parent_id, dict(content=content, **attachments)
            )
        except AppError as exc:
            self.error = exc.message
            return False
        self.comments.append(comment)
        self.comment_count += 1
        return True

    def _find(self, comment_id) -> int:
        for index, comment in enumerate(self.comments):
            if str(comment["id"]) == str(comment_id):
                return index
        raise KeyError(comment_id)

    def edit(self, comment_id, content: str) -> bool:
        index = self._find(comment_id)
        self.error = None
        try:
            updated = self.client.edit_comment(self.kind, comment_id, {"content": content})
        except AppError as exc:
            self.error = exc.message
            return False
        self.comments[index] = updated
        return True

    def delete(self, comment_id) -> bool:
        index = self._find(comment_id)
        self.error = None
        try:
            self.client.delete_comment(self.kind, comment_id)
        except AppError as exc:
            self.error = exc.message
            return False
        del self.comments[index]
        self.comment_count = max(0, self.comment_count - 1)
        return True
