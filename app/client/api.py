"""
Thin HTTP client for the listings API, used by the view-models in this
package and by scripts that talk to a running server.
"""
import logging
from typing import Any, Optional

import requests

from app.core.errors import TransientNetworkError, error_for_status

logger = logging.getLogger(__name__)

COMMENT_PATHS = {
    "update": ("/updates/{id}/comments", "/update-comments/{id}"),
    "listing": ("/local-listings/{id}/comments", "/local-listing-comments/{id}"),
}


def _error_detail(response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, list):
        # FastAPI request validation errors
        return "; ".join(item.get("msg", "") for item in detail if isinstance(item, dict))
    return detail or f"HTTP {response.status_code}"


class ApiClient:
    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        session=None,
        timeout: float = 10,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.session = session or requests.Session()
        self.timeout = timeout

    def request(self, method: str, path: str, json=None, params=None) -> Any:
        """
        Send a request and return the decoded JSON body.

        Error responses raise the matching ``AppError`` subclass carrying the
        server's ``detail``; a request that never got a response raises
        ``TransientNetworkError``.
        """
        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        try:
            response = self.session.request(
                method,
                f"{self.base_url}{path}",
                json=json,
                params=params,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise TransientNetworkError("Network error, please try again") from exc

        if response.status_code >= 400:
            raise error_for_status(response.status_code, _error_detail(response))
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    # Updates

    def toggle_like(self, update_id) -> dict:
        return self.request("POST", f"/updates/{update_id}/like")

    def pin(self, update_id) -> dict:
        return self.request("POST", "/pinned-posts/", json={"update_id": str(update_id)})

    def unpin(self, update_id) -> dict:
        return self.request("DELETE", "/pinned-posts/", params={"update_id": str(update_id)})

    def vote(self, kind: str, target_id, option_id) -> dict:
        if kind == "update":
            return self.request(
                "POST", f"/updates/{target_id}/vote", json={"option_id": str(option_id)}
            )
        return self.request(
            "POST",
            f"/comment-polls/{target_id}/vote",
            json={"option_id": str(option_id), "type": kind},
        )

    # Comments

    def list_comments(self, kind: str, parent_id, page: int = 1, limit: int = 50) -> dict:
        collection, _ = COMMENT_PATHS[kind]
        return self.request(
            "GET", collection.format(id=parent_id), params={"page": page, "limit": limit}
        )

    def add_comment(self, kind: str, parent_id, data: dict) -> dict:
        collection, _ = COMMENT_PATHS[kind]
        return self.request("POST", collection.format(id=parent_id), json=data)

    def edit_comment(self, kind: str, comment_id, data: dict) -> dict:
        _, item = COMMENT_PATHS[kind]
        return self.request("PATCH", item.format(id=comment_id), json=data)

    def delete_comment(self, kind: str, comment_id) -> dict:
        _, item = COMMENT_PATHS[kind]
        return self.request("DELETE", item.format(id=comment_id))

    # Listings

    def delete_listing(self, listing_id) -> dict:
        return self.request("DELETE", f"/local-listings/{listing_id}")
