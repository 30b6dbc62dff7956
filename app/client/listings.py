from typing import List, Optional

from app.core.errors import AppError
from app.models.local_listing import ListingCategory

# UI-only tab, never stored as a listing category
JOBS_TAB = "JOBS"


def category_tabs(location_slug: Optional[str] = None) -> List[str]:
    """Tabs for the local board. Jobs only make sense with a location picked."""
    tabs = [category.value for category in ListingCategory]
    if location_slug:
        tabs.append(JOBS_TAB)
    return tabs


class ListingCard:
    """
    Listing summary card. Owners get view/edit/delete actions, where delete
    needs a second confirming call; visitors get a read-only card.
    """

    def __init__(self, client, listing: dict, viewer_id=None):
        self.client = client
        self.listing = listing
        self.viewer_id = str(viewer_id) if viewer_id else None
        self.confirming_delete = False
        self.is_deleting = False
        self.deleted = False
        self.error: Optional[str] = None

    @property
    def is_owner(self) -> bool:
        return self.viewer_id is not None and str(self.listing["user_id"]) == self.viewer_id

    @property
    def actions(self) -> List[str]:
        if self.is_owner:
            return ["view", "edit", "delete"]
        return ["view"]

    def request_delete(self) -> bool:
        """First call arms the delete, second call sends it. Returns True once deleted."""
        if not self.is_owner or self.is_deleting or self.deleted:
            return False
        if not self.confirming_delete:
            self.confirming_delete = True
            return False

        self.is_deleting = True
        self.error = None
        try:
            self.client.delete_listing(self.listing["id"])
        except AppError as exc:
            self.error = exc.message
            return False
        finally:
            self.is_deleting = False
            self.confirming_delete = False
        self.deleted = True
        return True

    def cancel_delete(self) -> None:
        self.confirming_delete = False
