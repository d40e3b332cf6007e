"""
Listing service: creation, owner edits, soft deletes and search.

CRITICAL RULES:
1. Listings are never physically removed; delete sets the soft-delete flag
2. Completed or soft-deleted listings refuse edits
3. Owners cannot delete a completed listing; admins can
4. Status is never set here; only the trade lifecycle moves it
"""

from typing import List, Optional

from hanger.logging import get_logger, LogStream
from hanger.services.audit import rejections_logged, require_account, require_admin
from hanger.state.entities import Listing, ListingDraft, ListingEdit, ListingStatus
from hanger.state.errors import (
    ListingUnavailableError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from hanger.state.store import EntityStore


def _validate_title(title: str) -> None:
    if not title or not title.strip():
        raise ValidationError("Title must not be blank", field="title")


def _validate_price(price: int) -> None:
    if isinstance(price, bool) or not isinstance(price, int):
        raise ValidationError(f"Price must be an integer amount, got {price!r}", field="price")
    if price < 0:
        raise ValidationError(f"Price must be >= 0, got {price}", field="price")


class ListingService:
    """Owner and admin operations on listings."""

    def __init__(self, store: EntityStore):
        self.store = store
        self.logger = get_logger(LogStream.LISTINGS)

    # ========================================================================
    # MUTATIONS
    # ========================================================================

    @rejections_logged(LogStream.LISTINGS)
    def create_listing(self, owner: str, draft: ListingDraft) -> Listing:
        """
        Raises:
            NotFoundError: unknown owner
            ValidationError: blank title or negative price
        """
        require_account(self.store, owner)
        _validate_title(draft.title)
        _validate_price(draft.price)

        now = self.store.clock.now()
        listing = Listing(
            listing_id=self.store.next_listing_id(),
            owner=owner,
            title=draft.title.strip(),
            category=draft.category,
            price=draft.price,
            location=draft.location,
            condition=draft.condition,
            description=draft.description,
            created_at=now,
            updated_at=now,
        )
        self.store.listings[listing.listing_id] = listing
        self.store.save()

        self.logger.info("Listing created", extra={
            "listing_id": listing.listing_id,
            "owner": owner,
            "price": listing.price,
        })
        return listing

    @rejections_logged(LogStream.LISTINGS)
    def edit_listing(self, listing_id: int, actor: str, edit: ListingEdit) -> Listing:
        """
        Apply a partial edit. An edit with no fields set is a no-op.

        Raises:
            NotFoundError: unknown listing
            UnauthorizedError: actor is not the owner
            ListingUnavailableError: listing completed or deleted
            ValidationError: blank title or negative price
        """
        listing = self._owned_by(listing_id, actor)
        if listing.is_locked:
            raise ListingUnavailableError(
                f"Listing {listing_id} can no longer be edited",
                listing_id=listing_id,
                status=listing.status.value,
                deleted=listing.deleted,
            )
        if edit.title is not None:
            _validate_title(edit.title)
        if edit.price is not None:
            _validate_price(edit.price)

        changes = listing.apply_edit(edit, self.store.clock.now())
        if not changes:
            return listing

        self.store.save()
        self.logger.info("Listing edited", extra={
            "listing_id": listing_id,
            "fields": sorted(changes),
        })
        return listing

    @rejections_logged(LogStream.LISTINGS)
    def delete_listing(self, listing_id: int, actor: str) -> Listing:
        """
        Owner soft-delete.

        Raises:
            NotFoundError: unknown listing
            UnauthorizedError: actor is not the owner
            ListingUnavailableError: already deleted, or completed
        """
        listing = self._owned_by(listing_id, actor)
        if listing.deleted:
            raise ListingUnavailableError(f"Listing {listing_id} is already deleted", listing_id=listing_id)
        if listing.status == ListingStatus.COMPLETED:
            raise ListingUnavailableError(
                f"Listing {listing_id} is completed and cannot be deleted",
                listing_id=listing_id,
            )

        listing.mark_deleted(self.store.clock.now())
        self.store.save()

        self.logger.info("Listing deleted", extra={"listing_id": listing_id, "owner": actor})
        return listing

    @rejections_logged(LogStream.MODERATION)
    def remove_listing(self, admin: str, listing_id: int) -> Listing:
        """
        Admin soft-delete (completed listings included).

        Raises:
            NotFoundError: unknown admin or listing
            UnauthorizedError: actor is not an admin
            ListingUnavailableError: already deleted
        """
        require_admin(self.store, admin)
        listing = self.get(listing_id)
        if listing.deleted:
            raise ListingUnavailableError(f"Listing {listing_id} is already deleted", listing_id=listing_id)

        listing.mark_deleted(self.store.clock.now())
        self.store.save()

        get_logger(LogStream.MODERATION).warning("Listing removed by admin", extra={
            "listing_id": listing_id,
            "owner": listing.owner,
            "admin": admin,
        })
        return listing

    # ========================================================================
    # QUERIES
    # ========================================================================

    def get(self, listing_id: int) -> Listing:
        """
        Raises:
            NotFoundError: unknown listing (soft-deleted listings are still returned)
        """
        listing = self.store.listings.get(listing_id)
        if listing is None:
            raise NotFoundError("listing", listing_id)
        return listing

    def search(self, keyword: str = "", viewer: Optional[str] = None) -> List[Listing]:
        """
        Visible listings whose title or description contains `keyword`
        (case-insensitive), excluding the viewer's own, ordered by id.
        A blank keyword matches everything.
        """
        needle = (keyword or "").strip().lower()
        return sorted(
            (
                listing for listing in self.store.listings.values()
                if listing.is_visible
                and (viewer is None or listing.owner != viewer)
                and (
                    not needle
                    or needle in listing.title.lower()
                    or needle in listing.description.lower()
                )
            ),
            key=lambda listing: listing.listing_id,
        )

    def listings_of(self, owner: str, include_deleted: bool = False) -> List[Listing]:
        return sorted(
            (
                listing for listing in self.store.listings.values()
                if listing.owner == owner and (include_deleted or not listing.deleted)
            ),
            key=lambda listing: listing.listing_id,
        )

    def _owned_by(self, listing_id: int, actor: str) -> Listing:
        listing = self.get(listing_id)
        if listing.owner != actor:
            raise UnauthorizedError(
                f"{actor} does not own listing {listing_id}",
                listing_id=listing_id,
                actor=actor,
            )
        return listing
