"""
Account registry.

CRITICAL RULES:
1. Handle, display name and verification id are each unique
2. The verification id index is updated together with the accounts map
3. Admin accounts cannot be removed
4. Removing a member soft-deletes their live listings and releases their
   verification id; their trades, notifications and reports stay

Format checks (handle pattern, id format, password hashing) happen in the
input layer; the registry only sees validated AccountProfile values.
"""

from typing import List, Optional

from hanger.config.schema import AdminConfig
from hanger.logging import get_logger, LogStream
from hanger.services.audit import rejections_logged, require_account, require_admin
from hanger.state.entities import Account, AccountProfile, Role
from hanger.state.errors import (
    DuplicateRegistrationError,
    UnauthorizedError,
    ValidationError,
)
from hanger.state.store import EntityStore


class AccountRegistry:
    """Registration, lookup and admin removal of accounts."""

    def __init__(self, store: EntityStore, admin_config: Optional[AdminConfig] = None):
        self.store = store
        self.admin_config = admin_config or AdminConfig()
        self.logger = get_logger(LogStream.ACCOUNTS)

    @rejections_logged(LogStream.ACCOUNTS)
    def register(self, profile: AccountProfile) -> Account:
        """
        Create an account.

        Raises:
            ValidationError: blank handle, display name or verification id
            DuplicateRegistrationError: handle, display name or verification id taken
        """
        account = self._add(profile)
        self.store.save()

        self.logger.info("Account registered", extra={
            "handle": account.handle,
            "role": account.role.value,
        })
        return account

    def ensure_default_admin(self) -> Optional[Account]:
        """
        Create the configured admin account on first start.

        Returns the new account, or None if the handle already exists.
        """
        if self.admin_config.handle in self.store.accounts:
            return None

        account = self._add(AccountProfile(
            handle=self.admin_config.handle,
            display_name=self.admin_config.display_name,
            verification_id=self.admin_config.verification_id,
            role=Role.ADMIN,
        ))
        self.store.save()

        self.logger.warning("Default admin account created", extra={"handle": account.handle})
        return account

    def get(self, handle: str) -> Account:
        """
        Raises:
            NotFoundError: unknown handle
        """
        return require_account(self.store, handle)

    def find(self, handle: str) -> Optional[Account]:
        return self.store.accounts.get(handle)

    def is_registered(self, verification_id: str) -> bool:
        return verification_id in self.store.verification_ids

    @rejections_logged(LogStream.ACCOUNTS)
    def list_accounts(self, admin: str) -> List[Account]:
        """All accounts ordered by handle (admins only)."""
        require_admin(self.store, admin)
        return sorted(self.store.accounts.values(), key=lambda a: a.handle)

    @rejections_logged(LogStream.MODERATION)
    def remove_member(self, admin: str, handle: str) -> Account:
        """
        Remove a member account.

        Raises:
            NotFoundError: unknown admin or member handle
            UnauthorizedError: actor is not an admin, or target is an admin
        """
        require_admin(self.store, admin)
        account = require_account(self.store, handle)
        if account.is_admin:
            raise UnauthorizedError(f"Admin account {handle} cannot be removed", handle=handle)

        now = self.store.clock.now()
        hidden = []
        for listing in self.store.listings.values():
            if listing.owner == handle and not listing.deleted:
                listing.mark_deleted(now)
                hidden.append(listing.listing_id)

        del self.store.accounts[handle]
        self.store.verification_ids.discard(account.verification_id)
        self.store.save()

        get_logger(LogStream.MODERATION).warning("Member removed", extra={
            "admin": admin,
            "handle": handle,
            "listings_deleted": hidden,
        })
        return account

    def _add(self, profile: AccountProfile) -> Account:
        for field_name in ("handle", "display_name", "verification_id"):
            if not str(getattr(profile, field_name) or "").strip():
                raise ValidationError(f"{field_name} must not be blank", field=field_name)

        if profile.handle in self.store.accounts:
            raise DuplicateRegistrationError("handle")
        if any(a.display_name == profile.display_name for a in self.store.accounts.values()):
            raise DuplicateRegistrationError("display_name")
        if profile.verification_id in self.store.verification_ids:
            raise DuplicateRegistrationError("verification_id")

        now = self.store.clock.now()
        account = Account(
            handle=profile.handle,
            display_name=profile.display_name,
            verification_id=profile.verification_id,
            role=profile.role,
            created_at=now,
            updated_at=now,
        )
        self.store.accounts[account.handle] = account
        self.store.verification_ids.add(account.verification_id)
        return account
