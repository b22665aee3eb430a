from __future__ import annotations

from typing import List, Optional, Protocol

from .models import Account


class AccountRepository(Protocol):
    """
    Abstraction over account persistence.

    Implementations are responsible for:
    - Mapping between database rows and the `Account` domain model.
    - Hiding any SQL / driver details from the application layer.
    - Raising `StoreUnavailableError` for driver failures, so that
      "no rows matched" and "store down" stay distinguishable.
    """

    def get_by_id(self, account_id: str) -> Optional[Account]:
        ...

    def create_account(self, account: Account) -> None:
        """Persist a new account (used by issuers and tests, not the bot)."""

        ...

    def find_by_linked_identity(self, identity: str) -> List[Account]:
        """
        Return the accounts linked to `identity`, ordered by ID.

        At most one row is expected; callers treat more as an anomaly.
        """

        ...

    def find_unlinked_by_code(self, code: str) -> List[Account]:
        """
        Return unlinked accounts whose pending code equals `code`,
        ordered by ID. Matching is exact.
        """

        ...

    def link_account(self, account_id: str, identity: str) -> bool:
        """
        Bind `identity` to the account and clear its pending code.

        Must be a single conditional write: it only applies while the
        account is still unlinked and `identity` is not linked to any
        other account. Returns True if the row was updated.
        """

        ...


class RoleGateway(Protocol):
    """
    Read/grant access to the authorization role on the chat platform.

    Both calls raise `RoleUnavailableError` when the role configuration
    cannot be resolved and `RoleGatewayError` on platform failures.
    """

    async def has_role(self, identity: str) -> bool:
        ...

    async def grant_role(self, identity: str) -> None:
        """Grant the role. Granting an already-held role is a no-op."""

        ...
