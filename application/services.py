from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import List, Optional

from domain.errors import RoleGatewayError, RoleUnavailableError, StoreUnavailableError
from domain.models import Account
from domain.repositories import AccountRepository, RoleGateway

LOGGER = logging.getLogger(__name__)


class LinkOutcome(enum.Enum):
    LINKED = "linked"
    LINKED_ROLE_GRANT_FAILED = "linked_role_grant_failed"
    ALREADY_LINKED = "already_linked"
    INVALID_CODE = "invalid_code"
    STORE_UNAVAILABLE = "store_unavailable"


class ReconcileOutcome(enum.Enum):
    RECONCILED = "reconciled"
    ALREADY_CURRENT = "already_current"
    NOT_LINKED = "not_linked"
    ROLE_UNAVAILABLE = "role_unavailable"
    GRANT_FAILED = "grant_failed"
    STORE_UNAVAILABLE = "store_unavailable"


@dataclass
class LinkResult:
    """Result of a link attempt. `account` is set when one was involved."""

    outcome: LinkOutcome
    account: Optional[Account] = None

    @property
    def linked(self) -> bool:
        return self.outcome in (
            LinkOutcome.LINKED,
            LinkOutcome.LINKED_ROLE_GRANT_FAILED,
        )


@dataclass
class ReconcileResult:
    """Result of a role resync."""

    outcome: ReconcileOutcome
    account: Optional[Account] = None


def _first_match(rows: List[Account], what: str) -> Optional[Account]:
    # Callers rely on the repository ordering rows by ID, so the pick
    # is deterministic even when the data is inconsistent.
    if not rows:
        return None
    if len(rows) > 1:
        LOGGER.warning(
            "Expected at most one account for %s, found %d (%s); using %s",
            what,
            len(rows),
            ", ".join(row.id for row in rows),
            rows[0].id,
        )
    return rows[0]


async def resolve_link(
    requesting_identity: str,
    submitted_code: str,
    account_repo: AccountRepository,
    role_gateway: RoleGateway,
) -> LinkResult:
    """
    Link the caller's chat identity to the account holding `submitted_code`.

    - An identity that is already linked keeps its first link.
    - The code must belong to an account that is still unlinked.
    - The store write is conditional, so of two concurrent callers with
      the same code only one succeeds; the other gets INVALID_CODE.
    - Once the link is committed it stays committed: a failed role grant
      is reported as LINKED_ROLE_GRANT_FAILED and repaired by `reconcile`.
    - Store calls run in a worker thread so a busy database does not
      stall the event loop.
    """

    try:
        existing = _first_match(
            await asyncio.to_thread(account_repo.find_by_linked_identity, requesting_identity),
            f"linked identity {requesting_identity}",
        )
        if existing is not None:
            return LinkResult(LinkOutcome.ALREADY_LINKED, existing)

        account = _first_match(
            await asyncio.to_thread(account_repo.find_unlinked_by_code, submitted_code),
            "a pending link code",
        )
        if account is None:
            return LinkResult(LinkOutcome.INVALID_CODE)

        linked = await asyncio.to_thread(
            account_repo.link_account, account.id, requesting_identity
        )
        if not linked:
            LOGGER.info(
                "Link code for account %s was consumed concurrently", account.id
            )
            return LinkResult(LinkOutcome.INVALID_CODE)
    except StoreUnavailableError:
        LOGGER.exception("Account store unavailable while linking %s", requesting_identity)
        return LinkResult(LinkOutcome.STORE_UNAVAILABLE)

    account.linked_identity = requesting_identity
    account.pending_code = None
    LOGGER.info(
        "Linked %s to player %s (%s)",
        requesting_identity,
        account.display_name,
        account.id,
    )

    try:
        await role_gateway.grant_role(requesting_identity)
    except (RoleUnavailableError, RoleGatewayError):
        LOGGER.warning(
            "Linked %s but could not grant the role", requesting_identity, exc_info=True
        )
        return LinkResult(LinkOutcome.LINKED_ROLE_GRANT_FAILED, account)

    LOGGER.info("Assigned role to %s (%s)", requesting_identity, account.display_name)
    return LinkResult(LinkOutcome.LINKED, account)


async def reconcile(
    requesting_identity: str,
    account_repo: AccountRepository,
    role_gateway: RoleGateway,
) -> ReconcileResult:
    """
    Re-grant the role to a linked identity that is missing it.

    The stored link is the source of truth. Nothing is written to the
    store and no role is ever removed.
    """

    try:
        account = _first_match(
            await asyncio.to_thread(account_repo.find_by_linked_identity, requesting_identity),
            f"linked identity {requesting_identity}",
        )
    except StoreUnavailableError:
        LOGGER.exception("Account store unavailable while resyncing %s", requesting_identity)
        return ReconcileResult(ReconcileOutcome.STORE_UNAVAILABLE)

    if account is None:
        return ReconcileResult(ReconcileOutcome.NOT_LINKED)

    try:
        if await role_gateway.has_role(requesting_identity):
            return ReconcileResult(ReconcileOutcome.ALREADY_CURRENT, account)
        await role_gateway.grant_role(requesting_identity)
    except RoleUnavailableError:
        LOGGER.error("Role is not configured or cannot be found; cannot resync %s", requesting_identity)
        return ReconcileResult(ReconcileOutcome.ROLE_UNAVAILABLE, account)
    except RoleGatewayError:
        LOGGER.warning("Role resync failed for %s", requesting_identity, exc_info=True)
        return ReconcileResult(ReconcileOutcome.GRANT_FAILED, account)

    LOGGER.info("Resynced role for %s (%s)", requesting_identity, account.display_name)
    return ReconcileResult(ReconcileOutcome.RECONCILED, account)
