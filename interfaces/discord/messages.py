from __future__ import annotations

from application.services import (
    LinkOutcome,
    LinkResult,
    ReconcileOutcome,
    ReconcileResult,
)

GENERIC_ERROR = "Something went wrong while processing your request. Please try again later."

_LINK_MESSAGES = {
    LinkOutcome.LINKED: (
        'Link complete! Your Discord account is now linked to the Minecraft player "{name}".'
    ),
    LinkOutcome.LINKED_ROLE_GRANT_FAILED: (
        'Your Discord account is now linked to the Minecraft player "{name}", '
        "but the role could not be assigned. Run /resync to try again."
    ),
    LinkOutcome.ALREADY_LINKED: (
        "Your account is already linked. "
        "Please contact support to link a different account."
    ),
    LinkOutcome.INVALID_CODE: "Invalid link code. Please check the code and try again.",
    LinkOutcome.STORE_UNAVAILABLE: (
        "The account database is unavailable right now. Please try again later."
    ),
}

_RECONCILE_MESSAGES = {
    ReconcileOutcome.RECONCILED: (
        'Role resync complete! The role for Minecraft player "{name}" has been restored.'
    ),
    ReconcileOutcome.ALREADY_CURRENT: "You already have this role.",
    ReconcileOutcome.NOT_LINKED: (
        "Your account is not linked yet. Link it first with the `/link` command."
    ),
    ReconcileOutcome.ROLE_UNAVAILABLE: (
        "The role could not be found. Please contact a server administrator."
    ),
    ReconcileOutcome.GRANT_FAILED: "The role could not be assigned. Please try /resync again later.",
    ReconcileOutcome.STORE_UNAVAILABLE: (
        "The account database is unavailable right now. Please try again later."
    ),
}


def _display_name(result) -> str:
    return result.account.display_name if result.account is not None else "?"


def render_link_result(result: LinkResult) -> str:
    return _LINK_MESSAGES[result.outcome].format(name=_display_name(result))


def render_reconcile_result(result: ReconcileResult) -> str:
    return _RECONCILE_MESSAGES[result.outcome].format(name=_display_name(result))
