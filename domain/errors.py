from __future__ import annotations


class StoreUnavailableError(Exception):
    """The account store could not be reached or the query failed."""


class RoleUnavailableError(Exception):
    """
    The configured role (or the guild holding it) cannot be resolved.

    This is an operator problem: retrying will not help until the
    configuration is fixed.
    """


class RoleGatewayError(Exception):
    """A role lookup or grant failed on the chat platform side."""
