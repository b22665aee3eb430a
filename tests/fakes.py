import dataclasses

from domain.errors import RoleGatewayError, RoleUnavailableError, StoreUnavailableError
from domain.models import Account
from domain.repositories import AccountRepository, RoleGateway


class InMemoryAccountRepository(AccountRepository):
    def __init__(self):
        self.accounts = {}
        self.link_calls = 0

    def _copies(self, predicate):
        return [
            dataclasses.replace(a)
            for _, a in sorted(self.accounts.items())
            if predicate(a)
        ]

    def get_by_id(self, account_id: str):
        account = self.accounts.get(account_id)
        return dataclasses.replace(account) if account else None

    def create_account(self, account: Account) -> None:
        self.accounts[account.id] = dataclasses.replace(account)

    def find_by_linked_identity(self, identity: str):
        return self._copies(lambda a: a.linked_identity == identity)

    def find_unlinked_by_code(self, code: str):
        return self._copies(
            lambda a: a.pending_code == code and a.linked_identity is None
        )

    def link_account(self, account_id: str, identity: str) -> bool:
        self.link_calls += 1
        account = self.accounts.get(account_id)
        if account is None or account.linked_identity is not None:
            return False
        if any(a.linked_identity == identity for a in self.accounts.values()):
            return False
        account.linked_identity = identity
        account.pending_code = None
        return True


class UnavailableAccountRepository(InMemoryAccountRepository):
    def find_by_linked_identity(self, identity: str):
        raise StoreUnavailableError("connection refused")


class FakeRoleGateway(RoleGateway):
    def __init__(self):
        self.members_with_role = set()
        self.grant_calls = []
        self.fail_grants = 0
        self.role_missing = False
        self.lookup_fails = False

    async def has_role(self, identity: str) -> bool:
        if self.role_missing:
            raise RoleUnavailableError("role not found")
        if self.lookup_fails:
            raise RoleGatewayError("member lookup failed")
        return identity in self.members_with_role

    async def grant_role(self, identity: str) -> None:
        self.grant_calls.append(identity)
        if self.role_missing:
            raise RoleUnavailableError("role not found")
        if self.fail_grants:
            self.fail_grants -= 1
            raise RoleGatewayError("HTTP 503")
        self.members_with_role.add(identity)
