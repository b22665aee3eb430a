from dataclasses import dataclass
from typing import Optional


@dataclass
class Account:
    """
    Domain representation of a game (Minecraft) player account.

    Rows are created, and given a `pending_code`, by the game server.
    This bot only ever moves an account from unlinked to linked:
    `linked_identity` is set and `pending_code` cleared in one write.
    """

    id: str
    display_name: str
    linked_identity: Optional[str] = None
    pending_code: Optional[str] = None

    @property
    def is_linked(self) -> bool:
        return self.linked_identity is not None
