# storefront/domain/ownership.py
from dataclasses import dataclass
from enum import Enum


class OwnerType(str, Enum):
    SESSION = "SESSION"
    USER = "USER"


@dataclass(frozen=True)
class CartOwner:
    """
    A cart belongs to exactly one of: an anonymous session or a user account.
    Build it with CartOwner.session(...) / CartOwner.user(...).
    """

    kind: OwnerType
    key: str

    def __post_init__(self):
        if not self.key:
            raise ValueError("Cart owner key must not be empty")

    @classmethod
    def session(cls, session_id: str) -> "CartOwner":
        return cls(OwnerType.SESSION, str(session_id))

    @classmethod
    def user(cls, user_id: int) -> "CartOwner":
        return cls(OwnerType.USER, str(user_id))

    @property
    def is_guest(self) -> bool:
        return self.kind is OwnerType.SESSION

    @property
    def user_id(self) -> int | None:
        return int(self.key) if self.kind is OwnerType.USER else None

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.key}"
