from dataclasses import dataclass

ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class Actor:
    """Kimliği doğrulanmış çağıran; doğrulama bu katmanın işi değil."""

    user_id: int
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE
