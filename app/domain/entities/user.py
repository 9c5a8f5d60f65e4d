"""Domain entity representing a marketplace user."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class User:
    """Core attributes describing a marketplace account."""

    id: int | None
    email: str
    password: str
    first_name: str
    last_name: str
    profile_picture_url: str | None = None
    is_active: bool = True
    is_online: bool = False
    created_at: datetime | None = None

    @property
    def display_name(self) -> str:
        """Return the name shown next to chat messages."""

        return f"{self.first_name} {self.last_name}".strip()
