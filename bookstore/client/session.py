from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class ClientSession:
    """Who is signed in; handed to every client call instead of living in a global."""
    base_url: str
    token: str | None = None
    user_id: int | None = None
    role: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def url(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def headers(self) -> dict:
        return {"Authorization": f"Bearer {self.token}", "Accept": "application/json"}

    def signed_in(self, token: str, user_id: int, role: str) -> "ClientSession":
        return replace(self, token=token, user_id=user_id, role=role)
