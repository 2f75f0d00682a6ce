from dataclasses import dataclass


@dataclass(frozen=True)
class Lead:
    id: str
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    status: str | None = None
