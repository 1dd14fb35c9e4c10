from dataclasses import dataclass
from typing import Optional, Dict, Any


@dataclass
class User:
    id: str
    username: str
    email: str
    created_at: str
    display_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "createdAt": self.created_at,
        }
        if self.display_name is not None:
            data["displayName"] = self.display_name
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        return cls(
            id=data["id"],
            username=data["username"],
            email=data["email"],
            created_at=data["createdAt"],
            display_name=data.get("displayName"),
        )
