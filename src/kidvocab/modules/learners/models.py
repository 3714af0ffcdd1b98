from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional


@dataclass
class ParentAccount:
    """Guardian account owning learners and their settings"""

    id: str
    settings_json: str = "{}"
    last_active_child_id: Optional[str] = None

    @classmethod
    def from_record(cls, row: Mapping[str, Any]) -> "ParentAccount":
        return cls(
            id=str(row["id"]),
            settings_json=row["settings_json"] or "{}",
            last_active_child_id=row["last_active_child_id"],
        )


@dataclass
class Child:
    """A learner profile"""

    id: str
    parent_account_id: str
    name: str
    avatar: Optional[str] = None
    age: Optional[int] = None
    grade: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, row: Mapping[str, Any]) -> "Child":
        return cls(
            id=str(row["id"]),
            parent_account_id=str(row["parent_account_id"]),
            name=row["name"],
            avatar=row["avatar"],
            age=row["age"],
            grade=row["grade"],
            created_at=row["created_at"],
        )
