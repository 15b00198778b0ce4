from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class Poll:
    id: str
    user_id: str
    question: str
    options: List[str] = field(default_factory=list)
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict) -> "Poll":
        return cls(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            question=row.get("question") or "",
            options=list(row.get("options") or []),
            created_at=row.get("created_at"),
        )

    def is_owned_by(self, user_id) -> bool:
        return bool(user_id) and str(self.user_id) == str(user_id)

    def has_option(self, option_index: int) -> bool:
        return 0 <= option_index < len(self.options)


@dataclass
class Vote:
    poll_id: str
    user_id: str
    option_index: int

    @classmethod
    def from_row(cls, row: dict) -> "Vote":
        return cls(
            poll_id=str(row["poll_id"]),
            user_id=str(row["user_id"]),
            option_index=int(row["option_index"]),
        )
