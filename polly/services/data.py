from typing import List, Optional

from ..models.poll import Poll, Vote
from .supabase import SupabaseClient, SupabaseError

POLLS_TABLE = "polls"
VOTES_TABLE = "votes"

# Postgres unique_violation
UNIQUE_VIOLATION = "23505"

_RETURN_ROWS = {"Prefer": "return=representation"}


def _eq_filters(filters: dict | None) -> dict:
    return {column: f"eq.{value}" for column, value in (filters or {}).items()}


class SupabaseData(SupabaseClient):
    """Table access through PostgREST, always under the caller's access token."""

    extension_name = "polly_data"

    def select(self, table: str, filters: dict | None = None, *, columns: str = "*",
               order: str | None = None, access_token: str | None = None) -> list:
        params = {"select": columns, **_eq_filters(filters)}
        if order:
            params["order"] = order
        return self._request("GET", f"/rest/v1/{table}", params=params,
                             access_token=access_token) or []

    def insert(self, table: str, rows: list, *, access_token: str | None = None) -> list:
        return self._request("POST", f"/rest/v1/{table}", json=rows, headers=_RETURN_ROWS,
                             access_token=access_token) or []

    def update(self, table: str, values: dict, filters: dict, *,
               access_token: str | None = None) -> list:
        if not filters:
            raise ValueError("update requires at least one filter")
        return self._request("PATCH", f"/rest/v1/{table}", params=_eq_filters(filters),
                             json=values, headers=_RETURN_ROWS,
                             access_token=access_token) or []

    def delete(self, table: str, filters: dict, *, access_token: str | None = None) -> list:
        if not filters:
            raise ValueError("delete requires at least one filter")
        return self._request("DELETE", f"/rest/v1/{table}", params=_eq_filters(filters),
                             headers=_RETURN_ROWS, access_token=access_token) or []

    def polls(self, access_token: str | None) -> "PollRepository":
        return PollRepository(self, access_token)


class PollRepository:
    """The narrow slice of the data service the poll actions rely on."""

    def __init__(self, data: SupabaseData, access_token: str | None):
        self.data = data
        self.access_token = access_token

    def list_by_owner(self, user_id: str) -> List[Poll]:
        rows = self.data.select(POLLS_TABLE, {"user_id": user_id}, order="created_at.desc",
                                access_token=self.access_token)
        return [Poll.from_row(row) for row in rows]

    def get(self, poll_id: str) -> Optional[Poll]:
        rows = self.data.select(POLLS_TABLE, {"id": poll_id}, access_token=self.access_token)
        return Poll.from_row(rows[0]) if rows else None

    def get_owner_id(self, poll_id: str) -> Optional[str]:
        rows = self.data.select(POLLS_TABLE, {"id": poll_id}, columns="user_id",
                                access_token=self.access_token)
        return str(rows[0]["user_id"]) if rows else None

    def create(self, user_id: str, question: str, options: List[str]) -> Poll:
        rows = self.data.insert(
            POLLS_TABLE,
            [{"user_id": user_id, "question": question, "options": options}],
            access_token=self.access_token,
        )
        if not rows:
            raise SupabaseError("Poll was not created")
        return Poll.from_row(rows[0])

    def update(self, poll_id: str, user_id: str, question: str, options: List[str]) -> Optional[Poll]:
        rows = self.data.update(
            POLLS_TABLE,
            {"question": question, "options": options},
            {"id": poll_id, "user_id": user_id},
            access_token=self.access_token,
        )
        return Poll.from_row(rows[0]) if rows else None

    def delete(self, poll_id: str, user_id: str) -> int:
        rows = self.data.delete(POLLS_TABLE, {"id": poll_id, "user_id": user_id},
                                access_token=self.access_token)
        return len(rows)

    def find_vote(self, poll_id: str, user_id: str) -> Optional[Vote]:
        rows = self.data.select(VOTES_TABLE, {"poll_id": poll_id, "user_id": user_id},
                                access_token=self.access_token)
        return Vote.from_row(rows[0]) if rows else None

    def add_vote(self, poll_id: str, user_id: str, option_index: int) -> Vote:
        rows = self.data.insert(
            VOTES_TABLE,
            [{"poll_id": poll_id, "user_id": user_id, "option_index": option_index}],
            access_token=self.access_token,
        )
        if rows:
            return Vote.from_row(rows[0])
        return Vote(poll_id=poll_id, user_id=user_id, option_index=option_index)
