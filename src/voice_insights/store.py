"""Conversation collection and user session, persisted through the key-value database."""

from typing import Callable

from rich.console import Console

from .db import Database
from .models import Conversation, User, clock_id

console = Console()

CONVERSATIONS_KEY = "conversations"
USER_KEY = "user"


class ConversationStore:
    """Ordered conversation records, most recent first.

    Every mutation writes the whole collection back to the database before
    returning, so the persisted snapshot always matches the in-memory list.
    """

    def __init__(self, db: Database):
        self.db = db
        self._records: list[Conversation] = []
        self._last_id = 0
        self.token_total = 0

    def load(self) -> list[Conversation]:
        """Read the persisted collection, replacing anything held in memory."""
        data = self.db.get(CONVERSATIONS_KEY) or []
        records = []
        for item in data:
            try:
                records.append(Conversation.from_dict(item))
            except (KeyError, ValueError, TypeError) as e:
                console.print(f"[yellow]Skipping malformed conversation record: {e}[/yellow]")
        self._records = records
        self._last_id = max((r.id for r in records), default=0)
        self.token_total = self.recompute_token_total()
        return self.list()

    def _commit(self):
        self.db.set(CONVERSATIONS_KEY, [record.to_dict() for record in self._records])
        self.token_total = self.recompute_token_total()

    def list(self) -> list[Conversation]:
        return list(self._records)

    def get(self, conversation_id: int) -> Conversation | None:
        for record in self._records:
            if record.id == conversation_id:
                return record
        return None

    def next_id(self) -> int:
        """Fresh id, greater than every id this store has held."""
        self._last_id = clock_id(self._last_id)
        return self._last_id

    def insert(self, record: Conversation):
        """Insert a record at the front of the collection."""
        if self.get(record.id) is not None:
            raise ValueError(f"Conversation {record.id} already exists")
        self._records.insert(0, record)
        self._last_id = max(self._last_id, record.id)
        self._commit()

    def update(
        self, conversation_id: int, mutator: Callable[[Conversation], Conversation]
    ) -> Conversation | None:
        """Replace a record with mutator(record). Missing ids are ignored."""
        for i, record in enumerate(self._records):
            if record.id == conversation_id:
                updated = mutator(record)
                self._records[i] = updated
                self._commit()
                return updated
        return None

    def remove(self, conversation_id: int) -> bool:
        remaining = [r for r in self._records if r.id != conversation_id]
        if len(remaining) == len(self._records):
            return False
        self._records = remaining
        self._commit()
        return True

    def recompute_token_total(self) -> int:
        """Sum of total tokens over every record that reports usage."""
        return sum(r.token_usage.total_tokens for r in self._records if r.token_usage)


class UserSession:
    """The logged-in user identity."""

    def __init__(self, db: Database):
        self.db = db
        self.user: User | None = None

    def load(self) -> User | None:
        data = self.db.get(USER_KEY)
        self.user = User(email=data["email"], name=data["name"]) if data else None
        return self.user

    def login(self, email: str) -> User:
        self.user = User.from_email(email)
        self.db.set(USER_KEY, {"email": self.user.email, "name": self.user.name})
        return self.user

    def logout(self):
        """Forget the user and every stored conversation."""
        self.user = None
        self.db.delete(USER_KEY)
        self.db.delete(CONVERSATIONS_KEY)
