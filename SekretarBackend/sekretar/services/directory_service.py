"""DirectoryStore: user accounts, administrators and authentication.

Invariants enforced here:
- usernames are unique; a colliding insert leaves the store untouched;
- at least one ADMIN account exists at all times;
- credentials are stored as bcrypt hashes and never leave the store
  (``authenticate`` and ``get_profile`` return ``UserProfile``).

On first access with nothing persisted, the store is seeded with one
administrator and one regular user.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import bcrypt
from pydantic import ValidationError

from sekretar.errors import ConflictError
from sekretar.schemas import NewUserAccount, Role, UserAccount, UserProfile
from sekretar.services.kv_store import KeyValueStore
from sekretar.utils.ids import new_id

USERS_KEY = "sekretar_users_db_v1"

DEFAULT_USERS: List[Dict[str, Any]] = [
    {
        "id": "admin-1",
        "username": "admin",
        "password": "admin",
        "name": "Системный Администратор",
        "email": "admin@gov.ru",
        "role": Role.ADMIN,
        "position": "Руководитель департамента ИТ",
    },
    {
        "id": "user-1",
        "username": "test",
        "password": "test",
        "name": "Орлов Дмитрий Сергеевич",
        "email": "d.orlov@gov.ru",
        "role": Role.USER,
        "position": "Ведущий специалист",
    },
]


def hash_password(text: str) -> str:
    return bcrypt.hashpw(text.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def check_password(plain_text: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(plain_text.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Not a bcrypt hash (hand-edited store)
        return False


class DirectoryStore:
    def __init__(self, store: KeyValueStore, key: str = USERS_KEY):
        self.store = store
        self.key = key

    def _seed(self) -> List[UserAccount]:
        return [UserAccount(**{**u, "password": hash_password(u["password"])}) for u in DEFAULT_USERS]

    def _save(self, users: Sequence[UserAccount]) -> None:
        self.store.set(self.key, [u.model_dump(mode="json") for u in users])

    def list_all(self) -> List[UserAccount]:
        raw = self.store.get(self.key)
        if raw is None:
            users = self._seed()
            self._save(users)
            logging.info("Seeded user directory with %d default accounts", len(users))
            return users
        if not isinstance(raw, list):
            logging.warning("User directory under '%s' is corrupt; using default accounts", self.key)
            return self._seed()
        try:
            return [UserAccount.model_validate(rec) for rec in raw]
        except ValidationError:
            logging.warning("User directory under '%s' failed validation; using default accounts", self.key)
            return self._seed()

    def add(self, account: NewUserAccount) -> UserAccount:
        users = self.list_all()
        if any(u.username == account.username for u in users):
            raise ConflictError("Пользователь с таким логином уже существует")
        created = UserAccount(
            id=new_id("user"),
            username=account.username,
            password=hash_password(account.password),
            name=account.name,
            email=account.email,
            position=account.position,
            role=account.role,
        )
        self._save([*users, created])
        logging.info("Added user %s (%s)", created.username, created.role.value)
        return created

    def remove(self, user_id: str) -> None:
        users = self.list_all()
        target = next((u for u in users if u.id == user_id), None)
        if target is None:
            return
        admins = [u for u in users if u.role == Role.ADMIN]
        if target.role == Role.ADMIN and len(admins) <= 1:
            raise ConflictError("Нельзя удалить последнего администратора")
        self._save([u for u in users if u.id != user_id])
        logging.info("Removed user %s", target.username)

    def authenticate(self, username: str, password: str, required_role: Optional[Role] = None) -> Optional[UserProfile]:
        user = next((u for u in self.list_all() if u.username == username), None)
        if user is None or not check_password(password, user.password):
            return None
        if required_role is not None and user.role != required_role:
            return None
        return user.to_profile()

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        user = next((u for u in self.list_all() if u.id == user_id), None)
        return user.to_profile() if user else None
