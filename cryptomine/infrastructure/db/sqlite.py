import json
import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional

from cryptomine.core.entities.contract import Contract
from cryptomine.core.entities.user import User
from cryptomine.core.errors import ConflictError, StoreUnavailableError
from cryptomine.core.repositories.contract_repository import ContractRepository
from cryptomine.core.repositories.key_value_store import KeyValueStore
from cryptomine.core.repositories.user_repository import UserRepository


logger = logging.getLogger(__name__)

USERS_KEY = "users"
CURRENT_USER_KEY = "currentUser"
CREDENTIALS_KEY = "credentials"


def mining_key(user_id: str) -> str:
    return f"mining_{user_id}"


def connect(db_path: str) -> sqlite3.Connection:
    # транзакции открываем сами через BEGIN IMMEDIATE
    return sqlite3.connect(db_path, check_same_thread=False, isolation_level=None)


def _create_schema(conn: sqlite3.Connection) -> None:
    conn.execute("""
    CREATE TABLE IF NOT EXISTS kv (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL
    );
    """)


def init_db(db_path: str) -> None:
    if db_path != ":memory:" and not db_path.startswith("file:"):
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = connect(db_path)
    try:
        _create_schema(conn)
    finally:
        conn.close()
    logger.info("Key-value store ready at %s", db_path)


class SQLiteKeyValueStore(KeyValueStore):
    """Локальное хранилище ключ-значение поверх одной таблицы SQLite"""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self._lock = threading.RLock()
        self._depth = 0
        try:
            _create_schema(conn)
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Store unavailable: {e}") from e

    def _execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        try:
            return self.conn.execute(sql, params)
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Store unavailable: {e}") from e

    @contextmanager
    def transaction(self) -> Iterator["SQLiteKeyValueStore"]:
        with self._lock:
            if self._depth > 0:
                # вложенная транзакция - часть внешней
                self._depth += 1
                try:
                    yield self
                finally:
                    self._depth -= 1
                return

            self._execute("BEGIN IMMEDIATE")
            self._depth = 1
            try:
                yield self
            except BaseException:
                self._depth = 0
                self.conn.execute("ROLLBACK")
                raise
            self._depth = 0
            try:
                self.conn.execute("COMMIT")
            except sqlite3.Error as e:
                self.conn.execute("ROLLBACK")
                raise StoreUnavailableError(f"Store unavailable: {e}") from e

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            row = self._execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        if row is None:
            return default
        try:
            return json.loads(row[0])
        except json.JSONDecodeError as e:
            raise StoreUnavailableError(f"Corrupted value for key {key!r}") from e

    def set(self, key: str, value: Any) -> None:
        payload = json.dumps(value, ensure_ascii=False)
        with self._lock:
            self._execute(
                "INSERT INTO kv (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, payload),
            )

    def delete(self, key: str) -> None:
        with self._lock:
            self._execute("DELETE FROM kv WHERE key = ?", (key,))

    def update(self, key: str, fn: Callable[[Any], Any], default: Optional[Any] = None) -> Any:
        with self.transaction():
            current = self.get(key, default)
            updated = fn(current)
            self.set(key, updated)
            return updated


def _load(factory: Callable[[Dict[str, Any]], Any], key: str, items: List[Dict[str, Any]]) -> List[Any]:
    try:
        return [factory(item) for item in items]
    except (KeyError, TypeError, ValueError) as e:
        raise StoreUnavailableError(f"Corrupted value for key {key!r}") from e


class SQLiteUserRepository(UserRepository):
    def __init__(self, store: KeyValueStore):
        self.store = store

    def atomic(self):
        return self.store.transaction()

    def list_users(self) -> List[User]:
        return _load(User.from_dict, USERS_KEY, self.store.get(USERS_KEY, []))

    def find_by_identifier(self, identifier: str) -> Optional[User]:
        # войти можно и по email, и по имени пользователя
        email = identifier.lower()
        for user in self.list_users():
            if user.email == email or user.username == identifier:
                return user
        return None

    def find_conflict(self, username: str, email: str) -> Optional[User]:
        for user in self.list_users():
            if user.email == email or user.username == username:
                return user
        return None

    def create_user(self, user: User, password_hash: Optional[str] = None) -> User:
        with self.store.transaction():
            if self.find_conflict(user.username, user.email) is not None:
                raise ConflictError("User with this email or username already exists")
            users = self.store.get(USERS_KEY, [])
            users.append(user.to_dict())
            self.store.set(USERS_KEY, users)
            if password_hash is not None:
                credentials = self.store.get(CREDENTIALS_KEY, {})
                credentials[user.id] = password_hash
                self.store.set(CREDENTIALS_KEY, credentials)
        return user

    def get_password_hash(self, user_id: str) -> Optional[str]:
        return self.store.get(CREDENTIALS_KEY, {}).get(user_id)

    def get_current(self) -> Optional[User]:
        data = self.store.get(CURRENT_USER_KEY)
        if not data:
            return None
        return _load(User.from_dict, CURRENT_USER_KEY, [data])[0]

    def set_current(self, user: User) -> None:
        self.store.set(CURRENT_USER_KEY, user.to_dict())

    def clear_current(self) -> None:
        self.store.delete(CURRENT_USER_KEY)


class SQLiteContractRepository(ContractRepository):
    def __init__(self, store: KeyValueStore):
        self.store = store

    def list_for_user(self, user_id: str) -> List[Contract]:
        key = mining_key(user_id)
        return _load(Contract.from_dict, key, self.store.get(key, []))

    def add(self, contract: Contract) -> Contract:
        self.store.update(
            mining_key(contract.user_id),
            lambda items: (items or []) + [contract.to_dict()],
            default=[],
        )
        return contract

    def update_for_user(self, user_id: str, fn: Callable[[List[Contract]], List[Contract]]) -> List[Contract]:
        key = mining_key(user_id)
        # чтение-изменение-запись целиком, чтобы тик не пересекался с другими записями
        with self.store.transaction():
            updated = fn(self.list_for_user(user_id))
            self.store.set(key, [c.to_dict() for c in updated])
        return updated


class Database:
    """Выдаёт хранилище на время запроса или задачи.

    Для ":memory:" соединение одно на всё приложение, иначе каждое использование
    открывает своё соединение к файлу.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._shared: Optional[SQLiteKeyValueStore] = None
        if db_path == ":memory:":
            self._shared = SQLiteKeyValueStore(connect(db_path))
        else:
            init_db(db_path)

    @contextmanager
    def store(self) -> Iterator[SQLiteKeyValueStore]:
        if self._shared is not None:
            yield self._shared
            return
        try:
            conn = connect(self.db_path)
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Store unavailable: {e}") from e
        try:
            yield SQLiteKeyValueStore(conn)
        finally:
            conn.close()

    def close(self) -> None:
        if self._shared is not None:
            self._shared.conn.close()
            self._shared = None
