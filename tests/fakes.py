"""In-memory stand-ins for Cassandra and Redis.

``FakeSession`` understands the handful of CQL shapes the services prepare:
INSERT (optionally IF NOT EXISTS), SELECT * / SELECT COUNT(*) with equality
WHERE clauses, UPDATE ... SET, and DELETE (optionally IF EXISTS). Batches are
recorded by ``FakeBatch`` and applied statement by statement.

Every async call yields to the event loop once, like a network round trip,
so calls gathered together genuinely interleave.
"""

import asyncio
import re
from types import SimpleNamespace
from typing import Any


PRIMARY_KEYS: dict[str, tuple[str, ...]] = {
    "submission_votes": ("submission_id", "user_id"),
    "submission_comments": ("submission_id", "comment_id"),
    "submission_comments_by_id": ("comment_id",),
}

_INSERT = re.compile(
    r"INSERT INTO (?:\w+\.)?(\w+) \(([^)]*)\) VALUES \([^)]*\)( IF NOT EXISTS)?"
)
_SELECT = re.compile(r"SELECT (\*|COUNT\(\*\)) FROM (?:\w+\.)?(\w+)(?: WHERE (.*))?")
_UPDATE = re.compile(r"UPDATE (?:\w+\.)?(\w+) SET (.*) WHERE (.*)")
_DELETE = re.compile(r"DELETE FROM (?:\w+\.)?(\w+) WHERE (.*?)( IF EXISTS)?$")


def _normalize(query: str) -> str:
    return " ".join(query.split())


def _columns(clause: str, separator: str) -> list[str]:
    return [part.split("=")[0].strip() for part in clause.split(separator)]


class FakePrepared:
    """What ``FakeSession.prepare`` returns."""

    def __init__(self, query: str):
        self.query = _normalize(query)


class FakeBatch:
    """Drop-in for ``cassandra.query.BatchStatement`` in tests."""

    def __init__(self, batch_type: Any = None):
        self.batch_type = batch_type
        self.entries: list[tuple[FakePrepared, list[Any]]] = []

    def add(self, statement: FakePrepared, parameters: list[Any] | None = None):
        self.entries.append((statement, list(parameters or [])))
        return self


class FakeSession:
    """Async Cassandra session double backed by dicts."""

    def __init__(self):
        self.tables: dict[str, dict[tuple, dict[str, Any]]] = {
            name: {} for name in PRIMARY_KEYS
        }
        self.executed: list[str] = []
        self.batches: list[FakeBatch] = []

    def prepare(self, query: str) -> FakePrepared:
        return FakePrepared(query)

    async def aexecute(self, statement: Any, parameters: list[Any] | None = None):
        await asyncio.sleep(0)
        if isinstance(statement, FakeBatch):
            self.batches.append(statement)
            for entry, params in statement.entries:
                self._run(entry.query, params)
            return []

        query = statement.query if isinstance(statement, FakePrepared) else statement
        return self._run(_normalize(query), list(parameters or []))

    # ------------------------------------------------------------------

    def _key(self, table: str, row: dict[str, Any]) -> tuple:
        return tuple(row[col] for col in PRIMARY_KEYS[table])

    def _run(self, query: str, params: list[Any]) -> list[SimpleNamespace]:
        self.executed.append(query)

        if query.startswith("CREATE"):
            return []

        if match := _INSERT.match(query):
            table, cols, if_not_exists = match.groups()
            row = dict(zip(_columns(cols, ","), params, strict=True))
            key = self._key(table, row)
            if if_not_exists:
                if key in self.tables[table]:
                    return [SimpleNamespace(applied=False)]
                self.tables[table][key] = row
                return [SimpleNamespace(applied=True)]
            self.tables[table][key] = row
            return []

        if match := _SELECT.match(query):
            projection, table, where = match.groups()
            filters = dict(zip(_columns(where, " AND "), params)) if where else {}
            rows = [
                row
                for row in self.tables[table].values()
                if all(row.get(col) == value for col, value in filters.items())
            ]
            if projection != "*":
                return [SimpleNamespace(count=len(rows))]
            return [SimpleNamespace(**row) for row in rows]

        if match := _UPDATE.match(query):
            table, assignments, where = match.groups()
            set_cols = _columns(assignments, ",")
            where_cols = _columns(where, " AND ")
            values = dict(zip(set_cols, params[: len(set_cols)], strict=True))
            keys = dict(zip(where_cols, params[len(set_cols) :], strict=True))
            key = self._key(table, keys)
            self.tables[table].setdefault(key, dict(keys)).update(values)
            return []

        if match := _DELETE.match(query):
            table, where, if_exists = match.groups()
            keys = dict(zip(_columns(where, " AND "), params, strict=True))
            existed = self.tables[table].pop(self._key(table, keys), None) is not None
            return [SimpleNamespace(applied=existed)] if if_exists else []

        msg = f"FakeSession cannot interpret: {query}"
        raise NotImplementedError(msg)


class FakeRedis:
    """Async Redis double covering the commands the services use."""

    def __init__(self):
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    async def ping(self) -> bool:
        await asyncio.sleep(0)
        return True

    async def get(self, key: str) -> str | None:
        await asyncio.sleep(0)
        return self.store.get(key)

    async def set(
        self,
        key: str,
        value: str,
        ex: int | None = None,
        nx: bool = False,
    ) -> bool | None:
        await asyncio.sleep(0)
        if nx and key in self.store:
            return None
        self.store[key] = value
        if ex is not None:
            self.ttls[key] = ex
        return True

    async def setex(self, key: str, ttl: int, value: str) -> bool:
        return await self.set(key, value, ex=ttl)

    async def incr(self, key: str) -> int:
        await asyncio.sleep(0)
        value = int(self.store.get(key, 0)) + 1
        self.store[key] = str(value)
        return value

    async def delete(self, *keys: str) -> int:
        await asyncio.sleep(0)
        return sum(self.store.pop(key, None) is not None for key in keys)

    async def aclose(self) -> None:
        return None


class GatedSession(FakeSession):
    """FakeSession that can park inserts until released.

    ``reached`` is set when an insert arrives at the closed gate, letting a
    test run another call in between a mutation's checks and its write.
    """

    def __init__(self):
        super().__init__()
        self.reached = asyncio.Event()
        self._gate = asyncio.Event()
        self._gate.set()

    def hold_inserts(self) -> None:
        self.reached.clear()
        self._gate.clear()

    def release(self) -> None:
        self._gate.set()

    async def aexecute(self, statement: Any, parameters: list[Any] | None = None):
        if not self._gate.is_set() and self._is_insert(statement):
            self.reached.set()
            await self._gate.wait()
        return await super().aexecute(statement, parameters)

    @staticmethod
    def _is_insert(statement: Any) -> bool:
        if isinstance(statement, FakeBatch):
            statement = statement.entries[0][0]
        query = statement.query if isinstance(statement, FakePrepared) else statement
        return _normalize(query).startswith("INSERT")
