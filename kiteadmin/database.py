import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, NamedTuple, Optional, Sequence

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from kiteadmin.config import Settings
from kiteadmin.errors import StoreError

logger = logging.getLogger(__name__)

Row = Dict[str, Any]

_INSERT_RE = re.compile(r"^\s*INSERT\b", re.IGNORECASE)
_RETURNING_RE = re.compile(r"\bRETURNING\b", re.IGNORECASE)


class ExecResult(NamedTuple):
    rows_affected: int
    inserted_id: Optional[int]


def is_insert(sql: str) -> bool:
    return bool(_INSERT_RE.match(sql))


def with_returning_id(sql: str) -> str:
    """Acrescenta `RETURNING id` a um INSERT que ainda não o tenha."""
    if not is_insert(sql) or _RETURNING_RE.search(sql):
        return sql
    return re.sub(r";?\s*$", "", sql) + " RETURNING id"


def to_pyformat(sql: str, escape_percent: bool = True) -> str:
    """Troca os marcadores `?` pelo `%s` do psycopg2.

    Marcadores dentro de literais entre aspas ficam intactos. Com
    `escape_percent`, um `%` literal vira `%%`, já que o driver só
    interpreta `%` quando recebe parâmetros.
    """
    out = []
    quote = None
    for ch in sql:
        if ch == "%" and escape_percent:
            out.append("%%")
            continue
        if quote:
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch == "?":
            out.append("%s")
            continue
        out.append(ch)
    return "".join(out)


def _bind(params: Sequence[Any]) -> Optional[tuple]:
    # Sem parâmetros o driver não deve interpretar marcadores
    return tuple(params) or None


def _store_error(exc: SQLAlchemyError) -> StoreError:
    original = getattr(exc, "orig", None) or exc
    return StoreError(original, str(original))


class Database(ABC):
    """Interface única (`execute` / `query_one` / `query_all`) sobre o banco.

    Todo SQL usa `?` como marcador posicional, qualquer que seja o banco.
    """

    kind = "unknown"

    def __init__(self, engine: Engine):
        self.engine = engine

    def _native(self, sql: str, params: Sequence[Any]) -> str:
        return sql

    @abstractmethod
    def execute(self, sql: str, params: Sequence[Any] = ()) -> ExecResult:
        raise NotImplementedError

    def query_one(self, sql: str, params: Sequence[Any] = ()) -> Optional[Row]:
        try:
            with self.engine.connect() as conn:
                result = conn.exec_driver_sql(self._native(sql, params), _bind(params))
                row = result.mappings().first()
        except SQLAlchemyError as exc:
            raise _store_error(exc) from exc
        return dict(row) if row is not None else None

    def query_all(self, sql: str, params: Sequence[Any] = ()) -> List[Row]:
        try:
            with self.engine.connect() as conn:
                result = conn.exec_driver_sql(self._native(sql, params), _bind(params))
                rows = result.mappings().all()
        except SQLAlchemyError as exc:
            raise _store_error(exc) from exc
        return [dict(row) for row in rows]

    def ping(self) -> None:
        self.query_one("SELECT 1 AS ok")

    def dispose(self) -> None:
        self.engine.dispose()


class SQLiteDatabase(Database):
    """Banco embutido em arquivo único (desenvolvimento local)."""

    kind = "sqlite"

    def __init__(self, path: str):
        self.path = Path(path)
        engine = create_engine(
            f"sqlite:///{self.path}",
            # 'check_same_thread' é necessário apenas para SQLite
            connect_args={"check_same_thread": False},
        )
        super().__init__(engine)

    def execute(self, sql: str, params: Sequence[Any] = ()) -> ExecResult:
        try:
            with self.engine.begin() as conn:
                result = conn.exec_driver_sql(sql, _bind(params))
                inserted_id = result.lastrowid if is_insert(sql) else None
                if result.returns_rows:
                    # consome o RETURNING antes do commit
                    result.all()
                return ExecResult(result.rowcount, inserted_id)
        except SQLAlchemyError as exc:
            raise _store_error(exc) from exc


class PostgresDatabase(Database):
    """Banco em rede (produção) com pool de conexões."""

    kind = "postgres"

    def __init__(self, url: str):
        self.url = normalize_postgres_url(url)
        connect_args = {}
        if not _is_local(self.url) and "sslmode=" not in self.url:
            connect_args["sslmode"] = "require"
        engine = create_engine(
            self.url,
            pool_pre_ping=True,
            pool_size=5,
            max_overflow=10,
            connect_args=connect_args,
        )
        super().__init__(engine)

    def _native(self, sql: str, params: Sequence[Any]) -> str:
        return to_pyformat(sql, escape_percent=bool(params))

    def execute(self, sql: str, params: Sequence[Any] = ()) -> ExecResult:
        statement = self._native(with_returning_id(sql), params)
        try:
            with self.engine.begin() as conn:
                result = conn.exec_driver_sql(statement, _bind(params))
                inserted_id = None
                if result.returns_rows:
                    row = result.first()
                    inserted_id = row[0] if row is not None else None
                return ExecResult(result.rowcount, inserted_id)
        except SQLAlchemyError as exc:
            raise _store_error(exc) from exc


def normalize_postgres_url(url: str) -> str:
    """Fixa o driver psycopg2 na URL, a menos que ela já nomeie outro.

    Render e Heroku ainda entregam o esquema antigo "postgres://".
    """
    for scheme in ("postgres://", "postgresql://"):
        if url.startswith(scheme):
            return "postgresql+psycopg2://" + url[len(scheme):]
    return url


def _is_local(url: str) -> bool:
    return "localhost" in url or "127.0.0.1" in url


def open_database(settings: Settings) -> Database:
    """Escolhe o banco pela configuração: Postgres se houver DATABASE_URL."""
    if settings.database_url:
        logger.info("DATABASE_URL detectada, usando PostgreSQL")
        return PostgresDatabase(settings.database_url)
    logger.info("Usando SQLite em %s", settings.sqlite_path)
    return SQLiteDatabase(settings.sqlite_path)


# --- Dependency do FastAPI ---
def get_db(request: Request) -> Database:
    """Entrega o banco criado na inicialização da aplicação."""
    return request.app.state.db
