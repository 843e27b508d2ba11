# ultrabms/infrastructure/database/session.py

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ultrabms.config.settings import settings

_engine: Engine | None = None

_SessionLocal = sessionmaker(
    autoflush=False,
    autocommit=False,
    expire_on_commit=False,
)


def _is_sqlite_memory(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:")


def _engine_kwargs(url: str) -> dict:
    timeout = settings.db_timeout_seconds

    if url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False, "timeout": timeout}}
        # sqlite em memória: uma única conexão compartilhada
        if _is_sqlite_memory(url):
            kwargs["poolclass"] = StaticPool
        return kwargs

    return {
        "pool_pre_ping": True,
        "pool_timeout": timeout,
        "connect_args": {
            "connect_timeout": timeout,
            "options": f"-c statement_timeout={timeout * 1000}",
        },
    }


def _serialize_sqlite_writers(engine: Engine) -> None:
    """SQLite em arquivo: cada transação abre com BEGIN IMMEDIATE.

    O pysqlite adia o BEGIN até o primeiro INSERT/UPDATE; com o lock de
    escrita desde o início, leitura + escrita da mesma requisição não se
    intercalam com outra conexão.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def init_engine(url: str | None = None) -> Engine:
    global _engine

    url = url or settings.database_uri
    if _engine is not None:
        _engine.dispose()

    _engine = create_engine(url, echo=False, **_engine_kwargs(url))
    if url.startswith("sqlite") and not _is_sqlite_memory(url):
        _serialize_sqlite_writers(_engine)
    _SessionLocal.configure(bind=_engine)
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        return init_engine()
    return _engine


@contextmanager
def db_session(*, commit_on: tuple[type[BaseException], ...] = ()) -> Iterator[Session]:
    """Unidade de trabalho por requisição.

    ``commit_on`` lista exceções que ainda assim devem persistir o que foi
    feito (ex.: contador de falhas de login antes de responder 401/423).
    """
    get_engine()
    session: Session = _SessionLocal()
    try:
        yield session
        session.commit()
    except commit_on:
        session.commit()
        raise
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
