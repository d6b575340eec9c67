from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from .config import settings

_DEFAULT_URL = "sqlite:///./devsera.db"


def _normalized_database_url(raw_url: str | None) -> str:
    """Bare postgres URLs get the psycopg (v3) driver; SQLite and explicit drivers pass through."""
    url = (raw_url or "").strip() or _DEFAULT_URL
    scheme, sep, rest = url.partition("://")
    if sep and scheme in ("postgres", "postgresql"):
        return f"postgresql+psycopg://{rest}"
    return url


def _engine_options(url: str) -> dict:
    if not url.startswith("sqlite"):
        return {"pool_pre_ping": True}
    options: dict = {"connect_args": {"check_same_thread": False}}
    if ":memory:" in url:
        # one shared connection, otherwise each request sees an empty database
        options["poolclass"] = StaticPool
    return options


DATABASE_URL = _normalized_database_url(settings.database_url)
engine = create_engine(DATABASE_URL, **_engine_options(DATABASE_URL))


def get_db():
    with Session(engine) as session:
        yield session


def init_db() -> None:
    import devsera.models  # noqa: F401

    SQLModel.metadata.create_all(engine)
