

def _normalize_db_url(url: str | None) -> str | None:
    # hosted postgres often hands out "postgres://..." , asyncpg/SQLAlchemy needs "postgresql+asyncpg://..."
    if not url:
        return None
    if url.startswith("postgres://",):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        from sqlalchemy.pool import NullPool
        # a sqlite file has nothing to pool and connections must not outlive their event loop
        return {"poolclass": NullPool}
    return {"pool_pre_ping": True}
