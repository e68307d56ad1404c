from sqlalchemy import MetaData
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings

# The engine connects lazily, so importing this module never touches the database
engine = create_async_engine(
    settings.db_url.human_repr(),
    echo=settings.debug,
    pool_pre_ping=True,
)

meta = MetaData(
    schema=settings.postgres_db_schema,
    naming_convention={
        "pk": "pk_%(table_name)s",
        "fk": "fk_%(table_name)s_%(column_0_N_name)s_%(referred_table_name)s",
        "ix": "ix_%(table_name)s_%(column_0_N_name)s",
        "uq": "uq_%(table_name)s_%(column_0_N_name)s",
    },
)

# Sessions used by the user-record store, one per lookup or rotation
async_session_factory = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    autoflush=False,
    expire_on_commit=False,
)
