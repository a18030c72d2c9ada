from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from tunnelsim.settings import settings

# SQLite файл рядом с проектом; путь переопределяется TUNNELSIM_DATABASE_URL
DATABASE_URL = settings.database_url

engine = create_engine(
    DATABASE_URL,
    echo=False,
    future=True,
)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
