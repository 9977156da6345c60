from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from prestamos.config import DATABASE_URL, ENV

# connect_args solo para SQLite
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

# 👇 pool_pre_ping ayuda en servidores free que “duermen”
engine = create_engine(DATABASE_URL, connect_args=connect_args, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

# Importa modelos para registrar tablas
from prestamos.models import models  # noqa: E402,F401

# En producción lo ideal es Alembic; en dev creamos las tablas al vuelo
if ENV == "dev":
    Base.metadata.create_all(bind=engine)

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
