import os, psycopg
from typing import Optional

from psycopg.rows import dict_row
from dotenv import load_dotenv

from .stores.base import PersonStore
from .stores.memory import InMemoryPersonStore
from .stores.postgres import PostgresPersonStore

load_dotenv()
DATABASE_URL = os.environ.get("DATABASE_URL")
PERSON_STORE = os.environ.get("PERSON_STORE", "postgres").strip().lower()

_memory_store: Optional[InMemoryPersonStore] = None


def get_connection():
    if not DATABASE_URL:
        raise RuntimeError("DATABASE_URL env var not set for host process")
    return psycopg.connect(
        DATABASE_URL,
        row_factory=dict_row,
        connect_timeout=3,
        keepalives=1,
        keepalives_idle=30,
        keepalives_interval=10,
        keepalives_count=3,
    )


def get_person_store() -> PersonStore:
    global _memory_store
    if PERSON_STORE == "memory":
        if _memory_store is None:
            _memory_store = InMemoryPersonStore()
        return _memory_store
    if PERSON_STORE == "postgres":
        return PostgresPersonStore(get_connection)
    raise RuntimeError(f"Unknown PERSON_STORE backend: {PERSON_STORE}")
