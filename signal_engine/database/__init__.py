from .connection import Base, SessionLocal, engine, get_db, create_db_and_tables

__all__ = ["Base", "SessionLocal", "engine", "get_db", "create_db_and_tables"]
