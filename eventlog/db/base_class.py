# eventlog/db/base_class.py

from sqlalchemy.orm import declarative_base

# Single declarative base for the log store tables.
Base = declarative_base()
