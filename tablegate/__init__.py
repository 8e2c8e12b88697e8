from .config import DbConfig
from .db.database import Database
from .db.table import Table
from .errors import DatabaseError, ErrorKind, TablegateError

__all__ = ["Database", "Table", "DbConfig", "DatabaseError", "ErrorKind", "TablegateError"]
