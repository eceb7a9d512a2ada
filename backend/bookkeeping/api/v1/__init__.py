# bookkeeping.api.v1 package - exports the router modules so
# "from bookkeeping.api.v1 import health, auth, users, incomes, expenses" works.
from . import health, auth, users, incomes, expenses

__all__ = ["health", "auth", "users", "incomes", "expenses"]
