# Models package: import all models here so Alembic can discover them.

from fluxx.models.user import User  # noqa: F401
from fluxx.models.account import Account  # noqa: F401
from fluxx.models.activity import Activity  # noqa: F401
from fluxx.models.sales_order import PendingSalesOrder  # noqa: F401
