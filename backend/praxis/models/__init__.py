"""ORM Models: SQLAlchemy declarative models for all persisted entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Order owns its OrderItems (cascade delete); Components and Products are shared and referenced by id
    - Monetary columns are Numeric(10, 2)

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from praxis.models.component import ComponentType, Component  # noqa: F401
from praxis.models.order import Order, OrderItem  # noqa: F401
from praxis.models.product import Product  # noqa: F401
from praxis.models.service_ticket import ServiceTicket  # noqa: F401
