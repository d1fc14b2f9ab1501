# rentals/models/__init__.py
from .auth import User
from .property import Building, Room
from .tenant import Tenant
from .contract import Contract, contract_tenant
from .reading import MeterReading
from .billing import Invoice, Payment
from .incident import Incident
from .notification import Notification

__all__ = [
    "User",
    "Building", "Room",
    "Tenant",
    "Contract", "contract_tenant",
    "MeterReading",
    "Invoice", "Payment",
    "Incident",
    "Notification",
]
