from .user import User  # noqa: F401
from .profile import Profile  # noqa: F401
from .automation import Automation, UserAutomation  # noqa: F401
from .order import Order  # noqa: F401
from .order_event import OrderEvent  # noqa: F401
from .order_transaction import OrderTransaction, LedgerGeneration  # noqa: F401

from .wallet import Wallet  # noqa: F401
from .transaction import Transaction  # noqa: F401

from .custom_request import CustomRequest  # noqa: F401
from .support import SupportTicket, SupportMessage  # noqa: F401

from .audit_log import AuditLog  # noqa: F401
from .idempotency_key import IdempotencyKey  # noqa: F401
from .security_log import SecurityLog  # noqa: F401
