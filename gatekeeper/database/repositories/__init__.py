from .audit_repository import AuditRepository
from .operator_repository import OperatorRepository
from .policy_repository import PolicyRepository
from .whitelist_repository import WhitelistRepository

__all__ = [
    "AuditRepository",
    "OperatorRepository",
    "PolicyRepository",
    "WhitelistRepository",
]
