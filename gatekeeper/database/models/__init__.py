from .audit_record import AuditRecord, VerifyResult, VerifyType
from .group_policy import GroupPolicy, VerifyMode, MIN_TIMEOUT, MAX_TIMEOUT
from .operator import Operator
from .whitelist_entry import WhitelistEntry

__all__ = [
    "AuditRecord",
    "VerifyResult",
    "VerifyType",
    "GroupPolicy",
    "VerifyMode",
    "MIN_TIMEOUT",
    "MAX_TIMEOUT",
    "Operator",
    "WhitelistEntry",
]
