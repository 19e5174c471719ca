from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from ..core.enums import AuditLogType


@dataclass(frozen=True)
class AuditLogEntry:
    log_type: AuditLogType
    user_id: int
    details: Dict[str, Any] = field(default_factory=dict)
    audit_id: Optional[int] = None
    created_at: Optional[datetime] = None
