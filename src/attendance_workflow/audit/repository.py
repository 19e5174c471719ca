from __future__ import annotations

from typing import Protocol

from .model import AuditLogEntry


class AuditLogRepository(Protocol):
    def create(self, entry: AuditLogEntry) -> int:
        raise NotImplementedError
