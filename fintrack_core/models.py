# =============================================================================
# fintrack_core/models.py
# Domain types shared by the stores and services
# =============================================================================
"""
Plain dataclasses and enums for reports, profiles, audit entries and settings.

Each type knows how to turn itself into the dict shape the stores persist
(``to_dict``) and how to read that shape back (``from_dict``). The local cache
and the script endpoint use camelCase keys; the relational store uses the
snake_case column names listed in ``scripts/create_tables.sql``.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


def utc_now_iso() -> str:
    """Current time as an ISO-8601 UTC string."""
    return datetime.now(timezone.utc).isoformat()


class ReportKind(Enum):
    """Report categories; the value is the first segment of a record id."""
    DAILY = "daily"
    FINANCING = "financing"
    COLLECTION = "collection"
    NPF = "npf"


class Role(Enum):
    VIEWER = "viewer"
    USER = "user"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"

    @property
    def is_admin(self) -> bool:
        return self in (Role.ADMIN, Role.SUPERADMIN)


class ProfileStatus(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"


class ConnectivityState(Enum):
    """Connectivity classification, recomputed on every probe."""
    ONLINE = "online"     # Configured remote answered
    OFFLINE = "offline"   # Configured remote raised or timed out
    DEMO = "demo"         # No remote configured


class AttemptState(Enum):
    """Lifecycle of a single login attempt."""
    IDLE = "idle"
    VERIFYING = "verifying"
    AUTHENTICATED = "authenticated"
    REJECTED = "rejected"


@dataclass
class ReportRecord:
    """A report payload addressed by its deterministic id."""
    id: str
    kind: ReportKind
    year: int
    date: Optional[str] = None
    payload: Any = None

    def to_row(self) -> Dict[str, Any]:
        """Row shape for the ``reports`` table."""
        return {
            "id": self.id,
            "type": self.kind.value,
            "year": self.year,
            "date": self.date,
            "data": self.payload,
        }


@dataclass
class UserProfile:
    id: str
    email: str
    name: str
    role: Role = Role.VIEWER
    status: ProfileStatus = ProfileStatus.ACTIVE
    created_at: Optional[str] = None
    last_login: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status != ProfileStatus.INACTIVE

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> UserProfile:
        """Build a profile from a script response, a table row or a cached entry."""
        return cls(
            id=str(data.get("id") or data.get("email", "")),
            email=data.get("email") or data.get("username") or "",
            name=data.get("name") or "User",
            role=Role(data.get("role") or Role.VIEWER.value),
            status=ProfileStatus(data.get("status") or ProfileStatus.ACTIVE.value),
            created_at=data.get("createdAt") or data.get("created_at"),
            last_login=data.get("lastLogin") or data.get("last_login"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """camelCase shape used by the cache and the UI."""
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role.value,
            "status": self.status.value,
            "createdAt": self.created_at,
            "lastLogin": self.last_login,
        }

    def to_row(self) -> Dict[str, Any]:
        """Row shape for the ``profiles`` table."""
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role.value,
            "status": self.status.value,
            "created_at": self.created_at,
            "last_login": self.last_login,
        }


@dataclass(frozen=True)
class AuditLogEntry:
    """Immutable audit record."""
    timestamp: str
    actor_email: str
    action: str
    details: str

    @classmethod
    def create(cls, actor_email: str, action: str, details: str) -> AuditLogEntry:
        return cls(timestamp=utc_now_iso(), actor_email=actor_email, action=action, details=details)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> AuditLogEntry:
        return cls(
            timestamp=data.get("timestamp", ""),
            actor_email=data.get("user") or data.get("user_email") or "",
            action=data.get("action", ""),
            details=data.get("details") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        """Shape of an entry in the ``mock_logs`` ring buffer."""
        return {
            "timestamp": self.timestamp,
            "user": self.actor_email,
            "action": self.action,
            "details": self.details,
        }

    def to_row(self) -> Dict[str, Any]:
        """Row shape for the ``audit_logs`` table."""
        return {
            "user_email": self.actor_email,
            "action": self.action,
            "details": self.details,
            "timestamp": self.timestamp,
        }


@dataclass
class YearEntry:
    year: int
    is_active: bool = False
    created_at: str = field(default_factory=utc_now_iso)
    created_by: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> YearEntry:
        return cls(
            year=int(data["year"]),
            is_active=bool(data.get("isActive", False)),
            created_at=data.get("createdAt") or "",
            created_by=data.get("createdBy") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "year": self.year,
            "isActive": self.is_active,
            "createdAt": self.created_at,
            "createdBy": self.created_by,
        }


@dataclass
class SystemSettings:
    active_year: int
    maintenance_mode: bool = False
    available_years: List[YearEntry] = field(default_factory=list)
    last_updated: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> SystemSettings:
        return cls(
            active_year=int(data["activeYear"]),
            maintenance_mode=bool(data.get("maintenanceMode", False)),
            available_years=[YearEntry.from_dict(y) for y in data.get("availableYears") or []],
            last_updated=data.get("lastUpdated"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "activeYear": self.active_year,
            "maintenanceMode": self.maintenance_mode,
            "availableYears": [y.to_dict() for y in self.available_years],
            "lastUpdated": self.last_updated,
        }

    def find_year(self, year: int) -> Optional[YearEntry]:
        for entry in self.available_years:
            if entry.year == year:
                return entry
        return None


@dataclass
class AdminStats:
    total_users: int = 0
    active_users: int = 0
    total_admins: int = 0
    pending_users: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "totalUsers": self.total_users,
            "activeUsers": self.active_users,
            "totalAdmins": self.total_admins,
            "pendingUsers": self.pending_users,
        }
