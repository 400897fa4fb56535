"""
Models for sync runs, progress status and audit records.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class SyncType(str, Enum):
    """What triggered a sync run. Tags every change record."""
    AUTO = "auto"
    MANUAL = "manual"


class ChangeType(str, Enum):
    """Kind of audited mutation."""
    PRICE_UPDATE = "price_update"
    STOCK_UPDATE = "stock_update"
    NEW_PRODUCT = "new_product"


class LogStatus(str, Enum):
    """Status of an operational log entry."""
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


class ReconcileOutcome(str, Enum):
    """Result of reconciling a single remote record."""
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


class StartResult(str, Enum):
    """Answer given to an on-demand sync request."""
    ACCEPTED = "accepted"
    ALREADY_RUNNING = "already_running"


class ChangeRecord(BaseModel):
    """Immutable audit entry describing one field-level mutation."""
    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(default_factory=datetime.utcnow)
    sku: str
    change_type: ChangeType
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    sync_type: SyncType

    def to_firestore(self) -> Dict[str, Any]:
        """Convert to Firestore document format."""
        return self.model_dump(mode="json")

    @classmethod
    def from_firestore(cls, data: Dict[str, Any]) -> "ChangeRecord":
        """Create instance from Firestore document."""
        data = dict(data)
        if isinstance(data.get("timestamp"), str):
            data["timestamp"] = datetime.fromisoformat(data["timestamp"].replace("Z", "+00:00"))
        return cls(**data)


class LogEntry(BaseModel):
    """Operational log entry."""
    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(default_factory=datetime.utcnow)
    message: str
    status: LogStatus = LogStatus.INFO

    def to_firestore(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "message": self.message,
            "status": self.status.value,
        }

    @classmethod
    def from_firestore(cls, data: Dict[str, Any]) -> "LogEntry":
        data = dict(data)
        if isinstance(data.get("timestamp"), str):
            data["timestamp"] = datetime.fromisoformat(data["timestamp"].replace("Z", "+00:00"))
        return cls(**data)


class SyncStatus(BaseModel):
    """Snapshot of the process-wide sync progress cell."""
    model_config = ConfigDict(frozen=True)

    is_running: bool = False
    progress_percent: int = Field(0, ge=0, le=100)
    processed: int = 0
    total: int = 0
    message: str = ""
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    def to_progress_response(self) -> Dict[str, Any]:
        """Payload returned to polling clients."""
        return {
            "is_completed": not self.is_running,
            "progress": self.progress_percent,
            "status": self.message,
            "message": f"Processed: {self.processed} / {self.total}",
            "processed": self.processed,
            "total": self.total,
        }

    def to_firestore(self) -> Dict[str, Any]:
        data = self.model_dump()
        data["updated_at"] = self.updated_at.isoformat()
        return data

    @classmethod
    def from_firestore(cls, data: Dict[str, Any]) -> "SyncStatus":
        data = dict(data)
        if isinstance(data.get("updated_at"), str):
            data["updated_at"] = datetime.fromisoformat(data["updated_at"].replace("Z", "+00:00"))
        return cls(**data)


class RunResult(BaseModel):
    """Aggregated outcome of one sync run."""
    sync_type: SyncType
    started: bool = True
    succeeded: bool = False
    total: int = 0
    processed: int = 0
    updated: int = 0
    created: int = 0
    unchanged: int = 0
    failed: int = 0
    price_changes: int = 0
    stock_changes: int = 0
    message: str = ""
    error: Optional[str] = None
    started_at: datetime = Field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None

    @classmethod
    def already_running(cls, sync_type: SyncType) -> "RunResult":
        return cls(sync_type=sync_type, started=False, message="A sync is already running")

    def get_summary(self) -> str:
        """One-line completion summary."""
        return (
            f"Sync completed: {self.updated} products updated "
            f"(price: {self.price_changes}, stock: {self.stock_changes}), "
            f"{self.created} new products added, {self.failed} failed"
        )
