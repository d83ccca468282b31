"""
Delivery models.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class DeliveryStatus(str, Enum):
    """
    Outcome of delivering one Project directory.

    DELIVERED: Everything copied to the owner's storage
    MANUAL: No owner storage found; an operator must deliver by hand
    FAILED: Copy stopped partway; partial output left in place
    """

    DELIVERED = "delivered"
    MANUAL = "manual"
    FAILED = "failed"


class OwnerIdentity(BaseModel):
    """Owner storage area and the identity copies are given."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    username: str
    home: str = Field(..., description="Owner storage directory")
    uid: int
    gid: int
    mode: int = Field(..., description="Permission bits of the storage directory")


class CopyStats(BaseModel):
    """Counts collected while copying a tree."""

    model_config = ConfigDict(extra="forbid")

    files: int = 0
    directories: int = 0
    bytes: int = 0
    skipped: List[str] = Field(default_factory=list)


class DeliveryResult(BaseModel):
    """Result of delivering one Project directory."""

    model_config = ConfigDict(extra="forbid")

    project_dir: str
    username: Optional[str] = None
    status: DeliveryStatus
    destination: Optional[str] = None
    failure_reason: Optional[str] = None
    stats: CopyStats = Field(default_factory=CopyStats)

    def summary(self) -> str:
        if self.status == DeliveryStatus.DELIVERED:
            return (
                f"DELIVERED: {self.project_dir} -> {self.destination} "
                f"({self.stats.files} file(s), {self.stats.directories} dir(s))"
            )
        if self.status == DeliveryStatus.MANUAL:
            return f"MANUAL DELIVERY NEEDED: {self.project_dir} - {self.failure_reason}"
        return f"FAILED: {self.project_dir} -> {self.destination} - {self.failure_reason}"
