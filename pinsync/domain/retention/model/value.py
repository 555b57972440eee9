from enum import StrEnum

from pydantic import Field

from pinsync.domain.shared.model.value import WireModel


class RetentionState(StrEnum):
    IDLE = "idle"
    CHECKING = "checking"
    PRUNING = "pruning"


class StorageUsage(WireModel):
    total: int  # Capacity in bytes
    used: int
    percentage_used: int = Field(alias="percentageUsed")


class RetentionResult(WireModel):
    deleted: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    usage: StorageUsage

    @property
    def deleted_count(self) -> int:
        return len(self.deleted)


class CleanupReport(WireModel):
    """Outcome of one check-and-maybe-prune cycle."""

    success: bool = True
    before_cleanup: StorageUsage = Field(alias="beforeCleanup")
    after_cleanup: StorageUsage = Field(alias="afterCleanup")
    pruned: bool = False
    deleted: int = 0
    errors: list[str] = Field(default_factory=list)
