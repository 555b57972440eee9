from datetime import datetime

from pydantic import Field

from pinsync.domain.shared.model.value import WireModel


class Watermark(WireModel):
    """Last successful sync boundary for a data type.

    Persisted as {"lastSyncDate": ..., "reference": ...}. The reference names the
    snapshot that sync produced, so the next delta can be merged onto it.
    """

    last_sync_date: datetime = Field(alias="lastSyncDate")
    reference: str | None = None
