"""ESRI feature service adapter for the DataSource port."""

import logging
from datetime import UTC, datetime
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from pinsync.config import UpstreamConfig
from pinsync.domain.feature.model.value import (
    DATE_FIELDS,
    DataType,
    RawGeometry,
    UpstreamBatch,
    UpstreamRecord,
)
from pinsync.domain.feature.port.data_source import DataSource
from pinsync.domain.feature.service.processor import record_id
from pinsync.domain.shared.error import MissingConfigurationError, UpstreamFetchError

logger = logging.getLogger(__name__)

API_KEY_HEADER = "x-Gateway-APIKey"


def build_where(data_type: DataType, since: datetime | None) -> str:
    """Build the delta filter.

    The service only accepts date literals, so the watermark is truncated to
    its (UTC) day. Records changed earlier that day come back again and are
    de-duplicated by identifier when merged.
    """
    field = DATE_FIELDS.get(data_type)
    if since is None or field is None:
        return "1=1"
    if since.tzinfo is not None:
        since = since.astimezone(UTC)
    return f"{field} > DATE '{since:%Y-%m-%d}'"


def parse_geometry(raw: Any) -> RawGeometry | None:
    """Point geometries carry x/y; for rings or paths use the mean of the first part."""
    if not isinstance(raw, dict):
        return None
    if raw.get("x") is not None and raw.get("y") is not None:
        return RawGeometry(x=raw["x"], y=raw["y"])

    parts = raw.get("rings") or raw.get("paths")
    if parts and parts[0]:
        vertices = parts[0]
        return RawGeometry(
            x=sum(v[0] for v in vertices) / len(vertices),
            y=sum(v[1] for v in vertices) / len(vertices),
        )
    return None


class EsriFeatureServiceSource(DataSource):
    """Queries an ESRI feature service layer per data type.

    Follows ``exceededTransferLimit`` with increasing ``resultOffset`` until
    the result set is exhausted, ordered by ``order_by`` so pages do not
    overlap. A layer that resends a page or pages past ``max_pages`` is
    reported as a payload error. Errors are not retried here.
    """

    def __init__(self, config: UpstreamConfig, http_client: httpx.AsyncClient) -> None:
        self._config = config
        self._http = http_client

    async def fetch(self, data_type: DataType, since: datetime | None = None) -> UpstreamBatch:
        data_type = DataType(data_type)
        url = self._config.url_for(data_type)

        missing = []
        if not url:
            missing.append("url")
        if not self._config.api_key:
            missing.append("api_key")
        if missing:
            raise MissingConfigurationError(str(data_type), missing)

        where = build_where(data_type, since)
        records: list[UpstreamRecord] = []
        seen_ids: set[str] = set()
        geometry_type: str | None = None
        exceeded = False
        offset = 0
        pages = 0

        while True:
            if pages >= self._config.max_pages:
                raise UpstreamFetchError(
                    f"Upstream {data_type} still exceeds the transfer limit after {pages} pages",
                    status=200,
                    category="payload",
                )
            payload = await self._query(url, where, offset)
            pages += 1
            features = payload.get("features")
            if not isinstance(features, list):
                raise UpstreamFetchError(
                    f"Upstream {data_type} response has no features list",
                    status=200,
                    category="payload",
                )

            page = [self._parse_feature(data_type, f) for f in features]
            page_ids = {i for i in (record_id(r.attributes) for r in page) if i is not None}
            if offset and page_ids and page_ids <= seen_ids:
                # Layers without pagination support ignore resultOffset and resend the first page
                raise UpstreamFetchError(
                    f"Upstream {data_type} repeated a page at offset {offset}; the layer does not page",
                    status=200,
                    category="payload",
                )
            seen_ids |= page_ids
            records.extend(page)
            geometry_type = geometry_type or payload.get("geometryType")
            exceeded = bool(payload.get("exceededTransferLimit"))

            if not exceeded or not features:
                break
            offset += len(features)
            logger.debug("Upstream %s exceeded transfer limit, continuing at offset %d", data_type, offset)

        logger.info("Fetched %d %s records (where=%s)", len(records), data_type, where)
        return UpstreamBatch(
            data_type=data_type,
            records=records,
            geometry_type=geometry_type,
            since=since,
            exceeded_transfer_limit=exceeded,
        )

    async def _query(self, url: str, where: str, offset: int) -> dict[str, Any]:
        params = {
            "where": where,
            "outFields": "*",
            "returnGeometry": "true",
            "f": "pjson",
            "outSR": "4326",
            "returnDistinctValues": "false",
            "resultOffset": str(offset),
            "resultRecordCount": str(self._config.page_size),
        }
        if self._config.order_by:
            params["orderByFields"] = self._config.order_by

        try:
            response = await self._http.get(
                url,
                params=params,
                headers={API_KEY_HEADER: self._config.api_key, "Content-Type": "application/json"},
                timeout=self._config.timeout,
            )
        except httpx.RequestError as e:
            logger.error("Upstream request to %s failed: %s", url, e)
            raise UpstreamFetchError(f"Failed to reach upstream: {e}", category="network") from e

        if not response.is_success:
            logger.error("Upstream returned %d: %s", response.status_code, response.text[:500])
            raise UpstreamFetchError(
                f"Upstream returned {response.status_code} {response.reason_phrase}",
                status=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamFetchError(
                "Upstream returned a body that is not JSON",
                status=response.status_code,
                category="payload",
            ) from e

        if not isinstance(payload, dict):
            raise UpstreamFetchError(
                "Upstream returned an unexpected body",
                status=response.status_code,
                category="payload",
            )

        # ArcGIS reports query errors with HTTP 200 and an "error" object
        if "error" in payload:
            error = payload["error"] if isinstance(payload["error"], dict) else {}
            raise UpstreamFetchError(
                f"Upstream query failed: {error.get('message', payload['error'])}",
                status=error.get("code", response.status_code),
                category="payload",
            )
        return payload

    @staticmethod
    def _parse_feature(data_type: DataType, feature: Any) -> UpstreamRecord:
        if not isinstance(feature, dict):
            raise UpstreamFetchError(f"Malformed {data_type} feature", status=200, category="payload")
        try:
            return UpstreamRecord(
                attributes=feature.get("attributes") or {},
                geometry=parse_geometry(feature.get("geometry")),
            )
        except PydanticValidationError as e:
            raise UpstreamFetchError(
                f"Malformed {data_type} feature: {e.error_count()} errors",
                status=200,
                category="payload",
            ) from e
