"""Airtable REST client with retry logic and personal access token auth."""

import asyncio
import logging
from typing import Any

import httpx

from airmirror.config import get_settings
from airmirror.errors import ConnectivityError, NotFoundError
from airmirror.schemas.airtable import AirtableField, AirtableRecord, AirtableTable

logger = logging.getLogger(__name__)
settings = get_settings()


class AirtableClient:
    """
    Client for the Airtable Web API.

    Features:
    - Base metadata discovery (tables and field schemas)
    - Offset-cursor pagination over a table's records
    - Exponential backoff retry on rate limits and server errors
    """

    def __init__(
        self,
        token: str | None = settings.airtable_pat,
        base_id: str | None = settings.airtable_base_id,
        base_url: str = settings.airtable_api_url,
        page_size: int = settings.airtable_page_size,
        max_retries: int = 3,
        timeout: float = 30.0,
        backoff_seconds: float = 1.0,
    ):
        self.token = token
        self.base_id = base_id
        self.base_url = base_url.rstrip("/")
        self.page_size = page_size
        self.max_retries = max_retries
        self.timeout = timeout
        self.backoff_seconds = backoff_seconds

        self.headers: dict[str, str] = {"Accept": "application/json"}
        if token:
            self.headers["Authorization"] = f"Bearer {token}"

    def _require_credentials(self) -> None:
        if not self.token or not self.base_id:
            raise ConnectivityError("Airtable credentials not configured")

    async def _request_with_retry(
        self,
        url: str,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Make HTTP request with exponential backoff retry."""
        self._require_credentials()
        last_error: Exception | None = None

        for attempt in range(self.max_retries):
            try:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(url, headers=self.headers, params=params)
                    response.raise_for_status()
                    return response.json()

            except httpx.HTTPStatusError as e:
                last_error = e
                status = e.response.status_code
                if status == 429:  # Rate limited (5 req/s per base)
                    wait_time = self.backoff_seconds * 2**attempt * 30
                    logger.warning(f"Airtable rate limited, waiting {wait_time}s before retry")
                    await asyncio.sleep(wait_time)
                elif status >= 500:
                    wait_time = self.backoff_seconds * 2**attempt
                    logger.warning(f"Airtable server error {status}, retry in {wait_time}s")
                    await asyncio.sleep(wait_time)
                elif status == 404:
                    raise NotFoundError(f"Airtable resource not found: {url}") from e
                else:
                    raise ConnectivityError(
                        f"Airtable API error: {status} - {e.response.text}"
                    ) from e

            except httpx.RequestError as e:
                last_error = e
                wait_time = self.backoff_seconds * 2**attempt
                logger.warning(f"Airtable request error: {e}, retry in {wait_time}s")
                await asyncio.sleep(wait_time)

        raise ConnectivityError(f"Airtable request failed after {self.max_retries} retries: {last_error}")

    async def _fetch_base_tables(self) -> list[dict[str, Any]]:
        self._require_credentials()
        url = f"{self.base_url}/meta/bases/{self.base_id}/tables"
        try:
            payload = await self._request_with_retry(url)
        except NotFoundError as e:
            # The base itself is missing; nothing downstream can proceed.
            raise ConnectivityError(f"Airtable base {self.base_id} not accessible") from e
        return payload.get("tables") or []

    async def list_tables(self) -> list[AirtableTable]:
        """
        List tables in the base.

        Returns:
            Tables in the order Airtable reports them (empty if the base has none)
        """
        tables = [AirtableTable.model_validate(t) for t in await self._fetch_base_tables()]
        logger.info(f"Found {len(tables)} Airtable tables")
        return tables

    async def get_schema(self, table_id: str) -> list[AirtableField]:
        """
        Get the field definitions of one table.

        Raises:
            NotFoundError: if no table with that id is in the base listing
        """
        for table in await self._fetch_base_tables():
            if table.get("id") == table_id:
                return [AirtableField.model_validate(f) for f in table.get("fields") or []]

        raise NotFoundError(f"Table {table_id} not found")

    async def fetch_records_page(
        self,
        table_id: str,
        offset: str | None = None,
    ) -> tuple[list[AirtableRecord], str | None]:
        """
        Fetch one page of records.

        Args:
            table_id: Airtable table id (or name)
            offset: Cursor returned by the previous page

        Returns:
            Tuple of (records, next offset cursor or None)
        """
        self._require_credentials()
        url = f"{self.base_url}/{self.base_id}/{table_id}"

        params: dict[str, Any] = {"pageSize": self.page_size}
        if offset:
            params["offset"] = offset

        payload = await self._request_with_retry(url, params)
        records = [AirtableRecord.model_validate(r) for r in payload.get("records") or []]
        return records, payload.get("offset")

    async def get_all_records(self, table_id: str) -> list[AirtableRecord]:
        """
        Fetch every record of a table, page by page, in server order.

        A failure on any page propagates; records from earlier pages are dropped.
        """
        all_records: list[AirtableRecord] = []
        offset: str | None = None

        while True:
            try:
                page, offset = await self.fetch_records_page(table_id, offset)
            except NotFoundError as e:
                raise ConnectivityError(f"Records for table {table_id} unavailable: {e}") from e

            all_records.extend(page)

            # A short page or a missing cursor both mean the table is exhausted
            if len(page) < self.page_size or not offset:
                break

        logger.info(f"Fetched {len(all_records)} records from table {table_id}")
        return all_records

    async def get_record(self, table_id: str, record_id: str) -> AirtableRecord | None:
        """Fetch a single record; None if Airtable reports it missing."""
        self._require_credentials()
        url = f"{self.base_url}/{self.base_id}/{table_id}/{record_id}"
        try:
            payload = await self._request_with_retry(url)
        except NotFoundError:
            logger.info(f"Record {record_id} not found in table {table_id}")
            return None
        return AirtableRecord.model_validate(payload)
