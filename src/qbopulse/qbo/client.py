"""QuickBooks Online API client."""

import logging
import time
from datetime import date
from typing import Optional

import requests

from qbopulse.domain.entities import AccountingMethod, ReportKind
from qbopulse.domain.errors import ReportFetchError, report_fetch_failed
from qbopulse.qbo.base import ReportSource

logger = logging.getLogger(__name__)

QB_API_BASE = "https://quickbooks.api.intuit.com/v3/company"
DEFAULT_MINOR_VERSION = 65
# ~500 requests/minute upstream ceiling
DEFAULT_REQUEST_DELAY = 0.2
PAGE_SIZE = 1000


class QBOClient(ReportSource):
    """ReportSource backed by the QuickBooks Online REST API.

    Token issuance and refresh happen elsewhere; the client only carries an
    access token. Requests are issued one at a time with a fixed delay
    between them.
    """

    def __init__(
        self,
        realm_id: str,
        access_token: str,
        base_url: str = QB_API_BASE,
        minor_version: int = DEFAULT_MINOR_VERSION,
        request_delay: float = DEFAULT_REQUEST_DELAY,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
    ):
        """Initialize the client.

        Args:
            realm_id: QuickBooks company/realm ID
            access_token: OAuth access token
            base_url: API base URL up to ``/v3/company``
            minor_version: QBO API minor version
            request_delay: Seconds to wait between consecutive requests
            session: Optional requests session (tests pass a stub)
            timeout: Per-request timeout in seconds
        """
        self.realm_id = realm_id
        self.access_token = access_token
        self.base_url = base_url.rstrip("/")
        self.minor_version = minor_version
        self.request_delay = request_delay
        self.session = session or requests.Session()
        self.timeout = timeout
        self._last_request_at: Optional[float] = None

    def _throttle(self) -> None:
        if self._last_request_at is not None and self.request_delay > 0:
            elapsed = time.monotonic() - self._last_request_at
            if elapsed < self.request_delay:
                time.sleep(self.request_delay - elapsed)
        self._last_request_at = time.monotonic()

    def request(self, endpoint: str, params: Optional[dict] = None) -> dict:
        """Make an authenticated GET request against the company API.

        Args:
            endpoint: Path below the realm, e.g. ``reports/ProfitAndLoss``
            params: Optional query parameters

        Returns:
            JSON response as dict

        Raises:
            ReportFetchError: On transport errors or non-200 responses
        """
        url = f"{self.base_url}/{self.realm_id}/{endpoint}"
        query = dict(params or {})
        query["minorversion"] = self.minor_version
        headers = {
            "Authorization": f"Bearer {self.access_token}",
            "Accept": "application/json",
        }

        self._throttle()
        logger.debug("QBO request: %s %s", endpoint, query)
        try:
            response = self.session.get(url, headers=headers, params=query, timeout=self.timeout)
        except requests.RequestException as e:
            raise ReportFetchError(f"QuickBooks request to {endpoint} failed: {e}") from e

        if response.status_code != 200:
            raise ReportFetchError(report_fetch_failed(endpoint, response.status_code, response.text))

        try:
            return response.json()
        except ValueError as e:
            raise ReportFetchError(f"QuickBooks returned invalid JSON for {endpoint}: {e}") from e

    def query_all(self, entity: str, where: str = "") -> list[dict]:
        """Fetch every record of an entity, following STARTPOSITION paging."""
        records: list[dict] = []
        start_position = 1
        where_clause = f" WHERE {where}" if where else ""

        while True:
            query = (
                f"SELECT * FROM {entity}{where_clause} "
                f"STARTPOSITION {start_position} MAXRESULTS {PAGE_SIZE}"
            )
            result = self.request("query", params={"query": query})
            page = (result.get("QueryResponse") or {}).get(entity) or []
            records.extend(page)

            if len(page) < PAGE_SIZE:
                break
            start_position += len(page)

        return records

    def fetch_report(
        self,
        kind: ReportKind,
        start_date: date,
        end_date: date,
        accounting_method: AccountingMethod = AccountingMethod.CASH,
    ) -> dict:
        """Fetch a ProfitAndLoss or ProfitAndLossDetail report."""
        return self.request(
            f"reports/{kind.value}",
            params={
                "start_date": start_date.isoformat(),
                "end_date": end_date.isoformat(),
                "accounting_method": accounting_method.value,
            },
        )

    def fetch_transactions(self, txn_type: str, since: date) -> list[dict]:
        """Fetch transactions of one type dated on or after ``since``."""
        return self.query_all(txn_type, f"TxnDate >= '{since.isoformat()}'")

    def fetch_accounts(self) -> list[dict]:
        """Fetch the full chart of accounts."""
        return self.query_all("Account")
