"""
Async client for the reservation site's availability endpoint.
Sends the RestaurantsAvailability persisted GraphQL query for a single date.
"""

import json
from typing import Any, Dict, Optional

import httpx
import structlog

from .models import AvailabilityResponse, VenueSession

logger = structlog.get_logger(__name__)

SITE_ORIGIN = "https://www.opentable.com"
GQL_URL = f"{SITE_ORIGIN}/dapi/fe/gql"
OPERATION_NAME = "RestaurantsAvailability"
OPERATION_HASH = "b2d05a06151b3cb21d9dfce4f021303eeba288fac347068b29c1cb66badc46af"

USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/144.0.0.0 Safari/537.36"
)


class AvailabilityClient:
    """
    Fetches one date's full-day availability for a single restaurant.
    """

    def __init__(
        self,
        session: VenueSession,
        party_size: int,
        timeout: float = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize the client.

        Args:
            session: Session credentials for the site
            party_size: Number of diners to query for
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.session = session
        self.party_size = party_size
        self.logger = logger.bind(component="availability_client", restaurant_id=session.restaurant_id)
        self.client_config = {
            "timeout": timeout,
            "headers": self.get_headers(),
            "follow_redirects": True,
        }
        if transport is not None:
            self.client_config["transport"] = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "AvailabilityClient":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def open(self) -> None:
        """Open the underlying HTTP connection pool."""
        if self._client is None:
            self._client = httpx.AsyncClient(**self.client_config)

    async def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def get_headers(self) -> Dict[str, str]:
        """Headers matching a browser request from the restaurant profile page."""
        return {
            "accept": "*/*",
            "content-type": "application/json",
            "cookie": self.session.cookie,
            "origin": SITE_ORIGIN,
            "referer": self.session.venue_url,
            "ot-page-group": "rest-profile",
            "ot-page-type": "restprofilepage",
            "x-csrf-token": self.session.csrf_token,
            "x-query-timeout": "5500",
            "user-agent": USER_AGENT,
        }

    def build_request_body(self, date: str) -> Dict[str, Any]:
        """
        Build the GraphQL body for one date, covering the whole day.

        Args:
            date: Date to query (YYYY-MM-DD)

        Returns:
            Request body dictionary
        """
        return {
            "operationName": OPERATION_NAME,
            "variables": {
                "onlyPop": False,
                "forwardDays": 0,
                "requireTimes": False,
                "requireTypes": ["Standard", "Experience"],
                "privilegedAccess": [
                    "UberOneDiningProgram",
                    "VisaDiningProgram",
                    "VisaEventsProgram",
                    "ChaseDiningProgram",
                ],
                "restaurantIds": [self.session.restaurant_id],
                "date": date,
                "time": "00:00",
                "partySize": self.party_size,
                "databaseRegion": "NA",
                "restaurantAvailabilityTokens": [],
                "loyaltyRedemptionTiers": [],
                "correlationId": self.session.correlation_id,
                "forwardMinutes": 1440,
                "backwardMinutes": 0,
                "forwardTimeslots": 50,
                "backwardTimeslots": 0,
            },
            "extensions": {
                "persistedQuery": {
                    "version": 1,
                    "sha256Hash": OPERATION_HASH,
                }
            },
        }

    async def fetch_date(self, date: str) -> AvailabilityResponse:
        """
        Fetch the raw availability payload for one date.

        Args:
            date: Date to query (YYYY-MM-DD)

        Returns:
            AvailabilityResponse with the request body and decoded payload

        Raises:
            httpx.HTTPError: on transport failure or an error status
            ValueError: when the body is not valid JSON
        """
        body = self.build_request_body(date)
        await self.open()

        response = await self._client.post(
            GQL_URL,
            params={"optype": "query", "opname": OPERATION_NAME},
            content=json.dumps(body),
        )
        response.raise_for_status()
        payload = response.json()

        self.logger.debug(
            "Fetched availability",
            date=date,
            status_code=response.status_code,
            bytes=len(response.content)
        )

        return AvailabilityResponse(
            date=date,
            request=body,
            payload=payload,
            status_code=response.status_code
        )
