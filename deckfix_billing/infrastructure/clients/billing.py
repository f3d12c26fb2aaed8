"""Billing provider HTTP client for reading subscription billing cycles"""

import httpx
from deckfix_billing.domain.models import BillingCycle, BillingPeriod
from deckfix_billing.domain.exceptions import BillingProviderError
from deckfix_billing.utils.date_utils import from_epoch_seconds
from deckfix_billing.config import settings


class BillingClient:
    """Read-only client for the billing provider's subscription API"""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.billing_api_base
        self.api_key = api_key if api_key is not None else settings.billing_api_key
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    async def get_billing_cycle(self, subscription_id: str) -> BillingCycle:
        """
        Fetch the current period boundaries and interval of a subscription.

        Raises:
            BillingProviderError: On timeout, HTTP errors, or invalid response
        """
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.get(
                    f"{self.base_url}/v1/subscriptions/{subscription_id}",
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
                response.raise_for_status()
                return parse_billing_cycle(response.json())

            except httpx.TimeoutException as e:
                raise BillingProviderError(f"Billing provider timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise BillingProviderError(f"Billing provider error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise BillingProviderError(f"Billing provider unreachable: {e}") from e


def parse_billing_cycle(data: dict) -> BillingCycle:
    """
    Build a BillingCycle from a provider subscription object.

    Period boundaries are epoch seconds; a yearly price interval means annual billing.
    """
    try:
        recurring = data["items"]["data"][0]["price"].get("recurring") or {}
        interval = recurring.get("interval")
        return BillingCycle(
            period_start=from_epoch_seconds(data["current_period_start"]),
            period_end=from_epoch_seconds(data["current_period_end"]),
            billing_period=BillingPeriod.ANNUAL if interval == "year" else BillingPeriod.MONTHLY,
        )
    except (KeyError, IndexError, ValueError, TypeError, AttributeError) as e:
        raise BillingProviderError(f"Invalid subscription data from billing provider: {e}") from e
