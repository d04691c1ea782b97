"""Account and payments functionality mixin for the Obscura API client.

This module provides the AccountClientMixin class that handles account
status, pricing and payment session operations, designed to be composed
with the base client.
"""

import logging
from typing import TYPE_CHECKING

from obscura_api.api.commands import (
    CreateLightningTopUp,
    CreateStripeManageSubscriptionSession,
    CreateStripeSubscriptionCheckout,
    CreateStripeTopUp,
    GetAccountInfo,
    ListPrices,
)
from obscura_api.api.models import (
    AccountInfo,
    CreateStripeManageSubscriptionSessionOutput,
    CreateStripeSubscriptionCheckoutOutput,
    LightningTopUpInfo,
    Prices,
    StripeTopUpInfo,
)

if TYPE_CHECKING:
    from obscura_api.api.protocols import BaseClientProtocol

logger = logging.getLogger(__name__)


class AccountClientMixin:
    """Mixin providing account and payment functionality for the Obscura API client."""

    async def get_account_info(self: "BaseClientProtocol") -> AccountInfo:
        """Fetch the account status, credit and subscription.

        Raises:
            ObscuraApiError: The API declined the request (e.g. AccountExpired)
            ObscuraProtocolError: Unexpected response envelope
            ObscuraRequestError: Transport or decoding failure
        """
        account_info = await self.run(GetAccountInfo())
        logger.debug("Fetched account info (active=%s)", account_info.active)
        return account_info

    async def list_prices(self: "BaseClientProtocol") -> Prices:
        """Fetch subscription and top-up prices."""
        return await self.run(ListPrices())

    async def create_lightning_top_up(
        self: "BaseClientProtocol", months: int
    ) -> LightningTopUpInfo:
        """Create a Lightning invoice that tops up the account.

        Args:
            months: Number of months of credit to buy

        Returns:
            LightningTopUpInfo: The invoice to pay
        """
        top_up = await self.run(CreateLightningTopUp(months=months))
        logger.debug("Created lightning top-up invoice for %d months", months)
        return top_up

    async def create_stripe_top_up(self: "BaseClientProtocol", months: int) -> StripeTopUpInfo:
        """Create a Stripe payment intent that tops up the account."""
        return await self.run(CreateStripeTopUp(months=months))

    async def create_stripe_subscription_checkout(
        self: "BaseClientProtocol",
    ) -> CreateStripeSubscriptionCheckoutOutput:
        """Create a Stripe checkout session for a new subscription."""
        return await self.run(CreateStripeSubscriptionCheckout())

    async def create_stripe_manage_subscription_session(
        self: "BaseClientProtocol", session_id: str
    ) -> CreateStripeManageSubscriptionSessionOutput:
        """Create a Stripe customer portal session to manage a subscription.

        Args:
            session_id: Checkout session ID the subscription was created from
        """
        return await self.run(CreateStripeManageSubscriptionSession(session_id=session_id))
