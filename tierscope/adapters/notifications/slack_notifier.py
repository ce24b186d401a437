"""
Slack Notifier - Sends opportunity alerts to Slack via webhook.

Message format is compact, one block per opportunity:
- *[SHORT]* SOL (large)
  Confidence: 84.2% | Risk: low (29.8%)
  Leverage: 5-7x | Expected: +3.4%
"""

from typing import Optional

import httpx

from tierscope.domain.entities.opportunity import TradingOpportunity
from tierscope.infrastructure.logging import get_logger

logger = get_logger(__name__)


class SlackNotifier:
    """Posts opportunity alerts to a Slack channel via webhook."""

    TIMEOUT = 10.0

    def __init__(
        self,
        webhook_url: str,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the Slack notifier.

        Args:
            webhook_url: Slack incoming webhook URL
            client: Optional pre-built HTTP client
        """
        self.webhook_url = webhook_url
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.TIMEOUT)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def _format_opportunity(self, opportunity: TradingOpportunity) -> str:
        """Build the alert block for one opportunity."""
        sign = "+" if opportunity.expected_return >= 0 else ""
        return "\n".join([
            f"*[{opportunity.opportunity_type.value.upper()}]* {opportunity.symbol} ({opportunity.tier})",
            f"Confidence: {opportunity.confidence:.1f}% | "
            f"Risk: {opportunity.risk_level.value} ({opportunity.risk_percentage:.1f}%)",
            f"Leverage: {opportunity.leverage_recommendation} | "
            f"Expected: {sign}{opportunity.expected_return:.1f}%",
        ])

    def build_alert_message(self, opportunities: list[TradingOpportunity]) -> str:
        """Join alert blocks for several opportunities into one message."""
        return "\n\n".join(self._format_opportunity(o) for o in opportunities)

    async def send_opportunity_alerts(
        self,
        opportunities: list[TradingOpportunity],
        min_confidence: float = 80.0,
    ) -> bool:
        """
        Send one Slack message covering opportunities above a confidence threshold.

        This method is fire-and-forget - it logs errors but doesn't raise
        exceptions to avoid blocking a refresh.

        Returns:
            True if a message was sent, False if nothing qualified or sending failed
        """
        selected = [o for o in opportunities if o.confidence >= min_confidence]
        if not selected:
            logger.debug("No opportunities above alert threshold", min_confidence=min_confidence)
            return False

        try:
            client = await self._get_client()
            response = await client.post(
                self.webhook_url,
                json={"text": self.build_alert_message(selected), "mrkdwn": True},
            )

            if response.status_code == 200:
                logger.info("Slack alert sent", opportunities=len(selected))
                return True

            logger.warning(
                "Slack alert failed",
                status_code=response.status_code,
                response=response.text,
            )
            return False

        except httpx.TimeoutException:
            logger.warning("Slack alert timed out", opportunities=len(selected))
            return False
        except Exception as e:
            logger.warning("Slack alert error", error=str(e))
            return False
