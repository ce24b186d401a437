"""
Trading Expert Agent - Conversational market assistant backed by Gemini.
"""

import re
from typing import Optional

from tierscope.domain.entities.assistant import AssistantContext, AssistantReply
from tierscope.domain.entities.opportunity import TradingOpportunity
from tierscope.domain.entities.token import TokenSnapshot
from tierscope.domain.ports.llm_port import LLMPort
from tierscope.infrastructure.logging import get_logger

logger = get_logger(__name__)

BULLISH_WORDS = ["buy", "long", "bullish", "uptrend", "support", "breakout", "rally", "pump"]
BEARISH_WORDS = ["sell", "short", "bearish", "downtrend", "resistance", "breakdown", "dump", "correction"]

DEFAULT_RECOMMENDATIONS = [
    "Review current market conditions",
    "Consider risk/reward ratio",
    "Use appropriate position sizing",
]

FALLBACK_RECOMMENDATIONS = [
    "Always use stop losses on leveraged positions",
    "Size positions based on volatility",
    "Monitor market correlation changes",
    "Keep detailed trading journal",
]

FALLBACK_CONFIDENCE = 85.0

GREETING_PATTERN = re.compile(r"\b(hi|hello|hey|greet\w*|start)\b")


def top_performers(tokens: list[TokenSnapshot], count: int = 5) -> str:
    """Format the best 24h performers, one per line."""
    ranked = sorted(tokens, key=lambda t: t.change_pct, reverse=True)[:count]
    return "\n".join(
        f"{t.symbol}: ${float(t.current_price):,.2f} ({t.change_pct:.2f}%)" for t in ranked
    )


def top_opportunities(opportunities: list[TradingOpportunity], count: int = 5) -> str:
    """Format the highest-confidence opportunities, one per line."""
    ranked = sorted(opportunities, key=lambda o: o.confidence, reverse=True)[:count]
    return "\n".join(
        f"{o.symbol}: {o.opportunity_type.value.upper()} "
        f"({o.confidence:.1f}% confidence, {o.risk_level.value} risk)"
        for o in ranked
    )


class TradingExpertAgent:
    """
    Market assistant agent.

    Persona: "Chips", a crypto trading expert focused on leveraged
             strategies and risk management.

    Task: Answer free-text questions using the current token universe,
          live opportunities and market statistics. Falls back to a
          rule-based answer when the LLM is unavailable.
    """

    def __init__(
        self,
        llm: Optional[LLMPort] = None,
        temperature: float = 0.8,
        max_output_tokens: int = 2000,
    ):
        """
        Initialize the agent.

        Args:
            llm: LLM adapter (None runs the rule-based answers only)
            temperature: Sampling temperature
            max_output_tokens: Cap on generated tokens
        """
        self.llm = llm
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens

    def _build_system_prompt(self, context: AssistantContext) -> str:
        """Build the persona prompt with the current market data embedded."""
        stats = context.market_stats
        return f"""You are Chips, a world-class cryptocurrency trading expert and AI assistant. You have deep expertise in advanced trading strategies, technical analysis, and market psychology.

PERSONALITY:
- Professional but friendly and approachable
- Always provide specific, actionable advice
- Explain complex concepts in simple terms

CURRENT MARKET DATA:
- Total tracked cryptocurrencies: {len(context.tokens)}
- Active trading opportunities: {len(context.opportunities)}
- Market trend: {stats.market_trend}
- BTC dominance: {stats.btc_dominance:.2f}%
- Total market cap: ${stats.total_market_cap / 1e12:.2f}T

TOP PERFORMERS (24h):
{top_performers(context.tokens, 5)}

CURRENT OPPORTUNITIES:
{top_opportunities(context.opportunities, 5)}

GUIDELINES:
- If greeted, introduce yourself as Chips, their personal crypto leveraging assistant
- For specific strategies, provide detailed step-by-step advice
- Always include risk management recommendations
- Reference current market data and opportunities when relevant
- Consider leverage implications and position sizing
- Factor in market correlation and volatility"""

    async def answer(self, query: str, context: AssistantContext) -> AssistantReply:
        """
        Answer a user query.

        Args:
            query: Free-text user question
            context: Current tokens, opportunities and market statistics

        Returns:
            AssistantReply with derived sentiment, risk, confidence and
            recommendations.
        """
        if self.llm is None:
            logger.debug("No LLM configured, using rule-based answer")
            return self.fallback_answer(query, context)

        try:
            response = await self.llm.generate_with_prompt(
                system_prompt=self._build_system_prompt(context),
                user_prompt=f"User Question: {query}",
                temperature=self.temperature,
                max_tokens=self.max_output_tokens,
            )
        except Exception as e:
            logger.error("Trading expert LLM error, using fallback", error=str(e))
            return self.fallback_answer(query, context)

        if response.is_empty:
            logger.warning("Empty LLM answer, using fallback", finish_reason=response.finish_reason)
            return self.fallback_answer(query, context)

        logger.debug("LLM answer received", model=response.model, tokens=response.total_tokens)
        text = response.content
        return AssistantReply(
            response=text,
            sentiment=extract_sentiment(text, query),
            risk_level=extract_risk_level(text, query),
            confidence=score_confidence(text, context),
            recommendations=extract_recommendations(text),
        )

    def fallback_answer(self, query: str, context: AssistantContext) -> AssistantReply:
        """Deterministic answer used when no LLM response is available."""
        lower_query = query.lower()
        stats = context.market_stats
        btc = next((t for t in context.tokens if t.symbol == "BTC"), None)

        if GREETING_PATTERN.search(lower_query):
            response = "\n".join([
                "Hello! I'm Chips, your personal crypto leveraging assistant!",
                "",
                "**Current Market Snapshot:**",
                f"- Market Trend: {stats.market_trend.upper()}",
                f"- BTC Dominance: {stats.btc_dominance:.1f}%",
                f"- Active Opportunities: {len(context.opportunities)} high-confidence setups",
                f"- Total Market Cap: ${stats.total_market_cap / 1e12:.2f}T",
                f"- Tokens tracked: {len(context.tokens)}",
                "",
                "Ask me about specific cryptocurrencies, trading strategies, "
                "risk management, or current market conditions.",
            ])
            sentiment, risk_level = "neutral", "low"

        elif btc is not None and ("bitcoin" in lower_query or "btc" in lower_query):
            change = btc.change_pct
            volume = float(btc.volume_24h)
            if change > 2:
                strategy = [
                    "- Consider scaling out profits on strength",
                    "- Set trailing stops to protect gains",
                ]
            elif change < -2:
                strategy = [
                    "- DCA strategy on weakness",
                    "- Consider spot accumulation over leverage",
                ]
            else:
                strategy = [
                    "- Range-bound trading environment",
                    "- Wait for clear directional breakout",
                ]
            response = "\n".join([
                "**Bitcoin (BTC) Analysis:**",
                f"- Price: ${float(btc.current_price):,.2f}",
                f"- 24h Change: {change:.2f}%",
                f"- Market Dominance: {stats.btc_dominance:.2f}%",
                f"- Volume: ${volume:,.0f}",
                f"- Momentum: {'Strong' if abs(change) > 3 else 'Moderate'} "
                f"{'bullish' if change > 0 else 'bearish'} pressure",
                "",
                "**Trading Strategy:**",
                *strategy,
                "",
                f"**Risk Assessment:** "
                f"{'Elevated due to high volatility' if abs(change) > 4 else 'Moderate'}",
            ])
            sentiment = "bullish" if change > 0 else "bearish"
            risk_level = "high" if abs(change) > 4 else "medium"

        elif any(word in lower_query for word in ("leverage", "margin", "trading strategy")):
            volatility = stats.volatility_index
            if volatility > 60:
                max_leverage, regime = "2-3x", "(HIGH RISK)"
            elif volatility > 40:
                max_leverage, regime = "3-5x", "(MODERATE)"
            else:
                max_leverage, regime = "5-10x", "(LOW RISK)"
            response = "\n".join([
                "**Leveraged Trading Strategy:**",
                f"- Volatility Index: {volatility:.0f}/100 {regime}",
                f"- Recommended Max Leverage: {max_leverage}",
                f"- Market Regime: {stats.market_trend.upper()}",
                "- Position Size: 1-2% of portfolio per trade (never exceed 5%)",
                "- Stop Loss: Always set BEFORE entering position",
                "",
                "**Current High-Confidence Opportunities:**",
                top_opportunities(context.opportunities, 3) or "None right now",
            ])
            sentiment = "bullish" if stats.market_trend == "bullish" else "neutral"
            risk_level = "high"

        else:
            count = len(context.opportunities)
            if count > 8:
                stance = "**ACTIVE TRADING PHASE** - Multiple high-probability setups available."
            elif count > 3:
                stance = "**SELECTIVE TRADING** - Cherry-pick highest conviction plays only."
            else:
                stance = "**DEFENSIVE POSITIONING** - Wait for better market structure."
            response = "\n".join([
                "**Chips Market Intelligence Report:**",
                f"- Total Assets Tracked: {len(context.tokens):,}",
                f"- Market Trend: {stats.market_trend.upper()}",
                f"- Active Opportunities: {count}",
                f"- BTC Dominance: {stats.btc_dominance:.2f}%",
                "",
                "**Top Market Movers (24h):**",
                top_performers(context.tokens, 5),
                "",
                stance,
            ])
            sentiment, risk_level = "neutral", "medium"

        return AssistantReply(
            response=response,
            sentiment=sentiment,
            risk_level=risk_level,
            confidence=FALLBACK_CONFIDENCE,
            recommendations=list(FALLBACK_RECOMMENDATIONS),
        )


def extract_sentiment(text: str, query: str) -> str:
    """Count bullish vs bearish keywords across answer and query."""
    lower_text, lower_query = text.lower(), query.lower()
    bullish = sum(1 for w in BULLISH_WORDS if w in lower_text or w in lower_query)
    bearish = sum(1 for w in BEARISH_WORDS if w in lower_text or w in lower_query)
    if bullish > bearish:
        return "bullish"
    if bearish > bullish:
        return "bearish"
    return "neutral"


def extract_risk_level(text: str, query: str) -> str:
    lower_text = text.lower()
    if "high risk" in lower_text or "risky" in lower_text or "leverage" in query.lower():
        return "high"
    if "low risk" in lower_text or "conservative" in lower_text or "safe" in lower_text:
        return "low"
    return "medium"


def score_confidence(text: str, context: AssistantContext) -> float:
    """Base 75 plus bonuses for data coverage and answer detail, capped at 95."""
    confidence = 75.0
    if len(context.tokens) > 100:
        confidence += 10
    if len(context.opportunities) > 5:
        confidence += 5
    if "$" in text or "%" in text:
        confidence += 5
    if len(text) > 200:
        confidence += 5
    return min(95.0, confidence)


def extract_recommendations(text: str) -> list[str]:
    lower_text = text.lower()
    recommendations = []
    if "stop loss" in lower_text or "risk management" in lower_text:
        recommendations.append("Use proper stop loss orders")
    if "position siz" in lower_text or "risk per trade" in lower_text:
        recommendations.append("Calculate appropriate position size")
    if "leverage" in lower_text or "margin" in lower_text:
        recommendations.append("Consider leverage carefully")
    if "diversif" in lower_text or "portfolio" in lower_text:
        recommendations.append("Maintain portfolio diversification")
    if "volume" in lower_text or "liquidity" in lower_text:
        recommendations.append("Monitor trading volume")
    return recommendations or list(DEFAULT_RECOMMENDATIONS)
