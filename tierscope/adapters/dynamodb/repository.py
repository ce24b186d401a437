"""
DynamoDB Storage Adapter - Implements MarketStoragePort.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

import boto3
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import ClientError

from tierscope.domain.entities.market_stats import CorrelationRecord
from tierscope.domain.entities.opportunity import TradingOpportunity
from tierscope.domain.entities.token import Tier, TokenSnapshot
from tierscope.domain.ports.storage_port import MarketStoragePort
from tierscope.infrastructure.config import Settings
from tierscope.infrastructure.logging import get_logger

logger = get_logger(__name__)


def convert_floats_to_decimal(obj: Any) -> Any:
    """Convert float values to Decimal for DynamoDB compatibility."""
    if isinstance(obj, float):
        return Decimal(str(obj))
    elif isinstance(obj, dict):
        return {k: convert_floats_to_decimal(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [convert_floats_to_decimal(v) for v in obj]
    return obj


def convert_decimals_to_float(obj: Any) -> Any:
    """Convert Decimal values back to float/int."""
    if isinstance(obj, Decimal):
        if obj % 1 == 0:
            return int(obj)
        return float(obj)
    elif isinstance(obj, dict):
        return {k: convert_decimals_to_float(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [convert_decimals_to_float(v) for v in obj]
    return obj


class DynamoDBStorageAdapter(MarketStoragePort):
    """
    DynamoDB implementation of MarketStoragePort.

    Tables (all keyed by string "pk"):
        {prefix}_tokens: pk = symbol
        {prefix}_opportunities: pk = opportunity id
        {prefix}_correlations: pk = correlation id
        {prefix}_counters: pk = counter name, atomic "value"
    """

    def __init__(self, settings: Settings):
        """
        Initialize DynamoDB adapter.

        Args:
            settings: Application settings with AWS credentials.
        """
        self.settings = settings
        prefix = settings.dynamodb_table_prefix
        self.tokens_table_name = f"{prefix}_tokens"
        self.opportunities_table_name = f"{prefix}_opportunities"
        self.correlations_table_name = f"{prefix}_correlations"
        self.counters_table_name = f"{prefix}_counters"

        client_kwargs: dict[str, Any] = {
            "region_name": settings.aws_region,
        }

        if settings.use_local_dynamodb:
            client_kwargs["endpoint_url"] = settings.dynamodb_endpoint_url
            logger.info("Using local DynamoDB", endpoint=settings.dynamodb_endpoint_url)

        if settings.aws_access_key_id and settings.aws_secret_access_key:
            client_kwargs["aws_access_key_id"] = settings.aws_access_key_id
            client_kwargs["aws_secret_access_key"] = settings.aws_secret_access_key

        self.dynamodb = boto3.resource("dynamodb", **client_kwargs)
        self.tokens_table = self.dynamodb.Table(self.tokens_table_name)
        self.opportunities_table = self.dynamodb.Table(self.opportunities_table_name)
        self.correlations_table = self.dynamodb.Table(self.correlations_table_name)
        self.counters_table = self.dynamodb.Table(self.counters_table_name)

    async def initialize_tables(self) -> None:
        """Create DynamoDB tables if they don't exist."""
        for table_name in (
            self.tokens_table_name,
            self.opportunities_table_name,
            self.correlations_table_name,
            self.counters_table_name,
        ):
            await self._create_table_if_not_exists(table_name)

    async def _create_table_if_not_exists(self, table_name: str) -> None:
        """Create a DynamoDB table keyed by "pk" if it doesn't exist."""
        client = self.dynamodb.meta.client
        try:
            client.describe_table(TableName=table_name)
            logger.debug("Table exists", table=table_name)
        except ClientError as e:
            if e.response["Error"]["Code"] != "ResourceNotFoundException":
                raise
            logger.info("Creating table", table=table_name)
            client.create_table(
                TableName=table_name,
                KeySchema=[{"AttributeName": "pk", "KeyType": "HASH"}],
                AttributeDefinitions=[{"AttributeName": "pk", "AttributeType": "S"}],
                BillingMode="PAY_PER_REQUEST",
            )
            waiter = client.get_waiter("table_exists")
            waiter.wait(TableName=table_name)
            logger.info("Table created", table=table_name)

    def _next_id(self, counter: str) -> int:
        """Atomically increment and return a named counter."""
        response = self.counters_table.update_item(
            Key={"pk": counter},
            UpdateExpression="ADD #v :one",
            ExpressionAttributeNames={"#v": "value"},
            ExpressionAttributeValues={":one": 1},
            ReturnValues="UPDATED_NEW",
        )
        return int(response["Attributes"]["value"])

    def _scan(self, table: Any, **kwargs: Any) -> list[dict[str, Any]]:
        """Scan a table following pagination."""
        response = table.scan(**kwargs)
        items = response.get("Items", [])
        while "LastEvaluatedKey" in response:
            response = table.scan(ExclusiveStartKey=response["LastEvaluatedKey"], **kwargs)
            items.extend(response.get("Items", []))
        return [convert_decimals_to_float(item) for item in items]

    # Tokens

    async def get_all_tokens(self) -> list[TokenSnapshot]:
        tokens = [TokenSnapshot.from_dict(item) for item in self._scan(self.tokens_table)]
        tokens.sort(key=lambda t: t.id or 0)
        logger.debug("Retrieved tokens", count=len(tokens))
        return tokens

    async def get_tokens_by_tier(self, tier: Tier) -> list[TokenSnapshot]:
        items = self._scan(self.tokens_table, FilterExpression=Attr("tier").eq(tier.value))
        tokens = [TokenSnapshot.from_dict(item) for item in items]
        tokens.sort(key=lambda t: t.id or 0)
        return tokens

    async def get_token_by_symbol(self, symbol: str) -> Optional[TokenSnapshot]:
        response = self.tokens_table.get_item(Key={"pk": symbol})
        item = response.get("Item")
        if not item:
            return None
        return TokenSnapshot.from_dict(convert_decimals_to_float(item))

    async def upsert_token(self, token: TokenSnapshot) -> TokenSnapshot:
        existing = await self.get_token_by_symbol(token.symbol)

        item = token.to_dict()
        item["id"] = existing.id if existing and existing.id else self._next_id("token")
        item["last_updated"] = datetime.now().isoformat()

        # Decimal fields are stored as strings to keep full precision
        self.tokens_table.put_item(Item={"pk": token.symbol, **convert_floats_to_decimal(item)})
        return TokenSnapshot.from_dict(item)

    # Opportunities

    async def get_all_opportunities(self) -> list[TradingOpportunity]:
        opportunities = [
            TradingOpportunity.from_dict(item) for item in self._scan(self.opportunities_table)
        ]
        opportunities.sort(key=lambda o: o.id or 0)
        return opportunities

    async def get_active_opportunities(
        self,
        now: Optional[datetime] = None,
    ) -> list[TradingOpportunity]:
        now = now or datetime.now()
        items = self._scan(self.opportunities_table, FilterExpression=Attr("is_active").eq(True))
        opportunities = [TradingOpportunity.from_dict(item) for item in items]
        opportunities = [o for o in opportunities if not o.is_expired(now)]
        opportunities.sort(key=lambda o: o.id or 0)
        return opportunities

    async def create_opportunity(self, opportunity: TradingOpportunity) -> TradingOpportunity:
        item = opportunity.stamped(datetime.now()).to_dict()
        item["id"] = self._next_id("opportunity")
        item["is_active"] = True

        self.opportunities_table.put_item(
            Item={"pk": str(item["id"]), **convert_floats_to_decimal(item)}
        )
        logger.debug("Saved opportunity", id=item["id"], symbol=item["symbol"])
        return TradingOpportunity.from_dict(item)

    async def deactivate_opportunity(self, opportunity_id: int) -> bool:
        try:
            self.opportunities_table.update_item(
                Key={"pk": str(opportunity_id)},
                UpdateExpression="SET is_active = :false",
                ConditionExpression=Attr("pk").exists(),
                ExpressionAttributeValues={":false": False},
            )
            return True
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                return False
            raise

    # Correlations

    async def get_latest_correlations(self) -> list[CorrelationRecord]:
        records = [CorrelationRecord.from_dict(item) for item in self._scan(self.correlations_table)]
        records.sort(key=lambda r: r.id or 0)
        return records

    async def create_correlation(self, record: CorrelationRecord) -> CorrelationRecord:
        item = record.to_dict()
        item["id"] = self._next_id("correlation")
        item["calculated_at"] = datetime.now().isoformat()
        self.correlations_table.put_item(
            Item={"pk": str(item["id"]), **convert_floats_to_decimal(item)}
        )
        return CorrelationRecord.from_dict(item)
