"""
Tests for the DynamoDB storage adapter against stubbed DynamoDB responses.
"""

import asyncio
from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from boto3.dynamodb.types import TypeSerializer
from botocore.exceptions import ClientError
from botocore.stub import Stubber

from tierscope.adapters.dynamodb.repository import (
    DynamoDBStorageAdapter,
    convert_decimals_to_float,
    convert_floats_to_decimal,
)
from tierscope.application.services.opportunity_detector import OpportunityDetector
from tierscope.domain.entities.token import Tier
from tierscope.infrastructure.config import Settings

serializer = TypeSerializer()


def to_wire(item: dict) -> dict:
    """Encode a stored item the way DynamoDB returns it on the wire."""
    return {key: serializer.serialize(value) for key, value in convert_floats_to_decimal(item).items()}


def counter_response(value: int) -> dict:
    return {"Attributes": {"value": {"N": str(value)}}}


@pytest.fixture
def dynamo():
    settings = Settings(
        _env_file=None,
        storage_type="dynamodb",
        dynamodb_table_prefix="test",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )
    adapter = DynamoDBStorageAdapter(settings)
    with Stubber(adapter.dynamodb.meta.client) as stubber:
        yield adapter, stubber
        stubber.assert_no_pending_responses()


@pytest.fixture
def detected(make_token):
    tokens = [
        make_token("A", "9", token_id=1),
        make_token("B", "-7", token_id=2),
        make_token("C", "1", token_id=3),
    ]
    return OpportunityDetector().detect(tokens, now=datetime.now())


class TestConversions:
    """Tests for float/Decimal conversion helpers."""

    def test_floats_become_decimals_recursively(self):
        converted = convert_floats_to_decimal({"a": 0.1, "b": [1.5, "x"], "c": {"d": 2.25}})
        assert converted == {"a": Decimal("0.1"), "b": [Decimal("1.5"), "x"], "c": {"d": Decimal("2.25")}}

    def test_decimals_become_int_or_float(self):
        assert convert_decimals_to_float({"id": Decimal("7"), "x": [Decimal("0.5")]}) == {"id": 7, "x": [0.5]}


class TestTokens:
    """Tests for token reads and upserts."""

    def test_table_names_use_prefix(self, dynamo):
        adapter, _ = dynamo
        assert adapter.tokens_table_name == "test_tokens"
        assert adapter.counters_table_name == "test_counters"

    def test_new_token_takes_counter_id(self, dynamo, make_token):
        adapter, stubber = dynamo
        stubber.add_response("get_item", {})
        stubber.add_response("update_item", counter_response(1))
        stubber.add_response("put_item", {})

        stored = asyncio.run(adapter.upsert_token(make_token("BTC", "1", tier=Tier.MEGA)))

        assert stored.id == 1

    def test_existing_token_keeps_its_id(self, dynamo, make_token):
        """Test upserting a known symbol reuses the id without touching the counter."""
        adapter, stubber = dynamo
        existing = make_token("BTC", "1", tier=Tier.MEGA, token_id=7)
        stubber.add_response("get_item", {"Item": to_wire({"pk": "BTC", **existing.to_dict()})})
        stubber.add_response("put_item", {})

        stored = asyncio.run(adapter.upsert_token(make_token("BTC", "4", tier=Tier.MEGA)))

        assert stored.id == 7
        assert stored.price_change_percentage_24h == Decimal("4")

    def test_round_trip_keeps_decimal_strings(self, dynamo, make_token):
        adapter, stubber = dynamo
        token = make_token("ETH", "-1.2345", tier=Tier.MEGA, token_id=2, price="3123.456789")
        token.market_cap_rank = 2
        stubber.add_response("get_item", {"Item": to_wire({"pk": "ETH", **token.to_dict()})})

        restored = asyncio.run(adapter.get_token_by_symbol("ETH"))

        assert restored.current_price == Decimal("3123.456789")
        assert restored.price_change_percentage_24h == Decimal("-1.2345")
        assert restored.market_cap_rank == 2
        assert restored.tier == Tier.MEGA

    def test_missing_token(self, dynamo):
        adapter, stubber = dynamo
        stubber.add_response("get_item", {})
        assert asyncio.run(adapter.get_token_by_symbol("NOPE")) is None


class TestOpportunities:
    """Tests for the opportunity lifecycle."""

    def test_create_assigns_counter_id_and_keeps_lifetime(self, dynamo, detected):
        adapter, stubber = dynamo
        stubber.add_response("update_item", counter_response(4))
        stubber.add_response("put_item", {})

        created = asyncio.run(adapter.create_opportunity(detected[0]))

        assert created.id == 4
        assert created.is_active
        assert created.expires_at - created.created_at == timedelta(hours=24)

    def test_deactivate_existing(self, dynamo):
        adapter, stubber = dynamo
        stubber.add_response("update_item", {})
        assert asyncio.run(adapter.deactivate_opportunity(4)) is True

    def test_deactivate_missing_id(self, dynamo):
        """Test the failed existence condition reports False."""
        adapter, stubber = dynamo
        stubber.add_client_error(
            "update_item",
            service_error_code="ConditionalCheckFailedException",
            http_status_code=400,
        )
        assert asyncio.run(adapter.deactivate_opportunity(999)) is False

    def test_deactivate_other_errors_propagate(self, dynamo):
        adapter, stubber = dynamo
        stubber.add_client_error(
            "update_item",
            service_error_code="ProvisionedThroughputExceededException",
            http_status_code=400,
        )
        with pytest.raises(ClientError):
            asyncio.run(adapter.deactivate_opportunity(1))

    def test_active_excludes_expired_across_pages(self, dynamo, detected):
        """Test scans follow pagination and expired rows are dropped."""
        adapter, stubber = dynamo
        live = detected[0].stamped(datetime.now())
        live.id = 1
        expired = detected[1].stamped(datetime.now() - timedelta(days=2))
        expired.id = 2
        stubber.add_response(
            "scan",
            {
                "Items": [to_wire({"pk": "2", **expired.to_dict()})],
                "LastEvaluatedKey": {"pk": {"S": "2"}},
            },
        )
        stubber.add_response("scan", {"Items": [to_wire({"pk": "1", **live.to_dict()})]})

        active = asyncio.run(adapter.get_active_opportunities())

        assert [o.id for o in active] == [1]
        assert active[0].symbol == live.symbol
        assert active[0].confidence == pytest.approx(live.confidence)
