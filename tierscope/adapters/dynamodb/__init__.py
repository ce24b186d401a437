"""
DynamoDB adapters package.
"""

from tierscope.adapters.dynamodb.repository import DynamoDBStorageAdapter

__all__ = ["DynamoDBStorageAdapter"]
