"""
Module: dynamodb.py
Description: DynamoDB-backed subscription store.

Persists webhook subscriptions in a DynamoDB table keyed by
subscription_id, with proper error handling and logging.

Key Components:
- DynamoDBSubscriptionStore: SubscriptionStore implementation
- Item serialization: sets stored as sorted lists, datetimes as ISO 8601
- Error handling: ClientError logged with code and message, then re-raised

Dependencies: boto3, botocore, datetime, typing
Author: Content Webhooks Team
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

import boto3
from botocore.exceptions import ClientError

from content_webhooks.models.subscription import Subscription
from content_webhooks.storage.subscriptions import SubscriptionStore
from content_webhooks.utils.logger import get_logger

logger = get_logger(__name__)


def _to_item(subscription: Subscription) -> Dict[str, Any]:
    """Convert a subscription to a DynamoDB item."""
    item = {
        'subscription_id': subscription.id,
        'label': subscription.label,
        'url': subscription.url,
        'secret': subscription.secret,
        'events': sorted(event.value for event in subscription.events),
        'entity_types': sorted(subscription.entity_types),
        'bundles': sorted(subscription.bundles),
        'enabled': subscription.enabled,
    }
    if subscription.created_at is not None:
        item['created_at'] = subscription.created_at.isoformat()
    return item


def _from_item(item: Dict[str, Any]) -> Subscription:
    """Convert a DynamoDB item back to a subscription."""
    created_at = item.get('created_at')
    return Subscription(
        id=item['subscription_id'],
        label=item.get('label', ''),
        url=item['url'],
        secret=item.get('secret', ''),
        events=set(item.get('events', [])),
        entity_types=set(item.get('entity_types', [])),
        bundles=set(item.get('bundles', [])),
        enabled=bool(item.get('enabled', True)),
        created_at=datetime.fromisoformat(created_at) if created_at else None,
    )


class DynamoDBSubscriptionStore(SubscriptionStore):
    """
    DynamoDB subscription store.

    Attributes:
        table_name: Name of the DynamoDB subscriptions table
        dynamodb: boto3 DynamoDB resource
        table: boto3 DynamoDB table resource

    Example:
        >>> store = DynamoDBSubscriptionStore(table_name="content-webhooks-subscriptions")
        >>> subscription_id = store.add(subscription)
        >>> store.get(subscription_id)
    """

    def __init__(self, table_name: str, region_name: Optional[str] = None):
        """
        Initialize DynamoDB subscription store.

        Args:
            table_name: Name of the DynamoDB subscriptions table
            region_name: AWS region; boto3 default resolution when omitted

        Raises:
            ValueError: If table_name is empty or invalid
        """
        if not table_name or not isinstance(table_name, str):
            raise ValueError("table_name must be a non-empty string")

        self.table_name = table_name
        self.dynamodb = boto3.resource('dynamodb', region_name=region_name)
        self.table = self.dynamodb.Table(table_name)

        logger.info(
            "DynamoDB subscription store initialized",
            table_name=table_name
        )

    def list(self) -> List[Subscription]:
        """
        Scan every subscription, following pagination.

        Raises:
            ClientError: If DynamoDB operation fails
        """
        try:
            subscriptions = []
            kwargs: Dict[str, Any] = {}
            while True:
                response = self.table.scan(**kwargs)
                subscriptions.extend(_from_item(item) for item in response.get('Items', []))
                last_key = response.get('LastEvaluatedKey')
                if not last_key:
                    break
                kwargs['ExclusiveStartKey'] = last_key

            logger.debug(
                "Subscriptions listed from DynamoDB",
                count=len(subscriptions),
                table_name=self.table_name
            )
            return subscriptions

        except ClientError as e:
            logger.error(
                "Failed to list subscriptions from DynamoDB",
                table_name=self.table_name,
                error_code=e.response['Error']['Code'],
                error_message=e.response['Error']['Message']
            )
            raise

    def get(self, subscription_id: str) -> Optional[Subscription]:
        """
        Retrieve a subscription by id.

        Raises:
            ClientError: If DynamoDB operation fails
            ValueError: If subscription_id is invalid
        """
        if not subscription_id or not isinstance(subscription_id, str):
            raise ValueError("subscription_id must be a non-empty string")

        try:
            response = self.table.get_item(Key={'subscription_id': subscription_id})

            if 'Item' not in response:
                logger.info(
                    "Subscription not found in DynamoDB",
                    subscription_id=subscription_id,
                    table_name=self.table_name
                )
                return None

            return _from_item(response['Item'])

        except ClientError as e:
            logger.error(
                "Failed to retrieve subscription from DynamoDB",
                subscription_id=subscription_id,
                table_name=self.table_name,
                error_code=e.response['Error']['Code'],
                error_message=e.response['Error']['Message']
            )
            raise

    def add(self, subscription: Subscription) -> str:
        """
        Store a new subscription.

        Raises:
            ConfigurationError: If the subscription is malformed
            ClientError: If DynamoDB operation fails
        """
        stored = self._prepare_new(subscription)

        try:
            self.table.put_item(
                Item=_to_item(stored),
                ConditionExpression='attribute_not_exists(subscription_id)'
            )

            logger.info(
                "Webhook added",
                subscription_id=stored.id,
                url=stored.url,
                table_name=self.table_name
            )
            return stored.id

        except ClientError as e:
            logger.error(
                "Failed to store subscription in DynamoDB",
                subscription_id=stored.id,
                table_name=self.table_name,
                error_code=e.response['Error']['Code'],
                error_message=e.response['Error']['Message']
            )
            raise

    def update(self, subscription_id: str, subscription: Subscription) -> bool:
        """
        Replace an existing subscription, keeping its id and creation time.

        Raises:
            ConfigurationError: If the subscription is malformed
            ClientError: If DynamoDB operation fails
        """
        existing = self.get(subscription_id)
        if existing is None:
            return False

        stored = self._prepare_replacement(subscription_id, subscription, existing)

        try:
            self.table.put_item(
                Item=_to_item(stored),
                ConditionExpression='attribute_exists(subscription_id)'
            )

        except ClientError as e:
            if e.response['Error']['Code'] == 'ConditionalCheckFailedException':
                # Deleted between get and put
                return False
            logger.error(
                "Failed to update subscription in DynamoDB",
                subscription_id=subscription_id,
                table_name=self.table_name,
                error_code=e.response['Error']['Code'],
                error_message=e.response['Error']['Message']
            )
            raise

        logger.info(
            "Webhook updated",
            subscription_id=subscription_id,
            table_name=self.table_name
        )
        return True

    def delete(self, subscription_id: str) -> bool:
        """
        Delete a subscription.

        Raises:
            ClientError: If DynamoDB operation fails
        """
        if not subscription_id or not isinstance(subscription_id, str):
            raise ValueError("subscription_id must be a non-empty string")

        try:
            self.table.delete_item(
                Key={'subscription_id': subscription_id},
                ConditionExpression='attribute_exists(subscription_id)'
            )

        except ClientError as e:
            if e.response['Error']['Code'] == 'ConditionalCheckFailedException':
                return False
            logger.error(
                "Failed to delete subscription from DynamoDB",
                subscription_id=subscription_id,
                table_name=self.table_name,
                error_code=e.response['Error']['Code'],
                error_message=e.response['Error']['Message']
            )
            raise

        logger.info(
            "Webhook deleted",
            subscription_id=subscription_id,
            table_name=self.table_name
        )
        return True
