"""
Module: metrics.py
Description: CloudWatch custom metrics for webhook delivery.

Key Components:
- MetricsClient: Publishes delivery counters, tagged with the deployment stage
- Metric names: success/failure per attempt, jobs retried, jobs dropped

Publishing is best effort; a CloudWatch failure is logged and never
affects a delivery.

Dependencies: boto3, botocore, typing, logger
Author: Content Webhooks Team
"""

from typing import Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from content_webhooks.utils.logger import get_logger

logger = get_logger(__name__)

DELIVERY_SUCCESS = "WebhookDeliverySuccess"
DELIVERY_FAILURE = "WebhookDeliveryFailure"
JOBS_RETRIED = "WebhookJobsRetried"
JOBS_DROPPED = "WebhookJobsDropped"


class MetricsClient:
    """
    CloudWatch metrics client.

    Args:
        namespace: CloudWatch metrics namespace
        region_name: AWS region; boto3 default resolution when omitted
        stage: Added as a Stage dimension to every metric when set
    """

    def __init__(
        self,
        namespace: str = "ContentWebhooks",
        region_name: Optional[str] = None,
        stage: Optional[str] = None
    ):
        self.namespace = namespace
        self.default_dimensions = {"Stage": stage} if stage else {}
        self.cloudwatch = boto3.client('cloudwatch', region_name=region_name)

    def put_metric(
        self,
        metric_name: str,
        value: float,
        unit: str = 'Count',
        dimensions: Optional[Dict[str, str]] = None
    ) -> None:
        """Publish one datapoint; errors are logged and swallowed."""
        merged = {**self.default_dimensions, **(dimensions or {})}
        datum = {'MetricName': metric_name, 'Value': value, 'Unit': unit}
        if merged:
            datum['Dimensions'] = [{'Name': k, 'Value': v} for k, v in merged.items()]

        try:
            self.cloudwatch.put_metric_data(Namespace=self.namespace, MetricData=[datum])
        except (ClientError, BotoCoreError) as e:
            logger.warning(
                "Failed to publish metric",
                metric_name=metric_name,
                namespace=self.namespace,
                error=str(e)
            )
            return

        logger.debug("Metric published", metric_name=metric_name, value=value)

    def record_attempt(self, success: bool) -> None:
        self.put_metric(DELIVERY_SUCCESS if success else DELIVERY_FAILURE, 1.0)

    def record_retried(self) -> None:
        self.put_metric(JOBS_RETRIED, 1.0)

    def record_dropped(self) -> None:
        self.put_metric(JOBS_DROPPED, 1.0)
