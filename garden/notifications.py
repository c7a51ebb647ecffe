"""
Outbound notifications for low-stock alerts, published to an SNS topic when
settings.SNS_TOPIC_ARN is configured. In-app notifications go through Django
messages in the views; this module only covers the optional external channel.
"""
import logging
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings

logger = logging.getLogger(__name__)


def _sns_client():
    region = getattr(settings, "AWS_REGION", None)
    return boto3.client("sns", region_name=region) if region else boto3.client("sns")


def get_topic_arn() -> Optional[str]:
    return getattr(settings, "SNS_TOPIC_ARN", None) or None


def publish_notification(subject: str, message: str, topic_arn: Optional[str] = None, client=None) -> Optional[Dict[str, Any]]:
    """
    Publish a message to the alerts topic.
    Returns the boto3 response dict on success, or None when no topic is configured or publishing fails.
    """
    arn = topic_arn or get_topic_arn()
    if not arn:
        logger.debug("publish_notification: no SNS topic ARN configured, skipping")
        return None
    client = client or _sns_client()
    kwargs = {"TopicArn": arn, "Message": message}
    if subject:
        kwargs["Subject"] = subject[:100]
    try:
        resp = client.publish(**kwargs)
        logger.info("Published SNS message to %s MessageId=%s", arn, resp.get("MessageId"))
        return resp
    except (ClientError, BotoCoreError) as e:
        logger.exception("SNS publish failed: %s", e)
        return None


def publish_low_stock_alert(seed: Dict[str, Any], topic_arn: Optional[str] = None, client=None) -> Optional[Dict[str, Any]]:
    name = seed.get("name") or "A seed"
    message = (
        f"{name} is running low: {seed.get('packetCount', 0)} packet(s) left "
        f"(threshold {seed.get('lowStockThreshold', 10)})."
    )
    return publish_notification("Low Stock Alert", message, topic_arn=topic_arn, client=client)
