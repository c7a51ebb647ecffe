import logging

from django.dispatch import Signal, receiver

logger = logging.getLogger(__name__)

# Sent once when a seed's packet count drops below its low-stock threshold.
# kwargs: seed (joined seed dict), garden_id
seed_stock_low = Signal()


@receiver(seed_stock_low)
def publish_low_stock(sender, seed, garden_id=None, **kwargs):
    """
    Forward low-stock alerts to the external notification topic.
    Lazy-import notifications to keep boto3 out of app registry start-up.
    """
    try:
        from . import notifications

        resp = notifications.publish_low_stock_alert(seed)
        if resp:
            logger.info("Low stock alert published for seed %s (garden %s)", seed.get("id"), garden_id)
    except Exception as exc:
        # an alert failure must not break the save that triggered it
        logger.exception("Exception publishing low stock alert for seed %s: %s", seed.get("id"), exc)
