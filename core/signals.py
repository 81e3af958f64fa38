"""
Django signals for automatic rating recalculation.

When a review is created, updated or deleted, the subject's
``rating_average`` and ``total_reviews`` are re-derived from all reviews
they have received.
"""

import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import Avg, Count
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from .models import Review, User

logger = logging.getLogger(__name__)


def rating_stats_for(user_id):
    """
    Aggregate the reviews received by a user.

    Returns:
        tuple: (rating_average as Decimal quantized to 0.01, total_reviews)
    """
    stats = Review.objects.filter(subject_id=user_id).aggregate(
        avg=Avg('rating'),
        total=Count('id'),
    )
    raw_avg = stats['avg']
    if raw_avg is None:
        average = Decimal('0.00')
    else:
        average = Decimal(str(raw_avg)).quantize(Decimal('0.01'))
    return average, stats['total'] or 0


def refresh_user_rating(user_id):
    """
    Recompute and store the rating summary for ``user_id``.

    The user row is locked for the duration of the update. The write goes
    through ``update()`` so model validation on User.save() is not triggered.
    """
    with transaction.atomic():
        locked = User.objects.select_for_update().filter(pk=user_id).exists()
        if not locked:
            return None
        average, total = rating_stats_for(user_id)
        User.objects.filter(pk=user_id).update(
            rating_average=average,
            total_reviews=total,
        )
    return average, total


@receiver(post_save, sender=Review)
def update_ratings_on_review_save(sender, instance, created, **kwargs):
    """
    Update the subject's rating when a review is created or updated.

    Runs inside the transaction that saved the review; an error here rolls
    the review back too.
    """
    try:
        result = refresh_user_rating(instance.subject_id)
    except Exception as e:
        logger.error(
            f"Error updating ratings for review {instance.id}: {e}",
            exc_info=True
        )
        raise

    action = "created" if created else "updated"
    if result is not None:
        logger.info(
            f"Updated ratings for review {instance.id} ({action}): "
            f"subject={instance.subject_id}, average={result[0]}, total={result[1]}"
        )


@receiver(post_delete, sender=Review)
def update_ratings_on_review_delete(sender, instance, **kwargs):
    """
    Update the subject's rating after a review is deleted.

    With no reviews left the average falls back to 0.00.
    """
    try:
        result = refresh_user_rating(instance.subject_id)
    except Exception as e:
        logger.error(
            f"Error updating ratings after deleting review {instance.id}: {e}",
            exc_info=True
        )
        raise

    if result is not None:
        logger.info(
            f"Updated ratings after deleting review {instance.id}: "
            f"subject={instance.subject_id}, average={result[0]}, total={result[1]}"
        )
