"""
Signal receivers that keep denormalized counters in sync.

- Seller ``active_listing_count`` is recalculated whenever a listing is
  saved or deleted.
- Listing ``inquiry_count`` goes up when a new inquiry thread is opened.
- ISO ``response_count`` goes up and the requester is notified when a
  response is posted.
- Listing ``save_count`` follows watchlist adds and removes.
- Enough user reports flag a listing for review.
"""

import logging

from django.db import transaction
from django.db.models import F
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from .constants import LIVE_LISTING_STATUSES, REPORT_AUTO_FLAG_THRESHOLD
from .models import Inquiry, ISORequest, ISOResponse, Listing, ListingReport, User, WatchlistItem
from .notifications import notify

logger = logging.getLogger(__name__)


def recalculate_active_listing_count(user_id):
    """
    Recount the seller's live listings.

    Uses a row lock on the seller so concurrent listing writes do not
    interleave their counts.
    """
    with transaction.atomic():
        user = User.objects.select_for_update().filter(pk=user_id).first()
        if user is None:
            return None
        count = Listing.objects.filter(
            seller_id=user_id,
            status__in=LIVE_LISTING_STATUSES,
            is_active=True,
        ).count()
        User.objects.filter(pk=user_id).update(active_listing_count=count)
    return count


@receiver(post_save, sender=Listing)
def update_listing_count_on_save(sender, instance, created, **kwargs):
    count = recalculate_active_listing_count(instance.seller_id)
    logger.debug(f"Seller {instance.seller_id} active listings: {count}")


@receiver(post_delete, sender=Listing)
def update_listing_count_on_delete(sender, instance, **kwargs):
    recalculate_active_listing_count(instance.seller_id)


@receiver(post_save, sender=Inquiry)
def increment_inquiry_count(sender, instance, created, **kwargs):
    if not created:
        return
    Listing.objects.filter(pk=instance.listing_id).update(inquiry_count=F('inquiry_count') + 1)
    logger.info(f"Inquiry {instance.id} opened on listing {instance.listing_id}")


@receiver(post_save, sender=ISOResponse)
def record_iso_response(sender, instance, created, **kwargs):
    """
    Count the response and tell the requester about it.

    Runs inside the caller's transaction, so a failure here rolls back the
    response as well.
    """
    if not created:
        return

    iso_request = instance.iso_request
    ISORequest.objects.filter(pk=iso_request.pk).update(response_count=F('response_count') + 1)

    notify(
        iso_request.user,
        'iso_response',
        f'New response to "{iso_request.title}"',
        message=instance.message[:500],
        link=f'/iso/{iso_request.id}',
    )
    logger.info(
        f"ISO response {instance.id} recorded for request {iso_request.id} "
        f"by user {instance.responder_id}"
    )


@receiver(post_save, sender=WatchlistItem)
def increment_save_count(sender, instance, created, **kwargs):
    if created:
        Listing.objects.filter(pk=instance.listing_id).update(save_count=F('save_count') + 1)


@receiver(post_delete, sender=WatchlistItem)
def decrement_save_count(sender, instance, **kwargs):
    Listing.objects.filter(pk=instance.listing_id, save_count__gt=0).update(
        save_count=F('save_count') - 1
    )


@receiver(post_save, sender=ListingReport)
def flag_reported_listing(sender, instance, created, **kwargs):
    """
    Flag the listing once it has been reported by enough distinct users.

    The report that crosses the threshold is marked as the trigger; later
    reports leave an already flagged listing alone.
    """
    if not created:
        return

    report_count = ListingReport.objects.filter(listing_id=instance.listing_id).count()
    if report_count < REPORT_AUTO_FLAG_THRESHOLD:
        return

    flagged = Listing.objects.filter(pk=instance.listing_id, is_flagged=False).update(
        is_flagged=True,
        flag_reason=f'Auto-flagged: {report_count} user reports',
    )
    if flagged:
        ListingReport.objects.filter(pk=instance.pk).update(auto_flagged=True)
        logger.warning(f"Listing {instance.listing_id} auto-flagged after {report_count} reports")
