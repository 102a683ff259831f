"""
Premium placement: add-on assignment, expiry and homepage ordering.
"""

import logging

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.db.models import Case, IntegerField, Q, Value, When
from django.utils import timezone

from . import pricing
from .models import AddOnPurchase, Listing
from .notifications import notify

logger = logging.getLogger(__name__)


class AddOnAssignmentError(Exception):
    """Business-rule failure while assigning an add-on to a listing."""

    def __init__(self, message, status_code=400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def tier_active_q(tier, now=None):
    """Filter for listings whose ``tier`` flag is on and not yet expired."""
    now = now or timezone.now()
    return Q(**{f'{tier}_active': True}) & (
        Q(**{f'{tier}_expires_at__isnull': True}) | Q(**{f'{tier}_expires_at__gt': now})
    )


def with_placement_rank(queryset, now=None):
    """
    Annotate ``placement_rank``: elite 3, premium 2, featured 1, otherwise 0.
    """
    now = now or timezone.now()
    return queryset.annotate(
        placement_rank=Case(
            When(tier_active_q(pricing.ADDON_ELITE, now), then=Value(3)),
            When(tier_active_q(pricing.ADDON_PREMIUM, now), then=Value(2)),
            When(tier_active_q(pricing.ADDON_FEATURED, now), then=Value(1)),
            default=Value(0),
            output_field=IntegerField(),
        )
    )


def homepage_listings(slots=None, now=None):
    """
    Pick listings for the homepage highlight.

    Tiers are filled in order (elite, premium, featured), each newest
    purchase first and skipping listings already picked, until ``slots``
    are used. When no listing holds a placement, the most recent active
    listings are shown instead.
    """
    slots = slots or settings.HOMEPAGE_SLOTS
    now = now or timezone.now()
    base = (
        Listing.objects
        .filter(status='active', is_active=True)
        .select_related('seller')
        .prefetch_related('media')
    )

    picked = []
    for tier in pricing.PLACEMENT_TIERS:
        remaining = slots - len(picked)
        if remaining <= 0:
            break
        tier_listings = (
            base.filter(tier_active_q(tier, now))
            .exclude(id__in=[listing.id for listing in picked])
            .order_by(f'-{tier}_purchased_at', '-created_at')[:remaining]
        )
        picked.extend(tier_listings)

    if not picked:
        picked = list(base.order_by('-created_at')[:slots])

    return picked


def _tier_already_active(listing, addon_type, now):
    return pricing.is_ranking_addon(addon_type) and listing._tier_active(addon_type, now)


def _later_expiry(listing, tier, expires_at, now):
    if not listing._tier_active(tier, now):
        return expires_at
    current = getattr(listing, f'{tier}_expires_at')
    if current is None or expires_at is None:
        return None
    return max(current, expires_at)


def apply_addon_to_listing(listing, addon_type, expires_at, now=None):
    """
    Switch on the listing flags granted by ``addon_type``.

    Placement tiers also switch on the tiers they include. A tier that is
    already running keeps whichever expiry is later.
    """
    now = now or timezone.now()
    updates = {}

    if pricing.is_ranking_addon(addon_type):
        for tier in pricing.TIER_INCLUDES[addon_type]:
            updates[f'{tier}_active'] = True
            updates[f'{tier}_expires_at'] = _later_expiry(listing, tier, expires_at, now)
            updates[f'{tier}_purchased_at'] = now
    elif addon_type == pricing.ADDON_AI_ENHANCEMENT:
        updates['ai_enhanced'] = True
    elif addon_type == pricing.ADDON_SPEC_SHEET:
        updates['spec_sheet_generated'] = True

    if updates:
        Listing.objects.filter(pk=listing.pk).update(updated_at=now, **updates)
        for field, value in updates.items():
            setattr(listing, field, value)
    return updates


def clear_listing_tier(listing_id, addon_type, now=None):
    """
    Switch off the flags granted by an expired placement add-on.

    A flag is only cleared once its own expiry has passed; a renewal or a
    higher tier that extended it keeps it on.

    Returns:
        list: The tiers that were switched off
    """
    if not pricing.is_ranking_addon(addon_type):
        return []
    now = now or timezone.now()
    cleared = []
    for tier in pricing.TIER_INCLUDES[addon_type]:
        lapsed = (
            Q(**{f'{tier}_expires_at__isnull': True})
            | Q(**{f'{tier}_expires_at__lte': now})
        )
        still_on = Listing.objects.filter(lapsed, pk=listing_id, **{f'{tier}_active': True})
        if still_on.update(**{f'{tier}_active': False}):
            cleared.append(tier)
    return cleared


def assign_purchase_to_listing(purchase, listing, acting_user, now=None):
    """
    Attach an active add-on purchase to one of the user's active listings.

    Raises:
        AddOnAssignmentError: If any ownership or state rule is violated
    """
    now = now or timezone.now()

    if purchase.user_id != acting_user.id:
        raise AddOnAssignmentError('You do not own this purchase', status_code=403)

    if listing.seller_id != acting_user.id and not acting_user.is_admin():
        raise AddOnAssignmentError('You do not own this listing', status_code=403)

    with transaction.atomic():
        purchase = AddOnPurchase.objects.select_for_update().get(pk=purchase.pk)
        listing = Listing.objects.select_for_update().get(pk=listing.pk)

        if purchase.status != 'active':
            raise AddOnAssignmentError('Purchase is not active')

        if purchase.listing_id:
            raise AddOnAssignmentError('This add-on is already assigned to a listing')

        if listing.status != 'active':
            raise AddOnAssignmentError('Can only assign add-ons to active listings')

        if _tier_already_active(listing, purchase.addon_type, now):
            name = purchase.addon_type.capitalize()
            raise AddOnAssignmentError(f'This listing already has {name} placement active')

        purchase.listing = listing
        purchase.save(update_fields=['listing', 'updated_at'])
        apply_addon_to_listing(listing, purchase.addon_type, purchase.expires_at, now)

    logger.info(
        f"Add-on assigned. Purchase: {purchase.id}, Type: {purchase.addon_type}, "
        f"Listing: {listing.id}, User: {acting_user.id}"
    )
    return purchase, listing


def expire_addons(now=None, dry_run=False):
    """
    Expire active purchases whose lifetime has ended.

    Each expired purchase is marked ``expired`` and its listing flags are
    cleared. Listing flags whose own expiry has passed are switched off as
    well. A failure on one purchase is logged and counted; the run goes on.

    Returns:
        dict: ``processed``, ``errors`` and ``total`` counts
    """
    now = now or timezone.now()
    expired = list(
        AddOnPurchase.objects
        .filter(status='active', expires_at__lt=now)
        .select_related('user', 'listing')
    )

    processed = 0
    errors = 0

    for purchase in expired:
        if dry_run:
            processed += 1
            continue
        try:
            with transaction.atomic():
                purchase.status = 'expired'
                purchase.save(update_fields=['status', 'updated_at'])
                if purchase.listing_id:
                    cleared = clear_listing_tier(purchase.listing_id, purchase.addon_type, now)
                    logger.info(
                        f"Removed add-on {purchase.addon_type} from listing {purchase.listing_id}. "
                        f"Cleared tiers: {', '.join(cleared) or 'none'}"
                    )
                notify(
                    purchase.user,
                    'addon_expired',
                    f'{pricing.display_name(purchase.addon_type)} has expired',
                    link=f'/listings/{purchase.listing.slug}' if purchase.listing else '',
                )
            processed += 1
        except (DatabaseError, ValidationError) as e:
            logger.error(f"Error processing expired purchase {purchase.id}: {str(e)}")
            errors += 1

    if not dry_run:
        for tier in pricing.PLACEMENT_TIERS:
            Listing.objects.filter(
                **{f'{tier}_active': True, f'{tier}_expires_at__lte': now}
            ).update(**{f'{tier}_active': False})

    logger.info(f"Processed {processed} expired add-ons ({errors} errors)")
    return {'processed': processed, 'errors': errors, 'total': len(expired)}
