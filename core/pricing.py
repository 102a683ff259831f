"""
Add-on catalog for paid listing and contractor upgrades.

Prices are stored in cents. A duration of ``None`` means the add-on never
expires once purchased.
"""

from datetime import timedelta

from django.conf import settings
from django.utils import timezone


ADDON_FEATURED = 'featured'
ADDON_PREMIUM = 'premium'
ADDON_ELITE = 'elite'
ADDON_AI_ENHANCEMENT = 'ai_enhancement'
ADDON_SPEC_SHEET = 'spec_sheet'

ADDON_CATALOG = {
    ADDON_FEATURED: {
        'name': 'Featured Listing',
        'description': 'Highlighted in search results with a Featured badge.',
        'price': 2500,
        'duration_days': 30,
        'ranking_boost': 1,
    },
    ADDON_PREMIUM: {
        'name': 'Premium Placement',
        'description': 'Priority placement in category pages. Includes Featured.',
        'price': 5000,
        'duration_days': 30,
        'ranking_boost': 2,
    },
    ADDON_ELITE: {
        'name': 'Elite Placement',
        'description': 'Top homepage placement. Includes Premium and Featured.',
        'price': 9900,
        'duration_days': 30,
        'ranking_boost': 3,
    },
    ADDON_AI_ENHANCEMENT: {
        'name': 'AI Listing Enhancement',
        'description': 'Improved title, description and keywords.',
        'price': 1000,
        'duration_days': None,
        'ranking_boost': 0,
    },
    ADDON_SPEC_SHEET: {
        'name': 'Spec Sheet Builder',
        'description': 'Printable equipment specification sheet.',
        'price': 2500,
        'duration_days': None,
        'ranking_boost': 0,
    },
}

ADDON_TYPES = list(ADDON_CATALOG)

ADDON_TYPE_CHOICES = [(key, value['name']) for key, value in ADDON_CATALOG.items()]

# Placement tiers from highest to lowest
PLACEMENT_TIERS = (ADDON_ELITE, ADDON_PREMIUM, ADDON_FEATURED)

# Higher placement tiers also switch on every tier below them
TIER_INCLUDES = {
    ADDON_ELITE: (ADDON_ELITE, ADDON_PREMIUM, ADDON_FEATURED),
    ADDON_PREMIUM: (ADDON_PREMIUM, ADDON_FEATURED),
    ADDON_FEATURED: (ADDON_FEATURED,),
}

ADDON_STATUS_CHOICES = [
    ('pending', 'Pending'),
    ('active', 'Active'),
    ('expired', 'Expired'),
    ('cancelled', 'Cancelled'),
    ('refunded', 'Refunded'),
]


def addon_info(addon_type):
    """Return the catalog entry for ``addon_type`` or ``None`` if unknown."""
    return ADDON_CATALOG.get(addon_type)


def addon_price(addon_type):
    info = addon_info(addon_type)
    return info['price'] if info else 0


def addon_duration(addon_type):
    """Return the add-on lifetime as a timedelta, or None for permanent add-ons."""
    info = addon_info(addon_type)
    if not info or info['duration_days'] is None:
        return None
    return timedelta(days=info['duration_days'])


def duration_label(addon_type):
    info = addon_info(addon_type)
    if not info:
        return ''
    if info['duration_days'] is None:
        return 'Permanent'
    return f"{info['duration_days']} days"


def display_name(addon_type):
    """
    Return the checkout line-item name, e.g. ``Featured Listing (30 days)``.
    """
    info = addon_info(addon_type)
    if not info:
        return addon_type
    if info['duration_days'] is None:
        return info['name']
    return f"{info['name']} ({duration_label(addon_type)})"


def calculate_expiration_date(addon_type, start=None):
    """
    Compute when an add-on bought at ``start`` stops being active.

    Returns None for permanent add-ons.
    """
    duration = addon_duration(addon_type)
    if duration is None:
        return None
    start = start or timezone.now()
    return start + duration


def remaining_time(expires_at, now=None):
    """
    Describe the time left before ``expires_at``.

    Returns a dict with ``expired``, ``days`` and ``hours`` keys. A missing
    expiry is treated as permanent.
    """
    if expires_at is None:
        return {'expired': False, 'days': None, 'hours': None, 'permanent': True}

    now = now or timezone.now()
    delta = expires_at - now
    if delta.total_seconds() <= 0:
        return {'expired': True, 'days': 0, 'hours': 0, 'permanent': False}

    days = delta.days
    hours = delta.seconds // 3600
    return {'expired': False, 'days': days, 'hours': hours, 'permanent': False}


def is_ranking_addon(addon_type):
    return addon_type in PLACEMENT_TIERS


def assignment_order(addon_type):
    """Sort key that puts the highest placement tier first."""
    if addon_type in PLACEMENT_TIERS:
        return PLACEMENT_TIERS.index(addon_type)
    return len(PLACEMENT_TIERS)


def stripe_price_id(addon_type):
    """Return the configured Stripe price id for ``addon_type``, if any."""
    return getattr(settings, 'STRIPE_ADDON_PRICE_IDS', {}).get(addon_type) or None


def all_addons_info():
    """Serializable view of the whole catalog for the public pricing endpoint."""
    return [
        {
            'type': key,
            'name': value['name'],
            'description': value['description'],
            'price': value['price'],
            'price_display': f"${value['price'] / 100:.2f}",
            'duration_days': value['duration_days'],
            'duration': duration_label(key),
            'ranking_boost': value['ranking_boost'],
        }
        for key, value in ADDON_CATALOG.items()
    ]
