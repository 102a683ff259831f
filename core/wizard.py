"""
Step validation for the multi-step listing form.

Steps:
1. Basics (title, category, condition, description)
2. Pricing and location
3. Photos
4. Specifications

Each step returns the first failing check as a user-facing message. ``data``
is the flat form state the client autosaves (``title``, ``priceType``,
``priceAmount``, ``city``, ...).
"""

from .models import ListingDraft

STEP_COUNT = 4


def _blank(value):
    return value is None or not str(value).strip()


def _validate_basics(data):
    if _blank(data.get('title')):
        return 'Title is required'
    if _blank(data.get('category')):
        return 'Please select a category'
    if _blank(data.get('condition')):
        return 'Please select a condition'
    if _blank(data.get('description')):
        return 'Description is required'
    return None


def _validate_pricing_location(data):
    if data.get('priceType', 'fixed') == 'fixed' and _blank(data.get('priceAmount')):
        return 'Please enter a price or select "Contact for Price"'
    if _blank(data.get('city')):
        return 'City is required'
    if _blank(data.get('state')):
        return 'State is required'
    return None


STEP_VALIDATORS = {
    1: _validate_basics,
    2: _validate_pricing_location,
}


def validate_step(step, data):
    """
    Validate form ``data`` for ``step``.

    Returns:
        tuple: (valid, error_message or None)
    """
    validator = STEP_VALIDATORS.get(step)
    if validator is None:
        return True, None
    error = validator(data or {})
    return error is None, error


def clear_draft(user, key=None):
    """Delete the user's autosaved form state."""
    drafts = ListingDraft.objects.filter(user=user)
    if key:
        drafts = drafts.filter(key=key)
    deleted, _detail = drafts.delete()
    return deleted
