"""
Validators for marketplace records and request payloads.
"""

import re
from collections import Counter

from django.core.exceptions import ValidationError
from django.utils.html import strip_tags

from .constants import (
    MAX_LISTING_KEYWORDS,
    MAX_LISTING_TAGS,
    MAX_TAG_LENGTH,
    VALID_MANUFACTURERS,
)


# Terms that may not appear in tags or keywords
KEYWORD_BLACKLIST = [
    'ebay',
    'railcar-sales',
    'railcarlink',
    'railinc',
    'machinerytrader',
    'machinery trader',
    'ironplanet',
    'ritchie bros',
    'ritchiebros',
    'equipmentwatch',
    'craigslist',
    'best price',
    'lowest price',
    'cheapest',
    'guaranteed',
    'number one',
    '#1',
    'top rated',
]


def validate_phone_number(value):
    """
    Validate phone number format.

    Accepts digits, spaces, dashes, parentheses and a leading plus sign.
    Requires at least 10 digits.

    Raises:
        ValidationError: If phone number format is invalid
    """
    if not value:  # Empty string is allowed (optional field)
        return

    if not re.match(r'^[\d\s\-\+\(\)]+$', value):
        raise ValidationError(
            'Phone number can only contain digits, spaces, dashes, parentheses, and plus sign.',
            code='invalid_phone_chars'
        )

    digits = re.sub(r'\D', '', value)

    if len(digits) < 10:
        raise ValidationError(
            'Phone number must contain at least 10 digits.',
            code='phone_too_short'
        )

    if len(set(digits)) == 1:
        raise ValidationError(
            'Phone number cannot be all the same digit.',
            code='invalid_phone_pattern'
        )


def validate_avatar_image(image):
    """
    Validate an uploaded avatar.

    Checks:
    - File size (max 5MB)
    - File extension and MIME type (jpg, jpeg, png, webp)
    """
    if not image:
        return

    max_size = 5 * 1024 * 1024
    if image.size > max_size:
        raise ValidationError(
            f'Image file size cannot exceed 5MB. Current size: {image.size / (1024 * 1024):.2f}MB',
            code='image_too_large'
        )

    valid_extensions = ['jpg', 'jpeg', 'png', 'webp']
    file_name = image.name.lower()

    if not any(file_name.endswith(f'.{ext}') for ext in valid_extensions):
        raise ValidationError(
            f'Invalid image format. Allowed formats: {", ".join(valid_extensions)}',
            code='invalid_image_format'
        )

    valid_content_types = ['image/jpeg', 'image/png', 'image/webp']
    content_type = getattr(image, 'content_type', None)
    if content_type and content_type not in valid_content_types:
        raise ValidationError(
            f'Invalid image content type: {content_type}',
            code='invalid_content_type'
        )


def clean_text(value):
    """Strip markup and surrounding whitespace from user-provided text."""
    if value is None:
        return ''
    return strip_tags(str(value)).strip()


def clean_string_list(values, max_item_length=MAX_TAG_LENGTH):
    """Normalize a list of short strings, dropping empty entries."""
    cleaned = []
    for item in values or []:
        text = clean_text(item)[:max_item_length]
        if text:
            cleaned.append(text)
    return cleaned


def validate_tags(tags):
    if tags is None:
        return
    if not isinstance(tags, list):
        raise ValidationError('Tags must be a list.', code='invalid_tags')
    if len(tags) > MAX_LISTING_TAGS:
        raise ValidationError(f'Maximum {MAX_LISTING_TAGS} tags allowed', code='too_many_tags')
    for tag in tags:
        if not isinstance(tag, str) or len(tag) > MAX_TAG_LENGTH:
            raise ValidationError(
                f'Each tag must be text of at most {MAX_TAG_LENGTH} characters.',
                code='invalid_tag'
            )


def validate_keywords(keywords):
    if keywords is None:
        return
    if not isinstance(keywords, list):
        raise ValidationError('Keywords must be a list.', code='invalid_keywords')
    if len(keywords) > MAX_LISTING_KEYWORDS:
        raise ValidationError(
            f'Maximum {MAX_LISTING_KEYWORDS} keywords allowed',
            code='too_many_keywords'
        )


def blacklisted_terms(values):
    """Return the entries of ``values`` containing a blacklisted term."""
    violations = []
    for value in values or []:
        normalized = str(value).lower().strip()
        if any(term in normalized for term in KEYWORD_BLACKLIST):
            violations.append(value)
    return violations


def detect_keyword_stuffing(text):
    """
    Heuristic spam check for titles and descriptions.

    Text is flagged when any word of three or more characters appears more
    than ten times, or when it has more than fifty such words of which fewer
    than 20% are distinct.
    """
    if not isinstance(text, str):
        return False

    words = [word for word in text.lower().split() if len(word) >= 3]
    counts = Counter()
    for word in words:
        counts[word] += 1
        if counts[word] > 10:
            return True

    total = len(words)
    return total > 50 and len(counts) / total < 0.2


def is_valid_manufacturer(value):
    return value in VALID_MANUFACTURERS


def validate_manufacturer(value):
    if value and not is_valid_manufacturer(value):
        raise ValidationError(
            'Invalid manufacturer. Please select from the available options '
            'or contact support if yours is missing.',
            code='invalid_manufacturer'
        )


def validate_upload_subfolder(value):
    if value and not re.match(r'^[a-zA-Z0-9-]+$', value):
        raise ValidationError(
            'Subfolder may only contain letters, numbers and dashes.',
            code='invalid_subfolder'
        )


def sanitize_file_name(name):
    """Reduce an uploaded file name to a safe object-storage key segment."""
    base = (name or '').replace('\\', '/').split('/')[-1]
    base = re.sub(r'[^a-zA-Z0-9._-]', '_', base)
    base = re.sub(r'_{2,}', '_', base).strip('._')
    return base[:100] or 'file'
