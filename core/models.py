"""
Data models for The Rail Exchange marketplace.
"""

import math
import re
from datetime import timedelta

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.core.exceptions import ValidationError
from django.core.validators import (
    MaxLengthValidator,
    MaxValueValidator,
    MinLengthValidator,
    MinValueValidator,
)
from django.db import models
from django.utils import timezone
from django.utils.crypto import get_random_string
from django.utils.translation import gettext_lazy as _

from . import pricing
from .constants import (
    CONTRACTOR_TYPES,
    DRAFT_STORAGE_KEY,
    INQUIRY_STATUS_CHOICES,
    INQUIRY_TIMELINE_CHOICES,
    ISO_BUDGET_TYPE_CHOICES,
    ISO_CATEGORY_CHOICES,
    ISO_STATUS_CHOICES,
    LISTING_CATEGORY_CHOICES,
    LISTING_CONDITION_CHOICES,
    LISTING_STATUS_CHOICES,
    LIVE_LISTING_STATUSES,
    MEDIA_TYPE_CHOICES,
    NOTIFICATION_TYPE_CHOICES,
    PRICE_TYPE_CHOICES,
    REPORT_REASON_CHOICES,
    REPORT_STATUS_CHOICES,
    SELLER_TIER_CHOICES,
    SELLER_TYPE_CHOICES,
    SELLER_VERIFICATION_STATUS_CHOICES,
    SELLER_VERIFICATION_TIER_CHOICES,
    USER_TYPE_CHOICES,
    VERIFICATION_STATUS_CHOICES,
    VISIBILITY_SUBSCRIPTION_CHOICES,
    VISIBILITY_TIER_BOOST,
    VISIBILITY_TIER_CHOICES,
)
from .validators import (
    validate_avatar_image,
    validate_keywords,
    validate_manufacturer,
    validate_phone_number,
    validate_tags,
)


def user_avatar_upload_path(instance, filename):
    """
    Generate upload path for user avatars.

    Path format: avatars/{user_id}/{filename}
    """
    user_id = instance.id if instance.id else 'temp'
    return f'avatars/{user_id}/{filename}'


class User(AbstractUser):
    """
    Marketplace account.

    Email is the login identifier. Sellers publish listings once their seller
    verification is active; contractors may also publish once their
    contractor profile is verified.
    """

    email = models.EmailField(
        _('email address'),
        unique=True,
        blank=False,
        null=False,
        error_messages={
            'unique': _('A user with that email already exists.'),
        },
        help_text=_('Required. Enter a valid email address.')
    )

    phone_number = models.CharField(
        _('phone number'),
        max_length=20,
        blank=True,
        default='',
        validators=[validate_phone_number],
        help_text=_('Optional. Enter phone number in international format.')
    )

    company_name = models.CharField(
        _('company name'),
        max_length=200,
        blank=True,
        default='',
        help_text=_('Company or railroad the user represents.')
    )

    user_type = models.CharField(
        _('user type'),
        max_length=20,
        choices=USER_TYPE_CHOICES,
        default='buyer',
        help_text=_('Primary role on the marketplace.')
    )

    avatar = models.ImageField(
        _('avatar'),
        upload_to=user_avatar_upload_path,
        blank=True,
        null=True,
        validators=[validate_avatar_image],
        help_text=_('Optional. Upload a profile picture (max 5MB, formats: jpg, png, webp).')
    )

    email_verified = models.BooleanField(
        _('email verified'),
        default=False,
        help_text=_('Whether the user confirmed their email address.')
    )

    is_verified_seller = models.BooleanField(
        _('verified seller'),
        default=False,
        help_text=_('Whether the user holds an active seller verification.')
    )

    verified_seller_status = models.CharField(
        _('seller verification status'),
        max_length=20,
        choices=SELLER_VERIFICATION_STATUS_CHOICES,
        default='none'
    )

    verified_seller_tier = models.CharField(
        _('seller verification tier'),
        max_length=20,
        choices=SELLER_VERIFICATION_TIER_CHOICES,
        blank=True,
        default=''
    )

    verified_seller_approved_at = models.DateTimeField(
        _('seller verification approved at'),
        null=True,
        blank=True
    )

    verified_seller_expires_at = models.DateTimeField(
        _('seller verification expires at'),
        null=True,
        blank=True
    )

    seller_tier = models.CharField(
        _('seller tier'),
        max_length=20,
        choices=SELLER_TIER_CHOICES,
        default='buyer',
        help_text=_('Subscription tier. Listing limits are unlimited on every tier.')
    )

    active_listing_count = models.PositiveIntegerField(
        _('active listing count'),
        default=0
    )

    created_at = models.DateTimeField(
        _('created at'),
        auto_now_add=True,
        help_text=_('Timestamp when the account was created.')
    )

    updated_at = models.DateTimeField(
        _('updated at'),
        auto_now=True,
        help_text=_('Timestamp when the account was last updated.')
    )

    class Meta:
        verbose_name = _('user')
        verbose_name_plural = _('users')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['email'], name='user_email_idx'),
            models.Index(fields=['user_type'], name='user_type_idx'),
            models.Index(fields=['is_verified_seller'], name='user_verified_seller_idx'),
        ]

    def __str__(self):
        return self.email or self.username

    def is_admin(self):
        return self.is_staff

    def seller_verification_lapsed(self, now=None):
        """
        True when a seller verification exists but its expiry has passed.
        """
        now = now or timezone.now()
        return bool(
            self.verified_seller_expires_at
            and self.verified_seller_expires_at <= now
            and self.verified_seller_status in ('active', 'expired')
        )

    def has_active_seller_verification(self, now=None):
        now = now or timezone.now()
        if not self.is_verified_seller or self.verified_seller_status != 'active':
            return False
        return self.verified_seller_expires_at is None or self.verified_seller_expires_at > now

    def expire_seller_verification(self, now=None):
        """
        Persist the expired state if the verification has lapsed.

        Returns:
            bool: True if the stored status changed
        """
        if not self.seller_verification_lapsed(now):
            return False
        if self.verified_seller_status == 'expired' and not self.is_verified_seller:
            return False
        self.verified_seller_status = 'expired'
        self.is_verified_seller = False
        self.save(update_fields=['verified_seller_status', 'is_verified_seller', 'updated_at'])
        return True

    def has_verified_contractor_profile(self):
        profile = getattr(self, 'contractor_profile', None)
        return profile is not None and profile.verification_status == 'verified'

    def can_publish_listings(self, now=None):
        return self.has_active_seller_verification(now) or self.has_verified_contractor_profile()

    def days_until_verification_expires(self, now=None):
        if not self.verified_seller_expires_at:
            return None
        now = now or timezone.now()
        seconds = (self.verified_seller_expires_at - now).total_seconds()
        return max(0, math.ceil(seconds / 86400))

    def clean(self):
        super().clean()

        if self.email:
            self.email = self.email.lower()

        if not self.email:
            raise ValidationError({
                'email': _('Email address is required.')
            })

    def save(self, *args, **kwargs):
        if self.email:
            self.email = self.email.lower()

        # New accounts rely on the database for duplicate detection
        if self.pk is not None:
            self.full_clean()

        # The avatar path needs the primary key
        if self.avatar and not self.pk:
            avatar_temp = self.avatar
            self.avatar = None
            super().save(*args, **kwargs)
            self.avatar = avatar_temp
            super().save(update_fields=['avatar'])
        else:
            super().save(*args, **kwargs)


# ============================================================================
# Listings
# ============================================================================

def slugify_title(title):
    """Lowercase ``title`` and collapse every non-alphanumeric run into a dash."""
    base = re.sub(r'[^a-z0-9]+', '-', (title or '').lower()).strip('-')
    return base[:100] or 'listing'


def generate_listing_slug(title):
    suffix = get_random_string(6, allowed_chars='abcdefghijklmnopqrstuvwxyz0123456789')
    return f'{slugify_title(title)}-{suffix}'


class Listing(models.Model):
    """
    Equipment offered for sale.

    Lifecycle:
    - Created as ``draft`` or published straight to ``active``
    - Publishing stamps ``published_at`` and a 90-day ``expires_at``
    - ``is_active`` follows the status whenever the status changes
    - Deletion is soft: the listing is archived
    """

    title = models.CharField(
        _('title'),
        max_length=150,
        help_text=_('Headline shown in search results')
    )

    slug = models.SlugField(
        _('slug'),
        max_length=110,
        unique=True,
        blank=True
    )

    description = models.TextField(
        _('description'),
        validators=[MaxLengthValidator(10000)]
    )

    category = models.CharField(
        _('category'),
        max_length=40,
        choices=LISTING_CATEGORY_CHOICES
    )

    subcategory = models.CharField(
        _('subcategory'),
        max_length=100,
        blank=True,
        default=''
    )

    condition = models.CharField(
        _('condition'),
        max_length=20,
        choices=LISTING_CONDITION_CHOICES
    )

    status = models.CharField(
        _('status'),
        max_length=20,
        choices=LISTING_STATUS_CHOICES,
        default='draft'
    )

    seller = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='listings',
        help_text=_('User offering the equipment')
    )

    seller_type = models.CharField(
        _('seller type'),
        max_length=20,
        choices=SELLER_TYPE_CHOICES,
        default='individual'
    )

    price_type = models.CharField(
        _('price type'),
        max_length=20,
        choices=PRICE_TYPE_CHOICES,
        default='contact'
    )

    price_amount = models.DecimalField(
        _('price amount'),
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(0)]
    )

    price_currency = models.CharField(
        _('price currency'),
        max_length=3,
        default='USD'
    )

    price_negotiable = models.BooleanField(
        _('price negotiable'),
        default=False
    )

    city = models.CharField(_('city'), max_length=100, blank=True, default='')
    state = models.CharField(_('state'), max_length=50, blank=True, default='')
    country = models.CharField(_('country'), max_length=50, default='USA')
    zip_code = models.CharField(_('zip code'), max_length=20, blank=True, default='')

    latitude = models.FloatField(
        _('latitude'),
        null=True,
        blank=True,
        validators=[MinValueValidator(-90), MaxValueValidator(90)]
    )

    longitude = models.FloatField(
        _('longitude'),
        null=True,
        blank=True,
        validators=[MinValueValidator(-180), MaxValueValidator(180)]
    )

    equipment = models.JSONField(
        _('equipment details'),
        default=dict,
        blank=True,
        help_text=_('Locomotive or railcar specifics such as manufacturer, model, year and horsepower')
    )

    specifications = models.JSONField(
        _('specifications'),
        default=list,
        blank=True,
        help_text=_('List of {label, value, unit} entries')
    )

    tags = models.JSONField(_('tags'), default=list, blank=True)
    keywords = models.JSONField(_('keywords'), default=list, blank=True)

    quantity = models.PositiveIntegerField(
        _('quantity'),
        default=1,
        validators=[MinValueValidator(1)]
    )

    quantity_unit = models.CharField(_('quantity unit'), max_length=30, blank=True, default='')
    sku = models.CharField(_('SKU'), max_length=100, blank=True, default='')
    shipping_options = models.JSONField(_('shipping options'), default=dict, blank=True)

    featured_active = models.BooleanField(_('featured active'), default=False)
    featured_expires_at = models.DateTimeField(_('featured expires at'), null=True, blank=True)
    featured_purchased_at = models.DateTimeField(_('featured purchased at'), null=True, blank=True)

    premium_active = models.BooleanField(_('premium active'), default=False)
    premium_expires_at = models.DateTimeField(_('premium expires at'), null=True, blank=True)
    premium_purchased_at = models.DateTimeField(_('premium purchased at'), null=True, blank=True)

    elite_active = models.BooleanField(_('elite active'), default=False)
    elite_expires_at = models.DateTimeField(_('elite expires at'), null=True, blank=True)
    elite_purchased_at = models.DateTimeField(_('elite purchased at'), null=True, blank=True)

    ai_enhanced = models.BooleanField(_('AI enhanced'), default=False)
    spec_sheet_generated = models.BooleanField(_('spec sheet generated'), default=False)

    view_count = models.PositiveIntegerField(_('view count'), default=0)
    inquiry_count = models.PositiveIntegerField(_('inquiry count'), default=0)
    save_count = models.PositiveIntegerField(_('save count'), default=0)

    published_at = models.DateTimeField(_('published at'), null=True, blank=True)
    expires_at = models.DateTimeField(_('expires at'), null=True, blank=True)
    sold_at = models.DateTimeField(_('sold at'), null=True, blank=True)

    is_active = models.BooleanField(_('is active'), default=False)
    is_flagged = models.BooleanField(_('is flagged'), default=False)
    flag_reason = models.CharField(_('flag reason'), max_length=500, blank=True, default='')

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('listing')
        verbose_name_plural = _('listings')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['seller'], name='listing_seller_idx'),
            models.Index(fields=['status', 'is_active'], name='listing_status_active_idx'),
            models.Index(fields=['category'], name='listing_category_idx'),
            models.Index(fields=['state'], name='listing_state_idx'),
            models.Index(fields=['featured_active'], name='listing_featured_idx'),
            models.Index(fields=['premium_active'], name='listing_premium_idx'),
            models.Index(fields=['elite_active'], name='listing_elite_idx'),
            models.Index(fields=['-created_at'], name='listing_created_idx'),
        ]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._loaded_status = self.status

    def __str__(self):
        return self.title

    def _tier_active(self, tier, now=None):
        if not getattr(self, f'{tier}_active'):
            return False
        expires_at = getattr(self, f'{tier}_expires_at')
        now = now or timezone.now()
        return expires_at is None or expires_at > now

    @property
    def is_featured(self):
        return self._tier_active('featured')

    @property
    def is_premium(self):
        return self._tier_active('premium')

    @property
    def is_elite(self):
        return self._tier_active('elite')

    @property
    def placement_badge(self):
        """Highest placement tier currently active, or None."""
        now = timezone.now()
        for tier in pricing.PLACEMENT_TIERS:
            if self._tier_active(tier, now):
                return tier
        return None

    @property
    def primary_image_url(self):
        items = list(self.media.all())
        if not items:
            return None
        for item in items:
            if item.is_primary:
                return item.url
        return items[0].url

    @property
    def days_until_expiration(self):
        if not self.expires_at:
            return None
        seconds = (self.expires_at - timezone.now()).total_seconds()
        return max(0, math.ceil(seconds / 86400))

    @property
    def manufacturer(self):
        if isinstance(self.equipment, dict):
            return self.equipment.get('manufacturer') or ''
        return ''

    def clean(self):
        """
        Validate listing content.

        Raises:
            ValidationError: If validation fails
        """
        super().clean()

        if not self.title or not self.title.strip():
            raise ValidationError({
                'title': _('Title is required')
            })

        if not self.description or not self.description.strip():
            raise ValidationError({
                'description': _('Description is required')
            })

        try:
            validate_tags(self.tags)
        except ValidationError as e:
            raise ValidationError({'tags': e.messages})

        try:
            validate_keywords(self.keywords)
        except ValidationError as e:
            raise ValidationError({'keywords': e.messages})

        if self.equipment is not None and not isinstance(self.equipment, dict):
            raise ValidationError({
                'equipment': _('Equipment details must be an object.')
            })

        try:
            validate_manufacturer(self.manufacturer)
        except ValidationError as e:
            raise ValidationError({'equipment': e.messages})

        if self.price_type == 'fixed' and self.price_amount is None and self.status == 'active':
            raise ValidationError({
                'price_amount': _('Please enter a price or select "Contact for Price"')
            })

    def save(self, *args, **kwargs):
        if not self.slug:
            slug = generate_listing_slug(self.title)
            while Listing.objects.filter(slug=slug).exists():
                slug = generate_listing_slug(self.title)
            self.slug = slug

        status_changed = self._state.adding or self.status != self._loaded_status
        if status_changed:
            now = timezone.now()
            if self.status == 'active':
                if not self.published_at:
                    self.published_at = now
                if not self.expires_at or self.expires_at <= now:
                    self.expires_at = now + timedelta(days=settings.LISTING_DURATION_DAYS)
            if self.status == 'sold' and not self.sold_at:
                self.sold_at = now
            self.is_active = self.status in LIVE_LISTING_STATUSES

            update_fields = kwargs.get('update_fields')
            if update_fields is not None:
                kwargs['update_fields'] = set(update_fields) | {
                    'published_at', 'expires_at', 'sold_at', 'is_active'
                }

        self.full_clean()
        super().save(*args, **kwargs)
        self._loaded_status = self.status


class ListingMedia(models.Model):
    """Ordered image, video or document attached to a listing."""

    listing = models.ForeignKey(
        Listing,
        on_delete=models.CASCADE,
        related_name='media'
    )

    url = models.URLField(_('url'), max_length=500)

    media_type = models.CharField(
        _('media type'),
        max_length=20,
        choices=MEDIA_TYPE_CHOICES,
        default='image'
    )

    caption = models.CharField(_('caption'), max_length=200, blank=True, default='')
    is_primary = models.BooleanField(_('is primary'), default=False)
    order = models.PositiveIntegerField(_('order'), default=0)

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)

    class Meta:
        verbose_name = _('listing media')
        verbose_name_plural = _('listing media')
        ordering = ['order', 'id']
        indexes = [
            models.Index(fields=['listing', 'order'], name='listing_media_order_idx'),
        ]

    def __str__(self):
        return f'{self.media_type} for {self.listing_id}'


class ListingDraft(models.Model):
    """
    Autosaved snapshot of an in-progress listing form.

    One snapshot per user and key; it is cleared once the listing is created.
    """

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='listing_drafts'
    )

    key = models.CharField(
        _('storage key'),
        max_length=100,
        default=DRAFT_STORAGE_KEY
    )

    payload = models.JSONField(_('form state'), default=dict, blank=True)

    current_step = models.PositiveSmallIntegerField(
        _('current step'),
        default=1,
        validators=[MinValueValidator(1), MaxValueValidator(4)]
    )

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('listing draft')
        verbose_name_plural = _('listing drafts')
        constraints = [
            models.UniqueConstraint(fields=['user', 'key'], name='unique_listing_draft_per_user_key')
        ]

    def __str__(self):
        return f'{self.key} ({self.user_id})'


# ============================================================================
# Watchlist and reports
# ============================================================================

class WatchlistItem(models.Model):
    """
    A listing saved by a user.

    Adding or removing an item moves the listing's ``save_count``.
    """

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='watchlist_items'
    )

    listing = models.ForeignKey(
        Listing,
        on_delete=models.CASCADE,
        related_name='watchlist_items'
    )

    notes = models.CharField(_('notes'), max_length=500, blank=True, default='')
    notify_on_price_change = models.BooleanField(_('notify on price change'), default=True)
    notify_on_status_change = models.BooleanField(_('notify on status change'), default=True)
    last_price = models.DecimalField(
        _('price when saved'),
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True
    )

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('watchlist item')
        verbose_name_plural = _('watchlist items')
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(fields=['user', 'listing'], name='unique_watchlist_item_per_user_listing')
        ]

    def __str__(self):
        return f'{self.user_id} watching {self.listing_id}'


class ListingReport(models.Model):
    """
    A user report against a suspicious listing.

    Each user may report a listing once. Enough reports flag the listing
    for moderator review.
    """

    listing = models.ForeignKey(
        Listing,
        on_delete=models.CASCADE,
        related_name='reports'
    )

    reporter = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='listing_reports'
    )

    reason = models.CharField(_('reason'), max_length=30, choices=REPORT_REASON_CHOICES)

    description = models.TextField(
        _('description'),
        validators=[MinLengthValidator(10), MaxLengthValidator(2000)]
    )

    evidence = models.JSONField(_('evidence links'), default=list, blank=True)

    status = models.CharField(
        _('status'),
        max_length=20,
        choices=REPORT_STATUS_CHOICES,
        default='pending'
    )

    auto_flagged = models.BooleanField(_('triggered auto-flag'), default=False)
    created_at = models.DateTimeField(_('created at'), auto_now_add=True)

    class Meta:
        verbose_name = _('listing report')
        verbose_name_plural = _('listing reports')
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(fields=['listing', 'reporter'], name='unique_listing_report_per_reporter')
        ]
        indexes = [
            models.Index(fields=['status'], name='listing_report_status_idx'),
        ]

    def __str__(self):
        return f'{self.get_reason_display()} report on {self.listing_id}'


# ============================================================================
# Inquiries
# ============================================================================

class Inquiry(models.Model):
    """
    Conversation between a buyer and a seller about one listing.

    A buyer holds at most one inquiry per listing; follow-up messages are
    appended to the existing thread.
    """

    listing = models.ForeignKey(
        Listing,
        on_delete=models.CASCADE,
        related_name='inquiries'
    )

    buyer = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='buyer_inquiries'
    )

    seller = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='seller_inquiries'
    )

    subject = models.CharField(_('subject'), max_length=200)

    status = models.CharField(
        _('status'),
        max_length=20,
        choices=INQUIRY_STATUS_CHOICES,
        default='new'
    )

    last_message_at = models.DateTimeField(_('last message at'), default=timezone.now)
    buyer_unread_count = models.PositiveIntegerField(_('buyer unread count'), default=0)
    seller_unread_count = models.PositiveIntegerField(_('seller unread count'), default=1)

    is_archived = models.BooleanField(_('is archived'), default=False)
    archived_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+'
    )

    intent_quantity = models.PositiveIntegerField(
        _('intended quantity'),
        default=1,
        validators=[MinValueValidator(1)]
    )

    intent_timeline = models.CharField(
        _('purchase timeline'),
        max_length=20,
        choices=INQUIRY_TIMELINE_CHOICES,
        default='unspecified'
    )

    intent_purpose = models.CharField(_('intended use'), max_length=500, blank=True, default='')

    first_reply_at = models.DateTimeField(_('first reply at'), null=True, blank=True)
    response_time_minutes = models.PositiveIntegerField(_('response time (minutes)'), null=True, blank=True)

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('inquiry')
        verbose_name_plural = _('inquiries')
        ordering = ['-last_message_at']
        indexes = [
            models.Index(fields=['seller', 'status'], name='inquiry_seller_status_idx'),
            models.Index(fields=['buyer', 'status'], name='inquiry_buyer_status_idx'),
            models.Index(fields=['-last_message_at'], name='inquiry_last_message_idx'),
        ]
        constraints = [
            models.UniqueConstraint(fields=['listing', 'buyer'], name='unique_inquiry_per_listing_buyer')
        ]

    def __str__(self):
        return self.subject

    def is_participant(self, user):
        return user.id in (self.buyer_id, self.seller_id)

    def clean(self):
        super().clean()
        if self.buyer_id and self.seller_id and self.buyer_id == self.seller_id:
            raise ValidationError({
                'buyer': _('Cannot inquire about your own listing')
            })

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)


class InquiryMessage(models.Model):
    inquiry = models.ForeignKey(
        Inquiry,
        on_delete=models.CASCADE,
        related_name='messages'
    )

    sender = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='inquiry_messages'
    )

    content = models.TextField(_('content'), validators=[MaxLengthValidator(10000)])
    attachments = models.JSONField(_('attachments'), default=list, blank=True)
    read_at = models.DateTimeField(_('read at'), null=True, blank=True)
    created_at = models.DateTimeField(_('created at'), auto_now_add=True)

    class Meta:
        verbose_name = _('inquiry message')
        verbose_name_plural = _('inquiry messages')
        ordering = ['created_at', 'id']

    def __str__(self):
        return f'Message {self.pk} on inquiry {self.inquiry_id}'


# ============================================================================
# ISO (In Search Of) requests
# ============================================================================

class ISORequest(models.Model):
    """Buyer-initiated "wanted" post."""

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='iso_requests'
    )

    title = models.CharField(
        _('title'),
        max_length=150,
        validators=[MinLengthValidator(5, message=_('Title must be at least 5 characters'))]
    )

    category = models.CharField(_('category'), max_length=40, choices=ISO_CATEGORY_CHOICES)

    description = models.TextField(
        _('description'),
        validators=[
            MinLengthValidator(10, message=_('Description must be at least 10 characters')),
            MaxLengthValidator(2000),
        ]
    )

    city = models.CharField(_('city'), max_length=100, blank=True, default='')
    state = models.CharField(_('state'), max_length=50, blank=True, default='')
    country = models.CharField(_('country'), max_length=50, default='USA')

    budget_min = models.DecimalField(
        _('minimum budget'),
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(0)]
    )

    budget_max = models.DecimalField(
        _('maximum budget'),
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(0)]
    )

    budget_currency = models.CharField(_('budget currency'), max_length=3, default='USD')

    budget_type = models.CharField(
        _('budget type'),
        max_length=20,
        choices=ISO_BUDGET_TYPE_CHOICES,
        default='negotiable'
    )

    needed_by = models.DateField(_('needed by'), null=True, blank=True)
    allow_messaging = models.BooleanField(_('allow messaging'), default=True)

    status = models.CharField(
        _('status'),
        max_length=20,
        choices=ISO_STATUS_CHOICES,
        default='active'
    )

    response_count = models.PositiveIntegerField(_('response count'), default=0)
    view_count = models.PositiveIntegerField(_('view count'), default=0)

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('ISO request')
        verbose_name_plural = _('ISO requests')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', '-created_at'], name='iso_status_created_idx'),
            models.Index(fields=['category'], name='iso_category_idx'),
            models.Index(fields=['user'], name='iso_user_idx'),
        ]

    def __str__(self):
        return self.title

    def clean(self):
        super().clean()

        if (
            self.budget_min is not None
            and self.budget_max is not None
            and self.budget_min > self.budget_max
        ):
            raise ValidationError({
                'budget_max': _('Maximum budget must be greater than or equal to the minimum budget.')
            })

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)


class ISOResponse(models.Model):
    iso_request = models.ForeignKey(
        ISORequest,
        on_delete=models.CASCADE,
        related_name='responses'
    )

    responder = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='iso_responses'
    )

    message = models.TextField(_('message'), validators=[MaxLengthValidator(5000)])
    created_at = models.DateTimeField(_('created at'), auto_now_add=True)

    class Meta:
        verbose_name = _('ISO response')
        verbose_name_plural = _('ISO responses')
        ordering = ['-created_at']

    def __str__(self):
        return f'Response to {self.iso_request_id} by {self.responder_id}'


# ============================================================================
# Contractors
# ============================================================================

# Field weights used for profile completeness; they add up to 100
COMPLETENESS_WEIGHTS = (
    ('business_name', 10),
    ('business_description', 10),
    ('business_phone', 5),
    ('business_email', 5),
    ('website', 5),
    ('logo', 10),
    ('cover_image', 5),
    ('city', 10),
    ('services', 10),
    ('regions_served', 10),
    ('years_in_business', 5),
    ('photos', 10),
    ('documents', 5),
)


class ContractorProfile(models.Model):
    """
    Directory entry for a rail contractor.

    A profile appears in search only while it is verified and holds an
    active, unexpired visibility subscription.
    """

    user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        related_name='contractor_profile'
    )

    business_name = models.CharField(_('business name'), max_length=200)
    business_description = models.TextField(_('business description'), blank=True, default='')
    business_phone = models.CharField(
        _('business phone'),
        max_length=20,
        blank=True,
        default='',
        validators=[validate_phone_number]
    )
    business_email = models.EmailField(_('business email'), blank=True, default='')
    website = models.URLField(_('website'), blank=True, default='')
    logo = models.URLField(_('logo'), max_length=500, blank=True, default='')
    cover_image = models.URLField(_('cover image'), max_length=500, blank=True, default='')

    street = models.CharField(_('street'), max_length=200, blank=True, default='')
    city = models.CharField(_('city'), max_length=100, blank=True, default='')
    state = models.CharField(_('state'), max_length=50, blank=True, default='')
    zip_code = models.CharField(_('zip code'), max_length=20, blank=True, default='')
    country = models.CharField(_('country'), max_length=50, default='USA')
    latitude = models.FloatField(_('latitude'), null=True, blank=True)
    longitude = models.FloatField(_('longitude'), null=True, blank=True)

    contractor_types = models.JSONField(_('contractor types'), default=list)
    services = models.JSONField(_('services'), default=list, blank=True)
    regions_served = models.JSONField(_('regions served'), default=list, blank=True)
    years_in_business = models.PositiveIntegerField(_('years in business'), null=True, blank=True)
    photos = models.JSONField(_('photos'), default=list, blank=True)
    documents = models.JSONField(_('documents'), default=list, blank=True)

    verification_status = models.CharField(
        _('verification status'),
        max_length=20,
        choices=VERIFICATION_STATUS_CHOICES,
        default='none'
    )
    verified_at = models.DateTimeField(_('verified at'), null=True, blank=True)
    verified_badge_expires_at = models.DateTimeField(_('verified badge expires at'), null=True, blank=True)

    visibility_tier = models.CharField(
        _('visibility tier'),
        max_length=20,
        choices=VISIBILITY_TIER_CHOICES,
        default='none'
    )
    visibility_subscription_status = models.CharField(
        _('visibility subscription status'),
        max_length=20,
        choices=VISIBILITY_SUBSCRIPTION_CHOICES,
        default='none'
    )
    visibility_expires_at = models.DateTimeField(_('visibility expires at'), null=True, blank=True)

    is_published = models.BooleanField(_('is published'), default=False)
    is_active = models.BooleanField(_('is active'), default=True)
    profile_completeness = models.PositiveSmallIntegerField(_('profile completeness'), default=0)

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('contractor profile')
        verbose_name_plural = _('contractor profiles')
        ordering = ['business_name']
        indexes = [
            models.Index(fields=['verification_status'], name='contractor_verification_idx'),
            models.Index(fields=['visibility_tier', 'visibility_subscription_status'], name='contractor_visibility_idx'),
            models.Index(fields=['state'], name='contractor_state_idx'),
        ]

    def __str__(self):
        return self.business_name

    def compute_completeness(self):
        """Weighted share (0-100) of profile fields that are filled in."""
        score = 0
        for field, weight in COMPLETENESS_WEIGHTS:
            value = getattr(self, field)
            if isinstance(value, list):
                filled = len(value) > 0
            else:
                filled = value not in (None, '')
            if filled:
                score += weight
        return min(100, score)

    def is_visible_in_search(self, now=None):
        now = now or timezone.now()
        if self.verification_status != 'verified':
            return False
        if self.visibility_tier == 'none' or self.visibility_subscription_status != 'active':
            return False
        if self.visibility_expires_at and self.visibility_expires_at <= now:
            return False
        if self.verified_badge_expires_at and self.verified_badge_expires_at <= now:
            return False
        return True

    def search_rank_boost(self, now=None):
        if not self.is_visible_in_search(now):
            return 0
        return VISIBILITY_TIER_BOOST.get(self.visibility_tier, 0)

    def clean(self):
        super().clean()

        if not isinstance(self.contractor_types, list) or not self.contractor_types:
            raise ValidationError({
                'contractor_types': _('Select at least one contractor type.')
            })

        invalid = [t for t in self.contractor_types if t not in CONTRACTOR_TYPES]
        if invalid:
            raise ValidationError({
                'contractor_types': _('Invalid contractor type: %(types)s') % {'types': ', '.join(map(str, invalid))}
            })

    def save(self, *args, **kwargs):
        self.profile_completeness = self.compute_completeness()
        self.full_clean()
        super().save(*args, **kwargs)


# ============================================================================
# Add-ons
# ============================================================================

class AddOnPurchase(models.Model):
    """
    A paid upgrade bought through checkout.

    Purchases start ``pending`` until payment completes. An active purchase
    may be assigned to one listing.
    """

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='addon_purchases'
    )

    listing = models.ForeignKey(
        Listing,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='addon_purchases'
    )

    contractor = models.ForeignKey(
        ContractorProfile,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='addon_purchases'
    )

    addon_type = models.CharField(
        _('add-on type'),
        max_length=30,
        choices=pricing.ADDON_TYPE_CHOICES
    )

    amount = models.PositiveIntegerField(_('amount (cents)'), default=0)
    currency = models.CharField(_('currency'), max_length=3, default='usd')

    stripe_session_id = models.CharField(_('Stripe session id'), max_length=255, blank=True, default='', db_index=True)
    stripe_payment_id = models.CharField(_('Stripe payment id'), max_length=255, blank=True, default='')

    status = models.CharField(
        _('status'),
        max_length=20,
        choices=pricing.ADDON_STATUS_CHOICES,
        default='pending'
    )

    started_at = models.DateTimeField(_('started at'), null=True, blank=True)
    expires_at = models.DateTimeField(_('expires at'), null=True, blank=True)
    metadata = models.JSONField(_('metadata'), default=dict, blank=True)

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('add-on purchase')
        verbose_name_plural = _('add-on purchases')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'status'], name='addon_user_status_idx'),
            models.Index(fields=['status', 'expires_at'], name='addon_status_expires_idx'),
            models.Index(fields=['listing'], name='addon_listing_idx'),
        ]

    def __str__(self):
        return f'{self.addon_type} ({self.status}) for {self.user}'

    @property
    def is_expired(self):
        return self.expires_at is not None and self.expires_at <= timezone.now()

    @property
    def remaining(self):
        return pricing.remaining_time(self.expires_at)

    def activate(self, now=None):
        """Mark the purchase active and start its lifetime clock."""
        now = now or timezone.now()
        self.status = 'active'
        self.started_at = now
        self.expires_at = pricing.calculate_expiration_date(self.addon_type, now)

    def save(self, *args, **kwargs):
        if not self.amount:
            self.amount = pricing.addon_price(self.addon_type)

        if self._state.adding and self.status == 'active' and not self.expires_at:
            now = timezone.now()
            self.started_at = self.started_at or now
            self.expires_at = pricing.calculate_expiration_date(self.addon_type, self.started_at)

        self.full_clean()
        super().save(*args, **kwargs)


# ============================================================================
# Notifications
# ============================================================================

class Notification(models.Model):
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='notifications'
    )

    notification_type = models.CharField(
        _('type'),
        max_length=30,
        choices=NOTIFICATION_TYPE_CHOICES,
        default='system'
    )

    title = models.CharField(_('title'), max_length=200)
    message = models.TextField(_('message'), blank=True, default='')
    link = models.CharField(_('link'), max_length=500, blank=True, default='')
    is_read = models.BooleanField(_('is read'), default=False)
    read_at = models.DateTimeField(_('read at'), null=True, blank=True)
    created_at = models.DateTimeField(_('created at'), auto_now_add=True)

    class Meta:
        verbose_name = _('notification')
        verbose_name_plural = _('notifications')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'is_read'], name='notification_user_read_idx'),
        ]

    def __str__(self):
        return self.title
