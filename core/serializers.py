"""
Serializers for authentication, listings, inquiries, ISO requests,
contractors, add-ons, watchlists, reports, notifications and uploads.
"""

from rest_framework_simplejwt.serializers import TokenObtainPairSerializer
from rest_framework import serializers
from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from django.contrib.auth.hashers import make_password
from django.db import transaction

from . import pricing
from .constants import (
    ALLOWED_UPLOAD_TYPES,
    CONTRACTOR_TYPES,
    INQUIRY_STATUSES,
    INQUIRY_TIMELINE_CHOICES,
    ISO_OWNER_STATUSES,
    MAX_LISTING_KEYWORDS,
    MAX_LISTING_MEDIA,
    MAX_LISTING_TAGS,
    MAX_REPORT_EVIDENCE,
    MAX_UPLOAD_SIZES,
    REPORT_REASONS,
    UPLOAD_FOLDERS,
)
from .models import (
    AddOnPurchase,
    ContractorProfile,
    Inquiry,
    InquiryMessage,
    ISORequest,
    ISOResponse,
    Listing,
    ListingDraft,
    ListingMedia,
    Notification,
    WatchlistItem,
)
from .validators import (
    clean_string_list,
    clean_text,
    validate_phone_number as validate_phone_format,
    validate_upload_subfolder,
)

User = get_user_model()


# ============================================================================
# Authentication and profile
# ============================================================================

class EmailTokenObtainPairSerializer(TokenObtainPairSerializer):
    """
    Custom serializer to use email instead of username for authentication.
    """
    username_field = 'email'

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        if 'username' in self.fields:
            del self.fields['username']
        if 'email' not in self.fields:
            self.fields['email'] = serializers.EmailField()


class UserRegistrationSerializer(serializers.ModelSerializer):
    """
    Serializer for account registration.

    Fields:
    - email: Required, unique (case-insensitive)
    - password: Required, must pass Django's password validators
    - confirm_password: Required, must match password
    - phone_number: Optional
    - company_name: Optional
    - user_type: Required, one of 'buyer', 'seller' or 'contractor'
    """

    password = serializers.CharField(
        write_only=True,
        required=True,
        style={'input_type': 'password'}
    )
    confirm_password = serializers.CharField(
        write_only=True,
        required=True,
        style={'input_type': 'password'}
    )

    class Meta:
        model = User
        fields = ['id', 'email', 'password', 'confirm_password', 'first_name', 'last_name',
                  'phone_number', 'company_name', 'user_type', 'email_verified', 'created_at']
        read_only_fields = ['id', 'email_verified', 'created_at']
        extra_kwargs = {
            'email': {'required': True},
            'user_type': {'required': True},
        }

    def validate_email(self, value):
        value = value.strip().lower()

        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError(
                "A user with that email already exists."
            )

        return value

    def validate_password(self, value):
        try:
            validate_password(value)
        except DjangoValidationError as e:
            raise serializers.ValidationError(list(e.messages))

        return value

    def validate_phone_number(self, value):
        try:
            validate_phone_format(value)
        except DjangoValidationError as e:
            raise serializers.ValidationError(list(e.messages))
        return value

    def validate(self, attrs):
        if attrs.get('password') != attrs.get('confirm_password'):
            raise serializers.ValidationError({
                'confirm_password': 'Password confirmation does not match.'
            })

        return attrs

    def create(self, validated_data):
        """
        Create the account with a hashed password.

        Privilege and verification fields are never taken from the request.
        """
        validated_data.pop('confirm_password', None)
        validated_data['password'] = make_password(validated_data.pop('password'))

        validated_data['email_verified'] = False
        validated_data['is_verified_seller'] = False
        for field in ('is_superuser', 'is_staff', 'is_active', 'groups', 'user_permissions'):
            validated_data.pop(field, None)

        # AbstractUser still requires a unique username
        base = validated_data['email'].split('@')[0][:30]
        username = base
        suffix = 1
        while User.objects.filter(username=username).exists():
            suffix += 1
            username = f'{base[:26]}{suffix}'
        validated_data['username'] = username

        with transaction.atomic():
            user = User.objects.create(**validated_data)

        return user


class LoginSerializer(serializers.Serializer):
    """
    Serializer for user login with email and password.

    Minimal validation to prevent user enumeration attacks.
    Actual authentication happens in the view.
    """
    email = serializers.EmailField(
        required=True,
        help_text='User email address'
    )
    password = serializers.CharField(
        required=True,
        write_only=True,
        style={'input_type': 'password'},
        help_text='User password'
    )


class TokenRefreshSerializer(serializers.Serializer):
    """
    Request body for token refresh.

    Signature, expiry and blacklist checks happen in the view through
    djangorestframework-simplejwt.
    """
    refresh = serializers.CharField(
        required=True,
        help_text='Valid refresh token'
    )


class UserProfileSerializer(serializers.ModelSerializer):
    """
    Serializer for profile retrieval.

    Excludes sensitive fields (password, is_superuser, permissions).
    """

    avatar_url = serializers.SerializerMethodField()
    can_publish_listings = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id',
            'email',
            'first_name',
            'last_name',
            'phone_number',
            'company_name',
            'user_type',
            'email_verified',
            'is_verified_seller',
            'verified_seller_status',
            'verified_seller_expires_at',
            'seller_tier',
            'active_listing_count',
            'can_publish_listings',
            'avatar_url',
            'created_at'
        ]
        read_only_fields = fields

    def get_avatar_url(self, obj):
        if obj.avatar:
            request = self.context.get('request')
            if request is not None:
                return request.build_absolute_uri(obj.avatar.url)
            return obj.avatar.url
        return None

    def get_can_publish_listings(self, obj):
        return obj.can_publish_listings()


class UserProfileUpdateSerializer(serializers.ModelSerializer):
    """
    Serializer for profile updates (PUT/PATCH).

    Only contact details and the avatar can be changed here. Email,
    password, role and verification fields are ignored.
    """

    class Meta:
        model = User
        fields = ['first_name', 'last_name', 'phone_number', 'company_name', 'avatar']
        extra_kwargs = {
            'first_name': {'required': False},
            'last_name': {'required': False},
            'phone_number': {'required': False},
            'company_name': {'required': False},
            'avatar': {'required': False},
        }

    def validate_phone_number(self, value):
        try:
            validate_phone_format(value)
        except DjangoValidationError as e:
            raise serializers.ValidationError(list(e.messages))
        return value

    def validate_company_name(self, value):
        return clean_text(value)

    def update(self, instance, validated_data):
        fields_to_update = []
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
            fields_to_update.append(attr)

        if fields_to_update:
            fields_to_update.append('updated_at')
            instance.save(update_fields=fields_to_update)

        return instance


class PublicUserSerializer(serializers.ModelSerializer):
    """Public-facing summary of a marketplace user."""

    name = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'name', 'company_name', 'user_type', 'is_verified_seller']
        read_only_fields = fields

    def get_name(self, obj):
        return obj.get_full_name() or obj.username


# ============================================================================
# Listings
# ============================================================================

class ListingMediaSerializer(serializers.ModelSerializer):
    class Meta:
        model = ListingMedia
        fields = ['id', 'url', 'media_type', 'caption', 'is_primary', 'order']
        read_only_fields = ['id']
        extra_kwargs = {
            'media_type': {'required': False},
            'order': {'required': False},
        }


class ListingListSerializer(serializers.ModelSerializer):
    """
    Compact listing card for browse results and the homepage.

    Optimized for use with select_related('seller') and prefetch_related('media').
    """

    seller = PublicUserSerializer(read_only=True)
    primary_image_url = serializers.SerializerMethodField()
    badge = serializers.SerializerMethodField()

    class Meta:
        model = Listing
        fields = [
            'id',
            'title',
            'slug',
            'category',
            'condition',
            'status',
            'price_type',
            'price_amount',
            'price_currency',
            'price_negotiable',
            'city',
            'state',
            'country',
            'primary_image_url',
            'badge',
            'is_featured',
            'is_premium',
            'is_elite',
            'view_count',
            'seller',
            'published_at',
            'created_at',
        ]
        read_only_fields = fields

    def get_primary_image_url(self, obj):
        return obj.primary_image_url

    def get_badge(self, obj):
        return obj.placement_badge


class ListingDetailSerializer(serializers.ModelSerializer):
    """
    Full listing representation.

    ``isOwner`` is true when the requesting user owns the listing.
    """

    seller = PublicUserSerializer(read_only=True)
    media = ListingMediaSerializer(many=True, read_only=True)
    primary_image_url = serializers.SerializerMethodField()
    badge = serializers.SerializerMethodField()
    days_until_expiration = serializers.SerializerMethodField()
    isOwner = serializers.SerializerMethodField()

    class Meta:
        model = Listing
        fields = [
            'id',
            'title',
            'slug',
            'description',
            'category',
            'subcategory',
            'condition',
            'status',
            'seller_type',
            'price_type',
            'price_amount',
            'price_currency',
            'price_negotiable',
            'city',
            'state',
            'country',
            'zip_code',
            'latitude',
            'longitude',
            'equipment',
            'specifications',
            'tags',
            'keywords',
            'quantity',
            'quantity_unit',
            'sku',
            'shipping_options',
            'media',
            'primary_image_url',
            'badge',
            'is_featured',
            'is_premium',
            'is_elite',
            'featured_expires_at',
            'premium_expires_at',
            'elite_expires_at',
            'ai_enhanced',
            'spec_sheet_generated',
            'view_count',
            'inquiry_count',
            'save_count',
            'published_at',
            'expires_at',
            'days_until_expiration',
            'sold_at',
            'is_active',
            'seller',
            'isOwner',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_primary_image_url(self, obj):
        return obj.primary_image_url

    def get_badge(self, obj):
        return obj.placement_badge

    def get_days_until_expiration(self, obj):
        return obj.days_until_expiration

    def get_isOwner(self, obj):
        request = self.context.get('request')
        if request is None or not request.user.is_authenticated:
            return False
        return obj.seller_id == request.user.id


class ListingWriteSerializer(serializers.ModelSerializer):
    """
    Serializer for creating and editing listings.

    Fields:
    - title, description, category, condition: Required on create
    - city, state: Required on create
    - status: 'draft' or 'active' on create (default 'active')
    - media: Optional list of up to 20 items; replaces existing media on update
    - tags: Optional, up to 10; markup is stripped
    - keywords: Optional, up to 15; markup is stripped

    Business-rule checks that answer with an error code (verification,
    duplicate title, keyword stuffing, manufacturer) run in the view.
    """

    media = ListingMediaSerializer(many=True, required=False)
    tags = serializers.ListField(
        child=serializers.CharField(allow_blank=True),
        required=False
    )
    keywords = serializers.ListField(
        child=serializers.CharField(allow_blank=True),
        required=False
    )
    equipment = serializers.DictField(required=False)
    specifications = serializers.ListField(child=serializers.DictField(), required=False)
    shipping_options = serializers.DictField(required=False)

    class Meta:
        model = Listing
        fields = [
            'title',
            'description',
            'category',
            'subcategory',
            'condition',
            'status',
            'seller_type',
            'price_type',
            'price_amount',
            'price_currency',
            'price_negotiable',
            'city',
            'state',
            'country',
            'zip_code',
            'latitude',
            'longitude',
            'equipment',
            'specifications',
            'tags',
            'keywords',
            'quantity',
            'quantity_unit',
            'sku',
            'shipping_options',
            'media',
        ]
        extra_kwargs = {
            'status': {'required': False},
        }

    def validate_title(self, value):
        value = clean_text(value)
        if not value:
            raise serializers.ValidationError("Title is required")
        return value

    def validate_description(self, value):
        if not value or not value.strip():
            raise serializers.ValidationError("Description is required")
        return value.strip()

    def validate_status(self, value):
        if self.instance is None and value not in ('draft', 'active'):
            raise serializers.ValidationError(
                "New listings can only be saved as 'draft' or 'active'."
            )
        if self.instance is not None and value == 'expired':
            raise serializers.ValidationError("Listings cannot be expired manually.")
        return value

    def validate_tags(self, value):
        value = clean_string_list(value)
        if len(value) > MAX_LISTING_TAGS:
            raise serializers.ValidationError(f"Maximum {MAX_LISTING_TAGS} tags allowed")
        return value

    def validate_keywords(self, value):
        value = clean_string_list(value)
        if len(value) > MAX_LISTING_KEYWORDS:
            raise serializers.ValidationError(f"Maximum {MAX_LISTING_KEYWORDS} keywords allowed")
        return value

    def validate_media(self, value):
        if len(value) > MAX_LISTING_MEDIA:
            raise serializers.ValidationError(
                f"Maximum photo limit reached: Up to {MAX_LISTING_MEDIA} images allowed per listing."
            )
        return value

    def validate(self, attrs):
        if self.instance is None:
            missing = {}
            for field, message in (
                ('city', 'City is required'),
                ('state', 'State is required'),
            ):
                if not str(attrs.get(field, '')).strip():
                    missing[field] = message
            if missing:
                raise serializers.ValidationError(missing)

        status = attrs.get('status', self.instance.status if self.instance else 'active')
        price_type = attrs.get('price_type', self.instance.price_type if self.instance else 'contact')
        if 'price_amount' in attrs:
            price_amount = attrs['price_amount']
        else:
            price_amount = self.instance.price_amount if self.instance else None
        if status == 'active' and price_type == 'fixed' and price_amount is None:
            raise serializers.ValidationError({
                'price_amount': 'Please enter a price or select "Contact for Price"'
            })

        return attrs

    def _save_media(self, listing, media):
        has_primary = any(item.get('is_primary') for item in media)
        for index, item in enumerate(media):
            ListingMedia.objects.create(
                listing=listing,
                url=item['url'],
                media_type=item.get('media_type', 'image'),
                caption=item.get('caption', ''),
                is_primary=item.get('is_primary', False) if has_primary else index == 0,
                order=item.get('order', index),
            )

    def create(self, validated_data):
        media = validated_data.pop('media', [])
        validated_data.setdefault('status', 'active')

        with transaction.atomic():
            listing = Listing.objects.create(**validated_data)
            self._save_media(listing, media)

        return listing

    def update(self, instance, validated_data):
        media = validated_data.pop('media', None)

        with transaction.atomic():
            for attr, value in validated_data.items():
                setattr(instance, attr, value)
            instance.save()
            if media is not None:
                instance.media.all().delete()
                self._save_media(instance, media)

        return instance


class ListingAdminUpdateSerializer(serializers.ModelSerializer):
    """Moderation and placement fields only staff may change."""

    class Meta:
        model = Listing
        fields = [
            'is_active',
            'is_flagged',
            'flag_reason',
            'featured_active',
            'featured_expires_at',
            'premium_active',
            'premium_expires_at',
            'elite_active',
            'elite_expires_at',
            'ai_enhanced',
            'spec_sheet_generated',
        ]


class ListingDraftSerializer(serializers.ModelSerializer):
    payload = serializers.DictField()

    class Meta:
        model = ListingDraft
        fields = ['key', 'payload', 'current_step', 'updated_at']
        read_only_fields = ['key', 'updated_at']


class StepValidationSerializer(serializers.Serializer):
    step = serializers.IntegerField()
    data = serializers.DictField(required=False, default=dict)


# ============================================================================
# Inquiries
# ============================================================================

class InquiryListingSerializer(serializers.ModelSerializer):
    primary_image_url = serializers.SerializerMethodField()

    class Meta:
        model = Listing
        fields = ['id', 'title', 'slug', 'status', 'primary_image_url']
        read_only_fields = fields

    def get_primary_image_url(self, obj):
        return obj.primary_image_url


class InquiryMessageSerializer(serializers.ModelSerializer):
    sender = PublicUserSerializer(read_only=True)

    class Meta:
        model = InquiryMessage
        fields = ['id', 'sender', 'content', 'attachments', 'read_at', 'created_at']
        read_only_fields = fields


class InquirySerializer(serializers.ModelSerializer):
    """
    Inquiry thread summary for the inbox.

    ``last_message`` carries a short preview of the newest message.
    """

    listing = InquiryListingSerializer(read_only=True)
    buyer = PublicUserSerializer(read_only=True)
    seller = PublicUserSerializer(read_only=True)
    last_message = serializers.SerializerMethodField()

    class Meta:
        model = Inquiry
        fields = [
            'id',
            'subject',
            'status',
            'listing',
            'buyer',
            'seller',
            'last_message',
            'last_message_at',
            'buyer_unread_count',
            'seller_unread_count',
            'is_archived',
            'created_at',
        ]
        read_only_fields = fields

    def get_last_message(self, obj):
        messages = list(obj.messages.all())
        if not messages:
            return None
        latest = messages[-1]
        return {
            'content': latest.content[:200],
            'sender_id': latest.sender_id,
            'created_at': latest.created_at,
        }


class InquiryDetailSerializer(InquirySerializer):
    messages = InquiryMessageSerializer(many=True, read_only=True)

    class Meta(InquirySerializer.Meta):
        fields = InquirySerializer.Meta.fields + [
            'messages',
            'intent_quantity',
            'intent_timeline',
            'intent_purpose',
            'first_reply_at',
            'response_time_minutes',
        ]
        read_only_fields = fields


class InquiryIntentSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1, required=False, default=1)
    timeline = serializers.ChoiceField(
        choices=INQUIRY_TIMELINE_CHOICES,
        required=False,
        default='unspecified'
    )
    purpose = serializers.CharField(required=False, allow_blank=True, max_length=500, default='')


class InquiryCreateSerializer(serializers.Serializer):
    listingId = serializers.IntegerField()
    subject = serializers.CharField(required=False, allow_blank=True, max_length=200)
    message = serializers.CharField(max_length=10000)
    intent = InquiryIntentSerializer(required=False)

    def validate_message(self, value):
        if not value.strip():
            raise serializers.ValidationError("Message is required")
        return value.strip()


class InquiryReplySerializer(serializers.Serializer):
    message = serializers.CharField(allow_blank=True, max_length=10000)
    attachments = serializers.ListField(
        child=serializers.URLField(),
        required=False,
        default=list
    )


class InquiryUpdateSerializer(serializers.Serializer):
    status = serializers.CharField(required=False)
    isArchived = serializers.BooleanField(required=False)

    def validate_status(self, value):
        if value not in INQUIRY_STATUSES:
            raise serializers.ValidationError("Invalid status")
        return value


# ============================================================================
# ISO requests
# ============================================================================

class ISOResponseSerializer(serializers.ModelSerializer):
    responder = PublicUserSerializer(read_only=True)

    class Meta:
        model = ISOResponse
        fields = ['id', 'responder', 'message', 'created_at']
        read_only_fields = fields


class ISORequestSerializer(serializers.ModelSerializer):
    """
    Serializer for ISO ("In Search Of") requests.

    Fields:
    - title: Required, at least 5 characters
    - category: Required, one of the ISO categories
    - description: Required, at least 10 characters
    - budget_min/budget_max: Optional, min must not exceed max
    """

    user = PublicUserSerializer(read_only=True)

    class Meta:
        model = ISORequest
        fields = [
            'id',
            'user',
            'title',
            'category',
            'description',
            'city',
            'state',
            'country',
            'budget_min',
            'budget_max',
            'budget_currency',
            'budget_type',
            'needed_by',
            'allow_messaging',
            'status',
            'response_count',
            'view_count',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'user', 'status', 'response_count', 'view_count',
                            'created_at', 'updated_at']
        extra_kwargs = {
            'category': {'error_messages': {'required': 'Category is required'}},
        }

    def validate_title(self, value):
        value = clean_text(value)
        if len(value) < 5:
            raise serializers.ValidationError("Title must be at least 5 characters")
        return value

    def validate_description(self, value):
        value = value.strip()
        if len(value) < 10:
            raise serializers.ValidationError("Description must be at least 10 characters")
        return value

    def validate(self, attrs):
        budget_min = attrs.get('budget_min', getattr(self.instance, 'budget_min', None))
        budget_max = attrs.get('budget_max', getattr(self.instance, 'budget_max', None))
        if budget_min is not None and budget_max is not None and budget_min > budget_max:
            raise serializers.ValidationError({
                'budget_max': 'Maximum budget must be greater than or equal to the minimum budget.'
            })
        return attrs


class ISORequestUpdateSerializer(ISORequestSerializer):
    """Owner edits; ``status`` may move between active, fulfilled and closed."""

    class Meta(ISORequestSerializer.Meta):
        read_only_fields = ['id', 'user', 'response_count', 'view_count',
                            'created_at', 'updated_at']

    def validate_status(self, value):
        if value not in ISO_OWNER_STATUSES:
            raise serializers.ValidationError(
                f"Status must be one of: {', '.join(ISO_OWNER_STATUSES)}."
            )
        return value


class ISOResponseCreateSerializer(serializers.Serializer):
    message = serializers.CharField(max_length=4500)

    def validate_message(self, value):
        if not value.strip():
            raise serializers.ValidationError("Message is required")
        return value.strip()


# ============================================================================
# Contractors
# ============================================================================

class ContractorSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = ContractorProfile
        fields = [
            'id',
            'business_name',
            'logo',
            'city',
            'state',
            'contractor_types',
            'services',
            'years_in_business',
            'verification_status',
            'visibility_tier',
        ]
        read_only_fields = fields


class ContractorProfileSerializer(serializers.ModelSerializer):
    """
    Contractor profile for the public detail page and the owner's editor.

    Verification, visibility and completeness are managed by staff and
    billing, so they are read-only here.
    """

    contractor_types = serializers.ListField(child=serializers.CharField())
    services = serializers.ListField(child=serializers.CharField(), required=False)
    regions_served = serializers.ListField(child=serializers.CharField(), required=False)
    photos = serializers.ListField(child=serializers.URLField(), required=False)
    documents = serializers.ListField(child=serializers.URLField(), required=False)
    is_visible = serializers.SerializerMethodField()

    class Meta:
        model = ContractorProfile
        fields = [
            'id',
            'business_name',
            'business_description',
            'business_phone',
            'business_email',
            'website',
            'logo',
            'cover_image',
            'street',
            'city',
            'state',
            'zip_code',
            'country',
            'latitude',
            'longitude',
            'contractor_types',
            'services',
            'regions_served',
            'years_in_business',
            'photos',
            'documents',
            'verification_status',
            'verified_at',
            'visibility_tier',
            'visibility_subscription_status',
            'visibility_expires_at',
            'is_published',
            'is_visible',
            'profile_completeness',
            'created_at',
            'updated_at',
        ]
        read_only_fields = [
            'id',
            'verification_status',
            'verified_at',
            'visibility_tier',
            'visibility_subscription_status',
            'visibility_expires_at',
            'profile_completeness',
            'created_at',
            'updated_at',
        ]

    def get_is_visible(self, obj):
        return obj.is_visible_in_search()

    def validate_business_name(self, value):
        value = clean_text(value)
        if not value:
            raise serializers.ValidationError("Business name is required")
        return value

    def validate_contractor_types(self, value):
        if not value:
            raise serializers.ValidationError("Select at least one contractor type.")
        invalid = [t for t in value if t not in CONTRACTOR_TYPES]
        if invalid:
            raise serializers.ValidationError(
                f"Invalid contractor type: {', '.join(invalid)}"
            )
        return list(dict.fromkeys(value))

    def validate_business_phone(self, value):
        try:
            validate_phone_format(value)
        except DjangoValidationError as e:
            raise serializers.ValidationError(list(e.messages))
        return value


# ============================================================================
# Add-ons and checkout
# ============================================================================

class AddOnPurchaseSerializer(serializers.ModelSerializer):
    addon_name = serializers.SerializerMethodField()
    listing_title = serializers.SerializerMethodField()
    remaining = serializers.SerializerMethodField()

    class Meta:
        model = AddOnPurchase
        fields = [
            'id',
            'addon_type',
            'addon_name',
            'amount',
            'currency',
            'status',
            'listing',
            'listing_title',
            'started_at',
            'expires_at',
            'remaining',
            'created_at',
        ]
        read_only_fields = fields

    def get_addon_name(self, obj):
        return pricing.display_name(obj.addon_type)

    def get_listing_title(self, obj):
        return obj.listing.title if obj.listing else None

    def get_remaining(self, obj):
        return obj.remaining


class AddOnAssignSerializer(serializers.Serializer):
    purchaseId = serializers.IntegerField()
    listingId = serializers.IntegerField()


class CheckoutSerializer(serializers.Serializer):
    listingId = serializers.IntegerField()
    addons = serializers.ListField(child=serializers.CharField(), allow_empty=True)
    successUrl = serializers.URLField(required=False, allow_blank=True)
    cancelUrl = serializers.URLField(required=False, allow_blank=True)


# ============================================================================
# Watchlist, reports and notifications
# ============================================================================

class WatchlistItemSerializer(serializers.ModelSerializer):
    listing = ListingListSerializer(read_only=True)

    class Meta:
        model = WatchlistItem
        fields = [
            'id',
            'listing',
            'notes',
            'notify_on_price_change',
            'notify_on_status_change',
            'last_price',
            'created_at',
        ]
        read_only_fields = fields


class WatchlistAddSerializer(serializers.Serializer):
    listingId = serializers.IntegerField()
    notes = serializers.CharField(required=False, allow_blank=True, max_length=500, default='')
    notifyOnPriceChange = serializers.BooleanField(required=False, default=True)
    notifyOnStatusChange = serializers.BooleanField(required=False, default=True)

    def validate_notes(self, value):
        return clean_text(value)


class ListingReportCreateSerializer(serializers.Serializer):
    """
    A report against a listing.

    Fields:
    - reason: One of the report reasons
    - description: 10 to 2000 characters once markup is stripped
    - evidence: Optional list of links; only the first five are kept
    """

    reason = serializers.ChoiceField(
        choices=REPORT_REASONS,
        error_messages={'invalid_choice': 'Valid report reason is required'}
    )
    description = serializers.CharField(max_length=5000)
    evidence = serializers.ListField(
        child=serializers.CharField(allow_blank=True),
        required=False,
        default=list
    )

    def validate_description(self, value):
        value = clean_text(value)
        if len(value) < 10 or len(value) > 2000:
            raise serializers.ValidationError("Description must be between 10 and 2000 characters")
        return value

    def validate_evidence(self, value):
        cleaned = [item.strip()[:500] for item in value if item.strip()]
        return cleaned[:MAX_REPORT_EVIDENCE]


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = [
            'id',
            'notification_type',
            'title',
            'message',
            'link',
            'is_read',
            'read_at',
            'created_at',
        ]
        read_only_fields = fields


class NotificationUpdateSerializer(serializers.Serializer):
    notificationIds = serializers.ListField(child=serializers.IntegerField(), required=False)
    markAllRead = serializers.BooleanField(required=False, default=False)

    def validate(self, attrs):
        if not attrs.get('markAllRead') and not attrs.get('notificationIds'):
            raise serializers.ValidationError("notificationIds array or markAllRead is required")
        return attrs


# ============================================================================
# Uploads
# ============================================================================

class UploadRequestSerializer(serializers.Serializer):
    """
    Request for a pre-signed upload URL.

    Fields:
    - fileName: Original file name
    - contentType: MIME type; must be allowed for ``fileType``
    - fileSize: Size in bytes; image max 10MB, document max 25MB
    - folder: One of contractors, listings, documents, avatars
    - subfolder: Optional, letters, digits and dashes only
    - fileType: 'image' (default) or 'document'
    """

    fileName = serializers.CharField(max_length=255)
    contentType = serializers.CharField(max_length=150)
    fileSize = serializers.IntegerField(min_value=1)
    folder = serializers.ChoiceField(
        choices=UPLOAD_FOLDERS,
        error_messages={'invalid_choice': 'Invalid folder'}
    )
    subfolder = serializers.CharField(required=False, allow_blank=True, max_length=100)
    fileType = serializers.ChoiceField(choices=list(ALLOWED_UPLOAD_TYPES), required=False, default='image')

    def validate_subfolder(self, value):
        try:
            validate_upload_subfolder(value)
        except DjangoValidationError:
            raise serializers.ValidationError("Invalid subfolder name")
        return value

    def validate(self, attrs):
        file_type = attrs.get('fileType', 'image')
        allowed = ALLOWED_UPLOAD_TYPES[file_type]
        if attrs['contentType'] not in allowed:
            raise serializers.ValidationError({
                'contentType': f"Invalid file type. Allowed types: {', '.join(allowed)}"
            })

        max_size = MAX_UPLOAD_SIZES[file_type]
        if attrs['fileSize'] > max_size:
            raise serializers.ValidationError({
                'fileSize': f"File too large. Maximum size: {max_size // (1024 * 1024)}MB"
            })

        return attrs
