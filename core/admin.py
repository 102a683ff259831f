"""
Django admin configuration for The Rail Exchange.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.translation import gettext_lazy as _

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
    ListingReport,
    Notification,
    User,
    WatchlistItem,
)


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Custom admin interface for User model.

    Extends Django's UserAdmin with the account type and seller
    verification fields.
    """

    list_display = [
        'email',
        'username',
        'user_type',
        'company_name',
        'email_verified',
        'is_verified_seller',
        'verified_seller_status',
        'active_listing_count',
        'is_staff',
        'is_active',
        'created_at',
    ]

    list_filter = [
        'user_type',
        'email_verified',
        'is_verified_seller',
        'verified_seller_status',
        'seller_tier',
        'is_staff',
        'is_active',
        'created_at',
    ]

    search_fields = [
        'email',
        'username',
        'first_name',
        'last_name',
        'company_name',
    ]

    ordering = ['-created_at']

    fieldsets = (
        (None, {
            'fields': ('username', 'password')
        }),
        (_('Personal Info'), {
            'fields': (
                'first_name',
                'last_name',
                'email',
                'phone_number',
                'company_name',
                'avatar',
            )
        }),
        (_('Account Type & Email'), {
            'fields': ('user_type', 'email_verified', 'seller_tier', 'active_listing_count')
        }),
        (_('Seller Verification'), {
            'fields': (
                'is_verified_seller',
                'verified_seller_status',
                'verified_seller_tier',
                'verified_seller_approved_at',
                'verified_seller_expires_at',
            )
        }),
        (_('Permissions'), {
            'fields': (
                'is_active',
                'is_staff',
                'is_superuser',
                'groups',
                'user_permissions',
            ),
            'classes': ('collapse',),
        }),
        (_('Important Dates'), {
            'fields': ('last_login', 'date_joined', 'created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': (
                'username',
                'email',
                'password1',
                'password2',
                'user_type',
                'company_name',
            ),
        }),
    )

    readonly_fields = ['created_at', 'updated_at', 'last_login', 'date_joined', 'active_listing_count']

    date_hierarchy = 'created_at'

    list_per_page = 25

    def get_readonly_fields(self, request, obj=None):
        if obj:
            return self.readonly_fields
        return []


# ============================================================================
# Listings
# ============================================================================

class ListingMediaInline(admin.TabularInline):
    model = ListingMedia
    extra = 0
    fields = ['url', 'media_type', 'caption', 'is_primary', 'order']
    ordering = ['order']


@admin.register(Listing)
class ListingAdmin(admin.ModelAdmin):
    """Moderation view for listings, including placement flags."""

    list_display = [
        'title',
        'seller',
        'category',
        'condition',
        'status',
        'price_amount',
        'is_active',
        'is_flagged',
        'featured_active',
        'premium_active',
        'elite_active',
        'created_at',
    ]

    list_filter = [
        'status',
        'category',
        'condition',
        'is_active',
        'is_flagged',
        'featured_active',
        'premium_active',
        'elite_active',
        'created_at',
    ]

    search_fields = [
        'title',
        'description',
        'slug',
        'seller__email',
        'seller__company_name',
    ]

    readonly_fields = [
        'slug',
        'view_count',
        'inquiry_count',
        'save_count',
        'published_at',
        'sold_at',
        'created_at',
        'updated_at',
    ]

    ordering = ['-created_at']

    date_hierarchy = 'created_at'

    list_per_page = 25

    inlines = [ListingMediaInline]

    fieldsets = (
        (None, {
            'fields': ('seller', 'title', 'slug', 'description', 'category', 'subcategory', 'condition', 'status')
        }),
        (_('Pricing & Location'), {
            'fields': (
                'seller_type',
                'price_type',
                'price_amount',
                'price_currency',
                'price_negotiable',
                'city',
                'state',
                'country',
                'zip_code',
            )
        }),
        (_('Equipment'), {
            'fields': ('equipment', 'specifications', 'tags', 'keywords', 'quantity', 'quantity_unit', 'sku'),
            'classes': ('collapse',),
        }),
        (_('Placement'), {
            'fields': (
                ('featured_active', 'featured_expires_at', 'featured_purchased_at'),
                ('premium_active', 'premium_expires_at', 'premium_purchased_at'),
                ('elite_active', 'elite_expires_at', 'elite_purchased_at'),
                'ai_enhanced',
                'spec_sheet_generated',
            )
        }),
        (_('Moderation'), {
            'fields': ('is_active', 'is_flagged', 'flag_reason')
        }),
        (_('Statistics & Dates'), {
            'fields': (
                'view_count',
                'inquiry_count',
                'save_count',
                'published_at',
                'expires_at',
                'sold_at',
                'created_at',
                'updated_at',
            ),
            'classes': ('collapse',),
        }),
    )


@admin.register(ListingDraft)
class ListingDraftAdmin(admin.ModelAdmin):
    list_display = ['user', 'key', 'current_step', 'updated_at']
    search_fields = ['user__email', 'key']
    readonly_fields = ['created_at', 'updated_at']
    list_per_page = 50


@admin.register(WatchlistItem)
class WatchlistItemAdmin(admin.ModelAdmin):
    list_display = ['listing', 'user', 'last_price', 'created_at']
    search_fields = ['listing__title', 'user__email']
    readonly_fields = ['created_at', 'updated_at']
    list_per_page = 50


@admin.register(ListingReport)
class ListingReportAdmin(admin.ModelAdmin):
    """
    Moderation queue for listing reports.

    Reviewing a report does not unflag the listing; that is done on the
    listing itself.
    """

    list_display = ['listing', 'reporter', 'reason', 'status', 'auto_flagged', 'created_at']
    list_filter = ['reason', 'status', 'auto_flagged']
    search_fields = ['listing__title', 'reporter__email', 'description']
    readonly_fields = ['listing', 'reporter', 'auto_flagged', 'created_at']
    ordering = ['-created_at']
    list_per_page = 50


# ============================================================================
# Inquiries
# ============================================================================

class InquiryMessageInline(admin.TabularInline):
    model = InquiryMessage
    extra = 0
    fields = ['sender', 'content', 'read_at', 'created_at']
    readonly_fields = ['created_at']


@admin.register(Inquiry)
class InquiryAdmin(admin.ModelAdmin):
    list_display = [
        'id',
        'subject',
        'listing',
        'buyer',
        'seller',
        'status',
        'buyer_unread_count',
        'seller_unread_count',
        'is_archived',
        'last_message_at',
    ]

    list_filter = [
        'status',
        'is_archived',
        'intent_timeline',
        'created_at',
    ]

    search_fields = [
        'subject',
        'listing__title',
        'buyer__email',
        'seller__email',
    ]

    readonly_fields = ['first_reply_at', 'response_time_minutes', 'created_at', 'updated_at']

    ordering = ['-last_message_at']

    list_per_page = 25

    inlines = [InquiryMessageInline]


# ============================================================================
# ISO requests
# ============================================================================

class ISOResponseInline(admin.TabularInline):
    model = ISOResponse
    extra = 0
    fields = ['responder', 'message', 'created_at']
    readonly_fields = ['created_at']


@admin.register(ISORequest)
class ISORequestAdmin(admin.ModelAdmin):
    list_display = [
        'title',
        'user',
        'category',
        'status',
        'budget_min',
        'budget_max',
        'response_count',
        'view_count',
        'created_at',
    ]

    list_filter = [
        'status',
        'category',
        'allow_messaging',
        'created_at',
    ]

    search_fields = [
        'title',
        'description',
        'user__email',
    ]

    readonly_fields = ['response_count', 'view_count', 'created_at', 'updated_at']

    ordering = ['-created_at']

    date_hierarchy = 'created_at'

    list_per_page = 25

    inlines = [ISOResponseInline]


# ============================================================================
# Contractors
# ============================================================================

@admin.register(ContractorProfile)
class ContractorProfileAdmin(admin.ModelAdmin):
    """Verification and visibility are managed here by staff."""

    list_display = [
        'business_name',
        'user',
        'state',
        'verification_status',
        'visibility_tier',
        'visibility_subscription_status',
        'visibility_expires_at',
        'profile_completeness',
        'is_active',
    ]

    list_filter = [
        'verification_status',
        'visibility_tier',
        'visibility_subscription_status',
        'is_published',
        'is_active',
    ]

    search_fields = [
        'business_name',
        'business_email',
        'user__email',
        'city',
        'state',
    ]

    readonly_fields = ['profile_completeness', 'created_at', 'updated_at']

    ordering = ['business_name']

    list_per_page = 25


# ============================================================================
# Add-ons & notifications
# ============================================================================

@admin.register(AddOnPurchase)
class AddOnPurchaseAdmin(admin.ModelAdmin):
    list_display = [
        'id',
        'user',
        'addon_type',
        'status',
        'listing',
        'amount',
        'started_at',
        'expires_at',
        'created_at',
    ]

    list_filter = [
        'addon_type',
        'status',
        'created_at',
    ]

    search_fields = [
        'user__email',
        'listing__title',
        'stripe_session_id',
        'stripe_payment_id',
    ]

    readonly_fields = ['stripe_session_id', 'stripe_payment_id', 'created_at', 'updated_at']

    ordering = ['-created_at']

    date_hierarchy = 'created_at'

    list_per_page = 25


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ['title', 'user', 'notification_type', 'is_read', 'created_at']
    list_filter = ['notification_type', 'is_read']
    search_fields = ['title', 'user__email']
    ordering = ['-created_at']
    list_per_page = 50
