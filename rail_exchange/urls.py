"""
URL configuration for the rail_exchange project.

Listing routes with a fixed path (homepage/, validate-step/, draft/) are
declared before the id-or-slug detail route so they are not captured by it.
"""
from django.contrib import admin
from django.urls import path
from rest_framework_simplejwt.views import (
    TokenVerifyView,
    TokenBlacklistView,
)
from core.views import (
    EmailTokenObtainPairView,
    UserRegistrationView,
    LoginView,
    CustomTokenRefreshView,
    UserProfileView,
    SellerVerificationStatusView,
    ListingListCreateView,
    ListingDetailView,
    HomepageListingsView,
    ListingStepValidationView,
    ListingDraftView,
    AddOnCatalogView,
    AddOnPurchaseListView,
    AddOnAssignView,
    ExpireAddOnsCronView,
    CheckoutListingAddOnsView,
    StripeWebhookView,
    InquiryListCreateView,
    InquiryDetailView,
    ISORequestListCreateView,
    ISORequestDetailView,
    ISORespondView,
    ContractorDirectoryView,
    ContractorDetailView,
    ContractorOwnProfileView,
    RelevantContractorsView,
    UploadURLView,
    WatchlistView,
    ListingReportView,
    NotificationListView,
)


urlpatterns = [
    path('admin/', admin.site.urls),

    # Authentication endpoints
    path('api/auth/register/', UserRegistrationView.as_view(), name='user_register'),
    path('api/auth/login/', LoginView.as_view(), name='user_login'),
    path('api/auth/logout/', TokenBlacklistView.as_view(), name='user_logout'),
    path('api/auth/profile/', UserProfileView.as_view(), name='user_profile'),
    path('api/verification/seller/status/', SellerVerificationStatusView.as_view(), name='seller_verification_status'),

    # Listing endpoints
    path('api/listings/', ListingListCreateView.as_view(), name='listing_list'),
    path('api/listings/homepage/', HomepageListingsView.as_view(), name='listing_homepage'),
    path('api/listings/validate-step/', ListingStepValidationView.as_view(), name='listing_validate_step'),
    path('api/listings/draft/', ListingDraftView.as_view(), name='listing_draft'),
    path('api/listings/<str:identifier>/', ListingDetailView.as_view(), name='listing_detail'),
    path('api/listings/<str:identifier>/report/', ListingReportView.as_view(), name='listing_report'),

    # Add-on endpoints
    path('api/addons/', AddOnCatalogView.as_view(), name='addon_catalog'),
    path('api/addons/purchases/', AddOnPurchaseListView.as_view(), name='addon_purchases'),
    path('api/addons/assign/', AddOnAssignView.as_view(), name='addon_assign'),
    path('api/cron/expire-addons/', ExpireAddOnsCronView.as_view(), name='cron_expire_addons'),

    # Checkout endpoints
    path('api/checkout/listing-addons/', CheckoutListingAddOnsView.as_view(), name='checkout_listing_addons'),
    path('api/checkout/webhook/', StripeWebhookView.as_view(), name='stripe_webhook'),

    # Inquiry endpoints
    path('api/inquiries/', InquiryListCreateView.as_view(), name='inquiry_list'),
    path('api/inquiries/<int:pk>/', InquiryDetailView.as_view(), name='inquiry_detail'),

    # ISO endpoints
    path('api/iso/', ISORequestListCreateView.as_view(), name='iso_list'),
    path('api/iso/<int:pk>/', ISORequestDetailView.as_view(), name='iso_detail'),
    path('api/iso/<int:pk>/respond/', ISORespondView.as_view(), name='iso_respond'),

    # Contractor endpoints
    path('api/contractors/', ContractorDirectoryView.as_view(), name='contractor_list'),
    path('api/contractors/profile/', ContractorOwnProfileView.as_view(), name='contractor_own_profile'),
    path('api/contractors/relevant/', RelevantContractorsView.as_view(), name='contractor_relevant'),
    path('api/contractors/<int:pk>/', ContractorDetailView.as_view(), name='contractor_detail'),

    # Watchlist and notification endpoints
    path('api/watchlist/', WatchlistView.as_view(), name='watchlist'),
    path('api/notifications/', NotificationListView.as_view(), name='notification_list'),

    # Upload endpoints
    path('api/upload/', UploadURLView.as_view(), name='upload_url'),

    # JWT Authentication endpoints
    path('api/token/', EmailTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('api/token/refresh/', CustomTokenRefreshView.as_view(), name='token_refresh'),  # Custom view with rate limiting
    path('api/token/verify/', TokenVerifyView.as_view(), name='token_verify'),
]
