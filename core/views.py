"""
API views for The Rail Exchange marketplace.
"""

import json
import logging
import math
from datetime import timedelta
from decimal import Decimal, InvalidOperation

from rest_framework_simplejwt.views import TokenObtainPairView
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework import generics, status
from rest_framework.views import APIView
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.paginator import EmptyPage, Paginator
from django.db import IntegrityError, transaction
from django.db.models import F, Q, Sum
from django.utils import timezone

from . import pricing
from .constants import (
    DRAFT_STORAGE_KEY,
    INQUIRY_STATUSES,
    ISO_CATEGORIES,
    ISO_STATUS_CHOICES,
    LISTING_CATEGORIES,
    LISTING_CONDITIONS,
    LISTING_STATUSES,
    LIVE_LISTING_STATUSES,
    REPORT_MIN_ACCOUNT_AGE_HOURS,
    VISIBILITY_TIER_BOOST,
    relevant_contractor_types,
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
    ListingReport,
    Notification,
    WatchlistItem,
)
from .notifications import notify, send_inquiry_reply_email, send_new_inquiry_email
from .payments import (
    PaymentError,
    WebhookSignatureError,
    construct_webhook_event,
    create_listing_addons_session,
)
from .permissions import HasCronSecret
from .placement import (
    AddOnAssignmentError,
    assign_purchase_to_listing,
    expire_addons,
    homepage_listings,
    with_placement_rank,
)
from .serializers import (
    AddOnAssignSerializer,
    AddOnPurchaseSerializer,
    CheckoutSerializer,
    ContractorProfileSerializer,
    ContractorSummarySerializer,
    EmailTokenObtainPairSerializer,
    InquiryCreateSerializer,
    InquiryDetailSerializer,
    InquiryMessageSerializer,
    InquiryReplySerializer,
    InquirySerializer,
    InquiryUpdateSerializer,
    ISORequestSerializer,
    ISORequestUpdateSerializer,
    ISOResponseCreateSerializer,
    ISOResponseSerializer,
    ListingAdminUpdateSerializer,
    ListingDetailSerializer,
    ListingDraftSerializer,
    ListingListSerializer,
    ListingReportCreateSerializer,
    ListingWriteSerializer,
    LoginSerializer,
    NotificationSerializer,
    NotificationUpdateSerializer,
    StepValidationSerializer,
    TokenRefreshSerializer,
    UploadRequestSerializer,
    UserProfileSerializer,
    UserProfileUpdateSerializer,
    UserRegistrationSerializer,
    WatchlistAddSerializer,
    WatchlistItemSerializer,
)
from .storage import StorageError, build_object_key, presign_put, public_file_url
from .validators import blacklisted_terms, detect_keyword_stuffing, is_valid_manufacturer
from .wizard import clear_draft, validate_step

User = get_user_model()
logger = logging.getLogger(__name__)


def get_client_ip(request):
    """
    Get client IP address from request.
    Handles proxy headers for accurate IP detection.
    """
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0]
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip


def method_not_allowed(method):
    return Response(
        {'detail': f'Method "{method}" not allowed.'},
        status=status.HTTP_405_METHOD_NOT_ALLOWED
    )


def authentication_required():
    return Response(
        {'detail': 'Authentication credentials were not provided.'},
        status=status.HTTP_401_UNAUTHORIZED
    )


def parse_positive_int(value, default, maximum=None):
    """Parse a query parameter as a positive integer, falling back to ``default``."""
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    if number < 1:
        return default
    if maximum is not None and number > maximum:
        return maximum
    return number


def paginate(queryset, page_number, limit):
    """
    Return (items, total, total_pages) for one page.

    Pages past the end come back empty rather than raising.
    """
    paginator = Paginator(queryset, limit)
    try:
        items = list(paginator.page(page_number).object_list)
    except EmptyPage:
        items = []
    total = paginator.count
    total_pages = math.ceil(total / limit) if total else 0
    return items, total, total_pages


def pagination_payload(page_number, limit, total, total_pages):
    return {
        'page': page_number,
        'limit': limit,
        'total': total,
        'totalPages': total_pages,
        'hasMore': page_number < total_pages,
    }


# ============================================================================
# Authentication
# ============================================================================

class EmailTokenObtainPairView(TokenObtainPairView):
    """
    Custom view to use email-based authentication instead of username.
    """
    serializer_class = EmailTokenObtainPairSerializer


class UserRegistrationView(generics.CreateAPIView):
    """
    API endpoint for account registration.

    POST /api/auth/register/
    Request body: {
        "email": "dispatch@shortline.com",
        "password": "...",
        "confirm_password": "...",
        "user_type": "seller",
        "company_name": "Short Line Rail"  # Optional
    }

    Returns the created account (without password) with 201.
    """
    serializer_class = UserRegistrationSerializer
    permission_classes = [AllowAny]

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            self.perform_create(serializer)
        except IntegrityError as e:
            # Concurrent registration with the same email
            if 'email' in str(e).lower() or 'unique' in str(e).lower():
                return Response(
                    {'email': ['A user with that email already exists.']},
                    status=status.HTTP_400_BAD_REQUEST
                )
            raise

        logger.info(
            f"User registered. User ID: {serializer.instance.id}, "
            f"Type: {serializer.instance.user_type}, IP: {get_client_ip(request)}"
        )
        headers = self.get_success_headers(serializer.data)
        return Response(serializer.data, status=status.HTTP_201_CREATED, headers=headers)


class LoginView(APIView):
    """
    API endpoint for login with JWT token generation.

    Security features:
    - Rate limiting per IP (scope ``login``)
    - Generic error messages to prevent user enumeration
    - Failed login attempt logging

    POST /api/auth/login/
    Request body: {"email": "user@example.com", "password": "..."}

    Success response (200):
    {
        "access": "<jwt_access_token>",
        "refresh": "<jwt_refresh_token>",
        "user": {"id": 1, "email": "...", "user_type": "seller", ...}
    }

    Error response (401): {"detail": "Invalid credentials"}
    """
    permission_classes = [AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'login'
    serializer_class = LoginSerializer

    def post(self, request, *args, **kwargs):
        serializer = LoginSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        email = serializer.validated_data['email'].lower().strip()
        password = serializer.validated_data['password']
        client_ip = get_client_ip(request)

        try:
            user = User.objects.get(email__iexact=email)
        except User.DoesNotExist:
            logger.warning(
                f"Failed login attempt for non-existent user. "
                f"Email: {email}, IP: {client_ip}"
            )
            return Response(
                {'detail': 'Invalid credentials'},
                status=status.HTTP_401_UNAUTHORIZED
            )

        if not user.check_password(password) or not user.is_active:
            logger.warning(
                f"Failed login attempt. Email: {email}, Active: {user.is_active}, IP: {client_ip}"
            )
            return Response(
                {'detail': 'Invalid credentials'},
                status=status.HTTP_401_UNAUTHORIZED
            )

        refresh = RefreshToken.for_user(user)
        User.objects.filter(pk=user.pk).update(last_login=timezone.now())

        logger.info(f"Successful login. Email: {email}, IP: {client_ip}")

        return Response({
            'access': str(refresh.access_token),
            'refresh': str(refresh),
            'user': {
                'id': user.id,
                'email': user.email,
                'user_type': user.user_type,
                'email_verified': user.email_verified,
                'is_verified_seller': user.is_verified_seller,
            }
        }, status=status.HTTP_200_OK)

    def get(self, request, *args, **kwargs):
        return method_not_allowed('GET')


class CustomTokenRefreshView(APIView):
    """
    API endpoint for refreshing JWT access tokens.

    The presented refresh token is blacklisted and a new one is issued
    (rotation).

    POST /api/token/refresh/
    Request body: {"refresh": "<jwt_refresh_token>"}

    Success response (200): {"access": "...", "refresh": "..."}

    Error responses:
    - 400: Missing refresh field
    - 401: Invalid, expired, or blacklisted refresh token
    - 429: Rate limit exceeded
    """
    permission_classes = [AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'refresh'
    serializer_class = TokenRefreshSerializer

    def post(self, request, *args, **kwargs):
        serializer = TokenRefreshSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        client_ip = get_client_ip(request)

        try:
            refresh_token = RefreshToken(serializer.validated_data['refresh'])
            user = User.objects.filter(id=refresh_token.get('user_id'), is_active=True).first()
            if user is None:
                raise TokenError('User not found')

            response_data = {'access': str(refresh_token.access_token)}

            if settings.SIMPLE_JWT.get('ROTATE_REFRESH_TOKENS', False):
                if settings.SIMPLE_JWT.get('BLACKLIST_AFTER_ROTATION', False):
                    refresh_token.blacklist()
                response_data['refresh'] = str(RefreshToken.for_user(user))

        except TokenError as e:
            logger.warning(f"Failed token refresh attempt. Error: {str(e)}, IP: {client_ip}")
            return Response(
                {'detail': str(e)},
                status=status.HTTP_401_UNAUTHORIZED
            )

        logger.info(f"Successful token refresh. User ID: {user.id}, IP: {client_ip}")
        return Response(response_data, status=status.HTTP_200_OK)


class UserProfileView(APIView):
    """
    API endpoint for retrieving and updating the authenticated user's profile.

    GET /api/auth/profile/
    PUT/PATCH /api/auth/profile/
    Body: {"first_name": "...", "phone_number": "...", "company_name": "...", "avatar": <file>}

    Error responses:
    - 401: Missing, invalid, or expired JWT token
    - 400: Invalid data
    """
    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        if not request.user or not request.user.is_authenticated:
            return authentication_required()

        serializer = UserProfileSerializer(request.user, context={'request': request})
        return Response(serializer.data, status=status.HTTP_200_OK)

    def put(self, request, *args, **kwargs):
        return self._update_profile(request, partial=False)

    def patch(self, request, *args, **kwargs):
        return self._update_profile(request, partial=True)

    def _update_profile(self, request, partial=False):
        if not request.user or not request.user.is_authenticated:
            return authentication_required()

        user = request.user
        serializer = UserProfileUpdateSerializer(
            user,
            data=request.data,
            partial=partial,
            context={'request': request}
        )

        if not serializer.is_valid():
            logger.warning(
                f"Profile update validation failed. "
                f"User ID: {user.id}, Errors: {serializer.errors}"
            )
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        serializer.save()
        logger.info(f"Profile updated. User ID: {user.id}, Partial: {partial}")

        response_serializer = UserProfileSerializer(user, context={'request': request})
        return Response(response_serializer.data, status=status.HTTP_200_OK)

    def post(self, request, *args, **kwargs):
        return method_not_allowed('POST')

    def delete(self, request, *args, **kwargs):
        return method_not_allowed('DELETE')


class SellerVerificationStatusView(APIView):
    """
    Current seller verification state for the authenticated user.

    GET /api/verification/seller/status/

    A verification whose expiry has passed is stored as ``expired`` before
    the response is built.

    Success response (200):
    {
        "userStatus": {"isVerifiedSeller": true, "verifiedSellerStatus": "active", ...},
        "canPublishListings": true,
        "daysUntilExpiration": 42
    }
    """
    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        if not request.user or not request.user.is_authenticated:
            return authentication_required()

        user = request.user
        now = timezone.now()
        if user.expire_seller_verification(now):
            logger.info(f"Seller verification expired. User ID: {user.id}")

        return Response({
            'userStatus': {
                'isVerifiedSeller': user.is_verified_seller,
                'verifiedSellerStatus': user.verified_seller_status,
                'verifiedSellerTier': user.verified_seller_tier or None,
                'approvedAt': user.verified_seller_approved_at,
                'expiresAt': user.verified_seller_expires_at,
                'hasVerifiedContractorProfile': user.has_verified_contractor_profile(),
            },
            'canPublishListings': user.can_publish_listings(now),
            'daysUntilExpiration': user.days_until_verification_expires(now),
        }, status=status.HTTP_200_OK)


# ============================================================================
# Listings
# ============================================================================

LISTING_SORT_FIELDS = {
    'createdAt': 'created_at',
    'price': 'price_amount',
    'viewCount': 'view_count',
    'title': 'title',
}


def publish_gate_response(user, client_ip):
    """
    Check whether ``user`` may publish listings.

    Returns:
        Response: A 403 response when publishing is blocked, otherwise None
    """
    now = timezone.now()
    if user.can_publish_listings(now):
        return None

    if user.seller_verification_lapsed(now):
        user.expire_seller_verification(now)
        logger.warning(
            f"Listing publish blocked, verification expired. User ID: {user.id}, IP: {client_ip}"
        )
        return Response(
            {
                'error': 'Your verification has expired. Please renew to publish listings.',
                'code': 'VERIFICATION_EXPIRED',
                'renewalUrl': '/dashboard/verification/seller',
                'draftAllowed': True,
            },
            status=status.HTTP_403_FORBIDDEN
        )

    logger.warning(
        f"Listing publish blocked, verification required. User ID: {user.id}, "
        f"Status: {user.verified_seller_status}, IP: {client_ip}"
    )
    return Response(
        {
            'error': 'Seller verification is required to publish listings. You can save this listing as a draft.',
            'code': 'VERIFICATION_REQUIRED',
            'verificationUrl': '/dashboard/verification/seller',
            'draftAllowed': True,
        },
        status=status.HTTP_403_FORBIDDEN
    )


def listing_content_error(data, seller, listing=None):
    """
    Run the anti-spam content rules on listing input.

    Returns:
        tuple: (message, code) for the first rule broken, or None
    """
    title = data.get('title', listing.title if listing else '')
    description = data.get('description', listing.description if listing else '')

    if detect_keyword_stuffing(title) or detect_keyword_stuffing(description):
        return (
            'Your listing appears to contain keyword stuffing. '
            'Please use natural language in your title and description.',
            'KEYWORD_STUFFING_DETECTED'
        )

    if blacklisted_terms(data.get('tags', [])) or blacklisted_terms(data.get('keywords', [])):
        return ('Some keywords are not permitted.', 'KEYWORD_BLACKLISTED')

    equipment = data.get('equipment')
    if isinstance(equipment, dict) and equipment.get('manufacturer'):
        if not is_valid_manufacturer(equipment['manufacturer']):
            return (
                'Invalid manufacturer. Please select from the available options '
                'or contact support if yours is missing.',
                'INVALID_MANUFACTURER'
            )

    if 'title' in data:
        duplicates = Listing.objects.filter(seller=seller, is_active=True, title__iexact=title.strip())
        if listing is not None:
            duplicates = duplicates.exclude(pk=listing.pk)
        if duplicates.exists():
            return (
                'You already have an active listing with this title. Please use a unique title.',
                'DUPLICATE_TITLE'
            )

    return None


def get_listing_by_identifier(identifier):
    """Look a listing up by numeric id or by slug."""
    queryset = Listing.objects.select_related('seller').prefetch_related('media')
    if str(identifier).isdigit():
        return queryset.filter(pk=int(identifier)).first()
    return queryset.filter(slug=identifier).first()


class ListingListCreateView(APIView):
    """
    API endpoint for browsing and creating listings.

    GET /api/listings/ (public)

    Query Parameters:
    - page: Page number (default 1)
    - limit: Page size (default 24, max 50)
    - category: Equipment category (ignored when unknown)
    - condition: Comma-separated conditions (unknown values dropped)
    - state: Location state
    - seller: Seller user id
    - featured: 'true' to only show listings with an active placement
    - status: Listing status, authenticated callers only; 'all' for any
    - search: Matches title, description and tags
    - minPrice / maxPrice: Price range
    - sortBy: createdAt, price, viewCount or title
    - sortOrder: asc or desc (default desc)

    Response: {"listings": [...], "pagination": {page, limit, total, totalPages, hasMore}}

    POST /api/listings/ (authenticated)

    Publishing (any status other than draft) requires an active seller
    verification or a verified contractor profile.

    Error responses:
    - 400: Validation errors, or {"error", "code"} for
      KEYWORD_STUFFING_DETECTED, KEYWORD_BLACKLISTED, INVALID_MANUFACTURER,
      DUPLICATE_TITLE
    - 401: Missing, invalid, or expired JWT token
    - 403: EMAIL_UNVERIFIED, VERIFICATION_REQUIRED, VERIFICATION_EXPIRED
    """
    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        params = request.query_params
        user = request.user if request.user and request.user.is_authenticated else None

        try:
            queryset = Listing.objects.select_related('seller').prefetch_related('media')

            requested_status = params.get('status') if user else None
            if requested_status == 'all':
                if not user.is_admin():
                    queryset = queryset.filter(Q(status='active', is_active=True) | Q(seller=user))
            elif requested_status in LISTING_STATUSES and requested_status != 'active':
                queryset = queryset.filter(status=requested_status)
                if not user.is_admin():
                    queryset = queryset.filter(seller=user)
            else:
                queryset = queryset.filter(status='active', is_active=True)

            category = params.get('category')
            if category in LISTING_CATEGORIES:
                queryset = queryset.filter(category=category)

            condition = params.get('condition')
            if condition:
                conditions = [c.strip() for c in condition.split(',') if c.strip() in LISTING_CONDITIONS]
                if conditions:
                    queryset = queryset.filter(condition__in=conditions)

            state = params.get('state')
            if state:
                queryset = queryset.filter(state__iexact=state)

            seller = params.get('seller')
            if seller and seller.isdigit():
                queryset = queryset.filter(seller_id=int(seller))

            now = timezone.now()
            queryset = with_placement_rank(queryset, now)

            if params.get('featured') == 'true':
                queryset = queryset.filter(placement_rank__gt=0)

            search = (params.get('search') or '').strip()
            if search:
                queryset = queryset.filter(
                    Q(title__icontains=search)
                    | Q(description__icontains=search)
                    | Q(tags__icontains=search)
                )

            for param, lookup in (('minPrice', 'price_amount__gte'), ('maxPrice', 'price_amount__lte')):
                value = params.get(param)
                if value is None or value == '':
                    continue
                try:
                    amount = Decimal(value)
                except InvalidOperation:
                    return Response(
                        {'error': f'Invalid value for "{param}". Must be a valid number.'},
                        status=status.HTTP_400_BAD_REQUEST
                    )
                queryset = queryset.filter(**{lookup: amount})

            sort_field = LISTING_SORT_FIELDS.get(params.get('sortBy'), 'created_at')
            if params.get('sortOrder') == 'asc':
                order = [sort_field, 'id']
            else:
                order = [f'-{sort_field}', '-id']
            if not search:
                order.insert(0, '-placement_rank')
            queryset = queryset.order_by(*order)

            page_number = parse_positive_int(params.get('page'), 1)
            limit = parse_positive_int(params.get('limit'), 24, maximum=50)
            items, total, total_pages = paginate(queryset, page_number, limit)

            serializer = ListingListSerializer(items, many=True, context={'request': request})

            return Response({
                'listings': serializer.data,
                'pagination': pagination_payload(page_number, limit, total, total_pages),
            }, status=status.HTTP_200_OK)

        except Exception as e:
            logger.error(f"Error in listing browse: {str(e)}")
            return Response(
                {'error': 'An error occurred while retrieving listings.'},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR
            )

    def post(self, request, *args, **kwargs):
        if not request.user or not request.user.is_authenticated:
            return authentication_required()

        user = request.user
        client_ip = get_client_ip(request)

        if not user.email_verified:
            logger.warning(f"Listing creation blocked, email unverified. User ID: {user.id}, IP: {client_ip}")
            return Response(
                {
                    'error': 'Please verify your email address before creating listings.',
                    'code': 'EMAIL_UNVERIFIED'
                },
                status=status.HTTP_403_FORBIDDEN
            )

        requested_status = request.data.get('status') or 'active'
        if requested_status != 'draft':
            blocked = publish_gate_response(user, client_ip)
            if blocked is not None:
                return blocked

        serializer = ListingWriteSerializer(data=request.data, context={'request': request})
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        content_error = listing_content_error(serializer.validated_data, user)
        if content_error:
            message, code = content_error
            logger.warning(f"Listing rejected ({code}). User ID: {user.id}, IP: {client_ip}")
            return Response({'error': message, 'code': code}, status=status.HTTP_400_BAD_REQUEST)

        try:
            listing = serializer.save(seller=user)
        except DjangoValidationError as e:
            return Response(e.message_dict, status=status.HTTP_400_BAD_REQUEST)

        clear_draft(user)

        logger.info(
            f"Listing created. Listing ID: {listing.id}, Status: {listing.status}, "
            f"Seller: {user.id}, IP: {client_ip}"
        )

        response_serializer = ListingDetailSerializer(listing, context={'request': request})
        return Response(response_serializer.data, status=status.HTTP_201_CREATED)


class ListingDetailView(APIView):
    """
    API endpoint for a single listing.

    GET /api/listings/<id-or-slug>/
    Public for active listings; owners and admins can also see drafts,
    sold and archived listings. Views by non-owners are counted.

    PUT/PATCH /api/listings/<id>/ (owner or admin)
    Only editable fields are applied. Moderation and placement fields are
    accepted from admins only. Publishing goes through the verification gate.

    DELETE /api/listings/<id>/ (owner or admin)
    Soft delete: the listing is archived.

    Error responses:
    - 401: Missing, invalid, or expired JWT token (writes)
    - 403: Not the owner
    - 404: Listing not found or not visible
    """
    permission_classes = [AllowAny]

    def get(self, request, identifier, *args, **kwargs):
        listing = get_listing_by_identifier(identifier)
        user = request.user if request.user and request.user.is_authenticated else None
        is_owner = user is not None and listing is not None and listing.seller_id == user.id
        is_admin = user is not None and user.is_admin()

        if listing is None or (
            (listing.status != 'active' or not listing.is_active) and not (is_owner or is_admin)
        ):
            return Response({'error': 'Listing not found'}, status=status.HTTP_404_NOT_FOUND)

        if not is_owner and listing.status == 'active':
            Listing.objects.filter(pk=listing.pk).update(view_count=F('view_count') + 1)
            listing.view_count += 1

        serializer = ListingDetailSerializer(listing, context={'request': request})
        return Response(serializer.data, status=status.HTTP_200_OK)

    def put(self, request, identifier, *args, **kwargs):
        return self._update(request, identifier)

    def patch(self, request, identifier, *args, **kwargs):
        return self._update(request, identifier)

    def _get_owned_listing(self, request, identifier):
        """
        Returns:
            tuple: (listing, error_response)
        """
        listing = get_listing_by_identifier(identifier)
        if listing is None:
            return None, Response({'error': 'Listing not found'}, status=status.HTTP_404_NOT_FOUND)

        if listing.seller_id != request.user.id and not request.user.is_admin():
            logger.warning(
                f"Unauthorized listing modification attempt. Listing ID: {listing.id}, "
                f"User ID: {request.user.id}, IP: {get_client_ip(request)}"
            )
            return None, Response(
                {'detail': 'You do not have permission to modify this listing.'},
                status=status.HTTP_403_FORBIDDEN
            )

        return listing, None

    def _update(self, request, identifier):
        if not request.user or not request.user.is_authenticated:
            return authentication_required()

        listing, error = self._get_owned_listing(request, identifier)
        if error is not None:
            return error

        user = request.user
        client_ip = get_client_ip(request)

        serializer = ListingWriteSerializer(
            listing,
            data=request.data,
            partial=True,
            context={'request': request}
        )
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        admin_serializer = None
        if user.is_admin():
            admin_serializer = ListingAdminUpdateSerializer(listing, data=request.data, partial=True)
            if not admin_serializer.is_valid():
                return Response(admin_serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        new_status = serializer.validated_data.get('status', listing.status)
        publishing = new_status in LIVE_LISTING_STATUSES and listing.status not in LIVE_LISTING_STATUSES
        if publishing and not user.is_admin():
            blocked = publish_gate_response(user, client_ip)
            if blocked is not None:
                return blocked

        content_error = listing_content_error(serializer.validated_data, listing.seller, listing=listing)
        if content_error:
            message, code = content_error
            return Response({'error': message, 'code': code}, status=status.HTTP_400_BAD_REQUEST)

        try:
            listing = serializer.save()
            if admin_serializer is not None and admin_serializer.validated_data:
                listing = admin_serializer.save()
        except DjangoValidationError as e:
            return Response(e.message_dict, status=status.HTTP_400_BAD_REQUEST)

        logger.info(
            f"Listing updated. Listing ID: {listing.id}, Status: {listing.status}, "
            f"User ID: {user.id}, IP: {client_ip}"
        )

        listing = get_listing_by_identifier(listing.pk)
        response_serializer = ListingDetailSerializer(listing, context={'request': request})
        return Response(response_serializer.data, status=status.HTTP_200_OK)

    def delete(self, request, identifier, *args, **kwargs):
        if not request.user or not request.user.is_authenticated:
            return authentication_required()

        listing, error = self._get_owned_listing(request, identifier)
        if error is not None:
            return error

        listing.status = 'archived'
        listing.save()

        logger.info(
            f"Listing archived. Listing ID: {listing.id}, User ID: {request.user.id}, "
            f"IP: {get_client_ip(request)}"
        )
        return Response({'message': 'Listing deleted successfully'}, status=status.HTTP_200_OK)

    def post(self, request, *args, **kwargs):
        return method_not_allowed('POST')


class HomepageListingsView(APIView):
    """
    Listings highlighted on the homepage.

    GET /api/listings/homepage/

    Elite placements first, then premium, then featured, each newest
    purchase first, up to six listings. Falls back to the most recent
    active listings when nothing holds a placement. Each item carries a
    ``badge`` with its highest active tier.
    """
    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        listings = homepage_listings()
        serializer = ListingListSerializer(listings, many=True, context={'request': request})
        return Response({'listings': serializer.data}, status=status.HTTP_200_OK)


class ListingStepValidationView(APIView):
    """
    Validate one step of the listing form.

    POST /api/listings/validate-step/
    Request body: {"step": 1, "data": {"title": "...", "category": "...", ...}}

    Response (200): {"valid": false, "error": "Please select a category"}
    """
    permission_classes = [AllowAny]

    def post(self, request, *args, **kwargs):
        serializer = StepValidationSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        valid, error = validate_step(
            serializer.validated_data['step'],
            serializer.validated_data['data']
        )
        return Response({'valid': valid, 'error': error}, status=status.HTTP_200_OK)


class ListingDraftView(APIView):
    """
    Autosaved listing form state for the authenticated user.

    GET /api/listings/draft/      -> saved snapshot, or 404
    PUT /api/listings/draft/      -> {"payload": {...}, "current_step": 2}
    DELETE /api/listings/draft/   -> clears the snapshot (204)

    An optional ``key`` query parameter selects the snapshot; it defaults to
    ``railx-listing-draft``.
    """
    permission_classes = [AllowAny]

    def _key(self, request):
        return request.query_params.get('key') or DRAFT_STORAGE_KEY

    def get(self, request, *args, **kwargs):
        if not request.user or not request.user.is_authenticated:
            return authentication_required()

        draft = ListingDraft.objects.filter(user=request.user, key=self._key(request)).first()
        if draft is None:
            return Response({'detail': 'No saved draft.'}, status=status.HTTP_404_NOT_FOUND)

        return Response(ListingDraftSerializer(draft).data, status=status.HTTP_200_OK)

    def put(self, request, *args, **kwargs):
        if not request.user or not request.user.is_authenticated:
            return authentication_required()

        serializer = ListingDraftSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        draft, _created = ListingDraft.objects.update_or_create(
            user=request.user,
            key=self._key(request),
            defaults={
                'payload': serializer.validated_data['payload'],
                'current_step': serializer.validated_data.get('current_step', 1),
            }
        )
        return Response(ListingDraftSerializer(draft).data, status=status.HTTP_200_OK)

    def delete(self, request, *args, **kwargs):
        if not request.user or not request.user.is_authenticated:
            return authentication_required()

        clear_draft(request.user, self._key(request))
        return Response(status=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Add-ons
# ============================================================================

class AddOnCatalogView(APIView):
    """
    Public add-on price list.

    GET /api/addons/
    Response: {"addons": [{"type", "name", "description", "price", "duration", ...}]}
    """
    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        return Response({'addons': pricing.all_addons_info()}, status=status.HTTP_200_OK)


class AddOnPurchaseListView(APIView):
    """
    The authenticated user's add-on purchases, newest first.

    GET /api/addons/purchases/?status=active
    """
    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        if not request.user or not request.user.is_authenticated:
            return authentication_required()

        purchases = AddOnPurchase.objects.filter(user=request.user).select_related('listing')
        status_filter = request.query_params.get('status')
        if status_filter:
            purchases = purchases.filter(status=status_filter)

        serializer = AddOnPurchaseSerializer(purchases.order_by('-created_at'), many=True)
        return Response({'purchases': serializer.data}, status=status.HTTP_200_OK)


class AddOnAssignView(APIView):
    """
    Attach a paid add-on to one of the user's listings.

    POST /api/addons/assign/
    Request body: {"purchaseId": 12, "listingId": 34}

    Error responses:
    - 400: Purchase not active, already assigned, listing not active, or
      the same placement already active on the listing
    - 401: Missing, invalid, or expired JWT token
    - 403: Purchase or listing owned by someone else
    - 404: Purchase or listing not found
    """
    permission_classes = [AllowAny]

    def post(self, request, *args, **kwargs):
        if not request.user or not request.user.is_authenticated:
            return authentication_required()

        serializer = AddOnAssignSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        purchase = AddOnPurchase.objects.filter(pk=serializer.validated_data['purchaseId']).first()
        if purchase is None:
            return Response({'error': 'Purchase not found'}, status=status.HTTP_404_NOT_FOUND)

        listing = Listing.objects.filter(pk=serializer.validated_data['listingId']).first()
        if listing is None:
            return Response({'error': 'Listing not found'}, status=status.HTTP_404_NOT_FOUND)

        try:
            purchase, listing = assign_purchase_to_listing(purchase, listing, request.user)
        except AddOnAssignmentError as e:
            logger.warning(
                f"Add-on assignment rejected. Purchase: {purchase.id}, Listing: {listing.id}, "
                f"User ID: {request.user.id}, Reason: {e.message}"
            )
            return Response({'error': e.message}, status=e.status_code)

        listing.refresh_from_db()
        return Response({
            'message': 'Add-on assigned successfully',
            'purchase': AddOnPurchaseSerializer(purchase).data,
            'listing': {
                'id': listing.id,
                'slug': listing.slug,
                'badge': listing.placement_badge,
            },
        }, status=status.HTTP_200_OK)


class ExpireAddOnsCronView(APIView):
    """
    Scheduled job endpoint that expires lapsed add-ons.

    GET /api/cron/expire-addons/
    Headers: Authorization: Bearer <CRON_SECRET>

    Response (200): {"success": true, "processed": 3, "errors": 0, "total": 3}
    Error response (401): {"error": "Unauthorized"}
    """
    # The cron secret arrives as a Bearer header, which JWT auth would reject
    authentication_classes = []
    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        if not HasCronSecret().has_permission(request, self):
            logger.warning(f"Unauthorized cron call. IP: {get_client_ip(request)}")
            return Response({'error': 'Unauthorized'}, status=status.HTTP_401_UNAUTHORIZED)

        result = expire_addons()
        return Response({'success': True, **result}, status=status.HTTP_200_OK)

    def post(self, request, *args, **kwargs):
        return self.get(request, *args, **kwargs)


# ============================================================================
# Checkout
# ============================================================================

class CheckoutListingAddOnsView(APIView):
    """
    Start a Stripe Checkout for listing add-ons.

    POST /api/checkout/listing-addons/
    Request body: {
        "listingId": 34,
        "addons": ["premium", "spec_sheet"],
        "successUrl": "https://...",  # Optional
        "cancelUrl": "https://..."    # Optional
    }

    Success response (200): {"url": "https://checkout.stripe.com/...", "sessionId": "cs_..."}

    The listing is never rolled back when checkout fails; the 502 response
    tells the client the listing is already published.
    """
    permission_classes = [AllowAny]

    def post(self, request, *args, **kwargs):
        if not request.user or not request.user.is_authenticated:
            return authentication_required()

        if not request.data.get('listingId') or not request.data.get('addons'):
            return Response({'error': 'Missing required fields'}, status=status.HTTP_400_BAD_REQUEST)

        serializer = CheckoutSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        user = request.user

        listing = Listing.objects.filter(pk=data['listingId']).first()
        if listing is None:
            return Response({'error': 'Listing not found'}, status=status.HTTP_404_NOT_FOUND)

        if listing.seller_id != user.id:
            logger.warning(
                f"Checkout attempted for another user's listing. Listing ID: {listing.id}, "
                f"User ID: {user.id}, IP: {get_client_ip(request)}"
            )
            return Response({'error': 'You do not own this listing'}, status=status.HTTP_403_FORBIDDEN)

        addon_types = [a for a in dict.fromkeys(data['addons']) if pricing.addon_info(a)]
        if not addon_types:
            return Response({'error': 'No valid add-ons selected'}, status=status.HTTP_400_BAD_REQUEST)

        listing_path = f'/listings/{listing.slug}'
        success_url = data.get('successUrl') or f'{settings.SITE_URL}{listing_path}?addons=success'
        cancel_url = data.get('cancelUrl') or f'{settings.SITE_URL}{listing_path}?addons=cancelled'

        try:
            session = create_listing_addons_session(listing, user, addon_types, success_url, cancel_url)
        except PaymentError:
            return Response(
                {
                    'error': 'Unable to start checkout. Your listing was saved and you can add upgrades later.',
                    'listingPublished': listing.status == 'active',
                    'listingUrl': listing_path,
                },
                status=status.HTTP_502_BAD_GATEWAY
            )

        for addon_type in addon_types:
            AddOnPurchase.objects.create(
                user=user,
                listing=None,
                addon_type=addon_type,
                status='pending',
                stripe_session_id=session.id,
                metadata={'listingId': listing.id},
            )

        logger.info(
            f"Checkout session created. Session: {session.id}, Listing ID: {listing.id}, "
            f"Add-ons: {', '.join(addon_types)}, User ID: {user.id}"
        )
        return Response({'url': session.url, 'sessionId': session.id}, status=status.HTTP_200_OK)


class StripeWebhookView(APIView):
    """
    Stripe webhook receiver.

    POST /api/checkout/webhook/
    Headers: Stripe-Signature

    On ``checkout.session.completed`` for listing add-ons, the pending
    purchases of the session are activated and assigned to the listing.
    Purchases are applied highest placement tier first; a tier the listing
    already holds is left paid but unassigned. Already active purchases are
    left alone, so redelivered events are harmless.
    """
    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request, *args, **kwargs):
        signature = request.META.get('HTTP_STRIPE_SIGNATURE', '')

        try:
            event = construct_webhook_event(request.body, signature)
        except WebhookSignatureError as e:
            logger.warning(f"Rejected webhook. Error: {str(e)}, IP: {get_client_ip(request)}")
            return Response({'error': 'Invalid signature'}, status=status.HTTP_400_BAD_REQUEST)

        if event['type'] == 'checkout.session.completed':
            session = event['data']['object']
            metadata = dict(session['metadata'] or {})
            if metadata.get('type') == 'listing_addons':
                self._handle_listing_addons(session, metadata)

        return Response({'received': True}, status=status.HTTP_200_OK)

    def _handle_listing_addons(self, session, metadata):
        session_id = session['id']
        payment_id = session['payment_intent'] or ''
        now = timezone.now()

        purchases = AddOnPurchase.objects.filter(stripe_session_id=session_id)
        if not purchases.exists():
            # Session started outside this service; rebuild from metadata
            user = User.objects.filter(pk=metadata.get('userId')).first()
            if user is None:
                logger.error(f"Webhook for unknown user. Session: {session_id}")
                return
            for addon_type in json.loads(metadata.get('addons') or '[]'):
                if pricing.addon_info(addon_type):
                    AddOnPurchase.objects.create(
                        user=user,
                        addon_type=addon_type,
                        status='pending',
                        stripe_session_id=session_id,
                    )

        listing = Listing.objects.filter(pk=metadata.get('listingId')).first()

        pending = sorted(
            AddOnPurchase.objects.filter(stripe_session_id=session_id, status='pending').select_related('user'),
            key=lambda p: (pricing.assignment_order(p.addon_type), p.id)
        )
        for purchase in pending:
            purchase.activate(now)
            purchase.stripe_payment_id = payment_id
            purchase.save()
            logger.info(f"Add-on purchase activated. Purchase: {purchase.id}, Session: {session_id}")

            if listing is None:
                continue
            if pricing.is_ranking_addon(purchase.addon_type) and listing._tier_active(purchase.addon_type, now):
                logger.info(
                    f"Add-on tier already covered; left unassigned. Purchase: {purchase.id}, "
                    f"Type: {purchase.addon_type}, Listing ID: {listing.id}"
                )
                continue
            try:
                _purchase, listing = assign_purchase_to_listing(purchase, listing, purchase.user, now)
            except AddOnAssignmentError as e:
                logger.warning(
                    f"Paid add-on left unassigned. Purchase: {purchase.id}, "
                    f"Listing ID: {listing.id}, Reason: {e.message}"
                )


# ============================================================================
# Inquiries
# ============================================================================

class InquiryListCreateView(APIView):
    """
    Buyer/seller inquiry inbox.

    GET /api/inquiries/?role=seller|buyer&status=&page=&limit=
    Response: {"inquiries": [...], "total": 4, "unreadCount": 2, "pages": 1, "page": 1}

    POST /api/inquiries/
    Request body: {
        "listingId": 34,
        "subject": "Availability",  # Optional
        "message": "Is this unit still available?",
        "intent": {"quantity": 2, "timeline": "short_term", "purpose": "..."}  # Optional
    }

    A buyer keeps one thread per listing; a second inquiry appends to it.

    Error responses:
    - 400: Missing fields, or inquiring about your own listing
    - 401: Missing, invalid, or expired JWT token
    - 404: Listing not found
    """
    permission_classes = [AllowAny]

    def get_throttles(self):
        if self.request.method == 'POST':
            self.throttle_scope = 'inquiry'
            return [ScopedRateThrottle()]
        return super().get_throttles()

    def get(self, request, *args, **kwargs):
        if not request.user or not request.user.is_authenticated:
            return authentication_required()

        user = request.user
        role = 'seller' if request.query_params.get('role') == 'seller' else 'buyer'

        inquiries = (
            Inquiry.objects
            .filter(**{role: user}, is_archived=False)
            .select_related('listing', 'buyer', 'seller')
            .prefetch_related('listing__media', 'messages')
            .order_by('-last_message_at')
        )

        status_filter = request.query_params.get('status')
        if status_filter in INQUIRY_STATUSES:
            inquiries = inquiries.filter(status=status_filter)

        unread_field = f'{role}_unread_count'
        unread_count = inquiries.aggregate(total=Sum(unread_field))['total'] or 0

        page_number = parse_positive_int(request.query_params.get('page'), 1)
        limit = parse_positive_int(request.query_params.get('limit'), 20, maximum=50)
        items, total, total_pages = paginate(inquiries, page_number, limit)

        return Response({
            'inquiries': InquirySerializer(items, many=True).data,
            'total': total,
            'unreadCount': unread_count,
            'pages': total_pages,
            'page': page_number,
        }, status=status.HTTP_200_OK)

    def post(self, request, *args, **kwargs):
        if not request.user or not request.user.is_authenticated:
            return authentication_required()

        serializer = InquiryCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        buyer = request.user

        listing = Listing.objects.filter(
            pk=data['listingId'], status='active', is_active=True
        ).select_related('seller').first()
        if listing is None:
            return Response({'error': 'Listing not found'}, status=status.HTTP_404_NOT_FOUND)

        if listing.seller_id == buyer.id:
            return Response(
                {'error': 'Cannot inquire about your own listing'},
                status=status.HTTP_400_BAD_REQUEST
            )

        existing = Inquiry.objects.filter(listing=listing, buyer=buyer).first()
        if existing is not None:
            return self._append_to_thread(request, existing, buyer, data['message'])

        intent = data.get('intent') or {}
        try:
            with transaction.atomic():
                inquiry = Inquiry.objects.create(
                    listing=listing,
                    buyer=buyer,
                    seller=listing.seller,
                    subject=data.get('subject') or f'Inquiry about {listing.title}'[:200],
                    intent_quantity=intent.get('quantity', 1),
                    intent_timeline=intent.get('timeline', 'unspecified'),
                    intent_purpose=intent.get('purpose', ''),
                )
                InquiryMessage.objects.create(inquiry=inquiry, sender=buyer, content=data['message'])
        except (IntegrityError, DjangoValidationError):
            # Lost a race against a concurrent first message
            existing = Inquiry.objects.get(listing=listing, buyer=buyer)
            return self._append_to_thread(request, existing, buyer, data['message'])

        send_new_inquiry_email(inquiry, data['message'])
        notify(
            listing.seller,
            'inquiry',
            f'New inquiry about "{listing.title}"',
            message=data['message'][:500],
            link=f'/dashboard/inquiries/{inquiry.id}',
        )

        logger.info(
            f"Inquiry created. Inquiry ID: {inquiry.id}, Listing ID: {listing.id}, "
            f"Buyer: {buyer.id}, IP: {get_client_ip(request)}"
        )

        inquiry = Inquiry.objects.prefetch_related('messages__sender').get(pk=inquiry.pk)
        return Response(InquiryDetailSerializer(inquiry).data, status=status.HTTP_201_CREATED)

    def _append_to_thread(self, request, inquiry, sender, content):
        now = timezone.now()
        with transaction.atomic():
            InquiryMessage.objects.create(inquiry=inquiry, sender=sender, content=content)
            updates = {
                'seller_unread_count': F('seller_unread_count') + 1,
                'last_message_at': now,
                'updated_at': now,
            }
            if inquiry.status == 'closed':
                updates['status'] = 'new'
            Inquiry.objects.filter(pk=inquiry.pk).update(**updates)

        logger.info(f"Message appended to inquiry {inquiry.id} by user {sender.id}")

        inquiry = Inquiry.objects.prefetch_related('messages__sender').get(pk=inquiry.pk)
        return Response(InquiryDetailSerializer(inquiry).data, status=status.HTTP_200_OK)


class InquiryDetailView(APIView):
    """
    A single inquiry thread.

    GET /api/inquiries/<id>/
    Opening the thread clears the caller's unread counter and marks the
    other party's messages read. A seller opening a new inquiry moves it
    to ``read``.

    POST /api/inquiries/<id>/
    Request body: {"message": "...", "attachments": []}
    Replies from the buyer or seller only.

    PATCH /api/inquiries/<id>/
    Request body: {"status": "closed"} (seller only) or {"isArchived": true}

    Error responses:
    - 400: Empty message or invalid status
    - 401: Missing, invalid, or expired JWT token
    - 403: Not a participant
    - 404: Inquiry not found
    """
    permission_classes = [AllowAny]

    def _get_inquiry(self, pk):
        return (
            Inquiry.objects
            .select_related('listing', 'buyer', 'seller')
            .prefetch_related('messages__sender', 'listing__media')
            .filter(pk=pk)
            .first()
        )

    def _access_denied(self, request, inquiry):
        logger.warning(
            f"Unauthorized inquiry access. Inquiry ID: {inquiry.id}, "
            f"User ID: {request.user.id}, IP: {get_client_ip(request)}"
        )
        return Response(
            {'detail': 'You do not have access to this inquiry.'},
            status=status.HTTP_403_FORBIDDEN
        )

    def get(self, request, pk, *args, **kwargs):
        if not request.user or not request.user.is_authenticated:
            return authentication_required()

        inquiry = self._get_inquiry(pk)
        if inquiry is None:
            return Response({'error': 'Inquiry not found'}, status=status.HTTP_404_NOT_FOUND)

        user = request.user
        if not inquiry.is_participant(user) and not user.is_admin():
            return self._access_denied(request, inquiry)

        if inquiry.is_participant(user):
            now = timezone.now()
            updates = {}
            if user.id == inquiry.buyer_id:
                updates['buyer_unread_count'] = 0
            else:
                updates['seller_unread_count'] = 0
                if inquiry.status == 'new':
                    updates['status'] = 'read'
            Inquiry.objects.filter(pk=inquiry.pk).update(**updates)
            inquiry.messages.filter(read_at__isnull=True).exclude(sender=user).update(read_at=now)
            inquiry = self._get_inquiry(pk)

        return Response(InquiryDetailSerializer(inquiry).data, status=status.HTTP_200_OK)

    def post(self, request, pk, *args, **kwargs):
        if not request.user or not request.user.is_authenticated:
            return authentication_required()

        inquiry = self._get_inquiry(pk)
        if inquiry is None:
            return Response({'error': 'Inquiry not found'}, status=status.HTTP_404_NOT_FOUND)

        sender = request.user
        if not inquiry.is_participant(sender):
            return self._access_denied(request, inquiry)

        serializer = InquiryReplySerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        content = serializer.validated_data['message'].strip()
        if not content:
            return Response({'error': 'Message is required'}, status=status.HTTP_400_BAD_REQUEST)

        now = timezone.now()
        is_seller = sender.id == inquiry.seller_id

        with transaction.atomic():
            message = InquiryMessage.objects.create(
                inquiry=inquiry,
                sender=sender,
                content=content,
                attachments=serializer.validated_data['attachments'],
            )
            updates = {'last_message_at': now, 'updated_at': now}
            if is_seller:
                updates['buyer_unread_count'] = F('buyer_unread_count') + 1
                updates['status'] = 'replied'
                if inquiry.first_reply_at is None:
                    updates['first_reply_at'] = now
                    updates['response_time_minutes'] = int((now - inquiry.created_at).total_seconds() // 60)
            else:
                updates['seller_unread_count'] = F('seller_unread_count') + 1
            Inquiry.objects.filter(pk=inquiry.pk).update(**updates)

        recipient = inquiry.buyer if is_seller else inquiry.seller
        send_inquiry_reply_email(inquiry, sender, recipient, content)
        notify(
            recipient,
            'inquiry_reply',
            f'New reply about "{inquiry.listing.title}"',
            message=content[:500],
            link=f'/dashboard/inquiries/{inquiry.id}',
        )

        logger.info(f"Inquiry reply. Inquiry ID: {inquiry.id}, Sender: {sender.id}")
        return Response(InquiryMessageSerializer(message).data, status=status.HTTP_201_CREATED)

    def patch(self, request, pk, *args, **kwargs):
        if not request.user or not request.user.is_authenticated:
            return authentication_required()

        inquiry = self._get_inquiry(pk)
        if inquiry is None:
            return Response({'error': 'Inquiry not found'}, status=status.HTTP_404_NOT_FOUND)

        user = request.user
        if not inquiry.is_participant(user):
            return self._access_denied(request, inquiry)

        serializer = InquiryUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        updates = {}
        if 'status' in serializer.validated_data:
            if user.id != inquiry.seller_id:
                return Response(
                    {'detail': 'Only the seller can change the inquiry status.'},
                    status=status.HTTP_403_FORBIDDEN
                )
            updates['status'] = serializer.validated_data['status']

        if 'isArchived' in serializer.validated_data:
            archived = serializer.validated_data['isArchived']
            updates['is_archived'] = archived
            updates['archived_by'] = user if archived else None

        if updates:
            updates['updated_at'] = timezone.now()
            Inquiry.objects.filter(pk=inquiry.pk).update(**updates)

        return Response(InquiryDetailSerializer(self._get_inquiry(pk)).data, status=status.HTTP_200_OK)

    def put(self, request, *args, **kwargs):
        return method_not_allowed('PUT')

    def delete(self, request, *args, **kwargs):
        return method_not_allowed('DELETE')


# ============================================================================
# ISO requests
# ============================================================================

ISO_STATUSES = [value for value, _label in ISO_STATUS_CHOICES]


class ISORequestListCreateView(APIView):
    """
    ISO ("In Search Of") request board.

    GET /api/iso/?page=&limit=&category=&status=&userId=
    Status defaults to 'active'; 'all' includes everything except deleted.
    Response: {"requests": [...], "pagination": {page, limit, total, totalPages, hasMore}}

    POST /api/iso/ (authenticated)
    Request body: {"title": "...", "category": "locomotives", "description": "...",
                   "budget_min": "50000", "budget_max": "90000", ...}
    """
    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        params = request.query_params
        requests_qs = ISORequest.objects.select_related('user').exclude(status='deleted')

        status_filter = params.get('status', 'active')
        if status_filter != 'all':
            if status_filter not in ISO_STATUSES or status_filter == 'deleted':
                status_filter = 'active'
            requests_qs = requests_qs.filter(status=status_filter)

        category = params.get('category')
        if category in ISO_CATEGORIES:
            requests_qs = requests_qs.filter(category=category)

        user_id = params.get('userId')
        if user_id and user_id.isdigit():
            requests_qs = requests_qs.filter(user_id=int(user_id))

        page_number = parse_positive_int(params.get('page'), 1)
        limit = parse_positive_int(params.get('limit'), 20, maximum=50)
        items, total, total_pages = paginate(requests_qs.order_by('-created_at'), page_number, limit)

        return Response({
            'requests': ISORequestSerializer(items, many=True).data,
            'pagination': pagination_payload(page_number, limit, total, total_pages),
        }, status=status.HTTP_200_OK)

    def post(self, request, *args, **kwargs):
        if not request.user or not request.user.is_authenticated:
            return authentication_required()

        serializer = ISORequestSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        iso_request = serializer.save(user=request.user, status='active')

        logger.info(
            f"ISO request created. Request ID: {iso_request.id}, User ID: {request.user.id}, "
            f"IP: {get_client_ip(request)}"
        )
        return Response(ISORequestSerializer(iso_request).data, status=status.HTTP_201_CREATED)


class ISORequestDetailView(APIView):
    """
    A single ISO request.

    GET /api/iso/<id>/            (public; owners also receive responses)
    PUT/PATCH /api/iso/<id>/      (owner or admin)
    DELETE /api/iso/<id>/         (owner or admin; soft delete)
    """
    permission_classes = [AllowAny]

    def _get_request(self, pk):
        return ISORequest.objects.select_related('user').exclude(status='deleted').filter(pk=pk).first()

    def get(self, request, pk, *args, **kwargs):
        iso_request = self._get_request(pk)
        if iso_request is None:
            return Response({'error': 'ISO request not found'}, status=status.HTTP_404_NOT_FOUND)

        ISORequest.objects.filter(pk=iso_request.pk).update(view_count=F('view_count') + 1)
        iso_request.view_count += 1

        user = request.user if request.user and request.user.is_authenticated else None
        is_owner = user is not None and user.id == iso_request.user_id

        data = ISORequestSerializer(iso_request).data
        data['isOwner'] = is_owner
        if is_owner or (user is not None and user.is_admin()):
            responses = iso_request.responses.select_related('responder')
            data['responses'] = ISOResponseSerializer(responses, many=True).data

        return Response(data, status=status.HTTP_200_OK)

    def _get_owned_request(self, request, pk):
        iso_request = self._get_request(pk)
        if iso_request is None:
            return None, Response({'error': 'ISO request not found'}, status=status.HTTP_404_NOT_FOUND)
        if iso_request.user_id != request.user.id and not request.user.is_admin():
            logger.warning(
                f"Unauthorized ISO modification attempt. Request ID: {iso_request.id}, "
                f"User ID: {request.user.id}, IP: {get_client_ip(request)}"
            )
            return None, Response(
                {'detail': 'You do not have permission to modify this request.'},
                status=status.HTTP_403_FORBIDDEN
            )
        return iso_request, None

    def put(self, request, pk, *args, **kwargs):
        return self._update(request, pk)

    def patch(self, request, pk, *args, **kwargs):
        return self._update(request, pk)

    def _update(self, request, pk):
        if not request.user or not request.user.is_authenticated:
            return authentication_required()

        iso_request, error = self._get_owned_request(request, pk)
        if error is not None:
            return error

        serializer = ISORequestUpdateSerializer(iso_request, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        iso_request = serializer.save()
        logger.info(f"ISO request updated. Request ID: {iso_request.id}, User ID: {request.user.id}")
        return Response(ISORequestSerializer(iso_request).data, status=status.HTTP_200_OK)

    def delete(self, request, pk, *args, **kwargs):
        if not request.user or not request.user.is_authenticated:
            return authentication_required()

        iso_request, error = self._get_owned_request(request, pk)
        if error is not None:
            return error

        iso_request.status = 'deleted'
        iso_request.save(update_fields=['status', 'updated_at'])

        logger.info(f"ISO request deleted. Request ID: {iso_request.id}, User ID: {request.user.id}")
        return Response({'message': 'ISO request deleted successfully'}, status=status.HTTP_200_OK)


class ISORespondView(APIView):
    """
    Respond to an ISO request.

    POST /api/iso/<id>/respond/
    Request body: {"message": "We have two GP38-2 units available in Ohio."}

    Error responses:
    - 400: Empty message, or responding to your own request
    - 401: Missing, invalid, or expired JWT token
    - 403: The requester does not accept messages
    - 404: Request not found or deleted
    """
    permission_classes = [AllowAny]

    def post(self, request, pk, *args, **kwargs):
        if not request.user or not request.user.is_authenticated:
            return authentication_required()

        iso_request = ISORequest.objects.select_related('user').exclude(status='deleted').filter(pk=pk).first()
        if iso_request is None:
            return Response({'error': 'ISO request not found'}, status=status.HTTP_404_NOT_FOUND)

        if not iso_request.allow_messaging:
            return Response(
                {'error': 'This request is not accepting messages'},
                status=status.HTTP_403_FORBIDDEN
            )

        if iso_request.user_id == request.user.id:
            return Response(
                {'error': 'Cannot respond to your own request'},
                status=status.HTTP_400_BAD_REQUEST
            )

        serializer = ISOResponseCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        content = (
            f'[Response to ISO Request: "{iso_request.title}"]\n\n'
            f'{serializer.validated_data["message"]}'
        )
        with transaction.atomic():
            response = ISOResponse.objects.create(
                iso_request=iso_request,
                responder=request.user,
                message=content,
            )

        return Response(ISOResponseSerializer(response).data, status=status.HTTP_201_CREATED)

    def get(self, request, *args, **kwargs):
        return method_not_allowed('GET')


# ============================================================================
# Watchlist, reports and notifications
# ============================================================================

class WatchlistView(APIView):
    """
    The caller's saved listings.

    GET /api/watchlist/?page=&limit=&countOnly=true
    Response: {"items": [...], "pagination": {...}} or {"count": 3}

    POST /api/watchlist/
    Request body: {"listingId": 34, "notes": "", "notifyOnPriceChange": true, "notifyOnStatusChange": true}

    DELETE /api/watchlist/?listingId=34

    Error responses:
    - 400: Missing or invalid listing id
    - 401: Missing, invalid, or expired JWT token
    - 404: Listing not found, or not in the watchlist
    - 409: Listing already in the watchlist
    """
    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        count_only = request.query_params.get('countOnly') == 'true'
        if not request.user or not request.user.is_authenticated:
            if count_only:
                return Response({'count': 0}, status=status.HTTP_200_OK)
            return authentication_required()

        items = WatchlistItem.objects.filter(user=request.user)
        if count_only:
            return Response({'count': items.count()}, status=status.HTTP_200_OK)

        items = items.select_related('listing__seller').prefetch_related('listing__media')
        page_number = parse_positive_int(request.query_params.get('page'), 1)
        limit = parse_positive_int(request.query_params.get('limit'), 20, maximum=50)
        page, total, total_pages = paginate(items, page_number, limit)

        return Response({
            'items': WatchlistItemSerializer(page, many=True).data,
            'pagination': pagination_payload(page_number, limit, total, total_pages),
        }, status=status.HTTP_200_OK)

    def post(self, request, *args, **kwargs):
        if not request.user or not request.user.is_authenticated:
            return authentication_required()

        serializer = WatchlistAddSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        listing = Listing.objects.filter(pk=data['listingId']).first()
        if listing is None:
            return Response({'error': 'Listing not found'}, status=status.HTTP_404_NOT_FOUND)

        if WatchlistItem.objects.filter(user=request.user, listing=listing).exists():
            return Response({'error': 'Listing already in watchlist'}, status=status.HTTP_409_CONFLICT)

        try:
            with transaction.atomic():
                item = WatchlistItem.objects.create(
                    user=request.user,
                    listing=listing,
                    notes=data['notes'],
                    notify_on_price_change=data['notifyOnPriceChange'],
                    notify_on_status_change=data['notifyOnStatusChange'],
                    last_price=listing.price_amount,
                )
        except IntegrityError:
            return Response({'error': 'Listing already in watchlist'}, status=status.HTTP_409_CONFLICT)

        logger.info(f"Listing {listing.id} added to watchlist of user {request.user.id}")

        item = WatchlistItem.objects.select_related('listing__seller').get(pk=item.pk)
        return Response(WatchlistItemSerializer(item).data, status=status.HTTP_201_CREATED)

    def delete(self, request, *args, **kwargs):
        if not request.user or not request.user.is_authenticated:
            return authentication_required()

        listing_id = parse_positive_int(request.query_params.get('listingId'), None)
        if listing_id is None:
            return Response({'error': 'Valid listing ID is required'}, status=status.HTTP_400_BAD_REQUEST)

        item = WatchlistItem.objects.filter(user=request.user, listing_id=listing_id).first()
        if item is None:
            return Response({'error': 'Item not found in watchlist'}, status=status.HTTP_404_NOT_FOUND)

        item.delete()
        logger.info(f"Listing {listing_id} removed from watchlist of user {request.user.id}")
        return Response({'message': 'Removed from watchlist'}, status=status.HTTP_200_OK)


class ListingReportView(APIView):
    """
    Report a suspicious listing.

    POST /api/listings/<id or slug>/report/
    Request body: {"reason": "scam", "description": "...", "evidence": ["https://..."]}
    Response: {"reportId": 7, "listingId": 34, "reason": "scam", "status": "pending", "totalReports": 2}

    GET /api/listings/<id or slug>/report/
    Response: {"hasReported": false}

    Reporters need a verified email and an account at least a day old.

    Error responses:
    - 400: Invalid reason or description, or reporting your own listing
    - 401: Missing, invalid, or expired JWT token
    - 403: Email not verified, or account too new
    - 404: Listing not found
    - 409: Already reported by this user
    """
    permission_classes = [AllowAny]

    def get_throttles(self):
        if self.request.method == 'POST':
            self.throttle_scope = 'report'
            return [ScopedRateThrottle()]
        return super().get_throttles()

    def get(self, request, identifier, *args, **kwargs):
        if not request.user or not request.user.is_authenticated:
            return Response({'hasReported': False}, status=status.HTTP_200_OK)

        listing = get_listing_by_identifier(identifier)
        if listing is None:
            return Response({'error': 'Listing not found'}, status=status.HTTP_404_NOT_FOUND)

        has_reported = ListingReport.objects.filter(listing=listing, reporter=request.user).exists()
        return Response({'hasReported': has_reported}, status=status.HTTP_200_OK)

    def post(self, request, identifier, *args, **kwargs):
        if not request.user or not request.user.is_authenticated:
            return Response(
                {'detail': 'Authentication required to report listings'},
                status=status.HTTP_401_UNAUTHORIZED
            )

        user = request.user
        client_ip = get_client_ip(request)

        if not user.email_verified:
            return Response(
                {'error': 'Email verification required to report listings'},
                status=status.HTTP_403_FORBIDDEN
            )

        min_age = timedelta(hours=REPORT_MIN_ACCOUNT_AGE_HOURS)
        if user.created_at and timezone.now() - user.created_at < min_age:
            logger.warning(f"Report refused for new account. User: {user.id}, IP: {client_ip}")
            return Response(
                {'error': 'Your account must be at least 24 hours old to submit reports.'},
                status=status.HTTP_403_FORBIDDEN
            )

        listing = get_listing_by_identifier(identifier)
        if listing is None:
            return Response({'error': 'Listing not found'}, status=status.HTTP_404_NOT_FOUND)

        if listing.seller_id == user.id:
            return Response(
                {'error': 'Cannot report your own listing'},
                status=status.HTTP_400_BAD_REQUEST
            )

        if ListingReport.objects.filter(listing=listing, reporter=user).exists():
            return Response(
                {'error': 'You have already reported this listing'},
                status=status.HTTP_409_CONFLICT
            )

        serializer = ListingReportCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        try:
            with transaction.atomic():
                report = ListingReport.objects.create(
                    listing=listing,
                    reporter=user,
                    reason=data['reason'],
                    description=data['description'],
                    evidence=data['evidence'],
                )
        except IntegrityError:
            return Response(
                {'error': 'You have already reported this listing'},
                status=status.HTTP_409_CONFLICT
            )

        logger.info(
            f"Listing reported. Report: {report.id}, Listing ID: {listing.id}, "
            f"Reason: {report.reason}, Reporter: {user.id}, IP: {client_ip}"
        )

        return Response({
            'reportId': report.id,
            'listingId': listing.id,
            'reason': report.reason,
            'status': report.status,
            'totalReports': ListingReport.objects.filter(listing=listing).count(),
        }, status=status.HTTP_201_CREATED)


class NotificationListView(APIView):
    """
    The caller's notifications.

    GET /api/notifications/?unreadOnly=true&type=&page=&limit=&countOnly=true
    Response: {"notifications": [...], "unreadCount": 2, "pagination": {...}}
    or, with countOnly, {"count": 5, "unreadCount": 2}

    PUT/PATCH /api/notifications/
    Request body: {"notificationIds": [1, 2]} or {"markAllRead": true}

    DELETE /api/notifications/?id=3 or ?all=true

    Error responses:
    - 400: Neither ids nor markAllRead given, or no valid id to delete
    - 401: Missing, invalid, or expired JWT token
    - 404: Notification not found
    """
    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        count_only = request.query_params.get('countOnly') == 'true'
        if not request.user or not request.user.is_authenticated:
            if count_only:
                return Response({'count': 0, 'unreadCount': 0}, status=status.HTTP_200_OK)
            return authentication_required()

        user_notifications = Notification.objects.filter(user=request.user)
        unread_count = user_notifications.filter(is_read=False).count()

        notifications = user_notifications
        if request.query_params.get('unreadOnly') == 'true':
            notifications = notifications.filter(is_read=False)
        notification_type = request.query_params.get('type')
        if notification_type:
            notifications = notifications.filter(notification_type=notification_type)

        if count_only:
            return Response(
                {'count': notifications.count(), 'unreadCount': unread_count},
                status=status.HTTP_200_OK
            )

        page_number = parse_positive_int(request.query_params.get('page'), 1)
        limit = parse_positive_int(request.query_params.get('limit'), 20, maximum=50)
        items, total, total_pages = paginate(notifications, page_number, limit)

        return Response({
            'notifications': NotificationSerializer(items, many=True).data,
            'unreadCount': unread_count,
            'pagination': pagination_payload(page_number, limit, total, total_pages),
        }, status=status.HTTP_200_OK)

    def put(self, request, *args, **kwargs):
        return self._mark_read(request)

    def patch(self, request, *args, **kwargs):
        return self._mark_read(request)

    def _mark_read(self, request):
        if not request.user or not request.user.is_authenticated:
            return authentication_required()

        serializer = NotificationUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        unread = Notification.objects.filter(user=request.user, is_read=False)
        if not serializer.validated_data['markAllRead']:
            unread = unread.filter(pk__in=serializer.validated_data['notificationIds'])
        updated = unread.update(is_read=True, read_at=timezone.now())

        logger.info(f"Marked {updated} notifications read for user {request.user.id}")
        return Response(
            {'message': f'{updated} notification(s) marked as read', 'updated': updated},
            status=status.HTTP_200_OK
        )

    def delete(self, request, *args, **kwargs):
        if not request.user or not request.user.is_authenticated:
            return authentication_required()

        if request.query_params.get('all') == 'true':
            deleted, _details = Notification.objects.filter(user=request.user).delete()
            logger.info(f"Deleted {deleted} notifications for user {request.user.id}")
            return Response({'message': 'All notifications deleted'}, status=status.HTTP_200_OK)

        notification_id = parse_positive_int(request.query_params.get('id'), None)
        if notification_id is None:
            return Response(
                {'error': 'Valid notification ID is required'},
                status=status.HTTP_400_BAD_REQUEST
            )

        deleted, _details = Notification.objects.filter(pk=notification_id, user=request.user).delete()
        if not deleted:
            return Response({'error': 'Notification not found'}, status=status.HTTP_404_NOT_FOUND)

        return Response({'message': 'Notification deleted'}, status=status.HTTP_200_OK)


# ============================================================================
# Contractors
# ============================================================================

def visible_contractors(now=None):
    """
    Contractor profiles that pass the search visibility gate, best tier first.

    The database narrows the candidates; ``is_visible_in_search`` settles
    the expiry rules.
    """
    now = now or timezone.now()
    candidates = (
        ContractorProfile.objects
        .filter(
            is_active=True,
            verification_status='verified',
            visibility_subscription_status='active',
        )
        .exclude(visibility_tier='none')
        .select_related('user')
    )
    profiles = [p for p in candidates if p.is_visible_in_search(now)]
    profiles.sort(key=lambda p: (-VISIBILITY_TIER_BOOST.get(p.visibility_tier, 0), p.business_name.lower()))
    return profiles


class ContractorDirectoryView(APIView):
    """
    Public contractor directory.

    GET /api/contractors/?type=&state=&page=&limit=
    Only verified contractors with an active visibility subscription are
    listed, priority tier first, then featured, then verified.
    """
    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        params = request.query_params
        profiles = visible_contractors()

        contractor_type = params.get('type')
        if contractor_type:
            profiles = [p for p in profiles if contractor_type in p.contractor_types]

        state = params.get('state')
        if state:
            profiles = [p for p in profiles if p.state.lower() == state.lower()]

        page_number = parse_positive_int(params.get('page'), 1)
        limit = parse_positive_int(params.get('limit'), 20, maximum=50)
        items, total, total_pages = paginate(profiles, page_number, limit)

        return Response({
            'contractors': ContractorSummarySerializer(items, many=True).data,
            'pagination': pagination_payload(page_number, limit, total, total_pages),
        }, status=status.HTTP_200_OK)


class ContractorDetailView(APIView):
    """
    GET /api/contractors/<id>/

    Hidden profiles are only shown to their owner and to admins.
    """
    permission_classes = [AllowAny]

    def get(self, request, pk, *args, **kwargs):
        profile = ContractorProfile.objects.filter(pk=pk).first()
        user = request.user if request.user and request.user.is_authenticated else None
        privileged = user is not None and profile is not None and (
            profile.user_id == user.id or user.is_admin()
        )

        if profile is None or not (privileged or (profile.is_active and profile.is_visible_in_search())):
            return Response({'error': 'Contractor not found'}, status=status.HTTP_404_NOT_FOUND)

        return Response(ContractorProfileSerializer(profile).data, status=status.HTTP_200_OK)


class ContractorOwnProfileView(APIView):
    """
    The authenticated user's contractor profile.

    GET /api/contractors/profile/
    PUT/PATCH /api/contractors/profile/ creates the profile on first save
    (201) and updates it afterwards (200).
    """
    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        if not request.user or not request.user.is_authenticated:
            return authentication_required()

        profile = ContractorProfile.objects.filter(user=request.user).first()
        if profile is None:
            return Response({'detail': 'Contractor profile not found.'}, status=status.HTTP_404_NOT_FOUND)

        return Response(ContractorProfileSerializer(profile).data, status=status.HTTP_200_OK)

    def put(self, request, *args, **kwargs):
        if not request.user or not request.user.is_authenticated:
            return authentication_required()

        profile = ContractorProfile.objects.filter(user=request.user).first()
        serializer = ContractorProfileSerializer(
            profile,
            data=request.data,
            partial=profile is not None
        )
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            if profile is None:
                profile = serializer.save(user=request.user)
                response_status = status.HTTP_201_CREATED
            else:
                profile = serializer.save()
                response_status = status.HTTP_200_OK
        except DjangoValidationError as e:
            return Response(e.message_dict, status=status.HTTP_400_BAD_REQUEST)

        logger.info(
            f"Contractor profile saved. Profile ID: {profile.id}, User ID: {request.user.id}, "
            f"Completeness: {profile.profile_completeness}"
        )
        return Response(ContractorProfileSerializer(profile).data, status=response_status)

    def patch(self, request, *args, **kwargs):
        return self.put(request, *args, **kwargs)


class RelevantContractorsView(APIView):
    """
    Contractors that service a listing's equipment category.

    GET /api/contractors/relevant/?category=locomotives&limit=3
    Response: {"contractors": [...], "category": "locomotives", "relevantTypes": [...]}
    """
    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        category = request.query_params.get('category') or None
        limit = parse_positive_int(request.query_params.get('limit'), 3, maximum=5)
        relevant_types = relevant_contractor_types(category)

        profiles = [
            p for p in visible_contractors()
            if set(p.contractor_types) & set(relevant_types)
        ][:limit]

        return Response({
            'contractors': ContractorSummarySerializer(profiles, many=True).data,
            'category': category,
            'relevantTypes': relevant_types,
        }, status=status.HTTP_200_OK)


# ============================================================================
# Uploads
# ============================================================================

class UploadURLView(APIView):
    """
    Issue a pre-signed S3 URL for a direct browser upload.

    POST /api/upload/
    Request body: {
        "fileName": "gp38.jpg",
        "contentType": "image/jpeg",
        "fileSize": 123456,
        "folder": "listings",
        "subfolder": "draft-1",   # Optional
        "fileType": "image"       # Optional, 'image' or 'document'
    }

    Success response (200): {"uploadUrl": "...", "fileUrl": "...", "key": "..."}

    Error responses:
    - 400: Missing fields, invalid folder/subfolder, type or size
    - 401: Missing, invalid, or expired JWT token
    - 502: Storage could not issue the URL
    """
    permission_classes = [AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'upload'

    REQUIRED_FIELDS = ('fileName', 'contentType', 'fileSize', 'folder')

    def post(self, request, *args, **kwargs):
        if not request.user or not request.user.is_authenticated:
            return authentication_required()

        if any(not request.data.get(field) for field in self.REQUIRED_FIELDS):
            return Response(
                {'error': 'Missing required fields: fileName, contentType, fileSize, folder'},
                status=status.HTTP_400_BAD_REQUEST
            )

        serializer = UploadRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        key = build_object_key(
            data['folder'],
            request.user.id,
            data['fileName'],
            subfolder=data.get('subfolder') or None,
        )

        try:
            upload_url = presign_put(key, data['contentType'])
        except StorageError:
            return Response(
                {'error': 'Failed to generate upload URL'},
                status=status.HTTP_502_BAD_GATEWAY
            )

        logger.info(
            f"Upload URL issued. Key: {key}, Size: {data['fileSize']}, "
            f"User ID: {request.user.id}, IP: {get_client_ip(request)}"
        )
        return Response({
            'uploadUrl': upload_url,
            'fileUrl': public_file_url(key),
            'key': key,
        }, status=status.HTTP_200_OK)

    def get(self, request, *args, **kwargs):
        return method_not_allowed('GET')
