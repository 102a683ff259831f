"""
Add-on Tests

Tests cover the pricing catalog, assigning purchases to listings, the
homepage placement order, and add-on expiry through the helper, the cron
endpoint and the management command.
"""

import pytest
from datetime import timedelta
from io import StringIO
from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.urls import reverse
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework import status
from rest_framework_simplejwt.tokens import RefreshToken

from core import pricing
from core.models import AddOnPurchase, Listing, Notification
from core.placement import assign_purchase_to_listing, expire_addons, homepage_listings

User = get_user_model()


@pytest.fixture
def api_client():
    """Provide API client for testing."""
    return APIClient()


@pytest.fixture
def seller(db):
    return User.objects.create_user(
        username='addon_seller',
        email='addon_seller@example.com',
        password='SellerPass123!',
        user_type='seller'
    )


@pytest.fixture
def other_seller(db):
    return User.objects.create_user(
        username='addon_other',
        email='addon_other@example.com',
        password='SellerPass123!',
        user_type='seller'
    )


@pytest.fixture
def listing(seller):
    return make_listing(seller, 'Trackmobile 4150')


def get_auth_header(user):
    """Generate JWT authentication header for a user."""
    refresh = RefreshToken.for_user(user)
    return f'Bearer {str(refresh.access_token)}'


def make_listing(seller, title, **kwargs):
    defaults = {
        'description': 'Railcar mover, 2,000 hours.',
        'category': 'tools-equipment',
        'condition': 'used-good',
        'status': 'active',
        'price_type': 'contact',
        'city': 'Joliet',
        'state': 'IL',
    }
    defaults.update(kwargs)
    return Listing.objects.create(seller=seller, title=title, **defaults)


def make_purchase(user, addon_type='featured', **kwargs):
    return AddOnPurchase.objects.create(user=user, addon_type=addon_type, status='active', **kwargs)


# ============================================================================
# 1. PRICING CATALOG
# ============================================================================

class TestPricing:

    def test_display_name(self):
        assert pricing.display_name('featured') == 'Featured Listing (30 days)'
        assert pricing.display_name('ai_enhancement') == 'AI Listing Enhancement'
        assert pricing.display_name('unknown') == 'unknown'

    def test_expiration_date(self):
        start = timezone.now()
        assert pricing.calculate_expiration_date('elite', start) == start + timedelta(days=30)
        assert pricing.calculate_expiration_date('spec_sheet', start) is None

    def test_remaining_time(self):
        now = timezone.now()
        assert pricing.remaining_time(None)['permanent'] is True
        assert pricing.remaining_time(now - timedelta(hours=1), now)['expired'] is True
        remaining = pricing.remaining_time(now + timedelta(days=2, hours=5, minutes=3), now)
        assert remaining == {'expired': False, 'days': 2, 'hours': 5, 'permanent': False}

    def test_ranking_addons(self):
        assert pricing.is_ranking_addon('premium')
        assert not pricing.is_ranking_addon('spec_sheet')

    @pytest.mark.django_db
    def test_catalog_endpoint(self, api_client):
        response = api_client.get(reverse('addon_catalog'))

        assert response.status_code == status.HTTP_200_OK
        types = [a['type'] for a in response.data['addons']]
        assert types == ['featured', 'premium', 'elite', 'ai_enhancement', 'spec_sheet']
        assert response.data['addons'][2]['price_display'] == '$99.00'


# ============================================================================
# 2. PURCHASES AND ASSIGNMENT
# ============================================================================

@pytest.mark.django_db
class TestAddOnAssignment:

    def test_purchase_defaults(self, seller):
        purchase = make_purchase(seller, 'premium')
        assert purchase.amount == 5000
        assert purchase.expires_at is not None

    def test_list_own_purchases(self, api_client, seller, other_seller):
        make_purchase(seller)
        make_purchase(other_seller)
        api_client.credentials(HTTP_AUTHORIZATION=get_auth_header(seller))

        response = api_client.get(reverse('addon_purchases'))

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data['purchases']) == 1
        assert response.data['purchases'][0]['addon_name'] == 'Featured Listing (30 days)'

    def test_assign_premium_enables_included_tiers(self, api_client, seller, listing):
        purchase = make_purchase(seller, 'premium')
        api_client.credentials(HTTP_AUTHORIZATION=get_auth_header(seller))

        response = api_client.post(
            reverse('addon_assign'), {'purchaseId': purchase.id, 'listingId': listing.id}, format='json'
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['listing']['badge'] == 'premium'
        listing.refresh_from_db()
        assert listing.premium_active and listing.featured_active
        assert not listing.elite_active
        assert listing.premium_expires_at == purchase.expires_at
        purchase.refresh_from_db()
        assert purchase.listing_id == listing.id

    def test_assign_spec_sheet(self, api_client, seller, listing):
        purchase = make_purchase(seller, 'spec_sheet')
        api_client.credentials(HTTP_AUTHORIZATION=get_auth_header(seller))

        api_client.post(reverse('addon_assign'), {'purchaseId': purchase.id, 'listingId': listing.id}, format='json')

        listing.refresh_from_db()
        assert listing.spec_sheet_generated is True
        assert listing.placement_badge is None

    def test_cannot_assign_someone_elses_purchase(self, api_client, seller, other_seller, listing):
        purchase = make_purchase(other_seller)
        api_client.credentials(HTTP_AUTHORIZATION=get_auth_header(seller))

        response = api_client.post(
            reverse('addon_assign'), {'purchaseId': purchase.id, 'listingId': listing.id}, format='json'
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_cannot_assign_to_someone_elses_listing(self, api_client, seller, other_seller):
        purchase = make_purchase(seller)
        foreign = make_listing(other_seller, 'Their Listing')
        api_client.credentials(HTTP_AUTHORIZATION=get_auth_header(seller))

        response = api_client.post(
            reverse('addon_assign'), {'purchaseId': purchase.id, 'listingId': foreign.id}, format='json'
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_cannot_assign_twice(self, api_client, seller, listing):
        purchase = make_purchase(seller)
        second_listing = make_listing(seller, 'Second Listing')
        api_client.credentials(HTTP_AUTHORIZATION=get_auth_header(seller))
        api_client.post(reverse('addon_assign'), {'purchaseId': purchase.id, 'listingId': listing.id}, format='json')

        response = api_client.post(
            reverse('addon_assign'), {'purchaseId': purchase.id, 'listingId': second_listing.id}, format='json'
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'already assigned' in response.data['error']

    def test_pending_purchase_cannot_be_assigned(self, api_client, seller, listing):
        purchase = AddOnPurchase.objects.create(user=seller, addon_type='featured', status='pending')
        api_client.credentials(HTTP_AUTHORIZATION=get_auth_header(seller))

        response = api_client.post(
            reverse('addon_assign'), {'purchaseId': purchase.id, 'listingId': listing.id}, format='json'
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_draft_listing_cannot_receive_addon(self, api_client, seller):
        purchase = make_purchase(seller)
        draft = make_listing(seller, 'Draft Listing', status='draft')
        api_client.credentials(HTTP_AUTHORIZATION=get_auth_header(seller))

        response = api_client.post(
            reverse('addon_assign'), {'purchaseId': purchase.id, 'listingId': draft.id}, format='json'
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_same_tier_already_active(self, api_client, seller, listing):
        Listing.objects.filter(pk=listing.pk).update(
            featured_active=True, featured_expires_at=timezone.now() + timedelta(days=3)
        )
        purchase = make_purchase(seller)
        api_client.credentials(HTTP_AUTHORIZATION=get_auth_header(seller))

        response = api_client.post(
            reverse('addon_assign'), {'purchaseId': purchase.id, 'listingId': listing.id}, format='json'
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_missing_records(self, api_client, seller, listing):
        api_client.credentials(HTTP_AUTHORIZATION=get_auth_header(seller))
        response = api_client.post(
            reverse('addon_assign'), {'purchaseId': 9999, 'listingId': listing.id}, format='json'
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND


# ============================================================================
# 3. HOMEPAGE PLACEMENT
# ============================================================================

@pytest.mark.django_db
class TestHomepagePlacement:

    def test_falls_back_to_recent_listings(self, seller):
        make_listing(seller, 'Older')
        make_listing(seller, 'Newer')
        assert [l.title for l in homepage_listings()] == ['Newer', 'Older']

    def test_tiers_fill_in_order(self, seller):
        now = timezone.now()
        future = now + timedelta(days=10)
        featured = make_listing(seller, 'Featured One')
        elite = make_listing(seller, 'Elite One')
        premium = make_listing(seller, 'Premium One')
        make_listing(seller, 'Plain One')
        Listing.objects.filter(pk=featured.pk).update(
            featured_active=True, featured_expires_at=future, featured_purchased_at=now
        )
        Listing.objects.filter(pk=premium.pk).update(
            premium_active=True, premium_expires_at=future, premium_purchased_at=now,
            featured_active=True, featured_expires_at=future, featured_purchased_at=now
        )
        Listing.objects.filter(pk=elite.pk).update(
            elite_active=True, elite_expires_at=future, elite_purchased_at=now
        )

        titles = [l.title for l in homepage_listings()]

        assert titles == ['Elite One', 'Premium One', 'Featured One']

    def test_slots_are_respected(self, seller):
        future = timezone.now() + timedelta(days=10)
        for i in range(4):
            listing = make_listing(seller, f'Featured {i}')
            Listing.objects.filter(pk=listing.pk).update(featured_active=True, featured_expires_at=future)

        assert len(homepage_listings(slots=3)) == 3

    def test_endpoint_includes_badges(self, api_client, seller):
        listing = make_listing(seller, 'Elite One')
        Listing.objects.filter(pk=listing.pk).update(
            elite_active=True, elite_expires_at=timezone.now() + timedelta(days=1)
        )

        response = api_client.get(reverse('listing_homepage'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['listings'][0]['badge'] == 'elite'


# ============================================================================
# 4. EXPIRY
# ============================================================================

@pytest.mark.django_db
class TestAddOnExpiry:

    def make_expired_assignment(self, seller, listing, addon_type='premium'):
        past = timezone.now() - timedelta(hours=1)
        purchase = make_purchase(
            seller, addon_type,
            started_at=past - timedelta(days=30),
            expires_at=past,
            listing=listing
        )
        Listing.objects.filter(pk=listing.pk).update(
            premium_active=True, premium_expires_at=past,
            featured_active=True, featured_expires_at=past
        )
        return purchase

    def test_expire_clears_listing_and_notifies(self, seller, listing):
        purchase = self.make_expired_assignment(seller, listing)

        result = expire_addons()

        assert result == {'processed': 1, 'errors': 0, 'total': 1}
        purchase.refresh_from_db()
        assert purchase.status == 'expired'
        listing.refresh_from_db()
        assert not listing.premium_active
        assert not listing.featured_active
        assert Notification.objects.filter(user=seller, notification_type='addon_expired').exists()

    def test_renewal_keeps_tier_active(self, seller, listing):
        past = timezone.now() - timedelta(hours=1)
        original = make_purchase(
            seller, 'featured',
            started_at=past - timedelta(days=30),
            expires_at=past,
            listing=listing
        )
        Listing.objects.filter(pk=listing.pk).update(featured_active=True, featured_expires_at=past)
        renewal = make_purchase(seller, 'featured')
        assign_purchase_to_listing(renewal, listing, seller)

        result = expire_addons()

        assert result['processed'] == 1
        original.refresh_from_db()
        renewal.refresh_from_db()
        assert original.status == 'expired'
        assert renewal.status == 'active'
        listing.refresh_from_db()
        assert listing.featured_active
        assert listing.featured_expires_at == renewal.expires_at

    def test_lower_tier_expiry_keeps_elite_included_tiers(self, seller, listing):
        premium = make_purchase(seller, 'premium')
        assign_purchase_to_listing(premium, listing, seller)
        elite = make_purchase(seller, 'elite')
        assign_purchase_to_listing(elite, listing, seller)
        AddOnPurchase.objects.filter(pk=premium.pk).update(expires_at=timezone.now() - timedelta(minutes=5))

        result = expire_addons()

        assert result['processed'] == 1
        premium.refresh_from_db()
        assert premium.status == 'expired'
        listing.refresh_from_db()
        assert listing.elite_active and listing.premium_active and listing.featured_active
        assert listing.premium_expires_at == elite.expires_at
        assert listing.featured_expires_at == elite.expires_at
        assert listing.placement_badge == 'elite'

    def test_elite_expiry_clears_all_tiers(self, seller, listing):
        past = timezone.now() - timedelta(hours=1)
        make_purchase(
            seller, 'elite',
            started_at=past - timedelta(days=30),
            expires_at=past,
            listing=listing
        )
        Listing.objects.filter(pk=listing.pk).update(
            elite_active=True, elite_expires_at=past,
            premium_active=True, premium_expires_at=past,
            featured_active=True, featured_expires_at=past
        )

        expire_addons()

        listing.refresh_from_db()
        assert not listing.elite_active
        assert not listing.premium_active
        assert not listing.featured_active

    def test_lapsed_flags_swept_without_purchase(self, seller, listing):
        past = timezone.now() - timedelta(hours=1)
        Listing.objects.filter(pk=listing.pk).update(featured_active=True, featured_expires_at=past)
        running = make_listing(
            seller, 'Running Premium',
            premium_active=True, premium_expires_at=timezone.now() + timedelta(days=3)
        )

        result = expire_addons()

        assert result['total'] == 0
        listing.refresh_from_db()
        running.refresh_from_db()
        assert not listing.featured_active
        assert running.premium_active

    def test_unexpired_purchase_untouched(self, seller, listing):
        purchase = make_purchase(seller)

        result = expire_addons()

        assert result['total'] == 0
        purchase.refresh_from_db()
        assert purchase.status == 'active'

    def test_dry_run_changes_nothing(self, seller, listing):
        purchase = self.make_expired_assignment(seller, listing)

        result = expire_addons(dry_run=True)

        assert result['processed'] == 1
        purchase.refresh_from_db()
        assert purchase.status == 'active'

    def test_cron_requires_secret(self, api_client, settings, seller, listing):
        settings.CRON_SECRET = 'cron-secret'
        self.make_expired_assignment(seller, listing)

        denied = api_client.get(reverse('cron_expire_addons'), HTTP_AUTHORIZATION='Bearer wrong')
        assert denied.status_code == status.HTTP_401_UNAUTHORIZED
        assert denied.data == {'error': 'Unauthorized'}

        allowed = api_client.get(reverse('cron_expire_addons'), HTTP_AUTHORIZATION='Bearer cron-secret')
        assert allowed.status_code == status.HTTP_200_OK
        assert allowed.data == {'success': True, 'processed': 1, 'errors': 0, 'total': 1}

    def test_cron_non_ascii_header_is_unauthorized(self, api_client, settings):
        settings.CRON_SECRET = 'cron-secret'

        response = api_client.get(reverse('cron_expire_addons'), HTTP_AUTHORIZATION='Bearer café')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_cron_refused_without_configured_secret(self, api_client, settings):
        settings.CRON_SECRET = ''
        response = api_client.get(reverse('cron_expire_addons'), HTTP_AUTHORIZATION='Bearer ')
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_management_command(self, seller, listing):
        purchase = self.make_expired_assignment(seller, listing)
        out = StringIO()

        call_command('expire_addons', stdout=out)

        assert 'Processed 1 of 1' in out.getvalue()
        purchase.refresh_from_db()
        assert purchase.status == 'expired'

    def test_management_command_dry_run(self, seller, listing):
        purchase = self.make_expired_assignment(seller, listing)
        out = StringIO()

        call_command('expire_addons', '--dry-run', stdout=out)

        assert 'Dry run completed' in out.getvalue()
        purchase.refresh_from_db()
        assert purchase.status == 'active'
