"""
Checkout and Stripe Webhook Tests

Stripe is never contacted: session creation and webhook verification are
patched at the view boundary.
"""

import json
import pytest
import stripe
from types import SimpleNamespace
from unittest.mock import patch
from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework.test import APIClient
from rest_framework import status
from rest_framework_simplejwt.tokens import RefreshToken

from core.models import AddOnPurchase, Listing
from core.payments import (
    PaymentError,
    WebhookSignatureError,
    build_line_items,
    construct_webhook_event,
    create_listing_addons_session,
)

User = get_user_model()


@pytest.fixture
def api_client():
    """Provide API client for testing."""
    return APIClient()


@pytest.fixture
def seller(db):
    return User.objects.create_user(
        username='checkout_seller',
        email='checkout_seller@example.com',
        password='SellerPass123!',
        user_type='seller'
    )


@pytest.fixture
def listing(seller):
    return Listing.objects.create(
        seller=seller,
        title='Jordan Spreader',
        description='Ditching and spreading, new cutting edges.',
        category='maintenance-of-way',
        condition='used-good',
        status='active',
        price_type='contact',
        city='Cheyenne',
        state='WY'
    )


def get_auth_header(user):
    """Generate JWT authentication header for a user."""
    refresh = RefreshToken.for_user(user)
    return f'Bearer {str(refresh.access_token)}'


def fake_session(session_id='cs_test_123'):
    return SimpleNamespace(id=session_id, url=f'https://checkout.stripe.com/pay/{session_id}')


def completed_event(session_id, metadata, payment_intent='pi_test_1'):
    return {
        'type': 'checkout.session.completed',
        'data': {
            'object': {
                'id': session_id,
                'payment_intent': payment_intent,
                'metadata': metadata,
            }
        },
    }


# ============================================================================
# 1. PAYMENT HELPERS
# ============================================================================

class TestPaymentHelpers:

    def test_line_items_inline_prices(self, settings):
        settings.STRIPE_ADDON_PRICE_IDS = {}
        items = build_line_items(['featured', 'bogus'])

        assert len(items) == 1
        assert items[0]['price_data']['unit_amount'] == 2500
        assert items[0]['price_data']['product_data']['name'] == 'Featured Listing (30 days)'

    def test_line_items_use_configured_price_ids(self, settings):
        settings.STRIPE_ADDON_PRICE_IDS = {'elite': 'price_elite'}
        assert build_line_items(['elite']) == [{'price': 'price_elite', 'quantity': 1}]

    def test_webhook_without_secret_is_rejected(self, settings):
        settings.STRIPE_WEBHOOK_SECRET = ''
        with pytest.raises(WebhookSignatureError):
            construct_webhook_event(b'{}', 'sig')

    def test_bad_signature_is_rejected(self, settings):
        settings.STRIPE_WEBHOOK_SECRET = 'whsec_test'
        with pytest.raises(WebhookSignatureError):
            construct_webhook_event(b'{}', 't=1,v1=deadbeef')

    @pytest.mark.django_db
    def test_stripe_errors_become_payment_errors(self, seller, listing):
        with patch('core.payments.stripe.checkout.Session.create', side_effect=stripe.StripeError('declined')):
            with pytest.raises(PaymentError):
                create_listing_addons_session(listing, seller, ['featured'], 'https://a.test', 'https://b.test')


# ============================================================================
# 2. CHECKOUT ENDPOINT
# ============================================================================

@pytest.mark.django_db
class TestCheckout:

    def test_requires_authentication(self, api_client, listing):
        response = api_client.post(
            reverse('checkout_listing_addons'), {'listingId': listing.id, 'addons': ['featured']}, format='json'
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_creates_session_and_pending_purchases(self, api_client, seller, listing, settings):
        settings.SITE_URL = 'https://therailexchange.test'
        api_client.credentials(HTTP_AUTHORIZATION=get_auth_header(seller))

        with patch('core.views.create_listing_addons_session', return_value=fake_session()) as create:
            response = api_client.post(
                reverse('checkout_listing_addons'),
                {'listingId': listing.id, 'addons': ['featured', 'spec_sheet', 'featured', 'bogus']},
                format='json'
            )

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {
            'url': 'https://checkout.stripe.com/pay/cs_test_123',
            'sessionId': 'cs_test_123',
        }
        args = create.call_args[0]
        assert args[2] == ['featured', 'spec_sheet']
        assert args[3] == f'https://therailexchange.test/listings/{listing.slug}?addons=success'
        assert args[4] == f'https://therailexchange.test/listings/{listing.slug}?addons=cancelled'

        purchases = AddOnPurchase.objects.filter(stripe_session_id='cs_test_123')
        assert sorted(p.addon_type for p in purchases) == ['featured', 'spec_sheet']
        assert all(p.status == 'pending' and p.listing_id is None for p in purchases)

    def test_missing_fields(self, api_client, seller):
        api_client.credentials(HTTP_AUTHORIZATION=get_auth_header(seller))
        response = api_client.post(reverse('checkout_listing_addons'), {'addons': ['featured']}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['error'] == 'Missing required fields'

    def test_no_valid_addons(self, api_client, seller, listing):
        api_client.credentials(HTTP_AUTHORIZATION=get_auth_header(seller))
        response = api_client.post(
            reverse('checkout_listing_addons'), {'listingId': listing.id, 'addons': ['bogus']}, format='json'
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['error'] == 'No valid add-ons selected'

    def test_not_owner(self, api_client, listing, db):
        stranger = User.objects.create_user(
            username='stranger', email='stranger@example.com', password='Pass12345!', user_type='buyer'
        )
        api_client.credentials(HTTP_AUTHORIZATION=get_auth_header(stranger))
        response = api_client.post(
            reverse('checkout_listing_addons'), {'listingId': listing.id, 'addons': ['featured']}, format='json'
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_unknown_listing(self, api_client, seller):
        api_client.credentials(HTTP_AUTHORIZATION=get_auth_header(seller))
        response = api_client.post(
            reverse('checkout_listing_addons'), {'listingId': 9999, 'addons': ['featured']}, format='json'
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_payment_failure_keeps_listing(self, api_client, seller, listing):
        api_client.credentials(HTTP_AUTHORIZATION=get_auth_header(seller))

        with patch('core.views.create_listing_addons_session', side_effect=PaymentError('down')):
            response = api_client.post(
                reverse('checkout_listing_addons'),
                {'listingId': listing.id, 'addons': ['featured']},
                format='json'
            )

        assert response.status_code == status.HTTP_502_BAD_GATEWAY
        assert response.data['listingPublished'] is True
        assert response.data['listingUrl'] == f'/listings/{listing.slug}'
        assert Listing.objects.filter(pk=listing.pk, status='active').exists()
        assert not AddOnPurchase.objects.exists()


# ============================================================================
# 3. WEBHOOK
# ============================================================================

@pytest.mark.django_db
class TestStripeWebhook:

    def post_event(self, api_client, event):
        with patch('core.views.construct_webhook_event', return_value=event):
            return api_client.post(
                reverse('stripe_webhook'),
                data=json.dumps({'id': 'evt_1'}),
                content_type='application/json',
                HTTP_STRIPE_SIGNATURE='t=1,v1=sig'
            )

    def test_invalid_signature(self, api_client):
        with patch('core.views.construct_webhook_event', side_effect=WebhookSignatureError('bad')):
            response = api_client.post(
                reverse('stripe_webhook'), data='{}', content_type='application/json'
            )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_completed_checkout_activates_and_assigns(self, api_client, seller, listing):
        for addon_type in ('premium', 'spec_sheet'):
            AddOnPurchase.objects.create(
                user=seller, addon_type=addon_type, status='pending', stripe_session_id='cs_live_1'
            )
        metadata = {
            'type': 'listing_addons',
            'listingId': str(listing.id),
            'userId': str(seller.id),
            'addons': json.dumps(['premium', 'spec_sheet']),
        }

        response = self.post_event(api_client, completed_event('cs_live_1', metadata))

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {'received': True}
        for purchase in AddOnPurchase.objects.filter(stripe_session_id='cs_live_1'):
            assert purchase.status == 'active'
            assert purchase.listing_id == listing.id
            assert purchase.stripe_payment_id == 'pi_test_1'
        listing.refresh_from_db()
        assert listing.premium_active and listing.featured_active
        assert listing.spec_sheet_generated

    def test_redelivery_is_harmless(self, api_client, seller, listing):
        AddOnPurchase.objects.create(
            user=seller, addon_type='featured', status='pending', stripe_session_id='cs_live_2'
        )
        metadata = {'type': 'listing_addons', 'listingId': str(listing.id), 'userId': str(seller.id),
                    'addons': json.dumps(['featured'])}

        self.post_event(api_client, completed_event('cs_live_2', metadata))
        first = AddOnPurchase.objects.get(stripe_session_id='cs_live_2')
        self.post_event(api_client, completed_event('cs_live_2', metadata))

        assert AddOnPurchase.objects.filter(stripe_session_id='cs_live_2').count() == 1
        assert AddOnPurchase.objects.get(pk=first.pk).expires_at == first.expires_at

    def test_missing_purchase_records_are_rebuilt(self, api_client, seller, listing):
        metadata = {'type': 'listing_addons', 'listingId': str(listing.id), 'userId': str(seller.id),
                    'addons': json.dumps(['elite'])}

        self.post_event(api_client, completed_event('cs_external', metadata))

        purchase = AddOnPurchase.objects.get(stripe_session_id='cs_external')
        assert purchase.addon_type == 'elite'
        assert purchase.status == 'active'
        assert purchase.listing_id == listing.id

    def test_highest_tier_applied_first(self, api_client, seller, listing):
        premium = AddOnPurchase.objects.create(
            user=seller, addon_type='premium', status='pending', stripe_session_id='cs_mixed'
        )
        elite = AddOnPurchase.objects.create(
            user=seller, addon_type='elite', status='pending', stripe_session_id='cs_mixed'
        )
        metadata = {'type': 'listing_addons', 'listingId': str(listing.id), 'userId': str(seller.id),
                    'addons': json.dumps(['premium', 'elite'])}

        self.post_event(api_client, completed_event('cs_mixed', metadata))

        elite.refresh_from_db()
        premium.refresh_from_db()
        assert elite.status == 'active'
        assert elite.listing_id == listing.id
        assert premium.status == 'active'
        assert premium.listing_id is None
        listing.refresh_from_db()
        assert listing.elite_active and listing.premium_active and listing.featured_active
        assert listing.premium_expires_at == elite.expires_at

    def test_other_events_are_acknowledged(self, api_client):
        response = self.post_event(api_client, {'type': 'invoice.paid', 'data': {'object': {}}})
        assert response.status_code == status.HTTP_200_OK
        assert not AddOnPurchase.objects.exists()
