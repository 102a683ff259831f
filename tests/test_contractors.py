"""
Contractor Directory Tests

Tests cover the search visibility gate, directory filters and ordering,
relevant contractors for a listing category, and the owner's profile
editor.
"""

import pytest
from datetime import timedelta
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework import status
from rest_framework_simplejwt.tokens import RefreshToken

from core.constants import relevant_contractor_types
from core.models import ContractorProfile

User = get_user_model()


@pytest.fixture
def api_client():
    """Provide API client for testing."""
    return APIClient()


@pytest.fixture
def contractor_user(db):
    return User.objects.create_user(
        username='contractor_owner',
        email='contractor_owner@example.com',
        password='ContractorPass123!',
        user_type='contractor'
    )


def make_contractor(username, business_name, tier='verified', types=None, state='TX', **overrides):
    user = User.objects.create_user(
        username=username,
        email=f'{username}@example.com',
        password='ContractorPass123!',
        user_type='contractor'
    )
    fields = {
        'user': user,
        'business_name': business_name,
        'contractor_types': types or ['railcar-repair'],
        'state': state,
        'verification_status': 'verified',
        'visibility_tier': tier,
        'visibility_subscription_status': 'active',
        'visibility_expires_at': timezone.now() + timedelta(days=30),
    }
    fields.update(overrides)
    return ContractorProfile.objects.create(**fields)


def get_auth_header(user):
    """Generate JWT authentication header for a user."""
    refresh = RefreshToken.for_user(user)
    return f'Bearer {str(refresh.access_token)}'


class ContractorProfileModelTest(TestCase):

    def setUp(self):
        self.user = User.objects.create_user(
            username='model_contractor', email='model_contractor@example.com', password='Pass12345!'
        )

    def test_requires_a_contractor_type(self):
        with self.assertRaises(ValidationError):
            ContractorProfile.objects.create(user=self.user, business_name='Empty Types', contractor_types=[])

    def test_rejects_unknown_type(self):
        with self.assertRaises(ValidationError):
            ContractorProfile.objects.create(
                user=self.user, business_name='Bad Types', contractor_types=['plumbing']
            )

    def test_completeness_is_weighted(self):
        profile = ContractorProfile.objects.create(
            user=self.user,
            business_name='Prairie Track Services',
            business_description='Track construction across the plains.',
            city='Omaha',
            contractor_types=['track-construction'],
            services=['Tie replacement'],
        )
        self.assertEqual(profile.profile_completeness, 40)

    def test_visibility_gate(self):
        now = timezone.now()
        profile = ContractorProfile(
            user=self.user,
            business_name='Gate Check',
            contractor_types=['mow'],
            verification_status='verified',
            visibility_tier='featured',
            visibility_subscription_status='active',
        )
        self.assertTrue(profile.is_visible_in_search(now))
        self.assertEqual(profile.search_rank_boost(now), 2)

        profile.visibility_expires_at = now - timedelta(minutes=1)
        self.assertFalse(profile.is_visible_in_search(now))
        self.assertEqual(profile.search_rank_boost(now), 0)

        profile.visibility_expires_at = None
        profile.verified_badge_expires_at = now - timedelta(minutes=1)
        self.assertFalse(profile.is_visible_in_search(now))

        profile.verified_badge_expires_at = None
        profile.visibility_subscription_status = 'past_due'
        self.assertFalse(profile.is_visible_in_search(now))

        profile.visibility_subscription_status = 'active'
        profile.verification_status = 'pending'
        self.assertFalse(profile.is_visible_in_search(now))


# ============================================================================
# 1. DIRECTORY
# ============================================================================

@pytest.mark.django_db
class TestContractorDirectory:

    def test_orders_by_tier_then_name(self, api_client):
        make_contractor('c_verified', 'Alpha Rail', tier='verified')
        make_contractor('c_priority', 'Zeta Rail', tier='priority')
        make_contractor('c_featured', 'Beta Rail', tier='featured')

        response = api_client.get(reverse('contractor_list'))

        assert response.status_code == status.HTTP_200_OK
        names = [c['business_name'] for c in response.data['contractors']]
        assert names == ['Zeta Rail', 'Beta Rail', 'Alpha Rail']

    def test_hidden_profiles_excluded(self, api_client):
        make_contractor('c_visible', 'Visible Rail')
        make_contractor('c_unverified', 'Pending Rail', verification_status='pending')
        make_contractor('c_expired', 'Lapsed Rail', visibility_expires_at=timezone.now() - timedelta(days=1))
        make_contractor('c_no_tier', 'No Tier Rail', tier='none')

        response = api_client.get(reverse('contractor_list'))

        assert [c['business_name'] for c in response.data['contractors']] == ['Visible Rail']
        assert response.data['pagination']['total'] == 1

    def test_type_and_state_filters(self, api_client):
        make_contractor('c_tx', 'Texas Track', types=['track-construction'], state='TX')
        make_contractor('c_oh', 'Ohio Track', types=['track-construction'], state='OH')
        make_contractor('c_repair', 'Ohio Repair', types=['railcar-repair'], state='OH')

        response = api_client.get(reverse('contractor_list'), {'type': 'track-construction', 'state': 'oh'})

        assert [c['business_name'] for c in response.data['contractors']] == ['Ohio Track']

    def test_detail_hidden_from_public(self, api_client):
        profile = make_contractor('c_hidden', 'Hidden Rail', verification_status='pending')

        response = api_client.get(reverse('contractor_detail', args=[profile.id]))

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_owner_sees_hidden_detail(self, api_client):
        profile = make_contractor('c_hidden_owner', 'Hidden Rail', verification_status='pending')
        api_client.credentials(HTTP_AUTHORIZATION=get_auth_header(profile.user))

        response = api_client.get(reverse('contractor_detail', args=[profile.id]))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['is_visible'] is False


# ============================================================================
# 2. RELEVANT CONTRACTORS
# ============================================================================

@pytest.mark.django_db
class TestRelevantContractors:

    def test_category_mapping(self):
        assert 'locomotive-service' in relevant_contractor_types('locomotives')
        assert relevant_contractor_types('unknown') == relevant_contractor_types(None)
        assert 'emergency-response' in relevant_contractor_types(None)

    def test_matches_category_types(self, api_client):
        make_contractor('c_loco', 'Loco Shop', types=['locomotive-service'])
        make_contractor('c_track', 'Track Gang', types=['track-construction'])

        response = api_client.get(reverse('contractor_relevant'), {'category': 'locomotives'})

        assert response.status_code == status.HTTP_200_OK
        assert [c['business_name'] for c in response.data['contractors']] == ['Loco Shop']
        assert response.data['category'] == 'locomotives'
        assert 'locomotive-service' in response.data['relevantTypes']

    def test_limit_is_capped(self, api_client):
        for i in range(7):
            make_contractor(f'c_inspect{i}', f'Inspector {i}', types=['inspection-compliance'])

        assert len(api_client.get(reverse('contractor_relevant')).data['contractors']) == 3
        response = api_client.get(reverse('contractor_relevant'), {'limit': 10})
        assert len(response.data['contractors']) == 5


# ============================================================================
# 3. OWN PROFILE
# ============================================================================

@pytest.mark.django_db
class TestContractorOwnProfile:

    def test_no_profile_yet(self, api_client, contractor_user):
        api_client.credentials(HTTP_AUTHORIZATION=get_auth_header(contractor_user))
        assert api_client.get(reverse('contractor_own_profile')).status_code == status.HTTP_404_NOT_FOUND

    def test_create_then_update(self, api_client, contractor_user):
        api_client.credentials(HTTP_AUTHORIZATION=get_auth_header(contractor_user))

        created = api_client.put(reverse('contractor_own_profile'), {
            'business_name': 'Keystone Railcar Repair',
            'contractor_types': ['railcar-repair', 'railcar-repair'],
            'city': 'Altoona',
            'state': 'PA',
            'verification_status': 'verified',
        }, format='json')

        assert created.status_code == status.HTTP_201_CREATED
        assert created.data['contractor_types'] == ['railcar-repair']
        assert created.data['verification_status'] == 'none'
        assert created.data['profile_completeness'] == 20

        updated = api_client.patch(
            reverse('contractor_own_profile'), {'business_description': 'Full-service car shop.'}, format='json'
        )

        assert updated.status_code == status.HTTP_200_OK
        assert updated.data['profile_completeness'] == 30
        assert ContractorProfile.objects.filter(user=contractor_user).count() == 1

    def test_invalid_type(self, api_client, contractor_user):
        api_client.credentials(HTTP_AUTHORIZATION=get_auth_header(contractor_user))
        response = api_client.put(reverse('contractor_own_profile'), {
            'business_name': 'Bad Types Inc', 'contractor_types': ['plumbing'],
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'contractor_types' in response.data

    def test_requires_authentication(self, api_client):
        assert api_client.get(reverse('contractor_own_profile')).status_code == status.HTTP_401_UNAUTHORIZED
