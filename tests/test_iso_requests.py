"""
ISO (In Search Of) Request Tests
"""

import pytest
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient
from rest_framework import status
from rest_framework_simplejwt.tokens import RefreshToken

from core.models import ISORequest, ISOResponse, Notification

User = get_user_model()


@pytest.fixture
def api_client():
    """Provide API client for testing."""
    return APIClient()


@pytest.fixture
def requester(db):
    return User.objects.create_user(
        username='iso_requester',
        email='iso_requester@example.com',
        password='RequesterPass123!',
        user_type='buyer'
    )


@pytest.fixture
def responder(db):
    return User.objects.create_user(
        username='iso_responder',
        email='iso_responder@example.com',
        password='ResponderPass123!',
        user_type='seller'
    )


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(
        username='iso_admin',
        email='iso_admin@example.com',
        password='AdminPass123!',
        is_staff=True
    )


@pytest.fixture
def iso_request(requester):
    return ISORequest.objects.create(
        user=requester,
        title='Wanted: two GP38-2 units',
        category='locomotives',
        description='Looking for two running GP38-2 units for switching service.',
        budget_min='150000.00',
        budget_max='400000.00',
        budget_type='range',
        state='OH'
    )


def get_auth_header(user):
    """Generate JWT authentication header for a user."""
    refresh = RefreshToken.for_user(user)
    return f'Bearer {str(refresh.access_token)}'


class ISORequestModelTest(TestCase):

    def setUp(self):
        self.user = User.objects.create_user(
            username='iso_model', email='iso_model@example.com', password='ModelPass123!'
        )

    def test_short_title_rejected(self):
        with self.assertRaises(ValidationError):
            ISORequest.objects.create(
                user=self.user, title='GP', category='locomotives',
                description='Needs a locomotive for yard work.'
            )

    def test_budget_range_checked(self):
        with self.assertRaises(ValidationError):
            ISORequest.objects.create(
                user=self.user, title='Tie plates wanted', category='track-materials',
                description='Any quantity of 7x14 tie plates.', budget_min=500, budget_max=100
            )

    def test_defaults(self):
        iso_request = ISORequest.objects.create(
            user=self.user, title='Tie plates wanted', category='track-materials',
            description='Any quantity of 7x14 tie plates.'
        )
        self.assertEqual(iso_request.status, 'active')
        self.assertTrue(iso_request.allow_messaging)
        self.assertEqual(iso_request.budget_type, 'negotiable')


# ============================================================================
# 1. BROWSING AND CREATING
# ============================================================================

@pytest.mark.django_db
class TestISORequestList:

    def test_public_list_shows_active(self, api_client, iso_request, requester):
        ISORequest.objects.create(
            user=requester, title='Closed request', category='other',
            description='This one is no longer needed.', status='closed'
        )

        response = api_client.get(reverse('iso_list'))

        assert response.status_code == status.HTTP_200_OK
        assert [r['id'] for r in response.data['requests']] == [iso_request.id]
        assert response.data['pagination']['total'] == 1
        assert response.data['pagination']['hasMore'] is False

    def test_all_excludes_deleted(self, api_client, iso_request, requester):
        ISORequest.objects.create(
            user=requester, title='Closed request', category='other',
            description='This one is no longer needed.', status='closed'
        )
        ISORequest.objects.create(
            user=requester, title='Deleted request', category='other',
            description='This one was removed by its owner.', status='deleted'
        )

        response = api_client.get(reverse('iso_list'), {'status': 'all'})

        assert response.data['pagination']['total'] == 2

    def test_category_filter(self, api_client, iso_request):
        assert api_client.get(reverse('iso_list'), {'category': 'railcars'}).data['requests'] == []
        assert len(api_client.get(reverse('iso_list'), {'category': 'locomotives'}).data['requests']) == 1

    def test_create(self, api_client, requester):
        api_client.credentials(HTTP_AUTHORIZATION=get_auth_header(requester))
        response = api_client.post(reverse('iso_list'), {
            'title': 'Need 136RE rail',
            'category': 'track-materials',
            'description': 'About two miles of relay-grade 136RE rail.',
            'status': 'closed',
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['status'] == 'active'
        assert response.data['user']['id'] == requester.id

    def test_create_requires_authentication(self, api_client):
        response = api_client.post(reverse('iso_list'), {
            'title': 'Need 136RE rail', 'category': 'track-materials',
            'description': 'About two miles of relay-grade 136RE rail.',
        }, format='json')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_create_validation(self, api_client, requester):
        api_client.credentials(HTTP_AUTHORIZATION=get_auth_header(requester))
        response = api_client.post(reverse('iso_list'), {
            'title': 'Rail', 'category': 'track-materials', 'description': 'short',
            'budget_min': '900', 'budget_max': '100',
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'title' in response.data
        assert 'description' in response.data


# ============================================================================
# 2. DETAIL, UPDATE AND DELETE
# ============================================================================

@pytest.mark.django_db
class TestISORequestDetail:

    def test_view_counts_and_hides_responses_from_public(self, api_client, iso_request, responder):
        ISOResponse.objects.create(iso_request=iso_request, responder=responder, message='We have one.')

        response = api_client.get(reverse('iso_detail', args=[iso_request.id]))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['view_count'] == 1
        assert response.data['isOwner'] is False
        assert 'responses' not in response.data

    def test_owner_sees_responses(self, api_client, iso_request, requester, responder):
        ISOResponse.objects.create(iso_request=iso_request, responder=responder, message='We have one.')
        api_client.credentials(HTTP_AUTHORIZATION=get_auth_header(requester))

        response = api_client.get(reverse('iso_detail', args=[iso_request.id]))

        assert response.data['isOwner'] is True
        assert len(response.data['responses']) == 1

    def test_owner_updates_status(self, api_client, iso_request, requester):
        api_client.credentials(HTTP_AUTHORIZATION=get_auth_header(requester))
        response = api_client.patch(reverse('iso_detail', args=[iso_request.id]), {'status': 'fulfilled'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == 'fulfilled'

    def test_owner_cannot_set_deleted_through_update(self, api_client, iso_request, requester):
        api_client.credentials(HTTP_AUTHORIZATION=get_auth_header(requester))
        response = api_client.patch(reverse('iso_detail', args=[iso_request.id]), {'status': 'deleted'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_stranger_cannot_update(self, api_client, iso_request, responder):
        api_client.credentials(HTTP_AUTHORIZATION=get_auth_header(responder))
        response = api_client.patch(reverse('iso_detail', args=[iso_request.id]), {'title': 'Hijacked title'}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_admin_can_update(self, api_client, iso_request, admin_user):
        api_client.credentials(HTTP_AUTHORIZATION=get_auth_header(admin_user))
        response = api_client.patch(reverse('iso_detail', args=[iso_request.id]), {'status': 'closed'}, format='json')

        assert response.status_code == status.HTTP_200_OK

    def test_delete_is_soft(self, api_client, iso_request, requester):
        api_client.credentials(HTTP_AUTHORIZATION=get_auth_header(requester))
        response = api_client.delete(reverse('iso_detail', args=[iso_request.id]))

        assert response.status_code == status.HTTP_200_OK
        assert ISORequest.objects.get(pk=iso_request.pk).status == 'deleted'
        assert api_client.get(reverse('iso_detail', args=[iso_request.id])).status_code == status.HTTP_404_NOT_FOUND


# ============================================================================
# 3. RESPONDING
# ============================================================================

@pytest.mark.django_db
class TestISORespond:

    def test_respond(self, api_client, iso_request, requester, responder):
        api_client.credentials(HTTP_AUTHORIZATION=get_auth_header(responder))
        response = api_client.post(
            reverse('iso_respond', args=[iso_request.id]),
            {'message': 'We have two GP38-2 units in Ohio.'},
            format='json'
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['message'] == (
            '[Response to ISO Request: "Wanted: two GP38-2 units"]\n\n'
            'We have two GP38-2 units in Ohio.'
        )

        iso_request.refresh_from_db()
        assert iso_request.response_count == 1

        notification = Notification.objects.get(user=requester)
        assert notification.notification_type == 'iso_response'
        assert notification.link == f'/iso/{iso_request.id}'

    def test_messaging_disabled(self, api_client, iso_request, responder):
        ISORequest.objects.filter(pk=iso_request.pk).update(allow_messaging=False)
        api_client.credentials(HTTP_AUTHORIZATION=get_auth_header(responder))

        response = api_client.post(reverse('iso_respond', args=[iso_request.id]), {'message': 'Hello'}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data['error'] == 'This request is not accepting messages'

    def test_cannot_respond_to_own_request(self, api_client, iso_request, requester):
        api_client.credentials(HTTP_AUTHORIZATION=get_auth_header(requester))
        response = api_client.post(reverse('iso_respond', args=[iso_request.id]), {'message': 'Hello'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['error'] == 'Cannot respond to your own request'

    def test_deleted_request_not_found(self, api_client, iso_request, responder):
        ISORequest.objects.filter(pk=iso_request.pk).update(status='deleted')
        api_client.credentials(HTTP_AUTHORIZATION=get_auth_header(responder))

        response = api_client.post(reverse('iso_respond', args=[iso_request.id]), {'message': 'Hello'}, format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_empty_message(self, api_client, iso_request, responder):
        api_client.credentials(HTTP_AUTHORIZATION=get_auth_header(responder))
        response = api_client.post(reverse('iso_respond', args=[iso_request.id]), {'message': ''}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert not ISOResponse.objects.exists()

    def test_requires_authentication(self, api_client, iso_request):
        response = api_client.post(reverse('iso_respond', args=[iso_request.id]), {'message': 'Hello'}, format='json')
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
