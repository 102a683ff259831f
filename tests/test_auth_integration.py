"""
Authentication Integration Tests

Covers registration, login, token refresh with rotation, logout with
blacklisting, and the profile endpoint.
"""

import jwt
import pytest
from io import BytesIO
from PIL import Image
from django.conf import settings as django_settings
from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.urls import reverse
from rest_framework.test import APIClient
from rest_framework import status
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken

User = get_user_model()


@pytest.fixture(autouse=True)
def clear_cache(db):
    """Clear Django cache before each test to reset throttle limits."""
    from django.core.cache import cache
    cache.clear()


@pytest.fixture
def api_client():
    """Provide API client for testing."""
    return APIClient()


@pytest.fixture
def seller_user(db):
    """Create a seller user for testing."""
    return User.objects.create_user(
        username='auth_seller',
        email='auth_seller@shortline.com',
        password='TestPass123!',
        first_name='Auth',
        last_name='Seller',
        user_type='seller',
        company_name='Short Line Rail'
    )


def get_auth_header(user):
    """Generate JWT authentication header for a user."""
    refresh = RefreshToken.for_user(user)
    return f'Bearer {str(refresh.access_token)}'


def create_test_image(format='JPEG', size=(100, 100)):
    """Create an in-memory image upload."""
    image = Image.new('RGB', size, color='red')
    image_io = BytesIO()
    image.save(image_io, format=format)
    image_io.seek(0)
    return SimpleUploadedFile('avatar.jpg', image_io.read(), content_type='image/jpeg')


# ============================================================================
# 1. REGISTRATION
# ============================================================================

@pytest.mark.django_db
class TestRegistration:

    def test_register_creates_account(self, api_client):
        url = reverse('user_register')
        data = {
            'email': 'New.Buyer@Example.com',
            'password': 'Str0ngPass!word',
            'confirm_password': 'Str0ngPass!word',
            'user_type': 'buyer',
        }
        response = api_client.post(url, data, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['email'] == 'new.buyer@example.com'
        assert 'password' not in response.data
        user = User.objects.get(email='new.buyer@example.com')
        assert user.check_password('Str0ngPass!word')
        assert user.username == 'new.buyer'

    def test_register_ignores_privileged_fields(self, api_client):
        url = reverse('user_register')
        data = {
            'email': 'sneaky@example.com',
            'password': 'Str0ngPass!word',
            'confirm_password': 'Str0ngPass!word',
            'user_type': 'seller',
            'is_staff': True,
            'email_verified': True,
            'is_verified_seller': True,
        }
        response = api_client.post(url, data, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        user = User.objects.get(email='sneaky@example.com')
        assert user.is_staff is False
        assert user.email_verified is False
        assert user.is_verified_seller is False

    def test_register_duplicate_email_case_insensitive(self, api_client, seller_user):
        url = reverse('user_register')
        data = {
            'email': 'AUTH_SELLER@shortline.com',
            'password': 'Str0ngPass!word',
            'confirm_password': 'Str0ngPass!word',
            'user_type': 'buyer',
        }
        response = api_client.post(url, data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'email' in response.data

    def test_register_password_mismatch(self, api_client):
        url = reverse('user_register')
        data = {
            'email': 'mismatch@example.com',
            'password': 'Str0ngPass!word',
            'confirm_password': 'Different!word9',
            'user_type': 'buyer',
        }
        response = api_client.post(url, data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'confirm_password' in response.data

    def test_register_username_collision_gets_suffix(self, api_client, seller_user):
        url = reverse('user_register')
        data = {
            'email': 'auth_seller@otherdomain.com',
            'password': 'Str0ngPass!word',
            'confirm_password': 'Str0ngPass!word',
            'user_type': 'buyer',
        }
        response = api_client.post(url, data, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert User.objects.get(email='auth_seller@otherdomain.com').username == 'auth_seller2'


# ============================================================================
# 2. LOGIN
# ============================================================================

@pytest.mark.django_db
class TestLogin:

    def test_login_returns_token_pair(self, api_client, seller_user):
        url = reverse('user_login')
        response = api_client.post(url, {
            'email': 'auth_seller@shortline.com',
            'password': 'TestPass123!'
        }, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert 'access' in response.data
        assert 'refresh' in response.data
        assert response.data['user']['email'] == 'auth_seller@shortline.com'
        assert response.data['user']['user_type'] == 'seller'

    def test_access_token_claims(self, api_client, seller_user):
        response = api_client.post(reverse('user_login'), {
            'email': 'auth_seller@shortline.com',
            'password': 'TestPass123!'
        }, format='json')

        decoded = jwt.decode(response.data['access'], django_settings.SECRET_KEY, algorithms=['HS256'])
        assert str(decoded['user_id']) == str(seller_user.id)
        assert decoded['token_type'] == 'access'

    def test_login_email_is_case_insensitive(self, api_client, seller_user):
        url = reverse('user_login')
        response = api_client.post(url, {
            'email': 'Auth_Seller@ShortLine.com',
            'password': 'TestPass123!'
        }, format='json')

        assert response.status_code == status.HTTP_200_OK

    def test_wrong_password_and_unknown_email_look_the_same(self, api_client, seller_user):
        url = reverse('user_login')
        wrong_password = api_client.post(url, {
            'email': 'auth_seller@shortline.com',
            'password': 'WrongPass123!'
        }, format='json')
        unknown_email = api_client.post(url, {
            'email': 'nobody@shortline.com',
            'password': 'TestPass123!'
        }, format='json')

        assert wrong_password.status_code == status.HTTP_401_UNAUTHORIZED
        assert unknown_email.status_code == status.HTTP_401_UNAUTHORIZED
        assert wrong_password.data == unknown_email.data

    def test_inactive_user_cannot_login(self, api_client, seller_user):
        seller_user.is_active = False
        seller_user.save()

        url = reverse('user_login')
        response = api_client.post(url, {
            'email': 'auth_seller@shortline.com',
            'password': 'TestPass123!'
        }, format='json')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_login_get_not_allowed(self, api_client):
        response = api_client.get(reverse('user_login'))
        assert response.status_code == status.HTTP_405_METHOD_NOT_ALLOWED


# ============================================================================
# 3. TOKEN REFRESH AND LOGOUT
# ============================================================================

@pytest.mark.django_db
class TestTokenLifecycle:

    def test_refresh_rotates_and_blacklists_old_token(self, api_client, seller_user):
        refresh = RefreshToken.for_user(seller_user)
        url = reverse('token_refresh')

        response = api_client.post(url, {'refresh': str(refresh)}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert 'access' in response.data
        assert response.data['refresh'] != str(refresh)

        reuse = api_client.post(url, {'refresh': str(refresh)}, format='json')
        assert reuse.status_code == status.HTTP_401_UNAUTHORIZED

    def test_refresh_with_garbage_token(self, api_client):
        response = api_client.post(reverse('token_refresh'), {'refresh': 'not-a-token'}, format='json')
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_refresh_missing_field(self, api_client):
        response = api_client.post(reverse('token_refresh'), {}, format='json')
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_logout_blacklists_refresh_token(self, api_client, seller_user):
        refresh = RefreshToken.for_user(seller_user)

        response = api_client.post(reverse('user_logout'), {'refresh': str(refresh)}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert BlacklistedToken.objects.filter(token__jti=refresh['jti']).exists()

        after = api_client.post(reverse('token_refresh'), {'refresh': str(refresh)}, format='json')
        assert after.status_code == status.HTTP_401_UNAUTHORIZED


# ============================================================================
# 4. PROFILE
# ============================================================================

@pytest.mark.django_db
class TestProfile:

    def test_profile_requires_authentication(self, api_client):
        response = api_client.get(reverse('user_profile'))
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_get_profile(self, api_client, seller_user):
        api_client.credentials(HTTP_AUTHORIZATION=get_auth_header(seller_user))
        response = api_client.get(reverse('user_profile'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['email'] == 'auth_seller@shortline.com'
        assert response.data['company_name'] == 'Short Line Rail'
        assert response.data['can_publish_listings'] is False
        assert 'password' not in response.data

    def test_patch_profile_updates_allowed_fields_only(self, api_client, seller_user):
        api_client.credentials(HTTP_AUTHORIZATION=get_auth_header(seller_user))
        response = api_client.patch(reverse('user_profile'), {
            'company_name': '<b>Mainline</b> Equipment',
            'phone_number': '(555) 123-4567',
            'email': 'hijack@example.com',
            'user_type': 'contractor',
        }, format='json')

        assert response.status_code == status.HTTP_200_OK
        seller_user.refresh_from_db()
        assert seller_user.company_name == 'Mainline Equipment'
        assert seller_user.phone_number == '(555) 123-4567'
        assert seller_user.email == 'auth_seller@shortline.com'
        assert seller_user.user_type == 'seller'

    def test_patch_profile_rejects_bad_phone(self, api_client, seller_user):
        api_client.credentials(HTTP_AUTHORIZATION=get_auth_header(seller_user))
        response = api_client.patch(reverse('user_profile'), {'phone_number': '12345'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'phone_number' in response.data

    def test_avatar_upload(self, api_client, seller_user, settings, tmp_path):
        settings.MEDIA_ROOT = tmp_path
        api_client.credentials(HTTP_AUTHORIZATION=get_auth_header(seller_user))

        response = api_client.patch(
            reverse('user_profile'), {'avatar': create_test_image()}, format='multipart'
        )

        assert response.status_code == status.HTTP_200_OK
        seller_user.refresh_from_db()
        assert seller_user.avatar.name.startswith(f'avatars/{seller_user.id}/')
        assert (tmp_path / seller_user.avatar.name).exists()

    def test_avatar_must_be_an_image(self, api_client, seller_user, settings, tmp_path):
        settings.MEDIA_ROOT = tmp_path
        api_client.credentials(HTTP_AUTHORIZATION=get_auth_header(seller_user))
        not_an_image = SimpleUploadedFile('notes.txt', b'This is not an image', content_type='text/plain')

        response = api_client.patch(reverse('user_profile'), {'avatar': not_an_image}, format='multipart')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'avatar' in response.data
