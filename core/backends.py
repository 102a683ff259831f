"""
Authentication backend that logs users in by email address.
"""

from django.contrib.auth import get_user_model
from django.contrib.auth.backends import ModelBackend

User = get_user_model()


class EmailBackend(ModelBackend):
    """
    Authenticate with ``email`` + ``password``.

    The ``username`` argument is accepted for compatibility with
    ``django.contrib.auth.authenticate`` and the admin login form.
    """

    def authenticate(self, request, username=None, password=None, **kwargs):
        email = kwargs.get('email', username)

        if email is None or password is None:
            return None

        try:
            user = User.objects.get(email__iexact=email.strip())
        except User.DoesNotExist:
            # Run the hasher anyway so missing accounts take as long as bad passwords
            User().set_password(password)
            return None

        if user.check_password(password) and self.user_can_authenticate(user):
            return user

        return None

    def get_user(self, user_id):
        try:
            return User.objects.get(pk=user_id)
        except User.DoesNotExist:
            return None
