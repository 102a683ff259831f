"""
Custom permission classes for The Rail Exchange.
"""

import hmac

from django.conf import settings
from rest_framework import permissions


class HasCronSecret(permissions.BasePermission):
    """
    Allow scheduled jobs presenting ``Authorization: Bearer <CRON_SECRET>``.

    Access is refused when no secret is configured.

    Usage:
        class MyCronView(APIView):
            authentication_classes = []
            permission_classes = [HasCronSecret]
    """

    message = 'Unauthorized'

    def has_permission(self, request, view):
        secret = getattr(settings, 'CRON_SECRET', '')
        if not secret:
            return False
        header = request.META.get('HTTP_AUTHORIZATION', '')
        return hmac.compare_digest(header.encode(), f'Bearer {secret}'.encode())
