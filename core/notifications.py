"""
User notifications and transactional email.

Email delivery problems are logged and never fail the calling request.
"""

import logging
import smtplib

from django.conf import settings
from django.core.mail import send_mail

from .models import Notification

logger = logging.getLogger(__name__)


def notify(user, notification_type, title, message='', link=''):
    return Notification.objects.create(
        user=user,
        notification_type=notification_type,
        title=title[:200],
        message=message,
        link=link,
    )


def send_email(recipient, subject, body):
    """
    Send a plain-text email.

    Returns:
        bool: True if the message was handed to the backend
    """
    if not recipient:
        return False
    try:
        send_mail(
            subject,
            body,
            settings.DEFAULT_FROM_EMAIL,
            [recipient],
            fail_silently=False,
        )
        return True
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Failed to send email. Recipient: {recipient}, Subject: {subject}, Error: {str(e)}")
        return False


def inquiry_link(inquiry):
    return f'{settings.SITE_URL}/dashboard/inquiries/{inquiry.id}'


def send_new_inquiry_email(inquiry, message):
    listing = inquiry.listing
    body = (
        f"You have a new inquiry about \"{listing.title}\".\n\n"
        f"From: {inquiry.buyer.get_full_name() or inquiry.buyer.email}\n\n"
        f"{message}\n\n"
        f"Reply here: {inquiry_link(inquiry)}\n"
    )
    return send_email(inquiry.seller.email, f'New inquiry: {inquiry.subject}', body)


def send_inquiry_reply_email(inquiry, sender, recipient, message):
    body = (
        f"{sender.get_full_name() or sender.email} replied about \"{inquiry.listing.title}\".\n\n"
        f"{message}\n\n"
        f"View the conversation: {inquiry_link(inquiry)}\n"
    )
    return send_email(recipient.email, f'Re: {inquiry.subject}', body)
