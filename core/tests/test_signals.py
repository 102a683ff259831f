"""
Tests for the signal receivers that keep denormalized counters in sync.
"""

from django.contrib.auth import get_user_model
from django.test import TestCase, TransactionTestCase

from core.models import (
    Inquiry,
    ISORequest,
    ISOResponse,
    Listing,
    ListingReport,
    Notification,
    WatchlistItem,
)
from core.signals import recalculate_active_listing_count

User = get_user_model()


def create_listing(seller, **overrides):
    fields = {
        'seller': seller,
        'title': 'Trackmobile 4650',
        'description': 'Railcar mover, rebuilt engine.',
        'category': 'maintenance-of-way',
        'condition': 'used-good',
        'status': 'active',
        'price_type': 'contact',
        'city': 'Kansas City',
        'state': 'MO',
    }
    fields.update(overrides)
    return Listing.objects.create(**fields)


class ActiveListingCountSignalTests(TransactionTestCase):
    """
    Uses TransactionTestCase so the row lock in the recount runs against
    committed data.
    """

    def setUp(self):
        self.seller = User.objects.create_user(
            username='signal_seller',
            email='signal_seller@test.com',
            password='testpass123',
            user_type='seller'
        )

    def test_count_follows_listing_lifecycle(self):
        listing = create_listing(self.seller)
        self.seller.refresh_from_db()
        self.assertEqual(self.seller.active_listing_count, 1)

        create_listing(self.seller, title='Trackmobile Titan')
        self.seller.refresh_from_db()
        self.assertEqual(self.seller.active_listing_count, 2)

        listing.status = 'sold'
        listing.save()
        self.seller.refresh_from_db()
        self.assertEqual(self.seller.active_listing_count, 1)

    def test_drafts_are_not_counted(self):
        create_listing(self.seller, status='draft')
        self.seller.refresh_from_db()
        self.assertEqual(self.seller.active_listing_count, 0)

    def test_delete_recounts(self):
        listing = create_listing(self.seller)
        listing.delete()
        self.seller.refresh_from_db()
        self.assertEqual(self.seller.active_listing_count, 0)

    def test_recount_for_missing_user(self):
        self.assertIsNone(recalculate_active_listing_count(999999))


class InquiryCountSignalTests(TestCase):

    def setUp(self):
        self.seller = User.objects.create_user(
            username='count_seller', email='count_seller@test.com', password='testpass123'
        )
        self.buyer = User.objects.create_user(
            username='count_buyer', email='count_buyer@test.com', password='testpass123'
        )
        self.listing = create_listing(self.seller)

    def test_new_thread_increments_once(self):
        inquiry = Inquiry.objects.create(
            listing=self.listing, buyer=self.buyer, seller=self.seller, subject='Question'
        )
        inquiry.subject = 'Question (edited)'
        inquiry.save()

        self.listing.refresh_from_db()
        self.assertEqual(self.listing.inquiry_count, 1)


class ISOResponseSignalTests(TestCase):

    def setUp(self):
        self.requester = User.objects.create_user(
            username='iso_signal_req', email='iso_signal_req@test.com', password='testpass123'
        )
        self.responder = User.objects.create_user(
            username='iso_signal_resp', email='iso_signal_resp@test.com', password='testpass123'
        )
        self.iso_request = ISORequest.objects.create(
            user=self.requester,
            title='Need rail anchors',
            category='track-materials',
            description='Looking for 5,000 used rail anchors.'
        )

    def test_response_counts_and_notifies(self):
        ISOResponse.objects.create(
            iso_request=self.iso_request, responder=self.responder, message='We have 8,000 in stock.'
        )
        ISOResponse.objects.create(
            iso_request=self.iso_request, responder=self.responder, message='Photos on request.'
        )

        self.iso_request.refresh_from_db()
        self.assertEqual(self.iso_request.response_count, 2)

        notifications = Notification.objects.filter(user=self.requester, notification_type='iso_response')
        self.assertEqual(notifications.count(), 2)
        self.assertEqual(notifications.first().link, f'/iso/{self.iso_request.id}')
        self.assertEqual(notifications.first().title, 'New response to "Need rail anchors"')


class WatchlistSaveCountSignalTests(TestCase):

    def setUp(self):
        seller = User.objects.create_user(
            username='watch_seller',
            email='watch_seller@test.com',
            password='testpass123',
            user_type='seller'
        )
        self.buyer = User.objects.create_user(
            username='watch_buyer',
            email='watch_buyer@test.com',
            password='testpass123'
        )
        self.listing = create_listing(seller)

    def test_add_and_remove(self):
        item = WatchlistItem.objects.create(user=self.buyer, listing=self.listing)
        self.listing.refresh_from_db()
        self.assertEqual(self.listing.save_count, 1)

        item.delete()
        self.listing.refresh_from_db()
        self.assertEqual(self.listing.save_count, 0)

    def test_remove_never_goes_negative(self):
        item = WatchlistItem.objects.create(user=self.buyer, listing=self.listing)
        Listing.objects.filter(pk=self.listing.pk).update(save_count=0)

        item.delete()

        self.listing.refresh_from_db()
        self.assertEqual(self.listing.save_count, 0)


class ListingReportFlagSignalTests(TestCase):

    def setUp(self):
        seller = User.objects.create_user(
            username='report_seller',
            email='report_seller@test.com',
            password='testpass123',
            user_type='seller'
        )
        self.listing = create_listing(seller)
        self.reporters = [
            User.objects.create_user(
                username=f'reporter{i}',
                email=f'reporter{i}@test.com',
                password='testpass123'
            )
            for i in range(6)
        ]

    def report(self, reporter):
        return ListingReport.objects.create(
            listing=self.listing,
            reporter=reporter,
            reason='scam',
            description='Asking for a wire deposit before any inspection.',
        )

    def test_flagged_at_threshold(self):
        for reporter in self.reporters[:4]:
            self.report(reporter)
        self.listing.refresh_from_db()
        self.assertFalse(self.listing.is_flagged)

        trigger = self.report(self.reporters[4])

        self.listing.refresh_from_db()
        self.assertTrue(self.listing.is_flagged)
        self.assertEqual(self.listing.flag_reason, 'Auto-flagged: 5 user reports')
        trigger.refresh_from_db()
        self.assertTrue(trigger.auto_flagged)

    def test_later_reports_do_not_retrigger(self):
        for reporter in self.reporters[:5]:
            self.report(reporter)

        late = self.report(self.reporters[5])

        late.refresh_from_db()
        self.assertFalse(late.auto_flagged)
        self.listing.refresh_from_db()
        self.assertEqual(self.listing.flag_reason, 'Auto-flagged: 5 user reports')
