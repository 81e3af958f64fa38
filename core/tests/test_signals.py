"""
Tests for Django signals that automatically recalculate ratings.
"""

from decimal import Decimal
from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.test import TransactionTestCase
from django.utils import timezone
from core.models import Booking, Gig, Review
from core.signals import rating_stats_for

User = get_user_model()


class ReviewSignalTests(TransactionTestCase):
    """
    Test suite for review signal functionality.

    Uses TransactionTestCase so the select_for_update in the receivers runs
    against committed rows.
    """

    def setUp(self):
        """Set up test data for each test."""
        self.comedian = User.objects.create_user(
            username='comedian1',
            email='comedian1@test.com',
            password='testpass123',
            role='COMEDIAN'
        )

        self.promoter = User.objects.create_user(
            username='promoter1',
            email='promoter1@test.com',
            password='testpass123',
            role='PROMOTER'
        )

        self.gig = self.make_gig(self.promoter, 'Signal Test Gig')
        self.booking = Booking.objects.create(
            gig=self.gig,
            comedian=self.comedian,
            promoter=self.promoter,
            status='PAID'
        )

    def make_gig(self, owner, title):
        return Gig.objects.create(
            created_by=owner,
            title=title,
            description='A gig used to exercise the rating signals.',
            compensation_type='UNPAID',
            date_start=timezone.now() - timezone.timedelta(days=1),
            timezone='America/Chicago',
            city='Chicago',
            state='IL',
            is_published=True
        )

    def review(self, author, gig, rating, subject=None):
        return Review.objects.create(
            author=author,
            subject=subject or self.comedian,
            gig=gig,
            booking=self.booking,
            rating=rating,
            comment='Left after the show ended.'
        )

    def test_creating_review_updates_subject_rating(self):
        """
        Creating a review triggers post_save and updates the subject's summary.
        """
        self.comedian.refresh_from_db()
        self.assertEqual(self.comedian.rating_average, Decimal('0.00'))
        self.assertEqual(self.comedian.total_reviews, 0)

        self.review(self.promoter, self.gig, 4)

        self.comedian.refresh_from_db()
        self.assertEqual(self.comedian.rating_average, Decimal('4.00'))
        self.assertEqual(self.comedian.total_reviews, 1)

    def test_author_rating_is_untouched(self):
        self.review(self.promoter, self.gig, 2)

        self.promoter.refresh_from_db()
        self.assertEqual(self.promoter.rating_average, Decimal('0.00'))
        self.assertEqual(self.promoter.total_reviews, 0)

    def test_multiple_reviews_calculate_correct_average(self):
        """
        Mathematical accuracy test: (5 + 3 + 4) / 3 = 4.00
        """
        self.review(self.promoter, self.gig, 5)
        self.review(self.promoter, self.make_gig(self.promoter, 'Second Gig'), 3)
        self.review(self.promoter, self.make_gig(self.promoter, 'Third Gig'), 4)

        self.comedian.refresh_from_db()
        self.assertEqual(self.comedian.rating_average, Decimal('4.00'))
        self.assertEqual(self.comedian.total_reviews, 3)

    def test_average_is_rounded_to_two_places(self):
        """(5 + 4 + 4) / 3 = 4.333... -> 4.33"""
        self.review(self.promoter, self.gig, 5)
        self.review(self.promoter, self.make_gig(self.promoter, 'Second Gig'), 4)
        self.review(self.promoter, self.make_gig(self.promoter, 'Third Gig'), 4)

        self.comedian.refresh_from_db()
        self.assertEqual(self.comedian.rating_average, Decimal('4.33'))

    def test_updating_review_recalculates(self):
        review = self.review(self.promoter, self.gig, 2)

        review.rating = 5
        review.save()

        self.comedian.refresh_from_db()
        self.assertEqual(self.comedian.rating_average, Decimal('5.00'))
        self.assertEqual(self.comedian.total_reviews, 1)

    def test_deleting_last_review_resets_to_zero(self):
        review = self.review(self.promoter, self.gig, 3)

        review.delete()

        self.comedian.refresh_from_db()
        self.assertEqual(self.comedian.rating_average, Decimal('0.00'))
        self.assertEqual(self.comedian.total_reviews, 0)

    def test_duplicate_review_rolls_back_without_changing_rating(self):
        self.review(self.promoter, self.gig, 5)

        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                self.review(self.promoter, self.gig, 1)

        self.comedian.refresh_from_db()
        self.assertEqual(self.comedian.rating_average, Decimal('5.00'))
        self.assertEqual(self.comedian.total_reviews, 1)

    def test_rating_stats_for_user_without_reviews(self):
        self.assertEqual(rating_stats_for(self.promoter.id), (Decimal('0.00'), 0))
