"""
Data model for the-funny comedy booking marketplace.
"""

from decimal import Decimal

from django.contrib.auth.models import AbstractUser
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from .validators import (
    validate_city,
    validate_currency_code,
    validate_phone_number,
    validate_profile_image,
    validate_state_code,
    validate_verification_documents,
)


def user_profile_image_upload_path(instance, filename):
    """
    Generate upload path for user profile images.

    Path format: profile_images/{user_id}/{filename}
    If user_id is not yet available (user not saved), uses 'temp' as placeholder.
    """
    user_id = instance.id if instance.id else 'temp'
    return f'profile_images/{user_id}/{filename}'


VERIFICATION_PENDING = 'PENDING'
VERIFICATION_APPROVED = 'APPROVED'
VERIFICATION_REJECTED = 'REJECTED'

VERIFICATION_STATUS_CHOICES = [
    (VERIFICATION_PENDING, 'Pending'),
    (VERIFICATION_APPROVED, 'Approved'),
    (VERIFICATION_REJECTED, 'Rejected'),
]


class User(AbstractUser):
    """
    Custom User model extending Django's AbstractUser.

    Additional fields:
    - email: Required, unique email address (stored lowercase)
    - name: Display name
    - role: One of COMEDIAN, PROMOTER, VENUE, FAN, ADMIN (fixed at registration)
    - phone_number: Optional phone number with validation
    - profile_image: Optional avatar
    - rating_average / total_reviews: Maintained from received reviews
    - created_at / updated_at: Timestamps
    """

    COMEDIAN = 'COMEDIAN'
    PROMOTER = 'PROMOTER'
    VENUE = 'VENUE'
    FAN = 'FAN'
    ADMIN = 'ADMIN'

    ROLE_CHOICES = [
        (COMEDIAN, 'Comedian'),
        (PROMOTER, 'Promoter'),
        (VENUE, 'Venue'),
        (FAN, 'Fan'),
        (ADMIN, 'Admin'),
    ]

    email = models.EmailField(
        _('email address'),
        unique=True,
        error_messages={
            'unique': _('A user with that email already exists.'),
        },
    )

    name = models.CharField(
        _('name'),
        max_length=120,
        blank=True,
        default='',
    )

    role = models.CharField(
        _('role'),
        max_length=10,
        choices=ROLE_CHOICES,
        help_text=_('Marketplace role chosen at registration.'),
    )

    phone_number = models.CharField(
        _('phone number'),
        max_length=20,
        blank=True,
        default='',
        validators=[validate_phone_number],
    )

    profile_image = models.ImageField(
        _('profile image'),
        upload_to=user_profile_image_upload_path,
        blank=True,
        null=True,
        validators=[validate_profile_image],
    )

    rating_average = models.DecimalField(
        _('rating average'),
        max_digits=3,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[
            MinValueValidator(Decimal('0.00')),
            MaxValueValidator(Decimal('5.00')),
        ],
    )

    total_reviews = models.PositiveIntegerField(
        _('total reviews'),
        default=0,
    )

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    REQUIRED_FIELDS = ['email', 'role']

    class Meta:
        verbose_name = _('user')
        verbose_name_plural = _('users')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['email'], name='core_user_email_idx'),
            models.Index(fields=['role'], name='core_user_role_idx'),
        ]

    def __str__(self):
        return self.email or self.username

    @property
    def display_name(self):
        return self.name or self.email or 'Community member'

    def is_comedian(self):
        return self.role == self.COMEDIAN

    def is_admin_role(self):
        return self.role == self.ADMIN

    @property
    def verification_status(self):
        """
        Verification status of the user's promoter or venue profile.

        Returns:
            str or None: Promoter profile status, else venue profile status,
            else None when the user has neither profile.
        """
        promoter = getattr(self, 'promoter_profile', None)
        if promoter is not None:
            return promoter.verification_status
        venue = getattr(self, 'venue_profile', None)
        if venue is not None:
            return venue.verification_status
        return None

    def clean(self):
        super().clean()

        if self.email:
            self.email = self.email.lower()

        if not self.email:
            raise ValidationError({'email': _('Email address is required.')})

        if not self.role:
            raise ValidationError({'role': _('Role is required.')})

    def save(self, *args, **kwargs):
        # Normalize email to lowercase
        if self.email:
            self.email = self.email.lower()

        # Creation skips full_clean so duplicate emails surface as IntegrityError
        if self.pk is not None:
            self.full_clean()

        super().save(*args, **kwargs)


class PromoterProfile(models.Model):
    """Promoter organisation details and verification status."""

    user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        related_name='promoter_profile',
    )
    organization = models.CharField(_('organization'), max_length=120)
    contact_name = models.CharField(_('contact name'), max_length=120)
    phone = models.CharField(
        _('phone'),
        max_length=20,
        blank=True,
        default='',
        validators=[validate_phone_number],
    )
    website = models.URLField(_('website'), blank=True, default='')
    verification_status = models.CharField(
        _('verification status'),
        max_length=10,
        choices=VERIFICATION_STATUS_CHOICES,
        default=VERIFICATION_PENDING,
    )
    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('promoter profile')
        verbose_name_plural = _('promoter profiles')

    def __str__(self):
        return f"{self.organization} ({self.verification_status})"


class VenueProfile(models.Model):
    """Venue details and verification status."""

    user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        related_name='venue_profile',
    )
    venue_name = models.CharField(_('venue name'), max_length=120)
    address1 = models.CharField(_('address line 1'), max_length=160)
    address2 = models.CharField(_('address line 2'), max_length=160, blank=True, default='')
    city = models.CharField(_('city'), max_length=80)
    state = models.CharField(_('state'), max_length=2, validators=[validate_state_code])
    postal_code = models.CharField(_('postal code'), max_length=20)
    capacity = models.PositiveIntegerField(_('capacity'), null=True, blank=True)
    contact_email = models.EmailField(_('contact email'))
    phone = models.CharField(
        _('phone'),
        max_length=20,
        blank=True,
        default='',
        validators=[validate_phone_number],
    )
    verification_status = models.CharField(
        _('verification status'),
        max_length=10,
        choices=VERIFICATION_STATUS_CHOICES,
        default=VERIFICATION_PENDING,
    )
    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('venue profile')
        verbose_name_plural = _('venue profiles')

    def __str__(self):
        return f"{self.venue_name} ({self.verification_status})"


class ComedianProfile(models.Model):
    """
    A comedian's public profile, used by the comedian search.

    Rates are whole US dollars per set. ``styles``, ``reel_urls`` and
    ``notable_clubs`` are JSON lists of strings.
    """

    CLEAN = 'CLEAN'
    PG13 = 'PG13'
    R = 'R'

    CLEAN_RATING_CHOICES = [
        (CLEAN, 'Clean'),
        (PG13, 'PG-13'),
        (R, 'R'),
    ]

    user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        related_name='comedian_profile',
    )
    stage_name = models.CharField(_('stage name'), max_length=80)
    bio = models.TextField(_('bio'), blank=True, default='')
    credits = models.CharField(_('credits'), max_length=160, blank=True, default='')
    website = models.URLField(_('website'), blank=True, default='')
    reel_url = models.URLField(_('reel URL'), blank=True, default='')
    instagram = models.CharField(_('instagram'), max_length=60, blank=True, default='')
    travel_radius_miles = models.PositiveIntegerField(_('travel radius (miles)'), null=True, blank=True)
    home_city = models.CharField(
        _('home city'),
        max_length=60,
        blank=True,
        default='',
        validators=[validate_city],
    )
    home_state = models.CharField(
        _('home state'),
        max_length=2,
        blank=True,
        default='',
        validators=[validate_state_code],
    )
    styles = models.JSONField(_('styles'), default=list, blank=True)
    clean_rating = models.CharField(
        _('clean rating'),
        max_length=5,
        choices=CLEAN_RATING_CHOICES,
        default=CLEAN,
    )
    rate_min = models.PositiveIntegerField(_('minimum rate'), null=True, blank=True)
    rate_max = models.PositiveIntegerField(_('maximum rate'), null=True, blank=True)
    reel_urls = models.JSONField(_('reel URLs'), default=list, blank=True)
    notable_clubs = models.JSONField(_('notable clubs'), default=list, blank=True)
    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('comedian profile')
        verbose_name_plural = _('comedian profiles')
        indexes = [
            models.Index(fields=['home_state', 'home_city'], name='core_comedian_home_idx'),
        ]

    def __str__(self):
        return self.stage_name

    def clean(self):
        super().clean()
        if self.rate_min is not None and self.rate_max is not None and self.rate_max < self.rate_min:
            raise ValidationError({'rate_max': _('Max rate must be greater than min rate.')})

    def has_style(self, styles):
        """True when any of ``styles`` is one of the profile's styles (case-insensitive)."""
        own = {style.lower() for style in self.styles or []}
        return any(style.lower() in own for style in styles)


# ============================================================================
# Gigs & Applications
# ============================================================================

class Gig(models.Model):
    """
    Event listing owned by its creator (promoter, venue or admin).

    ``is_published`` is gated by the creator's verification status, while
    ``status`` tracks the listing lifecycle independently of publication.
    """

    OPEN = 'OPEN'
    CLOSED = 'CLOSED'
    CANCELLED = 'CANCELLED'

    STATUS_CHOICES = [
        (OPEN, 'Open'),
        (CLOSED, 'Closed'),
        (CANCELLED, 'Cancelled'),
    ]

    COMPENSATION_CHOICES = [
        ('FLAT', 'Flat fee'),
        ('DOOR_SPLIT', 'Door split'),
        ('TIPS', 'Tips'),
        ('UNPAID', 'Unpaid'),
    ]

    created_by = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='gigs',
        help_text=_('Promoter, venue or admin who owns the listing'),
    )
    title = models.CharField(_('title'), max_length=120)
    description = models.TextField(_('description'))
    compensation_type = models.CharField(
        _('compensation type'),
        max_length=12,
        choices=COMPENSATION_CHOICES,
    )
    payout_usd = models.PositiveIntegerField(_('payout (USD)'), null=True, blank=True)
    date_start = models.DateTimeField(_('start date'))
    date_end = models.DateTimeField(_('end date'), null=True, blank=True)
    timezone = models.CharField(_('timezone'), max_length=64)
    city = models.CharField(_('city'), max_length=60, validators=[validate_city])
    state = models.CharField(_('state'), max_length=2, validators=[validate_state_code])
    min_age = models.PositiveSmallIntegerField(_('minimum age'), null=True, blank=True)
    is_published = models.BooleanField(_('published'), default=False)
    status = models.CharField(
        _('status'),
        max_length=10,
        choices=STATUS_CHOICES,
        default=OPEN,
    )
    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('gig')
        verbose_name_plural = _('gigs')
        ordering = ['date_start']
        indexes = [
            models.Index(fields=['is_published', 'date_start'], name='core_gig_published_idx'),
            models.Index(fields=['city', 'state'], name='core_gig_location_idx'),
        ]

    def __str__(self):
        return f"{self.title} ({self.city}, {self.state})"

    def clean(self):
        super().clean()
        if self.date_start and self.date_end and self.date_end < self.date_start:
            raise ValidationError({
                'date_end': _('End date must be on or after the start date.')
            })

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)

    def has_started(self, now=None):
        return self.date_start <= (now or timezone.now())


class Application(models.Model):
    """A comedian's application to a published gig."""

    SUBMITTED = 'SUBMITTED'

    STATUS_CHOICES = [
        ('SUBMITTED', 'Submitted'),
        ('SHORTLISTED', 'Shortlisted'),
        ('ACCEPTED', 'Accepted'),
        ('REJECTED', 'Rejected'),
        ('WITHDRAWN', 'Withdrawn'),
    ]

    gig = models.ForeignKey(Gig, on_delete=models.CASCADE, related_name='applications')
    comedian = models.ForeignKey(User, on_delete=models.CASCADE, related_name='applications')
    message = models.TextField(_('message'))
    status = models.CharField(
        _('status'),
        max_length=12,
        choices=STATUS_CHOICES,
        default=SUBMITTED,
    )
    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('application')
        verbose_name_plural = _('applications')
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['gig', 'comedian'],
                name='unique_application_per_gig_comedian',
            )
        ]

    def __str__(self):
        return f"Application by {self.comedian_id} to gig {self.gig_id} ({self.status})"


# ============================================================================
# Negotiation threads, messages and offers
# ============================================================================

class Thread(models.Model):
    """
    Conversation about one gig between its participants.

    ``state`` is an advisory label (INQUIRY, QUOTE, BOOKED, COMPLETED) updated
    when offers are posted or accepted; nothing is gated on it.
    """

    INQUIRY = 'INQUIRY'
    QUOTE = 'QUOTE'
    BOOKED = 'BOOKED'
    COMPLETED = 'COMPLETED'

    STATE_CHOICES = [
        (INQUIRY, 'Inquiry'),
        (QUOTE, 'Quote'),
        (BOOKED, 'Booked'),
        (COMPLETED, 'Completed'),
    ]

    gig = models.ForeignKey(Gig, on_delete=models.CASCADE, related_name='threads')
    created_by = models.ForeignKey(User, on_delete=models.CASCADE, related_name='created_threads')
    participants = models.ManyToManyField(
        User,
        through='ThreadParticipant',
        related_name='threads',
    )
    state = models.CharField(
        _('state'),
        max_length=10,
        choices=STATE_CHOICES,
        default=INQUIRY,
    )
    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('thread')
        verbose_name_plural = _('threads')
        ordering = ['-updated_at']

    def __str__(self):
        return f"Thread {self.pk} on gig {self.gig_id} ({self.state})"

    @property
    def participant_ids(self):
        """Participant user ids in join order (creator first)."""
        return list(self.memberships.order_by('position').values_list('user_id', flat=True))

    def has_participant(self, user_id):
        return self.memberships.filter(user_id=user_id).exists()

    def mark_state(self, state):
        Thread.objects.filter(pk=self.pk).update(state=state, updated_at=timezone.now())
        self.state = state


class ThreadParticipant(models.Model):
    """Ordered membership of a user in a thread."""

    thread = models.ForeignKey(Thread, on_delete=models.CASCADE, related_name='memberships')
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='thread_memberships')
    position = models.PositiveSmallIntegerField(default=0)
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['position']
        constraints = [
            models.UniqueConstraint(
                fields=['thread', 'user'],
                name='unique_thread_participant',
            )
        ]

    def __str__(self):
        return f"User {self.user_id} in thread {self.thread_id}"


class Message(models.Model):
    """A single entry in a thread: text, file, offer or system notice."""

    TEXT = 'TEXT'
    FILE = 'FILE'
    OFFER = 'OFFER'
    SYSTEM = 'SYSTEM'

    KIND_CHOICES = [
        (TEXT, 'Text'),
        (FILE, 'File'),
        (OFFER, 'Offer'),
        (SYSTEM, 'System'),
    ]

    thread = models.ForeignKey(Thread, on_delete=models.CASCADE, related_name='messages')
    sender = models.ForeignKey(User, on_delete=models.CASCADE, related_name='sent_messages')
    kind = models.CharField(_('kind'), max_length=10, choices=KIND_CHOICES, default=TEXT)
    body = models.TextField(_('body'), blank=True, default='')
    file_url = models.URLField(_('file url'), max_length=500, blank=True, default='')
    offer = models.ForeignKey(
        'Offer',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='messages',
    )
    created_at = models.DateTimeField(_('created at'), auto_now_add=True)

    class Meta:
        verbose_name = _('message')
        verbose_name_plural = _('messages')
        ordering = ['created_at', 'id']

    def __str__(self):
        return f"{self.kind} message in thread {self.thread_id}"


class Offer(models.Model):
    """
    Priced proposal exchanged in a thread.

    Amounts are positive integers in the smallest currency unit. Status starts
    PENDING; every other status is terminal.
    """

    PENDING = 'PENDING'
    ACCEPTED = 'ACCEPTED'
    DECLINED = 'DECLINED'
    WITHDRAWN = 'WITHDRAWN'
    EXPIRED = 'EXPIRED'

    STATUS_CHOICES = [
        (PENDING, 'Pending'),
        (ACCEPTED, 'Accepted'),
        (DECLINED, 'Declined'),
        (WITHDRAWN, 'Withdrawn'),
        (EXPIRED, 'Expired'),
    ]

    thread = models.ForeignKey(Thread, on_delete=models.CASCADE, related_name='offers')
    from_user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='offers_sent')
    amount = models.PositiveIntegerField(
        _('amount'),
        validators=[MinValueValidator(1, message=_('Amount must be a positive integer.'))],
        help_text=_('Amount in the smallest currency unit'),
    )
    currency = models.CharField(
        _('currency'),
        max_length=3,
        default='USD',
        validators=[validate_currency_code],
    )
    terms = models.TextField(_('terms'))
    event_date = models.DateTimeField(_('event date'))
    expires_at = models.DateTimeField(_('expires at'), null=True, blank=True)
    status = models.CharField(
        _('status'),
        max_length=10,
        choices=STATUS_CHOICES,
        default=PENDING,
    )
    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('offer')
        verbose_name_plural = _('offers')
        ordering = ['created_at', 'id']
        indexes = [
            models.Index(fields=['thread', 'status'], name='core_offer_thread_status_idx'),
        ]

    def __str__(self):
        return f"Offer {self.pk}: {self.amount} {self.currency} ({self.status})"

    def save(self, *args, **kwargs):
        if self.currency:
            self.currency = self.currency.upper()
        self.full_clean()
        super().save(*args, **kwargs)

    def is_expired(self, now=None):
        return self.expires_at is not None and self.expires_at <= (now or timezone.now())

    def transition_to(self, new_status):
        """
        Move a PENDING offer to ``new_status`` with a conditional update.

        The row is only written while its status is still PENDING, so two
        concurrent resolutions cannot both succeed.

        Returns:
            bool: True if this call performed the transition
        """
        updated = Offer.objects.filter(pk=self.pk, status=self.PENDING).update(
            status=new_status,
            updated_at=timezone.now(),
        )
        if updated:
            self.status = new_status
        return bool(updated)


# ============================================================================
# Bookings
# ============================================================================

class Booking(models.Model):
    """
    Engagement between a comedian and a promoter for a gig.

    Valid transitions:
    - PENDING -> PAID, CANCELLED
    - PAID -> COMPLETED, CANCELLED
    - COMPLETED, CANCELLED -> (terminal)
    """

    PENDING = 'PENDING'
    PAID = 'PAID'
    COMPLETED = 'COMPLETED'
    CANCELLED = 'CANCELLED'

    STATUS_CHOICES = [
        (PENDING, 'Pending'),
        (PAID, 'Paid'),
        (COMPLETED, 'Completed'),
        (CANCELLED, 'Cancelled'),
    ]

    VALID_TRANSITIONS = {
        PENDING: [PAID, CANCELLED],
        PAID: [COMPLETED, CANCELLED],
        COMPLETED: [],
        CANCELLED: [],
    }

    CANCELLATION_POLICY_CHOICES = [
        ('FLEX', 'Flexible'),
        ('STANDARD', 'Standard'),
        ('STRICT', 'Strict'),
    ]

    gig = models.ForeignKey(Gig, on_delete=models.CASCADE, related_name='bookings')
    comedian = models.ForeignKey(User, on_delete=models.CASCADE, related_name='comedian_bookings')
    promoter = models.ForeignKey(User, on_delete=models.CASCADE, related_name='promoter_bookings')
    offer = models.OneToOneField(
        Offer,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='booking',
        help_text=_('Accepted offer that produced this booking'),
    )
    status = models.CharField(
        _('status'),
        max_length=10,
        choices=STATUS_CHOICES,
        default=PENDING,
    )
    payment_intent_id = models.CharField(
        _('payment intent id'),
        max_length=64,
        unique=True,
        null=True,
        blank=True,
    )
    payout_protection = models.BooleanField(_('payout protection'), default=True)
    cancellation_policy = models.CharField(
        _('cancellation policy'),
        max_length=10,
        choices=CANCELLATION_POLICY_CHOICES,
        default='STANDARD',
    )
    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('booking')
        verbose_name_plural = _('bookings')
        ordering = ['created_at', 'id']
        indexes = [
            models.Index(fields=['comedian'], name='core_booking_comedian_idx'),
            models.Index(fields=['promoter'], name='core_booking_promoter_idx'),
            models.Index(fields=['gig', 'status'], name='core_booking_gig_status_idx'),
        ]

    def __str__(self):
        return f"Booking {self.pk} for gig {self.gig_id} ({self.status})"

    def clean(self):
        super().clean()

        if self.comedian_id and self.promoter_id and self.comedian_id == self.promoter_id:
            raise ValidationError({
                'comedian': _('Comedian and promoter must be different users.')
            })

        if self.pk is not None:
            try:
                old_status = Booking.objects.values_list('status', flat=True).get(pk=self.pk)
            except Booking.DoesNotExist:
                old_status = None
            if old_status is not None:
                is_valid, error_message = self._check_transition(old_status, self.status)
                if not is_valid:
                    raise ValidationError({'status': error_message})

    def save(self, *args, **kwargs):
        # Uniqueness is left to the database so duplicates raise IntegrityError
        self.full_clean(validate_unique=False, validate_constraints=False)
        super().save(*args, **kwargs)

    @classmethod
    def _check_transition(cls, current_status, new_status):
        if current_status == new_status:
            return True, None
        if not cls.VALID_TRANSITIONS.get(current_status):
            return False, f'Cannot modify a {current_status.lower()} booking.'
        if new_status not in cls.VALID_TRANSITIONS[current_status]:
            return False, f'Invalid status transition from {current_status} to {new_status}.'
        return True, None

    def can_transition_to(self, new_status):
        """
        Validate if booking can transition to new status.

        Returns:
            tuple: (is_valid: bool, error_message: str or None)
        """
        return self._check_transition(self.status, new_status)

    def participant_ids(self):
        return [self.comedian_id, self.promoter_id]

    def has_participant(self, user_id):
        return user_id in self.participant_ids()


# ============================================================================
# Reviews
# ============================================================================

class Review(models.Model):
    """
    Review left by one booking participant about the other, once per gig.
    """

    author = models.ForeignKey(User, on_delete=models.CASCADE, related_name='reviews_given')
    subject = models.ForeignKey(User, on_delete=models.CASCADE, related_name='reviews_received')
    gig = models.ForeignKey(Gig, on_delete=models.CASCADE, related_name='reviews')
    booking = models.ForeignKey(
        Booking,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='reviews',
    )
    rating = models.PositiveSmallIntegerField(
        _('rating'),
        validators=[
            MinValueValidator(1, message=_('Rating must be at least 1.')),
            MaxValueValidator(5, message=_('Rating must be at most 5.')),
        ],
    )
    comment = models.TextField(_('comment'))
    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('review')
        verbose_name_plural = _('reviews')
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['author', 'gig'],
                name='unique_review_per_author_gig',
            )
        ]
        indexes = [
            models.Index(fields=['subject'], name='core_review_subject_idx'),
        ]

    def __str__(self):
        return f"Review by {self.author_id} for {self.subject_id} - {self.rating}★"

    def clean(self):
        super().clean()

        if self.author_id and self.subject_id and self.author_id == self.subject_id:
            raise ValidationError({'subject': _('You cannot review yourself.')})

        if not self.comment or len(self.comment.strip()) < 10:
            raise ValidationError({'comment': _('Comment must be at least 10 characters.')})

    def save(self, *args, **kwargs):
        # Field checks only; the (author, gig) constraint raises IntegrityError
        if not self.pk:
            self.clean()
        super().save(*args, **kwargs)


# ============================================================================
# Verification
# ============================================================================

class VerificationRequest(models.Model):
    """Request by a promoter or venue to be verified by an admin."""

    ROLE_CHOICES = [
        (User.PROMOTER, 'Promoter'),
        (User.VENUE, 'Venue'),
    ]

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='verification_requests')
    role_requested = models.CharField(_('role requested'), max_length=10, choices=ROLE_CHOICES)
    message = models.TextField(_('message'))
    documents = models.JSONField(
        _('documents'),
        default=list,
        validators=[validate_verification_documents],
    )
    status = models.CharField(
        _('status'),
        max_length=10,
        choices=VERIFICATION_STATUS_CHOICES,
        default=VERIFICATION_PENDING,
    )
    reviewed_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='verification_reviews',
    )
    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('verification request')
        verbose_name_plural = _('verification requests')
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"Verification {self.pk} for {self.user_id} ({self.status})"


# ============================================================================
# Community board
# ============================================================================

class CommunityPost(models.Model):
    author = models.ForeignKey(User, on_delete=models.CASCADE, related_name='community_posts')
    title = models.CharField(_('title'), max_length=120)
    content = models.TextField(_('content'))
    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return self.title


class CommunityReply(models.Model):
    post = models.ForeignKey(CommunityPost, on_delete=models.CASCADE, related_name='replies')
    author = models.ForeignKey(User, on_delete=models.CASCADE, related_name='community_replies')
    content = models.TextField(_('content'))
    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        ordering = ['created_at', 'id']
        verbose_name_plural = _('community replies')

    def __str__(self):
        return f"Reply {self.pk} on post {self.post_id}"


class CommunityVote(models.Model):
    """One up or down vote per user per post or reply."""

    POST = 'POST'
    REPLY = 'REPLY'

    TARGET_CHOICES = [
        (POST, 'Post'),
        (REPLY, 'Reply'),
    ]

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='community_votes')
    target_type = models.CharField(max_length=5, choices=TARGET_CHOICES)
    target_id = models.PositiveBigIntegerField()
    value = models.SmallIntegerField(choices=[(-1, 'Down'), (1, 'Up')])
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['user', 'target_type', 'target_id'],
                name='unique_vote_per_user_target',
            )
        ]
        indexes = [
            models.Index(fields=['target_type', 'target_id'], name='core_vote_target_idx'),
        ]

    def __str__(self):
        return f"{self.value:+d} by {self.user_id} on {self.target_type} {self.target_id}"


# ============================================================================
# Reports
# ============================================================================

class Report(models.Model):
    TARGET_CHOICES = [
        ('USER', 'User'),
        ('THREAD', 'Thread'),
        ('GIG', 'Gig'),
    ]

    reporter = models.ForeignKey(User, on_delete=models.CASCADE, related_name='reports_filed')
    target_type = models.CharField(max_length=6, choices=TARGET_CHOICES)
    target_id = models.CharField(max_length=64)
    reason = models.CharField(max_length=200)
    details = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"Report on {self.target_type} {self.target_id}"
