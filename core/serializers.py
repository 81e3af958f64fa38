"""
Serializers for authentication, marketplace listings and negotiation.
"""

from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from .models import (
    Application,
    Booking,
    ComedianProfile,
    CommunityVote,
    Gig,
    Message,
    Offer,
    PromoterProfile,
    Report,
    Review,
    Thread,
    VenueProfile,
    VerificationRequest,
)
from .validators import (
    validate_city,
    validate_currency_code,
    validate_phone_number,
    validate_state_code,
)

User = get_user_model()


def _django_to_drf(validator, value):
    try:
        validator(value)
    except DjangoValidationError as e:
        raise serializers.ValidationError(list(e.messages))
    return value


# ============================================================================
# Authentication & users
# ============================================================================

class UserRegistrationSerializer(serializers.ModelSerializer):
    """
    Serializer for user registration.

    Fields:
    - name: Required display name
    - email: Required, unique (case-insensitive)
    - password: Required, at least 6 characters
    - role: Required, any role except ADMIN
    """

    password = serializers.CharField(
        write_only=True,
        required=True,
        style={'input_type': 'password'}
    )

    class Meta:
        model = User
        fields = ['id', 'name', 'email', 'password', 'role', 'created_at']
        read_only_fields = ['id', 'created_at']
        extra_kwargs = {
            'name': {'required': True, 'allow_blank': False},
            'email': {'required': True},
            'role': {'required': True},
        }

    def validate_email(self, value):
        value = value.strip().lower()

        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError(
                "A user with that email already exists."
            )

        return value

    def validate_password(self, value):
        try:
            validate_password(value)
        except DjangoValidationError as e:
            raise serializers.ValidationError(list(e.messages))

        return value

    def validate_role(self, value):
        if value == User.ADMIN:
            raise serializers.ValidationError(
                "Administrator accounts cannot be self-registered."
            )
        return value

    def create(self, validated_data):
        """
        Create user with hashed password.

        The email doubles as the username required by AbstractUser.
        """
        from django.db import transaction

        password = validated_data.pop('password')
        email = validated_data['email']

        with transaction.atomic():
            user = User(username=email[:150], **validated_data)
            user.set_password(password)
            user.save()

        return user


class LoginSerializer(serializers.Serializer):
    """
    Serializer for user login with email and password.

    Authentication itself happens in the view so that failures share one
    generic error message.
    """
    email = serializers.EmailField(required=True)
    password = serializers.CharField(
        required=True,
        write_only=True,
        style={'input_type': 'password'}
    )


class TokenRefreshSerializer(serializers.Serializer):
    """Refresh token from the body; the view falls back to the refresh cookie."""
    refresh = serializers.CharField(required=False, allow_blank=False)


class UserSummarySerializer(serializers.ModelSerializer):
    """Public view of a user used inside other payloads."""

    class Meta:
        model = User
        fields = ['id', 'name', 'role', 'rating_average', 'total_reviews']
        read_only_fields = fields


class MeSerializer(serializers.ModelSerializer):
    """
    The authenticated user's own account.

    Includes the verification status of their promoter or venue profile
    (null when they have neither).
    """

    verification_status = serializers.CharField(read_only=True, allow_null=True)
    profile_image_url = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id',
            'name',
            'email',
            'role',
            'phone_number',
            'profile_image_url',
            'rating_average',
            'total_reviews',
            'verification_status',
            'created_at',
        ]
        read_only_fields = fields

    def get_profile_image_url(self, obj):
        if obj.profile_image:
            request = self.context.get('request')
            if request is not None:
                return request.build_absolute_uri(obj.profile_image.url)
            return obj.profile_image.url
        return None


class MeUpdateSerializer(serializers.ModelSerializer):
    """Editable account fields. Role and email are fixed after registration."""

    class Meta:
        model = User
        fields = ['name', 'phone_number', 'profile_image']

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Name cannot be blank.")
        return value


# ============================================================================
# Profiles
# ============================================================================

class PromoterProfileSerializer(serializers.ModelSerializer):
    organization = serializers.CharField(min_length=2, max_length=120)
    contact_name = serializers.CharField(min_length=2, max_length=120)
    phone = serializers.CharField(
        max_length=20,
        required=False,
        allow_blank=True,
        allow_null=True,
    )
    website = serializers.URLField(required=False, allow_blank=True, allow_null=True)

    class Meta:
        model = PromoterProfile
        fields = [
            'organization',
            'contact_name',
            'phone',
            'website',
            'verification_status',
            'updated_at',
        ]
        read_only_fields = ['verification_status', 'updated_at']

    def validate_phone(self, value):
        return _django_to_drf(validate_phone_number, (value or '').strip())

    def validate_website(self, value):
        return value or ''


class VenueProfileSerializer(serializers.ModelSerializer):
    venue_name = serializers.CharField(min_length=2, max_length=120)
    address1 = serializers.CharField(min_length=3, max_length=160)
    address2 = serializers.CharField(max_length=160, required=False, allow_blank=True, allow_null=True)
    city = serializers.CharField(min_length=2, max_length=80)
    postal_code = serializers.CharField(min_length=3, max_length=20)
    capacity = serializers.IntegerField(min_value=1, max_value=100000, required=False, allow_null=True)
    phone = serializers.CharField(
        max_length=20,
        required=False,
        allow_blank=True,
        allow_null=True,
    )

    class Meta:
        model = VenueProfile
        fields = [
            'venue_name',
            'address1',
            'address2',
            'city',
            'state',
            'postal_code',
            'capacity',
            'contact_email',
            'phone',
            'verification_status',
            'updated_at',
        ]
        read_only_fields = ['verification_status', 'updated_at']

    def validate_state(self, value):
        return _django_to_drf(validate_state_code, value.strip())

    def validate_address2(self, value):
        return value or ''

    def validate_phone(self, value):
        return _django_to_drf(validate_phone_number, (value or '').strip())


class ComedianProfileSerializer(serializers.ModelSerializer):
    """
    The comedian profile, as upserted by its owner and listed by the search.

    ``legal_name`` is write-only and, when given, updates the account name.
    """

    user = UserSummarySerializer(read_only=True)
    legal_name = serializers.CharField(min_length=2, max_length=120, write_only=True, required=False)
    stage_name = serializers.CharField(min_length=2, max_length=80)
    bio = serializers.CharField(max_length=600, required=False, allow_blank=True, allow_null=True)
    credits = serializers.CharField(max_length=160, required=False, allow_blank=True, allow_null=True)
    website = serializers.URLField(required=False, allow_blank=True, allow_null=True)
    reel_url = serializers.URLField(required=False, allow_blank=True, allow_null=True)
    instagram = serializers.CharField(max_length=60, required=False, allow_blank=True, allow_null=True)
    travel_radius_miles = serializers.IntegerField(min_value=1, max_value=1000, required=False, allow_null=True)
    home_city = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    home_state = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    styles = serializers.ListField(
        child=serializers.CharField(min_length=2, max_length=60),
        max_length=20,
        required=False,
    )
    rate_min = serializers.IntegerField(min_value=0, max_value=10000, required=False, allow_null=True)
    rate_max = serializers.IntegerField(min_value=0, max_value=10000, required=False, allow_null=True)
    reel_urls = serializers.ListField(child=serializers.URLField(), max_length=20, required=False)
    notable_clubs = serializers.ListField(
        child=serializers.CharField(min_length=2, max_length=60),
        max_length=20,
        required=False,
    )

    class Meta:
        model = ComedianProfile
        fields = [
            'user',
            'legal_name',
            'stage_name',
            'bio',
            'credits',
            'website',
            'reel_url',
            'instagram',
            'travel_radius_miles',
            'home_city',
            'home_state',
            'styles',
            'clean_rating',
            'rate_min',
            'rate_max',
            'reel_urls',
            'notable_clubs',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['created_at', 'updated_at']

    def validate_home_city(self, value):
        value = (value or '').strip()
        if value:
            _django_to_drf(validate_city, value)
        return value

    def validate_home_state(self, value):
        value = (value or '').strip()
        if value:
            _django_to_drf(validate_state_code, value)
        return value

    def validate_styles(self, value):
        # Keep first occurrence order
        return list(dict.fromkeys(style.strip() for style in value))

    def validate(self, attrs):
        for field in ('bio', 'credits', 'website', 'reel_url', 'instagram'):
            if field in attrs and attrs[field] is None:
                attrs[field] = ''

        rate_min = attrs.get('rate_min', getattr(self.instance, 'rate_min', None))
        rate_max = attrs.get('rate_max', getattr(self.instance, 'rate_max', None))
        if rate_min is not None and rate_max is not None and rate_max < rate_min:
            raise serializers.ValidationError({'rate_max': 'Max rate must be greater than min rate.'})
        return attrs

    def _apply_legal_name(self, user, legal_name):
        if legal_name:
            user.name = legal_name.strip()
            user.save(update_fields=['name', 'updated_at'])

    def create(self, validated_data):
        legal_name = validated_data.pop('legal_name', None)
        profile = super().create(validated_data)
        self._apply_legal_name(profile.user, legal_name)
        return profile

    def update(self, instance, validated_data):
        legal_name = validated_data.pop('legal_name', None)
        profile = super().update(instance, validated_data)
        self._apply_legal_name(profile.user, legal_name)
        return profile


class ComedianSearchFilterSerializer(serializers.Serializer):
    """Query-string filters for the public comedian search."""

    SORT_CHOICES = ['rating', 'newest']

    search = serializers.CharField(min_length=1, max_length=100, required=False)
    city = serializers.CharField(required=False)
    state = serializers.CharField(required=False)
    styles = serializers.ListField(
        child=serializers.CharField(min_length=1, max_length=60),
        required=False,
    )
    clean_rating = serializers.ChoiceField(choices=ComedianProfile.CLEAN_RATING_CHOICES, required=False)
    rate_min = serializers.IntegerField(min_value=0, required=False)
    rate_max = serializers.IntegerField(min_value=0, required=False)
    sort = serializers.ChoiceField(choices=SORT_CHOICES, default='rating')

    def validate_city(self, value):
        return _django_to_drf(validate_city, value)

    def validate_state(self, value):
        return _django_to_drf(validate_state_code, value)

    def validate_styles(self, value):
        return list(dict.fromkeys(style.strip() for style in value))

    def validate(self, attrs):
        if attrs.get('rate_min') is not None and attrs.get('rate_max') is not None \
                and attrs['rate_max'] < attrs['rate_min']:
            raise serializers.ValidationError({'rate_max': 'Max rate must be greater than min rate.'})
        return attrs


# ============================================================================
# Gigs & applications
# ============================================================================

class GigSerializer(serializers.ModelSerializer):
    """
    Serializer for creating, updating and displaying gigs.

    Publishing is authorised by the view (``can_publish_gig``); this
    serializer only validates field shapes and the date range.
    """

    created_by = UserSummarySerializer(read_only=True)
    title = serializers.CharField(min_length=3, max_length=120)
    description = serializers.CharField(min_length=20, max_length=4000)
    payout_usd = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    min_age = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    timezone = serializers.CharField(min_length=2, max_length=64)

    class Meta:
        model = Gig
        fields = [
            'id',
            'created_by',
            'title',
            'description',
            'compensation_type',
            'payout_usd',
            'date_start',
            'date_end',
            'timezone',
            'city',
            'state',
            'min_age',
            'is_published',
            'status',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'created_by', 'created_at', 'updated_at']

    def validate_city(self, value):
        return _django_to_drf(validate_city, value.strip())

    def validate_state(self, value):
        return _django_to_drf(validate_state_code, value.strip())

    def validate(self, attrs):
        date_start = attrs.get('date_start', getattr(self.instance, 'date_start', None))
        date_end = attrs.get('date_end', getattr(self.instance, 'date_end', None))

        if date_start and date_end and date_end < date_start:
            raise serializers.ValidationError({
                'date_end': 'End date must be on or after the start date.'
            })

        return attrs


class GigFilterSerializer(serializers.Serializer):
    """Query-string filters for the public gig list."""

    search = serializers.CharField(min_length=1, max_length=100, required=False)
    city = serializers.CharField(required=False)
    state = serializers.CharField(required=False)
    status = serializers.ChoiceField(choices=Gig.STATUS_CHOICES, required=False)
    compensation_type = serializers.ChoiceField(choices=Gig.COMPENSATION_CHOICES, required=False)
    min_payout = serializers.IntegerField(min_value=0, required=False)
    date_start = serializers.DateTimeField(required=False)
    date_end = serializers.DateTimeField(required=False)

    def validate_city(self, value):
        return _django_to_drf(validate_city, value)

    def validate_state(self, value):
        return _django_to_drf(validate_state_code, value)

    def validate(self, attrs):
        if attrs.get('date_start') and attrs.get('date_end') and attrs['date_end'] < attrs['date_start']:
            raise serializers.ValidationError({'date_end': 'End date must be after start date.'})
        return attrs


class ApplicationSerializer(serializers.ModelSerializer):
    gig_id = serializers.IntegerField(read_only=True)
    comedian = UserSummarySerializer(read_only=True)

    class Meta:
        model = Application
        fields = ['id', 'gig_id', 'comedian', 'message', 'status', 'created_at', 'updated_at']
        read_only_fields = fields


class ApplicationCreateSerializer(serializers.Serializer):
    gig_id = serializers.IntegerField(min_value=1)
    message = serializers.CharField(min_length=20, max_length=4000)


class ApplicationStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Application.STATUS_CHOICES)


# ============================================================================
# Threads, messages & offers
# ============================================================================

class ThreadSerializer(serializers.ModelSerializer):
    gig_id = serializers.IntegerField(read_only=True)
    created_by_id = serializers.IntegerField(read_only=True)
    participant_ids = serializers.ListField(child=serializers.IntegerField(), read_only=True)

    class Meta:
        model = Thread
        fields = ['id', 'gig_id', 'created_by_id', 'participant_ids', 'state', 'created_at', 'updated_at']
        read_only_fields = fields


class ThreadCreateSerializer(serializers.Serializer):
    gig_id = serializers.IntegerField(min_value=1)
    participant_ids = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        min_length=1,
    )
    initial_message = serializers.CharField(min_length=1, required=False)


class MessageSerializer(serializers.ModelSerializer):
    thread_id = serializers.IntegerField(read_only=True)
    sender_id = serializers.IntegerField(read_only=True)
    offer_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = Message
        fields = ['id', 'thread_id', 'sender_id', 'kind', 'body', 'file_url', 'offer_id', 'created_at']
        read_only_fields = fields


class OfferSerializer(serializers.ModelSerializer):
    thread_id = serializers.IntegerField(read_only=True)
    from_user_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Offer
        fields = [
            'id',
            'thread_id',
            'from_user_id',
            'amount',
            'currency',
            'terms',
            'event_date',
            'expires_at',
            'status',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class OfferTermsSerializer(serializers.Serializer):
    """Offer details embedded in an OFFER thread message."""

    amount = serializers.IntegerField(min_value=1)
    currency = serializers.CharField(min_length=3, max_length=3, required=False, default='USD')
    terms = serializers.CharField(min_length=5)
    event_date = serializers.DateTimeField()
    expires_at = serializers.DateTimeField(required=False, allow_null=True)

    def validate_currency(self, value):
        return _django_to_drf(validate_currency_code, value.upper())


class MessageCreateSerializer(serializers.Serializer):
    """
    Payload for posting a thread message.

    - TEXT: ``body`` required, ``file_url`` optional
    - FILE: ``file_url`` required
    - OFFER: ``offer`` required
    """

    KIND_CHOICES = [Message.TEXT, Message.FILE, Message.OFFER]

    kind = serializers.ChoiceField(choices=KIND_CHOICES)
    body = serializers.CharField(required=False, allow_blank=True)
    file_url = serializers.URLField(required=False, max_length=500)
    offer = OfferTermsSerializer(required=False)

    def validate(self, attrs):
        kind = attrs['kind']

        if kind == Message.TEXT and not attrs.get('body'):
            raise serializers.ValidationError({'body': 'Text messages require a body.'})

        if kind == Message.FILE and not attrs.get('file_url'):
            raise serializers.ValidationError({'file_url': 'File messages require a file URL.'})

        if kind == Message.OFFER and not attrs.get('offer'):
            raise serializers.ValidationError({'offer': 'Offer messages require offer details.'})

        return attrs


class OfferCreateSerializer(serializers.Serializer):
    thread_id = serializers.IntegerField(min_value=1)
    amount = serializers.IntegerField(min_value=1)
    currency = serializers.CharField(min_length=3, max_length=3, required=False, default='USD')
    terms = serializers.CharField(min_length=1)
    event_date = serializers.DateTimeField()
    expires_at = serializers.DateTimeField(required=False, allow_null=True)

    def validate_currency(self, value):
        return _django_to_drf(validate_currency_code, value.upper())


class OfferStatusSerializer(serializers.Serializer):
    STATUS_CHOICES = [Offer.ACCEPTED, Offer.DECLINED, Offer.EXPIRED]

    status = serializers.ChoiceField(choices=STATUS_CHOICES)
    gig_id = serializers.IntegerField(min_value=1, required=False)
    comedian_id = serializers.IntegerField(min_value=1, required=False)
    promoter_id = serializers.IntegerField(min_value=1, required=False)


# ============================================================================
# Bookings
# ============================================================================

class BookingSerializer(serializers.ModelSerializer):
    gig_id = serializers.IntegerField(read_only=True)
    comedian_id = serializers.IntegerField(read_only=True)
    promoter_id = serializers.IntegerField(read_only=True)
    offer_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = Booking
        fields = [
            'id',
            'gig_id',
            'comedian_id',
            'promoter_id',
            'offer_id',
            'status',
            'payment_intent_id',
            'payout_protection',
            'cancellation_policy',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class BookingCreateSerializer(serializers.Serializer):
    gig_id = serializers.IntegerField(min_value=1)
    comedian_id = serializers.IntegerField(min_value=1)
    promoter_id = serializers.IntegerField(min_value=1)
    offer_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)


class BookingUpdateSerializer(serializers.Serializer):
    """
    Partial booking update. At least one field must be supplied; status
    transitions are checked against ``Booking.VALID_TRANSITIONS`` downstream.
    """

    status = serializers.ChoiceField(choices=Booking.STATUS_CHOICES, required=False)
    payout_protection = serializers.BooleanField(required=False)
    cancellation_policy = serializers.ChoiceField(
        choices=Booking.CANCELLATION_POLICY_CHOICES,
        required=False,
    )

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("Provide at least one field to update.")
        return attrs


# ============================================================================
# Reviews
# ============================================================================

class ReviewSerializer(serializers.ModelSerializer):
    author_id = serializers.IntegerField(read_only=True)
    subject_user_id = serializers.IntegerField(source='subject_id', read_only=True)
    gig_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Review
        fields = ['id', 'author_id', 'subject_user_id', 'gig_id', 'rating', 'comment', 'created_at']
        read_only_fields = fields


class ReviewCreateSerializer(serializers.Serializer):
    """
    Payload for submitting a review.

    Booking, timing and duplicate checks happen in ``lifecycle.submit_review``.
    """

    subject_user_id = serializers.IntegerField(min_value=1)
    gig_id = serializers.IntegerField(min_value=1)
    rating = serializers.IntegerField()
    comment = serializers.CharField(min_length=10, max_length=2000)

    def validate_rating(self, value):
        if value < 1 or value > 5:
            raise serializers.ValidationError(
                "Rating must be between 1 and 5."
            )
        return value


# ============================================================================
# Verification
# ============================================================================

class VerificationDocumentSerializer(serializers.Serializer):
    name = serializers.CharField()
    url = serializers.CharField()
    size = serializers.FloatField(min_value=0)


class VerificationRequestCreateSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=[User.PROMOTER, User.VENUE])
    message = serializers.CharField(min_length=10)
    documents = VerificationDocumentSerializer(many=True)

    def validate_documents(self, value):
        if len(value) < 1 or len(value) > 3:
            raise serializers.ValidationError("Attach between 1 and 3 documents.")
        return value

    def create(self, validated_data):
        user = self.context['request'].user
        documents = [
            {
                'name': document['name'],
                'url': document['url'],
                'size': int(document['size']) if float(document['size']).is_integer() else document['size'],
            }
            for document in validated_data['documents']
        ]
        return VerificationRequest.objects.create(
            user=user,
            role_requested=validated_data['role'],
            message=validated_data['message'],
            documents=documents,
        )


class VerificationRequestSerializer(serializers.ModelSerializer):
    user_id = serializers.IntegerField(read_only=True)
    reviewed_by_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = VerificationRequest
        fields = [
            'id',
            'user_id',
            'role_requested',
            'message',
            'documents',
            'status',
            'reviewed_by_id',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class VerificationDecisionSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=['APPROVED', 'REJECTED'])


# ============================================================================
# Community & reports
# ============================================================================

class CommunityPostCreateSerializer(serializers.Serializer):
    title = serializers.CharField(min_length=3, max_length=120)
    content = serializers.CharField(min_length=1, max_length=2000)


class CommunityReplyCreateSerializer(serializers.Serializer):
    content = serializers.CharField(min_length=1, max_length=1500)


class CommunityVoteSerializer(serializers.Serializer):
    target_type = serializers.ChoiceField(choices=CommunityVote.TARGET_CHOICES)
    target_id = serializers.IntegerField(min_value=1)
    value = serializers.IntegerField()

    def validate_value(self, value):
        if value not in (-1, 0, 1):
            raise serializers.ValidationError("Vote must be -1, 0, or 1.")
        return value


class ReportSerializer(serializers.ModelSerializer):
    reporter_id = serializers.IntegerField(read_only=True)
    target_id = serializers.CharField(min_length=1, max_length=64)
    reason = serializers.CharField(min_length=3, max_length=200)
    details = serializers.CharField(required=False, allow_blank=True, default='')

    class Meta:
        model = Report
        fields = ['id', 'reporter_id', 'target_type', 'target_id', 'reason', 'details', 'created_at']
        read_only_fields = ['id', 'reporter_id', 'created_at']
