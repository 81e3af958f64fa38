"""
Django admin configuration for the-funny models.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.translation import gettext_lazy as _

from .models import (
    Application,
    Booking,
    ComedianProfile,
    CommunityPost,
    CommunityReply,
    Gig,
    Message,
    Offer,
    PromoterProfile,
    Report,
    Review,
    Thread,
    ThreadParticipant,
    User,
    VenueProfile,
    VerificationRequest,
)


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Custom admin interface for User model.

    Extends Django's UserAdmin with the marketplace role and rating summary.
    """

    list_display = [
        'email',
        'name',
        'role',
        'rating_average',
        'total_reviews',
        'is_staff',
        'is_active',
        'created_at',
    ]

    list_filter = [
        'role',
        'is_staff',
        'is_superuser',
        'is_active',
        'created_at',
    ]

    search_fields = [
        'email',
        'username',
        'name',
    ]

    ordering = ['-created_at']

    fieldsets = (
        (None, {
            'fields': ('username', 'password')
        }),
        (_('Personal Info'), {
            'fields': (
                'name',
                'email',
                'phone_number',
                'profile_image',
            )
        }),
        (_('Marketplace'), {
            'fields': ('role', 'rating_average', 'total_reviews')
        }),
        (_('Permissions'), {
            'fields': (
                'is_active',
                'is_staff',
                'is_superuser',
                'groups',
                'user_permissions',
            ),
            'classes': ('collapse',),
        }),
        (_('Important Dates'), {
            'fields': ('last_login', 'date_joined', 'created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': (
                'username',
                'email',
                'name',
                'role',
                'password1',
                'password2',
            ),
        }),
    )

    readonly_fields = ['rating_average', 'total_reviews', 'created_at', 'updated_at', 'last_login', 'date_joined']

    date_hierarchy = 'created_at'

    list_per_page = 25

    def get_readonly_fields(self, request, obj=None):
        if obj:  # Editing an existing object
            return self.readonly_fields
        return []


# ============================================================================
# Profiles & verification
# ============================================================================

@admin.register(ComedianProfile)
class ComedianProfileAdmin(admin.ModelAdmin):
    list_display = ['stage_name', 'user', 'home_city', 'home_state', 'clean_rating', 'rate_min', 'rate_max']
    list_filter = ['clean_rating', 'home_state']
    search_fields = ['stage_name', 'user__name', 'user__email']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(PromoterProfile)
class PromoterProfileAdmin(admin.ModelAdmin):
    list_display = ['organization', 'user', 'contact_name', 'verification_status', 'updated_at']
    list_filter = ['verification_status']
    search_fields = ['organization', 'contact_name', 'user__email']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(VenueProfile)
class VenueProfileAdmin(admin.ModelAdmin):
    list_display = ['venue_name', 'user', 'city', 'state', 'capacity', 'verification_status']
    list_filter = ['verification_status', 'state']
    search_fields = ['venue_name', 'city', 'user__email']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(VerificationRequest)
class VerificationRequestAdmin(admin.ModelAdmin):
    """
    Admin interface for verification requests.

    Decisions made here do not email the user; use the API decision endpoint
    for the full workflow.
    """

    list_display = ['id', 'user', 'role_requested', 'status', 'reviewed_by', 'created_at']
    list_filter = ['status', 'role_requested', 'created_at']
    search_fields = ['user__email', 'message']
    readonly_fields = ['created_at', 'updated_at']
    ordering = ['-created_at']
    list_per_page = 25


# ============================================================================
# Gigs, threads & bookings
# ============================================================================

class ApplicationInline(admin.TabularInline):
    model = Application
    extra = 0
    fields = ['comedian', 'status', 'created_at']
    readonly_fields = ['created_at']


@admin.register(Gig)
class GigAdmin(admin.ModelAdmin):
    """Admin interface for Gig model."""

    list_display = [
        'title',
        'created_by',
        'city',
        'state',
        'date_start',
        'compensation_type',
        'is_published',
        'status',
    ]

    list_filter = [
        'is_published',
        'status',
        'compensation_type',
        'state',
    ]

    search_fields = [
        'title',
        'description',
        'city',
        'created_by__email',
    ]

    readonly_fields = ['created_at', 'updated_at']

    ordering = ['date_start']

    date_hierarchy = 'date_start'

    list_per_page = 25

    inlines = [ApplicationInline]

    fieldsets = (
        (None, {
            'fields': ('created_by', 'title', 'description')
        }),
        (_('Schedule & Location'), {
            'fields': ('date_start', 'date_end', 'timezone', 'city', 'state', 'min_age')
        }),
        (_('Compensation'), {
            'fields': ('compensation_type', 'payout_usd')
        }),
        (_('Listing'), {
            'fields': ('is_published', 'status')
        }),
        (_('Timestamps'), {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )


class ThreadParticipantInline(admin.TabularInline):
    model = ThreadParticipant
    extra = 0
    fields = ['user', 'position', 'joined_at']
    readonly_fields = ['joined_at']
    ordering = ['position']


class MessageInline(admin.TabularInline):
    model = Message
    extra = 0
    fields = ['sender', 'kind', 'body', 'offer', 'created_at']
    readonly_fields = ['created_at']


@admin.register(Thread)
class ThreadAdmin(admin.ModelAdmin):
    list_display = ['id', 'gig', 'created_by', 'state', 'updated_at']
    list_filter = ['state']
    search_fields = ['gig__title', 'created_by__email']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [ThreadParticipantInline, MessageInline]


@admin.register(Offer)
class OfferAdmin(admin.ModelAdmin):
    list_display = ['id', 'thread', 'from_user', 'amount', 'currency', 'status', 'expires_at']
    list_filter = ['status', 'currency']
    search_fields = ['from_user__email', 'terms']
    readonly_fields = ['created_at', 'updated_at']
    ordering = ['-created_at']


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    """Admin interface for Booking model."""

    list_display = [
        'id',
        'gig',
        'comedian',
        'promoter',
        'status',
        'payment_intent_id',
        'created_at',
    ]

    list_filter = [
        'status',
        'cancellation_policy',
        'payout_protection',
    ]

    search_fields = [
        'gig__title',
        'comedian__email',
        'promoter__email',
        'payment_intent_id',
    ]

    readonly_fields = ['payment_intent_id', 'created_at', 'updated_at']

    ordering = ['-created_at']

    list_per_page = 25


# ============================================================================
# Reviews, community & reports
# ============================================================================

@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    """Admin interface for Review model."""

    list_display = [
        'id',
        'author',
        'subject',
        'gig',
        'rating',
        'created_at',
    ]

    list_filter = [
        'rating',
        'created_at',
    ]

    search_fields = [
        'author__email',
        'subject__email',
        'comment',
    ]

    readonly_fields = ['created_at', 'updated_at']

    ordering = ['-created_at']

    date_hierarchy = 'created_at'

    list_per_page = 25

    fieldsets = (
        (None, {
            'fields': ('author', 'subject', 'gig', 'booking')
        }),
        (_('Review Content'), {
            'fields': ('rating', 'comment')
        }),
        (_('Timestamps'), {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )


class CommunityReplyInline(admin.TabularInline):
    model = CommunityReply
    extra = 0
    fields = ['author', 'content', 'created_at']
    readonly_fields = ['created_at']


@admin.register(CommunityPost)
class CommunityPostAdmin(admin.ModelAdmin):
    list_display = ['title', 'author', 'created_at']
    search_fields = ['title', 'content', 'author__email']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [CommunityReplyInline]


@admin.register(Report)
class ReportAdmin(admin.ModelAdmin):
    list_display = ['id', 'reporter', 'target_type', 'target_id', 'reason', 'created_at']
    list_filter = ['target_type', 'created_at']
    search_fields = ['reason', 'details', 'reporter__email']
    readonly_fields = ['created_at']
    ordering = ['-created_at']
