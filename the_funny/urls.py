"""
URL configuration for the_funny project.

All API routes live under /api/; the Django admin is mounted at /admin/.
"""
from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import path

from core.views import (
    ApplicationDetailView,
    ApplicationListCreateView,
    BookingDetailView,
    BookingListCreateView,
    BookingPayView,
    ComedianProfileView,
    ComedianSearchView,
    CommunityPostListCreateView,
    CommunityReplyCreateView,
    CommunityVoteView,
    CustomTokenRefreshView,
    GigDetailView,
    GigListCreateView,
    LoginView,
    LogoutView,
    MeView,
    OfferDetailView,
    OfferListCreateView,
    OfferResolveView,
    PromoterProfileView,
    ReportCreateView,
    ReviewListCreateView,
    ThreadListCreateView,
    ThreadMessagesView,
    UserDetailView,
    UserRegistrationView,
    VenueProfileView,
    VerificationDecisionView,
    VerificationMineView,
    VerificationView,
)


urlpatterns = [
    path('admin/', admin.site.urls),

    # Authentication endpoints
    path('api/auth/register/', UserRegistrationView.as_view(), name='user_register'),
    path('api/auth/login/', LoginView.as_view(), name='user_login'),
    path('api/auth/refresh/', CustomTokenRefreshView.as_view(), name='token_refresh'),
    path('api/auth/logout/', LogoutView.as_view(), name='user_logout'),

    # Accounts & profiles
    path('api/me/', MeView.as_view(), name='me'),
    path('api/users/<int:pk>/', UserDetailView.as_view(), name='user_detail'),
    path('api/profiles/', ComedianSearchView.as_view(), name='comedian_search'),
    path('api/profiles/comedian/', ComedianProfileView.as_view(), name='comedian_profile'),
    path('api/profiles/promoter/', PromoterProfileView.as_view(), name='promoter_profile'),
    path('api/profiles/venue/', VenueProfileView.as_view(), name='venue_profile'),

    # Gigs & applications
    path('api/gigs/', GigListCreateView.as_view(), name='gig_list'),
    path('api/gigs/<int:pk>/', GigDetailView.as_view(), name='gig_detail'),
    path('api/applications/', ApplicationListCreateView.as_view(), name='application_list'),
    path('api/applications/<int:pk>/', ApplicationDetailView.as_view(), name='application_detail'),

    # Threads & messages
    path('api/threads/', ThreadListCreateView.as_view(), name='thread_list'),
    path('api/threads/<int:pk>/messages/', ThreadMessagesView.as_view(), name='thread_messages'),

    # Offers
    path('api/offers/', OfferListCreateView.as_view(), name='offer_list'),
    path('api/offers/<int:pk>/', OfferDetailView.as_view(), name='offer_detail'),
    path('api/offers/<int:pk>/accept/', OfferResolveView.as_view(action='accept'), name='offer_accept'),
    path('api/offers/<int:pk>/decline/', OfferResolveView.as_view(action='decline'), name='offer_decline'),
    path('api/offers/<int:pk>/withdraw/', OfferResolveView.as_view(action='withdraw'), name='offer_withdraw'),

    # Bookings
    path('api/bookings/', BookingListCreateView.as_view(), name='booking_list'),
    path('api/bookings/<int:pk>/', BookingDetailView.as_view(), name='booking_detail'),
    path('api/bookings/<int:pk>/pay/', BookingPayView.as_view(), name='booking_pay'),

    # Reviews
    path('api/reviews/', ReviewListCreateView.as_view(), name='review_list'),

    # Verification
    path('api/verification/', VerificationView.as_view(), name='verification'),
    path('api/verification/me/', VerificationMineView.as_view(), name='verification_mine'),
    path('api/verification/<int:pk>/decision/', VerificationDecisionView.as_view(), name='verification_decision'),

    # Community board
    path('api/community/posts/', CommunityPostListCreateView.as_view(), name='community_posts'),
    path('api/community/posts/<int:pk>/replies/', CommunityReplyCreateView.as_view(), name='community_replies'),
    path('api/community/votes/', CommunityVoteView.as_view(), name='community_votes'),

    # Moderation
    path('api/report/', ReportCreateView.as_view(), name='report_create'),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
