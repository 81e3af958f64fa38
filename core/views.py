"""
API views for the-funny comedy booking marketplace.
"""

import logging

from django.conf import settings
from django.contrib.auth import authenticate, get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Q
from rest_framework import generics, status
from rest_framework.exceptions import (
    APIException,
    NotFound,
    PermissionDenied,
    ValidationError,
)
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from . import community, emails, lifecycle
from .authentication import access_cookie_name, refresh_cookie_name
from .exceptions import Conflict
from .permissions import (
    GIG_CREATOR_ROLES,
    HasRole,
    can_apply_to_gig,
    can_publish_gig,
    has_role,
    is_owner,
    verification_status_for,
)
from .serializers import (
    LoginSerializer,
    MeSerializer,
    TokenRefreshSerializer,
    UserRegistrationSerializer,
    UserSummarySerializer,
)
from .throttling import ActionRateThrottle

User = get_user_model()
logger = logging.getLogger(__name__)


def get_client_ip(request):
    """
    Get client IP address from request.
    Handles proxy headers for accurate IP detection.
    """
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0]
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip


class MarketplaceAPIView(APIView):
    """
    Base view for marketplace endpoints.

    - Authentication is checked inside each handler so that the 401 body is
      consistent (``{"detail": ...}``)
    - ``rate_limit_actions`` maps HTTP methods to rate limiter actions
    - ``allowed_roles`` lists the roles accepted by ``require_role``
    - Rejected requests (403/404/409/429) are logged with user and client IP
    """
    permission_classes = [AllowAny]  # Will check manually for better error messages
    throttle_classes = [ActionRateThrottle]
    rate_limit_actions = {}
    allowed_roles = ()

    def unauthenticated(self, request):
        if not request.user or not request.user.is_authenticated:
            return Response(
                {'detail': 'Authentication credentials were not provided.'},
                status=status.HTTP_401_UNAUTHORIZED
            )
        return None

    def require_role(self, request, message):
        if not HasRole().has_permission(request, self):
            raise PermissionDenied(message)

    def handle_exception(self, exc):
        if isinstance(exc, APIException) and exc.status_code in (403, 404, 409, 429):
            user = getattr(self.request, 'user', None)
            logger.warning(
                f"{self.__class__.__name__} rejected {self.request.method} "
                f"with {exc.status_code}: {exc.detail}. "
                f"User ID: {getattr(user, 'id', None)}, IP: {get_client_ip(self.request)}"
            )
        return super().handle_exception(exc)


def _set_auth_cookies(response, access, refresh):
    jwt_settings = settings.SIMPLE_JWT
    secure = jwt_settings.get('AUTH_COOKIE_SECURE', False)
    samesite = jwt_settings.get('AUTH_COOKIE_SAMESITE', 'Lax')

    response.set_cookie(
        access_cookie_name(),
        str(access),
        max_age=int(jwt_settings['ACCESS_TOKEN_LIFETIME'].total_seconds()),
        httponly=True,
        secure=secure,
        samesite=samesite,
    )
    response.set_cookie(
        refresh_cookie_name(),
        str(refresh),
        max_age=int(jwt_settings['REFRESH_TOKEN_LIFETIME'].total_seconds()),
        httponly=True,
        secure=secure,
        samesite=samesite,
    )


def _clear_auth_cookies(response):
    response.delete_cookie(access_cookie_name())
    response.delete_cookie(refresh_cookie_name())


# ============================================================================
# Authentication
# ============================================================================

class UserRegistrationView(generics.CreateAPIView):
    """
    API endpoint for user registration.

    POST /api/auth/register/
    Request body: {"name": "Ali", "email": "ali@example.com", "password": "secret1", "role": "COMEDIAN"}

    Success response (201): {"id": 1, "name": "Ali", "email": "ali@example.com", "role": "COMEDIAN", ...}

    Error responses:
    - 400: Invalid data, duplicate email, or role ADMIN
    """
    serializer_class = UserRegistrationSerializer
    permission_classes = [AllowAny]

    def create(self, request, *args, **kwargs):
        """
        Handle user registration.
        Catches IntegrityError for concurrent duplicate email attempts.
        """
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            self.perform_create(serializer)
        except IntegrityError:
            return Response(
                {'email': ['A user with that email already exists.']},
                status=status.HTTP_400_BAD_REQUEST
            )

        logger.info(
            f"User registered. Email: {serializer.instance.email}, "
            f"Role: {serializer.instance.role}, IP: {get_client_ip(request)}"
        )
        return Response(serializer.data, status=status.HTTP_201_CREATED)


class LoginView(APIView):
    """
    API endpoint for user login with JWT token generation.

    Security features:
    - Rate limiting: 5 attempts per minute per IP
    - Generic error messages to prevent user enumeration
    - Failed login attempt logging for security monitoring
    - Tokens returned in the body and as HttpOnly cookies

    POST /api/auth/login/
    Request body: {"email": "user@example.com", "password": "password123"}

    Success response (200):
    {
        "access": "<jwt_access_token>",
        "refresh": "<jwt_refresh_token>",
        "user": {"id": 1, "email": "user@example.com", "role": "PROMOTER", ...}
    }

    Error response (401): {"detail": "Invalid credentials"}
    """
    permission_classes = [AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'login'

    def post(self, request, *args, **kwargs):
        serializer = LoginSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        email = serializer.validated_data['email'].lower().strip()
        password = serializer.validated_data['password']
        client_ip = get_client_ip(request)

        user = authenticate(request, email=email, password=password)
        if user is None:
            # Same response for unknown email, wrong password and inactive account
            logger.warning(
                f"Failed login attempt. Email: {email}, IP: {client_ip}"
            )
            return Response({'detail': 'Invalid credentials'}, status=status.HTTP_401_UNAUTHORIZED)

        refresh = RefreshToken.for_user(user)
        # access_token mints a new token on each read
        access = refresh.access_token
        logger.info(f"Successful login. Email: {email}, IP: {client_ip}")

        response = Response({
            'access': str(access),
            'refresh': str(refresh),
            'user': MeSerializer(user, context={'request': request}).data,
        }, status=status.HTTP_200_OK)
        _set_auth_cookies(response, access, refresh)
        return response


class CustomTokenRefreshView(APIView):
    """
    API endpoint for refreshing JWT access tokens.

    Accepts the refresh token from the request body or the refresh cookie.
    The old refresh token is blacklisted and a new pair is issued.

    POST /api/auth/refresh/
    Request body: {"refresh": "<jwt_refresh_token>"} (optional when cookie is set)

    Error responses:
    - 400: No refresh token supplied
    - 401: Invalid, expired, or blacklisted refresh token
    - 429: Rate limit exceeded
    """
    permission_classes = [AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'refresh'

    def post(self, request, *args, **kwargs):
        serializer = TokenRefreshSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        raw_token = serializer.validated_data.get('refresh') or request.COOKIES.get(refresh_cookie_name())
        client_ip = get_client_ip(request)

        if not raw_token:
            return Response(
                {'refresh': ['This field is required.']},
                status=status.HTTP_400_BAD_REQUEST
            )

        try:
            old_refresh = RefreshToken(raw_token)
            user = User.objects.get(id=old_refresh.get('user_id'))
            old_refresh.blacklist()
        except (TokenError, User.DoesNotExist) as e:
            logger.warning(f"Failed token refresh attempt. Error: {e}, IP: {client_ip}")
            return Response({'detail': 'Token is invalid or expired'}, status=status.HTTP_401_UNAUTHORIZED)

        new_refresh = RefreshToken.for_user(user)
        new_access = new_refresh.access_token
        logger.info(f"Successful token refresh. User ID: {user.id}, IP: {client_ip}")

        response = Response({
            'access': str(new_access),
            'refresh': str(new_refresh),
        }, status=status.HTTP_200_OK)
        _set_auth_cookies(response, new_access, new_refresh)
        return response


class LogoutView(APIView):
    """
    Blacklist the refresh token and clear auth cookies.

    POST /api/auth/logout/
    Request body: {"refresh": "<jwt_refresh_token>"} (optional when cookie is set)

    Success response (200): {"ok": true}
    Error response (401): Refresh token invalid or already blacklisted
    """
    permission_classes = [AllowAny]

    def post(self, request, *args, **kwargs):
        raw_token = request.data.get('refresh') or request.COOKIES.get(refresh_cookie_name())

        if raw_token:
            try:
                RefreshToken(raw_token).blacklist()
            except TokenError as e:
                logger.warning(f"Logout with invalid refresh token. Error: {e}, IP: {get_client_ip(request)}")
                response = Response({'detail': 'Token is invalid or expired'}, status=status.HTTP_401_UNAUTHORIZED)
                _clear_auth_cookies(response)
                return response

        response = Response({'ok': True}, status=status.HTTP_200_OK)
        _clear_auth_cookies(response)
        return response


class MeView(MarketplaceAPIView):
    """
    The authenticated user's account.

    GET /api/me/ -> 200 {"user": {...}}
    PATCH /api/me/ {"name"?, "phone_number"?, "profile_image"?} -> 200 {"user": {...}}
    """

    def get(self, request, *args, **kwargs):
        denied = self.unauthenticated(request)
        if denied:
            return denied
        return Response({'user': MeSerializer(request.user, context={'request': request}).data})

    def patch(self, request, *args, **kwargs):
        from .serializers import MeUpdateSerializer

        denied = self.unauthenticated(request)
        if denied:
            return denied

        serializer = MeUpdateSerializer(request.user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()

        logger.info(f"Account updated. User ID: {user.id}, Fields: {sorted(serializer.validated_data)}")
        return Response({'user': MeSerializer(user, context={'request': request}).data})


class UserDetailView(APIView):
    """
    Public summary of a user with their review rating.

    GET /api/users/<id>/ -> 200 {"user": {...}}
    """
    permission_classes = [AllowAny]

    def get(self, request, pk, *args, **kwargs):
        try:
            user = User.objects.get(pk=pk, is_active=True)
        except User.DoesNotExist:
            return Response({'detail': 'User not found.'}, status=status.HTTP_404_NOT_FOUND)
        return Response({'user': UserSummarySerializer(user).data})


# ============================================================================
# Profiles
# ============================================================================

class BaseProfileView(MarketplaceAPIView):
    """
    Read and upsert the caller's own profile.

    Only users whose role is in ``get_editor_roles()`` may write it. The
    verification status of promoter and venue profiles is never writable here.
    """
    profile_role = None

    def get_editor_roles(self):
        return (self.profile_role,)

    def get_serializer_class(self):
        raise NotImplementedError

    def get_model(self):
        return self.get_serializer_class().Meta.model

    def get(self, request, *args, **kwargs):
        denied = self.unauthenticated(request)
        if denied:
            return denied

        profile = self.get_model().objects.filter(user=request.user).first()
        if profile is None:
            raise NotFound('Profile not found.')
        return Response({'profile': self.get_serializer_class()(profile).data})

    def put(self, request, *args, **kwargs):
        denied = self.unauthenticated(request)
        if denied:
            return denied

        if request.user.role not in self.get_editor_roles():
            raise PermissionDenied(f'Only {self.profile_role.lower()} accounts can edit this profile.')

        profile = self.get_model().objects.filter(user=request.user).first()
        serializer = self.get_serializer_class()(profile, data=request.data)
        serializer.is_valid(raise_exception=True)
        profile = serializer.save(user=request.user)

        logger.info(
            f"{self.profile_role.title()} profile saved. User ID: {request.user.id}, "
            f"IP: {get_client_ip(request)}"
        )
        return Response({'profile': self.get_serializer_class()(profile).data})


class PromoterProfileView(BaseProfileView):
    profile_role = 'PROMOTER'

    def get_serializer_class(self):
        from .serializers import PromoterProfileSerializer
        return PromoterProfileSerializer


class VenueProfileView(BaseProfileView):
    profile_role = 'VENUE'

    def get_serializer_class(self):
        from .serializers import VenueProfileSerializer
        return VenueProfileSerializer


class ComedianProfileView(BaseProfileView):
    """
    GET/PUT /api/profiles/comedian/ (COMEDIAN or ADMIN)

    PUT body: {"stage_name", "legal_name"?, "bio"?, "styles"?, "clean_rating"?,
    "rate_min"?, "rate_max"?, "home_city"?, "home_state"?, "reel_urls"?, ...}
    """
    profile_role = 'COMEDIAN'

    def get_editor_roles(self):
        return (self.profile_role, 'ADMIN')

    def get_serializer_class(self):
        from .serializers import ComedianProfileSerializer
        return ComedianProfileSerializer


class ComedianSearchView(MarketplaceAPIView):
    """
    Public comedian search.

    GET /api/profiles/?search=&city=&state=&styles=a,b&clean_rating=&rate_min=&rate_max=&sort=rating|newest&page=
    Success response (200): {"profiles": [...], "count": 12, "page": 1}

    - ``styles`` may be repeated or comma-separated; a profile matches when it
      has any of them
    - A rate filter keeps profiles whose rate range overlaps it; profiles
      without rates are left out
    - ``sort=rating`` orders by rating average, then review count
    """

    def get(self, request, *args, **kwargs):
        from .models import ComedianProfile
        from .serializers import ComedianProfileSerializer, ComedianSearchFilterSerializer

        params = request.query_params
        data = {key: params.get(key) for key in params if key not in ('styles', 'page')}
        styles = [
            style.strip()
            for value in params.getlist('styles')
            for style in value.split(',')
            if style.strip()
        ]
        if styles:
            data['styles'] = styles

        filters = ComedianSearchFilterSerializer(data=data)
        if not filters.is_valid():
            return Response(
                {'detail': 'Invalid filters', 'errors': filters.errors},
                status=status.HTTP_400_BAD_REQUEST
            )
        data = filters.validated_data

        queryset = ComedianProfile.objects.filter(user__is_active=True).select_related('user')
        if data.get('search'):
            term = data['search']
            queryset = queryset.filter(
                Q(stage_name__icontains=term) | Q(user__name__icontains=term) | Q(bio__icontains=term)
            )
        if data.get('city'):
            queryset = queryset.filter(home_city__icontains=data['city'])
        if data.get('state'):
            queryset = queryset.filter(home_state=data['state'])
        if data.get('clean_rating'):
            queryset = queryset.filter(clean_rating=data['clean_rating'])
        if data.get('rate_min') is not None:
            queryset = queryset.filter(rate_max__gte=data['rate_min'])
        if data.get('rate_max') is not None:
            queryset = queryset.filter(rate_min__lte=data['rate_max'])

        if data['sort'] == 'newest':
            queryset = queryset.order_by('-created_at', '-id')
        else:
            queryset = queryset.order_by('-user__rating_average', '-user__total_reviews', 'stage_name', 'id')

        # Styles live in a JSON list, so they are matched after the query
        results = queryset
        if data.get('styles'):
            results = [profile for profile in queryset if profile.has_style(data['styles'])]

        paginator = PageNumberPagination()
        page = paginator.paginate_queryset(results, request, view=self)
        return Response({
            'profiles': ComedianProfileSerializer(page, many=True).data,
            'count': paginator.page.paginator.count,
            'page': paginator.page.number,
        })


# ============================================================================
# Gigs
# ============================================================================

class GigListCreateView(MarketplaceAPIView):
    """
    Public gig listing and gig creation.

    GET /api/gigs/?search=&city=&state=&status=&compensation_type=&min_payout=&date_start=&date_end=&page=
    Success response (200): {"gigs": [...], "count": 12, "page": 1}

    POST /api/gigs/ (PROMOTER, VENUE, ADMIN)
    Publishing (``is_published: true``) requires an approved profile unless ADMIN.

    Error responses:
    - 400: Invalid filters or gig data
    - 401: Not authenticated (POST)
    - 403: Role not allowed or verification required to publish
    - 429: Rate limit exceeded
    """
    rate_limit_actions = {'POST': 'gig'}
    allowed_roles = GIG_CREATOR_ROLES

    def get(self, request, *args, **kwargs):
        from .models import Gig
        from .serializers import GigFilterSerializer, GigSerializer

        filters = GigFilterSerializer(data=request.query_params)
        if not filters.is_valid():
            return Response(
                {'detail': 'Invalid filters', 'errors': filters.errors},
                status=status.HTTP_400_BAD_REQUEST
            )
        data = filters.validated_data

        queryset = Gig.objects.filter(is_published=True).select_related('created_by')
        if data.get('search'):
            queryset = queryset.filter(title__icontains=data['search'])
        if data.get('city'):
            queryset = queryset.filter(city__icontains=data['city'])
        if data.get('state'):
            queryset = queryset.filter(state=data['state'])
        if data.get('status'):
            queryset = queryset.filter(status=data['status'])
        if data.get('compensation_type'):
            queryset = queryset.filter(compensation_type=data['compensation_type'])
        if data.get('min_payout') is not None:
            queryset = queryset.filter(payout_usd__gte=data['min_payout'])
        if data.get('date_start'):
            queryset = queryset.filter(date_start__gte=data['date_start'])
        if data.get('date_end'):
            queryset = queryset.filter(date_start__lte=data['date_end'])

        queryset = queryset.order_by('date_start', 'id')

        paginator = PageNumberPagination()
        page = paginator.paginate_queryset(queryset, request, view=self)
        return Response({
            'gigs': GigSerializer(page, many=True).data,
            'count': paginator.page.paginator.count,
            'page': paginator.page.number,
        })

    def post(self, request, *args, **kwargs):
        """
        Create a gig.

        Steps:
        1. Verify user is authenticated
        2. Verify role is PROMOTER, VENUE or ADMIN
        3. Validate gig data
        4. Check publishing permission
        5. Create gig owned by the caller
        """
        from .serializers import GigSerializer

        # Step 1: Check authentication
        denied = self.unauthenticated(request)
        if denied:
            return denied

        # Step 2: Role check
        self.require_role(request, 'Only promoters, venues and admins can post gigs.')

        # Step 3: Validate data
        serializer = GigSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        # Step 4: Publishing gate
        if serializer.validated_data.get('is_published') and not can_publish_gig(
            request.user.role, verification_status_for(request.user)
        ):
            raise PermissionDenied('Verification required to publish.')

        # Step 5: Create
        gig = serializer.save(created_by=request.user, status='OPEN')

        logger.info(
            f"Gig created. Gig ID: {gig.id}, Title: {gig.title}, Published: {gig.is_published}, "
            f"User: {request.user.email} (ID: {request.user.id}), IP: {get_client_ip(request)}"
        )
        return Response({'gig': GigSerializer(gig).data}, status=status.HTTP_201_CREATED)


class GigDetailView(MarketplaceAPIView):
    """
    Retrieve, update or delete a gig.

    GET /api/gigs/<id>/ (unpublished gigs visible to their owner only)
    PATCH /api/gigs/<id>/ (owner only, publishing re-checked)
    DELETE /api/gigs/<id>/ (owner only)

    Anyone other than the owner gets 404 on PATCH/DELETE.
    """
    rate_limit_actions = {'PATCH': 'gig:update', 'DELETE': 'gig:delete'}

    def get_owned_gig(self, request, pk):
        from .models import Gig

        gig = Gig.objects.filter(pk=pk).first()
        if gig is None or not is_owner(gig, request.user.id):
            raise NotFound('Gig not found.')
        return gig

    def get(self, request, pk, *args, **kwargs):
        from .models import Gig
        from .serializers import GigSerializer

        gig = Gig.objects.select_related('created_by').filter(pk=pk).first()
        user_id = request.user.id if request.user and request.user.is_authenticated else None
        if gig is None or (not gig.is_published and gig.created_by_id != user_id):
            raise NotFound('Gig not found.')
        return Response({'gig': GigSerializer(gig).data})

    def patch(self, request, pk, *args, **kwargs):
        from .serializers import GigSerializer

        denied = self.unauthenticated(request)
        if denied:
            return denied

        gig = self.get_owned_gig(request, pk)
        serializer = GigSerializer(gig, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        if serializer.validated_data.get('is_published') and not can_publish_gig(
            request.user.role, verification_status_for(request.user)
        ):
            raise PermissionDenied('Verification required to publish.')

        gig = serializer.save()
        logger.info(
            f"Gig updated. Gig ID: {gig.id}, Fields: {sorted(serializer.validated_data)}, "
            f"User ID: {request.user.id}, IP: {get_client_ip(request)}"
        )
        return Response({'gig': GigSerializer(gig).data})

    def delete(self, request, pk, *args, **kwargs):
        denied = self.unauthenticated(request)
        if denied:
            return denied

        gig = self.get_owned_gig(request, pk)
        gig_id = gig.id
        gig.delete()

        logger.info(
            f"Gig deleted. Gig ID: {gig_id}, User ID: {request.user.id}, IP: {get_client_ip(request)}"
        )
        return Response({'ok': True})


# ============================================================================
# Applications
# ============================================================================

class ApplicationListCreateView(MarketplaceAPIView):
    """
    Applications to gigs.

    GET /api/applications/ -> own applications (COMEDIAN) or applications to own gigs
    POST /api/applications/ {"gig_id": 1, "message": "..."} (COMEDIAN only)

    Error responses:
    - 403: Caller is not a comedian
    - 404: Gig missing or unpublished
    - 409: Already applied to this gig
    """
    rate_limit_actions = {'POST': 'application:create'}

    def get(self, request, *args, **kwargs):
        from .models import Application
        from .serializers import ApplicationSerializer

        denied = self.unauthenticated(request)
        if denied:
            return denied

        if request.user.role == User.COMEDIAN:
            applications = Application.objects.filter(comedian=request.user)
        else:
            applications = Application.objects.filter(gig__created_by=request.user)

        applications = applications.select_related('comedian')
        return Response({'applications': ApplicationSerializer(applications, many=True).data})

    def post(self, request, *args, **kwargs):
        from .models import Application, Gig
        from .serializers import ApplicationCreateSerializer, ApplicationSerializer

        denied = self.unauthenticated(request)
        if denied:
            return denied

        if not can_apply_to_gig(request.user.role):
            raise PermissionDenied('Only comedians can apply.')

        serializer = ApplicationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        gig = Gig.objects.filter(pk=serializer.validated_data['gig_id'], is_published=True).first()
        if gig is None:
            raise NotFound('Gig unavailable.')

        try:
            with transaction.atomic():
                application = Application.objects.create(
                    gig=gig,
                    comedian=request.user,
                    message=serializer.validated_data['message'],
                )
        except IntegrityError:
            raise Conflict('You have already applied to this gig.')

        emails.deliver(request.user.email, emails.application_received(gig.title))

        logger.info(
            f"Application submitted. Application ID: {application.id}, Gig ID: {gig.id}, "
            f"Comedian ID: {request.user.id}, IP: {get_client_ip(request)}"
        )
        return Response(
            {'application': ApplicationSerializer(application).data},
            status=status.HTTP_201_CREATED
        )


class ApplicationDetailView(MarketplaceAPIView):
    """
    PATCH /api/applications/<id>/ {"status": "SHORTLISTED"}

    Only the owner of the gig can update; anyone else gets 404.
    """
    rate_limit_actions = {'PATCH': 'application:update'}

    def patch(self, request, pk, *args, **kwargs):
        from .models import Application
        from .serializers import ApplicationSerializer, ApplicationStatusSerializer

        denied = self.unauthenticated(request)
        if denied:
            return denied

        application = Application.objects.select_related('gig', 'comedian').filter(pk=pk).first()
        if application is None or application.gig.created_by_id != request.user.id:
            raise NotFound('Not found.')

        serializer = ApplicationStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        old_status = application.status
        application.status = serializer.validated_data['status']
        application.save(update_fields=['status', 'updated_at'])

        logger.info(
            f"Application status updated. Application ID: {application.id}, "
            f"Old Status: {old_status}, New Status: {application.status}, "
            f"User ID: {request.user.id}, IP: {get_client_ip(request)}"
        )
        return Response({'application': ApplicationSerializer(application).data})


# ============================================================================
# Threads & messages
# ============================================================================

class ThreadListCreateView(MarketplaceAPIView):
    """
    Negotiation threads of the current user.

    GET /api/threads/
    Success response (200):
    {"threads": [{"thread": {...}, "gig": {...}, "participants": [...], "last_message": {...}}]}

    POST /api/threads/ {"gig_id": 1, "participant_ids": [2], "initial_message": "Hi"}
    Success response (201): {"thread": {...}}
    """
    rate_limit_actions = {'POST': 'threads:create'}

    def get(self, request, *args, **kwargs):
        from .models import Thread
        from .serializers import GigSerializer, MessageSerializer, ThreadSerializer

        denied = self.unauthenticated(request)
        if denied:
            return denied

        threads = Thread.objects.filter(memberships__user=request.user).select_related(
            'gig', 'gig__created_by'
        ).prefetch_related('memberships__user').distinct()

        results = []
        for thread in threads:
            participants = [membership.user for membership in thread.memberships.all()]
            last_message = thread.messages.order_by('-created_at', '-id').first()
            results.append({
                'thread': ThreadSerializer(thread).data,
                'gig': GigSerializer(thread.gig).data,
                'participants': UserSummarySerializer(participants, many=True).data,
                'last_message': MessageSerializer(last_message).data if last_message else None,
            })

        return Response({'threads': results})

    def post(self, request, *args, **kwargs):
        from .serializers import ThreadCreateSerializer, ThreadSerializer

        denied = self.unauthenticated(request)
        if denied:
            return denied

        serializer = ThreadCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        thread = lifecycle.create_thread(
            gig_id=serializer.validated_data['gig_id'],
            creator=request.user,
            participant_ids=serializer.validated_data['participant_ids'],
            initial_message=serializer.validated_data.get('initial_message'),
        )
        return Response({'thread': ThreadSerializer(thread).data}, status=status.HTTP_201_CREATED)


class ThreadMessagesView(MarketplaceAPIView):
    """
    Messages of one thread.

    GET /api/threads/<id>/messages/ -> {"thread", "messages", "offers"} (participants only, else 404)
    POST /api/threads/<id>/messages/ {"kind": "TEXT"|"FILE"|"OFFER", "body"?, "file_url"?, "offer"?}
    Success response (201): {"message": {...}, "offer_id": 3 | null}
    """
    rate_limit_actions = {'POST': 'threads:message'}

    def get(self, request, pk, *args, **kwargs):
        from .serializers import MessageSerializer, OfferSerializer, ThreadSerializer

        denied = self.unauthenticated(request)
        if denied:
            return denied

        thread = lifecycle.get_thread_for_user(pk, request.user)
        return Response({
            'thread': ThreadSerializer(thread).data,
            'messages': MessageSerializer(thread.messages.all(), many=True).data,
            'offers': OfferSerializer(thread.offers.all(), many=True).data,
        })

    def post(self, request, pk, *args, **kwargs):
        from .models import Thread
        from .permissions import IsThreadParticipant
        from .serializers import MessageCreateSerializer, MessageSerializer

        denied = self.unauthenticated(request)
        if denied:
            return denied

        thread = Thread.objects.filter(pk=pk).first()
        if thread is None:
            raise NotFound('Thread not found.')

        permission = IsThreadParticipant()
        if not permission.has_object_permission(request, self, thread):
            raise PermissionDenied(permission.message)

        serializer = MessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        message, offer = lifecycle.post_message(
            thread,
            request.user,
            kind=data['kind'],
            body=data.get('body', ''),
            file_url=data.get('file_url', ''),
            offer=data.get('offer'),
        )
        return Response(
            {'message': MessageSerializer(message).data, 'offer_id': offer.id if offer else None},
            status=status.HTTP_201_CREATED
        )


# ============================================================================
# Offers
# ============================================================================

class OfferListCreateView(MarketplaceAPIView):
    """
    GET /api/offers/?thread_id=<id> (participants or ADMIN)
    POST /api/offers/ {"thread_id", "amount", "currency"?, "terms", "event_date", "expires_at"?}
        (PROMOTER, VENUE or ADMIN; non-admins must be thread participants)
    """
    rate_limit_actions = {'POST': 'offers:create'}
    allowed_roles = GIG_CREATOR_ROLES

    def get_thread(self, request, thread_id):
        from .models import Thread

        thread = Thread.objects.filter(pk=thread_id).first()
        if thread is None:
            raise NotFound('Thread not found.')
        if not has_role(request.user, (User.ADMIN,)) and not thread.has_participant(request.user.id):
            raise PermissionDenied('You are not a participant in this thread.')
        return thread

    def get(self, request, *args, **kwargs):
        from .serializers import OfferSerializer

        denied = self.unauthenticated(request)
        if denied:
            return denied

        thread_id = request.query_params.get('thread_id')
        if not thread_id:
            raise ValidationError({'thread_id': ['This query parameter is required.']})
        if not thread_id.isdigit():
            raise ValidationError({'thread_id': ['A valid integer is required.']})

        thread = self.get_thread(request, int(thread_id))
        return Response({'offers': OfferSerializer(thread.offers.all(), many=True).data})

    def post(self, request, *args, **kwargs):
        from .serializers import OfferCreateSerializer, OfferSerializer

        denied = self.unauthenticated(request)
        if denied:
            return denied

        self.require_role(request, 'Only promoters, venues and admins can send offers.')

        serializer = OfferCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        thread = self.get_thread(request, data['thread_id'])
        offer = lifecycle.create_offer(
            thread,
            request.user,
            amount=data['amount'],
            terms=data['terms'],
            event_date=data['event_date'],
            currency=data.get('currency', 'USD'),
            expires_at=data.get('expires_at'),
            allow_admin=True,
        )
        return Response({'offer': OfferSerializer(offer).data}, status=status.HTTP_201_CREATED)


class OfferDetailView(MarketplaceAPIView):
    """
    PATCH /api/offers/<id>/ {"status": "ACCEPTED"|"DECLINED"|"EXPIRED", "gig_id"?, "comedian_id"?, "promoter_id"?}
    Success response (200): {"offer": {...}, "booking": {...} | null}
    """
    rate_limit_actions = {'PATCH': 'offers:update'}

    def patch(self, request, pk, *args, **kwargs):
        from .serializers import BookingSerializer, OfferSerializer, OfferStatusSerializer

        denied = self.unauthenticated(request)
        if denied:
            return denied

        serializer = OfferStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        offer, booking = lifecycle.update_offer_status(
            pk,
            request.user,
            status=data['status'],
            gig_id=data.get('gig_id'),
            comedian_id=data.get('comedian_id'),
            promoter_id=data.get('promoter_id'),
        )
        return Response({
            'offer': OfferSerializer(offer).data,
            'booking': BookingSerializer(booking).data if booking else None,
        })


class OfferResolveView(MarketplaceAPIView):
    """
    POST /api/offers/<id>/accept/   -> 201 {"booking": {...}}
    POST /api/offers/<id>/decline/  -> 200 {"ok": true}
    POST /api/offers/<id>/withdraw/ -> 200 {"ok": true}

    Error responses:
    - 403: Not a participant, responding to own offer, or withdrawing someone else's
    - 404: Offer not found
    - 409: Offer already resolved or expired
    """
    action = None

    @property
    def rate_limit_actions(self):
        return {'POST': f'offers:{self.action}'}

    def post(self, request, pk, *args, **kwargs):
        from .serializers import BookingSerializer

        denied = self.unauthenticated(request)
        if denied:
            return denied

        booking = lifecycle.resolve_offer(pk, request.user, self.action)

        if booking is not None:
            return Response({'booking': BookingSerializer(booking).data}, status=status.HTTP_201_CREATED)
        return Response({'ok': True}, status=status.HTTP_200_OK)


# ============================================================================
# Bookings
# ============================================================================

class BookingListCreateView(MarketplaceAPIView):
    """
    GET /api/bookings/ -> {"bookings": [...]} (depends on the caller's role)
    POST /api/bookings/ {"gig_id", "comedian_id", "promoter_id", "offer_id"?}
        (PROMOTER, VENUE or ADMIN; non-admins must be the promoter)
    """
    rate_limit_actions = {'POST': 'bookings:create'}
    allowed_roles = GIG_CREATOR_ROLES

    def get(self, request, *args, **kwargs):
        from .serializers import BookingSerializer

        denied = self.unauthenticated(request)
        if denied:
            return denied

        bookings = lifecycle.bookings_for_user(request.user)
        return Response({'bookings': BookingSerializer(bookings, many=True).data})

    def post(self, request, *args, **kwargs):
        from .serializers import BookingCreateSerializer, BookingSerializer

        denied = self.unauthenticated(request)
        if denied:
            return denied

        self.require_role(request, 'Only promoters, venues and admins can create bookings.')

        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        booking = lifecycle.create_booking(
            request.user,
            gig_id=data['gig_id'],
            comedian_id=data['comedian_id'],
            promoter_id=data['promoter_id'],
            offer_id=data.get('offer_id'),
        )
        return Response({'booking': BookingSerializer(booking).data}, status=status.HTTP_201_CREATED)


class BookingDetailView(MarketplaceAPIView):
    """
    GET /api/bookings/<id>/ (participants or ADMIN)
    PATCH /api/bookings/<id>/ {"status"?, "payout_protection"?, "cancellation_policy"?}

    Status transitions: PENDING -> PAID|CANCELLED, PAID -> COMPLETED|CANCELLED.
    Illegal transitions return 400 with a ``status`` error.
    """
    rate_limit_actions = {'PATCH': 'bookings:update'}

    def get(self, request, pk, *args, **kwargs):
        from .models import Booking
        from .permissions import IsBookingParticipant
        from .serializers import BookingSerializer

        denied = self.unauthenticated(request)
        if denied:
            return denied

        booking = Booking.objects.filter(pk=pk).first()
        if booking is None:
            raise NotFound('Booking not found.')

        permission = IsBookingParticipant()
        if not permission.has_object_permission(request, self, booking):
            raise PermissionDenied(permission.message)

        return Response({'booking': BookingSerializer(booking).data})

    def patch(self, request, pk, *args, **kwargs):
        from .serializers import BookingSerializer, BookingUpdateSerializer

        denied = self.unauthenticated(request)
        if denied:
            return denied

        serializer = BookingUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        booking = lifecycle.update_booking(pk, request.user, dict(serializer.validated_data))
        return Response({'booking': BookingSerializer(booking).data})


class BookingPayView(MarketplaceAPIView):
    """
    POST /api/bookings/<id>/pay/
    Success response (200): {"booking": {...}, "payment_intent_id": "pi_mock_<id>"}

    Error responses:
    - 403: Caller is not the comedian or promoter
    - 404: Booking not found
    - 409: Booking is not PENDING
    """
    rate_limit_actions = {'POST': 'bookings:pay'}

    def post(self, request, pk, *args, **kwargs):
        from .serializers import BookingSerializer

        denied = self.unauthenticated(request)
        if denied:
            return denied

        booking, payment_intent_id = lifecycle.mark_paid(pk, request.user)
        return Response({
            'booking': BookingSerializer(booking).data,
            'payment_intent_id': payment_intent_id,
        })


# ============================================================================
# Reviews
# ============================================================================

class ReviewListCreateView(MarketplaceAPIView):
    """
    GET /api/reviews/?subject_user_id=<id> | ?gig_id=<id> (exactly one, public)
    POST /api/reviews/ {"subject_user_id", "gig_id", "rating", "comment"}

    Error responses:
    - 400: Validation failure, no qualifying booking, or show not started
    - 404: Gig not found
    - 409: Review already submitted for this gig
    """
    rate_limit_actions = {'POST': 'reviews:create'}

    def get(self, request, *args, **kwargs):
        from .serializers import ReviewSerializer

        params = {}
        for name in ('subject_user_id', 'gig_id'):
            value = request.query_params.get(name)
            if value:
                if not value.isdigit():
                    raise ValidationError({name: ['A valid integer is required.']})
                params[name] = int(value)

        reviews = lifecycle.list_reviews(**params)
        return Response({'reviews': ReviewSerializer(reviews, many=True).data})

    def post(self, request, *args, **kwargs):
        from .serializers import ReviewCreateSerializer, ReviewSerializer

        denied = self.unauthenticated(request)
        if denied:
            return denied

        serializer = ReviewCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        review = lifecycle.submit_review(
            request.user,
            subject_user_id=data['subject_user_id'],
            gig_id=data['gig_id'],
            rating=data['rating'],
            comment=data['comment'],
        )
        return Response({'review': ReviewSerializer(review).data}, status=status.HTTP_201_CREATED)


# ============================================================================
# Verification
# ============================================================================

class VerificationView(MarketplaceAPIView):
    """
    GET /api/verification/ -> {"request": latest own request | null}
    POST /api/verification/ {"role": "PROMOTER"|"VENUE", "message", "documents": [{name, url, size}]}
    Success response (201): {"request": {...}}
    """
    rate_limit_actions = {'POST': 'verification'}

    def get(self, request, *args, **kwargs):
        from .models import VerificationRequest
        from .serializers import VerificationRequestSerializer

        denied = self.unauthenticated(request)
        if denied:
            return denied

        latest = VerificationRequest.objects.filter(user=request.user).order_by('-created_at', '-id').first()
        return Response({'request': VerificationRequestSerializer(latest).data if latest else None})

    def post(self, request, *args, **kwargs):
        from .serializers import VerificationRequestCreateSerializer, VerificationRequestSerializer

        denied = self.unauthenticated(request)
        if denied:
            return denied

        serializer = VerificationRequestCreateSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        verification = serializer.save()

        emails.deliver(
            request.user.email,
            emails.verification_submitted(request.user.name or 'there'),
        )

        logger.info(
            f"Verification requested. Request ID: {verification.id}, Role: {verification.role_requested}, "
            f"User ID: {request.user.id}, IP: {get_client_ip(request)}"
        )
        return Response(
            {'request': VerificationRequestSerializer(verification).data},
            status=status.HTTP_201_CREATED
        )


class VerificationMineView(MarketplaceAPIView):
    """GET /api/verification/me/ -> {"requests": [...]} newest first."""

    def get(self, request, *args, **kwargs):
        from .models import VerificationRequest
        from .serializers import VerificationRequestSerializer

        denied = self.unauthenticated(request)
        if denied:
            return denied

        requests = VerificationRequest.objects.filter(user=request.user).order_by('-created_at', '-id')
        return Response({'requests': VerificationRequestSerializer(requests, many=True).data})


class VerificationDecisionView(MarketplaceAPIView):
    """
    POST /api/verification/<id>/decision/ {"status": "APPROVED"|"REJECTED"} (ADMIN only)

    Records the reviewer, mirrors the status into the user's promoter/venue
    profile and emails the decision.
    """

    def post(self, request, pk, *args, **kwargs):
        from .models import PromoterProfile, VenueProfile, VerificationRequest
        from .permissions import IsAdminRole
        from .serializers import VerificationDecisionSerializer, VerificationRequestSerializer

        denied = self.unauthenticated(request)
        if denied:
            return denied

        permission = IsAdminRole()
        if not permission.has_permission(request, self):
            raise PermissionDenied(permission.message)

        serializer = VerificationDecisionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        decision = serializer.validated_data['status']

        with transaction.atomic():
            verification = VerificationRequest.objects.select_for_update().select_related('user').filter(
                pk=pk
            ).first()
            if verification is None:
                raise NotFound('Request not found.')

            verification.status = decision
            verification.reviewed_by = request.user
            verification.save(update_fields=['status', 'reviewed_by', 'updated_at'])

            PromoterProfile.objects.filter(user=verification.user).exclude(
                verification_status=decision
            ).update(verification_status=decision)
            VenueProfile.objects.filter(user=verification.user).exclude(
                verification_status=decision
            ).update(verification_status=decision)

        subject = verification.user
        emails.deliver(subject.email, emails.verification_decision(subject.name or 'there', decision))

        logger.info(
            f"Verification decided. Request ID: {verification.id}, Status: {decision}, "
            f"Subject ID: {subject.id}, Admin ID: {request.user.id}, IP: {get_client_ip(request)}"
        )
        return Response({'request': VerificationRequestSerializer(verification).data})


# ============================================================================
# Community board
# ============================================================================

class CommunityPostListCreateView(MarketplaceAPIView):
    """
    GET /api/community/posts/ -> {"posts": [...]} (public; ``user_vote`` for the caller)
    POST /api/community/posts/ {"title", "content"} -> 201 {"post": {...}}
    """
    rate_limit_actions = {'POST': 'community:post'}

    def get(self, request, *args, **kwargs):
        return Response({'posts': community.build_feed(request.user)})

    def post(self, request, *args, **kwargs):
        from .models import CommunityPost
        from .serializers import CommunityPostCreateSerializer

        denied = self.unauthenticated(request)
        if denied:
            return denied

        serializer = CommunityPostCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        post = CommunityPost.objects.create(author=request.user, **serializer.validated_data)
        logger.info(f"Community post created. Post ID: {post.id}, Author ID: {request.user.id}")

        return Response(
            {'post': community.build_post_view(post.id, request.user)},
            status=status.HTTP_201_CREATED
        )


class CommunityReplyCreateView(MarketplaceAPIView):
    """POST /api/community/posts/<id>/replies/ {"content"} -> 201 {"reply", "post"}"""
    rate_limit_actions = {'POST': 'community:reply'}

    def post(self, request, pk, *args, **kwargs):
        from .models import CommunityPost, CommunityReply
        from .serializers import CommunityReplyCreateSerializer

        denied = self.unauthenticated(request)
        if denied:
            return denied

        post = CommunityPost.objects.filter(pk=pk).first()
        if post is None:
            raise NotFound('Post not found.')

        serializer = CommunityReplyCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        reply = CommunityReply.objects.create(
            post=post,
            author=request.user,
            content=serializer.validated_data['content'],
        )
        logger.info(f"Community reply created. Reply ID: {reply.id}, Post ID: {post.id}, Author ID: {request.user.id}")

        return Response({
            'reply': community.build_reply_view(reply.id, request.user),
            'post': community.build_post_view(post.id, request.user),
        }, status=status.HTTP_201_CREATED)


class CommunityVoteView(MarketplaceAPIView):
    """
    POST /api/community/votes/ {"target_type": "POST"|"REPLY", "target_id", "value": -1|0|1}
    Success response (200): {"post": {...}} or {"reply": {...}}
    """
    rate_limit_actions = {'POST': 'community:vote'}

    def post(self, request, *args, **kwargs):
        from .models import CommunityVote
        from .serializers import CommunityVoteSerializer

        denied = self.unauthenticated(request)
        if denied:
            return denied

        serializer = CommunityVoteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        community.set_vote(request.user, data['target_type'], data['target_id'], data['value'])

        if data['target_type'] == CommunityVote.POST:
            return Response({'post': community.build_post_view(data['target_id'], request.user)})
        return Response({'reply': community.build_reply_view(data['target_id'], request.user)})


# ============================================================================
# Reports
# ============================================================================

class ReportCreateView(MarketplaceAPIView):
    """POST /api/report/ {"target_type": "USER"|"THREAD"|"GIG", "target_id", "reason", "details"?}"""
    rate_limit_actions = {'POST': 'report'}

    def post(self, request, *args, **kwargs):
        from .serializers import ReportSerializer

        denied = self.unauthenticated(request)
        if denied:
            return denied

        serializer = ReportSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        report = serializer.save(reporter=request.user)

        logger.info(
            f"Report filed. Report ID: {report.id}, Target: {report.target_type} {report.target_id}, "
            f"Reporter ID: {request.user.id}, IP: {get_client_ip(request)}"
        )
        return Response({'report': ReportSerializer(report).data}, status=status.HTTP_201_CREATED)
