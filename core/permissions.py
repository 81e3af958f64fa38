"""
Authorization predicates and permission classes for the-funny.

The predicates are plain functions so that both views and domain operations
can use them; the permission classes below compose them for DRF views.
"""

from rest_framework import permissions

VERIFIED_ROLES = ('PROMOTER', 'VENUE')
GIG_CREATOR_ROLES = ('PROMOTER', 'VENUE', 'ADMIN')


# ============================================================================
# Predicates
# ============================================================================

def is_authenticated(request):
    """Return the authenticated user for ``request`` or None."""
    user = getattr(request, 'user', None)
    if user is None or not user.is_authenticated:
        return None
    return user


def is_participant(thread, user_id):
    return thread.has_participant(user_id)


def is_owner(resource, user_id):
    """
    True when ``user_id`` owns ``resource``.

    Ownership is read from the first of ``created_by``, ``author``, ``user``
    or ``from_user`` present on the resource.
    """
    for field in ('created_by_id', 'author_id', 'user_id', 'from_user_id'):
        if hasattr(resource, field):
            return getattr(resource, field) == user_id
    return False


def has_role(user, allowed_roles):
    return user is not None and getattr(user, 'role', None) in allowed_roles


def requires_verification(role):
    return role in VERIFIED_ROLES


def can_publish_gig(role, verification_status):
    """
    Decide whether a user may publish a gig.

    ADMIN may always publish, PROMOTER and VENUE only once approved, and
    every other role never.
    """
    if role == 'ADMIN':
        return True
    if requires_verification(role):
        return verification_status == 'APPROVED'
    return False


def can_apply_to_gig(role):
    return role == 'COMEDIAN'


def verification_status_for(user):
    """Promoter profile status, else venue profile status, else None."""
    return user.verification_status


# ============================================================================
# Permission classes
# ============================================================================

class IsAdminRole(permissions.BasePermission):
    """
    Allows access only to users with role ADMIN.

    Usage:
        class VerificationDecisionView(APIView):
            permission_classes = [IsAuthenticated, IsAdminRole]
    """

    message = 'Only administrators can perform this action.'

    def has_permission(self, request, view):
        user = is_authenticated(request)
        return has_role(user, ('ADMIN',))


class HasRole(permissions.BasePermission):
    """
    Allows access to users whose role is listed in the view's ``allowed_roles``.

    Safe methods are not restricted so list endpoints can stay public.
    """

    message = 'Your role is not allowed to perform this action.'

    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return True
        user = is_authenticated(request)
        allowed_roles = getattr(view, 'allowed_roles', ())
        return has_role(user, allowed_roles)


class IsThreadParticipant(permissions.BasePermission):
    """
    Object-level permission for threads (or objects attached to a thread).
    """

    message = 'You are not a participant in this thread.'

    def has_object_permission(self, request, view, obj):
        user = is_authenticated(request)
        if user is None:
            return False
        thread = getattr(obj, 'thread', obj)
        return is_participant(thread, user.id)


class IsBookingParticipant(permissions.BasePermission):
    """
    Object-level permission for bookings: comedian, promoter or ADMIN.
    """

    message = 'You do not have access to this booking.'

    def has_object_permission(self, request, view, obj):
        user = is_authenticated(request)
        if user is None:
            return False
        if has_role(user, ('ADMIN',)):
            return True
        return obj.has_participant(user.id)
