"""
Negotiation, booking and review operations.

Each function takes model instances or ids plus the acting user, enforces the
participant and role rules for that operation, and raises DRF exceptions
(NotFound, PermissionDenied, ValidationError, Conflict) that views turn into
HTTP responses.

Status changes on offers and bookings are conditional updates
(``filter(status=PENDING).update(...)``): when no row is updated another
request won the race and the caller gets a Conflict.
"""

import logging

from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from .exceptions import Conflict
from .models import Booking, Gig, Message, Offer, Review, Thread, ThreadParticipant, User
from .permissions import has_role, is_participant

logger = logging.getLogger(__name__)

OFFER_ACCEPTED_NOTICE = 'Offer accepted. Booking created: {booking_id}'
OFFER_DECLINED_NOTICE = 'Offer declined.'
OFFER_WITHDRAWN_NOTICE = 'Offer withdrawn by sender.'
PAYMENT_CONFIRMED_NOTICE = "Payment confirmed. You're protected under platform payout coverage."

RESOLVE_ACTIONS = {
    'accept': Offer.ACCEPTED,
    'decline': Offer.DECLINED,
    'withdraw': Offer.WITHDRAWN,
}

REVIEWABLE_BOOKING_STATUSES = (Booking.PAID, Booking.COMPLETED)


def payment_reference(booking):
    return f'pi_mock_{booking.id}'


def _system_message(thread_id, sender, body):
    return Message.objects.create(
        thread_id=thread_id,
        sender=sender,
        kind=Message.SYSTEM,
        body=body,
    )


def _get_offer(offer_id):
    try:
        return Offer.objects.select_related('thread', 'from_user').get(pk=offer_id)
    except Offer.DoesNotExist:
        raise NotFound('Offer not found.')


def _get_booking(booking_id):
    try:
        return Booking.objects.select_related('offer').get(pk=booking_id)
    except Booking.DoesNotExist:
        raise NotFound('Booking not found.')


# ============================================================================
# Threads & messages
# ============================================================================

def get_thread_for_user(thread_id, user):
    """
    Fetch a thread the user participates in.

    Raises:
        NotFound: Thread missing or the user is not a participant
    """
    try:
        thread = Thread.objects.select_related('gig').get(pk=thread_id)
    except Thread.DoesNotExist:
        raise NotFound('Thread not found.')

    if not is_participant(thread, user.id):
        raise NotFound('Thread not found.')

    return thread


@transaction.atomic
def create_thread(gig_id, creator, participant_ids, initial_message=None):
    """
    Open a negotiation thread on a gig.

    Participants are the creator followed by the given ids in order, with
    duplicates removed. Threads are not de-duplicated per gig.

    Raises:
        NotFound: Gig does not exist
        ValidationError: A participant id does not match a user
    """
    try:
        gig = Gig.objects.get(pk=gig_id)
    except Gig.DoesNotExist:
        raise NotFound('Gig not found.')

    ordered_ids = [creator.id]
    for user_id in participant_ids:
        if user_id not in ordered_ids:
            ordered_ids.append(user_id)

    existing = set(User.objects.filter(pk__in=ordered_ids).values_list('id', flat=True))
    missing = [user_id for user_id in ordered_ids if user_id not in existing]
    if missing:
        raise ValidationError({
            'participant_ids': [f'Unknown user id(s): {", ".join(str(m) for m in missing)}.']
        })

    thread = Thread.objects.create(gig=gig, created_by=creator)
    ThreadParticipant.objects.bulk_create([
        ThreadParticipant(thread=thread, user_id=user_id, position=position)
        for position, user_id in enumerate(ordered_ids)
    ])

    if initial_message:
        Message.objects.create(
            thread=thread,
            sender=creator,
            kind=Message.TEXT,
            body=initial_message,
        )

    logger.info(
        f"Thread created. Thread ID: {thread.id}, Gig ID: {gig.id}, "
        f"Creator ID: {creator.id}, Participants: {ordered_ids}"
    )
    return thread


def create_offer(thread, from_user, amount, terms, event_date, currency='USD',
                 expires_at=None, allow_admin=False):
    """
    Create a PENDING offer in a thread.

    Args:
        allow_admin: Let an ADMIN who is not a participant post the offer

    Raises:
        PermissionDenied: Sender is not a participant
        ValidationError: Amount is not a positive integer
    """
    if not is_participant(thread, from_user.id):
        if not (allow_admin and has_role(from_user, (User.ADMIN,))):
            raise PermissionDenied('You are not a participant in this thread.')

    if isinstance(amount, bool) or not isinstance(amount, int) or amount < 1:
        raise ValidationError({'amount': ['Amount must be a positive integer.']})

    offer = Offer.objects.create(
        thread=thread,
        from_user=from_user,
        amount=amount,
        currency=(currency or 'USD').upper(),
        terms=terms,
        event_date=event_date,
        expires_at=expires_at,
    )

    logger.info(
        f"Offer created. Offer ID: {offer.id}, Thread ID: {thread.id}, "
        f"From User ID: {from_user.id}, Amount: {offer.amount} {offer.currency}"
    )
    return offer


@transaction.atomic
def post_message(thread, sender, kind, body='', file_url='', offer=None):
    """
    Append a message to a thread.

    For OFFER messages the offer is created first, the message references it
    and the thread is relabelled QUOTE.

    Returns:
        tuple: (Message, Offer or None)

    Raises:
        PermissionDenied: Sender is not a participant
        ValidationError: Required payload for the kind is missing
    """
    if not is_participant(thread, sender.id):
        raise PermissionDenied('You are not a participant in this thread.')

    created_offer = None

    if kind == Message.TEXT:
        if not body or not body.strip():
            raise ValidationError({'body': ['Text messages require a body.']})
    elif kind == Message.FILE:
        if not file_url:
            raise ValidationError({'file_url': ['File messages require a file URL.']})
    elif kind == Message.OFFER:
        if not offer:
            raise ValidationError({'offer': ['Offer messages require offer details.']})
        created_offer = create_offer(
            thread,
            sender,
            amount=offer['amount'],
            terms=offer['terms'],
            event_date=offer['event_date'],
            currency=offer.get('currency', 'USD'),
            expires_at=offer.get('expires_at'),
        )
        thread.mark_state(Thread.QUOTE)
        body = ''
        file_url = ''
    else:
        raise ValidationError({'kind': [f'Unsupported message kind: {kind}.']})

    message = Message.objects.create(
        thread=thread,
        sender=sender,
        kind=kind,
        body=body or '',
        file_url=file_url or '',
        offer=created_offer,
    )
    Thread.objects.filter(pk=thread.pk).update(updated_at=timezone.now())

    return message, created_offer


# ============================================================================
# Offer resolution
# ============================================================================

def _booking_for_offer(offer, gig_id, comedian_id, promoter_id):
    """Create the PENDING booking for an accepted offer, at most once."""
    booking, created = Booking.objects.get_or_create(
        offer=offer,
        defaults={
            'gig_id': gig_id,
            'comedian_id': comedian_id,
            'promoter_id': promoter_id,
            'status': Booking.PENDING,
        },
    )
    if not created:
        logger.info(f"Booking already existed for offer {offer.id}: {booking.id}")
    return booking


def _expire(offer):
    if offer.transition_to(Offer.EXPIRED):
        logger.info(f"Offer expired on accept attempt. Offer ID: {offer.id}")
    raise Conflict('Offer has expired.')


def resolve_offer(offer_id, acting_user, action):
    """
    Accept, decline or withdraw a pending offer.

    Steps:
    1. Load the offer (404) and check the acting user belongs to its thread (403)
    2. Offer must still be PENDING (409)
    3. accept/decline: acting user must not be the sender (403);
       withdraw: acting user must be the sender (403)
    4. accept on an offer past ``expires_at``: mark EXPIRED, then 409
    5. Conditional status update; zero rows updated means 409
    6. accept: create the booking, mark the thread BOOKED and post a notice;
       decline/withdraw: post a notice

    Returns:
        Booking for accept, None otherwise
    """
    if action not in RESOLVE_ACTIONS:
        raise ValidationError({'action': [f'Unknown action: {action}.']})

    offer = _get_offer(offer_id)
    thread = offer.thread
    is_sender = offer.from_user_id == acting_user.id

    if not is_sender and not is_participant(thread, acting_user.id):
        raise PermissionDenied('You are not a participant in this thread.')

    if offer.status != Offer.PENDING:
        raise Conflict('Offer already resolved.')

    if action == 'withdraw':
        if not is_sender:
            raise PermissionDenied('Only the sender can withdraw this offer.')
    elif is_sender:
        raise PermissionDenied('You cannot respond to your own offer.')

    if action == 'accept' and offer.is_expired():
        _expire(offer)

    booking = None
    with transaction.atomic():
        if not offer.transition_to(RESOLVE_ACTIONS[action]):
            raise Conflict('Offer already resolved.')

        if action == 'accept':
            from_user = offer.from_user
            if from_user.role == User.COMEDIAN:
                comedian_id, promoter_id = from_user.id, acting_user.id
            else:
                comedian_id, promoter_id = acting_user.id, from_user.id

            booking = _booking_for_offer(offer, thread.gig_id, comedian_id, promoter_id)
            thread.mark_state(Thread.BOOKED)
            _system_message(thread.id, acting_user, OFFER_ACCEPTED_NOTICE.format(booking_id=booking.id))
        elif action == 'decline':
            _system_message(thread.id, acting_user, OFFER_DECLINED_NOTICE)
        else:
            _system_message(thread.id, acting_user, OFFER_WITHDRAWN_NOTICE)

    logger.info(
        f"Offer resolved. Offer ID: {offer.id}, Action: {action}, "
        f"User ID: {acting_user.id}, Booking ID: {booking.id if booking else None}"
    )
    return booking


def update_offer_status(offer_id, acting_user, status, gig_id=None, comedian_id=None, promoter_id=None):
    """
    Set an offer's status from the generic offer endpoint.

    Non-admins must be a COMEDIAN participant who did not send the offer and
    may only accept or decline. Admins may also expire offers. Accepting
    creates the booking with the given (or defaulted) parties.

    Returns:
        tuple: (Offer, Booking or None)
    """
    offer = _get_offer(offer_id)
    thread = offer.thread
    is_admin = has_role(acting_user, (User.ADMIN,))

    if not is_admin:
        if not is_participant(thread, acting_user.id):
            raise PermissionDenied('You are not a participant in this thread.')
        if offer.from_user_id == acting_user.id:
            raise PermissionDenied('Only the receiving comedian can update this offer.')
        if acting_user.role != User.COMEDIAN:
            raise PermissionDenied('Only the receiving comedian can update this offer.')
        if status not in (Offer.ACCEPTED, Offer.DECLINED):
            raise PermissionDenied('You can only accept or decline this offer.')

    if status == Offer.ACCEPTED:
        gig_id = gig_id or thread.gig_id
        promoter_id = promoter_id or offer.from_user_id
        if not is_admin:
            comedian_id = comedian_id or acting_user.id
            if comedian_id != acting_user.id:
                raise PermissionDenied('You can only accept offers for yourself.')
            if promoter_id != offer.from_user_id:
                raise ValidationError({'promoter_id': ['Invalid promoter for offer.']})

        if comedian_id is None:
            raise ValidationError({'comedian_id': ['This field is required to accept an offer.']})
        if gig_id != thread.gig_id:
            raise ValidationError({'gig_id': ["gig_id must match the thread's gig."]})
        if not is_participant(thread, comedian_id):
            raise PermissionDenied('Comedian is not part of this thread.')
        if promoter_id != offer.from_user_id and not is_participant(thread, promoter_id):
            raise PermissionDenied('Promoter is not part of this thread.')
        if comedian_id == promoter_id:
            raise ValidationError({'promoter_id': ['Comedian and promoter must be different users.']})

    if offer.status != Offer.PENDING:
        raise Conflict('Offer already resolved.')

    if status == Offer.ACCEPTED and offer.is_expired():
        _expire(offer)

    booking = None
    with transaction.atomic():
        if not offer.transition_to(status):
            raise Conflict('Offer already resolved.')

        if status == Offer.ACCEPTED:
            booking = _booking_for_offer(offer, gig_id, comedian_id, promoter_id)
            thread.mark_state(Thread.BOOKED)
            _system_message(thread.id, acting_user, OFFER_ACCEPTED_NOTICE.format(booking_id=booking.id))
        elif status == Offer.DECLINED:
            _system_message(thread.id, acting_user, OFFER_DECLINED_NOTICE)

    logger.info(
        f"Offer status updated. Offer ID: {offer.id}, Status: {status}, "
        f"User ID: {acting_user.id}, Booking ID: {booking.id if booking else None}"
    )
    return offer, booking


# ============================================================================
# Bookings
# ============================================================================

def create_booking(acting_user, gig_id, comedian_id, promoter_id, offer_id=None):
    """
    Create a booking directly (promoter-initiated path).

    Raises:
        PermissionDenied: Non-admin caller is not the promoter
        NotFound: Gig does not exist
        ValidationError: Comedian/promoter/offer do not qualify
        Conflict: A booking already exists for the offer
    """
    if not has_role(acting_user, (User.ADMIN,)) and promoter_id != acting_user.id:
        raise PermissionDenied('You can only create bookings as the promoter.')

    try:
        gig = Gig.objects.get(pk=gig_id)
    except Gig.DoesNotExist:
        raise NotFound('Gig not found.')

    comedian = User.objects.filter(pk=comedian_id).first()
    if comedian is None or comedian.role != User.COMEDIAN:
        raise ValidationError({'comedian_id': ['Comedian must be an existing user with role COMEDIAN.']})

    if not User.objects.filter(pk=promoter_id).exists():
        raise ValidationError({'promoter_id': ['Promoter does not exist.']})

    if comedian_id == promoter_id:
        raise ValidationError({'promoter_id': ['Comedian and promoter must be different users.']})

    offer = None
    if offer_id is not None:
        offer = Offer.objects.select_related('thread').filter(pk=offer_id).first()
        if offer is None:
            raise ValidationError({'offer_id': ['Offer does not exist.']})
        if offer.status != Offer.ACCEPTED:
            raise ValidationError({'offer_id': ['Only accepted offers can be booked.']})
        if offer.thread.gig_id != gig.id:
            raise ValidationError({'offer_id': ['Offer does not belong to this gig.']})
        if Booking.objects.filter(offer=offer).exists():
            raise Conflict('A booking already exists for this offer.')

    try:
        with transaction.atomic():
            booking = Booking.objects.create(
                gig=gig,
                comedian_id=comedian_id,
                promoter_id=promoter_id,
                offer=offer,
                status=Booking.PENDING,
            )
    except IntegrityError:
        raise Conflict('A booking already exists for this offer.')

    logger.info(
        f"Booking created. Booking ID: {booking.id}, Gig ID: {gig.id}, "
        f"Comedian ID: {comedian_id}, Promoter ID: {promoter_id}, By User ID: {acting_user.id}"
    )
    return booking


def _record_payment(booking, acting_user):
    """
    Move a PENDING booking to PAID and post the payment notice.

    Must run inside a transaction.
    """
    reference = payment_reference(booking)
    updated = Booking.objects.filter(pk=booking.pk, status=Booking.PENDING).update(
        status=Booking.PAID,
        payment_intent_id=reference,
        updated_at=timezone.now(),
    )
    if not updated:
        raise Conflict('Only pending bookings can be paid.')

    booking.status = Booking.PAID
    booking.payment_intent_id = reference

    if booking.offer_id:
        _system_message(booking.offer.thread_id, acting_user, PAYMENT_CONFIRMED_NOTICE)

    return reference


def mark_paid(booking_id, acting_user):
    """
    Record a mocked payment for a booking.

    Returns:
        tuple: (Booking, payment intent id)

    Raises:
        NotFound: Booking does not exist
        PermissionDenied: Acting user is not the comedian or promoter
        Conflict: Booking is not PENDING
    """
    booking = _get_booking(booking_id)

    if not booking.has_participant(acting_user.id):
        raise PermissionDenied('Only booking participants can pay for a booking.')

    if booking.status != Booking.PENDING:
        raise Conflict('Only pending bookings can be paid.')

    with transaction.atomic():
        reference = _record_payment(booking, acting_user)

    booking.refresh_from_db()
    logger.info(
        f"Booking paid. Booking ID: {booking.id}, Payment Intent: {reference}, "
        f"User ID: {acting_user.id}"
    )
    return booking, reference


def update_booking(booking_id, acting_user, changes):
    """
    Patch status and terms of a booking.

    Status changes follow ``Booking.VALID_TRANSITIONS``. Moving to PAID
    records the payment reference; moving to COMPLETED marks the originating
    thread COMPLETED.

    Raises:
        NotFound: Booking does not exist
        PermissionDenied: Acting user is neither participant nor ADMIN
        ValidationError: Empty patch or illegal status transition
    """
    booking = _get_booking(booking_id)

    if not has_role(acting_user, (User.ADMIN,)) and not booking.has_participant(acting_user.id):
        raise PermissionDenied('You do not have access to this booking.')

    if not changes:
        raise ValidationError({'non_field_errors': ['Provide at least one field to update.']})

    with transaction.atomic():
        booking = Booking.objects.select_for_update().select_related('offer').get(pk=booking.pk)
        old_status = booking.status
        new_status = changes.get('status', old_status)

        is_valid, error_message = booking.can_transition_to(new_status)
        if not is_valid:
            raise ValidationError({'status': [error_message]})

        if new_status != old_status:
            if new_status == Booking.PAID:
                _record_payment(booking, acting_user)
            else:
                booking.status = new_status

        for field in ('payout_protection', 'cancellation_policy'):
            if field in changes:
                setattr(booking, field, changes[field])

        booking.save()

        if new_status == Booking.COMPLETED and new_status != old_status and booking.offer_id:
            Thread.objects.filter(pk=booking.offer.thread_id).update(
                state=Thread.COMPLETED,
                updated_at=timezone.now(),
            )

    logger.info(
        f"Booking updated. Booking ID: {booking.id}, Status: {old_status} -> {booking.status}, "
        f"Fields: {sorted(changes)}, User ID: {acting_user.id}"
    )
    return booking


def bookings_for_user(user):
    """
    Bookings visible in the caller's booking list.

    COMEDIAN sees bookings as comedian, PROMOTER/VENUE as promoter, ADMIN the
    de-duplicated union of both for their own id, FAN nothing.
    """
    if user.role == User.COMEDIAN:
        return Booking.objects.filter(comedian=user).order_by('created_at', 'id')
    if user.role in (User.PROMOTER, User.VENUE):
        return Booking.objects.filter(promoter=user).order_by('created_at', 'id')
    if user.role == User.ADMIN:
        return Booking.objects.filter(
            Q(comedian=user) | Q(promoter=user)
        ).distinct().order_by('created_at', 'id')
    return Booking.objects.none()


# ============================================================================
# Reviews
# ============================================================================

def submit_review(author, subject_user_id, gig_id, rating, comment, now=None):
    """
    Create a review of the other party of a booking.

    Steps:
    1. Reject self-review (400)
    2. Gig must exist (404)
    3. A booking for the gig must pair author and subject in either order (400)
    4. That booking must be PAID or COMPLETED (400)
    5. The show must have started (400)
    6. One review per author and gig (409)
    7. Persist
    """
    if subject_user_id == author.id:
        raise ValidationError({'subject_user_id': ['You cannot review yourself.']})

    try:
        gig = Gig.objects.get(pk=gig_id)
    except Gig.DoesNotExist:
        raise NotFound('Gig not found.')

    bookings = Booking.objects.filter(gig=gig).filter(
        Q(comedian=author, promoter_id=subject_user_id)
        | Q(promoter=author, comedian_id=subject_user_id)
    )
    if not bookings.exists():
        raise ValidationError({'detail': 'A booking with this user is required before leaving a review.'})

    booking = bookings.filter(status__in=REVIEWABLE_BOOKING_STATUSES).order_by('created_at').first()
    if booking is None:
        raise ValidationError({'detail': 'Booking must be paid or completed before review.'})

    if not gig.has_started(now):
        raise ValidationError({'detail': 'Reviews are available after the show.'})

    if Review.objects.filter(author=author, gig=gig).exists():
        raise Conflict('Review already submitted.')

    try:
        with transaction.atomic():
            review = Review.objects.create(
                author=author,
                subject_id=subject_user_id,
                gig=gig,
                booking=booking,
                rating=rating,
                comment=comment,
            )
    except IntegrityError:
        raise Conflict('Review already submitted.')

    logger.info(
        f"Review created. Review ID: {review.id}, Author ID: {author.id}, "
        f"Subject ID: {subject_user_id}, Gig ID: {gig.id}, Rating: {rating}"
    )
    return review


def list_reviews(subject_user_id=None, gig_id=None):
    """Reviews filtered by exactly one of subject user or gig."""
    if subject_user_id is None and gig_id is None:
        raise ValidationError({'detail': 'Provide subject_user_id or gig_id to list reviews.'})
    if subject_user_id is not None and gig_id is not None:
        raise ValidationError({'detail': 'Specify only one of subject_user_id or gig_id.'})

    reviews = Review.objects.select_related('author', 'subject')
    if subject_user_id is not None:
        return reviews.filter(subject_id=subject_user_id)
    return reviews.filter(gig_id=gig_id)
