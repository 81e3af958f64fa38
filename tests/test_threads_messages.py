"""
Negotiation thread and message tests.
"""

import pytest
from datetime import timedelta
from django.contrib.auth import get_user_model
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from core.lifecycle import create_thread
from core.models import Gig, Message, Thread

User = get_user_model()


@pytest.fixture(autouse=True)
def clear_cache(db):
    """Clear Django cache before each test to reset rate limit counters."""
    from django.core.cache import cache
    cache.clear()


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def promoter(db):
    return User.objects.create_user(
        username='thread_promoter',
        email='thread_promoter@test.com',
        password='TestPass123!',
        name='Pat Promoter',
        role='PROMOTER',
    )


@pytest.fixture
def comedian(db):
    return User.objects.create_user(
        username='thread_comedian',
        email='thread_comedian@test.com',
        password='TestPass123!',
        name='Casey Comic',
        role='COMEDIAN',
    )


@pytest.fixture
def outsider(db):
    return User.objects.create_user(
        username='thread_outsider',
        email='thread_outsider@test.com',
        password='TestPass123!',
        role='FAN',
    )


@pytest.fixture
def gig(promoter):
    return Gig.objects.create(
        created_by=promoter,
        title='Sunday Storytelling',
        description='Long-form storytelling night with three featured tellers.',
        compensation_type='FLAT',
        payout_usd=150,
        date_start=timezone.now() + timedelta(days=9),
        timezone='America/Los_Angeles',
        city='Los Angeles',
        state='CA',
        is_published=True,
    )


@pytest.fixture
def thread(gig, promoter, comedian):
    return create_thread(gig.id, promoter, [comedian.id])


@pytest.mark.django_db
class TestThreadCreate:

    def test_creator_is_first_participant_and_duplicates_dropped(self, api_client, gig, promoter, comedian):
        api_client.force_authenticate(user=promoter)
        response = api_client.post(reverse('thread_list'), {
            'gig_id': gig.id,
            'participant_ids': [comedian.id, promoter.id, comedian.id],
            'initial_message': 'Are you free that Sunday?',
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['thread']['participant_ids'] == [promoter.id, comedian.id]
        assert response.data['thread']['state'] == 'INQUIRY'

        thread = Thread.objects.get(pk=response.data['thread']['id'])
        first = thread.messages.get()
        assert first.kind == 'TEXT'
        assert first.body == 'Are you free that Sunday?'

    def test_threads_are_not_deduplicated(self, api_client, gig, promoter, comedian):
        api_client.force_authenticate(user=promoter)
        payload = {'gig_id': gig.id, 'participant_ids': [comedian.id]}

        api_client.post(reverse('thread_list'), payload, format='json')
        api_client.post(reverse('thread_list'), payload, format='json')

        assert Thread.objects.filter(gig=gig).count() == 2

    def test_unknown_gig(self, api_client, promoter, comedian):
        api_client.force_authenticate(user=promoter)
        response = api_client.post(reverse('thread_list'), {
            'gig_id': 99999,
            'participant_ids': [comedian.id],
        }, format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_unknown_participant(self, api_client, gig, promoter):
        api_client.force_authenticate(user=promoter)
        response = api_client.post(reverse('thread_list'), {
            'gig_id': gig.id,
            'participant_ids': [99999],
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'participant_ids' in response.data

    def test_participants_required(self, api_client, gig, promoter):
        api_client.force_authenticate(user=promoter)
        response = api_client.post(reverse('thread_list'), {
            'gig_id': gig.id,
            'participant_ids': [],
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.django_db
class TestThreadList:

    def test_lists_only_my_threads_with_context(self, api_client, thread, comedian, outsider, gig):
        Message.objects.create(thread=thread, sender=comedian, kind='TEXT', body='Yes, I am in.')

        api_client.force_authenticate(user=comedian)
        response = api_client.get(reverse('thread_list'))

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data['threads']) == 1
        entry = response.data['threads'][0]
        assert entry['thread']['id'] == thread.id
        assert entry['gig']['id'] == gig.id
        assert [p['id'] for p in entry['participants']] == thread.participant_ids
        assert entry['last_message']['body'] == 'Yes, I am in.'

        api_client.force_authenticate(user=outsider)
        assert api_client.get(reverse('thread_list')).data['threads'] == []

    def test_thread_without_messages(self, api_client, thread, promoter):
        api_client.force_authenticate(user=promoter)
        response = api_client.get(reverse('thread_list'))

        assert response.data['threads'][0]['last_message'] is None


@pytest.mark.django_db
class TestThreadMessages:

    def test_post_text_message(self, api_client, thread, comedian):
        api_client.force_authenticate(user=comedian)
        response = api_client.post(
            reverse('thread_messages', args=[thread.id]),
            {'kind': 'TEXT', 'body': 'What time is load-in?'},
            format='json'
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['offer_id'] is None
        assert response.data['message']['sender_id'] == comedian.id

    def test_post_file_message(self, api_client, thread, comedian):
        api_client.force_authenticate(user=comedian)
        response = api_client.post(
            reverse('thread_messages', args=[thread.id]),
            {'kind': 'FILE', 'file_url': 'https://files.example.com/tape.mp4'},
            format='json'
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['message']['file_url'] == 'https://files.example.com/tape.mp4'

    @pytest.mark.parametrize('payload,field', [
        ({'kind': 'TEXT'}, 'body'),
        ({'kind': 'FILE'}, 'file_url'),
        ({'kind': 'OFFER'}, 'offer'),
    ])
    def test_kind_payload_required(self, api_client, thread, comedian, payload, field):
        api_client.force_authenticate(user=comedian)
        response = api_client.post(reverse('thread_messages', args=[thread.id]), payload, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert field in response.data

    def test_system_kind_not_postable(self, api_client, thread, comedian):
        api_client.force_authenticate(user=comedian)
        response = api_client.post(
            reverse('thread_messages', args=[thread.id]),
            {'kind': 'SYSTEM', 'body': 'Offer accepted.'},
            format='json'
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_offer_message_creates_offer_and_quotes(self, api_client, thread, promoter):
        api_client.force_authenticate(user=promoter)
        response = api_client.post(reverse('thread_messages', args=[thread.id]), {
            'kind': 'OFFER',
            'offer': {
                'amount': 15000,
                'terms': 'Twenty minutes, two drink tickets.',
                'event_date': (timezone.now() + timedelta(days=9)).isoformat(),
            },
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['message']['offer_id'] == response.data['offer_id']

        thread.refresh_from_db()
        assert thread.state == 'QUOTE'
        offer = thread.offers.get()
        assert offer.amount == 15000
        assert offer.currency == 'USD'
        assert offer.status == 'PENDING'

    def test_non_participant_cannot_post(self, api_client, thread, outsider):
        api_client.force_authenticate(user=outsider)
        response = api_client.post(
            reverse('thread_messages', args=[thread.id]),
            {'kind': 'TEXT', 'body': 'Let me in'},
            format='json'
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_post_to_missing_thread(self, api_client, comedian):
        api_client.force_authenticate(user=comedian)
        response = api_client.post(
            reverse('thread_messages', args=[99999]),
            {'kind': 'TEXT', 'body': 'Hello?'},
            format='json'
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_read_messages_in_order(self, api_client, thread, promoter, comedian):
        Message.objects.create(thread=thread, sender=promoter, kind='TEXT', body='first')
        Message.objects.create(thread=thread, sender=comedian, kind='TEXT', body='second')

        api_client.force_authenticate(user=comedian)
        response = api_client.get(reverse('thread_messages', args=[thread.id]))

        assert response.status_code == status.HTTP_200_OK
        assert [m['body'] for m in response.data['messages']] == ['first', 'second']
        assert response.data['offers'] == []
        assert response.data['thread']['id'] == thread.id

    def test_non_participant_read_is_404(self, api_client, thread, outsider):
        api_client.force_authenticate(user=outsider)
        response = api_client.get(reverse('thread_messages', args=[thread.id]))

        assert response.status_code == status.HTTP_404_NOT_FOUND
