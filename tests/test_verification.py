"""
Verification request workflow tests.
"""

import pytest
from django.contrib.auth import get_user_model
from django.core import mail
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from core.models import PromoterProfile, VenueProfile, VerificationRequest

User = get_user_model()

DOCUMENTS = [{'name': 'license.pdf', 'url': 'https://files.example.com/license.pdf', 'size': 20480}]


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
    user = User.objects.create_user(
        username='verify_promoter',
        email='verify_promoter@test.com',
        password='TestPass123!',
        name='Pat Promoter',
        role='PROMOTER',
    )
    PromoterProfile.objects.create(user=user, organization='Laugh Co', contact_name='Pat Promoter')
    return user


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(
        username='verify_admin',
        email='verify_admin@test.com',
        password='TestPass123!',
        role='ADMIN',
    )


@pytest.fixture
def pending_request(promoter):
    return VerificationRequest.objects.create(
        user=promoter,
        role_requested='PROMOTER',
        message='Please verify our comedy promotion company.',
        documents=DOCUMENTS,
    )


@pytest.mark.django_db
class TestVerificationSubmit:

    def test_submit_request_sends_email(self, api_client, promoter):
        api_client.force_authenticate(user=promoter)
        response = api_client.post(reverse('verification'), {
            'role': 'PROMOTER',
            'message': 'Please verify our comedy promotion company.',
            'documents': DOCUMENTS,
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['request']['status'] == 'PENDING'
        assert response.data['request']['documents'] == DOCUMENTS

        assert len(mail.outbox) == 1
        assert mail.outbox[0].to == ['verify_promoter@test.com']
        assert mail.outbox[0].subject == 'Verification received'

    @pytest.mark.parametrize('documents', [
        [],
        DOCUMENTS * 4,
    ])
    def test_document_count(self, api_client, promoter, documents):
        api_client.force_authenticate(user=promoter)
        response = api_client.post(reverse('verification'), {
            'role': 'PROMOTER',
            'message': 'Please verify our comedy promotion company.',
            'documents': documents,
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'documents' in response.data

    def test_role_must_be_promoter_or_venue(self, api_client, promoter):
        api_client.force_authenticate(user=promoter)
        response = api_client.post(reverse('verification'), {
            'role': 'COMEDIAN',
            'message': 'Please verify our comedy promotion company.',
            'documents': DOCUMENTS,
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_latest_and_history(self, api_client, promoter, pending_request):
        newer = VerificationRequest.objects.create(
            user=promoter,
            role_requested='PROMOTER',
            message='Second attempt with more documents.',
            documents=DOCUMENTS,
        )

        api_client.force_authenticate(user=promoter)
        latest = api_client.get(reverse('verification'))
        history = api_client.get(reverse('verification_mine'))

        assert latest.data['request']['id'] == newer.id
        assert [item['id'] for item in history.data['requests']] == [newer.id, pending_request.id]

    def test_latest_is_null_without_requests(self, api_client, admin_user):
        api_client.force_authenticate(user=admin_user)
        response = api_client.get(reverse('verification'))

        assert response.data == {'request': None}


@pytest.mark.django_db
class TestVerificationDecision:

    def test_admin_approves_and_profile_follows(self, api_client, admin_user, promoter, pending_request):
        api_client.force_authenticate(user=admin_user)
        response = api_client.post(
            reverse('verification_decision', args=[pending_request.id]),
            {'status': 'APPROVED'},
            format='json'
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['request']['status'] == 'APPROVED'
        assert response.data['request']['reviewed_by_id'] == admin_user.id
        assert PromoterProfile.objects.get(user=promoter).verification_status == 'APPROVED'

        assert len(mail.outbox) == 1
        assert mail.outbox[0].subject == 'Verification approved'

    def test_rejection_mirrors_to_venue_profile(self, api_client, admin_user):
        venue = User.objects.create_user(
            username='verify_venue',
            email='verify_venue@test.com',
            password='TestPass123!',
            role='VENUE',
        )
        VenueProfile.objects.create(
            user=venue,
            venue_name='The Basement',
            address1='12 Main Street',
            city='Denver',
            state='CO',
            postal_code='80202',
            contact_email='booking@basement.example.com',
        )
        request = VerificationRequest.objects.create(
            user=venue,
            role_requested='VENUE',
            message='Please verify our venue listing.',
            documents=DOCUMENTS,
        )

        api_client.force_authenticate(user=admin_user)
        api_client.post(reverse('verification_decision', args=[request.id]), {'status': 'REJECTED'}, format='json')

        assert VenueProfile.objects.get(user=venue).verification_status == 'REJECTED'
        assert mail.outbox[0].subject == 'Verification rejected'

    def test_approval_unlocks_publishing(self, api_client, admin_user, promoter, pending_request):
        api_client.force_authenticate(user=admin_user)
        api_client.post(
            reverse('verification_decision', args=[pending_request.id]),
            {'status': 'APPROVED'},
            format='json'
        )

        promoter = User.objects.get(pk=promoter.pk)
        api_client.force_authenticate(user=promoter)
        response = api_client.get(reverse('me'))

        assert response.data['user']['verification_status'] == 'APPROVED'

    def test_non_admin_forbidden(self, api_client, promoter, pending_request):
        api_client.force_authenticate(user=promoter)
        response = api_client.post(
            reverse('verification_decision', args=[pending_request.id]),
            {'status': 'APPROVED'},
            format='json'
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert VerificationRequest.objects.get(pk=pending_request.id).status == 'PENDING'

    def test_anonymous_decision_requires_authentication(self, api_client, pending_request):
        response = api_client.post(
            reverse('verification_decision', args=[pending_request.id]),
            {'status': 'APPROVED'},
            format='json'
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert VerificationRequest.objects.get(pk=pending_request.id).status == 'PENDING'

    def test_invalid_decision(self, api_client, admin_user, pending_request):
        api_client.force_authenticate(user=admin_user)
        response = api_client.post(
            reverse('verification_decision', args=[pending_request.id]),
            {'status': 'PENDING'},
            format='json'
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_missing_request(self, api_client, admin_user):
        api_client.force_authenticate(user=admin_user)
        response = api_client.post(
            reverse('verification_decision', args=[99999]),
            {'status': 'APPROVED'},
            format='json'
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
