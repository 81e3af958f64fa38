"""
Gig application tests.
"""

import pytest
from datetime import timedelta
from django.contrib.auth import get_user_model
from django.core import mail
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from core.models import Application, Gig

User = get_user_model()

APPLICATION_MESSAGE = 'I have ten years of club experience and a tight twenty.'


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
        username='app_promoter',
        email='app_promoter@test.com',
        password='TestPass123!',
        role='PROMOTER',
    )


@pytest.fixture
def other_promoter(db):
    return User.objects.create_user(
        username='app_other_promoter',
        email='app_other_promoter@test.com',
        password='TestPass123!',
        role='PROMOTER',
    )


@pytest.fixture
def comedian(db):
    return User.objects.create_user(
        username='app_comedian',
        email='app_comedian@test.com',
        password='TestPass123!',
        name='Casey Comic',
        role='COMEDIAN',
    )


@pytest.fixture
def gig(promoter):
    return Gig.objects.create(
        created_by=promoter,
        title='Brewery Comedy Hour',
        description='Monthly comedy hour at the taproom with a paid headliner.',
        compensation_type='DOOR_SPLIT',
        date_start=timezone.now() + timedelta(days=5),
        timezone='America/Denver',
        city='Denver',
        state='CO',
        is_published=True,
    )


@pytest.mark.django_db
class TestApplicationCreate:

    def test_comedian_applies_and_gets_email(self, api_client, comedian, gig):
        api_client.force_authenticate(user=comedian)
        response = api_client.post(reverse('application_list'), {
            'gig_id': gig.id,
            'message': APPLICATION_MESSAGE,
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['application']['status'] == 'SUBMITTED'
        assert response.data['application']['gig_id'] == gig.id

        assert len(mail.outbox) == 1
        assert mail.outbox[0].to == ['app_comedian@test.com']
        assert mail.outbox[0].subject == 'Application received for Brewery Comedy Hour'

    def test_duplicate_application_conflicts(self, api_client, comedian, gig):
        api_client.force_authenticate(user=comedian)
        payload = {'gig_id': gig.id, 'message': APPLICATION_MESSAGE}
        api_client.post(reverse('application_list'), payload, format='json')

        response = api_client.post(reverse('application_list'), payload, format='json')

        assert response.status_code == status.HTTP_409_CONFLICT
        assert Application.objects.count() == 1

    def test_promoter_cannot_apply(self, api_client, other_promoter, gig):
        api_client.force_authenticate(user=other_promoter)
        response = api_client.post(reverse('application_list'), {
            'gig_id': gig.id,
            'message': APPLICATION_MESSAGE,
        }, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_unpublished_gig_is_unavailable(self, api_client, comedian, gig):
        Gig.objects.filter(pk=gig.id).update(is_published=False)

        api_client.force_authenticate(user=comedian)
        response = api_client.post(reverse('application_list'), {
            'gig_id': gig.id,
            'message': APPLICATION_MESSAGE,
        }, format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert len(mail.outbox) == 0

    def test_short_message_rejected(self, api_client, comedian, gig):
        api_client.force_authenticate(user=comedian)
        response = api_client.post(reverse('application_list'), {
            'gig_id': gig.id,
            'message': 'Pick me',
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'message' in response.data

    def test_requires_authentication(self, api_client, gig):
        response = api_client.post(reverse('application_list'), {
            'gig_id': gig.id,
            'message': APPLICATION_MESSAGE,
        }, format='json')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestApplicationReview:

    @pytest.fixture
    def application(self, gig, comedian):
        return Application.objects.create(gig=gig, comedian=comedian, message=APPLICATION_MESSAGE)

    def test_gig_owner_lists_applications(self, api_client, promoter, application):
        api_client.force_authenticate(user=promoter)
        response = api_client.get(reverse('application_list'))

        assert response.status_code == status.HTTP_200_OK
        assert [item['id'] for item in response.data['applications']] == [application.id]

    def test_comedian_lists_own_applications(self, api_client, comedian, application):
        api_client.force_authenticate(user=comedian)
        response = api_client.get(reverse('application_list'))

        assert [item['id'] for item in response.data['applications']] == [application.id]

    def test_owner_shortlists(self, api_client, promoter, application):
        api_client.force_authenticate(user=promoter)
        response = api_client.patch(
            reverse('application_detail', args=[application.id]),
            {'status': 'SHORTLISTED'},
            format='json'
        )

        assert response.status_code == status.HTTP_200_OK
        assert Application.objects.get(pk=application.id).status == 'SHORTLISTED'

    def test_other_promoter_gets_404(self, api_client, other_promoter, application):
        api_client.force_authenticate(user=other_promoter)
        response = api_client.patch(
            reverse('application_detail', args=[application.id]),
            {'status': 'REJECTED'},
            format='json'
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert Application.objects.get(pk=application.id).status == 'SUBMITTED'

    def test_invalid_status(self, api_client, promoter, application):
        api_client.force_authenticate(user=promoter)
        response = api_client.patch(
            reverse('application_detail', args=[application.id]),
            {'status': 'MAYBE'},
            format='json'
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
