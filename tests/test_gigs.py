"""
Gig listing, publishing gate and promoter/venue profile tests.
"""

import pytest
from datetime import timedelta
from django.contrib.auth import get_user_model
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from core.models import Gig, PromoterProfile, VenueProfile
from core.permissions import can_publish_gig, is_owner

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
        username='gig_promoter',
        email='gig_promoter@test.com',
        password='TestPass123!',
        name='Gig Promoter',
        role='PROMOTER',
    )


@pytest.fixture
def approved_promoter(promoter):
    PromoterProfile.objects.create(
        user=promoter,
        organization='Laugh Factory Co',
        contact_name='Gig Promoter',
        verification_status='APPROVED',
    )
    return promoter


@pytest.fixture
def venue(db):
    return User.objects.create_user(
        username='gig_venue',
        email='gig_venue@test.com',
        password='TestPass123!',
        role='VENUE',
    )


@pytest.fixture
def comedian(db):
    return User.objects.create_user(
        username='gig_comedian',
        email='gig_comedian@test.com',
        password='TestPass123!',
        role='COMEDIAN',
    )


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(
        username='gig_admin',
        email='gig_admin@test.com',
        password='TestPass123!',
        role='ADMIN',
    )


def make_gig(owner, **overrides):
    fields = {
        'created_by': owner,
        'title': 'Open Mic Night',
        'description': 'Five minute spots, sign up at the door from seven.',
        'compensation_type': 'UNPAID',
        'date_start': timezone.now() + timedelta(days=7),
        'timezone': 'America/Chicago',
        'city': 'Chicago',
        'state': 'IL',
        'is_published': True,
    }
    fields.update(overrides)
    return Gig.objects.create(**fields)


def gig_payload(**overrides):
    payload = {
        'title': 'Headliner Wanted',
        'description': 'Looking for a 30 minute headliner for our Saturday show.',
        'compensation_type': 'FLAT',
        'payout_usd': 300,
        'date_start': (timezone.now() + timedelta(days=10)).isoformat(),
        'timezone': 'America/New_York',
        'city': 'Brooklyn',
        'state': 'NY',
    }
    payload.update(overrides)
    return payload


# ============================================================================
# 1. PUBLISHING RULES
# ============================================================================

class TestCanPublishGig:

    def test_admin_always_publishes(self):
        assert can_publish_gig('ADMIN', None) is True

    @pytest.mark.parametrize('role', ['PROMOTER', 'VENUE'])
    def test_verified_roles_need_approval(self, role):
        assert can_publish_gig(role, 'APPROVED') is True
        assert can_publish_gig(role, 'PENDING') is False
        assert can_publish_gig(role, 'REJECTED') is False
        assert can_publish_gig(role, None) is False

    @pytest.mark.parametrize('role', ['COMEDIAN', 'FAN'])
    def test_other_roles_never_publish(self, role):
        assert can_publish_gig(role, 'APPROVED') is False


@pytest.mark.django_db
class TestIsOwner:

    def test_gig_owner(self, promoter, comedian):
        gig = make_gig(promoter)
        assert is_owner(gig, promoter.id) is True
        assert is_owner(gig, comedian.id) is False


# ============================================================================
# 2. LISTING
# ============================================================================

@pytest.mark.django_db
class TestGigList:

    def test_list_is_public_and_hides_unpublished(self, api_client, promoter):
        published = make_gig(promoter, title='Published Show')
        make_gig(promoter, title='Draft Show', is_published=False)

        response = api_client.get(reverse('gig_list'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 1
        assert response.data['page'] == 1
        assert [gig['id'] for gig in response.data['gigs']] == [published.id]

    def test_list_ordered_by_start_date(self, api_client, promoter):
        later = make_gig(promoter, date_start=timezone.now() + timedelta(days=20))
        sooner = make_gig(promoter, date_start=timezone.now() + timedelta(days=2))

        response = api_client.get(reverse('gig_list'))

        assert [gig['id'] for gig in response.data['gigs']] == [sooner.id, later.id]

    def test_pagination(self, api_client, promoter):
        for day in range(11):
            make_gig(promoter, date_start=timezone.now() + timedelta(days=day + 1))

        first = api_client.get(reverse('gig_list'))
        second = api_client.get(reverse('gig_list'), {'page': 2})

        assert first.data['count'] == 11
        assert len(first.data['gigs']) == 10
        assert second.data['page'] == 2
        assert len(second.data['gigs']) == 1

    def test_filters(self, api_client, promoter):
        chicago = make_gig(promoter, title='Windy City Laughs', compensation_type='FLAT', payout_usd=400)
        make_gig(promoter, title='Austin Roast', city='Austin', state='TX')

        assert [g['id'] for g in api_client.get(reverse('gig_list'), {'city': 'chic'}).data['gigs']] == [chicago.id]
        assert [g['id'] for g in api_client.get(reverse('gig_list'), {'state': 'IL'}).data['gigs']] == [chicago.id]
        assert [g['id'] for g in api_client.get(reverse('gig_list'), {'search': 'windy'}).data['gigs']] == [chicago.id]
        assert [g['id'] for g in api_client.get(
            reverse('gig_list'), {'compensation_type': 'FLAT'}
        ).data['gigs']] == [chicago.id]
        assert [g['id'] for g in api_client.get(reverse('gig_list'), {'min_payout': 300}).data['gigs']] == [chicago.id]

    def test_date_range_filter(self, api_client, promoter):
        soon = make_gig(promoter, date_start=timezone.now() + timedelta(days=1))
        make_gig(promoter, date_start=timezone.now() + timedelta(days=30))

        response = api_client.get(reverse('gig_list'), {
            'date_start': timezone.now().isoformat(),
            'date_end': (timezone.now() + timedelta(days=5)).isoformat(),
        })

        assert [gig['id'] for gig in response.data['gigs']] == [soon.id]

    @pytest.mark.parametrize('params', [
        {'state': 'Illinois'},
        {'min_payout': -1},
        {'status': 'UNKNOWN'},
    ])
    def test_invalid_filters(self, api_client, params):
        response = api_client.get(reverse('gig_list'), params)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['detail'] == 'Invalid filters'


# ============================================================================
# 3. CREATION
# ============================================================================

@pytest.mark.django_db
class TestGigCreate:

    def test_requires_authentication(self, api_client):
        response = api_client.post(reverse('gig_list'), gig_payload(), format='json')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_comedian_cannot_create(self, api_client, comedian):
        api_client.force_authenticate(user=comedian)
        response = api_client.post(reverse('gig_list'), gig_payload(), format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_unverified_promoter_can_create_draft(self, api_client, promoter):
        api_client.force_authenticate(user=promoter)
        response = api_client.post(reverse('gig_list'), gig_payload(), format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['gig']['is_published'] is False
        assert response.data['gig']['status'] == 'OPEN'
        assert response.data['gig']['created_by']['id'] == promoter.id

    def test_unverified_promoter_cannot_publish(self, api_client, promoter):
        api_client.force_authenticate(user=promoter)
        response = api_client.post(reverse('gig_list'), gig_payload(is_published=True), format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data['detail'] == 'Verification required to publish.'
        assert not Gig.objects.exists()

    def test_approved_promoter_can_publish(self, api_client, approved_promoter):
        api_client.force_authenticate(user=approved_promoter)
        response = api_client.post(reverse('gig_list'), gig_payload(is_published=True), format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['gig']['is_published'] is True

    def test_admin_can_publish_without_profile(self, api_client, admin_user):
        api_client.force_authenticate(user=admin_user)
        response = api_client.post(reverse('gig_list'), gig_payload(is_published=True), format='json')

        assert response.status_code == status.HTTP_201_CREATED

    def test_end_before_start_rejected(self, api_client, promoter):
        start = timezone.now() + timedelta(days=10)
        api_client.force_authenticate(user=promoter)
        response = api_client.post(reverse('gig_list'), gig_payload(
            date_start=start.isoformat(),
            date_end=(start - timedelta(hours=1)).isoformat(),
        ), format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'date_end' in response.data

    def test_short_description_rejected(self, api_client, promoter):
        api_client.force_authenticate(user=promoter)
        response = api_client.post(reverse('gig_list'), gig_payload(description='too short'), format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'description' in response.data


# ============================================================================
# 4. DETAIL, UPDATE & DELETE
# ============================================================================

@pytest.mark.django_db
class TestGigDetail:

    def test_published_gig_is_public(self, api_client, promoter):
        gig = make_gig(promoter)

        response = api_client.get(reverse('gig_detail', args=[gig.id]))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['gig']['title'] == 'Open Mic Night'

    def test_draft_visible_to_owner_only(self, api_client, promoter, comedian):
        gig = make_gig(promoter, is_published=False)

        assert api_client.get(reverse('gig_detail', args=[gig.id])).status_code == status.HTTP_404_NOT_FOUND

        api_client.force_authenticate(user=comedian)
        assert api_client.get(reverse('gig_detail', args=[gig.id])).status_code == status.HTTP_404_NOT_FOUND

        api_client.force_authenticate(user=promoter)
        assert api_client.get(reverse('gig_detail', args=[gig.id])).status_code == status.HTTP_200_OK

    def test_owner_updates_gig(self, api_client, promoter):
        gig = make_gig(promoter, is_published=False)

        api_client.force_authenticate(user=promoter)
        response = api_client.patch(reverse('gig_detail', args=[gig.id]), {'title': 'Renamed Show'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert Gig.objects.get(pk=gig.id).title == 'Renamed Show'

    def test_non_owner_update_is_404(self, api_client, promoter, venue):
        gig = make_gig(promoter)

        api_client.force_authenticate(user=venue)
        response = api_client.patch(reverse('gig_detail', args=[gig.id]), {'title': 'Hijacked'}, format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert Gig.objects.get(pk=gig.id).title == 'Open Mic Night'

    def test_publishing_via_update_requires_verification(self, api_client, promoter):
        gig = make_gig(promoter, is_published=False)

        api_client.force_authenticate(user=promoter)
        response = api_client.patch(reverse('gig_detail', args=[gig.id]), {'is_published': True}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert Gig.objects.get(pk=gig.id).is_published is False

    def test_owner_deletes_gig(self, api_client, promoter):
        gig = make_gig(promoter)

        api_client.force_authenticate(user=promoter)
        response = api_client.delete(reverse('gig_detail', args=[gig.id]))

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {'ok': True}
        assert not Gig.objects.filter(pk=gig.id).exists()

    def test_non_owner_delete_is_404(self, api_client, promoter, comedian):
        gig = make_gig(promoter)

        api_client.force_authenticate(user=comedian)
        response = api_client.delete(reverse('gig_detail', args=[gig.id]))

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert Gig.objects.filter(pk=gig.id).exists()


# ============================================================================
# 5. PROFILES
# ============================================================================

@pytest.mark.django_db
class TestProfiles:

    def test_promoter_upserts_profile(self, api_client, promoter):
        api_client.force_authenticate(user=promoter)
        payload = {'organization': 'Laugh Co', 'contact_name': 'Pat Promoter', 'website': 'https://laugh.example.com'}

        created = api_client.put(reverse('promoter_profile'), payload, format='json')
        payload['organization'] = 'Laugh Co Presents'
        updated = api_client.put(reverse('promoter_profile'), payload, format='json')

        assert created.status_code == status.HTTP_200_OK
        assert updated.data['profile']['organization'] == 'Laugh Co Presents'
        assert updated.data['profile']['verification_status'] == 'PENDING'
        assert PromoterProfile.objects.filter(user=promoter).count() == 1

    def test_verification_status_not_writable(self, api_client, promoter):
        api_client.force_authenticate(user=promoter)
        api_client.put(reverse('promoter_profile'), {
            'organization': 'Laugh Co',
            'contact_name': 'Pat Promoter',
            'verification_status': 'APPROVED',
        }, format='json')

        assert PromoterProfile.objects.get(user=promoter).verification_status == 'PENDING'

    def test_wrong_role_cannot_write_profile(self, api_client, comedian):
        api_client.force_authenticate(user=comedian)
        response = api_client.put(reverse('promoter_profile'), {
            'organization': 'Laugh Co',
            'contact_name': 'Casey',
        }, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_venue_profile(self, api_client, venue):
        api_client.force_authenticate(user=venue)
        response = api_client.put(reverse('venue_profile'), {
            'venue_name': 'The Basement',
            'address1': '12 Main Street',
            'city': 'Denver',
            'state': 'CO',
            'postal_code': '80202',
            'capacity': 120,
            'contact_email': 'booking@basement.example.com',
        }, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert VenueProfile.objects.get(user=venue).capacity == 120

        fetched = api_client.get(reverse('venue_profile'))
        assert fetched.data['profile']['venue_name'] == 'The Basement'

    def test_venue_profile_invalid_state(self, api_client, venue):
        api_client.force_authenticate(user=venue)
        response = api_client.put(reverse('venue_profile'), {
            'venue_name': 'The Basement',
            'address1': '12 Main Street',
            'city': 'Denver',
            'state': 'Colorado',
            'postal_code': '80202',
            'contact_email': 'booking@basement.example.com',
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'state' in response.data

    def test_missing_profile_is_404(self, api_client, promoter):
        api_client.force_authenticate(user=promoter)
        response = api_client.get(reverse('promoter_profile'))

        assert response.status_code == status.HTTP_404_NOT_FOUND
