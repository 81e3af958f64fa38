"""
Comedian profile and comedian search tests.

Tests cover:
- PUT/GET /api/profiles/comedian/ (owner upsert, role rules, validation)
- GET /api/profiles/ public search (filters, ordering, pagination)
"""

import pytest
from decimal import Decimal
from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from core.models import ComedianProfile

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
def comedian(db):
    return User.objects.create_user(
        username='profile_comedian',
        email='profile_comedian@test.com',
        password='TestPass123!',
        name='Casey Comic',
        role='COMEDIAN',
    )


@pytest.fixture
def promoter(db):
    return User.objects.create_user(
        username='profile_promoter',
        email='profile_promoter@test.com',
        password='TestPass123!',
        role='PROMOTER',
    )


def make_comedian(username, **profile):
    user = User.objects.create_user(
        username=username,
        email=f'{username}@test.com',
        password='TestPass123!',
        name=profile.pop('name', username.title()),
        role='COMEDIAN',
    )
    profile.setdefault('stage_name', username.title())
    return ComedianProfile.objects.create(user=user, **profile)


# ============================================================================
# 1. OWN PROFILE
# ============================================================================

@pytest.mark.django_db
class TestComedianProfile:

    def test_upsert_and_read(self, api_client, comedian):
        api_client.force_authenticate(user=comedian)
        payload = {
            'legal_name': 'Casey Q. Comic',
            'stage_name': 'Casey Laughs',
            'bio': 'Twenty minutes on airline food.',
            'home_city': 'Chicago',
            'home_state': 'IL',
            'styles': ['Observational', 'Clean', 'Observational'],
            'clean_rating': 'CLEAN',
            'rate_min': 100,
            'rate_max': 250,
            'reel_urls': ['https://video.example.com/casey'],
        }

        created = api_client.put(reverse('comedian_profile'), payload, format='json')

        assert created.status_code == status.HTTP_200_OK
        profile = created.data['profile']
        assert profile['stage_name'] == 'Casey Laughs'
        assert profile['styles'] == ['Observational', 'Clean']
        assert profile['user']['id'] == comedian.id
        assert profile['user']['name'] == 'Casey Q. Comic'
        assert 'legal_name' not in profile

        comedian.refresh_from_db()
        assert comedian.name == 'Casey Q. Comic'

        payload['stage_name'] = 'Casey Laughs Live'
        updated = api_client.put(reverse('comedian_profile'), payload, format='json')

        assert updated.data['profile']['stage_name'] == 'Casey Laughs Live'
        assert ComedianProfile.objects.filter(user=comedian).count() == 1

        fetched = api_client.get(reverse('comedian_profile'))
        assert fetched.data['profile']['rate_max'] == 250

    def test_optional_fields_default_to_blank(self, api_client, comedian):
        api_client.force_authenticate(user=comedian)
        response = api_client.put(reverse('comedian_profile'), {
            'stage_name': 'Casey',
            'bio': None,
            'home_city': None,
        }, format='json')

        assert response.status_code == status.HTTP_200_OK
        profile = ComedianProfile.objects.get(user=comedian)
        assert profile.bio == ''
        assert profile.home_city == ''
        assert profile.clean_rating == 'CLEAN'
        assert profile.styles == []

    def test_admin_can_write_own_comedian_profile(self, api_client):
        admin = User.objects.create_user(
            username='profile_admin',
            email='profile_admin@test.com',
            password='TestPass123!',
            role='ADMIN',
        )
        api_client.force_authenticate(user=admin)

        response = api_client.put(reverse('comedian_profile'), {'stage_name': 'The Admin'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert ComedianProfile.objects.get(user=admin).stage_name == 'The Admin'

    def test_other_roles_forbidden(self, api_client, promoter):
        api_client.force_authenticate(user=promoter)
        response = api_client.put(reverse('comedian_profile'), {'stage_name': 'Not A Comic'}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert not ComedianProfile.objects.exists()

    def test_requires_authentication(self, api_client):
        response = api_client.put(reverse('comedian_profile'), {'stage_name': 'Anon'}, format='json')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_missing_profile_is_404(self, api_client, comedian):
        api_client.force_authenticate(user=comedian)
        response = api_client.get(reverse('comedian_profile'))

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_rate_range_must_be_ordered(self, api_client, comedian):
        api_client.force_authenticate(user=comedian)
        response = api_client.put(reverse('comedian_profile'), {
            'stage_name': 'Casey',
            'rate_min': 300,
            'rate_max': 100,
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'rate_max' in response.data

    @pytest.mark.parametrize('field, value', [
        ('home_state', 'Illinois'),
        ('stage_name', 'C'),
        ('clean_rating', 'NC17'),
        ('reel_urls', ['not-a-url']),
        ('travel_radius_miles', 0),
    ])
    def test_invalid_fields(self, api_client, comedian, field, value):
        api_client.force_authenticate(user=comedian)
        payload = {'stage_name': 'Casey', field: value}

        response = api_client.put(reverse('comedian_profile'), payload, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert field in response.data


# ============================================================================
# 2. SEARCH
# ============================================================================

@pytest.mark.django_db
class TestComedianSearch:

    @pytest.fixture
    def roster(self, db):
        return {
            'zed': make_comedian(
                'zed', stage_name='Zed Storyteller', bio='Clean storyteller',
                home_city='New York', home_state='NY', styles=['Clean', 'Storytelling'],
                clean_rating='CLEAN', rate_min=150, rate_max=300,
            ),
            'aaron': make_comedian(
                'aaron', stage_name='Aaron Edge', bio='Edgy comic',
                home_city='Boston', home_state='MA', styles=['Dark', 'Storytelling'],
                clean_rating='R', rate_min=50, rate_max=150,
            ),
            'remy': make_comedian(
                'remy', stage_name='Remy Improv', bio='Virtual shows only',
                home_city='Chicago', home_state='IL', styles=['Improv'],
                clean_rating='PG13',
            ),
        }

    def ids(self, response):
        return [profile['user']['id'] for profile in response.data['profiles']]

    def test_public_listing(self, api_client, roster):
        response = api_client.get(reverse('comedian_search'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 3
        assert response.data['page'] == 1

    def test_combined_filters(self, api_client, roster):
        response = api_client.get(reverse('comedian_search'), {
            'search': 'zed',
            'city': 'New',
            'state': 'NY',
            'styles': 'Clean',
            'rate_min': 100,
            'rate_max': 400,
        })

        assert self.ids(response) == [roster['zed'].user_id]

    def test_search_matches_bio(self, api_client, roster):
        response = api_client.get(reverse('comedian_search'), {'search': 'virtual'})

        assert self.ids(response) == [roster['remy'].user_id]

    def test_styles_match_any_and_ignore_case(self, api_client, roster):
        comma = api_client.get(reverse('comedian_search'), {'styles': 'improv,dark'})
        repeated = api_client.get(reverse('comedian_search') + '?styles=improv&styles=dark')

        expected = {roster['aaron'].user_id, roster['remy'].user_id}
        assert set(self.ids(comma)) == expected
        assert set(self.ids(repeated)) == expected
        assert comma.data['count'] == 2

    def test_clean_rating_filter(self, api_client, roster):
        response = api_client.get(reverse('comedian_search'), {'clean_rating': 'R'})

        assert self.ids(response) == [roster['aaron'].user_id]

    def test_rate_filter_keeps_overlapping_ranges(self, api_client, roster):
        response = api_client.get(reverse('comedian_search'), {'rate_min': 200})

        # Remy has no rates and Aaron tops out at 150
        assert self.ids(response) == [roster['zed'].user_id]

        response = api_client.get(reverse('comedian_search'), {'rate_max': 100})
        assert self.ids(response) == [roster['aaron'].user_id]

    def test_sort_by_rating_and_newest(self, api_client, roster):
        User.objects.filter(pk=roster['zed'].user_id).update(rating_average=Decimal('4.80'), total_reviews=5)
        User.objects.filter(pk=roster['aaron'].user_id).update(rating_average=Decimal('3.00'), total_reviews=1)

        by_rating = api_client.get(reverse('comedian_search'))
        newest = api_client.get(reverse('comedian_search'), {'sort': 'newest'})

        assert self.ids(by_rating) == [
            roster['zed'].user_id, roster['aaron'].user_id, roster['remy'].user_id
        ]
        assert self.ids(newest) == [
            roster['remy'].user_id, roster['aaron'].user_id, roster['zed'].user_id
        ]

    def test_inactive_comedians_hidden(self, api_client, roster):
        User.objects.filter(pk=roster['zed'].user_id).update(is_active=False)

        response = api_client.get(reverse('comedian_search'))

        assert roster['zed'].user_id not in self.ids(response)

    def test_pagination(self, api_client):
        for index in range(11):
            make_comedian(f'comic{index}')

        first = api_client.get(reverse('comedian_search'))
        second = api_client.get(reverse('comedian_search'), {'page': 2})

        assert first.data['count'] == 11
        assert len(first.data['profiles']) == 10
        assert len(second.data['profiles']) == 1
        assert second.data['page'] == 2

    def test_style_filter_paginates_matches(self, api_client):
        for index in range(12):
            make_comedian(f'musical{index}', styles=['Musical'])
        make_comedian('plain', styles=['Clean'])

        response = api_client.get(reverse('comedian_search'), {'styles': 'Musical', 'page': 2})

        assert response.data['count'] == 12
        assert len(response.data['profiles']) == 2

    @pytest.mark.parametrize('params', [
        {'state': 'New York'},
        {'rate_min': 300, 'rate_max': 100},
        {'clean_rating': 'NC17'},
        {'sort': 'distance'},
        {'rate_min': -5},
    ])
    def test_invalid_filters(self, api_client, params):
        response = api_client.get(reverse('comedian_search'), params)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['detail'] == 'Invalid filters'
