import os
import sys
import django
import random
from datetime import timedelta
from django.utils import timezone
from faker import Faker

# Add project root to Python path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Set up Django environment
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'the_funny.settings')
django.setup()

from core.models import (
    User, ComedianProfile, PromoterProfile, VenueProfile, Gig, Application,
    Booking, Review, CommunityPost, CommunityReply
)

fake = Faker('en_US')

CITIES = [
    ('Chicago', 'IL'), ('Austin', 'TX'), ('Brooklyn', 'NY'),
    ('Los Angeles', 'CA'), ('Portland', 'OR'), ('Denver', 'CO'),
]

STYLES = [
    "Storytelling", "Observational", "Clean", "Dark", "Improv", "Musical", "Political",
]

GIG_TITLES = [
    "Open Mic Night", "Late Show Showcase", "Headliner Wanted",
    "Brewery Comedy Hour", "Roast Battle", "Sunday Storytelling",
]


def make_user(role, **extra):
    email = fake.unique.email()
    return User.objects.create_user(
        username=email[:150],
        email=email,
        password='password123',
        name=fake.name(),
        role=role,
        **extra
    )


def create_users(num_comedians=15, num_promoters=5, num_venues=5, num_fans=10):
    print(f"Creating {num_comedians} comedians, {num_promoters} promoters, "
          f"{num_venues} venues and {num_fans} fans...")

    comedians = [make_user(User.COMEDIAN) for _ in range(num_comedians)]
    promoters = [make_user(User.PROMOTER) for _ in range(num_promoters)]
    venues = [make_user(User.VENUE) for _ in range(num_venues)]
    fans = [make_user(User.FAN) for _ in range(num_fans)]

    print(f"Created {len(comedians) + len(promoters) + len(venues) + len(fans)} users.")
    return comedians, promoters, venues, fans


def create_profiles(comedians, promoters, venues):
    print("Creating comedian, promoter and venue profiles...")

    for comedian in comedians:
        city, state = random.choice(CITIES)
        rate_min = random.choice([None, 50, 100, 150])
        ComedianProfile.objects.create(
            user=comedian,
            stage_name=comedian.name,
            bio=fake.paragraph(nb_sentences=2),
            home_city=city,
            home_state=state,
            travel_radius_miles=random.choice([None, 25, 50, 200]),
            styles=random.sample(STYLES, random.randint(1, 3)),
            clean_rating=random.choice([ComedianProfile.CLEAN, ComedianProfile.PG13, ComedianProfile.R]),
            rate_min=rate_min,
            rate_max=rate_min + random.randint(50, 300) if rate_min is not None else None,
            reel_urls=[fake.url()],
        )

    for promoter in promoters:
        PromoterProfile.objects.create(
            user=promoter,
            organization=fake.company()[:120],
            contact_name=promoter.name,
            website=fake.url(),
            verification_status=random.choice(['PENDING', 'APPROVED', 'APPROVED']),
        )

    for venue in venues:
        city, state = random.choice(CITIES)
        VenueProfile.objects.create(
            user=venue,
            venue_name=f"The {fake.last_name()} Room",
            address1=fake.street_address()[:160],
            city=city,
            state=state,
            postal_code=fake.postcode(),
            capacity=random.randint(40, 400),
            contact_email=venue.email,
            verification_status=random.choice(['PENDING', 'APPROVED', 'APPROVED']),
        )


def create_gigs(hosts):
    print("Creating gigs...")
    gigs = []

    for host in hosts:
        # Each host lists 1-3 gigs
        for _ in range(random.randint(1, 3)):
            city, state = random.choice(CITIES)
            compensation_type = random.choice(['FLAT', 'DOOR_SPLIT', 'TIPS', 'UNPAID'])
            date_start = timezone.now() + timedelta(days=random.randint(-30, 60), hours=random.randint(18, 22))
            gig = Gig.objects.create(
                created_by=host,
                title=random.choice(GIG_TITLES),
                description=fake.paragraph(nb_sentences=4),
                compensation_type=compensation_type,
                payout_usd=random.randint(50, 500) if compensation_type == 'FLAT' else None,
                date_start=date_start,
                date_end=date_start + timedelta(hours=2),
                timezone='America/Chicago',
                city=city,
                state=state,
                min_age=random.choice([None, 18, 21]),
                is_published=host.verification_status == 'APPROVED',
            )
            gigs.append(gig)

    print(f"Created {len(gigs)} gigs.")
    return gigs


def create_applications(comedians, gigs):
    print("Creating applications...")
    count = 0
    published = [gig for gig in gigs if gig.is_published]

    for comedian in comedians:
        for gig in random.sample(published, min(len(published), random.randint(0, 3))):
            Application.objects.create(
                gig=gig,
                comedian=comedian,
                message=fake.paragraph(nb_sentences=3),
            )
            count += 1

    print(f"Created {count} applications.")


def create_bookings_and_reviews(comedians, gigs):
    print("Creating bookings and reviews...")
    bookings = 0
    reviews = 0

    past_gigs = [gig for gig in gigs if gig.is_published and gig.date_start < timezone.now()]

    for gig in past_gigs:
        comedian = random.choice(comedians)
        booking = Booking.objects.create(
            gig=gig,
            comedian=comedian,
            promoter=gig.created_by,
            status='PAID',
        )
        Booking.objects.filter(pk=booking.pk).update(payment_intent_id=f'pi_mock_{booking.pk}')
        bookings += 1

        # 70% chance each side leaves a review
        if random.random() < 0.7:
            Review.objects.create(
                author=gig.created_by,
                subject=comedian,
                gig=gig,
                booking=booking,
                rating=random.randint(3, 5),
                comment=fake.paragraph(nb_sentences=2),
            )
            reviews += 1

    print(f"Created {bookings} bookings and {reviews} reviews.")


def create_community(users):
    print("Creating community posts...")

    for author in random.sample(users, min(len(users), 8)):
        post = CommunityPost.objects.create(
            author=author,
            title=fake.sentence(nb_words=6)[:120],
            content=fake.paragraph(nb_sentences=3),
        )
        for replier in random.sample(users, random.randint(0, 3)):
            CommunityReply.objects.create(
                post=post,
                author=replier,
                content=fake.sentence(nb_words=12),
            )


def main():
    print("Starting database population...")

    comedians, promoters, venues, fans = create_users()
    create_profiles(comedians, promoters, venues)

    gigs = create_gigs(promoters + venues)
    create_applications(comedians, gigs)
    create_bookings_and_reviews(comedians, gigs)
    create_community(comedians + promoters + venues + fans)

    print("Database population completed successfully!")


if __name__ == '__main__':
    main()
