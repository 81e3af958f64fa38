# Recalculate Ratings Management Command
from decimal import Decimal

from django.core.management.base import BaseCommand, CommandError

from core.models import User
from core.signals import rating_stats_for


class Command(BaseCommand):
    help = 'Recalculates user rating averages and review counts from received reviews.'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Run the command without saving changes to the database.',
        )
        parser.add_argument(
            '--role',
            choices=[choice for choice, _label in User.ROLE_CHOICES],
            help='Recalculate only users with this role.',
        )
        parser.add_argument(
            '--batch-size',
            type=int,
            default=1000,
            help='Batch size for bulk processing.',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        batch_size = options['batch_size']

        if batch_size < 1:
            raise CommandError('--batch-size must be a positive integer.')

        users = User.objects.order_by('id')
        if options.get('role'):
            users = users.filter(role=options['role'])

        self.recalculate_users(users, dry_run, batch_size)

        if dry_run:
            self.stdout.write(self.style.SUCCESS('Dry run completed. No changes saved.'))
        else:
            self.stdout.write(self.style.SUCCESS('Recalculation completed successfully.'))

    def recalculate_users(self, users, dry_run, batch_size):
        self.stdout.write('Recalculating user ratings...')
        updates = []
        changed = 0
        count = 0

        for user in users.iterator(chunk_size=batch_size):
            new_avg, new_total = rating_stats_for(user.id)

            if abs(user.rating_average - new_avg) > Decimal('0.001') or user.total_reviews != new_total:
                changed += 1
                if dry_run:
                    self.stdout.write(
                        f'  [DRY-RUN] User {user.id} ({user.email}): '
                        f'Rating {user.rating_average} -> {new_avg}, '
                        f'Count {user.total_reviews} -> {new_total}'
                    )
                user.rating_average = new_avg
                user.total_reviews = new_total
                updates.append(user)

            if len(updates) >= batch_size:
                if not dry_run:
                    User.objects.bulk_update(updates, ['rating_average', 'total_reviews'])
                updates = []

            count += 1
            if count % 100 == 0:
                self.stdout.write(f'Processed {count} users...')

        if updates and not dry_run:
            User.objects.bulk_update(updates, ['rating_average', 'total_reviews'])

        self.stdout.write(f'Processed {count} users total, {changed} out of date.')
