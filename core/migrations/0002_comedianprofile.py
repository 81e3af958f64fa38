import core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('core', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='ComedianProfile',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('stage_name', models.CharField(max_length=80, verbose_name='stage name')),
                ('bio', models.TextField(blank=True, default='', verbose_name='bio')),
                ('credits', models.CharField(blank=True, default='', max_length=160, verbose_name='credits')),
                ('website', models.URLField(blank=True, default='', verbose_name='website')),
                ('reel_url', models.URLField(blank=True, default='', verbose_name='reel URL')),
                ('instagram', models.CharField(blank=True, default='', max_length=60, verbose_name='instagram')),
                ('travel_radius_miles', models.PositiveIntegerField(blank=True, null=True, verbose_name='travel radius (miles)')),
                ('home_city', models.CharField(blank=True, default='', max_length=60, validators=[core.validators.validate_city], verbose_name='home city')),
                ('home_state', models.CharField(blank=True, default='', max_length=2, validators=[core.validators.validate_state_code], verbose_name='home state')),
                ('styles', models.JSONField(blank=True, default=list, verbose_name='styles')),
                ('clean_rating', models.CharField(choices=[('CLEAN', 'Clean'), ('PG13', 'PG-13'), ('R', 'R')], default='CLEAN', max_length=5, verbose_name='clean rating')),
                ('rate_min', models.PositiveIntegerField(blank=True, null=True, verbose_name='minimum rate')),
                ('rate_max', models.PositiveIntegerField(blank=True, null=True, verbose_name='maximum rate')),
                ('reel_urls', models.JSONField(blank=True, default=list, verbose_name='reel URLs')),
                ('notable_clubs', models.JSONField(blank=True, default=list, verbose_name='notable clubs')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='comedian_profile', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'comedian profile',
                'verbose_name_plural': 'comedian profiles',
                'indexes': [
                    models.Index(fields=['home_state', 'home_city'], name='core_comedian_home_idx'),
                ],
            },
        ),
    ]
