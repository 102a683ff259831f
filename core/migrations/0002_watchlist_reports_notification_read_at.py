import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('core', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='notification',
            name='read_at',
            field=models.DateTimeField(blank=True, null=True, verbose_name='read at'),
        ),
        migrations.CreateModel(
            name='WatchlistItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('notes', models.CharField(blank=True, default='', max_length=500, verbose_name='notes')),
                ('notify_on_price_change', models.BooleanField(default=True, verbose_name='notify on price change')),
                ('notify_on_status_change', models.BooleanField(default=True, verbose_name='notify on status change')),
                ('last_price', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True, verbose_name='price when saved')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('listing', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='watchlist_items', to='core.listing')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='watchlist_items', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'watchlist item',
                'verbose_name_plural': 'watchlist items',
                'ordering': ['-created_at'],
                'constraints': [
                    models.UniqueConstraint(fields=('user', 'listing'), name='unique_watchlist_item_per_user_listing'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ListingReport',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('reason', models.CharField(choices=[('fake_listing', 'Fake Listing'), ('misleading_price', 'Misleading Price'), ('wrong_category', 'Wrong Category'), ('stolen_images', 'Stolen Images'), ('spam', 'Spam'), ('scam', 'Scam'), ('sold_item', 'Item Already Sold'), ('counterfeit', 'Counterfeit'), ('safety_concern', 'Safety Concern'), ('other', 'Other')], max_length=30, verbose_name='reason')),
                ('description', models.TextField(validators=[django.core.validators.MinLengthValidator(10), django.core.validators.MaxLengthValidator(2000)], verbose_name='description')),
                ('evidence', models.JSONField(blank=True, default=list, verbose_name='evidence links')),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('reviewed', 'Reviewed'), ('dismissed', 'Dismissed'), ('action_taken', 'Action Taken')], default='pending', max_length=20, verbose_name='status')),
                ('auto_flagged', models.BooleanField(default=False, verbose_name='triggered auto-flag')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('listing', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='reports', to='core.listing')),
                ('reporter', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='listing_reports', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'listing report',
                'verbose_name_plural': 'listing reports',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['status'], name='listing_report_status_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('listing', 'reporter'), name='unique_listing_report_per_reporter'),
                ],
            },
        ),
    ]
