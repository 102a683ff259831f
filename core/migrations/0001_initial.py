import core.models
import core.validators
import django.contrib.auth.models
import django.contrib.auth.validators
import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('auth', '0012_alter_user_first_name_max_length'),
    ]

    operations = [
        migrations.CreateModel(
            name='User',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('password', models.CharField(max_length=128, verbose_name='password')),
                ('last_login', models.DateTimeField(blank=True, null=True, verbose_name='last login')),
                ('is_superuser', models.BooleanField(default=False, help_text='Designates that this user has all permissions without explicitly assigning them.', verbose_name='superuser status')),
                ('username', models.CharField(error_messages={'unique': 'A user with that username already exists.'}, help_text='Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.', max_length=150, unique=True, validators=[django.contrib.auth.validators.UnicodeUsernameValidator()], verbose_name='username')),
                ('first_name', models.CharField(blank=True, max_length=150, verbose_name='first name')),
                ('last_name', models.CharField(blank=True, max_length=150, verbose_name='last name')),
                ('is_staff', models.BooleanField(default=False, help_text='Designates whether the user can log into this admin site.', verbose_name='staff status')),
                ('is_active', models.BooleanField(default=True, help_text='Designates whether this user should be treated as active. Unselect this instead of deleting accounts.', verbose_name='active')),
                ('date_joined', models.DateTimeField(default=django.utils.timezone.now, verbose_name='date joined')),
                ('email', models.EmailField(error_messages={'unique': 'A user with that email already exists.'}, help_text='Required. Enter a valid email address.', max_length=254, unique=True, verbose_name='email address')),
                ('phone_number', models.CharField(blank=True, default='', help_text='Optional. Enter phone number in international format.', max_length=20, validators=[core.validators.validate_phone_number], verbose_name='phone number')),
                ('company_name', models.CharField(blank=True, default='', help_text='Company or railroad the user represents.', max_length=200, verbose_name='company name')),
                ('user_type', models.CharField(choices=[('buyer', 'Buyer'), ('seller', 'Seller'), ('contractor', 'Contractor')], default='buyer', help_text='Primary role on the marketplace.', max_length=20, verbose_name='user type')),
                ('avatar', models.ImageField(blank=True, help_text='Optional. Upload a profile picture (max 5MB, formats: jpg, png, webp).', null=True, upload_to=core.models.user_avatar_upload_path, validators=[core.validators.validate_avatar_image], verbose_name='avatar')),
                ('email_verified', models.BooleanField(default=False, help_text='Whether the user confirmed their email address.', verbose_name='email verified')),
                ('is_verified_seller', models.BooleanField(default=False, help_text='Whether the user holds an active seller verification.', verbose_name='verified seller')),
                ('verified_seller_status', models.CharField(choices=[('none', 'None'), ('pending', 'Pending'), ('active', 'Active'), ('expired', 'Expired'), ('revoked', 'Revoked')], default='none', max_length=20, verbose_name='seller verification status')),
                ('verified_seller_tier', models.CharField(blank=True, choices=[('standard', 'Standard'), ('priority', 'Priority')], default='', max_length=20, verbose_name='seller verification tier')),
                ('verified_seller_approved_at', models.DateTimeField(blank=True, null=True, verbose_name='seller verification approved at')),
                ('verified_seller_expires_at', models.DateTimeField(blank=True, null=True, verbose_name='seller verification expires at')),
                ('seller_tier', models.CharField(choices=[('buyer', 'Buyer'), ('basic', 'Basic'), ('plus', 'Plus'), ('pro', 'Pro'), ('enterprise', 'Enterprise')], default='buyer', help_text='Subscription tier. Listing limits are unlimited on every tier.', max_length=20, verbose_name='seller tier')),
                ('active_listing_count', models.PositiveIntegerField(default=0, verbose_name='active listing count')),
                ('created_at', models.DateTimeField(auto_now_add=True, help_text='Timestamp when the account was created.', verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when the account was last updated.', verbose_name='updated at')),
                ('groups', models.ManyToManyField(blank=True, help_text='The groups this user belongs to. A user will get all permissions granted to each of their groups.', related_name='user_set', related_query_name='user', to='auth.group', verbose_name='groups')),
                ('user_permissions', models.ManyToManyField(blank=True, help_text='Specific permissions for this user.', related_name='user_set', related_query_name='user', to='auth.permission', verbose_name='user permissions')),
            ],
            options={
                'verbose_name': 'user',
                'verbose_name_plural': 'users',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['email'], name='user_email_idx'),
                    models.Index(fields=['user_type'], name='user_type_idx'),
                    models.Index(fields=['is_verified_seller'], name='user_verified_seller_idx'),
                ],
            },
            managers=[
                ('objects', django.contrib.auth.models.UserManager()),
            ],
        ),
        migrations.CreateModel(
            name='Listing',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(help_text='Headline shown in search results', max_length=150, verbose_name='title')),
                ('slug', models.SlugField(blank=True, max_length=110, unique=True, verbose_name='slug')),
                ('description', models.TextField(validators=[django.core.validators.MaxLengthValidator(10000)], verbose_name='description')),
                ('category', models.CharField(choices=[('locomotives', 'Locomotives'), ('freight-cars', 'Freight Cars'), ('passenger-cars', 'Passenger Cars'), ('maintenance-of-way', 'Maintenance of Way'), ('track-materials', 'Track Materials'), ('signals-communications', 'Signals & Communications'), ('parts-components', 'Parts & Components'), ('tools-equipment', 'Tools & Equipment'), ('real-estate', 'Real Estate'), ('services', 'Services')], max_length=40, verbose_name='category')),
                ('subcategory', models.CharField(blank=True, default='', max_length=100, verbose_name='subcategory')),
                ('condition', models.CharField(choices=[('new', 'New'), ('rebuilt', 'Rebuilt'), ('refurbished', 'Refurbished'), ('used-excellent', 'Used - Excellent'), ('used-good', 'Used - Good'), ('used-fair', 'Used - Fair'), ('for-parts', 'For Parts'), ('as-is', 'As-Is')], max_length=20, verbose_name='condition')),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('pending', 'Pending Review'), ('active', 'Active'), ('sold', 'Sold'), ('expired', 'Expired'), ('archived', 'Archived')], default='draft', max_length=20, verbose_name='status')),
                ('seller_type', models.CharField(choices=[('individual', 'Individual'), ('dealer', 'Dealer'), ('contractor', 'Contractor')], default='individual', max_length=20, verbose_name='seller type')),
                ('price_type', models.CharField(choices=[('fixed', 'Fixed Price'), ('negotiable', 'Negotiable'), ('auction', 'Auction'), ('contact', 'Contact for Price'), ('rfq', 'Request for Quote')], default='contact', max_length=20, verbose_name='price type')),
                ('price_amount', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True, validators=[django.core.validators.MinValueValidator(0)], verbose_name='price amount')),
                ('price_currency', models.CharField(default='USD', max_length=3, verbose_name='price currency')),
                ('price_negotiable', models.BooleanField(default=False, verbose_name='price negotiable')),
                ('city', models.CharField(blank=True, default='', max_length=100, verbose_name='city')),
                ('state', models.CharField(blank=True, default='', max_length=50, verbose_name='state')),
                ('country', models.CharField(default='USA', max_length=50, verbose_name='country')),
                ('zip_code', models.CharField(blank=True, default='', max_length=20, verbose_name='zip code')),
                ('latitude', models.FloatField(blank=True, null=True, validators=[django.core.validators.MinValueValidator(-90), django.core.validators.MaxValueValidator(90)], verbose_name='latitude')),
                ('longitude', models.FloatField(blank=True, null=True, validators=[django.core.validators.MinValueValidator(-180), django.core.validators.MaxValueValidator(180)], verbose_name='longitude')),
                ('equipment', models.JSONField(blank=True, default=dict, help_text='Locomotive or railcar specifics such as manufacturer, model, year and horsepower', verbose_name='equipment details')),
                ('specifications', models.JSONField(blank=True, default=list, help_text='List of {label, value, unit} entries', verbose_name='specifications')),
                ('tags', models.JSONField(blank=True, default=list, verbose_name='tags')),
                ('keywords', models.JSONField(blank=True, default=list, verbose_name='keywords')),
                ('quantity', models.PositiveIntegerField(default=1, validators=[django.core.validators.MinValueValidator(1)], verbose_name='quantity')),
                ('quantity_unit', models.CharField(blank=True, default='', max_length=30, verbose_name='quantity unit')),
                ('sku', models.CharField(blank=True, default='', max_length=100, verbose_name='SKU')),
                ('shipping_options', models.JSONField(blank=True, default=dict, verbose_name='shipping options')),
                ('featured_active', models.BooleanField(default=False, verbose_name='featured active')),
                ('featured_expires_at', models.DateTimeField(blank=True, null=True, verbose_name='featured expires at')),
                ('featured_purchased_at', models.DateTimeField(blank=True, null=True, verbose_name='featured purchased at')),
                ('premium_active', models.BooleanField(default=False, verbose_name='premium active')),
                ('premium_expires_at', models.DateTimeField(blank=True, null=True, verbose_name='premium expires at')),
                ('premium_purchased_at', models.DateTimeField(blank=True, null=True, verbose_name='premium purchased at')),
                ('elite_active', models.BooleanField(default=False, verbose_name='elite active')),
                ('elite_expires_at', models.DateTimeField(blank=True, null=True, verbose_name='elite expires at')),
                ('elite_purchased_at', models.DateTimeField(blank=True, null=True, verbose_name='elite purchased at')),
                ('ai_enhanced', models.BooleanField(default=False, verbose_name='AI enhanced')),
                ('spec_sheet_generated', models.BooleanField(default=False, verbose_name='spec sheet generated')),
                ('view_count', models.PositiveIntegerField(default=0, verbose_name='view count')),
                ('inquiry_count', models.PositiveIntegerField(default=0, verbose_name='inquiry count')),
                ('save_count', models.PositiveIntegerField(default=0, verbose_name='save count')),
                ('published_at', models.DateTimeField(blank=True, null=True, verbose_name='published at')),
                ('expires_at', models.DateTimeField(blank=True, null=True, verbose_name='expires at')),
                ('sold_at', models.DateTimeField(blank=True, null=True, verbose_name='sold at')),
                ('is_active', models.BooleanField(default=False, verbose_name='is active')),
                ('is_flagged', models.BooleanField(default=False, verbose_name='is flagged')),
                ('flag_reason', models.CharField(blank=True, default='', max_length=500, verbose_name='flag reason')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('seller', models.ForeignKey(help_text='User offering the equipment', on_delete=django.db.models.deletion.CASCADE, related_name='listings', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'listing',
                'verbose_name_plural': 'listings',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['seller'], name='listing_seller_idx'),
                    models.Index(fields=['status', 'is_active'], name='listing_status_active_idx'),
                    models.Index(fields=['category'], name='listing_category_idx'),
                    models.Index(fields=['state'], name='listing_state_idx'),
                    models.Index(fields=['featured_active'], name='listing_featured_idx'),
                    models.Index(fields=['premium_active'], name='listing_premium_idx'),
                    models.Index(fields=['elite_active'], name='listing_elite_idx'),
                    models.Index(fields=['-created_at'], name='listing_created_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ListingMedia',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('url', models.URLField(max_length=500, verbose_name='url')),
                ('media_type', models.CharField(choices=[('image', 'Image'), ('video', 'Video'), ('document', 'Document')], default='image', max_length=20, verbose_name='media type')),
                ('caption', models.CharField(blank=True, default='', max_length=200, verbose_name='caption')),
                ('is_primary', models.BooleanField(default=False, verbose_name='is primary')),
                ('order', models.PositiveIntegerField(default=0, verbose_name='order')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('listing', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='media', to='core.listing')),
            ],
            options={
                'verbose_name': 'listing media',
                'verbose_name_plural': 'listing media',
                'ordering': ['order', 'id'],
                'indexes': [
                    models.Index(fields=['listing', 'order'], name='listing_media_order_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ListingDraft',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('key', models.CharField(default='railx-listing-draft', max_length=100, verbose_name='storage key')),
                ('payload', models.JSONField(blank=True, default=dict, verbose_name='form state')),
                ('current_step', models.PositiveSmallIntegerField(default=1, validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(4)], verbose_name='current step')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='listing_drafts', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'listing draft',
                'verbose_name_plural': 'listing drafts',
                'constraints': [
                    models.UniqueConstraint(fields=('user', 'key'), name='unique_listing_draft_per_user_key'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Inquiry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('subject', models.CharField(max_length=200, verbose_name='subject')),
                ('status', models.CharField(choices=[('new', 'New'), ('read', 'Read'), ('replied', 'Replied'), ('closed', 'Closed'), ('spam', 'Spam')], default='new', max_length=20, verbose_name='status')),
                ('last_message_at', models.DateTimeField(default=django.utils.timezone.now, verbose_name='last message at')),
                ('buyer_unread_count', models.PositiveIntegerField(default=0, verbose_name='buyer unread count')),
                ('seller_unread_count', models.PositiveIntegerField(default=1, verbose_name='seller unread count')),
                ('is_archived', models.BooleanField(default=False, verbose_name='is archived')),
                ('intent_quantity', models.PositiveIntegerField(default=1, validators=[django.core.validators.MinValueValidator(1)], verbose_name='intended quantity')),
                ('intent_timeline', models.CharField(choices=[('immediate', 'Immediate'), ('short_term', '1-3 months'), ('medium_term', '3-6 months'), ('long_term', '6+ months'), ('unspecified', 'Unspecified')], default='unspecified', max_length=20, verbose_name='purchase timeline')),
                ('intent_purpose', models.CharField(blank=True, default='', max_length=500, verbose_name='intended use')),
                ('first_reply_at', models.DateTimeField(blank=True, null=True, verbose_name='first reply at')),
                ('response_time_minutes', models.PositiveIntegerField(blank=True, null=True, verbose_name='response time (minutes)')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('archived_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('buyer', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='buyer_inquiries', to=settings.AUTH_USER_MODEL)),
                ('listing', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='inquiries', to='core.listing')),
                ('seller', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='seller_inquiries', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'inquiry',
                'verbose_name_plural': 'inquiries',
                'ordering': ['-last_message_at'],
                'indexes': [
                    models.Index(fields=['seller', 'status'], name='inquiry_seller_status_idx'),
                    models.Index(fields=['buyer', 'status'], name='inquiry_buyer_status_idx'),
                    models.Index(fields=['-last_message_at'], name='inquiry_last_message_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('listing', 'buyer'), name='unique_inquiry_per_listing_buyer'),
                ],
            },
        ),
        migrations.CreateModel(
            name='InquiryMessage',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('content', models.TextField(validators=[django.core.validators.MaxLengthValidator(10000)], verbose_name='content')),
                ('attachments', models.JSONField(blank=True, default=list, verbose_name='attachments')),
                ('read_at', models.DateTimeField(blank=True, null=True, verbose_name='read at')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('inquiry', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='messages', to='core.inquiry')),
                ('sender', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='inquiry_messages', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'inquiry message',
                'verbose_name_plural': 'inquiry messages',
                'ordering': ['created_at', 'id'],
            },
        ),
        migrations.CreateModel(
            name='ISORequest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=150, validators=[django.core.validators.MinLengthValidator(5, message='Title must be at least 5 characters')], verbose_name='title')),
                ('category', models.CharField(choices=[('locomotives', 'Locomotives'), ('railcars', 'Railcars'), ('freight-cars', 'Freight Cars'), ('passenger-cars', 'Passenger Cars'), ('track-materials', 'Track Materials'), ('maintenance-of-way', 'Maintenance of Way'), ('signals-communications', 'Signals & Communications'), ('parts-components', 'Parts & Components'), ('tools-equipment', 'Tools & Equipment'), ('contractors', 'Contractors'), ('services', 'Services'), ('other', 'Other')], max_length=40, verbose_name='category')),
                ('description', models.TextField(validators=[django.core.validators.MinLengthValidator(10, message='Description must be at least 10 characters'), django.core.validators.MaxLengthValidator(2000)], verbose_name='description')),
                ('city', models.CharField(blank=True, default='', max_length=100, verbose_name='city')),
                ('state', models.CharField(blank=True, default='', max_length=50, verbose_name='state')),
                ('country', models.CharField(default='USA', max_length=50, verbose_name='country')),
                ('budget_min', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True, validators=[django.core.validators.MinValueValidator(0)], verbose_name='minimum budget')),
                ('budget_max', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True, validators=[django.core.validators.MinValueValidator(0)], verbose_name='maximum budget')),
                ('budget_currency', models.CharField(default='USD', max_length=3, verbose_name='budget currency')),
                ('budget_type', models.CharField(choices=[('fixed', 'Fixed'), ('range', 'Range'), ('negotiable', 'Negotiable')], default='negotiable', max_length=20, verbose_name='budget type')),
                ('needed_by', models.DateField(blank=True, null=True, verbose_name='needed by')),
                ('allow_messaging', models.BooleanField(default=True, verbose_name='allow messaging')),
                ('status', models.CharField(choices=[('active', 'Active'), ('fulfilled', 'Fulfilled'), ('closed', 'Closed'), ('deleted', 'Deleted')], default='active', max_length=20, verbose_name='status')),
                ('response_count', models.PositiveIntegerField(default=0, verbose_name='response count')),
                ('view_count', models.PositiveIntegerField(default=0, verbose_name='view count')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='iso_requests', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'ISO request',
                'verbose_name_plural': 'ISO requests',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['status', '-created_at'], name='iso_status_created_idx'),
                    models.Index(fields=['category'], name='iso_category_idx'),
                    models.Index(fields=['user'], name='iso_user_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ISOResponse',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('message', models.TextField(validators=[django.core.validators.MaxLengthValidator(5000)], verbose_name='message')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('iso_request', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='responses', to='core.isorequest')),
                ('responder', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='iso_responses', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'ISO response',
                'verbose_name_plural': 'ISO responses',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='ContractorProfile',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('business_name', models.CharField(max_length=200, verbose_name='business name')),
                ('business_description', models.TextField(blank=True, default='', verbose_name='business description')),
                ('business_phone', models.CharField(blank=True, default='', max_length=20, validators=[core.validators.validate_phone_number], verbose_name='business phone')),
                ('business_email', models.EmailField(blank=True, default='', max_length=254, verbose_name='business email')),
                ('website', models.URLField(blank=True, default='', verbose_name='website')),
                ('logo', models.URLField(blank=True, default='', max_length=500, verbose_name='logo')),
                ('cover_image', models.URLField(blank=True, default='', max_length=500, verbose_name='cover image')),
                ('street', models.CharField(blank=True, default='', max_length=200, verbose_name='street')),
                ('city', models.CharField(blank=True, default='', max_length=100, verbose_name='city')),
                ('state', models.CharField(blank=True, default='', max_length=50, verbose_name='state')),
                ('zip_code', models.CharField(blank=True, default='', max_length=20, verbose_name='zip code')),
                ('country', models.CharField(default='USA', max_length=50, verbose_name='country')),
                ('latitude', models.FloatField(blank=True, null=True, verbose_name='latitude')),
                ('longitude', models.FloatField(blank=True, null=True, verbose_name='longitude')),
                ('contractor_types', models.JSONField(default=list, verbose_name='contractor types')),
                ('services', models.JSONField(blank=True, default=list, verbose_name='services')),
                ('regions_served', models.JSONField(blank=True, default=list, verbose_name='regions served')),
                ('years_in_business', models.PositiveIntegerField(blank=True, null=True, verbose_name='years in business')),
                ('photos', models.JSONField(blank=True, default=list, verbose_name='photos')),
                ('documents', models.JSONField(blank=True, default=list, verbose_name='documents')),
                ('verification_status', models.CharField(choices=[('none', 'Not Submitted'), ('pending', 'Pending Review'), ('ai_approved', 'AI Approved'), ('approved', 'Approved'), ('verified', 'Verified'), ('rejected', 'Rejected'), ('expired', 'Expired')], default='none', max_length=20, verbose_name='verification status')),
                ('verified_at', models.DateTimeField(blank=True, null=True, verbose_name='verified at')),
                ('verified_badge_expires_at', models.DateTimeField(blank=True, null=True, verbose_name='verified badge expires at')),
                ('visibility_tier', models.CharField(choices=[('none', 'None'), ('verified', 'Verified'), ('featured', 'Featured'), ('priority', 'Priority')], default='none', max_length=20, verbose_name='visibility tier')),
                ('visibility_subscription_status', models.CharField(choices=[('none', 'None'), ('active', 'Active'), ('past_due', 'Past Due'), ('canceled', 'Canceled'), ('expired', 'Expired')], default='none', max_length=20, verbose_name='visibility subscription status')),
                ('visibility_expires_at', models.DateTimeField(blank=True, null=True, verbose_name='visibility expires at')),
                ('is_published', models.BooleanField(default=False, verbose_name='is published')),
                ('is_active', models.BooleanField(default=True, verbose_name='is active')),
                ('profile_completeness', models.PositiveSmallIntegerField(default=0, verbose_name='profile completeness')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='contractor_profile', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'contractor profile',
                'verbose_name_plural': 'contractor profiles',
                'ordering': ['business_name'],
                'indexes': [
                    models.Index(fields=['verification_status'], name='contractor_verification_idx'),
                    models.Index(fields=['visibility_tier', 'visibility_subscription_status'], name='contractor_visibility_idx'),
                    models.Index(fields=['state'], name='contractor_state_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='AddOnPurchase',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('addon_type', models.CharField(choices=[('featured', 'Featured Listing'), ('premium', 'Premium Placement'), ('elite', 'Elite Placement'), ('ai_enhancement', 'AI Listing Enhancement'), ('spec_sheet', 'Spec Sheet Builder')], max_length=30, verbose_name='add-on type')),
                ('amount', models.PositiveIntegerField(default=0, verbose_name='amount (cents)')),
                ('currency', models.CharField(default='usd', max_length=3, verbose_name='currency')),
                ('stripe_session_id', models.CharField(blank=True, db_index=True, default='', max_length=255, verbose_name='Stripe session id')),
                ('stripe_payment_id', models.CharField(blank=True, default='', max_length=255, verbose_name='Stripe payment id')),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('active', 'Active'), ('expired', 'Expired'), ('cancelled', 'Cancelled'), ('refunded', 'Refunded')], default='pending', max_length=20, verbose_name='status')),
                ('started_at', models.DateTimeField(blank=True, null=True, verbose_name='started at')),
                ('expires_at', models.DateTimeField(blank=True, null=True, verbose_name='expires at')),
                ('metadata', models.JSONField(blank=True, default=dict, verbose_name='metadata')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('contractor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='addon_purchases', to='core.contractorprofile')),
                ('listing', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='addon_purchases', to='core.listing')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='addon_purchases', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'add-on purchase',
                'verbose_name_plural': 'add-on purchases',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['user', 'status'], name='addon_user_status_idx'),
                    models.Index(fields=['status', 'expires_at'], name='addon_status_expires_idx'),
                    models.Index(fields=['listing'], name='addon_listing_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Notification',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('notification_type', models.CharField(choices=[('inquiry', 'New Inquiry'), ('inquiry_reply', 'Inquiry Reply'), ('iso_response', 'ISO Response'), ('addon_expired', 'Add-on Expired'), ('system', 'System')], default='system', max_length=30, verbose_name='type')),
                ('title', models.CharField(max_length=200, verbose_name='title')),
                ('message', models.TextField(blank=True, default='', verbose_name='message')),
                ('link', models.CharField(blank=True, default='', max_length=500, verbose_name='link')),
                ('is_read', models.BooleanField(default=False, verbose_name='is read')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='notifications', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'notification',
                'verbose_name_plural': 'notifications',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['user', 'is_read'], name='notification_user_read_idx'),
                ],
            },
        ),
    ]
