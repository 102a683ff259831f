import os
import sys
import django
import random
from decimal import Decimal
from datetime import timedelta
from django.utils import timezone
from faker import Faker

# Add project root to Python path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Set up Django environment
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'rail_exchange.settings')
django.setup()

from core import pricing
from core.constants import (
    CONTRACTOR_TYPES,
    ISO_CATEGORIES,
    LISTING_CATEGORIES,
    LISTING_CONDITIONS,
    VALID_MANUFACTURERS,
)
from core.models import (
    User, Listing, ListingMedia, Inquiry, InquiryMessage,
    ISORequest, ISOResponse, ContractorProfile, AddOnPurchase
)
from core.placement import assign_purchase_to_listing

fake = Faker()

EQUIPMENT_MODELS = [
    "GP38-2", "SD40-2", "SW1500", "ES44AC", "Dash 9-44CW",
    "Covered Hopper", "Boxcar", "Tank Car", "Gondola", "Flatcar",
    "Tie Inserter", "Ballast Regulator", "Tamper", "Rail Grinder",
]


def create_users(num_buyers=10, num_sellers=5):
    print(f"Creating {num_buyers} buyers and {num_sellers} sellers...")

    buyers = []
    sellers = []

    # Create Buyers
    for _ in range(num_buyers):
        email = fake.unique.email()
        username = email.split('@')[0]
        user = User.objects.create_user(
            username=username,
            email=email,
            password='password123',
            first_name=fake.first_name(),
            last_name=fake.last_name(),
            user_type='buyer',
            email_verified=True
        )
        buyers.append(user)

    # Create verified Sellers
    for _ in range(num_sellers):
        email = fake.unique.email()
        username = email.split('@')[0]
        approved_at = timezone.now() - timedelta(days=random.randint(1, 200))
        user = User.objects.create_user(
            username=username,
            email=email,
            password='password123',
            first_name=fake.first_name(),
            last_name=fake.last_name(),
            company_name=f"{fake.last_name()} Rail Services",
            user_type='seller',
            email_verified=True,
            is_verified_seller=True,
            verified_seller_status='active',
            verified_seller_tier=random.choice(['standard', 'priority']),
            verified_seller_approved_at=approved_at,
            verified_seller_expires_at=approved_at + timedelta(days=365)
        )
        sellers.append(user)

    print(f"Created {len(buyers)} buyers and {len(sellers)} sellers.")
    return buyers, sellers


def create_listings(sellers):
    print("Creating listings...")
    listings = []

    for seller in sellers:
        # Each seller lists 2-5 pieces of equipment
        for _ in range(random.randint(2, 5)):
            model = random.choice(EQUIPMENT_MODELS)
            status = random.choice(['active', 'active', 'active', 'draft', 'sold'])
            listing = Listing.objects.create(
                seller=seller,
                title=f"{random.choice(['Rebuilt', 'Low-Hour', 'Serviceable', 'Stored'])} {model} #{fake.unique.random_int(100, 9999)}",
                description=fake.paragraph(nb_sentences=5),
                category=random.choice(LISTING_CATEGORIES),
                condition=random.choice(LISTING_CONDITIONS),
                status=status,
                price_type='fixed',
                price_amount=Decimal(random.uniform(5000.0, 900000.0)).quantize(Decimal('0.01')),
                city=fake.city(),
                state=fake.state_abbr(),
                equipment={
                    'manufacturer': random.choice(VALID_MANUFACTURERS),
                    'model': model,
                    'year': random.randint(1960, 2022),
                },
                tags=[model.lower()],
            )
            for order in range(random.randint(1, 4)):
                ListingMedia.objects.create(
                    listing=listing,
                    url=f"https://picsum.photos/seed/{listing.slug}-{order}/1200/800",
                    is_primary=order == 0,
                    order=order
                )
            listings.append(listing)

    print(f"Created {len(listings)} listings.")
    return listings


def create_addons(listings):
    print("Creating add-on purchases...")
    purchases = []

    active_listings = [l for l in listings if l.status == 'active']

    for listing in random.sample(active_listings, min(6, len(active_listings))):
        addon_type = random.choice(pricing.PLACEMENT_TIERS)
        purchase = AddOnPurchase.objects.create(
            user=listing.seller,
            addon_type=addon_type,
            status='active'
        )
        assign_purchase_to_listing(purchase, listing, listing.seller)
        purchases.append(purchase)

    print(f"Created {len(purchases)} add-on purchases.")
    return purchases


def create_inquiries(buyers, listings):
    print("Creating inquiries...")
    inquiries = []

    active_listings = [l for l in listings if l.status == 'active']

    for buyer in buyers:
        # Each buyer asks about 0-3 listings
        for listing in random.sample(active_listings, min(random.randint(0, 3), len(active_listings))):
            inquiry = Inquiry.objects.create(
                listing=listing,
                buyer=buyer,
                seller=listing.seller,
                subject=f"Inquiry about {listing.title}"[:200],
                intent_quantity=random.randint(1, 3)
            )
            InquiryMessage.objects.create(
                inquiry=inquiry,
                sender=buyer,
                content=fake.paragraph()
            )
            inquiries.append(inquiry)

    print(f"Created {len(inquiries)} inquiries.")
    return inquiries


def create_iso_requests(buyers, sellers):
    print("Creating ISO requests...")
    requests = []

    for buyer in random.sample(buyers, min(5, len(buyers))):
        budget_min = Decimal(random.randint(10, 200) * 1000)
        iso_request = ISORequest.objects.create(
            user=buyer,
            title=f"Looking for {random.choice(EQUIPMENT_MODELS)}",
            category=random.choice(ISO_CATEGORIES),
            description=fake.paragraph(nb_sentences=3),
            budget_min=budget_min,
            budget_max=budget_min * 2,
            state=fake.state_abbr()
        )
        # 50% chance a seller responds
        if random.random() < 0.5:
            ISOResponse.objects.create(
                iso_request=iso_request,
                responder=random.choice(sellers),
                message=f'[Response to ISO Request: "{iso_request.title}"]\n\n{fake.paragraph()}'
            )
        requests.append(iso_request)

    print(f"Created {len(requests)} ISO requests.")
    return requests


def create_contractors(num_contractors=6):
    print("Creating contractor profiles...")
    profiles = []

    for _ in range(num_contractors):
        email = fake.unique.email()
        user = User.objects.create_user(
            username=email.split('@')[0],
            email=email,
            password='password123',
            user_type='contractor',
            email_verified=True
        )
        profile = ContractorProfile.objects.create(
            user=user,
            business_name=f"{fake.last_name()} {random.choice(['Rail', 'Track', 'Railcar'])} {random.choice(['Services', 'Contractors', 'Co.'])}",
            business_description=fake.paragraph(),
            city=fake.city(),
            state=fake.state_abbr(),
            contractor_types=random.sample(CONTRACTOR_TYPES, random.randint(1, 3)),
            years_in_business=random.randint(1, 40),
            verification_status='verified',
            verified_at=timezone.now(),
            visibility_tier=random.choice(['verified', 'featured', 'priority']),
            visibility_subscription_status='active',
            visibility_expires_at=timezone.now() + timedelta(days=30),
            is_published=True
        )
        profiles.append(profile)

    print(f"Created {len(profiles)} contractor profiles.")
    return profiles


def main():
    print("Starting database population...")

    # Create Users
    buyers, sellers = create_users(num_buyers=20, num_sellers=8)

    # Create Listings
    listings = create_listings(sellers)

    # Create Add-ons
    create_addons(listings)

    # Create Inquiries
    create_inquiries(buyers, listings)

    # Create ISO Requests
    create_iso_requests(buyers, sellers)

    # Create Contractors
    create_contractors()

    print("Database population completed successfully!")

if __name__ == '__main__':
    main()
