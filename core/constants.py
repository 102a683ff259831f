"""
Catalog constants shared by models, serializers and views.
"""

from django.utils.translation import gettext_lazy as _


# ============================================================================
# Listings
# ============================================================================

LISTING_CATEGORY_CHOICES = [
    ('locomotives', _('Locomotives')),
    ('freight-cars', _('Freight Cars')),
    ('passenger-cars', _('Passenger Cars')),
    ('maintenance-of-way', _('Maintenance of Way')),
    ('track-materials', _('Track Materials')),
    ('signals-communications', _('Signals & Communications')),
    ('parts-components', _('Parts & Components')),
    ('tools-equipment', _('Tools & Equipment')),
    ('real-estate', _('Real Estate')),
    ('services', _('Services')),
]

LISTING_CONDITION_CHOICES = [
    ('new', _('New')),
    ('rebuilt', _('Rebuilt')),
    ('refurbished', _('Refurbished')),
    ('used-excellent', _('Used - Excellent')),
    ('used-good', _('Used - Good')),
    ('used-fair', _('Used - Fair')),
    ('for-parts', _('For Parts')),
    ('as-is', _('As-Is')),
]

LISTING_STATUS_CHOICES = [
    ('draft', _('Draft')),
    ('pending', _('Pending Review')),
    ('active', _('Active')),
    ('sold', _('Sold')),
    ('expired', _('Expired')),
    ('archived', _('Archived')),
]

PRICE_TYPE_CHOICES = [
    ('fixed', _('Fixed Price')),
    ('negotiable', _('Negotiable')),
    ('auction', _('Auction')),
    ('contact', _('Contact for Price')),
    ('rfq', _('Request for Quote')),
]

SELLER_TYPE_CHOICES = [
    ('individual', _('Individual')),
    ('dealer', _('Dealer')),
    ('contractor', _('Contractor')),
]

MEDIA_TYPE_CHOICES = [
    ('image', _('Image')),
    ('video', _('Video')),
    ('document', _('Document')),
]

LISTING_CATEGORIES = [value for value, _label in LISTING_CATEGORY_CHOICES]
LISTING_CONDITIONS = [value for value, _label in LISTING_CONDITION_CHOICES]
LISTING_STATUSES = [value for value, _label in LISTING_STATUS_CHOICES]

# Statuses in which a listing counts as live
LIVE_LISTING_STATUSES = ('active', 'pending')

MAX_LISTING_MEDIA = 20
MAX_LISTING_TAGS = 10
MAX_TAG_LENGTH = 50
MAX_LISTING_KEYWORDS = 15

DRAFT_STORAGE_KEY = 'railx-listing-draft'

VALID_MANUFACTURERS = [
    'EMD',
    'GE',
    'Wabtec',
    'Alco',
    'MLW',
    'BLW',
    'Trinity',
    'Greenbrier',
    'FreightCar America',
    'National Steel Car',
    'TrinityRail',
    'GATX',
    'Union Tank Car',
    'American Railcar',
    'Progress Rail',
    'Siemens',
    'Stadler',
    'Alstom',
    'Bombardier',
    'Kawasaki',
    'Hitachi',
    'Other',
]


# ============================================================================
# Inquiries
# ============================================================================

INQUIRY_STATUS_CHOICES = [
    ('new', _('New')),
    ('read', _('Read')),
    ('replied', _('Replied')),
    ('closed', _('Closed')),
    ('spam', _('Spam')),
]

INQUIRY_TIMELINE_CHOICES = [
    ('immediate', _('Immediate')),
    ('short_term', _('1-3 months')),
    ('medium_term', _('3-6 months')),
    ('long_term', _('6+ months')),
    ('unspecified', _('Unspecified')),
]

INQUIRY_STATUSES = [value for value, _label in INQUIRY_STATUS_CHOICES]


# ============================================================================
# ISO requests
# ============================================================================

ISO_CATEGORY_CHOICES = [
    ('locomotives', _('Locomotives')),
    ('railcars', _('Railcars')),
    ('freight-cars', _('Freight Cars')),
    ('passenger-cars', _('Passenger Cars')),
    ('track-materials', _('Track Materials')),
    ('maintenance-of-way', _('Maintenance of Way')),
    ('signals-communications', _('Signals & Communications')),
    ('parts-components', _('Parts & Components')),
    ('tools-equipment', _('Tools & Equipment')),
    ('contractors', _('Contractors')),
    ('services', _('Services')),
    ('other', _('Other')),
]

ISO_STATUS_CHOICES = [
    ('active', _('Active')),
    ('fulfilled', _('Fulfilled')),
    ('closed', _('Closed')),
    ('deleted', _('Deleted')),
]

ISO_BUDGET_TYPE_CHOICES = [
    ('fixed', _('Fixed')),
    ('range', _('Range')),
    ('negotiable', _('Negotiable')),
]

ISO_CATEGORIES = [value for value, _label in ISO_CATEGORY_CHOICES]

# Statuses an owner may move an ISO request into
ISO_OWNER_STATUSES = ('active', 'fulfilled', 'closed')


# ============================================================================
# Contractors
# ============================================================================

CONTRACTOR_TYPE_CHOICES = [
    ('track-construction', _('Track Construction & Maintenance')),
    ('railcar-repair', _('Railcar Repair')),
    ('locomotive-service', _('Locomotive Service & Repair')),
    ('mow', _('Maintenance of Way')),
    ('signal-communications', _('Signal & Communications')),
    ('electrical-power', _('Electrical & Power')),
    ('environmental', _('Environmental Services')),
    ('hazmat-spill', _('Hazmat & Spill Response')),
    ('emergency-response', _('Emergency Response')),
    ('rerail-derailment', _('Rerailing & Derailment Recovery')),
    ('inspection-compliance', _('Inspection & Compliance')),
    ('transport-logistics', _('Transport & Logistics')),
    ('scrap-decommission', _('Scrap & Decommissioning')),
    ('engineering-consulting', _('Engineering & Consulting')),
    ('other', _('Other')),
]

CONTRACTOR_TYPES = [value for value, _label in CONTRACTOR_TYPE_CHOICES]

VERIFICATION_STATUS_CHOICES = [
    ('none', _('Not Submitted')),
    ('pending', _('Pending Review')),
    ('ai_approved', _('AI Approved')),
    ('approved', _('Approved')),
    ('verified', _('Verified')),
    ('rejected', _('Rejected')),
    ('expired', _('Expired')),
]

VISIBILITY_TIER_CHOICES = [
    ('none', _('None')),
    ('verified', _('Verified')),
    ('featured', _('Featured')),
    ('priority', _('Priority')),
]

VISIBILITY_SUBSCRIPTION_CHOICES = [
    ('none', _('None')),
    ('active', _('Active')),
    ('past_due', _('Past Due')),
    ('canceled', _('Canceled')),
    ('expired', _('Expired')),
]

VISIBILITY_TIER_BOOST = {
    'priority': 3,
    'featured': 2,
    'verified': 1,
}

EQUIPMENT_TO_CONTRACTOR_MAPPING = {
    'locomotives': ['locomotive-service', 'transport-logistics', 'inspection-compliance', 'scrap-decommission'],
    'railcars': ['railcar-repair', 'transport-logistics', 'inspection-compliance', 'scrap-decommission'],
    'tank-cars': ['railcar-repair', 'hazmat-spill', 'environmental', 'inspection-compliance', 'transport-logistics'],
    'freight-cars': ['railcar-repair', 'inspection-compliance', 'transport-logistics'],
    'passenger-cars': ['railcar-repair', 'inspection-compliance', 'transport-logistics'],
    'track-materials': ['track-construction', 'mow', 'transport-logistics', 'scrap-decommission'],
    'mow-equipment': ['mow', 'track-construction', 'transport-logistics'],
    'signal-equipment': ['signal-communications', 'electrical-power', 'inspection-compliance'],
    'parts': ['railcar-repair', 'locomotive-service', 'transport-logistics'],
    'tools': ['track-construction', 'mow'],
    'default': ['inspection-compliance', 'transport-logistics', 'rerail-derailment', 'emergency-response'],
}


def relevant_contractor_types(category):
    """Return the contractor types that service a given equipment category."""
    return EQUIPMENT_TO_CONTRACTOR_MAPPING.get(category or 'default', EQUIPMENT_TO_CONTRACTOR_MAPPING['default'])


# ============================================================================
# Users
# ============================================================================

USER_TYPE_CHOICES = [
    ('buyer', _('Buyer')),
    ('seller', _('Seller')),
    ('contractor', _('Contractor')),
]

SELLER_VERIFICATION_STATUS_CHOICES = [
    ('none', _('None')),
    ('pending', _('Pending')),
    ('active', _('Active')),
    ('expired', _('Expired')),
    ('revoked', _('Revoked')),
]

SELLER_VERIFICATION_TIER_CHOICES = [
    ('standard', _('Standard')),
    ('priority', _('Priority')),
]

SELLER_TIER_CHOICES = [
    ('buyer', _('Buyer')),
    ('basic', _('Basic')),
    ('plus', _('Plus')),
    ('pro', _('Pro')),
    ('enterprise', _('Enterprise')),
]


# ============================================================================
# Uploads
# ============================================================================

UPLOAD_FOLDERS = ('contractors', 'listings', 'documents', 'avatars')

ALLOWED_UPLOAD_TYPES = {
    'image': ('image/jpeg', 'image/png', 'image/webp', 'image/gif'),
    'document': (
        'application/pdf',
        'application/msword',
        'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    ),
}

MAX_UPLOAD_SIZES = {
    'image': 10 * 1024 * 1024,
    'document': 25 * 1024 * 1024,
}


# ============================================================================
# Notifications
# ============================================================================

NOTIFICATION_TYPE_CHOICES = [
    ('inquiry', _('New Inquiry')),
    ('inquiry_reply', _('Inquiry Reply')),
    ('iso_response', _('ISO Response')),
    ('addon_expired', _('Add-on Expired')),
    ('system', _('System')),
]


# ============================================================================
# Listing reports
# ============================================================================

REPORT_REASON_CHOICES = [
    ('fake_listing', _('Fake Listing')),
    ('misleading_price', _('Misleading Price')),
    ('wrong_category', _('Wrong Category')),
    ('stolen_images', _('Stolen Images')),
    ('spam', _('Spam')),
    ('scam', _('Scam')),
    ('sold_item', _('Item Already Sold')),
    ('counterfeit', _('Counterfeit')),
    ('safety_concern', _('Safety Concern')),
    ('other', _('Other')),
]

REPORT_REASONS = [value for value, _label in REPORT_REASON_CHOICES]

REPORT_STATUS_CHOICES = [
    ('pending', _('Pending')),
    ('reviewed', _('Reviewed')),
    ('dismissed', _('Dismissed')),
    ('action_taken', _('Action Taken')),
]

# A listing is flagged for review once this many users have reported it
REPORT_AUTO_FLAG_THRESHOLD = 5

MAX_REPORT_EVIDENCE = 5

# Accounts younger than this may not report listings
REPORT_MIN_ACCOUNT_AGE_HOURS = 24
