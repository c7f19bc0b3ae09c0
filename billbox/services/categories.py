"""
Spending categories and the lookup tables used by the predictor
"""

DEFAULT_CATEGORIES = [
    {
        'id': 'food',
        'name': 'Food & Dining',
        'icon': 'UtensilsCrossed',
        'color': '#10B981',
        'keywords': [
            # Restaurants & delivery
            'food', 'restaurant', 'cafe', 'hotel', 'dhaba', 'eatery', 'canteen', 'mess',
            'swiggy', 'zomato', 'dominos', 'kfc', 'mcdonalds', 'pizza hut', 'subway', 'burger king',
            'starbucks', 'cafe coffee day', 'barista', 'costa coffee', 'dunkin donuts',
            'haldirams', 'bikanervala', 'sagar ratna', 'saravana bhavan', 'udupi',
            # Dishes
            'pizza', 'burger', 'biryani', 'biriyani', 'dal', 'rice', 'roti', 'paratha', 'naan',
            'curry', 'sabzi', 'samosa', 'dosa', 'idli', 'vada', 'uttapam', 'poha', 'upma',
            'chole', 'rajma', 'paneer', 'chicken', 'mutton', 'fish', 'egg', 'tandoori',
            'masala', 'kebab', 'tikka', 'korma', 'butter chicken',
            # Groceries
            'grocery', 'groceries', 'vegetables', 'fruits', 'milk', 'bread', 'eggs', 'butter',
            'oil', 'ghee', 'sugar', 'salt', 'spices', 'atta', 'flour', 'pulses',
            'kirana', 'supermarket', 'big bazaar', 'reliance fresh', 'dmart',
            'spencer', 'easyday', 'star bazaar', 'nature basket',
            # Beverages
            'tea', 'coffee', 'chai', 'lassi', 'juice', 'soda', 'cold drink',
            'beer', 'wine', 'whiskey', 'rum', 'vodka', 'alcohol', 'drinks',
            # Meals
            'breakfast', 'lunch', 'dinner', 'snacks', 'tiffin', 'meal', 'feast',
            'biscuits', 'chocolate', 'sweets', 'mithai', 'ice cream', 'cake', 'pastry',
        ],
        'training_data': [
            'grocery shopping at dmart', 'swiggy food delivery', 'restaurant bill payment',
            'cafe coffee with friends', 'vegetables from market', 'biryani from local restaurant',
        ],
    },
    {
        'id': 'fuel',
        'name': 'Fuel & Transport',
        'icon': 'Car',
        'color': '#F59E0B',
        'keywords': [
            # Fuel
            'petrol', 'diesel', 'fuel', 'cng', 'patrol', 'petroll',
            'indian oil', 'bharat petroleum', 'hindustan petroleum', 'reliance petrol',
            'shell', 'essar', 'hp petrol', 'iocl', 'bpcl', 'hpcl',
            # Rides
            'uber', 'ola', 'rapido', 'auto', 'taxi', 'cab', 'rickshaw', 'auto rickshaw',
            'meru', 'quick ride', 'bla bla car',
            # Public transport
            'bus', 'train', 'metro', 'irctc', 'railway', 'bmtc', 'dtc', 'ksrtc', 'msrtc',
            'redbus', 'abhibus', 'metro card', 'season ticket',
            # Travel
            'makemytrip', 'goibibo', 'cleartrip', 'yatra', 'ixigo', 'flight',
            'train booking', 'bus booking',
            # Vehicle
            'garage', 'mechanic', 'spare parts', 'tyre', 'battery', 'oil change',
            'parking', 'toll', 'challan', 'puc',
        ],
        'training_data': [
            'petrol pump fill up', 'uber ride to office', 'auto rickshaw fare',
            'train reservation irctc', 'metro card recharge', 'toll plaza charges',
        ],
    },
    {
        'id': 'bills',
        'name': 'Bills & Utilities',
        'icon': 'Receipt',
        'color': '#3B82F6',
        'keywords': [
            # Electricity
            'electricity', 'electric', 'current', 'bijli', 'power', 'eb bill',
            'tata power', 'adani electricity', 'bescom', 'mseb', 'kseb', 'tneb',
            # Water & gas
            'water', 'water bill', 'bwssb', 'gas', 'gas bill', 'lpg', 'cylinder', 'indane',
            'hp gas', 'bharat gas', 'piped gas',
            # Internet & telecom
            'internet', 'wifi', 'broadband', 'fiber', 'net', 'connection',
            'airtel', 'jio', 'vodafone', 'vi', 'bsnl', 'idea',
            'act fibernet', 'hathway', 'tikona', 'spectranet',
            'mobile', 'phone', 'recharge', 'postpaid', 'prepaid', 'data',
            # DTH
            'dth', 'cable', 'tata sky', 'dish tv', 'sun direct',
            # Society
            'maintenance', 'society', 'apartment', 'association',
            # General
            'bill', 'utility', 'invoice', 'charges',
        ],
        'training_data': [
            'electricity bill payment', 'internet bill airtel', 'mobile recharge jio',
            'society maintenance charges', 'gas cylinder booking', 'dth recharge tata sky',
        ],
    },
    {
        'id': 'kids',
        'name': 'Kids & Family',
        'icon': 'Baby',
        'color': '#EC4899',
        'keywords': [
            'kids', 'children', 'child', 'baby', 'infant', 'toddler', 'son', 'daughter',
            'school', 'fees', 'tuition', 'coaching', 'uniform', 'stationery', 'notebook',
            'nursery', 'kindergarten',
            'diapers', 'pampers', 'huggies', 'baby food', 'formula', 'cerelac',
            'milk powder', 'baby clothes', 'baby toys', 'pram', 'stroller',
            'vaccination', 'pediatrician',
            'toys', 'puzzle', 'doll', 'lego', 'bicycle', 'tricycle', 'zoo', 'cartoon',
        ],
        'training_data': [
            'school fees payment', 'baby diapers purchase', 'kids toys shopping',
            'tuition fees monthly', 'vaccination at clinic',
        ],
    },
    {
        'id': 'rent',
        'name': 'Rent & Housing',
        'icon': 'Home',
        'color': '#8B5CF6',
        'keywords': [
            'rent', 'house rent', 'flat rent', 'apartment rent', 'room rent',
            'pg', 'paying guest', 'hostel', 'accommodation',
            'deposit', 'security deposit', 'brokerage', 'stamp duty',
            'home loan', 'housing loan', 'emi', 'equated monthly installment',
            'lic housing', 'bajaj finserv',
            'property', 'flat', '1bhk', '2bhk', '3bhk', 'studio',
            'housing society', 'furnished',
        ],
        'training_data': [
            'monthly house rent', 'flat rent payment', 'pg accommodation fees',
            'home loan emi payment', 'security deposit for flat',
        ],
    },
    {
        'id': 'entertainment',
        'name': 'Entertainment',
        'icon': 'Tv',
        'color': '#EF4444',
        'keywords': [
            # Streaming
            'netflix', 'amazon prime', 'prime video', 'hotstar', 'disney hotstar',
            'zee5', 'sony liv', 'voot', 'mx player', 'jio cinema', 'youtube premium',
            # Music
            'spotify', 'gaana', 'jiosaavn', 'wynk', 'apple music', 'music', 'songs',
            # Movies
            'movie', 'cinema', 'theatre', 'multiplex', 'pvr', 'inox', 'cinepolis',
            'ticket', 'bookmyshow', 'imax',
            # Gaming
            'game', 'gaming', 'playstation', 'xbox', 'nintendo', 'steam',
            # Events
            'concert', 'show', 'event', 'comedy', 'stand up', 'festival',
            'amusement park', 'water park', 'theme park',
            # Sports & clubs
            'cricket', 'football', 'badminton', 'match', 'club', 'membership',
            'subscription', 'entertainment',
        ],
        'training_data': [
            'netflix monthly subscription', 'movie ticket booking pvr', 'spotify premium plan',
            'concert ticket purchase', 'bookmyshow movie booking',
        ],
    },
    {
        'id': 'education',
        'name': 'Education',
        'icon': 'GraduationCap',
        'color': '#06B6D4',
        'keywords': [
            'education', 'course', 'training', 'certification', 'learning',
            'udemy', 'coursera', 'edx', 'khan academy', 'skillshare', 'pluralsight',
            'unacademy', 'byjus', 'vedantu', 'whitehat jr', 'toppr',
            'books', 'ebook', 'kindle', 'textbook', 'study material',
            'exam', 'entrance', 'jee', 'neet', 'gate', 'upsc', 'ielts', 'toefl', 'gre', 'gmat',
            'application fee', 'workshop', 'seminar', 'conference', 'webinar', 'bootcamp',
            'coding', 'programming', 'language', 'duolingo',
            'college', 'university', 'institute', 'academy', 'semester',
        ],
        'training_data': [
            'udemy course purchase', 'coursera specialization', 'exam application fee',
            'coaching classes fees', 'workshop registration',
        ],
    },
    {
        'id': 'health',
        'name': 'Health & Medical',
        'icon': 'Heart',
        'color': '#F97316',
        'keywords': [
            'doctor', 'hospital', 'clinic', 'medical', 'health', 'healthcare',
            'apollo', 'fortis', 'max healthcare', 'manipal', 'aiims',
            'consultation', 'checkup', 'appointment', 'opd',
            'dentist', 'dental', 'cardiologist', 'dermatologist',
            'medicine', 'pharmacy', 'medical store', 'chemist',
            'apollo pharmacy', 'medplus', 'netmeds', '1mg', 'pharmeasy',
            'tablets', 'capsules', 'syrup', 'injection', 'vitamin', 'supplement',
            'test', 'lab', 'pathology', 'blood test', 'x-ray', 'mri', 'ct scan',
            'ultrasound', 'ecg', 'thyrocare',
            'treatment', 'therapy', 'physiotherapy', 'surgery', 'vaccination',
            'health insurance', 'mediclaim',
            'gym', 'fitness', 'yoga', 'meditation', 'wellness',
        ],
        'training_data': [
            'doctor consultation fee', 'medicine purchase apollo pharmacy',
            'blood test at lab', 'dental treatment cost', 'physiotherapy session',
        ],
    },
    {
        'id': 'shopping',
        'name': 'Shopping',
        'icon': 'ShoppingBag',
        'color': '#84CC16',
        'keywords': [
            'shopping', 'amazon', 'flipkart', 'myntra', 'ajio', 'nykaa',
            'snapdeal', 'paytm mall', 'tata cliq', 'reliance digital', 'croma', 'vijay sales',
            # Clothing
            'clothes', 'dress', 'shirt', 'pant', 'jeans', 'kurti', 'saree', 'jacket',
            'sweater', 'socks', 'belt', 'wallet', 'handbag', 'backpack',
            # Footwear
            'shoes', 'sandals', 'slippers', 'sneakers', 'chappal',
            'nike', 'adidas', 'puma', 'bata',
            # Electronics
            'smartphone', 'iphone', 'samsung', 'oneplus', 'xiaomi', 'laptop', 'computer',
            'tablet', 'headphones', 'earphones', 'speaker', 'television', 'smart tv',
            'refrigerator', 'washing machine', 'air conditioner', 'microwave',
            # Home
            'kitchen', 'utensils', 'cookware', 'pressure cooker', 'mixer', 'furniture',
            'sofa', 'mattress', 'curtains', 'bedsheet',
            # Accessories
            'watch', 'jewelry', 'ring', 'necklace', 'earrings', 'sunglasses',
            # Gifts
            'gift', 'birthday', 'anniversary', 'wedding', 'diwali',
        ],
        'training_data': [
            'amazon shopping order', 'flipkart mobile purchase', 'myntra clothes shopping',
            'laptop purchase online', 'gift purchase for birthday',
        ],
    },
    {
        'id': 'personal_care',
        'name': 'Personal Care',
        'icon': 'Scissors',
        'color': '#A855F7',
        'keywords': [
            'salon', 'beauty parlour', 'parlour', 'spa', 'beauty salon',
            'haircut', 'hair cut', 'hair color', 'facial', 'waxing', 'threading',
            'manicure', 'pedicure', 'massage',
            'barber', 'shave', 'beard', 'trimming', 'grooming',
            'beauty', 'skincare', 'skin care',
            'shampoo', 'conditioner', 'hair oil', 'soap', 'body wash', 'face wash',
            'moisturizer', 'sunscreen', 'deodorant', 'perfume', 'toothpaste',
            'makeup', 'cosmetics', 'lipstick',
            'razor', 'trimmer', 'hair dryer',
        ],
        'training_data': [
            'salon haircut and styling', 'facial at beauty parlour', 'spa massage session',
            'barber shop visit', 'skincare products purchase',
        ],
    },
    {
        'id': 'investments',
        'name': 'Investments & Savings',
        'icon': 'TrendingUp',
        'color': '#059669',
        'keywords': [
            'investment', 'invest', 'mutual fund', 'mf', 'sip', 'systematic investment',
            'equity', 'elss', 'index fund', 'etf', 'nav',
            'zerodha', 'groww', 'paytm money', 'kuvera', 'et money',
            'fd', 'fixed deposit', 'rd', 'recurring deposit', 'savings',
            'term deposit', 'interest', 'maturity',
            'stocks', 'shares', 'trading', 'demat', 'nse', 'bse', 'ipo', 'dividend',
            'upstox', 'angel broking',
            'gold', 'silver', 'digital gold', 'sovereign gold bond', 'sgb',
            'insurance', 'life insurance', 'term insurance', 'ulip', 'pension',
            'ppf', 'epf', 'provident fund', 'nps',
            'crypto', 'bitcoin', 'ethereum', 'wazirx', 'coindcx',
        ],
        'training_data': [
            'mutual fund sip payment', 'fixed deposit investment', 'stock purchase zerodha',
            'insurance premium payment', 'ppf contribution',
        ],
    },
    {
        'id': 'miscellaneous',
        'name': 'Others',
        'icon': 'MoreHorizontal',
        'color': '#6B7280',
        'keywords': [
            'other', 'miscellaneous', 'misc', 'general', 'various',
            'random', 'unknown', 'uncategorized', 'others', 'mixed', 'sundry',
            'cash', 'withdrawal', 'atm', 'bank charges', 'service charges',
            'penalty', 'fine', 'late fee', 'processing fee', 'convenience fee',
            'donation', 'charity', 'temple', 'church', 'mosque', 'gurudwara',
            'emergency', 'urgent', 'unexpected',
        ],
        'training_data': [
            'miscellaneous expense', 'cash withdrawal', 'donation to charity',
        ],
    },
]

DEFAULT_CATEGORY_IDS = [c['id'] for c in DEFAULT_CATEGORIES]
FALLBACK_CATEGORY = 'miscellaneous'

# Known merchants, matched as substrings of the description
MERCHANTS = {
    # Food & Dining
    'swiggy': 'food', 'zomato': 'food', 'dominos': 'food', 'kfc': 'food', 'mcdonalds': 'food',
    'pizza hut': 'food', 'subway': 'food', 'burger king': 'food', 'starbucks': 'food',
    'cafe coffee day': 'food', 'haldirams': 'food', 'bikanervala': 'food', 'sagar ratna': 'food',
    'biryani': 'food', 'biriyani': 'food', 'dal': 'food', 'rice': 'food', 'roti': 'food',
    'curry': 'food', 'samosa': 'food', 'dosa': 'food', 'idli': 'food', 'vada': 'food',
    'paratha': 'food', 'grocery': 'food', 'vegetables': 'food', 'fruits': 'food',
    'milk': 'food', 'bread': 'food',

    # Transport & Fuel
    'uber': 'fuel', 'ola': 'fuel', 'rapido': 'fuel', 'auto': 'fuel', 'taxi': 'fuel',
    'indian oil': 'fuel', 'bharat petroleum': 'fuel', 'hindustan petroleum': 'fuel',
    'reliance petrol': 'fuel', 'shell': 'fuel', 'essar': 'fuel', 'petrol': 'fuel',
    'diesel': 'fuel', 'irctc': 'fuel', 'redbus': 'fuel', 'makemytrip': 'fuel', 'goibibo': 'fuel',

    # Shopping
    'amazon': 'shopping', 'flipkart': 'shopping', 'myntra': 'shopping', 'ajio': 'shopping',
    'nykaa': 'shopping', 'jabong': 'shopping', 'snapdeal': 'shopping', 'paytm mall': 'shopping',
    'big bazaar': 'shopping', 'reliance digital': 'shopping', 'croma': 'shopping',

    # Bills & Utilities
    'airtel': 'bills', 'jio': 'bills', 'vodafone': 'bills', 'bsnl': 'bills',
    'tata power': 'bills', 'adani electricity': 'bills', 'bescom': 'bills',
    'act fibernet': 'bills', 'hathway': 'bills', 'tikona': 'bills',
    'electricity': 'bills', 'water': 'bills', 'internet': 'bills', 'wifi': 'bills',

    # Entertainment
    'netflix': 'entertainment', 'amazon prime': 'entertainment', 'hotstar': 'entertainment',
    'zee5': 'entertainment', 'sony liv': 'entertainment', 'voot': 'entertainment',
    'spotify': 'entertainment', 'gaana': 'entertainment', 'jiosaavn': 'entertainment',

    # Health
    'apollo': 'health', 'fortis': 'health', 'max healthcare': 'health', 'aiims': 'health',
    'medplus': 'health', 'apollo pharmacy': 'health', 'netmeds': 'health', '1mg': 'health',
    'doctor': 'health', 'hospital': 'health', 'medicine': 'health', 'pharmacy': 'health',

    # Education
    'byjus': 'education', 'unacademy': 'education', 'vedantu': 'education',
    'whitehat jr': 'education', 'coursera': 'education', 'udemy': 'education',
    'skillshare': 'education',
}

# Single-keyword hints, shown as quick suggestions while typing
CATEGORY_SUGGESTIONS = {
    'grocery': 'food', 'groceries': 'food', 'kirana': 'food', 'supermarket': 'food',
    'restaurant': 'food', 'hotel': 'food', 'dhaba': 'food', 'cafe': 'food', 'coffee': 'food',
    'tea': 'food', 'breakfast': 'food', 'lunch': 'food', 'dinner': 'food', 'snacks': 'food',
    'petrol': 'fuel', 'diesel': 'fuel', 'fuel': 'fuel', 'cab': 'fuel', 'bus': 'fuel',
    'train': 'fuel', 'metro': 'fuel', 'parking': 'fuel', 'toll': 'fuel',
    'electricity': 'bills', 'bijli': 'bills', 'water': 'bills', 'internet': 'bills',
    'wifi': 'bills', 'broadband': 'bills', 'recharge': 'bills', 'phone': 'bills',
    'maintenance': 'bills', 'society': 'bills', 'dth': 'bills', 'cable': 'bills',
    'netflix': 'entertainment', 'movie': 'entertainment', 'cinema': 'entertainment',
    'spotify': 'entertainment', 'bookmyshow': 'entertainment', 'game': 'entertainment',
    'doctor': 'health', 'hospital': 'health', 'clinic': 'health', 'medicine': 'health',
    'pharmacy': 'health', 'checkup': 'health', 'dental': 'health',
    'amazon': 'shopping', 'flipkart': 'shopping', 'clothes': 'shopping', 'shoes': 'shopping',
    'laptop': 'shopping', 'electronics': 'shopping',
    'course': 'education', 'books': 'education', 'tuition': 'education', 'exam': 'education',
    'salon': 'personal_care', 'haircut': 'personal_care', 'spa': 'personal_care',
    'barber': 'personal_care', 'facial': 'personal_care',
    'sip': 'investments', 'mutual fund': 'investments', 'stocks': 'investments',
    'fd': 'investments', 'ppf': 'investments', 'insurance': 'investments',
    'school': 'kids', 'baby': 'kids', 'diapers': 'kids', 'toys': 'kids',
    'rent': 'rent', 'pg': 'rent', 'hostel': 'rent', 'home loan': 'rent', 'emi': 'rent',
}

# Typical spend per category: plausible range and the most common band
AMOUNT_RANGES = {
    'food': {'min': 20, 'max': 2000, 'optimal': (50, 500)},
    'fuel': {'min': 100, 'max': 5000, 'optimal': (300, 2000)},
    'bills': {'min': 200, 'max': 15000, 'optimal': (500, 3000)},
    'rent': {'min': 5000, 'max': 100000, 'optimal': (15000, 40000)},
    'shopping': {'min': 100, 'max': 50000, 'optimal': (500, 5000)},
    'entertainment': {'min': 99, 'max': 2000, 'optimal': (199, 999)},
}

EMI_CATEGORIES = {
    'home_loan': 'Home Loan',
    'car_loan': 'Car Loan',
    'personal_loan': 'Personal Loan',
    'education_loan': 'Education Loan',
    'credit_card': 'Credit Card',
    'bike_loan': 'Bike Loan',
    'other': 'Other',
}

SUBSCRIPTION_CATEGORIES = {
    'entertainment': 'Entertainment',
    'productivity': 'Productivity',
    'education': 'Education',
    'health': 'Health & Fitness',
    'news': 'News & Media',
    'music': 'Music',
    'cloud': 'Cloud Storage',
    'other': 'Other',
}


def get_categories(custom_categories=None):
    """
    Merge the default categories with a user's custom ones.

    Args:
        custom_categories: iterable of CustomCategory rows (or dicts with the same keys)

    Returns:
        List of category dicts; custom entries carry is_custom=True
    """
    categories = [dict(c, is_custom=False) for c in DEFAULT_CATEGORIES]
    for custom in custom_categories or []:
        if hasattr(custom, 'to_dict'):
            custom = custom.to_dict()
        if custom['id'] in DEFAULT_CATEGORY_IDS:
            continue
        categories.append(dict(custom, is_custom=True))
    return categories


def category_name(slug, categories=None):
    """Display name for a category slug, falling back to the slug itself"""
    for category in categories or DEFAULT_CATEGORIES:
        if category['id'] == slug:
            return category['name']
    return slug


def is_default_category(slug):
    return slug in DEFAULT_CATEGORY_IDS


def slugify_category(name):
    """'Pet Care' -> 'pet_care'"""
    cleaned = ''.join(ch if ch.isalnum() else ' ' for ch in name.lower())
    return '_'.join(cleaned.split())


def category_hints(description, categories=None, limit=3):
    """
    Quick category hints for a description being typed.

    Every CATEGORY_SUGGESTIONS keyword found as a whole word gives a hint;
    hints follow the keyword's position in the text, one per category.
    """
    text = ' ' + ' '.join(''.join(ch if ch.isalnum() else ' ' for ch in (description or '').lower()).split()) + ' '
    found = []
    for keyword, slug in CATEGORY_SUGGESTIONS.items():
        position = text.find(f' {keyword} ')
        if position >= 0:
            found.append((position, keyword, slug))

    hints = []
    for _, keyword, slug in sorted(found):
        if any(h['category'] == slug for h in hints):
            continue
        hints.append({'category': slug, 'name': category_name(slug, categories), 'keyword': keyword})
        if len(hints) == limit:
            break
    return hints
