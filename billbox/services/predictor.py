"""
Expense category and amount prediction
Layered rules: user history, merchants, learned rules, keywords, fuzzy matching
"""
import calendar
import math
from collections import defaultdict
from datetime import date, datetime

from rapidfuzz.distance import Levenshtein

from billbox.services.categories import (
    AMOUNT_RANGES, DEFAULT_CATEGORIES, FALLBACK_CATEGORY, MERCHANTS,
)

MAX_INTERACTIONS = 100
MAX_PATTERN_AMOUNTS = 10

# Common misspellings and synonyms mapped to the word the keyword tables know
VARIATIONS = {
    'biryani': ['biriyani', 'biryani', 'biriani', 'briyani'],
    'grocery': ['groceries', 'grocer', 'kirana'],
    'petrol': ['patrol', 'petroll'],
    'electricity': ['electric', 'current', 'bijli'],
    'internet': ['wifi', 'broadband', 'net'],
    'mobile': ['phone', 'cell'],
    'restaurant': ['hotel', 'dhaba', 'eatery'],
}

TYPICAL_AMOUNTS = {
    'biryani': (250, 0.8),
    'biriyani': (250, 0.8),
    'pizza': (400, 0.8),
    'coffee': (150, 0.7),
    'petrol': (1000, 0.7),
    'uber': (200, 0.8),
    'auto': (80, 0.8),
    'electricity': (2500, 0.7),
    'internet': (800, 0.8),
    'netflix': (199, 0.9),
    'grocery': (1500, 0.6),
}

RECURRING_KEYWORDS = [
    'rent', 'electricity', 'water', 'gas', 'internet', 'mobile', 'phone',
    'netflix', 'prime', 'spotify', 'gym', 'insurance', 'emi', 'sip',
    'maintenance', 'society', 'cable', 'broadband', 'subscription',
]

FUZZY_MIN_TOKEN = 4
FUZZY_MIN_SIMILARITY = 0.8


def _round(value):
    return int(math.floor(value + 0.5))


def _prediction(category, confidence, reasoning=''):
    return {'category': category, 'confidence': confidence, 'reasoning': reasoning}


def _no_match():
    return _prediction(FALLBACK_CATEGORY, 0.0)


def similarity(a, b):
    """Edit-distance similarity in [0, 1]: (len(longer) - distance) / len(longer)"""
    longer = max(len(a), len(b))
    if longer == 0:
        return 1.0
    return (longer - Levenshtein.distance(a, b)) / longer


def normalize(description):
    return (description or '').lower().strip()


class CategoryPredictor:
    """
    In-memory predictor for one user.

    Args:
        categories: category dicts with 'id' and 'keywords' (defaults plus custom)
        learned: {description: category}
        patterns: {description: {'category', 'amounts', 'frequency', 'last_used', 'average_amount'}}
        interactions: list of {'description', 'type', 'value', 'accepted', 'timestamp'}
    """

    def __init__(self, categories=None, learned=None, patterns=None, interactions=None):
        self.categories = list(categories) if categories is not None else list(DEFAULT_CATEGORIES)
        self.learned = dict(learned or {})
        self.patterns = dict(patterns or {})
        self.interactions = list(interactions or [])

    # ------------------------------------------------------------------
    # Category prediction
    # ------------------------------------------------------------------

    def predict_category(self, description, amount=None):
        """
        Predict a category for an expense description.

        Returns:
            {'category', 'confidence', 'reasoning'}
        """
        clean = normalize(description)
        if not clean:
            return _prediction(FALLBACK_CATEGORY, 0.3, 'No clear pattern found')
        amount = float(amount) if amount else None

        stages = [
            (lambda: self._historical_match(clean, amount), 0.85),
            (lambda: self._merchant_match(clean), 0.8),
            (lambda: self._learned_match(clean), 0.8),
            (lambda: self._keyword_match(clean, amount), 0.6),
            (lambda: self._fuzzy_match(clean), 0.5),
        ]
        for stage, threshold in stages:
            result = stage()
            if result['confidence'] > threshold:
                return result

        return _prediction(FALLBACK_CATEGORY, 0.3, 'No clear pattern found')

    def _historical_match(self, clean, amount):
        for key, pattern in self.patterns.items():
            if key in clean or clean in key:
                confidence = 0.7
                average = pattern.get('average_amount') or 0
                if amount and len(pattern.get('amounts') or []) > 2 and average:
                    if abs(amount - average) / average < 0.3:
                        confidence += 0.2
                if pattern.get('frequency', 0) >= 3:
                    confidence += 0.1
                return _prediction(
                    pattern['category'],
                    min(confidence, 0.95),
                    f"You usually spend ₹{average:.0f} on {key} ({pattern.get('frequency', 0)} times)",
                )
        return _no_match()

    def _merchant_match(self, clean):
        for merchant, category in MERCHANTS.items():
            if merchant in clean:
                return _prediction(category, 0.95, f'Recognized merchant: {merchant}')
        return _no_match()

    def _learned_match(self, clean):
        if clean in self.learned:
            return _prediction(self.learned[clean], 0.9, 'Based on your previous categorization')

        for learned_description, category in self.learned.items():
            if learned_description in clean or clean in learned_description:
                return _prediction(category, 0.8, f'Similar to: {learned_description}')
        return _no_match()

    def _keyword_match(self, clean, amount=None):
        words = clean.split()
        best = _no_match()

        for category in self.categories:
            keywords = category.get('keywords') or []
            if not keywords:
                continue

            score = 0.0
            matched = []
            for keyword in keywords:
                keyword = keyword.lower()
                if keyword in words:
                    score += 0.3
                    matched.append(keyword)
                elif keyword in clean:
                    score += 0.2
                    matched.append(keyword)

            if amount:
                score += amount_context_boost(category['id'], amount)

            if score > best['confidence']:
                best = _prediction(
                    category['id'], min(score, 0.9), f"Matched: {', '.join(matched[:3])}"
                )

        return best

    def _fuzzy_match(self, clean):
        for canonical, variants in VARIATIONS.items():
            for variant in variants:
                if variant in clean:
                    result = self._merchant_match(canonical)
                    if not result['confidence']:
                        result = self._keyword_match(canonical)
                    if result['confidence'] > 0.5:
                        return _prediction(
                            result['category'],
                            result['confidence'] * 0.8,
                            f'Fuzzy match: "{variant}" → "{canonical}"',
                        )

        best = _no_match()
        best_similarity = 0.0
        for token in clean.split():
            if len(token) < FUZZY_MIN_TOKEN:
                continue
            for merchant, category in MERCHANTS.items():
                score = similarity(token, merchant)
                if score >= FUZZY_MIN_SIMILARITY and score > best_similarity:
                    best_similarity = score
                    best = _prediction(
                        category, 0.75 * score, f'Looks like: {merchant} (typed "{token}")'
                    )
        return best

    # ------------------------------------------------------------------
    # Amount prediction and suggestions
    # ------------------------------------------------------------------

    def predict_amount(self, description):
        """Suggest an amount from the user's history, or None"""
        clean = normalize(description)
        if not clean:
            return None

        pattern = self.patterns.get(clean)
        if pattern and pattern.get('frequency', 0) >= 3:
            frequency = pattern['frequency']
            average = _round(pattern['average_amount'])
            return {
                'amount': average,
                'confidence': min(0.9, 0.6 + frequency * 0.05),
                'reasoning': f'You usually spend ₹{average} on {clean} ({frequency} times)',
            }

        for key, pattern in self.patterns.items():
            frequency = pattern.get('frequency', 0)
            if frequency < 3:
                continue
            if clean in key or key in clean:
                score = similarity(clean, key)
                if score > 0.7:
                    average = _round(pattern['average_amount'])
                    return {
                        'amount': average,
                        'confidence': min(0.85, 0.5 + frequency * 0.05 + score * 0.2),
                        'reasoning': f'Similar to "{key}" - you usually spend ₹{average} ({frequency} times)',
                    }
        return None

    def generate_smart_suggestions(self, description, current_amount=None):
        suggestions = []
        clean = normalize(description)

        if not current_amount:
            amount_suggestion = self._suggest_amount(clean)
            if amount_suggestion:
                suggestions.append(amount_suggestion)

        if any(keyword in clean for keyword in RECURRING_KEYWORDS):
            suggestions.append({
                'type': 'recurring',
                'value': True,
                'confidence': 0.8,
                'reasoning': 'This appears to be a recurring expense',
            })

        return suggestions

    def _suggest_amount(self, clean):
        for key, pattern in self.patterns.items():
            if key in clean and pattern.get('frequency', 0) >= 3:
                return {
                    'type': 'amount',
                    'value': _round(pattern['average_amount']),
                    'confidence': 0.9,
                    'reasoning': f"You typically spend ₹{pattern['average_amount']:.0f} on {key}",
                }

        for keyword, (amount, confidence) in TYPICAL_AMOUNTS.items():
            if keyword in clean:
                return {
                    'type': 'amount',
                    'value': amount,
                    'confidence': confidence,
                    'reasoning': f'Typical amount for {keyword} in India',
                }
        return None

    def generate_learning_insights(self, description):
        insights = []
        clean = normalize(description)

        for key, pattern in self.patterns.items():
            if key in clean and pattern.get('frequency', 0) >= 2:
                insights.append({
                    'message': f"You've spent on {key} {pattern['frequency']} times, "
                               f"averaging ₹{pattern['average_amount']:.0f}"
                })

        if clean:
            similar = [
                i for i in self.interactions
                if clean in i['description'].lower() or i['description'].lower() in clean
            ][-3:]
            if similar:
                insights.append({
                    'message': 'Similar to your recent expenses: '
                               + ', '.join(i['description'] for i in similar)
                })

        return insights

    def generate_comprehensive_suggestions(self, description, amount=None):
        return {
            'prediction': self.predict_category(description, amount),
            'smart_suggestions': self.generate_smart_suggestions(description, amount),
            'learning_insights': self.generate_learning_insights(description),
        }

    # ------------------------------------------------------------------
    # Learning
    # ------------------------------------------------------------------

    def learn_from_user(self, description, category, amount=None, now=None):
        """Record the user's final category, and the amount when given"""
        clean = normalize(description)
        if not clean:
            return None

        self.learned[clean] = category
        if amount:
            self.patterns[clean] = update_pattern(
                self.patterns.get(clean), category, amount, now or datetime.utcnow()
            )
        return self.patterns.get(clean)

    def track_interaction(self, description, type, value, accepted, now=None):
        interaction = {
            'description': normalize(description),
            'type': type,
            'value': value,
            'accepted': bool(accepted),
            'timestamp': now or datetime.utcnow(),
        }
        self.interactions.append(interaction)
        if len(self.interactions) > MAX_INTERACTIONS:
            self.interactions = self.interactions[-MAX_INTERACTIONS:]
        return interaction

    def reset(self):
        self.learned.clear()
        self.patterns.clear()
        self.interactions = []

    # ------------------------------------------------------------------
    # Insights
    # ------------------------------------------------------------------

    def generate_insights(self, expenses, today=None):
        """Spending insights for the current month"""
        today = today or date.today()
        monthly = [
            e for e in expenses
            if e.date.year == today.year and e.date.month == today.month
        ]
        if not monthly:
            return []

        created_at = datetime.combine(today, datetime.min.time()).isoformat()
        total = sum(float(e.amount) for e in monthly)
        insights = []

        days_in_month = calendar.monthrange(today.year, today.month)[1]
        projected = total / today.day * days_in_month
        if projected > total * 1.5:
            insights.append({
                'id': 'spending-velocity',
                'type': 'budget_alert',
                'title': 'High Spending Velocity',
                'description': f"At current pace, you'll spend ₹{projected:,.0f} this month.",
                'actionable': True,
                'priority': 'high',
                'created_at': created_at,
            })

        by_category = defaultdict(float)
        for e in monthly:
            by_category[e.category] += float(e.amount)
        top_category, top_amount = max(by_category.items(), key=lambda item: item[1])
        if total and top_amount > total * 0.4:
            insights.append({
                'id': 'category-dominance',
                'type': 'spending_pattern',
                'title': 'Category Spending Alert',
                'description': f'{top_category} accounts for {_round(top_amount / total * 100)}% of your spending.',
                'actionable': True,
                'priority': 'medium',
                'created_at': created_at,
            })

        subscriptions = [
            e for e in monthly
            if e.is_recurring and e.category in ('entertainment', 'education')
        ]
        if len(subscriptions) > 3:
            cost = sum(float(e.amount) for e in subscriptions)
            insights.append({
                'id': 'savings-opportunity',
                'type': 'category_suggestion',
                'title': 'Subscription Optimization',
                'description': f'{len(subscriptions)} subscriptions cost ₹{cost:,.0f}/month.',
                'actionable': True,
                'priority': 'medium',
                'created_at': created_at,
            })

        return insights


def amount_context_boost(category_id, amount):
    """Extra keyword score when the amount is typical for the category"""
    ranges = AMOUNT_RANGES.get(category_id)
    if not ranges:
        return 0.0
    low, high = ranges['optimal']
    if low <= amount <= high:
        return 0.15
    if ranges['min'] <= amount <= ranges['max']:
        return 0.05
    return 0.0


def update_pattern(pattern, category, amount, now):
    """
    Fold a new amount into a spending pattern.

    Keeps the last 10 amounts and recomputes the average over them.
    """
    pattern = dict(pattern) if pattern else {
        'category': category,
        'amounts': [],
        'frequency': 0,
        'last_used': now,
        'average_amount': 0.0,
    }
    amounts = (list(pattern.get('amounts') or []) + [float(amount)])[-MAX_PATTERN_AMOUNTS:]
    pattern['amounts'] = amounts
    pattern['frequency'] = pattern.get('frequency', 0) + 1
    pattern['last_used'] = now
    pattern['average_amount'] = sum(amounts) / len(amounts)
    return pattern
