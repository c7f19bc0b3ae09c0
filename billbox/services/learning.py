"""
Per-user persistence for the category predictor
Learned rules, spending patterns and interactions live in the database;
the predictor itself is rebuilt per request.
"""
import logging
from datetime import datetime

from billbox.config import Config
from billbox.database.models import (
    db, CustomCategory, LearnedRule, SpendingPattern, UserInteraction,
)
from billbox.services.categories import get_categories
from billbox.services.predictor import CategoryPredictor, normalize, update_pattern

logger = logging.getLogger(__name__)


def load_learned_rules(user_id):
    """{description: category} for a user"""
    rules = {r.description: r.category for r in LearnedRule.query.filter_by(user_id=user_id)}
    logger.debug(f"[LEARNING] Loaded {len(rules)} learned rules for user {user_id}")
    return rules


def load_patterns(user_id):
    return {
        p.description: {
            'category': p.category,
            'amounts': list(p.amounts or []),
            'frequency': p.frequency or 0,
            'last_used': p.last_used,
            'average_amount': p.average_amount or 0.0,
        }
        for p in SpendingPattern.query.filter_by(user_id=user_id)
    }


def load_interactions(user_id):
    rows = UserInteraction.query.filter_by(user_id=user_id).order_by(
        UserInteraction.timestamp, UserInteraction.id
    ).all()
    return [
        {
            'description': r.description,
            'type': r.type,
            'value': r.value,
            'accepted': r.accepted,
            'timestamp': r.timestamp,
        }
        for r in rows
    ]


def load_predictor(user_id):
    """
    Build a CategoryPredictor seeded with everything the user has taught it.

    Custom categories take part in keyword scoring alongside the defaults.
    """
    custom = CustomCategory.query.filter_by(user_id=user_id).all()
    return CategoryPredictor(
        categories=get_categories(custom),
        learned=load_learned_rules(user_id),
        patterns=load_patterns(user_id),
        interactions=load_interactions(user_id),
    )


def save_learning(user_id, description, category, amount=None, now=None):
    """
    Upsert the learned rule and, when an amount is given, the spending pattern.

    The caller commits.
    """
    clean = normalize(description)
    if not clean:
        return None
    now = now or datetime.utcnow()

    rule = LearnedRule.query.filter_by(user_id=user_id, description=clean).first()
    if rule:
        rule.category = category
    else:
        db.session.add(LearnedRule(user_id=user_id, description=clean, category=category))

    pattern_row = None
    if amount:
        pattern_row = SpendingPattern.query.filter_by(user_id=user_id, description=clean).first()
        current = None
        if pattern_row:
            current = {
                'category': pattern_row.category,
                'amounts': list(pattern_row.amounts or []),
                'frequency': pattern_row.frequency or 0,
                'last_used': pattern_row.last_used,
                'average_amount': pattern_row.average_amount or 0.0,
            }
        updated = update_pattern(current, category, amount, now)
        if pattern_row is None:
            pattern_row = SpendingPattern(user_id=user_id, description=clean)
            db.session.add(pattern_row)
        pattern_row.category = updated['category']
        pattern_row.amounts = updated['amounts']
        pattern_row.frequency = updated['frequency']
        pattern_row.last_used = updated['last_used']
        pattern_row.average_amount = updated['average_amount']

    logger.info(f"[LEARNING] Saved rule: '{clean}' -> '{category}' for user {user_id}")
    return pattern_row


def save_interaction(user_id, description, type, value, accepted, now=None):
    """
    Record a suggestion the user accepted or rejected.

    Only the newest MAX_INTERACTIONS rows are kept per user. The caller commits.
    """
    interaction = UserInteraction(
        user_id=user_id,
        description=normalize(description),
        type=type,
        value=value,
        accepted=bool(accepted),
        timestamp=now or datetime.utcnow(),
    )
    db.session.add(interaction)
    db.session.flush()

    stale = UserInteraction.query.filter_by(user_id=user_id).order_by(
        UserInteraction.timestamp.desc(), UserInteraction.id.desc()
    ).offset(Config.MAX_INTERACTIONS).all()
    for row in stale:
        db.session.delete(row)
    if stale:
        logger.debug(f"[LEARNING] Trimmed {len(stale)} old interactions for user {user_id}")

    return interaction


def reset_learning(user_id):
    """Delete all learned rules, patterns and interactions for a user. The caller commits."""
    counts = {
        'learned_rules': LearnedRule.query.filter_by(user_id=user_id).delete(),
        'spending_patterns': SpendingPattern.query.filter_by(user_id=user_id).delete(),
        'interactions': UserInteraction.query.filter_by(user_id=user_id).delete(),
    }
    logger.info(f"[LEARNING] Reset learning data for user {user_id}: {counts}")
    return counts
