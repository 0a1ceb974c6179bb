"""
Lead routes — createLead mutation, lead lookups and the lead field resolvers
(profile, user, parent, parents, invited, events).
"""
import logging
from flask import Blueprint, request, jsonify

from leadtree.config import EVENT_TYPES
from leadtree.database import session_scope
from leadtree.models.lead import LeadSource
from leadtree.services import leads as lead_store
from leadtree.services.errors import NotFoundError
from leadtree.services.events import get_events_for_lead, get_events_for_lead_and_type
from leadtree.services.profiles import get_profile, get_profile_by_lead
from leadtree.services.users import get_user_by_lead

logger = logging.getLogger('routes.leads')

bp = Blueprint('leads', __name__)

CREATE_FIELDS = ('id', 'hash', 'source', 'motivation', 'status', 'score', 'color')


def _many(records):
    return jsonify([r.to_dict() for r in records])


def _one_or_null(record):
    return jsonify(record.to_dict() if record else None)


def _require_lead(session, lead_id):
    lead = lead_store.get_lead(session, lead_id)
    if lead is None:
        raise NotFoundError('Lead', lead_id)
    return lead


# ── Mutation ─────────────────────────────────────────────────────────────────

@bp.route('/api/leads', methods=['POST'])
def create_lead():
    """Create a lead under an existing parent for an existing user."""
    data = request.get_json(silent=True) or {}
    if isinstance(data, dict):
        data = data.get('input', data)
    if not isinstance(data, dict):
        return jsonify({'error': 'request body must be a JSON object'}), 400

    parent_id = data.get('parent')
    user_id = data.get('user')
    if not parent_id:
        return jsonify({'error': 'parent is required'}), 400
    if not user_id:
        return jsonify({'error': 'user is required'}), 400
    if not isinstance(parent_id, str) or not isinstance(user_id, str):
        return jsonify({'error': 'parent and user must be strings'}), 400

    attrs = {k: data[k] for k in CREATE_FIELDS if data.get(k) is not None}
    bad = [k for k in CREATE_FIELDS if k != 'score' and k in attrs and not isinstance(attrs[k], str)]
    if bad:
        return jsonify({'error': f"{bad[0]} must be a string"}), 400
    if 'source' in attrs and attrs['source'] not in {s.value for s in LeadSource}:
        return jsonify({'error': f"Unsupported source: {attrs['source']}"}), 400
    if 'score' in attrs:
        try:
            attrs['score'] = float(attrs['score'])
        except (TypeError, ValueError):
            return jsonify({'error': 'score must be numeric'}), 400

    with session_scope() as session:
        lead = lead_store.create_lead(session, parent_id, user_id, **attrs)
    return jsonify(lead.to_dict()), 201


# ── Lookups ──────────────────────────────────────────────────────────────────

@bp.route('/api/leads')
def list_leads():
    """All leads attached under a parent lead."""
    with session_scope() as session:
        return _many(lead_store.get_leads(session))


@bp.route('/api/leads/<lead_id>')
def get_lead(lead_id):
    with session_scope() as session:
        return jsonify(_require_lead(session, lead_id).to_dict())


@bp.route('/api/leads/by-hash/<hash>')
def get_lead_by_hash(hash):
    with session_scope() as session:
        lead = lead_store.get_lead_by_hash(session, hash)
    if lead is None:
        raise NotFoundError('Hash', hash)
    return jsonify(lead.to_dict())


@bp.route('/api/users/<user_id>/leads')
def leads_for_user(user_id):
    with session_scope() as session:
        return _many(lead_store.find_leads_for_user(session, user_id))


@bp.route('/api/profiles/<profile_id>')
def profile(profile_id):
    with session_scope() as session:
        record = get_profile(session, profile_id)
        if record is None:
            raise NotFoundError('Profile', profile_id)
        return jsonify(record.to_dict())


@bp.route('/api/profiles/<profile_id>/leads')
def leads_for_profile(profile_id):
    """Leads down a profile's chain with their depth."""
    with session_scope() as session:
        return _many(lead_store.find_leads_for_profile(session, profile_id))


@bp.route('/api/events/<event_id>/lead')
def lead_for_event(event_id):
    with session_scope() as session:
        return _one_or_null(lead_store.get_lead_by_event(session, event_id))


@bp.route('/api/rewards/<reward_id>/lead')
def lead_for_reward(reward_id):
    with session_scope() as session:
        return _one_or_null(lead_store.get_lead_by_reward(session, reward_id))


@bp.route('/api/rewards/<reward_id>/caused-by')
def lead_that_caused_reward(reward_id):
    with session_scope() as session:
        return _one_or_null(lead_store.get_lead_that_caused_reward(session, reward_id))


# ── Lead fields ──────────────────────────────────────────────────────────────

@bp.route('/api/leads/<lead_id>/profile')
def lead_profile(lead_id):
    with session_scope() as session:
        _require_lead(session, lead_id)
        return _one_or_null(get_profile_by_lead(session, lead_id))


@bp.route('/api/leads/<lead_id>/user')
def lead_user(lead_id):
    with session_scope() as session:
        _require_lead(session, lead_id)
        return _one_or_null(get_user_by_lead(session, lead_id))


@bp.route('/api/leads/<lead_id>/parent')
def lead_parent(lead_id):
    with session_scope() as session:
        _require_lead(session, lead_id)
        return _one_or_null(lead_store.get_parent(session, lead_id))


@bp.route('/api/leads/<lead_id>/parents')
def lead_parents(lead_id):
    """Ancestors with depth, hiding the viewing user's own leads (?user=<id>)."""
    viewer = request.args.get('user')
    with session_scope() as session:
        _require_lead(session, lead_id)
        return _many(lead_store.find_parents(session, lead_id, viewer))


@bp.route('/api/leads/<lead_id>/invited')
def lead_invited(lead_id):
    with session_scope() as session:
        _require_lead(session, lead_id)
        return _many(lead_store.get_children_by_source(session, lead_id, LeadSource.INVITATION))


@bp.route('/api/leads/<lead_id>/events')
def lead_events(lead_id):
    """Events on a lead, optionally filtered with ?type=."""
    event_type = request.args.get('type')
    if event_type and event_type not in EVENT_TYPES:
        return jsonify({'error': f'Unsupported event type: {event_type}'}), 400
    with session_scope() as session:
        _require_lead(session, lead_id)
        if event_type:
            return _many(get_events_for_lead_and_type(session, lead_id, event_type))
        return _many(get_events_for_lead(session, lead_id))
