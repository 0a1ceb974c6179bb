"""
Redirect route — redeem a shared hash for the calling session.
"""
import logging
from flask import Blueprint, request, jsonify

from leadtree.services.redirect import redirect

logger = logging.getLogger('routes.redirect')

bp = Blueprint('redirect', __name__)


@bp.route('/api/redirect', methods=['POST'])
def redirect_hash():
    """Find or create the caller's lead for a hash."""
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({'error': 'request body must be a JSON object'}), 400
    hash = data.get('hash') or ''
    session_token = data.get('session') or ''
    if not isinstance(hash, str) or not isinstance(session_token, str):
        return jsonify({'error': 'hash and session must be strings'}), 400
    hash, session_token = hash.strip(), session_token.strip()

    if not hash:
        return jsonify({'error': 'hash is required'}), 400
    if not session_token:
        return jsonify({'error': 'session is required'}), 400

    lead = redirect(hash, session_token)
    return jsonify(lead.to_dict())
