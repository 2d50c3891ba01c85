"""
Endpoints for an out-of-process scheduler (platform cron, CI job, curl).

Both sweeps are idempotent, so a caller that retries or overlaps with the
in-process APScheduler job does no harm.
"""
import hmac
from functools import wraps

from flask import Blueprint, request, jsonify, current_app

from app.bidding import sweep_expired_bidding, sweep_bidding_starts
from app.models import utcnow

cron_bp = Blueprint('cron', __name__)


def require_cron_secret(f):
    """Accept only ``Authorization: Bearer <CRON_SECRET>``; refuse everything when no secret is set."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        secret = current_app.config.get('CRON_SECRET')
        auth_header = request.headers.get('Authorization', '')
        if not secret or not hmac.compare_digest(auth_header, f'Bearer {secret}'):
            return jsonify({'error': 'Unauthorized'}), 401
        return f(*args, **kwargs)
    return decorated_function


@cron_bp.route('/close-bidding', methods=['GET'])
@require_cron_secret
def close_bidding():
    """Close every request whose bidding window has ended."""
    now = utcnow()
    current_app.logger.info("[CRON] Closing expired bidding at %s", now.isoformat())
    summary = sweep_expired_bidding(now)

    return jsonify({
        'success': True,
        'timestamp': now.isoformat(),
        'summary': summary,
    }), 200


@cron_bp.route('/start-bidding', methods=['GET'])
@require_cron_secret
def start_bidding():
    """Open bidding on every scheduled request whose start date has arrived."""
    now = utcnow()
    current_app.logger.info("[CRON] Starting due bidding at %s", now.isoformat())
    summary = sweep_bidding_starts(now)

    return jsonify({
        'success': True,
        'timestamp': now.isoformat(),
        'summary': summary,
    }), 200
