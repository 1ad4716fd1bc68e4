from flask import Blueprint, current_app, request

from .assembly import assemble_archery_data, category_leaderboards
from .errors import ArcheryError


bp = Blueprint('main', __name__)

GENERIC_ERROR = {'error': 'Error fetching data'}

# Category shortcuts kept from the first public version of the API
BAREBOW_SENIOR_MEN = 'Barebow Senior Men'
BAREBOW_SENIOR_WOMEN = 'Barebow Senior Women'


def _client():
    return current_app.extensions['archery']['client']


def _cache():
    return current_app.extensions['archery']['cache']


def _load():
    """Run a full assembly pass for the configured tournaments."""
    return assemble_archery_data(_client(), current_app.config['TOURNAMENT_IDS'])


def _failure(exc: Exception):
    if isinstance(exc, ArcheryError):
        current_app.logger.exception("Error fetching data (%s): %s", type(exc).__name__, exc)
    else:
        current_app.logger.exception("Unexpected error fetching data")
    return dict(GENERIC_ERROR), 500


@bp.route('/api/archers')
def archers():
    """Full archer registry plus the per-tournament category views."""
    try:
        data = _load()
    except Exception as e:  # pylint: disable=broad-except
        return _failure(e)
    return data.to_dict()


@bp.route('/api/archers/<stable_id>')
def archer_detail(stable_id):
    try:
        data = _load()
    except Exception as e:  # pylint: disable=broad-except
        return _failure(e)
    archer = data.archers.get(stable_id)
    if archer is None:
        return {'error': 'archer not found'}, 404
    return archer.to_dict()


def _scores(category=None):
    try:
        data = _load()
        boards = category_leaderboards(data, category=category)
    except Exception as e:  # pylint: disable=broad-except
        return _failure(e)
    return {
        tid: {
            'id': tid,
            'name': data.tournaments[tid].name,
            'categories': per_category,
        }
        for tid, per_category in boards.items()
    }


@bp.route('/api/scores')
def scores():
    """Ranked scores per tournament and category.

    ``?category=<name>`` limits the output to a single category.
    """
    return _scores(request.args.get('category') or None)


@bp.route('/api/bm')
def scores_barebow_men():
    return _scores(BAREBOW_SENIOR_MEN)


@bp.route('/api/bw')
def scores_barebow_women():
    return _scores(BAREBOW_SENIOR_WOMEN)


@bp.route('/admin/cache/flush', methods=['POST'])
def admin_flush_cache():
    """Drop every cached upstream payload."""
    try:
        flushed = _cache().flush()
    except Exception as e:  # pragma: no cover
        current_app.logger.exception("Cache flush failed")
        return {'ok': False, 'status': 'error', 'error': str(e)}, 500
    current_app.logger.info("Flushed %d cache entries", flushed)
    return {'ok': True, 'flushed': flushed}


@bp.route('/health/cache')
def health_cache():
    """Cache backend health check. Always returns HTTP 200."""
    try:
        return _cache().describe()
    except Exception as e:  # pragma: no cover - best-effort health output
        return {'status': 'error', 'error': str(e)}
