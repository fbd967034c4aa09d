from flask import Blueprint, jsonify, request, current_app
from color_engine import get_game_service
from color_engine.services.games import ActionRejected
from color_engine.services.games.registry import normalize_code
from color_engine.socketio_events import (
    broadcast_activation, broadcast_player_list, broadcast_table, end_session, room_name,
)
from color_engine import socketio


games = Blueprint('games', __name__)

_REJECTION_STATUS = {
    'room_not_found': 404,
    'game_not_found': 404,
    'not_your_turn': 403,
    'not_host': 403,
    'game_already_active': 409,
    'game_finished': 409,
    'room_exists': 409,
}


@games.errorhandler(ActionRejected)
def handle_rejection(exc: ActionRejected):
    current_app.logger.info(f"[reject] path={request.path} reason={exc.reason} message={exc.message}")
    status = _REJECTION_STATUS.get(exc.reason, 400)
    return jsonify({'error': exc.message, 'reason': exc.reason}), status


@games.route('/create', methods=['POST'])
def create_game():
    data = request.get_json(silent=True) or {}
    code = get_game_service().create_room(data.get('game_code'))
    return jsonify({
        'message': 'New game created!',
        'game_code': code
    }), 201


@games.route('/join', methods=['POST'])
def join_game():
    data = request.get_json(silent=True) or {}
    game_code = data.get('game_code')
    name = data.get('name')
    if not all([game_code, name]):
        return jsonify({'error': 'Game code and player name are required'}), 400

    service = get_game_service()
    players = service.join_room(game_code, name)
    code = normalize_code(game_code)
    broadcast_player_list(code, players)
    return jsonify({'game_code': code, 'name': str(name).strip(), 'players': players}), 201


@games.route('/<string:game_code>/players', methods=['GET'])
def list_players(game_code):
    service = get_game_service()
    return jsonify({
        'game_code': normalize_code(game_code),
        'players': service.list_players(game_code),
        'joinable': service.registry.is_joinable(game_code),
    })


@games.route('/<string:game_code>/start', methods=['POST'])
def start_game(game_code):
    data = request.get_json(silent=True) or {}
    snap = get_game_service().start_game(game_code, requested_by=data.get('name'))
    socketio.emit('game_started', {'game_code': snap.room_code}, to=room_name(snap.room_code), namespace='/ws')
    broadcast_table(snap.room_code, snap)
    return jsonify(snap.to_dict())


@games.route('/<string:game_code>/state', methods=['GET'])
def get_game_state(game_code):
    snap = get_game_service().get_table_snapshot(game_code)
    if snap is None:
        return jsonify({'error': 'Game not found', 'reason': 'game_not_found'}), 404
    return jsonify(snap.to_dict())


@games.route('/<string:game_code>/buy', methods=['POST'])
def buy_card(game_code):
    data = request.get_json(silent=True) or {}
    card_id = data.get('card_id')
    if not card_id:
        return jsonify({'error': 'card_id is required', 'reason': 'card_not_found'}), 400
    snap = get_game_service().buy_card(game_code, str(card_id), actor=data.get('name'))
    broadcast_table(snap.room_code, snap)
    return jsonify(snap.to_dict())


@games.route('/<string:game_code>/activate', methods=['POST'])
def activate_card(game_code):
    data = request.get_json(silent=True) or {}
    card_id = data.get('card_id')
    if not card_id:
        return jsonify({'error': 'card_id is required', 'reason': 'card_not_found'}), 400
    outcome = get_game_service().activate_card(game_code, str(card_id), actor=data.get('name'))
    broadcast_activation(outcome.snapshot.room_code, outcome)
    payload = outcome.snapshot.to_dict()
    payload['messages'] = [m.to_dict() for m in outcome.messages]
    payload['game_over'] = outcome.game_over
    return jsonify(payload)


@games.route('/<string:game_code>/end-turn', methods=['POST'])
def end_turn(game_code):
    data = request.get_json(silent=True) or {}
    snap = get_game_service().end_turn(game_code, actor=data.get('name'))
    broadcast_table(snap.room_code, snap)
    return jsonify(snap.to_dict())


@games.route('/<string:game_code>/close', methods=['POST'])
def close_game(game_code):
    code = normalize_code(game_code)
    if not get_game_service().registry.room_exists(code):
        return jsonify({'error': 'Game not found', 'reason': 'room_not_found'}), 404
    end_session(code)
    return jsonify({'message': f'Game {code} closed'})
