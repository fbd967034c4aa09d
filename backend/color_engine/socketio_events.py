from flask import current_app, request
from flask_socketio import join_room, leave_room, emit
from color_engine import socketio, get_game_service
from color_engine.services.games import ActionRejected
from color_engine.services.games.registry import normalize_code
from typing import Any, Callable, Dict, Optional

NAMESPACE = '/ws'


def room_name(game_code: str) -> str:
    return f"game:{normalize_code(game_code)}"


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


# ---- broadcasts (usable from HTTP routes too) ----

def broadcast_table(game_code: str, snap) -> None:
    socketio.emit('state_update', snap.to_dict(), to=room_name(game_code), namespace=NAMESPACE)


def broadcast_player_list(game_code: str, players) -> None:
    socketio.emit('player_list', {'game_code': normalize_code(game_code), 'players': list(players)},
                  to=room_name(game_code), namespace=NAMESPACE)


def broadcast_activation(game_code: str, outcome) -> None:
    """Effect log lines first, then either the game over notice or the new table."""
    for message in outcome.messages:
        socketio.emit('game_message', message.to_dict(), to=room_name(game_code), namespace=NAMESPACE)
    if outcome.game_over:
        socketio.emit('game_over', {'winner': outcome.winner}, to=room_name(game_code), namespace=NAMESPACE)
    broadcast_table(game_code, outcome.snapshot)


def end_session(game_code: str) -> None:
    """Notify the room and drop its state."""
    code = normalize_code(game_code)
    socketio.emit('session_ended', {'game_code': code}, to=room_name(code), namespace=NAMESPACE)
    get_game_service().close_room(code)
    current_app.logger.info(f"[session-end] room={code}")


# ---- helpers ----

def _emit_error(message: str, reason: str = 'bad_request') -> None:
    emit('error', {'message': message, 'reason': reason})


def _require_code(data: Optional[Dict[str, Any]]) -> Optional[str]:
    game_code = normalize_code((data or {}).get('game_code'))
    if not game_code:
        _emit_error('game_code is required')
        return None
    return game_code


def _actor_for(game_code: str) -> Optional[str]:
    ctx = get_game_service().registry.connection_of(_get_sid())
    if not ctx or ctx[0] != game_code:
        return None
    return ctx[1]


def _run_action(data, action: Callable[[Any, str, str], None]) -> None:
    """Resolve room and acting player, then run action; rejections go to the caller only."""
    game_code = _require_code(data)
    if not game_code:
        return
    actor = _actor_for(game_code)
    if actor is None:
        _emit_error('Join the game before playing', 'not_in_room')
        return
    try:
        action(get_game_service(), game_code, actor)
    except ActionRejected as exc:
        current_app.logger.info(f"[reject] room={game_code} player={actor} reason={exc.reason}")
        _emit_error(exc.message, exc.reason)


def _release_lobby_seat(service, game_code: str, name: str) -> None:
    """Drop name from a lobby roster unless another connection still holds it."""
    registry = service.registry
    if not registry.room_exists(game_code) or registry.get_game_state(game_code) is not None:
        return
    if any(bound.lower() == name.lower() for bound in registry.connections_for(game_code).values()):
        return
    broadcast_player_list(game_code, service.leave_room(game_code, name))


# ---- handlers ----

def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(*args):
    service = get_game_service()
    ctx = service.registry.unbind_connection(_get_sid())
    if not ctx:
        return
    game_code, name = ctx
    # Seats in a running game are kept; only the lobby roster shrinks
    _release_lobby_seat(service, game_code, name)
    socketio.emit('player_disconnected', {'name': name}, to=room_name(game_code), namespace=NAMESPACE)


def handle_join_game(data):
    game_code = _require_code(data)
    if not game_code:
        return
    service = get_game_service()
    if not service.registry.room_exists(game_code):
        _emit_error(f'Room {game_code} not found', 'room_not_found')
        return

    name = str((data or {}).get('name') or '').strip()
    if name:
        state = service.registry.get_game_state(game_code)
        if state is None:
            if not service.has_player(game_code, name):
                try:
                    service.join_room(game_code, name)
                except ActionRejected as exc:
                    _emit_error(exc.message, exc.reason)
                    return
            name = next((p for p in service.list_players(game_code) if p.lower() == name.lower()), name)
        else:
            seated = next((p for p in state.players if p.lower() == name.lower()), None)
            if seated is None:
                _emit_error('The game has already started', 'join_rejected')
                return
            name = seated
        service.registry.bind_connection(_get_sid(), game_code, name)

    join_room(room_name(game_code))
    emit('joined', {'room': room_name(game_code), 'game_code': game_code, 'name': name or None})
    if name and service.registry.get_game_state(game_code) is None:
        broadcast_player_list(game_code, service.list_players(game_code))


def handle_leave_game(data):
    game_code = _require_code(data)
    if not game_code:
        return
    service = get_game_service()
    leave_room(room_name(game_code))
    emit('left', {'room': room_name(game_code)})
    ctx = service.registry.connection_of(_get_sid())
    if ctx and ctx[0] == game_code:
        service.registry.unbind_connection(_get_sid())
        _release_lobby_seat(service, ctx[0], ctx[1])


def handle_init_game_view(data):
    game_code = _require_code(data)
    if not game_code:
        return
    snap = get_game_service().get_table_snapshot(game_code)
    if snap is None:
        _emit_error(f'No game is running in room {game_code}', 'game_not_found')
        return
    join_room(room_name(game_code))
    emit('state_update', snap.to_dict())


def handle_start_game(data):
    def _start(service, game_code, actor):
        snap = service.start_game(game_code, requested_by=actor)
        socketio.emit('game_started', {'game_code': game_code}, to=room_name(game_code), namespace=NAMESPACE)
        broadcast_table(game_code, snap)
    _run_action(data, _start)


def handle_buy_card(data):
    card_id = str((data or {}).get('card_id') or '')

    def _buy(service, game_code, actor):
        broadcast_table(game_code, service.buy_card(game_code, card_id, actor=actor))
    _run_action(data, _buy)


def handle_activate_card(data):
    card_id = str((data or {}).get('card_id') or '')

    def _activate(service, game_code, actor):
        broadcast_activation(game_code, service.activate_card(game_code, card_id, actor=actor))
    _run_action(data, _activate)


def handle_end_turn(data):
    def _end(service, game_code, actor):
        broadcast_table(game_code, service.end_turn(game_code, actor=actor))
    _run_action(data, _end)


def handle_ping(data):
    emit('pong', data or {})


_HANDLERS = {
    'connect': handle_connect,
    'disconnect': handle_disconnect,
    'join_game': handle_join_game,
    'leave_game': handle_leave_game,
    'init_game_view': handle_init_game_view,
    'start_game': handle_start_game,
    'buy_card': handle_buy_card,
    'activate_card': handle_activate_card,
    'end_turn': handle_end_turn,
    'ping': handle_ping,
}


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    for event, handler in _HANDLERS.items():
        socketio.on_event(event, handler, namespace=NAMESPACE)

    if testing:
        # Test-only mirror on default namespace
        for event, handler in _HANDLERS.items():
            socketio.on_event(event, handler, namespace='/')
