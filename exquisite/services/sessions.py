"""Game session store: room lifecycle and roster membership.

A room is either OPEN (``start_game`` false) or STARTED. The only state
transition is OPEN -> STARTED; ``join`` gates new players while OPEN and may
be toggled in either state.
"""

from numbers import Real
from typing import Any, Dict, Mapping

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from exquisite import db
from exquisite.errors import ConflictError, InvalidTransition, JoinRejected, NotFoundError, ValidationError
from exquisite.models import Game, Player, RoomState


STATUS_FIELDS = ('start_game', 'join', 'drawing_time')


def _commit() -> None:
    try:
        db.session.commit()
    except StaleDataError as exc:
        db.session.rollback()
        raise ConflictError('Game was modified concurrently, reload and retry') from exc
    except SQLAlchemyError:
        db.session.rollback()
        raise


def _check_bool(data: Mapping[str, Any], key: str) -> None:
    if key in data and not isinstance(data[key], bool):
        raise ValidationError(f'{key} must be a boolean')


def _check_number(data: Mapping[str, Any], key: str) -> None:
    value = data.get(key)
    if value is not None and (isinstance(value, bool) or not isinstance(value, Real)):
        raise ValidationError(f'{key} must be a number')


def _check_str_list(data: Mapping[str, Any], key: str) -> None:
    value = data.get(key)
    if value is not None and (not isinstance(value, list) or not all(isinstance(v, str) for v in value)):
        raise ValidationError(f'{key} must be a list of strings')


def build_player(player_data: Any) -> Player:
    if not isinstance(player_data, Mapping):
        raise ValidationError('player_data must be an object')
    name = player_data.get('player_name')
    if not isinstance(name, str) or not name.strip():
        raise ValidationError('player_data.player_name is required')
    number = player_data.get('player_number')
    if number is not None and (isinstance(number, bool) or not isinstance(number, int)):
        raise ValidationError('player_data.player_number must be an integer')
    for key in ('player_body_images', 'player_body_parts_with_player_names', 'player_current_step'):
        value = player_data.get(key)
        if value is not None and not isinstance(value, list):
            raise ValidationError(f'player_data.{key} must be a list')
    return Player(
        player_name=name,
        player_number=number,
        player_image=player_data.get('player_image'),
        player_body_images=player_data.get('player_body_images') or [],
        player_body_parts_with_player_names=player_data.get('player_body_parts_with_player_names') or [],
        player_current_step=player_data.get('player_current_step') or [],
    )


def create_game(game_state: Any) -> Game:
    if not isinstance(game_state, Mapping):
        raise ValidationError('Request body must be a JSON object')
    code = game_state.get('game_code')
    if not isinstance(code, str) or not code.strip():
        raise ValidationError('game_code is required')
    _check_str_list(game_state, 'games_Parts')
    _check_number(game_state, 'drawing_time')
    _check_bool(game_state, 'join')
    _check_bool(game_state, 'start_game')
    roster = game_state.get('players') or []
    if not isinstance(roster, list):
        raise ValidationError('players must be a list')

    if Game.query.filter_by(game_code=code).first():
        raise ValidationError(f'Game {code} already exists')

    game = Game(
        game_code=code,
        games_parts=game_state.get('games_Parts') or [],
        drawing_time=game_state.get('drawing_time'),
        join=game_state.get('join', False),
        start_game=game_state.get('start_game', False),
        number_of_players=0,
    )
    for player_data in roster:
        game.add_player(build_player(player_data))
    db.session.add(game)
    try:
        db.session.commit()
    except IntegrityError as exc:
        # Lost a race with another create for the same code
        db.session.rollback()
        raise ValidationError(f'Game {code} already exists') from exc
    except SQLAlchemyError:
        db.session.rollback()
        raise
    current_app.logger.info(f"[create] game={code} players={game.number_of_players}")
    return game


def get_game(game_code: str) -> Game:
    game = Game.query.filter_by(game_code=game_code).first()
    if game is None:
        raise NotFoundError('Game not found')
    return game


def add_player(game_code: str, player_data: Any) -> Game:
    game = get_game(game_code)
    game.add_player(build_player(player_data))
    _commit()
    current_app.logger.info(f"[add_player] game={game_code} players={game.number_of_players}")
    return game


def ensure_joinable(game: Game) -> None:
    if game.state is RoomState.STARTED:
        raise JoinRejected(JoinRejected.ALREADY_STARTED, 'Room already started')
    if not game.join:
        raise JoinRejected(JoinRejected.ROOM_CLOSED, 'Room is not accepting new players')


def validate_and_join(game_code: str, player_data: Any) -> Dict[str, Any]:
    game = get_game(game_code)
    ensure_joinable(game)
    game.add_player(build_player(player_data))
    _commit()
    current_app.logger.info(f"[join] game={game_code} players={game.number_of_players}")
    return game.join_summary()


def _apply_start(game: Game, start: bool) -> None:
    if start:
        game.start_game = True
    elif game.state is RoomState.STARTED:
        raise InvalidTransition('Game has already started and cannot be reopened')


def update_status(game_code: str, changes: Any) -> Game:
    """Apply only the status keys present in ``changes``; others stay as stored."""
    if not isinstance(changes, Mapping):
        raise ValidationError('Request body must be a JSON object')
    _check_bool(changes, 'start_game')
    _check_bool(changes, 'join')
    _check_number(changes, 'drawing_time')

    game = get_game(game_code)
    previous = game.state
    if 'start_game' in changes:
        _apply_start(game, changes['start_game'])
    if 'join' in changes:
        game.join = changes['join']
    if 'drawing_time' in changes:
        game.drawing_time = changes['drawing_time']
    _commit()
    current_app.logger.info(
        f"[status] game={game_code} state={previous.value}->{game.state.value} join={game.join}"
    )
    return game
