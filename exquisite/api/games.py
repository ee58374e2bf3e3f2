from flask import Blueprint, jsonify, request

from exquisite.errors import ValidationError
from exquisite.services import sessions
from exquisite.socketio_events import broadcast


games = Blueprint('games', __name__)


def _body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def _game_code(data):
    code = data.get('game_code')
    if not isinstance(code, str) or not code:
        raise ValidationError('game_code is required')
    return code


@games.route('/storeGameState', methods=['POST'])
def store_game_state():
    game = sessions.create_game(_body())
    return jsonify({
        'success': True,
        'message': 'Game state stored successfully',
        'game': game.to_dict(),
    }), 201


@games.route('/getGameData/<string:game_code>', methods=['GET'])
def get_game_data(game_code):
    game = sessions.get_game(game_code)
    return jsonify({
        'success': True,
        'message': 'Game data retrieved successfully',
        'game': game.to_dict(),
    })


@games.route('/updateGameWithPlayer', methods=['PUT'])
def update_game_with_player():
    data = _body()
    game = sessions.add_player(_game_code(data), data.get('player_data'))
    payload = game.to_dict()
    broadcast('gameDataUpdated', {'success': True, 'game': payload}, game.game_code)
    return jsonify({
        'success': True,
        'message': 'Game updated successfully',
        'game': payload,
    })


@games.route('/updateGameStatus', methods=['PUT'])
def update_game_status():
    data = _body()
    changes = {k: data[k] for k in sessions.STATUS_FIELDS if k in data}
    game = sessions.update_status(_game_code(data), changes)
    payload = game.to_dict()
    broadcast('gameDataUpdated', {'success': True, 'game': payload}, game.game_code)
    return jsonify({
        'success': True,
        'message': 'Game status updated successfully',
        'game': payload,
    })


@games.route('/validateJoinGame', methods=['POST'])
def validate_join_game():
    data = _body()
    code = _game_code(data)
    summary = sessions.validate_and_join(code, data.get('player_data'))
    broadcast('gameDataUpdated', {'success': True, 'game': sessions.get_game(code).to_dict()}, code)
    return jsonify({
        'success': True,
        'message': 'User joined the game successfully',
        'canJoin': True,
        'game': summary,
    })
