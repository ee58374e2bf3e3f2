from flask import Blueprint, jsonify, request

from exquisite.services import drawings as store
from exquisite.socketio_events import broadcast


drawings = Blueprint('drawings', __name__)


@drawings.route('/updateDrawingStatus', methods=['POST'])
def update_drawing_status():
    data = request.get_json(silent=True)
    chunks = store.append_from_request(data)
    broadcast('drawingUpdated', {
        'success': True,
        'player_name': data['player_name'],
        'player_part': data['player_part'],
        'is_completed': data.get('is_completed', False),
        'chunks': chunks,
    }, data['game_code'])
    return jsonify({
        'success': True,
        'message': 'Drawing status updated successfully (chunked)',
        'chunks': chunks,
    }), 201


@drawings.route('/incompleteUsers/<string:game_code>/<string:part_name>', methods=['GET'])
def incomplete_users(game_code, part_name):
    names = store.list_incomplete_players(game_code, part_name)
    return jsonify({'success': True, 'incompletePlayers': names})


@drawings.route('/getDrawing/<string:game_code>/<string:player_name>/<string:part_name>', methods=['GET'])
def get_drawing(game_code, player_name, part_name):
    drawing = store.reassemble(game_code, player_name, part_name)
    return jsonify({'success': True, 'drawing': drawing})


@drawings.route('/completedDrawings/<string:game_code>', methods=['GET'])
def completed_drawings(game_code):
    # Side effect: incomplete drawings of this game are purged first
    completed = store.collect_completed(game_code)
    return jsonify({'success': True, 'drawings': completed})
