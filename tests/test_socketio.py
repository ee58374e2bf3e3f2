import pytest

from exquisite import socketio


def events(test_client, name):
    return [pkt['args'][0] for pkt in test_client.get_received('/ws') if pkt['name'] == name]


@pytest.fixture()
def listener(flask_app):
    """A second connection joined to ROOM1, to observe room broadcasts."""
    other = socketio.test_client(flask_app, namespace='/ws')
    other.emit('joinGame', 'ROOM1', namespace='/ws')
    other.get_received('/ws')
    yield other
    if other.is_connected('/ws'):
        other.disconnect(namespace='/ws')


def drawing_payload(points, count, player='alice', **extra):
    payload = {
        'game_code': 'ROOM1',
        'player_name': player,
        'player_part': 'head',
        'drawing_points': points(count),
        'is_completed': False,
    }
    payload.update(extra)
    return payload


def test_socket_connect_and_join(sio_client):
    assert sio_client.is_connected('/ws')
    assert events(sio_client, 'connected')

    sio_client.emit('joinGame', 'ROOM1', namespace='/ws')
    assert events(sio_client, 'joined') == [{'room': 'game:ROOM1'}]

    sio_client.emit('leaveGame', {'gameCode': 'ROOM1'}, namespace='/ws')
    assert events(sio_client, 'left') == [{'room': 'game:ROOM1'}]


def test_join_requires_game_code(sio_client):
    sio_client.get_received('/ws')
    sio_client.emit('joinGame', {}, namespace='/ws')
    errors = events(sio_client, 'error')
    assert errors and errors[0]['success'] is False


def test_get_game_data(sio_client, client):
    client.post('/api/storeGameState', json={'game_code': 'ROOM1', 'join': True})
    sio_client.get_received('/ws')

    sio_client.emit('getGameData', 'ROOM1', namespace='/ws')
    [reply] = events(sio_client, 'gameData')
    assert reply['success'] is True
    assert reply['game']['game_code'] == 'ROOM1'

    sio_client.emit('getGameData', 'NOPE', namespace='/ws')
    [reply] = events(sio_client, 'gameData')
    assert reply == {'success': False, 'message': 'Game not found'}


def test_update_drawing_status_broadcasts(sio_client, listener, points):
    sio_client.get_received('/ws')
    sio_client.emit('updateDrawingStatus', drawing_payload(points, 75), namespace='/ws')

    [ack] = events(sio_client, 'drawingStatusUpdated')
    assert ack['success'] is True
    assert [c['pointsCount'] for c in ack['chunks']] == [50, 25]

    [update] = events(listener, 'drawingUpdated')
    assert update['player_name'] == 'alice'
    assert update['player_part'] == 'head'
    assert [c['chunk_index'] for c in update['chunks']] == [0, 1]


def test_update_drawing_status_failure_is_unicast(sio_client, listener, points):
    sio_client.get_received('/ws')
    sio_client.emit('updateDrawingStatus', drawing_payload(points, 5, drawing_points='bad'), namespace='/ws')
    [ack] = events(sio_client, 'drawingStatusUpdated')
    assert ack['success'] is False
    assert events(listener, 'drawingUpdated') == []


def test_http_upload_reaches_room(client, listener, upload):
    assert upload(10).status_code == 201
    [update] = events(listener, 'drawingUpdated')
    assert update['chunks'][0]['pointsCount'] == 10


def test_get_drawing_and_incomplete_users(sio_client, points):
    sio_client.emit('updateDrawingStatus', drawing_payload(points, 60), namespace='/ws')
    sio_client.get_received('/ws')

    sio_client.emit('getDrawing', {'gameCode': 'ROOM1', 'playerName': 'alice', 'partName': 'head'}, namespace='/ws')
    [reply] = events(sio_client, 'drawingData')
    assert reply['success'] is True
    assert reply['drawing']['drawing_points'] == points(60)
    assert reply['drawing']['chunks'] == 2

    sio_client.emit('getIncompleteUsers', {'gameCode': 'ROOM1', 'partName': 'head'}, namespace='/ws')
    [reply] = events(sio_client, 'incompleteUsers')
    assert reply == {'success': True, 'incompletePlayers': ['alice']}

    sio_client.emit('getIncompleteUsers', {'gameCode': 'ROOM1', 'partName': 'legs'}, namespace='/ws')
    [reply] = events(sio_client, 'incompleteUsers')
    assert reply['success'] is False

    sio_client.emit('getDrawing', {'gameCode': 'ROOM1', 'playerName': 'bob', 'partName': 'head'}, namespace='/ws')
    [reply] = events(sio_client, 'drawingData')
    assert reply == {'success': False, 'message': 'Drawing not found'}


def test_update_game_data_broadcasts(sio_client, listener, client):
    client.post('/api/storeGameState', json={'game_code': 'ROOM1', 'join': True, 'drawing_time': 40})
    sio_client.get_received('/ws')

    sio_client.emit('updateGameData', {'gameCode': 'ROOM1', 'gameData': {'start_game': True}}, namespace='/ws')
    [update] = events(listener, 'gameDataUpdated')
    assert update['success'] is True
    assert update['game']['start_game'] is True
    assert update['game']['drawing_time'] == 40


def test_update_game_data_missing_game(sio_client, listener):
    sio_client.get_received('/ws')
    sio_client.emit('updateGameData', {'gameCode': 'ROOM1', 'gameData': {'join': False}}, namespace='/ws')
    [reply] = events(sio_client, 'gameDataUpdated')
    assert reply['success'] is False
    assert events(listener, 'gameDataUpdated') == []


def test_http_join_broadcasts_roster(client, listener):
    client.post('/api/storeGameState', json={'game_code': 'ROOM1', 'join': True})
    listener.get_received('/ws')
    client.post('/api/validateJoinGame', json={'game_code': 'ROOM1', 'player_data': {'player_name': 'alice'}})
    [update] = events(listener, 'gameDataUpdated')
    assert update['game']['number_of_players'] == 1


def test_update_drawing_status_rejects_string_flag(sio_client, listener, points):
    sio_client.get_received('/ws')
    sio_client.emit('updateDrawingStatus', drawing_payload(points, 5, is_completed='false'), namespace='/ws')
    [ack] = events(sio_client, 'drawingStatusUpdated')
    assert ack == {'success': False, 'message': 'is_completed must be a boolean'}
    assert events(listener, 'drawingUpdated') == []
