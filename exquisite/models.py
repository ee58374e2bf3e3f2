from datetime import datetime, timezone
import enum

from exquisite import db


def _utcnow():
    return datetime.now(timezone.utc)


def _isoformat(value):
    return value.isoformat() if value else None


class RoomState(enum.Enum):
    OPEN = 'open'
    STARTED = 'started'


class Player(db.Model):
    __tablename__ = 'player'
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id', ondelete='CASCADE'), nullable=False, index=True)
    game_code = db.Column(db.String(64), nullable=False)
    player_name = db.Column(db.String(128), nullable=False)
    player_number = db.Column(db.Integer, nullable=True)
    player_image = db.Column(db.Text, nullable=True)
    player_body_images = db.Column(db.JSON, nullable=False, default=list)
    player_body_parts_with_player_names = db.Column(db.JSON, nullable=False, default=list)
    player_current_step = db.Column(db.JSON, nullable=False, default=list)
    game = db.relationship('Game', back_populates='players')

    def to_dict(self):
        return {
            'id': self.id,
            'game_code': self.game_code,
            'player_name': self.player_name,
            'player_number': self.player_number,
            'player_image': self.player_image,
            'player_body_images': list(self.player_body_images or []),
            'player_body_parts_with_player_names': list(self.player_body_parts_with_player_names or []),
            'player_current_step': list(self.player_current_step or []),
        }


class Game(db.Model):
    __tablename__ = 'game'
    id = db.Column(db.Integer, primary_key=True)
    game_code = db.Column(db.String(64), unique=True, nullable=False, index=True)
    number_of_players = db.Column(db.Integer, nullable=False, default=0)
    games_parts = db.Column(db.JSON, nullable=False, default=list)  # ordered part names
    drawing_time = db.Column(db.Float, nullable=True)
    join = db.Column(db.Boolean, nullable=False, default=False)
    start_game = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=_utcnow)
    version_id = db.Column(db.Integer, nullable=False)
    players = db.relationship(
        'Player',
        back_populates='game',
        order_by='Player.id',
        cascade='all, delete-orphan',
    )

    __mapper_args__ = {'version_id_col': version_id}

    @property
    def state(self) -> RoomState:
        return RoomState.STARTED if self.start_game else RoomState.OPEN

    def add_player(self, player: Player) -> Player:
        """Append to the roster; the only way players enter a game.

        Keeps number_of_players equal to the roster length within the
        same flush, and the resulting UPDATE is guarded by version_id.
        """
        player.game_code = self.game_code
        self.players.append(player)
        self.number_of_players = len(self.players)
        return player

    def join_summary(self):
        return {
            'game_code': self.game_code,
            'number_of_players': self.number_of_players,
            'games_Parts': list(self.games_parts or []),
            'players': [p.to_dict() for p in self.players],
        }

    def to_dict(self):
        return {
            'id': self.id,
            'game_code': self.game_code,
            'number_of_players': self.number_of_players,
            'games_Parts': list(self.games_parts or []),
            'drawing_time': self.drawing_time,
            'join': self.join,
            'start_game': self.start_game,
            'state': self.state.value,
            'created_at': _isoformat(self.created_at),
            'players': [p.to_dict() for p in self.players],
        }


class Drawing(db.Model):
    """One chunk of a player's stroke data for one body part."""
    __tablename__ = 'drawing'
    __table_args__ = (
        db.UniqueConstraint('game_code', 'player_name', 'player_part', 'chunk_index', name='uq_drawing_chunk'),
    )
    id = db.Column(db.Integer, primary_key=True)
    game_code = db.Column(db.String(64), nullable=False, index=True)
    player_name = db.Column(db.String(128), nullable=False)
    player_part = db.Column(db.String(64), nullable=False)
    chunk_index = db.Column(db.Integer, nullable=False, default=0)
    drawing_points = db.Column(db.JSON, nullable=False, default=list)
    is_completed = db.Column(db.Boolean, nullable=False, default=False)
    # Denormalized snapshot of the uploader, copied from the request
    player_id = db.Column(db.Integer, nullable=True)
    player_image = db.Column(db.Text, nullable=True)
    player_drawing = db.Column(db.Text, nullable=True)
    drawed_parts_of_player = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=_utcnow)
    version_id = db.Column(db.Integer, nullable=False)

    __mapper_args__ = {'version_id_col': version_id}

    @property
    def point_count(self) -> int:
        return len(self.drawing_points or [])

    def extend_points(self, points):
        # Reassign so the JSON column is flagged dirty
        self.drawing_points = list(self.drawing_points or []) + list(points)

    def metadata_dict(self):
        return {
            'game_code': self.game_code,
            'player_name': self.player_name,
            'player_part': self.player_part,
            'player_id': self.player_id,
            'player_image': self.player_image,
            'player_drawing': self.player_drawing,
            'drawed_parts_of_player': self.drawed_parts_of_player,
            'created_at': _isoformat(self.created_at),
        }

    def to_descriptor(self):
        return {
            'id': self.id,
            'chunk_index': self.chunk_index,
            'pointsCount': self.point_count,
        }
