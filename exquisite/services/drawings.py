"""Chunked drawing store.

Stroke points are stored in fixed-size ``Drawing`` rows ("chunks") keyed by
the (game_code, player_name, player_part) triple plus a contiguous
``chunk_index``. Reads concatenate chunks in index order.
"""

import threading
from contextlib import contextmanager
from numbers import Real
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from exquisite import db
from exquisite.errors import ConflictError, NotFoundError, ValidationError
from exquisite.models import Drawing


MAX_POINTS = 50

METADATA_FIELDS = ('player_id', 'player_image', 'player_drawing', 'drawed_parts_of_player')

Triple = Tuple[str, str, str]

# One lock per triple so appends within this process never share a
# "latest chunk" snapshot. Cross-process races are caught by version_id
# and the chunk unique constraint. Entries hold [lock, waiters] and are
# dropped once no append is using them.
_triple_locks: Dict[Triple, List[Any]] = {}
_registry_lock = threading.Lock()


@contextmanager
def _serialized(triple: Triple) -> Iterator[None]:
    with _registry_lock:
        entry = _triple_locks.setdefault(triple, [threading.Lock(), 0])
        entry[1] += 1
    try:
        with entry[0]:
            yield
    finally:
        with _registry_lock:
            entry[1] -= 1
            if entry[1] == 0:
                del _triple_locks[triple]


def _commit() -> None:
    try:
        db.session.commit()
    except (IntegrityError, StaleDataError) as exc:
        db.session.rollback()
        raise ConflictError(f'Concurrent write detected: {exc.__class__.__name__}') from exc
    except SQLAlchemyError:
        db.session.rollback()
        raise


def _require_text(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f'{key} is required')
    return value


def normalize_point(raw: Any) -> Dict[str, Any]:
    if not isinstance(raw, Mapping):
        raise ValidationError('Each drawing point must be an object')
    point = {}
    for key, cast in (('offsetDx', float), ('offsetDy', float), ('pointType', int), ('pressure', float)):
        value = raw.get(key)
        if isinstance(value, bool) or not isinstance(value, Real):
            raise ValidationError(f'Drawing point field {key} must be a number')
        point[key] = cast(value)
    return point


def _latest_chunk(game_code: str, player_name: str, player_part: str) -> Optional[Drawing]:
    return (
        Drawing.query
        .filter_by(game_code=game_code, player_name=player_name, player_part=player_part)
        .order_by(Drawing.chunk_index.desc())
        .first()
    )


def append_points(
    game_code: str,
    player_name: str,
    player_part: str,
    points: List[Any],
    metadata: Optional[Mapping[str, Any]] = None,
    is_completed: bool = False,
) -> List[Dict[str, Any]]:
    """Append points to a triple, filling the latest chunk before opening new ones.

    Every chunk is committed on its own. If a later commit fails, the chunks
    already committed stay and the error propagates; callers reconcile by
    re-reading with :func:`reassemble`.

    Returns one ``{id, chunk_index, pointsCount}`` descriptor per chunk
    touched, in the order they were written.
    """
    if not isinstance(points, list):
        raise ValidationError('drawing_points must be a list')
    pending = [normalize_point(p) for p in points]
    metadata = {k: (metadata or {}).get(k) for k in METADATA_FIELDS}
    if metadata['player_id'] is not None:
        try:
            metadata['player_id'] = int(metadata['player_id'])
        except (TypeError, ValueError):
            raise ValidationError('player_id must be an integer')
    touched: List[Drawing] = []

    with _serialized((game_code, player_name, player_part)):
        latest = _latest_chunk(game_code, player_name, player_part)
        next_index = 0
        if latest is not None:
            next_index = latest.chunk_index + 1
            space_left = MAX_POINTS - latest.point_count
            if space_left > 0 and pending:
                latest.extend_points(pending[:space_left])
                pending = pending[space_left:]
                _commit()
                touched.append(latest)

        while pending:
            chunk = Drawing(
                game_code=game_code,
                player_name=player_name,
                player_part=player_part,
                chunk_index=next_index,
                drawing_points=pending[:MAX_POINTS],
                is_completed=bool(is_completed),
                **metadata,
            )
            db.session.add(chunk)
            _commit()
            touched.append(chunk)
            pending = pending[MAX_POINTS:]
            next_index += 1

    descriptors = [chunk.to_descriptor() for chunk in touched]
    current_app.logger.info(
        f"[append] game={game_code} player={player_name} part={player_part} "
        f"points={len(points)} chunks={[d['chunk_index'] for d in descriptors]}"
    )
    return descriptors


def append_from_request(data: Any) -> List[Dict[str, Any]]:
    """Unpack an ``updateDrawingStatus`` body and append it."""
    if not isinstance(data, Mapping):
        raise ValidationError('Request body must be a JSON object')
    if not isinstance(data.get('is_completed', False), bool):
        raise ValidationError('is_completed must be a boolean')
    return append_points(
        _require_text(data, 'game_code'),
        _require_text(data, 'player_name'),
        _require_text(data, 'player_part'),
        data.get('drawing_points'),
        metadata=data,
        is_completed=data.get('is_completed', False),
    )


def reassemble(game_code: str, player_name: str, player_part: str) -> Dict[str, Any]:
    chunks = (
        Drawing.query
        .filter_by(game_code=game_code, player_name=player_name, player_part=player_part)
        .order_by(Drawing.chunk_index.asc())
        .all()
    )
    if not chunks:
        raise NotFoundError('Drawing not found')

    points: List[Dict[str, Any]] = []
    for chunk in chunks:
        points.extend(chunk.drawing_points or [])

    # Later chunks may carry stale metadata; the first chunk is authoritative
    first = chunks[0]
    drawing = first.metadata_dict()
    drawing.update({
        'drawing_points': points,
        'is_completed': first.is_completed,
        'chunks': len(chunks),
        'total_points': len(points),
    })
    return drawing


def list_incomplete_players(game_code: str, part_name: str) -> List[str]:
    rows = (
        db.session.query(Drawing.player_name)
        .filter_by(game_code=game_code, player_part=part_name, is_completed=False)
        .distinct()
        .order_by(Drawing.player_name)
        .all()
    )
    names = [row[0] for row in rows]
    if not names:
        raise NotFoundError('No incomplete drawings found')
    return names


def collect_completed(game_code: str) -> List[Dict[str, Any]]:
    """Purge incomplete chunks of a game and return its completed drawings.

    The purge is irreversible. Drawings are grouped by (player_name,
    player_part) in order of first appearance; within a group the chunks are
    concatenated by chunk_index. Metadata and is_completed come from the
    lowest-index chunk, as in :func:`reassemble`.
    """
    try:
        purged = (
            Drawing.query
            .filter_by(game_code=game_code, is_completed=False)
            .delete(synchronize_session=False)
        )
        chunks = (
            Drawing.query
            .filter_by(game_code=game_code, is_completed=True)
            .order_by(Drawing.id)
            .all()
        )
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise

    current_app.logger.info(f"[purge] game={game_code} incomplete_chunks_deleted={purged} completed_chunks={len(chunks)}")
    if not chunks:
        raise NotFoundError('No completed drawings found')

    groups: Dict[Tuple[str, str], List[Drawing]] = {}
    for chunk in chunks:
        groups.setdefault((chunk.player_name, chunk.player_part), []).append(chunk)

    drawings = []
    for group in groups.values():
        group.sort(key=lambda c: c.chunk_index)
        head = group[0]
        drawing = head.metadata_dict()
        drawing['is_completed'] = head.is_completed
        drawing['drawing_points'] = [
            point
            for chunk in group
            for point in (chunk.drawing_points or [])
        ]
        drawings.append(drawing)
    return drawings
