from flask import Blueprint, jsonify
from gyroplay import rooms

rooms_api = Blueprint('rooms_api', __name__)

@rooms_api.route('/<string:room_id>/state', methods=['GET'])
def get_room_state(room_id):
    """
    Returns membership and session status of a room.
    """
    room = rooms.get(room_id)
    if room is None:
        return jsonify({'error': 'Room not found'}), 404
    return jsonify(room.to_dict()), 200

@rooms_api.route('/<string:room_id>/frame', methods=['GET'])
def get_room_frame(room_id):
    """
    Returns the last committed game frame, for hosts that poll instead of listening.
    """
    room = rooms.get(room_id)
    if room is None or room.session is None:
        return jsonify({'error': 'No active session for this room'}), 404
    return jsonify(room.session.frame), 200
