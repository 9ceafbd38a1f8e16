from flask import Blueprint, jsonify, request
from gyroplay import rooms

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the gyroplay server!'})

@main.route('/rooms/new', methods=['GET', 'POST'])
def new_room():
    """
    Hands out an unused room id and the link a phone opens to become its controller.
    The room itself only exists once the host joins it over Socket.IO.
    """
    room_id = rooms.new_room_id()
    join_link = f"{request.host_url.rstrip('/')}/controller?room={room_id}"
    return jsonify({'roomId': room_id, 'joinLink': join_link}), 201
