from flask import Blueprint, jsonify
from gyroplay.services.games import catalogue

games = Blueprint('games', __name__)

@games.route('/', methods=['GET'])
def list_games():
    """
    Returns the games a room can switch to, in lobby order.
    """
    return jsonify(catalogue()), 200
