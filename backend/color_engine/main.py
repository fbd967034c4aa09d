from dataclasses import asdict
from flask import Blueprint, jsonify
from color_engine import get_game_service

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Color Engine game server!'})

@main.route('/rules')
def rules():
    """Balance settings and the card catalog, for client display."""
    service = get_game_service()
    cards = [
        {
            'name': c.name,
            'color': c.color.value,
            'effect': c.effect,
            'cost': c.cost,
            'reward': c.reward,
            'icon': c.icon,
            'description': c.description,
        }
        for c in service.catalog
    ]
    return jsonify({'settings': asdict(service.settings), 'cards': cards})
