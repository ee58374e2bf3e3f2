from flask import Blueprint, jsonify
from sqlalchemy import text

from exquisite import db

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the exquisite corpse game server!'})

@main.route('/health')
def health():
    db.session.execute(text('SELECT 1'))
    return jsonify({'success': True, 'status': 'ok'})
