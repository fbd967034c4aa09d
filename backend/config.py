import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', 'http://localhost:5173,http://127.0.0.1:5173').split(',')
    # Card catalog (JSON array). Empty uses the bundled color_engine/data/cards.json
    CARD_CATALOG_PATH = os.environ.get('CARD_CATALOG_PATH', '')
    # Game balance
    START_COINS_MIN = int(os.environ.get('START_COINS_MIN', '5'))
    START_COINS_MAX = int(os.environ.get('START_COINS_MAX', '10'))
    WIN_TARGET = int(os.environ.get('WIN_TARGET', '100'))
    DAILY_INCOME = int(os.environ.get('DAILY_INCOME', '1'))
    DECK_SIZE = int(os.environ.get('DECK_SIZE', '100'))
    # Market holds this many cards after each round; {players_count} is substituted
    MARKET_SIZE_FORMULA = os.environ.get('MARKET_SIZE_FORMULA', '{players_count} + 1')
    # Player limits (hard cap 2-4)
    MIN_PLAYERS = int(os.environ.get('MIN_PLAYERS', '2'))
    MAX_PLAYERS = int(os.environ.get('MAX_PLAYERS', '4'))
