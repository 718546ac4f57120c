import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///arcade.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # JWT (HS256). Falls back to SECRET_KEY when unset.
    JWT_SECRET = os.environ.get('JWT_SECRET') or SECRET_KEY
    JWT_ACCESS_EXPIRES_MIN = int(os.environ.get('JWT_ACCESS_EXPIRES_MIN', '15'))
    JWT_REFRESH_EXPIRES_DAYS = int(os.environ.get('JWT_REFRESH_EXPIRES_DAYS', '7'))
    # Battleship board
    BATTLESHIP_BOARD_SIZE = int(os.environ.get('BATTLESHIP_BOARD_SIZE', '8'))
    BATTLESHIP_SHIP_COUNT = int(os.environ.get('BATTLESHIP_SHIP_COUNT', '15'))
    # Loteria lobby bounds (hard limits are 4..16)
    LOTERIA_MIN_PLAYERS = int(os.environ.get('LOTERIA_MIN_PLAYERS', '4'))
    LOTERIA_MAX_PLAYERS = int(os.environ.get('LOTERIA_MAX_PLAYERS', '16'))
    # Seconds the host must wait between two draws. 0 disables.
    LOTERIA_DRAW_COOLDOWN_SEC = int(os.environ.get('LOTERIA_DRAW_COOLDOWN_SEC', '2'))
    # Experience
    WIN_EXP = int(os.environ.get('WIN_EXP', '250'))
    LOSS_EXP = int(os.environ.get('LOSS_EXP', '125'))
    EXP_PER_LEVEL = int(os.environ.get('EXP_PER_LEVEL', '1000'))
