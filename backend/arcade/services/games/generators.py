"""Randomized initial state for each game type. Pure functions."""
import random
from enum import IntEnum


class Cell(IntEnum):
    EMPTY = 0
    SHIP = 1
    MISS = 2
    HIT = 3


def reveal(cell):
    """State of a cell after it is attacked."""
    cell = Cell(cell)
    if cell is Cell.EMPTY:
        return Cell.MISS
    if cell is Cell.SHIP:
        return Cell.HIT
    return cell


def generate_board(size=8, ships=15, rng=random):
    """Square board with ``ships`` ship cells at distinct random positions."""
    if ships > size * size:
        raise ValueError('More ships than cells')
    board = [[int(Cell.EMPTY)] * size for _ in range(size)]
    for pos in rng.sample(range(size * size), ships):
        board[pos // size][pos % size] = int(Cell.SHIP)
    return board


def count_cells(board, cell):
    return sum(1 for row in board or [] for c in row if c == cell)


def mask_board(board):
    """Opponent view: untouched ships look like water."""
    return [[int(Cell.EMPTY) if c == Cell.SHIP else c for c in row] for row in board or []]


DEFAULT_COLORS = ['#FF0000', '#0000FF', '#00FF00', '#FFFF00', '#800080', '#FFA500']

# Traditional 54-card Mexican loteria deck
LOTERIA_CARDS = [
    'el_gallo', 'el_diablito', 'la_dama', 'el_catrin', 'el_paraguas',
    'la_sirena', 'la_escalera', 'la_botella', 'el_barril', 'el_arbol',
    'el_melon', 'el_valiente', 'el_gorrito', 'la_muerte', 'la_pera',
    'la_bandera', 'el_bandolon', 'el_violoncello', 'la_garza', 'el_pajaro',
    'la_mano', 'la_bota', 'la_luna', 'el_cotorro', 'el_borracho',
    'el_negrito', 'el_corazon', 'la_sandia', 'el_tambor', 'el_camaron',
    'las_jaras', 'el_musico', 'la_arana', 'el_soldado', 'la_estrella',
    'el_cazo', 'el_mundo', 'el_apache', 'el_nopal', 'el_alacran',
    'la_rosa', 'la_calavera', 'la_campana', 'el_cantarito', 'el_venado',
    'el_sol', 'la_corona', 'la_chalupa', 'el_pino', 'el_pescado',
    'la_palma', 'la_maceta', 'el_arpa', 'la_rana',
]

CARD_CELLS = 16


def new_deck():
    return list(LOTERIA_CARDS)


def generate_player_card(rng=random):
    """Sixteen distinct cards for a 4x4 table."""
    deck = new_deck()
    rng.shuffle(deck)
    return deck[:CARD_CELLS]


def pick_card(available, rng=random):
    return rng.choice(available)
