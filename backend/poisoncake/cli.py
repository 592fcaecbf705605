import click

from poisoncake.models import GameState
from poisoncake.services.rooms import rules
from poisoncake.services.rooms.errors import CakeAlreadyEaten, IgnoredIntent, RoomError
from poisoncake.services.rooms.local import LocalMatch


def _board(match: LocalMatch) -> str:
    room = match.room
    width = len(str(room.cell_count - 1))
    rows = []
    for r in range(room.grid_size):
        cells = []
        for c in range(room.grid_size):
            idx = r * room.grid_size + c
            cells.append('x'.rjust(width) if idx in room.eaten_cakes else str(idx).rjust(width))
        rows.append(' '.join(cells))
    return '\n'.join(rows)


def play_local(name: str, players: int, grid_size: int) -> None:
    try:
        match = LocalMatch(name, players, grid_size)
    except RoomError as exc:
        raise click.BadParameter(exc.message)

    while match.state == GameState.SETUP_POISON:
        seat = match.current_player
        click.clear()
        click.echo(_board(match))
        cell = click.prompt(f"{seat.name}, secretly choose your poison", type=int)
        try:
            match.choose_poison(cell)
        except IgnoredIntent:
            click.echo('No such cake.')

    while match.state == GameState.ROLL_DICE:
        seat = match.current_player
        click.clear()
        click.prompt(f"{seat.name}, press enter to roll the dice", default='', show_default=False)
        click.echo(f"{seat.name} rolled {match.roll_dice()}!")

    click.echo(f"Turn order: {' -> '.join(match.turn_order())}")
    while match.state == GameState.TURN_BASED:
        seat = match.current_player
        click.echo(_board(match))
        cell = click.prompt(f"{seat.name}, pick a cake to eat", type=int)
        try:
            result = match.eat_cake(cell)
        except CakeAlreadyEaten:
            click.echo('That cake is already gone.')
            continue
        except IgnoredIntent:
            click.echo('No such cake.')
            continue
        if result.outcome == rules.ELIMINATED:
            click.echo(f"{result.eater.name} ate their own poison and is out!")
        elif result.is_over:
            click.echo(result.message)
