"""Command-line interface for courtmix."""

import logging

import click


def _open(db_path):
    """Open the database and return (session, current event or None)."""
    from courtmix.storage import DatabaseManager, EventRepository

    db = DatabaseManager(db_path)
    db.create_tables()
    session = db.get_session()
    return session, EventRepository(session).get_current()


def _require_event(db_path):
    session, event = _open(db_path)
    if event is None:
        click.echo("[ERROR] No current event", err=True)
        click.echo("   Run 'courtmix new-event' first", err=True)
        raise click.Abort()
    return session, event


@click.group()
@click.version_option(version="0.1.0")
@click.option("--db", "db_path", default=None, envvar="COURTMIX_DB", help="Path to SQLite database")
@click.option("-v", "--verbose", is_flag=True, help="Show engine debug logging")
@click.pass_context
def cli(ctx, db_path: str, verbose: bool):
    """courtmix - doubles round generator for club sessions."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = db_path


@cli.command()
@click.option("--name", required=True, help="Event name")
@click.option("--courts", type=click.IntRange(1, 6), default=None, help="Courts available (1-6)")
@click.option("--mode", default=None, help="random, throne, upDownRiver, gauntlet or cream")
@click.option("--config", required=False, help="Path to config YAML file")
@click.pass_context
def new_event(ctx, name: str, courts: int, mode: str, config: str):
    """Create an event and make it current.

    Example:
        courtmix new-event --name "Tuesday night" --courts 3 --mode throne
    """
    from courtmix.config_loader import ConfigError, load_and_validate_config, validate_config
    from courtmix.storage import EventRepository

    try:
        cfg = load_and_validate_config(config) if config else validate_config({})
        if courts is not None:
            cfg["courts"] = courts
        if mode is not None:
            cfg = validate_config({**cfg, "mode": mode})

        db_path = ctx.obj["db_path"] or cfg["database"]
        ctx.obj["db_path"] = db_path
        session, _ = _open(db_path)
        event_repo = EventRepository(session)

        if event_repo.get_by_name(name):
            click.echo(f"[ERROR] Event '{name}' already exists", err=True)
            raise click.Abort()

        event = event_repo.create(name, courts=cfg["courts"], mode=cfg["mode"])
        click.echo(f"[SUCCESS] Created event '{event.name}' ({event.courts} courts, {event.mode})")

    except ConfigError as e:
        click.echo(f"[ERROR] Configuration Error: {e}", err=True)
        raise click.Abort()


@cli.command()
@click.argument("name")
@click.pass_context
def add_player(ctx, name: str):
    """Add a player to the current event."""
    from courtmix.models import Player
    from courtmix.roster import player_id_from_name
    from courtmix.storage import PlayerRepository

    session, event = _require_event(ctx.obj["db_path"])
    name = name.strip()
    if not name:
        click.echo("[ERROR] Player name cannot be empty", err=True)
        raise click.Abort()

    try:
        PlayerRepository(session).add(event.id, Player(id=player_id_from_name(name), name=name))
    except ValueError as e:
        click.echo(f"[WARNING] {e}")
        return
    click.echo(f"[SUCCESS] Added {name}")


@cli.command()
@click.option("--csv", "csv_path", required=True, help="Path to roster CSV file (column: name, optional id)")
@click.pass_context
def import_players(ctx, csv_path: str):
    """Import a roster from CSV into the current event.

    Example:
        courtmix import-players --csv roster.csv
    """
    from courtmix.io_csv import CSVImportError, import_players_csv
    from courtmix.storage import PlayerRepository

    session, event = _require_event(ctx.obj["db_path"])
    player_repo = PlayerRepository(session)

    try:
        click.echo(f"[INFO] Reading CSV file: {csv_path}")
        players = import_players_csv(csv_path)
    except CSVImportError as e:
        click.echo(f"[ERROR] CSV Import Error: {e}", err=True)
        raise click.Abort()

    imported_count = 0
    for player in players:
        try:
            player_repo.add(event.id, player)
            imported_count += 1
        except ValueError as e:
            click.echo(f"[WARNING] {e}")

    click.echo(f"[SUCCESS] Imported {imported_count} players")


def _set_active(ctx, name: str, active: bool):
    from courtmix.roster import player_id_from_name
    from courtmix.storage import PlayerRepository

    session, event = _require_event(ctx.obj["db_path"])
    player_repo = PlayerRepository(session)
    key = name.strip() if player_repo.get_by_key(event.id, name.strip()) else player_id_from_name(name)
    if not player_repo.set_active(event.id, key, active):
        click.echo(f"[ERROR] Unknown player: {name}", err=True)
        raise click.Abort()
    click.echo(f"[SUCCESS] {name} {'is back in the rotation' if active else 'dropped from the rotation'}")


@cli.command()
@click.argument("name")
@click.pass_context
def drop_player(ctx, name: str):
    """Take a player out of the rotation (keeps their history)."""
    _set_active(ctx, name, False)


@cli.command()
@click.argument("name")
@click.pass_context
def restore_player(ctx, name: str):
    """Put a dropped player back into the rotation."""
    _set_active(ctx, name, True)


@cli.command()
@click.argument("name")
@click.pass_context
def remove_player(ctx, name: str):
    """Remove a player from the roster."""
    from courtmix.roster import player_id_from_name
    from courtmix.storage import PlayerRepository

    session, event = _require_event(ctx.obj["db_path"])
    player_repo = PlayerRepository(session)
    if not (player_repo.delete(event.id, name.strip()) or player_repo.delete(event.id, player_id_from_name(name))):
        click.echo(f"[ERROR] Unknown player: {name}", err=True)
        raise click.Abort()
    click.echo(f"[SUCCESS] Removed {name}")


@cli.command()
@click.pass_context
def players(ctx):
    """List the roster of the current event."""
    from courtmix.storage import PlayerRepository

    session, event = _require_event(ctx.obj["db_path"])
    roster = PlayerRepository(session).get_all(event.id)
    if not roster:
        click.echo("No players yet.")
        return
    for player in roster:
        click.echo(f"  {player.name:<24} {'active' if player.is_active else 'inactive'}")


@cli.command()
@click.option("--courts", type=click.IntRange(1, 6), default=None, help="Override courts for this round")
@click.option("--max-retries", type=click.IntRange(min=1), default=None, help="Attempts per pairing search")
@click.option("--seed", type=int, default=None, help="Random seed for a reproducible round")
@click.option("--config", required=False, help="Path to config YAML file")
@click.pass_context
def next_round(ctx, courts: int, max_retries: int, seed: int, config: str):
    """Generate the next round for the active players.

    Example:
        courtmix next-round --courts 2
    """
    from courtmix.config_loader import ConfigError, load_config, validate_config
    from courtmix.engine import generate_round
    from courtmix.storage import EventRepository, PlayerRepository

    try:
        raw = load_config(config) if config else {}
        # Only keys set in the file override the event
        cfg = {key: value for key, value in validate_config(raw).items() if key in raw}
    except ConfigError as e:
        click.echo(f"[ERROR] Configuration Error: {e}", err=True)
        raise click.Abort()

    session, event = _require_event(ctx.obj["db_path"] or cfg.get("database"))
    event_repo = EventRepository(session)
    active = [p.to_player() for p in PlayerRepository(session).get_active(event.id)]

    if len(active) < 4:
        click.echo("[ERROR] Need at least 4 active players", err=True)
        raise click.Abort()

    result = generate_round(
        active,
        courts or cfg.get("courts") or event.courts,
        event_repo.load_state(event),
        mode=event.mode,
        max_retries=max_retries or cfg.get("max_retries") or 800,
        seed=seed if seed is not None else cfg.get("random_seed"),
    )

    if result.impossible:
        click.echo(f"[ERROR] Could not generate round: {result.reason}", err=True)
        raise click.Abort()

    event_repo.save_state(event, result.state)

    click.echo(f"[INFO] Round {result.round} - Players {result.players_total} - Courts {result.court_count}")
    for assignment in result.assignments:
        click.echo(f"  Court {assignment.court}: {assignment.team1}  vs  {assignment.team2}")

    if result.bye_players:
        click.echo(f"  Byes: {', '.join(p.name for p in result.bye_players)}")
    else:
        click.echo("  No byes this round.")

    diagnostics = result.diagnostics
    if "repeat_partnerships_used" in diagnostics:
        click.echo(
            f"  Repeat partners used: {diagnostics['repeat_partnerships_used']} - "
            f"Repeat matchups used: {diagnostics['repeat_matchups_used']}"
        )
    if diagnostics.get("message"):
        click.echo(f"  {diagnostics['message']}")


def _parse_result(value: str) -> tuple[int, int]:
    court, sep, winner = value.partition(":")
    if not sep:
        raise click.BadParameter(f"expected COURT:WINNER, got '{value}'")
    try:
        return int(court), int(winner)
    except ValueError:
        raise click.BadParameter(f"expected COURT:WINNER, got '{value}'")


@cli.command()
@click.option("--result", "results", multiple=True, required=True, help="COURT:WINNER, e.g. 1:2 (repeatable)")
@click.pass_context
def record(ctx, results):
    """Record the winners of the last round and update ladders/ratings.

    Example:
        courtmix record --result 1:1 --result 2:2
    """
    from courtmix.engine import apply_results
    from courtmix.models import Assignment, MatchDecision
    from courtmix.storage import EventRepository, ResultRepository
    from courtmix.validation import ValidationError, require_valid_decisions

    session, event = _require_event(ctx.obj["db_path"])
    event_repo = EventRepository(session)
    result_repo = ResultRepository(session)

    state = event_repo.load_state(event)
    if state is None or not state.last_round:
        click.echo("[ERROR] No round has been generated yet", err=True)
        raise click.Abort()

    if result_repo.get_by_round(event.id, state.round):
        click.echo(f"[ERROR] Results for round {state.round} were already recorded", err=True)
        raise click.Abort()

    assignments = [Assignment.from_dict(a) for a in state.last_round["assignments"]]
    by_court = {a.court: a for a in assignments}

    decisions = []
    for value in results:
        court, winner = _parse_result(value)
        if court not in by_court:
            click.echo(f"[ERROR] Court {court} was not played this round", err=True)
            raise click.Abort()
        decisions.append(MatchDecision.from_assignment(by_court[court], winner))

    try:
        require_valid_decisions(decisions, assignments)
    except ValidationError as e:
        click.echo(f"[ERROR] {e}", err=True)
        raise click.Abort()

    for decision in decisions:
        result_repo.record(event.id, state.round, decision)

    apply_results(state, decisions)
    event_repo.save_state(event, state)
    click.echo(f"[SUCCESS] Recorded {len(decisions)} results for round {state.round}")


@cli.command()
@click.pass_context
def standings(ctx):
    """Show the win/loss leaderboard."""
    from courtmix.standings import build_scoreboard, calculate_leaderboard
    from courtmix.storage import PlayerRepository, ResultRepository

    session, event = _require_event(ctx.obj["db_path"])
    names = {p.player_key: p.name for p in PlayerRepository(session).get_all(event.id)}
    decisions = [r.to_decision() for r in ResultRepository(session).get_all(event.id)]
    if not decisions:
        click.echo("No results yet.")
        return

    rows = calculate_leaderboard(build_scoreboard(decisions), names)

    click.echo(f"{'#':>3}  {'Player':<24} {'W':>3} {'L':>3} {'Games':>5} {'Win%':>5}")
    for row in rows:
        click.echo(
            f"{row.position:>3}  {row.name:<24} {row.wins:>3} {row.losses:>3} "
            f"{row.games:>5} {row.win_pct * 100:>4.0f}%"
        )


@cli.command()
@click.option("--out", required=True, help="Output CSV path")
@click.pass_context
def export_round(ctx, out: str):
    """Export the last round's court sheet to CSV."""
    from courtmix.io_csv import export_round_csv
    from courtmix.models import Assignment
    from courtmix.storage import EventRepository

    session, event = _require_event(ctx.obj["db_path"])
    state = EventRepository(session).load_state(event)
    if state is None or not state.last_round:
        click.echo("[ERROR] No round has been generated yet", err=True)
        raise click.Abort()

    export_round_csv([Assignment.from_dict(a) for a in state.last_round["assignments"]], out)
    click.echo(f"[SUCCESS] Round {state.round} exported to {out}")


@cli.command()
@click.confirmation_option(prompt="Reset event state (histories + scores)?")
@click.pass_context
def reset(ctx):
    """Forget histories, ranks, ratings and results (keeps the roster)."""
    from courtmix.storage import EventRepository, ResultRepository

    session, event = _require_event(ctx.obj["db_path"])
    deleted = ResultRepository(session).delete_by_event(event.id)
    EventRepository(session).reset_state(event)
    click.echo(f"[SUCCESS] Event state reset ({deleted} results deleted)")


if __name__ == "__main__":
    cli()
