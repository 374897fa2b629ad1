"""mneme CLI: review, queue, stats and config commands."""

import json
import logging
import sys
from pathlib import Path
from typing import Annotated

import typer

from mneme.application.config import resolve_config
from mneme.application.factory import build_review_service, build_stats_service
from mneme.domain import constants
from mneme.interface._common import (
    _domain_errors,
    _echo_json,
    _parse_at,
    _parse_ratings,
    _require_state_file,
    _resolve_with_overrides,
    _run,
)

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="mneme: spaced-repetition scheduler for flashcards.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Subgroups
# ---------------------------------------------------------------------------

review_app = typer.Typer(help="Submit ratings for cards.", no_args_is_help=True)
app.add_typer(review_app, name="review")

config_app = typer.Typer(help="Manage mneme configuration.")
app.add_typer(config_app, name="config")

StateFile = Annotated[
    Path | None,
    typer.Option("--state-file", help="YAML state file. Defaults to 'state_file' in config."),
]
Pairs = Annotated[list[str], typer.Argument(help="CARD:RATING pairs, e.g. 12:Good 13:Again.")]
At = Annotated[
    str | None, typer.Option("--at", help="ISO review time (UTC if no offset). Defaults to now.")
]


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
):
    """Global settings for mneme."""
    levels = {0: logging.WARNING, 1: logging.INFO}
    logging.getLogger().setLevel(levels.get(verbose, logging.DEBUG))


def _service(state_file: Path | None):
    config = _require_state_file(_resolve_with_overrides(state_file=state_file))
    with _domain_errors():
        return build_review_service(config)


# ---------------------------------------------------------------------------
# Review subgroup
# ---------------------------------------------------------------------------


@review_app.command("submit")
def review_submit(
    pairs: Pairs,
    at: At = None,
    state_file: StateFile = None,
):
    """[bold green]Rate[/bold green] cards and reschedule them."""
    ratings = _parse_ratings(pairs)
    service = _service(state_file)
    _echo_json(_run(service.submit_reviews(ratings, reviewed_at=_parse_at(at))))


@review_app.command("cram")
def review_cram(
    pairs: Pairs,
    at: At = None,
    state_file: StateFile = None,
):
    """Record practice ratings without changing any schedule."""
    ratings = _parse_ratings(pairs)
    service = _service(state_file)
    _echo_json(_run(service.submit_cram_reviews(ratings, reviewed_at=_parse_at(at))))


# ---------------------------------------------------------------------------
# Queue and history commands
# ---------------------------------------------------------------------------


@app.command("due")
def due(
    deck: Annotated[int, typer.Argument(help="Deck id.")],
    limit: Annotated[int | None, typer.Option(help="Maximum number of cards.")] = None,
    state_file: StateFile = None,
):
    """List cards of a deck that are due now (new cards first)."""
    service = _service(state_file)
    _echo_json(_run(service.get_due_reviews(deck, limit=limit)))


@app.command("cram-cards")
def cram_cards(
    deck: Annotated[int, typer.Argument(help="Deck id.")],
    limit: Annotated[int, typer.Option(help="Maximum number of cards.")] = (
        constants.DEFAULT_CRAM_LIMIT
    ),
    state_file: StateFile = None,
):
    """Random cards of a deck for a cram session, regardless of due date."""
    service = _service(state_file)
    _echo_json(_run(service.get_cram_cards(deck, limit=limit)))


@app.command("preview")
def preview(
    card: Annotated[int, typer.Argument(help="Card id.")],
    state_file: StateFile = None,
):
    """Show the interval each rating would give a card."""
    service = _service(state_file)
    _echo_json(_run(service.get_review_preview(card)))


@app.command("status")
def status(
    card: Annotated[int, typer.Argument(help="Card id.")],
    state_file: StateFile = None,
):
    """Show when a card was last reviewed and when it is due."""
    service = _service(state_file)
    _echo_json(_run(service.get_review_status(card)))


@app.command("streak")
def streak(
    deck: Annotated[int, typer.Argument(help="Deck id.")],
    state_file: StateFile = None,
):
    """Show the current consecutive-day study streak of a deck."""
    service = _service(state_file)
    _echo_json(_run(service.get_consecutive_study_days(deck)))


@app.command("stats")
def stats(
    deck: Annotated[int, typer.Argument(help="Deck id.")],
    state_file: StateFile = None,
):
    """Show rating counts and correctness for a deck."""
    config = _require_state_file(_resolve_with_overrides(state_file=state_file))
    with _domain_errors():
        service = build_stats_service(config)
    _echo_json(_run(service.get_deck_statistics(deck)))


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))


if __name__ == "__main__":
    app()
