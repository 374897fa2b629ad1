"""Helpers shared by the CLI commands."""

import asyncio
import dataclasses
import json
from collections.abc import Coroutine, Iterator
from contextlib import contextmanager
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, TypeVar

import typer

from mneme.application.config import AppConfig, resolve_config
from mneme.domain.errors import MnemeError
from mneme.domain.review.models import RatingSubmission
from mneme.domain.scheduling.models import Rating

T = TypeVar("T")


def _resolve_with_overrides(**overrides: Any) -> AppConfig:
    """Resolve config, letting explicitly passed CLI values win."""
    try:
        return resolve_config(overrides)
    except ValueError as e:
        # pydantic.ValidationError subclasses ValueError
        typer.secho(f"Invalid configuration: {e}", fg="red", err=True)
        raise typer.Exit(1) from e


def _require_state_file(config: AppConfig) -> AppConfig:
    """Stop early when nothing would persist between CLI runs."""
    if config.backend == "memory":
        message = "The memory backend does not persist between CLI runs. Use backend 'yaml'."
    elif config.state_file is None:
        message = "No state file configured. Pass --state-file or set MNEME_STATE_FILE."
    else:
        return config
    typer.secho(message, fg="red", err=True)
    raise typer.Exit(1)


@contextmanager
def _domain_errors() -> Iterator[None]:
    """Turn domain errors into a red message and exit code 1."""
    try:
        yield
    except MnemeError as e:
        typer.secho(f"Error: {e}", fg="red", err=True)
        raise typer.Exit(1) from e


def _run(coro: Coroutine[Any, Any, T]) -> T:
    with _domain_errors():
        return asyncio.run(coro)


def _parse_ratings(pairs: list[str]) -> list[RatingSubmission]:
    """Parse CARD:RATING arguments such as `12:Good`."""
    submissions = []
    for pair in pairs:
        card_id, sep, rating = pair.partition(":")
        if not sep:
            raise typer.BadParameter(f"expected CARD:RATING, got {pair!r}")
        try:
            submissions.append(RatingSubmission(card_id=int(card_id), quality=Rating.parse(rating)))
        except ValueError as e:
            # InvalidRatingError is a ValueError too
            raise typer.BadParameter(f"{pair!r}: {e}") from e
    return submissions


def _parse_at(value: str | None) -> datetime | None:
    if value is None:
        return None
    try:
        at = datetime.fromisoformat(value)
    except ValueError as e:
        raise typer.BadParameter(f"not an ISO timestamp: {value!r}") from e
    return at if at.tzinfo else at.replace(tzinfo=timezone.utc)


def _json_default(o: Any) -> Any:
    if isinstance(o, (datetime, date)):
        return o.isoformat()
    if isinstance(o, Enum):
        return o.value
    raise TypeError(f"Object of type {type(o).__name__} is not JSON serializable")


def _echo_json(data: Any) -> None:
    if dataclasses.is_dataclass(data) and not isinstance(data, type):
        data = dataclasses.asdict(data)
    elif isinstance(data, list):
        data = [
            dataclasses.asdict(d) if dataclasses.is_dataclass(d) and not isinstance(d, type) else d
            for d in data
        ]
    typer.echo(json.dumps(data, indent=2, default=_json_default))
