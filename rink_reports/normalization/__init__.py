"""Event normalization: the single boundary where legacy field spellings are mapped.

Scorekeeper clients have written goals and penalties under several schema
versions (``teamName`` vs ``scoringTeam``, ``time`` vs ``timeRemaining``,
``assistedBy`` vs ``assistId`` ...). Everything past this module sees only the
canonical GoalEvent / PenaltyEvent shape.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Mapping

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ..exceptions import ValidationError
from ..models import GameEvent, GoalEvent, MalformedEvent, PenaltyEvent
from ..utils.datetime_utils import ensure_utc
from ..utils.parsing import parse_whole_number

# Canonical field -> accepted spellings, first non-empty value wins
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "event_id": ("event_id", "eventId", "id"),
    "game_id": ("game_id", "gameId"),
    "team_name": ("team_name", "teamName", "scoringTeam", "scoringTeamId", "penalizedTeam", "team"),
    "player_name": ("player_name", "playerName", "scorer", "scorerId", "penalizedPlayer", "player"),
    "period": ("period",),
    "clock": ("clock", "time", "timeRemaining", "goalTime"),
    "recorded_at": ("recorded_at", "recordedAt", "timestampRecorded", "timestamp", "absoluteTimestamp"),
    "penalty_type": ("penalty_type", "penaltyType", "infraction"),
    "duration_minutes": ("duration_minutes", "penaltyLength", "length", "duration"),
    "goal_type": ("goal_type", "goalType"),
    "shot_type": ("shot_type", "shotType"),
    "breakaway": ("breakaway",),
}
ASSIST_ALIASES = ("assists", "assistedBy", "assistId", "assist")
KIND_ALIASES = ("kind", "eventType", "event_type", "type")
# Older clients sent numeric ids where names are now expected
_TEXT_FIELDS = ("event_id", "game_id", "team_name", "player_name", "penalty_type")
NOT_AN_OBJECT = "payload is not an object"

_EVENT_ADAPTER: TypeAdapter[GameEvent] = TypeAdapter(GameEvent)
_DATETIME_ADAPTER: TypeAdapter[datetime] = TypeAdapter(datetime)


def normalize_team_name(value: Any) -> str | None:
    """Collapse whitespace in a team or player name. Returns None when empty."""
    if value is None:
        return None
    collapsed = " ".join(str(value).split())
    return collapsed or None


def _first_present(raw: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def _infer_kind(raw: Mapping[str, Any]) -> str | None:
    declared = _first_present(raw, KIND_ALIASES)
    if declared is not None:
        lowered = str(declared).strip().lower()
        if lowered in ("goal", "penalty"):
            return lowered
        return None
    if _first_present(raw, FIELD_ALIASES["penalty_type"]) is not None:
        return "penalty"
    if _first_present(raw, FIELD_ALIASES["duration_minutes"]) is not None:
        return "penalty"
    return "goal"


def _collect_assists(raw: Mapping[str, Any]) -> list[str]:
    value = _first_present(raw, ASSIST_ALIASES)
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [str(name) for name in value if name]
    return [str(value)]


def canonical_fields(raw: Mapping[str, Any], game_id: str | None = None) -> dict[str, Any]:
    """Map a raw payload onto canonical field names without validating values."""
    fields: dict[str, Any] = {}
    for canonical, aliases in FIELD_ALIASES.items():
        value = _first_present(raw, aliases)
        if value is not None:
            fields[canonical] = value
    for text_field in _TEXT_FIELDS:
        if text_field in fields and not isinstance(fields[text_field], str):
            fields[text_field] = str(fields[text_field])
    if game_id is not None and "game_id" not in fields:
        fields["game_id"] = game_id
    kind = _infer_kind(raw)
    if kind is not None:
        fields["kind"] = kind
    if kind == "goal":
        fields["assists"] = _collect_assists(raw)
        fields.pop("penalty_type", None)
        fields.pop("duration_minutes", None)
    elif kind == "penalty":
        for goal_only in ("goal_type", "shot_type", "breakaway"):
            fields.pop(goal_only, None)
    return fields


def _format_errors(exc: PydanticValidationError) -> list[str]:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part not in ("goal", "penalty"))
        message = error.get("msg", "invalid value")
        messages.append(f"{location}: {message}" if location else message)
    return messages


def normalize_event(raw: Mapping[str, Any] | GoalEvent | PenaltyEvent, game_id: str | None = None) -> GoalEvent | PenaltyEvent:
    """Convert one raw payload into a canonical event.

    Raises:
        ValidationError: with the recoverable kind/team/player attached.
    """
    if isinstance(raw, (GoalEvent, PenaltyEvent)):
        return raw
    if not isinstance(raw, Mapping):
        raise ValidationError([NOT_AN_OBJECT])

    fields = canonical_fields(raw, game_id)
    kind = fields.get("kind")
    team_name = normalize_team_name(fields.get("team_name"))
    player_name = normalize_team_name(fields.get("player_name"))

    if kind is None:
        raise ValidationError(
            ["kind: event type must be goal or penalty"],
            team_name=team_name,
            player_name=player_name,
        )

    try:
        return _EVENT_ADAPTER.validate_python(fields)
    except PydanticValidationError as exc:
        raise ValidationError(
            _format_errors(exc),
            kind=kind,
            team_name=team_name,
            player_name=player_name,
        ) from exc


def _recover_datetime(value: Any) -> datetime | None:
    if value is None:
        return None
    try:
        return ensure_utc(_DATETIME_ADAPTER.validate_python(value))
    except PydanticValidationError:
        return None


def to_malformed(raw: Any, error: ValidationError, game_id: str | None = None) -> MalformedEvent:
    """Build the MalformedEvent kept in place of a payload that failed validation."""
    if not isinstance(raw, Mapping):
        # Stored row is null, a list or a bare string
        return MalformedEvent(game_id=game_id, errors=error.errors, raw={})

    fields = canonical_fields(raw, game_id)
    recovered_game_id = fields.get("game_id")
    return MalformedEvent(
        kind=error.kind,
        game_id=str(recovered_game_id) if recovered_game_id is not None else None,
        team_name=error.team_name,
        player_name=error.player_name,
        duration_minutes=parse_whole_number(fields.get("duration_minutes")) if error.kind == "penalty" else None,
        recorded_at=_recover_datetime(fields.get("recorded_at")),
        errors=error.errors,
        raw=dict(raw),
    )


def normalize_events(
    raws: Iterable[Mapping[str, Any] | GoalEvent | PenaltyEvent | MalformedEvent],
    game_id: str | None = None,
) -> list[GoalEvent | PenaltyEvent | MalformedEvent]:
    """Normalize a whole log, keeping failures in place as MalformedEvent."""
    events: list[GoalEvent | PenaltyEvent | MalformedEvent] = []
    for raw in raws:
        if isinstance(raw, (GoalEvent, PenaltyEvent, MalformedEvent)):
            events.append(raw)
            continue
        try:
            events.append(normalize_event(raw, game_id))
        except ValidationError as exc:
            events.append(to_malformed(raw, exc, game_id))
    return events


__all__ = [
    "FIELD_ALIASES",
    "canonical_fields",
    "normalize_event",
    "normalize_events",
    "normalize_team_name",
    "to_malformed",
]
