"""Pure operations over a project's ordered topic list.

Every function returns a new list and never mutates the topics it is given.
Structural edits (merge, insert) are followed by ``renumber`` so that
``order`` values always form 1..N.
"""

from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Optional

from scenescribe.errors import NoTopicsSelected
from scenescribe.schemas.project import Topic


def renumber(topics: Sequence[Topic]) -> list[Topic]:
    """Assign order = 1..N by current sequence position."""
    return [
        topic if topic.order == position else topic.model_copy(update={"order": position})
        for position, topic in enumerate(topics, start=1)
    ]


def upsert_topics(current: Sequence[Topic], updates: Iterable[Topic]) -> list[Topic]:
    """Merge ``updates`` into ``current`` by topic id.

    An update for a known id is shallow-merged: only the fields explicitly
    set on the update overwrite the current topic. An unknown id is
    inserted as a new topic; without an explicit order it goes last.

    The result is stably sorted by order (existing topics keep their
    relative position on ties, new topics follow). Callers must renumber.
    """
    merged: dict[str, Topic] = {topic.id: topic for topic in current}
    for update in updates:
        existing = merged.get(update.id)
        if existing is None:
            if "order" not in update.model_fields_set:
                last = max((t.order for t in merged.values()), default=0)
                update = update.model_copy(update={"order": last + 1})
            merged[update.id] = update
            continue
        changes = {field: getattr(update, field) for field in update.model_fields_set}
        merged[update.id] = existing.model_copy(update=changes)
    return sorted(merged.values(), key=lambda t: t.order)


def merge_topics(topics: Sequence[Topic], from_id: str, into_id: str) -> list[Topic]:
    """Fold topic ``from_id`` into topic ``into_id``.

    Returns the input unchanged when either id is unknown (stale client
    state is tolerated, not reported). Key points are concatenated without
    de-duplication.
    """
    source = next((t for t in topics if t.id == from_id), None)
    target = next((t for t in topics if t.id == into_id), None)
    if source is None or target is None or from_id == into_id:
        return list(topics)

    merged = target.model_copy(
        update={
            "title": target.title or source.title,
            "description": " ".join(d for d in (target.description, source.description) if d),
            "key_points": [*target.key_points, *source.key_points],
            "enabled": target.enabled and source.enabled,
            "order": min(target.order, source.order),
        }
    )
    remaining = [merged if t.id == into_id else t for t in topics if t.id != from_id]
    return renumber(sorted(remaining, key=lambda t: t.order))


def set_enabled(topics: Sequence[Topic], topic_id: str, enabled: bool) -> list[Topic]:
    return [
        t.model_copy(update={"enabled": enabled}) if t.id == topic_id else t
        for t in topics
    ]


def select_topics(
    topics: Sequence[Topic], topic_ids: Optional[Iterable[str]] = None
) -> list[Topic]:
    """Return enabled topics, restricted to ``topic_ids`` when given.

    A disabled topic is never selected, even if named in the filter.

    Raises:
        NoTopicsSelected: If nothing remains after filtering.
    """
    wanted = set(topic_ids) if topic_ids is not None else None
    selected = [
        t for t in topics
        if t.enabled and (wanted is None or t.id in wanted)
    ]
    if not selected:
        raise NoTopicsSelected()
    return selected


def apply_topic_updates(
    topics: Sequence[Topic], updates_by_id: Mapping[str, Mapping[str, Any]]
) -> list[Topic]:
    """Apply per-topic field updates by id (last write wins per id).

    Topics without an entry are returned as the same objects.
    """
    return [
        t.model_copy(update=dict(updates_by_id[t.id])) if t.id in updates_by_id else t
        for t in topics
    ]


# Written only by the script and video orchestrators
PIPELINE_MANAGED_FIELDS = frozenset({"script_status", "video_status", "media", "video_error"})


def editable_fields_only(updates: Iterable[Topic]) -> list[Topic]:
    """Drop pipeline-managed fields from caller-supplied topic updates.

    The returned updates carry only the remaining explicitly set fields, so
    ``upsert_topics`` leaves generation state untouched and new topics start
    with pending statuses.
    """
    cleaned = []
    for update in updates:
        keep = update.model_fields_set - PIPELINE_MANAGED_FIELDS
        cleaned.append(Topic.model_validate(update.model_dump(include=keep)))
    return cleaned
