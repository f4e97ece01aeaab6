"""
Recap reducer: latest rating per (rater, ratee) pair, grouped for display.

The reduction is pure: it works on rows that were already fetched and can be
run any number of times on the same input with the same result.
"""

from typing import Dict, Iterable, List, Tuple

from peerrate.schemas.recap import GroupInfo, RawRatingRow, RecapRow

NO_GROUP = GroupInfo(group_id="N/A", group_name="N/A")


def latest_per_pair(rows: Iterable[RawRatingRow]) -> List[RawRatingRow]:
    """Keep the newest row for every (rater_id, ratee_id).

    Rows are visited in the order given. On equal ``created_at`` the row seen
    later wins, so callers should pass rows in insertion order.
    """
    latest: Dict[Tuple[str, str], RawRatingRow] = {}
    for row in rows:
        key = (row.rater_id, row.ratee_id)
        existing = latest.get(key)
        if existing is None or row.created_at >= existing.created_at:
            latest[key] = row
    return list(latest.values())


def display_group(row: RawRatingRow) -> GroupInfo:
    """Ratee's current group, else the rater's, else the N/A sentinel."""
    return row.ratee.group or row.rater.group or NO_GROUP


def flatten(row: RawRatingRow) -> RecapRow:
    group = display_group(row)
    return RecapRow(
        group_id=group.group_id,
        group_name=group.group_name,
        ratee_id=row.ratee.nrp,
        ratee_name=row.ratee.full_name,
        rater_id=row.rater.nrp,
        rater_name=row.rater.full_name,
        rating_score=row.rating_score,
        rating_comment=row.rating_comment,
        created_at=row.created_at,
    )


def build_recap(rows: Iterable[RawRatingRow]) -> List[RecapRow]:
    """Deduplicate, flatten and sort by group_id then ratee_id."""
    recap = [flatten(row) for row in latest_per_pair(rows)]
    # list.sort is stable: pairs sharing group and ratee keep first-seen order.
    recap.sort(key=lambda r: (r.group_id, r.ratee_id))
    return recap


async def load_recap(store) -> List[RecapRow]:
    """Fetch every rating from the store and reduce it. ``FetchError`` propagates."""
    return build_recap(await store.list_ratings_with_joins())
