"""
Submission validator and writer.

Validation walks the form fields in a fixed order (class, group, rater,
ratee, score) and reports only the first offending one. A valid submission
becomes exactly one ``peer_ratings`` insert; class and group only scope the
selection and are not stored.
"""

import logging
from typing import Any, Mapping

from pydantic import ValidationError as SchemaValidationError

from peerrate.exceptions import ValidationError, WriteError
from peerrate.models.peer_rating import MAX_RATING_SCORE, MIN_RATING_SCORE
from peerrate.schemas.rating import PeerRatingOut, RatingSubmission
from peerrate.services.selector import SELECTION_FIELDS, CascadingSelector

logger = logging.getLogger(__name__)

FIELD_LABELS = {
    "class_id": "Class",
    "group_id": "Group",
    "rater_id": "Rater",
    "ratee_id": "Ratee",
    "rating_score": "Rating",
}

SELF_RATING_MESSAGE = "You cannot rate yourself."


def _message_for(field: str, error_type: str) -> str:
    if field == "rating_score":
        if error_type == "missing":
            return "Rating is required"
        if error_type == "greater_than_equal":
            return f"Rating must be at least {MIN_RATING_SCORE}"
        if error_type == "less_than_equal":
            return f"Rating cannot exceed {MAX_RATING_SCORE}"
        return "Rating must be a whole number"
    return f"{FIELD_LABELS.get(field, field)} is required"


def validate_submission(values: Mapping[str, Any]) -> RatingSubmission:
    """Validate raw form values or raise ``ValidationError`` for the first bad field."""
    data = {name: values.get(name) for name in SELECTION_FIELDS if values.get(name) is not None}
    try:
        submission = RatingSubmission.model_validate(data)
    except SchemaValidationError as e:
        first = e.errors()[0]
        field = str(first["loc"][0]) if first["loc"] else "form"
        raise ValidationError(field, _message_for(field, first["type"])) from e

    # The ratee list already hides the rater; this guards every other caller.
    if submission.rater_id == submission.ratee_id:
        raise ValidationError("ratee_id", SELF_RATING_MESSAGE)
    return submission


class SubmissionWriter:
    def __init__(self, store):
        self.store = store

    async def write(self, values: Mapping[str, Any]) -> PeerRatingOut:
        """Validate, then insert one rating. Nothing is written on a validation error."""
        submission = validate_submission(values)
        rating = await self.store.insert_rating(submission.to_record())
        logger.info(
            "Rating %s stored: %s -> %s (%s)",
            rating.rating_id,
            rating.rater_id,
            rating.ratee_id,
            rating.rating_score,
        )
        return rating

    async def submit(self, selector: CascadingSelector) -> PeerRatingOut:
        """Write the selector's form and reset it on success.

        The selector is marked as submitting while the insert is in flight,
        which disables every field. On any failure the form is left as it was.
        """
        if selector.state.submitting:
            raise WriteError("a submission is already in progress")
        selector.state.submitting = True
        try:
            rating = await self.write(selector.form_values())
        finally:
            selector.state.submitting = False
        selector.reset()
        return rating
