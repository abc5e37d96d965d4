"""Event-type discrimination and payload decoding."""

from __future__ import annotations

from pydantic import ValidationError

from hookrelay.webhooks.models import (
    CreateEvent,
    DeleteEvent,
    EventType,
    ForkEvent,
    GiteaPayload,
    IssueCommentEvent,
    IssuesEvent,
    PullRequestEvent,
    PushEvent,
    ReleaseEvent,
    RepositoryEvent,
    WebhookEvent,
)

# Review and PR-comment hooks carry a PullRequest payload; the sub-action
# lives inside the body.
_SCHEMAS: dict[EventType, type[GiteaPayload]] = {
    EventType.PUSH: PushEvent,
    EventType.CREATE: CreateEvent,
    EventType.DELETE: DeleteEvent,
    EventType.FORK: ForkEvent,
    EventType.ISSUES: IssuesEvent,
    EventType.ISSUE_COMMENT: IssueCommentEvent,
    EventType.REPOSITORY: RepositoryEvent,
    EventType.RELEASE: ReleaseEvent,
    EventType.PULL_REQUEST: PullRequestEvent,
    EventType.PULL_REQUEST_APPROVED: PullRequestEvent,
    EventType.PULL_REQUEST_REJECTED: PullRequestEvent,
    EventType.PULL_REQUEST_COMMENT: PullRequestEvent,
}


class DecodeError(Exception):
    """Raised when a webhook body cannot be turned into a known event."""

    def __init__(self, label: str, reason: str) -> None:
        super().__init__(f"could not decode {label!r} event: {reason}")
        self.label = label
        self.reason = reason


def parse_event_type(label: str) -> EventType:
    try:
        return EventType(label.strip())
    except ValueError:
        raise DecodeError(label, "unexpected event type") from None


def decode(label: str, body: bytes | str) -> WebhookEvent:
    """Decode a webhook body according to its declared event type.

    Raises DecodeError for unknown labels, invalid JSON, or bodies that do
    not match the schema for the label.
    """
    schema = _SCHEMAS[parse_event_type(label)]
    try:
        return schema.model_validate_json(body)  # type: ignore[return-value]
    except ValidationError as exc:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<body>'}: {err['msg']}"
            for err in exc.errors()[:5]
        )
        raise DecodeError(label, errors) from exc
