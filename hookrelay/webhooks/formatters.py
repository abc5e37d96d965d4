"""Render decoded webhook events as chat notifications.

Every formatter returns a RenderedNotification. An empty ``text`` means the
event is intentionally not announced (empty pushes, unhandled actions).
"""

from __future__ import annotations

from hookrelay.webhooks.models import (
    Commit,
    CreateEvent,
    DeleteEvent,
    ForkEvent,
    IssueCommentEvent,
    IssuesEvent,
    PullRequestEvent,
    PushEvent,
    ReleaseEvent,
    RenderedNotification,
    RepositoryEvent,
    User,
    WebhookEvent,
)
from hookrelay.utils.logging import get_logger

log = get_logger(__name__)

COMMIT_LINE_LIMIT = 50

_DETAILED_ACTIONS = frozenset({"opened", "closed", "reopened", "edited"})


def ref_to_branch(ref: str) -> str:
    """Convert a ref like "refs/heads/main" to a branch like "main"."""
    return "/".join(ref.split("/")[2:])


def first_line(message: str, limit: int = COMMIT_LINE_LIMIT) -> str:
    line = message.split("\n", 1)[0]
    if len(line) > limit:
        line = line[:limit].strip() + "..."
    return line


def _name(user: User | None) -> str:
    return user.display_name if user is not None else ""


# ---------------------------------------------------------------------------
# Per-event formatters
# ---------------------------------------------------------------------------

def format_push(event: PushEvent) -> RenderedNotification:
    # Gitea sends a push with no commits when a release is created
    if not event.commits:
        return RenderedNotification()

    repo = event.repository.full_name
    count = len(event.commits)
    plural = "" if count == 1 else "s"
    lines = [
        f"{_name(event.pusher) or _name(event.sender)} pushed {count} commit{plural} "
        f"to {repo} {ref_to_branch(event.ref)}:"
    ]
    lines.extend(f"- {first_line(commit.message)}" for commit in event.commits)
    last: Commit = event.commits[-1]
    text = "\n".join(lines) + f"\n\n{last.url}"
    return RenderedNotification(text, repo, event.secret)


def format_create(event: CreateEvent) -> RenderedNotification:
    repo = event.repository.full_name
    text = f"Created new {event.ref_type} {event.ref} in repo {repo}"
    return RenderedNotification(text, repo, event.secret)


def format_delete(event: DeleteEvent) -> RenderedNotification:
    repo = event.repository.full_name
    text = f"Deleted {event.ref_type} {event.ref} in repo {repo}"
    return RenderedNotification(text, repo, event.secret)


def format_fork(event: ForkEvent) -> RenderedNotification:
    original = event.forkee.full_name
    text = f"{original} has been forked to {event.repository.full_name}"
    # Subscribers follow the original repository, so its token authenticates
    return RenderedNotification(text, original, event.secret)


def format_issue(event: IssuesEvent) -> RenderedNotification:
    action = event.action
    actor = _name(event.sender)
    issue = event.issue
    repo = event.repository.full_name

    if action in _DETAILED_ACTIONS:
        text = f'{actor} {action} issue "{issue.title}" (#{issue.number}) on {repo}: {issue.link}'
    elif action == "assigned":
        text = (
            f'{actor} {action} issue "{issue.title}" (#{issue.number}) on {repo} '
            f"to {_name(issue.assignee)}: {issue.link}"
        )
    else:
        text = f"{actor} {action} issue #{issue.number}"
    return RenderedNotification(text, repo, event.secret)


def format_issue_comment(event: IssueCommentEvent) -> RenderedNotification:
    actor = _name(event.comment.user) or _name(event.sender)
    issue = event.issue
    repo = event.repository.full_name
    kind = "PR" if event.is_pull else "issue"
    subject = f'{kind} "{issue.title}" (#{issue.number}) on {repo}'
    body = event.comment.body

    if event.action == "created":
        text = f"{actor} commented on {subject}:\n{body}\n{event.comment.html_url}"
    elif event.action == "deleted":
        # The comment URL no longer resolves
        text = f"{actor} deleted their comment on {subject}:\n{body}"
    elif event.action == "edited":
        text = f"{actor} edited their comment on {subject}:\n{body}\n{event.comment.html_url}"
    else:
        text = ""
    return RenderedNotification(text, repo, event.secret)


def format_repository(event: RepositoryEvent) -> RenderedNotification:
    repo = event.repository.full_name
    if event.action not in ("created", "deleted"):
        return RenderedNotification("", repo, event.secret)
    text = f"{_name(event.sender)} {event.action} repository {repo}"
    return RenderedNotification(text, repo, event.secret)


def format_release(event: ReleaseEvent) -> RenderedNotification:
    actor = _name(event.sender)
    release = event.release
    repo = event.repository.full_name
    summary = f'{actor} {event.action} release "{release.name}" ({release.tag_name}) in {repo}'

    if event.action in ("published", "updated"):
        text = f"{summary}: {release.link}"
    elif event.action == "deleted":
        text = summary
    else:
        text = ""
    return RenderedNotification(text, repo, event.secret)


def format_pull_request(event: PullRequestEvent) -> RenderedNotification:
    action = event.action
    actor = _name(event.sender)
    pr = event.pull_request
    repo = event.repository.full_name

    if action in _DETAILED_ACTIONS:
        head_repo = pr.head.repo.full_name if pr.head.repo is not None else repo
        source = f"{head_repo}/{pr.head.branch}"
        text = (
            f'{actor} {action} PR "{pr.title}" (#{pr.number}) on {repo} '
            f"from source {source}: {pr.link}"
        )
    elif action == "assigned":
        text = (
            f'{actor} {action} PR "{pr.title}" (#{pr.number}) on {repo} '
            f"to {_name(pr.assignee)}: {pr.link}"
        )
    else:
        text = f"{actor} {action} PR #{pr.number}"
    return RenderedNotification(text, repo, event.secret)


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

def format_event(event: WebhookEvent) -> RenderedNotification:
    """Render any decoded event. Never raises."""
    if isinstance(event, PushEvent):
        return format_push(event)
    if isinstance(event, CreateEvent):
        return format_create(event)
    if isinstance(event, DeleteEvent):
        return format_delete(event)
    if isinstance(event, ForkEvent):
        return format_fork(event)
    if isinstance(event, IssuesEvent):
        return format_issue(event)
    if isinstance(event, IssueCommentEvent):
        return format_issue_comment(event)
    if isinstance(event, RepositoryEvent):
        return format_repository(event)
    if isinstance(event, ReleaseEvent):
        return format_release(event)
    if isinstance(event, PullRequestEvent):
        return format_pull_request(event)

    log.warning("formatter_unknown_event", event_class=type(event).__name__)
    return RenderedNotification()
