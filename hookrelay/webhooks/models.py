"""Gitea webhook payload models.

Field names follow the JSON emitted by Gitea (modules/structs/hook.go).
Only the fields needed to render notifications are modelled; anything else
in the payload is ignored.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from pydantic import BaseModel, ConfigDict


class EventType(str, Enum):
    CREATE = "create"
    DELETE = "delete"
    FORK = "fork"
    PUSH = "push"
    ISSUES = "issues"
    ISSUE_COMMENT = "issue_comment"
    REPOSITORY = "repository"
    RELEASE = "release"
    PULL_REQUEST = "pull_request"
    PULL_REQUEST_APPROVED = "pull_request_approved"
    PULL_REQUEST_REJECTED = "pull_request_rejected"
    PULL_REQUEST_COMMENT = "pull_request_comment"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Shared building blocks
# ---------------------------------------------------------------------------

class User(_Frozen):
    login: str = ""
    username: str = ""
    full_name: str = ""

    @property
    def display_name(self) -> str:
        """Display name, falling back to the account handle."""
        return self.full_name or self.login or self.username


class Repository(_Frozen):
    full_name: str
    html_url: str = ""


class Commit(_Frozen):
    id: str = ""
    message: str = ""
    url: str = ""


class Issue(_Frozen):
    number: int
    title: str = ""
    url: str = ""
    html_url: str = ""
    user: User = User()
    assignee: User | None = None

    @property
    def link(self) -> str:
        return self.html_url or self.url


class Comment(_Frozen):
    body: str = ""
    html_url: str = ""
    user: User = User()


class Release(_Frozen):
    tag_name: str = ""
    name: str = ""
    url: str = ""
    html_url: str = ""
    tarball_url: str = ""

    @property
    def link(self) -> str:
        return self.html_url or self.tarball_url or self.url


class BranchInfo(_Frozen):
    label: str = ""
    ref: str = ""
    repo: Repository | None = None

    @property
    def branch(self) -> str:
        return self.label or self.ref


class PullRequest(_Frozen):
    number: int
    title: str = ""
    url: str = ""
    html_url: str = ""
    user: User = User()
    assignee: User | None = None
    head: BranchInfo = BranchInfo()

    @property
    def link(self) -> str:
        return self.html_url or self.url


# ---------------------------------------------------------------------------
# Event variants
# ---------------------------------------------------------------------------

class GiteaPayload(_Frozen):
    # Token Gitea echoes back from the hook's "Secret" field
    secret: str = ""
    sender: User = User()


class PushEvent(GiteaPayload):
    ref: str
    repository: Repository
    pusher: User = User()
    commits: tuple[Commit, ...] = ()


class CreateEvent(GiteaPayload):
    ref: str
    ref_type: str
    repository: Repository


class DeleteEvent(GiteaPayload):
    ref: str
    ref_type: str
    repository: Repository


class ForkEvent(GiteaPayload):
    # forkee is the repository that was forked, repository is the new fork
    forkee: Repository
    repository: Repository


class IssuesEvent(GiteaPayload):
    action: str
    issue: Issue
    repository: Repository


class IssueCommentEvent(GiteaPayload):
    action: str
    issue: Issue
    comment: Comment
    repository: Repository
    is_pull: bool = False


class RepositoryEvent(GiteaPayload):
    action: str
    repository: Repository


class ReleaseEvent(GiteaPayload):
    action: str
    release: Release
    repository: Repository


class PullRequestEvent(GiteaPayload):
    action: str
    pull_request: PullRequest
    repository: Repository


WebhookEvent = Union[
    PushEvent,
    CreateEvent,
    DeleteEvent,
    ForkEvent,
    IssuesEvent,
    IssueCommentEvent,
    RepositoryEvent,
    ReleaseEvent,
    PullRequestEvent,
]


@dataclass(frozen=True)
class RenderedNotification:
    """A formatted message plus the context needed to authenticate it."""

    text: str = ""
    repository: str = ""
    secret: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.text or not self.repository
