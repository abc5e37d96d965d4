"""Tests for notification rendering."""

import pytest

from hookrelay.webhooks.formatters import first_line, format_event, ref_to_branch
from hookrelay.webhooks.models import (
    CreateEvent,
    DeleteEvent,
    ForkEvent,
    IssueCommentEvent,
    IssuesEvent,
    PullRequestEvent,
    PushEvent,
    ReleaseEvent,
    RepositoryEvent,
)

REPO = {"full_name": "org/app"}


def _user(login, full_name=""):
    return {"login": login, "full_name": full_name}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class TestHelpers:
    def test_ref_to_branch(self):
        assert ref_to_branch("refs/heads/main") == "main"
        assert ref_to_branch("refs/heads/feature/login") == "feature/login"
        assert ref_to_branch("main") == ""

    def test_first_line(self):
        assert first_line("fix bug\n\ndetails") == "fix bug"

    def test_first_line_truncates(self):
        line = first_line("x" * 60)
        assert line == "x" * 50 + "..."

    def test_first_line_strips_before_ellipsis(self):
        message = "a" * 45 + "     trailing words"
        assert first_line(message) == "a" * 45 + "..."


# ---------------------------------------------------------------------------
# Push
# ---------------------------------------------------------------------------

class TestPush:
    def _event(self, commits, pusher=None):
        return PushEvent.model_validate({
            "secret": "tok",
            "ref": "refs/heads/main",
            "repository": REPO,
            "pusher": pusher or _user("ana"),
            "commits": commits,
        })

    def test_single_commit(self):
        event = self._event([{"message": "fix bug\ndetails", "url": "https://x/c1"}])
        result = format_event(event)
        assert result.text.startswith("ana pushed 1 commit to org/app main:")
        assert "- fix bug" in result.text
        assert "details" not in result.text
        assert result.text.endswith("https://x/c1")
        assert result.repository == "org/app"
        assert result.secret == "tok"

    def test_multiple_commits_use_last_url(self):
        event = self._event([
            {"message": "one", "url": "https://x/c1"},
            {"message": "two", "url": "https://x/c2"},
        ])
        text = format_event(event).text
        assert text == (
            "ana pushed 2 commits to org/app main:\n"
            "- one\n"
            "- two\n"
            "\n"
            "https://x/c2"
        )

    def test_empty_push_is_not_announced(self):
        result = format_event(self._event([]))
        assert result.text == ""
        assert result.is_empty

    def test_prefers_display_name(self):
        event = self._event(
            [{"message": "m", "url": "u"}], pusher=_user("ana", "Ana Lima")
        )
        assert format_event(event).text.startswith("Ana Lima pushed")

    def test_long_commit_message_truncated(self):
        event = self._event([{"message": "y" * 80, "url": "u"}])
        assert f"- {'y' * 50}..." in format_event(event).text


# ---------------------------------------------------------------------------
# Create / Delete / Fork
# ---------------------------------------------------------------------------

class TestRefEvents:
    def test_create(self):
        event = CreateEvent.model_validate(
            {"ref": "v1.0", "ref_type": "tag", "repository": REPO, "secret": "s"}
        )
        result = format_event(event)
        assert result.text == "Created new tag v1.0 in repo org/app"
        assert result.secret == "s"

    def test_delete(self):
        event = DeleteEvent.model_validate(
            {"ref": "old", "ref_type": "branch", "repository": REPO}
        )
        assert format_event(event).text == "Deleted branch old in repo org/app"

    def test_fork_authenticates_against_original(self):
        event = ForkEvent.model_validate({
            "forkee": {"full_name": "org/app"},
            "repository": {"full_name": "bob/app"},
            "secret": "s",
        })
        result = format_event(event)
        assert result.text == "org/app has been forked to bob/app"
        assert result.repository == "org/app"


# ---------------------------------------------------------------------------
# Issues
# ---------------------------------------------------------------------------

class TestIssues:
    def _event(self, action, assignee=None, sender=None):
        return IssuesEvent.model_validate({
            "action": action,
            "sender": sender or _user("bob"),
            "repository": REPO,
            "issue": {
                "number": 7,
                "title": "crash",
                "html_url": "https://git/org/app/issues/7",
                "assignee": assignee,
            },
        })

    @pytest.mark.parametrize("action", ["opened", "closed", "reopened", "edited"])
    def test_detailed_actions(self, action):
        assert format_event(self._event(action)).text == (
            f'bob {action} issue "crash" (#7) on org/app: https://git/org/app/issues/7'
        )

    def test_assigned(self):
        text = format_event(self._event("assigned", assignee=_user("cara"))).text
        assert text == (
            'bob assigned issue "crash" (#7) on org/app to cara: '
            "https://git/org/app/issues/7"
        )

    def test_assignee_display_name(self):
        text = format_event(self._event("assigned", assignee=_user("cara", "Cara D"))).text
        assert "to Cara D:" in text

    def test_other_action_fallback(self):
        assert format_event(self._event("label_updated")).text == "bob label_updated issue #7"

    def test_falls_back_to_api_url(self):
        event = IssuesEvent.model_validate({
            "action": "opened",
            "sender": _user("bob"),
            "repository": REPO,
            "issue": {"number": 1, "title": "t", "url": "https://api/issues/1"},
        })
        assert format_event(event).text.endswith("https://api/issues/1")


# ---------------------------------------------------------------------------
# Issue comments
# ---------------------------------------------------------------------------

class TestIssueComment:
    def _event(self, action, is_pull=False):
        return IssueCommentEvent.model_validate({
            "action": action,
            "sender": _user("dan"),
            "repository": REPO,
            "is_pull": is_pull,
            "issue": {"number": 3, "title": "bug"},
            "comment": {
                "body": "same here",
                "html_url": "https://git/c/1",
                "user": _user("eve"),
            },
        })

    def test_created(self):
        assert format_event(self._event("created")).text == (
            'eve commented on issue "bug" (#3) on org/app:\nsame here\nhttps://git/c/1'
        )

    def test_deleted_has_no_url(self):
        text = format_event(self._event("deleted")).text
        assert text == 'eve deleted their comment on issue "bug" (#3) on org/app:\nsame here'

    def test_edited(self):
        text = format_event(self._event("edited")).text
        assert text.startswith("eve edited their comment on issue")
        assert text.endswith("https://git/c/1")

    def test_pull_request_comment(self):
        assert 'commented on PR "bug"' in format_event(self._event("created", is_pull=True)).text

    def test_unhandled_action(self):
        assert format_event(self._event("pinned")).text == ""


# ---------------------------------------------------------------------------
# Repository / Release
# ---------------------------------------------------------------------------

class TestRepository:
    def _event(self, action):
        return RepositoryEvent.model_validate(
            {"action": action, "sender": _user("ana"), "repository": REPO}
        )

    @pytest.mark.parametrize("action", ["created", "deleted"])
    def test_handled(self, action):
        assert format_event(self._event(action)).text == f"ana {action} repository org/app"

    def test_transferred_is_not_announced(self):
        result = format_event(self._event("transferred"))
        assert result.text == ""
        assert result.is_empty


class TestRelease:
    def _event(self, action):
        return ReleaseEvent.model_validate({
            "action": action,
            "sender": _user("ana"),
            "repository": REPO,
            "release": {
                "tag_name": "v1.0",
                "name": "First",
                "html_url": "https://git/org/app/releases/v1.0",
            },
        })

    @pytest.mark.parametrize("action", ["published", "updated"])
    def test_with_url(self, action):
        assert format_event(self._event(action)).text == (
            f'ana {action} release "First" (v1.0) in org/app: https://git/org/app/releases/v1.0'
        )

    def test_deleted_without_url(self):
        assert format_event(self._event("deleted")).text == 'ana deleted release "First" (v1.0) in org/app'

    def test_other_action(self):
        assert format_event(self._event("created")).text == ""


# ---------------------------------------------------------------------------
# Pull requests
# ---------------------------------------------------------------------------

class TestPullRequest:
    def _event(self, action, assignee=None):
        return PullRequestEvent.model_validate({
            "action": action,
            "sender": _user("fay"),
            "repository": REPO,
            "pull_request": {
                "number": 12,
                "title": "Add login",
                "html_url": "https://git/org/app/pulls/12",
                "assignee": assignee,
                "head": {"label": "login", "ref": "login", "repo": {"full_name": "fay/app"}},
            },
        })

    def test_opened_includes_source(self):
        assert format_event(self._event("opened")).text == (
            'fay opened PR "Add login" (#12) on org/app from source fay/app/login: '
            "https://git/org/app/pulls/12"
        )

    def test_assigned(self):
        text = format_event(self._event("assigned", assignee=_user("gus", ""))).text
        assert text == 'fay assigned PR "Add login" (#12) on org/app to gus: https://git/org/app/pulls/12'

    def test_other_action_fallback(self):
        assert format_event(self._event("synchronized")).text == "fay synchronized PR #12"
