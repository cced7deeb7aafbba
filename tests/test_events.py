"""Tests for codeagent.events (classification and payload helpers)."""

import json
from pathlib import Path

import pytest

from codeagent.events import (
    EventPayloadError,
    IssueCommentCreated,
    IssueOpened,
    PullRequestCommentCreated,
    PullRequestReviewCommentCreated,
    classify_event,
    extract_labels,
    extract_repository,
    extract_text,
    load_event_payload,
)


def _issue(number: int = 7, pull_request: bool = False, **extra) -> dict:
    issue = {
        "number": number,
        "title": "Crash on start",
        "body": "It crashes",
        "user": {"login": "alice"},
        "labels": [],
    }
    if pull_request:
        issue["pull_request"] = {"url": "https://api.github.com/repos/o/r/pulls/%d" % number}
    issue.update(extra)
    return issue


class TestClassifyEvent:
    """classify_event maps payload shapes to event variants."""

    def test_issue_opened(self) -> None:
        event = classify_event({"action": "opened", "issue": _issue()})
        assert isinstance(event, IssueOpened)
        assert event.number == 7
        assert event.title == "Crash on start"
        assert event.text == "It crashes"
        assert event.author == "alice"

    def test_issue_comment(self) -> None:
        payload = {
            "action": "created",
            "issue": _issue(),
            "comment": {"id": 11, "body": "/claude fix it", "user": {"login": "bob"}},
        }
        event = classify_event(payload)
        assert isinstance(event, IssueCommentCreated)
        assert event.number == 7
        assert event.comment_id == 11
        assert event.text == "/claude fix it"
        assert event.author == "bob"

    def test_pr_conversation_comment(self) -> None:
        """An issue with a pull_request marker is a PR comment."""
        payload = {
            "action": "created",
            "issue": _issue(number=3, pull_request=True),
            "comment": {"id": 12, "body": "/codex add tests", "user": {"login": "bob"}},
        }
        event = classify_event(payload)
        assert isinstance(event, PullRequestCommentCreated)
        assert event.number == 3

    def test_review_comment(self) -> None:
        payload = {
            "action": "created",
            "pull_request": {"number": 4, "title": "Add cache", "body": "desc"},
            "comment": {
                "id": 21,
                "body": "/claude rename",
                "path": "src/cache.py",
                "line": 10,
                "in_reply_to_id": 20,
                "user": {"login": "carol"},
            },
        }
        event = classify_event(payload)
        assert isinstance(event, PullRequestReviewCommentCreated)
        assert event.number == 4
        assert event.title == "Add cache"
        assert event.path == "src/cache.py"
        assert event.line == 10
        assert event.thread_root_id == 20

    def test_review_comment_without_reply_is_own_root(self) -> None:
        payload = {
            "action": "created",
            "pull_request": {"number": 4},
            "comment": {"id": 21, "body": "x", "path": "a.py"},
        }
        event = classify_event(payload)
        assert event.thread_root_id == 21
        assert event.line is None

    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"action": "closed", "issue": _issue()},
            {"action": "edited", "issue": _issue(), "comment": {"id": 1, "body": "x"}},
            {"action": "opened", "pull_request": {"number": 1}},
            {"action": "created", "pull_request": {"number": 1}, "comment": {"id": 1, "body": "x"}},
            {"action": "created", "issue": _issue()},
        ],
    )
    def test_unsupported_payloads(self, payload: dict) -> None:
        assert classify_event(payload) is None

    def test_malformed_number_is_unsupported(self) -> None:
        assert classify_event({"action": "opened", "issue": _issue(number="seven")}) is None

    def test_missing_comment_id_is_unsupported(self) -> None:
        payload = {"action": "created", "issue": _issue(), "comment": {"body": "hi"}}
        assert classify_event(payload) is None

    def test_non_object_payload(self) -> None:
        assert classify_event(["not", "a", "dict"]) is None

    def test_null_pull_request_marker_is_an_issue(self) -> None:
        event = classify_event({"action": "opened", "issue": {"number": 1, "pull_request": None}})
        assert isinstance(event, IssueOpened)

    def test_opened_pr_shim_is_not_an_issue(self) -> None:
        assert classify_event({"action": "opened", "issue": _issue(pull_request=True)}) is None

    def test_missing_texts_default_to_empty(self) -> None:
        event = classify_event({"action": "opened", "issue": {"number": 1, "title": None, "body": None}})
        assert event.title == ""
        assert extract_text(event) == ""


class TestExtractLabels:
    def test_issue_labels_lowercased(self) -> None:
        payload = {"issue": _issue(labels=[{"name": "Claude"}, {"name": "Bug"}])}
        assert extract_labels(payload) == ["claude", "bug"]

    def test_pull_request_labels(self) -> None:
        payload = {"pull_request": {"labels": [{"name": "codex"}]}}
        assert extract_labels(payload) == ["codex"]

    def test_label_change_payload(self) -> None:
        assert extract_labels({"label": {"name": "AI"}}) == ["ai"]

    def test_no_labels(self) -> None:
        assert extract_labels({"issue": _issue()}) == []
        assert extract_labels({}) == []


class TestExtractRepository:
    def test_repository_block(self) -> None:
        payload = {
            "repository": {
                "full_name": "octo/hello",
                "default_branch": "develop",
                "clone_url": "https://github.com/octo/hello.git",
            }
        }
        repo = extract_repository(payload)
        assert repo.full_name == "octo/hello"
        assert repo.default_branch == "develop"
        assert repo.clone_url.endswith("hello.git")

    def test_default_branch_fallback(self) -> None:
        assert extract_repository({"repository": {"full_name": "o/r"}}).default_branch == "main"

    def test_absent(self) -> None:
        assert extract_repository({}) is None


class TestLoadEventPayload:
    """load_event_payload reads the workflow event file."""

    def test_reads_object(self, tmp_path: Path) -> None:
        path = tmp_path / "event.json"
        path.write_text(json.dumps({"action": "opened"}))
        assert load_event_payload(path) == {"action": "opened"}

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(EventPayloadError, match="Cannot read"):
            load_event_payload(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "event.json"
        path.write_text("{not json")
        with pytest.raises(EventPayloadError, match="not valid JSON"):
            load_event_payload(path)

    def test_not_an_object(self, tmp_path: Path) -> None:
        path = tmp_path / "event.json"
        path.write_text("[1, 2]")
        with pytest.raises(EventPayloadError, match="JSON object"):
            load_event_payload(path)
