# test_data_sources.py
import unittest
from datetime import datetime, timezone
from unittest import mock

import requests
from github import GithubException

from config import GlobalConfig
from context import RunContext
from data_sources.azure_devops import AzureDevOpsCommitSource
from data_sources.base import CommitSourceError
from data_sources.factory import get_commit_source, is_remote_url
from data_sources.github_api import GitHubCommitSource, parse_repo_name
from data_sources.local_git import LocalGitCommitSource


def _config():
    cfg = GlobalConfig()
    cfg.AZURE_DEVOPS_ORGANIZATION = "contoso"
    cfg.AZURE_DEVOPS_PROJECT = "Portal"
    cfg.AZURE_DEVOPS_PAT = "pat"
    cfg.AZURE_DEVOPS_REPOSITORY_APP = "portal-app"
    cfg.AZURE_DEVOPS_REPOSITORY_BD = "portal-db"
    cfg.GITHUB_TOKEN = "token"
    cfg.GITHUB_REPOSITORY_APP = "octo/app"
    cfg.GITHUB_REPOSITORY_BD = ""
    return cfg


def _context(repo_path="/tmp/repo", source=None, repository_type="app"):
    return RunContext(
        repo_path=repo_path,
        project_data_path="/tmp/data",
        source=source,
        repository_type=repository_type,
        color=None,
        no_browser=True,
        global_config=_config(),
    )


def _response(status_code=200, payload=None):
    resp = mock.Mock()
    resp.status_code = status_code
    resp.json.return_value = payload or {}
    resp.text = ""
    return resp


class TestAzureDevOps(unittest.TestCase):

    def setUp(self):
        self.session = mock.Mock()
        self.session.headers = {}
        self.source = AzureDevOpsCommitSource(_context(repository_type="bd"), session=self.session)

    def test_uses_repository_of_type_and_pat_auth(self):
        self.assertEqual(self.source.repository, "portal-db")
        self.assertEqual(self.session.auth, ("", "pat"))

    def test_get_commit(self):
        commit = {
            "commitId": "abc123",
            "comment": "Fix orders\n\nlong description",
            "author": {"name": "Ana", "date": "2024-01-15T10:30:00Z"},
        }
        changes = {
            "changes": [
                {"item": {"path": "/db/orders.pkb"}, "changeType": "edit"},
                {"item": {"path": "/db", "isFolder": True}, "changeType": "edit"},
                {"item": {"path": "/db/new.sql"}, "changeType": "add"},
            ]
        }
        self.session.get.side_effect = [_response(payload=commit), _response(payload=changes)]

        info = self.source.get_commit("abc123")
        self.assertEqual(info.hash, "abc123")
        self.assertEqual(info.message, "Fix orders")
        self.assertEqual(info.author, "Ana")
        self.assertEqual(info.date, "2024-01-15T10:30:00Z")
        self.assertEqual(info.files, ["db/orders.pkb", "db/new.sql"])
        self.assertEqual(info.change_types["db/new.sql"], "add")

        url = self.session.get.call_args_list[0][0][0]
        self.assertEqual(
            url,
            "https://dev.azure.com/contoso/Portal/_apis/git/repositories/portal-db/commits/abc123",
        )
        self.assertEqual(self.session.get.call_args_list[0][1]["params"]["api-version"], "7.0")

    def test_recent_commit_ids(self):
        self.session.get.return_value = _response(
            payload={"value": [{"commitId": "c3"}, {"commitId": "c2"}]}
        )
        self.assertEqual(self.source.get_recent_commit_ids(2), ["c3", "c2"])
        params = self.session.get.call_args[1]["params"]
        self.assertEqual(params["searchCriteria.$top"], 2)

    def test_last_commit_uses_newest_id(self):
        self.session.get.side_effect = [
            _response(payload={"value": [{"commitId": "c9"}]}),
            _response(payload={"commitId": "c9", "comment": "m", "author": {}}),
            _response(payload={"changes": []}),
        ]
        self.assertEqual(self.source.get_last_commit().hash, "c9")

    def test_http_error(self):
        self.session.get.return_value = _response(404)
        with self.assertRaises(CommitSourceError):
            self.source.get_commit("missing")

    def test_network_error(self):
        self.session.get.side_effect = requests.ConnectionError("offline")
        with self.assertRaises(CommitSourceError):
            self.source.get_recent_commit_ids(5)

    def test_validate_requires_configuration(self):
        context = _context(repository_type="bd")
        context.global_config.AZURE_DEVOPS_REPOSITORY_BD = ""
        source = AzureDevOpsCommitSource(context, session=self.session)
        self.assertFalse(source.validate())
        self.session.get.assert_not_called()


class TestGitHub(unittest.TestCase):

    def test_parse_repo_name(self):
        self.assertEqual(parse_repo_name("https://github.com/octo/app"), "octo/app")
        self.assertEqual(parse_repo_name("https://github.com/octo/app.git/"), "octo/app")
        self.assertEqual(parse_repo_name("git@github.com:octo/app.git"), "octo/app")
        self.assertEqual(parse_repo_name("octo/app"), "octo/app")
        self.assertIsNone(parse_repo_name("https://github.com/octo"))
        self.assertIsNone(parse_repo_name(""))

    def _fake_commit(self, sha="s1"):
        author = mock.Mock()
        author.name = "Ana"
        author.date = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)
        file_a = mock.Mock(filename="src/a.py", status="modified")
        file_b = mock.Mock(filename="src/b.py", status="added")
        commit = mock.Mock(sha=sha, files=[file_a, file_b])
        commit.commit.message = "Add b\n\nbody"
        commit.commit.author = author
        return commit

    def test_get_commit(self):
        client = mock.Mock()
        client.get_repo.return_value.get_commit.return_value = self._fake_commit()
        source = GitHubCommitSource(_context(), client=client)

        info = source.get_commit("s1")
        client.get_repo.assert_called_once_with("octo/app")
        self.assertEqual(info.message, "Add b")
        self.assertEqual(info.author, "Ana")
        self.assertEqual(info.date, "2024-01-15T10:30:00+00:00")
        self.assertEqual(info.files, ["src/a.py", "src/b.py"])
        self.assertEqual(info.change_types["src/b.py"], "added")

    def test_remote_url_repo_path_wins(self):
        client = mock.Mock()
        source = GitHubCommitSource(_context(repo_path="https://github.com/x/y"), client=client)
        source.validate()
        client.get_repo.assert_called_once_with("x/y")

    def test_recent_commit_ids_truncated(self):
        client = mock.Mock()
        client.get_repo.return_value.get_commits.return_value = iter(
            [mock.Mock(sha=f"s{i}") for i in range(10)]
        )
        source = GitHubCommitSource(_context(), client=client)
        self.assertEqual(source.get_recent_commit_ids(3), ["s0", "s1", "s2"])

    def test_api_error(self):
        client = mock.Mock()
        client.get_repo.side_effect = GithubException(404, {"message": "Not Found"}, None)
        source = GitHubCommitSource(_context(), client=client)
        self.assertFalse(source.validate())
        with self.assertRaises(CommitSourceError):
            source.get_commit("s1")

    def test_unconfigured_repository(self):
        source = GitHubCommitSource(_context(repository_type="bd"), client=mock.Mock())
        with self.assertRaises(CommitSourceError):
            source.get_recent_commit_ids(1)


class TestFactory(unittest.TestCase):

    def test_is_remote_url(self):
        self.assertTrue(is_remote_url("https://github.com/a/b"))
        self.assertTrue(is_remote_url("git@github.com:a/b.git"))
        self.assertFalse(is_remote_url("/home/me/repo"))
        self.assertFalse(is_remote_url(""))

    def test_auto_selection(self):
        self.assertIsInstance(get_commit_source(_context()), LocalGitCommitSource)
        with mock.patch("data_sources.github_api.Github"):
            source = get_commit_source(_context(repo_path="https://github.com/a/b"))
        self.assertIsInstance(source, GitHubCommitSource)

    def test_explicit_source(self):
        self.assertIsInstance(get_commit_source(_context(source="azure")), AzureDevOpsCommitSource)

    def test_unknown_source(self):
        with self.assertRaises(ValueError):
            get_commit_source(_context(source="svn"))


class TestLocalGitSource(unittest.TestCase):

    def test_missing_commit_raises(self):
        source = LocalGitCommitSource(_context())
        with mock.patch("git_utils.get_commit_info", return_value=None):
            with self.assertRaises(CommitSourceError):
                source.get_commit("deadbeef")

    def test_recent_ids_delegate_to_git(self):
        source = LocalGitCommitSource(_context())
        with mock.patch("git_utils.get_recent_commit_hashes", return_value=["a", "b"]) as call:
            self.assertEqual(source.get_recent_commit_ids(2), ["a", "b"])
        call.assert_called_once_with("/tmp/repo", 2)


if __name__ == "__main__":
    unittest.main()
