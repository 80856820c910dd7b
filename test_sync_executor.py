#!/usr/bin/env python3
"""
Tests for the upload pipeline.

Uploads go to bare repositories on the local filesystem so that init,
remote setup, branch creation, commit and push run for real.
"""

import json
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import Mock

import sys
sys.path.insert(0, str(Path(__file__).parent))

from git import Repo

from gitporter.config import Config
from gitporter.reconcile.error_types import (
    ConfigurationError, ValidationError, VcsFailureKind, VcsOperationError
)
from gitporter.reconcile.models import ProtocolKind, SyncRequest
from gitporter.reconcile.sync import PushStage, SyncExecutor


def make_config(temp_dir: Path, **overrides) -> Config:
    template = temp_dir / "run-vite-project.sh"
    template.write_text("#!/bin/sh\nnpm run dev\n")
    settings = dict(
        github_username="acct",
        cloned_repos_dir=temp_dir / "cloned",
        scaffolds_dir=temp_dir / "scaffolds",
        helper_script_template=template,
    )
    settings.update(overrides)
    return Config(**settings)


def make_project(path: Path) -> Path:
    path.mkdir(parents=True)
    (path / "package.json").write_text(json.dumps({"name": path.name, "version": "0.0.0"}))
    (path / "index.html").write_text("<h1>hello</h1>\n")
    return path


class TestSyncExecutor(unittest.TestCase):

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.remote_dir = self.temp_dir / "remote.git"
        Repo.init(self.remote_dir, bare=True).close()
        self.config = make_config(self.temp_dir)
        self.executor = SyncExecutor(self.config)
        self.project = make_project(self.temp_dir / "project")

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _request(self, message="Initial upload", branch="main") -> SyncRequest:
        return SyncRequest(local_path=self.project, target_repo=str(self.remote_dir),
                           commit_message=message, branch_name=branch)

    def _remote_head(self, branch: str) -> str:
        remote = Repo(self.remote_dir)
        try:
            return remote.commit(f"refs/heads/{branch}").hexsha
        finally:
            remote.close()

    def test_uploads_plain_directory(self):
        result = self.executor.execute(self._request())

        self.assertEqual(result.branch, "main")
        self.assertEqual(result.remote_url, str(self.remote_dir))
        self.assertEqual(self._remote_head("main"), result.commit)
        self.assertIsNone(result.web_url)

        repo = Repo(self.project)
        self.assertEqual(repo.active_branch.name, "main")
        self.assertEqual(list(repo.remote("origin").urls), [str(self.remote_dir)])
        tracking = repo.active_branch.tracking_branch()
        self.assertIsNotNone(tracking)
        self.assertEqual(tracking.name, "origin/main")
        committed = {item.path for item in repo.head.commit.tree.traverse()}
        repo.close()
        self.assertIn("package.json", committed)
        self.assertIn("run-vite-project.sh", committed)

    def test_second_upload_stages_modifications_and_deletions(self):
        self.executor.execute(self._request())
        (self.project / "index.html").unlink()
        (self.project / "main.js").write_text("console.log('hi')\n")

        result = self.executor.execute(self._request("Second upload"))

        repo = Repo(self.project)
        committed = {item.path for item in repo.head.commit.tree.traverse()}
        self.assertEqual(repo.head.commit.message.strip(), "Second upload")
        repo.close()
        self.assertIn("main.js", committed)
        self.assertNotIn("index.html", committed)
        self.assertEqual(self._remote_head("main"), result.commit)

    def test_upload_to_new_branch(self):
        self.executor.execute(self._request())
        (self.project / "feature.txt").write_text("feature\n")

        result = self.executor.execute(self._request("Feature work", branch="feature"))

        self.assertEqual(result.branch, "feature")
        self.assertEqual(self._remote_head("feature"), result.commit)
        self.assertNotEqual(self._remote_head("main"), result.commit)

    def test_nothing_to_commit_is_reported(self):
        self.executor.execute(self._request())
        with self.assertRaises(VcsOperationError) as ctx:
            self.executor.execute(self._request("No changes"))
        self.assertEqual(ctx.exception.kind, VcsFailureKind.NOTHING_TO_COMMIT)

    def test_existing_origin_is_repointed(self):
        repo = Repo.init(self.project)
        repo.create_remote("origin", "https://github.com/someone/else.git")
        repo.close()

        self.executor.execute(self._request())

        repo = Repo(self.project)
        self.assertEqual(list(repo.remote("origin").urls), [str(self.remote_dir)])
        repo.close()

    def test_missing_manifest_is_rejected_without_side_effects(self):
        (self.project / "package.json").unlink()
        with self.assertRaises(ValidationError):
            self.executor.execute(self._request())
        self.assertFalse((self.project / ".git").exists())

    def test_missing_directory_is_rejected(self):
        request = SyncRequest(local_path=self.temp_dir / "absent", target_repo=str(self.remote_dir),
                              commit_message="x")
        with self.assertRaises(ValidationError):
            self.executor.execute(request)

    def test_empty_commit_message_is_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            self.executor.execute(self._request(message="  "))
        self.assertEqual(ctx.exception.details["field"], "commit_message")

    def test_rejected_upstream_push_falls_back_through_execute(self):
        real_push = self.executor.vcs.push
        upstream_flags = []

        def push(path, branch, set_upstream=False):
            upstream_flags.append(set_upstream)
            if set_upstream:
                raise VcsOperationError("git push --set-upstream failed: rejected",
                                        kind=VcsFailureKind.REJECTED)
            real_push(path, branch, set_upstream=set_upstream)

        self.executor.vcs.push = push
        result = self.executor.execute(self._request())

        self.assertEqual(upstream_flags, [True, False])
        repo = Repo(self.project)
        self.assertEqual(result.commit, repo.head.commit.hexsha)
        repo.close()
        self.assertEqual(self._remote_head("main"), result.commit)

    def test_empty_local_path_is_rejected(self):
        for local_path in ("", Path("")):
            request = SyncRequest(local_path=local_path, target_repo=str(self.remote_dir),
                                  commit_message="msg")
            with self.assertRaises(ValidationError) as ctx:
                self.executor.execute(request)
            self.assertEqual(ctx.exception.details["field"], "local_path")

    def test_push_failure_surfaces(self):
        request = SyncRequest(local_path=self.project, target_repo=str(self.temp_dir / "missing.git"),
                              commit_message="x")
        with self.assertRaises(VcsOperationError) as ctx:
            self.executor.execute(request)
        self.assertEqual(ctx.exception.operation, "push")


class TestTargetResolution(unittest.TestCase):

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_bare_name_uses_configured_account(self):
        executor = SyncExecutor(make_config(self.temp_dir))
        endpoint = executor.resolve_target("my-app")
        self.assertEqual(endpoint.canonical_url, "git@github.com:acct/my-app.git")
        self.assertEqual(endpoint.protocol_kind, ProtocolKind.SSH)

    def test_full_reference_is_resolved(self):
        executor = SyncExecutor(make_config(self.temp_dir))
        self.assertEqual(executor.resolve_target("https://github.com/other/app").canonical_url,
                         "git@github.com:other/app.git")

    def test_bare_name_without_account(self):
        executor = SyncExecutor(make_config(self.temp_dir, github_username=None))
        with self.assertRaises(ConfigurationError):
            executor.resolve_target("my-app")

    def test_account_and_name_use_the_hosted_endpoint(self):
        executor = SyncExecutor(make_config(self.temp_dir))
        endpoint = executor.resolve_target("otheracct/my-app")
        self.assertEqual(endpoint.canonical_url, "git@github.com:otheracct/my-app.git")
        self.assertEqual(endpoint.protocol_kind, ProtocolKind.SSH)

    def test_account_and_name_work_without_configured_account(self):
        executor = SyncExecutor(make_config(self.temp_dir, github_username=None))
        self.assertEqual(executor.resolve_target("otheracct/my-app.git").canonical_url,
                         "git@github.com:otheracct/my-app.git")

    def test_unrecognised_target_shapes_are_rejected(self):
        executor = SyncExecutor(make_config(self.temp_dir))
        for target in ("a/b/c", "acct/", "acct//my-app"):
            with self.assertRaises(ValidationError):
                executor.resolve_target(target)

    def test_local_paths_are_kept_as_references(self):
        executor = SyncExecutor(make_config(self.temp_dir))
        remote = str(self.temp_dir / "remote.git")
        self.assertEqual(executor.resolve_target(remote).canonical_url, remote)
        self.assertEqual(executor.resolve_target("../remote.git").canonical_url, "../remote.git")

    def test_web_url_for_hosted_target(self):
        executor = SyncExecutor(make_config(self.temp_dir))
        endpoint = executor.resolve_target("my-app")
        self.assertEqual(executor.resolver.web_url(endpoint, "dev"), "https://github.com/acct/my-app/tree/dev")


class TestPushStateMachine(unittest.TestCase):

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.vcs = Mock()
        self.executor = SyncExecutor(make_config(self.temp_dir), vcs=self.vcs)
        self.path = self.temp_dir / "project"

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_upstream_push_success(self):
        self.assertEqual(self.executor.push(self.path, "main"), PushStage.UPSTREAM)
        self.vcs.push.assert_called_once_with(self.path, "main", set_upstream=True)

    def test_falls_back_to_plain_push(self):
        self.vcs.push.side_effect = [
            VcsOperationError("git push --set-upstream failed", kind=VcsFailureKind.UNKNOWN),
            None,
        ]
        self.assertEqual(self.executor.push(self.path, "main"), PushStage.PLAIN)
        self.assertEqual(self.vcs.push.call_count, 2)
        self.assertEqual(self.vcs.push.call_args_list[1].kwargs, {"set_upstream": False})

    def test_plain_push_failure_is_fatal(self):
        second = VcsOperationError("git push failed", kind=VcsFailureKind.REJECTED)
        self.vcs.push.side_effect = [
            VcsOperationError("git push --set-upstream failed", kind=VcsFailureKind.REJECTED),
            second,
        ]
        with self.assertRaises(VcsOperationError) as ctx:
            self.executor.push(self.path, "main")
        self.assertIs(ctx.exception, second)

    def test_no_fallback_for_authentication_or_network(self):
        for kind in (VcsFailureKind.AUTHENTICATION, VcsFailureKind.NETWORK):
            self.vcs.reset_mock()
            self.vcs.push.side_effect = VcsOperationError("git push --set-upstream failed", kind=kind)
            with self.assertRaises(VcsOperationError):
                self.executor.push(self.path, "main")
            self.assertEqual(self.vcs.push.call_count, 1, kind)


if __name__ == "__main__":
    unittest.main()
