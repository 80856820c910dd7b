#!/usr/bin/env python3
"""Tests for the MCP tool layer."""

import asyncio
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import Mock

import sys
sys.path.insert(0, str(Path(__file__).parent))

import httpx
from mcp.server.fastmcp import FastMCP

from gitporter.config import Config
from gitporter.reconcile.error_types import VcsFailureKind, VcsOperationError
from gitporter.reconcile.models import AcquisitionResult, SyncResult
from gitporter.server import GitPorterTools, register_tools, repository_name


class TestGitPorterTools(unittest.TestCase):

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.config = Config(
            github_username="acct",
            github_token="token",
            cloned_repos_dir=self.temp_dir / "cloned",
            scaffolds_dir=self.temp_dir / "scaffolds",
        )
        self.engine = Mock()
        self.tools = GitPorterTools(self.config, engine=self.engine)

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_upload_success(self):
        self.engine.synchronize_upload.return_value = SyncResult(
            path=self.temp_dir / "p", remote_url="git@github.com:acct/app.git", branch="main",
            commit="abc123", web_url="https://github.com/acct/app/tree/main"
        )

        response = self.tools.upload_project(str(self.temp_dir / "p"), "app", "Initial upload")

        self.assertTrue(response["success"])
        self.assertEqual(response["operation"], "upload_project")
        self.assertEqual(response["data"]["commit"], "abc123")
        request = self.engine.synchronize_upload.call_args.args[0]
        self.assertEqual(request.branch_name, "main")
        self.assertEqual(request.target_repo, "app")

    def test_upload_relative_path_is_under_scaffolds_dir(self):
        self.engine.synchronize_upload.side_effect = VcsOperationError(
            "git commit failed", kind=VcsFailureKind.NOTHING_TO_COMMIT
        )

        response = self.tools.upload_project("my-app", "app", "msg", "dev")

        self.assertFalse(response["success"])
        self.assertEqual(response["error_code"], "GIT_NOTHING_TO_COMMIT")
        request = self.engine.synchronize_upload.call_args.args[0]
        self.assertEqual(request.local_path, self.config.scaffolds_dir / "my-app")
        self.assertEqual(request.branch_name, "dev")

    def test_upload_requires_local_path(self):
        response = self.tools.upload_project("", "app", "msg")
        self.assertFalse(response["success"])
        self.assertEqual(response["category"], "validation")
        self.engine.synchronize_upload.assert_not_called()

    def test_download_defaults_to_cloned_repos_dir(self):
        self.engine.acquire_project.return_value = AcquisitionResult(
            path=self.config.cloned_repos_dir / "app", remote_url="git@github.com:acct/app.git", branch="main"
        )

        response = self.tools.download_project("https://github.com/acct/app.git")

        self.assertTrue(response["success"])
        request = self.engine.acquire_project.call_args.args[0]
        self.assertEqual(request.local_path, self.config.cloned_repos_dir / "app")
        self.assertEqual(request.remote_reference, "https://github.com/acct/app.git")

    def test_unexpected_error_becomes_system_error(self):
        self.engine.acquire_project.side_effect = RuntimeError("disk on fire")
        response = self.tools.download_project("git@github.com:acct/app.git", str(self.temp_dir / "x"))
        self.assertFalse(response["success"])
        self.assertEqual(response["category"], "system")

    def test_list_repositories_uses_configured_account(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=[{"name": request.url.path}]))
        tools = GitPorterTools(self.config, engine=self.engine, github_transport=transport)

        response = tools.list_repositories()

        self.assertTrue(response["success"])
        self.assertEqual(response["data"]["repositories"], [{"name": "/users/acct/repos"}])

    def test_create_repository_without_token(self):
        self.config.github_token = None
        response = self.tools.create_repository("app")
        self.assertFalse(response["success"])
        self.assertEqual(response["category"], "configuration")

    def test_scaffold_existing_project(self):
        (self.config.scaffolds_dir / "taken").mkdir(parents=True)
        response = self.tools.scaffold_project("taken")
        self.assertFalse(response["success"])
        self.assertEqual(response["error_code"], "SCAFFOLD_PROJECT_EXISTS")

    def test_repository_name(self):
        self.assertEqual(repository_name("https://github.com/acct/app.git"), "app")
        self.assertEqual(repository_name("git@github.com:acct/app.git"), "app")
        self.assertEqual(repository_name("https://github.com/acct/app/"), "app")


class TestToolRegistration(unittest.TestCase):

    def test_tools_are_registered(self):
        temp_dir = Path(tempfile.mkdtemp())
        try:
            config = Config(cloned_repos_dir=temp_dir / "c", scaffolds_dir=temp_dir / "s")
            server = FastMCP("gitporter-test")
            register_tools(server, GitPorterTools(config, engine=Mock()))
            names = {tool.name for tool in asyncio.run(server.list_tools())}
        finally:
            shutil.rmtree(temp_dir, ignore_errors=True)

        self.assertEqual(names, {"list_repositories", "create_repository", "scaffold_project",
                                 "upload_project", "download_project"})


if __name__ == "__main__":
    unittest.main()
