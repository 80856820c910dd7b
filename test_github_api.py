#!/usr/bin/env python3
"""Tests for the GitHub REST client using httpx's mock transport."""

import json
import unittest
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent))

import httpx

from gitporter.github_api import GitHubAPIError, GitHubClient
from gitporter.reconcile.error_types import ConfigurationError


class TestGitHubClient(unittest.TestCase):

    def setUp(self):
        self.requests = []

    def _client(self, handler) -> GitHubClient:
        def recording(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)
        return GitHubClient("secret-token", transport=httpx.MockTransport(recording))

    def test_list_repositories(self):
        repos = [{"name": "app", "full_name": "acct/app"}]
        client = self._client(lambda request: httpx.Response(200, json=repos))

        self.assertEqual(client.list_repositories("acct"), repos)

        request = self.requests[0]
        self.assertEqual(request.method, "GET")
        self.assertEqual(str(request.url), "https://api.github.com/users/acct/repos")
        self.assertEqual(request.headers["Authorization"], "token secret-token")
        self.assertEqual(request.headers["Accept"], "application/vnd.github.v3+json")

    def test_create_repository(self):
        client = self._client(lambda request: httpx.Response(201, json={"name": "app", "full_name": "acct/app"}))

        repo = client.create_repository("app", "A demo")

        self.assertEqual(repo["full_name"], "acct/app")
        request = self.requests[0]
        self.assertEqual(request.method, "POST")
        self.assertEqual(request.url.path, "/user/repos")
        self.assertEqual(json.loads(request.content),
                         {"name": "app", "description": "A demo", "auto_init": True})

    def test_error_message_from_github(self):
        client = self._client(lambda request: httpx.Response(422, json={"message": "name already exists on this account"}))

        with self.assertRaises(GitHubAPIError) as ctx:
            client.create_repository("app")
        self.assertEqual(ctx.exception.status_code, 422)
        self.assertIn("name already exists", str(ctx.exception))

    def test_error_without_json_body(self):
        client = self._client(lambda request: httpx.Response(502, text="Bad gateway"))

        with self.assertRaises(GitHubAPIError) as ctx:
            client.list_repositories("acct")
        self.assertEqual(ctx.exception.status_code, 502)
        self.assertIn("502", str(ctx.exception))

    def test_transport_failure(self):
        def fail(request):
            raise httpx.ConnectError("connection refused", request=request)

        with self.assertRaises(GitHubAPIError) as ctx:
            self._client(fail).list_repositories("acct")
        self.assertIsNone(ctx.exception.status_code)

    def test_missing_token(self):
        with self.assertRaises(ConfigurationError):
            GitHubClient(None)

    def test_custom_base_url(self):
        client = GitHubClient("t", api_base_url="https://ghe.example.com/api/v3/",
                              transport=httpx.MockTransport(lambda request: httpx.Response(200, json=[])))
        self.assertEqual(client.api_base_url, "https://ghe.example.com/api/v3")
        self.assertEqual(client.list_repositories("acct"), [])


if __name__ == "__main__":
    unittest.main()
