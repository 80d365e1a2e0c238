import unittest
from unittest.mock import patch
from urllib import error as urllib_error

from app import app
from services import github_service
from services.github_service import (
    GitHubError,
    GitHubNetworkError,
    decrypt_token,
    encrypt_token,
    estimate_total_count,
    get_all_repositories,
    get_repositories,
    parse_link_header,
    search_repositories,
)


def _repo(index):
    return {
        "id": index,
        "name": f"repo-{index}",
        "full_name": f"octo/repo-{index}",
        "private": index % 2 == 0,
        "fork": False,
        "html_url": f"https://github.com/octo/repo-{index}",
        "clone_url": f"https://github.com/octo/repo-{index}.git",
        "stargazers_count": index,
        "forks_count": 0,
        "topics": None,
        "default_branch": "main",
        "updated_at": "2024-01-01T00:00:00Z",
        "created_at": "2023-01-01T00:00:00Z",
        "pushed_at": None,
    }


def _link(page, last=3):
    links = []
    if page < last:
        links.append(f'<https://api.github.com/user/repos?per_page=100&page={page + 1}>; rel="next"')
        links.append(f'<https://api.github.com/user/repos?per_page=100&page={last}>; rel="last"')
    if page > 1:
        links.append(f'<https://api.github.com/user/repos?per_page=100&page={page - 1}>; rel="prev"')
    return ", ".join(links)


def _page_response(page, per_page=100, last=3):
    repos = [_repo((page - 1) * per_page + index) for index in range(per_page)]
    headers = {"link": _link(page, last), "X-RateLimit-Remaining": "4999", "X-RateLimit-Reset": "1700000000"}
    return 200, repos, headers


class LinkHeaderTestCase(unittest.TestCase):
    def test_parse_link_header(self):
        links = parse_link_header(_link(2))
        self.assertEqual(set(links), {"next", "last", "prev"})
        self.assertTrue(links["next"].endswith("page=3"))

    def test_parse_empty_link_header(self):
        self.assertEqual(parse_link_header(None), {})
        self.assertEqual(parse_link_header("garbage"), {})

    def test_total_count_estimates(self):
        links = parse_link_header(_link(1, last=5))
        self.assertEqual(estimate_total_count(1, 30, 30, links), 4 * 30 + 30)
        self.assertEqual(estimate_total_count(2, 30, 30, {}), 61)
        self.assertEqual(estimate_total_count(3, 30, 12, {}), 72)


class RepositoryListingTestCase(unittest.TestCase):
    def test_has_next_page_follows_link_header(self):
        with patch.object(github_service, "_request", return_value=_page_response(1)):
            page = get_repositories("token", page=1, per_page=100)
        self.assertTrue(page.has_next_page)
        self.assertEqual(page.next_cursor, "2")
        self.assertEqual(page.rate_limit.remaining, 4999)
        self.assertEqual(page.repositories[0].topics, [])
        self.assertEqual(page.repositories[0].visibility, "private")

        with patch.object(github_service, "_request", return_value=_page_response(3)):
            last = get_repositories("token", page=3, per_page=100)
        self.assertFalse(last.has_next_page)
        self.assertIsNone(last.next_cursor)

    def test_per_page_is_capped_and_page_validated(self):
        with patch.object(github_service, "_request", return_value=(200, [], {})) as request:
            get_repositories("token", per_page=500)
        self.assertEqual(request.call_args.kwargs["params"]["per_page"], 100)

        with self.assertRaises(ValueError):
            get_repositories("token", page=0)
        with self.assertRaises(ValueError):
            get_repositories("token", page=1001)

    @patch("services.github_service.time.sleep")
    def test_fetch_all_walks_pages_with_delay(self, sleep):
        responses = [_page_response(page) for page in (1, 2, 3)]
        with patch.object(github_service, "_request", side_effect=responses) as request:
            repositories = get_all_repositories("token")

        self.assertEqual(len(repositories), 300)
        self.assertEqual(request.call_count, 3)
        self.assertEqual([call.kwargs["params"]["page"] for call in request.call_args_list], [1, 2, 3])
        self.assertEqual(sleep.call_count, 2)
        sleep.assert_called_with(0.1)

    @patch("services.github_service.time.sleep")
    def test_fetch_all_stops_at_max_pages(self, sleep):
        responses = [_page_response(page, last=10) for page in (1, 2)]
        with patch.object(github_service, "_request", side_effect=responses) as request:
            repositories = get_all_repositories("token", max_pages=2)

        self.assertEqual(len(repositories), 200)
        self.assertEqual(request.call_count, 2)
        self.assertEqual(sleep.call_count, 1)

    def test_error_status_raises_github_error(self):
        with patch.object(
            github_service, "_request", return_value=(401, {"message": "Bad credentials"}, {})
        ):
            with self.assertRaises(GitHubError) as context:
                get_repositories("token")
        self.assertEqual(context.exception.status_code, 401)
        self.assertEqual(str(context.exception), "Bad credentials")
        self.assertEqual(context.exception.response, {"message": "Bad credentials"})


class SearchTestCase(unittest.TestCase):
    def test_search_maps_items(self):
        payload = {"total_count": 2, "incomplete_results": False, "items": [_repo(1), _repo(2)]}
        with patch.object(github_service, "_request", return_value=(200, payload, {})) as request:
            result = search_repositories("token", "flask language:python")

        self.assertEqual(result.total_count, 2)
        self.assertEqual([repo.full_name for repo in result.repositories], ["octo/repo-1", "octo/repo-2"])
        self.assertEqual(request.call_args.kwargs["params"]["q"], "flask language:python")

    def test_search_requires_query(self):
        with self.assertRaises(ValueError):
            search_repositories("token", "")


class TransportTestCase(unittest.TestCase):
    def test_timeout_is_a_retryable_network_error(self):
        with patch(
            "services.github_service.urllib_request.urlopen",
            side_effect=urllib_error.URLError(TimeoutError("timed out")),
        ):
            with self.assertRaises(GitHubNetworkError) as context:
                github_service.get_current_user("token")
        self.assertTrue(context.exception.timeout)
        self.assertTrue(context.exception.retryable)

    def test_connection_failure(self):
        with patch(
            "services.github_service.urllib_request.urlopen",
            side_effect=urllib_error.URLError("refused"),
        ):
            with self.assertRaises(GitHubNetworkError) as context:
                github_service.get_rate_limit("token")
        self.assertFalse(context.exception.timeout)

    def test_issue_comment_not_found(self):
        with patch.object(github_service, "_request", return_value=(410, {"message": "Gone"}, {})):
            with self.assertRaises(GitHubError) as context:
                github_service.comment_on_issue("token", "octo", "repo", 3, "hi")
        self.assertEqual(str(context.exception), "Issue not found")

    def test_repository_events(self):
        events = [{"id": "1", "type": "PushEvent"}]
        with patch.object(github_service, "_request", return_value=(200, events, {})) as request:
            result = github_service.get_repository_events("token", "octo", "demo", per_page=500)
        self.assertEqual(result, events)
        self.assertEqual(request.call_args.args[1], "/repos/octo/demo/events")
        self.assertEqual(request.call_args.kwargs["params"], {"per_page": 100})

    def test_repository_events_not_found(self):
        with patch.object(github_service, "_request", return_value=(404, {"message": "Not Found"}, {})):
            with self.assertRaises(GitHubError) as context:
                github_service.get_repository_events("token", "octo", "missing")
        self.assertEqual(str(context.exception), "Repository not found")
        with self.assertRaises(ValueError):
            github_service.get_repository_events("token", "octo", "demo", per_page=0)


class TokenEncryptionTestCase(unittest.TestCase):
    def test_round_trip(self):
        with app.app_context():
            encrypted = encrypt_token("gho_secret")
            self.assertNotIn("gho_secret", encrypted)
            self.assertEqual(decrypt_token(encrypted), "gho_secret")
            self.assertIsNone(decrypt_token(None))


if __name__ == "__main__":
    unittest.main()
