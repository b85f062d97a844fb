"""
Tests for the FastAPI web application.
"""

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from lxml import etree

from herdstat.app import app
from herdstat.color_quantizer import ColorQuantizer, parse_hex_color, scheme_from_primary
from herdstat.github_client import GitHubClientError
from herdstat.heatmap_renderer import HeatmapRenderError


@pytest.fixture
def client():
    """Create a test client for the FastAPI app."""
    return TestClient(app)


@pytest.fixture
def github():
    """Patch the GitHub client with one repository and a single commit."""
    with patch("herdstat.app.GitHubClient") as mock_github_client, patch(
        "herdstat.config.HERDSTAT_REPOSITORIES", "herdstat/herdstat"
    ):
        instance = MagicMock()
        mock_github_client.return_value = instance
        instance.get_repository.return_value = {
            "full_name": "herdstat/herdstat",
            "name": "herdstat",
            "owner": {"login": "herdstat"},
        }
        instance.list_commits.return_value = [
            {
                "sha": "abc123",
                "commit": {"author": {"name": "Jane", "email": "jane@example.com", "date": "2013-04-22T10:00:00Z"}},
                "author": {"login": "jane"},
            }
        ]
        instance.list_issues.return_value = []
        instance.list_pull_reviews.return_value = []
        yield instance


class TestHealthEndpoint:
    """Tests for the /health endpoint."""

    def test_health_returns_ok(self, client):
        """Health endpoint should return status ok."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestCalendarEndpoint:
    """Tests for the /api/calendar endpoint."""

    @patch("herdstat.app.validate_config")
    def test_calendar_returns_expected_structure(self, mock_validate, client, github):
        """Calendar endpoint should return the window and one entry per day."""
        response = client.get("/api/calendar", params={"until": "2013-04-22"})

        assert response.status_code == 200
        data = response.json()

        assert data["first_date"] == "2012-04-24"
        assert data["last_date"] == "2013-04-22"
        assert data["total"] == 1
        assert data["max_count"] == 1
        assert data["levels"] == 5
        assert len(data["days"]) == 364
        assert data["days"][-1] == {"date": "2013-04-22", "count": 1, "level": 4}
        assert data["days"][0] == {"date": "2012-04-24", "count": 0, "level": 0}

    @patch("herdstat.app.validate_config")
    def test_calendar_levels_parameter(self, mock_validate, client, github):
        response = client.get("/api/calendar", params={"until": "2013-04-22", "levels": 10})

        assert response.status_code == 200
        assert response.json()["levels"] == 10
        assert response.json()["days"][-1]["level"] == 9

    @pytest.mark.parametrize("params", [{"levels": 3}, {"levels": 256}, {"color": "zzz"}, {"until": "soon"}])
    def test_invalid_parameters(self, client, params):
        """Out of range parameters should be rejected before any API call."""
        response = client.get("/api/calendar", params=params)
        assert response.status_code == 422

    @patch("herdstat.app.validate_config")
    def test_calendar_config_error(self, mock_validate, client):
        """Calendar endpoint should return 500 on configuration error."""
        mock_validate.side_effect = ValueError("Missing required configuration: HERDSTAT_REPOSITORIES")

        response = client.get("/api/calendar")

        assert response.status_code == 500
        assert "Configuration error" in response.json()["detail"]

    @patch("herdstat.app.validate_config")
    def test_calendar_github_error(self, mock_validate, client, github):
        """Calendar endpoint should return 502 on GitHub API error."""
        github.get_repository.side_effect = GitHubClientError("API rate limit exceeded")

        response = client.get("/api/calendar")

        assert response.status_code == 502
        assert "rate limit" in response.json()["detail"]


class TestContributionGraphEndpoint:
    """Tests for the /contribution-graph.svg endpoint."""

    @patch("herdstat.app.validate_config")
    def test_returns_svg(self, mock_validate, client, github):
        response = client.get(
            "/contribution-graph.svg", params={"until": "2013-04-22", "color": "#FF0000"}
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("image/svg+xml")
        root = etree.fromstring(response.content)
        assert root.get("width") == "700"
        top_color = ColorQuantizer(scheme_from_primary(parse_hex_color("FF0000"))).palette(dark=False)[-1]
        assert top_color in response.text

    @patch("herdstat.app.validate_config")
    def test_github_error(self, mock_validate, client, github):
        github.list_commits.side_effect = GitHubClientError("Authentication failed.", 401)

        response = client.get("/contribution-graph.svg")

        assert response.status_code == 502

    @patch("herdstat.app.validate_config")
    @patch("herdstat.app.HeatmapRenderer")
    def test_render_error(self, mock_renderer, mock_validate, client, github):
        mock_renderer.return_value.render.side_effect = HeatmapRenderError("template broken")

        response = client.get("/contribution-graph.svg")

        assert response.status_code == 500
        assert "template broken" in response.json()["detail"]
