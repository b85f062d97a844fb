"""
Shared fixtures.
"""

from unittest.mock import patch

import pytest


@pytest.fixture(autouse=True)
def no_user_config_file(tmp_path):
    """Keep a ~/.herdstat.yaml on the test machine out of the tests."""
    with patch("herdstat.config.DEFAULT_CONFIG_FILE", tmp_path / "missing.herdstat.yaml"):
        yield
