"""
Unit tests for video ID extraction and API key loading.
"""

import os
from unittest.mock import patch

import pytest

from comment_filter import ConfigError, get_video_id, load_api_key


class TestGetVideoId:
    """Test video ID extraction from watch URLs"""

    def test_id_before_ampersand(self):
        """Test the ID stops at the next parameter separator"""
        assert get_video_id("https://www.youtube.com/watch?v=dQw4w9WgXcQ&t=42s") == "dQw4w9WgXcQ"

    def test_id_at_end_of_url(self):
        """Test everything after the marker is taken when no '&' follows"""
        assert get_video_id("https://www.youtube.com/watch?v=dQw4w9WgXcQ") == "dQw4w9WgXcQ"

    def test_multiple_parameters(self):
        url = "https://youtube.com/watch?v=abc123&list=PL1&index=2"
        assert get_video_id(url) == "abc123"

    def test_id_format_not_validated(self):
        assert get_video_id("youtube.com/watch?v=not-an-id!") == "not-an-id!"

    @pytest.mark.parametrize("url", [
        "https://youtu.be/dQw4w9WgXcQ",
        "https://www.youtube.com/@someone",
        "https://example.com/watch?v=abc",
        "",
    ])
    def test_missing_marker(self, url):
        """Test URLs without the watch marker yield None"""
        assert get_video_id(url) is None

    def test_empty_id(self):
        """Test an empty ID after the marker is treated as a failure"""
        assert get_video_id("https://www.youtube.com/watch?v=&t=1") is None


class TestLoadApiKey:
    """Test API key resolution"""

    @patch.dict(os.environ, {"YOUTUBE_API_KEY": "env_key"})
    def test_from_env(self):
        assert load_api_key() == "env_key"

    @patch.dict(os.environ, {"YOUTUBE_API_KEY": "env_key"})
    def test_cli_key_overrides_env(self):
        assert load_api_key("cli_key") == "cli_key"

    @patch.dict(os.environ, {}, clear=True)
    def test_missing_key(self):
        with pytest.raises(ConfigError, match="not found"):
            load_api_key()

    @patch.dict(os.environ, {"YOUTUBE_API_KEY": "your_api_key_here"})
    def test_placeholder_key_rejected(self):
        with pytest.raises(ConfigError):
            load_api_key()
