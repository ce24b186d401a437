"""
Tests for CLI and Lambda argument handling.
"""

from tierscope.adapters.lambda_handler import get_refresh_mode_from_string
from tierscope.application.use_cases.market_refresh import RefreshMode
from tierscope.main import REFRESH_MODES, parse_args


class TestCLI:
    """Tests for command line parsing."""

    def test_defaults(self):
        args = parse_args([])
        assert args.mode == "refresh"
        assert args.max_tokens is None
        assert args.json_logs is False

    def test_ask_mode(self):
        args = parse_args(["--mode", "ask", "--query", "hi", "--max-tokens", "100"])
        assert (args.mode, args.query, args.max_tokens) == ("ask", "hi", 100)

    def test_refresh_modes(self):
        assert REFRESH_MODES["analyze-only"] == RefreshMode.ANALYZE_ONLY
        assert REFRESH_MODES["ingest-only"] == RefreshMode.INGEST_ONLY


class TestLambdaModes:
    """Tests for Lambda event mode parsing."""

    def test_known_and_unknown_modes(self):
        assert get_refresh_mode_from_string("analyze_only") == RefreshMode.ANALYZE_ONLY
        assert get_refresh_mode_from_string("Ingest-Only") == RefreshMode.INGEST_ONLY
        assert get_refresh_mode_from_string("bogus") == RefreshMode.FULL
