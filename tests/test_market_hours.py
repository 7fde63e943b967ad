"""Tests for exchange session checks."""

from datetime import datetime
from unittest.mock import Mock, patch

import pandas as pd
import pytest
import pytz

from stockwhisperer.market_hours import MARKET_CALENDARS, is_market_open, market_timezone


@pytest.fixture
def mock_market_calendar():
    """Mock the market calendar."""
    with patch("stockwhisperer.market_hours.mcal.get_calendar") as mock_get_calendar:
        mock_calendar = Mock()
        mock_get_calendar.return_value = mock_calendar
        yield mock_get_calendar, mock_calendar


@pytest.fixture
def nyse_session():
    """NYSE session on 2024-12-02, 9:30-16:00 New York time."""
    return pd.DataFrame(
        {
            "market_open": [pd.Timestamp("2024-12-02 14:30", tz="UTC")],
            "market_close": [pd.Timestamp("2024-12-02 21:00", tz="UTC")],
        }
    )


@pytest.fixture
def nse_session():
    """NSE session on 2024-12-02, 9:15-15:30 India time."""
    return pd.DataFrame(
        {
            "market_open": [pd.Timestamp("2024-12-02 03:45", tz="UTC")],
            "market_close": [pd.Timestamp("2024-12-02 10:00", tz="UTC")],
        }
    )


class TestIsMarketOpen:
    """Test cases for is_market_open."""

    @pytest.mark.parametrize(
        "hour,minute,expected",
        [
            (9, 29, False),
            (9, 30, True),
            (12, 0, True),
            (16, 0, True),
            (16, 1, False),
        ],
    )
    def test_us_session(self, mock_market_calendar, nyse_session, hour, minute, expected):
        mock_get_calendar, mock_calendar = mock_market_calendar
        mock_calendar.schedule.return_value = nyse_session

        check_time = datetime(2024, 12, 2, hour, minute)  # naive, New York time

        assert is_market_open("US", check_time) is expected
        mock_get_calendar.assert_called_once_with("NYSE")

    def test_india_session_from_utc(self, mock_market_calendar, nse_session):
        mock_get_calendar, mock_calendar = mock_market_calendar
        mock_calendar.schedule.return_value = nse_session

        # 05:00 UTC is 10:30 in Mumbai
        check_time = pytz.UTC.localize(datetime(2024, 12, 2, 5, 0))

        assert is_market_open("India", check_time) is True
        mock_get_calendar.assert_called_once_with(MARKET_CALENDARS["India"])

    def test_closed_day(self, mock_market_calendar):
        _, mock_calendar = mock_market_calendar
        mock_calendar.schedule.return_value = pd.DataFrame()

        assert is_market_open("US", datetime(2024, 12, 25, 12, 0)) is False

    def test_defaults_to_now(self, mock_market_calendar, nyse_session):
        _, mock_calendar = mock_market_calendar
        mock_calendar.schedule.return_value = nyse_session

        assert isinstance(is_market_open("US"), bool)


def test_market_timezones():
    assert market_timezone("US").zone == "America/New_York"
    assert market_timezone("India").zone == "Asia/Kolkata"
