"""Tests for channel classification."""

import numpy as np
import pandas as pd
import pytest

from analysis.channel import CHANNEL_ORDER, Channel, channel_series, classify_channel


class TestClassifyChannel:

    @pytest.mark.parametrize("flag", [True, 1, np.True_])
    def test_truthy_flag_is_online(self, flag):
        assert classify_channel(flag) is Channel.ONLINE

    @pytest.mark.parametrize("flag", [False, 0, None, np.nan])
    def test_falsy_or_null_flag_is_in_store(self, flag):
        assert classify_channel(flag) is Channel.IN_STORE

    @pytest.mark.parametrize("flag, expected", [
        ("1", Channel.ONLINE),
        (" 1 ", Channel.ONLINE),
        ("0", Channel.IN_STORE),
        ("yes", Channel.IN_STORE),
        ("", Channel.IN_STORE),
        (2, Channel.IN_STORE),
        (1.0, Channel.ONLINE),
    ])
    def test_flag_must_equal_one(self, flag, expected):
        assert classify_channel(flag) is expected

    def test_labels(self):
        assert Channel.ONLINE.value == "Online"
        assert Channel.IN_STORE.value == "In-Store"
        assert str(Channel.IN_STORE) == "In-Store"
        assert CHANNEL_ORDER == ["Online", "In-Store"]


class TestChannelSeries:

    def test_keeps_index_and_category_order(self):
        flags = pd.Series([0, 1, 1], index=[10, 20, 30])
        result = channel_series(flags)

        assert list(result.index) == [10, 20, 30]
        assert list(result.astype(str)) == ["In-Store", "Online", "Online"]
        assert list(result.cat.categories) == CHANNEL_ORDER

    def test_string_flags_match_sql_classification(self):
        result = channel_series(pd.Series(["1", "0", "0"]))
        assert list(result.astype(str)) == ["Online", "In-Store", "In-Store"]

    def test_empty(self):
        result = channel_series(pd.Series([], dtype=int))
        assert len(result) == 0
