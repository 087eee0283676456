import pytest

from census.services.feature_flags import FEATURE_FLAGS, UnknownFlag, feature_flags, is_feature_enabled


def test_defaults():
    assert feature_flags.get_all() == FEATURE_FLAGS
    assert is_feature_enabled('ENABLE_CUDYR') is True
    assert is_feature_enabled('SHOW_DEBUG_PANEL') is False


def test_enable_disable_toggle_reset():
    assert feature_flags.enable('SHOW_DEBUG_PANEL') is True
    assert feature_flags.disable('ENABLE_CUDYR') is False
    assert feature_flags.toggle('ENABLE_CUDYR') is True
    assert feature_flags.get_all()['SHOW_DEBUG_PANEL'] is True
    feature_flags.reset('SHOW_DEBUG_PANEL')
    assert feature_flags.is_enabled('SHOW_DEBUG_PANEL') is False
    feature_flags.disable('ENABLE_EMAIL_CENSUS')
    feature_flags.reset()
    assert feature_flags.get_all() == FEATURE_FLAGS


def test_unknown_flag():
    with pytest.raises(UnknownFlag):
        feature_flags.is_enabled('NOPE')
    with pytest.raises(UnknownFlag):
        feature_flags.enable('NOPE')


def test_subscribe_and_unsubscribe():
    seen = []
    unsubscribe = feature_flags.subscribe('ENABLE_ANALYTICS_VIEW', seen.append)
    feature_flags.toggle('ENABLE_ANALYTICS_VIEW')
    feature_flags.toggle('ENABLE_ANALYTICS_VIEW')
    unsubscribe()
    feature_flags.enable('ENABLE_ANALYTICS_VIEW')
    assert seen == [True, False]


def test_failing_listener_does_not_break_updates():
    def bad(value):
        raise RuntimeError('listener')

    unsubscribe = feature_flags.subscribe('SHOW_DEBUG_PANEL', bad)
    try:
        assert feature_flags.enable('SHOW_DEBUG_PANEL') is True
    finally:
        unsubscribe()
