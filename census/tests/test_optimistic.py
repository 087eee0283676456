import pytest

from census.services.optimistic import OptimisticState, perform_optimistic_update


def test_success_publishes_new_state():
    seen, persisted = [], []
    result = perform_optimistic_update(1, lambda s: s + 1, persisted.append, seen.append, lambda e, p: None)
    assert result == {'success': True}
    assert seen == [2] and persisted == [2]


def test_failure_rolls_back():
    seen = []

    def boom(state):
        raise RuntimeError('offline')

    rolled = []
    result = perform_optimistic_update({'v': 1}, {'v': 2}, boom, seen.append,
                                       lambda exc, prev: rolled.append((str(exc), prev)))
    assert result['success'] is False
    assert isinstance(result['error'], RuntimeError)
    assert seen == [{'v': 2}]
    assert rolled == [('offline', {'v': 1})]


def test_on_success_called():
    done = []
    perform_optimistic_update('a', 'b', lambda s: None, lambda s: None, lambda e, p: None, done.append)
    assert done == ['b']


def test_optimistic_state():
    store = []
    st = OptimisticState(0, store.append)
    assert st.update(lambda v: v + 5) is True
    assert st.state == 5 and not st.is_pending and st.error is None
    st.rollback()
    assert st.state == 0


def test_optimistic_state_failure_restores():
    def fail(value):
        raise ValueError('nope')

    st = OptimisticState('old', fail)
    assert st.update('new') is False
    assert st.state == 'old'
    assert isinstance(st.error, ValueError)
    assert st.is_pending is False


@pytest.mark.parametrize('initial', [[], {}, None])
def test_optimistic_state_accepts_any_value(initial):
    st = OptimisticState(initial, lambda v: None)
    assert st.update('x')
    assert st.state == 'x'
