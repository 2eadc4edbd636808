import logging

import numpy as np
import pytest

from euclid_replay.errors import AmbiguousSelection
from euclid_replay.logging_utils import _safe_repr, apply_debug_logging
from euclid_replay.model import ConstructionState
from euclid_replay.selectors import tie_break


def test_module_functions_trace_calls_at_debug(caplog):
    with caplog.at_level(logging.DEBUG, logger='euclid_replay.selectors'):
        with pytest.raises(AmbiguousSelection):
            tie_break([], None)

    assert 'Entering tie_break' in caplog.text
    assert 'tie_break raised AmbiguousSelection' in caplog.text


def test_large_values_are_summarised():
    assert _safe_repr(np.zeros((10, 2))).startswith('ndarray(shape=(10, 2))')
    assert _safe_repr(ConstructionState()) == 'ConstructionState(points=0, segments=0, circles=0, lines=0)'
    assert _safe_repr(list(range(20))).endswith('... (20 total)]')


def test_apply_debug_logging_skips_foreign_and_named_functions():
    def local():
        return 1

    namespace = {'__name__': __name__, 'local': local, 'kept': local, 'foreign': np.dot}

    apply_debug_logging(namespace, skip=['kept'])

    assert getattr(namespace['local'], '_debug_logging_wrapped', False)
    assert namespace['kept'] is local
    assert namespace['foreign'] is np.dot
