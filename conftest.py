# conftest.py
import logging

import matplotlib
import pytest


@pytest.fixture(autouse=True)
def mpl_test_backend():
    """Switch to a non-interactive backend for all tests."""
    matplotlib.use('Agg')


@pytest.fixture(autouse=True)
def quiet_elastodg(caplog):
    """Keep operator set-up chatter at INFO out of the test report."""
    caplog.set_level(logging.WARNING, logger="elastodg")
