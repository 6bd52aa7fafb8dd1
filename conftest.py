# conftest.py
import os
import pytest

@pytest.fixture(autouse=True)
def check_dbrunner_conf():
    before = os.path.exists('dbrunner.conf')
    yield
    after = os.path.exists('dbrunner.conf')
    if after and not before:
        # This will show you exactly which test created it
        test_name = os.environ.get('PYTEST_CURRENT_TEST', 'unknown')
        pytest.fail(f"Test created dbrunner.conf and didn't clean up: {test_name}", pytrace=False)
