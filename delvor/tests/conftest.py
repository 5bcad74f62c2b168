import datetime
import io
import logging
import pathlib

import numpy as np
import pytest

LOG_DIR = pathlib.Path(__file__).parent / "test-logs"


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    # Attach the report to the item so the log fixture can see the outcome in teardown.
    outcome = yield
    rep = outcome.get_result()
    setattr(item, "rep_" + rep.when, rep)


@pytest.fixture(autouse=True)
def capture_test_logs(request):
    """Buffer all log records of a test and persist them only when it fails."""
    root = logging.getLogger()
    prev_handlers = list(root.handlers)
    for h in prev_handlers:
        root.removeHandler(h)

    buf = io.StringIO()
    handler = logging.StreamHandler(buf)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root.addHandler(handler)
    prev_level = root.level
    root.setLevel(logging.DEBUG)

    try:
        yield
    finally:
        root.removeHandler(handler)
        root.setLevel(prev_level)
        for h in prev_handlers:
            root.addHandler(h)

        rep = getattr(request.node, "rep_call", None)
        if rep is not None and getattr(rep, "outcome", None) == "failed":
            nodeid = request.node.nodeid.replace("::", "__").replace("/", "_")
            ts = datetime.datetime.now().strftime("%Y%m%dT%H%M%S")
            try:
                LOG_DIR.mkdir(exist_ok=True)
                with open(LOG_DIR / f"{nodeid}__{ts}.log", "w", encoding="utf-8") as f:
                    f.write(f"=== Test: {request.node.nodeid}\n=== Timestamp: {ts}\n\n")
                    f.write(buf.getvalue())
            except OSError:
                pass


@pytest.fixture
def rng():
    return np.random.default_rng(12345)


@pytest.fixture
def random_sites(rng):
    """60 distinct sites in general position inside [10, 90]^2."""
    pts = rng.uniform(10.0, 90.0, size=(60, 2))
    return [tuple(p) for p in pts]
