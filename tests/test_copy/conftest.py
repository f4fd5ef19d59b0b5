"""Fixtures for copy tests: a stand-in for pv driven by environment variables."""

import os
import stat
import sys

import pytest

FAKE_PV = """#!{python}
# Behaves like `pv --numeric --bytes SOURCE`: byte counts on stderr, data on stdout.
import os, signal, sys, time

signal.signal(signal.SIGINT, signal.SIG_DFL)
args = sys.argv[1:]
if os.environ.get("FAKE_PV_ARGS"):
    with open(os.environ["FAKE_PV_ARGS"], "w") as f:
        f.write(" ".join(args))
delay = float(os.environ.get("FAKE_PV_DELAY", "0.05"))
for n in os.environ.get("FAKE_PV_COUNTS", "").split():
    sys.stderr.write(n + "\\n")
    sys.stderr.flush()
    time.sleep(delay)
time.sleep(float(os.environ.get("FAKE_PV_LINGER", "0")))
with open(args[-1], "rb") as f:
    sys.stdout.buffer.write(f.read())
sys.exit(int(os.environ.get("FAKE_PV_EXIT", "0")))
"""

_FAKE_PV_VARS = ("FAKE_PV_ARGS", "FAKE_PV_COUNTS", "FAKE_PV_DELAY", "FAKE_PV_LINGER", "FAKE_PV_EXIT")


@pytest.fixture
def fake_pv(tmp_path, monkeypatch):
    """Path to an executable fake pv script."""
    path = tmp_path / "bin" / "fake-pv"
    path.parent.mkdir()
    path.write_text(FAKE_PV.format(python=sys.executable))
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    for var in _FAKE_PV_VARS:
        monkeypatch.delenv(var, raising=False)
    return str(path)


@pytest.fixture
def source_file(tmp_path):
    """A 1024-byte source file."""
    path = tmp_path / "source.bin"
    path.write_bytes(os.urandom(1024))
    return path
