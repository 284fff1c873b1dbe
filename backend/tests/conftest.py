import logging
import struct
import sys

import pytest


def pack_pcm(values) -> bytes:
    """Encode ints as raw PCM s16le bytes."""
    return struct.pack(f"<{len(values)}h", *values)


@pytest.fixture
def pcm_bytes():
    """Factory fixture: list of ints → PCM s16le bytes."""
    return pack_pcm


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Point ~ at a temp dir so logs and crash dumps never touch the real home."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("WAVEDOWN_LOG_DIR", raising=False)
    monkeypatch.delenv("WAVEDOWN_LOG_LEVEL", raising=False)
    return home


@pytest.fixture(autouse=True)
def restore_diagnostics():
    """Undo root-logger handlers and sys.excepthook installed by a test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    hook = sys.excepthook
    yield
    for handler in root.handlers:
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
    sys.excepthook = hook
