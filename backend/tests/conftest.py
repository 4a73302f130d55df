"""Root conftest — shared test configuration."""

import os
import tempfile

# Ensure tests never touch the real ~/.local/share/clk2.json
os.environ.setdefault(
    "CLK2_STORE_LOCATION",
    os.path.join(tempfile.gettempdir(), "clk2-test-store.json"),
)
os.environ.setdefault("CLK2_LOG_FORMAT", "text")
