from __future__ import annotations

import os

# Keep test runs from writing logs/rankguard.log into the checkout.
os.environ.setdefault("RANKGUARD_LOG_FILE", "0")
