"""Allow running the builder as: python -m kline_core.pipeline [--date YYYY-MM-DD]."""

import sys

from kline_core.pipeline.runner import main

sys.exit(main())
