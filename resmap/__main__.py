"""Entry point for `python -m resmap`.

Usage:
    python -m resmap
"""

from __future__ import annotations

import asyncio

from resmap.app import main

asyncio.run(main())
