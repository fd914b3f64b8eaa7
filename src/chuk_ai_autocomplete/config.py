from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()

# Language used when detection is unavailable or not confident enough
DEFAULT_LANGUAGE = os.getenv("CHUK_AUTOCOMPLETE_LANGUAGE", "en")

# Completion cache capacity: can be overridden by environment variable
DEFAULT_CACHE_CAPACITY = int(os.getenv("CHUK_AUTOCOMPLETE_CACHE_SIZE", "60"))
