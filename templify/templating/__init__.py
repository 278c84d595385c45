"""Templating package.

Placeholder extraction and template filling. Both sides share the tag grammar
in `tags` so a tag that is reported at upload time is exactly a tag that gets
replaced at generation time. Nothing in here touches storage or HTTP.
"""

from .extractor import extract_placeholders  # noqa: F401
from .filler import fill_template  # noqa: F401
from .tags import TAG_PATTERN  # noqa: F401
