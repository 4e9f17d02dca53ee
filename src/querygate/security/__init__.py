"""Query sanitization and security validation.

Pipeline (run by the QueryGenerator, usable on its own):
    1. QuerySanitizer - Normalizes raw completions into one query candidate
    2. SecurityValidator.add_row_level_security - Binds the owner column
    3. QuerySanitizer.add_limit_if_missing - Caps SELECT row counts
    4. SecurityValidator.validate - Policy checks

Example:
    sanitizer = QuerySanitizer()
    validator = SecurityValidator(SecurityConfig(allowed_tables=["users"]))

    query = sanitizer.sanitize("SELECT * FROM users; -- all users")
    report = await validator.validate(query, UserContext(user_id=1, role="user"))
"""

from querygate.security.inspector import QueryInspector, RegexQueryInspector
from querygate.security.sanitizer import QuerySanitizer
from querygate.security.validator import SecurityValidator

__all__ = [
    "QueryInspector",
    "RegexQueryInspector",
    "QuerySanitizer",
    "SecurityValidator",
]
