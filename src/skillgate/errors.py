"""errors.py — Exceptions raised by skillgate."""


class SkillgateError(Exception):
    """Base class for skillgate errors."""


class ConfigurationError(SkillgateError):
    """Raised when a rule set or config file is malformed.

    Fatal at load time. A malformed rule is never skipped, since skipping it
    would silently disable a policy.
    """
