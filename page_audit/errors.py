"""Errors that abort a harness run.

Policy violations are not errors: they are reported through the verdict.
"""


class HarnessError(Exception):
    """Base class for failures that prevent a verdict from being computed."""


class ServerStartTimeout(HarnessError):
    """The preview server did not become ready before the hard deadline."""


class NavigationTimeout(HarnessError):
    """The page did not reach network idle within the navigation timeout."""


class AuditEngineUnavailable(HarnessError):
    """The audit engine host could not be reached within its startup window."""


class AuditRunFailed(HarnessError):
    """The audit engine failed while auditing the page."""


class ServerStartFailed(HarnessError):
    """The preview server command could not be started."""


class NavigationFailed(HarnessError):
    """The page could not be loaded, e.g. because the connection was refused."""
