"""
Exception hierarchy for dnsbench.

Only InvalidQueryFormat ends a benchmark run early. Every other error
is caught by the runner and recorded on the affected endpoint's result.
"""


class BenchmarkError(Exception):
    """Base class for all dnsbench errors."""


class InvalidQueryFormat(BenchmarkError):
    """The query is neither an IP address nor a valid domain name."""


class EndpointConfigError(BenchmarkError):
    """An endpoint address could not be turned into a resolver config."""


class ResolverBuildError(BenchmarkError):
    """The protocol library refused to build a resolver for a config."""


class QueryLookupError(BenchmarkError):
    """A single lookup against an endpoint failed."""


class LookupTimeout(QueryLookupError):
    """A single lookup did not finish before its deadline."""


class TaskFailure(BenchmarkError):
    """An isolated endpoint task could not be started or crashed."""


class RefreshError(BenchmarkError):
    """A remote endpoint or SNI list could not be fetched."""
