from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional, Union

import structlog

from deferred_jobs.errors import InvalidFilterError

logger = structlog.get_logger()


def effective_options(job_type: type, options: Optional[Mapping] = None) -> dict:
    """Merge a job type's declared options with call-time options.

    Args:
        job_type: Job class exposing get_options()
        options: Optional runtime options; keys are normalized to strings

    Returns:
        New dict of effective options
    """
    merged = dict(job_type.get_options())
    if options:
        merged.update({str(key): value for key, value in options.items()})
    return merged


@dataclass(frozen=True)
class TypeMatch:
    """Matches jobs whose class is `job_type` or a subclass of it."""
    job_type: type

    def match(self, job_type: type, options: dict) -> bool:
        return issubclass(job_type, self.job_type)


@dataclass(frozen=True)
class OptionMatch:
    """Matches jobs whose effective options contain every key/value pair."""
    options: tuple

    @classmethod
    def from_mapping(cls, mapping: Mapping) -> "OptionMatch":
        return cls(tuple((str(key), value) for key, value in mapping.items()))

    def match(self, job_type: type, options: dict) -> bool:
        return all(options.get(key) == value for key, value in self.options)


@dataclass(frozen=True)
class MatchAll:
    """Matches every job."""

    def match(self, job_type: type, options: dict) -> bool:
        return True


FilterTerm = Union[TypeMatch, OptionMatch, MatchAll]


@dataclass(frozen=True)
class JobFilter:
    """Immutable predicate over (job type, runtime options).

    A filter with no terms matches everything. Otherwise a job matches when
    any one of the terms matches it.
    """
    terms: tuple = field(default_factory=tuple)

    @classmethod
    def parse(cls, *filters: Any) -> "JobFilter":
        """Build a filter from the positional arguments of a control call.

        Args:
            *filters: Job classes, option mappings, True, nested lists of
                those, or existing JobFilter instances

        Returns:
            JobFilter with one term per parsed argument

        Raises:
            InvalidFilterError: If an argument is not a recognized term
        """
        terms: list = []
        for item in filters:
            cls._parse_term(item, terms)
        return cls(tuple(terms))

    @classmethod
    def _parse_term(cls, item: Any, terms: list) -> None:
        if isinstance(item, JobFilter):
            terms.extend(item.terms)
        elif isinstance(item, (TypeMatch, OptionMatch, MatchAll)):
            terms.append(item)
        elif isinstance(item, type):
            terms.append(TypeMatch(item))
        elif isinstance(item, Mapping):
            terms.append(OptionMatch.from_mapping(item))
        elif item is True:
            terms.append(MatchAll())
        elif isinstance(item, (list, tuple)):
            for nested in item:
                cls._parse_term(nested, terms)
        else:
            logger.warning(
                "invalid_job_filter",
                term=repr(item),
                source="filters",
            )
            raise InvalidFilterError(item)

    @property
    def matches_all(self) -> bool:
        return not self.terms or any(isinstance(t, MatchAll) for t in self.terms)

    def match(self, job_type: type, options: Optional[Mapping] = None) -> bool:
        """Return True if the job type with optional runtime options matches."""
        if self.matches_all:
            return True

        # Effective options are only resolved when an option term needs them
        resolved: Optional[dict] = None
        for term in self.terms:
            if isinstance(term, OptionMatch):
                if resolved is None:
                    resolved = effective_options(job_type, options)
                if term.match(job_type, resolved):
                    return True
            elif term.match(job_type, {}):
                return True
        return False


MATCH_ALL = JobFilter()
