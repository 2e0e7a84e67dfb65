"""Pydantic models for raw results reports."""

from collections.abc import Sequence

from pydantic import Field, field_validator

from results_loader.models.base import Model


class SubTestResult(Model):
    """Outcome of a single subtest within a test."""

    name: str
    status: str
    message: str | None = None


class TestResult(Model):
    """Outcome of a single test, with any nested subtest outcomes."""

    __test__ = False

    test: str
    status: str
    message: str | None = None
    subtests: Sequence[SubTestResult] = Field(default_factory=list)

    @field_validator("subtests", mode="before")
    @classmethod
    def subtests_null_as_empty(cls, value: object) -> object:
        return [] if value is None else value


class ResultReport(Model):
    """Raw results report produced by one run."""

    results: Sequence[TestResult] = Field(default_factory=list)
