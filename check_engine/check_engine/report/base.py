"""Renderer and handler interfaces for the report layer.

A :class:`ReportRenderer` turns a :class:`ResultSet` into a
:class:`ReportStream`; a :class:`ReportHandler` delivers that stream to a
destination.  New destinations are added by implementing these interfaces,
not by branching in the orchestrator.
"""

from __future__ import annotations

import abc
from collections.abc import Iterable, Iterator

from pydantic import BaseModel, ConfigDict

from check_engine.models.report import ResultSet


class RenderError(Exception):
    """Raised when a result set cannot be rendered or a report cannot be parsed."""


class ReportStream:
    """A lazily produced report body that can be consumed exactly once.

    Parameters
    ----------
    chunks:
        Iterable of encoded byte chunks; not evaluated until consumed.
    content_type:
        MIME type of the body, used by handlers that need it (e.g. email).
    """

    def __init__(self, chunks: Iterable[bytes], content_type: str = "application/octet-stream") -> None:
        self._chunks = chunks
        self._consumed = False
        self.content_type = content_type

    @property
    def consumed(self) -> bool:
        return self._consumed

    def __iter__(self) -> Iterator[bytes]:
        if self._consumed:
            raise RuntimeError("Report stream has already been consumed")
        self._consumed = True
        return iter(self._chunks)

    def read(self) -> bytes:
        """Consume the whole stream and return it as bytes."""
        return b"".join(self)

    def read_text(self, encoding: str = "utf-8") -> str:
        return self.read().decode(encoding)


class DeliveryResult(BaseModel):
    """Outcome of delivering one report to one destination."""

    model_config = ConfigDict(frozen=True)

    destination: str
    success: bool
    error: str | None = None


class ReportRenderer(abc.ABC):
    """Strategy converting a result set into a serialized report body."""

    content_type: str = "application/octet-stream"

    @abc.abstractmethod
    def render(self, result_set: ResultSet) -> ReportStream:
        """Render *result_set*.

        Raises
        ------
        RenderError
            If the result set cannot be rendered by this renderer.
        """


class ReportHandler(abc.ABC):
    """Strategy delivering a serialized report to a destination.

    Handlers never retry.  Destination failures are reported through the
    returned :class:`DeliveryResult` rather than raised.
    """

    @abc.abstractmethod
    def describe(self) -> str:
        """Short human-readable name of the destination, used in logs."""

    @abc.abstractmethod
    def deliver(self, stream: ReportStream) -> DeliveryResult:
        """Deliver *stream* and report whether it succeeded."""

    def _ok(self) -> DeliveryResult:
        return DeliveryResult(destination=self.describe(), success=True)

    def _failed(self, exc: BaseException | str) -> DeliveryResult:
        error = exc if isinstance(exc, str) else f"{type(exc).__name__}: {exc}"
        return DeliveryResult(destination=self.describe(), success=False, error=error)
