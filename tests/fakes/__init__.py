from tests.fakes.fake_clock import FakeClock
from tests.fakes.fake_document_source import FakeDocumentSource

__all__ = ["FakeClock", "FakeDocumentSource"]
