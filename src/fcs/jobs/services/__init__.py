"""Job services.

Service classes that encapsulate conversion business logic, separating it
from the HTTP and CLI layers.
"""

from fcs.jobs.services.conversion import ConversionResponse, ConversionService

__all__ = [
    "ConversionResponse",
    "ConversionService",
]
