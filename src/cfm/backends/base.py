"""
Generator Contract.

A generator turns one CanonicalForm into one RebuildResult:

    generate(form, options) -> RebuildResult

RULES FOR IMPLEMENTATIONS:
    - Dialect/platform is a value chosen at construction, not a subclass
    - No mutable state may survive from one generate() call to the next;
      a generator instance is reused for every form in a batch
    - Options only add or remove artifact content
    - Failure is either a RebuildResult with success=False or a raised
      GenerationError; both are contained by the batch orchestrator
"""

from typing import Protocol

from cfm.config import GenerationOptions
from cfm.model import CanonicalForm
from cfm.results import RebuildResult


class FormGenerator(Protocol):
    """Capability implemented by every backend."""

    target: str

    def generate(self, form: CanonicalForm, options: GenerationOptions) -> RebuildResult:
        ...
