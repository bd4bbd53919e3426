"""Aggregate model imports for Alembic auto-detection."""

from herbtrace.models.user import User  # noqa: F401
from herbtrace.models.collector import Collector  # noqa: F401
from herbtrace.models.transport import Transport  # noqa: F401
from herbtrace.models.processing import Processing  # noqa: F401
from herbtrace.models.lab_test import LabTest  # noqa: F401
from herbtrace.models.product_batch import ProductBatch, product_batch_lab_tests  # noqa: F401
