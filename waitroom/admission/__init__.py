"""
Admission module.
Contains the admission engine and its process-wide wiring.
"""

from waitroom.admission.engine import AdmissionEngine
from waitroom.admission.dependencies import get_admission_engine

__all__ = ["AdmissionEngine", "get_admission_engine"]
