"""
Scheduler module.
Contains the periodic admission scheduler.
"""

from waitroom.scheduler.main import AdmissionScheduler, run

__all__ = ["AdmissionScheduler", "run"]
