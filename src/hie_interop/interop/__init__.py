"""Interop module.

This module provides the record-exchange rules shared by the broker and the
hospital nodes: gender code mapping, deduplication, search filters and
notification fan-out.
"""

from hie_interop.interop.dedup import (
    find_duplicate,
    find_duplicate_portal_patient,
    is_same_person,
)
from hie_interop.interop.gender import GenderMapping
from hie_interop.interop.notifier import Notifier, Peer
from hie_interop.interop.search import PatientQuery, filter_patients

__all__ = [
    "GenderMapping",
    "Notifier",
    "Peer",
    "PatientQuery",
    "filter_patients",
    "find_duplicate",
    "find_duplicate_portal_patient",
    "is_same_person",
]
