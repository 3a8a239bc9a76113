from .grading_scale import GradingScale
from .result import Result, Semester
from .audit_entry import AuditLogImmutable, ResultAuditEntry
from .final_transcript import FinalTranscript

__all__ = [
    "GradingScale",
    "Result",
    "Semester",
    "ResultAuditEntry",
    "AuditLogImmutable",
    "FinalTranscript",
]
