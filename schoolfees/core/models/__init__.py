from schoolfees.core.models.fee_category import FeeCategory
from schoolfees.core.models.fee_structure import FeeStructure
from schoolfees.core.models.scholarship import Scholarship
from schoolfees.core.models.student_profile import StudentProfile
from schoolfees.core.models.student_fee_assignment import StudentFeeAssignment
from schoolfees.core.models.fee_audit_log import FeeAuditLog

__all__ = [
    "FeeAuditLog",
    "FeeCategory",
    "FeeStructure",
    "Scholarship",
    "StudentFeeAssignment",
    "StudentProfile",
]
