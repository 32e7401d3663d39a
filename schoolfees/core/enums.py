from enum import Enum


class FeeType(str, Enum):
    tuition = "tuition"
    uniform = "uniform"
    feeding = "feeding"
    transport = "transport"
    books = "books"
    sports = "sports"
    development = "development"
    examination = "examination"
    pta = "pta"
    computer = "computer"
    library = "library"
    laboratory = "laboratory"
    lesson = "lesson"
    other = "other"


class AcademicTerm(str, Enum):
    first = "first"
    second = "second"
    third = "third"


class ScholarshipType(str, Enum):
    percentage = "percentage"
    fixed_amount = "fixed_amount"
    full_waiver = "full_waiver"


class ScholarshipApplicability(str, Enum):
    all = "all"
    specific_classes = "specific_classes"
    specific_students = "specific_students"


class ScholarshipStatus(str, Enum):
    active = "active"
    suspended = "suspended"
    expired = "expired"


class StudentFeeStatus(str, Enum):
    unpaid = "unpaid"
    partial = "partial"
    paid = "paid"
    overpaid = "overpaid"


class FeeTypeFilterPolicy(str, Enum):
    ignore = "ignore"
    restrict = "restrict"
