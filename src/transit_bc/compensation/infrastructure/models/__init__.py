from .compensation_case_model import CompensationCaseModel

__all__ = ["CompensationCaseModel"]
