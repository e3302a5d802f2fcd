class OpsDeskError(Exception):
    """Base class for business-rule failures raised by core and CRUD code."""


class NotFoundError(OpsDeskError):
    pass


class PreconditionFailedError(OpsDeskError):
    pass


class DuplicateSDRAssignmentError(OpsDeskError):
    """The sale already has an SDR assignment (one claimant per sale)."""

    def __init__(self, sale_id: int):
        self.sale_id = sale_id
        super().__init__(f"Sale {sale_id} already has an SDR assigned.")


class InvalidTransitionError(OpsDeskError):
    def __init__(self, assignment_id: int, current_status: str, target_status: str):
        self.assignment_id = assignment_id
        self.current_status = current_status
        self.target_status = target_status
        super().__init__(
            f"SDR assignment {assignment_id} is '{current_status}' and cannot become '{target_status}'."
        )
