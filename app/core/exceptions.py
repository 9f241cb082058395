from fastapi import HTTPException, status


class WorkflowValidationError(HTTPException):
    """Rejected before any write: a required field is missing or malformed."""

    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class FeedbackRequiredError(WorkflowValidationError):
    def __init__(self):
        super().__init__(
            "Feedback is required when requesting a revision. Please tell the partner what to change."
        )


class UnknownArtworkRequirementError(WorkflowValidationError):
    def __init__(self, requirement_type: str):
        super().__init__(
            f"Unknown artwork requirement '{requirement_type}'. Pick one from the stand template or use 'Custom'."
        )


class InvalidAttachmentError(WorkflowValidationError):
    pass


class StandLockedError(HTTPException):
    """The stand is approved or completed; partner-side changes are rejected."""

    def __init__(self, stand_status: str):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"This stand is {stand_status} and can no longer be changed. Contact the organizer to reopen it."
        )


class StandNotFoundError(HTTPException):
    def __init__(self):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND,
                         detail="Stand not found.")


class SubmissionNotFoundError(HTTPException):
    def __init__(self, label: str = "Submission"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND,
                         detail=f"{label} not found.")


class ConfigurationNotFoundError(HTTPException):
    def __init__(self):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND,
                         detail="Stand configuration not found.")
