from app.classification.models import DocumentClassification, ProcessingPlan

_IMPORTANCE_BONUS = {"critical": 4, "high": 3, "medium": 2, "low": 1}
_AUTOFILL_BONUS = {"full": 2, "partial": 1, "manual": 0}
BASE_PRIORITY = 5
MAX_PRIORITY = 10


def plan_processing(classification: DocumentClassification) -> ProcessingPlan:
    """Turn a classification into a queue priority and a list of next steps."""
    priority = (
        BASE_PRIORITY
        + _IMPORTANCE_BONUS.get(classification.tax_importance, 1)
        + _AUTOFILL_BONUS.get(classification.auto_fill_capability, 0)
    )
    return ProcessingPlan(
        priority=min(priority, MAX_PRIORITY),
        automation_level=classification.auto_fill_capability,
        review_required=classification.required_review,
        estimated_accuracy=classification.confidence,
        next_steps=_next_steps(classification),
    )


def _next_steps(classification: DocumentClassification) -> list[str]:
    if classification.auto_fill_capability == "full":
        steps = [
            "Proceed with automatic form population",
            "Schedule quality review within 24 hours",
        ]
    elif classification.auto_fill_capability == "partial":
        steps = [
            "Extract available data automatically",
            "Flag for manual completion of remaining fields",
            "Schedule detailed review",
        ]
    else:
        steps = [
            "Flag for manual processing",
            "Assign to experienced preparer",
            "Schedule comprehensive review",
        ]
    if classification.confidence < 0.8:
        steps.append("Verify document classification before processing")
    if classification.risk_factors:
        steps.append("Review identified risk factors before proceeding")
    return steps
