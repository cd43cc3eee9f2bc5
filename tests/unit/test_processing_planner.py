from app.classification.models import DocumentClassification
from app.classification.planner import plan_processing


def _classification(**overrides) -> DocumentClassification:  # type: ignore[no-untyped-def]
    params = {
        "document_type": "W-2",
        "confidence": 0.98,
        "auto_fill_capability": "full",
        "required_review": False,
        "tax_importance": "high",
        "estimated_processing_time": 5,
    }
    params.update(overrides)
    return DocumentClassification(**params)


class TestPlanProcessing:
    def test_priority_is_capped(self) -> None:
        plan = plan_processing(_classification(tax_importance="critical"))
        assert plan.priority == 10

    def test_priority_from_importance_and_capability(self) -> None:
        plan = plan_processing(
            _classification(tax_importance="medium", auto_fill_capability="partial")
        )
        assert plan.priority == 8

    def test_manual_low_importance(self) -> None:
        plan = plan_processing(
            _classification(tax_importance="low", auto_fill_capability="manual")
        )
        assert plan.priority == 6
        assert plan.automation_level == "manual"
        assert plan.next_steps[0] == "Flag for manual processing"

    def test_full_automation_steps(self) -> None:
        plan = plan_processing(_classification())
        assert plan.next_steps == [
            "Proceed with automatic form population",
            "Schedule quality review within 24 hours",
        ]
        assert plan.review_required is False
        assert plan.estimated_accuracy == 0.98

    def test_low_confidence_and_risks_add_steps(self) -> None:
        plan = plan_processing(
            _classification(confidence=0.5, required_review=True, risk_factors=["blurry"])
        )
        assert "Verify document classification before processing" in plan.next_steps
        assert "Review identified risk factors before proceeding" in plan.next_steps
        assert plan.review_required is True
