from app.analysis.models import ExtractedData, Insight, ValidationResult, field_value

HIGH_WAGE_THRESHOLD = 50000

_ACTION_RECOMMENDATIONS = {
    "data_quality": "Review and correct data validation errors before filing",
    "missing_information": "Obtain missing information from original document source",
    "compliance_issue": "Address compliance issues to avoid penalties",
}

_TYPE_RECOMMENDATIONS = {
    "W-2": [
        "Verify all amounts match the original W-2 form",
        "Ensure this W-2 is included in tax return filing",
    ],
    "Receipt": [
        "Categorize this expense for proper deduction tracking",
        "Ensure receipt is for legitimate business expense",
    ],
}


def derive_insights(
    document_type: str,
    data: ExtractedData,
    validation_results: list[ValidationResult],
    degraded_steps: tuple[str, ...] = (),
) -> list[Insight]:
    """Rule-based insights; no LLM involved."""
    insights: list[Insight] = []

    invalid = [r for r in validation_results if not r.is_valid]
    if invalid:
        insights.append(
            Insight(
                type="data_quality",
                title="Data Quality Issues Detected",
                description=f"{len(invalid)} fields have validation errors that need attention.",
                impact="medium",
                action_required=True,
            )
        )

    if degraded_steps:
        insights.append(
            Insight(
                type="data_quality",
                title="Automatic Analysis Incomplete",
                description=(
                    "Fallback defaults were used for: " + ", ".join(degraded_steps) + "."
                ),
                impact="medium",
                action_required=True,
            )
        )

    if document_type == "W-2":
        wages = _number(field_value(data, "wages"))
        withheld = _number(field_value(data, "federal_tax_withheld"))
        if wages is not None and wages > HIGH_WAGE_THRESHOLD:
            insights.append(
                Insight(
                    type="tax_optimization",
                    title="High Income - Consider Retirement Contributions",
                    description=(
                        "With wages over $50,000, maximizing 401(k) contributions "
                        "could reduce tax liability."
                    ),
                    impact="medium",
                    action_required=False,
                )
            )
        if not field_value(data, "social_security_wages"):
            insights.append(
                Insight(
                    type="missing_information",
                    title="Missing Social Security Wages",
                    description="Social Security wages information is missing from this W-2.",
                    impact="high",
                    action_required=True,
                )
            )
        if wages is not None and withheld is not None and withheld > wages:
            insights.append(
                Insight(
                    type="compliance_issue",
                    title="Withholding Exceeds Wages",
                    description=(
                        "Federal income tax withheld is greater than reported wages; "
                        "the form was likely misread or misreported."
                    ),
                    impact="high",
                    action_required=True,
                )
            )

    return insights


def derive_recommendations(document_type: str, insights: list[Insight]) -> list[str]:
    recommendations: list[str] = []
    for insight in insights:
        if not insight.action_required:
            continue
        text = _ACTION_RECOMMENDATIONS.get(insight.type)
        if text and text not in recommendations:
            recommendations.append(text)
    recommendations.extend(_TYPE_RECOMMENDATIONS.get(document_type, []))
    return recommendations


def _number(value: object) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)
