from app.classification.models import DocumentTypeDefinition, TaxonomyCategory

UNKNOWN_TYPE = "Unknown"

TAXONOMY: tuple[TaxonomyCategory, ...] = (
    TaxonomyCategory(
        category="Income Documents",
        types=(
            DocumentTypeDefinition(
                type="W-2",
                patterns=("wage and tax statement", "w-2"),
                keywords=("wages", "federal income tax withheld", "social security wages"),
                required_fields=("employer_name", "wages", "federal_withholding"),
                auto_fill_capability="full",
                confidence=0.98,
                related_forms=("Form 1040", "State Returns"),
                processing_complexity="simple",
            ),
            DocumentTypeDefinition(
                type="1099-NEC",
                patterns=("1099-nec", "nonemployee compensation"),
                keywords=("nonemployee compensation", "payer", "recipient"),
                required_fields=("payer_name", "nonemployee_compensation"),
                auto_fill_capability="partial",
                confidence=0.85,
                related_forms=("Schedule C", "Schedule SE"),
                processing_complexity="moderate",
            ),
            DocumentTypeDefinition(
                type="1099-INT",
                patterns=("1099-int", "interest income"),
                keywords=("interest income", "federal income tax withheld"),
                required_fields=("payer_name", "interest_income"),
                auto_fill_capability="full",
                confidence=0.97,
                related_forms=("Form 1040 Schedule B",),
                processing_complexity="simple",
            ),
            DocumentTypeDefinition(
                type="1099-DIV",
                patterns=("1099-div", "dividends and distributions"),
                keywords=("ordinary dividends", "qualified dividends", "capital gain distributions"),
                required_fields=("payer_name", "ordinary_dividends"),
                auto_fill_capability="full",
                confidence=0.97,
                related_forms=("Form 1040 Schedule B",),
                processing_complexity="simple",
            ),
            DocumentTypeDefinition(
                type="1099-R",
                patterns=("1099-r", "distributions from pensions"),
                keywords=("gross distribution", "taxable amount", "distribution code"),
                required_fields=("payer_name", "gross_distribution", "taxable_amount"),
                auto_fill_capability="partial",
                confidence=0.90,
                related_forms=("Form 1040",),
                processing_complexity="moderate",
            ),
        ),
    ),
    TaxonomyCategory(
        category="Business Documents",
        types=(
            DocumentTypeDefinition(
                type="K-1 Partnership",
                patterns=("schedule k-1", "partner's share", "partnership"),
                keywords=("ordinary business income", "guaranteed payments", "partnership"),
                required_fields=("partnership_name", "ordinary_income"),
                auto_fill_capability="partial",
                confidence=0.75,
                related_forms=("Form 1040 Schedule E",),
                processing_complexity="complex",
            ),
            DocumentTypeDefinition(
                type="K-1 S-Corporation",
                patterns=("schedule k-1", "shareholder's share", "s corporation"),
                keywords=("ordinary business income", "s corporation", "separately stated items"),
                required_fields=("corporation_name", "ordinary_income"),
                auto_fill_capability="partial",
                confidence=0.80,
                related_forms=("Form 1040 Schedule E",),
                processing_complexity="complex",
            ),
            DocumentTypeDefinition(
                type="Business Receipt",
                patterns=("receipt", "invoice", "bill"),
                keywords=("total", "amount", "date", "vendor"),
                required_fields=("vendor_name", "amount", "date"),
                auto_fill_capability="manual",
                confidence=0.70,
                related_forms=("Schedule C",),
                processing_complexity="simple",
            ),
        ),
    ),
    TaxonomyCategory(
        category="Investment Documents",
        types=(
            DocumentTypeDefinition(
                type="Brokerage Statement",
                patterns=("brokerage statement", "investment statement", "portfolio summary"),
                keywords=("proceeds", "cost basis", "capital gains", "dividends"),
                required_fields=("brokerage_name", "account_number"),
                auto_fill_capability="partial",
                confidence=0.70,
                related_forms=("Schedule D", "Form 8949"),
                processing_complexity="complex",
            ),
            DocumentTypeDefinition(
                type="1099-B",
                patterns=("1099-b", "proceeds from broker"),
                keywords=("proceeds", "cost basis", "date acquired", "date sold"),
                required_fields=("broker_name", "proceeds"),
                auto_fill_capability="partial",
                confidence=0.85,
                related_forms=("Schedule D", "Form 8949"),
                processing_complexity="moderate",
            ),
        ),
    ),
    TaxonomyCategory(
        category="Deduction Documents",
        types=(
            DocumentTypeDefinition(
                type="1098 Mortgage Interest",
                patterns=("1098", "mortgage interest statement"),
                keywords=("mortgage interest", "points paid", "mortgage insurance premiums"),
                required_fields=("lender_name", "mortgage_interest"),
                auto_fill_capability="full",
                confidence=0.96,
                related_forms=("Form 1040 Schedule A",),
                processing_complexity="simple",
            ),
            DocumentTypeDefinition(
                type="1098-T Tuition",
                patterns=("1098-t", "tuition statement"),
                keywords=("qualified tuition", "scholarships", "adjustments"),
                required_fields=("institution_name", "tuition_paid"),
                auto_fill_capability="full",
                confidence=0.94,
                related_forms=("Form 1040", "Form 8863"),
                processing_complexity="simple",
            ),
            DocumentTypeDefinition(
                type="Charitable Contribution Receipt",
                patterns=("donation receipt", "charitable contribution", "gift receipt"),
                keywords=("donation", "charitable", "contribution", "tax deductible"),
                required_fields=("organization_name", "amount", "date"),
                auto_fill_capability="manual",
                confidence=0.80,
                related_forms=("Form 1040 Schedule A",),
                processing_complexity="simple",
            ),
        ),
    ),
    TaxonomyCategory(
        category="Real Estate Documents",
        types=(
            DocumentTypeDefinition(
                type="Property Tax Statement",
                patterns=("property tax", "real estate tax", "tax bill"),
                keywords=("property tax", "assessed value", "tax year"),
                required_fields=("property_address", "tax_amount"),
                auto_fill_capability="full",
                confidence=0.90,
                related_forms=("Form 1040 Schedule A",),
                processing_complexity="simple",
            ),
            DocumentTypeDefinition(
                type="Rental Income Statement",
                patterns=("rental income", "lease agreement", "rent roll"),
                keywords=("rental income", "tenant", "lease", "rent"),
                required_fields=("property_address", "rental_income"),
                auto_fill_capability="partial",
                confidence=0.75,
                related_forms=("Schedule E",),
                processing_complexity="moderate",
            ),
        ),
    ),
)


def find_definition(
    document_type: str, taxonomy: tuple[TaxonomyCategory, ...] = TAXONOMY
) -> DocumentTypeDefinition | None:
    for category in taxonomy:
        for definition in category.types:
            if definition.type == document_type:
                return definition
    return None
